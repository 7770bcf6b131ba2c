import logging
from pathlib import Path
from typing import List, Optional, Union

from .utils import CONFIG_DIR_NAME, get_app_data_dir, get_default_filesystem_root

logger = logging.getLogger(__name__)


def discover_memory_files(root: Optional[Union[str, Path]] = None) -> List[Path]:
    """Find all memory .md files: global app data first, then project .qcode/memory dirs.

    Ordering:
    1. Global: get_app_data_dir() / "memory" / "*.md" (sorted)
    2. Project: every <root>/**/.qcode/memory/*.md (sorted per directory)

    De-duplication is by resolved path only.
    """
    root = Path(root) if root else get_default_filesystem_root()
    discovered: List[Path] = []
    seen = set()

    def _add(md_file: Path):
        resolved = md_file.resolve()
        if resolved not in seen:
            seen.add(resolved)
            discovered.append(resolved)

    # 1. Global memory files (cross-project context)
    try:
        global_memory_dir = get_app_data_dir() / "memory"
        if global_memory_dir.is_dir():
            for md_file in sorted(global_memory_dir.glob("*.md")):
                _add(md_file)
    except OSError as e:
        logger.error(f"Error accessing global memory directory: {e}")

    # 2. Project memory files (workspace-specific context)
    try:
        for config_dir in sorted(root.rglob(CONFIG_DIR_NAME)):
            # Ensure we are not inside another .qcode folder
            if config_dir.is_dir() and not any(
                p.name == CONFIG_DIR_NAME for p in config_dir.parents if p != root
            ):
                memory_dir = config_dir / "memory"
                if memory_dir.is_dir():
                    for md_file in sorted(memory_dir.glob("*.md")):
                        _add(md_file)
    except OSError as e:
        logger.error(f"Error while scanning for memory files: {e}")

    return discovered


def load_user_memory(root: Optional[Union[str, Path]] = None) -> str:
    """Concatenate discovered memory files into the user memory string."""
    chunks = []
    for md_file in discover_memory_files(root):
        try:
            text = md_file.read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to read memory file {md_file}: {e}")
            continue
        if text.strip():
            chunks.append(text.strip())

    logger.debug(f"Loaded {len(chunks)} memory file(s)")
    return "\n\n".join(chunks)
