import os
import json
import logging
import platform
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple, Union

from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError

from .serializers import (
    SEATBELT_SANDBOX_VALUE,
    EndpointMapping,
    RuntimeContext,
    SandboxKind,
)

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".qcode"
SYSTEM_PROMPT_FILENAME = "system.md"

SANDBOX_ENV = "SANDBOX"
SYSTEM_MD_ENV = "QCODE_SYSTEM_MD"
WRITE_SYSTEM_MD_ENV = "QCODE_WRITE_SYSTEM_MD"
BASE_URL_ENV = "OPENAI_BASE_URL"
MODEL_ENV = "OPENAI_MODEL"

MAPPINGS_SETTINGS_KEY = "systemPromptMappings"

# ---------------------------------------------------------------------------
# Directories
# ---------------------------------------------------------------------------


def get_app_data_dir() -> Path:
    """Determine OS-specific application data directory for qcode."""
    system = platform.system()
    user_home = Path.home()

    if system == "Windows":
        root = user_home / "AppData" / "Local" / "QCode"
    elif system == "Darwin":
        root = user_home / "Library" / "Application Support" / "QCode"
    else:  # Linux and others
        root = user_home / ".local" / "share" / "qcode"

    root.mkdir(parents=True, exist_ok=True)
    return root


def get_default_filesystem_root() -> Path:
    """Return the current working directory as the default filesystem root."""
    return Path(os.getcwd()).resolve()


def get_config_dir(root: Optional[Union[str, Path]] = None) -> Path:
    """Return the project-local `.qcode` directory (not created)."""
    base = Path(root) if root else get_default_filesystem_root()
    return base / CONFIG_DIR_NAME


def load_all_dotenv():
    """Load .env from current directory and global app data directory."""
    load_dotenv(find_dotenv(usecwd=True))
    global_env = get_app_data_dir() / ".env"
    if global_env.exists():
        load_dotenv(dotenv_path=global_env, override=False)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def get_settings_path() -> Path:
    """Return the path to the project-local settings.json file."""
    return get_config_dir() / "settings.json"


def load_settings() -> dict:
    """Load settings from the project-local settings.json file."""
    path = get_settings_path()
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Failed to load settings from {path}: {e}")
    return {}


def load_system_prompt_mappings(settings: Optional[Mapping[str, Any]]) -> List[EndpointMapping]:
    """Validate the `systemPromptMappings` entries of a settings dict.

    Entries that fail validation are logged and dropped; the order of the
    remaining ones is preserved since the first match wins.
    """
    if not settings:
        return []

    raw = settings.get(MAPPINGS_SETTINGS_KEY) or []
    if not isinstance(raw, list):
        logger.error(
            f"Ignoring {MAPPINGS_SETTINGS_KEY}: expected a list, got {type(raw).__name__}"
        )
        return []

    mappings = []
    for index, entry in enumerate(raw):
        if isinstance(entry, EndpointMapping):
            mappings.append(entry)
            continue
        try:
            mappings.append(EndpointMapping.model_validate(entry))
        except ValidationError as e:
            logger.error(f"Skipping invalid {MAPPINGS_SETTINGS_KEY}[{index}]: {e}")
    return mappings


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


def expand_home(path: str, home_dir: Optional[Union[str, Path]] = None) -> str:
    """Expand a leading `~` or `~/` to the home directory.

    `~user` forms are left untouched.
    """
    home = str(home_dir) if home_dir is not None else str(Path.home())
    if path == "~":
        return home
    if path.startswith("~/"):
        return os.path.join(home, path[2:])
    return path


def absolute_path(path: Union[str, Path]) -> Path:
    """Make a path absolute against the cwd without resolving symlinks."""
    return Path(os.path.abspath(os.fspath(path)))


# ---------------------------------------------------------------------------
# Runtime context
# ---------------------------------------------------------------------------


def is_git_repository(directory: Optional[Union[str, Path]] = None) -> bool:
    """Return True if `directory` or any of its parents holds a `.git` entry."""
    current = absolute_path(directory or os.getcwd())
    for candidate in (current, *current.parents):
        try:
            if (candidate / ".git").exists():
                return True
        except OSError as e:
            logger.debug(f"Could not inspect {candidate} for .git: {e}")
            return False
    return False


def detect_sandbox_kind(value: Optional[str]) -> SandboxKind:
    if not value:
        return SandboxKind.NONE
    if value == SEATBELT_SANDBOX_VALUE:
        return SandboxKind.SEATBELT
    return SandboxKind.GENERIC


def detect_runtime_context(
    environ: Optional[Mapping[str, str]] = None,
    cwd: Optional[Union[str, Path]] = None,
) -> RuntimeContext:
    """Build a RuntimeContext from the SANDBOX variable and git detection."""
    env = os.environ if environ is None else environ
    sandbox_value = env.get(SANDBOX_ENV) or ""
    context = RuntimeContext(
        sandbox_kind=detect_sandbox_kind(sandbox_value),
        is_git_repository=is_git_repository(cwd),
        sandbox_value=sandbox_value,
    )
    logger.debug(f"Detected runtime context: {context}")
    return context


def get_active_endpoint(
    environ: Optional[Mapping[str, str]] = None,
) -> Tuple[Optional[str], Optional[str]]:
    """Return the (base URL, model name) the CLI is currently configured for."""
    env = os.environ if environ is None else environ
    return env.get(BASE_URL_ENV) or None, env.get(MODEL_ENV) or None
