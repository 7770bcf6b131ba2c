import pytest
from pathlib import Path
from unittest.mock import patch
from qcode.memory import discover_memory_files, load_user_memory


@pytest.fixture
def global_dir(tmp_path):
    app_dir = tmp_path / "app"
    memory_dir = app_dir / "memory"
    memory_dir.mkdir(parents=True)
    (memory_dir / "global.md").write_text("global memory")
    with patch("qcode.memory.get_app_data_dir", return_value=app_dir):
        yield app_dir


@pytest.fixture
def project_root(tmp_path):
    """Create a mock project structure with memory files."""
    root = tmp_path / "project"
    memory_dir1 = root / ".qcode" / "memory"
    memory_dir1.mkdir(parents=True)
    (memory_dir1 / "mem1.md").write_text("memory 1")
    (memory_dir1 / "mem2.md").write_text("   \n")

    sub_memory = root / "sub_project" / ".qcode" / "memory"
    sub_memory.mkdir(parents=True)
    (sub_memory / "mem3.md").write_text("memory 3")

    # Nested inside another .qcode folder: ignored
    nested = root / ".qcode" / "vendor" / ".qcode" / "memory"
    nested.mkdir(parents=True)
    (nested / "hidden.md").write_text("hidden")

    return root


def test_memory_discovery_order(global_dir, project_root):
    names = [Path(p).name for p in discover_memory_files(project_root)]

    assert names[0] == "global.md"
    assert sorted(names[1:]) == ["mem1.md", "mem2.md", "mem3.md"]
    assert "hidden.md" not in names


def test_load_user_memory_skips_blank_files(global_dir, project_root):
    memory = load_user_memory(project_root)

    assert memory.startswith("global memory\n\n")
    assert "memory 1" in memory
    assert "memory 3" in memory
    assert "hidden" not in memory
    assert "\n\n\n" not in memory


def test_load_user_memory_empty(tmp_path):
    with patch("qcode.memory.get_app_data_dir", return_value=tmp_path / "none"):
        assert load_user_memory(tmp_path) == ""
