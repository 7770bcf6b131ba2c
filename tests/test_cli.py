import pytest
from unittest.mock import patch

from qcode.__main__ import main


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in (
        "SANDBOX",
        "QCODE_SYSTEM_MD",
        "QCODE_WRITE_SYSTEM_MD",
        "OPENAI_BASE_URL",
        "OPENAI_MODEL",
    ):
        monkeypatch.delenv(name, raising=False)
    with patch("qcode.__main__.load_all_dotenv"), patch(
        "qcode.__main__.load_settings", return_value={}
    ):
        yield


def test_raw_prompt_with_instruction_and_memory(capsys):
    code = main(["--raw", "--instruction", "Be brief.", "--memory", "likes tabs"])

    assert code == 0
    assert capsys.readouterr().out == "Be brief.\n\n---\n\nlikes tabs\n"


def test_discovered_memory_is_used(capsys):
    with patch("qcode.__main__.load_user_memory", return_value="from files"):
        code = main(["--raw"])

    out = capsys.readouterr().out
    assert code == 0
    assert out.startswith("You are QCode")
    assert out.endswith("\n\n---\n\nfrom files\n")


def test_mapped_template_from_settings(monkeypatch, capsys):
    monkeypatch.setenv("OPENAI_BASE_URL", "https://x.com/")
    monkeypatch.setenv("OPENAI_MODEL", "m")
    settings = {
        "systemPromptMappings": [
            {"baseUrls": ["https://x.com"], "modelNames": ["m"], "template": "mapped"}
        ]
    }

    with patch("qcode.__main__.load_settings", return_value=settings):
        code = main(["--raw", "--memory", ""])

    assert code == 0
    assert capsys.readouterr().out == "mapped\n"


def test_missing_override_file_exits_with_error(monkeypatch, tmp_path, capsys):
    monkeypatch.setenv("QCODE_SYSTEM_MD", str(tmp_path / "missing.md"))

    code = main(["--raw", "--memory", ""])

    assert code == 1
    assert "missing system prompt file" in capsys.readouterr().out


def test_rendered_output(capsys):
    code = main(["--memory", ""])

    out = capsys.readouterr().out
    assert code == 0
    assert "System Prompt" in out
    assert "sandbox:" in out


def test_compression_prompt_is_printed_without_composing(monkeypatch, tmp_path, capsys):
    # a broken read override would fail composition if it ran
    monkeypatch.setenv("QCODE_SYSTEM_MD", str(tmp_path / "missing.md"))

    code = main(["--compression", "--raw"])

    out = capsys.readouterr().out
    assert code == 0
    assert "<state_snapshot>" in out
    assert "You are QCode" not in out
