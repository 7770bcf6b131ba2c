import pytest
from qcode.prompts import build_default_prompt, get_compression_prompt
from qcode.serializers import RuntimeContext, SandboxKind

SECTION_HEADERS = {
    SandboxKind.GENERIC: "# Sandbox",
    SandboxKind.SEATBELT: "# macOS Seatbelt",
    SandboxKind.NONE: "# Outside of Sandbox",
}


@pytest.mark.parametrize("kind", list(SandboxKind))
@pytest.mark.parametrize("is_git", [True, False])
def test_exactly_one_sandbox_section(kind, is_git):
    prompt = build_default_prompt(
        RuntimeContext(sandbox_kind=kind, is_git_repository=is_git)
    )

    for other, header in SECTION_HEADERS.items():
        if other is kind:
            assert header in prompt
        else:
            assert header not in prompt


def test_git_section_only_in_git_repository():
    in_repo = build_default_prompt(RuntimeContext(is_git_repository=True))
    outside = build_default_prompt(RuntimeContext(is_git_repository=False))

    assert "# Git Repository" in in_repo
    assert "# Git Repository" not in outside


def test_default_prompt_has_core_content_and_no_separator():
    prompt = build_default_prompt(RuntimeContext())

    assert prompt.startswith("You are QCode, an interactive CLI agent")
    assert "---" not in prompt
    assert prompt == prompt.strip()


def test_compression_prompt_describes_state_snapshot():
    prompt = get_compression_prompt()
    assert "<state_snapshot>" in prompt
    assert "</state_snapshot>" in prompt
