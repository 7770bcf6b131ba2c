import sys
import logging
import argparse

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.text import Text
from rich import box

from .composer import MissingSystemPromptFileError, SystemPromptComposer
from .memory import load_user_memory
from .prompts import get_compression_prompt
from .serializers import SandboxKind
from .utils import load_all_dotenv, load_settings, load_system_prompt_mappings

logger = logging.getLogger(__name__)

console = Console()

_SANDBOX_LABELS = {
    SandboxKind.NONE: "none",
    SandboxKind.GENERIC: "container",
    SandboxKind.SEATBELT: "macOS seatbelt",
}


def _describe(composer: SystemPromptComposer) -> Text:
    context = composer.runtime_context
    info = Text()
    info.append("  sandbox: ", style="dim")
    info.append(_SANDBOX_LABELS[context.sandbox_kind], style="bold")
    info.append("  git: ", style="dim")
    info.append("yes" if context.is_git_repository else "no", style="bold")
    info.append("  endpoint: ", style="dim")
    info.append(composer.base_url or "-", style="bold cyan")
    info.append("  model: ", style="dim")
    info.append(composer.model_name or "-", style="bold cyan")
    return info


def _print_prompt(prompt: str, title: str, raw: bool) -> None:
    if raw:
        sys.stdout.write(prompt)
        if not prompt.endswith("\n"):
            sys.stdout.write("\n")
        return

    console.print(
        Panel(
            Markdown(prompt),
            title=f"[bold cyan]{title}[/]",
            box=box.ROUNDED,
            border_style="cyan",
        )
    )


def main(argv=None):
    """Entry point for the qcode prompt preview."""
    parser = argparse.ArgumentParser(
        description="QCode - show the system prompt sent to the model"
    )
    parser.add_argument(
        "--memory",
        default=None,
        help="User memory text (defaults to the discovered .qcode/memory files)",
    )
    parser.add_argument(
        "--instruction",
        default=None,
        help="Custom instruction replacing the built-in prompt",
    )
    parser.add_argument(
        "--compression",
        action="store_true",
        help="Show the history-compression prompt instead of the system prompt",
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Print the prompt as plain text",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.compression:
        _print_prompt(get_compression_prompt(), "Compression Prompt", args.raw)
        return 0

    load_all_dotenv()
    mappings = load_system_prompt_mappings(load_settings())
    composer = SystemPromptComposer.from_env(custom_instruction=args.instruction)
    user_memory = args.memory if args.memory is not None else load_user_memory()

    try:
        prompt = composer.compose(user_memory, mappings)
    except MissingSystemPromptFileError as e:
        console.print(f"  [bold red]Error:[/] {e}")
        return 1

    if not args.raw:
        console.print(_describe(composer))
        console.print()
    _print_prompt(prompt, "System Prompt", args.raw)
    return 0


if __name__ == "__main__":
    sys.exit(main())
