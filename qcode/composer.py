"""System prompt composition.

Decides, for every assistant turn, what instruction text is sent to the model:
a read-override file, a custom instruction, an endpoint-mapped template or the
built-in default prompt, followed by the user memory suffix.
"""

import os
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from langchain_core.messages import BaseMessage

from .prompts import build_default_prompt
from .serializers import DirectiveMode, EndpointMapping, PromptDirective, RuntimeContext
from .utils import (
    CONFIG_DIR_NAME,
    MAPPINGS_SETTINGS_KEY,
    SYSTEM_MD_ENV,
    SYSTEM_PROMPT_FILENAME,
    WRITE_SYSTEM_MD_ENV,
    absolute_path,
    detect_runtime_context,
    expand_home,
    get_active_endpoint,
    load_system_prompt_mappings,
)

logger = logging.getLogger(__name__)

MEMORY_SEPARATOR = "\n\n---\n\n"

GIT_REPO_PLACEHOLDER = "{RUNTIME_VARS_IS_GIT_REPO}"
SANDBOX_PLACEHOLDER = "{RUNTIME_VARS_SANDBOX}"

CustomInstruction = Union[str, BaseMessage, Mapping[str, Any], Sequence[Any]]
EndpointConfig = Union[Mapping[str, Any], Iterable[Union[EndpointMapping, Mapping[str, Any]]]]


class MissingSystemPromptFileError(FileNotFoundError):
    """Raised when a read-override points at a file that does not exist."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"missing system prompt file '{path}'")


def flatten_instruction(instruction: CustomInstruction) -> str:
    """Collapse a custom instruction into a single string.

    Accepts a plain string, a LangChain message, a ``{"parts": [{"text": ...}]}``
    mapping, a single ``{"text": ...}`` part or a sequence of strings / content
    blocks. Fragments are joined with no separator; fragments without text
    contribute nothing.

    Raises:
        TypeError: a mapping carries none of ``parts``, ``content`` or ``text``.
    """
    if isinstance(instruction, str):
        return instruction

    if isinstance(instruction, BaseMessage):
        content = instruction.content
    elif isinstance(instruction, Mapping):
        if "parts" in instruction:
            content = instruction["parts"]
        elif "content" in instruction:
            content = instruction["content"]
        elif "text" in instruction:
            content = instruction["text"] or ""
        else:
            raise TypeError(
                f"Custom instruction mapping has no 'parts', 'content' or 'text': "
                f"{sorted(instruction)}"
            )
    else:
        content = instruction

    if isinstance(content, str):
        return content

    fragments = []
    for part in content or []:
        if isinstance(part, str):
            fragments.append(part)
        elif isinstance(part, Mapping):
            fragments.append(part.get("text") or "")
        else:
            fragments.append(getattr(part, "text", None) or "")
    return "".join(fragments)


def append_memory(base_prompt: str, user_memory: Optional[str]) -> str:
    """Suffix the memory verbatim unless it is blank."""
    if user_memory and user_memory.strip():
        return f"{base_prompt}{MEMORY_SEPARATOR}{user_memory}"
    return base_prompt


def coerce_mappings(endpoint_config: Optional[EndpointConfig]) -> list[EndpointMapping]:
    """Accept either a settings-style dict or a plain list of mappings."""
    if not endpoint_config:
        return []
    if isinstance(endpoint_config, Mapping):
        return load_system_prompt_mappings(endpoint_config)
    return load_system_prompt_mappings({MAPPINGS_SETTINGS_KEY: list(endpoint_config)})


def find_matching_template(
    mappings: Iterable[EndpointMapping],
    base_url: Optional[str],
    model_name: Optional[str],
) -> Optional[str]:
    """Return the template of the first mapping matching the endpoint, if any."""
    for mapping in mappings:
        if mapping.matches(base_url, model_name):
            return mapping.template
    return None


def render_template(template: str, context: RuntimeContext) -> str:
    """Substitute runtime placeholders in an endpoint-mapped template."""
    return template.replace(
        GIT_REPO_PLACEHOLDER, "true" if context.is_git_repository else "false"
    ).replace(SANDBOX_PLACEHOLDER, context.sandbox_value)


class SystemPromptComposer:
    """Composes the system prompt from already-resolved inputs.

    Every input that would otherwise be looked up globally (runtime context,
    override directives, active endpoint, config and home directories) is
    held here, so composition itself reads nothing but the override files.
    """

    def __init__(
        self,
        *,
        runtime_context: Optional[RuntimeContext] = None,
        read_directive: Optional[PromptDirective] = None,
        write_directive: Optional[PromptDirective] = None,
        custom_instruction: Optional[CustomInstruction] = None,
        base_url: Optional[str] = None,
        model_name: Optional[str] = None,
        config_dir: Optional[Union[str, Path]] = None,
        home_dir: Optional[Union[str, Path]] = None,
    ):
        self.runtime_context = runtime_context or RuntimeContext()
        self.read_directive = read_directive or PromptDirective()
        self.write_directive = write_directive or PromptDirective()
        self.custom_instruction = custom_instruction
        self.base_url = base_url
        self.model_name = model_name
        self.config_dir = Path(config_dir) if config_dir else Path(CONFIG_DIR_NAME)
        self.home_dir = home_dir

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        custom_instruction: Optional[CustomInstruction] = None,
        cwd: Optional[Union[str, Path]] = None,
        config_dir: Optional[Union[str, Path]] = None,
        home_dir: Optional[Union[str, Path]] = None,
    ) -> "SystemPromptComposer":
        env = os.environ if environ is None else environ
        base_url, model_name = get_active_endpoint(env)
        return cls(
            runtime_context=detect_runtime_context(env, cwd),
            read_directive=PromptDirective.parse(env.get(SYSTEM_MD_ENV)),
            write_directive=PromptDirective.parse(env.get(WRITE_SYSTEM_MD_ENV)),
            custom_instruction=custom_instruction,
            base_url=base_url,
            model_name=model_name,
            config_dir=config_dir,
            home_dir=home_dir,
        )

    @property
    def default_prompt_path(self) -> Path:
        return absolute_path(self.config_dir / SYSTEM_PROMPT_FILENAME)

    def resolve_directive_path(self, directive: PromptDirective) -> Optional[Path]:
        """Map a directive to an absolute path, or None when disabled."""
        if directive.mode is DirectiveMode.DISABLED:
            return None
        if directive.mode is DirectiveMode.DEFAULT_PATH:
            return self.default_prompt_path
        return absolute_path(expand_home(directive.path, self.home_dir))

    def read_override(self) -> Optional[str]:
        path = self.resolve_directive_path(self.read_directive)
        if path is None:
            return None
        if not path.exists():
            raise MissingSystemPromptFileError(path)
        logger.debug(f"Using system prompt override from {path}")
        return path.read_text(encoding="utf-8")

    def write_default_prompt(self, skip_path: Optional[Path] = None) -> Optional[Path]:
        """Persist the built-in prompt to the write-override target.

        Failures are logged and swallowed. Returns the written path, if any.
        """
        path = self.resolve_directive_path(self.write_directive)
        if path is None:
            return None
        if skip_path is not None and path == skip_path:
            logger.warning(
                f"Not writing default system prompt to {path}: it is the active override file"
            )
            return None

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(build_default_prompt(self.runtime_context), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Failed to write default system prompt to {path}: {e}")
            return None

        logger.debug(f"Wrote default system prompt to {path}")
        return path

    def select_base_prompt(self, mappings: Sequence[EndpointMapping]) -> str:
        if self.custom_instruction is not None:
            logger.debug("Using custom instruction as base prompt")
            return flatten_instruction(self.custom_instruction)

        template = find_matching_template(mappings, self.base_url, self.model_name)
        if template is not None:
            logger.debug(
                f"Using mapped template for {self.base_url} / {self.model_name}"
            )
            return render_template(template, self.runtime_context)

        return build_default_prompt(self.runtime_context)

    def compose(
        self,
        user_memory: Optional[str] = None,
        endpoint_config: Optional[EndpointConfig] = None,
    ) -> str:
        override = self.read_override()
        if override is not None:
            self.write_default_prompt(
                skip_path=self.resolve_directive_path(self.read_directive)
            )
            return override

        base_prompt = self.select_base_prompt(coerce_mappings(endpoint_config))
        written = self.write_default_prompt()
        if written is not None and base_prompt != build_default_prompt(self.runtime_context):
            logger.debug(
                f"Active base prompt differs from the default snapshot written to {written}"
            )
        return append_memory(base_prompt, user_memory)


def compose_system_prompt(
    user_memory: Optional[str] = None,
    endpoint_config: Optional[EndpointConfig] = None,
    *,
    composer: Optional[SystemPromptComposer] = None,
) -> str:
    """Compose the system prompt for the current environment.

    Raises:
        MissingSystemPromptFileError: a read-override names a missing file.
    """
    composer = composer or SystemPromptComposer.from_env()
    return composer.compose(user_memory, endpoint_config)


def compose_custom_system_prompt(
    custom_instruction: CustomInstruction, user_memory: Optional[str] = None
) -> str:
    return append_memory(flatten_instruction(custom_instruction), user_memory)
