from .composer import (
    MEMORY_SEPARATOR,
    MissingSystemPromptFileError,
    SystemPromptComposer,
    compose_custom_system_prompt,
    compose_system_prompt,
    find_matching_template,
    flatten_instruction,
)
from .serializers import (
    DirectiveMode,
    EndpointMapping,
    PromptDirective,
    RuntimeContext,
    SandboxKind,
)

__all__ = [
    "MEMORY_SEPARATOR",
    "MissingSystemPromptFileError",
    "SystemPromptComposer",
    "compose_custom_system_prompt",
    "compose_system_prompt",
    "find_matching_template",
    "flatten_instruction",
    "DirectiveMode",
    "EndpointMapping",
    "PromptDirective",
    "RuntimeContext",
    "SandboxKind",
]
