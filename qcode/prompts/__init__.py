from .core import (
    CORE_PROMPT,
    SANDBOX_SECTION,
    SEATBELT_SECTION,
    NO_SANDBOX_SECTION,
    GIT_SECTION,
    CLOSING_PROMPT,
    build_default_prompt,
)
from .compression import COMPRESSION_PROMPT, get_compression_prompt

__all__ = [
    "CORE_PROMPT",
    "SANDBOX_SECTION",
    "SEATBELT_SECTION",
    "NO_SANDBOX_SECTION",
    "GIT_SECTION",
    "CLOSING_PROMPT",
    "COMPRESSION_PROMPT",
    "build_default_prompt",
    "get_compression_prompt",
]
