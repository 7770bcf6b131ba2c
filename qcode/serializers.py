from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

SEATBELT_SANDBOX_VALUE = "sandbox-exec"

_DISABLED_LITERALS = ("0", "false")
_DEFAULT_PATH_LITERALS = ("1", "true")


class SandboxKind(str, Enum):
    """Sandbox the CLI is running under."""

    NONE = "none"
    GENERIC = "generic"
    SEATBELT = "seatbelt"


class RuntimeContext(BaseModel):
    """Snapshot of the runtime facts that shape the default prompt."""

    model_config = ConfigDict(frozen=True)

    sandbox_kind: SandboxKind = SandboxKind.NONE
    is_git_repository: bool = False
    # Raw SANDBOX value, exposed to templates as {RUNTIME_VARS_SANDBOX}
    sandbox_value: str = ""


class EndpointMapping(BaseModel):
    """Routes a (base URL, model) pair to an alternate prompt template."""

    model_config = ConfigDict(populate_by_name=True)

    base_urls: List[str] = Field(default_factory=list, alias="baseUrls")
    model_names: List[str] = Field(default_factory=list, alias="modelNames")
    template: str

    def matches(self, base_url: Optional[str], model_name: Optional[str]) -> bool:
        if not base_url or not model_name:
            return False
        if model_name not in self.model_names:
            return False
        target = normalize_base_url(base_url)
        return any(normalize_base_url(url) == target for url in self.base_urls)


def normalize_base_url(url: str) -> str:
    """Strip a single trailing slash so `https://x/` and `https://x` compare equal."""
    return url[:-1] if url.endswith("/") else url


class DirectiveMode(str, Enum):
    DISABLED = "disabled"
    DEFAULT_PATH = "default_path"
    EXPLICIT_PATH = "explicit_path"


class PromptDirective(BaseModel):
    """Parsed form of a QCODE_SYSTEM_MD / QCODE_WRITE_SYSTEM_MD style indicator.

    The indicator is either absent, a boolean-like literal, or a filesystem
    path. Anything that is not a recognised literal is taken as a path, so a
    typo never silently turns the feature off.
    """

    model_config = ConfigDict(frozen=True)

    mode: DirectiveMode = DirectiveMode.DISABLED
    path: Optional[str] = None

    @classmethod
    def parse(cls, value: Optional[str]) -> "PromptDirective":
        if not value:
            return cls(mode=DirectiveMode.DISABLED)

        lowered = value.lower()
        if lowered in _DISABLED_LITERALS:
            return cls(mode=DirectiveMode.DISABLED)
        if lowered in _DEFAULT_PATH_LITERALS:
            return cls(mode=DirectiveMode.DEFAULT_PATH)

        return cls(mode=DirectiveMode.EXPLICIT_PATH, path=value)

    @property
    def enabled(self) -> bool:
        return self.mode is not DirectiveMode.DISABLED
