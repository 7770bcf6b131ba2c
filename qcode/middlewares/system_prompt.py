import logging
from pathlib import Path
from typing import Any, Optional, Union

from langchain.agents.middleware import AgentMiddleware

from ..composer import EndpointConfig, SystemPromptComposer
from ..memory import load_user_memory

logger = logging.getLogger(__name__)


class SystemPromptMiddleware(AgentMiddleware):
    """Recomposes the system prompt before every model call.

    Memory files and override files are re-read on each call, so edits made
    during a session take effect on the next turn. A fixed ``user_memory``
    string disables memory discovery.
    """

    def __init__(
        self,
        composer: Optional[SystemPromptComposer] = None,
        *,
        endpoint_config: Optional[EndpointConfig] = None,
        user_memory: Optional[str] = None,
        scan_root: Optional[Union[str, Path]] = None,
    ):
        super().__init__()
        self.composer = composer or SystemPromptComposer.from_env()
        self.endpoint_config = endpoint_config
        self.user_memory = user_memory
        self.scan_root = scan_root

    def _resolve_memory(self) -> str:
        if self.user_memory is not None:
            return self.user_memory
        return load_user_memory(self.scan_root)

    def _inject(self, request: Any) -> None:
        request.system_prompt = self.composer.compose(
            self._resolve_memory(), self.endpoint_config
        )

    def wrap_model_call(self, request, handler):
        self._inject(request)
        return handler(request)

    async def awrap_model_call(self, request, handler):
        self._inject(request)
        return await handler(request)
