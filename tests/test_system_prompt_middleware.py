import pytest
from unittest.mock import patch

from qcode.composer import MissingSystemPromptFileError, SystemPromptComposer
from qcode.middlewares import SystemPromptMiddleware
from qcode.prompts import build_default_prompt
from qcode.serializers import PromptDirective, RuntimeContext


class MockRequest:
    def __init__(self, system_prompt=None):
        self.system_prompt = system_prompt


def test_sets_system_prompt_with_fixed_memory():
    middleware = SystemPromptMiddleware(SystemPromptComposer(), user_memory="M")
    request = MockRequest(system_prompt="stale")

    result = middleware.wrap_model_call(request, lambda r: r)

    assert result is request
    assert request.system_prompt == build_default_prompt(RuntimeContext()) + "\n\n---\n\nM"


@pytest.mark.asyncio
async def test_async_call_applies_endpoint_mapping():
    composer = SystemPromptComposer(base_url="https://x.com/", model_name="m")
    middleware = SystemPromptMiddleware(
        composer,
        endpoint_config=[
            {"baseUrls": ["https://x.com"], "modelNames": ["m"], "template": "mapped"}
        ],
        user_memory="",
    )
    request = MockRequest()

    async def async_handler(r):
        return r

    await middleware.awrap_model_call(request, async_handler)

    assert request.system_prompt == "mapped"


def test_memory_is_rediscovered_each_call(tmp_path):
    middleware = SystemPromptMiddleware(SystemPromptComposer(), scan_root=tmp_path)

    with patch(
        "qcode.middlewares.system_prompt.load_user_memory",
        side_effect=["first", "second"],
    ) as mock_load:
        first = MockRequest()
        middleware.wrap_model_call(first, lambda r: r)
        second = MockRequest()
        middleware.wrap_model_call(second, lambda r: r)

    assert mock_load.call_count == 2
    mock_load.assert_called_with(tmp_path)
    assert first.system_prompt.endswith("\n\n---\n\nfirst")
    assert second.system_prompt.endswith("\n\n---\n\nsecond")


def test_missing_override_file_propagates(tmp_path):
    composer = SystemPromptComposer(
        read_directive=PromptDirective.parse(str(tmp_path / "missing.md"))
    )
    middleware = SystemPromptMiddleware(composer, user_memory="")
    handler_calls = []

    with pytest.raises(MissingSystemPromptFileError):
        middleware.wrap_model_call(MockRequest(), handler_calls.append)

    assert handler_calls == []
