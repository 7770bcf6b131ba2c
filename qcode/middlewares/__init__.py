from .system_prompt import SystemPromptMiddleware

__all__ = ["SystemPromptMiddleware"]
