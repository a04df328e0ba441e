"""Exception hierarchy for shopmata."""


class ShopmataError(Exception):
    """Base class for all shopmata errors."""


class ConfigurationError(ShopmataError):
    """Raised when required configuration is missing or invalid."""


class NotFoundError(ShopmataError):
    """Raised when a record does not exist in the requesting store."""


class ToolError(ShopmataError):
    """Base class for tool registry errors."""


class ToolNotFoundError(ToolError):
    """Raised when a tool name is not registered."""

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class ToolRegistrationError(ToolError):
    """Raised when a tool cannot be registered (e.g. duplicate name)."""


class AIError(ShopmataError):
    """Base class for AI provider errors."""


class AIProviderError(AIError):
    """Raised when the provider call itself fails."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider} request failed: {message}")
        self.provider = provider


class AIResponseError(AIError):
    """Raised when the model response cannot be used (e.g. malformed JSON)."""

    def __init__(self, message: str, content: str = ""):
        super().__init__(message)
        self.content = content
