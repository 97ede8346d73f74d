"""Conduit exception hierarchy.

All Conduit-specific exceptions inherit from ConduitError,
enabling structured error handling and cleaner catch clauses.
Provider errors carry a ``retryable`` flag that the retry policy
consults; tool errors are reported back to the model; agent errors
are what callers of ``Agent.send`` see.
"""


class ConduitError(Exception):
    """Base exception for all Conduit errors."""

    def __init__(self, message: str = "", *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class ConfigError(ConduitError):
    """Invalid or missing configuration."""


# Provider errors


class ProviderError(ConduitError):
    """Error communicating with an LLM provider."""

    def __init__(self, message: str = "", *, retryable: bool = True) -> None:
        super().__init__(message, retryable=retryable)


class RateLimited(ProviderError):
    """Provider asked us to slow down (HTTP 429)."""

    def __init__(self, message: str = "", *, retry_after: float | None = None) -> None:
        super().__init__(message, retryable=True)
        self.retry_after = retry_after


class ProviderNetworkError(ProviderError):
    """Timeout, DNS, TLS or connection failure, or a 5xx from the provider."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message, retryable=True)


class AuthError(ProviderError):
    """Credentials missing or rejected. Never retried."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message, retryable=False)


class MalformedResponse(ProviderError):
    """Provider answered with something we cannot parse into a message."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message, retryable=False)


class RequestRejected(ProviderError):
    """Provider rejected the request itself (4xx other than auth/rate limit)."""

    def __init__(self, message: str = "", *, status_code: int | None = None) -> None:
        super().__init__(message, retryable=False)
        self.status_code = status_code


# Tool errors


class ToolError(ConduitError):
    """Error executing a tool."""

    kind = "tool_error"


class NotFound(ToolError):
    kind = "not_found"


class PermissionDenied(ToolError):
    kind = "permission_denied"


class IoError(ToolError):
    kind = "io_error"


class NotADirectory(ToolError):
    kind = "not_a_directory"


class ExecutionError(ToolError):
    """Shell command exited non-zero (or never finished)."""

    kind = "execution_error"

    def __init__(self, message: str = "", *, exit_code: int | None = None, output: str = "") -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.output = output


class ToolNetworkError(ToolError):
    kind = "network_error"


class InvalidArguments(ToolError):
    """Unknown tool, missing parameter or wrong parameter type."""

    kind = "invalid_arguments"


class Unimplemented(ToolError):
    kind = "unimplemented"


# Agent errors


class AgentError(ConduitError):
    """A turn could not reach a terminal assistant message."""


class ProviderFailure(AgentError):
    def __init__(self, cause: ProviderError) -> None:
        super().__init__(f"provider failed: {type(cause).__name__}: {cause}")
        self.cause = cause


class ToolFailure(AgentError):
    def __init__(self, cause: ToolError) -> None:
        super().__init__(f"tool failed: {type(cause).__name__}: {cause}")
        self.cause = cause


class RoundTripLimitExceeded(AgentError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"tool round-trip limit of {limit} exceeded")
        self.limit = limit
