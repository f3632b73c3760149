"""Custom exception hierarchy for crawlmcp.

All application-specific exceptions inherit from CrawlMCPError,
which carries an error code for RPC error frame and tool result mapping.
"""

from __future__ import annotations


class CrawlMCPError(Exception):
    """Base exception for all crawlmcp errors."""

    def __init__(self, message: str, *, code: str = "INTERNAL_ERROR") -> None:
        super().__init__(message)
        self.code = code


class GatewayError(CrawlMCPError):
    """Errors in the protocol / network layer."""

    def __init__(self, message: str, *, code: str = "GATEWAY_ERROR") -> None:
        super().__init__(message, code=code)


class SessionError(CrawlMCPError):
    """Errors in session routing."""

    def __init__(self, message: str, *, code: str = "SESSION_ERROR") -> None:
        super().__init__(message, code=code)


class SessionNotFoundError(SessionError):
    """Lookup of an unknown or already-removed session id."""

    def __init__(self, session_id: str) -> None:
        super().__init__("session not found", code="SESSION_NOT_FOUND")
        self.session_id = session_id


class TransportClosedError(CrawlMCPError):
    """Raised by a binding whose channel has already closed."""

    def __init__(self, message: str = "Transport is closed") -> None:
        super().__init__(message, code="TRANSPORT_CLOSED")


class ToolError(CrawlMCPError):
    """Errors during tool execution."""

    def __init__(self, message: str, *, code: str = "TOOL_ERROR") -> None:
        super().__init__(message, code=code)


class UnknownToolError(ToolError):
    """Tool name not present in the catalog."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}", code="UNKNOWN_TOOL")
        self.name = name


class BackendError(CrawlMCPError):
    """Errors from backend HTTP services (SearXNG, Crawl4AI, Firecrawl)."""

    def __init__(self, message: str, *, code: str = "BACKEND_ERROR") -> None:
        super().__init__(message, code=code)


class BackendTimeoutError(BackendError):
    def __init__(self, message: str) -> None:
        super().__init__(message, code="BACKEND_TIMEOUT")


class BackendUnavailableError(BackendError):
    """Connection refused, DNS failure, or similar transport-level error."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="BACKEND_UNAVAILABLE")


class BackendStatusError(BackendError):
    """Backend answered with a non-2xx status."""

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message, code="BACKEND_STATUS")
        self.status_code = status_code


class BackendResponseError(BackendError):
    """Backend answered 2xx but the body is malformed or reports failure."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="BACKEND_RESPONSE")
