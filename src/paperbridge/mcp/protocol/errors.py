"""Protocol error types and error codes."""

from dataclasses import dataclass
from typing import Any

# Standard JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Implementation-defined codes (-32000 to -32099)
REQUEST_TIMEOUT = -32001

ERROR_MESSAGES = {
    PARSE_ERROR: "Parse error",
    INVALID_REQUEST: "Invalid Request",
    METHOD_NOT_FOUND: "Method not found",
    INVALID_PARAMS: "Invalid params",
    INTERNAL_ERROR: "Internal error",
    REQUEST_TIMEOUT: "Request timeout",
}


@dataclass
class RpcError(Exception):
    """
    JSON-RPC error returned by the server for one request.

    Only the caller awaiting that request id sees it; sibling requests
    are unaffected.
    """

    code: int
    message: str
    data: Any = None

    def __post_init__(self):
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-RPC error object."""
        error: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.data is not None:
            error["data"] = self.data
        return error

    @classmethod
    def from_dict(cls, error: Any) -> "RpcError":
        """Create from a JSON-RPC error object.

        Servers occasionally send a bare string or a malformed object; those
        still produce a usable error rather than failing dispatch.
        """
        if not isinstance(error, dict):
            return cls(code=INTERNAL_ERROR, message=str(error))
        code = error.get("code", INTERNAL_ERROR)
        if not isinstance(code, int) or isinstance(code, bool):
            code = INTERNAL_ERROR
        message = error.get("message")
        return cls(
            code=code,
            message=message if isinstance(message, str) else ERROR_MESSAGES.get(code, "Unknown error"),
            data=error.get("data"),
        )

    @classmethod
    def method_not_found(cls, method: str) -> "RpcError":
        """Create a method not found error."""
        return cls(
            code=METHOD_NOT_FOUND,
            message=f"Method not found: {method}",
            data={"method": method},
        )

    @classmethod
    def internal_error(cls, details: str | None = None) -> "RpcError":
        """Create an internal error."""
        return cls(
            code=INTERNAL_ERROR,
            message=details or ERROR_MESSAGES[INTERNAL_ERROR],
        )

    @classmethod
    def timeout(cls, timeout_seconds: float) -> "RpcError":
        """Create a request timeout error."""
        return cls(
            code=REQUEST_TIMEOUT,
            message=f"Request timed out after {timeout_seconds}s",
            data={"timeout": timeout_seconds},
        )

    def __str__(self) -> str:
        base = f"RpcError({self.code}): {self.message}"
        if self.data:
            base += f" {self.data}"
        return base

    def __repr__(self) -> str:
        return f"RpcError(code={self.code}, message={self.message!r}, data={self.data!r})"


class ProtocolError(Exception):
    """
    An inbound line could not be understood.

    Never raised to callers: the decoder reports it and moves on.
    """

    def __init__(self, message: str, line: bytes = b""):
        super().__init__(message)
        self.line = line


class ToolError(Exception):
    """The server reported that a tool call failed (``isError`` envelope)."""

    def __init__(
        self,
        message: str,
        tool: str | None = None,
        envelope: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.tool = tool
        self.envelope = envelope

    def __str__(self) -> str:
        if self.tool:
            return f"Tool '{self.tool}' failed: {self.args[0]}"
        return self.args[0]
