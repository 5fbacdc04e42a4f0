"""JSON-RPC 2.0 envelopes exchanged with the server."""

from dataclasses import dataclass
from typing import Any

from paperbridge.mcp.protocol.errors import RpcError

JSONRPC_VERSION = "2.0"

REQUEST = "request"
RESPONSE = "response"
NOTIFICATION = "notification"


def _params(data: dict[str, Any]) -> dict[str, Any] | None:
    params = data.get("params")
    return params if isinstance(params, dict) else None


def _envelope(**members: Any) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, **{k: v for k, v in members.items() if v is not None}}


@dataclass
class JSONRPCRequest:
    """A call that expects exactly one response with the same id."""

    id: int | str
    method: str
    params: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return _envelope(id=self.id, method=self.method, params=self.params)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JSONRPCRequest":
        return cls(id=data["id"], method=data["method"], params=_params(data))

    def __str__(self) -> str:
        return f"Request({self.method}, id={self.id})"


@dataclass
class JSONRPCNotification:
    """A one-way message; it has no id and is never answered."""

    method: str
    params: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return _envelope(method=self.method, params=self.params)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JSONRPCNotification":
        return cls(method=data["method"], params=_params(data))

    def __str__(self) -> str:
        return f"Notification({self.method})"


@dataclass
class JSONRPCResponse:
    """
    The answer to a request: a result, or an error, never both.

    A ``null`` result is still a result, so ``error`` alone decides
    which kind of answer this is.
    """

    id: int | str | None
    result: Any = None
    error: RpcError | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return {"jsonrpc": JSONRPC_VERSION, "id": self.id, "error": self.error.to_dict()}
        return {"jsonrpc": JSONRPC_VERSION, "id": self.id, "result": self.result}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JSONRPCResponse":
        """Parse a response, accepting malformed error members."""
        error = data.get("error")
        return cls(
            id=data.get("id"),
            result=data.get("result"),
            error=RpcError.from_dict(error) if error is not None else None,
        )

    @classmethod
    def success(cls, id: int | str | None, result: Any = None) -> "JSONRPCResponse":
        return cls(id=id, result=result)

    @classmethod
    def failure(cls, id: int | str | None, error: RpcError) -> "JSONRPCResponse":
        return cls(id=id, error=error)

    def __str__(self) -> str:
        if self.error is not None:
            return f"Response(id={self.id}, error={self.error.code})"
        return f"Response(id={self.id}, success)"


def message_kind(data: dict[str, Any]) -> str | None:
    """
    Classify an inbound message.

    Returns:
        REQUEST, RESPONSE, NOTIFICATION, or None if the shape fits none.
    """
    has_method = isinstance(data.get("method"), str)
    if "id" in data:
        if has_method:
            return REQUEST
        if "method" not in data and ("result" in data or "error" in data):
            return RESPONSE
        return None
    return NOTIFICATION if has_method else None
