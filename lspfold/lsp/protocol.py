from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .types import FoldingRange


class ErrorCodes(IntEnum):
    ParseError = -32700
    InvalidRequest = -32600
    MethodNotFound = -32601
    InvalidParams = -32602
    InternalError = -32603


@dataclass
class JsonRpcRequest:
    method: str
    params: dict[str, Any] | list[Any] | None
    id: int | str | None = None

    @property
    def is_notification(self) -> bool:
        return self.id is None

    def to_dict(self) -> dict[str, Any]:
        message: dict[str, Any] = {"jsonrpc": "2.0", "method": self.method}
        if self.id is not None:
            message["id"] = self.id
        if self.params is not None:
            message["params"] = self.params
        return message


@dataclass
class JsonRpcResponse:
    id: int | str | None
    result: Any = None
    error: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        message: dict[str, Any] = {"jsonrpc": "2.0", "id": self.id}
        if self.error is not None:
            message["error"] = self.error
        else:
            message["result"] = self.result
        return message


class LSPProtocolError(Exception):
    pass


class LSPResponseError(Exception):
    code: int
    message: str
    data: object | None

    def __init__(self, code: int, message: str, data: object | None = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"LSP Error {code}: {message}")

    def is_method_not_found(self) -> bool:
        return self.code == ErrorCodes.MethodNotFound

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": int(self.code), "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error

    @classmethod
    def from_dict(cls, error: dict[str, Any]) -> LSPResponseError:
        return cls(error.get("code", -1), error.get("message", "Unknown error"), error.get("data"))


class LSPMethodNotSupported(Exception):
    method: str
    server_name: str

    def __init__(self, method: str, server_name: str):
        self.method = method
        self.server_name = server_name
        super().__init__(f"{method} is not supported by {server_name}")


class MalformedRangeError(Exception):
    """A folding range that breaks the range contract.

    Must not derive from ValueError, otherwise pydantic folds it into a
    ValidationError instead of re-raising it from model validation.
    """

    start_line: int
    end_line: int
    range: FoldingRange | None

    def __init__(self, message: str, start_line: int, end_line: int, range: FoldingRange | None = None):
        self.start_line = start_line
        self.end_line = end_line
        self.range = range
        super().__init__(message)


def parse_message(obj: Any) -> JsonRpcRequest:
    if not isinstance(obj, dict):
        raise LSPProtocolError(f"Expected a JSON object, got {type(obj).__name__}")

    method = obj.get("method")
    if not isinstance(method, str):
        raise LSPProtocolError("Missing or invalid 'method' member")

    params = obj.get("params")
    if params is not None and not isinstance(params, (dict, list)):
        raise LSPProtocolError("'params' must be an object or an array")

    return JsonRpcRequest(method=method, params=params, id=obj.get("id"))
