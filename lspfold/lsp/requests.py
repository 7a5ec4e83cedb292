"""Typed request descriptors for the folding-range extension."""

from dataclasses import dataclass, field
from typing import Any, Generic, Iterable, TypeVar

from pydantic import TypeAdapter

from .protocol import JsonRpcRequest, LSPProtocolError, LSPResponseError
from .types import (
    FoldingRange,
    FoldingRangeList,
    FoldingRangeRequestParams,
    FoldingRangeResponse,
    LSPModel,
)

P = TypeVar("P", bound=LSPModel)
R = TypeVar("R")


@dataclass(frozen=True)
class RequestType(Generic[P, R]):
    """Binds a wire method name to its params and result types.

    Errors are untyped: a failed request surfaces as ``LSPResponseError``
    whatever the method.
    """
    method: str
    params_type: type[P]
    result_type: Any
    _result_adapter: TypeAdapter = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_result_adapter", TypeAdapter(self.result_type))

    def encode_params(self, params: P) -> dict[str, Any]:
        return params.to_wire()

    def decode_params(self, raw: Any) -> P:
        return self.params_type.model_validate(raw)

    def encode_result(self, result: R) -> Any:
        return self._result_adapter.dump_python(result, mode="json", by_alias=True, exclude_none=True)

    def decode_result(self, raw: Any) -> R:
        return self._result_adapter.validate_python(raw)


FOLDING_RANGES_METHOD = "textDocument/foldingRanges"

FOLDING_RANGES_REQUEST: RequestType[FoldingRangeRequestParams, FoldingRangeResponse] = RequestType(
    FOLDING_RANGES_METHOD, FoldingRangeRequestParams, FoldingRangeResponse
)


def make_request(request_type: RequestType[P, R], params: P, request_id: int | str) -> dict[str, Any]:
    return JsonRpcRequest(
        method=request_type.method,
        params=request_type.encode_params(params),
        id=request_id,
    ).to_dict()


def decode_response(request_type: RequestType[P, R], message: dict[str, Any]) -> R:
    if not isinstance(message, dict) or "id" not in message:
        raise LSPProtocolError(f"Not a JSON-RPC response for {request_type.method}")

    error = message.get("error")
    if error is not None:
        if not isinstance(error, dict):
            raise LSPProtocolError(f"Malformed error member in {request_type.method} response: {error!r}")
        raise LSPResponseError.from_dict(error)

    return request_type.decode_result(message.get("result"))


def folding_range_result(ranges: Iterable[FoldingRange]) -> FoldingRangeResponse:
    """Wrap computed ranges as a response; no ranges at all becomes ``None``."""
    ranges = list(ranges)
    if not ranges:
        return None
    return FoldingRangeList(ranges=ranges)
