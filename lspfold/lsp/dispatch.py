import logging
from typing import Any, Awaitable, Callable

from pydantic import ValidationError

from .protocol import (
    ErrorCodes,
    JsonRpcResponse,
    LSPMethodNotSupported,
    LSPProtocolError,
    LSPResponseError,
    MalformedRangeError,
    parse_message,
)
from .requests import FOLDING_RANGES_METHOD, RequestType
from .types import FoldingProviderOptions, FoldingProviderRegistrationOptions, ServerCapabilities

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[Any]]


class RequestDispatcher:
    """Routes decoded JSON-RPC requests to handlers keyed by request descriptor."""

    def __init__(self):
        self._routes: dict[str, tuple[RequestType, Handler]] = {}

    def register(self, request_type: RequestType, handler: Handler) -> None:
        if request_type.method in self._routes:
            raise ValueError(f"Handler already registered for {request_type.method}")
        self._routes[request_type.method] = (request_type, handler)

    def route(self, request_type: RequestType) -> Callable[[Handler], Handler]:
        def decorator(handler: Handler) -> Handler:
            self.register(request_type, handler)
            return handler
        return decorator

    def supports(self, method: str) -> bool:
        return method in self._routes

    def server_capabilities(
        self, registration: FoldingProviderRegistrationOptions | None = None
    ) -> ServerCapabilities:
        if not self.supports(FOLDING_RANGES_METHOD):
            return ServerCapabilities()
        return ServerCapabilities(folding_provider=registration or FoldingProviderOptions())

    async def dispatch(self, message: Any) -> dict[str, Any] | None:
        try:
            request = parse_message(message)
        except LSPProtocolError as e:
            request_id = message.get("id") if isinstance(message, dict) else None
            return self._error(request_id, ErrorCodes.InvalidRequest, str(e))

        logger.debug(f"Dispatching {request.method} (id={request.id})")

        try:
            result = await self._call(request.method, request.params)
        except LSPResponseError as e:
            if request.is_notification:
                logger.warning(f"Notification {request.method} failed: {e}")
                return None
            return JsonRpcResponse(id=request.id, error=e.to_dict()).to_dict()

        if request.is_notification:
            return None
        return JsonRpcResponse(id=request.id, result=result).to_dict()

    async def _call(self, method: str, params: Any) -> Any:
        route = self._routes.get(method)
        if route is None:
            raise LSPResponseError(ErrorCodes.MethodNotFound, f"Method not found: {method}")
        request_type, handler = route

        try:
            decoded = request_type.decode_params(params)
        except (ValidationError, MalformedRangeError) as e:
            raise LSPResponseError(ErrorCodes.InvalidParams, f"Invalid params for {method}: {e}")

        try:
            result = await handler(decoded)
            return request_type.encode_result(result)
        except LSPResponseError:
            raise
        except LSPMethodNotSupported as e:
            raise LSPResponseError(ErrorCodes.MethodNotFound, str(e))
        except MalformedRangeError as e:
            logger.error(f"Handler for {method} produced a malformed range: {e}")
            raise LSPResponseError(ErrorCodes.InternalError, str(e))
        except Exception as e:
            logger.exception(f"Error in handler {method}")
            raise LSPResponseError(ErrorCodes.InternalError, str(e))

    @staticmethod
    def _error(request_id: int | str | None, code: int, message: str) -> dict[str, Any]:
        return JsonRpcResponse(id=request_id, error=LSPResponseError(code, message).to_dict()).to_dict()
