import logging
from typing import Any, Literal

from .protocol import LSPMethodNotSupported, MalformedRangeError
from .requests import FOLDING_RANGES_METHOD
from .types import (
    ClientCapabilities,
    FoldingProviderClientCapabilities,
    FoldingProviderRegistrationOptions,
    FoldingRangeResponse,
    RegistrationParams,
    ServerCapabilities,
    TextDocumentClientCapabilities,
)

logger = logging.getLogger(__name__)

OffsetPolicy = Literal["strip", "reject"]


def get_client_capabilities(config: dict[str, Any] | None = None) -> dict[str, Any]:
    folding = (config or {}).get("folding", {})
    capabilities = ClientCapabilities(
        text_document=TextDocumentClientCapabilities(
            folding_provider=FoldingProviderClientCapabilities(
                dynamic_registration=folding.get("dynamic_registration"),
                maximum_number_of_ranges=folding.get("maximum_number_of_ranges"),
                complete_line_folding_only=folding.get("complete_line_folding_only"),
            )
        )
    )
    return capabilities.to_wire()


def folding_client_capabilities(
    capabilities: ClientCapabilities | dict[str, Any] | None,
) -> FoldingProviderClientCapabilities:
    if capabilities is None:
        return FoldingProviderClientCapabilities()
    if isinstance(capabilities, dict):
        capabilities = ClientCapabilities.model_validate(capabilities)

    text_document = capabilities.text_document
    if text_document is None or text_document.folding_provider is None:
        return FoldingProviderClientCapabilities()
    return text_document.folding_provider


def _as_server_capabilities(capabilities: ServerCapabilities | dict[str, Any] | None) -> ServerCapabilities:
    if capabilities is None:
        return ServerCapabilities()
    if isinstance(capabilities, dict):
        return ServerCapabilities.model_validate(capabilities)
    return capabilities


def server_supports_folding(capabilities: ServerCapabilities | dict[str, Any] | None) -> bool:
    provider = _as_server_capabilities(capabilities).folding_provider
    return provider is not None and provider is not False


def ensure_folding_supported(
    capabilities: ServerCapabilities | dict[str, Any] | None, server_name: str = "server"
) -> None:
    if not server_supports_folding(capabilities):
        raise LSPMethodNotSupported(FOLDING_RANGES_METHOD, server_name)


def find_folding_registration(
    params: RegistrationParams | dict[str, Any],
) -> FoldingProviderRegistrationOptions | None:
    """Pick the folding-range registration out of a client/registerCapability payload."""
    if isinstance(params, dict):
        params = RegistrationParams.model_validate(params)

    for registration in params.registrations:
        if registration.method != FOLDING_RANGES_METHOD:
            continue
        options = registration.register_options or {}
        if isinstance(options, dict):
            options = {"documentSelector": None, **options}
        logger.debug(f"Found dynamic registration {registration.id} for {FOLDING_RANGES_METHOD}")
        return FoldingProviderRegistrationOptions.model_validate(options).model_copy(
            update={"id": registration.id}
        )
    return None


def apply_client_capabilities(
    result: FoldingRangeResponse,
    capabilities: FoldingProviderClientCapabilities,
    on_character_offsets: OffsetPolicy = "strip",
    truncate: bool = False,
) -> FoldingRangeResponse:
    """Post-process a folding-range result for a client's declared capabilities.

    With ``completeLineFoldingOnly`` set, character offsets are either
    stripped from every range or, under the ``"reject"`` policy, cause a
    ``MalformedRangeError``. ``maximumNumberOfRanges`` is only a hint, so
    exceeding it is logged and the result is cut down only when
    ``truncate`` is set. A ``None`` result passes through unchanged.
    """
    if result is None:
        return None

    ranges = list(result.ranges)

    if capabilities.complete_line_folding_only:
        offending = [r for r in ranges if r.has_character_offsets]
        if offending:
            if on_character_offsets == "reject":
                first = offending[0]
                raise MalformedRangeError(
                    f"{len(offending)} folding range(s) carry character offsets "
                    "but the client only folds complete lines",
                    first.start_line,
                    first.end_line,
                    first,
                )
            logger.warning(f"Stripping character offsets from {len(offending)} folding range(s)")
            ranges = [r.without_character_offsets() for r in ranges]

    limit = capabilities.maximum_number_of_ranges
    if limit is not None and len(ranges) > limit:
        if truncate:
            logger.warning(f"Truncating {len(ranges)} folding ranges to {limit}")
            ranges = ranges[:limit]
        else:
            logger.debug(f"Result has {len(ranges)} folding ranges, above the hint of {limit}")

    return result.model_copy(update={"ranges": ranges})
