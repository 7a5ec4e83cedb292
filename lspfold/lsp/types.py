import fnmatch
from enum import Enum
from typing import Any
from urllib.parse import unquote, urlparse

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializationInfo,
    SerializerFunctionWrapHandler,
    model_serializer,
    model_validator,
)

from .protocol import MalformedRangeError


class LSPModel(BaseModel):
    """Base model with camelCase serialization aliases."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TextDocumentIdentifier(LSPModel):
    uri: str


class DocumentFilter(LSPModel):
    language: str | None = None
    scheme: str | None = None
    pattern: str | None = None

    def matches(self, uri: str, language_id: str | None = None) -> bool:
        if self.language is not None and self.language != language_id:
            return False
        if self.scheme is not None and not uri.startswith(f"{self.scheme}:"):
            return False
        if self.pattern is not None and not self._matches_pattern(unquote(urlparse(uri).path).lstrip("/")):
            return False
        return True

    def _matches_pattern(self, path: str) -> bool:
        pattern = self.pattern.lstrip("/")
        candidates = [pattern]
        # A leading "**/" also matches zero directories.
        if pattern.startswith("**/"):
            candidates.append(pattern[3:])
        return any(fnmatch.fnmatchcase(path, p) for p in candidates)


# =============================================================================
# Folding ranges
# =============================================================================


class FoldingRangeKind(str, Enum):
    Comment = "comment"
    Imports = "imports"
    Region = "region"


class FoldingRange(LSPModel):
    """A collapsible line span.

    Character offsets are optional; an absent offset means the fold extends
    to the end of that line's content, which the editor resolves from the
    live document. Unknown ``type`` values are preserved as plain strings.
    """
    start_line: int = Field(ge=0, validation_alias="startLine", serialization_alias="startLine")
    start_character: int | None = Field(
        default=None, ge=0, validation_alias="startCharacter", serialization_alias="startCharacter"
    )
    end_line: int = Field(ge=0, validation_alias="endLine", serialization_alias="endLine")
    end_character: int | None = Field(
        default=None, ge=0, validation_alias="endCharacter", serialization_alias="endCharacter"
    )
    kind: FoldingRangeKind | str | None = Field(
        default=None, union_mode="left_to_right", validation_alias="type", serialization_alias="type"
    )

    @model_validator(mode="after")
    def check_line_order(self) -> "FoldingRange":
        if self.start_line > self.end_line:
            raise MalformedRangeError(
                f"Folding range starts after it ends: startLine={self.start_line} > endLine={self.end_line}",
                self.start_line,
                self.end_line,
                self,
            )
        return self

    @property
    def is_known_kind(self) -> bool:
        return isinstance(self.kind, FoldingRangeKind)

    @property
    def has_character_offsets(self) -> bool:
        return self.start_character is not None or self.end_character is not None

    def without_character_offsets(self) -> "FoldingRange":
        if not self.has_character_offsets:
            return self
        return self.model_copy(update={"start_character": None, "end_character": None})


class FoldingRangeList(LSPModel):
    ranges: list[FoldingRange]


class FoldingRangeRequestParams(LSPModel):
    text_document: TextDocumentIdentifier = Field(validation_alias="textDocument", serialization_alias="textDocument")


# =============================================================================
# Capabilities
# =============================================================================


class FoldingProviderClientCapabilities(LSPModel):
    dynamic_registration: bool | None = Field(
        default=None, validation_alias="dynamicRegistration", serialization_alias="dynamicRegistration"
    )
    # A hint for the server, never a hard cap.
    maximum_number_of_ranges: int | None = Field(
        default=None, ge=0, validation_alias="maximumNumberOfRanges", serialization_alias="maximumNumberOfRanges"
    )
    complete_line_folding_only: bool | None = Field(
        default=None, validation_alias="completeLineFoldingOnly", serialization_alias="completeLineFoldingOnly"
    )


class TextDocumentClientCapabilities(LSPModel, extra="allow"):
    folding_provider: FoldingProviderClientCapabilities | None = Field(
        default=None, validation_alias="foldingProvider", serialization_alias="foldingProvider"
    )


class ClientCapabilities(LSPModel, extra="allow"):
    text_document: TextDocumentClientCapabilities | None = Field(
        default=None, validation_alias="textDocument", serialization_alias="textDocument"
    )


class FoldingProviderOptions(LSPModel):
    pass


class FoldingProviderRegistrationOptions(FoldingProviderOptions):
    # documentSelector is a required key on the wire, but may be null.
    document_selector: list[DocumentFilter] | None = Field(
        validation_alias="documentSelector", serialization_alias="documentSelector"
    )
    id: str | None = None

    @model_serializer(mode="wrap")
    def keep_document_selector(self, handler: SerializerFunctionWrapHandler, info: SerializationInfo) -> dict[str, Any]:
        data = handler(self)
        data.setdefault("documentSelector" if info.by_alias else "document_selector", None)
        return data

    def matches(self, uri: str, language_id: str | None = None) -> bool:
        if self.document_selector is None:
            return True
        return any(f.matches(uri, language_id) for f in self.document_selector)


class ServerCapabilities(LSPModel, extra="allow"):
    folding_provider: bool | FoldingProviderRegistrationOptions | FoldingProviderOptions | None = Field(
        default=None, union_mode="left_to_right", validation_alias="foldingProvider", serialization_alias="foldingProvider"
    )


class Registration(LSPModel):
    id: str
    method: str
    register_options: Any | None = Field(
        default=None, validation_alias="registerOptions", serialization_alias="registerOptions"
    )


class RegistrationParams(LSPModel):
    registrations: list[Registration]


# =============================================================================
# LSP Response Type Aliases
# =============================================================================

FoldingRangeResponse = FoldingRangeList | None
