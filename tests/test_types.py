import pytest
from pydantic import ValidationError

from lspfold.lsp.protocol import MalformedRangeError
from lspfold.lsp.types import (
    ClientCapabilities,
    DocumentFilter,
    FoldingProviderOptions,
    FoldingProviderRegistrationOptions,
    FoldingRange,
    FoldingRangeKind,
    FoldingRangeList,
    FoldingRangeRequestParams,
    ServerCapabilities,
)


class TestFoldingRange:
    def test_minimal_range(self):
        r = FoldingRange.model_validate({"startLine": 1, "endLine": 3})
        assert r.start_line == 1
        assert r.end_line == 3
        assert r.start_character is None
        assert r.end_character is None
        assert r.kind is None

    def test_construct_by_field_name(self):
        r = FoldingRange(start_line=2, end_line=2, kind=FoldingRangeKind.Comment)
        assert r.to_wire() == {"startLine": 2, "endLine": 2, "type": "comment"}

    @pytest.mark.parametrize(
        "start,end",
        [(0, 0), (0, 1), (5, 5), (3, 100), (0, 2**31)],
    )
    def test_ordered_lines_accepted(self, start, end):
        r = FoldingRange(start_line=start, end_line=end)
        assert r.start_line <= r.end_line

    @pytest.mark.parametrize(
        "start,end",
        [(1, 0), (10, 9), (100, 3), (2**31, 0)],
    )
    def test_start_after_end_is_malformed(self, start, end):
        with pytest.raises(MalformedRangeError) as exc_info:
            FoldingRange(start_line=start, end_line=end)
        assert exc_info.value.start_line == start
        assert exc_info.value.end_line == end

    def test_malformed_from_wire(self):
        with pytest.raises(MalformedRangeError):
            FoldingRange.model_validate({"startLine": 7, "endLine": 2})

    @pytest.mark.parametrize(
        "payload",
        [
            {"startLine": -1, "endLine": 2},
            {"startLine": 0, "endLine": -2},
            {"startLine": 0, "endLine": 2, "startCharacter": -1},
            {"startLine": 0, "endLine": 2, "endCharacter": -5},
        ],
    )
    def test_negative_values_rejected(self, payload):
        with pytest.raises(ValidationError):
            FoldingRange.model_validate(payload)

    def test_missing_required_lines(self):
        with pytest.raises(ValidationError):
            FoldingRange.model_validate({"startLine": 0})

    def test_known_kinds_decode_to_enum(self):
        for kind in FoldingRangeKind:
            r = FoldingRange.model_validate({"startLine": 0, "endLine": 1, "type": kind.value})
            assert r.kind is kind
            assert r.is_known_kind

    def test_unknown_kind_kept_verbatim(self):
        r = FoldingRange.model_validate({"startLine": 0, "endLine": 1, "type": "customKind"})
        assert r.kind == "customKind"
        assert not r.is_known_kind
        assert r.to_wire()["type"] == "customKind"

    def test_kind_is_case_sensitive(self):
        r = FoldingRange.model_validate({"startLine": 0, "endLine": 1, "type": "Comment"})
        assert r.kind == "Comment"
        assert not r.is_known_kind

    def test_absent_kind_not_encoded(self):
        r = FoldingRange(start_line=0, end_line=1)
        assert "type" not in r.to_wire()

    def test_without_character_offsets(self):
        r = FoldingRange(start_line=0, start_character=4, end_line=3, end_character=1, kind="region")
        stripped = r.without_character_offsets()
        assert stripped.to_wire() == {"startLine": 0, "endLine": 3, "type": "region"}
        assert r.start_character == 4

    def test_without_character_offsets_noop(self):
        r = FoldingRange(start_line=0, end_line=3)
        assert r.without_character_offsets() is r

    def test_frozen(self):
        r = FoldingRange(start_line=0, end_line=3)
        with pytest.raises(ValidationError):
            r.start_line = 5


class TestFoldingRangeList:
    def test_round_trip_preserves_optionals(self):
        wire = {
            "ranges": [
                {"startLine": 0, "endLine": 5, "type": "imports"},
                {"startLine": 2, "startCharacter": 4, "endLine": 9},
                {"startLine": 3, "endLine": 4, "endCharacter": 0, "type": "customKind"},
            ]
        }
        decoded = FoldingRangeList.model_validate(wire)
        assert decoded.to_wire() == wire
        assert FoldingRangeList.model_validate(decoded.to_wire()) == decoded

    def test_overlapping_and_duplicate_ranges_allowed(self):
        wire = {
            "ranges": [
                {"startLine": 0, "endLine": 10},
                {"startLine": 0, "endLine": 10},
                {"startLine": 5, "endLine": 15},
            ]
        }
        decoded = FoldingRangeList.model_validate(wire)
        assert [r.start_line for r in decoded.ranges] == [0, 0, 5]

    def test_empty_list(self):
        assert FoldingRangeList(ranges=[]).to_wire() == {"ranges": []}

    def test_one_bad_range_fails_the_list(self):
        with pytest.raises(MalformedRangeError):
            FoldingRangeList.model_validate({"ranges": [{"startLine": 0, "endLine": 1}, {"startLine": 4, "endLine": 3}]})


class TestRequestParams:
    def test_wire_shape(self):
        params = FoldingRangeRequestParams.model_validate({"textDocument": {"uri": "file:///a.ts"}})
        assert params.text_document.uri == "file:///a.ts"
        assert params.to_wire() == {"textDocument": {"uri": "file:///a.ts"}}

    def test_missing_document(self):
        with pytest.raises(ValidationError):
            FoldingRangeRequestParams.model_validate({})


class TestClientCapabilities:
    def test_all_fields_optional(self):
        caps = ClientCapabilities.model_validate({"textDocument": {"foldingProvider": {}}})
        folding = caps.text_document.folding_provider
        assert folding.dynamic_registration is None
        assert folding.maximum_number_of_ranges is None
        assert folding.complete_line_folding_only is None

    def test_full_block(self):
        wire = {
            "textDocument": {
                "foldingProvider": {
                    "dynamicRegistration": True,
                    "maximumNumberOfRanges": 100,
                    "completeLineFoldingOnly": True,
                }
            }
        }
        caps = ClientCapabilities.model_validate(wire)
        assert caps.text_document.folding_provider.maximum_number_of_ranges == 100
        assert caps.to_wire() == wire

    def test_negative_maximum_rejected(self):
        with pytest.raises(ValidationError):
            ClientCapabilities.model_validate({"textDocument": {"foldingProvider": {"maximumNumberOfRanges": -1}}})

    def test_other_capabilities_kept(self):
        caps = ClientCapabilities.model_validate({"workspace": {"workspaceFolders": True}})
        assert caps.text_document is None
        assert caps.to_wire() == {"workspace": {"workspaceFolders": True}}


class TestServerCapabilities:
    def test_absent(self):
        assert ServerCapabilities.model_validate({}).folding_provider is None

    def test_boolean(self):
        assert ServerCapabilities.model_validate({"foldingProvider": True}).folding_provider is True

    def test_empty_marker(self):
        caps = ServerCapabilities.model_validate({"foldingProvider": {}})
        assert type(caps.folding_provider) is FoldingProviderOptions

    def test_registration_options(self):
        caps = ServerCapabilities.model_validate(
            {
                "foldingProvider": {
                    "documentSelector": [{"language": "typescript"}],
                    "id": "folding-1",
                }
            }
        )
        provider = caps.folding_provider
        assert isinstance(provider, FoldingProviderRegistrationOptions)
        assert provider.id == "folding-1"
        assert provider.document_selector == [DocumentFilter(language="typescript")]

    def test_registration_with_null_selector_round_trip(self):
        caps = ServerCapabilities(
            folding_provider=FoldingProviderRegistrationOptions(document_selector=None, id="fold")
        )
        wire = caps.to_wire()
        assert wire == {"foldingProvider": {"documentSelector": None, "id": "fold"}}

        decoded = ServerCapabilities.model_validate(wire)
        assert isinstance(decoded.folding_provider, FoldingProviderRegistrationOptions)
        assert decoded.folding_provider.id == "fold"
        assert decoded.folding_provider.document_selector is None
        assert decoded.to_wire() == wire

    def test_registration_null_selector_by_field_name(self):
        options = FoldingProviderRegistrationOptions(document_selector=None)
        assert options.model_dump() == {"document_selector": None, "id": None}

    def test_unrelated_capabilities_kept(self):
        caps = ServerCapabilities.model_validate({"hoverProvider": True})
        assert caps.folding_provider is None
        assert caps.to_wire() == {"hoverProvider": True}


class TestDocumentFilter:
    def test_language(self):
        f = DocumentFilter(language="python")
        assert f.matches("file:///a.py", "python")
        assert not f.matches("file:///a.py", "rust")

    def test_scheme(self):
        f = DocumentFilter(scheme="file")
        assert f.matches("file:///a.py")
        assert not f.matches("untitled:Untitled-1")

    def test_pattern(self):
        f = DocumentFilter(pattern="**/*.ts")
        assert f.matches("file:///src/a.ts")
        assert not f.matches("file:///src/a.py")

    def test_registration_without_selector_matches_everything(self):
        options = FoldingProviderRegistrationOptions(document_selector=None)
        assert options.matches("file:///anything.txt")

    def test_pattern_matches_percent_encoded_path(self):
        f = DocumentFilter(pattern="**/my file.ts")
        assert f.matches("file:///home/u/my%20file.ts")

    def test_pattern_matches_non_ascii_path(self):
        f = DocumentFilter(pattern="**/café/*.py")
        assert f.matches("file:///src/caf%C3%A9/main.py")

    def test_double_star_matches_zero_directories(self):
        f = DocumentFilter(pattern="**/*.ts")
        assert f.matches("file:///a.ts")
        assert not f.matches("file:///a.tsx")
