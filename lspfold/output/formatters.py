import json
from typing import Any

from ..lsp.types import FoldingRange, FoldingRangeList, LSPModel


def format_output(data: Any, output_format: str = "plain") -> str:
    if output_format == "json":
        if isinstance(data, LSPModel):
            data = data.to_wire()
        return json.dumps(data, indent=2)
    return format_plain(data)


def format_plain(data: Any) -> str:
    if data is None:
        return "No folding ranges"

    if isinstance(data, str):
        return data

    if isinstance(data, FoldingRangeList):
        if not data.ranges:
            return "No folding ranges"
        return "\n".join(format_range(r) for r in data.ranges)

    if isinstance(data, LSPModel):
        data = data.to_wire()

    if isinstance(data, dict):
        if "error" in data:
            return f"Error: {data['error']}"
        return json.dumps(data, indent=2)

    return str(data)


def format_range(folding_range: FoldingRange) -> str:
    start = str(folding_range.start_line)
    if folding_range.start_character is not None:
        start += f":{folding_range.start_character}"

    end = str(folding_range.end_line)
    if folding_range.end_character is not None:
        end += f":{folding_range.end_character}"

    kind = folding_range.kind
    if kind is None:
        return f"{start}-{end}"
    label = kind.value if folding_range.is_known_kind else f"{kind} (custom)"
    return f"{start}-{end} {label}"
