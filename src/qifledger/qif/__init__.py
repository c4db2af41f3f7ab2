"""QIF parsing: text to line groups to typed entries to classified buckets."""

from qifledger.qif.builder import ParserState, build_entries
from qifledger.qif.classifier import ParsedQif, classify
from qifledger.qif.entries import QifContext
from qifledger.qif.grouper import group_lines, group_lines_with_numbers


def parse(text: str) -> ParsedQif:
    """Parse QIF text into classified, validated entries.

    Raises:
        ParseError: On unknown contexts or malformed records
        ValidationError: On transactions lacking accounts or securities
    """
    entries, _ = build_entries(group_lines_with_numbers(text))
    return classify(entries)


__all__ = [
    "ParsedQif",
    "ParserState",
    "QifContext",
    "build_entries",
    "classify",
    "group_lines",
    "group_lines_with_numbers",
    "parse",
]
