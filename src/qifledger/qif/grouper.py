"""Split QIF text into line groups.

A line group is either a directive string (``!Type:...``, ``!Option:...``,
``!Clear:...``) or the list of lines of one ``^``-terminated record. Lines after
the final ``^`` that never get terminated are dropped.
"""

from typing import Union

LineGroup = Union[str, list[str]]

DIRECTIVE_PREFIXES = ("!Type", "!Option", "!Clear")
RECORD_TERMINATOR = "^"


def is_directive(line: str) -> bool:
    return line.startswith(DIRECTIVE_PREFIXES)


def group_lines_with_numbers(text: str) -> list[tuple[int, LineGroup]]:
    """Group QIF text, pairing each group with the 1-based line it starts on."""
    groups: list[tuple[int, LineGroup]] = []
    open_record: list[str] = []
    open_start = 1

    for line_number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if is_directive(line):
            groups.append((line_number, line))
            if not open_record:
                open_start = line_number + 1
            continue
        if line == RECORD_TERMINATOR:
            groups.append((open_start, open_record))
            open_record = []
            open_start = line_number + 1
            continue
        if not open_record:
            open_start = line_number
        open_record.append(line)

    return groups


def group_lines(text: str) -> list[LineGroup]:
    """Group QIF text into directives and records, preserving file order."""
    return [group for _, group in group_lines_with_numbers(text)]
