"""Rendering of entries back to catalog text."""
from typing import IO, Iterable

from poflow.catalog.line_kind import LineKind, carriage_return, replace_region
from poflow.catalog.quoting import render_string
from poflow.domain.entry import MsgEntry


def format_entry(entry: MsgEntry) -> str:
    """Return the catalog text of an entry, ending with a blank separator line.

    Parsed entries are rendered from their raw lines, with only the msgstr
    region re-rendered from the current msgstr; the region is copied as is when
    its value did not change. Synthesized entries are rebuilt from their fields.
    The blank separator follows the line ending of a parsed entry.
    """
    ending = ""
    if entry.raw_lines:
        lines = entry.detached_lines + replace_region(
            entry.raw_lines, LineKind.MSGSTR, entry.msgstr
        )
        ending = carriage_return(entry.raw_lines)
    else:
        lines = [f"# {comment}" for comment in entry.comments]
        lines += [f"#: {reference}" for reference in entry.references]
        lines += render_string("msgid", entry.msgid)
        lines += render_string("msgstr", entry.msgstr)

    return "".join(f"{line}\n" for line in lines) + f"{ending}\n"


def write_lines(stream: IO[str], lines: Iterable[str]) -> None:
    """Write verbatim catalog lines, one per line."""
    for line in lines:
        stream.write(f"{line}\n")


def write_catalog(
    stream: IO[str],
    header: Iterable[str],
    entries: Iterable[MsgEntry],
    trailer: Iterable[str] = (),
) -> None:
    """Write a whole catalog: header lines, entries, then trailing lines."""
    write_lines(stream, header)
    for entry in entries:
        stream.write(format_entry(entry))
    write_lines(stream, trailer)
