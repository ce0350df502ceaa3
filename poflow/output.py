"""Console rendering of entries."""
import json

from poflow.catalog.quoting import render_string
from poflow.domain.entry import MsgEntry


def entry_to_json(entry: MsgEntry) -> str:
    """Return the entry as one compact JSON object (no trailing newline)."""
    return json.dumps(entry.to_json_dict(), ensure_ascii=False, separators=(",", ":"))


def format_entry_summary(entry: MsgEntry, with_comments: bool = False) -> str:
    """Return a short listing of the entry: references, msgid and msgstr.

    Unlike :func:`poflow.catalog.formatter.format_entry` the listing is built
    from the fields only, flags and raw wrapping are not shown.
    """
    lines = [f"# {comment}" for comment in entry.comments] if with_comments else []
    lines += [f"#: {reference}" for reference in entry.references]
    lines += render_string("msgid", entry.msgid)
    lines += render_string("msgstr", entry.msgstr)
    return "".join(f"{line}\n" for line in lines) + "\n"
