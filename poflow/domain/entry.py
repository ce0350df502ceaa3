"""Catalog entry module."""
from dataclasses import dataclass, field
from typing import Any

from poflow.catalog.line_kind import LineKind, classify_line, replace_region


@dataclass
class MsgEntry:
    """
    A single record of a gettext catalog.

    When the entry was parsed, ``raw_lines`` holds its verbatim lines (comments
    through the last msgstr continuation line) and is what gets written back;
    the other fields are a projection of it. Use :meth:`update_msgid` and
    :meth:`update_msgstr` to change a value so both stay consistent.
    """

    msgid: str
    msgstr: str = ""
    comments: list[str] = field(default_factory=list)
    references: list[str] = field(default_factory=list)
    raw_lines: list[str] = field(default_factory=list)
    detached_lines: list[str] = field(default_factory=list)
    """Lines preceding the entry that belong to no entry (orphan blocks)."""

    def is_empty(self) -> bool:
        """Return True if the entry has no translation."""
        return self.msgstr == ""

    def is_plural(self) -> bool:
        """Return True if the raw lines hold a ``msgid_plural`` keyword."""
        for line in self.raw_lines:
            kind, payload = classify_line(line)
            if kind == LineKind.OTHER and payload.startswith("msgid_plural"):
                return True
        return False

    def update_msgid(self, msgid: str) -> None:
        """Set the msgid and patch only the msgid region of the raw lines."""
        self.msgid = msgid
        if self.raw_lines:
            self.raw_lines = replace_region(self.raw_lines, LineKind.MSGID, msgid)

    def update_msgstr(self, msgstr: str) -> None:
        """Set the msgstr and patch only the msgstr region of the raw lines."""
        self.msgstr = msgstr
        if self.raw_lines:
            self.raw_lines = replace_region(self.raw_lines, LineKind.MSGSTR, msgstr)

    def to_json_dict(self) -> dict[str, Any]:
        """Return the JSON projection of the entry, without raw formatting."""
        data: dict[str, Any] = {"msgid": self.msgid, "msgstr": self.msgstr}
        if self.comments:
            data["comments"] = list(self.comments)
        if self.references:
            data["references"] = list(self.references)
        return data
