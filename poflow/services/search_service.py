"""Service for searching catalog entries.

Both functions are lazy: entries are pulled from the parser only until the
limit is reached.
"""
import enum
import itertools
import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from poflow.domain.entry import MsgEntry
from poflow.exceptions import InvalidPatternError


class SearchField(enum.StrEnum):
    """The entry field a search looks at."""

    MSGID = "msgid"
    MSGSTR = "msgstr"


@dataclass
class EntryFilter:
    """Filter criteria for entries.

    A plain pattern is a case-insensitive substring; with ``use_regex`` it is a
    regular expression searched anywhere in the field.
    """

    pattern: str
    search_field: SearchField = SearchField.MSGID
    use_regex: bool = False
    _regex: re.Pattern[str] | None = field(init=False, default=None, repr=False)

    def __post_init__(self) -> None:
        if self.use_regex:
            try:
                self._regex = re.compile(self.pattern)
            except re.error as e:
                raise InvalidPatternError(self.pattern, str(e)) from e

    def matches(self, entry: MsgEntry) -> bool:
        """Check if an entry matches this filter."""
        value = entry.msgid if self.search_field == SearchField.MSGID else entry.msgstr
        if self._regex is not None:
            return self._regex.search(value) is not None
        return self.pattern.lower() in value.lower()


def _limited(entries: Iterable[MsgEntry], limit: int) -> Iterator[MsgEntry]:
    if limit > 0:
        return itertools.islice(entries, limit)
    return iter(entries)


def search(
    entries: Iterable[MsgEntry], entry_filter: EntryFilter, limit: int = 0
) -> Iterator[MsgEntry]:
    """Yield the entries matching the filter, at most ``limit`` when positive."""
    return _limited(
        (entry for entry in entries if entry_filter.matches(entry)), limit
    )


def list_untranslated(entries: Iterable[MsgEntry], limit: int = 0) -> Iterator[MsgEntry]:
    """Yield the entries with an empty msgstr, at most ``limit`` when positive."""
    return _limited((entry for entry in entries if entry.is_empty()), limit)
