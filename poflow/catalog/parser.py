"""Streaming parser for gettext catalogs.

Entries are pulled one at a time, so a catalog is never loaded as a whole
unless the caller keeps the entries. Every line that does not end up in an
entry (the ``msgid ""`` header block, orphan comment blocks such as obsolete
entries, extra blank lines) is kept aside so that a rewrite reproduces it.
"""
import enum
import logging
from pathlib import Path
from typing import IO, Iterable, Iterator

from poflow.catalog.line_kind import LineKind, classify_line
from poflow.catalog.quoting import unquote
from poflow.domain.entry import MsgEntry
from poflow.exceptions import CatalogReadError

logger = logging.getLogger(__name__)

_ENTRY_STARTS = (LineKind.REFERENCE, LineKind.COMMENT, LineKind.MSGID)


def _starts_entry(kind: LineKind, payload: str) -> bool:
    """Whether a line can only belong to the next entry once a msgstr is read."""
    return kind in _ENTRY_STARTS or (
        kind == LineKind.OTHER and payload.startswith("msgctxt")
    )


def open_catalog(path: Path) -> IO[str]:
    """Open a catalog for reading with its line endings left untouched."""
    return open(path, encoding="utf-8", newline="")


class _State(enum.Enum):
    NEUTRAL = enum.auto()
    IN_MSGID = enum.auto()
    IN_MSGSTR = enum.auto()


class _Block:
    """Lines and fields accumulated for the entry being read."""

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.comments: list[str] = []
        self.references: list[str] = []
        self.msgid_fragments: list[str] | None = None
        self.msgstr_fragments: list[str] | None = None
        self.state = _State.NEUTRAL

    def add(self, line: str, kind: LineKind, payload: str) -> None:
        """Record a non-blank line of the block."""
        self.lines.append(line)
        match kind:
            case LineKind.REFERENCE:
                self.references.append(payload)
            case LineKind.COMMENT:
                self.comments.append(payload)
            case LineKind.MSGID:
                self.msgid_fragments = [unquote(payload)]
                self.msgstr_fragments = None
                self.state = _State.IN_MSGID
            case LineKind.MSGSTR:
                if self.msgid_fragments is None:
                    self.msgid_fragments = []
                self.msgstr_fragments = [unquote(payload)]
                self.state = _State.IN_MSGSTR
            case LineKind.CONTINUATION:
                self._continue(unquote(payload))
            case _:
                # msgid_plural, msgctxt, ... are kept verbatim, not modelled.
                # msgstr[n] still closes the entry like a msgstr region.
                if payload.startswith("msgstr["):
                    self.state = _State.IN_MSGSTR
                else:
                    self.state = _State.NEUTRAL

    def _continue(self, fragment: str) -> None:
        if self.state is _State.IN_MSGID and self.msgid_fragments is not None:
            self.msgid_fragments.append(fragment)
        elif self.state is _State.IN_MSGSTR and self.msgstr_fragments is not None:
            self.msgstr_fragments.append(fragment)

    def to_entry(self) -> MsgEntry | None:
        """Build the entry, or return None when the block holds no msgid."""
        if self.msgid_fragments is None:
            return None
        return MsgEntry(
            msgid="".join(self.msgid_fragments),
            msgstr="".join(self.msgstr_fragments or []),
            comments=self.comments,
            references=self.references,
            raw_lines=self.lines,
        )


class CatalogParser:
    """Pull-based reader producing one :class:`MsgEntry` per call.

    A read failure puts the parser in a terminal error state: every later call
    to :meth:`next_entry` returns None and :attr:`error` holds the failure.
    """

    def __init__(self, stream: Iterable[str], path: Path | None = None) -> None:
        self._lines: Iterator[str] = iter(stream)
        self._path = path
        self._carry: str | None = None
        self._error: Exception | None = None
        self._exhausted = False
        self._pending: list[str] = []
        self._header: list[str] | None = None
        self._trailer: list[str] = []

    @property
    def path(self) -> Path | None:
        """The catalog file being read, if known."""
        return self._path

    @property
    def error(self) -> Exception | None:
        """The read failure that stopped the parser, if any."""
        return self._error

    @property
    def header(self) -> list[str]:
        """Lines preceding the first entry.

        Known once the first entry has been returned or the stream has ended.
        """
        return list(self._header or [])

    @property
    def trailer(self) -> list[str]:
        """Lines following the last entry, known once the stream has ended."""
        return list(self._trailer)

    def __iter__(self) -> Iterator[MsgEntry]:
        while (entry := self.next_entry()) is not None:
            yield entry

    def next_entry(self) -> MsgEntry | None:
        """Return the next entry, or None at the end of the stream."""
        if self._error is not None or self._exhausted:
            return None

        block = _Block()
        try:
            while (line := self._read_line()) is not None:
                kind, payload = classify_line(line)

                if kind == LineKind.BLANK:
                    if (entry := self._complete(block)) is not None:
                        return entry
                    self._pending.append(line)
                    block = _Block()
                    continue

                if block.state is _State.IN_MSGSTR and _starts_entry(kind, payload):
                    # next entry starts without a blank separator
                    self._carry = line
                    if (entry := self._complete(block)) is not None:
                        return entry
                    block = _Block()
                    continue

                block.add(line, kind, payload)
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Failed to read catalog %s: %s", self._path or "<stream>", e)
            self._error = e
            return None

        self._exhausted = True
        if (entry := self._complete(block)) is not None:
            return entry

        if self._header is None:
            self._header = self._pending
        else:
            self._trailer = self._pending
        self._pending = []
        return None

    def _read_line(self) -> str | None:
        if self._carry is not None:
            line, self._carry = self._carry, None
            return line
        if (raw_line := next(self._lines, None)) is None:
            return None
        return raw_line[:-1] if raw_line.endswith("\n") else raw_line

    def _complete(self, block: _Block) -> MsgEntry | None:
        """Return the entry of a finished block, or keep its lines aside.

        A block with an empty msgid (the catalog header) is never an entry.
        """
        entry = block.to_entry()
        if entry is None or not entry.msgid:
            self._pending.extend(block.lines)
            return None

        if self._header is None:
            self._header = self._pending
        else:
            entry.detached_lines = self._pending
        self._pending = []
        return entry


def parse_all(stream: Iterable[str], path: Path | None = None) -> list[MsgEntry]:
    """Read every entry of a catalog stream.

    Raises:
        CatalogReadError: If reading the stream failed.
    """
    parser = CatalogParser(stream, path)
    entries = list(parser)
    if parser.error is not None:
        raise CatalogReadError(
            f"Error parsing catalog: {parser.error}", path=path
        ) from parser.error
    return entries
