"""Classification of catalog lines and patching of msgid/msgstr regions.

The parser and both rewrite engines go through :func:`classify_line`, so a
line is never seen as a comment by one of them and as a continuation by
another.
"""
import enum
from typing import Iterable, NamedTuple

from poflow.catalog.quoting import render_string, unquote


class LineKind(enum.StrEnum):
    """Kind of a catalog line, decided on its stripped text."""

    BLANK = "blank"
    REFERENCE = "reference"
    COMMENT = "comment"
    MSGID = "msgid"
    MSGSTR = "msgstr"
    CONTINUATION = "continuation"
    OTHER = "other"


class ClassifiedLine(NamedTuple):
    """A line kind and the payload following its prefix."""

    kind: LineKind
    payload: str


_OPENERS = {
    LineKind.MSGID: "msgid ",
    LineKind.MSGSTR: "msgstr ",
}


def classify_line(line: str) -> ClassifiedLine:
    """Classify one raw line.

    Reference and comment payloads are trimmed; msgid, msgstr and continuation
    payloads are still quoted.
    """
    stripped = line.strip()
    if not stripped:
        return ClassifiedLine(LineKind.BLANK, "")
    if stripped.startswith("#:"):
        return ClassifiedLine(LineKind.REFERENCE, stripped[2:].strip())
    if stripped.startswith("#"):
        return ClassifiedLine(LineKind.COMMENT, stripped[1:].strip())
    for kind, prefix in _OPENERS.items():
        if stripped.startswith(prefix):
            return ClassifiedLine(kind, stripped[len(prefix) :])
    if len(stripped) >= 2 and stripped[0] == '"' and stripped[-1] == '"':
        return ClassifiedLine(LineKind.CONTINUATION, stripped)
    return ClassifiedLine(LineKind.OTHER, stripped)


def read_region(lines: Iterable[str], kind: LineKind) -> str | None:
    """Decode the value of the first ``kind`` region of ``lines``.

    Returns:
        The joined, unquoted fragments, or None when there is no such region.
    """
    fragments: list[str] | None = None
    for line in lines:
        classified = classify_line(line)
        if fragments is None:
            if classified.kind == kind:
                fragments = [unquote(classified.payload)]
            continue
        if classified.kind != LineKind.CONTINUATION:
            break
        fragments.append(unquote(classified.payload))
    return None if fragments is None else "".join(fragments)


def carriage_return(lines: Iterable[str]) -> str:
    """Return ``"\\r"`` when the lines come from a CRLF file, else ``""``.

    Lines are stored without their ``\\n``, so a CRLF line keeps a trailing
    ``\\r``.
    """
    return "\r" if any(line.endswith("\r") for line in lines) else ""


def replace_region(lines: list[str], kind: LineKind, value: str) -> list[str]:
    """Return ``lines`` with the ``kind`` region re-rendered from ``value``.

    Every line outside the region is kept verbatim. When the region already
    decodes to ``value`` the lines are returned unchanged, preserving their
    original wrapping. A missing region is appended at the end, unless the
    value is empty: plural entries have no plain ``msgstr`` region and must
    not get one. Rendered lines take the CRLF ending of the other lines.
    """
    if kind not in _OPENERS:
        raise ValueError(f"Not a msgid/msgstr region: {kind}")

    current = read_region(lines, kind)
    if current == value or (current is None and not value):
        return list(lines)

    ending = carriage_return(lines)
    rendered = [f"{line}{ending}" for line in render_string(str(kind), value)]
    patched: list[str] = []
    in_region = False
    replaced = False
    for line in lines:
        line_kind = classify_line(line).kind
        if not replaced and line_kind == kind:
            patched.extend(rendered)
            in_region = True
            replaced = True
            continue
        if in_region and line_kind == LineKind.CONTINUATION:
            continue
        in_region = False
        patched.append(line)

    if not replaced:
        patched.extend(rendered)
    return patched
