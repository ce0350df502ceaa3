"""Quoting and escaping rules of catalog string payloads."""
import re

_ESCAPE_SEQUENCE = re.compile(r"\\(.)", re.DOTALL)

_DECODED: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    '"': '"',
    "\\": "\\",
}


def unescape(text: str) -> str:
    """Decode the escape sequences of a quoted payload.

    The text is scanned once from left to right, so the backslash produced by
    ``\\\\`` is never combined with the character that follows it. Unknown
    escape sequences are kept as written.
    """
    return _ESCAPE_SEQUENCE.sub(
        lambda match: _DECODED.get(match.group(1), match.group(0)), text
    )


def escape(text: str) -> str:
    """Escape a value for a single quoted payload line.

    Newlines are not escaped here: multi-line values are split by
    :func:`render_string`.
    """
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\t", "\\t")


def unquote(payload: str) -> str:
    """Strip the surrounding quotes of a payload and decode its escapes."""
    payload = payload.strip()
    if len(payload) >= 2 and payload[0] == '"' and payload[-1] == '"':
        payload = payload[1:-1]
    return unescape(payload)


def split_segments(value: str) -> list[str]:
    """Split a value after each newline, keeping the newlines.

    A trailing newline does not produce an empty final segment.
    """
    parts = value.split("\n")
    segments = [f"{part}\n" for part in parts[:-1]]
    if parts[-1]:
        segments.append(parts[-1])
    return segments


def render_string(keyword: str, value: str) -> list[str]:
    """Render a ``msgid``/``msgstr`` keyword and its value as catalog lines.

    Args:
        keyword: The keyword opening the region (``msgid`` or ``msgstr``).
        value: The decoded value.

    Returns:
        One line when the value has no newline, otherwise an empty keyword line
        followed by one quoted line per segment.
    """
    if "\n" not in value:
        return [f'{keyword} "{escape(value)}"']

    lines = [f'{keyword} ""']
    for segment in split_segments(value):
        if segment.endswith("\n"):
            lines.append(f'"{escape(segment[:-1])}\\n"')
        else:
            lines.append(f'"{escape(segment)}"')
    return lines
