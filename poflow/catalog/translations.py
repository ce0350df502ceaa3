"""Parser for ``msgid = msgstr`` translation input."""
from typing import Iterable

from poflow.exceptions import TranslationFormatError


def parse_translations(lines: Iterable[str]) -> dict[str, str]:
    """Parse translation pairs, one ``msgid = msgstr`` per line.

    Blank lines and lines starting with ``#`` are skipped. The first ``=`` is
    the separator, so a msgstr may contain ``=``; both sides are trimmed. An
    empty msgstr is valid and clears a translation.

    Args:
        lines: The translation input, e.g. an open text file.

    Returns:
        A mapping from msgid to msgstr; a repeated msgid keeps its last value.

    Raises:
        TranslationFormatError: If a line has no ``=`` or an empty msgid.
    """
    translations: dict[str, str] = {}
    for line_number, raw_line in enumerate(lines, start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        msgid, separator, msgstr = line.partition("=")
        if not separator:
            raise TranslationFormatError(
                line_number, f"invalid format, expected 'msgid = msgstr', got: {line}"
            )
        if not (msgid := msgid.strip()):
            raise TranslationFormatError(line_number, "msgid cannot be empty")

        translations[msgid] = msgstr.strip()
    return translations
