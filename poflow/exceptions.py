"""Custom exception hierarchy for poflow."""

from pathlib import Path
from typing import Any


class PoflowError(Exception):
    """Base exception for all poflow errors."""


class ConfigError(PoflowError):
    """The configuration is missing a value required by the command."""


class CatalogReadError(PoflowError):
    """Reading a catalog stream failed mid-parse."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class TranslationFormatError(PoflowError):
    """A line of translation input is not a valid ``msgid = msgstr`` pair."""

    def __init__(self, line_number: int, message: str) -> None:
        super().__init__(f"line {line_number}: {message}")
        self.line_number = line_number


class InvalidPatternError(PoflowError):
    """A search pattern is not a valid regular expression."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid regex pattern {pattern!r}: {reason}")
        self.pattern = pattern


class UnmatchedTranslationsError(PoflowError):
    """Some translations did not match any msgid of the catalog."""

    def __init__(self, not_found: tuple[str, ...], result: Any = None) -> None:
        super().__init__(
            f"{len(not_found)} translation(s) not applied (use --force to ignore)"
        )
        self.not_found = not_found
        self.result = result
