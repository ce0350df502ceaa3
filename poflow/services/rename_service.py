"""Service renaming a msgid across catalogs and the source files using it.

A catalog is rewritten as a whole: all its entries are buffered, the matching
ones get their msgid region patched, and the new content atomically replaces
the file. Source files named by the references of the matching entries have
the quoted old msgid replaced by the quoted new one; this propagation is best
effort and never prevents the catalog rewrite.
"""

import logging
from pathlib import Path
from typing import Iterable, NamedTuple

from poflow.catalog.formatter import write_catalog
from poflow.catalog.parser import CatalogParser, open_catalog
from poflow.domain.entry import MsgEntry
from poflow.exceptions import CatalogReadError, PoflowError
from poflow.infrastructure.atomic_write import atomic_write

logger = logging.getLogger(__name__)


class RenameOptions(NamedTuple):
    """Per-call settings of a rename."""

    dry_run: bool = False
    """Only count the matching entries, touch no file."""
    source_base_dir: Path | None = None
    """Directory the reference paths are relative to (None: as written)."""
    update_sources: bool = True


class RenameResult(NamedTuple):
    """Result of renaming a msgid in one catalog."""

    path: Path
    entries_found: int
    updated: bool
    """True if the catalog file was rewritten."""
    source_files: tuple[Path, ...] = ()
    """Source files referenced by the matching entries."""
    source_errors: tuple[str, ...] = ()
    error_message: str | None = None

    @property
    def success(self) -> bool:
        """Whether the catalog itself was processed without error."""
        return self.error_message is None


class RenameSummary(NamedTuple):
    """Summary of a rename over several catalogs."""

    total_files: int
    files_with_matches: int
    failed_files: int
    total_entries: int
    results: tuple[RenameResult, ...]


def collect_source_paths(entries: Iterable[MsgEntry]) -> list[str]:
    """Return the file part of every ``path:line`` reference, without duplicates.

    A reference comment may hold several whitespace separated tokens; the
    line number follows the last colon.
    """
    paths: list[str] = []
    for entry in entries:
        for reference in entry.references:
            for token in reference.split():
                path, _, _ = token.rpartition(":")
                if path and path not in paths:
                    paths.append(path)
    return paths


def update_source_file(path: Path, old_msgid: str, new_msgid: str) -> int:
    """Replace every ``"old_msgid"`` literal of a source file by ``"new_msgid"``.

    The new msgid is inserted as is: it must be valid inside a quoted string
    literal of the source language.

    Returns:
        The number of replaced literals; the file is only rewritten when it is
        not zero.
    """
    old_literal = f'"{old_msgid}"'
    with open(path, encoding="utf-8", newline="") as file:
        content = file.read()

    if not (count := content.count(old_literal)):
        return 0

    with atomic_write(path) as file:
        file.write(content.replace(old_literal, f'"{new_msgid}"'))
    return count


class RenameService:
    """Service for renaming msgids."""

    def rename(
        self,
        catalog_path: Path,
        old_msgid: str,
        new_msgid: str,
        options: RenameOptions = RenameOptions(),
    ) -> RenameResult:
        """Rename a msgid in a single catalog.

        Every entry whose msgid equals ``old_msgid`` exactly is renamed; its
        comments, references and msgstr lines are left byte-identical.

        Args:
            catalog_path: The ``.po`` or ``.pot`` file.
            old_msgid: The msgid to replace.
            new_msgid: The replacement msgid.
            options: Dry run and source propagation settings.

        Returns:
            RenameResult with the number of matching entries.

        Raises:
            CatalogReadError: If the catalog cannot be parsed.
            OSError: If the catalog cannot be opened or replaced.
        """
        with open_catalog(catalog_path) as stream:
            parser = CatalogParser(stream, catalog_path)
            entries = list(parser)
        if parser.error is not None:
            raise CatalogReadError(
                f"Error parsing {catalog_path}: {parser.error}", path=catalog_path
            ) from parser.error

        matches = [entry for entry in entries if entry.msgid == old_msgid]
        source_files = tuple(
            options.source_base_dir / path if options.source_base_dir else Path(path)
            for path in collect_source_paths(matches)
        )
        if not matches or options.dry_run:
            return RenameResult(
                path=catalog_path,
                entries_found=len(matches),
                updated=False,
                source_files=source_files,
            )

        for entry in matches:
            entry.update_msgid(new_msgid)

        source_errors: list[str] = []
        if options.update_sources:
            source_errors = self._update_sources(source_files, old_msgid, new_msgid)

        with atomic_write(catalog_path) as output:
            write_catalog(output, parser.header, entries, parser.trailer)
        logger.info("Renamed %d entries in %s", len(matches), catalog_path)

        return RenameResult(
            path=catalog_path,
            entries_found=len(matches),
            updated=True,
            source_files=source_files,
            source_errors=tuple(source_errors),
        )

    @staticmethod
    def _update_sources(
        source_files: Iterable[Path], old_msgid: str, new_msgid: str
    ) -> list[str]:
        """Propagate the rename to source files, collecting the failures."""
        errors: list[str] = []
        for source_file in source_files:
            try:
                if count := update_source_file(source_file, old_msgid, new_msgid):
                    logger.info("Updated %d literal(s) in %s", count, source_file)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(
                    "Failed to update source file %s: %s", source_file, e
                )
                errors.append(f"{source_file}: {e}")
        return errors

    def rename_everywhere(
        self,
        catalog_paths: Iterable[Path],
        old_msgid: str,
        new_msgid: str,
        options: RenameOptions = RenameOptions(),
    ) -> RenameSummary:
        """Rename a msgid in several catalogs, one after the other.

        A catalog that fails is reported in its result and does not stop the
        remaining ones.
        """
        results: list[RenameResult] = []
        for catalog_path in catalog_paths:
            try:
                result = self.rename(catalog_path, old_msgid, new_msgid, options)
            except (PoflowError, OSError) as e:
                logger.warning("Rename failed for %s: %s", catalog_path, e)
                result = RenameResult(
                    path=catalog_path,
                    entries_found=0,
                    updated=False,
                    error_message=str(e),
                )
            results.append(result)

        return RenameSummary(
            total_files=len(results),
            files_with_matches=sum(1 for r in results if r.entries_found),
            failed_files=sum(1 for r in results if not r.success),
            total_entries=sum(r.entries_found for r in results),
            results=tuple(results),
        )
