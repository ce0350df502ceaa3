"""Service merging ``msgid -> msgstr`` translations into a catalog."""

import logging
from pathlib import Path
from typing import IO, Mapping, NamedTuple

from poflow.catalog.formatter import format_entry, write_lines
from poflow.catalog.parser import CatalogParser, open_catalog
from poflow.exceptions import CatalogReadError, UnmatchedTranslationsError
from poflow.infrastructure.atomic_write import atomic_write
from poflow.output import entry_to_json

logger = logging.getLogger(__name__)


class MergeOptions(NamedTuple):
    """Per-call settings of a merge."""

    force: bool = False
    """Succeed even if some translations match no entry."""
    output: IO[str] | None = None
    """Stream receiving the merged catalog instead of the catalog file."""
    as_json: bool = False
    """Write the entries to ``output`` as JSON lines."""


class MergeResult(NamedTuple):
    """Result of a merge."""

    path: Path
    updated: tuple[str, ...]
    """msgids whose msgstr was set, in catalog order."""
    not_found: tuple[str, ...]
    """Translation keys matching no entry, sorted."""

    @property
    def updated_count(self) -> int:
        """Number of updated entries."""
        return len(self.updated)


class MergeService:
    """Service for merging translations into catalogs."""

    def merge(
        self,
        catalog_path: Path,
        translations: Mapping[str, str],
        options: MergeOptions = MergeOptions(),
    ) -> MergeResult:
        """Set the msgstr of every entry whose msgid has a translation.

        The catalog is streamed: each entry is written as soon as it is read,
        with only its msgstr region changed. Without ``options.output`` the
        result atomically replaces the catalog file.

        The output is committed before unmatched translations are checked, so
        the catalog is rewritten even when this method then raises.

        Args:
            catalog_path: The catalog to update.
            translations: Replacement msgstr by msgid; it is not modified.
            options: Force, output stream and format settings.

        Returns:
            MergeResult with the updated msgids and the unmatched keys.

        Raises:
            CatalogReadError: If the catalog cannot be parsed; the file is left
                untouched.
            UnmatchedTranslationsError: If some keys matched no entry and
                ``options.force`` is False.
        """
        pending = dict(translations)
        updated: list[str] = []

        with open_catalog(catalog_path) as stream:
            parser = CatalogParser(stream, catalog_path)
            if options.output is not None:
                self._merge_entries(parser, pending, updated, options.output, options)
            else:
                with atomic_write(catalog_path) as output:
                    self._merge_entries(parser, pending, updated, output, options)

        result = MergeResult(
            path=catalog_path,
            updated=tuple(updated),
            not_found=tuple(sorted(pending)),
        )
        logger.info(
            "Updated %d translation(s) in %s", result.updated_count, catalog_path
        )

        if result.not_found:
            logger.warning(
                "%d msgid(s) not found in %s: %s",
                len(result.not_found),
                catalog_path,
                ", ".join(result.not_found),
            )
            if not options.force:
                raise UnmatchedTranslationsError(result.not_found, result)
        return result

    @staticmethod
    def _merge_entries(
        parser: CatalogParser,
        pending: dict[str, str],
        updated: list[str],
        output: IO[str],
        options: MergeOptions,
    ) -> None:
        """Stream the entries to ``output``, consuming matched translations."""
        header_written = options.as_json
        for entry in parser:
            if not header_written:
                write_lines(output, parser.header)
                header_written = True

            # plural forms are not modelled, their translations stay unmatched
            if (
                not entry.is_plural()
                and (msgstr := pending.pop(entry.msgid, None)) is not None
            ):
                entry.update_msgstr(msgstr)
                updated.append(entry.msgid)

            if options.as_json:
                output.write(f"{entry_to_json(entry)}\n")
            else:
                output.write(format_entry(entry))

        if parser.error is not None:
            raise CatalogReadError(
                f"Error parsing {parser.path}: {parser.error}", path=parser.path
            ) from parser.error

        if not options.as_json:
            if not header_written:
                write_lines(output, parser.header)
            write_lines(output, parser.trailer)
