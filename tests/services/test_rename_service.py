"""Tests for the RenameService."""

# pylint: disable=redefined-outer-name

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from poflow.catalog.parser import parse_all
from poflow.domain.entry import MsgEntry
from poflow.exceptions import CatalogReadError
from poflow.services.rename_service import (
    RenameOptions,
    RenameService,
    collect_source_paths,
    update_source_file,
)

OLD_MSGID = "B: Fuller bust | C: Standard | D: Fuller hip"
NEW_MSGID = "B: Athletic | C: Standard | D: Curvy"

PATTERN_CATALOG = f"""# HEADER COMMENT
msgid ""
msgstr ""

#: lib/pattern_components.ex:4
#, elixir-autogen, elixir-format
msgid "{OLD_MSGID}"
msgstr "B: Fylligare byst | C: Standard | D: Fylligare höft"

"""

PATTERN_SOURCE = f"""defmodule PatternComponents do
  def render(assigns) do
    ~H\"\"\"
    <div>{{gettext("{OLD_MSGID}")}}</div>
    \"\"\"
  end
end
"""


@pytest.fixture
def service() -> RenameService:
    """Create a RenameService."""
    return RenameService()


@pytest.fixture
def options(tmp_path: Path) -> RenameOptions:
    """Rename options resolving source paths in the temporary directory."""
    return RenameOptions(source_base_dir=tmp_path)


@pytest.fixture
def catalog(tmp_path: Path) -> Path:
    """Create a catalog with one entry referencing a source file."""
    path = tmp_path / "default.po"
    path.write_text(PATTERN_CATALOG, encoding="utf-8")
    return path


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    """Create the source file referenced by the catalog."""
    path = tmp_path / "lib" / "pattern_components.ex"
    path.parent.mkdir()
    path.write_text(PATTERN_SOURCE, encoding="utf-8")
    return path


def read_entries(path: Path) -> list[MsgEntry]:
    """Parse a catalog file."""
    with open(path, encoding="utf-8") as file:
        return parse_all(file)


class TestRenameCatalog:
    """Tests for the catalog rewrite."""

    def test_only_the_msgid_changes(
        self, service: RenameService, catalog: Path, options: RenameOptions
    ) -> None:
        """The file is identical to the original except for the msgid line."""
        result = service.rename(catalog, OLD_MSGID, NEW_MSGID, options)

        assert result.entries_found == 1
        assert result.updated
        assert catalog.read_text(encoding="utf-8") == PATTERN_CATALOG.replace(
            f'msgid "{OLD_MSGID}"', f'msgid "{NEW_MSGID}"'
        )

    def test_comment_order_is_preserved(
        self, service: RenameService, tmp_path: Path, options: RenameOptions
    ) -> None:
        """Four comment kinds keep their order, with no space added before ','."""
        catalog = tmp_path / "test.po"
        catalog.write_text(
            "# HEADER\n"
            'msgid ""\n'
            'msgstr ""\n'
            "\n"
            "# Translator comment\n"
            "#: lib/file.ex:100\n"
            "#, elixir-autogen, elixir-format\n"
            "# Another comment\n"
            'msgid "Test"\n'
            'msgstr "Testa"\n'
            "\n",
            encoding="utf-8",
        )

        result = service.rename(catalog, "Test", "Updated", options)

        assert result.entries_found == 1
        content = catalog.read_text(encoding="utf-8")
        assert (
            "# Translator comment\n"
            "#: lib/file.ex:100\n"
            "#, elixir-autogen, elixir-format\n"
            "# Another comment\n"
            'msgid "Updated"\n'
            'msgstr "Testa"\n'
        ) in content
        assert "# ," not in content

    def test_msgstr_comments_and_references_are_preserved(
        self, service: RenameService, catalog: Path, options: RenameOptions
    ) -> None:
        """Only the msgid field differs after the rename."""
        (before,) = read_entries(catalog)
        service.rename(catalog, OLD_MSGID, NEW_MSGID, options)
        (after,) = read_entries(catalog)

        assert after.msgid == NEW_MSGID
        assert after.msgstr == before.msgstr
        assert after.comments == before.comments
        assert after.references == before.references

    def test_every_matching_entry_is_renamed(
        self, service: RenameService, tmp_path: Path
    ) -> None:
        """Entries sharing the msgid are all renamed."""
        catalog = tmp_path / "default.po"
        catalog.write_text(
            'msgid "Save"\nmsgstr "Spara"\n\n'
            'msgid "Cancel"\nmsgstr "Avbryt"\n\n'
            '#: lib/b.ex:2\nmsgid "Save"\nmsgstr "Spara"\n\n',
            encoding="utf-8",
        )

        result = service.rename(
            catalog, "Save", "Store", RenameOptions(update_sources=False)
        )

        assert result.entries_found == 2
        assert [e.msgid for e in read_entries(catalog)] == ["Store", "Cancel", "Store"]

    def test_msgid_match_is_exact(self, service: RenameService, tmp_path: Path) -> None:
        """Case or whitespace variants do not match."""
        catalog = tmp_path / "default.po"
        catalog.write_text(
            'msgid "save"\nmsgstr ""\n\nmsgid "Save "\nmsgstr ""\n\n', encoding="utf-8"
        )

        assert service.rename(catalog, "Save", "Store").entries_found == 0

    def test_multi_line_msgids(self, service: RenameService, tmp_path: Path) -> None:
        """A wrapped msgid can be renamed to a single line and back."""
        catalog = tmp_path / "default.po"
        catalog.write_text(
            'msgid ""\n"part1\\n"\n"part2"\nmsgstr "Del"\n\n', encoding="utf-8"
        )

        service.rename(catalog, "part1\npart2", "Single", RenameOptions())
        assert catalog.read_text(encoding="utf-8") == 'msgid "Single"\nmsgstr "Del"\n\n'

        service.rename(catalog, "Single", "line1\nline2", RenameOptions())
        assert catalog.read_text(encoding="utf-8") == (
            'msgid ""\n"line1\\n"\n"line2"\nmsgstr "Del"\n\n'
        )

    def test_plural_entries_survive(
        self, service: RenameService, tmp_path: Path
    ) -> None:
        """Renaming another msgid leaves plural entries byte-identical."""
        content = (
            'msgid "Save"\nmsgstr "Spara"\n\n'
            'msgid "%d file"\nmsgid_plural "%d files"\n'
            'msgstr[0] "%d fil"\nmsgstr[1] "%d filer"\n\n'
        )
        catalog = tmp_path / "default.po"
        catalog.write_text(content, encoding="utf-8")

        service.rename(catalog, "Save", "Store")

        assert catalog.read_text(encoding="utf-8") == content.replace(
            'msgid "Save"', 'msgid "Store"'
        )

    def test_crlf_catalog(self, service: RenameService, tmp_path: Path) -> None:
        """A CRLF catalog stays CRLF, including the renamed region."""
        catalog = tmp_path / "default.po"
        catalog.write_bytes(
            b'msgid "Save"\r\nmsgstr "Spara"\r\n\r\nmsgid "B"\r\nmsgstr "b"\r\n\r\n'
        )

        service.rename(catalog, "Save", "Two\nlines")

        assert catalog.read_bytes() == (
            b'msgid ""\r\n"Two\\n"\r\n"lines"\r\nmsgstr "Spara"\r\n\r\n'
            b'msgid "B"\r\nmsgstr "b"\r\n\r\n'
        )

    def test_obsolete_entries_survive(
        self, service: RenameService, tmp_path: Path
    ) -> None:
        """Obsolete blocks are written back untouched."""
        content = (
            'msgid "A"\nmsgstr "a"\n\n'
            '#~ msgid "Old"\n#~ msgstr "Gammal"\n\n'
            'msgid "B"\nmsgstr "b"\n\n'
        )
        catalog = tmp_path / "default.po"
        catalog.write_text(content, encoding="utf-8")

        service.rename(catalog, "B", "C")

        assert catalog.read_text(encoding="utf-8") == content.replace(
            'msgid "B"', 'msgid "C"'
        )

    def test_no_match_leaves_file_untouched(
        self, service: RenameService, catalog: Path
    ) -> None:
        """Zero matches is not an error and writes nothing."""
        mtime = catalog.stat().st_mtime_ns

        result = service.rename(catalog, "Missing", "Other")

        assert result.entries_found == 0
        assert not result.updated
        assert catalog.stat().st_mtime_ns == mtime

    def test_dry_run(
        self, service: RenameService, catalog: Path, source_file: Path, tmp_path: Path
    ) -> None:
        """A dry run counts matches and touches no file."""
        result = service.rename(
            catalog,
            OLD_MSGID,
            NEW_MSGID,
            RenameOptions(dry_run=True, source_base_dir=tmp_path),
        )

        assert result.entries_found == 1
        assert not result.updated
        assert result.source_files == (source_file,)
        assert catalog.read_text(encoding="utf-8") == PATTERN_CATALOG
        assert source_file.read_text(encoding="utf-8") == PATTERN_SOURCE

    def test_no_temporary_file_left(
        self, service: RenameService, catalog: Path, options: RenameOptions
    ) -> None:
        """The temporary file is renamed over the catalog."""
        service.rename(catalog, OLD_MSGID, NEW_MSGID, options)

        assert sorted(p.name for p in catalog.parent.iterdir()) == ["default.po"]

    def test_write_failure_keeps_original(
        self, service: RenameService, catalog: Path, options: RenameOptions
    ) -> None:
        """A failure while writing leaves the catalog as it was."""
        with patch(
            "poflow.services.rename_service.write_catalog",
            side_effect=OSError("disk full"),
        ):
            with pytest.raises(OSError, match="disk full"):
                service.rename(catalog, OLD_MSGID, NEW_MSGID, options)

        assert catalog.read_text(encoding="utf-8") == PATTERN_CATALOG
        assert sorted(p.name for p in catalog.parent.iterdir()) == ["default.po"]

    def test_unreadable_catalog(self, service: RenameService, tmp_path: Path) -> None:
        """A decoding failure is reported as CatalogReadError."""
        catalog = tmp_path / "broken.po"
        catalog.write_bytes(b'msgid "A"\nmsgstr "\xff\xfe"\n\n')

        with pytest.raises(CatalogReadError) as e:
            service.rename(catalog, "A", "B")
        assert e.value.path == catalog


class TestSourcePropagation:
    """Tests for the update of referenced source files."""

    def test_source_file_is_updated(
        self,
        service: RenameService,
        catalog: Path,
        source_file: Path,
        options: RenameOptions,
    ) -> None:
        """The quoted msgid is replaced in the referenced file."""
        result = service.rename(catalog, OLD_MSGID, NEW_MSGID, options)

        content = source_file.read_text(encoding="utf-8")
        assert result.source_files == (source_file,)
        assert result.source_errors == ()
        assert f'    <div>{{gettext("{NEW_MSGID}")}}</div>' in content
        assert OLD_MSGID not in content

    def test_several_files_in_one_reference(
        self, service: RenameService, tmp_path: Path, options: RenameOptions
    ) -> None:
        """Every path of a multi-token reference comment is updated."""
        (tmp_path / "lib").mkdir()
        file1 = tmp_path / "lib" / "file1.ex"
        file2 = tmp_path / "lib" / "file2.ex"
        file1.write_text('def test do\n  gettext("Welcome")\nend\n', encoding="utf-8")
        file2.write_text(
            'def test do\n  dgettext("default", "Welcome")\nend\n', encoding="utf-8"
        )
        catalog = tmp_path / "default.po"
        catalog.write_text(
            '#: lib/file1.ex:3 lib/file2.ex:3\nmsgid "Welcome"\nmsgstr "Välkommen"\n\n',
            encoding="utf-8",
        )

        service.rename(catalog, "Welcome", "Hello", options)

        assert 'gettext("Hello")' in file1.read_text(encoding="utf-8")
        assert 'dgettext("default", "Hello")' in file2.read_text(encoding="utf-8")

    def test_missing_source_file_is_a_warning(
        self,
        service: RenameService,
        catalog: Path,
        options: RenameOptions,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A source file that cannot be read does not stop the rename."""
        with caplog.at_level(logging.WARNING):
            result = service.rename(catalog, OLD_MSGID, NEW_MSGID, options)

        assert result.updated
        assert len(result.source_errors) == 1
        assert "pattern_components.ex" in caplog.text
        assert NEW_MSGID in catalog.read_text(encoding="utf-8")

    def test_source_failure_does_not_abort(
        self,
        service: RenameService,
        catalog: Path,
        source_file: Path,
        options: RenameOptions,
    ) -> None:
        """An error while updating a source file is recorded, not raised."""
        with patch(
            "poflow.services.rename_service.update_source_file",
            side_effect=PermissionError("denied"),
        ):
            result = service.rename(catalog, OLD_MSGID, NEW_MSGID, options)

        assert result.updated
        assert result.source_errors == (f"{source_file}: denied",)

    def test_sources_can_be_skipped(
        self, service: RenameService, catalog: Path, source_file: Path, tmp_path: Path
    ) -> None:
        """update_sources=False only rewrites the catalog."""
        service.rename(
            catalog,
            OLD_MSGID,
            NEW_MSGID,
            RenameOptions(source_base_dir=tmp_path, update_sources=False),
        )

        assert source_file.read_text(encoding="utf-8") == PATTERN_SOURCE


class TestSourceHelpers:
    """Tests for the source helpers."""

    def test_collect_source_paths(self) -> None:
        """Paths are split from line numbers and de-duplicated in order."""
        entries = [
            MsgEntry(msgid="a", references=["lib/a.ex:1 lib/b.ex:2", "no-line-number"]),
            MsgEntry(msgid="a", references=["lib/a.ex:9", "lib/c:d.ex:4"]),
        ]

        assert collect_source_paths(entries) == ["lib/a.ex", "lib/b.ex", "lib/c:d.ex"]

    def test_update_source_file_is_literal(self, tmp_path: Path) -> None:
        """Regex metacharacters and line endings are left alone."""
        path = tmp_path / "view.py"
        path.write_bytes(b'_("Price (USD)")\r\nlabel = "Price (USD)"\r\n')

        count = update_source_file(path, "Price (USD)", r"Cost \1 $1")

        assert count == 2
        assert path.read_bytes() == (
            b'_("Cost \\1 $1")\r\nlabel = "Cost \\1 $1"\r\n'
        )

    def test_update_source_file_without_match(self, tmp_path: Path) -> None:
        """A file without the literal is not rewritten."""
        path = tmp_path / "view.py"
        path.write_text('_("Other")\n', encoding="utf-8")
        mtime = path.stat().st_mtime_ns

        assert update_source_file(path, "Price", "Cost") == 0
        assert path.stat().st_mtime_ns == mtime

    def test_unquoted_occurrences_are_kept(self, tmp_path: Path) -> None:
        """Only the quoted literal is replaced."""
        path = tmp_path / "view.py"
        path.write_text('# Save button\n_("Save")\n', encoding="utf-8")

        update_source_file(path, "Save", "Store")

        assert path.read_text(encoding="utf-8") == '# Save button\n_("Store")\n'


class TestRenameEverywhere:
    """Tests for the multi-catalog rename."""

    def test_failures_are_isolated(self, service: RenameService, tmp_path: Path) -> None:
        """A failing catalog is reported and the others are still processed."""
        first = tmp_path / "sv.po"
        second = tmp_path / "de.po"
        missing = tmp_path / "missing.po"
        first.write_text('msgid "Save"\nmsgstr "Spara"\n\n', encoding="utf-8")
        second.write_text('msgid "Save"\nmsgstr "Speichern"\n\n', encoding="utf-8")

        summary = service.rename_everywhere([first, missing, second], "Save", "Store")

        assert summary.total_files == 3
        assert summary.files_with_matches == 2
        assert summary.failed_files == 1
        assert summary.total_entries == 2
        assert not summary.results[1].success
        assert 'msgid "Store"' in second.read_text(encoding="utf-8")

    def test_dry_run_summary(self, service: RenameService, tmp_path: Path) -> None:
        """A dry run reports counts for every catalog."""
        catalog = tmp_path / "sv.po"
        catalog.write_text('msgid "Save"\nmsgstr "Spara"\n\n', encoding="utf-8")

        summary = service.rename_everywhere(
            [catalog], "Save", "Store", RenameOptions(dry_run=True)
        )

        assert summary.total_entries == 1
        assert not summary.results[0].updated
        assert 'msgid "Save"' in catalog.read_text(encoding="utf-8")
