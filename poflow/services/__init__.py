"""Services layer for poflow.

Services implement the catalog operations on top of the streaming parser and
the formatter, independently of the command line interface.
"""

from poflow.services.merge_service import MergeOptions, MergeResult, MergeService
from poflow.services.rename_service import (
    RenameOptions,
    RenameResult,
    RenameService,
    RenameSummary,
)
from poflow.services.search_service import (
    EntryFilter,
    SearchField,
    list_untranslated,
    search,
)

__all__ = [
    "EntryFilter",
    "MergeOptions",
    "MergeResult",
    "MergeService",
    "RenameOptions",
    "RenameResult",
    "RenameService",
    "RenameSummary",
    "SearchField",
    "list_untranslated",
    "search",
]
