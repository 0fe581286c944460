"""
Containment check between two archives.
"""

from __future__ import annotations

import logging
import pathlib as pl
from typing import Dict, Iterable

from zip_verify.archive_reader import ArchiveHandle, DispatchingArchiveReader
from zip_verify.content_digest import ContentHasher
from zip_verify.entry_comparison import EntryComparator
from zip_verify.entry_data import ComparisonResult, EntryDescriptor

logger = logging.getLogger(__name__)


def index_entries(entries: Iterable[EntryDescriptor]) -> Dict[str, EntryDescriptor]:
    """
    Builds a name index over the entries. If a name occurs multiple times, the first occurrence in
    stored order is kept.

    :param entries: Archive entries in stored order.
    :return: Dict mapping entry names to entries.
    """
    index = {}
    for entry in entries:
        index.setdefault(entry.name, entry)
    return index


class ArchiveDiffer:
    """
    Checks that every entry of a reference archive is present in a candidate archive with identical
    metadata and content. Entries that only exist in the candidate are not reported.
    """

    def __init__(self, hash_algorithm: str = 'sha256', hash_buffer_size=128 * 1024):
        """
        :param hash_algorithm: String describing a hash algorithm supported by `hashlib`
        :param hash_buffer_size: Size of the read buffer used by stream hashing implementation
        """
        self._content_hasher = ContentHasher(hash_algorithm, hash_buffer_size)
        self._comparator = EntryComparator(self._content_hasher)
        self._archive_reader = DispatchingArchiveReader()

    def diff(self, archive_a: ArchiveHandle, archive_b: ArchiveHandle) -> ComparisonResult:
        """
        Walks the reference archive in stored order and stops at the first entry that is missing
        from or different in the candidate archive.

        :param archive_a: Reference archive.
        :param archive_b: Candidate archive.
        :return: Success or the first failure.
        """
        candidates = index_entries(archive_b.entries)

        for entry in archive_a.entries:
            counterpart = candidates.get(entry.name)
            if counterpart is None:
                return ComparisonResult.missing_entry(entry.name)

            result = self._comparator.compare(entry, counterpart)
            if not result.ok:
                return result
            logger.debug('%s is identical', entry.name)

        return ComparisonResult.success()

    def compute_diff(self, left_archive: pl.Path, right_archive: pl.Path) -> ComparisonResult:
        """
        Opens both archives and compares them. Both archives are closed again before returning,
        also if opening the second archive or the comparison fails.

        :param left_archive: Path to the reference archive.
        :param right_archive: Path to the candidate archive.
        :raises ArchiveOpenError: If either archive cannot be opened.
        :return: Success or the first failure.
        """
        with self._archive_reader.open(pl.Path(left_archive)) as archive_a, \
                self._archive_reader.open(pl.Path(right_archive)) as archive_b:
            return self.diff(archive_a, archive_b)
