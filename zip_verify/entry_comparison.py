"""
Comparison of two archive entries that share a name.
"""

from __future__ import annotations

import logging

from zip_verify.archive_reader import READ_ERRORS
from zip_verify.content_digest import ContentHasher
from zip_verify.entry_data import METADATA_FIELDS, ComparisonResult, EntryDescriptor

logger = logging.getLogger(__name__)


class ContentOpenError(Exception):
    """
    Raised internally if the content stream of an entry cannot be opened or read.
    """

    def __init__(self, side: int, error: Exception):
        super().__init__(f'archive {side:d}: {error}')
        self.side = side
        self.error = error


class EntryComparator:
    """
    Decides whether two entries are identical, first by their metadata and then by the digests of
    their decompressed content.
    """

    def __init__(self, hasher: ContentHasher):
        """
        :param hasher: Hasher used to compute the content digests.
        """
        self._hasher = hasher

    def compare(self, left: EntryDescriptor, right: EntryDescriptor) -> ComparisonResult:
        """
        Compares the metadata fields in a fixed order and reports the first one that differs. The
        content streams are only opened if all metadata fields match.

        :param left: Entry of the reference archive.
        :param right: Entry of the candidate archive.
        :return: Success or the first difference found.
        """
        mismatch = self.compare_metadata(left, right)
        if mismatch is not None:
            return ComparisonResult.metadata_mismatch(left.name, mismatch)

        try:
            left_digest = self.content_digest(left, side=1)
            right_digest = self.content_digest(right, side=2)
        except ContentOpenError as error:
            return ComparisonResult.content_open_error(left.name, error.side, str(error.error))

        if left_digest != right_digest:
            return ComparisonResult.content_mismatch(left.name, left_digest, right_digest)

        return ComparisonResult.success()

    @staticmethod
    def compare_metadata(left: EntryDescriptor, right: EntryDescriptor):
        """
        :return: Attribute name of the first differing metadata field, None if all fields match.
        """
        for attribute, _ in METADATA_FIELDS:
            # Byte strings compare byte-for-byte with ==.
            if getattr(left, attribute) != getattr(right, attribute):
                return attribute
        return None

    def content_digest(self, entry: EntryDescriptor, side: int) -> str:
        """
        Hashes the decompressed content of the entry.

        :param entry: Entry to hash.
        :param side: 1 for the reference archive, 2 for the candidate.
        :raises ContentOpenError: If the stream cannot be opened or fails while reading.
        :return: Hex digest of the content.
        """
        try:
            with entry.open() as stream:
                digest = self._hasher.compute_hash(stream)
        except READ_ERRORS as error:
            raise ContentOpenError(side, error) from error

        logger.debug('%s in archive %d: %s', entry.name, side, digest)
        return digest
