"""
Data classes describing archive entries and the outcome of comparing them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, BinaryIO, Callable, Optional

# Metadata attributes in the order they are compared, with a readable label for each.
METADATA_FIELDS = (
    ('uncompressed_size', 'size'),
    ('modified_time', 'modified time'),
    ('compression_method', 'compression method'),
    ('comment', 'comment'),
    ('extra_data', 'extra data'),
    ('non_utf8', 'non-UTF8 flag'),
    ('creator_version', 'creator version'),
    ('reader_version', 'reader version'),
    ('flags', 'flags'),
    ('crc32', 'CRC32'),
    ('compressed_size', 'compressed size'),
    ('external_attributes', 'external attributes'),
)

FIELD_LABELS = dict(METADATA_FIELDS)


@dataclass
class EntryDescriptor:
    """
    Metadata of a single archive member. Instances are views into an open archive handle and must
    not be used after the handle is closed.

    Fields the archive format does not record are None.
    """
    name: str
    uncompressed_size: Optional[int] = None
    compressed_size: Optional[int] = None
    modified_time: Any = None
    compression_method: Optional[int] = None
    comment: Optional[bytes] = None
    extra_data: Optional[bytes] = None
    non_utf8: Optional[bool] = None
    creator_version: Optional[int] = None
    reader_version: Optional[int] = None
    flags: Any = None
    crc32: Optional[int] = None
    external_attributes: Optional[int] = None
    opener: Optional[Callable[[], BinaryIO]] = field(default=None, compare=False, repr=False)

    def open(self) -> BinaryIO:
        """
        Opens a stream yielding the decompressed content of this entry.
        :return: Binary IO object, should be used as a context manager.
        """
        if self.opener is None:
            raise ValueError(f'Entry {self.name} has no content stream.')
        return self.opener()


class FailureKind(Enum):
    """
    Enumeration of the ways a reference entry can fail to match the candidate archive.
    """

    MISSING_ENTRY = auto()
    METADATA_MISMATCH = auto()
    CONTENT_OPEN_ERROR = auto()
    CONTENT_MISMATCH = auto()


@dataclass
class ComparisonResult:
    """
    Outcome of a comparison. `kind` is None on success, otherwise it describes the first failure
    that was found.
    """
    kind: Optional[FailureKind] = None
    name: Optional[str] = None
    field: Optional[str] = None
    left_digest: Optional[str] = None
    right_digest: Optional[str] = None
    detail: Optional[str] = None

    @classmethod
    def success(cls) -> ComparisonResult:
        return cls()

    @classmethod
    def missing_entry(cls, name: str) -> ComparisonResult:
        return cls(FailureKind.MISSING_ENTRY, name)

    @classmethod
    def metadata_mismatch(cls, name: str, field_name: str) -> ComparisonResult:
        return cls(FailureKind.METADATA_MISMATCH, name, field=field_name)

    @classmethod
    def content_open_error(cls, name: str, side: int, detail: str) -> ComparisonResult:
        return cls(FailureKind.CONTENT_OPEN_ERROR, name,
                   detail=f'cannot be opened from archive {side:d}: {detail}')

    @classmethod
    def content_mismatch(cls, name: str, left_digest: str, right_digest: str) -> ComparisonResult:
        return cls(FailureKind.CONTENT_MISMATCH, name,
                   left_digest=left_digest, right_digest=right_digest)

    @property
    def ok(self) -> bool:
        return self.kind is None

    @property
    def reason(self) -> str:
        """
        :return: Human-readable description of the failure, empty on success.
        """
        if self.kind is None:
            return ''
        if self.kind == FailureKind.MISSING_ENTRY:
            return 'not found in the second archive'
        if self.kind == FailureKind.METADATA_MISMATCH:
            return f'has different {FIELD_LABELS.get(self.field, self.field)}'
        if self.kind == FailureKind.CONTENT_OPEN_ERROR:
            return self.detail
        return f'has different content {self.left_digest!r} != {self.right_digest!r}'

    @property
    def message(self) -> str:
        """
        :return: Full diagnostic line naming the offending entry.
        """
        if self.kind is None:
            return 'Archives match.'
        return f'file {self.name} {self.reason}'
