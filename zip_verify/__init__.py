"""
Archive containment verification tool
"""

from .__version__ import (
    __author__,
    __copyright__,
    __description__,
    __license__,
    __title__,
    __version__,
)

from .entry_data import (
    METADATA_FIELDS,
    EntryDescriptor,
    FailureKind,
    ComparisonResult,
)

from .content_digest import ContentHasher

from .archive_reader import (
    ArchiveHandle,
    ArchiveOpenError,
    ArchiveReader,
    DispatchingArchiveReader,
    TarArchiveReader,
    ZipArchiveReader,
)

from .entry_comparison import (
    ContentOpenError,
    EntryComparator,
)

from .archive_differ import (
    ArchiveDiffer,
    index_entries,
)

from .cli_output import ResultPrinter
