"""
Readers that open archives of various formats and expose their entries in stored order.
"""
from __future__ import annotations

import io
import logging
import lzma
import pathlib as pl
import tarfile
import zipfile
import zlib
from abc import ABC, abstractmethod
from typing import List

from zip_verify.entry_data import EntryDescriptor

logger = logging.getLogger(__name__)

# Bit 11 of the general purpose flags marks file names encoded as UTF-8.
ZIP_UTF8_FLAG = 0x800

# Errors that can occur while reading an archive directory or an entry content stream.
READ_ERRORS = (
    OSError,
    EOFError,
    RuntimeError,
    NotImplementedError,
    zipfile.BadZipFile,
    tarfile.TarError,
    zlib.error,
    lzma.LZMAError,
)


class ArchiveOpenError(Exception):
    """
    Error raised if an archive cannot be opened, either because it is not accessible or because its
    format is not supported.
    """


class ArchiveHandle:
    """
    An open archive. The handle owns the underlying file object and releases it on `close()` or when
    leaving a `with` block.
    """

    def __init__(self, path: pl.Path, archive, entries: List[EntryDescriptor]):
        """
        :param path: Path the archive was opened from.
        :param archive: Underlying archive object, must provide `close()`.
        :param entries: Entries in the order they are stored in the archive directory.
        """
        self.path = path
        self.entries = entries
        self._archive = archive

    def __repr__(self):
        return f'ArchiveHandle({str(self.path)!r}, {len(self.entries)} entries)'

    def close(self) -> None:
        """
        Closes the underlying archive, repeated calls do nothing.
        """
        if self._archive is not None:
            self._archive.close()
            self._archive = None

    def __enter__(self) -> ArchiveHandle:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class ArchiveReader(ABC):
    """
    Base class for all archive readers.
    """

    #: Short name of the handled format, used for logging.
    format_name = 'archive'

    @abstractmethod
    def check_file(self, path: pl.Path) -> bool:
        """
        Checks if the given path can be processed by this reader.

        :param path: Input path
        :return: True, if the path is a valid archive for this reader.
        """
        raise NotImplementedError()

    @abstractmethod
    def open(self, path: pl.Path) -> ArchiveHandle:
        """
        Opens the archive and reads its directory.

        :param path: Input path
        :raises ArchiveOpenError: If the input cannot be opened by this reader.
        :return: Handle to the open archive, the caller is responsible for closing it.
        """
        raise NotImplementedError()


def _utf8_status(raw: bytes):
    """
    Checks whether a raw zip name or comment is valid UTF-8 and whether it needs UTF-8 at all.
    Printable ASCII except backslash and the characters above '}' reads the same in CP-437.

    :param raw: Name or comment bytes as stored in the archive.
    :return: Tuple (valid, required).
    """
    try:
        raw.decode('utf-8')
    except UnicodeDecodeError:
        return False, False
    return True, any(byte < 0x20 or byte > 0x7d or byte == 0x5c for byte in raw)


def _zip_non_utf8(info: zipfile.ZipInfo) -> bool:
    """
    Derives the non-UTF8 flag of an entry. The flag is only taken from bit 11 of the general
    purpose flags if the name or comment contains characters whose encoding matters.

    :param info: Zip entry header.
    :return: True if the name and comment are not UTF-8 encoded.
    """
    encoding = 'utf-8' if info.flag_bits & ZIP_UTF8_FLAG else 'cp437'
    name_valid, name_required = _utf8_status(info.orig_filename.encode(encoding))
    comment_valid, comment_required = _utf8_status(info.comment)
    if not (name_valid and comment_valid):
        return True
    if not (name_required or comment_required):
        return False
    return not info.flag_bits & ZIP_UTF8_FLAG


class ZipArchiveReader(ArchiveReader):
    """
    Reader for zip-based archives.
    """

    format_name = 'zip'

    def check_file(self, path: pl.Path) -> bool:
        return path.is_file() and zipfile.is_zipfile(path)

    def open(self, path: pl.Path) -> ArchiveHandle:
        if not self.check_file(path):
            raise ArchiveOpenError(f'{path}: not a zip file.')

        try:
            archive = zipfile.ZipFile(path, 'r')
        except (OSError, zipfile.BadZipFile) as error:
            raise ArchiveOpenError(f'{path}: {error}') from error

        entries = [self._describe(archive, info) for info in archive.infolist()]
        return ArchiveHandle(path, archive, entries)

    @staticmethod
    def _describe(archive: zipfile.ZipFile, info: zipfile.ZipInfo) -> EntryDescriptor:
        return EntryDescriptor(
            name=info.filename,
            uncompressed_size=info.file_size,
            compressed_size=info.compress_size,
            modified_time=info.date_time,
            compression_method=info.compress_type,
            comment=info.comment,
            extra_data=info.extra,
            non_utf8=_zip_non_utf8(info),
            creator_version=(info.create_system << 8) | info.create_version,
            reader_version=info.extract_version,
            flags=info.flag_bits,
            crc32=info.CRC,
            external_attributes=info.external_attr,
            opener=lambda: archive.open(info, 'r'),
        )


class TarArchiveReader(ArchiveReader):
    """
    Reader for tar-based archives, including various compressed variants thereof. Tar does not
    record compression metadata, comments or checksums per member; these fields stay None.
    """

    format_name = 'tar'

    def check_file(self, path: pl.Path) -> bool:
        return path.is_file() and tarfile.is_tarfile(path)

    def open(self, path: pl.Path) -> ArchiveHandle:
        if not self.check_file(path):
            raise ArchiveOpenError(f'{path}: not a tar file.')

        try:
            archive = tarfile.open(path, mode='r')
        except READ_ERRORS as error:
            raise ArchiveOpenError(f'{path}: {error}') from error

        # Compressed tars are decompressed while the member headers are read.
        try:
            members = archive.getmembers()
        except BaseException as error:
            archive.close()
            if isinstance(error, READ_ERRORS):
                raise ArchiveOpenError(f'{path}: {error}') from error
            raise

        entries = [self._describe(archive, member) for member in members]
        return ArchiveHandle(path, archive, entries)

    @staticmethod
    def _describe(archive: tarfile.TarFile, member: tarfile.TarInfo) -> EntryDescriptor:
        def opener():
            if not member.isfile():
                return io.BytesIO(b'')
            return archive.extractfile(member)

        return EntryDescriptor(
            name=member.name,
            uncompressed_size=member.size,
            modified_time=member.mtime,
            extra_data=member.linkname.encode('utf-8', 'surrogateescape'),
            flags=member.type,
            external_attributes=member.mode,
            opener=opener,
        )


class DispatchingArchiveReader(ArchiveReader):
    """
    Reader that dispatches to the first supported reader in a collection of other readers.
    """

    format_name = 'any'

    def __init__(self):
        self._format_readers = [
            ZipArchiveReader(),
            TarArchiveReader(),
        ]

    def _get_reader_for_file(self, path: pl.Path) -> ArchiveReader:
        """
        Checks the readers one-by-one in order for compatibility with the given archive. The first
        matching reader is returned.

        :param path: Input archive path.
        :return: First matching reader.
        :raises ArchiveOpenError: If the path does not exist or no suitable reader is found.
        """
        if not path.exists():
            raise ArchiveOpenError(f'{path}: file not found.')

        for reader in self._format_readers:
            if reader.check_file(path):
                return reader

        raise ArchiveOpenError(f'{path}: not a supported archive type.')

    def check_file(self, path: pl.Path) -> bool:
        try:
            self._get_reader_for_file(path)
            return True
        except ArchiveOpenError:
            return False

    def open(self, path: pl.Path) -> ArchiveHandle:
        reader = self._get_reader_for_file(path)
        handle = reader.open(path)
        logger.debug('Opened %s archive %s with %d entries',
                     reader.format_name, path, len(handle.entries))
        return handle
