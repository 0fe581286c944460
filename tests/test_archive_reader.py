import os
import pathlib as pl
import tarfile
import tempfile
import unittest
import zipfile
import zlib
from unittest import TestCase, mock

from archive_builder import FIXED_DATE_TIME, FIXED_MTIME, write_tar, write_zip
from zip_verify.archive_reader import ArchiveOpenError, DispatchingArchiveReader, \
    TarArchiveReader, ZipArchiveReader


class TestArchiveReader(TestCase):
    """
    Tests the various archive format readers.
    """

    def setUp(self):
        self._tmp_dir = tempfile.TemporaryDirectory()
        self.root = pl.Path(self._tmp_dir.name)

    def tearDown(self):
        self._tmp_dir.cleanup()

    def test_zip_reader(self):
        """
        Tests the `ZipArchiveReader`.
        """
        path = write_zip(self.root / 'a.zip', [('b.txt', b'hello'), ('a/', b'')],
                         zipfile.ZIP_STORED)
        reader = ZipArchiveReader()
        self.assertTrue(reader.check_file(path))

        with reader.open(path) as handle:
            self.assertEqual(['b.txt', 'a/'], [entry.name for entry in handle.entries])

            entry = handle.entries[0]
            self.assertEqual(5, entry.uncompressed_size)
            self.assertEqual(5, entry.compressed_size)
            self.assertEqual(FIXED_DATE_TIME, entry.modified_time)
            self.assertEqual(zipfile.ZIP_STORED, entry.compression_method)
            self.assertEqual(b'', entry.comment)
            self.assertFalse(entry.non_utf8)
            self.assertEqual(zlib.crc32(b'hello'), entry.crc32)
            self.assertEqual(0o644 << 16, entry.external_attributes)

            with entry.open() as stream:
                self.assertEqual(b'hello', stream.read())

    def test_zip_utf8_name(self):
        path = write_zip(self.root / 'a.zip', [('ä.txt', b'hello')])

        with ZipArchiveReader().open(path) as handle:
            self.assertFalse(handle.entries[0].non_utf8)

    def test_tar_reader(self):
        """
        Tests the `TarArchiveReader` with gzip compression.
        """
        path = write_tar(self.root / 'a.tar.gz', [('x.txt', b'hello')], mode='w:gz')
        reader = TarArchiveReader()
        self.assertTrue(reader.check_file(path))

        with reader.open(path) as handle:
            entry, = handle.entries
            self.assertEqual('x.txt', entry.name)
            self.assertEqual(5, entry.uncompressed_size)
            self.assertEqual(FIXED_MTIME, entry.modified_time)
            self.assertEqual(tarfile.REGTYPE, entry.flags)
            self.assertEqual(0o644, entry.external_attributes)
            self.assertIsNone(entry.crc32)

            with entry.open() as stream:
                self.assertEqual(b'hello', stream.read())

    def test_dispatching_reader(self):
        zip_path = write_zip(self.root / 'a.zip', [('x.txt', b'hello')])
        tar_path = write_tar(self.root / 'a.tar', [('x.txt', b'hello')])
        reader = DispatchingArchiveReader()

        with reader.open(zip_path) as handle:
            self.assertEqual(zipfile.ZIP_DEFLATED, handle.entries[0].compression_method)
        with reader.open(tar_path) as handle:
            self.assertIsNone(handle.entries[0].compression_method)

    def test_unsupported_file(self):
        path = self.root / 'a.txt'
        path.write_text('plain text')
        reader = DispatchingArchiveReader()

        self.assertFalse(reader.check_file(path))
        with self.assertRaises(ArchiveOpenError):
            reader.open(path)
        with self.assertRaises(ArchiveOpenError):
            ZipArchiveReader().open(path)

    def test_missing_file(self):
        with self.assertRaisesRegex(ArchiveOpenError, 'not found'):
            DispatchingArchiveReader().open(self.root / 'missing.zip')

    def test_zip_non_utf8_flag(self):
        """
        Bit 11 only decides the non-UTF8 flag for names that need a specific encoding.
        """
        def describe(name, flag_bits):
            info = zipfile.ZipInfo(name)
            info.flag_bits = flag_bits
            return ZipArchiveReader._describe(None, info)

        self.assertFalse(describe('x.txt', 0).non_utf8)
        self.assertFalse(describe('x.txt', 0x800).non_utf8)
        self.assertTrue(describe('ä.txt', 0).non_utf8)
        self.assertFalse(describe('ä.txt', 0x800).non_utf8)

        ascii_plain, ascii_flagged = describe('x.txt', 0), describe('x.txt', 0x800)
        self.assertEqual(ascii_plain.non_utf8, ascii_flagged.non_utf8)
        self.assertNotEqual(ascii_plain.flags, ascii_flagged.flags)

    def test_corrupted_compressed_tar(self):
        """
        Damage behind the first member only shows up while the member headers are decompressed.
        """
        path = write_tar(self.root / 'a.tar.xz',
                         [(f'member_{i:02d}.bin', os.urandom(4096)) for i in range(50)],
                         mode='w:xz')
        data = bytearray(path.read_bytes())
        middle = len(data) // 2
        for i in range(middle, middle + 64):
            data[i] ^= 0xFF
        path.write_bytes(bytes(data))

        with mock.patch.object(tarfile.TarFile, 'close', autospec=True,
                               side_effect=tarfile.TarFile.close) as close:
            with self.assertRaises(ArchiveOpenError):
                TarArchiveReader().open(path)

        # One close from the format check, one from the failed open.
        self.assertEqual(2, close.call_count)

    def test_close(self):
        path = write_zip(self.root / 'a.zip', [('x.txt', b'hello')])

        with ZipArchiveReader().open(path) as handle:
            archive = handle._archive
        self.assertIsNone(handle._archive)
        self.assertIsNone(archive.fp)


if __name__ == '__main__':
    unittest.main()
