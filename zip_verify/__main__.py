"""
Command-line interface to the zip-verify module.
"""

import argparse
import hashlib
import logging
import pathlib as pl
import sys

from zip_verify.archive_differ import ArchiveDiffer
from zip_verify.archive_reader import ArchiveOpenError
from zip_verify.cli_output import ResultPrinter

logger = logging.getLogger('zip_verify')

HASH_ALGORITHMS = sorted(name for name in hashlib.algorithms_guaranteed
                         if not name.startswith('shake_'))


def _setup_logging(verbose: bool) -> None:
    """
    Sends the package log records to the standard error stream.
    :param verbose: True to show debug records.
    """
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    logger.addHandler(console_handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    """
    :return: Parser for the command line arguments of zip-verify.
    """
    parser = argparse.ArgumentParser(
        'zip-verify',
        description='''Checks that every entry of the first archive exists in the second archive
        with identical metadata and content.''')
    parser.add_argument('files',
                        type=pl.Path,
                        nargs='*',
                        metavar='FILE',
                        help='Reference archive followed by the candidate archive.')
    parser.add_argument('--hash-algorithm',
                        required=False,
                        choices=HASH_ALGORITHMS,
                        default='sha256',
                        help='Hash algorithm used for content equality comparison.')
    parser.add_argument('--verbose', '-v',
                        action='store_true',
                        help='Print debug output and a line on success.')
    return parser


def main(argv=None) -> int:
    """
    Main method that handles the command line interface of zip-verify.

    :param argv: Arguments without the program name, defaults to `sys.argv[1:]`.
    :return: 0 if the archives match, 1 on the first difference or if an archive cannot be opened.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if len(args.files) < 2:
        parser.error('not enough arguments')
    if len(args.files) > 2:
        parser.error('too many arguments')

    _setup_logging(args.verbose)
    printer = ResultPrinter(verbose=args.verbose)

    differ = ArchiveDiffer(hash_algorithm=args.hash_algorithm)
    try:
        result = differ.compute_diff(args.files[0], args.files[1])
    except ArchiveOpenError as error:
        printer.print_error(error)
        return 1

    printer.print_result(result)
    return 0 if result.ok else 1


if __name__ == '__main__':
    sys.exit(main())
