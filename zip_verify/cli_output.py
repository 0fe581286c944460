"""
Helper to display comparison results on the command line.
"""

import sys

from zip_verify.entry_data import ComparisonResult


class ResultPrinter:
    """
    Utility to print comparison results. Successful comparisons print nothing unless `verbose` is
    set.
    """

    def __init__(self, verbose=False, output=None):
        """
        :param verbose: True to also print a line for successful comparisons.
        :param output: Output stream to write to, defaults to the standard error stream.
        """
        self.verbose = verbose
        self.output = output

    def line(self, *args):
        """
        Prints a line to the configured output stream.
        :param args: line contents
        """
        print(*args, file=self.output if self.output is not None else sys.stderr)

    def print_result(self, result: ComparisonResult):
        """
        Prints the first failure of a comparison.
        :param result: Result to print.
        """
        if result.ok and not self.verbose:
            return
        self.line(result.message)

    def print_error(self, error: Exception):
        """
        Prints an error that aborted the comparison.
        :param error: Error to print.
        """
        self.line(f'error: {error}')

