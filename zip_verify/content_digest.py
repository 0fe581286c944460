"""
Content digests of entry streams.
"""

from __future__ import annotations

import functools
import hashlib as hl
import logging

logger = logging.getLogger(__name__)


class ContentHasher:
    """
    Digests entry streams in a single linear pass, so two entries never have to be held in memory
    or read in lockstep.
    """

    def __init__(self, hash_algorithm: str = 'sha256', hash_buffer_size=128 * 1024):
        """
        :param hash_algorithm: `hashlib` algorithm with a fixed digest size.
        :param hash_buffer_size: Size of the chunks read from the streams.
        :raises ValueError: If the algorithm is unknown or has a variable digest size (shake).
        """
        if hl.new(hash_algorithm).digest_size == 0:
            raise ValueError(f'{hash_algorithm} has no fixed digest size.')
        self.hash_algorithm = hash_algorithm
        self.hash_buffer_size = hash_buffer_size

    def __repr__(self):
        return f'ContentHasher({self.hash_algorithm})'

    def compute_hash(self, stream) -> str:
        """
        :param stream: Binary stream, read until exhausted.
        :return: Hex digest of everything read from the stream.
        """
        digest = hl.new(self.hash_algorithm)
        total = 0
        for chunk in iter(functools.partial(stream.read, self.hash_buffer_size), b''):
            digest.update(chunk)
            total += len(chunk)
        logger.debug('%s over %d bytes', self.hash_algorithm, total)
        return digest.hexdigest()
