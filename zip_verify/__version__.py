"""
Package metadata.
"""

__title__ = 'zip-verify'
__description__ = 'Verifies that one archive is contained entry-for-entry in another.'
__version__ = '0.1.0'
__author__ = 'zip-verify contributors'
__license__ = 'MIT'
__copyright__ = 'Copyright 2026 zip-verify contributors'
