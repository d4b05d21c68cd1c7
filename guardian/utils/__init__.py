"""Utilities module for common helper functions.

This module contains:
- Atomic file writes
- Ignore file handling (.pgignore)
"""

from guardian.utils.fs import atomic_write, atomic_write_text
from guardian.utils.ignore import IgnoreRules, IgnoreRule, get_ignore_rules

__all__ = [
    'atomic_write', 'atomic_write_text',
    'IgnoreRules', 'IgnoreRule', 'get_ignore_rules',
]
