"""
Spruce - connection-scoped resource lifecycle and module extensions
for relational databases.

Everything lives in :mod:`spruce.core`; the names are re-exported here.
"""

__version__ = "0.1.0"

from spruce.core import *  # noqa
