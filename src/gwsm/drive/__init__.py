"""
Drive v3: files, permissions, recursive listing and folder migration.
"""

from . import files, permissions, special, migrate
