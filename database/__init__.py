"""
Database package for the ServiceRig dashboard.
Provides the in-memory mock store, record vocabulary and seed/import helpers.
"""

from database.store import MockStore
from database.seed import (
    build_default_data,
    seed_store,
    import_collection,
    import_folder,
    merge_into_folder,
)

__all__ = [
    'MockStore',
    'build_default_data',
    'seed_store',
    'import_collection',
    'import_folder',
    'merge_into_folder',
]
