"""Known-entity reference data."""

from .known import (
    DEFAULT_DATASET_PATH,
    KnownEntityDatasetError,
    KnownEntityRecord,
    KnownEntityReference,
)

__all__ = [
    'DEFAULT_DATASET_PATH',
    'KnownEntityDatasetError',
    'KnownEntityRecord',
    'KnownEntityReference',
]
