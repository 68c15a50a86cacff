"""Computed artifacts and the run-scoped dependency cache.

Artifacts declare the dependencies they read and are requested through a
``ComputedContext``, which memoizes each unique request for the lifetime of
one analysis run.
"""

from .errors import (
    ComputedArtifactError,
    MissingDependencyError,
    UndeclaredDependencyError,
    CyclicDependencyError,
)
from .artifact import (
    ComputedArtifact,
    ComputedInputs,
    FunctionArtifact,
    make_computed_artifact,
)
from .context import (
    CacheEntry,
    CacheStats,
    ComputedContext,
    EntryState,
    fingerprint,
)
from .network_records import NetworkRecorder, NetworkRecords
from .entity_classification import (
    EntityClassification,
    classify_url,
    make_up_an_entity,
    preload_chrome_extensions,
)

__all__ = [
    # Errors
    'ComputedArtifactError',
    'MissingDependencyError',
    'UndeclaredDependencyError',
    'CyclicDependencyError',

    # Engine
    'ComputedArtifact',
    'ComputedInputs',
    'FunctionArtifact',
    'make_computed_artifact',
    'CacheEntry',
    'CacheStats',
    'ComputedContext',
    'EntryState',
    'fingerprint',

    # Artifacts
    'NetworkRecorder',
    'NetworkRecords',
    'EntityClassification',
    'classify_url',
    'make_up_an_entity',
    'preload_chrome_extensions',
]
