"""Analysis engine package for tracelens.

This package provides the computed-artifact engine, entity classification of
network requests, and the audits built on top of them.
"""

from .config import AnalysisConfig, ConfigurationError, get_config, load_config
from .computed import (
    ComputedArtifact,
    ComputedContext,
    EntityClassification,
    NetworkRecords,
    make_computed_artifact,
)
from .entities import KnownEntityReference
from .models import (
    Artifacts,
    DevtoolsLogEntry,
    Entity,
    EntityClassificationResult,
    NetworkRecord,
    PageURL,
    load_devtools_log,
)
from .utils import get_root_domain, is_valid_url

__all__ = [
    # Configuration
    'AnalysisConfig',
    'ConfigurationError',
    'get_config',
    'load_config',

    # Engine
    'ComputedArtifact',
    'ComputedContext',
    'make_computed_artifact',
    'NetworkRecords',
    'EntityClassification',

    # Reference data
    'KnownEntityReference',

    # Models
    'Artifacts',
    'DevtoolsLogEntry',
    'Entity',
    'EntityClassificationResult',
    'NetworkRecord',
    'PageURL',
    'load_devtools_log',

    # Utilities
    'get_root_domain',
    'is_valid_url',
]
