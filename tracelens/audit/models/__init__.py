"""Audit data models package."""

from .devtools import (
    ResourceType,
    DevtoolsLogEntry,
    DevtoolsLog,
    PageURL,
    NetworkRecord,
    AnchorElement,
    Artifacts,
    parse_devtools_log,
    load_devtools_log,
)

from .entity import (
    CHROME_EXTENSION_CATEGORY,
    Entity,
    EntityClassificationResult,
)

__all__ = [
    # Devtools models
    'ResourceType',
    'DevtoolsLogEntry',
    'DevtoolsLog',
    'PageURL',
    'NetworkRecord',
    'AnchorElement',
    'Artifacts',
    'parse_devtools_log',
    'load_devtools_log',

    # Entity models
    'CHROME_EXTENSION_CATEGORY',
    'Entity',
    'EntityClassificationResult',
]
