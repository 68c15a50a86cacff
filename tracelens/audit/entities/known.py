"""Reference dataset of known third-party entities.

Loads organization records from YAML and resolves request URLs to them by
hostname. Each record is materialized as exactly one ``Entity`` instance, so
repeated lookups for hosts of the same organization return the same object.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlsplit

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..models.entity import Entity


logger = logging.getLogger(__name__)

DEFAULT_DATASET_PATH = Path(__file__).parent / "data" / "entities.yaml"


class KnownEntityDatasetError(Exception):
    """Raised when the known-entity dataset cannot be loaded."""
    pass


class KnownEntityRecord(BaseModel):
    """One organization entry of the dataset."""

    name: str = Field(description="Entity display name")
    company: Optional[str] = Field(default=None, description="Owning company")
    homepage: Optional[str] = Field(default=None, description="Entity homepage")
    category: str = Field(default="", description="Primary category")
    categories: List[str] = Field(default_factory=list, description="Category tags")
    domains: List[str] = Field(default_factory=list, description="Owned domains")

    @field_validator('domains')
    @classmethod
    def validate_domains(cls, v):
        """Lowercase domains and reject empty patterns."""
        cleaned = []
        for domain in v:
            domain = domain.strip().lower()
            if not domain or domain == '*.':
                raise ValueError("Entity domains must be non-empty")
            cleaned.append(domain)
        return cleaned

    def to_entity(self) -> Entity:
        return Entity(
            name=self.name,
            company=self.company or self.name,
            homepage=self.homepage,
            category=self.category or (self.categories[0] if self.categories else ""),
            categories=list(self.categories),
            domains=list(self.domains),
        )


class KnownEntityReference:
    """Hostname-based lookup of known organizations.

    Plain domains match the exact host; ``*.``-prefixed domains match the
    domain and every subdomain. The most specific match wins.
    """

    def __init__(self, records: List[KnownEntityRecord]):
        self._entities: Dict[str, Entity] = {}
        self._exact: Dict[str, Entity] = {}
        self._wildcard: Dict[str, Entity] = {}

        for record in records:
            if record.name in self._entities:
                logger.warning(f"Duplicate known entity '{record.name}' ignored")
                continue

            entity = record.to_entity()
            self._entities[record.name] = entity

            for domain in record.domains:
                if domain.startswith('*.'):
                    table, pattern = self._wildcard, domain[2:]
                else:
                    table, pattern = self._exact, domain

                if pattern in table:
                    logger.warning(
                        f"Domain '{domain}' of '{record.name}' already belongs to "
                        f"'{table[pattern].name}', ignoring"
                    )
                    continue
                table[pattern] = entity

        logger.debug(f"Loaded {len(self._entities)} known entities")

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "KnownEntityReference":
        """Build the reference from parsed dataset content."""
        if not isinstance(data, dict) or not isinstance(data.get('entities', []), list):
            raise KnownEntityDatasetError("Dataset must be a mapping with an 'entities' list")

        try:
            records = [KnownEntityRecord.model_validate(item) for item in data.get('entities', [])]
        except ValidationError as e:
            raise KnownEntityDatasetError(f"Invalid entity record: {e}") from e

        return cls(records)

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "KnownEntityReference":
        """Load the reference from a YAML file (the bundled dataset by default).

        Raises:
            KnownEntityDatasetError: If the file cannot be read or is invalid
        """
        dataset_path = Path(path) if path else DEFAULT_DATASET_PATH

        try:
            with open(dataset_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise KnownEntityDatasetError(f"Failed to load known entities from {dataset_path}: {e}") from e

        return cls.from_data(data)

    def __len__(self) -> int:
        return len(self._entities)

    def __call__(self, url: str) -> Optional[Entity]:
        return self.get_entity(url)

    def get_entity(self, url: str) -> Optional[Entity]:
        """Resolve a URL to its known entity, if any."""
        try:
            hostname = urlsplit(url).hostname
        except (ValueError, AttributeError):
            return None

        if not hostname:
            return None

        exact = self._exact.get(hostname)
        if exact is not None:
            return exact

        labels = hostname.split('.')
        for i in range(len(labels)):
            entity = self._wildcard.get('.'.join(labels[i:]))
            if entity is not None:
                return entity

        return None

    def get_entity_by_name(self, name: str) -> Optional[Entity]:
        return self._entities.get(name)

    @property
    def entities(self) -> List[Entity]:
        return list(self._entities.values())
