"""Entity models for grouping network requests by the organization serving them.

Entities compare and hash by identity: the classification guarantees that a
canonical key (root domain, extension origin or reference-dataset name)
resolves to one instance per run, so entities can be used directly as
grouping keys.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple


CHROME_EXTENSION_CATEGORY = "Chrome Extension"


@dataclass(eq=False)
class Entity:
    """An organization associated with one or more domains."""

    name: str
    company: str
    category: str = ""
    categories: List[str] = field(default_factory=list)
    domains: List[str] = field(default_factory=list)
    homepage: Optional[str] = None
    is_unrecognized: bool = False

    # Counters owned by downstream consumers
    average_execution_time: float = 0.0
    total_execution_time: float = 0.0
    total_occurrences: int = 0

    key: str = ""

    def __post_init__(self):
        if not self.key:
            self.key = self.name

    @property
    def is_chrome_extension(self) -> bool:
        return self.category == CHROME_EXTENSION_CATEGORY

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the entity, omitting unset optional fields."""
        data: Dict[str, Any] = {
            "key": self.key,
            "name": self.name,
            "company": self.company,
            "category": self.category,
            "categories": list(self.categories),
            "domains": list(self.domains),
            "average_execution_time": self.average_execution_time,
            "total_execution_time": self.total_execution_time,
            "total_occurrences": self.total_occurrences,
        }
        if self.homepage is not None:
            data["homepage"] = self.homepage
        if self.is_unrecognized:
            data["is_unrecognized"] = True
        return data


class EntityClassificationResult:
    """Read-only outcome of classifying every request URL of a run.

    Attributes:
        entity_by_url: Request URL to its entity (classified URLs only)
        urls_by_entity: Entity to the URLs attributed to it
        first_party: Entity of the analyzed page, or None
    """

    def __init__(self,
                 entity_by_url: Mapping[str, Entity],
                 urls_by_entity: Mapping[Entity, Iterable[str]],
                 first_party: Optional[Entity]):
        self.entity_by_url: Mapping[str, Entity] = MappingProxyType(dict(entity_by_url))
        self.urls_by_entity: Mapping[Entity, FrozenSet[str]] = MappingProxyType({
            entity: frozenset(urls) for entity, urls in urls_by_entity.items()
        })
        self.first_party = first_party

    def is_first_party(self, url: str) -> bool:
        """Check whether a URL's entity is the first-party entity.

        Compares by identity, so with no first party every unclassified URL
        matches.
        """
        return self.entity_by_url.get(url) is self.first_party

    @property
    def entities(self) -> Tuple[Entity, ...]:
        """Distinct entities in order of first classification."""
        return tuple(self.urls_by_entity.keys())

    @property
    def third_party_entities(self) -> Tuple[Entity, ...]:
        return tuple(e for e in self.urls_by_entity if e is not self.first_party)

    def get_entity_by_key(self, key: str) -> Optional[Entity]:
        """Look up an entity by its canonical key."""
        for entity in self.urls_by_entity:
            if entity.key == key:
                return entity
        if self.first_party is not None and self.first_party.key == key:
            return self.first_party
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Structural summary, comparable across runs."""
        return {
            "first_party": self.first_party.key if self.first_party else None,
            "entities": [
                {**entity.to_dict(), "urls": sorted(urls)}
                for entity, urls in self.urls_by_entity.items()
            ],
            "entity_by_url": {url: entity.key for url, entity in self.entity_by_url.items()},
        }

    def __repr__(self) -> str:
        first_party = self.first_party.key if self.first_party else None
        return (f"EntityClassificationResult(urls={len(self.entity_by_url)}, "
                f"entities={len(self.urls_by_entity)}, first_party={first_party!r})")
