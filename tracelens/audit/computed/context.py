"""Run-scoped dependency cache for computed artifacts.

A ``ComputedContext`` is created at the start of an analysis run, threaded
explicitly through every artifact request, and discarded at the end of the
run. It maps ``(artifact name, input fingerprint)`` to the task computing
that artifact, which gives:

- at most one producer invocation per unique input (single-flight: the
  in-flight task itself is the cache entry),
- the same result, or the same exception, for every requester of a key,
- shared sub-computations across sibling consumers, since producers request
  their own dependencies through the same context.

The context is bound to one event loop and one run; it is not shared across
runs or threads.
"""

import asyncio
import hashlib
import inspect
import json
import logging
import time
from contextvars import ContextVar
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import tldextract
from pydantic import BaseModel

from ..config import AnalysisConfig
from ..entities.known import KnownEntityReference
from ..models.entity import Entity
from ..utils.url_utils import create_extractor
from .artifact import ComputedArtifact
from .errors import CyclicDependencyError


logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str]

EntityLookup = Callable[[str], Optional[Entity]]

# Keys currently being computed along the calling task's request chain
_ACTIVE_CHAIN: ContextVar[Tuple[CacheKey, ...]] = ContextVar("tracelens_computed_chain", default=())


def _fingerprint_default(value: Any) -> Any:
    """JSON fallback for values found in artifact inputs."""
    if isinstance(value, BaseModel):
        return _canonical(value.model_dump(mode='json'))
    if isinstance(value, Mapping):
        return _canonical(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, 'to_dict'):
        return _canonical(value.to_dict())
    return str(value)


def _canonical(value: Any) -> Any:
    """Give every mapping string keys so ``sort_keys`` can order them."""
    if isinstance(value, Mapping):
        return {
            key if isinstance(key, str) else f"{type(key).__name__}:{key!r}": _canonical(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_canonical(item) for item in value]
    return value


def fingerprint(inputs: Any) -> str:
    """Structural fingerprint of artifact inputs.

    Inputs that are equal field by field produce the same fingerprint,
    regardless of object identity or mapping order. Mapping keys of any
    hashable type are accepted.
    """
    key_str = json.dumps(_canonical(inputs), sort_keys=True, default=_fingerprint_default)
    return hashlib.md5(key_str.encode()).hexdigest()


class EntryState(str, Enum):
    """Lifecycle of a cache entry."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class CacheStats:
    """Cache bookkeeping for one run."""
    hits: int = 0
    misses: int = 0
    failures: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total_requests = self.hits + self.misses
        if total_requests == 0:
            return 0.0
        return self.hits / total_requests


@dataclass
class CacheEntry:
    """A single in-flight or settled computation."""
    artifact_name: str
    fingerprint: str
    task: "asyncio.Task[Any]"
    created_at: float = field(default_factory=time.time)
    hits: int = 0

    @property
    def state(self) -> EntryState:
        if not self.task.done():
            return EntryState.PENDING
        if self.task.cancelled() or self.task.exception() is not None:
            return EntryState.FAILED
        return EntryState.COMPLETED


def _consume_exception(task: "asyncio.Task[Any]") -> None:
    # Requesters re-raise failures themselves
    if not task.cancelled():
        task.exception()


class ComputedContext:
    """Dependency cache and collaborators for one analysis run."""

    def __init__(self,
                 config: Optional[AnalysisConfig] = None,
                 entity_lookup: Optional[EntityLookup] = None):
        """Initialize a run context.

        Args:
            config: Analysis configuration (defaults when omitted)
            entity_lookup: Known-entity lookup ``url -> Entity | None``;
                loaded from the configured dataset when omitted
        """
        self.config = config or AnalysisConfig()
        self._entity_lookup = entity_lookup
        self._cache: Dict[CacheKey, CacheEntry] = {}
        self.stats = CacheStats()
        self._closed = False

    @property
    def entity_lookup(self) -> EntityLookup:
        """Known-entity reference for this run."""
        if self._entity_lookup is None:
            self._entity_lookup = KnownEntityReference.load(self.config.known_entities_path)
        return self._entity_lookup

    @property
    def root_domain_extractor(self) -> tldextract.TLDExtract:
        return create_extractor(self.config.include_private_suffixes)

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._cache)

    async def request(self, artifact: ComputedArtifact, data: Any) -> Any:
        """Return ``artifact`` computed from ``data``, computing it at most once.

        Args:
            artifact: Artifact to produce
            data: Inputs naming the artifact's declared dependencies

        Returns:
            The producer's result, shared by all requesters of the same key

        Raises:
            MissingDependencyError: If ``data`` lacks a declared dependency
            CyclicDependencyError: If the artifact is already being computed
                along the caller's own request chain
            Exception: Whatever the producer raised, replayed to every requester
        """
        if self._closed:
            raise RuntimeError("ComputedContext is closed")

        inputs = artifact.select_inputs(data)
        key = (artifact.name, fingerprint(inputs))

        chain = _ACTIVE_CHAIN.get()
        if key in chain:
            cycle = [name for name, _ in chain[chain.index(key):]] + [artifact.name]
            raise CyclicDependencyError(cycle)

        entry = self._cache.get(key)
        if entry is None:
            self.stats.misses += 1
            logger.debug(f"Cache miss for {artifact.name} ({key[1][:8]}), computing")

            task = asyncio.ensure_future(self._compute(artifact, inputs, chain + (key,)))
            task.add_done_callback(_consume_exception)
            entry = CacheEntry(artifact_name=artifact.name, fingerprint=key[1], task=task)
            self._cache[key] = entry
        else:
            self.stats.hits += 1
            entry.hits += 1
            logger.debug(f"Cache hit for {artifact.name} ({key[1][:8]}, {entry.state.value})")

        # Cancelling one requester must not cancel the shared computation
        return await asyncio.shield(entry.task)

    async def _compute(self, artifact: ComputedArtifact, inputs: Any,
                       chain: Tuple[CacheKey, ...]) -> Any:
        """Run the producer inside its own request chain."""
        _ACTIVE_CHAIN.set(chain)
        start_time = time.perf_counter()

        try:
            result = artifact.compute(inputs, self)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            self.stats.failures += 1
            logger.warning(f"Computed artifact {artifact.name} failed: {type(e).__name__}: {e}")
            raise

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(f"Computed {artifact.name} in {elapsed_ms:.1f}ms")
        return result

    def get_status(self) -> Dict[str, Dict[str, Any]]:
        """Get status of all cache entries for debugging.

        Returns:
            Dict mapping ``name:fingerprint`` to entry information
        """
        return {
            f"{entry.artifact_name}:{entry.fingerprint[:8]}": {
                'artifact': entry.artifact_name,
                'state': entry.state.value,
                'hits': entry.hits,
                'created_at': entry.created_at,
            }
            for entry in self._cache.values()
        }

    def close(self) -> None:
        """Discard the cache, cancelling computations still in flight."""
        pending = 0
        for entry in self._cache.values():
            if not entry.task.done():
                entry.task.cancel()
                pending += 1

        self._cache.clear()
        self._closed = True
        logger.debug(f"ComputedContext closed ({pending} pending computations cancelled)")

    async def __aenter__(self) -> "ComputedContext":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()
