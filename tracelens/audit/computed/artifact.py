"""Computed artifact base class.

A computed artifact is a named producer with a declared list of dependency
names. Callers never invoke the producer directly: ``request`` routes through
a run-scoped ``ComputedContext`` that memoizes the outcome per unique input.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Iterator, Mapping, Optional, Sequence, Tuple, Union

from .errors import MissingDependencyError, UndeclaredDependencyError

if TYPE_CHECKING:
    from .context import ComputedContext


_MISSING = object()


class ComputedInputs(Mapping):
    """Read-only view over the declared dependencies of one request.

    Reading a key outside the declaration raises ``UndeclaredDependencyError``
    instead of returning a default.
    """

    def __init__(self, owner: str, values: Dict[str, Any]):
        self._owner = owner
        self._values = dict(values)

    def __getitem__(self, key: str) -> Any:
        if key not in self._values:
            raise UndeclaredDependencyError(self._owner, key)
        return self._values[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self[key]

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ComputedInputs({self._owner}, keys={sorted(self._values)})"


class ComputedArtifact(ABC):
    """Abstract base class for memoized derived artifacts.

    Subclasses set a unique ``name`` and the ``dependency_keys`` they read.
    With ``dependency_keys=None`` the requested value is handed to
    ``compute`` as is.
    """

    def __init__(self, name: str, dependency_keys: Optional[Sequence[str]] = None):
        self._name = name
        self._dependency_keys = tuple(dependency_keys) if dependency_keys is not None else None

    @property
    def name(self) -> str:
        """Unique name for this artifact."""
        return self._name

    @property
    def dependency_keys(self) -> Optional[Tuple[str, ...]]:
        """Names of the dependencies this artifact reads."""
        return self._dependency_keys

    @abstractmethod
    def compute(self, data: Any, context: "ComputedContext") -> Union[Any, Awaitable[Any]]:
        """Produce the artifact from its inputs."""
        ...

    def select_inputs(self, data: Any) -> Any:
        """Restrict a request to the declared dependencies.

        ``data`` may be a mapping or an object exposing the dependencies as
        attributes. Undeclared extras are dropped so they never affect the
        cache key.

        Raises:
            MissingDependencyError: If a declared dependency is absent
        """
        if self._dependency_keys is None:
            return data

        values = {}
        missing = []
        for key in self._dependency_keys:
            if isinstance(data, Mapping):
                value = data[key] if key in data else _MISSING
            else:
                value = getattr(data, key, _MISSING)

            if value is _MISSING:
                missing.append(key)
            else:
                values[key] = value

        if missing:
            raise MissingDependencyError(self._name, missing)

        return ComputedInputs(self._name, values)

    async def request(self, data: Any, context: "ComputedContext") -> Any:
        """Return the artifact for ``data``, computing it at most once per context."""
        return await context.request(self, data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, dependency_keys={self._dependency_keys!r})"


class FunctionArtifact(ComputedArtifact):
    """Computed artifact backed by a plain function."""

    def __init__(self, name: str, compute_fn: Callable[[Any, "ComputedContext"], Any],
                 dependency_keys: Optional[Sequence[str]] = None):
        super().__init__(name, dependency_keys)
        self._compute_fn = compute_fn

    def compute(self, data: Any, context: "ComputedContext") -> Union[Any, Awaitable[Any]]:
        return self._compute_fn(data, context)


def make_computed_artifact(name: str,
                           compute_fn: Callable[[Any, "ComputedContext"], Any],
                           dependency_keys: Optional[Sequence[str]] = None) -> ComputedArtifact:
    """Wrap a sync or async function as a computed artifact.

    Example:
        >>> Doubled = make_computed_artifact("Doubled", lambda data, ctx: data["n"] * 2, ["n"])
        >>> await Doubled.request({"n": 2}, context)
        4
    """
    return FunctionArtifact(name, compute_fn, dependency_keys)
