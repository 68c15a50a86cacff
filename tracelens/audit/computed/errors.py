"""Errors raised by the computed-artifact engine.

These signal programming defects in artifact declarations. Failures of the
producers themselves are never wrapped: they propagate unchanged.
"""


class ComputedArtifactError(Exception):
    """Base class for computed-artifact misuse."""
    pass


class MissingDependencyError(ComputedArtifactError):
    """A request did not supply a dependency the artifact declares."""

    def __init__(self, artifact_name: str, missing: list):
        self.artifact_name = artifact_name
        self.missing = list(missing)
        super().__init__(
            f"{artifact_name} requires dependencies that were not provided: {', '.join(self.missing)}"
        )


class UndeclaredDependencyError(ComputedArtifactError, KeyError):
    """A producer read an input it did not declare."""

    def __init__(self, owner: str, key: str):
        self.owner = owner
        self.key = key
        super().__init__(f"{owner} accessed undeclared dependency '{key}'")

    def __str__(self) -> str:
        return self.args[0]


class CyclicDependencyError(ComputedArtifactError):
    """An artifact requested itself, directly or transitively."""

    def __init__(self, chain: list):
        self.chain = list(chain)
        super().__init__(f"Cyclic computed artifact dependency: {' -> '.join(self.chain)}")
