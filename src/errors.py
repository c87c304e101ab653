"""Error taxonomy for parent resolution.

Validation errors are raised before any document is touched. Metadata errors
are plain tagged values: callers catch them at the parent-tag boundary and
turn them into warnings with :func:`pom.markers.annotate_warning`.
"""
from __future__ import annotations

from typing import List, Optional, Sequence


class ParentPomError(Exception):
    """Base class for all errors raised by this project."""


class InvalidConstraint(ParentPomError, ValueError):
    """A version constraint or version pattern could not be parsed."""

    def __init__(self, expression: Optional[str], pattern: Optional[str] = None, reason: str = ""):
        self.expression = expression
        self.pattern = pattern
        self.reason = reason
        message = f"invalid version constraint {expression!r}"
        if pattern is not None:
            message += f" with pattern {pattern!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class InvalidRetainEntry(ParentPomError, ValueError):
    """A retain-versions entry is not a two- or three-part GAV."""

    def __init__(self, index: int, entry: str):
        self.index = index
        self.entry = entry
        super().__init__(f"retainVersions[{index}] did not look like a two-or-three-part GAV: {entry!r}")


class ValidationError(ParentPomError):
    """Collects every validation failure found for a set of options."""

    def __init__(self, errors: Sequence[ParentPomError]):
        self.errors: List[ParentPomError] = list(errors)
        super().__init__("; ".join(str(e) for e in self.errors))


class MetadataUnavailable(ParentPomError):
    """Remote metadata (versions or a POM) could not be fetched or parsed."""

    def __init__(
        self,
        group_id: str,
        artifact_id: str,
        reason: str,
        *,
        version: Optional[str] = None,
        repository: Optional[str] = None,
    ):
        self.group_id = group_id
        self.artifact_id = artifact_id
        self.version = version
        self.repository = repository
        self.reason = reason
        super().__init__(f"Unable to download metadata for {self.coordinates}: {reason}")

    @property
    def coordinates(self) -> str:
        """Return ``group:artifact[:version]`` for messages and ledger rows."""
        if self.version:
            return f"{self.group_id}:{self.artifact_id}:{self.version}"
        return f"{self.group_id}:{self.artifact_id}"
