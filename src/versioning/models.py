"""Data models for parent resolution."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from versioning.semver import VersionComparator


class ParentState(Enum):
    """Lifecycle of one matched parent tag."""
    UNMATCHED = "unmatched"
    MATCHED = "matched"
    RESOLVING = "resolving"
    NO_CHANGE = "no_change"
    PLAN_BUILT = "plan_built"
    IDLE = "idle"
    SCHEDULED = "scheduled"
    APPLIED = "applied"
    WARNED = "warned"


@dataclass(frozen=True)
class ParentReference:
    """Snapshot of a document's ``<parent>`` declaration.

    ``relative_path`` is None when the element is absent and "" when it is
    present but empty.
    """
    group_id: str
    artifact_id: str
    version: str
    relative_path: Optional[str] = None

    @property
    def gav(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version}"


@dataclass(frozen=True)
class TargetIdentity:
    """Fully populated target for a parent change."""
    group_id: str
    artifact_id: str
    constraint: VersionComparator
    relative_path: Optional[str] = None


@dataclass(frozen=True)
class RetainedVersion:
    """A GAV whose explicit dependency version must survive the change."""
    group_id: str
    artifact_id: str
    version: Optional[str] = None

    @classmethod
    def parse(cls, gav: str) -> "RetainedVersion":
        """Parse ``group:artifact[:version]``; callers validate the segment count first."""
        parts = gav.strip().split(":")
        version = parts[2] if len(parts) > 2 and parts[2] else None
        return cls(parts[0], parts[1], version)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.group_id, self.artifact_id)
