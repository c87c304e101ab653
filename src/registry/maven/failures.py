"""Ledger of metadata download failures, kept for end-of-run reporting."""
from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Optional, TypeVar

from errors import MetadataUnavailable
from common.logging_utils import extra_context

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class MetadataFailure:
    """One failed download."""
    group_id: str
    artifact_id: str
    version: Optional[str]
    repository: Optional[str]
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class MetadataFailures:
    """Collects failures across every document of a run."""

    def __init__(self):
        self.rows: List[MetadataFailure] = []

    def __len__(self) -> int:
        return len(self.rows)

    def record(self, error: MetadataUnavailable) -> None:
        self.rows.append(MetadataFailure(
            group_id=error.group_id,
            artifact_id=error.artifact_id,
            version=error.version,
            repository=error.repository,
            reason=error.reason,
        ))
        logger.warning(
            "Metadata unavailable for %s: %s",
            error.coordinates,
            error.reason,
            extra=extra_context(event="metadata_failure", component="failures",
                                target=error.coordinates, outcome="recorded")
        )

    def insert_rows(self, call: Callable[[], T]) -> T:
        """Run ``call``; record and re-raise any MetadataUnavailable it raises."""
        try:
            return call()
        except MetadataUnavailable as exc:
            self.record(exc)
            raise
