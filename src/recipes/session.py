"""Per-document resolution session and deferred operation replay."""
from __future__ import annotations

import copy
import logging
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Protocol, Sequence, Set, Tuple

from errors import MetadataUnavailable
from common.logging_utils import extra_context, is_debug_enabled
from pom.markers import annotate_warning
from pom.tree import PomDocument
from registry.maven.failures import MetadataFailures
from versioning.cache import MetadataCache

logger = logging.getLogger(__name__)


class RepositoryClient(Protocol):
    """What a session needs from a Maven repository client."""

    def fetch_versions(self, group_id: str, artifact_id: str) -> Sequence[str]:
        ...

    def download_pom(self, group_id: str, artifact_id: str, version: str) -> str:
        ...


class DeferredOperation(ABC):
    """A tree change scheduled during a visit and applied after it."""

    description = "operation"
    # When True, a failure of this operation cancels everything scheduled after it
    guards_edits = False

    @abstractmethod
    def apply(self, session: "ResolutionSession") -> bool:
        """Apply against ``session.document``; return True when the tree changed."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.description}>"


class ResolutionSession:
    """State owned by the visit of one document.

    Holds the metadata cache, the downloaded ancestor POMs and the queue of
    operations scheduled while visiting. Nothing here is shared with the
    session of another document.
    """

    def __init__(
        self,
        document: PomDocument,
        client: RepositoryClient,
        failures: Optional[MetadataFailures] = None,
    ):
        self.document = document
        self.client = client
        self.failures = failures if failures is not None else MetadataFailures()
        self.metadata_cache = MetadataCache()
        self.pom_cache: Dict[Tuple[str, str, str], PomDocument] = {}
        self.pending: List[DeferredOperation] = []
        self.applied: List[DeferredOperation] = []
        # group:artifact pairs whose explicit versions were pinned or kept on purpose
        self.retained_dependencies: Set[Tuple[str, str]] = set()
        self.aborted: Optional[MetadataUnavailable] = None

    def fetch_versions(self, group_id: str, artifact_id: str) -> Sequence[str]:
        return self.client.fetch_versions(group_id, artifact_id)

    def load_pom(self, group_id: str, artifact_id: str, version: str) -> PomDocument:
        """Download and parse a POM once per session.

        Raises:
            MetadataUnavailable: when it cannot be downloaded or parsed.
        """
        key = (group_id, artifact_id, version)
        cached = self.pom_cache.get(key)
        if cached is not None:
            return cached

        def download() -> PomDocument:
            text = self.client.download_pom(group_id, artifact_id, version)
            try:
                return PomDocument.parse(text)
            except ET.ParseError as exc:
                raise MetadataUnavailable(group_id, artifact_id, f"unparseable POM: {exc}",
                                          version=version) from exc

        pom = self.failures.insert_rows(download)
        self.pom_cache[key] = pom
        return pom

    def do_after_visit(self, operation: DeferredOperation) -> None:
        self.pending.append(operation)

    def apply_pending(self) -> int:
        """Replay scheduled operations in order.

        An operation that needs unavailable metadata is skipped with a warning
        on the document. When that operation guards the parent edits, the
        document is restored to its state before replay, the remaining
        operations are dropped and :attr:`aborted` holds the error. Otherwise
        the remaining operations still run.

        Returns:
            The number of operations that changed the tree.
        """
        self.aborted = None
        snapshot = copy.deepcopy(self.document.root)
        replayed_from = len(self.applied)
        changed = 0
        while self.pending:
            operation = self.pending.pop(0)
            try:
                did_change = operation.apply(self)
            except MetadataUnavailable as exc:
                if operation.guards_edits:
                    logger.warning("Cancelling %d scheduled operation(s) after %s failed",
                                   len(self.pending), operation.description)
                    self.document.root = snapshot
                    self.pending.clear()
                    del self.applied[replayed_from:]
                    self.aborted = exc
                    changed = 0
                anchor = self.document.parent_tag
                annotate_warning(self.document, anchor if anchor is not None else self.document.root, exc)
                continue
            self.applied.append(operation)
            if did_change:
                changed += 1
            if is_debug_enabled(logger):
                logger.debug(
                    "Applied deferred operation",
                    extra=extra_context(event="apply", component="session",
                                        action=operation.description,
                                        outcome="changed" if did_change else "unchanged",
                                        target=self.document.path)
                )
        return changed
