"""Selects the version a parent reference should move to."""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled
from registry.maven.failures import MetadataFailures
from versioning.cache import MetadataCache
from versioning.semver import VersionComparator, is_version

logger = logging.getLogger(__name__)

VersionFetcher = Callable[[str, str], Iterable[str]]


def normalize_current(current_version: Optional[str]) -> str:
    """Return ``current_version`` or the sentinel minimum when it is not a version token."""
    if current_version and is_version(current_version):
        return current_version
    return Constants.MIN_VERSION


def resolve_version(
    group_id: str,
    artifact_id: str,
    current_version: Optional[str],
    constraint: VersionComparator,
    *,
    allow_downgrades: bool,
    cache: MetadataCache,
    fetch: VersionFetcher,
    failures: Optional[MetadataFailures] = None,
) -> Optional[str]:
    """Pick the target version for ``group_id:artifact_id``.

    Args:
        group_id: Target parent group.
        artifact_id: Target parent artifact.
        current_version: Version declared today; non-versions compare as 0.0.0.
        constraint: Comparator built from the requested version and pattern.
        allow_downgrades: When True the ordering filter is skipped and the
            highest eligible version wins even if it is older than the current one.
        cache: Session cache; a miss triggers exactly one ``fetch``.
        fetch: Callable returning published versions, raising MetadataUnavailable.
        failures: Ledger that records fetch failures before they propagate.

    Returns:
        The selected version, or None when nothing is eligible.

    Raises:
        MetadataUnavailable: when versions for the coordinates cannot be fetched.
    """
    current = normalize_current(current_version)

    def load(g: str, a: str) -> Iterable[str]:
        if failures is None:
            return fetch(g, a)
        return failures.insert_rows(lambda: fetch(g, a))

    available = cache.get_or_fetch(group_id, artifact_id, load)

    candidates = [v for v in available if constraint.is_valid(current, v)]
    if not allow_downgrades:
        candidates = [v for v in candidates if constraint.compare(current, current, v) < 0]

    if allow_downgrades:
        selected = constraint.max(current, candidates)
    else:
        selected = constraint.upgrade(current, candidates)

    if is_debug_enabled(logger):
        logger.debug(
            "Resolved parent version",
            extra=extra_context(
                event="resolve",
                component="resolver",
                target=f"{group_id}:{artifact_id}",
                outcome="selected" if selected else "no_eligible_version",
                candidate_count=len(candidates),
                current=current,
                selected=selected,
            )
        )
    return selected
