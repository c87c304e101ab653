"""Glob matching of parent coordinates."""
from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Optional

from versioning.models import ParentReference


def matches_glob(value: Optional[str], pattern: Optional[str]) -> bool:
    """Shell-style match (``*``, ``?``, ``[...]``); a missing value never matches."""
    if value is None or pattern is None:
        return False
    return fnmatchcase(value, pattern)


def matches(
    current: Optional[ParentReference],
    old_group_id: str,
    old_artifact_id: str,
    old_relative_path: Optional[str] = None,
) -> bool:
    """Return True when ``current`` is the parent the caller wants to change.

    The relative path only takes part when ``old_relative_path`` is given.
    """
    if current is None:
        return False
    if not matches_glob(current.group_id, old_group_id):
        return False
    if not matches_glob(current.artifact_id, old_artifact_id):
        return False
    if old_relative_path is None:
        return True
    return matches_glob(current.relative_path, old_relative_path)
