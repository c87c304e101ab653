"""Change the parent of Maven pom.xml documents.

Identifies the parent to change by group and artifact (globs), picks the new
version from repository metadata, edits ``<parent>`` and cleans up explicit
dependency versions that the change makes redundant.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from errors import InvalidConstraint, InvalidRetainEntry, MetadataUnavailable, ParentPomError, ValidationError
from common.logging_utils import extra_context
from pom.edits import EditPlan
from pom.markers import annotate_warning
from pom.tree import PomDocument
from recipes import matcher, orchestrator, planner
from recipes.session import RepositoryClient, ResolutionSession
from registry.maven.client import MavenRepositoryClient
from registry.maven.failures import MetadataFailures
from versioning import semver
from versioning.models import ParentState, RetainedVersion
from versioning.resolver import resolve_version

logger = logging.getLogger(__name__)


@dataclass
class ChangeParentOptions:
    """Caller-facing options.

    ``new_group_id``, ``new_artifact_id`` and ``new_relative_path`` default to
    the document's current values. ``new_version`` is an exact version or a
    selector such as ``29.X``, ``~1.2`` or ``latest.release``; ``version_pattern``
    extends selection to qualified versions (``-jre``). Each ``retain_versions``
    entry is ``group:artifact`` or ``group:artifact:version``.
    """
    old_group_id: str
    old_artifact_id: str
    new_version: str
    new_group_id: Optional[str] = None
    new_artifact_id: Optional[str] = None
    old_relative_path: Optional[str] = None
    new_relative_path: Optional[str] = None
    version_pattern: Optional[str] = None
    allow_version_downgrades: bool = False
    retain_versions: List[str] = field(default_factory=list)

    @classmethod
    def normalize_keys(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """Map snake_case or camelCase keys onto field names.

        Raises:
            ValueError: for keys that are not options.
        """
        aliases = {
            "oldGroupId": "old_group_id", "oldArtifactId": "old_artifact_id",
            "newGroupId": "new_group_id", "newArtifactId": "new_artifact_id",
            "newVersion": "new_version", "oldRelativePath": "old_relative_path",
            "newRelativePath": "new_relative_path", "versionPattern": "version_pattern",
            "allowVersionDowngrades": "allow_version_downgrades",
            "retainVersions": "retain_versions",
        }
        kwargs = {aliases.get(k, k): v for k, v in data.items()}
        unknown = sorted(set(kwargs) - set(cls.__dataclass_fields__))
        if unknown:
            raise ValueError(f"unknown change_parent option(s): {', '.join(unknown)}")
        return kwargs

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "ChangeParentOptions":
        """Build from a config-file style mapping; missing required keys become "".

        A single retain entry may be given as a plain string.

        Raises:
            ValueError: for unknown keys or a non-boolean ``allow_version_downgrades``.
        """
        kwargs = cls.normalize_keys(data)
        for name in ("old_group_id", "old_artifact_id", "new_version"):
            kwargs.setdefault(name, "")
        retain = kwargs.get("retain_versions") or []
        kwargs["retain_versions"] = [retain] if isinstance(retain, str) else list(retain)
        downgrades = kwargs.get("allow_version_downgrades")
        if downgrades is None:
            downgrades = False
        if not isinstance(downgrades, bool):
            raise ValueError(f"allow_version_downgrades must be true or false, got {downgrades!r}")
        kwargs["allow_version_downgrades"] = downgrades
        return cls(**kwargs)

    def validate(self) -> semver.VersionComparator:
        """Check every option, collecting all problems before failing.

        Returns:
            The comparator for ``new_version`` / ``version_pattern``.

        Raises:
            ValidationError: listing every InvalidConstraint / InvalidRetainEntry found.
        """
        errors: List[ParentPomError] = []
        comparator = None
        for name in ("old_group_id", "old_artifact_id"):
            if not getattr(self, name):
                errors.append(ParentPomError(f"{name} is required"))
        try:
            comparator = semver.validate(self.new_version, self.version_pattern)
        except InvalidConstraint as exc:
            errors.append(exc)
        for i, entry in enumerate(self.retain_versions):
            parts = entry.split(":") if isinstance(entry, str) else []
            if len(parts) not in (2, 3) or not all(parts[:2]):
                errors.append(InvalidRetainEntry(i, entry))
        if errors:
            raise ValidationError(errors)
        return comparator


@dataclass
class DocumentResult:
    """Outcome of visiting one document.

    ``trail`` records every state the parent tag went through, starting at
    UNMATCHED; ``state`` is the last one.
    """
    path: Optional[str]
    trail: List[ParentState] = field(default_factory=lambda: [ParentState.UNMATCHED])
    plan: EditPlan = field(default_factory=EditPlan)
    resolved_version: Optional[str] = None
    changed: bool = False
    warnings: List[str] = field(default_factory=list)

    @property
    def state(self) -> ParentState:
        return self.trail[-1]

    def advance(self, state: ParentState) -> "DocumentResult":
        self.trail.append(state)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "state": self.state.value,
            "resolved_version": self.resolved_version,
            "changed": self.changed,
            "edits": [
                {"kind": type(e).__name__, "field": e.field.value, "value": e.new_value}
                for e in self.plan
            ],
            "warnings": list(self.warnings),
        }


class ChangeParentPom:
    """Recipe object: validated options plus the collaborators used for every document."""

    def __init__(
        self,
        options: ChangeParentOptions,
        client: Optional[RepositoryClient] = None,
        failures: Optional[MetadataFailures] = None,
    ):
        self.options = options
        self.comparator = options.validate()
        self.retained: Tuple[RetainedVersion, ...] = orchestrator.retained_version_set(options.retain_versions)
        self.client = client if client is not None else MavenRepositoryClient()
        self.failures = failures if failures is not None else MetadataFailures()

    def new_session(self, document: PomDocument) -> ResolutionSession:
        return ResolutionSession(document, self.client, self.failures)

    def visit(self, document: PomDocument, session: Optional[ResolutionSession] = None) -> DocumentResult:
        """Resolve, plan, schedule and apply the parent change for one document."""
        session = session or self.new_session(document)
        opts = self.options
        result = DocumentResult(document.path)

        current = document.parent_reference()
        if not matcher.matches(current, opts.old_group_id, opts.old_artifact_id, opts.old_relative_path):
            return result
        result.advance(ParentState.MATCHED)

        tag = document.parent_tag
        target = planner.resolve_target(current, self.comparator, opts.new_group_id,
                                        opts.new_artifact_id, opts.new_relative_path)
        result.advance(ParentState.RESOLVING)
        try:
            version = resolve_version(
                target.group_id, target.artifact_id, current.version, self.comparator,
                allow_downgrades=opts.allow_version_downgrades,
                cache=session.metadata_cache,
                fetch=session.fetch_versions,
                failures=session.failures,
            )
        except MetadataUnavailable as exc:
            marker = annotate_warning(document, tag, exc)
            result.warnings.append(marker.message)
            return result.advance(ParentState.WARNED)

        if version is None:
            logger.info("%s: no eligible version of %s:%s for %s",
                        document.path or "<document>", target.group_id, target.artifact_id,
                        opts.new_version)
            return result.advance(ParentState.NO_CHANGE).advance(ParentState.IDLE)

        result.resolved_version = version
        result.plan = planner.plan(current, target, version, tag)
        if result.plan.is_empty:
            return result.advance(ParentState.NO_CHANGE).advance(ParentState.IDLE)
        result.advance(ParentState.PLAN_BUILT)

        for operation in orchestrator.schedule(result.plan, self.retained):
            session.do_after_visit(operation)
        result.advance(ParentState.SCHEDULED)

        result.changed = session.apply_pending() > 0
        result.warnings.extend(m.message for m in document.markers)
        if session.aborted is not None:
            logger.warning("%s: parent left unchanged, dependency versions could not be secured",
                           document.path or "<document>")
            return result.advance(ParentState.WARNED)
        logger.info(
            "%s: parent %s -> %s:%s:%s",
            document.path or "<document>", current.gav, target.group_id, target.artifact_id, version,
            extra=extra_context(event="change_parent", component="recipe",
                                outcome="changed" if result.changed else "unchanged",
                                target=document.path)
        )
        return result.advance(ParentState.APPLIED)

    def run(self, documents: Iterable[PomDocument]) -> List[DocumentResult]:
        """Visit each document with its own session."""
        return [self.visit(document) for document in documents]
