"""Explicit dependency versions around a parent change.

Two operations live here. :class:`RetainVersionsOperation` pins an explicit
version on a direct dependency that currently relies on dependency
management. :class:`RemoveRedundantVersionsOperation` drops explicit versions
that dependency management already supplies. Both read the document as it is
when they run, so a removal pass scheduled after the parent edits sees the
new parent's dependency management.
"""
from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from constants import Constants
from pom.insertion import add_to_tag, remove_child
from pom.tree import PomDocument, build_leaf, get_child, get_child_value, interpolate
from recipes.matcher import matches_glob
from recipes.session import DeferredOperation, ResolutionSession
from versioning.models import RetainedVersion

logger = logging.getLogger(__name__)

ManagedVersions = Dict[Tuple[str, str], str]


def lineage(pom: PomDocument, session: ResolutionSession) -> List[PomDocument]:
    """``pom`` followed by its ancestors, nearest first."""
    chain = [pom]
    current = pom
    while len(chain) <= Constants.MAX_PARENT_DEPTH:
        ref = current.parent_reference()
        if ref is None or not ref.version:
            break
        current = session.load_pom(ref.group_id, ref.artifact_id, ref.version)
        chain.append(current)
    return chain


def effective_properties(chain: Iterable[PomDocument]) -> Dict[str, str]:
    """Properties of a lineage, nearer POMs overriding their ancestors."""
    props: Dict[str, str] = {}
    for pom in reversed(list(chain)):
        props.update(pom.properties())
    return props


def managed_versions(pom: PomDocument, session: ResolutionSession, depth: int = 0) -> ManagedVersions:
    """Versions supplied by dependency management for ``pom``.

    Nearer declarations win: the POM's own entries, then its imported BOMs,
    then each ancestor in the same way.

    Raises:
        MetadataUnavailable: when an ancestor or BOM cannot be downloaded.
    """
    chain = lineage(pom, session)
    props = effective_properties(chain)
    managed: ManagedVersions = {}
    for member in chain:
        imports = []
        for dep in member.managed_dependencies():
            group_id = interpolate(get_child_value(dep, "groupId") or "", props)
            artifact_id = interpolate(get_child_value(dep, "artifactId") or "", props)
            version = interpolate(get_child_value(dep, "version") or "", props)
            if not (group_id and artifact_id and version):
                continue
            if get_child_value(dep, "scope") == "import" and get_child_value(dep, "type") == "pom":
                imports.append((group_id, artifact_id, version))
                continue
            managed.setdefault((group_id, artifact_id), version)
        for group_id, artifact_id, version in imports:
            if depth >= Constants.MAX_PARENT_DEPTH:
                logger.warning("Not following BOM %s:%s:%s, import depth limit reached",
                               group_id, artifact_id, version)
                continue
            bom = session.load_pom(group_id, artifact_id, version)
            for key, value in managed_versions(bom, session, depth + 1).items():
                managed.setdefault(key, value)
    return managed


def _coordinates(document: PomDocument, dep) -> Tuple[str, str]:
    return (document.resolve_value(get_child_value(dep, "groupId")) or "",
            document.resolve_value(get_child_value(dep, "artifactId")) or "")


def is_retained(group_id: str, artifact_id: str, retained: Iterable[RetainedVersion]) -> bool:
    return any(matches_glob(group_id, r.group_id) and matches_glob(artifact_id, r.artifact_id)
               for r in retained)


class RetainVersionsOperation(DeferredOperation):
    """Give direct dependencies matching one retained GAV an explicit version.

    Matching dependencies that already declare a version keep it. Either way
    the dependency is recorded on the session so that no later removal pass
    strips the version.
    """

    guards_edits = True

    def __init__(self, retained: RetainedVersion):
        self.retained = retained
        self.description = f"retain version of {retained.group_id}:{retained.artifact_id}"

    def apply(self, session: ResolutionSession) -> bool:
        document = session.document
        targets = []
        for dep in document.direct_dependencies():
            group_id, artifact_id = _coordinates(document, dep)
            if not is_retained(group_id, artifact_id, [self.retained]):
                continue
            if get_child(dep, "version") is None:
                targets.append((dep, group_id, artifact_id))
            else:
                session.retained_dependencies.add((group_id, artifact_id))
        if not targets:
            return False

        managed: Optional[ManagedVersions] = None
        changed = False
        for dep, group_id, artifact_id in targets:
            version = self.retained.version
            if version is None:
                if managed is None:
                    managed = managed_versions(document, session)
                version = managed.get((group_id, artifact_id))
            if not version:
                logger.info("No managed version to retain for %s:%s", group_id, artifact_id)
                continue
            add_to_tag(dep, build_leaf(dep, "version", version))
            session.retained_dependencies.add((group_id, artifact_id))
            changed = True
        return changed


class RemoveRedundantVersionsOperation(DeferredOperation):
    """Remove explicit versions equal to what dependency management supplies.

    Dependencies matching ``retained``, or recorded on the session by a
    retain operation, are left alone.
    """

    def __init__(self, retained: Optional[FrozenSet[RetainedVersion]] = None, guards_edits: bool = False):
        self.retained: FrozenSet[RetainedVersion] = retained or frozenset()
        self.guards_edits = guards_edits
        self.description = ("remove redundant versions"
                            + (f" retaining {len(self.retained)}" if self.retained else ""))

    def apply(self, session: ResolutionSession) -> bool:
        document = session.document
        explicit = []
        for dep in document.direct_dependencies():
            version_el = get_child(dep, "version")
            if version_el is None or not (version_el.text or "").strip():
                continue
            group_id, artifact_id = _coordinates(document, dep)
            if ((group_id, artifact_id) in session.retained_dependencies
                    or is_retained(group_id, artifact_id, self.retained)):
                continue
            explicit.append((dep, version_el, group_id, artifact_id))
        if not explicit:
            return False

        managed = managed_versions(document, session)
        props = effective_properties(lineage(document, session))
        changed = False
        for dep, version_el, group_id, artifact_id in explicit:
            declared = interpolate(version_el.text.strip(), props)
            if managed.get((group_id, artifact_id)) == declared:
                remove_child(dep, version_el)
                logger.info("Removed redundant version %s of %s:%s", declared, group_id, artifact_id)
                changed = True
        return changed
