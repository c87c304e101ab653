"""Maven repository client and pom.xml source scanner."""
from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Sequence

from constants import Constants
from errors import MetadataUnavailable
from common import http_client
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer


logger = logging.getLogger(__name__)


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def parse_metadata_versions(text: str) -> List[str]:
    """Extract ``versioning/versions/version`` values from maven-metadata.xml.

    Raises:
        ET.ParseError: when the document is not well-formed XML.
    """
    root = ET.fromstring(text)
    versions: List[str] = []
    for versioning in (c for c in root if _local(c.tag) == "versioning"):
        for versions_elem in (c for c in versioning if _local(c.tag) == "versions"):
            for version_elem in versions_elem:
                if _local(version_elem.tag) == "version" and version_elem.text and version_elem.text.strip():
                    versions.append(version_elem.text.strip())
    return versions


class MavenRepositoryClient:
    """Fetches version metadata and POMs from one or more Maven repositories.

    Repositories are queried in order. Version lists are merged across every
    repository that has the artifact; POMs come from the first one that has it.
    """

    def __init__(self, repositories: Optional[Sequence[str]] = None):
        repos = repositories if repositories is not None else Constants.MAVEN_REPOSITORIES
        self.repositories = [r.rstrip("/") for r in repos]

    @staticmethod
    def _artifact_base(repository: str, group_id: str, artifact_id: str) -> str:
        return f"{repository}/{group_id.replace('.', '/')}/{artifact_id}"

    def fetch_versions(self, group_id: str, artifact_id: str) -> List[str]:
        """Return every published version of ``group_id:artifact_id``.

        Raises:
            MetadataUnavailable: when no repository returned usable metadata.
        """
        merged: List[str] = []
        seen = set()
        reasons: Dict[str, str] = {}
        found = False

        for repository in self.repositories:
            url = f"{self._artifact_base(repository, group_id, artifact_id)}/{Constants.MAVEN_METADATA_FILE}"
            with Timer() as timer:
                status_code, _, text = http_client.robust_get(url)
            if status_code != 200 or not text:
                reasons[repository] = "not found" if status_code == 404 else (
                    f"HTTP {status_code}" if status_code else text)
                logger.debug(
                    "Metadata not available from repository",
                    extra=extra_context(event="http_response", component="maven_client",
                                        outcome="handled_non_2xx", status_code=status_code,
                                        duration_ms=timer.duration_ms(), target=safe_url(url))
                )
                continue
            try:
                versions = parse_metadata_versions(text)
            except ET.ParseError as exc:
                reasons[repository] = f"unparseable maven-metadata.xml: {exc}"
                continue
            found = True
            for v in versions:
                if v not in seen:
                    seen.add(v)
                    merged.append(v)

        if not found:
            raise MetadataUnavailable(
                group_id, artifact_id, _summarize(reasons),
                repository=", ".join(safe_url(r) for r in self.repositories),
            )
        if is_debug_enabled(logger):
            logger.debug(
                "Fetched version metadata",
                extra=extra_context(event="metadata", component="maven_client",
                                    target=f"{group_id}:{artifact_id}", outcome="success",
                                    version_count=len(merged))
            )
        return merged

    def download_pom(self, group_id: str, artifact_id: str, version: str) -> str:
        """Return the text of ``group_id:artifact_id:version``'s POM.

        Raises:
            MetadataUnavailable: when no repository serves the POM.
        """
        reasons: Dict[str, str] = {}
        for repository in self.repositories:
            base = self._artifact_base(repository, group_id, artifact_id)
            url = f"{base}/{version}/{artifact_id}-{version}.pom"
            status_code, _, text = http_client.robust_get(url)
            if status_code == 200 and text:
                return text
            reasons[repository] = "not found" if status_code == 404 else (
                f"HTTP {status_code}" if status_code else text)
        raise MetadataUnavailable(
            group_id, artifact_id, _summarize(reasons), version=version,
            repository=", ".join(safe_url(r) for r in self.repositories),
        )


def _summarize(reasons: Dict[str, str]) -> str:
    if not reasons:
        return "no repositories configured"
    return "; ".join(f"{safe_url(repo)}: {reason}" for repo, reason in reasons.items())


def scan_source(dir_name: str, recursive: bool = False) -> List[str]:
    """Find pom.xml files under a directory.

    Args:
        dir_name (str): Directory to scan.
        recursive (bool, optional): Whether to scan recursively. Defaults to False.

    Returns:
        Sorted list of pom.xml paths; empty when none was found.
    """
    pom_files: List[str] = []
    if recursive:
        for root, dirs, files in os.walk(dir_name):
            # Build output directories hold copies of the POM
            dirs[:] = sorted(d for d in dirs if d not in ("target", ".git"))
            if Constants.POM_XML_FILE in files:
                pom_files.append(os.path.join(root, Constants.POM_XML_FILE))
    else:
        path = os.path.join(dir_name, Constants.POM_XML_FILE)
        if os.path.isfile(path):
            pom_files.append(path)
    if not pom_files:
        logger.error("pom.xml not found under %s", dir_name)
    return sorted(pom_files)
