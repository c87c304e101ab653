"""Tests for retaining and removing explicit dependency versions."""

import pytest

from errors import MetadataUnavailable
from pom.tree import PomDocument, get_child_value
from recipes.dependency_versions import (
    RemoveRedundantVersionsOperation,
    RetainVersionsOperation,
    is_retained,
    lineage,
    managed_versions,
)
from recipes.session import ResolutionSession
from versioning.models import RetainedVersion

from pom_builders import FakeRepositoryClient, managed_pom, project_pom

OLD_PARENT = managed_pom("org.a", "lib", "1.2.0", [
    ("com.jcraft", "jsch", "0.1.55"),
    ("junit", "junit", "4.13.2"),
])


def session_for(text, poms):
    document = PomDocument.parse(text)
    return ResolutionSession(document, FakeRepositoryClient(poms=poms))


def versions_of(document):
    return {
        get_child_value(dep, "artifactId"): get_child_value(dep, "version")
        for dep in document.direct_dependencies()
    }


class TestManagedVersions:
    """Test collection of dependency management across the lineage."""

    def test_from_parent(self):
        session = session_for(project_pom(), {("org.a", "lib", "1.2.0"): OLD_PARENT})
        managed = managed_versions(session.document, session)
        assert managed == {("com.jcraft", "jsch"): "0.1.55", ("junit", "junit"): "4.13.2"}

    def test_nearer_declaration_wins(self):
        grandparent = managed_pom("org.a", "root", "1", [("junit", "junit", "4.12")])
        parent = OLD_PARENT.replace(
            "<modelVersion>4.0.0</modelVersion>",
            "<modelVersion>4.0.0</modelVersion>\n  <parent><groupId>org.a</groupId>"
            "<artifactId>root</artifactId><version>1</version></parent>")
        session = session_for(project_pom(), {
            ("org.a", "lib", "1.2.0"): parent,
            ("org.a", "root", "1"): grandparent,
        })
        assert [p.parent_reference() is None for p in lineage(session.document, session)] == [False, False, True]
        assert managed_versions(session.document, session)[("junit", "junit")] == "4.13.2"

    def test_imported_bom(self):
        bom = managed_pom("org.bom", "bom", "3", [("org.slf4j", "slf4j-api", "2.0.9")])
        parent = managed_pom("org.a", "lib", "1.2.0", [("org.bom", "bom", "3")]).replace(
            "<version>3</version>", "<version>3</version>\n        <type>pom</type>\n        <scope>import</scope>")
        session = session_for(project_pom(), {
            ("org.a", "lib", "1.2.0"): parent,
            ("org.bom", "bom", "3"): bom,
        })
        managed = managed_versions(session.document, session)
        assert managed == {("org.slf4j", "slf4j-api"): "2.0.9"}

    def test_missing_parent_pom(self):
        session = session_for(project_pom(), {})
        with pytest.raises(MetadataUnavailable):
            managed_versions(session.document, session)
        assert len(session.failures) == 1

    def test_poms_downloaded_once_per_session(self):
        session = session_for(project_pom(), {("org.a", "lib", "1.2.0"): OLD_PARENT})
        managed_versions(session.document, session)
        managed_versions(session.document, session)
        assert session.client.downloads == [("org.a", "lib", "1.2.0")]


class TestRetainVersions:
    """Test pinning managed versions."""

    def test_pins_managed_version(self):
        session = session_for(
            project_pom(dependencies=[("com.jcraft", "jsch", None), ("junit", "junit", None)]),
            {("org.a", "lib", "1.2.0"): OLD_PARENT},
        )
        operation = RetainVersionsOperation(RetainedVersion("com.jcraft", "jsch"))
        assert operation.apply(session) is True
        assert versions_of(session.document) == {"jsch": "0.1.55", "junit": None}
        assert session.retained_dependencies == {("com.jcraft", "jsch")}

    def test_pins_given_version_without_download(self):
        session = session_for(project_pom(dependencies=[("com.jcraft", "jsch", None)]), {})
        operation = RetainVersionsOperation(RetainedVersion("com.jcraft", "jsch", "0.1.54"))
        assert operation.apply(session) is True
        assert versions_of(session.document) == {"jsch": "0.1.54"}
        assert session.client.downloads == []

    def test_glob_entry(self):
        session = session_for(
            project_pom(dependencies=[("com.jcraft", "jsch", None), ("junit", "junit", None)]),
            {("org.a", "lib", "1.2.0"): OLD_PARENT},
        )
        RetainVersionsOperation(RetainedVersion("*", "*")).apply(session)
        assert versions_of(session.document) == {"jsch": "0.1.55", "junit": "4.13.2"}

    def test_explicit_version_untouched(self):
        session = session_for(project_pom(dependencies=[("com.jcraft", "jsch", "0.1.50")]), {})
        assert RetainVersionsOperation(RetainedVersion("com.jcraft", "jsch")).apply(session) is False
        assert versions_of(session.document) == {"jsch": "0.1.50"}
        assert session.retained_dependencies == {("com.jcraft", "jsch")}

    def test_unmanaged_dependency_left_alone(self):
        session = session_for(
            project_pom(dependencies=[("org.other", "thing", None)]),
            {("org.a", "lib", "1.2.0"): OLD_PARENT},
        )
        assert RetainVersionsOperation(RetainedVersion("org.other", "thing")).apply(session) is False


class TestRemoveRedundantVersions:
    """Test removal of versions that dependency management supplies."""

    def test_removes_equal_versions_only(self):
        session = session_for(
            project_pom(dependencies=[
                ("junit", "junit", "4.13.2"),
                ("com.jcraft", "jsch", "0.1.50"),
                ("com.google.guava", "guava", "31.0-jre"),
            ]),
            {("org.a", "lib", "1.2.0"): OLD_PARENT},
        )
        assert RemoveRedundantVersionsOperation().apply(session) is True
        assert versions_of(session.document) == {"junit": None, "jsch": "0.1.50", "guava": "31.0-jre"}

    def test_retained_entries_are_spared(self):
        session = session_for(
            project_pom(dependencies=[("junit", "junit", "4.13.2")]),
            {("org.a", "lib", "1.2.0"): OLD_PARENT},
        )
        operation = RemoveRedundantVersionsOperation(frozenset({RetainedVersion("junit", "junit")}))
        assert operation.apply(session) is False
        assert versions_of(session.document) == {"junit": "4.13.2"}

    def test_dependencies_recorded_by_retain_step_are_spared(self):
        session = session_for(
            project_pom(dependencies=[("junit", "junit", "4.13.2"), ("com.jcraft", "jsch", "0.1.55")]),
            {("org.a", "lib", "1.2.0"): OLD_PARENT},
        )
        session.retained_dependencies.add(("com.jcraft", "jsch"))
        assert RemoveRedundantVersionsOperation().apply(session) is True
        assert versions_of(session.document) == {"junit": None, "jsch": "0.1.55"}

    def test_guard_flags(self):
        assert RetainVersionsOperation(RetainedVersion("junit", "junit")).guards_edits
        assert RemoveRedundantVersionsOperation(guards_edits=True).guards_edits
        assert not RemoveRedundantVersionsOperation().guards_edits

    def test_property_versions_are_interpolated(self):
        text = project_pom(dependencies=[("junit", "junit", "${junit.version}")]).replace(
            "</project>", "  <properties>\n    <junit.version>4.13.2</junit.version>\n  </properties>\n</project>")
        session = session_for(text, {("org.a", "lib", "1.2.0"): OLD_PARENT})
        assert RemoveRedundantVersionsOperation().apply(session) is True

    def test_nothing_explicit_means_no_download(self):
        session = session_for(project_pom(dependencies=[("junit", "junit", None)]), {})
        assert RemoveRedundantVersionsOperation().apply(session) is False
        assert session.client.downloads == []


class TestIsRetained:
    """Test retained GAV matching."""

    def test_matches(self):
        retained = [RetainedVersion("org.springframework.*", "*")]
        assert is_retained("org.springframework.boot", "spring-boot", retained)
        assert not is_retained("junit", "junit", retained)
