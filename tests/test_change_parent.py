"""End-to-end tests for the parent change recipe."""

import pytest

from errors import InvalidConstraint, InvalidRetainEntry, ValidationError
from pom.edits import FieldEdit, InsertEdit, ParentField
from pom.tree import PomDocument, get_child_value
from recipes.change_parent import ChangeParentOptions, ChangeParentPom
from registry.maven.failures import MetadataFailures
from versioning.models import ParentState

from pom_builders import FakeRepositoryClient, managed_pom, project_pom

OLD_PARENT = managed_pom("org.a", "lib", "1.2.0", [
    ("com.jcraft", "jsch", "0.1.55"),
    ("junit", "junit", "4.13.2"),
])
NEW_PARENT = managed_pom("org.a", "lib", "1.4.0", [
    ("junit", "junit", "4.13.2"),
])


def options(**overrides):
    """Helper building options for org.a:lib moving within 1.x."""
    values = {"old_group_id": "org.a", "old_artifact_id": "lib", "new_version": "1.x"}
    values.update(overrides)
    return ChangeParentOptions(**values)


def repository():
    return FakeRepositoryClient(
        versions={("org.a", "lib"): ["1.2.0", "1.3.0", "1.4.0", "2.0.0"]},
        poms={("org.a", "lib", "1.2.0"): OLD_PARENT, ("org.a", "lib", "1.4.0"): NEW_PARENT},
    )


def dependency_versions(document):
    return {
        get_child_value(dep, "artifactId"): get_child_value(dep, "version")
        for dep in document.direct_dependencies()
    }


class TestVersionBump:
    """Test the basic parent change."""

    def test_bump_and_insert_relative_path(self, fake_client):
        document = PomDocument.parse(project_pom())
        recipe = ChangeParentPom(options(new_relative_path="../pom.xml"), fake_client)

        result = recipe.visit(document)

        assert result.state is ParentState.APPLIED
        assert result.changed
        assert result.resolved_version == "1.4.0"
        assert list(result.plan) == [
            FieldEdit(ParentField.VERSION, "1.4.0"),
            InsertEdit(ParentField.RELATIVE_PATH, "../pom.xml", 3),
        ]
        assert ("    <version>1.4.0</version>\n"
                "    <relativePath>../pom.xml</relativePath>\n"
                "  </parent>") in document.to_string()

    def test_state_trail(self, fake_client):
        result = ChangeParentPom(options(), fake_client).visit(PomDocument.parse(project_pom()))
        assert result.trail == [
            ParentState.UNMATCHED, ParentState.MATCHED, ParentState.RESOLVING,
            ParentState.PLAN_BUILT, ParentState.SCHEDULED, ParentState.APPLIED,
        ]

    def test_empty_relative_path(self, fake_client):
        document = PomDocument.parse(project_pom())
        ChangeParentPom(options(new_relative_path=""), fake_client).visit(document)
        assert "<relativePath />" in document.to_string()

    def test_group_and_artifact_change(self):
        client = FakeRepositoryClient(versions={("org.b", "base"): ["3.0.0", "3.1.0"]})
        document = PomDocument.parse(project_pom())
        recipe = ChangeParentPom(
            options(new_group_id="org.b", new_artifact_id="base", new_version="3.x"), client)

        result = recipe.visit(document)

        assert result.state is ParentState.APPLIED
        assert document.parent_reference().gav == "org.b:base:3.1.0"
        assert client.fetches == [("org.b", "base")]

    def test_glob_match(self, fake_client):
        document = PomDocument.parse(project_pom())
        ChangeParentPom(options(old_group_id="org.*", old_artifact_id="l?b"), fake_client).visit(document)
        assert document.parent_reference().version == "1.4.0"

    def test_relative_path_filter(self, fake_client):
        document = PomDocument.parse(project_pom(relative_path="../../pom.xml"))
        result = ChangeParentPom(options(old_relative_path="../parent/*"), fake_client).visit(document)
        assert result.state is ParentState.UNMATCHED
        assert fake_client.fetches == []


class TestNoChange:
    """Test documents that are left alone."""

    def test_unmatched_parent(self, fake_client):
        text = project_pom(parent=("org.other", "lib", "1.0"))
        document = PomDocument.parse(text)
        result = ChangeParentPom(options(), fake_client).visit(document)
        assert result.state is ParentState.UNMATCHED
        assert fake_client.fetches == []
        assert document.to_string() == text

    def test_no_newer_version_schedules_nothing(self):
        client = FakeRepositoryClient(versions={("org.a", "lib"): ["1.2.0"]})
        document = PomDocument.parse(project_pom(dependencies=[("junit", "junit", "4.13.2")]))
        recipe = ChangeParentPom(options(), client)
        session = recipe.new_session(document)

        result = recipe.visit(document, session)

        assert result.trail[-2:] == [ParentState.NO_CHANGE, ParentState.IDLE]
        assert not result.changed
        assert session.pending == [] and session.applied == []
        assert client.downloads == []

    def test_idempotent(self):
        client = repository()
        recipe = ChangeParentPom(options(new_relative_path="../pom.xml"), client)
        document = PomDocument.parse(project_pom(dependencies=[("junit", "junit", "4.13.2")]))
        recipe.visit(document)
        once = document.to_string()

        again = PomDocument.parse(once)
        result = recipe.visit(again)

        assert result.state is ParentState.IDLE
        assert again.to_string() == once


class TestWarnings:
    """Test metadata failures becoming warnings."""

    def test_unavailable_versions_warn_and_leave_document(self):
        client = FakeRepositoryClient()
        text = project_pom()
        document = PomDocument.parse(text)
        recipe = ChangeParentPom(options(), client)

        result = recipe.visit(document)

        assert result.state is ParentState.WARNED
        assert len(document.markers) == 1
        assert document.markers[0].path == "/project/parent"
        assert "org.a:lib" in result.warnings[0]
        assert len(recipe.failures) == 1
        assert document.to_string() == text

    def test_missing_old_parent_pom_cancels_the_change(self, fake_client):
        text = project_pom(dependencies=[("com.jcraft", "jsch", None), ("junit", "junit", "4.13.2")])
        document = PomDocument.parse(text)
        recipe = ChangeParentPom(options(retain_versions=["com.jcraft:jsch"]), fake_client)

        result = recipe.visit(document)

        assert result.state is ParentState.WARNED
        assert result.trail[-2:] == [ParentState.SCHEDULED, ParentState.WARNED]
        assert not result.changed
        assert document.to_string() == text
        assert document.parent_reference().version == "1.2.0"
        assert len(result.warnings) == 1

    def test_missing_new_parent_pom_warns_after_edit(self):
        client = FakeRepositoryClient(
            versions={("org.a", "lib"): ["1.2.0", "1.4.0"]},
            poms={("org.a", "lib", "1.2.0"): OLD_PARENT},
        )
        document = PomDocument.parse(project_pom(dependencies=[("com.google.guava", "guava", "31.0-jre")]))

        result = ChangeParentPom(options(), client).visit(document)

        assert result.state is ParentState.APPLIED
        assert result.changed
        assert document.parent_reference().version == "1.4.0"
        assert dependency_versions(document) == {"guava": "31.0-jre"}
        assert len(result.warnings) == 1

    def test_failures_shared_across_documents(self):
        failures = MetadataFailures()
        recipe = ChangeParentPom(options(), FakeRepositoryClient(), failures)
        recipe.run([PomDocument.parse(project_pom()), PomDocument.parse(project_pom())])
        assert len(failures) == 2


class TestDependencyCleanup:
    """Test explicit version cleanup around the change."""

    def test_redundant_versions_removed(self):
        document = PomDocument.parse(project_pom(dependencies=[
            ("junit", "junit", "4.13.2"),
            ("com.google.guava", "guava", "31.0-jre"),
        ]))
        ChangeParentPom(options(), repository()).visit(document)
        assert dependency_versions(document) == {"junit": None, "guava": "31.0-jre"}

    def test_retained_version_survives_new_parent(self):
        document = PomDocument.parse(project_pom(dependencies=[
            ("com.jcraft", "jsch", None),
            ("junit", "junit", "4.13.2"),
        ]))
        recipe = ChangeParentPom(options(retain_versions=["com.jcraft:jsch"]), repository())

        recipe.visit(document)

        assert document.parent_reference().version == "1.4.0"
        assert dependency_versions(document) == {"jsch": "0.1.55", "junit": None}

    def test_retained_version_survives_when_new_parent_manages_same_version(self):
        same = managed_pom("org.a", "lib", "1.4.0", [("com.jcraft", "jsch", "0.1.55")])
        client = FakeRepositoryClient(
            versions={("org.a", "lib"): ["1.2.0", "1.4.0"]},
            poms={("org.a", "lib", "1.2.0"): OLD_PARENT, ("org.a", "lib", "1.4.0"): same},
        )
        document = PomDocument.parse(project_pom(dependencies=[
            ("com.jcraft", "jsch", "0.1.55"),
            ("junit", "junit", "4.13.2"),
        ]))

        result = ChangeParentPom(options(retain_versions=["com.jcraft:jsch"]), client).visit(document)

        assert result.state is ParentState.APPLIED
        assert document.parent_reference().version == "1.4.0"
        assert dependency_versions(document) == {"jsch": "0.1.55", "junit": None}

    def test_pinned_version_survives_when_new_parent_manages_same_version(self):
        same = managed_pom("org.a", "lib", "1.4.0", [("com.jcraft", "jsch", "0.1.55")])
        client = FakeRepositoryClient(
            versions={("org.a", "lib"): ["1.2.0", "1.4.0"]},
            poms={("org.a", "lib", "1.2.0"): OLD_PARENT, ("org.a", "lib", "1.4.0"): same},
        )
        document = PomDocument.parse(project_pom(dependencies=[("com.jcraft", "jsch", None)]))

        ChangeParentPom(options(retain_versions=["com.jcraft:jsch"]), client).visit(document)

        assert dependency_versions(document) == {"jsch": "0.1.55"}

    def test_without_retention_managed_dependency_stays_versionless(self):
        document = PomDocument.parse(project_pom(dependencies=[("com.jcraft", "jsch", None)]))
        ChangeParentPom(options(), repository()).visit(document)
        assert dependency_versions(document) == {"jsch": None}

    def test_retained_explicit_version(self):
        document = PomDocument.parse(project_pom(dependencies=[("com.jcraft", "jsch", None)]))
        ChangeParentPom(options(retain_versions=["com.jcraft:jsch:0.1.54"]), repository()).visit(document)
        assert dependency_versions(document) == {"jsch": "0.1.54"}


class TestSession:
    """Test per-document metadata caching."""

    def test_one_fetch_per_session(self, fake_client):
        document = PomDocument.parse(project_pom())
        recipe = ChangeParentPom(options(), fake_client)
        session = recipe.new_session(document)
        recipe.visit(document, session)
        recipe.visit(document, session)
        assert fake_client.fetches == [("org.a", "lib")]
        assert session.metadata_cache.fetch_count == 1

    def test_each_document_gets_its_own_session(self, fake_client):
        recipe = ChangeParentPom(options(), fake_client)
        results = recipe.run([PomDocument.parse(project_pom()), PomDocument.parse(project_pom())])
        assert [r.changed for r in results] == [True, True]
        assert len(fake_client.fetches) == 2


class TestOptions:
    """Test option validation."""

    def test_collects_every_error(self):
        with pytest.raises(ValidationError) as exc_info:
            ChangeParentPom(options(new_version="[1.0", retain_versions=["junit", "a:b:c:d", "ok:ok"]),
                            FakeRepositoryClient())
        errors = exc_info.value.errors
        assert [type(e) for e in errors] == [InvalidConstraint, InvalidRetainEntry, InvalidRetainEntry]
        assert [e.index for e in errors[1:]] == [0, 1]
        assert "retainVersions[0] did not look like a two-or-three-part GAV" in str(errors[1])

    def test_required_coordinates(self):
        with pytest.raises(ValidationError) as exc_info:
            ChangeParentOptions.from_mapping({"newVersion": "1.x"}).validate()
        assert len(exc_info.value.errors) == 2

    def test_from_mapping_accepts_camel_case(self):
        opts = ChangeParentOptions.from_mapping({
            "oldGroupId": "org.a", "oldArtifactId": "lib", "newVersion": "1.x",
            "retainVersions": ["junit:junit"], "allowVersionDowngrades": True,
        })
        assert opts.old_group_id == "org.a"
        assert opts.retain_versions == ["junit:junit"]
        assert opts.allow_version_downgrades is True

    def test_single_retain_entry_string(self):
        opts = ChangeParentOptions.from_mapping({
            "oldGroupId": "org.a", "oldArtifactId": "lib", "newVersion": "1.x",
            "retainVersions": "junit:junit",
        })
        assert opts.retain_versions == ["junit:junit"]

    @pytest.mark.parametrize("value", ["false", "yes", 0, 1])
    def test_downgrades_must_be_boolean(self, value):
        with pytest.raises(ValueError, match="allow_version_downgrades"):
            ChangeParentOptions.from_mapping({
                "oldGroupId": "org.a", "oldArtifactId": "lib", "newVersion": "1.x",
                "allowVersionDowngrades": value,
            })

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="unknown change_parent option"):
            ChangeParentOptions.from_mapping({"oldGroupId": "org.a", "bogus": 1})

    def test_retained_entries_deduplicated(self, fake_client):
        recipe = ChangeParentPom(options(retain_versions=["junit:junit", "junit:junit"]), fake_client)
        assert len(recipe.retained) == 1
