"""Builds the edit plan that moves a parent reference to its target."""
from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Optional

from pom.edits import EditPlan, FieldEdit, InsertEdit, ParentField
from pom.insertion import TagInsertionComparator
from pom.tree import get_child
from versioning.models import ParentReference, TargetIdentity
from versioning.semver import VersionComparator


def resolve_target(
    current: ParentReference,
    constraint: VersionComparator,
    new_group_id: Optional[str] = None,
    new_artifact_id: Optional[str] = None,
    new_relative_path: Optional[str] = None,
) -> TargetIdentity:
    """Fill unset target fields from the current reference."""
    return TargetIdentity(
        group_id=new_group_id if new_group_id is not None else current.group_id,
        artifact_id=new_artifact_id if new_artifact_id is not None else current.artifact_id,
        constraint=constraint,
        relative_path=new_relative_path if new_relative_path is not None else current.relative_path,
    )


def plan(
    current: ParentReference,
    target: TargetIdentity,
    resolved_version: str,
    tag: Optional[ET.Element] = None,
) -> EditPlan:
    """Compute the edits that turn ``current`` into ``target`` at ``resolved_version``.

    Edits come out in field order (group, artifact, version, relative path).
    A relative path the parent does not declare yet becomes an InsertEdit,
    even when the target value is empty. When ``tag`` is given the insertion
    position among its children is recorded on the edit, counting children
    that the field edits before it will add.
    """
    result = EditPlan()
    if target.group_id != current.group_id:
        result.edits.append(FieldEdit(ParentField.GROUP_ID, target.group_id))
    if target.artifact_id != current.artifact_id:
        result.edits.append(FieldEdit(ParentField.ARTIFACT_ID, target.artifact_id))
    if resolved_version != current.version:
        result.edits.append(FieldEdit(ParentField.VERSION, resolved_version))

    if current.relative_path is not None:
        if target.relative_path is not None and target.relative_path != current.relative_path:
            result.edits.append(FieldEdit(ParentField.RELATIVE_PATH, target.relative_path))
    elif target.relative_path is not None:
        position = None
        if tag is not None:
            comparator = TagInsertionComparator.for_parent(tag)
            for edit in result.edits:
                if get_child(tag, edit.field.value) is None:
                    comparator.reserve(edit.field.value)
            position = comparator.insertion_index(ParentField.RELATIVE_PATH.value)
        result.insert = InsertEdit(ParentField.RELATIVE_PATH, target.relative_path, position)
    return result
