"""Edit commands for a ``<parent>`` element and the reducer that applies them."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Union

import xml.etree.ElementTree as ET

from pom.insertion import add_to_tag, insert_child
from pom.tree import PomDocument, build_leaf, get_child


class ParentField(Enum):
    GROUP_ID = "groupId"
    ARTIFACT_ID = "artifactId"
    VERSION = "version"
    RELATIVE_PATH = "relativePath"


@dataclass(frozen=True)
class FieldEdit:
    """Replace the value of an existing ``<parent>`` child."""
    field: ParentField
    new_value: str


@dataclass(frozen=True)
class InsertEdit:
    """Add a ``<parent>`` child that is not there yet, at its canonical position.

    ``position`` is the child index computed at planning time. When it is
    unset, or past the end of the element, the reducer falls back to the
    canonical order.
    """
    field: ParentField
    new_value: str
    position: Optional[int] = None


Edit = Union[FieldEdit, InsertEdit]


@dataclass
class EditPlan:
    """Field edits in emission order plus at most one trailing insertion."""
    edits: List[FieldEdit] = field(default_factory=list)
    insert: Optional[InsertEdit] = None

    def __iter__(self) -> Iterator[Edit]:
        yield from self.edits
        if self.insert is not None:
            yield self.insert

    def __len__(self) -> int:
        return len(self.edits) + (1 if self.insert is not None else 0)

    @property
    def is_empty(self) -> bool:
        return len(self) == 0


def change_tag_value(element: ET.Element, value: str) -> None:
    """Set a leaf's text; an empty value leaves a self-closing element."""
    element.text = value if value else None


def apply_edit(document: PomDocument, edit: Edit) -> bool:
    """Apply one edit to the document's current ``<parent>``.

    A FieldEdit whose element has disappeared falls back to insertion, and an
    InsertEdit whose element already exists changes it in place, so replaying
    a plan never duplicates children.

    Returns:
        True when the tree changed.
    """
    parent = document.parent_tag
    if parent is None:
        return False
    name = edit.field.value
    existing = get_child(parent, name)
    if existing is not None:
        current = existing.text.strip() if existing.text else ""
        if current == edit.new_value:
            return False
        change_tag_value(existing, edit.new_value)
        return True
    leaf = build_leaf(parent, name, edit.new_value)
    if isinstance(edit, InsertEdit) and edit.position is not None and edit.position <= len(parent):
        insert_child(parent, leaf, edit.position)
    else:
        add_to_tag(parent, leaf)
    return True
