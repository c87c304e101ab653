"""Canonical child ordering for POM elements.

New children are placed where the Maven model orders them rather than
appended last. Unknown children and comments keep the rank of the nearest
known sibling before them, so they travel with it.
"""
from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Dict, List, Sequence

from pom.tree import local_name

PROJECT_ORDER = (
    "modelVersion", "parent", "groupId", "artifactId", "version", "packaging",
    "name", "description", "url", "inceptionYear", "organization", "licenses",
    "developers", "contributors", "mailingLists", "prerequisites", "modules",
    "scm", "issueManagement", "ciManagement", "distributionManagement",
    "properties", "dependencyManagement", "dependencies", "repositories",
    "pluginRepositories", "build", "reporting", "profiles",
)
PARENT_ORDER = ("groupId", "artifactId", "version", "relativePath")
DEPENDENCY_ORDER = (
    "groupId", "artifactId", "version", "type", "classifier", "scope",
    "systemPath", "exclusions", "optional",
)

CANONICAL_ORDERS: Dict[str, Sequence[str]] = {
    "project": PROJECT_ORDER,
    "parent": PARENT_ORDER,
    "dependency": DEPENDENCY_ORDER,
}


class TagInsertionComparator:
    """Computes where a new child belongs among existing children."""

    def __init__(self, children: Sequence[ET.Element], order: Sequence[str]):
        self.children = list(children)
        self.rank = {name: i for i, name in enumerate(order)}

    @classmethod
    def for_parent(cls, parent: ET.Element) -> "TagInsertionComparator":
        return cls(list(parent), CANONICAL_ORDERS.get(local_name(parent) or "", ()))

    def _ranks(self) -> List[int]:
        ranks = []
        previous = -1
        for child in self.children:
            name = local_name(child)
            if name in self.rank:
                previous = self.rank[name]
            ranks.append(previous)
        return ranks

    def insertion_index(self, name: str) -> int:
        """Index for a new child ``name``: after every sibling ranked at or before it."""
        if name not in self.rank:
            return len(self.children)
        new_rank = self.rank[name]
        index = 0
        for i, rank in enumerate(self._ranks()):
            if rank <= new_rank:
                index = i + 1
        return index

    def reserve(self, name: str) -> int:
        """Account for a child ``name`` that will be added before the one being placed."""
        index = self.insertion_index(name)
        self.children.insert(index, ET.Element(name))
        return index


def insert_child(parent: ET.Element, child: ET.Element, index: int) -> None:
    """Insert ``child`` at ``index`` keeping the surrounding indentation."""
    children = list(parent)
    if not children:
        parent.insert(0, child)
        return
    if index >= len(children):
        last = children[-1]
        child.tail = last.tail
        last.tail = parent.text
    elif index == 0:
        child.tail = parent.text
    else:
        child.tail = children[index - 1].tail
    parent.insert(index, child)


def add_to_tag(parent: ET.Element, child: ET.Element) -> int:
    """Insert ``child`` at its canonical position in ``parent``; returns the index used."""
    index = TagInsertionComparator.for_parent(parent).insertion_index(local_name(child) or "")
    insert_child(parent, child, index)
    return index


def remove_child(parent: ET.Element, child: ET.Element) -> None:
    """Remove ``child`` and the indentation that preceded it."""
    children = list(parent)
    index = children.index(child)
    if index > 0:
        children[index - 1].tail = child.tail
    elif len(children) == 1:
        parent.text = child.tail
    parent.remove(child)
