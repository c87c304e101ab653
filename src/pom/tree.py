"""Mutable pom.xml document built on ElementTree.

Children are addressed by local name; the document's default namespace (if
any) is applied automatically, so namespaced and plain POMs behave the same.
Comments inside the root are kept in the tree; everything before the root
element (declaration, license comments) is kept verbatim as the prolog.
"""
from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from constants import Constants
from versioning.models import ParentReference

_PROLOG = re.compile(r"^(?:\s*(?:<\?.*?\?>|<!--.*?-->|<!DOCTYPE[^>]*>))*\s*", re.DOTALL)
_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


def local_name(element: ET.Element) -> Optional[str]:
    """Tag name without namespace; None for comments and processing instructions."""
    if not isinstance(element.tag, str):
        return None
    return element.tag.rsplit("}", 1)[-1]


def namespace_of(element: ET.Element) -> str:
    if isinstance(element.tag, str) and element.tag.startswith("{"):
        return element.tag[1:].split("}", 1)[0]
    return ""


def qualify(element: ET.Element, name: str) -> str:
    ns = namespace_of(element)
    return f"{{{ns}}}{name}" if ns else name


def get_child(element: ET.Element, name: str) -> Optional[ET.Element]:
    """First child named ``name``, or None."""
    for child in element:
        if local_name(child) == name:
            return child
    return None


def get_children(element: ET.Element, name: str) -> List[ET.Element]:
    return [child for child in element if local_name(child) == name]


def get_child_value(element: ET.Element, name: str) -> Optional[str]:
    """Stripped text of child ``name``; "" for an empty element, None when absent."""
    child = get_child(element, name)
    if child is None:
        return None
    return (child.text or "").strip()


def build_leaf(parent: ET.Element, name: str, value: Optional[str]) -> ET.Element:
    """Create (but do not attach) a leaf in ``parent``'s namespace.

    An empty or None value produces an element with no text, which is
    serialized self-closing.
    """
    leaf = ET.Element(qualify(parent, name))
    leaf.text = value if value else None
    return leaf


def find_path(element: ET.Element, *names: str) -> Optional[ET.Element]:
    """Follow a chain of child names, returning None at the first gap."""
    current: Optional[ET.Element] = element
    for name in names:
        if current is None:
            return None
        current = get_child(current, name)
    return current


@dataclass
class Marker:
    """Warning attached to an element of a document."""
    element: ET.Element
    path: str
    message: str


@dataclass
class PomDocument:
    """A parsed pom.xml plus the warnings attached to it during a run."""
    root: ET.Element
    path: Optional[str] = None
    prolog: str = ""
    trailing_newline: bool = True
    markers: List[Marker] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str, path: Optional[str] = None) -> "PomDocument":
        """Parse POM text.

        Raises:
            ET.ParseError: when the text is not well-formed XML.
        """
        parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
        root = ET.fromstring(text, parser=parser)
        m = _PROLOG.match(text)
        return cls(root=root, path=path, prolog=m.group(0) if m else "",
                   trailing_newline=text.endswith("\n"))

    @classmethod
    def from_file(cls, path: str) -> "PomDocument":
        with open(path, encoding="utf-8") as fh:
            return cls.parse(fh.read(), path=path)

    @property
    def namespace(self) -> str:
        return namespace_of(self.root)

    def to_string(self) -> str:
        ns = self.namespace
        if ns:
            # default_namespace= rejects unqualified attributes, which POMs use
            ET.register_namespace("", ns)
        body = ET.tostring(self.root, encoding="unicode")
        text = self.prolog + body
        if self.trailing_newline and not text.endswith("\n"):
            text += "\n"
        return text

    def write(self, path: Optional[str] = None) -> None:
        target = path or self.path
        if target is None:
            raise ValueError("document has no path to write to")
        with open(target, "w", encoding="utf-8") as fh:
            fh.write(self.to_string())

    # -- structure -------------------------------------------------------

    @property
    def parent_tag(self) -> Optional[ET.Element]:
        return get_child(self.root, "parent")

    def direct_dependencies(self) -> List[ET.Element]:
        """``project/dependencies/dependency`` elements, in document order."""
        deps = get_child(self.root, "dependencies")
        return get_children(deps, "dependency") if deps is not None else []

    def managed_dependencies(self) -> List[ET.Element]:
        """``project/dependencyManagement/dependencies/dependency`` elements."""
        deps = find_path(self.root, "dependencyManagement", "dependencies")
        return get_children(deps, "dependency") if deps is not None else []

    def path_of(self, element: ET.Element) -> str:
        """Slash path of local names from the root to ``element``."""
        parents: Dict[ET.Element, ET.Element] = {c: p for p in self.root.iter() for c in p}
        names: List[str] = []
        node: Optional[ET.Element] = element
        while node is not None:
            names.append(local_name(node) or "#comment")
            node = parents.get(node)
        return "/" + "/".join(reversed(names))

    # -- values ------------------------------------------------------------

    def properties(self) -> Dict[str, str]:
        """Declared ``<properties>`` plus the implicit ``project.*`` coordinates."""
        props: Dict[str, str] = {}
        parent = self.parent_tag
        if parent is not None:
            for name in ("groupId", "artifactId", "version"):
                value = get_child_value(parent, name)
                if value is not None:
                    props[f"project.parent.{name}"] = value
                    props[f"parent.{name}"] = value
        for name in ("groupId", "artifactId", "version"):
            value = get_child_value(self.root, name)
            if value is None and name != "artifactId":
                value = props.get(f"project.parent.{name}")
            if value is not None:
                props[f"project.{name}"] = value
                props[f"pom.{name}"] = value
        declared = get_child(self.root, "properties")
        if declared is not None:
            for prop in declared:
                name = local_name(prop)
                if name:
                    props[name] = (prop.text or "").strip()
        return props

    def resolve_value(self, value: Optional[str], extra: Optional[Dict[str, str]] = None) -> Optional[str]:
        """Interpolate ``${...}`` placeholders; unknown placeholders are left as is."""
        if value is None or "${" not in value:
            return value
        props = dict(extra or {})
        props.update(self.properties())
        return interpolate(value, props)

    def parent_reference(self) -> Optional[ParentReference]:
        """Snapshot of ``<parent>``, or None when there is no usable parent."""
        parent = self.parent_tag
        if parent is None:
            return None
        group_id = self.resolve_value(get_child_value(parent, "groupId"))
        artifact_id = self.resolve_value(get_child_value(parent, "artifactId"))
        if not group_id or not artifact_id:
            return None
        version = self.resolve_value(get_child_value(parent, "version")) or ""
        relative_path = self.resolve_value(get_child_value(parent, "relativePath"))
        return ParentReference(group_id, artifact_id, version, relative_path)


def interpolate(value: str, props: Dict[str, str]) -> str:
    """Replace ``${name}`` with ``props[name]`` until nothing changes."""
    result = value
    for _ in range(Constants.MAX_INTERPOLATION_PASSES):
        replaced = _PLACEHOLDER.sub(lambda m: props.get(m.group(1), m.group(0)), result)
        if replaced == result:
            break
        result = replaced
    return result
