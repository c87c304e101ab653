"""Version constraints used to select a new parent version.

A constraint is built once from the caller's expression (and optional
metadata pattern) with :func:`validate`, then queried per candidate:

- exact versions (``2.7.3``, ``Hoxton.SR12``, ``2.0.0-linux-x86_64``)
- node-style selectors (``1.x``, ``29.X``, ``~1.2``, ``^1.2``, ``>=1.0 <2``)
  evaluated with ``semantic_version.NpmSpec``
- hyphen ranges (``25-29``, ``1.2 - 1.5``)
- Maven bracket ranges (``[1.0,2.0)``, ``(,3]``)
- ``latest.release``, ``latest.integration``, ``latest.minor``, ``latest.patch``

The metadata pattern refines which qualifiers are acceptable: without one
only release versions qualify; with one (``-jre``) the qualifier must match it.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Iterable, Optional, Pattern, Tuple

import semantic_version
from packaging import version

from errors import InvalidConstraint

VERSION_PATTERN = re.compile(r"^(\d+(?:\.\d+)*)(\D.*)?$")
# Release-train names such as Hoxton.SR12 or Moore-RELEASE
NAMED_VERSION = re.compile(r"^[A-Za-z]+[.\-][A-Za-z][A-Za-z0-9._\-]*$")
RELEASE_QUALIFIERS = {"", ".release", ".final", ".ga", "-release", "-final", "-ga"}
HYPHEN_RANGE = re.compile(r"^\s*(\d+(?:\.\d+){0,2})\s*-\s*(\d+(?:\.\d+){0,2})\s*$")
WILDCARD_SEGMENT = re.compile(r"(?:^|\.)[xX*](?:\.|$)")
RANGE_OPERATORS = set("^~<>=|")
EXACT_VERSION = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._+\-]*$")


def _tokens(text: str) -> Tuple:
    return tuple(
        (0, int(tok), "") if tok.isdigit() else (1, 0, tok.lower())
        for tok in re.findall(r"\d+|[A-Za-z]+", text)
    )


@dataclass(frozen=True)
class ParsedVersion:
    """Numeric release and qualifier of a Maven-style version token."""
    raw: str
    release: version.Version
    qualifier: str

    @property
    def major(self) -> int:
        return self.release.major

    @property
    def minor(self) -> int:
        return self.release.minor

    @property
    def patch(self) -> int:
        return self.release.micro

    @property
    def is_release(self) -> bool:
        return self.qualifier.lower() in RELEASE_QUALIFIERS

    def semver(self) -> semantic_version.Version:
        """Numeric core as a semantic version, qualifier dropped."""
        return semantic_version.Version(major=self.major, minor=self.minor, patch=self.patch)

    def sort_key(self) -> Tuple:
        # A release sorts after any qualified build of the same numbers.
        return (self.release, 1 if self.is_release else 0, _tokens(self.qualifier))


def parse_version(value: Optional[str]) -> Optional[ParsedVersion]:
    """Parse a numeric version token, returning None when it is not one."""
    if not value:
        return None
    match = VERSION_PATTERN.match(value.strip())
    if not match:
        return None
    numbers, qualifier = match.groups()
    return ParsedVersion(raw=value, release=version.Version(numbers), qualifier=qualifier or "")


def is_version(value: Optional[str]) -> bool:
    """Return True when ``value`` is a syntactically valid version token."""
    if parse_version(value) is not None:
        return True
    return bool(value) and NAMED_VERSION.match(value.strip()) is not None


class VersionComparator(ABC):
    """Decides which candidates satisfy a constraint and how they order."""

    def __init__(self, metadata_pattern: Optional[str] = None):
        self.metadata_pattern: Optional[Pattern[str]] = (
            re.compile(metadata_pattern) if metadata_pattern else None
        )

    @abstractmethod
    def is_valid(self, current: Optional[str], candidate: str) -> bool:
        """Return True when ``candidate`` satisfies the constraint relative to ``current``."""

    def compare(self, current: Optional[str], v1: str, v2: str) -> int:  # pylint: disable=unused-argument
        """Three-way comparison of two versions; unparseable versions sort first."""
        k1 = _key(v1)
        k2 = _key(v2)
        return (k1 > k2) - (k1 < k2)

    def upgrade(self, current: str, candidates: Iterable[str]) -> Optional[str]:
        """Best candidate strictly newer than ``current``, or None."""
        best = None
        for candidate in candidates:
            if self.compare(current, current, candidate) >= 0:
                continue
            if best is None or self.compare(current, best, candidate) < 0:
                best = candidate
        return best

    def max(self, current: str, candidates: Iterable[str]) -> Optional[str]:
        """Highest candidate under this comparator's ordering, or None."""
        ordered = sorted(candidates, key=cmp_to_key(lambda a, b: self.compare(current, a, b)))
        return ordered[-1] if ordered else None

    def _qualifier_ok(self, parsed: ParsedVersion) -> bool:
        if self.metadata_pattern is not None:
            return bool(parsed.qualifier) and self.metadata_pattern.fullmatch(parsed.qualifier) is not None
        return parsed.is_release


def _key(value: str) -> Tuple:
    # Numeric versions order by packaging's release ordering, then qualifier;
    # release-train names sort below every numeric version.
    parsed = parse_version(value)
    if parsed is not None:
        return (1,) + parsed.sort_key()
    if value and NAMED_VERSION.match(value.strip()):
        return (0, _tokens(value))
    return (-1,)


class ExactVersion(VersionComparator):
    """Matches a single literal version."""

    def __init__(self, version: str, metadata_pattern: Optional[str] = None):
        super().__init__(metadata_pattern)
        self.version = version

    def is_valid(self, current, candidate):
        return candidate == self.version


class LatestRelease(VersionComparator):
    """Any release (or pattern-matching) version."""

    def is_valid(self, current, candidate):
        parsed = parse_version(candidate)
        return parsed is not None and self._qualifier_ok(parsed)


class LatestIntegration(VersionComparator):
    """Any version at all, snapshots and milestones included."""

    def is_valid(self, current, candidate):
        return parse_version(candidate) is not None


class LatestMinor(LatestRelease):
    """Releases sharing the current major version."""

    def is_valid(self, current, candidate):
        cur = parse_version(current)
        parsed = parse_version(candidate)
        return (cur is not None and parsed is not None and self._qualifier_ok(parsed)
                and parsed.major == cur.major)


class LatestPatch(LatestRelease):
    """Releases sharing the current major and minor versions."""

    def is_valid(self, current, candidate):
        cur = parse_version(current)
        parsed = parse_version(candidate)
        return (cur is not None and parsed is not None and self._qualifier_ok(parsed)
                and (parsed.major, parsed.minor) == (cur.major, cur.minor))


class NpmRange(VersionComparator):
    """Node-style selector applied to the numeric core of each candidate."""

    def __init__(self, expression: str, metadata_pattern: Optional[str] = None):
        super().__init__(metadata_pattern)
        self.expression = expression
        self.spec = semantic_version.NpmSpec(_normalize_npm(expression))

    def is_valid(self, current, candidate):
        parsed = parse_version(candidate)
        return parsed is not None and self._qualifier_ok(parsed) and self.spec.match(parsed.semver())


class SetRange(VersionComparator):
    """Maven bracket range such as ``[1.0,2.0)`` or ``(,3.1]``."""

    def __init__(self, expression: str, metadata_pattern: Optional[str] = None):
        super().__init__(metadata_pattern)
        spec = expression.strip()
        if len(spec) < 3 or spec[0] not in "[(" or spec[-1] not in "])":
            raise ValueError(f"not a bracket range: {expression}")
        inner = spec[1:-1]
        parts = inner.split(",")
        if len(parts) > 2:
            raise ValueError(f"too many bounds in range: {expression}")
        self.lower_inclusive = spec.startswith("[")
        self.upper_inclusive = spec.endswith("]")
        if len(parts) == 1:
            # [1.2] pins a single version
            if not parts[0].strip() or not self.lower_inclusive or not self.upper_inclusive:
                raise ValueError(f"invalid single-version range: {expression}")
            self.lower = self.upper = parts[0].strip()
        else:
            self.lower = parts[0].strip() or None
            self.upper = parts[1].strip() or None
        for bound in (self.lower, self.upper):
            if bound is not None and parse_version(bound) is None:
                raise ValueError(f"invalid range bound {bound!r}")

    def is_valid(self, current, candidate):
        parsed = parse_version(candidate)
        if parsed is None or not self._qualifier_ok(parsed):
            return False
        key = _key(candidate)
        if self.lower is not None:
            lower = _key(self.lower)
            if key < lower or (key == lower and not self.lower_inclusive):
                return False
        if self.upper is not None:
            upper = _key(self.upper)
            if key > upper or (key == upper and not self.upper_inclusive):
                return False
        return True


LATEST_SELECTORS = {
    "latest.release": LatestRelease,
    "latest.integration": LatestIntegration,
    "latest.minor": LatestMinor,
    "latest.patch": LatestPatch,
}


def _normalize_npm(expression: str) -> str:
    """Rewrite hyphen ranges and upper-case wildcards into NpmSpec syntax."""
    s = expression.strip().replace("X", "x")
    m = HYPHEN_RANGE.match(s)
    if m:
        low, high = m.group(1), m.group(2)
        low_parts = [int(p) for p in low.split(".")] + [0, 0]
        high_parts = [int(p) for p in high.split(".")]
        lower = ">={}.{}.{}".format(*low_parts[:3])
        if len(high_parts) == 3:
            upper = "<={}.{}.{}".format(*high_parts)
        elif len(high_parts) == 2:
            upper = f"<{high_parts[0]}.{high_parts[1] + 1}.0"
        else:
            upper = f"<{high_parts[0] + 1}.0.0"
        return f"{lower} {upper}"
    return s


def _is_range(expression: str) -> bool:
    return (
        HYPHEN_RANGE.match(expression) is not None
        or any(ch in RANGE_OPERATORS or ch.isspace() for ch in expression)
        or WILDCARD_SEGMENT.search(expression) is not None
    )


def validate(expression: Optional[str], metadata_pattern: Optional[str] = None) -> VersionComparator:
    """Build the comparator for ``expression``.

    Raises:
        InvalidConstraint: when the expression or pattern cannot be used.
    """
    if expression is None or not expression.strip():
        raise InvalidConstraint(expression, metadata_pattern, "a version or selector is required")
    if metadata_pattern:
        try:
            re.compile(metadata_pattern)
        except re.error as exc:
            raise InvalidConstraint(expression, metadata_pattern, f"bad pattern: {exc}") from exc

    s = expression.strip()
    selector = LATEST_SELECTORS.get(s.lower())
    if selector is not None:
        return selector(metadata_pattern)
    try:
        if s[0] in "[(":
            return SetRange(s, metadata_pattern)
        if _is_range(s):
            return NpmRange(s, metadata_pattern)
    except ValueError as exc:
        raise InvalidConstraint(expression, metadata_pattern, str(exc)) from exc
    if EXACT_VERSION.match(s):
        return ExactVersion(s, metadata_pattern)
    raise InvalidConstraint(expression, metadata_pattern, "not a version, range or selector")
