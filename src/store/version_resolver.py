"""Version request resolution.

This module decides which stored version satisfies a version token:
``latest``, an exact version string, or an npm-style semver range
(``0.0.x``, ``^1.2.0``, ``~1.2``, ``>=1.0.0 <2.0.0``, ``1.x || 2.x``).
Versions are ordered by semver precedence: releases rank above their
prereleases and prerelease identifiers compare field by field. Resolution
is pure and never raises; malformed tokens or versions simply do not match.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, Union

from core.constants import LATEST_VERSION_TOKEN
from core.types import ResolvedVersion

VersionMatcher = Callable[[str, str], bool]
PrereleaseKey = tuple[tuple[int, Union[int, str]], ...]
VersionKey = tuple[int, int, int, tuple[int, PrereleaseKey]]
Comparator = tuple[str, VersionKey]

_WILDCARDS = frozenset({"x", "X", "*"})
_VERSION_PATTERN = re.compile(
    r"^v?(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)
_PARTIAL_PATTERN = re.compile(
    r"^v?(?P<major>\d+|[xX*])"
    r"(?:\.(?P<minor>\d+|[xX*]))?"
    r"(?:\.(?P<patch>\d+|[xX*]))?"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)
_OPERATOR_PATTERN = re.compile(r"^(>=|<=|>|<|=|\^|~>?)?(.*)$")
_OPERATOR_SPACING = re.compile(r"(>=|<=|>|<|=|\^|~>?)\s+")
_HYPHEN_PATTERN = re.compile(r"^(\S+)\s+-\s+(\S+)$")
# below every real version: prereleases always carry at least one identifier
_MIN_KEY: VersionKey = (0, 0, 0, (0, ()))


class _Partial:
    """Parsed version with optional wildcard segments."""

    def __init__(self, major: int | None, minor: int | None, patch: int | None, pre: str | None):
        self.major = major
        self.minor = minor
        self.patch = patch
        self.pre = pre

    @property
    def is_full(self) -> bool:
        return self.patch is not None

    def floor(self) -> VersionKey:
        pre = self.pre if self.is_full else None
        return _version_key(self.major or 0, self.minor or 0, self.patch or 0, pre)


def resolve_version(
    requested: str | None,
    current_version: str | None,
    historical_versions: Iterable[str],
    matcher: VersionMatcher | None = None,
) -> ResolvedVersion | None:
    """Resolve a version token against current and historical versions.

    Args:
        requested: Version token; ``None`` or ``latest`` selects current.
        current_version: Version at the current location, if one exists.
        historical_versions: Frozen version strings.
        matcher: Optional range matcher, defaults to ``satisfies``.

    Returns:
        Resolved version, or None when nothing satisfies the request.
    """
    match = matcher or satisfies
    token = (requested or LATEST_VERSION_TOKEN).strip()
    if token == LATEST_VERSION_TOKEN:
        if current_version is None:
            return None
        return ResolvedVersion(version=current_version, is_current=True)
    history = tuple(historical_versions)
    if current_version is not None and current_version == token:
        return ResolvedVersion(version=current_version, is_current=True)
    if token in history:
        return ResolvedVersion(version=token, is_current=False)
    if current_version is not None and match(current_version, token):
        return ResolvedVersion(version=current_version, is_current=True)
    candidates = [version for version in history if match(version, token)]
    if not candidates:
        return None
    return ResolvedVersion(version=max(candidates, key=precedence_key), is_current=False)


def satisfies(version: str, version_range: str) -> bool:
    """Return whether a version satisfies an npm-style semver range.

    Args:
        version: Concrete version string.
        version_range: Range expression.

    Returns:
        True when any ``||`` alternative matches.
    """
    parsed = parse_version(version)
    if parsed is None:
        return False
    for alternative in version_range.split("||"):
        comparators = _parse_comparator_set(alternative)
        if comparators is None:
            continue
        if all(_compare(parsed, operator, bound) for operator, bound in comparators):
            return True
    return False


def parse_version(version: str) -> VersionKey | None:
    """Parse a semver string into its precedence key, or None if malformed."""
    match = _VERSION_PATTERN.match(version.strip())
    if match is None:
        return None
    return _version_key(
        int(match.group("major")),
        int(match.group("minor")),
        int(match.group("patch")),
        match.group("pre"),
    )


def precedence_key(version: str) -> tuple[int, VersionKey, str]:
    """Sort key ordering valid versions by semver precedence, invalid ones first."""
    parsed = parse_version(version)
    if parsed is None:
        return (0, _MIN_KEY, version)
    return (1, parsed, version)


def _version_key(major: int, minor: int, patch: int, pre: str | None) -> VersionKey:
    if not pre:
        return (major, minor, patch, (1, ()))
    identifiers = tuple(
        (0, int(part)) if part.isdigit() else (1, part) for part in pre.split(".")
    )
    return (major, minor, patch, (0, identifiers))


def _parse_comparator_set(expression: str) -> list[Comparator] | None:
    text = expression.strip()
    if text in ("", *_WILDCARDS):
        return []
    hyphen = _HYPHEN_PATTERN.match(text)
    if hyphen:
        return _hyphen_range(hyphen.group(1), hyphen.group(2))
    comparators: list[Comparator] = []
    for token in _OPERATOR_SPACING.sub(r"\1", text).split():
        expanded = _expand_token(token)
        if expanded is None:
            return None
        comparators.extend(expanded)
    return comparators


def _expand_token(token: str) -> list[Comparator] | None:
    operator_match = _OPERATOR_PATTERN.match(token)
    if operator_match is None:
        return None
    operator = operator_match.group(1) or "="
    partial = _parse_partial(operator_match.group(2))
    if partial is None:
        return None
    if operator == "^":
        return _caret_range(partial)
    if operator in ("~", "~>"):
        return _tilde_range(partial)
    if operator == "=":
        return _x_range(partial)
    return _primitive(operator, partial)


def _parse_partial(text: str) -> _Partial | None:
    if text in _WILDCARDS:
        return _Partial(None, None, None, None)
    match = _PARTIAL_PATTERN.match(text)
    if match is None:
        return None
    segments = [match.group(name) for name in ("major", "minor", "patch")]
    numbers: list[int | None] = []
    for segment in segments:
        if segment is None or segment in _WILDCARDS:
            break
        numbers.append(int(segment))
    numbers.extend([None] * (3 - len(numbers)))
    return _Partial(numbers[0], numbers[1], numbers[2], match.group("pre"))


def _x_range(partial: _Partial) -> list[Comparator]:
    if partial.major is None:
        return []
    if partial.is_full:
        return [("==", partial.floor())]
    return [(">=", partial.floor()), ("<", _next_boundary(partial))]


def _caret_range(partial: _Partial) -> list[Comparator]:
    if partial.major is None:
        return []
    floor = partial.floor()
    if partial.major > 0 or partial.minor is None:
        upper = _version_key(partial.major + 1, 0, 0, None)
    elif partial.minor > 0 or partial.patch is None:
        upper = _version_key(0, partial.minor + 1, 0, None)
    else:
        upper = _version_key(0, 0, partial.patch + 1, None)
    return [(">=", floor), ("<", upper)]


def _tilde_range(partial: _Partial) -> list[Comparator]:
    if partial.major is None:
        return []
    if partial.minor is None:
        return [(">=", partial.floor()), ("<", _version_key(partial.major + 1, 0, 0, None))]
    upper = _version_key(partial.major, partial.minor + 1, 0, None)
    return [(">=", partial.floor()), ("<", upper)]


def _primitive(operator: str, partial: _Partial) -> list[Comparator]:
    if partial.major is None:
        return [] if operator in (">=", "<=") else [("<", _MIN_KEY)]
    if partial.is_full:
        return [(operator, partial.floor())]
    if operator == ">":
        return [(">=", _next_boundary(partial))]
    if operator == "<=":
        return [("<", _next_boundary(partial))]
    return [(operator, partial.floor())]


def _hyphen_range(lower_text: str, upper_text: str) -> list[Comparator] | None:
    lower = _parse_partial(lower_text)
    upper = _parse_partial(upper_text)
    if lower is None or upper is None:
        return None
    return _primitive(">=", lower) + _primitive("<=", upper)


def _next_boundary(partial: _Partial) -> VersionKey:
    if partial.minor is None:
        return _version_key((partial.major or 0) + 1, 0, 0, None)
    return _version_key(partial.major or 0, partial.minor + 1, 0, None)


def _compare(version: VersionKey, operator: str, bound: VersionKey) -> bool:
    if operator == ">=":
        return version >= bound
    if operator == ">":
        return version > bound
    if operator == "<=":
        return version <= bound
    if operator == "<":
        return version < bound
    return version == bound
