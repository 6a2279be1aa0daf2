"""npm version spec classification and selection against a packument."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import semantic_version

from constants import Constants

from .errors import InvalidVersionSpecError, NoMatchingVersionError

_EXTERNAL_PREFIXES = (
    "git+", "git:", "git://", "github:", "gitlab:", "bitbucket:", "gist:",
    "http:", "https:", "file:", "link:", "workspace:", "portal:", "patch:",
)
# "user/repo" or "user/repo#ref" GitHub shorthand
_GITHUB_SHORTHAND = re.compile(r"^[^@\s/][^\s/]*/[^\s/]+(#.*)?$")
_TAG_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9._-]*$")
_X_RANGE = re.compile(r"^[xX*](\.|$)")


class SpecKind(Enum):
    """How a dependency spec is resolved."""
    LATEST = "latest"
    TAG = "tag"
    EXACT = "exact"
    RANGE = "range"
    EXTERNAL = "external"


def split_alias(name: str, spec: str) -> Tuple[str, str]:
    """Unwrap ``npm:<real-name>@<range>`` aliases.

    Returns:
        Tuple of (registry package name, version spec).
    """
    spec = spec.strip()
    if not spec.startswith("npm:"):
        return name, spec
    target = spec[len("npm:"):]
    # Scoped names start with '@', so look for the version separator after it
    sep = target.find("@", 1)
    if sep == -1:
        return target, Constants.DEFAULT_VERSION
    return target[:sep], target[sep + 1:] or Constants.DEFAULT_VERSION


def classify_spec(spec: str) -> SpecKind:
    """Classify a (non-alias) version spec."""
    s = spec.strip()
    if s in ("", "*", "x", Constants.DEFAULT_VERSION):
        return SpecKind.LATEST
    if s.startswith(_EXTERNAL_PREFIXES) or _GITHUB_SHORTHAND.match(s):
        return SpecKind.EXTERNAL
    try:
        semantic_version.Version(s.lstrip("=v"))
        return SpecKind.EXACT
    except ValueError:
        pass
    if _TAG_NAME.match(s) and not _X_RANGE.match(s):
        return SpecKind.TAG
    return SpecKind.RANGE


def _parse_versions(candidates: List[str]) -> List[semantic_version.Version]:
    parsed = []
    for v in candidates:
        try:
            parsed.append(semantic_version.Version(v))
        except ValueError:
            continue  # Skip invalid versions
    return parsed


def _normalize_spec(spec_str: str) -> str:
    """Normalize npm range syntax (hyphen, x-ranges) into SimpleSpec-compatible form."""
    s = spec_str.strip()

    # Hyphen ranges: "1.2.3 - 1.4.5" => ">=1.2.3,<=1.4.5"
    m = re.match(r'^\s*([0-9A-Za-z\.\-\+]+)\s+-\s+([0-9A-Za-z\.\-\+]+)\s*$', s)
    if m:
        return f">={m.group(1)},<={m.group(2)}"

    s2 = s.replace('*', 'x').lower()
    m = re.match(r'^\s*(\d+)\.(\d+)\.x\s*$', s2)
    if m:
        major, minor = int(m.group(1)), int(m.group(2))
        return f">={major}.{minor}.0,<{major}.{minor + 1}.0"

    m = re.match(r'^\s*(\d+)(?:\.x)?\s*$', s2)
    if m:
        major = int(m.group(1))
        return f">={major}.0.0,<{major + 1}.0.0"

    return s


def _parse_range(spec_str: str, package: str):
    # Prefer NpmSpec which understands ^, ~, ||, hyphen ranges and x-ranges natively
    try:
        return semantic_version.NpmSpec(spec_str)
    except ValueError:
        try:
            return semantic_version.SimpleSpec(_normalize_spec(spec_str))
        except ValueError as exc:
            raise InvalidVersionSpecError(
                f"Invalid semver spec '{spec_str}' for {package}: {exc}", package
            ) from exc


def pick_version(packument: Dict[str, Any], spec: str) -> str:
    """Select the concrete version a spec resolves to.

    Args:
        packument: Full registry document for one package.
        spec: Non-alias, registry-resolvable version spec.

    Returns:
        The selected version string.

    Raises:
        NoMatchingVersionError: If nothing satisfies the spec.
        InvalidVersionSpecError: If the spec is not a valid range.
    """
    package = str(packument.get("name", ""))
    versions = packument.get("versions") or {}
    dist_tags = packument.get("dist-tags") or {}
    kind = classify_spec(spec)
    s = spec.strip()

    if kind == SpecKind.LATEST:
        latest = dist_tags.get(Constants.DEFAULT_VERSION)
        if latest in versions:
            return latest
        parsed = [v for v in _parse_versions(list(versions)) if not v.prerelease]
        if not parsed:
            raise NoMatchingVersionError(f"No versions published for {package}", package)
        return str(max(parsed))

    if kind == SpecKind.TAG:
        tagged = dist_tags.get(s)
        if tagged in versions:
            return tagged
        raise NoMatchingVersionError(f"No dist-tag '{s}' for {package}", package)

    if kind == SpecKind.EXACT:
        exact = s.lstrip("=v")
        if exact in versions:
            return exact
        raise NoMatchingVersionError(f"Version {exact} of {package} not found", package)

    if kind == SpecKind.EXTERNAL:
        raise InvalidVersionSpecError(f"'{s}' is not a registry version spec", package)

    npm_spec = _parse_range(s, package)
    latest = dist_tags.get(Constants.DEFAULT_VERSION)
    if latest in versions:
        try:
            if semantic_version.Version(latest) in npm_spec:
                return latest
        except ValueError:
            pass

    best: Optional[semantic_version.Version] = npm_spec.select(_parse_versions(list(versions)))
    if best is None:
        raise NoMatchingVersionError(f"No versions of {package} match spec '{s}'", package)
    return str(best)
