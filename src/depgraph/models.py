"""Data models for package manifests and resolution results."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Union

# npm "person" shorthand: "Name <email> (url)", every part optional
_PERSON_RE = re.compile(r"^\s*([^<(]*?)\s*(?:<([^>]*)>)?\s*(?:\(([^)]*)\))?\s*$")


@dataclass
class Person:
    """Structured author/maintainer record."""
    name: Optional[str] = None
    email: Optional[str] = None
    url: Optional[str] = None

    def matches(self, query: str) -> bool:
        """Case-insensitive match against name or email."""
        needle = query.strip().lower()
        if not needle:
            return False
        return any(
            value is not None and value.strip().lower() == needle
            for value in (self.name, self.email)
        )


Maintainer = Union[str, Person]


def parse_person(value: Maintainer) -> Person:
    """Normalize a maintainer entry into a Person.

    Args:
        value: Either an npm person string ("Name <email> (url)") or a Person.

    Returns:
        Person with whichever fields could be recovered.
    """
    if isinstance(value, Person):
        return value
    match = _PERSON_RE.match(value or "")
    if not match:
        return Person(name=value.strip() or None)
    name, email, url = match.groups()
    return Person(name=name or None, email=email or None, url=url or None)


def _maintainer_from_raw(raw: Any) -> Optional[Maintainer]:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, dict):
        return Person(
            name=raw.get("name") if isinstance(raw.get("name"), str) else None,
            email=raw.get("email") if isinstance(raw.get("email"), str) else None,
            url=raw.get("url") if isinstance(raw.get("url"), str) else None,
        )
    return None


@dataclass
class Manifest:
    """Declared package metadata for one concrete version."""
    name: str
    version: str
    dependencies: Dict[str, str] = field(default_factory=dict)
    author: Optional[Maintainer] = None
    maintainers: List[Maintainer] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Manifest":
        """Build a Manifest from a registry version document.

        Non-string dependency specs and malformed maintainer entries are dropped.
        """
        deps = data.get("dependencies") or {}
        dependencies = {
            str(dep): spec for dep, spec in deps.items() if isinstance(spec, str)
        } if isinstance(deps, dict) else {}
        raw_maintainers = data.get("maintainers") or []
        maintainers: List[Maintainer] = []
        if isinstance(raw_maintainers, list):
            for raw in raw_maintainers:
                parsed = _maintainer_from_raw(raw)
                if parsed is not None:
                    maintainers.append(parsed)
        return cls(
            name=str(data.get("name", "")),
            version=str(data.get("version", "")),
            dependencies=dependencies,
            author=_maintainer_from_raw(data.get("author")),
            maintainers=maintainers,
        )

    def people(self) -> List[Person]:
        """Author followed by maintainers, normalized."""
        entries: List[Maintainer] = []
        if self.author is not None:
            entries.append(self.author)
        entries.extend(self.maintainers)
        return [parse_person(entry) for entry in entries]

    def is_maintained_by(self, query: str) -> bool:
        return any(person.matches(query) for person in self.people())


@dataclass(eq=False)
class ResolvedManifest(Manifest):
    """Manifest augmented with its node id and resolved children.

    Several parents may hold the same instance, and the graph may be cyclic,
    so equality is identity and children are left out of ``repr``.
    """
    id: str = ""
    resolved_dependencies: Dict[str, "ResolvedManifest"] = field(
        default_factory=dict, repr=False
    )

    @classmethod
    def from_manifest(cls, manifest: Manifest, node_id: str) -> "ResolvedManifest":
        return cls(
            name=manifest.name,
            version=manifest.version,
            dependencies=dict(manifest.dependencies),
            author=manifest.author,
            maintainers=list(manifest.maintainers),
            id=node_id,
        )


@dataclass(frozen=True)
class ResolveResult:
    """Outcome of resolving one (name, version spec) request.

    ``manifest`` is None when no manifest exists for ``id``; that is not an error.
    """
    id: str
    manifest: Optional[Manifest]


class Resolver(Protocol):  # pylint: disable=too-few-public-methods
    """Anything able to turn a (name, version spec) pair into a manifest."""

    async def resolve(self, name: str, version_spec: str) -> ResolveResult:
        """Resolve one request; may raise on failure."""
