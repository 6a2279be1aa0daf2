"""npm registry access used to resolve dependency manifests."""

from .errors import (
    InvalidVersionSpecError,
    NoMatchingVersionError,
    PackageNotFoundError,
    RegistryError,
)
from .npm_resolver import NpmRegistryResolver, node_id

__all__ = [
    "InvalidVersionSpecError",
    "NoMatchingVersionError",
    "PackageNotFoundError",
    "RegistryError",
    "NpmRegistryResolver",
    "node_id",
]
