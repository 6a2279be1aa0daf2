"""Exceptions raised by registry clients."""


class RegistryError(Exception):
    """Base class for registry lookup failures."""

    def __init__(self, message: str, package: str = ""):
        super().__init__(message)
        self.package = package


class PackageNotFoundError(RegistryError):
    """The registry has no document for the package."""


class NoMatchingVersionError(RegistryError):
    """No published version satisfies the requested spec."""


class InvalidVersionSpecError(RegistryError):
    """The version spec could not be parsed as an npm range."""
