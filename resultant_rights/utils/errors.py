"""Custom exceptions used across the resultant rights tool."""
from __future__ import annotations

from typing import Iterable


class RightsError(Exception):
    """Base exception for all tool-specific errors.

    ``kind`` is a stable identifier printed alongside the message at the
    process boundary.
    """

    kind = "RightsError"


class ConfigurationError(RightsError):
    """Raised when configuration loading or validation fails."""

    kind = "ConfigurationError"


class UnrecognizedIdentifierFormat(RightsError):
    """Raised when an identifier is neither a GUID, an account nor a triplet."""

    kind = "UnrecognizedIdentifierFormat"

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Identifier {identifier!r} is not a GUID, account name or attribute triplet")
        self.identifier = identifier


class ObjectNotFound(RightsError):
    """Raised when an identifier resolves to no object in the store."""

    kind = "ObjectNotFound"

    def __init__(self, identifier: str) -> None:
        super().__init__(f"No object found for {identifier!r}")
        self.identifier = identifier


class AmbiguousIdentifier(RightsError):
    """Raised when an identifier resolves to more than one object."""

    kind = "AmbiguousIdentifier"

    def __init__(self, identifier: str, matches: Iterable[str]) -> None:
        self.identifier = identifier
        self.matches = sorted(matches)
        super().__init__(f"Identifier {identifier!r} matches {len(self.matches)} objects: {', '.join(self.matches)}")


class StoreQueryFailure(RightsError):
    """Raised when the policy store reports an error for a query."""

    kind = "StoreQueryFailure"


class NoSetsFound(RightsError):
    """Raised when the requestor or target belongs to no set."""

    kind = "NoSetsFound"

    def __init__(self, side: str, object_id: str) -> None:
        super().__init__(f"The {side} {object_id} is not a member of any set")
        self.side = side
        self.object_id = object_id


__all__ = [
    "RightsError",
    "ConfigurationError",
    "UnrecognizedIdentifierFormat",
    "ObjectNotFound",
    "AmbiguousIdentifier",
    "StoreQueryFailure",
    "NoSetsFound",
]
