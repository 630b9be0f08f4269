"""Map human-supplied identifiers to canonical object ids."""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from resultant_rights.utils.errors import (
    AmbiguousIdentifier,
    ConfigurationError,
    ObjectNotFound,
    UnrecognizedIdentifierFormat,
)
from resultant_rights.utils.logging import get_logger

from .models import ObjectRef

if TYPE_CHECKING:
    from resultant_rights.store.base import PolicyStore

logger = get_logger(__name__)

_GUID = re.compile(
    r"^(?P<open>\{)?(?P<guid>[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})(?(open)\})$",
    re.IGNORECASE,
)
_ACCOUNT = re.compile(r"^(?:(?P<domain>[^\\]+)\\)?(?P<account>[^\\]+)$")


class IdentifierKind(str, Enum):
    GUID = "guid"
    ACCOUNT = "account"
    ATTRIBUTE = "attribute"


@dataclass(frozen=True)
class ParsedIdentifier:
    """Result of classifying a raw identifier string."""

    raw: str
    kind: IdentifierKind
    guid: Optional[str] = None
    domain: Optional[str] = None
    account: Optional[str] = None
    object_type: Optional[str] = None
    attribute: Optional[str] = None
    value: Optional[str] = None


def classify_identifier(raw: str, separator: str = ":") -> ParsedIdentifier:
    """Classify ``raw`` as a GUID, a ``[domain\\]account`` or a type/attribute/value triplet.

    The three shapes never overlap: a GUID is checked first, account names may
    not contain ``separator`` and a triplet splits on its first two separators,
    so the value itself may contain it.
    """

    text = raw.strip()
    match = _GUID.match(text)
    if match:
        return ParsedIdentifier(raw, IdentifierKind.GUID, guid=match.group("guid").lower())

    if separator not in text:
        match = _ACCOUNT.match(text)
        if match:
            domain = (match.group("domain") or "").strip() or None
            account = match.group("account").strip()
            if account and (domain is not None or match.group("domain") is None):
                return ParsedIdentifier(raw, IdentifierKind.ACCOUNT, domain=domain, account=account)
        raise UnrecognizedIdentifierFormat(raw)

    parts = [part.strip() for part in text.split(separator, 2)]
    if len(parts) == 3 and all(parts):
        object_type, attribute, value = parts
        return ParsedIdentifier(
            raw, IdentifierKind.ATTRIBUTE, object_type=object_type, attribute=attribute, value=value
        )
    raise UnrecognizedIdentifierFormat(raw)


class IdentityResolver:
    """Resolve identifiers against a :class:`PolicyStore`."""

    def __init__(
        self,
        store: PolicyStore,
        *,
        separator: str = ":",
        current_domain: Optional[str] = None,
        verify_guids: bool = False,
    ) -> None:
        self._store = store
        self._separator = separator
        self._current_domain = current_domain
        self._verify_guids = verify_guids

    def resolve(self, identifier: str) -> ObjectRef:
        parsed = classify_identifier(identifier, self._separator)
        logger.debug("resolving identifier", extra={"identifier": identifier, "kind": parsed.kind.value})

        if parsed.kind is IdentifierKind.GUID:
            if not self._verify_guids:
                return ObjectRef(id=parsed.guid)
            found = self._store.get_object(parsed.guid)
            if found is None:
                raise ObjectNotFound(identifier)
            return found

        if parsed.kind is IdentifierKind.ACCOUNT:
            domain = parsed.domain or self._current_domain
            if not domain:
                raise ConfigurationError(
                    f"Account {identifier!r} has no domain prefix and no current domain is configured"
                )
            return self._single(identifier, self._store.find_by_account(domain, parsed.account))

        matches = self._store.find_by_attribute(parsed.object_type, parsed.attribute, parsed.value)
        return self._single(identifier, matches)

    def describe(self, ref: ObjectRef) -> ObjectRef:
        """Fill in type and display name for a reference resolved without a lookup."""

        if ref.display_name is not None:
            return ref
        return self._store.get_object(ref.id) or ref

    @staticmethod
    def _single(identifier: str, matches: List[ObjectRef]) -> ObjectRef:
        if not matches:
            raise ObjectNotFound(identifier)
        if len(matches) > 1:
            raise AmbiguousIdentifier(identifier, [ref.id for ref in matches])
        logger.debug("identifier resolved", extra={"identifier": identifier, "object_id": matches[0].id})
        return matches[0]


__all__ = ["IdentifierKind", "ParsedIdentifier", "classify_identifier", "IdentityResolver"]
