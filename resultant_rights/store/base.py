"""Read-only query contract of the policy/identity store."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from resultant_rights.rights.matcher import PolicyRuleMatcher
from resultant_rights.rights.models import ManagementPolicyRule, ObjectRef, RuleMatch, SetRef


class PolicyStore(ABC):
    """Queries the resolution pipeline issues against the store.

    Implementations must take every argument as a bound parameter; no input is
    ever spliced into query text. While a store is open its queries observe a
    single consistent snapshot.
    """

    def open(self) -> None:
        """Acquire the underlying connection."""

    def close(self) -> None:
        """Release the underlying connection."""

    def __enter__(self) -> "PolicyStore":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- identity lookups ---------------------------------------------------------
    @abstractmethod
    def get_object(self, object_id: str) -> Optional[ObjectRef]:
        """Return the object with ``object_id`` or ``None``."""

    @abstractmethod
    def find_by_account(self, domain: str, account: str) -> List[ObjectRef]:
        """Return objects whose account name and domain both match."""

    @abstractmethod
    def find_by_attribute(self, object_type: str, attribute: str, value: str) -> List[ObjectRef]:
        """Return objects of ``object_type`` carrying ``attribute == value``."""

    # -- membership ---------------------------------------------------------------
    @abstractmethod
    def sets_containing(self, object_id: str) -> List[SetRef]:
        """Return the sets ``object_id`` is a computed member of, ordered by name."""

    @abstractmethod
    def is_computed_member(self, set_id: str, object_id: str) -> bool:
        """Return whether ``object_id`` is a computed member of ``set_id``."""

    # -- policy -------------------------------------------------------------------
    @abstractmethod
    def active_rules(self) -> List[ManagementPolicyRule]:
        """Return request rules that grant rights."""

    @abstractmethod
    def reference_values(self, object_id: str, attribute: str) -> List[str]:
        """Return the reference values ``object_id`` holds in ``attribute``."""

    @abstractmethod
    def attribute_display_names(self, keys: Iterable[str]) -> Dict[str, str]:
        """Map attribute keys to their human-readable names where known."""

    def match_rules(
        self,
        requestor_id: str,
        target_id: str,
        requestor_set_ids: Iterable[str],
        target_set_ids: Iterable[str],
    ) -> List[RuleMatch]:
        """Evaluate every matching strategy for the pair and union the rows."""

        return PolicyRuleMatcher(self).match(requestor_id, target_id, requestor_set_ids, target_set_ids)


__all__ = ["PolicyStore"]
