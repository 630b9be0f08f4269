"""Compute the sets an object is a materialized member of."""
from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List

from resultant_rights.utils.errors import NoSetsFound
from resultant_rights.utils.logging import get_logger

from .models import SetRef

if TYPE_CHECKING:
    from resultant_rights.store.base import PolicyStore

logger = get_logger(__name__)


class SetMembershipResolver:
    """Look up ``ComputedMember`` sets for one side of a request.

    An empty result is fatal: no set-based strategy can match without set
    context, so the run stops before any rule is evaluated.
    """

    def __init__(self, store: PolicyStore) -> None:
        self._store = store

    def sets_for(self, object_id: str, *, side: str) -> List[SetRef]:
        unique: Dict[str, SetRef] = {}
        for set_ref in self._store.sets_containing(object_id):
            unique.setdefault(set_ref.id.lower(), set_ref)
        if not unique:
            raise NoSetsFound(side, object_id)
        sets = sorted(unique.values())
        logger.info("resolved set membership", extra={"side": side, "object_id": object_id, "count": len(sets)})
        return sets


__all__ = ["SetMembershipResolver"]
