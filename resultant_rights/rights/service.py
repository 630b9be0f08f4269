"""Resolve the effective grants between a requestor and a target."""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from resultant_rights.utils.logging import get_logger

from .aggregator import AttributeAggregator
from .identity import IdentityResolver
from .membership import SetMembershipResolver
from .models import RightsReport, sort_records

if TYPE_CHECKING:
    from resultant_rights.store.base import PolicyStore

logger = get_logger(__name__)


class ResultantRightsService:
    """Run the resolution pipeline for one (requestor, target) pair.

    The store is opened for the duration of :meth:`resolve` only and every
    query of the run shares its snapshot. Failures propagate as
    :class:`~resultant_rights.utils.errors.RightsError` before any record is
    returned.
    """

    def __init__(
        self,
        store: PolicyStore,
        *,
        separator: str = ":",
        current_domain: Optional[str] = None,
        verify_guids: bool = False,
    ) -> None:
        self._store = store
        self._resolver = IdentityResolver(
            store, separator=separator, current_domain=current_domain, verify_guids=verify_guids
        )
        self._membership = SetMembershipResolver(store)
        self._aggregator = AttributeAggregator(store)

    def resolve(self, requestor_identifier: str, target_identifier: str) -> RightsReport:
        with self._store:
            requestor = self._resolver.resolve(requestor_identifier)
            target = self._resolver.resolve(target_identifier)

            requestor_sets = self._membership.sets_for(requestor.id, side="requestor")
            target_sets = self._membership.sets_for(target.id, side="target")

            matches = self._store.match_rules(
                requestor.id,
                target.id,
                [set_ref.id for set_ref in requestor_sets],
                [set_ref.id for set_ref in target_sets],
            )
            requestor = self._resolver.describe(requestor)
            target = self._resolver.describe(target)
            records = self._aggregator.decorate(requestor, target, matches)

        # Distinct rules may share a display name and distinct keys may share a
        # display attribute; output rows are unique on what is shown.
        unique = {}
        for record in records:
            unique.setdefault((record.rule_name, record.action, record.attribute), record)
        records = list(unique.values())

        logger.info(
            "resolved resultant rights",
            extra={"requestor": requestor.id, "target": target.id, "records": len(records)},
        )
        return RightsReport(requestor=requestor, target=target, records=sort_records(records))


__all__ = ["ResultantRightsService"]
