"""Decorate matched rows with human-readable attribute names."""
from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List

from .models import ALL_ATTRIBUTES, ObjectRef, RightsRecord, RuleMatch

if TYPE_CHECKING:
    from resultant_rights.store.base import PolicyStore


class AttributeAggregator:
    """Turn :class:`RuleMatch` rows into :class:`RightsRecord` values.

    Never drops a row. Keys without attribute metadata keep their raw name.
    """

    def __init__(self, store: PolicyStore) -> None:
        self._store = store

    def decorate(self, requestor: ObjectRef, target: ObjectRef, matches: Iterable[RuleMatch]) -> List[RightsRecord]:
        rows = list(matches)
        names = self._store.attribute_display_names(
            {row.attribute_key for row in rows if row.attribute_key is not None}
        )
        return [
            RightsRecord(
                requestor_name=requestor.label,
                target_name=target.label,
                rule_name=row.rule_name,
                action=row.action,
                attribute=ALL_ATTRIBUTES if row.attribute_key is None else names.get(row.attribute_key, row.attribute_key),
            )
            for row in rows
        ]


__all__ = ["AttributeAggregator"]
