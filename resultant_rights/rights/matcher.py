"""Match management policy rules between a requestor and a target."""
from __future__ import annotations

from collections import Counter
from enum import Enum
from typing import TYPE_CHECKING, Dict, FrozenSet, Iterable, Iterator, List, Optional, Set, Tuple

from resultant_rights.utils.logging import get_logger

from .models import ActionType, ManagementPolicyRule, RuleMatch

if TYPE_CHECKING:
    from resultant_rights.store.base import PolicyStore

logger = get_logger(__name__)

CURRENT_SET_OPERATIONS: FrozenSet[ActionType] = frozenset(
    {ActionType.ADD, ActionType.DELETE, ActionType.MODIFY, ActionType.READ, ActionType.REMOVE}
)
FINAL_SET_OPERATIONS: FrozenSet[ActionType] = frozenset({ActionType.CREATE})


class MatchStrategy(str, Enum):
    PRINCIPAL_CURRENT_SET = "principal-current-set"
    PRINCIPAL_FINAL_SET = "principal-final-set"
    RELATIVE_TO_RESOURCE = "relative-to-resource"


def _normalise(ids: Iterable[str]) -> Set[str]:
    return {value.lower() for value in ids}


def _contains(ids: Set[str], value: Optional[str]) -> bool:
    return value is not None and value.lower() in ids


def expand_rule(
    rule: ManagementPolicyRule,
    operations: FrozenSet[ActionType],
    *,
    allow_unattributed: bool = False,
) -> Iterator[RuleMatch]:
    """Yield one row per operation and scoped attribute.

    A rule without an attribute scope yields a single ``None`` attribute row per
    operation. With ``allow_unattributed`` a rule without operations still
    yields one row carrying neither action nor attribute.
    """

    if not operations:
        if allow_unattributed:
            yield RuleMatch(rule.id, rule.name, None, None)
        return
    keys: List[Optional[str]] = list(sorted(rule.attribute_scope)) or [None]
    for action in sorted(operations, key=lambda op: op.rank):
        for key in keys:
            yield RuleMatch(rule.id, rule.name, action, key)


class PolicyRuleMatcher:
    """Evaluate the three matching strategies and union their rows.

    Only request rules that grant rights take part. Duplicate
    ``(rule, action, attribute)`` rows produced by more than one strategy
    collapse to a single row.
    """

    def __init__(self, store: "PolicyStore") -> None:
        self._store = store

    def match(
        self,
        requestor_id: str,
        target_id: str,
        requestor_set_ids: Iterable[str],
        target_set_ids: Iterable[str],
    ) -> List[RuleMatch]:
        requestor_sets = _normalise(requestor_set_ids)
        target_sets = _normalise(target_set_ids)
        rows: Dict[Tuple[str, Optional[ActionType], Optional[str]], RuleMatch] = {}
        hits: Counter[str] = Counter()

        for rule in self._store.active_rules():
            if not rule.is_active:
                continue
            for strategy, produced in self._evaluate(rule, requestor_id, target_id, requestor_sets, target_sets):
                hits[strategy.value] += 1
                for row in produced:
                    rows.setdefault(row.identity, row)

        logger.info(
            "matched policy rules",
            extra={"requestor": requestor_id, "target": target_id, "rows": len(rows), "strategies": dict(hits)},
        )
        return list(rows.values())

    def _evaluate(
        self,
        rule: ManagementPolicyRule,
        requestor_id: str,
        target_id: str,
        requestor_sets: Set[str],
        target_sets: Set[str],
    ) -> Iterator[Tuple[MatchStrategy, List[RuleMatch]]]:
        if self.principal_current_set(rule, requestor_sets, target_sets):
            yield MatchStrategy.PRINCIPAL_CURRENT_SET, list(
                expand_rule(rule, rule.operations & CURRENT_SET_OPERATIONS)
            )
        if self.principal_final_set(rule, requestor_sets, target_sets):
            yield MatchStrategy.PRINCIPAL_FINAL_SET, list(expand_rule(rule, rule.operations & FINAL_SET_OPERATIONS))
        if self.relative_to_resource(rule, requestor_id, target_id):
            yield MatchStrategy.RELATIVE_TO_RESOURCE, list(
                expand_rule(rule, rule.operations, allow_unattributed=True)
            )

    # -- strategies ---------------------------------------------------------------
    @staticmethod
    def principal_current_set(rule: ManagementPolicyRule, requestor_sets: Set[str], target_sets: Set[str]) -> bool:
        """Requestor is in the principal set and the target is in the current resource set."""

        return _contains(requestor_sets, rule.principal_set) and _contains(target_sets, rule.resource_current_set)

    @staticmethod
    def principal_final_set(rule: ManagementPolicyRule, requestor_sets: Set[str], target_sets: Set[str]) -> bool:
        """Requestor is in the principal set and the target lands in the final resource set."""

        return _contains(requestor_sets, rule.principal_set) and _contains(target_sets, rule.resource_final_set)

    def relative_to_resource(self, rule: ManagementPolicyRule, requestor_id: str, target_id: str) -> bool:
        """Target references the requestor through the rule's relative attribute.

        Membership of the target in the rule's current resource set is checked
        against the ``ComputedMember`` index directly.
        """

        attribute = rule.principal_relative_to_resource
        if not attribute or not rule.resource_current_set:
            return False
        references = _normalise(self._store.reference_values(target_id, attribute))
        if requestor_id.lower() not in references:
            return False
        return self._store.is_computed_member(rule.resource_current_set, target_id)


__all__ = [
    "CURRENT_SET_OPERATIONS",
    "FINAL_SET_OPERATIONS",
    "MatchStrategy",
    "PolicyRuleMatcher",
    "expand_rule",
]
