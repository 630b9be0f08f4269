"""Value types shared by the resolution pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

ALL_ATTRIBUTES = "All Attributes"


class ActionType(str, Enum):
    """Operations a management policy rule can grant.

    Declaration order is the presentation order used when sorting records.
    """

    CREATE = "Create"
    READ = "Read"
    MODIFY = "Modify"
    DELETE = "Delete"
    ADD = "Add"
    REMOVE = "Remove"

    @property
    def rank(self) -> int:
        return list(ActionType).index(self)


class RuleType(str, Enum):
    REQUEST = "Request"
    SET = "Set"

    @classmethod
    def parse(cls, value: str) -> "RuleType":
        # Stores spell set-transition rules either way.
        if value == "SetTransition":
            return cls.SET
        return cls(value)


@dataclass(frozen=True)
class ObjectRef:
    """An object in the policy store."""

    id: str
    type: Optional[str] = None
    display_name: Optional[str] = None

    @property
    def label(self) -> str:
        return self.display_name or self.id


@dataclass(frozen=True, order=True)
class SetRef:
    """A set an object is a computed member of."""

    name: str
    id: str


@dataclass(frozen=True)
class ManagementPolicyRule:
    """Read-only snapshot of a management policy rule."""

    id: str
    name: str
    rule_type: RuleType = RuleType.REQUEST
    grant_right: bool = True
    principal_set: Optional[str] = None
    resource_current_set: Optional[str] = None
    resource_final_set: Optional[str] = None
    principal_relative_to_resource: Optional[str] = None
    operations: FrozenSet[ActionType] = field(default_factory=frozenset)
    attribute_scope: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_active(self) -> bool:
        return self.rule_type is RuleType.REQUEST and self.grant_right

    @property
    def grants_all_attributes(self) -> bool:
        return not self.attribute_scope


@dataclass(frozen=True)
class RuleMatch:
    """One (rule, action, attribute) row produced by the matcher.

    ``attribute_key`` is ``None`` when the rule grants on every attribute and
    ``action`` is ``None`` for a relative-to-resource rule that declares no
    operations.
    """

    rule_id: str
    rule_name: str
    action: Optional[ActionType]
    attribute_key: Optional[str]

    @property
    def identity(self) -> Tuple[str, Optional[ActionType], Optional[str]]:
        return (self.rule_id, self.action, self.attribute_key)


def _action_rank(action: Optional[ActionType]) -> int:
    return -1 if action is None else action.rank


@dataclass(frozen=True)
class RightsRecord:
    """A decorated, presentation-ready grant."""

    requestor_name: str
    target_name: str
    rule_name: str
    action: Optional[ActionType]
    attribute: str

    @property
    def is_all_attributes(self) -> bool:
        return self.attribute == ALL_ATTRIBUTES

    @property
    def action_label(self) -> str:
        return self.action.value if self.action is not None else "(none)"

    def sort_key(self) -> Tuple[str, int, str]:
        return (self.rule_name, _action_rank(self.action), self.attribute)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requestor": self.requestor_name,
            "target": self.target_name,
            "ruleName": self.rule_name,
            "action": self.action.value if self.action is not None else None,
            "attribute": self.attribute,
        }


@dataclass(frozen=True)
class RightsReport:
    """Outcome of one resolution run."""

    requestor: ObjectRef
    target: ObjectRef
    records: List[RightsRecord]

    @property
    def is_empty(self) -> bool:
        return not self.records


def sort_records(records: List[RightsRecord]) -> List[RightsRecord]:
    """Return records ordered by (rule name, action, attribute)."""

    return sorted(records, key=RightsRecord.sort_key)


__all__ = [
    "ALL_ATTRIBUTES",
    "ActionType",
    "RuleType",
    "ObjectRef",
    "SetRef",
    "ManagementPolicyRule",
    "RuleMatch",
    "RightsRecord",
    "RightsReport",
    "sort_records",
]
