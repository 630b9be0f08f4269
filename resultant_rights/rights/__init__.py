"""Resultant rights resolution pipeline."""
from __future__ import annotations

from .aggregator import AttributeAggregator
from .identity import IdentityResolver, classify_identifier
from .matcher import PolicyRuleMatcher
from .membership import SetMembershipResolver
from .models import ALL_ATTRIBUTES, ActionType, ObjectRef, RightsRecord, RightsReport
from .projector import OutputMode, ResultProjector
from .service import ResultantRightsService

__all__ = [
    "ALL_ATTRIBUTES",
    "ActionType",
    "AttributeAggregator",
    "IdentityResolver",
    "ObjectRef",
    "OutputMode",
    "PolicyRuleMatcher",
    "ResultProjector",
    "ResultantRightsService",
    "RightsRecord",
    "RightsReport",
    "SetMembershipResolver",
    "classify_identifier",
]
