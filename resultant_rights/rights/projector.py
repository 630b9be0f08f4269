"""Render resolved rights as raw records, a full table or a per-rule summary."""
from __future__ import annotations

from enum import Enum
from itertools import groupby
from typing import Any, Dict, List, Optional

from resultant_rights.core.ui import RightsUI

from .models import ActionType, RightsRecord, RightsReport

SUMMARY_GAP = "   "
ALL_ATTRIBUTES_MARKER = "*"
FULL_COLUMNS = ["Rule", "Action", "Attribute"]


class OutputMode(str, Enum):
    RAW = "raw"
    FULL = "full"
    SUMMARY = "summary"


def raw_records(records: List[RightsRecord]) -> List[Dict[str, Any]]:
    return [record.to_dict() for record in records]


def full_rows(records: List[RightsRecord]) -> List[List[str]]:
    ordered = sorted(records, key=lambda record: record.rule_name)
    return [[record.rule_name, record.action_label, record.attribute] for record in ordered]


def _action_key(record: RightsRecord) -> Optional[ActionType]:
    return record.action


def summary_lines(records: List[RightsRecord]) -> List[str]:
    """Collapse sorted records into one line per rule.

    Records must already be ordered by (rule, action, attribute). Consecutive
    records sharing a rule form one line; within it, consecutive records sharing
    an action form one label, starred once if any of them grants all attributes.
    Unsorted input yields repeated rules or actions rather than a regrouping.
    """

    lines: List[str] = []
    for rule_name, rule_records in groupby(records, key=lambda record: record.rule_name):
        labels: List[str] = []
        for _action, action_records in groupby(rule_records, key=_action_key):
            group = list(action_records)
            label = group[0].action_label
            if any(record.is_all_attributes for record in group):
                label += ALL_ATTRIBUTES_MARKER
            labels.append(label)
        lines.append(f"{rule_name}{SUMMARY_GAP}({', '.join(labels)})")
    return lines


def no_permissions_notice(report: RightsReport) -> str:
    return f"No permissions found for {report.requestor.label} on {report.target.label}."


class ResultProjector:
    """Write a :class:`RightsReport` to the console in the selected mode."""

    def __init__(self, ui: RightsUI) -> None:
        self._ui = ui

    def render(self, report: RightsReport, mode: OutputMode = OutputMode.RAW) -> None:
        if mode is OutputMode.RAW:
            self._ui.print_json(raw_records(report.records))
            return
        if report.is_empty:
            self._ui.info(no_permissions_notice(report))
            return
        if mode is OutputMode.FULL:
            title = f"Resultant rights of {report.requestor.label} on {report.target.label}"
            self._ui.console.print(self._ui.table(title, FULL_COLUMNS, full_rows(report.records)))
            return
        for line in summary_lines(report.records):
            self._ui.line(line)


__all__ = [
    "OutputMode",
    "ResultProjector",
    "full_rows",
    "no_permissions_notice",
    "raw_records",
    "summary_lines",
]
