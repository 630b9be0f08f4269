"""Build policy store files from declarative fixture documents.

A fixture document is a mapping with four optional sections::

    attributes:
      DisplayName: Display Name
    objects:
      - id: 6f1c...
        type: Person
        attributes: {DisplayName: Alice, AccountName: alice, Domain: CONTOSO}
        references: {Manager: 9a2e...}
    sets:
      - id: 3b7d...
        name: All People
        members: [6f1c...]
    rules:
      - id: 0c4e...
        name: View Profile
        principal_set: 3b7d...
        resource_current_set: 3b7d...
        operations: [Read]
        attributes: []

Set membership is taken as given; nothing here evaluates set filters.
"""
from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

import yaml

from resultant_rights.utils.errors import ConfigurationError
from resultant_rights.utils.logging import get_logger

from .sqlite import (
    ACTION_PARAMETER,
    ACTION_TYPE,
    DISPLAY_NAME,
    GRANT_RIGHT,
    PRINCIPAL_RELATIVE_TO_RESOURCE,
    PRINCIPAL_SET,
    RESOURCE_CURRENT_SET,
    RESOURCE_FINAL_SET,
    RULE_KIND,
    RULE_TYPE,
    SCHEMA,
    SET_TYPE,
)

logger = get_logger(__name__)

_RULE_REFERENCES = {
    "principal_set": PRINCIPAL_SET,
    "resource_current_set": RESOURCE_CURRENT_SET,
    "resource_final_set": RESOURCE_FINAL_SET,
}


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


class _Writer:
    def __init__(self, connection: sqlite3.Connection) -> None:
        self._cur = connection.cursor()

    def obj(self, object_id: str, object_type: str) -> None:
        self._cur.execute(
            "INSERT INTO objects(object_id, object_type) VALUES (:id, :type)",
            {"id": object_id, "type": object_type},
        )

    def strings(self, object_id: str, attribute: str, values: Iterable[Any]) -> None:
        for value in values:
            self._cur.execute(
                "INSERT INTO attribute_values(object_id, attribute, value_string) VALUES (?, ?, ?)",
                (object_id, attribute, str(value)),
            )

    def references(self, object_id: str, attribute: str, values: Iterable[Any]) -> None:
        for value in values:
            self._cur.execute(
                "INSERT INTO attribute_values(object_id, attribute, value_reference) VALUES (?, ?, ?)",
                (object_id, attribute, str(value)),
            )

    def member(self, set_id: str, member_id: str) -> None:
        self._cur.execute(
            "INSERT OR IGNORE INTO computed_members(set_id, member_id) VALUES (?, ?)",
            (set_id, str(member_id)),
        )

    def attribute(self, name: str, display_name: str) -> None:
        self._cur.execute(
            "INSERT OR REPLACE INTO attributes(name, display_name) VALUES (?, ?)",
            (name, display_name),
        )


def build_store(document: Mapping[str, Any], path: Path) -> Path:
    """Write ``document`` into a fresh SQLite store at ``path``."""

    if path.exists():
        raise ConfigurationError(f"Refusing to overwrite existing store {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(path)
    try:
        for statement in SCHEMA:
            connection.execute(statement)
        writer = _Writer(connection)

        for name, display_name in (document.get("attributes") or {}).items():
            writer.attribute(name, display_name)

        for item in document.get("objects") or []:
            object_id = item["id"]
            writer.obj(object_id, item.get("type", "Person"))
            for attribute, value in (item.get("attributes") or {}).items():
                writer.strings(object_id, attribute, _as_list(value))
            for attribute, value in (item.get("references") or {}).items():
                writer.references(object_id, attribute, _as_list(value))

        for item in document.get("sets") or []:
            set_id = item["id"]
            writer.obj(set_id, SET_TYPE)
            writer.strings(set_id, DISPLAY_NAME, [item.get("name", set_id)])
            for member_id in item.get("members") or []:
                writer.member(set_id, member_id)

        for item in document.get("rules") or []:
            rule_id = item["id"]
            writer.obj(rule_id, RULE_TYPE)
            writer.strings(rule_id, DISPLAY_NAME, [item.get("name", rule_id)])
            writer.strings(rule_id, RULE_KIND, [item.get("type", "Request")])
            writer.strings(rule_id, GRANT_RIGHT, [str(item.get("grant", True))])
            for key, attribute in _RULE_REFERENCES.items():
                writer.references(rule_id, attribute, _as_list(item.get(key)))
            writer.strings(rule_id, PRINCIPAL_RELATIVE_TO_RESOURCE, _as_list(item.get("principal_relative_to_resource")))
            writer.strings(rule_id, ACTION_TYPE, _as_list(item.get("operations")))
            writer.strings(rule_id, ACTION_PARAMETER, _as_list(item.get("attributes")))

        connection.commit()
    except (KeyError, sqlite3.Error) as exc:
        connection.close()
        path.unlink(missing_ok=True)
        raise ConfigurationError(f"Invalid fixture document: {exc}") from exc
    connection.close()
    logger.info("built policy store", extra={"path": str(path)})
    return path


def load_fixture(source: Path, path: Path) -> Path:
    """Read a YAML fixture from ``source`` and build a store at ``path``."""

    with source.open("r", encoding="utf-8") as handle:
        document: Dict[str, Any] = yaml.safe_load(handle) or {}
    return build_store(document, path)


__all__ = ["build_store", "load_fixture"]
