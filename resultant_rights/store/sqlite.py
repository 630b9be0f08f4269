"""Policy store backed by an SQLite object/attribute/relationship graph."""
from __future__ import annotations

import sqlite3
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from resultant_rights.rights.models import ActionType, ManagementPolicyRule, ObjectRef, RuleType, SetRef
from resultant_rights.utils.errors import ConfigurationError, StoreQueryFailure
from resultant_rights.utils.logging import get_logger

from .base import PolicyStore

logger = get_logger(__name__)

LOCAL_SERVERS = frozenset({"", ".", "localhost", "(local)", "127.0.0.1"})

SET_TYPE = "Set"
RULE_TYPE = "ManagementPolicyRule"

DISPLAY_NAME = "DisplayName"
ACCOUNT_NAME = "AccountName"
DOMAIN = "Domain"
RULE_KIND = "ManagementPolicyRuleType"
GRANT_RIGHT = "GrantRight"
PRINCIPAL_SET = "PrincipalSet"
RESOURCE_CURRENT_SET = "ResourceCurrentSet"
RESOURCE_FINAL_SET = "ResourceFinalSet"
PRINCIPAL_RELATIVE_TO_RESOURCE = "PrincipalRelativeToResource"
ACTION_TYPE = "ActionType"
ACTION_PARAMETER = "ActionParameter"

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS objects (
        object_id TEXT PRIMARY KEY COLLATE NOCASE,
        object_type TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS attribute_values (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        object_id TEXT NOT NULL COLLATE NOCASE,
        attribute TEXT NOT NULL,
        value_string TEXT,
        value_reference TEXT COLLATE NOCASE,
        FOREIGN KEY(object_id) REFERENCES objects(object_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_attribute_values_object ON attribute_values(object_id, attribute)",
    "CREATE INDEX IF NOT EXISTS ix_attribute_values_string ON attribute_values(attribute, value_string)",
    """
    CREATE TABLE IF NOT EXISTS attributes (
        name TEXT PRIMARY KEY,
        display_name TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS computed_members (
        set_id TEXT NOT NULL COLLATE NOCASE,
        member_id TEXT NOT NULL COLLATE NOCASE,
        PRIMARY KEY(set_id, member_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_computed_members_member ON computed_members(member_id)",
)

_OBJECT_COLUMNS = """
    o.object_id AS object_id,
    o.object_type AS object_type,
    (
        SELECT dn.value_string FROM attribute_values dn
        WHERE dn.object_id = o.object_id AND dn.attribute = :display_attr
        ORDER BY dn.id LIMIT 1
    ) AS display_name
"""


def _is_true(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"true", "1", "yes"}


class SQLitePolicyStore(PolicyStore):
    """Read-only access to a policy graph persisted to SQLite.

    The file is opened with ``mode=ro`` and every query of a run executes
    inside one read transaction, so set membership and rule matching observe
    the same snapshot even if another process writes to the file meanwhile.
    """

    def __init__(self, database: Path | str, *, server: str = "localhost") -> None:
        if server.strip().lower() not in LOCAL_SERVERS:
            raise ConfigurationError(f"The SQLite store only serves local databases, not server {server!r}")
        self._path = Path(database)
        self._connection: Optional[sqlite3.Connection] = None

    @property
    def path(self) -> Path:
        return self._path

    # -- connection ---------------------------------------------------------------
    def open(self) -> None:
        if self._connection is not None:
            return
        logger.debug("opening policy store", extra={"path": str(self._path)})
        uri = f"{self._path.resolve().as_uri()}?mode=ro"
        try:
            connection = sqlite3.connect(uri, uri=True, isolation_level=None)
            connection.row_factory = sqlite3.Row
            connection.execute("BEGIN")
        except sqlite3.Error as exc:
            raise StoreQueryFailure(f"Cannot open policy store {self._path}: {exc}") from exc
        self._connection = connection

    def close(self) -> None:
        if self._connection is None:
            return
        try:
            if self._connection.in_transaction:
                self._connection.execute("ROLLBACK")
        finally:
            self._connection.close()
            self._connection = None
            logger.debug("closed policy store", extra={"path": str(self._path)})

    def _query(self, sql: str, parameters: Mapping[str, Any] | Iterable[Any] = ()) -> List[sqlite3.Row]:
        if self._connection is None:
            raise StoreQueryFailure("Policy store is not open")
        try:
            return self._connection.execute(sql, parameters).fetchall()
        except sqlite3.Error as exc:
            raise StoreQueryFailure(f"Policy store query failed: {exc}") from exc

    @staticmethod
    def _to_ref(row: sqlite3.Row) -> ObjectRef:
        return ObjectRef(id=row["object_id"], type=row["object_type"], display_name=row["display_name"])

    # -- identity lookups ---------------------------------------------------------
    def get_object(self, object_id: str) -> Optional[ObjectRef]:
        rows = self._query(
            f"SELECT {_OBJECT_COLUMNS} FROM objects o WHERE o.object_id = :object_id",
            {"object_id": object_id, "display_attr": DISPLAY_NAME},
        )
        return self._to_ref(rows[0]) if rows else None

    def find_by_account(self, domain: str, account: str) -> List[ObjectRef]:
        rows = self._query(
            f"""
            SELECT DISTINCT {_OBJECT_COLUMNS}
            FROM objects o
            JOIN attribute_values a
              ON a.object_id = o.object_id AND a.attribute = :account_attr
            JOIN attribute_values d
              ON d.object_id = o.object_id AND d.attribute = :domain_attr
            WHERE a.value_string = :account COLLATE NOCASE
              AND d.value_string = :domain COLLATE NOCASE
            ORDER BY o.object_id
            """,
            {
                "account_attr": ACCOUNT_NAME,
                "domain_attr": DOMAIN,
                "account": account,
                "domain": domain,
                "display_attr": DISPLAY_NAME,
            },
        )
        return [self._to_ref(row) for row in rows]

    def find_by_attribute(self, object_type: str, attribute: str, value: str) -> List[ObjectRef]:
        rows = self._query(
            f"""
            SELECT DISTINCT {_OBJECT_COLUMNS}
            FROM objects o
            JOIN attribute_values v
              ON v.object_id = o.object_id AND v.attribute = :attribute
            WHERE o.object_type = :object_type
              AND (v.value_string = :value OR v.value_reference = :value)
            ORDER BY o.object_id
            """,
            {"object_type": object_type, "attribute": attribute, "value": value, "display_attr": DISPLAY_NAME},
        )
        return [self._to_ref(row) for row in rows]

    # -- membership ---------------------------------------------------------------
    def sets_containing(self, object_id: str) -> List[SetRef]:
        rows = self._query(
            f"""
            SELECT DISTINCT {_OBJECT_COLUMNS}
            FROM computed_members m
            JOIN objects o ON o.object_id = m.set_id
            WHERE m.member_id = :member_id AND o.object_type = :set_type
            """,
            {"member_id": object_id, "set_type": SET_TYPE, "display_attr": DISPLAY_NAME},
        )
        unique: Dict[str, SetRef] = {}
        for row in rows:
            set_id = row["object_id"].lower()
            unique.setdefault(set_id, SetRef(name=row["display_name"] or row["object_id"], id=row["object_id"]))
        return sorted(unique.values())

    def is_computed_member(self, set_id: str, object_id: str) -> bool:
        rows = self._query(
            "SELECT 1 FROM computed_members WHERE set_id = :set_id AND member_id = :member_id LIMIT 1",
            {"set_id": set_id, "member_id": object_id},
        )
        return bool(rows)

    # -- policy -------------------------------------------------------------------
    def active_rules(self) -> List[ManagementPolicyRule]:
        rows = self._query(
            """
            SELECT v.object_id, v.attribute, v.value_string, v.value_reference
            FROM attribute_values v
            JOIN objects o ON o.object_id = v.object_id
            WHERE o.object_type = :rule_type
            ORDER BY v.object_id, v.id
            """,
            {"rule_type": RULE_TYPE},
        )
        values: Dict[str, Dict[str, List[str]]] = defaultdict(lambda: defaultdict(list))
        for row in rows:
            value = row["value_reference"] if row["value_reference"] is not None else row["value_string"]
            if value is not None:
                values[row["object_id"]][row["attribute"]].append(value)

        rules = []
        for rule_id, attributes in values.items():
            rule = self._build_rule(rule_id, attributes)
            if rule is not None and rule.is_active:
                rules.append(rule)
        logger.debug("loaded active rules", extra={"count": len(rules)})
        return rules

    @staticmethod
    def _build_rule(rule_id: str, attributes: Mapping[str, List[str]]) -> Optional[ManagementPolicyRule]:
        def first(name: str) -> Optional[str]:
            found = attributes.get(name)
            return found[0] if found else None

        kind = first(RULE_KIND)
        try:
            rule_type = RuleType.parse(kind) if kind else RuleType.REQUEST
            operations = frozenset(ActionType(value) for value in attributes.get(ACTION_TYPE, []))
        except ValueError:
            logger.warning("skipping rule with unknown rule type or action", extra={"rule_id": rule_id})
            return None
        scope = frozenset(value for value in attributes.get(ACTION_PARAMETER, []) if value != "*")
        return ManagementPolicyRule(
            id=rule_id,
            name=first(DISPLAY_NAME) or rule_id,
            rule_type=rule_type,
            grant_right=_is_true(first(GRANT_RIGHT)),
            principal_set=first(PRINCIPAL_SET),
            resource_current_set=first(RESOURCE_CURRENT_SET),
            resource_final_set=first(RESOURCE_FINAL_SET),
            principal_relative_to_resource=first(PRINCIPAL_RELATIVE_TO_RESOURCE),
            operations=operations,
            attribute_scope=scope,
        )

    def reference_values(self, object_id: str, attribute: str) -> List[str]:
        rows = self._query(
            """
            SELECT value_reference FROM attribute_values
            WHERE object_id = :object_id AND attribute = :attribute AND value_reference IS NOT NULL
            ORDER BY id
            """,
            {"object_id": object_id, "attribute": attribute},
        )
        return [row["value_reference"] for row in rows]

    def attribute_display_names(self, keys: Iterable[str]) -> Dict[str, str]:
        names = sorted(set(keys))
        if not names:
            return {}
        rows = self._query(
            "SELECT name, display_name FROM attributes WHERE name IN (%s)" % ",".join(["?"] * len(names)),
            names,
        )
        return {row["name"]: row["display_name"] for row in rows}


__all__ = ["SQLitePolicyStore", "SCHEMA", "LOCAL_SERVERS"]
