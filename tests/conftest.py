from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

import pytest

from resultant_rights.rights.models import ManagementPolicyRule, ObjectRef, SetRef
from resultant_rights.store import PolicyStore, build_store

ALICE = "11111111-1111-4111-8111-111111111111"
BOB = "22222222-2222-4222-8222-222222222222"
CAROL = "33333333-3333-4333-8333-333333333333"
ALL_PEOPLE = "aaaaaaaa-aaaa-4aaa-8aaa-aaaaaaaaaaaa"
ADMINS = "bbbbbbbb-bbbb-4bbb-8bbb-bbbbbbbbbbbb"
VIEW_PROFILE = "cccccccc-cccc-4ccc-8ccc-cccccccccccc"


class FakeStore(PolicyStore):
    """In-memory store recording every query it answers."""

    def __init__(self) -> None:
        self.objects: Dict[str, ObjectRef] = {}
        self.accounts: Dict[Tuple[str, str], List[ObjectRef]] = {}
        self.by_attribute: Dict[Tuple[str, str, str], List[ObjectRef]] = {}
        self.memberships: Dict[str, List[SetRef]] = {}
        self.members: Set[Tuple[str, str]] = set()
        self.rules: List[ManagementPolicyRule] = []
        self.references: Dict[Tuple[str, str], List[str]] = {}
        self.attribute_names: Dict[str, str] = {}
        self.calls: List[str] = []
        self.is_open = False

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    def get_object(self, object_id: str) -> Optional[ObjectRef]:
        self.calls.append("get_object")
        return self.objects.get(object_id)

    def find_by_account(self, domain: str, account: str) -> List[ObjectRef]:
        self.calls.append("find_by_account")
        return self.accounts.get((domain, account), [])

    def find_by_attribute(self, object_type: str, attribute: str, value: str) -> List[ObjectRef]:
        self.calls.append("find_by_attribute")
        return self.by_attribute.get((object_type, attribute, value), [])

    def sets_containing(self, object_id: str) -> List[SetRef]:
        self.calls.append("sets_containing")
        return self.memberships.get(object_id, [])

    def is_computed_member(self, set_id: str, object_id: str) -> bool:
        self.calls.append("is_computed_member")
        return (set_id, object_id) in self.members

    def active_rules(self) -> List[ManagementPolicyRule]:
        self.calls.append("active_rules")
        return list(self.rules)

    def reference_values(self, object_id: str, attribute: str) -> List[str]:
        self.calls.append("reference_values")
        return self.references.get((object_id, attribute), [])

    def attribute_display_names(self, keys: Iterable[str]) -> Dict[str, str]:
        self.calls.append("attribute_display_names")
        return {key: self.attribute_names[key] for key in keys if key in self.attribute_names}


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("RIGHTS_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("RIGHTS_RICH", "0")
    monkeypatch.delenv("RIGHTS_CONFIG", raising=False)
    monkeypatch.delenv("USERDOMAIN", raising=False)


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


def base_document() -> Dict[str, Any]:
    """Alice may read every attribute of Bob through one current-set rule."""

    return {
        "attributes": {"DisplayName": "Display Name", "Manager": "Manager"},
        "objects": [
            {
                "id": ALICE,
                "type": "Person",
                "attributes": {"DisplayName": "Alice", "AccountName": "alice", "Domain": "CONTOSO"},
            },
            {
                "id": BOB,
                "type": "Person",
                "attributes": {
                    "DisplayName": "Bob",
                    "AccountName": "bob",
                    "Domain": "CONTOSO",
                    "Email": "bob@contoso.com",
                },
            },
        ],
        "sets": [
            {"id": ALL_PEOPLE, "name": "All People", "members": [ALICE, BOB]},
        ],
        "rules": [
            {
                "id": VIEW_PROFILE,
                "name": "View Profile",
                "principal_set": ALL_PEOPLE,
                "resource_current_set": ALL_PEOPLE,
                "operations": ["Read"],
            },
        ],
    }


@pytest.fixture
def document() -> Dict[str, Any]:
    return base_document()


@pytest.fixture
def store_path(tmp_path: Path, document: Dict[str, Any]) -> Path:
    return build_store(document, tmp_path / "store.db")
