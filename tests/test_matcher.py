from conftest import ADMINS, ALICE, ALL_PEOPLE, BOB, FakeStore
from resultant_rights.rights.matcher import PolicyRuleMatcher, expand_rule
from resultant_rights.rights.models import ActionType, ManagementPolicyRule, RuleType

A = ActionType

NEW_USERS = "dddddddd-dddd-4ddd-8ddd-dddddddddddd"


def _rule(rule_id: str, name: str, **kwargs) -> ManagementPolicyRule:
    kwargs["operations"] = frozenset(kwargs.get("operations", ()))
    kwargs["attribute_scope"] = frozenset(kwargs.get("attribute_scope", ()))
    return ManagementPolicyRule(id=rule_id, name=name, **kwargs)


def _match(store: FakeStore, requestor_sets=(ALL_PEOPLE,), target_sets=(ALL_PEOPLE,)):
    return PolicyRuleMatcher(store).match(ALICE, BOB, list(requestor_sets), list(target_sets))


def test_expand_rule_rows() -> None:
    rule = _rule("r1", "Edit", operations=[A.MODIFY, A.READ], attribute_scope=["Email", "DisplayName"])
    rows = list(expand_rule(rule, rule.operations))
    assert [(row.action, row.attribute_key) for row in rows] == [
        (A.READ, "DisplayName"),
        (A.READ, "Email"),
        (A.MODIFY, "DisplayName"),
        (A.MODIFY, "Email"),
    ]

    everything = _rule("r2", "Read all", operations=[A.READ])
    assert [(row.action, row.attribute_key) for row in expand_rule(everything, everything.operations)] == [
        (A.READ, None)
    ]
    assert list(expand_rule(everything, frozenset())) == []


def test_principal_current_set_filters_create(fake_store: FakeStore) -> None:
    fake_store.rules.append(
        _rule(
            "r1",
            "Manage People",
            principal_set=ALL_PEOPLE,
            resource_current_set=ALL_PEOPLE.upper(),
            operations=[A.CREATE, A.READ, A.DELETE],
        )
    )
    rows = _match(fake_store)
    assert sorted(row.action.value for row in rows) == ["Delete", "Read"]


def test_principal_final_set_contributes_create_only(fake_store: FakeStore) -> None:
    fake_store.rules.append(
        _rule(
            "r1",
            "Create Users",
            principal_set=ALL_PEOPLE,
            resource_final_set=NEW_USERS,
            operations=[A.CREATE, A.READ, A.MODIFY],
            attribute_scope=["DisplayName"],
        )
    )
    rows = _match(fake_store, target_sets=[NEW_USERS])
    assert [(row.action, row.attribute_key) for row in rows] == [(A.CREATE, "DisplayName")]


def test_requestor_outside_principal_set_matches_nothing(fake_store: FakeStore) -> None:
    fake_store.rules.append(
        _rule("r1", "Admins", principal_set=ADMINS, resource_current_set=ALL_PEOPLE, operations=[A.READ])
    )
    assert _match(fake_store) == []


def test_inactive_rules_never_match(fake_store: FakeStore) -> None:
    common = dict(principal_set=ALL_PEOPLE, resource_current_set=ALL_PEOPLE, operations=[A.READ])
    fake_store.rules.extend(
        [
            _rule("deny", "Deny", grant_right=False, **common),
            _rule("transition", "Transition", rule_type=RuleType.SET, **common),
        ]
    )
    assert _match(fake_store) == []


def test_relative_to_resource(fake_store: FakeStore) -> None:
    fake_store.rules.append(
        _rule(
            "r1",
            "Manager Edits Reports",
            principal_relative_to_resource="Manager",
            resource_current_set=ALL_PEOPLE,
            operations=[A.MODIFY, A.CREATE],
            attribute_scope=["Title"],
        )
    )
    fake_store.references[(BOB, "Manager")] = [ALICE.upper()]
    fake_store.members.add((ALL_PEOPLE, BOB))

    rows = _match(fake_store, requestor_sets=[ADMINS], target_sets=[ADMINS])
    assert sorted((row.action.value, row.attribute_key) for row in rows) == [
        ("Create", "Title"),
        ("Modify", "Title"),
    ]

    fake_store.members.clear()
    assert _match(fake_store) == []


def test_relative_to_resource_requires_the_reference(fake_store: FakeStore) -> None:
    fake_store.rules.append(
        _rule("r1", "Self", principal_relative_to_resource="Manager", resource_current_set=ALL_PEOPLE)
    )
    fake_store.members.add((ALL_PEOPLE, BOB))
    assert _match(fake_store) == []
    assert "is_computed_member" not in fake_store.calls


def test_relative_to_resource_without_operations_yields_one_row(fake_store: FakeStore) -> None:
    fake_store.rules.append(
        _rule("r1", "Owner", principal_relative_to_resource="Owner", resource_current_set=ALL_PEOPLE)
    )
    fake_store.references[(BOB, "Owner")] = [ALICE]
    fake_store.members.add((ALL_PEOPLE, BOB))
    rows = _match(fake_store)
    assert len(rows) == 1
    assert rows[0].action is None and rows[0].attribute_key is None


def test_union_collapses_duplicate_rows(fake_store: FakeStore) -> None:
    fake_store.rules.append(
        _rule(
            "r1",
            "Both Ways",
            principal_set=ALL_PEOPLE,
            resource_current_set=ALL_PEOPLE,
            principal_relative_to_resource="Manager",
            operations=[A.READ],
        )
    )
    fake_store.references[(BOB, "Manager")] = [ALICE]
    fake_store.members.add((ALL_PEOPLE, BOB))
    rows = _match(fake_store)
    assert len(rows) == 1
    assert len({row.identity for row in rows}) == len(rows)
