"""Tests for plainledger.ledger.accounts — account tree and pattern lookup."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from plainledger.core.result import Err, Ok
from plainledger.ledger.accounts import AccountRegistry


def _registry(*names: str) -> AccountRegistry:
    registry = AccountRegistry()
    for name in names:
        registry.ensure(name)
    return registry


NAMES = (
    "Assets:Bank:Checking",
    "Assets:Bank:Savings",
    "Assets:Cash",
    "Expenses:Groceries",
    "Liabilities:Credit:AMEX",
)


# ---------------------------------------------------------------------------
# Tree shape
# ---------------------------------------------------------------------------


class TestTree:
    def test_ensure_creates_ancestors(self) -> None:
        registry = _registry("Assets:Bank:Checking")
        assert [a.full_name for a in registry] == ["Assets", "Assets:Bank", "Assets:Bank:Checking"]
        checking = registry.by_name("Assets:Bank:Checking")
        assert checking is not None
        parent = registry.parent(checking)
        assert parent is not None and parent.full_name == "Assets:Bank"

    def test_truncate_forgets_newer_accounts(self) -> None:
        registry = _registry("Assets:Cash")
        registry.ensure("Assets:Bank:Checking")
        registry.truncate(2)
        assert [a.full_name for a in registry] == ["Assets", "Assets:Cash"]
        assert registry.by_name("Assets:Bank") is None
        assets = registry.by_name("Assets")
        assert assets is not None
        assert [c.full_name for c in registry.children(assets)] == ["Assets:Cash"]
        assert registry.ensure("Assets:Bank").index == 3

    def test_ensure_is_idempotent(self) -> None:
        registry = _registry("Assets:Cash")
        first = registry.ensure("Assets:Cash")
        assert registry.ensure("Assets:Cash") is first
        assert len(registry) == 2

    def test_children_sorted_by_name(self) -> None:
        registry = _registry("Assets:Zeta", "Assets:Alpha", "Assets:Mid")
        assets = registry.by_name("Assets")
        assert assets is not None
        assert [c.name for c in registry.children(assets)] == ["Alpha", "Mid", "Zeta"]

    def test_root_is_unnamed_and_uncounted(self) -> None:
        registry = AccountRegistry()
        assert registry.root.full_name == ""
        assert registry.root.depth == 0
        assert len(registry) == 0

    def test_name_and_depth(self) -> None:
        account = _registry("Liabilities:Credit:AMEX").by_name("Liabilities:Credit:AMEX")
        assert account is not None
        assert account.name == "AMEX"
        assert account.depth == 3

    def test_walk_orders(self) -> None:
        registry = _registry(*NAMES)
        assets = registry.by_name("Assets")
        assert assets is not None
        assert [a.name for a in registry.walk(assets)] == [
            "Assets", "Bank", "Checking", "Savings", "Cash",
        ]
        assert [a.name for a in registry.walk_post_order(assets)] == [
            "Checking", "Savings", "Bank", "Cash", "Assets",
        ]

    @given(names=st.lists(
        st.lists(st.sampled_from(["A", "B", "Cc", "Dd"]), min_size=1, max_size=4).map(":".join),
        max_size=15,
    ))
    def test_every_parent_precedes_and_contains_child(self, names: list[str]) -> None:
        registry = _registry(*names)
        for account in registry:
            parent = registry.parent(account)
            assert parent is not None
            assert parent.index < account.index
            assert account.index in parent.children
            assert account.full_name.startswith(parent.full_name)


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


class TestFind:
    def test_exact_full_name(self) -> None:
        registry = _registry(*NAMES)
        match registry.find("Assets:Bank"):
            case Ok(account):
                assert account.full_name == "Assets:Bank"
            case Err(e):
                pytest.fail(str(e))

    @pytest.mark.parametrize("pattern", ["Checking", "check", "Bank:Check", "ba:ch"])
    def test_suffix_patterns(self, pattern: str) -> None:
        result = _registry(*NAMES).find(pattern)
        assert isinstance(result, Ok)
        assert result.value.full_name == "Assets:Bank:Checking"

    def test_ambiguous_lists_candidates(self) -> None:
        result = _registry(*NAMES).find("Bank:.*")
        assert isinstance(result, Err)
        assert result.error.code == "AMBIGUOUS_ACCOUNT"
        assert result.error.candidates == ("Assets:Bank:Checking", "Assets:Bank:Savings")

    def test_not_found(self) -> None:
        result = _registry(*NAMES).find("Brokerage")
        assert isinstance(result, Err)
        assert result.error.code == "ACCOUNT_NOT_FOUND"
        assert result.error.pattern == "Brokerage"

    def test_invalid_regex(self) -> None:
        result = _registry(*NAMES).find("Bank:(")
        assert isinstance(result, Err)
        assert result.error.code == "INVALID_PATTERN"

    def test_pattern_longer_than_name_does_not_match(self) -> None:
        result = _registry(*NAMES).find("x:Assets:Cash")
        assert isinstance(result, Err)

    def test_empty_pattern_does_not_find_root(self) -> None:
        result = _registry("Assets").find("")
        # the empty regex matches every named account, never the root
        assert isinstance(result, Ok)
        assert result.value.full_name == "Assets"
