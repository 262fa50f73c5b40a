"""Tests for AccountResolver and the first-admin bootstrap.

Runs against moto-mocked DynamoDB so the uniqueness transactions are
exercised for real. Concurrent first contact is simulated by letting a
resolver act on a stale view of the store.
"""

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from salonbook.models import AccountResolutionFailed, ConstraintKind, ErrorCode, NotFound
from salonbook.services.account_resolver import AccountResolver, normalize_email


def _admins(db: Any) -> list[dict[str, Any]]:
    return db.scan("accounts", filter_expression=Attr("is_admin").eq(True))


@pytest.fixture
def resolver(db: Any) -> AccountResolver:
    return AccountResolver(db=db)


class TestNormalizeEmail:
    def test_lowercases_and_strips(self) -> None:
        assert normalize_email("  Ana@Example.COM ") == "ana@example.com"

    @pytest.mark.parametrize("value", [None, "", "not-an-email"])
    def test_rejects_unusable_values(self, value: str | None) -> None:
        assert normalize_email(value) is None


class TestResolveAccount:
    def test_first_account_becomes_admin(self, resolver: AccountResolver) -> None:
        account = resolver.resolve_account("sub-first", "first@example.com", "First")

        assert account.is_admin is True
        assert account.external_id == "sub-first"
        assert account.email == "first@example.com"
        assert account.name == "First"

    def test_second_account_is_not_admin(self, resolver: AccountResolver) -> None:
        resolver.resolve_account("sub-first", "first@example.com")
        second = resolver.resolve_account("sub-second", "second@example.com")

        assert second.is_admin is False

    def test_resolution_is_idempotent(self, resolver: AccountResolver) -> None:
        created = resolver.resolve_account("sub-first", "first@example.com")
        again = resolver.resolve_account("sub-first", "other@example.com", "Renamed")

        assert again.account_id == created.account_id
        assert again.email == "first@example.com"
        assert again.is_admin is True

    def test_missing_email_uses_placeholder(self, resolver: AccountResolver) -> None:
        account = resolver.resolve_account("Sub-NoMail")

        assert account.email == "sub-nomail@accounts.salonbook.app"
        assert account.name == "sub-nomail"

    def test_concurrent_first_contacts_yield_one_admin(
        self, resolver: AccountResolver, db: Any
    ) -> None:
        resolver.resolve_account("sub-a", "a@example.com")

        # The second request read the admin count before the first committed.
        with patch.object(db, "count_auto_admins", return_value=0):
            loser = resolver.resolve_account("sub-b", "b@example.com")

        assert loser.is_admin is False
        assert len(_admins(db)) == 1

    def test_many_concurrent_first_contacts_yield_one_admin(
        self, resolver: AccountResolver, db: Any
    ) -> None:
        external_ids = [f"sub-{n}" for n in range(8)]

        # Every request sees an empty store when counting admins.
        with patch.object(db, "count_auto_admins", return_value=0):
            with ThreadPoolExecutor(max_workers=len(external_ids)) as pool:
                accounts = list(
                    pool.map(
                        lambda ext: resolver.resolve_account(ext, f"{ext}@example.com"),
                        external_ids,
                    )
                )

        assert sorted(a.external_id for a in accounts) == sorted(external_ids)
        assert sum(a.is_admin for a in accounts) == 1
        assert len(_admins(db)) == 1
        assert len(db.scan("accounts")) == len(external_ids)

    def test_same_identity_racing_returns_winner(
        self, resolver: AccountResolver, db: Any
    ) -> None:
        winner = resolver.resolve_account("sub-race", "race@example.com")

        real_lookup = resolver.get_account_by_external_id
        calls: list[str] = []

        def stale_then_real(external_id: str) -> Any:
            calls.append(external_id)
            return None if len(calls) == 1 else real_lookup(external_id)

        with patch.object(resolver, "get_account_by_external_id", side_effect=stale_then_real):
            result = resolver.resolve_account("sub-race", "race@example.com")

        assert result.account_id == winner.account_id
        assert len(db.scan("accounts")) == 1

    def test_adopts_account_with_matching_email(
        self,
        resolver: AccountResolver,
        db: Any,
        account_item_factory: Callable[..., dict[str, Any]],
    ) -> None:
        db.create_account(account_item_factory("acc-legacy", "alice@example.com", is_admin=True))

        account = resolver.resolve_account("sub-alice", "Alice@Example.com")

        assert account.account_id == "acc-legacy"
        assert account.is_admin is True
        holders = db.scan("accounts", filter_expression=Attr("email").eq("alice@example.com"))
        assert [h["account_id"] for h in holders] == ["acc-legacy"]
        assert account.external_id == "sub-alice"
        assert db.get_account("acc-legacy")["external_id"] == "sub-alice"
        assert resolver.resolve_account("sub-alice").account_id == "acc-legacy"

    def test_email_held_by_other_identity_gets_unique_placeholder(
        self, resolver: AccountResolver, db: Any
    ) -> None:
        first = resolver.resolve_account("sub-1", "shared@example.com")
        second = resolver.resolve_account("sub-2", "shared@example.com")

        assert second.account_id != first.account_id
        assert second.email == f"sub-2+{second.account_id}@accounts.salonbook.app"
        assert second.is_admin is False

    def test_service_account_does_not_take_admin_slot(
        self, resolver: AccountResolver, db: Any
    ) -> None:
        service_account = resolver.ensure_service_account()
        first_user = resolver.resolve_account("sub-first", "first@example.com")

        assert service_account.is_service_account is True
        assert service_account.is_admin is True
        assert first_user.is_admin is True
        assert db.count_auto_admins() == 1

    def test_ensure_service_account_is_idempotent(self, resolver: AccountResolver) -> None:
        first = resolver.ensure_service_account()
        second = resolver.ensure_service_account()

        assert first.account_id == second.account_id

    def test_store_error_becomes_resolution_failure(self) -> None:
        db = MagicMock()
        db.get_account_by_external_id.side_effect = ClientError(
            {"Error": {"Code": "InternalServerError", "Message": "boom"}}, "GetItem"
        )
        resolver = AccountResolver(db=db, placeholder_domain="example.test")

        with pytest.raises(AccountResolutionFailed) as exc_info:
            resolver.resolve_account("sub-x", "x@example.com")

        assert exc_info.value.code == ErrorCode.ACCOUNT_RESOLUTION_FAILED
        assert exc_info.value.details == {"reason": "store_error"}

    def test_unexplained_conflict_fails_without_partial_account(self) -> None:
        db = MagicMock()
        db.get_account_by_external_id.return_value = None
        db.count_auto_admins.return_value = 1
        db.create_account.return_value = (False, None)
        resolver = AccountResolver(db=db, placeholder_domain="example.test")

        with pytest.raises(AccountResolutionFailed):
            resolver.resolve_account("sub-x", "x@example.com")

    def test_admin_loser_retries_once_as_regular_account(self) -> None:
        db = MagicMock()
        db.get_account_by_external_id.return_value = None
        db.count_auto_admins.return_value = 0
        db.create_account.side_effect = [(False, ConstraintKind.AUTO_ADMIN), (True, None)]
        resolver = AccountResolver(db=db, placeholder_domain="example.test")

        account = resolver.resolve_account("sub-x", "x@example.com")

        assert account.is_admin is False
        assert db.create_account.call_count == 2
        assert db.create_account.call_args.kwargs["claim_admin"] is False


class TestGetAccount:
    def test_get_account(self, resolver: AccountResolver) -> None:
        created = resolver.resolve_account("sub-first", "first@example.com")
        assert resolver.get_account(created.account_id).external_id == "sub-first"

    def test_unknown_account(self, resolver: AccountResolver) -> None:
        with pytest.raises(NotFound) as exc_info:
            resolver.get_account("acc-missing")
        assert exc_info.value.code == ErrorCode.ACCOUNT_NOT_FOUND
