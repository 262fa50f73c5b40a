"""Account resolution and first-admin bootstrap.

``resolve_account`` is the single entry point that turns a verified
external identity into an Account. The first automatically created
account becomes the platform admin; every later one does not.

Correctness under concurrent first contact rests entirely on the store:
the account, its ``external_id#`` and ``email#`` uniqueness records and,
for a would-be admin, the singleton ``auto_admin`` record are written in
one DynamoDB transaction. Whoever commits first wins; a loser re-reads and
falls back exactly once. The admin count is read from the table on every
call and never cached in the process.
"""

import datetime as dt
import uuid
from typing import TYPE_CHECKING

from botocore.exceptions import BotoCoreError, ClientError

from salonbook.config import get_settings
from salonbook.models import Account, AccountResolutionFailed, ConstraintKind, ErrorCode, NotFound
from salonbook.utils.logging import get_logger, log_account_resolution

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)


def normalize_email(email: str | None) -> str | None:
    if not email:
        return None
    email = email.strip().lower()
    if "@" not in email:
        return None
    return email


class AccountResolver:
    """Resolves verified identities to Accounts and bootstraps the admin."""

    def __init__(
        self,
        db: "DynamoDBService",
        placeholder_domain: str | None = None,
    ) -> None:
        """Initialize account resolver.

        Args:
            db: DynamoDB service instance
            placeholder_domain: Domain for generated emails when the
                provider supplies none
        """
        self.db = db
        self.placeholder_domain = placeholder_domain or get_settings().placeholder_email_domain

    def placeholder_email(self, external_id: str, account_id: str | None = None) -> str:
        """Deterministic placeholder email derived from the external id.

        With ``account_id`` the result is guaranteed unique, since account
        IDs are fresh UUIDs.
        """
        local = external_id.lower()
        if account_id:
            local = f"{local}+{account_id}"
        return f"{local}@{self.placeholder_domain}"

    def get_account(self, account_id: str) -> Account:
        item = self.db.get_account(account_id)
        if not item:
            raise NotFound(ErrorCode.ACCOUNT_NOT_FOUND, {"account_id": account_id})
        return Account.from_item(item)

    def get_account_by_external_id(self, external_id: str) -> Account | None:
        item = self.db.get_account_by_external_id(external_id)
        return Account.from_item(item) if item else None

    def resolve_account(
        self,
        external_id: str,
        email_hint: str | None = None,
        name_hint: str | None = None,
    ) -> Account:
        """Return the Account for a verified external id, creating it on first sight.

        Args:
            external_id: Verified identity-provider subject
            email_hint: Email from the provider profile, if any
            name_hint: Display name from the provider profile, if any

        Returns:
            The existing, adopted or newly created Account

        Raises:
            AccountResolutionFailed: Conflict fallbacks exhausted or the
                store failed. Nothing is half-written; callers may retry.
        """
        try:
            return self._resolve(external_id, email_hint, name_hint)
        except AccountResolutionFailed:
            raise
        except (ClientError, BotoCoreError) as e:
            log_account_resolution(logger, "failed", external_id=external_id, error=str(e))
            raise AccountResolutionFailed({"reason": "store_error"}) from e

    def _resolve(
        self,
        external_id: str,
        email_hint: str | None,
        name_hint: str | None,
    ) -> Account:
        existing = self.get_account_by_external_id(external_id)
        if existing:
            log_account_resolution(
                logger,
                "existing",
                external_id=external_id,
                account_id=existing.account_id,
                is_admin=existing.is_admin,
            )
            return existing

        should_be_admin = self.db.count_auto_admins() == 0

        email = normalize_email(email_hint) or self.placeholder_email(external_id)
        account = self._new_account(external_id, email, name_hint, should_be_admin)
        created, conflict = self._create(account)
        if created:
            return created

        if conflict == ConstraintKind.EXTERNAL_ID:
            # A concurrent first contact for the same identity won.
            winner = self.get_account_by_external_id(external_id)
            if winner:
                log_account_resolution(
                    logger,
                    "refetched",
                    external_id=external_id,
                    account_id=winner.account_id,
                    is_admin=winner.is_admin,
                )
                return winner
            raise self._failed(external_id, "external_id_conflict_unresolved")

        if conflict == ConstraintKind.EMAIL:
            return self._resolve_email_conflict(external_id, email, name_hint, account)

        raise self._failed(
            external_id, f"unresolved_conflict:{conflict.value if conflict else 'unknown'}"
        )

    def _resolve_email_conflict(
        self,
        external_id: str,
        email: str,
        name_hint: str | None,
        attempted: Account,
    ) -> Account:
        holder_item = self.db.get_account_by_email(email)
        if holder_item is None:
            raise self._failed(external_id, "email_holder_missing")
        holder = Account.from_item(holder_item)

        if holder.external_id is None:
            now = dt.datetime.now(dt.UTC)
            if self.db.link_account_external_id(holder.account_id, external_id, now.isoformat()):
                adopted = holder.model_copy(update={"external_id": external_id, "updated_at": now})
                log_account_resolution(
                    logger,
                    "adopted",
                    external_id=external_id,
                    account_id=adopted.account_id,
                    is_admin=adopted.is_admin,
                )
                return adopted

            # Someone else linked first; it may have been this same identity.
            winner = self.get_account_by_external_id(external_id)
            if winner:
                return winner
            raise self._failed(external_id, "adoption_conflict")

        if holder.external_id == external_id:
            return holder

        # Email belongs to a different identity: fall back to a unique placeholder.
        fallback = self._new_account(
            external_id,
            self.placeholder_email(external_id, attempted.account_id),
            name_hint,
            attempted.is_admin,
            account_id=attempted.account_id,
        )
        created, conflict = self._create(fallback)
        if created:
            log_account_resolution(
                logger,
                "placeholder",
                external_id=external_id,
                account_id=created.account_id,
                is_admin=created.is_admin,
            )
            return created

        if conflict == ConstraintKind.EXTERNAL_ID:
            winner = self.get_account_by_external_id(external_id)
            if winner:
                return winner
        raise self._failed(external_id, "placeholder_conflict")

    def _create(self, account: Account) -> tuple[Account | None, ConstraintKind | None]:
        """Write one account. If it loses the admin slot, retry once as non-admin."""
        ok, conflict = self.db.create_account(account.to_item(), claim_admin=account.is_admin)
        if ok:
            log_account_resolution(
                logger,
                "created",
                external_id=account.external_id or "",
                account_id=account.account_id,
                is_admin=account.is_admin,
            )
            return account, None

        if conflict == ConstraintKind.AUTO_ADMIN and account.is_admin:
            log_account_resolution(
                logger,
                "admin_lost",
                external_id=account.external_id or "",
                account_id=account.account_id,
            )
            demoted = account.model_copy(update={"is_admin": False})
            ok, conflict = self.db.create_account(demoted.to_item(), claim_admin=False)
            if ok:
                log_account_resolution(
                    logger,
                    "created",
                    external_id=demoted.external_id or "",
                    account_id=demoted.account_id,
                    is_admin=False,
                )
                return demoted, None

        return None, conflict

    @staticmethod
    def _new_account(
        external_id: str | None,
        email: str,
        name_hint: str | None,
        is_admin: bool,
        account_id: str | None = None,
        is_service_account: bool = False,
    ) -> Account:
        now = dt.datetime.now(dt.UTC)
        name = (name_hint or "").strip() or email.split("@", 1)[0]
        return Account(
            account_id=account_id or str(uuid.uuid4()),
            external_id=external_id,
            email=email,
            name=name,
            is_admin=is_admin,
            is_service_account=is_service_account,
            created_at=now,
            updated_at=now,
        )

    def _failed(self, external_id: str, reason: str) -> AccountResolutionFailed:
        log_account_resolution(logger, "failed", external_id=external_id, error=reason)
        return AccountResolutionFailed({"reason": reason})

    def ensure_service_account(self) -> Account:
        """Idempotently provision the synthetic machine-to-machine account.

        The service account is an admin but never counts toward, or claims,
        the automatic-admin slot.
        """
        settings = get_settings()
        external_id = settings.service_account_external_id

        existing = self.get_account_by_external_id(external_id)
        if existing:
            return existing

        account = self._new_account(
            external_id,
            settings.service_account_email,
            "Service Admin",
            is_admin=True,
            is_service_account=True,
        )
        ok, conflict = self.db.create_account(account.to_item(), claim_admin=False)
        if ok:
            log_account_resolution(
                logger,
                "created",
                external_id=external_id,
                account_id=account.account_id,
                is_admin=True,
                service_account=True,
            )
            return account

        winner = self.get_account_by_external_id(external_id)
        if winner:
            return winner
        raise self._failed(
            external_id,
            f"service_account_conflict:{conflict.value if conflict else 'unknown'}",
        )
