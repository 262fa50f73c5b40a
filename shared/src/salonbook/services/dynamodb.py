"""DynamoDB service wrapper for type-safe table operations.

Besides generic CRUD helpers this module owns the store-level guarantees the
booking core relies on:

- account uniqueness (external id, email, and the single automatically
  promoted admin) enforced by writing uniqueness records in the same
  transaction as the account itself
- conditional status updates for bookings (``... WHERE status = :current``)
"""

from typing import Any

import boto3
from boto3.dynamodb.conditions import Attr, Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

from salonbook.config import get_settings
from salonbook.models.enums import BookingStatus, ConstraintKind

ACCOUNTS_TABLE = "accounts"
CONSTRAINTS_TABLE = "account-constraints"
BOOKINGS_TABLE = "bookings"
SALOONS_TABLE = "saloons"
SERVICES_TABLE = "saloon-services"

AUTO_ADMIN_KEY = ConstraintKind.AUTO_ADMIN.value

_serializer = TypeSerializer()

# Module-level singleton for connection reuse
_dynamodb_service_instance: "DynamoDBService | None" = None


def get_dynamodb_service() -> "DynamoDBService":
    """Get or create the singleton DynamoDB service instance.

    Returns:
        Shared DynamoDBService instance
    """
    global _dynamodb_service_instance
    if _dynamodb_service_instance is None:
        _dynamodb_service_instance = DynamoDBService()
    return _dynamodb_service_instance


def reset_dynamodb_service() -> None:
    """Reset the singleton instance (for testing only).

    This allows tests to create a fresh DynamoDBService inside
    a mock_aws context.
    """
    global _dynamodb_service_instance
    _dynamodb_service_instance = None


def constraint_key(kind: ConstraintKind, value: str | None = None) -> str:
    """Build the primary key of a uniqueness record."""
    if kind == ConstraintKind.AUTO_ADMIN:
        return AUTO_ADMIN_KEY
    return f"{kind.value}#{value}"


def _serialize_item(item: dict[str, Any]) -> dict[str, Any]:
    """Serialize a Python dict to DynamoDB low-level format."""
    return {k: _serializer.serialize(v) for k, v in item.items() if v is not None}


class DynamoDBService:
    """Service for DynamoDB operations with environment-aware table names."""

    def __init__(self, table_prefix: str | None = None) -> None:
        """Initialize DynamoDB service.

        Args:
            table_prefix: Table name prefix. Defaults to DYNAMODB_TABLE_PREFIX
                (or ``salonbook-<ENVIRONMENT>``).
        """
        settings = get_settings()
        self.name_prefix = table_prefix or settings.table_prefix
        self._dynamodb = boto3.resource("dynamodb", region_name=settings.aws_region)
        self._client = boto3.client("dynamodb", region_name=settings.aws_region)

    def _table_name(self, table: str) -> str:
        return f"{self.name_prefix}-{table}"

    def _get_table(self, table: str) -> Any:
        return self._dynamodb.Table(self._table_name(table))

    # Generic CRUD operations

    def get_item(
        self,
        table: str,
        key: dict[str, Any],
        consistent_read: bool = False,
    ) -> dict[str, Any] | None:
        """Get a single item by key.

        Args:
            table: Table name without prefix
            key: Primary key dict
            consistent_read: Use a strongly consistent read

        Returns:
            Item dict or None if not found
        """
        response = self._get_table(table).get_item(Key=key, ConsistentRead=consistent_read)
        item: dict[str, Any] | None = response.get("Item")
        return item

    def put_item(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
    ) -> bool:
        """Put an item into the table.

        Args:
            table: Table name without prefix
            item: Item to store
            condition_expression: Optional condition for write

        Returns:
            True if successful, False if condition failed
        """
        try:
            kwargs: dict[str, Any] = {"Item": item}
            if condition_expression:
                kwargs["ConditionExpression"] = condition_expression

            self._get_table(table).put_item(**kwargs)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return False
            raise

    def update_item(
        self,
        table: str,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_values: dict[str, Any],
        expression_attribute_names: dict[str, str] | None = None,
        condition_expression: str | None = None,
    ) -> dict[str, Any] | None:
        """Update an item with expressions.

        Args:
            table: Table name without prefix
            key: Primary key dict
            update_expression: DynamoDB update expression
            expression_attribute_values: Values for expression
            expression_attribute_names: Names for expression (for reserved words)
            condition_expression: Optional condition for update

        Returns:
            Updated attributes or None if condition failed
        """
        try:
            kwargs: dict[str, Any] = {
                "Key": key,
                "UpdateExpression": update_expression,
                "ExpressionAttributeValues": expression_attribute_values,
                "ReturnValues": "ALL_NEW",
            }
            if expression_attribute_names:
                kwargs["ExpressionAttributeNames"] = expression_attribute_names
            if condition_expression:
                kwargs["ConditionExpression"] = condition_expression

            response = self._get_table(table).update_item(**kwargs)
            attrs: dict[str, Any] | None = response.get("Attributes")
            return attrs
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return None
            raise

    def delete_item(
        self,
        table: str,
        key: dict[str, Any],
        condition_expression: str | None = None,
    ) -> bool:
        """Delete an item by key.

        Args:
            table: Table name without prefix
            key: Primary key dict
            condition_expression: Optional condition for delete

        Returns:
            True if deleted (or didn't exist when unconditional),
            False if condition failed
        """
        try:
            kwargs: dict[str, Any] = {"Key": key}
            if condition_expression:
                kwargs["ConditionExpression"] = condition_expression
            self._get_table(table).delete_item(**kwargs)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return False
            raise

    def query(
        self,
        table: str,
        key_condition: Any,
        index_name: str | None = None,
        filter_expression: Any | None = None,
        limit: int | None = None,
        scan_index_forward: bool = True,
    ) -> list[dict[str, Any]]:
        """Query table or GSI.

        Args:
            table: Table name without prefix
            key_condition: Boto3 Key condition
            index_name: GSI name (optional)
            filter_expression: Additional filter (optional)
            limit: Max items to return
            scan_index_forward: Sort order (True=ascending)

        Returns:
            List of items
        """
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": key_condition,
            "ScanIndexForward": scan_index_forward,
        }
        if index_name:
            kwargs["IndexName"] = index_name
        if filter_expression:
            kwargs["FilterExpression"] = filter_expression
        if limit:
            kwargs["Limit"] = limit

        response = self._get_table(table).query(**kwargs)
        items: list[dict[str, Any]] = response.get("Items", [])
        return items

    def scan(
        self,
        table: str,
        filter_expression: Any | None = None,
    ) -> list[dict[str, Any]]:
        """Scan a whole table, following pagination.

        Args:
            table: Table name without prefix
            filter_expression: Optional boto3 Attr condition

        Returns:
            List of matching items
        """
        kwargs: dict[str, Any] = {}
        if filter_expression is not None:
            kwargs["FilterExpression"] = filter_expression

        items: list[dict[str, Any]] = []
        while True:
            response = self._get_table(table).scan(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def transact_write(
        self,
        items: list[dict[str, Any]],
    ) -> bool:
        """Execute transactional write for multiple items.

        Args:
            items: List of TransactWriteItem dicts (low-level format)

        Returns:
            True if successful, False if transaction was cancelled
        """
        try:
            self._client.transact_write_items(TransactItems=items)  # type: ignore[arg-type]
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] == "TransactionCanceledException":
                return False
            raise

    def transact_put(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
    ) -> dict[str, Any]:
        """Build a transactional Put entry from a plain Python item."""
        put: dict[str, Any] = {
            "TableName": self._table_name(table),
            "Item": _serialize_item(item),
        }
        if condition_expression:
            put["ConditionExpression"] = condition_expression
        return {"Put": put}

    def query_by_gsi(
        self,
        table: str,
        index_name: str,
        partition_key_name: str,
        partition_key_value: str,
        sort_key_condition: Any | None = None,
    ) -> list[dict[str, Any]]:
        """Query a GSI by partition key.

        Args:
            table: Table name without prefix
            index_name: GSI name
            partition_key_name: Name of partition key attribute
            partition_key_value: Value to query
            sort_key_condition: Optional sort key condition

        Returns:
            List of items
        """
        key_condition = Key(partition_key_name).eq(partition_key_value)
        if sort_key_condition:
            key_condition = key_condition & sort_key_condition

        return self.query(table, key_condition, index_name=index_name)

    # =========================================================================
    # Account methods
    # =========================================================================

    def get_account(self, account_id: str) -> dict[str, Any] | None:
        return self.get_item(ACCOUNTS_TABLE, {"account_id": account_id}, consistent_read=True)

    def get_constraint(self, kind: ConstraintKind, value: str | None = None) -> dict[str, Any] | None:
        """Get a uniqueness record (strongly consistent)."""
        return self.get_item(
            CONSTRAINTS_TABLE,
            {"constraint_key": constraint_key(kind, value)},
            consistent_read=True,
        )

    def _get_account_by_constraint(
        self, kind: ConstraintKind, value: str
    ) -> dict[str, Any] | None:
        constraint = self.get_constraint(kind, value)
        if not constraint:
            return None
        return self.get_account(constraint["account_id"])

    def get_account_by_external_id(self, external_id: str) -> dict[str, Any] | None:
        """Get an account through its external-id uniqueness record.

        Uses the record rather than a GSI so the read is strongly consistent.
        """
        return self._get_account_by_constraint(ConstraintKind.EXTERNAL_ID, external_id)

    def get_account_by_email(self, email: str) -> dict[str, Any] | None:
        return self._get_account_by_constraint(ConstraintKind.EMAIL, email.lower())

    def count_auto_admins(self) -> int:
        """Count admin accounts, excluding service accounts.

        Always read from the table; never cached.
        """
        items = self.scan(
            ACCOUNTS_TABLE,
            filter_expression=Attr("is_admin").eq(True)
            & Attr("is_service_account").eq(False),
        )
        return len(items)

    def create_account(
        self,
        account_item: dict[str, Any],
        claim_admin: bool = False,
    ) -> tuple[bool, ConstraintKind | None]:
        """Atomically create an account and its uniqueness records.

        One transaction writes the account, the ``email#`` record, the
        ``external_id#`` record (when the account has one) and, when
        ``claim_admin`` is set, the singleton ``auto_admin`` record.

        Args:
            account_item: Serialized account (see Account.to_item)
            claim_admin: Also claim the single automatic-admin slot

        Returns:
            (True, None) on success. On a cancelled transaction,
            (False, kind) naming the uniqueness record that is now taken,
            or (False, None) when no conflicting record can be found.
        """
        account_id = account_item["account_id"]
        external_id = account_item.get("external_id")
        email = account_item["email"]
        not_exists = "attribute_not_exists(constraint_key)"

        items = [
            self.transact_put(
                ACCOUNTS_TABLE, account_item, "attribute_not_exists(account_id)"
            ),
            self.transact_put(
                CONSTRAINTS_TABLE,
                {
                    "constraint_key": constraint_key(ConstraintKind.EMAIL, email),
                    "kind": ConstraintKind.EMAIL.value,
                    "account_id": account_id,
                },
                not_exists,
            ),
        ]
        if external_id:
            items.append(
                self.transact_put(
                    CONSTRAINTS_TABLE,
                    {
                        "constraint_key": constraint_key(ConstraintKind.EXTERNAL_ID, external_id),
                        "kind": ConstraintKind.EXTERNAL_ID.value,
                        "account_id": account_id,
                    },
                    not_exists,
                )
            )
        if claim_admin:
            items.append(
                self.transact_put(
                    CONSTRAINTS_TABLE,
                    {
                        "constraint_key": AUTO_ADMIN_KEY,
                        "kind": ConstraintKind.AUTO_ADMIN.value,
                        "account_id": account_id,
                    },
                    not_exists,
                )
            )

        if self.transact_write(items):
            return True, None

        # Nothing was written; find out which record is held by someone else.
        if external_id and self.get_constraint(ConstraintKind.EXTERNAL_ID, external_id):
            return False, ConstraintKind.EXTERNAL_ID
        if self.get_constraint(ConstraintKind.EMAIL, email):
            return False, ConstraintKind.EMAIL
        if claim_admin and self.get_constraint(ConstraintKind.AUTO_ADMIN):
            return False, ConstraintKind.AUTO_ADMIN
        return False, None

    def link_account_external_id(
        self, account_id: str, external_id: str, updated_at: str
    ) -> bool:
        """Bind an external id to an account that has none yet.

        The account update (conditional on no external id) and the
        ``external_id#`` record are written in one transaction.

        Returns:
            True if linked, False if either condition failed
        """
        items = [
            {
                "Update": {
                    "TableName": self._table_name(ACCOUNTS_TABLE),
                    "Key": _serialize_item({"account_id": account_id}),
                    "UpdateExpression": "SET external_id = :ext, updated_at = :now",
                    "ConditionExpression": "attribute_exists(account_id) AND attribute_not_exists(external_id)",
                    "ExpressionAttributeValues": _serialize_item(
                        {":ext": external_id, ":now": updated_at}
                    ),
                }
            },
            self.transact_put(
                CONSTRAINTS_TABLE,
                {
                    "constraint_key": constraint_key(ConstraintKind.EXTERNAL_ID, external_id),
                    "kind": ConstraintKind.EXTERNAL_ID.value,
                    "account_id": account_id,
                },
                "attribute_not_exists(constraint_key)",
            ),
        ]
        return self.transact_write(items)

    # =========================================================================
    # Saloon methods
    # =========================================================================

    def get_saloon(self, saloon_id: str) -> dict[str, Any] | None:
        return self.get_item(SALOONS_TABLE, {"saloon_id": saloon_id})

    def put_saloon(self, saloon_item: dict[str, Any]) -> bool:
        return self.put_item(SALOONS_TABLE, saloon_item)

    def get_saloon_service(self, service_id: str) -> dict[str, Any] | None:
        return self.get_item(SERVICES_TABLE, {"service_id": service_id})

    def put_saloon_service(self, service_item: dict[str, Any]) -> bool:
        return self.put_item(SERVICES_TABLE, service_item)

    # =========================================================================
    # Booking methods
    # =========================================================================

    def get_booking(self, booking_id: str) -> dict[str, Any] | None:
        return self.get_item(BOOKINGS_TABLE, {"booking_id": booking_id}, consistent_read=True)

    def create_booking(self, booking_item: dict[str, Any]) -> bool:
        return self.put_item(
            BOOKINGS_TABLE,
            booking_item,
            condition_expression="attribute_not_exists(booking_id)",
        )

    def update_booking_status(
        self,
        booking_id: str,
        expected_status: BookingStatus,
        new_status: BookingStatus,
        updated_at: str,
    ) -> dict[str, Any] | None:
        """Compare-and-set a booking's status.

        The write only happens while the stored status still equals
        ``expected_status``.

        Returns:
            Updated booking attributes, or None if the booking is gone or
            its status changed underneath us
        """
        return self.update_item(
            BOOKINGS_TABLE,
            {"booking_id": booking_id},
            "SET #status = :new, updated_at = :now",
            {
                ":new": new_status.value,
                ":expected": expected_status.value,
                ":now": updated_at,
            },
            expression_attribute_names={"#status": "status"},
            condition_expression="attribute_exists(booking_id) AND #status = :expected",
        )

    def delete_booking(self, booking_id: str) -> bool:
        """Delete a booking. Returns False if it no longer exists."""
        return self.delete_item(
            BOOKINGS_TABLE,
            {"booking_id": booking_id},
            condition_expression="attribute_exists(booking_id)",
        )

    def get_bookings_by_saloon(self, saloon_id: str) -> list[dict[str, Any]]:
        return self.query_by_gsi(BOOKINGS_TABLE, "saloon_id-index", "saloon_id", saloon_id)

    def get_bookings_by_account(self, account_id: str) -> list[dict[str, Any]]:
        return self.query_by_gsi(BOOKINGS_TABLE, "account_id-index", "account_id", account_id)
