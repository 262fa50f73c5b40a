#!/usr/bin/env python3
"""Seed a development database with a demo saloon.

Creates (optionally) the DynamoDB tables and writes:
- a saloon owner account without an external id, so the owner's first
  sign-in with the same email adopts it
- one saloon owned by that account
- a handful of priced services

Usage:
    python scripts/seed_data.py --env dev
    python scripts/seed_data.py --env dev --create-tables
    python scripts/seed_data.py --env dev --owner-email me@example.com
"""

import argparse
import os
import sys
import uuid
from datetime import UTC, datetime
from typing import Any

import boto3
from botocore.exceptions import ClientError

from salonbook.models import Account, ConstraintKind, Saloon, SaloonService
from salonbook.services.dynamodb import DynamoDBService

TABLES: dict[str, tuple[str, tuple[str, ...]]] = {
    "accounts": ("account_id", ()),
    "account-constraints": ("constraint_key", ()),
    "bookings": ("booking_id", ("saloon_id", "account_id")),
    "saloons": ("saloon_id", ()),
    "saloon-services": ("service_id", ()),
}

DEMO_SERVICES = [
    ("svc-cut", "Haircut", 3500, 45),
    ("svc-colour", "Colour", 6500, 90),
    ("svc-beard", "Beard trim", 1500, 20),
]


def get_table_prefix(env: str) -> str:
    return os.environ.get("DYNAMODB_TABLE_PREFIX", f"salonbook-{env}")


def create_tables(prefix: str, region: str) -> None:
    """Create the tables if they do not exist yet (on-demand billing)."""
    client = boto3.client("dynamodb", region_name=region)

    for name, (key, gsis) in TABLES.items():
        table_name = f"{prefix}-{name}"
        definition: dict[str, Any] = {
            "TableName": table_name,
            "KeySchema": [{"AttributeName": key, "KeyType": "HASH"}],
            "AttributeDefinitions": [{"AttributeName": a, "AttributeType": "S"} for a in (key, *gsis)],
            "BillingMode": "PAY_PER_REQUEST",
        }
        if gsis:
            definition["GlobalSecondaryIndexes"] = [
                {
                    "IndexName": f"{g}-index",
                    "KeySchema": [{"AttributeName": g, "KeyType": "HASH"}],
                    "Projection": {"ProjectionType": "ALL"},
                }
                for g in gsis
            ]
        try:
            client.create_table(**definition)
            print(f"  + {table_name}")
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceInUseException":
                raise
            print(f"  = {table_name} (exists)")


def seed_owner(db: DynamoDBService, email: str) -> str:
    """Create the demo owner account, or reuse the one holding the email."""
    existing = db.get_account_by_email(email)
    if existing:
        print(f"  = owner {email} ({existing['account_id']})")
        return existing["account_id"]

    now = datetime.now(UTC)
    account = Account(
        account_id=str(uuid.uuid4()),
        email=email.lower(),
        name="Demo Owner",
        created_at=now,
        updated_at=now,
    )
    ok, conflict = db.create_account(account.to_item())
    if not ok:
        raise RuntimeError(f"Could not create owner account: {conflict}")
    print(f"  + owner {email} ({account.account_id})")
    return account.account_id


def seed_saloon(db: DynamoDBService, owner_account_id: str) -> None:
    saloon = Saloon(
        saloon_id="saloon-demo",
        owner_account_id=owner_account_id,
        name="Demo Saloon",
        address="Calle Mayor 1",
    )
    db.put_saloon(saloon.to_item())
    print(f"  + saloon {saloon.saloon_id}")

    for service_id, name, price, minutes in DEMO_SERVICES:
        db.put_saloon_service(
            SaloonService(
                service_id=service_id,
                saloon_id=saloon.saloon_id,
                name=name,
                price=price,
                duration_minutes=minutes,
            ).to_item()
        )
        print(f"    + {name} (EUR {price / 100:.2f})")


def main() -> int:
    """Run the seed script."""
    parser = argparse.ArgumentParser(description="Seed development database with a demo saloon")
    parser.add_argument(
        "--env",
        choices=["dev", "staging", "prod"],
        default="dev",
        help="Target environment (default: dev)",
    )
    parser.add_argument(
        "--region",
        default=os.environ.get("AWS_DEFAULT_REGION", "eu-west-1"),
        help="AWS region (default: eu-west-1 or AWS_DEFAULT_REGION env var)",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables first",
    )
    parser.add_argument(
        "--owner-email",
        default="owner@salonbook.app",
        help="Email of the demo saloon owner",
    )

    args = parser.parse_args()

    if args.env == "prod":
        confirm = input("WARNING: You are about to modify PRODUCTION data. Type 'yes' to continue: ")
        if confirm.lower() != "yes":
            print("Aborted.")
            return 1

    os.environ["AWS_DEFAULT_REGION"] = args.region
    prefix = get_table_prefix(args.env)
    print(f"\nSeeding {args.env} environment (prefix: {prefix}, region: {args.region})\n")

    if args.create_tables:
        create_tables(prefix, args.region)
        print()

    db = DynamoDBService(table_prefix=prefix)
    try:
        owner_id = seed_owner(db, args.owner_email)
        seed_saloon(db, owner_id)
    except (ClientError, RuntimeError) as e:
        print(f"  Failed to seed: {e}")
        return 1

    if db.get_constraint(ConstraintKind.AUTO_ADMIN) is None:
        print("\nNo admin yet: the first account to sign in becomes admin.")

    print("\nSeed completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
