import argparse
import asyncio
from sqlalchemy import select
from marketplace.core.db import AsyncSessionLocal
from marketplace.core.security import hash_password
from marketplace.models.account import Account
from marketplace.models.vendor import Vendor
from marketplace.core.config import settings
from marketplace.services.commission import to_percentage
from marketplace.services.ledger import get_or_create_wallet
from marketplace.tasks.reconcile import reconcile_wallets_async


async def _create_account(db, username: str, password: str, role: str, name: str = "") -> Account:
    q = await db.execute(select(Account).where(Account.username == username))
    if q.scalar_one_or_none():
        raise SystemExit("User already exists")
    account = Account(username=username, password_hash=hash_password(password), role=role, name=name or username)
    db.add(account)
    await db.flush()
    return account


async def create_account(username: str, password: str, role: str):
    async with AsyncSessionLocal() as db:
        await _create_account(db, username, password, role)
        await db.commit()
        print(f"Created {role}:", username)


async def create_vendor(username: str, password: str, business_name: str, commission: str | None):
    async with AsyncSessionLocal() as db:
        account = await _create_account(db, username, password, "vendor", business_name)
        vendor = Vendor(
            account_id=account.id,
            business_name=business_name,
            commission_percentage=to_percentage(commission if commission is not None else settings.DEFAULT_COMMISSION_PERCENTAGE),
            bank_details={},
            is_approved=True,
        )
        db.add(vendor)
        await db.flush()
        # approved vendors get their wallet up front
        await get_or_create_wallet(db, vendor.id)
        await db.commit()
        print(f"Created vendor #{vendor.id}:", business_name, f"(commission {vendor.commission_percentage}%)")


async def reconcile():
    stats = await reconcile_wallets_async()
    print(
        f"[WALLET-RECONCILE] scanned={stats.scanned_wallets} "
        f"consistent={stats.consistent_wallets} mismatched={stats.mismatched_wallets}"
    )
    if stats.mismatched_wallets:
        raise SystemExit(1)


def main():
    parser = argparse.ArgumentParser()
    sub = parser.add_subparsers(dest="cmd")

    for cmd in ("create-admin", "create-customer"):
        c = sub.add_parser(cmd)
        c.add_argument("--username", required=True)
        c.add_argument("--password", required=True)

    v = sub.add_parser("create-vendor")
    v.add_argument("--username", required=True)
    v.add_argument("--password", required=True)
    v.add_argument("--business-name", required=True)
    v.add_argument("--commission", default=None, help="percentage, e.g. 12.5")

    sub.add_parser("reconcile-wallets")

    args = parser.parse_args()
    if args.cmd == "create-admin":
        asyncio.run(create_account(args.username, args.password, "admin"))
    elif args.cmd == "create-customer":
        asyncio.run(create_account(args.username, args.password, "customer"))
    elif args.cmd == "create-vendor":
        asyncio.run(create_vendor(args.username, args.password, args.business_name, args.commission))
    elif args.cmd == "reconcile-wallets":
        asyncio.run(reconcile())
    else:
        parser.print_help()

if __name__ == "__main__":
    main()
