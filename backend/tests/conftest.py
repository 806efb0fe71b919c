"""
Shared fixtures: a fresh in-memory SQLite database per test and small
factories for accounts, vendors, products and cart lines.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("ENV_FILE", "/nonexistent.env")

from decimal import Decimal

import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from marketplace import models  # noqa: F401
from marketplace.core.db import Base
from marketplace.models.account import Account
from marketplace.models.product import CartItem, Product
from marketplace.models.vendor import Vendor
from marketplace.services.cart import CartLine


BANK_DETAILS = {
    "account_holder_name": "Jane Vendor",
    "account_number": "000123456789",
    "bank_name": "First Bank",
    "ifsc_code": "FBIN0001",
    "account_type": "current",
}


class Factory:
    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    async def account(self, role: str = "customer", username: str | None = None) -> Account:
        a = Account(
            username=username or f"{role}{self._next()}",
            password_hash="not-a-real-hash",
            name=role.title(),
            role=role,
        )
        self.db.add(a)
        await self.db.flush()
        return a

    async def vendor(
        self,
        commission: str = "10.00",
        approved: bool = True,
        suspended: bool = False,
        bank: bool = True,
    ) -> Vendor:
        account = await self.account("vendor")
        v = Vendor(
            account_id=account.id,
            business_name=f"Shop {account.id}",
            commission_percentage=Decimal(commission),
            bank_details=dict(BANK_DETAILS) if bank else {},
            is_approved=approved,
            is_suspended=suspended,
            total_orders=0,
        )
        self.db.add(v)
        await self.db.flush()
        return v

    async def product(self, vendor: Vendor, price: int, quantity: int = 100, name: str | None = None) -> Product:
        p = Product(
            vendor_id=vendor.id,
            name=name or f"Item {self._next()}",
            price=price,
            image="img.png",
            quantity=quantity,
        )
        self.db.add(p)
        await self.db.flush()
        return p

    async def cart_item(self, customer: Account, product: Product, quantity: int) -> CartItem:
        item = CartItem(customer_id=customer.id, product_id=product.id, quantity=quantity)
        self.db.add(item)
        await self.db.flush()
        return item


def line(product: Product, quantity: int) -> CartLine:
    return CartLine(
        product_id=product.id,
        vendor_id=product.vendor_id,
        name=product.name,
        unit_price=product.price,
        quantity=quantity,
        image=product.image,
    )


ADDRESS = {"address": "1 Market St", "city": "Lagos", "postal_code": "100001", "country": "NG"}


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def factory(db):
    return Factory(db)


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """Sessions on separate connections to one sqlite file, for interleaving writers."""
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'shared.db'}", connect_args={"timeout": 30})
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(eng, expire_on_commit=False)
    await eng.dispose()
