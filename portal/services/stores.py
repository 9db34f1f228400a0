# portal/services/stores.py
"""Dotazy nad objednávkami, produkty a profily pro API routy."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import selectinload

from portal.extensions import db
from portal.models import Order, OrderItem, Product, Profile
from portal.services.aggregation import LineSnapshot, OrderSnapshot, ProfileSnapshot


def order_snapshot(order: Order) -> OrderSnapshot:
    return OrderSnapshot(
        id=order.id,
        user_id=order.user_id,
        created_at=order.created_at,
        items=tuple(
            LineSnapshot(
                product_id=it.product_id,
                product_name=it.product.name if it.product else None,
                category=it.product.category if it.product else None,
                quantity=it.quantity,
                volume=it.volume,
            )
            for it in order.items
        ),
    )


def profile_snapshot(profile: Profile) -> ProfileSnapshot:
    return ProfileSnapshot(
        id=profile.id,
        full_name=profile.full_name,
        company=profile.company,
        email=profile.email,
        created_at=profile.created_at,
    )


class OrderStore:
    """Objednávky včetně položek a produktů (jeden dotaz na položky přes selectinload)."""

    def _with_items(self):
        return Order.query.options(
            selectinload(Order.items).joinedload(OrderItem.product)
        )

    @staticmethod
    def _since(query, cutoff: datetime | None):
        if cutoff is not None:
            query = query.filter(Order.created_at >= cutoff)
        return query

    def get(self, order_id: str) -> Order | None:
        return self._with_items().filter(Order.id == str(order_id)).first()

    def count(self, cutoff: datetime | None = None) -> int:
        return self._since(Order.query, cutoff).count()

    def for_user(self, user_id: str, cutoff: datetime | None = None) -> list[Order]:
        q = self._with_items().filter(Order.user_id == user_id)
        return self._since(q, cutoff).order_by(Order.created_at.desc()).all()

    def customer_orders(self, cutoff: datetime | None = None, newest_first: bool = True) -> list[Order]:
        """Objednávky registrovaných zákazníků (bez hostů)."""
        q = self._since(self._with_items().filter(Order.user_id.isnot(None)), cutoff)
        order_by = Order.created_at.desc() if newest_first else Order.created_at.asc()
        return q.order_by(order_by).all()

    def by_status(self, status: str) -> list[Order]:
        return (
            self._with_items()
            .filter(Order.status == status)
            .order_by(Order.created_at.desc())
            .all()
        )

    def page(self, page: int = 0, page_size: int = 13, search: str = "") -> tuple[list[Order], int]:
        """Stránka objednávek od nejnovější a celkový počet odpovídajících (pro hasMore)."""
        q = self._with_items()
        search = (search or "").strip()
        if search:
            pattern = f"%{search}%"
            q = q.filter(or_(
                Order.customer_name.ilike(pattern),
                Order.customer_email.ilike(pattern),
                Order.id.ilike(pattern),
                Order.customer_company.ilike(pattern),
            ))
        total = q.count()
        orders = (
            q.order_by(Order.created_at.desc(), Order.id.desc())
            .offset(page * page_size)
            .limit(page_size)
            .all()
        )
        return orders, total

    def by_ids(self, order_ids) -> list[Order]:
        ids = [str(i) for i in order_ids or []]
        if not ids:
            return []
        return (
            self._with_items()
            .filter(Order.id.in_(ids))
            .order_by(Order.created_at.desc())
            .all()
        )


class ProductStore:
    def all(self) -> list[Product]:
        return Product.query.order_by(Product.name.asc()).all()

    def by_category(self, categories) -> list[Product]:
        return (
            Product.query
            .filter(Product.category.in_(list(categories)))
            .order_by(Product.name.asc())
            .all()
        )


class ProfileStore:
    def get(self, profile_id: str) -> Profile | None:
        return db.session.get(Profile, str(profile_id))

    def customers(self) -> list[Profile]:
        """Všichni ne-admin uživatelé, v pořadí registrace."""
        return (
            Profile.query
            .filter(Profile.is_admin.is_(False))
            .order_by(Profile.created_at.asc(), Profile.id.asc())
            .all()
        )

    def count_customers(self) -> int:
        return Profile.query.filter(Profile.is_admin.is_(False)).count()


__all__ = [
    "OrderStore",
    "ProductStore",
    "ProfileStore",
    "order_snapshot",
    "profile_snapshot",
]
