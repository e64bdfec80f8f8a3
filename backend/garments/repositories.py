# Overview: Per-entity repositories over the SQLAlchemy session, injected into services.

"""
Data access layer.

Services never touch db.session directly; they receive a Repositories
bundle and go through one repository per entity. create_app() builds the
bundle once and stores it in app.extensions["repositories"]; routes fetch
it with get_repositories().
"""
from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import func, or_, update

from .models import User, Product, Order, OrderTrackingEvent, Message
from .time_utils import utcnow


def paginate(query, page: int | None, per_page: int | None, serialize) -> dict:
    """
    Shared pagination shape.

    If page is None, returns all items.
    per_page defaults to 20, max 100.
    """
    if page is None:
        items = query.all()
        return {"items": [serialize(i) for i in items], "count": len(items)}

    per_page = min(per_page or 20, 100)
    page = max(page, 1)

    total = query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    items = query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [serialize(i) for i in items],
        "count": len(items),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


class UserRepository:
    def __init__(self, session):
        self.session = session

    def get(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def get_by_email(self, email: str) -> User | None:
        if not email:
            return None
        return self.session.query(User).filter(User.email == email.strip().lower()).first()

    def add(self, user: User) -> User:
        self.session.add(user)
        self.session.flush()
        return user

    def query(self, *, search: str | None = None, role: str | None = None, status: str | None = None):
        q = self.session.query(User)
        if search:
            pattern = f"%{search.strip().lower()}%"
            q = q.filter(or_(
                func.lower(User.email).like(pattern),
                func.lower(User.display_name).like(pattern),
            ))
        if role:
            q = q.filter(User.role == role.lower())
        if status:
            q = q.filter(User.status == status.lower())
        return q.order_by(User.created_at.desc(), User.id.desc())


class ProductRepository:
    def __init__(self, session):
        self.session = session

    def get(self, product_id: int) -> Product | None:
        return self.session.get(Product, product_id)

    def add(self, product: Product) -> Product:
        self.session.add(product)
        self.session.flush()
        return product

    def delete(self, product: Product) -> None:
        self.session.delete(product)

    def query(
        self,
        *,
        status: str | None = None,
        added_by: str | None = None,
        search: str | None = None,
        category: str | None = None,
    ):
        q = self.session.query(Product)
        if status:
            q = q.filter(Product.status == status)
        if added_by:
            q = q.filter(Product.added_by == added_by.strip().lower())
        if search:
            q = q.filter(func.lower(Product.name).like(f"%{search.strip().lower()}%"))
        if category:
            q = q.filter(Product.category == category)
        return q.order_by(Product.created_at.desc(), Product.id.desc())

    def has_orders(self, product_id: int) -> bool:
        return self.session.query(Order.id).filter(Order.product_id == product_id).first() is not None

    def reserve_stock(self, product_id: int, quantity: int) -> bool:
        """
        Atomically decrement stock, only if enough remains.

        Returns False when the conditional UPDATE matched no row
        (product missing or quantity < requested).
        """
        result = self.session.execute(
            update(Product)
            .where(Product.id == product_id, Product.quantity >= quantity)
            .values(quantity=Product.quantity - quantity, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        self._expire_stock(product_id)
        return result.rowcount == 1

    def release_stock(self, product_id: int, quantity: int) -> None:
        self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(quantity=Product.quantity + quantity, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        self._expire_stock(product_id)

    def _expire_stock(self, product_id: int) -> None:
        # Loaded instances hold the pre-UPDATE quantity; reload on next access.
        product = self.session.get(Product, product_id)
        if product is not None:
            self.session.expire(product, ["quantity", "updated_at"])


class OrderRepository:
    def __init__(self, session):
        self.session = session

    def get(self, order_id: int) -> Order | None:
        return self.session.get(Order, order_id)

    def add(self, order: Order) -> Order:
        self.session.add(order)
        self.session.flush()
        return order

    def get_for_update(self, order_id: int) -> Order | None:
        """
        Load an order for a state change.

        SELECT ... FOR UPDATE where the database honours it (SQLite ignores
        it); populate_existing() discards any stale copy already held by
        this session so status checks see the committed row.
        """
        return (
            self.session.query(Order)
            .filter_by(id=order_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def get_by_transaction(self, transaction_id: str) -> Order | None:
        return self.session.query(Order).filter(Order.transaction_id == transaction_id).first()

    def append_event(
        self,
        order: Order,
        *,
        status: str,
        actor: str,
        location: str | None = None,
        note: str | None = None,
    ) -> OrderTrackingEvent:
        # Stored maximum, not the loaded collection, which may be stale
        last = (
            self.session.query(func.max(OrderTrackingEvent.sequence))
            .filter(OrderTrackingEvent.order_id == order.id)
            .scalar()
        )
        sequence = (last or 0) + 1
        event = OrderTrackingEvent(
            sequence=sequence,
            status=status,
            actor=actor,
            location=location,
            note=note,
            occurred_at=utcnow(),
        )
        order.tracking_events.append(event)
        return event

    def for_buyer(self, buyer_email: str):
        return (
            self.session.query(Order)
            .filter(Order.buyer_email == buyer_email)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )

    def for_product_owner(self, owner_email: str, status: str | None = None):
        """Orders placed against products added by owner_email."""
        q = (
            self.session.query(Order)
            .join(Product, Product.id == Order.product_id)
            .filter(Product.added_by == owner_email)
        )
        if status:
            q = q.filter(Order.status == status)
        return q.order_by(Order.created_at.desc(), Order.id.desc())

    def all(self, status: str | None = None):
        q = self.session.query(Order)
        if status:
            q = q.filter(Order.status == status)
        return q.order_by(Order.created_at.desc(), Order.id.desc())


class MessageRepository:
    def __init__(self, session):
        self.session = session

    def add(self, message: Message) -> Message:
        self.session.add(message)
        self.session.flush()
        return message


@dataclass
class Repositories:
    """Bundle of repositories sharing one session (one unit of work)."""
    session: object
    users: UserRepository
    products: ProductRepository
    orders: OrderRepository
    messages: MessageRepository

    @classmethod
    def for_session(cls, session) -> "Repositories":
        return cls(
            session=session,
            users=UserRepository(session),
            products=ProductRepository(session),
            orders=OrderRepository(session),
            messages=MessageRepository(session),
        )

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


def get_repositories() -> Repositories:
    return current_app.extensions["repositories"]
