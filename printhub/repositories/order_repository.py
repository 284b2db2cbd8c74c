from typing import List, Optional

from sqlalchemy.orm import Session

from printhub.models.order import Order
from printhub.db.enums import OrderStatus


class OrderRepository:
    """
    Order storage. Orders are looked up by their external order_id,
    never by the internal primary key.
    """

    def __init__(self, db: Session):
        self.db = db

    def insert(self, order: Order) -> Order:
        self.db.add(order)
        self.db.flush()
        return order

    def find_by_external_id(self, order_id: str) -> Optional[Order]:
        return (
            self.db.query(Order)
            .filter(Order.order_id == order_id)
            .first()
        )

    def external_id_exists(self, order_id: str) -> bool:
        return self.find_by_external_id(order_id) is not None

    def update_status(self, order: Order, status: OrderStatus) -> Order:
        order.status = status
        self.db.flush()
        return order

    def set_payment_reference(self, order: Order, payment_id: str) -> Order:
        order.payment_id = payment_id
        self.db.flush()
        return order

    def find_by_user(self, user_id: str) -> List[Order]:
        '''newest first'''
        return (
            self.db.query(Order)
            .filter(Order.user_id == user_id)
            .order_by(Order.created_at.desc())
            .all()
        )

    def find_by_status(self, status: OrderStatus) -> List[Order]:
        return (
            self.db.query(Order)
            .filter(Order.status == status)
            .order_by(Order.created_at.desc())
            .all()
        )

    def list_all(self) -> List[Order]:
        return self.db.query(Order).order_by(Order.created_at.desc()).all()
