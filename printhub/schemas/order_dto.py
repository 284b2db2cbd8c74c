from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from datetime import datetime

from printhub.models.order import Order
from printhub.models.print_job import PrintJobRecord


class PrintJobDTO(BaseModel):
    print_id: str
    file: str
    original_filename: str
    copies: int
    size: str
    color: str
    sides: str
    pages: str
    schedule: str
    estimated_price: float
    order_id: Optional[str] = None  # external id of the linked order
    created_at: Optional[datetime] = None

    @classmethod
    def from_orm_model(cls, record: PrintJobRecord) -> "PrintJobDTO":
        return cls(
            print_id=record.print_id,
            file=record.file_ref,
            original_filename=record.original_filename,
            copies=record.copies,
            size=record.size,
            color=record.color,
            sides=record.sides,
            pages=record.pages,
            schedule=record.schedule,
            estimated_price=float(record.estimated_price or 0),
            order_id=record.order.order_id if record.order is not None else None,
            created_at=record.created_at,
        )


class OrderDTO(BaseModel):
    order_id: str
    user_id: str
    items: List[Dict[str, Any]]
    total_amount: float
    status: str
    payment_id: Optional[str] = None
    rate_table_version: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_orm_model(cls, order: Order) -> "OrderDTO":
        return cls(
            order_id=order.order_id,
            user_id=order.user_id,
            items=list(order.items or []),
            total_amount=float(order.total_amount or 0),
            status=order.status.value,
            payment_id=order.payment_id,
            rate_table_version=order.rate_table_version,
            created_at=order.created_at,
        )


class OrderCustomerDTO(BaseModel):
    name: str
    email: str


class OrderDetailDTO(OrderDTO):
    '''Admin view: order + owner + linked print jobs'''
    customer: Optional[OrderCustomerDTO] = None
    print_jobs: List[PrintJobDTO] = []

    @classmethod
    def from_orm_model(cls, order: Order, print_jobs: Optional[List[PrintJobRecord]] = None) -> "OrderDetailDTO":
        base = OrderDTO.from_orm_model(order)
        customer = None
        if order.user is not None:
            customer = OrderCustomerDTO(name=order.user.name, email=order.user.email)
        return cls(
            **base.model_dump(),
            customer=customer,
            print_jobs=[PrintJobDTO.from_orm_model(r) for r in (print_jobs or [])],
        )


class PlacedOrderDTO(BaseModel):
    '''Response of POST /api/orders'''
    order: OrderDTO
    print_jobs: List[PrintJobDTO]
