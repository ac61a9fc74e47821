"""Worked examples: a layered Person/Employee and a polymorphic Order.

Try ``polydata describe polydata.examples:Order``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from polydata.core import clock
from polydata.core.data import data
from polydata.core.polymorphic import polymorphic_data


class PersonSchema(BaseModel):
    first_name: str
    last_name: str
    birth_date: datetime


class EmployeeSchema(BaseModel):
    employee_id: str
    department: str


def _full_name(self: Any) -> str:
    return f"{self.first_name} {self.last_name}"


def _age(self: Any) -> int:
    return clock.now().year - self.birth_date.year


Person = data(
    schema=PersonSchema,
    methods={"full_name": _full_name, "age": _age},
    name="Person",
)

Employee = data(
    base=Person,
    schema=EmployeeSchema,
    methods={
        "is_manager": lambda self: self.department == "Management",
        "is_retired": lambda self: self.age() > 65,
    },
    name="Employee",
)


class Product(BaseModel):
    name: str
    price: float = Field(ge=0)
    quantity: int = Field(ge=1)


class OrderSchema(BaseModel):
    products: list[Product]
    order_date: datetime


class PendingOrder(BaseModel):
    estimated_delivery: datetime


class DeliveredOrder(BaseModel):
    delivered_at: datetime


class CancelledOrder(BaseModel):
    reason: str
    cancelled_at: datetime


def _total_price(self: Any) -> float:
    return sum(product.price * product.quantity for product in self.products)


def _mark_as_delivered(self: Any) -> Any:
    return Order.delivered(self, delivered_at=clock.now())


def _cancel(self: Any, reason: str) -> Any:
    return Order.cancelled(self, reason=reason, cancelled_at=clock.now())


def _delivery_duration(self: Any) -> float:
    return (self.delivered_at - self.order_date).total_seconds()


def _retry(self: Any) -> Any:
    return Order.pending(self, estimated_delivery=clock.now())


Order = polymorphic_data(
    discriminator="status",
    base_schema=OrderSchema,
    base_methods={"total_price": _total_price},
    schemas={
        "pending": PendingOrder,
        "delivered": DeliveredOrder,
        "cancelled": CancelledOrder,
    },
    methods={
        "pending": {"mark_as_delivered": _mark_as_delivered, "cancel": _cancel},
        "delivered": {"delivery_duration": _delivery_duration},
        "cancelled": {"retry": _retry},
    },
    name="Order",
)
