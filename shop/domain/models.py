from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Two fractional digits, no float drift"""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


class OrderStatus(str, Enum):
    OPEN = "ABERTO"
    AWAITING_PAYMENT = "AGUARDANDO_PAGAMENTO"
    PAID = "PAGO"
    CANCELLED = "CANCELADO"


TERMINAL_STATUSES = frozenset({OrderStatus.PAID, OrderStatus.CANCELLED})
# unresolved orders hold reservations until paid, cancelled or expired
EXPIRABLE_STATUSES = frozenset({OrderStatus.OPEN, OrderStatus.AWAITING_PAYMENT})


class PaymentMethod(str, Enum):
    CARD = "Cartão"
    BOLETO = "Boleto"
    PIX = "PIX"


class PaymentStatus(str, Enum):
    PAID = "PAGO"
    CANCELLED = "CANCELADO"


class Category(BaseModel):
    id: int
    name: str
    description: Optional[str] = None


class Product(BaseModel):
    """Catalog product with its stock ledger counters"""
    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    stock: int
    reserved: int
    image: str
    active: bool
    category_id: int

    @property
    def available(self) -> int:
        return self.stock - self.reserved


class Customer(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    created_at: datetime


class Address(BaseModel):
    id: int
    customer_id: int
    street: str
    number: str
    complement: Optional[str] = None
    neighborhood: str
    city: str
    state: str
    zip_code: str
    main: bool = False


class OrderItem(BaseModel):
    """Line of an order; the sale price is frozen at order time"""
    id: int
    order_id: int
    product_id: int
    product_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class Order(BaseModel):
    """Domain entity: order"""
    id: int
    customer_id: int
    address_id: int
    status: OrderStatus
    subtotal: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")
    total_quantity: int = 0
    created_at: datetime
    items: List[OrderItem] = []
    address: Optional[Address] = None

    def can_be_paid(self) -> bool:
        """Business rule: a payment is attempted only once, while awaiting payment"""
        return self.status == OrderStatus.AWAITING_PAYMENT

    def can_be_expired(self) -> bool:
        return self.status in EXPIRABLE_STATUSES

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class Payment(BaseModel):
    id: int
    order_id: int
    method: PaymentMethod
    amount: Decimal
    status: PaymentStatus
    created_at: datetime


class CartItem(BaseModel):
    """Cart line; the price shown is the product's current one"""
    id: int
    cart_id: int
    product_id: int
    product_name: Optional[str] = None
    unit_price: Decimal
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


class Cart(BaseModel):
    id: int
    customer_id: int
    created_at: datetime
    updated_at: datetime
    items: List[CartItem] = []

    @property
    def total(self) -> Decimal:
        return to_money(sum((item.subtotal for item in self.items), Decimal("0.00")))

    def find_item(self, product_id: int) -> Optional[CartItem]:
        return next((item for item in self.items if item.product_id == product_id), None)
