from sqlalchemy import (
    Table, Column, String, Integer, Numeric, Boolean, Text, Enum, DateTime, ForeignKey, MetaData,
    CheckConstraint, UniqueConstraint
)
from sqlalchemy.sql import func

from shop.domain.models import OrderStatus, PaymentMethod, PaymentStatus

metadata = MetaData()


def _enum_values(enum_cls):
    # persist enum values, not member names
    return [member.value for member in enum_cls]


categories_tbl = Table(
    "categories",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False, unique=True),
    Column("description", Text, nullable=True)
)


products_tbl = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(150), nullable=False),
    Column("description", Text, nullable=True),
    Column("price", Numeric(10, 2), nullable=False),
    Column("stock", Integer, nullable=False, default=0),
    Column("reserved", Integer, nullable=False, default=0),
    Column("image", String, nullable=False, default="placeholder.png"),
    Column("active", Boolean, nullable=False, default=True),
    Column("category_id", Integer, ForeignKey("categories.id"), nullable=False),
    CheckConstraint("reserved >= 0", name="ck_products_reserved_non_negative"),
    CheckConstraint("reserved <= stock", name="ck_products_reserved_within_stock")
)


customers_tbl = Table(
    "customers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(150), nullable=False),
    Column("email", String, nullable=False, unique=True, index=True),
    Column("phone", String(20), nullable=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now())
)


addresses_tbl = Table(
    "addresses",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("customer_id", Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("street", String(200), nullable=False),
    Column("number", String(20), nullable=False),
    Column("complement", String(100), nullable=True),
    Column("neighborhood", String(100), nullable=False),
    Column("city", String(100), nullable=False),
    Column("state", String(2), nullable=False),
    Column("zip_code", String(9), nullable=False),
    Column("main", Boolean, nullable=False, default=False)
)


orders_tbl = Table(
    "orders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("customer_id", Integer, ForeignKey("customers.id"), nullable=False, index=True),
    Column("address_id", Integer, ForeignKey("addresses.id"), nullable=False),
    Column(
        "status",
        Enum(OrderStatus, name="order_status", values_callable=_enum_values),
        nullable=False,
        default=OrderStatus.OPEN,
        index=True
    ),
    Column("subtotal", Numeric(10, 2), nullable=False, default=0),
    Column("total", Numeric(10, 2), nullable=False, default=0),
    Column("total_quantity", Integer, nullable=False, default=0),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now())
)


order_items_tbl = Table(
    "order_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("order_id", Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("product_id", Integer, ForeignKey("products.id"), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("unit_price", Numeric(10, 2), nullable=False),
    Column("subtotal", Numeric(10, 2), nullable=False),
    CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive")
)


payments_tbl = Table(
    "payments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("order_id", Integer, ForeignKey("orders.id"), nullable=False, index=True),
    Column("method", Enum(PaymentMethod, name="payment_method", values_callable=_enum_values), nullable=False),
    Column("amount", Numeric(10, 2), nullable=False),
    Column("status", Enum(PaymentStatus, name="payment_status", values_callable=_enum_values), nullable=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now())
)


carts_tbl = Table(
    "carts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("customer_id", Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, unique=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now())
)


cart_items_tbl = Table(
    "cart_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("cart_id", Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("product_id", Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
    Column("quantity", Integer, nullable=False),
    CheckConstraint("quantity > 0", name="ck_cart_items_quantity_positive"),
    UniqueConstraint("cart_id", "product_id", name="uq_cart_items_cart_product")
)
