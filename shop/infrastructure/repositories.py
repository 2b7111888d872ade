from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from sqlalchemy import select, insert, update, delete, case, exists
from sqlalchemy.ext.asyncio import AsyncSession

from shop.domain.models import (
    Address, Cart, CartItem, Category, Customer, EXPIRABLE_STATUSES, Order, OrderItem, OrderStatus, Payment,
    PaymentMethod, PaymentStatus, Product
)
from shop.infrastructure.db_schema import (
    addresses_tbl, cart_items_tbl, carts_tbl, categories_tbl, customers_tbl, order_items_tbl, orders_tbl,
    payments_tbl, products_tbl
)
from shop.application.interfaces import (
    AddressRepository, CartRepository, CategoryRepository, CustomerRepository, OrderRepository, PaymentRepository,
    ProductRepository
)


class SQLAlchemyCategoryRepository(CategoryRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, category_id: int) -> Optional[Category]:
        result = await self._session.execute(
            select(categories_tbl).where(categories_tbl.c.id == category_id)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def get_by_name(self, name: str) -> Optional[Category]:
        result = await self._session.execute(
            select(categories_tbl).where(categories_tbl.c.name == name)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def create(self, name: str, description: Optional[str]) -> Category:
        result = await self._session.execute(
            insert(categories_tbl).values(name=name, description=description)
        )
        return Category(id=result.inserted_primary_key[0], name=name, description=description)

    async def list(self) -> List[Category]:
        result = await self._session.execute(
            select(categories_tbl).order_by(categories_tbl.c.name.asc())
        )
        return [self._to_domain(row) for row in result.fetchall()]

    async def update(self, category_id: int, values: dict) -> None:
        await self._session.execute(
            update(categories_tbl).where(categories_tbl.c.id == category_id).values(**values)
        )

    async def delete(self, category_id: int) -> bool:
        result = await self._session.execute(
            delete(categories_tbl).where(categories_tbl.c.id == category_id)
        )
        return result.rowcount == 1

    async def has_products(self, category_id: int) -> bool:
        return await self._session.scalar(
            select(exists().where(products_tbl.c.category_id == category_id))
        )

    def _to_domain(self, row) -> Category:
        return Category(id=row.id, name=row.name, description=row.description)


class SQLAlchemyProductRepository(ProductRepository):
    """Products plus the stock ledger counters.

    Every counter mutation is a single conditional UPDATE so that concurrent
    transactions cannot both pass the availability check.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, product_id: int, for_update: bool = False) -> Optional[Product]:
        query = select(products_tbl).where(products_tbl.c.id == product_id)
        if for_update:
            query = query.with_for_update()
        result = await self._session.execute(query)
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def get_active_for_update(self, product_id: int) -> Optional[Product]:
        result = await self._session.execute(
            select(products_tbl)
            .where(products_tbl.c.id == product_id, products_tbl.c.active.is_(True))
            .with_for_update()
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def list(
        self,
        name: Optional[str] = None,
        category_id: Optional[int] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None
    ) -> List[Product]:
        query = select(products_tbl).where(products_tbl.c.active.is_(True))
        if name:
            query = query.where(products_tbl.c.name.ilike(f"%{name}%"))
        if category_id is not None:
            query = query.where(products_tbl.c.category_id == category_id)
        if min_price is not None:
            query = query.where(products_tbl.c.price >= min_price)
        if max_price is not None:
            query = query.where(products_tbl.c.price <= max_price)

        result = await self._session.execute(query.order_by(products_tbl.c.id.asc()))
        return [self._to_domain(row) for row in result.fetchall()]

    async def create(self, values: dict) -> Product:
        result = await self._session.execute(insert(products_tbl).values(**values))
        return await self.get_by_id(result.inserted_primary_key[0])

    async def update(self, product_id: int, values: dict) -> None:
        await self._session.execute(
            update(products_tbl).where(products_tbl.c.id == product_id).values(**values)
        )

    async def delete(self, product_id: int) -> bool:
        result = await self._session.execute(
            delete(products_tbl).where(products_tbl.c.id == product_id)
        )
        return result.rowcount == 1

    async def is_ordered(self, product_id: int) -> bool:
        return await self._session.scalar(
            select(exists().where(order_items_tbl.c.product_id == product_id))
        )

    async def try_reserve(self, product_id: int, quantity: int) -> bool:
        stmt = (
            update(products_tbl)
            .where(
                products_tbl.c.id == product_id,
                products_tbl.c.active.is_(True),
                products_tbl.c.stock - products_tbl.c.reserved >= quantity
            )
            .values(reserved=products_tbl.c.reserved + quantity)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def release(self, product_id: int, quantity: int) -> bool:
        stmt = (
            update(products_tbl)
            .where(products_tbl.c.id == product_id)
            .values(reserved=self._reserved_minus(quantity))
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def try_debit(self, product_id: int, quantity: int) -> bool:
        # both SET expressions read the pre-update row
        stmt = (
            update(products_tbl)
            .where(products_tbl.c.id == product_id, products_tbl.c.stock >= quantity)
            .values(
                stock=products_tbl.c.stock - quantity,
                reserved=self._reserved_minus(quantity)
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    def _reserved_minus(self, quantity: int):
        """reserved - quantity, floored at zero"""
        return case(
            (products_tbl.c.reserved > quantity, products_tbl.c.reserved - quantity),
            else_=0
        )

    def _to_domain(self, row) -> Product:
        """DB → Domain"""
        return Product(
            id=row.id,
            name=row.name,
            description=row.description,
            price=row.price,
            stock=row.stock,
            reserved=row.reserved,
            image=row.image,
            active=row.active,
            category_id=row.category_id
        )


class SQLAlchemyCustomerRepository(CustomerRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, customer_id: int) -> Optional[Customer]:
        result = await self._session.execute(
            select(customers_tbl).where(customers_tbl.c.id == customer_id)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def get_by_email(self, email: str) -> Optional[Customer]:
        result = await self._session.execute(
            select(customers_tbl).where(customers_tbl.c.email == email)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def create(self, name: str, email: str, phone: Optional[str]) -> Customer:
        result = await self._session.execute(
            insert(customers_tbl).values(name=name, email=email, phone=phone)
        )
        return await self.get_by_id(result.inserted_primary_key[0])

    def _to_domain(self, row) -> Customer:
        return Customer(
            id=row.id,
            name=row.name,
            email=row.email,
            phone=row.phone,
            created_at=row.created_at
        )


class SQLAlchemyAddressRepository(AddressRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, address_id: int) -> Optional[Address]:
        result = await self._session.execute(
            select(addresses_tbl).where(addresses_tbl.c.id == address_id)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def create(self, values: dict) -> Address:
        result = await self._session.execute(insert(addresses_tbl).values(**values))
        return await self.get_by_id(result.inserted_primary_key[0])

    async def list_by_customer(self, customer_id: int) -> List[Address]:
        result = await self._session.execute(
            select(addresses_tbl)
            .where(addresses_tbl.c.customer_id == customer_id)
            .order_by(addresses_tbl.c.main.desc(), addresses_tbl.c.id.asc())
        )
        return [self._to_domain(row) for row in result.fetchall()]

    async def unset_main(self, customer_id: int) -> None:
        await self._session.execute(
            update(addresses_tbl)
            .where(addresses_tbl.c.customer_id == customer_id, addresses_tbl.c.main.is_(True))
            .values(main=False)
        )

    async def update(self, address_id: int, values: dict) -> None:
        await self._session.execute(
            update(addresses_tbl).where(addresses_tbl.c.id == address_id).values(**values)
        )

    async def delete(self, address_id: int) -> bool:
        result = await self._session.execute(
            delete(addresses_tbl).where(addresses_tbl.c.id == address_id)
        )
        return result.rowcount == 1

    async def is_used_by_orders(self, address_id: int) -> bool:
        return await self._session.scalar(
            select(exists().where(orders_tbl.c.address_id == address_id))
        )

    def _to_domain(self, row) -> Address:
        return Address(
            id=row.id,
            customer_id=row.customer_id,
            street=row.street,
            number=row.number,
            complement=row.complement,
            neighborhood=row.neighborhood,
            city=row.city,
            state=row.state,
            zip_code=row.zip_code,
            main=row.main
        )


class SQLAlchemyOrderRepository(OrderRepository):
    def __init__(self, session: AsyncSession):
        self._session = session
        self._addresses = SQLAlchemyAddressRepository(session)

    async def get_by_id(self, order_id: int, for_update: bool = False) -> Optional[Order]:
        query = select(orders_tbl).where(orders_tbl.c.id == order_id)
        if for_update:
            query = query.with_for_update()
        result = await self._session.execute(query)
        row = result.fetchone()
        if not row:
            return None

        order = self._to_domain(row, await self._get_items(order_id))
        order.address = await self._addresses.get_by_id(row.address_id)
        return order

    async def list_by_customer(self, customer_id: int) -> List[Order]:
        result = await self._session.execute(
            select(orders_tbl)
            .where(orders_tbl.c.customer_id == customer_id)
            .order_by(orders_tbl.c.created_at.desc(), orders_tbl.c.id.desc())
        )
        orders = []
        for row in result.fetchall():
            order = self._to_domain(row, await self._get_items(row.id))
            order.address = await self._addresses.get_by_id(row.address_id)
            orders.append(order)
        return orders

    async def create(self, customer_id: int, address_id: int, status: OrderStatus, created_at: datetime) -> int:
        stmt = insert(orders_tbl).values(
            customer_id=customer_id,
            address_id=address_id,
            status=status,
            subtotal=Decimal("0.00"),
            total=Decimal("0.00"),
            total_quantity=0,
            created_at=created_at
        )
        result = await self._session.execute(stmt)
        return result.inserted_primary_key[0]

    async def add_item(
        self, order_id: int, product_id: int, quantity: int, unit_price: Decimal, subtotal: Decimal
    ) -> OrderItem:
        stmt = insert(order_items_tbl).values(
            order_id=order_id,
            product_id=product_id,
            quantity=quantity,
            unit_price=unit_price,
            subtotal=subtotal
        )
        result = await self._session.execute(stmt)
        return OrderItem(
            id=result.inserted_primary_key[0],
            order_id=order_id,
            product_id=product_id,
            quantity=quantity,
            unit_price=unit_price,
            subtotal=subtotal
        )

    async def update_totals(self, order_id: int, subtotal: Decimal, total: Decimal, total_quantity: int) -> None:
        await self._session.execute(
            update(orders_tbl)
            .where(orders_tbl.c.id == order_id)
            .values(subtotal=subtotal, total=total, total_quantity=total_quantity)
        )

    async def update_status(self, order_id: int, status: OrderStatus) -> None:
        await self._session.execute(
            update(orders_tbl).where(orders_tbl.c.id == order_id).values(status=status)
        )

    async def get_expired_ids(self, created_before: datetime) -> List[int]:
        result = await self._session.execute(
            select(orders_tbl.c.id)
            .where(
                orders_tbl.c.status.in_(list(EXPIRABLE_STATUSES)),
                orders_tbl.c.created_at < created_before
            )
            .order_by(orders_tbl.c.created_at.asc())
        )
        return [row.id for row in result.fetchall()]

    async def _get_items(self, order_id: int) -> List[OrderItem]:
        result = await self._session.execute(
            select(order_items_tbl, products_tbl.c.name.label("product_name"))
            .outerjoin(products_tbl, products_tbl.c.id == order_items_tbl.c.product_id)
            .where(order_items_tbl.c.order_id == order_id)
            .order_by(order_items_tbl.c.id.asc())
        )
        return [
            OrderItem(
                id=row.id,
                order_id=row.order_id,
                product_id=row.product_id,
                product_name=row.product_name,
                quantity=row.quantity,
                unit_price=row.unit_price,
                subtotal=row.subtotal
            )
            for row in result.fetchall()
        ]

    def _to_domain(self, row, items: List[OrderItem]) -> Order:
        """DB → Domain"""
        return Order(
            id=row.id,
            customer_id=row.customer_id,
            address_id=row.address_id,
            status=OrderStatus(row.status),
            subtotal=row.subtotal,
            total=row.total,
            total_quantity=row.total_quantity,
            created_at=row.created_at,
            items=items
        )


class SQLAlchemyPaymentRepository(PaymentRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(
        self, order_id: int, method: PaymentMethod, amount: Decimal, status: PaymentStatus, created_at: datetime
    ) -> Payment:
        stmt = insert(payments_tbl).values(
            order_id=order_id,
            method=method,
            amount=amount,
            status=status,
            created_at=created_at
        )
        result = await self._session.execute(stmt)
        return Payment(
            id=result.inserted_primary_key[0],
            order_id=order_id,
            method=method,
            amount=amount,
            status=status,
            created_at=created_at
        )


class SQLAlchemyCartRepository(CartRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_customer(self, customer_id: int, for_update: bool = False) -> Optional[Cart]:
        query = select(carts_tbl).where(carts_tbl.c.customer_id == customer_id)
        if for_update:
            query = query.with_for_update()
        result = await self._session.execute(query)
        row = result.fetchone()
        if not row:
            return None

        return Cart(
            id=row.id,
            customer_id=row.customer_id,
            created_at=row.created_at,
            updated_at=row.updated_at,
            items=await self._get_items(row.id)
        )

    async def create(self, customer_id: int) -> Cart:
        await self._session.execute(insert(carts_tbl).values(customer_id=customer_id))
        return await self.get_by_customer(customer_id)

    async def get_item(self, item_id: int) -> Optional[CartItem]:
        result = await self._session.execute(
            self._items_query().where(cart_items_tbl.c.id == item_id)
        )
        row = result.fetchone()
        return self._item_to_domain(row) if row else None

    async def add_item(self, cart_id: int, product_id: int, quantity: int) -> None:
        await self._session.execute(
            insert(cart_items_tbl).values(cart_id=cart_id, product_id=product_id, quantity=quantity)
        )

    async def set_quantity(self, item_id: int, quantity: int) -> None:
        await self._session.execute(
            update(cart_items_tbl).where(cart_items_tbl.c.id == item_id).values(quantity=quantity)
        )

    async def remove_item(self, item_id: int) -> None:
        await self._session.execute(delete(cart_items_tbl).where(cart_items_tbl.c.id == item_id))

    async def clear(self, cart_id: int) -> None:
        await self._session.execute(delete(cart_items_tbl).where(cart_items_tbl.c.cart_id == cart_id))

    async def touch(self, cart_id: int, at: datetime) -> None:
        await self._session.execute(
            update(carts_tbl).where(carts_tbl.c.id == cart_id).values(updated_at=at)
        )

    async def remove_product(self, product_id: int) -> None:
        await self._session.execute(
            delete(cart_items_tbl).where(cart_items_tbl.c.product_id == product_id)
        )

    async def _get_items(self, cart_id: int) -> List[CartItem]:
        result = await self._session.execute(
            self._items_query()
            .where(cart_items_tbl.c.cart_id == cart_id)
            .order_by(cart_items_tbl.c.id.asc())
        )
        return [self._item_to_domain(row) for row in result.fetchall()]

    def _items_query(self):
        return select(
            cart_items_tbl,
            products_tbl.c.name.label("product_name"),
            products_tbl.c.price.label("unit_price")
        ).join(products_tbl, products_tbl.c.id == cart_items_tbl.c.product_id)

    def _item_to_domain(self, row) -> CartItem:
        return CartItem(
            id=row.id,
            cart_id=row.cart_id,
            product_id=row.product_id,
            product_name=row.product_name,
            unit_price=row.unit_price,
            quantity=row.quantity
        )
