from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from shop.domain.models import (
    Address, Cart, CartItem, Category, Customer, Order, OrderItem, OrderStatus, Payment, PaymentMethod,
    PaymentStatus, Product
)


class CategoryRepository(ABC):
    @abstractmethod
    async def get_by_id(self, category_id: int) -> Optional[Category]:
        pass

    @abstractmethod
    async def get_by_name(self, name: str) -> Optional[Category]:
        pass

    @abstractmethod
    async def create(self, name: str, description: Optional[str]) -> Category:
        pass

    @abstractmethod
    async def list(self) -> List[Category]:
        pass

    @abstractmethod
    async def update(self, category_id: int, values: dict) -> None:
        pass

    @abstractmethod
    async def delete(self, category_id: int) -> bool:
        pass

    @abstractmethod
    async def has_products(self, category_id: int) -> bool:
        pass


class ProductRepository(ABC):
    @abstractmethod
    async def get_by_id(self, product_id: int, for_update: bool = False) -> Optional[Product]:
        pass

    @abstractmethod
    async def get_active_for_update(self, product_id: int) -> Optional[Product]:
        pass

    @abstractmethod
    async def list(
        self,
        name: Optional[str] = None,
        category_id: Optional[int] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None
    ) -> List[Product]:
        pass

    @abstractmethod
    async def create(self, values: dict) -> Product:
        pass

    @abstractmethod
    async def update(self, product_id: int, values: dict) -> None:
        pass

    @abstractmethod
    async def delete(self, product_id: int) -> bool:
        pass

    @abstractmethod
    async def is_ordered(self, product_id: int) -> bool:
        pass

    @abstractmethod
    async def try_reserve(self, product_id: int, quantity: int) -> bool:
        pass

    @abstractmethod
    async def release(self, product_id: int, quantity: int) -> bool:
        pass

    @abstractmethod
    async def try_debit(self, product_id: int, quantity: int) -> bool:
        pass


class CustomerRepository(ABC):
    @abstractmethod
    async def get_by_id(self, customer_id: int) -> Optional[Customer]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[Customer]:
        pass

    @abstractmethod
    async def create(self, name: str, email: str, phone: Optional[str]) -> Customer:
        pass


class AddressRepository(ABC):
    @abstractmethod
    async def get_by_id(self, address_id: int) -> Optional[Address]:
        pass

    @abstractmethod
    async def create(self, values: dict) -> Address:
        pass

    @abstractmethod
    async def list_by_customer(self, customer_id: int) -> List[Address]:
        pass

    @abstractmethod
    async def unset_main(self, customer_id: int) -> None:
        pass

    @abstractmethod
    async def update(self, address_id: int, values: dict) -> None:
        pass

    @abstractmethod
    async def delete(self, address_id: int) -> bool:
        pass

    @abstractmethod
    async def is_used_by_orders(self, address_id: int) -> bool:
        pass


class OrderRepository(ABC):
    @abstractmethod
    async def get_by_id(self, order_id: int, for_update: bool = False) -> Optional[Order]:
        pass

    @abstractmethod
    async def list_by_customer(self, customer_id: int) -> List[Order]:
        pass

    @abstractmethod
    async def create(self, customer_id: int, address_id: int, status: OrderStatus, created_at: datetime) -> int:
        pass

    @abstractmethod
    async def add_item(
        self, order_id: int, product_id: int, quantity: int, unit_price: Decimal, subtotal: Decimal
    ) -> OrderItem:
        pass

    @abstractmethod
    async def update_totals(self, order_id: int, subtotal: Decimal, total: Decimal, total_quantity: int) -> None:
        pass

    @abstractmethod
    async def update_status(self, order_id: int, status: OrderStatus) -> None:
        pass

    @abstractmethod
    async def get_expired_ids(self, created_before: datetime) -> List[int]:
        pass


class PaymentRepository(ABC):
    @abstractmethod
    async def create(
        self, order_id: int, method: PaymentMethod, amount: Decimal, status: PaymentStatus, created_at: datetime
    ) -> Payment:
        pass


class CartRepository(ABC):
    @abstractmethod
    async def get_by_customer(self, customer_id: int, for_update: bool = False) -> Optional[Cart]:
        pass

    @abstractmethod
    async def create(self, customer_id: int) -> Cart:
        pass

    @abstractmethod
    async def get_item(self, item_id: int) -> Optional[CartItem]:
        pass

    @abstractmethod
    async def add_item(self, cart_id: int, product_id: int, quantity: int) -> None:
        pass

    @abstractmethod
    async def set_quantity(self, item_id: int, quantity: int) -> None:
        pass

    @abstractmethod
    async def remove_item(self, item_id: int) -> None:
        pass

    @abstractmethod
    async def clear(self, cart_id: int) -> None:
        pass

    @abstractmethod
    async def touch(self, cart_id: int, at: datetime) -> None:
        pass

    @abstractmethod
    async def remove_product(self, product_id: int) -> None:
        pass


class UnitOfWork(ABC):
    @property
    @abstractmethod
    def categories(self) -> CategoryRepository:
        pass

    @property
    @abstractmethod
    def products(self) -> ProductRepository:
        pass

    @property
    @abstractmethod
    def customers(self) -> CustomerRepository:
        pass

    @property
    @abstractmethod
    def addresses(self) -> AddressRepository:
        pass

    @property
    @abstractmethod
    def orders(self) -> OrderRepository:
        pass

    @property
    @abstractmethod
    def payments(self) -> PaymentRepository:
        pass

    @property
    @abstractmethod
    def carts(self) -> CartRepository:
        pass

    @abstractmethod
    async def __call__(self):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
