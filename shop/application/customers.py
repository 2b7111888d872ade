import logging
from typing import List, Optional
from pydantic import BaseModel, Field

from shop.domain.models import Address, Customer
from shop.domain.exceptions import AddressNotFoundError, CustomerNotFoundError, DuplicateEmailError, ResourceInUseError

logger = logging.getLogger(__name__)


class CreateCustomerDTO(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: Optional[str] = Field(default=None, max_length=20)


class CreateAddressDTO(BaseModel):
    customer_id: int
    street: str = Field(min_length=1, max_length=200)
    number: str = Field(min_length=1, max_length=20)
    complement: Optional[str] = None
    neighborhood: str = Field(min_length=1, max_length=100)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=2, max_length=2)
    zip_code: str = Field(pattern=r"^\d{5}-?\d{3}$")
    main: bool = False


class UpdateAddressDTO(BaseModel):
    street: Optional[str] = Field(default=None, min_length=1, max_length=200)
    number: Optional[str] = Field(default=None, min_length=1, max_length=20)
    complement: Optional[str] = None
    neighborhood: Optional[str] = Field(default=None, min_length=1, max_length=100)
    city: Optional[str] = Field(default=None, min_length=1, max_length=100)
    state: Optional[str] = Field(default=None, min_length=2, max_length=2)
    zip_code: Optional[str] = Field(default=None, pattern=r"^\d{5}-?\d{3}$")
    main: Optional[bool] = None


class CreateCustomerUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, dto: CreateCustomerDTO) -> Customer:
        email = dto.email.lower()
        async with self._uow() as uow:
            if await uow.customers.get_by_email(email):
                logger.warning(f"Registration attempt with an e-mail already in use: {email}")
                raise DuplicateEmailError("This e-mail is already in use")

            customer = await uow.customers.create(dto.name, email, dto.phone)
            await uow.commit()
        logger.info(f"Customer created: {customer.id}")
        return customer


class GetCustomerUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, customer_id: int) -> Customer:
        async with self._uow() as uow:
            customer = await uow.customers.get_by_id(customer_id)
            if not customer:
                raise CustomerNotFoundError(f"Customer {customer_id} not found")
            return customer


class CreateAddressUseCase:
    """A customer has at most one main address: a new main one demotes the previous."""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, dto: CreateAddressDTO) -> Address:
        async with self._uow() as uow:
            if not await uow.customers.get_by_id(dto.customer_id):
                raise CustomerNotFoundError(f"Customer {dto.customer_id} not found")

            if dto.main:
                await uow.addresses.unset_main(dto.customer_id)

            values = dto.model_dump()
            values["state"] = dto.state.upper()
            address = await uow.addresses.create(values)
            await uow.commit()
        logger.info(f"Address {address.id} created for customer {address.customer_id}")
        return address


class ListCustomerAddressesUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, customer_id: int) -> List[Address]:
        async with self._uow() as uow:
            if not await uow.customers.get_by_id(customer_id):
                raise CustomerNotFoundError(f"Customer {customer_id} not found")
            return await uow.addresses.list_by_customer(customer_id)


class GetAddressUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, address_id: int) -> Address:
        async with self._uow() as uow:
            address = await uow.addresses.get_by_id(address_id)
            if not address:
                raise AddressNotFoundError(f"Address {address_id} not found")
            return address


class UpdateAddressUseCase:
    """Setting `main` re-applies the single main address rule"""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, address_id: int, dto: UpdateAddressDTO) -> Address:
        values = {
            key: value
            for key, value in dto.model_dump(exclude_unset=True).items()
            if value is not None or key == "complement"
        }
        if "state" in values:
            values["state"] = values["state"].upper()

        async with self._uow() as uow:
            address = await uow.addresses.get_by_id(address_id)
            if not address:
                raise AddressNotFoundError(f"Address {address_id} not found")

            if values.get("main") and not address.main:
                await uow.addresses.unset_main(address.customer_id)

            if values:
                await uow.addresses.update(address_id, values)
                await uow.commit()
                logger.info(f"Address {address_id} updated: {sorted(values)}")

            return await uow.addresses.get_by_id(address_id)


class DeleteAddressUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, address_id: int) -> None:
        async with self._uow() as uow:
            if not await uow.addresses.get_by_id(address_id):
                raise AddressNotFoundError(f"Address {address_id} not found")
            if await uow.addresses.is_used_by_orders(address_id):
                raise ResourceInUseError(f"Address {address_id} is the delivery address of existing orders")

            await uow.addresses.delete(address_id)
            await uow.commit()
        logger.info(f"Address {address_id} deleted")
