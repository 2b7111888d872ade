import logging
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from shop.domain.models import Category, Product, to_money
from shop.domain.exceptions import (
    CategoryNotFoundError, DuplicateCategoryError, InvalidStockError, ProductNotFoundError, ResourceInUseError
)

logger = logging.getLogger(__name__)


class CreateCategoryDTO(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None


class UpdateCategoryDTO(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None


class CreateProductDTO(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    description: Optional[str] = None
    price: Decimal = Field(gt=0)
    stock: int = Field(default=0, ge=0)
    image: str = "placeholder.png"
    active: bool = True
    category_id: int


class UpdateProductDTO(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, gt=0)
    stock: Optional[int] = Field(default=None, ge=0)
    image: Optional[str] = None
    active: Optional[bool] = None
    category_id: Optional[int] = None


class ProductFilterDTO(BaseModel):
    name: Optional[str] = None
    category_id: Optional[int] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None


class CreateCategoryUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, dto: CreateCategoryDTO) -> Category:
        async with self._uow() as uow:
            if await uow.categories.get_by_name(dto.name):
                raise DuplicateCategoryError(f"Category '{dto.name}' already exists")
            category = await uow.categories.create(dto.name, dto.description)
            await uow.commit()
        logger.info(f"Category created: {category.id} ({category.name})")
        return category


class GetCategoryUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, category_id: int) -> Category:
        async with self._uow() as uow:
            category = await uow.categories.get_by_id(category_id)
            if not category:
                raise CategoryNotFoundError(f"Category {category_id} not found")
            return category


class ListCategoriesUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self) -> List[Category]:
        async with self._uow() as uow:
            return await uow.categories.list()


class UpdateCategoryUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, category_id: int, dto: UpdateCategoryDTO) -> Category:
        values = dto.model_dump(exclude_unset=True)
        if values.get("name") is None:
            values.pop("name", None)

        async with self._uow() as uow:
            if not await uow.categories.get_by_id(category_id):
                raise CategoryNotFoundError(f"Category {category_id} not found")

            if "name" in values:
                other = await uow.categories.get_by_name(values["name"])
                if other and other.id != category_id:
                    raise DuplicateCategoryError(f"Category '{values['name']}' already exists")

            if values:
                await uow.categories.update(category_id, values)
                await uow.commit()
                logger.info(f"Category {category_id} updated: {sorted(values)}")

            return await uow.categories.get_by_id(category_id)


class DeleteCategoryUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, category_id: int) -> None:
        async with self._uow() as uow:
            if not await uow.categories.get_by_id(category_id):
                raise CategoryNotFoundError(f"Category {category_id} not found")
            if await uow.categories.has_products(category_id):
                raise ResourceInUseError(f"Category {category_id} still has products")

            await uow.categories.delete(category_id)
            await uow.commit()
        logger.info(f"Category {category_id} deleted")


class CreateProductUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, dto: CreateProductDTO) -> Product:
        async with self._uow() as uow:
            if not await uow.categories.get_by_id(dto.category_id):
                raise CategoryNotFoundError(f"Category {dto.category_id} not found")

            values = dto.model_dump()
            values["price"] = to_money(dto.price)
            values["reserved"] = 0
            product = await uow.products.create(values)
            await uow.commit()
        logger.info(f"Product created: {product.id} ({product.name}), stock {product.stock}")
        return product


class GetProductUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, product_id: int) -> Product:
        async with self._uow() as uow:
            product = await uow.products.get_by_id(product_id)
            if not product:
                raise ProductNotFoundError(f"Product {product_id} not found")
            return product


class ListProductsUseCase:
    """Active products, optionally filtered by name, category and price range"""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, filters: ProductFilterDTO) -> List[Product]:
        async with self._uow() as uow:
            return await uow.products.list(
                name=filters.name,
                category_id=filters.category_id,
                min_price=filters.min_price,
                max_price=filters.max_price
            )


class UpdateProductUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, product_id: int, dto: UpdateProductDTO) -> Product:
        values = {
            key: value
            for key, value in dto.model_dump(exclude_unset=True).items()
            if value is not None or key == "description"
        }

        async with self._uow() as uow:
            product = await uow.products.get_by_id(product_id, for_update=True)
            if not product:
                raise ProductNotFoundError(f"Product {product_id} not found")

            if "category_id" in values and not await uow.categories.get_by_id(values["category_id"]):
                raise CategoryNotFoundError(f"Category {values['category_id']} not found")

            # Units held by open orders cannot disappear from stock
            if "stock" in values and values["stock"] < product.reserved:
                raise InvalidStockError(
                    f"Stock cannot be lower than reserved quantity ({product.reserved})"
                )
            if "price" in values:
                values["price"] = to_money(values["price"])

            if values:
                await uow.products.update(product_id, values)
                await uow.commit()
                logger.info(f"Product {product_id} updated: {sorted(values)}")

            return await uow.products.get_by_id(product_id)


class DeleteProductUseCase:
    """Products that were ever ordered are kept for the order history; deactivate them instead."""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, product_id: int) -> None:
        async with self._uow() as uow:
            product = await uow.products.get_by_id(product_id, for_update=True)
            if not product:
                raise ProductNotFoundError(f"Product {product_id} not found")
            if await uow.products.is_ordered(product_id):
                raise ResourceInUseError(
                    f"Product {product_id} appears in orders; set it inactive instead"
                )

            await uow.carts.remove_product(product_id)
            await uow.products.delete(product_id)
            await uow.commit()
        logger.info(f"Product {product_id} deleted")
