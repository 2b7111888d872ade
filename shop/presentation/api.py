import logging
from decimal import Decimal
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shop.database import get_session_factory
from shop.presentation.schemas import (
    AddressResponse, CategoryResponse, CreateAddressRequest, CreateCategoryRequest, CreateCustomerRequest,
    CreateOrderRequest, CreateProductRequest, CustomerResponse, ErrorResponse, OrderResponse, PaymentResponse,
    ProcessPaymentRequest, ProductResponse, UpdateAddressRequest, UpdateCategoryRequest, UpdateOrderStatusRequest,
    UpdateProductRequest, AddCartItemRequest, CartResponse, UpdateCartItemRequest
)
from shop.application.create_order import CreateOrderUseCase, CreateOrderDTO, OrderItemDTO
from shop.application.get_order import GetOrderUseCase, ListCustomerOrdersUseCase
from shop.application.update_order_status import UpdateOrderStatusUseCase
from shop.application.process_payment import ProcessPaymentUseCase, ProcessPaymentDTO
from shop.application.catalog import (
    CreateCategoryDTO, CreateCategoryUseCase, CreateProductDTO, CreateProductUseCase, DeleteCategoryUseCase,
    DeleteProductUseCase, GetCategoryUseCase, GetProductUseCase, ListCategoriesUseCase, ListProductsUseCase,
    ProductFilterDTO, UpdateCategoryDTO, UpdateCategoryUseCase, UpdateProductDTO, UpdateProductUseCase
)
from shop.application.customers import (
    CreateAddressDTO, CreateAddressUseCase, CreateCustomerDTO, CreateCustomerUseCase, DeleteAddressUseCase,
    GetAddressUseCase, GetCustomerUseCase, ListCustomerAddressesUseCase, UpdateAddressDTO, UpdateAddressUseCase
)
from shop.application.cart import (
    AddCartItemDTO, AddCartItemUseCase, ClearCartUseCase, GetCartUseCase, RemoveCartItemUseCase, UpdateCartItemDTO,
    UpdateCartItemUseCase
)
from shop.domain.models import OrderStatus
from shop.domain.exceptions import DomainException, NotFoundError, TransactionFailureError
from shop.infrastructure.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_FOUND = {404: {"model": ErrorResponse}}
BAD_REQUEST = {400: {"model": ErrorResponse}}


def to_http_error(e: DomainException) -> HTTPException:
    """Domain error → HTTP status"""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, TransactionFailureError):
        logger.error(f"Transaction failure: {e}")
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Transaction failed")
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def get_unit_of_work(session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory)):
    return UnitOfWork(session_factory)


# Use case factories
def get_create_order_use_case(uow: UnitOfWork = Depends(get_unit_of_work)):
    return CreateOrderUseCase(uow)


def get_get_order_use_case(uow: UnitOfWork = Depends(get_unit_of_work)):
    return GetOrderUseCase(uow)


def get_list_customer_orders_use_case(uow: UnitOfWork = Depends(get_unit_of_work)):
    return ListCustomerOrdersUseCase(uow)


def get_update_order_status_use_case(uow: UnitOfWork = Depends(get_unit_of_work)):
    return UpdateOrderStatusUseCase(uow)


def get_process_payment_use_case(uow: UnitOfWork = Depends(get_unit_of_work)):
    return ProcessPaymentUseCase(uow)


# Orders

@router.post(
    "/pedido",
    response_model=OrderResponse,
    responses={**BAD_REQUEST, **NOT_FOUND},
    status_code=status.HTTP_201_CREATED
)
async def create_order(
    request: CreateOrderRequest,
    use_case: CreateOrderUseCase = Depends(get_create_order_use_case)
):
    """Create an order and reserve stock for its items"""
    try:
        dto = CreateOrderDTO(
            customer_id=request.cliente_id,
            address_id=request.endereco_id,
            items=[OrderItemDTO(product_id=i.produto_id, quantity=i.quantidade) for i in request.itens]
        )
        order = await use_case(dto)
        return OrderResponse.from_domain(order)
    except DomainException as e:
        raise to_http_error(e) from e


@router.get(
    "/pedido/cliente/{cliente_id}",
    response_model=List[OrderResponse]
)
async def list_customer_orders(
    cliente_id: int,
    use_case: ListCustomerOrdersUseCase = Depends(get_list_customer_orders_use_case)
):
    """Orders of a customer, newest first"""
    try:
        orders = await use_case(cliente_id)
        return [OrderResponse.from_domain(order) for order in orders]
    except DomainException as e:
        raise to_http_error(e) from e


@router.get(
    "/pedido/{pedido_id}",
    response_model=OrderResponse,
    responses=NOT_FOUND
)
async def get_order(
    pedido_id: int,
    use_case: GetOrderUseCase = Depends(get_get_order_use_case)
):
    """Order with items, products and delivery address"""
    try:
        order = await use_case(pedido_id)
        return OrderResponse.from_domain(order)
    except DomainException as e:
        raise to_http_error(e) from e


@router.patch(
    "/pedido/{pedido_id}/status",
    response_model=OrderResponse,
    responses={**BAD_REQUEST, **NOT_FOUND}
)
async def update_order_status(
    pedido_id: int,
    request: UpdateOrderStatusRequest,
    use_case: UpdateOrderStatusUseCase = Depends(get_update_order_status_use_case)
):
    """Administrative status change; terminal orders are immutable"""
    valid = [s.value for s in OrderStatus]
    if request.status not in valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status. Valid values: {', '.join(valid)}"
        )
    try:
        order = await use_case(pedido_id, OrderStatus(request.status))
        return OrderResponse.from_domain(order)
    except DomainException as e:
        raise to_http_error(e) from e


# Payments

@router.post(
    "/pagamento/processar",
    response_model=PaymentResponse,
    responses={**BAD_REQUEST, **NOT_FOUND},
    status_code=status.HTTP_200_OK
)
async def process_payment(
    request: ProcessPaymentRequest,
    use_case: ProcessPaymentUseCase = Depends(get_process_payment_use_case)
):
    """Pay or cancel an order awaiting payment"""
    try:
        dto = ProcessPaymentDTO(
            order_id=request.pedido_id,
            method=request.metodo,
            status=request.novo_status,
            declared_amount=request.valor
        )
        payment = await use_case(dto)
        return PaymentResponse.from_domain(payment)
    except DomainException as e:
        raise to_http_error(e) from e


# Categories

@router.post(
    "/categoria",
    response_model=CategoryResponse,
    responses=BAD_REQUEST,
    status_code=status.HTTP_201_CREATED
)
async def create_category(request: CreateCategoryRequest, uow: UnitOfWork = Depends(get_unit_of_work)):
    try:
        category = await CreateCategoryUseCase(uow)(
            CreateCategoryDTO(name=request.nome, description=request.descricao)
        )
        return CategoryResponse.from_domain(category)
    except DomainException as e:
        raise to_http_error(e) from e


@router.get("/categoria", response_model=List[CategoryResponse])
async def list_categories(uow: UnitOfWork = Depends(get_unit_of_work)):
    categories = await ListCategoriesUseCase(uow)()
    return [CategoryResponse.from_domain(c) for c in categories]


@router.get("/categoria/{categoria_id}", response_model=CategoryResponse, responses=NOT_FOUND)
async def get_category(categoria_id: int, uow: UnitOfWork = Depends(get_unit_of_work)):
    try:
        return CategoryResponse.from_domain(await GetCategoryUseCase(uow)(categoria_id))
    except DomainException as e:
        raise to_http_error(e) from e


@router.patch(
    "/categoria/{categoria_id}",
    response_model=CategoryResponse,
    responses={**BAD_REQUEST, **NOT_FOUND}
)
async def update_category(
    categoria_id: int,
    request: UpdateCategoryRequest,
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    fields = {"nome": "name", "descricao": "description"}
    try:
        dto = UpdateCategoryDTO(**{fields[key]: value for key, value in request.model_dump(exclude_unset=True).items()})
        return CategoryResponse.from_domain(await UpdateCategoryUseCase(uow)(categoria_id, dto))
    except DomainException as e:
        raise to_http_error(e) from e


@router.delete(
    "/categoria/{categoria_id}",
    responses={**BAD_REQUEST, **NOT_FOUND},
    status_code=status.HTTP_204_NO_CONTENT
)
async def delete_category(categoria_id: int, uow: UnitOfWork = Depends(get_unit_of_work)):
    """Only categories without products can be deleted"""
    try:
        await DeleteCategoryUseCase(uow)(categoria_id)
    except DomainException as e:
        raise to_http_error(e) from e


# Products

@router.post(
    "/produto",
    response_model=ProductResponse,
    responses={**BAD_REQUEST, **NOT_FOUND},
    status_code=status.HTTP_201_CREATED
)
async def create_product(request: CreateProductRequest, uow: UnitOfWork = Depends(get_unit_of_work)):
    try:
        dto = CreateProductDTO(
            name=request.nome,
            description=request.descricao,
            price=request.preco,
            stock=request.estoque,
            image=request.imagem,
            active=request.status_ativo,
            category_id=request.categoria_id
        )
        return ProductResponse.from_domain(await CreateProductUseCase(uow)(dto))
    except DomainException as e:
        raise to_http_error(e) from e


@router.get("/produto", response_model=List[ProductResponse])
async def list_products(
    nome: Optional[str] = None,
    categoria_id: Optional[int] = Query(default=None, alias="categoriaId"),
    min_preco: Optional[Decimal] = Query(default=None, alias="minPreco"),
    max_preco: Optional[Decimal] = Query(default=None, alias="maxPreco"),
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    """Active products; filters by name, category and price range"""
    filters = ProductFilterDTO(name=nome, category_id=categoria_id, min_price=min_preco, max_price=max_preco)
    products = await ListProductsUseCase(uow)(filters)
    return [ProductResponse.from_domain(p) for p in products]


@router.get("/produto/{produto_id}", response_model=ProductResponse, responses=NOT_FOUND)
async def get_product(produto_id: int, uow: UnitOfWork = Depends(get_unit_of_work)):
    try:
        return ProductResponse.from_domain(await GetProductUseCase(uow)(produto_id))
    except DomainException as e:
        raise to_http_error(e) from e


@router.patch(
    "/produto/{produto_id}",
    response_model=ProductResponse,
    responses={**BAD_REQUEST, **NOT_FOUND}
)
async def update_product(
    produto_id: int,
    request: UpdateProductRequest,
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    fields = {
        "nome": "name",
        "descricao": "description",
        "preco": "price",
        "estoque": "stock",
        "imagem": "image",
        "status_ativo": "active",
        "categoria_id": "category_id"
    }
    try:
        dto = UpdateProductDTO(**{fields[key]: value for key, value in request.model_dump(exclude_unset=True).items()})
        return ProductResponse.from_domain(await UpdateProductUseCase(uow)(produto_id, dto))
    except DomainException as e:
        raise to_http_error(e) from e


@router.delete(
    "/produto/{produto_id}",
    responses={**BAD_REQUEST, **NOT_FOUND},
    status_code=status.HTTP_204_NO_CONTENT
)
async def delete_product(produto_id: int, uow: UnitOfWork = Depends(get_unit_of_work)):
    """Products that appear in orders are deactivated, not deleted"""
    try:
        await DeleteProductUseCase(uow)(produto_id)
    except DomainException as e:
        raise to_http_error(e) from e


# Customers and addresses

@router.post(
    "/cliente",
    response_model=CustomerResponse,
    responses=BAD_REQUEST,
    status_code=status.HTTP_201_CREATED
)
async def create_customer(request: CreateCustomerRequest, uow: UnitOfWork = Depends(get_unit_of_work)):
    try:
        dto = CreateCustomerDTO(name=request.nome, email=request.email, phone=request.telefone)
        return CustomerResponse.from_domain(await CreateCustomerUseCase(uow)(dto))
    except DomainException as e:
        raise to_http_error(e) from e


@router.get("/cliente/{cliente_id}", response_model=CustomerResponse, responses=NOT_FOUND)
async def get_customer(cliente_id: int, uow: UnitOfWork = Depends(get_unit_of_work)):
    try:
        return CustomerResponse.from_domain(await GetCustomerUseCase(uow)(cliente_id))
    except DomainException as e:
        raise to_http_error(e) from e


@router.post(
    "/endereco",
    response_model=AddressResponse,
    responses=NOT_FOUND,
    status_code=status.HTTP_201_CREATED
)
async def create_address(request: CreateAddressRequest, uow: UnitOfWork = Depends(get_unit_of_work)):
    try:
        dto = CreateAddressDTO(
            customer_id=request.cliente_id,
            street=request.logradouro,
            number=request.numero,
            complement=request.complemento,
            neighborhood=request.bairro,
            city=request.cidade,
            state=request.estado,
            zip_code=request.cep,
            main=request.principal
        )
        return AddressResponse.from_domain(await CreateAddressUseCase(uow)(dto))
    except DomainException as e:
        raise to_http_error(e) from e


@router.get("/endereco/cliente/{cliente_id}", response_model=List[AddressResponse], responses=NOT_FOUND)
async def list_customer_addresses(cliente_id: int, uow: UnitOfWork = Depends(get_unit_of_work)):
    """Main address first"""
    try:
        addresses = await ListCustomerAddressesUseCase(uow)(cliente_id)
        return [AddressResponse.from_domain(a) for a in addresses]
    except DomainException as e:
        raise to_http_error(e) from e


@router.get("/endereco/{endereco_id}", response_model=AddressResponse, responses=NOT_FOUND)
async def get_address(endereco_id: int, uow: UnitOfWork = Depends(get_unit_of_work)):
    try:
        return AddressResponse.from_domain(await GetAddressUseCase(uow)(endereco_id))
    except DomainException as e:
        raise to_http_error(e) from e


@router.patch("/endereco/{endereco_id}", response_model=AddressResponse, responses=NOT_FOUND)
async def update_address(
    endereco_id: int,
    request: UpdateAddressRequest,
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    fields = {
        "logradouro": "street",
        "numero": "number",
        "complemento": "complement",
        "bairro": "neighborhood",
        "cidade": "city",
        "estado": "state",
        "cep": "zip_code",
        "principal": "main"
    }
    try:
        dto = UpdateAddressDTO(**{fields[key]: value for key, value in request.model_dump(exclude_unset=True).items()})
        return AddressResponse.from_domain(await UpdateAddressUseCase(uow)(endereco_id, dto))
    except DomainException as e:
        raise to_http_error(e) from e


@router.delete(
    "/endereco/{endereco_id}",
    responses={**BAD_REQUEST, **NOT_FOUND},
    status_code=status.HTTP_204_NO_CONTENT
)
async def delete_address(endereco_id: int, uow: UnitOfWork = Depends(get_unit_of_work)):
    try:
        await DeleteAddressUseCase(uow)(endereco_id)
    except DomainException as e:
        raise to_http_error(e) from e


# Cart

@router.get("/carrinho/cliente/{cliente_id}", response_model=CartResponse, responses=NOT_FOUND)
async def get_cart(cliente_id: int, uow: UnitOfWork = Depends(get_unit_of_work)):
    """Customer's cart, created empty on first access"""
    try:
        return CartResponse.from_domain(await GetCartUseCase(uow)(cliente_id))
    except DomainException as e:
        raise to_http_error(e) from e


@router.post(
    "/carrinho/cliente/{cliente_id}/item",
    response_model=CartResponse,
    responses={**BAD_REQUEST, **NOT_FOUND},
    status_code=status.HTTP_201_CREATED
)
async def add_cart_item(
    cliente_id: int,
    request: AddCartItemRequest,
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    """Add a product; quantities of a product already in the cart are merged"""
    try:
        dto = AddCartItemDTO(product_id=request.produto_id, quantity=request.quantidade)
        return CartResponse.from_domain(await AddCartItemUseCase(uow)(cliente_id, dto))
    except DomainException as e:
        raise to_http_error(e) from e


@router.patch(
    "/carrinho/cliente/{cliente_id}/item/{item_id}",
    response_model=CartResponse,
    responses={**BAD_REQUEST, **NOT_FOUND}
)
async def update_cart_item(
    cliente_id: int,
    item_id: int,
    request: UpdateCartItemRequest,
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    try:
        dto = UpdateCartItemDTO(quantity=request.quantidade)
        return CartResponse.from_domain(await UpdateCartItemUseCase(uow)(cliente_id, item_id, dto))
    except DomainException as e:
        raise to_http_error(e) from e


@router.delete("/carrinho/cliente/{cliente_id}/item/{item_id}", response_model=CartResponse, responses=NOT_FOUND)
async def remove_cart_item(cliente_id: int, item_id: int, uow: UnitOfWork = Depends(get_unit_of_work)):
    try:
        return CartResponse.from_domain(await RemoveCartItemUseCase(uow)(cliente_id, item_id))
    except DomainException as e:
        raise to_http_error(e) from e


@router.delete("/carrinho/cliente/{cliente_id}", response_model=CartResponse, responses=NOT_FOUND)
async def clear_cart(cliente_id: int, uow: UnitOfWork = Depends(get_unit_of_work)):
    try:
        return CartResponse.from_domain(await ClearCartUseCase(uow)(cliente_id))
    except DomainException as e:
        raise to_http_error(e) from e
