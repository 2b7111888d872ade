from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shop.domain.models import (
    Address, Cart, CartItem, Category, Customer, Order, OrderItem, OrderStatus, Payment, PaymentMethod,
    PaymentStatus, Product
)


class ApiModel(BaseModel):
    """JSON fields are camelCase: cliente_id <-> clienteId"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    detail: str


# Orders

class OrderItemRequest(ApiModel):
    produto_id: int
    quantidade: int = Field(gt=0)


class CreateOrderRequest(ApiModel):
    cliente_id: int
    endereco_id: int
    itens: List[OrderItemRequest] = Field(min_length=1)


class UpdateOrderStatusRequest(ApiModel):
    status: str


class AddressResponse(ApiModel):
    id: int
    cliente_id: int
    logradouro: str
    numero: str
    complemento: Optional[str] = None
    bairro: str
    cidade: str
    estado: str
    cep: str
    principal: bool

    @classmethod
    def from_domain(cls, address: Address):
        return cls(
            id=address.id,
            cliente_id=address.customer_id,
            logradouro=address.street,
            numero=address.number,
            complemento=address.complement,
            bairro=address.neighborhood,
            cidade=address.city,
            estado=address.state,
            cep=address.zip_code,
            principal=address.main
        )


class OrderItemResponse(ApiModel):
    id: int
    produto_id: int
    nome_produto: Optional[str] = None
    quantidade: int
    preco_venda: Decimal
    subtotal: Decimal

    @classmethod
    def from_domain(cls, item: OrderItem):
        return cls(
            id=item.id,
            produto_id=item.product_id,
            nome_produto=item.product_name,
            quantidade=item.quantity,
            preco_venda=item.unit_price,
            subtotal=item.subtotal
        )


class OrderResponse(ApiModel):
    id: int
    cliente_id: int
    endereco_id: int
    status: OrderStatus
    subtotal: Decimal
    total: Decimal
    quantidade_total: int
    data_criacao: datetime
    itens: List[OrderItemResponse]
    endereco: Optional[AddressResponse] = None

    @classmethod
    def from_domain(cls, order: Order):
        return cls(
            id=order.id,
            cliente_id=order.customer_id,
            endereco_id=order.address_id,
            status=order.status,
            subtotal=order.subtotal,
            total=order.total,
            quantidade_total=order.total_quantity,
            data_criacao=order.created_at,
            itens=[OrderItemResponse.from_domain(item) for item in order.items],
            endereco=AddressResponse.from_domain(order.address) if order.address else None
        )


# Payments

class ProcessPaymentRequest(ApiModel):
    pedido_id: int
    metodo: PaymentMethod
    # informational only, never validated against the order total
    valor: Optional[Decimal] = None
    novo_status: PaymentStatus


class PaymentResponse(ApiModel):
    id: int
    pedido_id: int
    metodo: PaymentMethod
    valor: Decimal
    status: PaymentStatus
    data_criacao: datetime

    @classmethod
    def from_domain(cls, payment: Payment):
        return cls(
            id=payment.id,
            pedido_id=payment.order_id,
            metodo=payment.method,
            valor=payment.amount,
            status=payment.status,
            data_criacao=payment.created_at
        )


# Catalog

class CreateCategoryRequest(ApiModel):
    nome: str
    descricao: Optional[str] = None


class UpdateCategoryRequest(ApiModel):
    nome: Optional[str] = None
    descricao: Optional[str] = None


class CategoryResponse(ApiModel):
    id: int
    nome: str
    descricao: Optional[str] = None

    @classmethod
    def from_domain(cls, category: Category):
        return cls(id=category.id, nome=category.name, descricao=category.description)


class CreateProductRequest(ApiModel):
    nome: str
    descricao: Optional[str] = None
    preco: Decimal
    estoque: int = 0
    imagem: str = "placeholder.png"
    status_ativo: bool = True
    categoria_id: int


class UpdateProductRequest(ApiModel):
    nome: Optional[str] = None
    descricao: Optional[str] = None
    preco: Optional[Decimal] = None
    estoque: Optional[int] = None
    imagem: Optional[str] = None
    status_ativo: Optional[bool] = None
    categoria_id: Optional[int] = None


class ProductResponse(ApiModel):
    id: int
    nome: str
    descricao: Optional[str] = None
    preco: Decimal
    estoque: int
    reserved: int
    imagem: str
    status_ativo: bool
    categoria_id: int

    @classmethod
    def from_domain(cls, product: Product):
        return cls(
            id=product.id,
            nome=product.name,
            descricao=product.description,
            preco=product.price,
            estoque=product.stock,
            reserved=product.reserved,
            imagem=product.image,
            status_ativo=product.active,
            categoria_id=product.category_id
        )


# Customers

class CreateCustomerRequest(ApiModel):
    nome: str
    email: str
    telefone: Optional[str] = None


class CustomerResponse(ApiModel):
    id: int
    nome: str
    email: str
    telefone: Optional[str] = None
    data_cadastro: datetime

    @classmethod
    def from_domain(cls, customer: Customer):
        return cls(
            id=customer.id,
            nome=customer.name,
            email=customer.email,
            telefone=customer.phone,
            data_cadastro=customer.created_at
        )


class CreateAddressRequest(ApiModel):
    cliente_id: int
    logradouro: str
    numero: str
    complemento: Optional[str] = None
    bairro: str
    cidade: str
    estado: str
    cep: str
    principal: bool = False


class UpdateAddressRequest(ApiModel):
    logradouro: Optional[str] = None
    numero: Optional[str] = None
    complemento: Optional[str] = None
    bairro: Optional[str] = None
    cidade: Optional[str] = None
    estado: Optional[str] = None
    cep: Optional[str] = None
    principal: Optional[bool] = None


# Cart

class AddCartItemRequest(ApiModel):
    produto_id: int
    quantidade: int = Field(ge=1)


class UpdateCartItemRequest(ApiModel):
    quantidade: int = Field(ge=1)


class CartItemResponse(ApiModel):
    id: int
    produto_id: int
    nome_produto: Optional[str] = None
    preco: Decimal
    quantidade: int
    subtotal: Decimal

    @classmethod
    def from_domain(cls, item: CartItem):
        return cls(
            id=item.id,
            produto_id=item.product_id,
            nome_produto=item.product_name,
            preco=item.unit_price,
            quantidade=item.quantity,
            subtotal=item.subtotal
        )


class CartResponse(ApiModel):
    id: int
    cliente_id: int
    itens: List[CartItemResponse]
    total: Decimal
    atualizado_em: datetime

    @classmethod
    def from_domain(cls, cart: Cart):
        return cls(
            id=cart.id,
            cliente_id=cart.customer_id,
            itens=[CartItemResponse.from_domain(item) for item in cart.items],
            total=cart.total,
            atualizado_em=cart.updated_at
        )
