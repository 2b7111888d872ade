"""Tests for the order and payment HTTP endpoints."""

from decimal import Decimal

import pytest


@pytest.fixture
async def product(make_product):
    return await make_product(stock=10, price="25.00", name="Fone de ouvido")


async def create_order(client, customer, address, *items):
    return await client.post(
        "/pedido",
        json={
            "clienteId": customer.id,
            "enderecoId": address.id,
            "itens": [{"produtoId": product_id, "quantidade": quantity} for product_id, quantity in items],
        },
    )


async def pay(client, order_id, status, method="PIX", amount="100.00"):
    return await client.post(
        "/pagamento/processar",
        json={"pedidoId": order_id, "metodo": method, "valor": amount, "novoStatus": status},
    )


class TestHealthCheck:
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestCreateOrder:
    async def test_create_order(self, client, customer, address, product):
        response = await create_order(client, customer, address, (product.id, 4))

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "AGUARDANDO_PAGAMENTO"
        assert data["clienteId"] == customer.id
        assert data["enderecoId"] == address.id
        assert Decimal(data["total"]) == Decimal("100.00")
        assert Decimal(data["subtotal"]) == Decimal("100.00")
        assert data["quantidadeTotal"] == 4
        assert len(data["itens"]) == 1
        assert data["itens"][0]["produtoId"] == product.id
        assert Decimal(data["itens"][0]["precoVenda"]) == Decimal("25.00")
        assert "dataCriacao" in data

    async def test_insufficient_stock(self, client, customer, address, product, read_product):
        response = await create_order(client, customer, address, (product.id, 11))

        assert response.status_code == 400
        assert "Insufficient stock" in response.json()["detail"]
        assert (await read_product(product.id)).reserved == 0

    async def test_unknown_customer(self, client, address, product):
        response = await client.post(
            "/pedido",
            json={"clienteId": 999, "enderecoId": address.id, "itens": [{"produtoId": product.id, "quantidade": 1}]},
        )
        assert response.status_code == 404

    async def test_unknown_address(self, client, customer, product):
        response = await client.post(
            "/pedido",
            json={"clienteId": customer.id, "enderecoId": 999, "itens": [{"produtoId": product.id, "quantidade": 1}]},
        )
        assert response.status_code == 404

    async def test_unknown_product(self, client, customer, address):
        response = await create_order(client, customer, address, (999, 1))
        assert response.status_code == 404

    async def test_empty_items_rejected(self, client, customer, address):
        response = await client.post(
            "/pedido", json={"clienteId": customer.id, "enderecoId": address.id, "itens": []}
        )
        assert response.status_code == 422

    async def test_zero_quantity_rejected(self, client, customer, address, product):
        response = await create_order(client, customer, address, (product.id, 0))
        assert response.status_code == 422


class TestGetOrders:
    async def test_get_order(self, client, customer, address, product):
        created = (await create_order(client, customer, address, (product.id, 2))).json()

        response = await client.get(f"/pedido/{created['id']}")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == created["id"]
        assert data["itens"][0]["nomeProduto"] == "Fone de ouvido"
        assert data["endereco"]["cidade"] == "São Paulo"

    async def test_get_missing_order(self, client):
        response = await client.get("/pedido/999")
        assert response.status_code == 404

    async def test_list_customer_orders(self, client, customer, address, product):
        first = (await create_order(client, customer, address, (product.id, 1))).json()
        second = (await create_order(client, customer, address, (product.id, 1))).json()

        response = await client.get(f"/pedido/cliente/{customer.id}")

        assert response.status_code == 200
        assert [o["id"] for o in response.json()] == [second["id"], first["id"]]

    async def test_list_unknown_customer_is_empty(self, client):
        response = await client.get("/pedido/cliente/999")
        assert response.status_code == 200
        assert response.json() == []


class TestUpdateStatus:
    async def test_update_status(self, client, customer, address, product):
        order = (await create_order(client, customer, address, (product.id, 1))).json()

        response = await client.patch(f"/pedido/{order['id']}/status", json={"status": "ABERTO"})

        assert response.status_code == 200
        assert response.json()["status"] == "ABERTO"

    async def test_invalid_status_value(self, client, customer, address, product):
        order = (await create_order(client, customer, address, (product.id, 1))).json()

        response = await client.patch(f"/pedido/{order['id']}/status", json={"status": "ENVIADO"})

        assert response.status_code == 400
        assert "Invalid status" in response.json()["detail"]

    async def test_paid_order_is_immutable(self, client, customer, address, product):
        order = (await create_order(client, customer, address, (product.id, 1))).json()
        await pay(client, order["id"], "PAGO")

        response = await client.patch(f"/pedido/{order['id']}/status", json={"status": "AGUARDANDO_PAGAMENTO"})

        assert response.status_code == 400

    async def test_missing_order(self, client):
        response = await client.patch("/pedido/999/status", json={"status": "ABERTO"})
        assert response.status_code == 404


class TestPaymentScenarios:
    async def test_end_to_end_paid(self, client, customer, address, product, read_product):
        order = (await create_order(client, customer, address, (product.id, 4))).json()
        assert order["status"] == "AGUARDANDO_PAGAMENTO"
        assert (await read_product(product.id)).reserved == 4

        response = await pay(client, order["id"], "PAGO", amount="1.00")

        assert response.status_code == 200
        data = response.json()
        assert data["pedidoId"] == order["id"]
        assert data["metodo"] == "PIX"
        assert data["status"] == "PAGO"
        assert Decimal(data["valor"]) == Decimal("100.00")

        fetched = (await client.get(f"/pedido/{order['id']}")).json()
        assert fetched["status"] == "PAGO"
        current = await read_product(product.id)
        assert current.stock == 6
        assert current.reserved == 0

        again = await pay(client, order["id"], "PAGO")
        assert again.status_code == 400
        assert (await read_product(product.id)).stock == 6

    async def test_cancellation_releases_reservation(self, client, customer, address, product, read_product):
        order = (await create_order(client, customer, address, (product.id, 4))).json()

        response = await pay(client, order["id"], "CANCELADO", method="Boleto")

        assert response.status_code == 200
        assert response.json()["status"] == "CANCELADO"
        fetched = (await client.get(f"/pedido/{order['id']}")).json()
        assert fetched["status"] == "CANCELADO"
        current = await read_product(product.id)
        assert current.stock == 10
        assert current.reserved == 0

    async def test_card_payment(self, client, customer, address, product):
        order = (await create_order(client, customer, address, (product.id, 1))).json()

        response = await pay(client, order["id"], "PAGO", method="Cartão")

        assert response.status_code == 200
        assert response.json()["metodo"] == "Cartão"

    async def test_payment_for_missing_order(self, client):
        response = await pay(client, 999, "PAGO")
        assert response.status_code == 404

    async def test_invalid_method_rejected(self, client, customer, address, product):
        order = (await create_order(client, customer, address, (product.id, 1))).json()

        response = await pay(client, order["id"], "PAGO", method="Dinheiro")

        assert response.status_code == 422

    async def test_invalid_outcome_rejected(self, client, customer, address, product):
        order = (await create_order(client, customer, address, (product.id, 1))).json()

        response = await pay(client, order["id"], "AGUARDANDO_PAGAMENTO")

        assert response.status_code == 422

    @pytest.mark.parametrize("declared", ["0", "-5.00"])
    async def test_declared_amount_is_not_validated(self, client, customer, address, product, declared):
        order = (await create_order(client, customer, address, (product.id, 2))).json()

        response = await pay(client, order["id"], "PAGO", amount=declared)

        assert response.status_code == 200
        assert Decimal(response.json()["valor"]) == Decimal("50.00")
