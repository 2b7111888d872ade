"""Tests for the catalog, customer and address endpoints."""

from decimal import Decimal


class TestCategories:
    async def test_create_and_get(self, client):
        created = await client.post("/categoria", json={"nome": "Livros", "descricao": "Impressos"})

        assert created.status_code == 201
        category_id = created.json()["id"]
        response = await client.get(f"/categoria/{category_id}")
        assert response.status_code == 200
        assert response.json() == {"id": category_id, "nome": "Livros", "descricao": "Impressos"}

    async def test_duplicate_name(self, client, category):
        response = await client.post("/categoria", json={"nome": category.name})
        assert response.status_code == 400

    async def test_list_sorted_by_name(self, client):
        await client.post("/categoria", json={"nome": "Roupas"})
        await client.post("/categoria", json={"nome": "Brinquedos"})

        response = await client.get("/categoria")

        assert [c["nome"] for c in response.json()] == ["Brinquedos", "Roupas"]

    async def test_missing_category(self, client):
        response = await client.get("/categoria/999")
        assert response.status_code == 404

    async def test_update_category(self, client, category):
        response = await client.patch(f"/categoria/{category.id}", json={"descricao": "Gadgets"})

        assert response.status_code == 200
        assert response.json() == {"id": category.id, "nome": category.name, "descricao": "Gadgets"}

    async def test_rename_to_existing_name(self, client, category):
        other = (await client.post("/categoria", json={"nome": "Livros"})).json()

        response = await client.patch(f"/categoria/{other['id']}", json={"nome": category.name})

        assert response.status_code == 400

    async def test_delete_empty_category(self, client):
        created = (await client.post("/categoria", json={"nome": "Vazia"})).json()

        response = await client.delete(f"/categoria/{created['id']}")

        assert response.status_code == 204
        assert (await client.get(f"/categoria/{created['id']}")).status_code == 404

    async def test_category_with_products_is_kept(self, client, category, make_product):
        await make_product()

        response = await client.delete(f"/categoria/{category.id}")

        assert response.status_code == 400
        assert (await client.get(f"/categoria/{category.id}")).status_code == 200

    async def test_delete_missing_category(self, client):
        response = await client.delete("/categoria/999")
        assert response.status_code == 404


class TestProducts:
    async def test_create_product(self, client, category):
        response = await client.post(
            "/produto",
            json={"nome": "Teclado", "preco": "199.90", "estoque": 7, "categoriaId": category.id},
        )

        assert response.status_code == 201
        data = response.json()
        assert Decimal(data["preco"]) == Decimal("199.90")
        assert data["estoque"] == 7
        assert data["reserved"] == 0
        assert data["statusAtivo"] is True

    async def test_unknown_category(self, client):
        response = await client.post(
            "/produto", json={"nome": "Teclado", "preco": "10.00", "categoriaId": 999}
        )
        assert response.status_code == 404

    async def test_non_positive_price_rejected(self, client, category):
        response = await client.post(
            "/produto", json={"nome": "Teclado", "preco": "0", "categoriaId": category.id}
        )
        assert response.status_code == 422

    async def test_list_filters(self, client, make_product):
        cheap = await make_product(price="5.00", name="Caneta azul")
        await make_product(price="50.00", name="Mochila")
        await make_product(price="6.00", name="Caneta oculta", active=False)

        by_name = await client.get("/produto", params={"nome": "caneta"})
        by_price = await client.get("/produto", params={"minPreco": "10", "maxPreco": "100"})

        assert [p["id"] for p in by_name.json()] == [cheap.id]
        assert [p["nome"] for p in by_price.json()] == ["Mochila"]

    async def test_update_product(self, client, make_product):
        product = await make_product(stock=3, price="10.00")

        response = await client.patch(f"/produto/{product.id}", json={"preco": "12.50", "estoque": 20})

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["preco"]) == Decimal("12.50")
        assert data["estoque"] == 20
        assert data["nome"] == product.name

    async def test_stock_cannot_drop_below_reserved(self, client, customer, address, make_product):
        product = await make_product(stock=10)
        await client.post(
            "/pedido",
            json={
                "clienteId": customer.id,
                "enderecoId": address.id,
                "itens": [{"produtoId": product.id, "quantidade": 6}],
            },
        )

        response = await client.patch(f"/produto/{product.id}", json={"estoque": 5})

        assert response.status_code == 400
        current = (await client.get(f"/produto/{product.id}")).json()
        assert current["estoque"] == 10
        assert current["reserved"] == 6

    async def test_update_missing_product(self, client):
        response = await client.patch("/produto/999", json={"estoque": 1})
        assert response.status_code == 404

    async def test_delete_product(self, client, customer, make_product):
        product = await make_product()
        await client.post(f"/carrinho/cliente/{customer.id}/item", json={"produtoId": product.id, "quantidade": 1})

        response = await client.delete(f"/produto/{product.id}")

        assert response.status_code == 204
        assert (await client.get(f"/produto/{product.id}")).status_code == 404
        assert (await client.get(f"/carrinho/cliente/{customer.id}")).json()["itens"] == []

    async def test_ordered_product_is_kept(self, client, customer, address, make_product):
        product = await make_product(stock=5)
        await client.post(
            "/pedido",
            json={
                "clienteId": customer.id,
                "enderecoId": address.id,
                "itens": [{"produtoId": product.id, "quantidade": 1}],
            },
        )

        response = await client.delete(f"/produto/{product.id}")

        assert response.status_code == 400
        assert (await client.get(f"/produto/{product.id}")).status_code == 200

    async def test_delete_missing_product(self, client):
        response = await client.delete("/produto/999")
        assert response.status_code == 404


class TestCustomers:
    async def test_create_and_get(self, client):
        created = await client.post(
            "/cliente", json={"nome": "João Lima", "email": "Joao@Example.com", "telefone": "11988887777"}
        )

        assert created.status_code == 201
        assert created.json()["email"] == "joao@example.com"
        response = await client.get(f"/cliente/{created.json()['id']}")
        assert response.status_code == 200
        assert response.json()["nome"] == "João Lima"
        assert "dataCadastro" in response.json()

    async def test_duplicate_email(self, client, customer):
        response = await client.post("/cliente", json={"nome": "Outra Maria", "email": "MARIA@example.com"})
        assert response.status_code == 400

    async def test_invalid_email(self, client):
        response = await client.post("/cliente", json={"nome": "Sem Email", "email": "not-an-email"})
        assert response.status_code == 422

    async def test_missing_customer(self, client):
        response = await client.get("/cliente/999")
        assert response.status_code == 404


class TestAddresses:
    @staticmethod
    def payload(customer_id, **overrides):
        data = {
            "clienteId": customer_id,
            "logradouro": "Av. Paulista",
            "numero": "1000",
            "bairro": "Bela Vista",
            "cidade": "São Paulo",
            "estado": "sp",
            "cep": "01310-100",
        }
        data.update(overrides)
        return data

    async def test_new_main_address_demotes_previous(self, client, customer, address):
        response = await client.post("/endereco", json=self.payload(customer.id, principal=True))

        assert response.status_code == 201
        created = response.json()
        assert created["estado"] == "SP"
        addresses = (await client.get(f"/endereco/cliente/{customer.id}")).json()
        assert [(a["id"], a["principal"]) for a in addresses] == [(created["id"], True), (address.id, False)]

    async def test_unknown_customer(self, client):
        response = await client.post("/endereco", json=self.payload(999))
        assert response.status_code == 404

    async def test_invalid_zip_code(self, client, customer):
        response = await client.post("/endereco", json=self.payload(customer.id, cep="123"))
        assert response.status_code == 422

    async def test_list_for_unknown_customer(self, client):
        response = await client.get("/endereco/cliente/999")
        assert response.status_code == 404

    async def test_get_address(self, client, address):
        response = await client.get(f"/endereco/{address.id}")

        assert response.status_code == 200
        assert response.json()["cep"] == "01001-000"
        assert response.json()["principal"] is True

    async def test_get_missing_address(self, client):
        response = await client.get("/endereco/999")
        assert response.status_code == 404

    async def test_update_address(self, client, address):
        response = await client.patch(f"/endereco/{address.id}", json={"numero": "200", "estado": "rj"})

        assert response.status_code == 200
        data = response.json()
        assert data["numero"] == "200"
        assert data["estado"] == "RJ"
        assert data["logradouro"] == "Rua das Flores"

    async def test_promoting_an_address_demotes_the_main_one(self, client, customer, address):
        other = (await client.post("/endereco", json=self.payload(customer.id))).json()
        assert other["principal"] is False

        response = await client.patch(f"/endereco/{other['id']}", json={"principal": True})

        assert response.status_code == 200
        addresses = (await client.get(f"/endereco/cliente/{customer.id}")).json()
        assert [(a["id"], a["principal"]) for a in addresses] == [(other["id"], True), (address.id, False)]

    async def test_update_with_invalid_zip_code(self, client, address):
        response = await client.patch(f"/endereco/{address.id}", json={"cep": "abc"})
        assert response.status_code == 422

    async def test_delete_address(self, client, customer):
        other = (await client.post("/endereco", json=self.payload(customer.id))).json()

        response = await client.delete(f"/endereco/{other['id']}")

        assert response.status_code == 204
        assert (await client.get(f"/endereco/{other['id']}")).status_code == 404

    async def test_address_with_orders_is_kept(self, client, customer, address, make_product):
        product = await make_product()
        await client.post(
            "/pedido",
            json={
                "clienteId": customer.id,
                "enderecoId": address.id,
                "itens": [{"produtoId": product.id, "quantidade": 1}],
            },
        )

        response = await client.delete(f"/endereco/{address.id}")

        assert response.status_code == 400

    async def test_delete_missing_address(self, client):
        response = await client.delete("/endereco/999")
        assert response.status_code == 404
