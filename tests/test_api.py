from decimal import Decimal

from sqlalchemy import update

from services.catalog_service.models import Product


async def test_health_and_metrics(client):
    assert (await client.get("/health")).json()["status"] == "running"
    resp = await client.get("/metrics")
    assert resp.status_code == 200
    assert "ecomm_checkout_total" in resp.text


async def test_requests_without_token_are_rejected(client):
    assert (await client.get("/cart")).status_code == 401
    assert (await client.post("/orders")).status_code == 401


async def test_catalog_writes_need_internal_key(client):
    body = {"name": "Desk", "price": "120.00", "stock": 3, "ownerId": "owner-1", "shopName": "Wood"}
    assert (await client.post("/products/", json=body)).status_code == 403

    resp = await client.post("/products/", json=body, headers={"X-Internal-API-Key": "test-internal-key"})
    assert resp.status_code == 201
    product = resp.json()
    assert product["shopName"] == "Wood"
    assert Decimal(product["price"]) == Decimal("120.00")

    assert (await client.get(f"/products/{product['id']}")).json()["stock"] == 3


async def test_catalog_listing_filters(client, make_product):
    mug = await make_product(name="Blue Mug", stock=4, owner_id="owner-1")
    await make_product(name="Red Mug", stock=0, owner_id="owner-1")
    lamp = await make_product(name="Lamp", stock=2, owner_id="owner-2", shop_name="Lights")

    names = lambda resp: [p["name"] for p in resp.json()]
    assert names(await client.get("/products/")) == ["Blue Mug", "Red Mug", "Lamp"]
    assert names(await client.get("/products/", params={"query": "mug"})) == ["Blue Mug", "Red Mug"]
    assert names(await client.get("/products/", params={"query": "mug", "inStock": "true"})) == ["Blue Mug"]
    assert [p["id"] for p in (await client.get("/products/", params={"shop": "owner-2"})).json()] == [lamp.id]
    assert (await client.get(f"/products/{mug.id}")).json()["ownerId"] == "owner-1"
    assert (await client.get("/products/9999")).status_code == 404


async def test_cart_endpoints(client, auth, make_product):
    headers = auth("cust-1")
    product = await make_product(name="Mug", price="4.50", stock=5)

    empty = (await client.get("/cart", headers=headers)).json()
    assert empty["items"] == [] and Decimal(empty["totalAmount"]) == 0

    resp = await client.post("/cart/add", json={"productId": product.id, "quantity": 2}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["items"][0]["quantity"] == 2
    assert Decimal(resp.json()["totalAmount"]) == Decimal("9.00")

    resp = await client.post("/cart/add", json={"productId": product.id, "quantity": 9}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "ProductUnavailable"

    resp = await client.post("/cart/add", json={"productId": product.id, "quantity": 0}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "InvalidQuantity"

    resp = await client.put(f"/cart/update/{product.id}", json={"quantity": 3}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["items"][0]["quantity"] == 3
    assert (await client.put("/cart/update/9999", json={"quantity": 1}, headers=headers)).status_code == 404
    resp = await client.put(f"/cart/update/{product.id}", json={"quantity": 0}, headers=headers)
    assert resp.status_code == 400

    assert (await client.delete(f"/cart/remove/{product.id}", headers=headers)).status_code == 200
    assert (await client.delete(f"/cart/remove/{product.id}", headers=headers)).status_code == 404

    await client.post("/cart/add", json={"productId": product.id, "quantity": 1}, headers=headers)
    assert (await client.delete("/cart/clear", headers=headers)).status_code == 200
    assert (await client.get("/cart", headers=headers)).json()["items"] == []


async def test_checkout_flow(client, auth, db, make_product):
    customer = auth("cust-1")
    product = await make_product(name="Pen", price="9.99", stock=4, owner_id="owner-1", shop_name="Ink")
    await client.post("/cart/add", json={"productId": product.id, "quantity": 2}, headers=customer)
    await db.execute(update(Product).where(Product.id == product.id).values(price=Decimal("12.00")))
    await db.commit()

    resp = await client.post("/orders", json={"shippingAddress": "2 Side St"}, headers=customer)

    assert resp.status_code == 201
    order = resp.json()
    assert order["status"] == "Pending"
    assert order["shippingAddress"] == "2 Side St"
    assert Decimal(order["totalAmount"]) == Decimal("24.00")
    assert order["items"][0]["shopName"] == "Ink"
    assert order["items"][0]["ownerId"] == "owner-1"
    assert (await client.get(f"/products/{product.id}")).json()["stock"] == 2
    assert (await client.get("/cart", headers=customer)).json()["items"] == []

    resp = await client.post("/orders", headers=customer)
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "EmptyCart"

    listed = (await client.get("/orders/user", headers=customer)).json()
    assert [o["id"] for o in listed] == [order["id"]]
    assert (await client.get(f"/orders/{order['id']}", headers=customer)).status_code == 200
    assert (await client.get(f"/orders/{order['id']}", headers=auth("stranger"))).status_code == 403
    assert (await client.get("/orders/9999", headers=customer)).status_code == 404


async def test_checkout_stock_conflict(client, auth, db, make_product):
    customer = auth("cust-1")
    product = await make_product(stock=2)
    await client.post("/cart/add", json={"productId": product.id, "quantity": 2}, headers=customer)
    await db.execute(update(Product).where(Product.id == product.id).values(stock=1))
    await db.commit()

    resp = await client.post("/orders", headers=customer)

    assert resp.status_code == 400
    assert resp.json()["detail"] == {
        "code": "StockConflict",
        "message": f"Insufficient stock for product {product.id}",
        "productId": product.id,
    }
    assert len((await client.get("/cart", headers=customer)).json()["items"]) == 1


async def test_status_and_sales_endpoints(client, auth, make_product):
    customer, owner = auth("cust-1"), auth("owner-1")
    product = await make_product(price="3.00", stock=10, owner_id="owner-1")
    await client.post("/cart/add", json={"productId": product.id, "quantity": 3}, headers=customer)
    order_id = (await client.post("/orders", headers=customer)).json()["id"]

    resp = await client.put(f"/orders/{order_id}/status", json={"status": "Processing"}, headers=auth("owner-2"))
    assert resp.status_code == 403
    resp = await client.put(f"/orders/{order_id}/status", json={"status": "Delivered"}, headers=owner)
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "InvalidTransition"
    assert (await client.put("/orders/9999/status", json={"status": "Processing"}, headers=owner)).status_code == 404

    resp = await client.put(f"/orders/{order_id}/status", json={"status": "Processing"}, headers=owner)
    assert resp.status_code == 200
    assert resp.json()["status"] == "Processing"

    shop_orders = (await client.get("/orders/shop", headers=owner)).json()
    assert [o["id"] for o in shop_orders] == [order_id]

    sales = (await client.get("/orders/sales", headers=owner)).json()
    assert Decimal(sales["totalSales"]) == Decimal("9.00")
    assert sales["period"] == {"startDate": None, "endDate": None}

    sales = (await client.get(
        "/orders/sales", params={"startDate": "2000-01-01", "endDate": "2000-12-31"}, headers=owner
    )).json()
    assert Decimal(sales["totalSales"]) == 0
    assert sales["period"] == {"startDate": "2000-01-01", "endDate": "2000-12-31"}

    resp = await client.put(f"/orders/{order_id}/status", json={"status": "Cancelled"}, headers=owner)
    assert resp.status_code == 200
    assert (await client.get(f"/products/{product.id}")).json()["stock"] == 10
    assert Decimal((await client.get("/orders/sales", headers=owner)).json()["totalSales"]) == 0
