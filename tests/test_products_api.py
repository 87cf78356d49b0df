from tests.store_helpers import auth_headers, create_product, create_store_with_staff


def test_admin_crud_flow(client):
    store = create_store_with_staff(client)
    token = store["admin_token"]

    rice = create_product(client, token, "Rice", "50", category="Grocery")
    create_product(client, token, "Cooking Oil", "120.00", image_url="https://example.com/oil.png")

    listing = client.get("/admin/products", headers=auth_headers(token)).json()
    assert listing["total"] == 2
    assert listing["loading"] is False
    assert [row["name"] for row in listing["rows"]] == ["Cooking Oil", "Rice"]
    assert rice["price"] == "50.00"
    assert rice["price_label"] == "₱50.00"
    assert rice["display_image_url"].startswith("https://placehold.co/")
    assert rice["store_id"] == store["store_id"]

    updated = client.put(
        f"/admin/products/{rice['id']}",
        json={"name": "Rice 5kg", "price": "240", "category": "Grocery"},
        headers=auth_headers(token),
    )
    assert updated.status_code == 200
    assert updated.json()["message"] == "Product updated successfully."
    assert updated.json()["product"]["created_at"] == rice["created_at"]

    deleted = client.delete(f"/admin/products/{rice['id']}", headers=auth_headers(token))
    assert deleted.status_code == 200

    listing = client.get("/admin/products", params={"search": "rice"}, headers=auth_headers(token)).json()
    assert listing["rows"] == []


def test_product_validation_rejects_before_write(client):
    store = create_store_with_staff(client)
    token = store["admin_token"]

    response = client.post(
        "/admin/products",
        json={"name": "", "price": "-1", "image_url": "ftp:/broken"},
        headers=auth_headers(token),
    )

    assert response.status_code == 422
    fields = {error["field"] for error in response.json()["details"]["errors"]}
    assert fields == {"name", "price", "image_url"}
    assert client.get("/admin/products", headers=auth_headers(token)).json()["total"] == 0



def test_product_price_above_limit_is_a_field_error(client):
    store = create_store_with_staff(client)
    token = store["admin_token"]

    response = client.post("/admin/products", json={"name": "Gold", "price": "1e30"}, headers=auth_headers(token))

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert [error["field"] for error in response.json()["details"]["errors"]] == ["price"]
    assert client.get("/admin/products", headers=auth_headers(token)).json()["total"] == 0

def test_update_unknown_product_returns_not_found(client):
    store = create_store_with_staff(client)

    response = client.put(
        "/admin/products/missing",
        json={"name": "Rice", "price": "50"},
        headers=auth_headers(store["admin_token"]),
    )

    assert response.status_code == 404
    assert response.json()["code"] == "PRODUCT_NOT_FOUND"


def test_staff_is_redirected_away_from_admin_routes(client):
    store = create_store_with_staff(client)

    response = client.get("/admin/products", headers=auth_headers(store["staff_token"]), follow_redirects=False)
    blocked_write = client.post(
        "/admin/products",
        json={"name": "Rice", "price": "50"},
        headers=auth_headers(store["staff_token"]),
        follow_redirects=False,
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/staff/record-sale"
    assert "rows" not in response.json()
    assert blocked_write.status_code == 303


def test_anonymous_is_redirected_to_login(client):
    response = client.get("/admin/products", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/login"


def test_products_are_scoped_to_the_admin_store(client):
    first = create_store_with_staff(client, suffix="a")
    second = create_store_with_staff(client, suffix="b")
    create_product(client, first["admin_token"], "Rice", "50")

    listing = client.get("/admin/products", headers=auth_headers(second["admin_token"])).json()

    assert listing["rows"] == []
