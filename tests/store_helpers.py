from __future__ import annotations

PASSWORD = "secret1"


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register_admin(client, *, email: str = "owner@example.com", store_name: str = "Aling Nena Store") -> dict:
    response = client.post(
        "/register/admin",
        json={
            "email": email,
            "password": PASSWORD,
            "confirm_password": PASSWORD,
            "store_name": store_name,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def register_staff(
    client,
    store_id: str,
    *,
    email: str = "cashier@example.com",
    display_name: str = "Juan Dela Cruz",
) -> dict:
    response = client.post(
        "/register/staff",
        json={
            "email": email,
            "password": PASSWORD,
            "confirm_password": PASSWORD,
            "store_id": store_id,
            "display_name": display_name,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def login(client, email: str, store_id: str, password: str = PASSWORD) -> str:
    response = client.post(
        "/login",
        json={"email": email, "password": password, "store_id": store_id},
    )
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


def create_store_with_staff(client, *, suffix: str = "a") -> dict:
    admin = register_admin(client, email=f"owner-{suffix}@example.com", store_name=f"Store {suffix.upper()}")
    store_id = admin["store_id"]
    register_staff(client, store_id, email=f"cashier-{suffix}@example.com")
    return {
        "store_id": store_id,
        "admin_token": login(client, f"owner-{suffix}@example.com", store_id),
        "staff_token": login(client, f"cashier-{suffix}@example.com", store_id),
    }


def create_product(client, token: str, name: str, price: str, **extra) -> dict:
    response = client.post(
        "/admin/products",
        json={"name": name, "price": price, **extra},
        headers=auth_headers(token),
    )
    assert response.status_code == 201, response.text
    return response.json()["product"]
