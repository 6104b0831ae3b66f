"""Small helpers shared by the API tests."""


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


async def register(client, email="alice@example.com", password="s3cret-pass"):
    resp = await client.post("/auth/register", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]


async def create_product(client, token, name="Linen shirt", price="100.00", description="Cool linen"):
    resp = await client.post(
        "/products",
        json={"name": name, "description": description, "price": price, "imageUrl": None},
        headers=bearer(token),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
