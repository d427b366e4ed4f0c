"""Shared helpers for API tests."""

from datetime import datetime

from httpx import AsyncClient

MEMBER_DOMAIN = "up.edu.ph"


class Clock:
    """Settable replacement for the ``get_now`` dependency."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


async def signup(
    client: AsyncClient,
    name: str,
    email: str,
    user_type: str = "member",
    **extra,
) -> dict:
    """Sign up through the API and return the created user."""
    payload = {"name": name, "email": email, "user_type": user_type, **extra}
    if user_type == "member":
        payload.setdefault("cluster", "Photography")
        payload.setdefault("batch_name", "Batch 2024")
    response = await client.post("/api/auth/signup", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["user"]


async def relogin(*clients: AsyncClient) -> None:
    """Log clients back in, e.g. after the clock jumped past session expiry."""
    for client in clients:
        response = await client.post("/api/auth/login", json={"email": client.user["email"]})
        assert response.status_code == 200, response.text


async def create_work(
    client: AsyncClient,
    title: str = "Sunset",
    category: str = "Photos",
    **extra,
) -> dict:
    """Create a work through the JSON endpoint and return it."""
    payload = {
        "title": title,
        "description": f"{title} description",
        "category": category,
        "file_url": f"https://cdn.example.com/{title.lower().replace(' ', '-')}.jpg",
        **extra,
    }
    response = await client.post("/api/works/", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["work"]


async def create_theme(
    client: AsyncClient,
    title: str = "Campus Light",
    category: str = "Photos",
    start_date: str = "2024-01-01T00:00:00",
    end_date: str = "2024-01-31T23:59:59",
) -> dict:
    """Create a theme as admin and return it."""
    response = await client.post(
        "/api/themes/",
        json={
            "title": title,
            "description": f"{title} description",
            "category": category,
            "start_date": start_date,
            "end_date": end_date,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["theme"]
