# tests/conftest.py
import asyncio
import base64

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from storefront.config import Settings
from storefront.main import create_app
from storefront.memory import MemoryClient

SESSION_KEY = "test-session-key"
WEBHOOK_SECRET = "whsec_" + base64.b64encode(b"storefront-webhook-test-secret").decode()


def make_settings(**overrides) -> Settings:
    values = dict(
        backend="memory",
        session_key=SESSION_KEY,
        session_algorithms=["HS256"],
        webhook_secret=WEBHOOK_SECRET,
        log_level="WARNING",
    )
    values.update(overrides)
    return Settings(**values)


def token(subject, key=SESSION_KEY, **claims):
    return jwt.encode({"sub": subject, **claims}, key, algorithm="HS256")


def auth(subject, **claims):
    return {"Authorization": f"Bearer {token(subject, **claims)}"}


ADMIN = auth("admin_1", public_metadata={"role": "admin"})


def run(coro):
    return asyncio.run(coro)


def add_category(memory, slug="greens", **extra):
    return run(memory.insert("categories", {"name": slug.title(), "slug": slug, **extra}))[0]


def add_product(memory, slug, category_id=None, **extra):
    row = {
        "name": slug.replace("-", " ").title(),
        "slug": slug,
        "details": "A perfectly ordinary product.",
        "price": 10.0,
        "is_published": True,
        "category_id": category_id,
        "sku": f"SKU-{slug}",
        "images": [f"https://cdn.example.com/{slug}.png"],
    }
    row.update(extra)
    return run(memory.insert("products", row))[0]


@pytest.fixture
def memory():
    return MemoryClient()


@pytest.fixture
def app(memory):
    return create_app(make_settings(), client=memory)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def sf(app):
    return app.state.storefront
