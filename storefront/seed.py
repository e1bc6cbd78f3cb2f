# storefront/seed.py
import logging
from typing import Any, Dict, List

from .query import Query

logger = logging.getLogger(__name__)

DEMO_CATEGORIES: List[Dict[str, Any]] = [
    {"name": "Fruits", "slug": "fruits", "description": "Fresh organic fruit"},
    {"name": "Vegetables", "slug": "vegetables", "description": "Seasonal organic vegetables"},
    {"name": "Pantry", "slug": "pantry", "description": "Grains, oils and staples"},
]

DEMO_SUBCATEGORIES: List[Dict[str, Any]] = [
    {"name": "Berries", "slug": "berries", "parent": "fruits"},
    {"name": "Leafy Greens", "slug": "leafy-greens", "parent": "vegetables"},
]

DEMO_PRODUCTS: List[Dict[str, Any]] = [
    {
        "name": "Organic Strawberries",
        "slug": "organic-strawberries",
        "details": "Sweet, hand-picked strawberries from local farms.",
        "price": 6.5,
        "discount": 10,
        "trending": True,
        "category": "berries",
        "inventory": 40,
        "sku": "FRU-STR-001",
        "images": ["https://images.unsplash.com/photo-1464965911861-746a04b4bca6"],
    },
    {
        "name": "Honeycrisp Apples",
        "slug": "honeycrisp-apples",
        "details": "Crisp, juicy apples grown without synthetic pesticides.",
        "price": 4.25,
        "discount": 0,
        "trending": False,
        "category": "fruits",
        "inventory": 120,
        "sku": "FRU-APL-002",
        "images": ["https://images.unsplash.com/photo-1560806887-1e4cd0b6cbd6"],
    },
    {
        "name": "Baby Spinach",
        "slug": "baby-spinach",
        "details": "Tender organic baby spinach, washed and ready to eat.",
        "price": 3.99,
        "discount": 0,
        "trending": True,
        "category": "leafy-greens",
        "inventory": 60,
        "sku": "VEG-SPN-003",
        "images": ["https://images.unsplash.com/photo-1576045057995-568f588f82fb"],
    },
    {
        "name": "Cold-Pressed Olive Oil",
        "slug": "cold-pressed-olive-oil",
        "details": "Extra virgin organic olive oil, 500ml glass bottle.",
        "price": 14.0,
        "discount": 15,
        "trending": False,
        "category": "pantry",
        "inventory": 25,
        "sku": "PAN-OIL-004",
        "images": ["https://images.unsplash.com/photo-1474979266404-7eaacbcd87c5"],
    },
]

DEMO_STORE: Dict[str, Any] = {
    "name": "Organic",
    "tagline": "Fresh food, honestly grown",
    "contact_email": "hello@example.com",
    "default_currency": "USD",
    "tax_rate": 0,
    "newsletter_enabled": True,
    "footer_links": [{"title": "Shipping", "url": "/shipping", "category": "help"}],
}


async def seed_demo(sf) -> bool:
    """Fill an empty catalog with demo rows. Leaves existing data alone."""
    if await sf.client.count("products", Query()):
        return False

    slugs: Dict[str, str] = {}
    for cat in DEMO_CATEGORIES:
        row = (await sf.client.insert("categories", cat))[0]
        slugs[cat["slug"]] = row["id"]
    for sub in DEMO_SUBCATEGORIES:
        payload = {"name": sub["name"], "slug": sub["slug"], "parent_category_id": slugs[sub["parent"]]}
        row = (await sf.client.insert("categories", payload))[0]
        slugs[sub["slug"]] = row["id"]

    for prod in DEMO_PRODUCTS:
        payload = {k: v for k, v in prod.items() if k != "category"}
        payload.update({"category_id": slugs[prod["category"]], "is_published": True})
        await sf.client.insert("products", payload)

    if not await sf.client.count("store", Query()):
        await sf.client.insert("store", DEMO_STORE)

    sf.cache.clear()
    logger.info("Seeded %d demo products", len(DEMO_PRODUCTS))
    return True
