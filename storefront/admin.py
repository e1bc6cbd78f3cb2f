# storefront/admin.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel

from .auth import Session
from .context import Storefront
from .deps import get_storefront, require_admin
from .models import (
    AdminStats,
    Category,
    CategoryIn,
    CategoryPatch,
    FooterSettings,
    Order,
    OrderStatusUpdate,
    Page,
    Product,
    ProductIn,
    ProductPatch,
    SetRoleIn,
    Store,
    StorePatch,
    User,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", dependencies=[Depends(require_admin)])


class ImageRef(BaseModel):
    url: str


@router.get("/stats", response_model=AdminStats)
async def stats(sf: Storefront = Depends(get_storefront)):
    return await sf.orders.stats()


# ---------------------------
# Products
# ---------------------------
@router.get("/products", response_model=Page[Product])
async def list_products(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    category_id: Optional[str] = None,
    is_published: Optional[bool] = None,
    trending: Optional[bool] = None,
    sf: Storefront = Depends(get_storefront),
):
    filters = {"category_id": category_id, "is_published": is_published, "trending": trending}
    return await sf.products.list(page=page, per_page=per_page, filters=filters, published_only=False)


@router.get("/products/search", response_model=Page[Product])
async def search_products(
    q: str = "",
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    sf: Storefront = Depends(get_storefront),
):
    return await sf.products.search(q, page=page, per_page=per_page, include_unpublished=True)


@router.get("/products/{product_id}", response_model=Product)
async def get_product(product_id: str, sf: Storefront = Depends(get_storefront)):
    return await sf.products.get_by_id(product_id)


@router.post("/products", response_model=Product, status_code=201)
async def create_product(payload: ProductIn, sf: Storefront = Depends(get_storefront)):
    return await sf.products.create(payload)


@router.patch("/products/{product_id}", response_model=Product)
async def update_product(product_id: str, payload: ProductPatch, sf: Storefront = Depends(get_storefront)):
    return await sf.products.update(product_id, payload)


@router.delete("/products/{product_id}")
async def delete_product(product_id: str, sf: Storefront = Depends(get_storefront)):
    return {"deleted": await sf.products.delete(product_id)}


# ---------------------------
# Categories
# ---------------------------
@router.post("/categories", response_model=Category, status_code=201)
async def create_category(payload: CategoryIn, sf: Storefront = Depends(get_storefront)):
    return await sf.categories.create(payload)


@router.patch("/categories/{category_id}", response_model=Category)
async def update_category(category_id: str, payload: CategoryPatch, sf: Storefront = Depends(get_storefront)):
    return await sf.categories.update(category_id, payload)


@router.delete("/categories/{category_id}")
async def delete_category(category_id: str, sf: Storefront = Depends(get_storefront)):
    return {"deleted": await sf.categories.delete(category_id)}


# ---------------------------
# Users
# ---------------------------
@router.get("/users", response_model=Page[User])
async def list_users(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    sf: Storefront = Depends(get_storefront),
):
    return await sf.users.list(page=page, per_page=per_page, search=search)


@router.post("/set-role", response_model=User)
async def set_role(
    payload: SetRoleIn, session: Session = Depends(require_admin), sf: Storefront = Depends(get_storefront)
):
    user = await sf.users.set_role(payload.targetUserId, payload.role)
    logger.info("%s set role of %s to %s", session.subject, payload.targetUserId, payload.role)
    return user


# ---------------------------
# Orders
# ---------------------------
@router.get("/orders", response_model=Page[Order])
async def list_orders(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    user_id: Optional[str] = None,
    payment_status: Optional[str] = None,
    shipping_status: Optional[str] = None,
    sf: Storefront = Depends(get_storefront),
):
    filters = {"user_id": user_id, "payment_status": payment_status, "shipping_status": shipping_status}
    return await sf.orders.list(page=page, per_page=per_page, filters=filters)


@router.patch("/orders/{order_id}/status", response_model=Order)
async def update_order_status(order_id: str, payload: OrderStatusUpdate, sf: Storefront = Depends(get_storefront)):
    return await sf.orders.update_status(order_id, payload)


# ---------------------------
# Store settings
# ---------------------------
@router.put("/store", response_model=Store)
async def save_store(payload: StorePatch, sf: Storefront = Depends(get_storefront)):
    return await sf.store.create_if_not_exists(payload)


@router.patch("/store/{store_id}", response_model=Store)
async def update_store(store_id: str, payload: StorePatch, sf: Storefront = Depends(get_storefront)):
    return await sf.store.update(store_id, payload)


@router.put("/store/footer", response_model=Store)
async def save_footer(payload: FooterSettings, sf: Storefront = Depends(get_storefront)):
    return await sf.store.update_footer(payload)


# ---------------------------
# Images
# ---------------------------
@router.post("/images", status_code=201)
async def upload_image(
    file: UploadFile = File(...),
    path: str = Form("products"),
    sf: Storefront = Depends(get_storefront),
):
    content = await file.read()
    url = await sf.client.upload_object(
        sf.settings.storage_bucket, path, file.filename or "upload", content, file.content_type or ""
    )
    return {"url": url}


@router.get("/images")
async def list_images(path: str = "products", sf: Storefront = Depends(get_storefront)):
    return {"urls": await sf.client.list_objects(sf.settings.storage_bucket, path)}


@router.post("/images/delete")
async def delete_image(payload: ImageRef, sf: Storefront = Depends(get_storefront)):
    return {"deleted": await sf.client.delete_object(sf.settings.storage_bucket, payload.url)}
