# storefront/routes.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from .auth import Session
from .context import Storefront
from .deps import current_user, get_storefront, optional_session, require_session
from .models import (
    CartAdd,
    CartItem,
    CartRemove,
    Category,
    CategoryTreeNode,
    CheckoutIn,
    Order,
    OrderWithItems,
    Page,
    Product,
    ProductDetails,
    Store,
    User,
    UserPatch,
    WishlistChange,
)
from .errors import NotFound
from .orders import owned_order

router = APIRouter(prefix="/api")


# ---------------------------
# Catalog
# ---------------------------
@router.get("/products", response_model=Page[Product])
async def list_products(
    page: int = Query(1, ge=1),
    per_page: int = Query(12, ge=1, le=100),
    category_id: Optional[str] = None,
    trending: Optional[bool] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    sf: Storefront = Depends(get_storefront),
):
    filters = {
        "category_id": category_id,
        "trending": trending,
        "final_price": {"gte": min_price, "lte": max_price} if min_price is not None or max_price is not None else None,
    }
    return await sf.products.list(page=page, per_page=per_page, filters=filters)


@router.get("/products/trending", response_model=List[Product])
async def trending_products(limit: int = Query(4, ge=1, le=50), sf: Storefront = Depends(get_storefront)):
    return await sf.products.trending(limit)


@router.get("/products/search", response_model=Page[Product])
async def search_products(
    q: str = "",
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    sf: Storefront = Depends(get_storefront),
):
    return await sf.products.search(q, page=page, per_page=per_page)


@router.get("/products/{slug}", response_model=ProductDetails)
async def get_product(slug: str, sf: Storefront = Depends(get_storefront)):
    return await sf.products.get(slug)


@router.get("/categories", response_model=List[Category])
async def list_categories(sf: Storefront = Depends(get_storefront)):
    return await sf.categories.list()


@router.get("/categories/tree", response_model=List[CategoryTreeNode])
async def category_tree(sf: Storefront = Depends(get_storefront)):
    return await sf.categories.tree()


@router.get("/categories/{slug}", response_model=Category)
async def get_category(slug: str, sf: Storefront = Depends(get_storefront)):
    return await sf.categories.get(slug)


@router.get("/categories/{slug}/products", response_model=Page[Product])
async def category_products(
    slug: str,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    sf: Storefront = Depends(get_storefront),
):
    category = await sf.categories.get(slug)
    return await sf.products.by_category(category.id, page=page, limit=limit)


@router.get("/store", response_model=Store)
async def get_store(sf: Storefront = Depends(get_storefront)):
    return await sf.store.get()


# ---------------------------
# Account
# ---------------------------
@router.get("/me", response_model=User)
async def me(user: User = Depends(current_user)):
    return user


@router.patch("/me", response_model=User)
async def update_me(payload: UserPatch, user: User = Depends(current_user), sf: Storefront = Depends(get_storefront)):
    return await sf.users.update(user.id, payload)


@router.get("/me/role")
async def my_role(session: Optional[Session] = Depends(optional_session), sf: Storefront = Depends(get_storefront)):
    role = await sf.auth.role(session)
    return {"role": role, "is_admin": role == "admin"}


# ---------------------------
# Cart endpoints
# ---------------------------
@router.get("/cart")
async def view_cart(user: User = Depends(current_user), sf: Storefront = Depends(get_storefront)):
    items = await sf.users.cart(user.id)
    return _cart_view(user, items)


@router.post("/cart/add")
async def cart_add(payload: CartAdd, user: User = Depends(current_user), sf: Storefront = Depends(get_storefront)):
    product = await sf.products.get_by_id(payload.product_id)
    items = await sf.users.add_product(user.id, product, payload.quantity)
    return _cart_view(user, items)


@router.post("/cart/remove")
async def cart_remove(payload: CartRemove, user: User = Depends(current_user), sf: Storefront = Depends(get_storefront)):
    items = await sf.users.remove_from_cart(user.id, payload.product_id, payload.quantity)
    return _cart_view(user, items)


@router.delete("/cart")
async def cart_clear(user: User = Depends(current_user), sf: Storefront = Depends(get_storefront)):
    return _cart_view(user, await sf.users.clear_cart(user.id))


def _cart_view(user: User, items: List[CartItem]):
    total = sum(i.final_price * i.quantity for i in items)
    return {
        "user_id": user.id,
        "items": [i.model_dump() for i in items],
        "item_count": sum(i.quantity for i in items),
        "total": total,
    }


# ---------------------------
# Wishlist endpoints
# ---------------------------
@router.get("/wishlist", response_model=List[Product])
async def view_wishlist(user: User = Depends(current_user), sf: Storefront = Depends(get_storefront)):
    return await sf.users.wishlist(user.id)


@router.post("/wishlist/add")
async def wishlist_add(
    payload: WishlistChange, user: User = Depends(current_user), sf: Storefront = Depends(get_storefront)
):
    await sf.products.get_by_id(payload.product_id)
    return {"wishlist_products": await sf.users.add_to_wishlist(user.id, payload.product_id)}


@router.post("/wishlist/remove")
async def wishlist_remove(
    payload: WishlistChange, user: User = Depends(current_user), sf: Storefront = Depends(get_storefront)
):
    return {"wishlist_products": await sf.users.remove_from_wishlist(user.id, payload.product_id)}


# ---------------------------
# Orders
# ---------------------------
@router.get("/orders", response_model=Page[Order])
async def my_orders(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    user: User = Depends(current_user),
    sf: Storefront = Depends(get_storefront),
):
    return await sf.orders.by_user(user.id, page=page, per_page=per_page)


@router.get("/orders/{order_id}", response_model=OrderWithItems)
async def get_order(
    order_id: str,
    session: Session = Depends(require_session),
    user: User = Depends(current_user),
    sf: Storefront = Depends(get_storefront),
):
    if await sf.auth.is_admin(session):
        return await sf.orders.get(order_id)
    return await owned_order(sf.orders, order_id, user.id)


@router.post("/orders/checkout", response_model=OrderWithItems, status_code=201)
async def checkout(payload: CheckoutIn, user: User = Depends(current_user), sf: Storefront = Depends(get_storefront)):
    try:
        tax_rate = (await sf.store.get()).tax_rate
    except NotFound:
        tax_rate = 0
    return await sf.orders.checkout(user, payload, tax_rate=tax_rate)
