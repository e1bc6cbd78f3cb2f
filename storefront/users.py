# storefront/users.py
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from . import keys
from .errors import NotFound, ValidationFailed
from .hooks import Hooks
from .models import ROLES, CartItem, Page, Product, User, UserIn, UserPatch
from .query import Query

USER_SEARCH_COLUMNS = ("first_name", "last_name", "email")


def display_name(first: Optional[str], last: Optional[str]) -> Optional[str]:
    if first and last:
        return f"{first} {last}"
    return first or None


def claim_role(claims: Dict[str, Any]) -> Optional[str]:
    """Role carried by identity-provider metadata, if any."""
    for holder in (claims.get("public_metadata"), claims.get("metadata")):
        if isinstance(holder, dict) and holder.get("role") in ROLES:
            return holder["role"]
    role = claims.get("role")
    return role if role in ROLES else None


def provider_user_row(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map an identity-provider user object onto the users table."""
    emails = data.get("email_addresses") or []
    primary_id = data.get("primary_email_address_id")
    primary = next((e for e in emails if e.get("id") == primary_id), emails[0] if emails else {})
    row = {
        "clerk_id": data["id"],
        "email": primary.get("email_address"),
        "first_name": data.get("first_name"),
        "last_name": data.get("last_name"),
        "name": display_name(data.get("first_name"), data.get("last_name")),
        "image_url": data.get("image_url"),
        "primary_email_address_id": primary_id,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
    role = claim_role(data)
    if role:
        row["role"] = role
    return row


class UserHooks(Hooks):
    resource = "users"

    # ---------------------------
    # Profile
    # ---------------------------
    async def get(self, clerk_id: str) -> User:
        async def load():
            return User.model_validate(await self.client.get_one("users", "clerk_id", clerk_id))

        return await self._read(keys.users.details(clerk_id), load)

    async def get_by_id(self, user_id: str) -> User:
        return User.model_validate(await self.client.get_one("users", "id", user_id))

    async def list(self, page: int = 1, per_page: int = 20, search: Optional[str] = None) -> Page[User]:
        term = (search or "").strip()

        async def load():
            q = Query().order_by("created_at", desc=True)
            if term:
                q.ilike_any(USER_SEARCH_COLUMNS, term)
            return await self._page("users", q, page, per_page, User)

        key = keys.users.list({"page": page, "per_page": per_page, "search": term.lower()})
        return await self._read(key, load)

    async def create(self, user: UserIn) -> User:
        rows = await self._mutate("creating", lambda: self.client.insert("users", user.to_row()))
        return User.model_validate(rows[0])

    async def update(self, user_id: str, patch: UserPatch) -> User:
        changes = patch.to_row()
        if not changes:
            raise ValidationFailed({"user": "No updates provided"})
        rows = await self._mutate("updating", lambda: self.client.update("users", "id", user_id, changes))
        return User.model_validate(rows[0])

    async def ensure(self, clerk_id: str, claims: Dict[str, Any]) -> User:
        """Return the user row for a session, creating it from the claims when missing."""
        try:
            return await self.get(clerk_id)
        except NotFound:
            pass
        email = claims.get("email")
        user = UserIn(
            clerk_id=clerk_id,
            email=email,
            first_name=claims.get("first_name"),
            last_name=claims.get("last_name"),
            name=display_name(claims.get("first_name"), claims.get("last_name")),
            image_url=claims.get("image_url"),
            role=claim_role(claims) or "user",
        )
        return await self.create(user)

    async def set_role(self, clerk_id: str, role: str) -> User:
        if role not in ROLES:
            raise ValidationFailed({"role": f"Role must be one of {', '.join(ROLES)}"})
        rows = await self._mutate(
            "setting role for", lambda: self.client.update("users", "clerk_id", clerk_id, {"role": role})
        )
        return User.model_validate(rows[0])

    async def delete(self, clerk_id: str) -> bool:
        rows = await self._mutate("deleting", lambda: self.client.delete("users", "clerk_id", clerk_id))
        return bool(rows)

    async def upsert_from_provider(self, data: Dict[str, Any]) -> User:
        row = provider_user_row(data)
        rows = await self._mutate("upserting", lambda: self.client.upsert("users", row, on_conflict="clerk_id"))
        return User.model_validate(rows[0])

    # ---------------------------
    # Cart
    # ---------------------------
    async def _cart_row(self, user_id: str) -> List[CartItem]:
        row = await self.client.get_one("users", "id", user_id)
        return [CartItem.model_validate(i) for i in row.get("cart_products") or []]

    async def cart(self, user_id: str) -> List[CartItem]:
        return await self._read(keys.users.cart(user_id), lambda: self._cart_row(user_id))

    async def set_cart(self, user_id: str, items: List[CartItem]) -> List[CartItem]:
        payload = {"cart_products": [i.model_dump() for i in items]}
        rows = await self._mutate("updating cart for", lambda: self.client.update("users", "id", user_id, payload))
        return [CartItem.model_validate(i) for i in rows[0].get("cart_products") or []]

    async def add_to_cart(self, user_id: str, item: CartItem) -> List[CartItem]:
        current = await self._cart_row(user_id)
        for existing in current:
            if existing.id == item.id:
                existing.quantity += item.quantity
                break
        else:
            current.append(item)
        return await self.set_cart(user_id, current)

    async def add_product(self, user_id: str, product: Product, quantity: int = 1) -> List[CartItem]:
        if not product.is_published:
            raise NotFound(f"products: no row with id={product.id}")
        item = CartItem(
            id=product.id,
            name=product.name,
            price=product.price or 0,
            final_price=product.final_price,
            quantity=quantity,
            image=product.primary_image,
        )
        return await self.add_to_cart(user_id, item)

    async def remove_from_cart(self, user_id: str, product_id: str, quantity: Optional[int] = None) -> List[CartItem]:
        current = await self._cart_row(user_id)
        if not any(i.id == product_id for i in current):
            return current
        updated = []
        for item in current:
            if item.id != product_id:
                updated.append(item)
            elif quantity is not None and quantity < item.quantity:
                item.quantity -= quantity
                updated.append(item)
        return await self.set_cart(user_id, updated)

    async def clear_cart(self, user_id: str) -> List[CartItem]:
        return await self.set_cart(user_id, [])

    # ---------------------------
    # Wishlist
    # ---------------------------
    async def _wishlist_ids(self, user_id: str) -> List[str]:
        row = await self.client.get_one("users", "id", user_id)
        return list(row.get("wishlist_products") or [])

    async def wishlist(self, user_id: str) -> List[Product]:
        async def load():
            ids = await self._wishlist_ids(user_id)
            if not ids:
                return []
            result = await self.client.select("products", Query().in_("id", ids))
            return [Product.model_validate(r) for r in result.rows]

        return await self._read(keys.users.wishlist(user_id), load)

    async def set_wishlist(self, user_id: str, product_ids: List[str]) -> List[str]:
        payload = {"wishlist_products": product_ids}
        rows = await self._mutate(
            "updating wishlist for", lambda: self.client.update("users", "id", user_id, payload)
        )
        return list(rows[0].get("wishlist_products") or [])

    async def add_to_wishlist(self, user_id: str, product_id: str) -> List[str]:
        ids = await self._wishlist_ids(user_id)
        if product_id in ids:
            return ids
        return await self.set_wishlist(user_id, ids + [product_id])

    async def remove_from_wishlist(self, user_id: str, product_id: str) -> List[str]:
        ids = await self._wishlist_ids(user_id)
        if product_id not in ids:
            return ids
        return await self.set_wishlist(user_id, [i for i in ids if i != product_id])
