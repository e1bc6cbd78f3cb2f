# storefront/orders.py
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from . import keys
from .errors import NotFound, PartialOrderError, ValidationFailed, describe_error
from .hooks import Hooks
from .models import (
    AdminStats,
    CheckoutIn,
    Order,
    OrderIn,
    OrderItem,
    OrderItemIn,
    OrderStatusUpdate,
    OrderWithItems,
    Page,
    User,
)
from .query import Query, clean_filters, query_from_filters

logger = logging.getLogger(__name__)


def order_number() -> str:
    # epoch millis keeps numbers sortable; the suffix keeps same-millisecond orders apart
    return f"ORD-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6].upper()}"


class OrderHooks(Hooks):
    resource = "orders"

    def __init__(self, client, cache, compensate: bool = True):
        super().__init__(client, cache)
        self.compensate = compensate

    # ---------------------------
    # Reads
    # ---------------------------
    async def by_user(self, user_id: str, page: int = 1, per_page: int = 10) -> Page[Order]:
        async def load():
            q = Query().eq("user_id", user_id).order_by("created_at", desc=True)
            return await self._page("orders", q, page, per_page, Order)

        return await self._read(keys.orders.by_user(user_id, {"page": page, "per_page": per_page}), load)

    async def list(self, page: int = 1, per_page: int = 20, filters: Optional[Dict[str, Any]] = None) -> Page[Order]:
        params = clean_filters(filters or {})

        async def load():
            q = query_from_filters(params).order_by("created_at", desc=True)
            return await self._page("orders", q, page, per_page, Order)

        return await self._read(keys.orders.list({"page": page, "per_page": per_page, "filters": params}), load)

    async def get(self, order_id: str) -> OrderWithItems:
        async def load():
            order = await self.client.get_one("orders", "id", order_id)
            items = await self.client.select("order_items", Query().eq("order_id", order_id).order_by("created_at"))
            return OrderWithItems.model_validate({**order, "items": items.rows})

        return await self._read(keys.orders.details(order_id), load)

    # ---------------------------
    # Writes
    # ---------------------------
    async def create(self, order: OrderIn, items: List[OrderItemIn]) -> OrderWithItems:
        """
        Write the order row, then each item row, then empty the owner's cart.

        These are separate remote calls with no transaction around them. If an
        item insert fails a PartialOrderError is raised; when compensation is
        on, the rows already written are deleted first.
        """
        if not items:
            raise ValidationFailed({"items": "An order needs at least one item"})

        row = order.to_row()
        row["order_number"] = order_number()
        row["order_date"] = datetime.now(timezone.utc).isoformat()
        created = (await self._mutate("creating", lambda: self.client.insert("orders", row)))[0]

        written: List[Dict[str, Any]] = []
        for item in items:
            try:
                written.extend(await self.client.insert("order_items", {**item.to_row(), "order_id": created["id"]}))
            except Exception as e:
                logger.error(
                    "Error creating order %s: item %d of %d failed: %s",
                    created["order_number"], len(written) + 1, len(items), describe_error(e),
                )
                compensated = False
                if self.compensate:
                    compensated = await self._rollback(created, written)
                self._invalidate(created)
                raise PartialOrderError(created, written, len(items), e, compensated) from e

        await self._mutate(
            "clearing cart after",
            lambda: self.client.update("users", "id", order.user_id, {"cart_products": []}),
            resource="users",
        )
        self._invalidate(created)
        return OrderWithItems.model_validate({**created, "items": written})

    async def _rollback(self, order: Dict[str, Any], items: List[Dict[str, Any]]) -> bool:
        try:
            for item in items:
                await self.client.delete("order_items", "id", item["id"])
            await self.client.delete("orders", "id", order["id"])
        except Exception as e:
            logger.error("Compensation for order %s failed: %s", order.get("order_number"), describe_error(e))
            return False
        logger.warning("Order %s rolled back after a failed item write", order.get("order_number"))
        return True

    async def checkout(self, user: User, details: CheckoutIn, tax_rate: float = 0) -> OrderWithItems:
        """Turn the user's cart (at its snapshotted prices) into an order."""
        cart = (await self.client.get_one("users", "id", user.id)).get("cart_products") or []
        if not cart:
            raise ValidationFailed({"cart": "cart empty"})

        items = []
        subtotal = 0.0
        discount = 0.0
        for entry in cart:
            quantity = int(entry.get("quantity") or 0)
            # a final_price of 0 is a real price (100% discount), not a missing one
            snapshot = entry.get("final_price")
            unit = float(snapshot if snapshot is not None else entry.get("price") or 0)
            list_price = float(entry["price"]) if entry.get("price") is not None else unit
            line = unit * quantity
            subtotal += line
            discount += (list_price - unit) * quantity
            items.append(
                OrderItemIn(
                    product_id=entry["id"],
                    product_name=entry.get("name"),
                    quantity=quantity,
                    unit_price=unit,
                    discount_applied=max(list_price - unit, 0) * quantity,
                    total_price=line,
                )
            )

        tax = round(subtotal * (tax_rate or 0) / 100, 2)
        order = OrderIn(
            user_id=user.id,
            shipping_address=details.shipping_address or user.default_address,
            billing_address=details.billing_address or details.shipping_address or user.default_address,
            total_amount=round(subtotal + tax + details.shipping_cost, 2),
            shipping_cost=details.shipping_cost,
            tax_amount=tax,
            discount_applied=round(max(discount, 0), 2),
        )
        return await self.create(order, items)

    async def update_status(self, order_id: str, status: OrderStatusUpdate) -> Order:
        changes = status.to_row()
        if not changes:
            raise ValidationFailed({"status": "No updates provided"})
        rows = await self._mutate("updating status of", lambda: self.client.update("orders", "id", order_id, changes))
        return Order.model_validate(rows[0])

    # ---------------------------
    # Admin dashboard
    # ---------------------------
    async def stats(self) -> AdminStats:
        async def load():
            paid = await self.client.select("orders", Query().eq("payment_status", "paid"))
            return AdminStats(
                total_products=await self.client.count("products"),
                total_users=await self.client.count("users"),
                total_orders=await self.client.count("orders"),
                total_revenue=sum(float(o.get("total_amount") or 0) for o in paid.rows),
            )

        return await self._read(keys.stats.details, load)


async def owned_order(hooks: OrderHooks, order_id: str, user_id: str) -> OrderWithItems:
    order = await hooks.get(order_id)
    if order.user_id != user_id:
        raise NotFound(f"orders: no row with id={order_id}")
    return order
