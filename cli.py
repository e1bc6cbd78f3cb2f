# cli.py
import os
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table
from rich.text import Text

from storefront_sdk import StorefrontClient

console = Console()
c: Optional[StorefrontClient] = None

status_message = "Ready"
product_cache: List[Dict[str, Any]] = []

custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


# ---------------------------
# Display helpers
# ---------------------------
def _money(value: Any) -> str:
    return f"${float(value or 0):.2f}"


def show_products(products: List[Dict[str, Any]], title: str = "📦 Products"):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(title=title, box=box.ROUNDED, header_style="bold cyan", title_style="bold magenta", show_lines=True)
    table.add_column("Slug", style="dim", width=24)
    table.add_column("Name", style="bold", width=24)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Final", justify="right", width=10)
    table.add_column("Stock", justify="right", width=7)
    table.add_column("Flags", width=14)

    for p in products:
        flags = []
        if p.get("trending"):
            flags.append("🔥")
        if not p.get("is_published", True):
            flags.append("draft")
        table.add_row(
            p.get("slug") or "N/A",
            p.get("name") or "N/A",
            _money(p.get("price")),
            _money(p.get("final_price")),
            str(p.get("inventory", 0)),
            " ".join(flags),
        )
    console.print(table)


def show_page(page: Dict[str, Any], title: str):
    show_products(page.get("items", []), title=title)
    console.print(
        f"[dim]page {page.get('current_page', 1)} of {page.get('total_pages', 0)} "
        f"({page.get('total_count', 0)} results)[/dim]"
    )


def show_categories(tree: List[Dict[str, Any]]):
    if not tree:
        console.print("[italic yellow]No categories[/italic yellow]")
        return
    table = Table(title="🗂️ Categories", box=box.ROUNDED, header_style="bold cyan")
    table.add_column("Category", style="bold")
    table.add_column("Slug", style="dim")
    for parent in tree:
        table.add_row(parent.get("name") or "", parent.get("slug") or "")
        for sub in parent.get("subcategories", []):
            table.add_row(f"  └ {sub.get('name')}", sub.get("slug") or "")
    console.print(table)


def show_cart(cart: Dict[str, Any]):
    if not cart:
        console.print("[italic yellow]No cart data[/italic yellow]")
        return

    title = Text()
    title.append("🛒 Shopping Cart", style="bold")
    title.append(f" - Total: {_money(cart.get('total'))}", style="bold green")

    items = cart.get("items", [])
    if not items:
        console.print(Panel("Your cart is empty 🛍️", title=title, style="blue"))
        return

    table = Table(box=box.ROUNDED, header_style="bold blue", show_lines=True)
    table.add_column("Product", style="bold", width=30)
    table.add_column("Qty", justify="right", width=8)
    table.add_column("Price", justify="right", width=12)
    table.add_column("Subtotal", justify="right", width=12)
    for it in items:
        unit = it.get("final_price") or 0
        table.add_row(it.get("name") or it.get("id", "?"), str(it.get("quantity", 0)), _money(unit),
                      _money(unit * it.get("quantity", 0)))
    console.print(Panel(table, title=title, border_style="blue"))


def show_orders(orders: List[Dict[str, Any]]):
    if not orders:
        console.print("[italic yellow]No orders found[/italic yellow]")
        return

    table = Table(title="📋 Orders", box=box.ROUNDED, header_style="bold yellow", title_style="bold yellow",
                  show_lines=True)
    table.add_column("Order", style="dim", width=26)
    table.add_column("Date", width=20)
    table.add_column("Payment", width=10)
    table.add_column("Shipping", width=12)
    table.add_column("Total", justify="right", width=12)

    for order in orders:
        paid = order.get("payment_status") == "paid"
        style = "green" if paid else "yellow"
        table.add_row(
            order.get("order_number") or order.get("id", "N/A"),
            (order.get("order_date") or "")[:19],
            f"[{style}]{order.get('payment_status') or 'N/A'}[/{style}]",
            order.get("shipping_status") or "N/A",
            _money(order.get("total_amount")),
        )
    console.print(table)


def show_stats(stats: Dict[str, Any]):
    console.print(Panel.fit(
        f"📦 Products: [bold]{stats.get('total_products', 0)}[/bold]\n"
        f"👥 Users: [bold]{stats.get('total_users', 0)}[/bold]\n"
        f"🧾 Orders: [bold]{stats.get('total_orders', 0)}[/bold]\n"
        f"💰 Revenue: [bold green]{_money(stats.get('total_revenue'))}[/bold green]",
        title="📊 Dashboard", border_style="green",
    ))


def show_users(page: Dict[str, Any]):
    users = page.get("items", [])
    if not users:
        console.print("[italic yellow]No users found[/italic yellow]")
        return
    table = Table(title="👥 Users", box=box.ROUNDED, header_style="bold cyan")
    table.add_column("Subject", style="dim")
    table.add_column("Name")
    table.add_column("Email")
    table.add_column("Role")
    for u in users:
        role = u.get("role", "user")
        style = "red" if role == "admin" else "white"
        table.add_row(u.get("clerk_id", ""), u.get("name") or "", u.get("email") or "", f"[{style}]{role}[/{style}]")
    console.print(table)


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


# ---------------------------
# API wrapper
# ---------------------------
def try_api(fn, *args, success_msg: Optional[str] = None, **kwargs):
    """
    Calls fn(*args, **kwargs) behind a spinner.
    Returns the decoded result, or None after printing the error.
    """
    global status_message
    try:
        with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), transient=True) as progress:
            progress.add_task(description="Processing...", total=None)
            result = fn(*args, **kwargs)
        if success_msg:
            status_message = success_msg
            console.print(show_status(success_msg, True))
        return result
    except Exception as e:
        detail = _error_detail(e)
        status_message = f"Error: {detail}"
        console.print(show_status(status_message, False))
        return None


def _error_detail(e: Exception) -> str:
    response = getattr(e, "response", None)
    if response is not None:
        try:
            return str(response.json().get("detail", e))
        except ValueError:
            return f"HTTP {response.status_code}"
    return str(e)


# ---------------------------
# Autocompletion helpers
# ---------------------------
def get_product_completer(by: str = "slug"):
    global product_cache
    if not product_cache:
        page = try_api(c.list_products, per_page=100) or {}
        product_cache = page.get("items", [])
    return WordCompleter([p.get(by) or "" for p in product_cache if p.get(by)], ignore_case=True)


def product_id_for(ref: str) -> str:
    for p in product_cache:
        if ref in (p.get("slug"), p.get("id"), p.get("name")):
            return p["id"]
    return ref


def create_header(role: Optional[str]):
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)
    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    header.add_row("🛍️ Storefront", f"[bold blue]Signed in as: {role or 'guest'}[/bold blue]", f"[dim]{now}[/dim]")
    return Panel(header, style="bold blue")


def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


# ---------------------------
# Main menu
# ---------------------------
SHOPPER_OPTIONS = [
    ("1", "📦 Browse products"),
    ("2", "🔍 Search products"),
    ("3", "ℹ️ Product details"),
    ("4", "🗂️ Categories"),
    ("5", "🛒 Add to cart"),
    ("6", "➖ Remove from cart"),
    ("7", "🛒 View cart"),
    ("8", "✅ Checkout"),
    ("9", "📋 My orders"),
    ("10", "💚 Wishlist"),
]

ADMIN_OPTIONS = [
    ("a1", "📊 Dashboard"),
    ("a2", "🗃️ All products"),
    ("a3", "👥 Users"),
    ("a4", "🔑 Set user role"),
    ("a5", "🚚 Update order status"),
]


def menu():
    global product_cache

    # UX only: every admin call is checked again by the server
    role_info = try_api(c.my_role) or {}
    is_admin = bool(role_info.get("is_admin"))

    console.clear()
    console.print(create_header(role_info.get("role")))
    product_cache = (try_api(c.list_products, per_page=100) or {}).get("items", [])

    while True:
        if status_message:
            console.print(show_status(status_message, "Error" not in status_message))

        options = SHOPPER_OPTIONS + (ADMIN_OPTIONS if is_admin else []) + [("q", "👋 Quit")]
        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        for key, label in options:
            menu_table.add_row(key, label)
        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option", completer=WordCompleter([k for k, _ in options] + ["quit", "exit"])
        ).strip()

        if choice == "1":
            page = IntPrompt.ask("Page", default=1)
            res = try_api(c.list_products, page=page, success_msg="Products loaded")
            if res is not None:
                show_page(res, "📦 Products")

        elif choice == "2":
            term = prompt_with_autocomplete("Enter search term")
            res = try_api(c.search_products, term, success_msg=f"Search for '{term}' completed")
            if res is not None:
                show_page(res, f"🔍 Results for '{term}'")

        elif choice == "3":
            slug = prompt_with_autocomplete("Product slug", completer=get_product_completer())
            res = try_api(c.get_product, slug)
            if res:
                show_products([res], title=f"ℹ️ {res.get('name')}")
                if res.get("category"):
                    console.print(f"[dim]Category: {res['category'].get('name')}[/dim]")
                console.print(res.get("details") or "")

        elif choice == "4":
            res = try_api(c.category_tree)
            if res is not None:
                show_categories(res)

        elif choice == "5":
            ref = prompt_with_autocomplete("Product slug", completer=get_product_completer())
            qty = IntPrompt.ask("Quantity", default=1)
            res = try_api(c.add_to_cart, product_id_for(ref), qty, success_msg=f"Added {qty} x {ref} to cart")
            if res is not None:
                show_cart(res)

        elif choice == "6":
            ref = prompt_with_autocomplete("Product slug", completer=get_product_completer())
            if Confirm.ask("Remove entire item from cart?"):
                res = try_api(c.remove_from_cart, product_id_for(ref), success_msg=f"{ref} removed from cart")
            else:
                qty = IntPrompt.ask("Quantity to remove", default=1)
                res = try_api(c.remove_from_cart, product_id_for(ref), qty, success_msg=f"Removed {qty} x {ref}")
            if res is not None:
                show_cart(res)

        elif choice == "7":
            res = try_api(c.view_cart)
            if res is not None:
                show_cart(res)

        elif choice == "8":
            address = Prompt.ask("Shipping address")
            res = try_api(c.checkout, shipping_address=address, success_msg="Order placed")
            if res:
                console.print(Panel.fit(
                    f"[green]Order placed successfully![/green]\n"
                    f"Order: [bold]{res.get('order_number')}[/bold]\n"
                    f"Items: [bold]{len(res.get('items', []))}[/bold]\n"
                    f"Total: [bold]{_money(res.get('total_amount'))}[/bold]",
                    title="✅ Order Confirmation",
                ))

        elif choice == "9":
            res = try_api(c.list_orders)
            if res is not None:
                show_orders(res.get("items", []))

        elif choice == "10":
            res = try_api(c.wishlist)
            if res is not None:
                show_products(res, title="💚 Wishlist")

        elif is_admin and choice == "a1":
            res = try_api(c.admin_stats)
            if res:
                show_stats(res)

        elif is_admin and choice == "a2":
            res = try_api(c.admin_products, per_page=50)
            if res is not None:
                show_page(res, "🗃️ All products")

        elif is_admin and choice == "a3":
            term = Prompt.ask("Search (blank for all)", default="")
            res = try_api(c.list_users, search=term or None)
            if res is not None:
                show_users(res)

        elif is_admin and choice == "a4":
            subject = Prompt.ask("User subject id")
            role = Prompt.ask("Role", choices=["user", "moderator", "admin"], default="user")
            try_api(c.set_role, subject, role, success_msg=f"{subject} is now {role}")

        elif is_admin and choice == "a5":
            order_id = Prompt.ask("Order id")
            payment = Prompt.ask("Payment status (blank to keep)", default="")
            shipping = Prompt.ask("Shipping status (blank to keep)", default="")
            changes = {k: v for k, v in (("payment_status", payment), ("shipping_status", shipping)) if v}
            try_api(c.update_order_status, order_id, success_msg="Order updated", **changes)

        elif choice.lower() in ("q", "quit", "exit"):
            if Confirm.ask("Are you sure you want to quit?"):
                console.print(Panel.fit("[bold green]Thanks for shopping! 👋[/bold green]", title="Goodbye"))
                sys.exit(0)

        console.print()
        console.rule(style="dim")


def main():
    global c
    c = StorefrontClient(
        base_url=os.getenv("STOREFRONT_URL", "http://127.0.0.1:8085"),
        token=os.getenv("STOREFRONT_TOKEN") or None,
    )
    try:
        menu()
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
