import argparse
import asyncio
import sys
from typing import List, Optional

from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.table import Table

from config import load_settings
from shop.catalog import SORT_OPTIONS, filter_products, stock_label
from shop.errors import ValidationError
from shop.notifications import Notifier
from shop.orders import status_label
from shop.scenario import load_scenario, run_scenario
from shop.schemas import coerce_id
from shop.session import validate_registration
from shop.storefront import Storefront

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Storefront client: browse, shop and manage orders from the terminal.")
    parser.add_argument("--api-url", help="Base URL of the storefront API (default: API_BASE_URL or http://localhost:3001)")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Sign in")
    login.add_argument("email")
    login.add_argument("--password")

    register = sub.add_parser("register", help="Create an account and sign in")
    register.add_argument("email")
    register.add_argument("name")

    sub.add_parser("logout", help="Forget the stored session")
    sub.add_parser("whoami", help="Show the signed-in user")

    profile = sub.add_parser("profile", help="Update contact details")
    for field in ("name", "email", "phone", "address"):
        profile.add_argument(f"--{field}")

    products = sub.add_parser("products", help="List products")
    products.add_argument("--search", default="")
    products.add_argument("--category", default="All")
    products.add_argument("--min-price", type=float, default=0)
    products.add_argument("--max-price", type=float, default=15000)
    products.add_argument("--min-rating", type=float, default=0)
    products.add_argument("--sort", choices=SORT_OPTIONS, default="default")

    product = sub.add_parser("product", help="Show one product with its reviews")
    product.add_argument("product_id")

    sub.add_parser("cart", help="Show the cart")
    add = sub.add_parser("add", help="Add a product to the cart")
    add.add_argument("product_id")
    qty = sub.add_parser("qty", help="Set the quantity of a cart line (0 removes it)")
    qty.add_argument("item_id")
    qty.add_argument("quantity", type=int)
    remove = sub.add_parser("remove", help="Remove a cart line")
    remove.add_argument("item_id")
    sub.add_parser("clear-cart", help="Empty the cart")

    sub.add_parser("favourites", help="Show favourites")
    fav = sub.add_parser("fav", help="Toggle a product in favourites")
    fav.add_argument("product_id")

    sub.add_parser("checkout", help="Place an order for the cart")
    sub.add_parser("orders", help="Show order history")
    cancel = sub.add_parser("cancel", help="Cancel a pending or processing order")
    cancel.add_argument("order_id")
    delete_order = sub.add_parser("delete-order", help="Delete an order")
    delete_order.add_argument("order_id")

    review = sub.add_parser("review", help="Write or update your review of a product")
    review.add_argument("product_id")
    review.add_argument("rating", type=int, choices=range(1, 6))
    review.add_argument("comment")
    delete_review = sub.add_parser("delete-review", help="Delete one of your reviews")
    delete_review.add_argument("review_id")

    run = sub.add_parser("run", help="Run a scripted shopping scenario")
    run.add_argument("scenario", help="Path to scenario YAML file")

    return parser


def _require_user(shop: Storefront) -> bool:
    if shop.user is None:
        console.print("[yellow]Please login first.[/yellow]")
        return False
    return True


def _print_cart(shop: Storefront) -> None:
    if not shop.cart.items:
        console.print("[dim]Your cart is empty.[/dim]")
        return
    table = Table(title="Cart")
    table.add_column("Line")
    table.add_column("Product")
    table.add_column("Price", justify="right")
    table.add_column("Qty", justify="right")
    table.add_column("Subtotal", justify="right")
    for item in shop.cart.items:
        table.add_row(
            str(item.id),
            item.product.name,
            f"${item.product.price:.2f}",
            str(item.quantity),
            f"${item.product.price * item.quantity:.2f}",
        )
    console.print(table)
    console.print(f"[bold]Total:[/bold] ${shop.cart.total_price():.2f}")


async def dispatch(shop: Storefront, args: argparse.Namespace) -> int:
    command = args.command

    if command == "login":
        password = args.password or Prompt.ask("Password", password=True)
        result = await shop.login(args.email, password)
        if result.success:
            shop.notifier.success("Login successful! Welcome back!")
            return 0
        shop.notifier.error(result.error or "Login failed. Please check your credentials.")
        return 1

    if command == "register":
        password = Prompt.ask("Password", password=True)
        confirm_password = Prompt.ask("Confirm password", password=True)
        try:
            validate_registration(password, confirm_password)
        except ValidationError as exc:
            shop.notifier.error(str(exc))
            return 1
        result = await shop.register(args.email, password, args.name)
        if result.success:
            shop.notifier.success("Account created successfully! Welcome!")
            return 0
        shop.notifier.error(result.error or "Registration failed. Please try again.")
        return 1

    if command == "logout":
        shop.logout()
        shop.notifier.info("Logged out")
        return 0

    if command == "products":
        products = await shop.catalog.load()
        listed = filter_products(
            products,
            search=args.search,
            category=args.category,
            price_range=(args.min_price, args.max_price),
            min_rating=args.min_rating,
            sort_by=args.sort,
        )
        table = Table(title=f"Showing {len(listed)} of {len(products)} products")
        for column in ("ID", "Name", "Category", "Price", "Rating", "Stock"):
            table.add_column(column)
        for item in listed:
            table.add_row(
                str(item.id),
                item.name,
                item.category,
                f"${item.price:.2f}",
                f"{item.rating:.1f}",
                stock_label(item),
            )
        console.print(table)
        return 0

    if command == "product":
        product = await shop.catalog.get(coerce_id(args.product_id))
        if product is None:
            shop.notifier.error("Product not found")
            return 1
        console.print(f"[bold]{product.name}[/bold]  ${product.price:.2f}  ({stock_label(product)})")
        console.print(product.description)
        for key, value in product.specs.items():
            console.print(f"  [cyan]{key}:[/cyan] {value}")
        reviews = await shop.reviews.load(product.id)
        console.print(f"\n[bold]Reviews[/bold] ({len(reviews)}) average {shop.reviews.average()} / 5.0")
        for review in reviews:
            console.print(f"  [{review.id}] {review.user_name}: {'*' * review.rating} {review.comment}")
        await shop.catalog.load()
        related = shop.catalog.related(product)
        if related:
            console.print("\n[bold]Related:[/bold] " + ", ".join(p.name for p in related))
        return 0

    if command == "run":
        scenario = load_scenario(args.scenario)
        summary = await run_scenario(shop, scenario)
        console.print(summary)
        return 0 if summary["success"] else 1

    if not _require_user(shop):
        return 1

    if command == "whoami":
        user = shop.user
        console.print(f"{user.name} <{user.email}> phone={user.phone or '-'} address={user.address or '-'}")
        return 0

    if command == "profile":
        fields = {key: getattr(args, key) for key in ("name", "email", "phone", "address") if getattr(args, key)}
        if await shop.session.update_profile(fields):
            shop.notifier.success("Profile updated successfully!")
            return 0
        shop.notifier.error("Failed to update profile. Please try again.")
        return 1

    if command == "cart":
        _print_cart(shop)
        return 0

    if command == "add":
        product = await shop.catalog.get(coerce_id(args.product_id))
        if product is None:
            shop.notifier.error("Product not found")
            return 1
        await shop.cart.add(product)
        shop.notifier.success("Product added to cart!")
        _print_cart(shop)
        return 0

    if command == "qty":
        item_id = coerce_id(args.item_id)
        item = next((line for line in shop.cart.items if line.id == item_id), None)
        if item is not None and args.quantity > item.product.stock:
            shop.notifier.warning(f"Only {item.product.stock} units available")
            return 1
        await shop.cart.update_quantity(item_id, args.quantity)
        _print_cart(shop)
        return 0

    if command == "remove":
        await shop.cart.remove(coerce_id(args.item_id))
        _print_cart(shop)
        return 0

    if command == "clear-cart":
        await shop.cart.clear()
        _print_cart(shop)
        return 0

    if command == "favourites":
        for item in shop.favourites.items:
            console.print(f"  {item.product.id}: {item.product.name} (${item.product.price:.2f})")
        if not shop.favourites.items:
            console.print("[dim]No favourites yet.[/dim]")
        return 0

    if command == "fav":
        product = await shop.catalog.get(coerce_id(args.product_id))
        if product is None:
            shop.notifier.error("Product not found")
            return 1
        if await shop.favourites.toggle(product):
            shop.notifier.success("Added to favourites!")
        else:
            shop.notifier.info("Removed from favourites")
        return 0

    if command == "checkout":
        result = await shop.checkout.run()
        return 0 if result.success else 1

    if command == "orders":
        orders = await shop.orders.load()
        table = Table(title="Orders")
        for column in ("ID", "Date", "Items", "Total", "Status"):
            table.add_column(column)
        for order in orders:
            table.add_row(
                str(order.id),
                order.date[:10],
                str(sum(line.quantity for line in order.items)),
                f"${order.total:.2f}",
                status_label(order.status),
            )
        console.print(table)
        return 0

    if command == "cancel":
        await shop.orders.load()
        order = shop.orders.get(coerce_id(args.order_id))
        if order is None:
            shop.notifier.error("Order not found")
            return 1
        return 0 if await shop.orders.cancel(order) else 1

    if command == "delete-order":
        return 0 if await shop.orders.delete(coerce_id(args.order_id)) else 1

    if command == "review":
        ok = await shop.reviews.submit(coerce_id(args.product_id), args.rating, args.comment)
        return 0 if ok else 1

    if command == "delete-review":
        return 0 if await shop.reviews.delete(coerce_id(args.review_id)) else 1

    raise ValueError(f"Unknown command: {command}")


async def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    cfg = load_settings()
    if args.api_url:
        cfg.api_base_url = args.api_url

    shop = Storefront(
        notifier=Notifier(console),
        confirm=lambda message: Confirm.ask(message),
        settings=cfg,
    )
    await shop.start()
    return await dispatch(shop, args)


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
