"""Scripted shopping sessions loaded from YAML."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from rich import print as rprint

from config import load_yaml
from .schemas import Identifier, Product, coerce_id
from .storefront import Storefront

STEP_TYPES = ("login", "register", "add_to_cart", "favourite", "set_quantity", "checkout", "review", "logout")


def load_scenario(path: str | Path) -> Dict[str, Any]:
    """Load a scenario (``name`` plus a ``steps`` list) from YAML."""

    data = load_yaml(path)
    steps = data.get("steps", [])
    if not isinstance(steps, list):
        raise ValueError("Scenario 'steps' must be a list.")
    for step in steps:
        if not isinstance(step, dict) or len(step) != 1:
            raise ValueError(f"Each step must be a single-key mapping, got: {step!r}")
        step_type = next(iter(step))
        if step_type not in STEP_TYPES:
            raise ValueError(f"Unknown step type: {step_type}")
    return data


async def _product(shop: Storefront, product_id: Identifier) -> Product:
    product = await shop.catalog.get(coerce_id(product_id))
    if product is None:
        raise LookupError(f"Product {product_id} not found")
    return product


async def _run_step(shop: Storefront, step_type: str, args: Dict[str, Any]) -> bool:
    if step_type == "login":
        return (await shop.login(args["email"], args["password"])).success
    if step_type == "register":
        return (await shop.register(args["email"], args["password"], args.get("name", ""))).success
    if step_type == "logout":
        shop.logout()
        return True
    if step_type == "add_to_cart":
        product = await _product(shop, args["product_id"])
        for _ in range(int(args.get("times", 1))):
            await shop.cart.add(product)
        return shop.cart.contains(product.id)
    if step_type == "favourite":
        product = await _product(shop, args["product_id"])
        await shop.favourites.add(product)
        return shop.favourites.contains(product.id)
    if step_type == "set_quantity":
        item = shop.cart.find(coerce_id(args["product_id"]))
        if item is None:
            return False
        await shop.cart.update_quantity(item.id, int(args["quantity"]))
        return True
    if step_type == "checkout":
        return (await shop.checkout.run()).success
    if step_type == "review":
        return await shop.reviews.submit(coerce_id(args["product_id"]), int(args["rating"]), args.get("comment", ""))
    raise ValueError(f"Unknown step type: {step_type}")


async def run_scenario(shop: Storefront, scenario: Dict[str, Any]) -> Dict[str, Any]:
    """Execute every step in order, stopping at the first one that fails."""

    rprint(f"[cyan]Scenario:[/cyan] {scenario.get('name', 'unnamed')}")
    results: List[Dict[str, Any]] = []
    success = True

    for index, step in enumerate(scenario.get("steps", []), start=1):
        step_type, args = next(iter(step.items()))
        try:
            passed = await _run_step(shop, step_type, args or {})
        except (LookupError, ValueError) as exc:
            rprint(f"[red]Step {index} ({step_type}) failed:[/red] {exc}")
            passed = False
        results.append({"step": index, "type": step_type, "passed": passed})
        if not passed:
            success = False
            break
        rprint(f"[green]✓ Step {index}:[/green] {step_type}")

    return {
        "name": scenario.get("name", "unnamed"),
        "success": success,
        "steps_executed": len(results),
        "results": results,
        "cart_total": shop.cart.total_price(),
        "notifications": [f"{note.level}: {note.message}" for note in shop.notifier.messages],
    }
