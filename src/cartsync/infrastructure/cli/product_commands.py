"""CLI commands for the product catalog."""

from __future__ import annotations

import asyncio
from decimal import Decimal

import click

from cartsync.domain.model.product import DealType, DiscountType, ProductSnapshot
from cartsync.infrastructure.bootstrap import product_source


@click.command("add")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, type=Decimal, help="Price (e.g. 150.00).")
@click.option("--stock", required=True, type=int, help="Units in stock.")
@click.option("--base-price", type=Decimal, default=None, help="Base price if not --price.")
@click.option("--variation-price", type=Decimal, default=None, help="Replaces the base price.")
@click.option("--seasonal-discount", type=Decimal, default=None, help="Percent or fixed amount.")
@click.option(
    "--seasonal-discount-type",
    type=click.Choice([t.value for t in DiscountType]),
    default=DiscountType.PERCENTAGE.value,
    show_default=True,
)
@click.option("--seasonal-discount-active/--seasonal-discount-inactive", default=False)
@click.option("--deal", "deal_type", type=click.Choice([d.value for d in DealType]), default=None)
@click.option("--deal-value", default=None, help="Bundle terms, e.g. '3 for 2'.")
@click.pass_context
def product_add(
    ctx: click.Context,
    product_id: str,
    name: str,
    price: Decimal,
    stock: int,
    base_price: Decimal | None,
    variation_price: Decimal | None,
    seasonal_discount: Decimal | None,
    seasonal_discount_type: str,
    seasonal_discount_active: bool,
    deal_type: str | None,
    deal_value: str | None,
) -> None:
    """Add or replace a product in the catalog."""
    source = product_source(ctx.obj["settings"])
    product = ProductSnapshot.from_record(
        {
            "id": product_id,
            "name": name,
            "price": price,
            "stock": stock,
            "base_price": base_price,
            "variation_price": variation_price,
            "seasonal_discount": seasonal_discount,
            "seasonal_discount_type": seasonal_discount_type,
            "seasonal_discount_active": seasonal_discount_active,
            "deal_type": deal_type,
            "deal_value": deal_value,
        }
    )
    source.save(product)
    click.echo(f"Product #{product.id} '{product.name}' saved at Rs. {product.price:,.2f}")


@click.command("list")
@click.pass_context
def product_list(ctx: click.Context) -> None:
    """List all products in the catalog."""
    products = asyncio.run(product_source(ctx.obj["settings"]).list_all())

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<20} {'Price':>14} {'Stock':>6}")
    click.echo("-" * 49)
    for p in products:
        price = f"Rs. {p.price:,.2f}"
        click.echo(f"{p.id:<6} {p.name:<20} {price:>14} {p.stock:>6}")
