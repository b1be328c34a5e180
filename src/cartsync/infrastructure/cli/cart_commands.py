"""CLI commands for the shopping cart."""

from __future__ import annotations

import asyncio

import click

from cartsync.application.show_cart import ShowCartHandler
from cartsync.domain.exceptions import DomainException
from cartsync.domain.model.notices import CartNotice
from cartsync.infrastructure.bootstrap import Engine, build_engine


def _engine(ctx: click.Context) -> Engine:
    return build_engine(online=ctx.obj["online"], settings=ctx.obj["settings"])


def _echo_notices(notices: list[CartNotice]) -> None:
    for notice in notices:
        click.echo(f"! {notice.message}")


def _echo_error_stats(ctx: click.Context, engine: Engine) -> None:
    stats = engine.error_stats
    if not ctx.obj.get("verbose") or not stats.total:
        return
    kinds = sorted(stats.by_kind.items(), key=lambda pair: pair[0].value)
    click.echo("Errors seen: " + ", ".join(f"{kind.value}={n}" for kind, n in kinds))


def _display_cart(engine: Engine) -> None:
    dto = ShowCartHandler(engine.store).handle()

    if not dto.lines:
        click.echo("Cart is empty.")
    else:
        click.echo(f"  {'Product':<20} {'Qty':>5} {'Price':>14} {'Total':>14}")
        click.echo(f"  {'-'*56}")
        for line in dto.lines:
            click.echo(
                f"  {line.name:<20} {line.quantity:>5} {line.unit_price:>14} {line.line_total:>14}"
            )
            if line.deal:
                click.echo(f"    deal: {line.deal}")
        click.echo(f"  {'-'*56}")
        click.echo(f"  {'Subtotal':<27} {dto.subtotal:>29}")
        click.echo(f"  {'Savings':<27} {dto.savings:>29}")
        click.echo(f"  {'Total':<27} {dto.total:>29}")
        click.echo(f"  {'Items':<27} {dto.item_count:>29}")

    if dto.pending_sync_count:
        click.echo(f"{dto.pending_sync_count} change(s) waiting to sync.")


@click.command("add")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.pass_context
def cart_add(ctx: click.Context, product_id: str) -> None:
    """Add one unit of a product to the cart."""
    engine = _engine(ctx)

    try:
        product = asyncio.run(engine.product_source.get_by_id(product_id))
        notices = engine.store.add_item(product)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _echo_notices(notices)
    click.echo(f"Added {product.name} to cart.")
    _display_cart(engine)


@click.command("remove")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.pass_context
def cart_remove(ctx: click.Context, product_id: str) -> None:
    """Remove a product from the cart."""
    engine = _engine(ctx)
    engine.store.remove_item(product_id)
    _display_cart(engine)


@click.command("update")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int, help="New quantity (0 removes).")
@click.pass_context
def cart_update(ctx: click.Context, product_id: str, quantity: int) -> None:
    """Set the quantity of a cart line."""
    engine = _engine(ctx)

    try:
        notices = engine.store.update_quantity(product_id, quantity)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _echo_notices(notices)
    _display_cart(engine)


@click.command("clear")
@click.pass_context
def cart_clear(ctx: click.Context) -> None:
    """Empty the cart."""
    engine = _engine(ctx)
    engine.store.clear()
    click.echo("Cart cleared.")


@click.command("show")
@click.pass_context
def cart_show(ctx: click.Context) -> None:
    """Show the cart with totals and applied deals."""
    _display_cart(_engine(ctx))


@click.command("validate")
@click.pass_context
def cart_validate(ctx: click.Context) -> None:
    """Check prices and stock against the catalog."""
    engine = _engine(ctx)
    if engine.store.is_offline:
        raise click.ClickException("Cannot validate the cart while offline")

    notices = asyncio.run(engine.validator.handle())

    _echo_notices(notices)
    if not notices:
        click.echo("Cart is up to date.")
    _display_cart(engine)
    _echo_error_stats(ctx, engine)


@click.command("sync")
@click.pass_context
def cart_sync(ctx: click.Context) -> None:
    """Replay changes made while offline."""
    engine = _engine(ctx)
    if engine.store.is_offline:
        raise click.ClickException("Cannot sync while offline")

    report = asyncio.run(engine.sync_manager.drain())

    _echo_notices(report.notices)
    click.echo(
        f"Synced {len(report.synced)}, deferred {len(report.deferred)}, "
        f"dropped {len(report.dropped)} change(s)."
    )
    _echo_error_stats(ctx, engine)
