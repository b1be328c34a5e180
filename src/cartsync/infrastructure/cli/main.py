import logging

import click

from cartsync.infrastructure.cli.cart_commands import (
    cart_add,
    cart_clear,
    cart_remove,
    cart_show,
    cart_sync,
    cart_update,
    cart_validate,
)
from cartsync.infrastructure.cli.product_commands import product_add, product_list
from cartsync.infrastructure.config import load_settings


@click.group()
@click.option("--offline", is_flag=True, default=False, help="Act as if the network is down.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log debug output.")
@click.pass_context
def cli(ctx: click.Context, offline: bool, verbose: bool) -> None:
    """cartsync: shopping cart engine with offline sync"""
    settings = load_settings()
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["online"] = not offline
    ctx.obj["verbose"] = verbose
    ctx.obj["settings"] = settings


@cli.group()
def cart() -> None:
    """Manage the shopping cart."""


@cli.group()
def product() -> None:
    """Inspect the product catalog."""


# Register subcommands
cart.add_command(cart_add)
cart.add_command(cart_remove)
cart.add_command(cart_update)
cart.add_command(cart_clear)
cart.add_command(cart_show)
cart.add_command(cart_validate)
cart.add_command(cart_sync)
product.add_command(product_add)
product.add_command(product_list)
