import logging
from pathlib import Path

import click

from procurement.domain.exceptions import DomainException
from procurement.infrastructure.cli.order_commands import (
    order_correct_damage,
    order_create,
    order_receive,
    order_show,
    order_transition,
)
from procurement.infrastructure.cli.return_commands import (
    return_approve,
    return_process,
    return_reject,
    return_request,
)
from procurement.infrastructure.settings import Settings


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s - %(message)s",
        datefmt="%H:%M:%S",
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory of the order store (overrides PROCUREMENT_DATA_DIR).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, data_dir: Path | None) -> None:
    """Procurement: purchase orders, receptions and supplier returns."""
    try:
        settings = Settings(data_dir=data_dir) if data_dir else Settings()
    except DomainException as exc:
        raise click.ClickException(str(exc))
    _setup_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = settings


@cli.group("order")
def order() -> None:
    """Manage purchase orders."""


@cli.group("return")
def return_() -> None:
    """Manage supplier returns."""


# Register subcommands
order.add_command(order_create)
order.add_command(order_show)
order.add_command(order_transition)
order.add_command(order_receive)
order.add_command(order_correct_damage)
return_.add_command(return_request)
return_.add_command(return_approve)
return_.add_command(return_reject)
return_.add_command(return_process)
