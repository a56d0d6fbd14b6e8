"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from procurement.application.dto import OrderLineSpec
from procurement.domain.exceptions import DomainException
from procurement.domain.model.order import OrderStatus
from procurement.domain.model.reception import LineReception
from procurement.infrastructure.bootstrap import show_order_handler, workflow_engine
from procurement.infrastructure.cli.common import (
    display_order,
    parse_date,
    settings_from,
    unwrap,
)


def _parse_lines(raw: str) -> list[OrderLineSpec]:
    """Parse 'P-1:10:5.00,P-2:4:12.50:USD' into OrderLineSpec list."""
    specs: list[OrderLineSpec] = []
    for chunk in raw.split(","):
        parts = [p.strip() for p in chunk.strip().split(":")]
        if len(parts) not in (3, 4):
            raise click.BadParameter(
                f"Invalid line format '{chunk}'. Expected 'Product:Qty:Price[:Currency]'."
            )
        try:
            qty = int(parts[1])
        except ValueError:
            raise click.BadParameter(f"Invalid quantity '{parts[1]}' for product '{parts[0]}'.")
        specs.append(
            OrderLineSpec(
                product_id=parts[0],
                quantity=qty,
                unit_price=parts[2],
                currency=parts[3] if len(parts) == 4 else None,
            )
        )
    return specs


def _parse_rates(raw: tuple[str, ...]) -> dict[str, str]:
    """Parse ('USD=0.92', 'GBP=1.17') into {currency: rate}."""
    rates: dict[str, str] = {}
    for pair in raw:
        if "=" not in pair:
            raise click.BadParameter(f"Invalid rate '{pair}'. Expected 'CUR=rate'.")
        code, value = pair.split("=", 1)
        rates[code.strip().upper()] = value.strip()
    return rates


def _parse_receptions(raw: str, received_on, comment: str) -> list[LineReception]:
    """Parse '1:10,2:5:1' (line:received[:damaged]) into LineReception list."""
    entries: list[LineReception] = []
    for chunk in raw.split(","):
        parts = [p.strip() for p in chunk.strip().split(":")]
        if len(parts) not in (2, 3):
            raise click.BadParameter(
                f"Invalid reception '{chunk}'. Expected 'Line:Received[:Damaged]'."
            )
        try:
            numbers = [int(p) for p in parts]
        except ValueError:
            raise click.BadParameter(f"Invalid number in reception '{chunk}'.")
        entries.append(
            LineReception(
                line_id=numbers[0],
                quantity_received=numbers[1],
                quantity_damaged=numbers[2] if len(numbers) == 3 else 0,
                received_on=received_on,
                comment=comment,
            )
        )
    return entries


def _show(obj, order_id: int) -> None:
    settings = settings_from(obj)
    engine = workflow_engine(settings)
    display_order(show_order_handler(engine, settings).handle(order_id))


@click.command("create")
@click.option("--supplier", required=True, help="Supplier identifier.")
@click.option("--lines", "lines_str", required=True, help="Lines as 'Product:Qty:Price[:Currency],...'.")
@click.option("--currency", default=None, help="Settlement currency (defaults to settings).")
@click.option("--rate", "rates", multiple=True, help="Conversion rate into the settlement currency, 'USD=0.92'.")
@click.option("--note", default="", help="Free-text note.")
@click.option("--delivery", default=None, help="Estimated delivery date (YYYY-MM-DD).")
@click.pass_obj
def order_create(obj, supplier: str, lines_str: str, currency: str | None, rates, note: str, delivery: str | None) -> None:
    """Create a new purchase order in DRAFT."""
    settings = settings_from(obj)
    engine = workflow_engine(settings)
    result = engine.create_order(
        supplier,
        _parse_lines(lines_str),
        currency or settings.settlement_currency,
        rates=_parse_rates(rates),
        note=note,
        estimated_delivery=parse_date(delivery, "--delivery"),
    )
    order = unwrap(result)
    click.echo(f"Order #{order.id} {order.reference} created  (status={order.status.value})")
    click.echo(f"Total: {order.total_ordered}")


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
@click.pass_obj
def order_show(obj, order_id: int) -> None:
    """Show details of an existing order."""
    try:
        _show(obj, order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))


@click.command("transition")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option(
    "--to",
    "target",
    required=True,
    type=click.Choice([s.value for s in OrderStatus], case_sensitive=False),
    help="Target status.",
)
@click.option("--partial-close", is_flag=True, default=False, help="Close even if not fully reconciled.")
@click.pass_obj
def order_transition(obj, order_id: int, target: str, partial_close: bool) -> None:
    """Move an order to another status."""
    engine = workflow_engine(settings_from(obj))
    try:
        result = engine.apply_transition(
            order_id, OrderStatus(target.upper()), allow_partial_close=partial_close
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))
    order = unwrap(result)
    click.echo(f"Order #{order_id} is now {order.status.value}.")


@click.command("receive")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--lines", "lines_str", required=True, help="Receptions as 'Line:Received[:Damaged],...'.")
@click.option("--date", "date_str", default=None, help="Reception date (YYYY-MM-DD, default today).")
@click.option("--comment", default="", help="Comment stored on each reception.")
@click.option("--rate", "rates", multiple=True, help="Current rate of a line currency into the settlement currency, 'USD=0.92'.")
@click.pass_obj
def order_receive(obj, order_id: int, lines_str: str, date_str: str | None, comment: str, rates) -> None:
    """Record a delivery against an order (all lines or none)."""
    entries = _parse_receptions(lines_str, parse_date(date_str, "--date"), comment)
    engine = workflow_engine(settings_from(obj))
    try:
        result = engine.receive(order_id, entries, rates=_parse_rates(rates))
    except DomainException as exc:
        raise click.ClickException(str(exc))
    order = unwrap(result)
    click.echo(f"Reception recorded on order #{order_id} (status={order.status.value}).")


@click.command("correct-damage")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--line", "line_id", required=True, type=int, help="Line ID.")
@click.option("--damaged", required=True, type=int, help="Corrected damaged quantity.")
@click.pass_obj
def order_correct_damage(obj, order_id: int, line_id: int, damaged: int) -> None:
    """Correct the damaged count of a line before any return is filed."""
    engine = workflow_engine(settings_from(obj))
    try:
        result = engine.correct_damage(order_id, line_id, damaged)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    unwrap(result)
    click.echo(f"Line {line_id} of order #{order_id} now has {damaged} damaged.")
