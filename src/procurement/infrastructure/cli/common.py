"""Helpers shared by the CLI command modules."""

from __future__ import annotations

from datetime import date

import click

from procurement.application.dto import OrderDTO
from procurement.application.results import Failure, Result
from procurement.infrastructure.settings import Settings


def settings_from(obj: object) -> Settings:
    return obj if isinstance(obj, Settings) else Settings()


def unwrap(result: Result):
    """Return the success value or turn the failure into a ClickException."""
    if isinstance(result, Failure):
        raise click.ClickException(f"{result.kind}: {result.error.message}")
    return result.value


def parse_date(raw: str | None, option: str) -> date | None:
    if raw is None:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise click.BadParameter(f"Invalid date '{raw}', expected YYYY-MM-DD.", param_hint=option)


def display_order(dto: OrderDTO) -> None:
    click.echo(f"Order #{dto.id} {dto.reference}  (status={dto.status})")
    click.echo(f"Supplier: {dto.supplier_id}")
    click.echo(f"Created:  {dto.created_at}")
    if dto.estimated_delivery:
        click.echo(f"Delivery: {dto.estimated_delivery}")
    if dto.note:
        click.echo(f"Note:     {dto.note}")
    click.echo()

    click.echo(
        f"  {'Line':<5} {'Product':<14} {'Ord':>5} {'Rcv':>5} {'Dmg':>5} "
        f"{'Ret':>5} {'Rsv':>5} {'Status':<10} {'Price':>14} {'Total':>14}"
    )
    click.echo(f"  {'-'*92}")
    for line in dto.lines:
        click.echo(
            f"  {line.id:<5} {line.product_id:<14} {line.quantity_ordered:>5} "
            f"{line.quantity_received:>5} {line.quantity_damaged:>5} "
            f"{line.quantity_returned:>5} {line.quantity_reserved:>5} "
            f"{line.reception_status:<10} {line.unit_price:>14} {line.line_total:>14}"
        )
    click.echo(f"  {'-'*92}")
    click.echo(f"  {'Ordered total':<30} {dto.total_ordered:>62}")
    click.echo(f"  {'Received total':<30} {dto.total_received:>62}")

    if dto.return_requests:
        click.echo()
        click.echo(f"  {'Return':<8} {'Line':>5} {'Qty':>5} {'Status':<10} Motive")
        click.echo(f"  {'-'*50}")
        for ret in dto.return_requests:
            click.echo(
                f"  {ret.reference:<8} {ret.line_id:>5} {ret.quantity:>5} "
                f"{ret.status:<10} {ret.motive}"
            )
