"""CLI commands for supplier returns."""

from __future__ import annotations

import click

from procurement.domain.exceptions import DomainException
from procurement.domain.model.return_request import ReturnStatus
from procurement.infrastructure.bootstrap import workflow_engine
from procurement.infrastructure.cli.common import settings_from, unwrap

_order_option = click.option("--order", "order_id", required=True, type=int, help="Order ID.")
_return_option = click.option("--id", "return_id", required=True, type=int, help="Return request ID.")


@click.command("request")
@_order_option
@click.option("--line", "line_id", required=True, type=int, help="Line ID.")
@click.option("--qty", "quantity", required=True, type=int, help="Quantity to send back.")
@click.option("--motive", required=True, help="Reason for the return.")
@click.pass_obj
def return_request(obj, order_id: int, line_id: int, quantity: int, motive: str) -> None:
    """File a return request (reserves the quantity)."""
    engine = workflow_engine(settings_from(obj))
    try:
        result = engine.request_return(order_id, line_id, quantity, motive)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    request = unwrap(result)
    click.echo(
        f"Return {request.reference} (id={request.id}) filed for {request.quantity} "
        f"on line {line_id} of order #{order_id}."
    )


def _decide(obj, order_id: int, return_id: int, decision: ReturnStatus, comment: str | None) -> None:
    engine = workflow_engine(settings_from(obj))
    try:
        result = engine.decide_return(order_id, return_id, decision, comment=comment)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    request = unwrap(result)
    click.echo(f"Return {request.reference} {request.status.value}.")


@click.command("approve")
@_order_option
@_return_option
@click.option("--comment", default=None, help="Decision comment.")
@click.pass_obj
def return_approve(obj, order_id: int, return_id: int, comment: str | None) -> None:
    """Approve a pending return request."""
    _decide(obj, order_id, return_id, ReturnStatus.APPROVED, comment)


@click.command("reject")
@_order_option
@_return_option
@click.option("--comment", default=None, help="Decision comment.")
@click.pass_obj
def return_reject(obj, order_id: int, return_id: int, comment: str | None) -> None:
    """Reject a pending return request (releases the reservation)."""
    _decide(obj, order_id, return_id, ReturnStatus.REJECTED, comment)


@click.command("process")
@_order_option
@_return_option
@click.pass_obj
def return_process(obj, order_id: int, return_id: int) -> None:
    """Mark an approved return as shipped back to the supplier."""
    engine = workflow_engine(settings_from(obj))
    try:
        result = engine.process_return(order_id, return_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    request = unwrap(result)
    click.echo(f"Return {request.reference} {request.status.value}.")
