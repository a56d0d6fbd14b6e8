"""Result values returned by the workflow engine.

Expected business errors come back as ``Failure`` instead of being
raised, so callers branch on ``result.ok`` rather than on exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar, Union

from procurement.domain.exceptions import BusinessRuleViolation
from procurement.domain.model.order import Order

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """The committed outcome: the operation's value and the updated order."""

    value: T
    order: Order

    ok: ClassVar[bool] = True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    error: BusinessRuleViolation

    ok: ClassVar[bool] = False

    @property
    def kind(self) -> str:
        return self.error.kind

    @property
    def payload(self) -> dict[str, Any]:
        return self.error.to_payload()

    def unwrap(self) -> Any:
        raise self.error


Result = Union[Success[T], Failure]
