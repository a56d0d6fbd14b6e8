"""Runtime settings for the procurement workflow.

Settings priority (highest wins):
  1. Values passed to ``Settings(...)`` directly
  2. Environment variables
  3. Defaults in this file
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from procurement.domain.exceptions import ValidationFailed

# Project root when installed in editable mode (src/procurement/infrastructure -> root)
PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_DATA_DIR = PROJECT_ROOT / "data"


def _int_from_env(name: str, default: int, minimum: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValidationFailed(name, f"not an integer: {raw!r}") from exc
    if value < minimum:
        raise ValidationFailed(name, f"must be at least {minimum}, got {value}")
    return value


@dataclass
class Settings:
    data_dir: Path = field(
        default_factory=lambda: Path(os.getenv("PROCUREMENT_DATA_DIR", str(DEFAULT_DATA_DIR)))
    )
    # Units a line may be over-received by
    receipt_tolerance: int = field(
        default_factory=lambda: _int_from_env("PROCUREMENT_RECEIPT_TOLERANCE", 0, 0)
    )
    max_commit_attempts: int = field(
        default_factory=lambda: _int_from_env("PROCUREMENT_MAX_COMMIT_ATTEMPTS", 3, 1)
    )
    settlement_currency: str = field(
        default_factory=lambda: os.getenv("PROCUREMENT_SETTLEMENT_CURRENCY", "EUR").upper()
    )
    log_level: str = field(
        default_factory=lambda: os.getenv("PROCUREMENT_LOG_LEVEL", "INFO").upper()
    )

    def __post_init__(self) -> None:
        self.data_dir = Path(self.data_dir)
        if self.receipt_tolerance < 0:
            raise ValidationFailed("receipt_tolerance", "cannot be negative")
        if self.max_commit_attempts < 1:
            raise ValidationFailed("max_commit_attempts", "must be at least 1")
        if logging.getLevelName(self.log_level) == f"Level {self.log_level}":
            raise ValidationFailed("log_level", f"unknown level {self.log_level!r}")

    @property
    def orders_file(self) -> Path:
        return self.data_dir / "orders.json"
