"""Audit sink that writes each committed event as one log record."""

from __future__ import annotations

import logging

from procurement.domain.model.events import OrderEvent
from procurement.domain.service.audit_sink import AuditSink

audit_logger = logging.getLogger("procurement.audit")


class LoggingAuditSink(AuditSink):

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or audit_logger

    def publish(self, event: OrderEvent) -> None:
        fields = " ".join(f"{key}={value}" for key, value in event.as_dict().items())
        self._logger.info("%s %s", event.name, fields)
