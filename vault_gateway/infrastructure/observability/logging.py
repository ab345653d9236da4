"""Structured JSON logging for ledger and oracle audit trails"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger.json import JsonFormatter

SERVICE_NAME = "vault-gateway"


class CustomJsonFormatter(JsonFormatter):
    """JSON formatter stamping every record with UTC time, level and service"""

    def __init__(self, *args, service: str = SERVICE_NAME, **kwargs):
        super().__init__(*args, **kwargs)
        self.service = service

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service


def setup_logging(level: str = "INFO", service: str = SERVICE_NAME) -> None:
    """Route the root logger to stdout as JSON, replacing existing handlers"""
    logger = logging.getLogger()
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s", service=service))
    logger.addHandler(handler)


def log_ledger_event(
    request_id: str,
    identity: str,
    kind: str,
    amount: int,
    duration_ms: float,
) -> None:
    """Log structured ledger outcome for audit and analysis"""
    logging.info(
        "Ledger operation committed",
        extra={
            "request_id": request_id,
            "identity": identity,
            "step": "ledger_commit",
            "kind": kind,
            "amount": amount,
            "duration_ms": duration_ms,
        },
    )


def log_oracle_event(
    request_id: str,
    symbol: str,
    step: str,
    price: int,
    healthy: bool = True,
) -> None:
    """Log structured oracle read/refresh outcome"""
    logging.info(
        "Oracle operation completed",
        extra={
            "request_id": request_id,
            "symbol": symbol,
            "step": step,
            "price": price,
            "healthy": healthy,
        },
    )
