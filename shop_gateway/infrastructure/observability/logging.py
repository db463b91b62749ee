"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger
from shop_gateway.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_settlement(
    request_id: str,
    order_id: int,
    customer_id: int,
    operator_id: int,
    total_paid: Decimal,
    new_debt: Decimal,
    duration_ms: float,
) -> None:
    """Log structured settlement outcome for analysis"""
    logging.info(
        "Settlement completed",
        extra={
            "request_id": request_id,
            "order_id": order_id,
            "customer_id": customer_id,
            "operator_id": operator_id,
            "step": "settlement_complete",
            "total_paid": str(total_paid),
            "new_debt": str(new_debt),
            "duration_ms": duration_ms,
        },
    )


def log_partial_write(
    request_id: str,
    sequence: str,
    failed_step: str,
    committed_steps: list,
    order_id: Optional[int] = None,
) -> None:
    """Record a write sequence that stopped midway; committed steps are not undone"""
    logging.error(
        f"{sequence} aborted at {failed_step}",
        extra={
            "request_id": request_id,
            "order_id": order_id,
            "step": failed_step,
            "committed_steps": committed_steps,
            "rolled_back": False,
        },
    )
