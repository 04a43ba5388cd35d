"""Structured JSON logging for settlement runs and request tracing"""

import logging
import sys
from datetime import date, datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from kakeibo_engine.config import settings


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


def log_settlement_run(
    request_id: str,
    as_of: date,
    settled_count: int,
    account_count: int,
    duration_ms: float,
) -> None:
    """Log structured settlement outcome"""
    logging.info(
        "Settlement run completed",
        extra={
            "request_id": request_id,
            "step": "settlement_complete",
            "as_of": as_of.isoformat(),
            "settled_count": settled_count,
            "account_count": account_count,
            "duration_ms": duration_ms,
        },
    )
