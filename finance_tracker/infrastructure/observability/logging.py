"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger
from finance_tracker.config import settings


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


def log_collection(
    request_id: str,
    owner_id: Optional[str],
    service: str,
    success: bool,
    status: str,
    simulated: bool,
    duration_ms: float,
    reference: Optional[str] = None,
) -> None:
    """Log structured collection outcome; simulated results are flagged so they never pass for settlements"""
    logging.info(
        "Collection completed",
        extra={
            "request_id": request_id,
            "owner_id": owner_id,
            "step": "collection_complete",
            "carrier_service": service,
            "collection_outcome": "success" if success else "failed",
            "gateway_status": status,
            "simulated": simulated,
            "reference": reference,
            "duration_ms": duration_ms,
        },
    )
