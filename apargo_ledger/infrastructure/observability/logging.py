"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from apargo_ledger.domain.models import SchedulerRun


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args: Any, service_name: str = "apargo-ledger", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "apargo-ledger") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service_name=service_name,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_scheduler_run(request_id: str, run: SchedulerRun, duration_ms: float) -> None:
    """Log the scheduler outcome, plus one error line per failed category"""
    for result in run.results:
        if result.error and not result.skipped:
            logging.error(
                "Payment event generation failed",
                extra={
                    "request_id": request_id,
                    "category_id": result.category_id,
                    "category_name": result.category_name,
                    "month_year": run.month_year,
                    "error": result.error,
                },
            )

    logging.info(
        "Scheduler run completed",
        extra={
            "request_id": request_id,
            "step": "scheduler_complete",
            "month_year": run.month_year,
            "trigger_day": run.trigger_day,
            "force": run.force,
            "events_created": run.events_created,
            "processed_categories": len(run.results),
            "skipped_reason": run.skipped_reason,
            "duration_ms": duration_ms,
        },
    )


def log_ledger_write(request_id: str, source: str, month_year: str, sheets_written: int) -> None:
    """Log balance sheet cache writes caused by a payment or expense change"""
    logging.info(
        "Balance sheets updated",
        extra={
            "request_id": request_id,
            "step": "ledger_write",
            "source": source,
            "month_year": month_year,
            "sheets_written": sheets_written,
        },
    )
