"""Turns expected failures into ``OperationResult`` values at the service boundary."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from ...domain.errors import CodeShareError, OperationResult, StorageError, ValidationError
from ...infrastructure.persistence.event_log import EventLog

logger = logging.getLogger(__name__)


def run_operation(
    events: EventLog,
    operation: str,
    action: Callable[[], Any],
    user_id: Optional[str] = None,
) -> OperationResult:
    try:
        return OperationResult.ok(action())
    except ValidationError as exc:
        logger.info("Validation failed in %s: %s", operation, exc)
        events.log_warning(
            f"Validation Error in {operation}: {exc}",
            {"operation": operation, "errors": exc.reasons},
            user_id,
        )
        return OperationResult.from_exception(exc)
    except StorageError as exc:
        logger.exception("Storage failure in %s", operation)
        events.log_error(f"Storage Error in {operation}: {exc}", {"operation": operation}, user_id)
        return OperationResult.from_exception(exc)
    except CodeShareError as exc:
        logger.info("%s failed: %s", operation, exc)
        if exc.kind == "error":
            events.log_error(f"Error in {operation}: {exc}", {"operation": operation}, user_id)
        return OperationResult.from_exception(exc)
