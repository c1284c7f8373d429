"""Audit trail for state-changing quotation and price-list operations"""
import logging
from typing import Any, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from healthquote.models.audit import Audit
from healthquote.core.enums import AuditAction
from healthquote.core.metrics import audit_logs_created
from healthquote.utils.hashing import payload_hash

logger = logging.getLogger(__name__)


async def log_audit(
    db: AsyncSession,
    user_id: int,
    action: AuditAction,
    payload: Optional[Any] = None
) -> None:
    """Stage an audit row in the caller's transaction.

    The row is committed with the operation it describes; a failure here is
    logged and never aborts that operation.
    """
    try:
        if hasattr(payload, "model_dump"):
            payload_dict = payload.model_dump(mode="json", exclude_unset=True)
        elif isinstance(payload, dict):
            payload_dict = payload
        else:
            payload_dict = {}

        db.add(Audit(
            user_id=int(user_id),
            action=str(action),
            payload_hash=payload_hash(payload_dict),
        ))
        await db.flush()
        audit_logs_created.labels(action=str(action)).inc()

    except Exception as e:
        logger.error(f"Audit logging failed for action {action}: {e}", exc_info=True)
