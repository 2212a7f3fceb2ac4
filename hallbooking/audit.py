"""Persisted audit trail of booking and hall actions."""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from .database import SessionLocal
from .models import AuditLog

logger = logging.getLogger(__name__)


def record_action(
    action: str,
    actor: str,
    actor_role: str,
    target_id: Optional[object] = None,
    details: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> None:
    """Store one audit entry in its own session.

    Meant to run as a background task after the response is ready, so a
    failure here is logged and never affects the action being audited.
    """
    db = SessionLocal()
    try:
        db.add(
            AuditLog(
                action=action,
                actor=actor,
                actor_role=actor_role,
                target_id=None if target_id is None else str(target_id),
                details=details,
                ip_address=ip_address,
            )
        )
        db.commit()
        logger.info("[AUDIT] action=%s actor=%s target=%s ip=%s", action, actor, target_id, ip_address)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to save audit log for action=%s target=%s", action, target_id)
    finally:
        db.close()
