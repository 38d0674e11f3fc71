from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tripdesk.logging_setup import TRACE_ID_CTX
from tripdesk.models.models import AuditLog


async def log_audit(
    db: AsyncSession,
    actor: Optional[str],
    action: str,
    object_type: Optional[str] = None,
    object_id: Any = None,
    detail: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """Record ``action`` in the caller's open transaction.

    The request trace id, when there is one, is kept in ``detail`` so an audit
    row can be matched with the log lines of the same request.
    """
    detail = dict(detail or {})
    trace_id = TRACE_ID_CTX.get(None)
    if trace_id:
        detail["trace_id"] = trace_id
    audit = AuditLog(
        actor=actor,
        action=action,
        object_type=object_type,
        object_id=str(object_id) if object_id is not None else None,
        detail=detail or None,
    )
    db.add(audit)
    # no commit: rolls back together with the change it records
    return audit
