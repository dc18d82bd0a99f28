"""
Audit trail helpers.

Store writes call log_action before their own commit, so a client,
employee or rates change and its audit entry land together or not at all.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from travelcrm.models.audit import AuditAction, AuditLog


def _json_value(value: Any) -> Any:
    # Money, dates and enum members are stored as their text form
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_json_value(item) for item in value]
    return value


async def log_action(
    db: AsyncSession,
    user_id: int,
    action: AuditAction,
    target_type: Optional[str] = None,
    target_id: Optional[int] = None,
    action_metadata: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
) -> AuditLog:
    """
    Add an audit entry to the session without committing it.

    Args:
        db: Session of the write being audited
        user_id: Actor performing the action
        action: What was done
        target_type: "client", "user" or "settings"
        target_id: Affected row, None for bulk actions
        action_metadata: Extra context (status change, rates, client ids)
        ip_address: Caller address from get_client_ip

    Returns:
        The pending AuditLog entry
    """
    metadata = None
    if action_metadata:
        metadata = {key: _json_value(value) for key, value in action_metadata.items()}

    entry = AuditLog(
        user_id=user_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        action_metadata=metadata,
        ip_address=ip_address,
    )
    db.add(entry)
    return entry


def get_client_ip(request) -> Optional[str]:
    """Caller address, preferring the left-most X-Forwarded-For hop."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    if request.client:
        return request.client.host
    return None
