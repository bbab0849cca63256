# app/core/audit.py
import logging
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from app.shared.database.models import AuditLog

# Logger dedicado: los handlers de producción pueden enrutarlo aparte
audit_logger = logging.getLogger("app.audit")


def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def record_audit(
    db: Session,
    action: str,
    actor_id: Optional[int] = None,
    entity_kind: Optional[str] = None,
    entity_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None
) -> AuditLog:
    """Agregar entrada de auditoría a la sesión; el commit lo hace quien llama"""
    ip = client_ip(request)
    audit_logger.warning(
        f"🛡️ AUDIT {action} - actor={actor_id} entity={entity_kind}:{entity_id} ip={ip} details={details}"
    )
    entry = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_kind=entity_kind,
        entity_id=entity_id,
        details=jsonable_encoder(details) if details is not None else None,
        ip_address=ip
    )
    db.add(entry)
    return entry


def apply_override(
    db: Session,
    entity,
    changes: Dict[str, Any],
    actor,
    entity_kind: str,
    request: Optional[Request] = None
) -> Dict[str, Any]:
    """
    Override administrativo: asigna campos sin pasar por la máquina de estados

    Registra el diff campo a campo en la auditoría. La validación de que el
    estado pertenece al enum ya la hizo el schema del request.
    """
    diff = {}
    for field, value in changes.items():
        old = getattr(entity, field)
        if old != value:
            diff[field] = {"from": old, "to": value}
            setattr(entity, field, value)

    record_audit(
        db,
        f"{entity_kind}.override",
        actor_id=actor.id,
        entity_kind=entity_kind,
        entity_id=entity.id,
        details={"changes": diff, "actor_role": actor.role},
        request=request
    )
    return diff
