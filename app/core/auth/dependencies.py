import json
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.shared.database.models import User
from app.core.auth.service import AuthService
from app.core.audit import audit_logger, client_ip, record_audit
from app.core.exceptions import AuthenticationError, AuthorizationError
from app.core.policy import Role, authorize, allowed_roles

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Obtener usuario actual desde el token"""
    
    if credentials is None:
        raise AuthenticationError("Access token required")
    
    # Verificar token
    payload = AuthService.verify_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Invalid or expired token")
    
    user_id = payload.get("user_id")
    if user_id is None:
        raise AuthenticationError("Invalid token payload")
    
    user = db.query(User).filter(User.id == user_id).first()
    
    if user is None:
        raise AuthenticationError("User not found")
    
    if not user.is_active:
        raise AuthenticationError("User account is inactive")
    
    return user

def require_operation(operation: str):
    """Factory para crear dependency que consulta la política de acceso"""
    def operation_checker(current_user: User = Depends(get_current_user)) -> User:
        if not authorize(current_user.role, operation):
            logger.warning(
                f"⛔ Acceso denegado - usuario {current_user.id} ({current_user.role}) -> {operation}"
            )
            raise AuthorizationError(
                f"Role '{current_user.role}' is not allowed to perform '{operation}'. "
                f"Allowed roles: {allowed_roles(operation)}"
            )
        return current_user
    return operation_checker

async def forbid_admin_role(request: Request, db: Session = Depends(get_db)) -> None:
    """
    Rechaza cualquier body que intente asignar `role = admin`
    
    Se aplica a todos los endpoints que crean o modifican cuentas,
    independientemente del rol de quien llama. Las cuentas admin sólo
    se provisionan fuera de la API.
    """
    raw = await request.body()
    if not raw:
        return
    try:
        body = json.loads(raw)
    except ValueError:
        # el body inválido lo rechaza la validación del endpoint
        return
    
    if not isinstance(body, dict) or body.get("role") != Role.ADMIN.value:
        return
    
    actor_id = None
    auth_header = request.headers.get("authorization", "")
    if auth_header.lower().startswith("bearer "):
        payload = AuthService.verify_token(auth_header[7:])
        if payload:
            actor_id = payload.get("user_id")
    
    safe_body = {k: v for k, v in body.items() if k != "password"}
    audit_logger.warning("🚨 SECURITY ALERT: Admin role detected in request body")
    audit_logger.warning(f"   Path: {request.method} {request.url.path}")
    audit_logger.warning(f"   Body: {safe_body}")
    audit_logger.warning(f"   IP: {client_ip(request)}")
    audit_logger.warning(f"   User-Agent: {request.headers.get('user-agent')}")
    
    record_audit(
        db,
        "forbidden_admin_role",
        actor_id=actor_id,
        details={
            "path": request.url.path,
            "method": request.method,
            "body": safe_body,
            "user_agent": request.headers.get("user-agent")
        },
        request=request
    )
    db.commit()
    
    raise AuthorizationError(
        "Admin role creation is not allowed through this endpoint",
        error="FORBIDDEN_ADMIN_ROLE"
    )
