# app/modules/users/service.py
import logging
import secrets
from typing import Any, Dict, List, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from app.core.auth.schemas import ChangePasswordRequest, GuestRegisterRequest, RegisterRequest, UserResponse
from app.core.auth.service import AuthService
from app.core.exceptions import (
    AuthenticationError, AuthorizationError, NotFoundError, PreconditionError, ValidationError
)
from app.core.policy import ROLE_DESCRIPTIONS, Role
from app.shared.database.models import User
from app.shared.database.transaction import unit_of_work
from app.shared.services.notification_service import NotificationService
from .repository import UserRepository
from .schemas import ProfileUpdateRequest, UserCreateRequest, UserUpdateRequest, UserListResponse

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session, background_tasks: Optional[BackgroundTasks] = None):
        self.db = db
        self.repository = UserRepository(db)
        self.notifications = NotificationService(db, background_tasks)

    def _get_user(self, user_id: int) -> User:
        user = self.repository.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def _ensure_email_available(self, email: str, exclude_id: Optional[int] = None) -> None:
        existing = self.repository.get_by_email(email)
        if existing and existing.id != exclude_id:
            raise ValidationError("Email already registered", error="EMAIL_EXISTS")

    # ==================== AUTENTICACIÓN ====================

    def authenticate(self, email: str, password: str) -> User:
        """Credenciales inválidas → 401; cuenta inactiva → 403"""
        user = self.repository.get_by_email(email)
        if not user or not AuthService.verify_password(password, user.password_hash):
            logger.warning(f"🔒 Login fallido para {email}")
            raise AuthenticationError("Invalid credentials")

        if not user.is_active:
            raise AuthorizationError("Account is inactive or pending verification", error="ACCOUNT_INACTIVE")

        logger.info(f"🔑 Login de usuario {user.id} ({user.role})")
        return user

    async def register(self, payload: RegisterRequest) -> User:
        """Registro público: cliente activo"""
        with unit_of_work(self.db, "register user"):
            self._ensure_email_available(payload.email)
            user = self.repository.create({
                **payload.dict(exclude={"password"}),
                "password_hash": AuthService.get_password_hash(payload.password),
                "role": Role.CUSTOMER.value,
                "is_active": True,
            })
            self.notifications.welcome(user.email, user.id, user.first_name)

        self.db.refresh(user)
        self.notifications.flush()
        logger.info(f"👤 Cliente {user.id} registrado")
        return user

    async def register_guest(self, payload: GuestRegisterRequest) -> User:
        """Cliente invitado con contraseña temporal; queda inactivo"""
        temp_password = secrets.token_hex(8)
        with unit_of_work(self.db, "create guest user"):
            self._ensure_email_available(payload.email)
            user = self.repository.create({
                **payload.dict(),
                "password_hash": AuthService.get_password_hash(temp_password),
                "role": Role.CUSTOMER.value,
                "is_active": False,
            })
            self.notifications.guest_account_created(user.email, user.id, user.first_name, temp_password)

        self.db.refresh(user)
        self.notifications.flush()
        logger.info(f"👤 Invitado {user.id} creado, pendiente de verificación")
        return user

    # ==================== PERFIL ====================

    async def update_profile(self, user: User, payload: ProfileUpdateRequest) -> User:
        changes = payload.dict(exclude_unset=True)
        with unit_of_work(self.db, "update profile"):
            for field, value in changes.items():
                if value is not None or field in ("mobile", "company"):
                    setattr(user, field, value)

        self.db.refresh(user)
        return user

    async def change_password(self, user: User, payload: ChangePasswordRequest) -> None:
        if not payload.passwords_match():
            raise ValidationError("New password and confirmation do not match")
        if not AuthService.verify_password(payload.current_password, user.password_hash):
            raise ValidationError("Current password is incorrect", error="INVALID_PASSWORD")

        with unit_of_work(self.db, "change password"):
            user.password_hash = AuthService.get_password_hash(payload.new_password)
        logger.info(f"🔐 Usuario {user.id} cambió su contraseña")

    # ==================== ADMINISTRACIÓN ====================

    async def list_users(self, page: int = 1, size: int = 20, role: Optional[str] = None,
                         search: Optional[str] = None) -> Dict[str, Any]:
        if role and role not in {r.value for r in Role}:
            raise ValidationError(f"Invalid role '{role}'", error="INVALID_ROLE")
        items, total, page, size, pages = self.repository.list(page, size, role=role, search=search)
        return UserListResponse(
            items=[UserResponse.model_validate(u) for u in items],
            total=total, page=page, size=size, pages=pages
        ).dict()

    async def get_user(self, user_id: int) -> User:
        return self._get_user(user_id)

    async def create_user(self, payload: UserCreateRequest, actor: User) -> User:
        with unit_of_work(self.db, "create user"):
            self._ensure_email_available(payload.email)
            user = self.repository.create({
                **payload.dict(exclude={"password"}),
                "password_hash": AuthService.get_password_hash(payload.password),
            })

        self.db.refresh(user)
        logger.info(f"👤 Usuario {user.id} ({user.role}) creado por {actor.id}")
        return user

    async def update_user(self, user_id: int, payload: UserUpdateRequest, actor: User) -> User:
        changes = {k: v for k, v in payload.dict(exclude_unset=True).items() if v is not None}
        with unit_of_work(self.db, "update user"):
            user = self._get_user(user_id)
            if user.role == Role.ADMIN.value:
                raise AuthorizationError("Admin users cannot be modified")
            if "email" in changes:
                self._ensure_email_available(changes["email"], exclude_id=user.id)
            password = changes.pop("password", None)
            if password:
                user.password_hash = AuthService.get_password_hash(password)
            for field, value in changes.items():
                setattr(user, field, value)

        self.db.refresh(user)
        logger.info(f"✏️ Usuario {user.id} modificado por {actor.id}")
        return user

    async def delete_user(self, user_id: int, actor: User) -> None:
        if user_id == actor.id:
            raise ValidationError("Cannot delete your own account", error="SELF_DELETE")

        with unit_of_work(self.db, "delete user"):
            user = self._get_user(user_id)
            if user.role == Role.ADMIN.value:
                raise AuthorizationError("Admin users cannot be deleted")
            if self.repository.has_related_records(user.id):
                raise PreconditionError(
                    "User has quotes or bookings; deactivate the account instead",
                    error="USER_HAS_RECORDS"
                )
            self.repository.delete(user)
        logger.info(f"🗑️ Usuario {user_id} eliminado por {actor.id}")

    async def activate_user(self, user_id: int, actor: User) -> User:
        with unit_of_work(self.db, "activate user"):
            user = self._get_user(user_id)
            if user.role == Role.ADMIN.value:
                raise AuthorizationError("Admin users cannot be activated or deactivated")
            user.is_active = True
            self.notifications.account_activated(user.email, user.id, user.first_name)

        self.db.refresh(user)
        self.notifications.flush()
        return user

    async def deactivate_user(self, user_id: int, actor: User) -> User:
        if user_id == actor.id:
            raise ValidationError("Cannot deactivate your own account", error="SELF_DEACTIVATE")

        with unit_of_work(self.db, "deactivate user"):
            user = self._get_user(user_id)
            if user.role == Role.ADMIN.value:
                raise AuthorizationError("Admin users cannot be activated or deactivated")
            user.is_active = False

        self.db.refresh(user)
        logger.info(f"⏸️ Usuario {user.id} desactivado por {actor.id}")
        return user

    async def get_pending_guests(self) -> List[User]:
        return self.repository.get_pending_guests()

    async def verify_guest(self, user_id: int, actor: User) -> User:
        """Invitado pendiente (cliente inactivo) → activo, con email de bienvenida"""
        with unit_of_work(self.db, "verify guest customer"):
            user = self.repository.get_by_id(user_id)
            if not user or user.role != Role.CUSTOMER.value or user.is_active:
                raise NotFoundError("Guest customer not found")
            user.is_active = True
            self.notifications.account_verified(user.email, user.id, user.first_name)

        self.db.refresh(user)
        self.notifications.flush()
        logger.info(f"✅ Invitado {user.id} verificado por {actor.id}")
        return user

    async def get_users_by_role(self, role: str) -> List[User]:
        if role not in {r.value for r in Role}:
            raise ValidationError(f"Invalid role '{role}'", error="INVALID_ROLE")
        return self.repository.get_by_role(role)

    @staticmethod
    def get_roles() -> List[Dict[str, str]]:
        return [{"role": role.value, "description": description} for role, description in ROLE_DESCRIPTIONS.items()]
