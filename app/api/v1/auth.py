from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.service import AuthService
from app.core.auth.schemas import (
    UserLogin, TokenResponse, UserResponse, RegisterRequest, GuestRegisterRequest
)
from app.core.auth.dependencies import forbid_admin_role, get_current_user
from app.modules.users.service import UserService
from app.shared.database.models import User

router = APIRouter(prefix="/auth", tags=["authentication"])


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=AuthService.create_token_for_user(user),
        token_type="bearer",
        user=UserResponse.model_validate(user)
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """
    Endpoint de login para obtener token de acceso

    **Parámetros:**
    - **username**: Email del usuario
    - **password**: Contraseña del usuario

    **Returns:**
    - Token de acceso JWT
    - Información del usuario

    **Errores:** 401 credenciales inválidas, 403 cuenta inactiva o invitado sin verificar
    """
    user = UserService(db).authenticate(form_data.username, form_data.password)
    return _token_response(user)


@router.post("/login-json", response_model=TokenResponse)
async def login_json(
    user_login: UserLogin,
    db: Session = Depends(get_db)
):
    """
    Endpoint de login alternativo que acepta JSON

    **Body:**
    ```json
        {
            "email": "user@example.com",
            "password": "password123"
        }
    """
    user = UserService(db).authenticate(user_login.email, user_login.password)
    return _token_response(user)


@router.post("/register", response_model=TokenResponse, status_code=201,
             dependencies=[Depends(forbid_admin_role)])
async def register(
    payload: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """
    Registro público de clientes

    El rol siempre es `customer`; un body con `role: admin` se rechaza con
    403 `FORBIDDEN_ADMIN_ROLE` y queda auditado.
    """
    service = UserService(db, background_tasks)
    user = await service.register(payload)
    return _token_response(user)


@router.post("/guest", response_model=UserResponse, status_code=201,
             dependencies=[Depends(forbid_admin_role)])
async def register_guest(
    payload: GuestRegisterRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """
    Crear cliente invitado

    Queda inactivo (no puede iniciar sesión) hasta que purchase_support o
    admin lo verifique. La contraseña temporal se envía por email.
    """
    service = UserService(db, background_tasks)
    return await service.register_guest(payload)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """
    Obtener información del usuario actual
    **Headers requeridos:**
    - Authorization: Bearer {token}
    """
    return current_user


@router.post("/logout")
async def logout():
    """
    Logout (con JWT stateless, solo informativo)

    En el frontend debes eliminar el token del storage.
    """
    return {"message": "Logout successful. Remove the token on the client."}
