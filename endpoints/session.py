from fastapi import APIRouter, Depends
from pydantic import BaseModel
from email_validator import validate_email, EmailNotValidError
from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import Any, Dict, Optional
from models.models import User
from utils.security import (
    verify_password,
    create_session_token,
    get_session_claims,
    SESSION_COOKIE_NAME,
    SESSION_TOKEN_EXPIRE_MINUTES,
)
from utils.response import create_response, session_token_invalid_response
from dataBase import get_db_session
import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

router = APIRouter()

COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() in ("1", "true", "yes")


class SignInRequest(BaseModel):
    identifier: str  # Nombre de usuario o correo electrónico
    password: str


# Función auxiliar para comparar correos como los guarda el registro (EmailStr)
def normalize_email(identifier: str) -> str:
    if "@" not in identifier:
        return identifier
    try:
        return validate_email(identifier, check_deliverability=False).normalized
    except EmailNotValidError:
        local_part, _, domain = identifier.rpartition("@")
        return f"{local_part}@{domain.lower()}"


@router.post("/sign-in")
def sign_in(request: SignInRequest, db: Session = Depends(get_db_session)):
    """
    Inicio de Sesión

    Autentica al usuario con su nombre de usuario **o** correo electrónico y
    su contraseña. Si las credenciales son válidas, emite un token de sesión
    firmado que se devuelve en el cuerpo y en la cookie `session_token`.

    - **identifier**: Nombre de usuario o correo electrónico.
    - **password**: Contraseña del usuario.

    Respuestas de error:
    - **404**: No existe un usuario con ese nombre o correo.
    - **403**: La cuenta no ha sido verificada.
    - **401**: Contraseña incorrecta.
    """
    identifier = request.identifier.strip()

    user = db.query(User).filter(
        or_(User.username == identifier, User.email == normalize_email(identifier))
    ).first()

    if not user:
        logger.warning(f"Inicio de sesión con usuario inexistente: {identifier}")
        return create_response(False, "No existe un usuario con este correo o nombre de usuario", status_code=404)

    if not user.is_verified:
        return create_response(False, "Debes verificar tu cuenta antes de iniciar sesión", status_code=403)

    if not verify_password(request.password, user.password_hash):
        logger.warning(f"Contraseña incorrecta para {user.username}")
        return create_response(False, "Contraseña incorrecta", status_code=401)

    session_token = create_session_token(user)
    logger.info(f"Sesión iniciada para {user.username}")

    response = create_response(True, "Inicio de sesión exitoso", {
        "session_token": session_token,
        "user": {
            "_id": str(user.user_id),
            "username": user.username,
            "isVerified": user.is_verified,
            "isAcceptingMessages": user.is_accepting_messages,
        },
    })
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_token,
        max_age=SESSION_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
    )
    return response


@router.post("/sign-out")
def sign_out():
    """
    Cierra la sesión eliminando la cookie. El token en sí no se revoca:
    sigue siendo válido hasta su expiración.
    """
    response = create_response(True, "Cierre de sesión exitoso")
    response.delete_cookie(SESSION_COOKIE_NAME)
    return response


@router.get("/session")
def get_session(claims: Optional[Dict[str, Any]] = Depends(get_session_claims)):
    """Devuelve los datos del usuario de la sesión actual."""
    if not claims:
        return session_token_invalid_response()

    return create_response(True, "Sesión activa", {
        "user": {
            "_id": claims["sub"],
            "username": claims.get("username"),
            "isVerified": claims.get("isVerified", False),
            "isAcceptingMessages": claims.get("isAcceptingMessages", True),
        }
    })
