from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from urllib.parse import unquote
from typing import Optional
from models.models import User, Message, get_utc_now, ensure_utc
from utils.security import hash_password, generate_verification_code, get_verify_code_expiry
from utils.email import send_verification_email
from utils.response import create_response
from dataBase import get_db_session
import logging
import re

# Configuración básica de logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

router = APIRouter()


class UserCreate(BaseModel):
    username: str
    email: EmailStr
    password: str

class VerifyCodeRequest(BaseModel):
    username: str
    code: str


USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
USERNAME_MIN_LENGTH = 2
USERNAME_MAX_LENGTH = 20


# Función auxiliar para validar el nombre de usuario
def validate_username(username: str) -> Optional[str]:
    """
    Valida el formato de un nombre de usuario.

    Returns:
        str: Mensaje de error, o None si el nombre es válido.
    """
    if len(username) < USERNAME_MIN_LENGTH:
        return f"El nombre de usuario debe tener al menos {USERNAME_MIN_LENGTH} caracteres"
    if len(username) > USERNAME_MAX_LENGTH:
        return f"El nombre de usuario no puede tener más de {USERNAME_MAX_LENGTH} caracteres"
    if not USERNAME_PATTERN.match(username):
        return "El nombre de usuario solo puede contener letras, números y guion bajo"
    return None


@router.post("/sign-up")
def sign_up(user: UserCreate, db: Session = Depends(get_db_session)):
    """
    Registra un nuevo usuario sin verificar y le envía un código de verificación.

    - **username**: Nombre de usuario (2-20 caracteres: letras, números o guion bajo).
    - **email**: Correo electrónico del usuario.
    - **password**: Contraseña del usuario.

    Si el correo pertenece a una cuenta que aún no fue verificada, esa cuenta
    se reutiliza con los nuevos datos y un código nuevo.
    """
    username = user.username.strip()
    email = str(user.email)

    username_error = validate_username(username)
    if username_error:
        return create_response(False, username_error, status_code=400)

    if not user.password:
        return create_response(False, "La contraseña no puede estar vacía", status_code=400)

    existing_verified_by_username = db.query(User).filter(
        User.username == username,
        User.is_verified == True
    ).first()
    if existing_verified_by_username:
        return create_response(False, "El nombre de usuario ya está en uso", status_code=400)

    existing_by_email = db.query(User).filter(User.email == email).first()
    if existing_by_email and existing_by_email.is_verified:
        return create_response(False, "Ya existe un usuario con este correo", status_code=400)

    # El nombre puede estar reservado por otra cuenta sin verificar
    username_holder = db.query(User).filter(User.username == username).first()
    if username_holder and (existing_by_email is None or username_holder.user_id != existing_by_email.user_id):
        return create_response(False, "El nombre de usuario ya está en uso", status_code=400)

    verify_code = generate_verification_code()

    try:
        if existing_by_email:
            existing_by_email.username = username
            existing_by_email.password_hash = hash_password(user.password)
            existing_by_email.verify_code = verify_code
            existing_by_email.verify_code_expiry = get_verify_code_expiry()
            existing_by_email.is_accepting_messages = True
            db.query(Message).filter(Message.owner_id == existing_by_email.user_id).delete(synchronize_session=False)
            status_code = 200
            logger.info(f"Registro repetido para cuenta sin verificar: {email}")
        else:
            new_user = User(
                username=username,
                email=email,
                password_hash=hash_password(user.password),
                verify_code=verify_code,
                verify_code_expiry=get_verify_code_expiry(),
                is_verified=False,
                is_accepting_messages=True,
            )
            db.add(new_user)
            status_code = 201
            logger.info(f"Usuario registrado: {username}")

        db.commit()
    except IntegrityError:
        # Otro registro concurrente tomó el nombre o el correo
        db.rollback()
        logger.warning(f"Conflicto de unicidad al registrar {username} / {email}")
        return create_response(False, "El nombre de usuario o el correo ya están en uso", status_code=400)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error al registrar usuario: {e}")
        raise HTTPException(status_code=500, detail="Error interno al registrar el usuario")

    send_verification_email(email, username, verify_code)

    return create_response(
        True,
        "Usuario registrado exitosamente. Revisa tu correo para verificar tu cuenta",
        status_code=status_code
    )


@router.post("/verify-code")
def verify_code(request: VerifyCodeRequest, db: Session = Depends(get_db_session)):
    """
    Verifica la cuenta de un usuario con el código recibido por correo.

    - **username**: Nombre de usuario a verificar.
    - **code**: Código numérico de verificación.

    El código vencido se rechaza aunque coincida; en ese caso hay que
    registrarse de nuevo para obtener otro.
    """
    username = unquote(request.username).strip()
    user = db.query(User).filter(User.username == username).first()

    if not user:
        return create_response(False, "Usuario no encontrado", status_code=400)

    if get_utc_now() > ensure_utc(user.verify_code_expiry):
        logger.info(f"Código de verificación vencido para {username}")
        return create_response(
            False,
            "El código de verificación ha expirado, regístrate de nuevo para obtener uno nuevo",
            status_code=400
        )

    if user.verify_code != request.code.strip():
        logger.info(f"Código de verificación incorrecto para {username}")
        return create_response(False, "Código de verificación incorrecto", status_code=400)

    try:
        user.is_verified = True
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error al verificar usuario {username}: {e}")
        raise HTTPException(status_code=500, detail="Error al verificar el usuario")

    logger.info(f"Cuenta verificada: {username}")
    return create_response(True, "Cuenta verificada exitosamente")


@router.get("/check-username-unique")
def check_username_unique(username: str = "", db: Session = Depends(get_db_session)):
    """
    Indica si un nombre de usuario está disponible.

    Solo las cuentas verificadas reservan un nombre de usuario. Siempre
    responde 200; `success` indica si el nombre puede usarse.
    """
    username = unquote(username).strip()

    username_error = validate_username(username)
    if username_error:
        return create_response(False, username_error)

    existing_verified_user = db.query(User).filter(
        User.username == username,
        User.is_verified == True
    ).first()
    if existing_verified_user:
        return create_response(False, "El nombre de usuario ya está en uso")

    return create_response(True, "El nombre de usuario está disponible")
