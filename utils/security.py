from passlib.context import CryptContext
from fastapi import Request
from typing import Any, Dict, Optional
from datetime import timedelta
from dotenv import load_dotenv
from models.models import User, get_utc_now
import secrets
import logging
import jwt
import os

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Nombre de la cookie y del encabezado que transportan el token de sesión
SESSION_COOKIE_NAME = "session_token"
SESSION_HEADER_NAME = "X-Session-Token"

SESSION_ALGORITHM = "HS256"
SESSION_TOKEN_EXPIRE_MINUTES = int(os.getenv("SESSION_TOKEN_EXPIRE_MINUTES", "43200"))
VERIFY_CODE_EXPIRE_MINUTES = int(os.getenv("VERIFY_CODE_EXPIRE_MINUTES", "60"))

SESSION_SECRET = os.getenv("SESSION_SECRET")
if not SESSION_SECRET:
    logger.warning("SESSION_SECRET no está configurado; se usa una clave aleatoria y las sesiones no sobrevivirán a un reinicio")
    SESSION_SECRET = secrets.token_urlsafe(32)


pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

def hash_password(password: str) -> str:
    """
    Hashea una contraseña utilizando el esquema configurado en CryptContext.

    Args:
        password (str): La contraseña en texto plano a hashear.

    Returns:
        str: La contraseña hasheada.
    """
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifica una contraseña en texto plano contra una contraseña hasheada.

    Args:
        plain_password (str): La contraseña en texto plano.
        hashed_password (str): La contraseña hasheada a comparar.

    Returns:
        bool: Verdadero si las contraseñas coinciden, falso en caso contrario.
    """
    return pwd_context.verify(plain_password, hashed_password)


def generate_verification_code(length: int = 6) -> str:
    """
    Genera un código numérico de verificación.

    Args:
        length (int): Cantidad de dígitos. Por defecto es 6.

    Returns:
        str: Código sin ceros a la izquierda, p. ej. "482913".
    """
    lower = 10 ** (length - 1)
    return str(lower + secrets.randbelow(9 * lower))

def get_verify_code_expiry():
    return get_utc_now() + timedelta(minutes=VERIFY_CODE_EXPIRE_MINUTES)


def create_session_token(user: User) -> str:
    """
    Firma un token de sesión con los datos del usuario.

    El token no se guarda en el servidor; validarlo consiste en comprobar
    la firma y la expiración.

    Args:
        user (User): Usuario autenticado.

    Returns:
        str: Token JWT firmado.
    """
    now = get_utc_now()
    claims = {
        "sub": str(user.user_id),
        "username": user.username,
        "isVerified": bool(user.is_verified),
        "isAcceptingMessages": bool(user.is_accepting_messages),
        "iat": now,
        "exp": now + timedelta(minutes=SESSION_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(claims, SESSION_SECRET, algorithm=SESSION_ALGORITHM)

def decode_session_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Valida un token de sesión.

    Returns:
        dict: Los claims del token, o None si la firma es inválida o el token expiró.
    """
    try:
        return jwt.decode(token, SESSION_SECRET, algorithms=[SESSION_ALGORITHM], options={"require": ["sub", "exp"]})
    except jwt.ExpiredSignatureError:
        logger.info("Token de sesión expirado")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Token de sesión inválido: {e}")
    return None


def get_session_claims(request: Request) -> Optional[Dict[str, Any]]:
    """
    Obtiene los claims de la sesión actual a partir de la cookie o del
    encabezado `X-Session-Token`.

    Se usa como dependencia: devuelve None si no hay sesión válida y el
    endpoint decide cómo responder.
    """
    token = request.cookies.get(SESSION_COOKIE_NAME) or request.headers.get(SESSION_HEADER_NAME)
    if not token:
        return None
    return decode_session_token(token)

def get_session_user_id(claims: Dict[str, Any]) -> Optional[int]:
    try:
        return int(claims["sub"])
    except (KeyError, TypeError, ValueError):
        return None
