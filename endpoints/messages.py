from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Any, Dict, Optional
from models.models import User, Message
from utils.security import get_session_claims, get_session_user_id
from utils.response import create_response, session_token_invalid_response
from dataBase import get_db_session
import logging

# Configurar el logger
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

router = APIRouter()

MESSAGE_MAX_LENGTH = 300

# Rango de la columna INTEGER de message_id
MESSAGE_ID_MAX = 2**31 - 1


class SendMessageRequest(BaseModel):
    username: str
    content: str

    @field_validator("content")
    @classmethod
    def validate_content(cls, value: str) -> str:
        # La longitud se mide sobre el texto ya recortado
        value = value.strip()
        if not value:
            raise ValueError("El mensaje no puede estar vacío")
        if len(value) > MESSAGE_MAX_LENGTH:
            raise ValueError(f"El mensaje no puede tener más de {MESSAGE_MAX_LENGTH} caracteres")
        return value

class AcceptMessagesRequest(BaseModel):
    acceptMessages: bool


# Función auxiliar para obtener el usuario de la sesión
def get_session_user(claims: Optional[Dict[str, Any]], db: Session) -> Optional[User]:
    user_id = get_session_user_id(claims)
    if user_id is None:
        return None
    return db.query(User).filter(User.user_id == user_id).first()


def parse_message_id(message_id: str) -> Optional[int]:
    """
    Convierte el identificador de la ruta en entero.

    Returns:
        int: El identificador, o None si no es un entero ASCII dentro del rango de la columna.
    """
    if not (message_id.isascii() and message_id.isdigit()):
        return None
    try:
        message_pk = int(message_id)
    except ValueError:
        return None
    if message_pk < 1 or message_pk > MESSAGE_ID_MAX:
        return None
    return message_pk


@router.post("/send-message")
def send_message(request: SendMessageRequest, db: Session = Depends(get_db_session)):
    """
    Envía un mensaje anónimo a un usuario.

    - **username**: Usuario destinatario.
    - **content**: Texto del mensaje (máximo 300 caracteres).

    La fila del destinatario queda bloqueada entre la lectura de
    `is_accepting_messages` y la inserción del mensaje.
    """
    username = request.username.strip()

    try:
        user = db.query(User).filter(User.username == username).with_for_update().first()

        if not user:
            return create_response(False, "Usuario no encontrado", status_code=404)

        if not user.is_accepting_messages:
            logger.info(f"Mensaje rechazado: {username} no acepta mensajes")
            return create_response(False, "El usuario no está aceptando mensajes", status_code=403)

        new_message = Message(owner_id=user.user_id, content=request.content)
        db.add(new_message)
        db.commit()
        db.refresh(new_message)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error al guardar el mensaje para {username}: {e}")
        raise HTTPException(status_code=500, detail="Error interno al enviar el mensaje")

    logger.info(f"Mensaje {new_message.message_id} recibido por {username}")
    return create_response(True, "Mensaje enviado exitosamente", {"data": new_message.to_dict()})


@router.get("/get-messages")
def get_messages(claims: Optional[Dict[str, Any]] = Depends(get_session_claims), db: Session = Depends(get_db_session)):
    """
    Devuelve los mensajes del usuario autenticado, del más reciente al más antiguo.
    """
    if not claims:
        return session_token_invalid_response()

    user = get_session_user(claims, db)
    if not user:
        return create_response(False, "Usuario no encontrado", status_code=404)

    messages = (
        db.query(Message)
        .filter(Message.owner_id == user.user_id)
        .order_by(Message.created_at.desc(), Message.message_id.desc())
        .all()
    )
    logger.info(f"Mensajes obtenidos para {user.username}: {len(messages)}")

    return create_response(True, "Mensajes obtenidos correctamente", {
        "messages": [message.to_dict() for message in messages]
    })


@router.delete("/delete-message/{message_id}")
def delete_message(message_id: str, claims: Optional[Dict[str, Any]] = Depends(get_session_claims), db: Session = Depends(get_db_session)):
    """
    Elimina un mensaje del usuario autenticado.

    Solo se buscan mensajes cuyo dueño es el usuario de la sesión: un
    identificador ajeno responde igual que uno inexistente.
    """
    if not claims:
        return session_token_invalid_response()

    user_id = get_session_user_id(claims)

    message_pk = parse_message_id(message_id)
    if message_pk is None:
        return create_response(False, "Mensaje no encontrado o ya eliminado", status_code=404)

    try:
        deleted = db.query(Message).filter(
            Message.message_id == message_pk,
            Message.owner_id == user_id
        ).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error al eliminar el mensaje {message_id}: {e}")
        raise HTTPException(status_code=500, detail="Error interno al eliminar el mensaje")

    if deleted == 0:
        return create_response(False, "Mensaje no encontrado o ya eliminado", status_code=404)

    logger.info(f"Mensaje {message_id} eliminado por el usuario {user_id}")
    return create_response(True, "Mensaje eliminado")


@router.get("/accept-messages")
def get_accept_messages(claims: Optional[Dict[str, Any]] = Depends(get_session_claims), db: Session = Depends(get_db_session)):
    """Indica si el usuario autenticado acepta mensajes nuevos."""
    if not claims:
        return session_token_invalid_response()

    user = get_session_user(claims, db)
    if not user:
        return create_response(False, "Usuario no encontrado", status_code=404)

    return create_response(True, "Estado obtenido correctamente", {
        "isAcceptingMessages": user.is_accepting_messages
    })


@router.post("/accept-messages")
def update_accept_messages(request: AcceptMessagesRequest, claims: Optional[Dict[str, Any]] = Depends(get_session_claims), db: Session = Depends(get_db_session)):
    """
    Activa o desactiva la recepción de mensajes del usuario autenticado.

    - **acceptMessages**: Nuevo valor del indicador.
    """
    if not claims:
        return session_token_invalid_response()

    user = get_session_user(claims, db)
    if not user:
        return create_response(False, "Usuario no encontrado", status_code=404)

    try:
        user.is_accepting_messages = request.acceptMessages
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error al actualizar la preferencia de {user.username}: {e}")
        raise HTTPException(status_code=500, detail="Error al actualizar el estado de aceptación de mensajes")

    logger.info(f"{user.username} acepta mensajes: {user.is_accepting_messages}")
    return create_response(True, "Estado de aceptación de mensajes actualizado", {
        "isAcceptingMessages": user.is_accepting_messages
    })
