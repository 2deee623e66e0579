from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship, declarative_base
from datetime import datetime
import pytz

Base = declarative_base()


def get_utc_now():
    return datetime.now(pytz.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Devuelve la fecha con zona horaria UTC.

    Algunos motores (SQLite) devuelven fechas sin zona horaria aunque la
    columna se declare con `timezone=True`; en ese caso se asume UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.utc.localize(value)
    return value.astimezone(pytz.utc)


# Modelo para User (Usuario)
class User(Base):
    """
    Modelo de base de datos para representar una cuenta de usuario.

    Atributos:
    ----------
    user_id : int
        Identificador único del usuario (clave primaria).
    username : str
        Nombre de usuario, único. Forma parte del enlace público del perfil.
    email : str
        Correo electrónico, único.
    password_hash : str
        Hash de la contraseña (argon2).
    verify_code : str
        Código numérico de verificación enviado al registrarse.
    verify_code_expiry : datetime
        Momento a partir del cual el código deja de ser válido.
    is_verified : bool
        Indica si la cuenta ya fue verificada.
    is_accepting_messages : bool
        Indica si el usuario acepta mensajes nuevos.
    """
    __tablename__ = "user"

    user_id = Column(Integer, primary_key=True, index=True)
    username = Column(String(20), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    verify_code = Column(String(6), nullable=False)
    verify_code_expiry = Column(DateTime(timezone=True), nullable=False)
    is_verified = Column(Boolean, nullable=False, default=False)
    is_accepting_messages = Column(Boolean, nullable=False, default=True)

    # Relaciones
    messages = relationship(
        "Message",
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


# Modelo para Message (Mensaje anónimo)
class Message(Base):
    """
    Mensaje anónimo recibido por un usuario.

    Atributos:
    ----------
    message_id : int
        Identificador del mensaje (clave primaria).
    owner_id : int
        Usuario que recibió el mensaje (relación con User).
    content : str
        Texto del mensaje.
    created_at : datetime
        Fecha de creación, asignada por el servidor.
    """
    __tablename__ = "message"
    __table_args__ = (
        Index("ix_message_owner_created_at", "owner_id", "created_at"),
    )

    message_id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("user.user_id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=get_utc_now)

    owner = relationship("User", back_populates="messages")

    def to_dict(self):
        return {
            "_id": str(self.message_id),
            "content": self.content,
            "createdAt": ensure_utc(self.created_at).isoformat(timespec="microseconds"),
        }
