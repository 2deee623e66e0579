import pytest

import sys
import os

# Base de datos SQLite en memoria para las pruebas; debe definirse antes de importar dataBase
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.pop("SMTP_USER", None)
os.environ.pop("SMTP_PASS", None)

# Agrega la ruta raíz del proyecto al sys.path
sys.path.append(os.path.dirname(os.path.abspath(__file__)) + '/../')

from main import app
from dataBase import engine, SessionLocal, get_db_session
from models.models import Base, User
from utils.security import hash_password, get_verify_code_expiry


@pytest.fixture(scope="function")
def session_for_tests():
    """Crea las tablas al inicio de cada prueba y las elimina al final."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def app_with_overrides(session_for_tests):
    # Función para sobrescribir la dependencia get_db_session
    def override_get_db_session():
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db_session] = override_get_db_session
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def create_user(session_for_tests):
    """Inserta directamente un usuario, verificado por defecto."""
    def _create_user(username, email=None, password="pw123", is_verified=True, is_accepting_messages=True):
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            password_hash=hash_password(password),
            verify_code="123456",
            verify_code_expiry=get_verify_code_expiry(),
            is_verified=is_verified,
            is_accepting_messages=is_accepting_messages,
        )
        session_for_tests.add(user)
        session_for_tests.commit()
        session_for_tests.refresh(user)
        return user

    return _create_user
