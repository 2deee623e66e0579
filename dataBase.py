import os
import sys
import logging
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv

# Cargar variables de entorno
load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def get_database_url() -> str:
    """
    Construye la URL de conexión a la base de datos.

    Usa `DATABASE_URL` si está definida; en otro caso arma la URL de
    PostgreSQL a partir de las variables `PG*`.

    Returns:
        str: URL de conexión compatible con SQLAlchemy.
    """
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    db_host = os.getenv("PGHOST", "localhost")
    db_port = os.getenv("PGPORT", "5432")
    db_name = os.getenv("PGDATABASE", "mystery_threads")
    db_user = os.getenv("PGUSER", "postgres")
    db_password = os.getenv("PGPASSWORD", "")

    return f"postgresql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"


SQLALCHEMY_DATABASE_URL = get_database_url()

if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    # SQLite en memoria necesita una única conexión compartida entre hilos
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    engine = create_engine(SQLALCHEMY_DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def check_database_connection():
    """
    Verifica la conexión a la base de datos ejecutando `SELECT 1`.

    Si la conexión falla el proceso termina, ya que la aplicación no
    puede atender ninguna petición sin base de datos.
    """
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        logger.info("Conexión exitosa a la base de datos")
    except Exception as e:
        logger.critical(f"Error al conectar a la base de datos: {e}")
        sys.exit(1)


def get_db_session():
    """
    Proporciona una sesión de base de datos, que se puede utilizar
    en las operaciones CRUD. Asegura que la sesión se cierre
    correctamente después de su uso.

    Yields:
        Session: Una sesión de base de datos.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
