from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from endpoints import auth, session, messages, suggestions, pages
from dataBase import engine, check_database_connection
from models.models import Base
from utils.response import create_response
from utils.security import get_session_claims
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Mystery Threads")

# Páginas que solo tienen sentido sin sesión y páginas que la requieren
PUBLIC_ONLY_PREFIXES = ("/sign-in", "/sign-up", "/verify")
PROTECTED_PREFIXES = ("/dashboard",)


@app.middleware("http")
async def session_guard(request: Request, call_next):
    """
    Redirige entre páginas según haya o no una sesión válida.

    Solo aplica a peticiones GET (las páginas); los endpoints JSON validan
    la sesión por su cuenta.
    """
    if request.method == "GET":
        path = request.url.path
        authenticated = get_session_claims(request) is not None

        if authenticated and (path == "/" or path.startswith(PUBLIC_ONLY_PREFIXES)):
            return RedirectResponse(url="/dashboard", status_code=307)

        if not authenticated and path.startswith(PROTECTED_PREFIXES):
            return RedirectResponse(url="/sign-in", status_code=307)

    return await call_next(request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    detail = errors[0].get("msg", "Datos inválidos") if errors else "Datos inválidos"
    logger.info(f"Petición inválida en {request.url.path}: {detail}")
    return create_response(False, f"Datos inválidos: {detail}", status_code=400)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return create_response(False, str(exc.detail), status_code=exc.status_code)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Error no controlado en {request.url.path}: {exc}")
    return create_response(False, "Error interno del servidor", status_code=500)


# Incluir las rutas de registro y verificación
app.include_router(auth.router, tags=["Registro"])

# Incluir las rutas de sesión
app.include_router(session.router, tags=["Sesión"])

# Incluir las rutas de mensajes y preferencias
app.include_router(messages.router, tags=["Mensajes"])

# Incluir las rutas de sugerencias
app.include_router(suggestions.router, tags=["Sugerencias"])

# Incluir las páginas
app.include_router(pages.router, tags=["Páginas"], include_in_schema=False)


@app.on_event("startup")
def startup_event():
    check_database_connection()
    # Crear todas las tablas
    Base.metadata.create_all(bind=engine)
    logger.info("Aplicación iniciada")
