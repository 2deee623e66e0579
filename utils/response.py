from fastapi.responses import JSONResponse

from typing import Any, Dict, Optional
from pydantic import BaseModel


def create_response(
    success: bool,
    message: str,
    data: Optional[Dict[str, Any]] = None,
    status_code: int = 200
) -> JSONResponse:
    """
    Crea una respuesta JSON estructurada para ser devuelta por la API.

    Args:
        success (bool): Indica si la operación fue exitosa.
        message (str): Mensaje que describe el resultado de la operación.
        data (Optional[Dict[str, Any]], optional): Campos adicionales que se agregan al cuerpo
            de la respuesta (por ejemplo `messages` o `isAcceptingMessages`). Por defecto es None.
        status_code (int, optional): Código de estado HTTP a devolver. Por defecto es 200.

    Returns:
        JSONResponse: Respuesta en formato JSON con `success`, `message` y los campos adicionales.
    """
    content = {"success": success, "message": message}

    if data:
        for key, value in data.items():
            if isinstance(value, BaseModel):
                value = value.model_dump()
            elif isinstance(value, list):
                value = [item.model_dump() if isinstance(item, BaseModel) else item for item in value]
            content[key] = value

    return JSONResponse(status_code=status_code, content=content)


def session_token_invalid_response() -> JSONResponse:
    """
    Crea una respuesta JSON específica para cuando no hay una sesión válida.

    Returns:
        JSONResponse: Respuesta 401 que indica que el usuario no está autenticado.
    """
    return create_response(False, "No autenticado", status_code=401)
