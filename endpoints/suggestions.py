from fastapi import APIRouter, Depends
from google import genai
import logging
from utils.suggestions import fetch_suggestions, get_suggestion_client, SuggestionError
from utils.response import create_response

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/suggest-messages")
def suggest_messages(client: genai.Client = Depends(get_suggestion_client)):
    """
    Sugiere tres preguntas para enviar de forma anónima.

    Reenvía un prompt fijo al proveedor de IA generativa y devuelve las
    preguntas en `result`. No hay reintentos ni caché: cualquier fallo del
    proveedor, o la falta de clave de API, responde 500.
    """
    try:
        suggestions = fetch_suggestions(client)
    except SuggestionError as e:
        logger.error(f"Error del proveedor de IA (status={e.status_code}): {e.message}")
        return create_response(False, e.message, {"providerStatus": e.status_code}, status_code=500)

    return create_response(True, "Sugerencias generadas", {"result": suggestions})
