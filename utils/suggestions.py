import os
import logging
from typing import List, Optional
import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SUGGESTION_DELIMITER = "||"

SUGGESTION_PROMPT = (
    "Create a list of three open-ended and engaging questions formatted as a single string. "
    "Each question should be separated by '||'. These questions are for an anonymous social messaging "
    "platform, like Qooh.me, and should be suitable for a diverse audience. Avoid personal or sensitive "
    "topics, focusing instead on universal themes that encourage friendly interaction. For example, your "
    "output should be structured like this: 'What's a hobby you've recently started?||If you could have "
    "dinner with any historical figure, who would it be?||What's a simple thing that makes you happy?'. "
    "Ensure the questions are intriguing, foster curiosity, and contribute to a positive and welcoming "
    "conversational environment."
)

SUGGESTION_CONFIG = types.GenerateContentConfig(
    temperature=1.2,
    top_k=40,
    top_p=1,
    max_output_tokens=256,
)


class SuggestionError(Exception):
    """Fallo del proveedor de IA generativa (o de su configuración)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def get_suggestion_client():
    """
    Proporciona el cliente de Gemini. Se usa como dependencia para poder
    reemplazarlo en las pruebas.

    Yields:
        genai.Client: El cliente, o None si falta `GEMINI_API_KEY`.
    """
    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        yield None
        return
    yield genai.Client(api_key=api_key)


def split_suggestions(text: str) -> List[str]:
    return [part.strip() for part in text.split(SUGGESTION_DELIMITER) if part.strip()]


def fetch_suggestions(client) -> List[str]:
    """
    Envía el prompt fijo a Gemini y devuelve las preguntas sugeridas.

    Args:
        client (genai.Client): Cliente de Gemini; None si no hay clave de API.

    Returns:
        List[str]: Preguntas ya separadas y sin espacios sobrantes.

    Raises:
        SuggestionError: Si falta la clave de API, el proveedor responde con
            error o la respuesta no contiene texto.
    """
    if client is None:
        raise SuggestionError("Missing API Key")

    model = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

    try:
        response = client.models.generate_content(
            model=model,
            contents=SUGGESTION_PROMPT,
            config=SUGGESTION_CONFIG,
        )
    except genai_errors.APIError as e:
        raise SuggestionError(e.message or str(e), status_code=e.code) from e
    except httpx.HTTPError as e:
        raise SuggestionError(f"Error de conexión con el proveedor de IA: {e}") from e

    suggestions = split_suggestions(response.text or "")
    if not suggestions:
        raise SuggestionError("No response from AI")

    logger.info(f"Sugerencias obtenidas: {len(suggestions)}")
    return suggestions
