"""
Translation client: one request to a remote text-generation service per call.
"""

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path

import httpx
from openai import (
    APIConnectionError,
    APIStatusError,
    AsyncOpenAI,
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
)

from .errors import (
    AuthError,
    ConfigurationError,
    QuotaError,
    TransientError,
    TranslationError,
    TruncatedError,
)
from .models import KeyValidation

logger = logging.getLogger("subtrans")

DELIMITER = "|"
MIN_API_KEY_LENGTH = 30
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_MODEL = "gemini-2.0-flash"

SUPPORTED_LANGUAGES = {
    "pt-BR": "Brazilian Portuguese",
}

AUTH_MARKERS = (
    "unauthorized",
    "unauthenticated",
    "forbidden",
    "authentication",
    "invalid key",
    "invalid api key",
    "api key not valid",
    "missing api key",
    "api key is required",
    "method doesn't allow unregistered callers",
    "caller not authorized",
    "permission_denied",
)
QUOTA_MARKERS = (
    "rate limit",
    "rate_limit",
    "ratelimit",
    "quota",
    "resource_exhausted",
    "resource exhausted",
    "too many requests",
)
# bare status codes count only as whole tokens, never inside longer numbers
_AUTH_STATUS_RE = re.compile(r"\b(401|403)\b")
_QUOTA_STATUS_RE = re.compile(r"\b429\b")

SYSTEM_PROMPT = (
    "You are a professional subtitle translator for films and TV series, translating into {language}. "
    "IMPORTANT: Preserve all original formatting exactly, including inline markup such as <i> for italics. "
    "The input segments are separated by the '|' symbol; return the translated segments separated by '|' "
    "in the same order and the same count, with no extra commentary. "
    "Keep the style and tone of the original. Do not translate proper nouns, "
    "and keep show and program names such as 'The Amazing Race' as they are. "
    "VERY IMPORTANT: when a segment holds dialogue marked by hyphens (e.g. '-Hello. -Hi!'), keep every "
    "hyphen-prefixed line on its own line with its hyphen. NEVER merge several dialogue lines into one."
)

_RELEASE_TAG_RE = re.compile(
    r"\b(\d{3,4}p|x26[45]|h\.?26[45]|hevc|web-?dl|web-?rip|bluray|brrip|hdtv|dvdrip|aac\d?(\.\d)?|ddp?5\.1|10bit)\b.*$",
    re.IGNORECASE,
)


def language_name(code: str) -> str:
    """Get the human-readable name of a supported target language."""
    try:
        return SUPPORTED_LANGUAGES[code]
    except KeyError:
        supported = ", ".join(SUPPORTED_LANGUAGES)
        raise ConfigurationError(f"Unsupported target language '{code}' (supported: {supported})") from None


def context_from_filename(filename: str | Path) -> str:
    """Derive a short title context from a subtitle filename.

    ``The.Amazing.Race.S01E02.720p.WEB-DL.srt`` -> ``The Amazing Race S01E02``
    """
    stem = Path(filename).name
    while Path(stem).suffix.lower() in {".srt", ".txt", ".pt-br", ".en"}:
        stem = Path(stem).stem
    title = re.sub(r"[._]+", " ", stem)
    title = _RELEASE_TAG_RE.sub("", title)
    title = re.sub(r"[\[\(][^\]\)]*[\]\)]", " ", title)
    return " ".join(title.split())


def build_system_prompt(language: str, context: str | None = None) -> str:
    prompt = SYSTEM_PROMPT.format(language=language_name(language))
    if context:
        prompt += f" Context: these subtitles belong to '{context}'."
    return prompt


def expected_segments(text: str) -> int:
    return len(text.split(DELIMITER))


def check_api_key(api_key: str) -> str:
    """Reject obviously malformed credentials before any network call."""
    key = (api_key or "").strip()
    if len(key) < MIN_API_KEY_LENGTH:
        raise AuthError(
            f"Invalid API key: expected at least {MIN_API_KEY_LENGTH} characters, got {len(key)}"
        )
    return key


def check_segment_count(text: str, translated: str) -> str:
    """Validate a raw response against the request it answers."""
    if not translated or not translated.strip():
        raise TransientError("Empty response from translation service")
    expected = expected_segments(text)
    received = len(translated.split(DELIMITER))
    if received < expected:
        raise TruncatedError(expected, received, partial=translated)
    return translated


def classify_error(exc: Exception) -> TranslationError:
    """Map a raw SDK or network error onto the classified taxonomy."""
    if isinstance(exc, TranslationError):
        return exc
    if isinstance(exc, (AuthenticationError, PermissionDeniedError)):
        return AuthError(f"Authentication failed: {exc}")
    if isinstance(exc, RateLimitError):
        return QuotaError(f"Rate limited: {exc}")
    if isinstance(exc, APIStatusError):
        status = getattr(exc, "status_code", None)
        if status in (401, 403):
            return AuthError(f"Authentication failed ({status}): {exc}")
        if status == 429:
            return QuotaError(f"Rate limited ({status}): {exc}")

    message = str(exc).lower()
    if _QUOTA_STATUS_RE.search(message) or any(marker in message for marker in QUOTA_MARKERS):
        return QuotaError(f"Quota exceeded: {exc}")
    if _AUTH_STATUS_RE.search(message) or any(marker in message for marker in AUTH_MARKERS):
        return AuthError(f"Authentication failed: {exc}")
    if isinstance(exc, APIConnectionError):
        return TransientError(f"Connection error: {exc}")
    return TransientError(f"{type(exc).__name__}: {exc}")


class Translator(ABC):
    """Abstract base class for remote translation services."""

    async def translate(self, text: str, language: str, api_key: str) -> str:
        """
        Translate delimiter-joined text.

        Returns:
            The delimiter-joined translation.

        Raises:
            AuthError, QuotaError, TruncatedError or TransientError.
        """
        key = check_api_key(api_key)
        language_name(language)
        try:
            translated = await self.request(text, language, key)
        except Exception as e:
            raise classify_error(e) from e
        if not isinstance(translated, str):
            raise TransientError(f"Malformed response: expected text, got {type(translated).__name__}")
        return check_segment_count(text, translated.strip())

    @abstractmethod
    async def request(self, text: str, language: str, api_key: str) -> str:
        """Send one raw request and return the response text."""


class OpenAICompatibleTranslator(Translator):
    """Translator for any OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str | None = DEFAULT_BASE_URL,
        context: str | None = None,
        temperature: float = 0.2,
        timeout: float = 120.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.model = model
        self.base_url = base_url
        self.context = context
        self.temperature = temperature
        self.timeout = timeout
        self.http_client = http_client
        self._clients: dict[str, AsyncOpenAI] = {}

    def _client(self, api_key: str) -> AsyncOpenAI:
        client = self._clients.get(api_key)
        if client is None:
            # retries are owned by translate_with_retry
            client = AsyncOpenAI(
                api_key=api_key,
                base_url=self.base_url,
                max_retries=0,
                timeout=self.timeout,
                http_client=self.http_client,
            )
            self._clients[api_key] = client
        return client

    async def request(self, text: str, language: str, api_key: str) -> str:
        logger.debug(f"Requesting {self.model}: {expected_segments(text)} segments, {len(text)} chars")
        response = await self._client(api_key).chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": build_system_prompt(language, self.context)},
                {"role": "user", "content": f"Translate these subtitles into {language_name(language)}: {text}"},
            ],
            temperature=self.temperature,
        )
        if not response.choices:
            raise TransientError("Malformed response: no choices returned")
        return response.choices[0].message.content or ""


async def validate_api_key(translator: Translator, api_key: str, language: str = "pt-BR") -> KeyValidation:
    """Check a credential with a single minimal translation call."""
    try:
        await translator.translate("Hello, this is a test message to validate the API key.", language, api_key)
    except AuthError as e:
        logger.warning(f"API key rejected: {e}")
        return KeyValidation(valid=False, error_type=AuthError.error_type, message=str(e))
    except QuotaError as e:
        logger.warning(f"API key check hit the quota: {e}")
        return KeyValidation(valid=False, error_type=QuotaError.error_type, message=str(e))
    except TranslationError as e:
        logger.error(f"API key validation failed: {e}")
        return KeyValidation(valid=False, error_type="validation_error", message=str(e))
    return KeyValidation(valid=True, message="API key is valid")
