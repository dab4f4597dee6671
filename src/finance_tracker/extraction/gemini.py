import json
from typing import Any

from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from finance_tracker.core import settings
from finance_tracker.logger import get_logger
from finance_tracker.models import ExtractionResult, TransactionCandidate, TransactionType

from .base import Extractor

logger = get_logger(__name__)

TRANSACTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "amount": {"type": "number"},
        "type": {"type": "string", "enum": [t.value for t in TransactionType]},
        "category": {"type": "string"},
        "description": {"type": "string"},
    },
    "required": ["amount", "type", "category", "description"],
}

INSTRUCTIONS = "Você extrai transações financeiras de mensagens de WhatsApp e responde apenas em JSON."

PROMPT_TEMPLATE = """Analise a seguinte mensagem de texto sobre uma transação financeira e extraia os dados estruturados em JSON.
Mensagem: "{text}"

Regras:
- amount: número positivo (valor da transação)
- type: "income" (entrada) ou "expense" (saída)
- category: categoria (ex: alimentação, lazer, salário, transporte, etc.)
- description: breve descrição

Se não for uma transação financeira, retorne null."""


def _strip_code_fence(content: str) -> str:
    stripped = content.strip()
    if stripped.startswith("```"):
        stripped = stripped.split("\n", 1)[1] if "\n" in stripped else ""
        if stripped.rstrip().endswith("```"):
            stripped = stripped.rstrip()[:-3]
    return stripped.strip()


def parse_extraction(content: str | None) -> ExtractionResult:
    """Map raw model output onto an extraction result.

    ``null``, blank output, malformed JSON and candidates that fail
    validation all mean the text did not yield a usable transaction.
    """
    if not content or not content.strip():
        return ExtractionResult.not_financial("empty response")

    try:
        data = json.loads(_strip_code_fence(content))
    except json.JSONDecodeError:
        logger.warning("[EXTRACT] Response is not valid JSON: %.80r", content)
        return ExtractionResult.not_financial("malformed response")

    if data is None:
        return ExtractionResult.not_financial("not a financial transaction")
    if not isinstance(data, dict):
        logger.warning("[EXTRACT] Unexpected response type: %s.", type(data).__name__)
        return ExtractionResult.not_financial("malformed response")

    try:
        candidate = TransactionCandidate.model_validate(data)
    except ValidationError as exc:
        logger.info("[EXTRACT] Candidate rejected: %s", exc.errors(include_url=False))
        return ExtractionResult.not_financial("invalid candidate")

    return ExtractionResult.matched(candidate)


class GeminiExtractor(Extractor):
    """Extractor backed by Gemini through its OpenAI-compatible endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
    ):
        self.api_key = api_key or settings.get_env("GEMINI_API_KEY")
        self.model = model or settings.get_env("GEMINI_MODEL", settings.DEFAULT_GEMINI_MODEL)
        self.base_url = (
            base_url
            or settings.get_env("GEMINI_BASE_URL")
            or settings.DEFAULT_GEMINI_BASE_URL
        )
        self.client: OpenAI | None = None
        if self.api_key:
            self.client = OpenAI(api_key=self.api_key, base_url=self.base_url)

    @property
    def configured(self) -> bool:
        return self.client is not None

    def extract(self, text: str) -> ExtractionResult:
        if self.client is None:
            logger.warning("[EXTRACT] GEMINI_API_KEY not set; skipping extraction.")
            return ExtractionResult.unavailable("extractor not configured")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": INSTRUCTIONS},
                    {"role": "user", "content": PROMPT_TEMPLATE.format(text=text)},
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": "transaction", "schema": TRANSACTION_SCHEMA},
                },
                temperature=0.0,
            )
        except OpenAIError as exc:
            logger.error("[EXTRACT] Gemini request failed: %s", exc)
            return ExtractionResult.unavailable(str(exc))
        except Exception as exc:
            logger.error("[EXTRACT] Unexpected error calling Gemini: %s", exc)
            return ExtractionResult.unavailable(str(exc))

        content = self._extract_content(response)
        result = parse_extraction(content)
        logger.debug("[EXTRACT] '%s...' -> %s", text[:50], result.status.value)
        return result

    def ping(self) -> bool:
        if self.client is None:
            return False
        try:
            self.client.models.retrieve(self.model)
        except OpenAIError as exc:
            logger.warning("[EXTRACT] Model lookup failed: %s", exc)
            return False
        return True

    @staticmethod
    def _extract_content(response: object) -> str | None:
        choices = getattr(response, "choices", None)
        if not choices:
            return None
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        return content if isinstance(content, str) else None


def build_extractor() -> GeminiExtractor:
    extractor = GeminiExtractor()
    if extractor.configured:
        logger.info(
            "Gemini extractor enabled: model=%s, base_url=%s",
            extractor.model,
            extractor.base_url,
        )
    else:
        logger.warning("GEMINI_API_KEY not found. Transaction extraction disabled.")
    return extractor
