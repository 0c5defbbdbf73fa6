from __future__ import annotations

import asyncio
from functools import lru_cache
from typing import Optional, Protocol

from expohub.core.config import settings


class AIIntegrationError(RuntimeError):
    """Erro relacionado à configuração ou execução da camada de IA."""


class TextGenerator(Protocol):
    """Anything that turns a prompt into free text (Gemini in production, fakes in tests)."""

    async def generate(self, prompt: str) -> str: ...


def _load_dependencies() -> tuple:
    try:
        from langchain_core.prompts import ChatPromptTemplate  # type: ignore
        from langchain_google_genai import ChatGoogleGenerativeAI  # type: ignore
    except ImportError as exc:  # pragma: no cover - feedback direto
        raise AIIntegrationError(
            "AI dependencies not found. Install them with "
            "`pip install langchain-core langchain-google-genai`."
        ) from exc
    return ChatPromptTemplate, ChatGoogleGenerativeAI


class GeminiTextGenerator:
    """LangChain chain (prompt | Gemini) executed off the event loop."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        temperature: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.GOOGLE_API_KEY
        self.model_name = model_name or settings.GEMINI_MODEL_NAME
        self.temperature = settings.GEMINI_TEMPERATURE if temperature is None else temperature
        self._chain = None

    def _get_chain(self):
        if self._chain is not None:
            return self._chain
        if not self.api_key:
            raise AIIntegrationError(
                "GOOGLE_API_KEY not configured. Set the Gemini key to enable the assistant."
            )

        ChatPromptTemplate, ChatGoogleGenerativeAI = _load_dependencies()

        # o prompt já chega montado; o template só o repassa (sem reinterpretar chaves JSON)
        prompt = ChatPromptTemplate.from_template("{prompt}")

        llm = ChatGoogleGenerativeAI(
            model=self.model_name,
            google_api_key=self.api_key,
            temperature=self.temperature,
            top_p=settings.GEMINI_TOP_P,
            max_output_tokens=settings.GEMINI_MAX_OUTPUT_TOKENS,
        )

        self._chain = prompt | llm
        return self._chain

    async def generate(self, prompt: str) -> str:
        """
        Executa a cadeia LangChain de forma assíncrona retornando o texto bruto.
        """
        if not prompt.strip():
            raise AIIntegrationError("Empty prompt.")

        chain = self._get_chain()

        def _runner() -> str:
            result = chain.invoke({"prompt": prompt})
            content = getattr(result, "content", "")
            if isinstance(content, list):
                content = "".join(
                    part.get("text", "") if isinstance(part, dict) else str(part)
                    for part in content
                )
            return str(content).strip()

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, _runner)
        except Exception as exc:
            raise AIIntegrationError(f"Gemini request failed: {exc}") from exc


@lru_cache(maxsize=1)
def get_text_generator() -> GeminiTextGenerator:
    return GeminiTextGenerator()


__all__ = ["AIIntegrationError", "GeminiTextGenerator", "TextGenerator", "get_text_generator"]
