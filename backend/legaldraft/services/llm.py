"""
Generative-text service client.

One-shot calls (document generation, titles) go through the OpenAI SDK;
transcript-based calls (custom drafting chat, AI edits) go through a
LangChain chat chain. Every failure surfaces as GenerationError and nothing
is retried: generation is costly and the user re-triggers it.
"""

import logging
import re
from typing import Optional, Sequence

import openai
from openai import AsyncOpenAI
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder
from langchain_openai import ChatOpenAI

from ..config import Settings
from ..exceptions import ConfigurationError, GenerationError
from ..schemas import ChatMessage
from .chat import to_langchain_messages

logger = logging.getLogger(__name__)

FENCE_PATTERN = re.compile(r"^```[\w-]*\s*\n(.*?)\n?```$", re.DOTALL)


def normalize_document_text(text: Optional[str]) -> str:
    """Strip whitespace and a wrapping code fence; raise if nothing is left."""
    cleaned = (text or "").strip()
    fenced = FENCE_PATTERN.match(cleaned)
    if fenced:
        cleaned = fenced.group(1).strip()
    if not cleaned:
        raise GenerationError("Generative service returned an empty document")
    return cleaned


class GenerativeTextService:
    def __init__(self, settings: Settings, *, chat_model=None):
        self.settings = settings
        self._chat_model = chat_model
        self._client = None

    def _api_key(self) -> str:
        if not self.settings.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY not configured")
        return self.settings.openai_api_key

    def _get_client(self):
        # one client (and connection pool) per service
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key())
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    def _get_chat_model(self):
        if self._chat_model is None:
            self._chat_model = ChatOpenAI(
                model=self.settings.openai_model,
                temperature=self.settings.openai_temperature,
                max_tokens=self.settings.openai_max_tokens,
                api_key=self._api_key(),
            )
        return self._chat_model

    async def complete(
        self,
        *,
        system: str,
        user: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Single system+user exchange; returns the raw response text."""
        client = self._get_client()
        try:
            resp = await client.chat.completions.create(
                model=self.settings.openai_model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=self.settings.openai_temperature if temperature is None else temperature,
                max_tokens=max_tokens or self.settings.openai_max_tokens,
            )
        except openai.APIStatusError as exc:
            logger.error(f"Generative service returned {exc.status_code}: {exc}")
            raise GenerationError(
                f"Generative service error: {exc.message}",
                status_code=exc.status_code,
                response_body=str(exc.body) if exc.body is not None else None,
            ) from exc
        except openai.OpenAIError as exc:
            logger.error(f"Generative service call failed: {exc}")
            raise GenerationError(f"Generative service unavailable: {exc}") from exc

        try:
            content = resp.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            raise GenerationError("Malformed response from generative service") from exc
        if not isinstance(content, str):
            raise GenerationError("Malformed response from generative service")
        return content

    async def converse(self, *, system: str, history: Sequence[ChatMessage], input_text: str) -> str:
        """
        Send a full transcript plus a new user turn; returns the reply text.

        `history` must not contain `input_text`; the caller's transcript is
        replayed in order before it.
        """
        prompt = ChatPromptTemplate.from_messages(
            [
                # system text is passed as a variable so braces in documents are never parsed
                ("system", "{system}"),
                MessagesPlaceholder(variable_name="history"),
                ("human", "{input}"),
            ]
        )
        chain = prompt | self._get_chat_model() | StrOutputParser()
        try:
            return await chain.ainvoke(
                {
                    "system": system,
                    "history": to_langchain_messages(history),
                    "input": input_text,
                }
            )
        except openai.APIStatusError as exc:
            logger.error(f"Generative service returned {exc.status_code}: {exc}")
            raise GenerationError(
                f"Generative service error: {exc.message}",
                status_code=exc.status_code,
                response_body=str(exc.body) if exc.body is not None else None,
            ) from exc
        except openai.OpenAIError as exc:
            logger.error(f"Generative chat call failed: {exc}")
            raise GenerationError(f"Generative service unavailable: {exc}") from exc
        except Exception as exc:
            # error bodies, transport errors and runnable failures surfaced by LangChain
            logger.error(f"Generative chat call failed: {exc!r}")
            raise GenerationError(f"Generative service error: {exc}") from exc
