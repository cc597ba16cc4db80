from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol

from openai import OpenAI

from ..exceptions import GenerationError

DEFAULT_MODEL = "gpt-4"
MAX_OUTPUT_TOKENS = 600
TEMPERATURE = 0.7


@dataclass(frozen=True)
class GenerationRequest:
    system_instruction: str
    title: str
    author: str
    context: str
    question: str
    max_tokens: int = MAX_OUTPUT_TOKENS
    temperature: float = TEMPERATURE

    def messages(self) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system_instruction},
            {
                "role": "user",
                "content": (
                    f"Book: {self.title} by {self.author}\n\n"
                    f"Context from book: {self.context}\n\n"
                    f"Question: {self.question}"
                ),
            },
        ]


@dataclass(frozen=True)
class GenerationOutcome:
    """Either an answer or the reason there is none."""

    answer: Optional[str] = None
    failure: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failure is None and self.answer is not None

    @classmethod
    def success(cls, answer: str) -> "GenerationOutcome":
        return cls(answer=answer)

    @classmethod
    def failed(cls, reason: str) -> "GenerationOutcome":
        return cls(failure=reason)


class TextGenerator(Protocol):
    def generate(self, request: GenerationRequest) -> str:
        ...


class OpenAIChatGenerator:
    """
    Chat-completions backed generator.

    The client is created on first use so a missing API key surfaces as a
    generation failure rather than at startup. Client-side retries are off;
    ``timeout`` bounds each call.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[OpenAI] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def generate(self, request: GenerationRequest) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=request.messages(),
            temperature=request.temperature,
            max_tokens=request.max_tokens,
        )
        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            raise GenerationError(f"Malformed completion response: {exc}") from exc
        if not content:
            raise GenerationError("Completion response contained no text")
        return content
