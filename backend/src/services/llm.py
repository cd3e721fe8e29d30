"""Chat-completion client and the diary companion system prompt."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

import httpx

from ..models.chat import RelatedEntrySummary
from ..models.vector import UserVectorInsights
from .config import AppConfig, get_config

logger = logging.getLogger(__name__)

COMPANION_GUIDELINES = """Guidelines:
- Be warm, empathetic, and supportive
- Reference their diary entries naturally when relevant
- Help them identify patterns and insights
- Encourage self-reflection and personal growth
- Respect their privacy and emotional state
- Ask thoughtful follow-up questions
- Provide gentle guidance without being prescriptive
- Acknowledge their feelings and experiences
- Keep responses conversational and personal (2-4 sentences typically)

Remember: You're not a therapist, but a supportive companion helping them process their thoughts and experiences through their own writing."""


class LLMError(Exception):
    """Raised when the chat completion provider fails or is not configured."""


def describe_sentiment(score: float) -> str:
    if score > 0.2:
        return "generally positive"
    if score < -0.2:
        return "often reflective of challenges"
    return "balanced between positive and challenging experiences"


def build_system_prompt(
    stats: UserVectorInsights,
    related_entries: Sequence[RelatedEntrySummary],
) -> str:
    """Companion persona plus what we know about the user's diary."""
    context: List[str] = []
    if stats.total_entries > 0:
        context.append(f"The user has written {stats.total_entries} diary entries.")
        context.append(f"Their overall emotional tone is {describe_sentiment(stats.average_sentiment)}.")
        if stats.common_tags:
            context.append(
                f"Common themes in their writing include: {', '.join(stats.common_tags[:3])}."
            )
        if stats.mood_distribution:
            top_moods = sorted(
                stats.mood_distribution.items(), key=lambda item: item[1], reverse=True
            )[:3]
            context.append(
                f"They frequently express feeling {', '.join(mood for mood, _ in top_moods)}."
            )

    user_context = " ".join(context) if context else "This user is just starting their diary journey."

    related = ""
    if related_entries:
        lines = [
            f"{i}. Date: {entry.date}, Mood: {entry.mood}\nContent: {entry.content}"
            for i, entry in enumerate(related_entries, start=1)
        ]
        related = "\n\nRelevant diary entries for context:\n" + "\n\n".join(lines)

    return (
        "You are a compassionate AI companion designed to help users reflect on their "
        "thoughts and emotions through their diary entries. You have access to their personal "
        "diary data to provide personalized, empathetic responses.\n\n"
        f"User Context:\n{user_context}\n"
        f"{related}\n\n"
        f"{COMPANION_GUIDELINES}"
    )


class LLMClient:
    """Minimal OpenAI-compatible /chat/completions client."""

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 60.0,
    ) -> None:
        self.config = config or get_config()
        self.model = self.config.openai_model
        self._transport = transport
        self._timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.config.openai_api_key)

    async def complete(
        self,
        messages: List[Dict[str, str]],
        *,
        temperature: float = 0.7,
        max_tokens: int = 500,
        model: Optional[str] = None,
    ) -> str:
        if not self.is_configured():
            raise LLMError("OPENAI_API_KEY is not configured")

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.config.openai_base_url.rstrip('/')}/chat/completions",
                    headers={
                        "Authorization": f"Bearer {self.config.openai_api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "model": model or self.model,
                        "messages": messages,
                        "temperature": temperature,
                        "max_tokens": max_tokens,
                    },
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as exc:
            raise LLMError(f"Chat completion failed with {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise LLMError(f"Chat completion request failed: {exc}") from exc
        except ValueError as exc:
            raise LLMError("Chat completion returned a non-JSON body") from exc

        if not isinstance(data, dict):
            raise LLMError("Unexpected chat completion payload")
        choices = data.get("choices") or []
        first = choices[0] if isinstance(choices, list) and choices else None
        message = first.get("message") if isinstance(first, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not content or not isinstance(content, str):
            raise LLMError("No response content from chat completion")
        usage = data.get("usage")
        tokens = usage.get("total_tokens", 0) if isinstance(usage, dict) else 0
        logger.info(f"Chat completion used {tokens} tokens")
        return content


def get_llm_client() -> LLMClient:
    return LLMClient()


__all__ = ["LLMClient", "LLMError", "build_system_prompt", "describe_sentiment", "get_llm_client"]
