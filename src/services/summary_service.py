"""
AI meeting summaries via the OpenAI chat completions API.

Summaries are best-effort: a missing API key skips generation and any
failure is logged and swallowed so that it never fails the meeting.
"""

from typing import Optional

from openai import AsyncOpenAI

from src.config import settings
from src.logger import get_logger
from src.models.link import Link

logger = get_logger("summary")

SUMMARY_CONFIDENCE = 0.8


class SummaryService:
    """Generates one-sentence summaries for completed meetings."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None):
        self._client = client
        self.model = model or settings.OPENAI_MODEL

    @property
    def enabled(self) -> bool:
        return self._client is not None or bool(settings.OPENAI_API_KEY)

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
        return self._client

    @staticmethod
    def build_prompt(link: Link) -> str:
        outcomes = ", ".join(outcome.description for outcome in link.outcomes)
        return (
            "Summarize this meeting in one concise sentence:\n\n"
            f"Purpose: {link.purpose}\n"
            f"Type: {link.meeting_type}\n"
            f"Outcomes: {outcomes}\n"
            f"Notes: {link.notes or ''}\n\n"
            "Summary:"
        )

    async def generate_summary(self, link: Link) -> Optional[dict]:
        """Store a summary on the link and return it, or None if unavailable."""
        if not self.enabled:
            return None

        try:
            response = await self._get_client().chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": self.build_prompt(link)}],
                max_tokens=100,
                temperature=0.7
            )
            content = (response.choices[0].message.content or "").strip()
        except Exception as e:
            logger.error(f"Error generating AI summary for link {link.id}: {e}")
            return None

        if not content:
            return None

        link.set_ai_summary(content, self.model, SUMMARY_CONFIDENCE)
        return link.ai_summary


# Singleton instance
summary_service = SummaryService()
