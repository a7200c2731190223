import logging
from collections.abc import Iterable

from google import genai
from google.genai import types

from app.config import get_settings
from app.schemas.feedback import FeedbackRecord

logger = logging.getLogger(__name__)

ANALYSIS_UNAVAILABLE = "Could not analyze."
COACHING_UNAVAILABLE = "Coaching suggestions are unavailable right now."
INSIGHT_UNAVAILABLE = "AI Service Unavailable."
NO_INSIGHT_DATA = "No data available to analyze."

INSIGHT_CONTEXT_SIZE = 20


class AiAssistant:
    """
    Text helpers backed by Gemini.

    Methods never raise. Without an API key, or when the SDK call fails, they
    return the input text or a fixed placeholder. The client is created on
    first use.
    """

    def __init__(self):
        self.settings = get_settings()
        self._client = None

    def _get_client(self):
        """Lazy-initialize the Gemini client."""
        if self._client is not None:
            return self._client

        if not (self.settings.GEMINI_API_KEY or "").strip():
            logger.warning(
                "Gemini request skipped: GEMINI_API_KEY is not set. "
                "Set it in the environment or .env to enable AI features."
            )
            return None

        try:
            self._client = genai.Client(api_key=self.settings.GEMINI_API_KEY.strip())
            logger.info("Gemini client initialized. Model: %s", self.settings.GEMINI_MODEL)
            return self._client
        except Exception as e:
            logger.error("Failed to initialize Gemini client: %s", e, exc_info=True)
            return None

    async def _generate(self, prompt: str, temperature: float = 0.4) -> str | None:
        client = self._get_client()
        if client is None:
            return None

        try:
            response = await client.aio.models.generate_content(
                model=self.settings.GEMINI_MODEL,
                contents=prompt,
                config=types.GenerateContentConfig(temperature=temperature),
            )
        except Exception as e:
            logger.error("Gemini request failed: %s", e)
            return None

        text = (response.text or "").strip() if response is not None else ""
        return text or None

    async def refine(self, text: str, category: str) -> str:
        """Rewrite raw feedback as constructive, professional prose."""
        prompt = (
            f"You are a corporate communications expert. Rewrite the following {category} "
            "feedback to be constructive, professional, and actionable. Use the "
            "Situation-Behavior-Impact (SBI) model if appropriate. Keep the tone helpful "
            "but objective.\n\n"
            f'Raw Feedback: "{text}"\n\n'
            "Refined Feedback:"
        )
        return await self._generate(prompt) or text

    async def analyze(self, text: str) -> str:
        """One or two sentence summary of the core issue plus a sentiment tag."""
        prompt = (
            "Analyze the following feedback report. Provide a very brief summary "
            "(1-2 sentences) of the core issue or praise, and tag the sentiment "
            "(Positive, Neutral, Negative).\n\n"
            f'Feedback: "{text}"\n\n'
            "Analysis:"
        )
        return await self._generate(prompt, temperature=0.2) or ANALYSIS_UNAVAILABLE

    async def coach(self, text: str) -> str:
        """A single coaching tip a manager can pass on to the reported colleague."""
        prompt = (
            "You are a supportive team lead. Based on the feedback below, write ONE "
            "concrete coaching tip (under 40 words) addressed to the colleague it is "
            "about. Be specific and encouraging.\n\n"
            f'Feedback: "{text}"\n\n'
            "Coaching tip:"
        )
        return await self._generate(prompt) or COACHING_UNAVAILABLE

    async def insight(self, feedbacks: Iterable[FeedbackRecord]) -> str:
        """Executive summary of the main root-cause trend across recent reports."""
        recent = list(feedbacks)[:INSIGHT_CONTEXT_SIZE]
        if not recent:
            return NO_INSIGHT_DATA

        context = "\n".join(
            f"- Type: {fb.process_type.value}, Description: {fb.fault_description}"
            for fb in recent
        )
        prompt = (
            "You are an operations analyst. Read the following recent feedback reports "
            'and provide a "Manager Executive Summary".\n\n'
            '1. Identify the ONE main root cause trend (e.g. "Confusion with new return portal").\n'
            '2. Suggest ONE specific action for the manager (e.g. "Update the training guide '
            'on Refund vs Exchange").\n\n'
            "Keep it under 60 words. Be direct.\n\n"
            f"Reports:\n{context}\n\n"
            "Insight:"
        )
        return await self._generate(prompt) or INSIGHT_UNAVAILABLE


# Singleton instance
ai_assistant = AiAssistant()
