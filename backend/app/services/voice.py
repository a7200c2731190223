import base64
import logging
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack
from dataclasses import dataclass

from google import genai
from google.genai import types

from app.config import get_settings

logger = logging.getLogger(__name__)

INPUT_MIME_TYPE = "audio/pcm;rate=16000"


class VoiceUnavailableError(Exception):
    """The live voice model cannot be reached or is not configured."""


@dataclass(frozen=True)
class VoiceEvent:
    type: str
    data: str = ""

    def as_dict(self) -> dict:
        return {"type": self.type, "data": self.data}


def system_instruction(user_name: str) -> str:
    return (
        f"You are the Internal Feedback AI Assistant for {user_name}. "
        "Draft a feedback report with the user. Help them with:\n"
        "1. Incident details.\n"
        "2. Relevant case numbers.\n"
        "3. Professional summary.\n"
        "Keep responses concise."
    )


def parse_message(message) -> list[VoiceEvent]:
    """Flatten one live server message into relay events."""
    content = getattr(message, "server_content", None)
    if content is None:
        return []

    events = []
    turn = getattr(content, "model_turn", None)
    for part in getattr(turn, "parts", None) or []:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            events.append(VoiceEvent("audio", base64.b64encode(inline.data).decode("ascii")))

    output_tx = getattr(content, "output_transcription", None)
    if output_tx is not None and output_tx.text:
        events.append(VoiceEvent("output_transcript", output_tx.text))
    input_tx = getattr(content, "input_transcription", None)
    if input_tx is not None and input_tx.text:
        events.append(VoiceEvent("input_transcript", input_tx.text))

    # Barge-in: the client must drop any audio it still has queued
    if getattr(content, "interrupted", False):
        events.append(VoiceEvent("interrupted"))
    if getattr(content, "turn_complete", False):
        events.append(VoiceEvent("turn_complete"))
    return events


class VoiceSession:
    """
    One live audio conversation with Gemini.

    ``start()`` opens the live connection and ``stop()`` releases it. ``stop()``
    is safe to call more than once and runs on every exit path when the session
    is used as an async context manager.
    """

    def __init__(self, user_name: str, client: genai.Client | None = None):
        self.settings = get_settings()
        self.user_name = user_name
        self._client = client
        self._stack: AsyncExitStack | None = None
        self._session = None

    @property
    def active(self) -> bool:
        return self._session is not None

    def _get_client(self) -> genai.Client:
        if self._client is not None:
            return self._client
        if not (self.settings.GEMINI_API_KEY or "").strip():
            raise VoiceUnavailableError("Voice assistant is not configured (GEMINI_API_KEY missing)")
        self._client = genai.Client(api_key=self.settings.GEMINI_API_KEY.strip())
        return self._client

    def _config(self) -> types.LiveConnectConfig:
        return types.LiveConnectConfig(
            response_modalities=[types.Modality.AUDIO],
            speech_config=types.SpeechConfig(
                voice_config=types.VoiceConfig(
                    prebuilt_voice_config=types.PrebuiltVoiceConfig(
                        voice_name=self.settings.GEMINI_VOICE_NAME
                    )
                )
            ),
            input_audio_transcription=types.AudioTranscriptionConfig(),
            output_audio_transcription=types.AudioTranscriptionConfig(),
            system_instruction=system_instruction(self.user_name),
        )

    async def start(self) -> None:
        if self.active:
            return
        client = self._get_client()
        stack = AsyncExitStack()
        try:
            self._session = await stack.enter_async_context(
                client.aio.live.connect(model=self.settings.GEMINI_VOICE_MODEL, config=self._config())
            )
        except Exception as e:
            await stack.aclose()
            logger.error("Failed to open live voice session: %s", e)
            raise VoiceUnavailableError("Voice assistant is unavailable right now") from e
        self._stack = stack
        logger.info("Live voice session started for %s", self.user_name)

    async def send_audio(self, pcm: bytes) -> None:
        """Forward one chunk of 16 kHz mono PCM from the microphone."""
        if not self.active:
            raise VoiceUnavailableError("Voice session is not running")
        await self._session.send_realtime_input(
            audio=types.Blob(data=pcm, mime_type=INPUT_MIME_TYPE)
        )

    async def events(self) -> AsyncIterator[VoiceEvent]:
        """Relay events until the session is stopped or the server closes it."""
        while self.active:
            async for message in self._session.receive():
                for event in parse_message(message):
                    yield event
                if not self.active:
                    return

    async def stop(self) -> None:
        stack, self._stack = self._stack, None
        self._session = None
        if stack is None:
            return
        try:
            await stack.aclose()
        except Exception as e:
            logger.warning("Error while closing live voice session: %s", e)
        logger.info("Live voice session stopped for %s", self.user_name)

    async def __aenter__(self) -> "VoiceSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
