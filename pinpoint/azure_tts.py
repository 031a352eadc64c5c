"""Text-to-speech through Azure Cognitive Services."""

from __future__ import annotations

import logging
import struct
import threading

import httpx

from pinpoint.tts_engine import AudioFormat, SampleFormat, TTSEngine

log = logging.getLogger(__name__)

AZURE_TTS_ENDPOINT = "https://ukwest.tts.speech.microsoft.com/cognitiveservices/v1"
AZURE_VOICE = "en-GB-SoniaNeural"
OUTPUT_FORMAT = AudioFormat(24000, 1, SampleFormat.FLOAT)


def _f32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", value))[0]


def xml_escape(text: str) -> str:
    """Escape the five XML special characters."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def build_ssml(text: str, speed: float) -> str:
    """Build the SSML document; *speed* 1.0 is normal rate."""
    # Single-precision arithmetic, truncated toward zero.
    pct = int(_f32(_f32(_f32(speed) - 1.0) * 100.0))
    rate = f"+{pct}%" if pct >= 0 else f"{pct}%"
    return (
        "<speak version='1.0' xml:lang='en-GB'"
        " xmlns='http://www.w3.org/2001/10/synthesis'>"
        f"<voice name='{AZURE_VOICE}'>"
        f"<prosody rate='{rate}'>{xml_escape(text)}</prosody>"
        "</voice></speak>"
    )


def pcm16_to_float(data: bytes) -> bytes:
    """Convert little-endian 16-bit PCM to float32 bytes; a trailing odd byte is ignored."""
    count = len(data) // 2
    samples = struct.unpack(f"<{count}h", data[: count * 2])
    return struct.pack(f"<{count}f", *(s / 32768.0 for s in samples))


class AzureTTSEngine(TTSEngine):
    """One HTTP POST per synthesise(); stop() discards the request in flight."""

    def __init__(
        self,
        api_key: str,
        client: httpx.Client | None = None,
        endpoint: str = AZURE_TTS_ENDPOINT,
    ) -> None:
        super().__init__()
        self._api_key = api_key
        self._given_client = client
        self._client: httpx.Client | None = None
        self._endpoint = endpoint
        self._ready = False
        self._lock = threading.Lock()
        self._in_flight: object | None = None

    def load_model(self, model_path: str, voice_path: str, tokens_path: str) -> bool:
        """No files are needed; prepares the HTTP client."""
        self._client = self._given_client or httpx.Client(timeout=30.0)
        self._ready = True
        self.model_loaded.emit()
        return True

    def is_ready(self) -> bool:
        return self._ready

    def gpu_backend(self) -> str:
        return "Cloud"

    def _finish(self, ticket: object) -> bool:
        """Clear *ticket*; return True if it had been cancelled."""
        with self._lock:
            if self._in_flight is ticket:
                self._in_flight = None
                return False
            return True

    def synthesise(self, text: str) -> None:
        client = self._client
        if not self._ready or client is None or not text.strip():
            return

        self.synthesis_started.emit()
        ticket = object()
        with self._lock:
            self._in_flight = ticket

        headers = {
            "Ocp-Apim-Subscription-Key": self._api_key,
            "Content-Type": "application/ssml+xml",
            "X-Microsoft-OutputFormat": "raw-24khz-16bit-mono-pcm",
        }
        body = build_ssml(text, self.speed).encode("utf-8")
        try:
            response = client.post(self._endpoint, content=body, headers=headers)
        except httpx.HTTPError as exc:
            if not self._finish(ticket):
                self.error_occurred.emit(str(exc))
            self.synthesis_finished.emit()
            return

        if self._finish(ticket):
            self.synthesis_finished.emit()
            return

        if response.is_error:
            self.error_occurred.emit(
                f"Server replied {response.status_code} {response.reason_phrase}"
            )
            self.synthesis_finished.emit()
            return

        pcm16 = response.content
        if pcm16:
            self.audio_ready.emit(pcm16_to_float(pcm16), OUTPUT_FORMAT)
        self.synthesis_finished.emit()

    def stop(self) -> None:
        """Abandon the request in flight; no audio or error follows for it."""
        with self._lock:
            self._in_flight = None