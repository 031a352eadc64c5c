"""Speech-to-text through the Azure Cognitive Services Speech REST API."""

from __future__ import annotations

import json
import struct
import threading
from typing import Sequence

import httpx

from pinpoint.stt_backend import STTBackend

AZURE_STT_ENDPOINT = (
    "https://ukwest.stt.speech.microsoft.com/speech/recognition/conversation"
    "/cognitiveservices/v1?language=en-GB&format=simple"
)
SAMPLE_RATE = 16000


def float_to_pcm16(pcm: Sequence[float]) -> bytes:
    """Clamp samples to [-1, 1] and pack them as little-endian signed 16-bit."""
    values = [int(max(-1.0, min(1.0, float(s))) * 32767.0) for s in pcm]
    return struct.pack(f"<{len(values)}h", *values)


def build_wav(pcm: Sequence[float]) -> bytes:
    """Wrap 16 kHz mono float samples in a RIFF WAV container with a 16-bit body."""
    body = float_to_pcm16(pcm)
    header = struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF", 36 + len(body), b"WAVE",
        b"fmt ", 16,
        1,                  # PCM
        1,                  # mono
        SAMPLE_RATE,
        SAMPLE_RATE * 2,    # byte rate
        2,                  # block align
        16,                 # bits per sample
        b"data", len(body),
    )
    return header + body


class AzureSTTBackend(STTBackend):
    """POSTs each audio chunk as WAV; a chunk arriving while a request is in flight is dropped."""

    def __init__(
        self,
        api_key: str,
        client: httpx.Client | None = None,
        endpoint: str = AZURE_STT_ENDPOINT,
    ) -> None:
        super().__init__()
        self._api_key = api_key
        self._given_client = client
        self._client: httpx.Client | None = None
        self._endpoint = endpoint
        self._lock = threading.Lock()
        self._in_flight: object | None = None

    def load_model(self, model_path: str) -> bool:
        """No model is needed; prepares the HTTP client."""
        self._client = self._given_client or httpx.Client(timeout=30.0)
        return True

    def is_ready(self) -> bool:
        return self._client is not None

    def requires_model_file(self) -> bool:
        return False

    def requires_silence_gating(self) -> bool:
        return True

    def backend_label(self) -> str:
        return "Cloud"

    def _finish(self, ticket: object) -> bool:
        """Clear *ticket*; return True if it had been cancelled."""
        with self._lock:
            if self._in_flight is ticket:
                self._in_flight = None
                return False
            return True

    def transcribe(self, pcm: Sequence[float]) -> None:
        client = self._client
        if client is None or len(pcm) == 0:
            return
        ticket = object()
        with self._lock:
            if self._in_flight is not None:
                return
            self._in_flight = ticket

        headers = {
            "Ocp-Apim-Subscription-Key": self._api_key,
            "Content-Type": f"audio/wav; codec=audio/pcm; samplerate={SAMPLE_RATE}",
            "Accept": "application/json",
        }
        try:
            response = client.post(self._endpoint, content=build_wav(pcm), headers=headers)
        except httpx.HTTPError as exc:
            if not self._finish(ticket):
                self.transcription_failed.emit(str(exc))
            return
        if self._finish(ticket):
            return

        if response.is_error:
            self.transcription_failed.emit(
                f"Server replied {response.status_code} {response.reason_phrase}"
            )
            return

        try:
            doc = json.loads(response.content)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return
        if not isinstance(doc, dict) or doc.get("RecognitionStatus") != "Success":
            return
        text = doc.get("DisplayText")
        text = text.strip() if isinstance(text, str) else ""
        if text:
            self.transcription_ready.emit(text)

    def stop_streaming(self) -> None:
        """Abandon the request in flight; its result is discarded silently."""
        with self._lock:
            self._in_flight = None