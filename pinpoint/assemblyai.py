"""Speech-to-text by streaming audio to AssemblyAI's real-time API."""

from __future__ import annotations

import enum
import json
import logging
import threading
from typing import Any, Callable, Mapping, Sequence

import websocket

from pinpoint.azure_stt import float_to_pcm16
from pinpoint.stt_backend import STTBackend

log = logging.getLogger(__name__)

STREAMING_URL = (
    "wss://streaming.assemblyai.com/v3/ws"
    "?sample_rate=16000&encoding=pcm_s16le&speech_model=universal-streaming-english"
)
# Force-close if the server has not sent Termination within this many seconds.
ABORT_TIMEOUT = 5.0
# The service accepts 50-1000 ms per message; 960 ms at 16 kHz.
MAX_CHUNK_SAMPLES = 15_360
TERMINATE_MESSAGE = '{"type":"Terminate"}'

Connector = Callable[[str, Mapping[str, str]], Any]


def _default_connector(url: str, headers: Mapping[str, str]) -> websocket.WebSocket:
    return websocket.create_connection(url, header=dict(headers))


class _SocketState(enum.Enum):
    UNCONNECTED = enum.auto()
    CONNECTING = enum.auto()
    CONNECTED = enum.auto()


def _text(obj: dict, key: str) -> str:
    value = obj.get(key)
    return value.strip() if isinstance(value, str) else ""


class AssemblyAISTTBackend(STTBackend):
    """Streams 16-bit PCM over a WebSocket and emits transcripts per turn.

    The connection opens lazily on the first transcribe() after load_model(),
    stays open through silence, and closes gracefully on stop_streaming().
    *connector* is called as ``connector(url, headers)`` and must return an
    object with ``send``, ``send_binary``, ``recv``, ``close`` and ``abort``.
    """

    def __init__(
        self,
        api_key: str,
        connector: Connector | None = None,
        url: str = STREAMING_URL,
        abort_timeout: float = ABORT_TIMEOUT,
    ) -> None:
        super().__init__()
        self._api_key = api_key
        self._connector = connector or _default_connector
        self._url = url
        self._abort_timeout = abort_timeout
        self._lock = threading.RLock()
        self._loaded = False
        self._state = _SocketState.UNCONNECTED
        self._conn: Any = None
        self._generation = 0
        self._abort_timer: threading.Timer | None = None
        # Raw transcript of the current turn, kept in case no formatted
        # utterance arrives before the turn ends.
        self._pending_partial = ""
        # Set once text has been emitted for the current turn.
        self._emitted_this_turn = False

    def __enter__(self) -> AssemblyAISTTBackend:
        return self

    def __exit__(self, *exc_info: object) -> None:
        with self._lock:
            self._stop_abort_timer()
            conn = self._conn if self._state is _SocketState.CONNECTED else None
        if conn is not None:
            self._send_text(conn, TERMINATE_MESSAGE)
            self._safe_close(conn)

    # -- STTBackend interface -------------------------------------------------

    def load_model(self, model_path: str) -> bool:
        """No model is needed; enables streaming."""
        with self._lock:
            self._loaded = True
        return True

    def is_ready(self) -> bool:
        return self._loaded

    def requires_model_file(self) -> bool:
        return False

    def requires_silence_gating(self) -> bool:
        return False

    def backend_label(self) -> str:
        return "Cloud"

    def transcribe(self, pcm: Sequence[float]) -> None:
        """Send *pcm*; the chunk that triggers opening the connection is dropped."""
        with self._lock:
            if not self._loaded:
                return
            if self._state is _SocketState.UNCONNECTED:
                self._open_connection()
                return
            if self._state is not _SocketState.CONNECTED:
                return
            conn = self._conn

        samples = list(pcm)
        for start in range(0, len(samples), MAX_CHUNK_SAMPLES):
            payload = float_to_pcm16(samples[start:start + MAX_CHUNK_SAMPLES])
            try:
                conn.send_binary(payload)
            except (websocket.WebSocketException, OSError) as exc:
                log.warning("[AssemblyAI] Send failed: %s", exc)
                return

    def stop_streaming(self) -> None:
        """Ask the server to finish; force-close if it does not reply in time."""
        with self._lock:
            if self._state is _SocketState.CONNECTED:
                conn = self._conn
                self._stop_abort_timer()
                timer = threading.Timer(self._abort_timeout, self.on_abort_timeout)
                timer.daemon = True
                self._abort_timer = timer
            elif self._state is _SocketState.CONNECTING:
                self._generation += 1
                self._state = _SocketState.UNCONNECTED
                return
            else:
                return
        self._send_text(conn, TERMINATE_MESSAGE)
        timer.start()

    # -- Connection events ------------------------------------------------------

    def handle_message(self, message: str) -> None:
        """Process one text message from the server."""
        try:
            obj = json.loads(message)
        except (json.JSONDecodeError, TypeError):
            return
        if not isinstance(obj, dict):
            return

        msg_type = obj.get("type")
        if msg_type == "Begin":
            return

        if msg_type == "Turn":
            # The punctuated "utterance" arrives in a partial turn before
            # end_of_turn; emit as soon as it is non-empty.
            utterance = _text(obj, "utterance")
            transcript = _text(obj, "transcript")
            end_of_turn = obj.get("end_of_turn") is True
            with self._lock:
                if utterance and not self._emitted_this_turn:
                    self.transcription_ready.emit(utterance)
                    self._emitted_this_turn = True
                    self._pending_partial = ""
                elif not self._emitted_this_turn and transcript:
                    self._pending_partial = transcript

                if end_of_turn:
                    if not self._emitted_this_turn and self._pending_partial:
                        self.transcription_ready.emit(self._pending_partial)
                    self._pending_partial = ""
                    self._emitted_this_turn = False
            return

        if msg_type == "Termination":
            with self._lock:
                self._stop_abort_timer()
                if not self._emitted_this_turn and self._pending_partial:
                    self.transcription_ready.emit(self._pending_partial)
                self._pending_partial = ""
                self._emitted_this_turn = False
                conn = self._conn
            if conn is not None:
                self._safe_close(conn)
            return

        if msg_type == "Error":
            log.warning("[AssemblyAI] Server error: %s", _text(obj, "error"))
            return

        # Older protocol: FinalTranscript messages.
        if obj.get("message_type") == "FinalTranscript":
            text = _text(obj, "text")
            if text:
                self.transcription_ready.emit(text)

    def on_disconnected(self) -> None:
        """Reset per-connection state once the socket has closed."""
        with self._lock:
            self._stop_abort_timer()
            self._pending_partial = ""
            self._emitted_this_turn = False
            self._conn = None
            self._state = _SocketState.UNCONNECTED

    def on_abort_timeout(self) -> None:
        """The server never confirmed termination: flush the partial and close."""
        log.warning("[AssemblyAI] No Termination reply — force closing")
        with self._lock:
            self._abort_timer = None
            if self._pending_partial:
                self.transcription_ready.emit(self._pending_partial)
                self._pending_partial = ""
            conn = self._conn
        if conn is not None:
            self._safe_close(conn)

    # -- Internals --------------------------------------------------------------

    def _open_connection(self) -> None:
        self._state = _SocketState.CONNECTING
        self._generation += 1
        thread = threading.Thread(target=self._run, args=(self._generation,), daemon=True)
        thread.start()

    def _run(self, generation: int) -> None:
        try:
            conn = self._connector(self._url, {"Authorization": self._api_key})
        except (websocket.WebSocketException, OSError) as exc:
            log.warning("[AssemblyAI] Connection failed: %s", exc)
            with self._lock:
                if generation == self._generation:
                    self._state = _SocketState.UNCONNECTED
            return

        with self._lock:
            stale = generation != self._generation or self._state is not _SocketState.CONNECTING
            if not stale:
                self._conn = conn
                self._state = _SocketState.CONNECTED
        if stale:
            self._safe_abort(conn)
            return
        self._read_loop(conn)

    def _read_loop(self, conn: Any) -> None:
        try:
            while True:
                message = conn.recv()
                if isinstance(message, str):
                    self.handle_message(message)
        except websocket.WebSocketConnectionClosedException:
            pass
        except (websocket.WebSocketException, OSError) as exc:
            log.warning("[AssemblyAI] Socket error (%s)", exc)
            with self._lock:
                self._stop_abort_timer()
                self._pending_partial = ""
            self._safe_abort(conn)
        finally:
            with self._lock:
                if self._conn is conn:
                    self.on_disconnected()

    def _stop_abort_timer(self) -> None:
        if self._abort_timer is not None:
            self._abort_timer.cancel()
            self._abort_timer = None

    @staticmethod
    def _send_text(conn: Any, text: str) -> None:
        try:
            conn.send(text)
        except (websocket.WebSocketException, OSError) as exc:
            log.warning("[AssemblyAI] Send failed: %s", exc)

    @staticmethod
    def _safe_close(conn: Any) -> None:
        try:
            conn.close()
        except (websocket.WebSocketException, OSError) as exc:
            log.debug("[AssemblyAI] Close failed: %s", exc)

    @staticmethod
    def _safe_abort(conn: Any) -> None:
        try:
            conn.abort()
        except (websocket.WebSocketException, OSError) as exc:
            log.debug("[AssemblyAI] Abort failed: %s", exc)