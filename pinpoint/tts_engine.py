"""Text-to-speech engine interface, audio format description and worker."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass

from pinpoint.signals import Signal


class SampleFormat(enum.Enum):
    UINT8 = "uint8"
    INT16 = "int16"
    INT32 = "int32"
    FLOAT = "float"


@dataclass(frozen=True)
class AudioFormat:
    """Layout of raw PCM bytes."""

    sample_rate: int
    channel_count: int
    sample_format: SampleFormat


class TTSEngine(ABC):
    """A speech synthesiser.

    synthesise() emits ``synthesis_started``, then ``audio_ready(pcm_bytes,
    AudioFormat)`` zero or more times, then ``synthesis_finished``.
    """

    def __init__(self) -> None:
        self.audio_ready = Signal()
        self.synthesis_started = Signal()
        self.synthesis_finished = Signal()
        self.model_loaded = Signal()
        self.error_occurred = Signal()
        self.speed = 1.0

    @abstractmethod
    def load_model(self, model_path: str, voice_path: str, tokens_path: str) -> bool:
        """Load model, voice and token vocabulary; return True on success."""

    @abstractmethod
    def synthesise(self, text: str) -> None:
        """Synthesise *text* on the calling thread."""

    @abstractmethod
    def stop(self) -> None:
        """Abort any synthesis in progress."""

    @abstractmethod
    def is_ready(self) -> bool:
        """Whether synthesise() can be called."""

    def gpu_backend(self) -> str:
        """Name of the active accelerator, or an empty string for CPU."""
        return ""


class TtsWorker:
    """Owns an engine, relays its output and reports model loading."""

    def __init__(self, engine: TTSEngine) -> None:
        self.engine = engine
        self.model_ready = Signal()
        self.model_failed = Signal()
        self.backend_changed = Signal()
        self.synthesis_started = Signal()
        self.synthesis_finished = Signal()
        self.audio_ready = Signal()
        self.error_occurred = Signal()

        engine.audio_ready.connect(self.audio_ready.emit)
        engine.synthesis_started.connect(self.synthesis_started.emit)
        engine.synthesis_finished.connect(self.synthesis_finished.emit)
        engine.error_occurred.connect(self.error_occurred.emit)
        # model_loaded is not relayed: load_model() announces the backend first.

    def load_model(self, model_path: str, voice_path: str, tokens_path: str) -> None:
        if not self.engine.load_model(model_path, voice_path, tokens_path):
            self.model_failed.emit("load_model failed — see error_occurred for details")
            return
        self.backend_changed.emit(self.engine.gpu_backend())
        self.model_ready.emit()

    def synthesise(self, text: str) -> None:
        self.engine.synthesise(text)

    def stop(self) -> None:
        self.engine.stop()