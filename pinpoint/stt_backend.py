"""Speech-to-text backend interface and the worker that drives one."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from pinpoint.signals import Signal


class STTBackend(ABC):
    """A speech-to-text engine.

    Results are delivered through the ``transcription_ready`` and
    ``transcription_failed`` signals, each emitted with a string.
    """

    def __init__(self) -> None:
        self.transcription_ready = Signal()
        self.transcription_failed = Signal()

    @abstractmethod
    def load_model(self, model_path: str) -> bool:
        """Load the model at *model_path*; return True on success."""

    @abstractmethod
    def transcribe(self, pcm: Sequence[float]) -> None:
        """Transcribe 16 kHz mono float samples in the range -1.0 to 1.0."""

    @abstractmethod
    def is_ready(self) -> bool:
        """Whether the backend can accept audio."""

    def requires_model_file(self) -> bool:
        """Whether load_model() needs a local model file."""
        return True

    def requires_silence_gating(self) -> bool:
        """Whether silent chunks should be dropped before transcribe()."""
        return True

    def backend_label(self) -> str:
        """Short label of the compute backend, such as "CPU" or "Cloud"."""
        return "CPU"

    def stop_streaming(self) -> None:
        """Called when listening stops; streaming backends close connections here."""


class STTWorker:
    """Owns a backend and relays its results and model-loading outcome."""

    def __init__(self, backend: STTBackend) -> None:
        self.backend = backend
        self.model_ready = Signal()
        self.model_failed = Signal()
        self.backend_label_ready = Signal()
        self.transcription_ready = Signal()
        self.transcription_failed = Signal()

        backend.transcription_ready.connect(self.transcription_ready.emit)
        backend.transcription_failed.connect(self.transcription_failed.emit)

    def load_model(self, model_path: str) -> None:
        """Load the backend's model and announce the outcome."""
        if self.backend.load_model(model_path):
            self.model_ready.emit()
            self.backend_label_ready.emit(self.backend.backend_label())
        else:
            self.model_failed.emit("Failed to load model from: " + model_path)

    def transcribe(self, pcm: Sequence[float]) -> None:
        self.backend.transcribe(pcm)

    def stop_streaming(self) -> None:
        self.backend.stop_streaming()