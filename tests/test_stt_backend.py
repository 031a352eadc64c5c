import pytest

from pinpoint.stt_backend import STTBackend, STTWorker


class FakeBackend(STTBackend):
    def __init__(self, loads=True, label=None):
        super().__init__()
        self._loads = loads
        self._label = label
        self.loaded_path = None
        self.received = []
        self.stopped = 0

    def load_model(self, model_path):
        self.loaded_path = model_path
        return self._loads

    def transcribe(self, pcm):
        self.received.append(list(pcm))
        self.transcription_ready.emit(f"{len(pcm)} samples")

    def is_ready(self):
        return self.loaded_path is not None and self._loads

    def backend_label(self):
        return self._label if self._label is not None else super().backend_label()

    def stop_streaming(self):
        self.stopped += 1


def test_abstract_backend_cannot_be_instantiated():
    with pytest.raises(TypeError):
        STTBackend()


def test_default_capabilities():
    backend = FakeBackend()
    assert STTBackend.requires_model_file(backend) is True
    assert STTBackend.requires_silence_gating(backend) is True
    assert STTBackend.backend_label(backend) == "CPU"


def test_worker_load_success_emits_ready_then_label():
    backend = FakeBackend(label="Vulkan")
    worker = STTWorker(backend)
    events = []
    worker.model_ready.connect(lambda: events.append("ready"))
    worker.backend_label_ready.connect(lambda label: events.append(("label", label)))
    worker.model_failed.connect(lambda err: events.append(("failed", err)))
    worker.load_model("/models/base.bin")
    assert events == ["ready", ("label", "Vulkan")]
    assert backend.loaded_path == "/models/base.bin"


def test_worker_load_failure_emits_failed_message():
    worker = STTWorker(FakeBackend(loads=False))
    events = []
    worker.model_ready.connect(lambda: events.append("ready"))
    worker.model_failed.connect(events.append)
    worker.load_model("/models/missing.bin")
    assert events == ["Failed to load model from: /models/missing.bin"]


def test_worker_forwards_transcription_results():
    backend = FakeBackend()
    worker = STTWorker(backend)
    texts = []
    worker.transcription_ready.connect(texts.append)
    worker.transcribe([0.0, 0.5, -0.5])
    assert backend.received == [[0.0, 0.5, -0.5]]
    assert texts == ["3 samples"]


def test_worker_forwards_failures():
    backend = FakeBackend()
    worker = STTWorker(backend)
    errors = []
    worker.transcription_failed.connect(errors.append)
    backend.transcription_failed.emit("Empty audio buffer")
    assert errors == ["Empty audio buffer"]


def test_worker_stop_streaming_reaches_backend():
    backend = FakeBackend()
    worker = STTWorker(backend)
    worker.stop_streaming()
    worker.stop_streaming()
    assert backend.stopped == 2