import pytest

from pinpoint.signals import Signal


def test_emit_calls_slots_in_connection_order():
    calls = []
    sig = Signal()
    sig.connect(lambda x: calls.append(("a", x)))
    sig.connect(lambda x: calls.append(("b", x)))
    sig.emit(7)
    assert calls == [("a", 7), ("b", 7)]


def test_emit_passes_all_arguments():
    received = []
    sig = Signal()
    sig.connect(lambda *args: received.append(args))
    sig.emit("text", 3, None)
    assert received == [("text", 3, None)]


def test_disconnect_stops_delivery():
    calls = []
    sig = Signal()
    slot = calls.append
    sig.connect(slot)
    sig.emit(1)
    sig.disconnect(slot)
    sig.emit(2)
    assert calls == [1]
    assert len(sig) == 0


def test_disconnect_unknown_slot_raises():
    sig = Signal()
    with pytest.raises(ValueError):
        sig.disconnect(print)


def test_duplicate_connection_is_called_twice():
    calls = []
    sig = Signal()
    sig.connect(calls.append)
    sig.connect(calls.append)
    sig.emit("x")
    assert calls == ["x", "x"]


def test_connect_rejects_non_callable():
    sig = Signal()
    with pytest.raises(TypeError):
        sig.connect(42)


def test_slot_disconnecting_during_emit_still_runs_this_time():
    calls = []
    sig = Signal()

    def first():
        calls.append("first")
        sig.disconnect(second)

    def second():
        calls.append("second")

    sig.connect(first)
    sig.connect(second)
    assert len(sig) == 2
    sig.emit()
    assert len(sig) == 1
    sig.emit()
    assert calls == ["first", "second", "first"]
    with pytest.raises(ValueError):
        sig.disconnect(second)