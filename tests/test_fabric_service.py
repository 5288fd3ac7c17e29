"""
Tests for the channel and the thread-backed fabric.
"""

import queue
import threading

import pytest

from pixelblit.errors import FabricError, RenderAbortedError
from pixelblit.services.fabric_service import BATCH, FAILURE, Channel, ProcessFabric, ThreadFabric


class TestChannel:
    def test_receive_returns_none_when_empty(self, capture_channel):
        assert capture_channel.receive(timeout=0.01) is None

    def test_messages_from_many_senders(self, capture_channel, drain_channel):
        def send(tag):
            for i in range(50):
                capture_channel.send_batch(bytes([tag, i]))

        threads = [threading.Thread(target=send, args=(tag,)) for tag in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        messages = drain_channel(capture_channel)
        assert len(messages) == 200
        assert {m[0] for m in messages} == {BATCH}
        # per-sender order is preserved
        for tag in range(4):
            assert [m[1][1] for m in messages if m[1][0] == tag] == list(range(50))

    def test_send_after_abort_raises(self, capture_channel):
        capture_channel.abort()
        assert capture_channel.aborted
        with pytest.raises(RenderAbortedError):
            capture_channel.send_batch(b"")

    def test_failure_after_abort_is_dropped(self, capture_channel, drain_channel):
        capture_channel.abort()
        capture_channel.send_failure("worker 0", "boom")
        assert drain_channel(capture_channel) == []

    def test_failure_message(self, capture_channel, drain_channel):
        capture_channel.send_failure("worker 3", "boom")
        assert drain_channel(capture_channel) == [(FAILURE, "worker 3", "boom")]

    def test_full_queue_unblocks_on_abort(self):
        channel = Channel(queue.Queue(maxsize=1), threading.Event(), poll_interval=0.01)
        channel.send_batch(b"first")
        errors = []

        def blocked_send():
            try:
                channel.send_batch(b"second")
            except RenderAbortedError as exc:
                errors.append(exc)

        sender = threading.Thread(target=blocked_send)
        sender.start()
        channel.abort()
        sender.join(timeout=5)
        assert not sender.is_alive()
        assert len(errors) == 1


class TestThreadFabric:
    def test_spawn_passes_explicit_context(self):
        seen = []
        lock = threading.Lock()

        def task(context):
            with lock:
                seen.append((context.index, context.total))

        fabric = ThreadFabric()
        handles = fabric.spawn(3, task)
        fabric.terminate(handles)

        assert sorted(seen) == [(0, 3), (1, 3), (2, 3)]
        assert [h.index for h in handles] == [0, 1, 2]
        assert all(h.exitcode == 0 for h in handles)

    def test_failed_task_sets_exit_code(self):
        def task(context):
            raise RuntimeError("nope")

        fabric = ThreadFabric()
        handles = fabric.spawn(1, task)
        fabric.terminate(handles)
        assert handles[0].exitcode == 1


class TestProcessFabric:
    def test_rejects_unknown_start_method(self):
        with pytest.raises(FabricError):
            ProcessFabric("teleport")
