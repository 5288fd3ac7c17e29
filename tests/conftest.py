"""
Pytest fixtures shared by the test suite.

Buffers are built with numpy so every test works on the real 400x400 geometry.
"""

import queue
import threading

import numpy as np
import pytest

from pixelblit.config import HEIGHT, WIDTH, BlitConfig
from pixelblit.services.fabric_service import Channel


def make_constant_buffer(rgb=(128, 64, 32)) -> bytes:
    """WIDTH * HEIGHT pixels of one colour."""
    return np.tile(np.array(rgb, dtype=np.uint8), WIDTH * HEIGHT).tobytes()


def make_gradient_buffer() -> bytes:
    """Every pixel encodes its own position: r = x % 256, g = y % 256, b = (x + y) % 256."""
    ys, xs = np.mgrid[0:HEIGHT, 0:WIDTH]
    pixels = np.stack([xs % 256, ys % 256, (xs + ys) % 256], axis=-1).astype(np.uint8)
    return pixels.tobytes()


@pytest.fixture
def constant_buffer() -> bytes:
    return make_constant_buffer()


@pytest.fixture
def gradient_buffer() -> bytes:
    return make_gradient_buffer()


@pytest.fixture
def gradient_array(gradient_buffer) -> np.ndarray:
    return np.frombuffer(gradient_buffer, dtype=np.uint8).reshape(HEIGHT, WIDTH, 3)


@pytest.fixture
def capture_channel() -> Channel:
    """In-process channel whose messages can be drained by the test."""
    return Channel(queue.Queue(), threading.Event(), poll_interval=0.05)


@pytest.fixture
def fast_config() -> BlitConfig:
    """Short polling so failure paths finish quickly."""
    return BlitConfig(batch_size=1000, queue_size=0, poll_interval=0.05, join_timeout=2.0, log_level="DEBUG")


def drain(channel: Channel):
    """Return every message currently queued on the channel."""
    messages = []
    while True:
        message = channel.receive(timeout=0.01)
        if message is None:
            return messages
        messages.append(message)


@pytest.fixture
def drain_channel():
    return drain
