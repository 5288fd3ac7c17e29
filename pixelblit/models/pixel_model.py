"""Модели данных пикселей и их бинарный формат на проводе.

Принципы:
- SRP: только структуры данных и (де)кодирование, без логики рендера.
- Неизменяемость (`frozen=True`): запись не меняется после применения фильтров.
- Координаты выводятся только из линейного смещения в буфере, воркер их не выбирает.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from pixelblit.config import BPP, HEIGHT, WIDTH

# x:u16, y:u16, r:u8, g:u8, b:u8 -- packed little-endian
RECORD_STRUCT = struct.Struct("<HHBBB")
RECORD_SIZE = RECORD_STRUCT.size  # 7

RECORD_DTYPE = np.dtype(
    [("x", "<u2"), ("y", "<u2"), ("r", "u1"), ("g", "u1"), ("b", "u1")]
)


@dataclass(frozen=True)
class PixelRecord:
    """Один пиксель назначения: координаты и цвет.

    Fields:
        x: Столбец, 0 <= x < WIDTH.
        y: Строка, 0 <= y < HEIGHT.
        r, g, b: Каналы цвета, 0..255.
    """
    x: int
    y: int
    r: int
    g: int
    b: int

    def __post_init__(self) -> None:
        if not (0 <= self.x < WIDTH and 0 <= self.y < HEIGHT):
            raise ValueError(f"Pixel ({self.x}, {self.y}) is outside {WIDTH}x{HEIGHT}")
        for channel in (self.r, self.g, self.b):
            if not 0 <= channel <= 255:
                raise ValueError(f"Channel value {channel} is outside 0..255")

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return self.r, self.g, self.b


@dataclass(frozen=True)
class Partition:
    """Непрерывный диапазон байтов, принадлежащий одному воркеру."""
    start: int
    length: int

    @property
    def end(self) -> int:
        """Последний байт диапазона (включительно)."""
        return self.start + self.length - 1

    @property
    def first_triplet(self) -> int:
        return self.start // BPP

    @property
    def triplets(self) -> int:
        return self.length // BPP


@dataclass(frozen=True)
class WorkerContext:
    """Идентичность воркера, передаваемая явно при порождении."""
    index: int
    total: int


def decode(offset: int) -> Tuple[int, int]:
    """Смещение в триплетах -> координаты (x, y)."""
    return offset % WIDTH, offset // WIDTH


def decode_triplet(triplet: bytes) -> Tuple[int, int, int]:
    """Три байта -> (r, g, b) в исходном порядке, без преобразования цвета."""
    if len(triplet) != BPP:
        raise ValueError(f"Expected {BPP} bytes, got {len(triplet)}")
    return triplet[0], triplet[1], triplet[2]


def decode_offsets(first_triplet: int, count: int) -> Tuple[np.ndarray, np.ndarray]:
    """Векторный вариант `decode` для диапазона смещений [first, first + count)."""
    offsets = np.arange(first_triplet, first_triplet + count, dtype=np.int64)
    return offsets % WIDTH, offsets // WIDTH


def encode_record(record: PixelRecord) -> bytes:
    return RECORD_STRUCT.pack(record.x, record.y, record.r, record.g, record.b)


def decode_record(payload: bytes) -> PixelRecord:
    return PixelRecord(*RECORD_STRUCT.unpack(payload))


def encode_batch(xs: np.ndarray, ys: np.ndarray, rgb: np.ndarray) -> bytes:
    """Упаковывает N записей в N * RECORD_SIZE байт.

    Args:
        xs, ys: Координаты, shape (N,).
        rgb: Цвета, shape (N, 3), uint8.
    """
    batch = np.empty(len(xs), dtype=RECORD_DTYPE)
    batch["x"] = xs
    batch["y"] = ys
    batch["r"] = rgb[:, 0]
    batch["g"] = rgb[:, 1]
    batch["b"] = rgb[:, 2]
    return batch.tobytes()


def decode_batch(payload: bytes) -> np.ndarray:
    """Байты батча -> структурированный массив `RECORD_DTYPE`."""
    if len(payload) % RECORD_SIZE:
        raise ValueError(f"Batch of {len(payload)} bytes is not a multiple of {RECORD_SIZE}")
    return np.frombuffer(payload, dtype=RECORD_DTYPE)

