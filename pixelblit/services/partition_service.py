"""Разбиение входного буфера на диапазоны воркеров.

Каждый воркер, кроме последнего, получает floor(total / count) байт,
выровненные вниз до шага триплета; последний забирает остаток, так что
диапазоны покрывают [0, total_length) без пропусков и пересечений.
"""
from __future__ import annotations

from typing import List

from pixelblit.config import BPP
from pixelblit.errors import ConfigurationError
from pixelblit.models.pixel_model import Partition


def partition(total_length: int, worker_count: int, worker_index: int, stride: int = BPP) -> Partition:
    """Возвращает диапазон байтов воркера `worker_index`.

    Raises:
        ConfigurationError: если число воркеров < 1, индекс вне диапазона,
            длина не кратна шагу или воркеров больше, чем триплетов во входе.
    """
    if worker_count < 1:
        raise ConfigurationError(f"invalid number of workers ({worker_count})")
    if not 0 <= worker_index < worker_count:
        raise ConfigurationError(f"worker index {worker_index} is outside [0, {worker_count})")
    if stride < 1 or total_length % stride:
        raise ConfigurationError(
            f"invalid input length. Expected a multiple of {stride} but got {total_length}."
        )

    chunk_len = total_length // worker_count
    chunk_len -= chunk_len % stride
    if chunk_len == 0:
        raise ConfigurationError(
            f"too many workers ({worker_count}) for an input of {total_length} bytes"
        )

    start = chunk_len * worker_index
    if worker_index == worker_count - 1:
        end = total_length - 1
    else:
        end = min(total_length, start + chunk_len) - 1
    return Partition(start=start, length=end - start + 1)


def plan_partitions(total_length: int, worker_count: int, stride: int = BPP) -> List[Partition]:
    """Все диапазоны по порядку индексов."""
    if worker_count < 1:
        raise ConfigurationError(f"invalid number of workers ({worker_count})")
    return [partition(total_length, worker_count, i, stride) for i in range(worker_count)]
