"""Воркер: читает свой диапазон, декодирует и фильтрует пиксели, отправляет их коллектору.

Принципы:
- Воркер не общается с другими воркерами; весь трафик идёт воркер -> коллектор.
- Ошибка чтения фатальна для всего рендера: воркер сообщает о ней в канал
  и завершается с ошибкой, частичного результата не бывает.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from pixelblit.config import BPP, setup_logging
from pixelblit.errors import RenderAbortedError, worker_role
from pixelblit.models.pixel_model import Partition, WorkerContext, decode_offsets, encode_batch
from pixelblit.services.fabric_service import Channel
from pixelblit.services.filter_service import FilterChain
from pixelblit.services.source_service import ByteSource


def render_partition(buf: np.ndarray, partition: Partition, chain: FilterChain):
    """Декодирует байты диапазона в (xs, ys, rgb) и применяет цепочку фильтров.

    Координаты берутся из глобального смещения: первый триплет диапазона плюс
    локальный индекс, как если бы весь буфер декодировал один процесс.
    """
    triplets = len(buf) // BPP
    rgb = np.asarray(buf[: triplets * BPP], dtype=np.uint8).reshape(triplets, BPP)
    xs, ys = decode_offsets(partition.first_triplet, triplets)
    return xs, ys, chain.apply_array(rgb)


def run_worker(
    context: WorkerContext,
    source: ByteSource,
    partition: Partition,
    filter_config: Optional[str],
    channel: Channel,
    batch_size: int = 4096,
) -> int:
    """Полный цикл воркера. Возвращает число отправленных записей.

    Raises:
        Exception: любая ошибка после того, как она отправлена в канал.
    """
    role = worker_role(context.index)
    sent = 0
    try:
        logging.info(f"[{role}] {partition.length} bytes: [{partition.start}, {partition.end}]")
        buf = source.read(partition.start, partition.length)
        chain = FilterChain.parse(filter_config)
        xs, ys, rgb = render_partition(buf, partition, chain)

        step = max(1, int(batch_size))
        for lo in range(0, len(xs), step):
            hi = lo + step
            channel.send_batch(encode_batch(xs[lo:hi], ys[lo:hi], rgb[lo:hi]))
            sent += len(xs[lo:hi])
        logging.debug(f"[{role}] Sent {sent} records")
        return sent
    except RenderAbortedError:
        logging.info(f"[{role}] Render aborted after {sent} records")
        raise
    except Exception as exc:
        logging.error(f"[{role}] {exc}")
        channel.send_failure(role, str(exc))
        raise


@dataclass
class PartitionTask:
    """Задание, которое ткань запускает в каждом воркере.

    Picklable: уходит в дочерний процесс целиком.
    """
    source: ByteSource
    partitions: Sequence[Partition]
    filter_config: Optional[str]
    channel: Channel
    batch_size: int = 4096
    log_level: Optional[str] = None

    def __call__(self, context: WorkerContext) -> None:
        if self.log_level is not None:
            setup_logging(self.log_level)
        run_worker(
            context,
            self.source,
            self.partitions[context.index],
            self.filter_config,
            self.channel,
            self.batch_size,
        )
