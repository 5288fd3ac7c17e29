"""Коллектор: порождает пул воркеров и собирает изображение из их записей.

SOLID:
- SRP: жизненный цикл рендера (spawn -> collect -> complete/failed); чтение,
  фильтрация и отображение делегированы сервисам и приёмнику.
- DIP: зависит от `Fabric` как от роли; процессы или потоки -- деталь реализации.

Единственное условие завершения -- число полученных записей (WIDTH * HEIGHT).
Отдельного сообщения «воркер закончил» нет.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from pixelblit.config import EXPECTED_LENGTH, HEIGHT, WIDTH, BlitConfig
from pixelblit.errors import (
    COLLECTOR_ROLE,
    BlitError,
    ConfigurationError,
    FabricError,
    RenderAbortedError,
    WorkerFailedError,
    worker_role,
)
from pixelblit.models.pixel_model import decode_batch
from pixelblit.models.render_target import RenderTarget
from pixelblit.services.fabric_service import BATCH, FAILURE, Fabric, WorkerHandle
from pixelblit.services.partition_service import plan_partitions
from pixelblit.services.source_service import ByteSource, validate_source_size
from pixelblit.services.worker_service import PartitionTask


class CollectorState(Enum):
    IDLE = "idle"
    SPAWNING = "spawning"
    COLLECTING = "collecting"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class Collector:
    """Оркестрирует один рендер.

    Ответственности:
    - Проверка размера входа и расчёт всех диапазонов до старта воркеров.
    - Порождение ровно `worker_count` воркеров через ткань.
    - Приём записей от любого воркера в любом порядке до нужного количества.
    - Прерывание всех воркеров при любой ошибке.
    """
    fabric: Fabric
    config: BlitConfig = field(default_factory=BlitConfig)

    state: CollectorState = field(default=CollectorState.IDLE, init=False)
    received: int = field(default=0, init=False)
    _handles: List[WorkerHandle] = field(default_factory=list, init=False)
    _cancelled: threading.Event = field(default_factory=threading.Event, init=False, repr=False)

    def cancel(self) -> None:
        """Просит прервать рендер (например, окно закрыто до завершения)."""
        self._cancelled.set()

    def run(
        self,
        worker_count: int,
        source: ByteSource,
        filter_config: Optional[str],
        sink: RenderTarget,
    ) -> RenderTarget:
        """Выполняет рендер целиком и возвращает заполненный приёмник.

        Raises:
            ConfigurationError: неверный размер входа или число воркеров.
            SourceError: вход не читается.
            FabricError: сбой воркера или канала (в т.ч. WorkerFailedError).
        """
        if self.state is not CollectorState.IDLE:
            raise FabricError(f"collector cannot run from state {self.state.value}")

        try:
            if (sink.width, sink.height) != (WIDTH, HEIGHT):
                raise ConfigurationError(
                    f"render target is {sink.width}x{sink.height}, expected {WIDTH}x{HEIGHT}"
                )
            total_length = validate_source_size(source, EXPECTED_LENGTH)
            partitions = plan_partitions(total_length, worker_count)
        except BlitError:
            self.state = CollectorState.FAILED
            raise
        logging.info(
            f"[{COLLECTOR_ROLE}] Rendering {source.describe()} with {worker_count} workers, "
            f"filters {filter_config or '-'}"
        )

        channel = self.fabric.open_channel(self.config.queue_size, self.config.poll_interval)
        task = PartitionTask(
            source=source,
            partitions=partitions,
            filter_config=filter_config,
            channel=channel,
            batch_size=self.config.batch_size,
            log_level=self.config.log_level,
        )

        try:
            self.state = CollectorState.SPAWNING
            self._handles = self.fabric.spawn(worker_count, task)

            self.state = CollectorState.COLLECTING
            self._collect(channel, sink)
        except BlitError:
            self._fail(channel)
            raise
        except Exception as exc:
            self._fail(channel)
            raise FabricError(f"render failed: {exc}") from exc

        sink.present()
        self.state = CollectorState.COMPLETE
        logging.info(f"[{COLLECTOR_ROLE}] Render complete: {self.received} pixels")
        self._release(channel)
        return sink

    # ---- Internals ----
    def _collect(self, channel, sink: RenderTarget) -> None:
        expected = sink.size
        drained = False
        while self.received < expected:
            if self._cancelled.is_set():
                raise RenderAbortedError("render cancelled")
            message = channel.receive(timeout=self.config.poll_interval)
            if message is None:
                if self._workers_gone():
                    # one more empty poll after the last exit: nothing is left in flight
                    if drained:
                        raise FabricError(
                            f"all workers exited after {self.received} of {expected} pixels"
                        )
                    drained = True
                continue

            kind = message[0]
            if kind == FAILURE:
                _, role, reason = message
                raise WorkerFailedError(reason, role=role)
            if kind != BATCH:
                raise FabricError(f"unexpected message kind {kind!r}")

            batch = decode_batch(message[1])
            if self.received + len(batch) > expected:
                raise FabricError(
                    f"received {self.received + len(batch)} pixels, expected {expected}"
                )
            for x, y, r, g, b in batch.tolist():
                sink.put(x, y, r, g, b)
            self.received += len(batch)
            logging.debug(f"[{COLLECTOR_ROLE}] {self.received}/{expected} pixels")

    def _workers_gone(self) -> bool:
        """Канал пуст: проверяем, что воркеры живы или завершились успешно.

        Raises:
            WorkerFailedError: если воркер завершился с ошибкой.
        """
        for handle in self._handles:
            if not handle.is_alive() and handle.exitcode not in (None, 0):
                raise WorkerFailedError(
                    f"exited with code {handle.exitcode} without reporting",
                    role=worker_role(handle.index),
                )
        return not any(h.is_alive() for h in self._handles)

    def _fail(self, channel) -> None:
        self.state = CollectorState.FAILED
        logging.error(f"[{COLLECTOR_ROLE}] Aborting render after {self.received} pixels")
        channel.abort()
        self.fabric.terminate(self._handles, self.config.join_timeout)
        channel.close()

    def _release(self, channel) -> None:
        for handle in self._handles:
            handle.join(self.config.join_timeout)
        self.fabric.terminate(self._handles, self.config.join_timeout)
        channel.close()
