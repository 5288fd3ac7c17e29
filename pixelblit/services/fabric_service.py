"""Процессная «ткань»: порождение воркеров и канал воркеры -> коллектор.

Коллектору не нужна идентичность отправителя: каждая запись сама описывает
свои координаты, поэтому канал один, многие-к-одному, без порядка между
отправителями.

Две реализации одного интерфейса:
- `ProcessFabric` -- настоящие процессы `multiprocessing`;
- `ThreadFabric` -- потоки в одном процессе (тесты, отладка).
"""
from __future__ import annotations

import logging
import multiprocessing as mp
import queue
import sys
import threading
from typing import Any, Callable, List, Optional, Tuple

from pixelblit.config import PROGNAME
from pixelblit.errors import COLLECTOR_ROLE, FabricError, RenderAbortedError
from pixelblit.models.pixel_model import WorkerContext

BATCH = "batch"
FAILURE = "failure"

Message = Tuple[Any, ...]
WorkerTask = Callable[[WorkerContext], None]


class Channel:
    """Канал многие-к-одному поверх очереди и флага прерывания."""

    def __init__(self, message_queue: Any, abort_event: Any, poll_interval: float = 0.5) -> None:
        self._queue = message_queue
        self._abort_event = abort_event
        self._poll_interval = poll_interval

    # ---- сторона воркера ----
    def send_batch(self, payload: bytes) -> None:
        """Отправляет батч записей; блокируется, пока очередь полна.

        Raises:
            RenderAbortedError: если рендер прерван.
        """
        self._put((BATCH, payload))

    def send_failure(self, role: str, message: str) -> None:
        try:
            self._put((FAILURE, role, message))
        except RenderAbortedError:
            pass  # collector is already tearing down

    def _put(self, message: Message) -> None:
        while True:
            if self._abort_event.is_set():
                raise RenderAbortedError("render aborted")
            try:
                self._queue.put(message, timeout=self._poll_interval)
                return
            except queue.Full:
                continue

    # ---- сторона коллектора ----
    def receive(self, timeout: float) -> Optional[Message]:
        """Следующее сообщение от любого воркера или None по таймауту."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def abort(self) -> None:
        self._abort_event.set()

    @property
    def aborted(self) -> bool:
        return self._abort_event.is_set()

    def close(self) -> None:
        close = getattr(self._queue, "close", None)
        if close is not None:
            close()


class WorkerHandle:
    """Единый интерфейс над процессом или потоком воркера."""

    def __init__(self, context: WorkerContext, unit: Any) -> None:
        self.context = context
        self._unit = unit

    @property
    def index(self) -> int:
        return self.context.index

    def is_alive(self) -> bool:
        return self._unit.is_alive()

    @property
    def exitcode(self) -> Optional[int]:
        return self._unit.exitcode

    def join(self, timeout: Optional[float] = None) -> None:
        self._unit.join(timeout)

    def terminate(self) -> None:
        terminate = getattr(self._unit, "terminate", None)
        if terminate is not None and self._unit.is_alive():
            terminate()


class Fabric:
    """Интерфейс поставщика: канал + `spawn(count, task) -> handles`."""

    def open_channel(self, queue_size: int = 0, poll_interval: float = 0.5) -> Channel:
        raise NotImplementedError

    def spawn(self, count: int, task: WorkerTask) -> List[WorkerHandle]:
        raise NotImplementedError

    def terminate(self, handles: List[WorkerHandle], join_timeout: float = 5.0) -> None:
        """Останавливает все ещё живые воркеры."""
        for handle in handles:
            handle.terminate()
        for handle in handles:
            handle.join(join_timeout)


def _process_main(task: WorkerTask, context: WorkerContext) -> None:
    try:
        task(context)
    except Exception:
        # already reported on the channel by the worker
        sys.exit(1)


class ProcessFabric(Fabric):
    """Воркеры как отдельные процессы `multiprocessing`."""

    def __init__(self, start_method: str = "spawn") -> None:
        try:
            self._ctx = mp.get_context(start_method)
        except ValueError as exc:
            raise FabricError(f"unsupported start method {start_method!r}") from exc
        self.start_method = start_method

    def open_channel(self, queue_size: int = 0, poll_interval: float = 0.5) -> Channel:
        return Channel(self._ctx.Queue(maxsize=queue_size), self._ctx.Event(), poll_interval)

    def spawn(self, count: int, task: WorkerTask) -> List[WorkerHandle]:
        handles: List[WorkerHandle] = []
        for index in range(count):
            context = WorkerContext(index=index, total=count)
            process = self._ctx.Process(
                target=_process_main,
                args=(task, context),
                name=f"{PROGNAME}-worker-{index}",
                daemon=True,
            )
            try:
                process.start()
            except Exception as exc:
                logging.error(f"[{COLLECTOR_ROLE}] Failed to spawn worker {index}: {exc}")
                self.terminate(handles)
                raise FabricError(f"spawn of worker {index} failed: {exc}") from exc
            handles.append(WorkerHandle(context, process))
        logging.info(f"[{COLLECTOR_ROLE}] Spawned {count} worker processes ({self.start_method})")
        return handles


class _WorkerThread(threading.Thread):
    """Поток с кодом завершения, как у процесса."""

    def __init__(self, task: WorkerTask, context: WorkerContext) -> None:
        super().__init__(name=f"{PROGNAME}-worker-{context.index}", daemon=True)
        self._task = task
        self._context = context
        self.exitcode: Optional[int] = None

    def run(self) -> None:
        try:
            self._task(self._context)
        except Exception:
            # already reported on the channel by the worker
            self.exitcode = 1
        else:
            self.exitcode = 0


class ThreadFabric(Fabric):
    """Воркеры как потоки одного процесса."""

    def open_channel(self, queue_size: int = 0, poll_interval: float = 0.5) -> Channel:
        return Channel(queue.Queue(maxsize=queue_size), threading.Event(), poll_interval)

    def spawn(self, count: int, task: WorkerTask) -> List[WorkerHandle]:
        handles = []
        for index in range(count):
            context = WorkerContext(index=index, total=count)
            thread = _WorkerThread(task, context)
            thread.start()
            handles.append(WorkerHandle(context, thread))
        logging.info(f"[{COLLECTOR_ROLE}] Spawned {count} worker threads")
        return handles
