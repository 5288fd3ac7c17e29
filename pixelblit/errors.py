"""Таксономия ошибок рендера.

Любая ошибка фатальна для всего запуска: локального восстановления нет.
Каждое исключение помнит роль, в которой оно возникло ("collector" | "worker N"),
чтобы диагностика называла и операцию, и участника.
"""
from __future__ import annotations

COLLECTOR_ROLE = "collector"


def worker_role(index: int) -> str:
    return f"worker {index}"


class BlitError(Exception):
    """Базовая ошибка; `role` указывает на процесс-источник."""

    def __init__(self, message: str, role: str = COLLECTOR_ROLE):
        super().__init__(message)
        self.role = role

    def __str__(self) -> str:
        return self.args[0] if self.args else ""


class ConfigurationError(BlitError, ValueError):
    """Неверное число воркеров, размер входа или разбиение; обнаруживается до начала работы."""


class SourceError(BlitError, OSError):
    """Не удалось открыть/прочитать вход или открыть приёмник пикселей."""


class FabricError(BlitError, RuntimeError):
    """Сбой порождения процессов или передачи сообщений."""


class WorkerFailedError(FabricError):
    """Воркер сообщил об ошибке или завершился, не доставив свою часть."""


class RenderAbortedError(FabricError):
    """Рендер прерван; воркер прекращает отправку."""
