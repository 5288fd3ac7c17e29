"""Источники байтов с произвольным доступом.

Принципы:
- SRP: класс отвечает только за чтение диапазона байтов и размер источника.
- Источник должен быть picklable: его копия уходит в каждый процесс-воркер,
  и каждый воркер открывает файл сам, читая непересекающийся диапазон.
"""
from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from pixelblit.config import EXPECTED_LENGTH, HEIGHT, WIDTH
from pixelblit.errors import COLLECTOR_ROLE, ConfigurationError, SourceError


class ByteSource:
    """Интерфейс источника: `size()` и `read(start, length)`."""

    def size(self) -> int:
        raise NotImplementedError

    def read(self, start: int, length: int) -> np.ndarray:
        raise NotImplementedError

    def describe(self) -> str:
        return type(self).__name__


class FileByteSource(ByteSource):
    """Сырой файл без заголовка."""

    def __init__(self, file_path: str | Path) -> None:
        self.path = Path(file_path)

    def size(self) -> int:
        try:
            return self.path.stat().st_size
        except OSError as exc:
            raise SourceError(f"cannot stat input `{self.path}': {exc}") from exc

    def read(self, start: int, length: int) -> np.ndarray:
        """Читает ровно `length` байт начиная со `start`.

        Raises:
            SourceError: если файл не открывается или данных меньше, чем запрошено.
        """
        try:
            with open(self.path, "rb") as f:
                data = np.fromfile(f, dtype=np.uint8, count=length, offset=start)
        except (OSError, ValueError) as exc:
            raise SourceError(f"cannot read input `{self.path}': {exc}") from exc
        if data.size != length:
            raise SourceError(
                f"short read from `{self.path}': expected {length} bytes at {start}, got {data.size}"
            )
        return data

    def describe(self) -> str:
        return str(self.path)


class MemoryByteSource(ByteSource):
    """Буфер в памяти (удобно для тестов и генерации входа)."""

    def __init__(self, data: bytes | bytearray | np.ndarray) -> None:
        self._data = bytes(data) if not isinstance(data, np.ndarray) else data.astype(np.uint8).tobytes()

    def size(self) -> int:
        return len(self._data)

    def read(self, start: int, length: int) -> np.ndarray:
        if start < 0 or start + length > len(self._data):
            raise SourceError(f"read [{start}, {start + length}) is outside a {len(self._data)}-byte buffer")
        return np.frombuffer(self._data, dtype=np.uint8, count=length, offset=start)

    def describe(self) -> str:
        return f"<memory: {len(self._data)} bytes>"


def open_source(file_path: str | Path) -> FileByteSource:
    """Проверяет путь и возвращает файловый источник.

    Raises:
        SourceError: если путь не существует или не указывает на файл.
    """
    path = Path(file_path)
    logging.info(f"[{COLLECTOR_ROLE}] opening file `{path}' for reading")
    if not path.exists() or not path.is_file():
        raise SourceError(f"input file not found: {path}")
    return FileByteSource(path)


def validate_source_size(source: ByteSource, expected: int = EXPECTED_LENGTH) -> int:
    """Проверяет, что вход ровно WIDTH * HEIGHT * 3 байт; возвращает длину.

    Raises:
        ConfigurationError: при любом другом размере.
    """
    total_length = source.size()
    if total_length != expected:
        raise ConfigurationError(
            f"invalid input length. Expected {expected} bytes ({WIDTH}x{HEIGHT} RGB) "
            f"but got {total_length}."
        )
    return total_length
