"""Константы геометрии, runtime-настройки и настройка логирования.

Принципы:
- Геометрия изображения фиксирована (константы модуля), а не параметр запуска.
- Настраиваемое поведение (батчи, таймауты, способ старта процессов) собрано
  в `BlitConfig` и загружается из необязательного JSON-файла.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

PROGNAME = "pixelblit"

WIDTH = 400
HEIGHT = 400
BPP = 3  # bytes per pixel (R, G, B)
STRIDE = BPP * WIDTH  # bytes per row
EXPECTED_LENGTH = WIDTH * HEIGHT * BPP

CONFIG_FILE = Path.home() / ".pixelblit.json"
CONFIG_ENV = "PIXELBLIT_CONFIG"

LOG_FORMAT = "%(asctime)s %(levelname)s %(processName)s: %(message)s"


@dataclass
class BlitConfig:
    """Runtime-настройки рендера.

    Fields:
        batch_size: Сколько записей воркер упаковывает в одно сообщение.
        queue_size: Ёмкость канала в батчах (0 -- без ограничения); полный канал тормозит воркеры.
        start_method: Способ старта процессов multiprocessing ("spawn" | "fork" | "forkserver").
        poll_interval: Период (сек) опроса канала коллектором, когда он пуст.
        join_timeout: Сколько ждать завершения воркера перед принудительной остановкой.
        log_level: Уровень логирования по имени ("INFO", "DEBUG", ...).
    """
    batch_size: int = 4096
    queue_size: int = 64
    start_method: str = "spawn"
    poll_interval: float = 0.5
    join_timeout: float = 5.0
    log_level: str = "INFO"


class ConfigManager:
    """Загружает `BlitConfig` из JSON."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Args:
            config_path: Путь к файлу; по умолчанию `$PIXELBLIT_CONFIG` или ~/.pixelblit.json
        """
        if config_path is None:
            env_path = os.environ.get(CONFIG_ENV)
            config_path = Path(env_path) if env_path else CONFIG_FILE
        self.config_path = config_path

    def load(self) -> BlitConfig:
        """Читает файл настроек; отсутствующие ключи берутся по умолчанию.

        Нечитаемый файл не фатален: пишем предупреждение и возвращаем значения по умолчанию.
        """
        config = BlitConfig()
        if not self.config_path.exists():
            return config

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logging.warning(f"[config] Could not load config file {self.config_path}: {e}")
            return config

        if not isinstance(data, dict):
            logging.warning(f"[config] Ignoring {self.config_path}: expected a JSON object")
            return config

        for field in fields(BlitConfig):
            if field.name not in data:
                continue
            default = getattr(config, field.name)
            try:
                setattr(config, field.name, type(default)(data[field.name]))
            except (TypeError, ValueError):
                logging.warning(
                    f"[config] Ignoring {field.name}={data[field.name]!r}: expected {type(default).__name__}"
                )
        logging.info(f"[config] Loaded configuration from {self.config_path}")
        return config


def setup_logging(level: str = "INFO") -> None:
    """Настраивает корневой логгер (вызывается и в главном процессе, и в каждом воркере)."""
    numeric = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    if not isinstance(numeric, int):
        numeric = logging.INFO
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    logging.getLogger().setLevel(numeric)
