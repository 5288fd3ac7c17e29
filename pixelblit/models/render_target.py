"""Целевое изображение W x H, которым владеет коллектор.

Принципы:
- Каждая клетка записывается ровно один раз за сессию; повтор или выход за
  границы -- ошибка передачи, а не повод молча перезаписать пиксель.
- Это и приёмник пикселей по умолчанию: `put(x, y, r, g, b)` и `present()`.
"""
from __future__ import annotations

from typing import Tuple

import numpy as np
from PIL import Image

from pixelblit.config import HEIGHT, WIDTH
from pixelblit.errors import FabricError


class RenderTarget:
    """Сетка пикселей в памяти (numpy, uint8, shape (H, W, 3))."""

    def __init__(self, width: int = WIDTH, height: int = HEIGHT) -> None:
        self.width = width
        self.height = height
        self._pixels = np.zeros((height, width, 3), dtype=np.uint8)
        self._written = np.zeros((height, width), dtype=bool)
        self._count = 0
        self._presented = False

    # ---- Pixel sink API ----
    def put(self, x: int, y: int, r: int, g: int, b: int) -> None:
        """Записывает пиксель в клетку (x, y).

        Raises:
            FabricError: если координаты вне сетки или клетка уже записана.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise FabricError(f"received pixel ({x}, {y}) outside {self.width}x{self.height}")
        if self._written[y, x]:
            raise FabricError(f"received pixel ({x}, {y}) twice")
        self._pixels[y, x] = (r, g, b)
        self._written[y, x] = True
        self._count += 1

    def present(self) -> None:
        """Отмечает рендер завершённым."""
        self._presented = True

    # ---- Состояние ----
    @property
    def size(self) -> int:
        return self.width * self.height

    @property
    def written(self) -> int:
        return self._count

    @property
    def complete(self) -> bool:
        return self._count == self.size

    @property
    def presented(self) -> bool:
        return self._presented

    def pixel(self, x: int, y: int) -> Tuple[int, int, int]:
        r, g, b = self._pixels[y, x]
        return int(r), int(g), int(b)

    def as_array(self) -> np.ndarray:
        """Копия сетки, shape (H, W, 3)."""
        return self._pixels.copy()

    def to_image(self) -> Image.Image:
        return Image.fromarray(self._pixels.copy())
