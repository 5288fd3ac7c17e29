from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, Tuple

import numpy as np

from pixelblit.models.pixel_model import PixelRecord

RGB = Tuple[int, int, int]

TINT_FACTOR = 0.25
SHADE_FACTOR = 0.25


# ---------- Поканальные фильтры (скаляр) ----------
def grayscale(r: int, g: int, b: int) -> RGB:
    """Среднее по каналам, с отбрасыванием дробной части."""
    avg = (r + g + b) // 3
    return avg, avg, avg


def invert(r: int, g: int, b: int) -> RGB:
    return 255 - r, 255 - g, 255 - b


def lighten(r: int, g: int, b: int) -> RGB:
    """c' = c + (255 - c) * 0.25, усечение до uint8."""
    return _tint(r), _tint(g), _tint(b)


def darken(r: int, g: int, b: int) -> RGB:
    """c' = c * 0.75, усечение до uint8."""
    return _shade(r), _shade(g), _shade(b)


def _tint(c: int) -> int:
    return int(c + (255 - c) * TINT_FACTOR)


def _shade(c: int) -> int:
    return int(c * (1.0 - SHADE_FACTOR))


# ---------- Векторные версии над массивом (N, 3) uint8 ----------
def _grayscale_array(rgb: np.ndarray) -> np.ndarray:
    avg = (rgb.astype(np.uint16).sum(axis=1) // 3).astype(np.uint8)
    return np.repeat(avg[:, None], 3, axis=1)


def _invert_array(rgb: np.ndarray) -> np.ndarray:
    return 255 - rgb


def _lighten_array(rgb: np.ndarray) -> np.ndarray:
    c = rgb.astype(np.float64)
    return (c + (255.0 - c) * TINT_FACTOR).astype(np.uint8)


def _darken_array(rgb: np.ndarray) -> np.ndarray:
    c = rgb.astype(np.float64)
    return (c * (1.0 - SHADE_FACTOR)).astype(np.uint8)


@dataclass(frozen=True)
class PixelFilter:
    key: str
    name: str
    apply: Callable[[int, int, int], RGB]
    apply_array: Callable[[np.ndarray], np.ndarray]


FILTERS: Dict[str, PixelFilter] = {
    f.key: f
    for f in (
        PixelFilter("g", "grayscale", grayscale, _grayscale_array),
        PixelFilter("i", "invert", invert, _invert_array),
        PixelFilter("l", "lighten", lighten, _lighten_array),
        PixelFilter("d", "darken", darken, _darken_array),
    )
}


class FilterChain:
    """Упорядоченная цепочка фильтров, разобранная из строки ключей.

    Порядок строки сохраняется: "gi" и "ig" -- разные цепочки.
    Неизвестные символы пропускаются без ошибки.
    """

    def __init__(self, filters: Tuple[PixelFilter, ...] = ()) -> None:
        self._filters = tuple(filters)

    @classmethod
    def parse(cls, config: str | None) -> "FilterChain":
        filters = []
        for key in config or "":
            pixel_filter = FILTERS.get(key)
            if pixel_filter is None:
                logging.debug(f"[filters] Ignoring unknown filter key {key!r}")
                continue
            filters.append(pixel_filter)
        return cls(tuple(filters))

    @property
    def keys(self) -> str:
        return "".join(f.key for f in self._filters)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self._filters)

    def __len__(self) -> int:
        return len(self._filters)

    def __bool__(self) -> bool:
        return bool(self._filters)

    def apply(self, record: PixelRecord) -> PixelRecord:
        """Возвращает новую запись; координаты не затрагиваются."""
        r, g, b = record.rgb
        for pixel_filter in self._filters:
            r, g, b = pixel_filter.apply(r, g, b)
        return replace(record, r=r, g=g, b=b)

    def apply_array(self, rgb: np.ndarray) -> np.ndarray:
        """То же для массива (N, 3) uint8; результат совпадает с поэлементным `apply`."""
        out = np.asarray(rgb, dtype=np.uint8)
        for pixel_filter in self._filters:
            out = pixel_filter.apply_array(out)
        return out

    def __repr__(self) -> str:
        return f"FilterChain({self.keys!r})"
