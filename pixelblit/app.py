"""Окно рендера: показывает пиксели по мере их прихода от воркеров."""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Tuple

import customtkinter as ctk
import tkinter as tk

from pixelblit.config import PROGNAME
from pixelblit.errors import SourceError
from pixelblit.models.render_target import RenderTarget
from pixelblit.ui.image_viewer import ImageViewer

REFRESH_MS = 100


class RenderWindow(ctk.CTk):
    """Главное окно. Коллектор работает в фоновом потоке, окно опрашивает приёмник.

    Как и в исходной X11-версии, окно остаётся открытым после завершения рендера,
    пока его не закроют.
    """
    def __init__(self, target: RenderTarget) -> None:
        super().__init__()
        ctk.set_appearance_mode("system")
        ctk.set_default_color_theme("blue")

        self.title(PROGNAME)
        self.minsize(target.width, target.height)

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=0)

        self._viewer = ImageViewer(self)
        self._viewer.grid(row=0, column=0, sticky="nsew", padx=12, pady=(12, 6))
        self._viewer.on_cursor_move = self._handle_cursor_move

        self._status = ctk.StringVar(value="")
        self._cursor = ctk.StringVar(value="")
        status_bar = ctk.CTkFrame(self, height=32)
        status_bar.grid(row=1, column=0, sticky="ew", padx=12, pady=(0, 12))
        status_bar.grid_columnconfigure(0, weight=1)
        ctk.CTkLabel(status_bar, textvariable=self._status, anchor="w").grid(row=0, column=0, padx=10, sticky="w")
        ctk.CTkLabel(status_bar, textvariable=self._cursor, anchor="e").grid(row=0, column=1, padx=10, sticky="e")

        self._target = target
        self._thread: Optional[threading.Thread] = None
        self._error: Optional[Exception] = None
        self._on_cancel: Optional[Callable[[], None]] = None

    def run_render(
        self,
        render: Callable[[RenderTarget], RenderTarget],
        on_cancel: Optional[Callable[[], None]] = None,
    ) -> RenderTarget:
        """Запускает `render(target)` в фоне и крутит цикл окна до закрытия.

        Если окно закрыто до завершения рендера, вызывается `on_cancel`.

        Raises:
            Исключение рендера, если он завершился ошибкой.
        """
        self._thread = threading.Thread(target=self._render_in_background, args=(render,), name="collector", daemon=True)
        self._thread.start()
        self._on_cancel = on_cancel
        self.protocol("WM_DELETE_WINDOW", self._handle_close)
        self.after(REFRESH_MS, self._refresh)
        self.mainloop()
        self._thread.join()
        if self._error is not None:
            raise self._error
        return self._target

    # ---- Internals ----
    def _render_in_background(self, render: Callable[[RenderTarget], RenderTarget]) -> None:
        try:
            render(self._target)
        except Exception as exc:
            self._error = exc

    def _refresh(self) -> None:
        self._viewer.set_image(self._target.to_image())
        self._status.set(f"{self._target.written}/{self._target.size} pixels")

        if self._error is not None:
            logging.error(f"[window] Render failed: {self._error}")
            self.destroy()
            return
        if self._target.presented:
            self._status.set(f"{self._target.size} pixels - done")
            return
        self.after(REFRESH_MS, self._refresh)

    def _handle_close(self) -> None:
        if not self._target.presented and self._on_cancel is not None:
            logging.info("[window] Closed before the render finished, cancelling")
            self._on_cancel()
        self.destroy()

    def _handle_cursor_move(self, x: Optional[int], y: Optional[int], rgb: Optional[Tuple[int, int, int]]) -> None:
        if x is None or y is None or rgb is None:
            self._cursor.set("")
            return
        self._cursor.set(f"x={x} y={y}  rgb={tuple(rgb)}")


def open_window(target: RenderTarget) -> RenderWindow:
    """Создаёт окно рендера.

    Raises:
        SourceError: если дисплей недоступен.
    """
    try:
        return RenderWindow(target)
    except tk.TclError as exc:
        raise SourceError(f"could not open display: {exc}") from exc
