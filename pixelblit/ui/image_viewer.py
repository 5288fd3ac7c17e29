"""Виджет просмотра рендера: изображение, вписанное в канву, и координаты под курсором.

Принципы:
- SRP: отвечает только за представление; пиксели приходят снаружи готовой картинкой.
"""
from __future__ import annotations

from typing import Callable, Optional, Tuple

import customtkinter as ctk
import tkinter as tk
from PIL import Image, ImageTk


class ImageViewer(ctk.CTkFrame):
    """Канва, на которой по мере поступления пикселей перерисовывается рендер."""
    def __init__(self, master: ctk.CTk | tk.Misc, **kwargs) -> None:
        super().__init__(master, **kwargs)
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(0, weight=1)

        self._canvas = tk.Canvas(self, highlightthickness=0, bg=self._get_canvas_bg())
        self._canvas.grid(row=0, column=0, sticky="nsew")

        self._image: Optional[Image.Image] = None
        self._tk_image: Optional[ImageTk.PhotoImage] = None
        self._scale_factor: float = 1.0
        self._image_top_left: Tuple[int, int] = (0, 0)

        self.on_cursor_move: Optional[Callable[[Optional[int], Optional[int], Optional[Tuple[int, int, int]]], None]] = None

        self._canvas.bind("<Configure>", self._on_canvas_resize)
        self._canvas.bind("<Motion>", self._on_mouse_move)
        self._canvas.bind("<Leave>", self._on_mouse_leave)

    # ---- Public API ----
    def set_image(self, image: Image.Image) -> None:
        """Заменяет показываемое изображение и перерисовывает канву."""
        self._image = image
        self._compute_fit_scale()
        self._render_image()

    # ---- Internals ----
    def _on_canvas_resize(self, _event: tk.Event) -> None:
        if self._image is None:
            return
        self._compute_fit_scale()
        self._render_image()

    def _render_image(self) -> None:
        self._canvas.delete("all")
        if self._image is None:
            return

        canvas_w = int(self._canvas.winfo_width())
        canvas_h = int(self._canvas.winfo_height())
        img_w, img_h = self._image.size
        scaled_w = max(1, int(img_w * self._scale_factor))
        scaled_h = max(1, int(img_h * self._scale_factor))

        # nearest keeps single received pixels crisp while zoomed
        resized = self._image.resize((scaled_w, scaled_h), Image.Resampling.NEAREST)
        self._tk_image = ImageTk.PhotoImage(resized)
        left = max(0, (canvas_w - scaled_w) // 2)
        top = max(0, (canvas_h - scaled_h) // 2)
        self._image_top_left = (left, top)
        self._canvas.create_image(left, top, image=self._tk_image, anchor="nw")

    def _compute_fit_scale(self) -> None:
        if self._image is None:
            self._scale_factor = 1.0
            return
        canvas_w = max(1, int(self._canvas.winfo_width()))
        canvas_h = max(1, int(self._canvas.winfo_height()))
        img_w, img_h = self._image.size
        if img_w == 0 or img_h == 0:
            self._scale_factor = 1.0
            return
        self._scale_factor = max(0.1, min(4.0, min(canvas_w / img_w, canvas_h / img_h)))

    def _on_mouse_move(self, event: tk.Event) -> None:
        if self._image is None or self.on_cursor_move is None:
            return
        left, top = self._image_top_left
        x = int((event.x - left) / self._scale_factor)
        y = int((event.y - top) / self._scale_factor)
        img_w, img_h = self._image.size
        if 0 <= x < img_w and 0 <= y < img_h:
            self.on_cursor_move(x, y, self._image.getpixel((x, y)))
        else:
            self.on_cursor_move(None, None, None)

    def _on_mouse_leave(self, _event: tk.Event) -> None:
        if self.on_cursor_move is not None:
            self.on_cursor_move(None, None, None)

    def _get_canvas_bg(self) -> str:
        return "#1f1f1f" if ctk.get_appearance_mode().lower() == "dark" else "#f2f2f2"
