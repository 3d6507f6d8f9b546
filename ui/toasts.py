from __future__ import annotations

from typing import Optional

import flet as ft

from services.notifications import Notifier


class SnackBarNotifier(Notifier):
    """Shows sync notifications as snack bars and keeps logging them."""

    COLORS = {
        "success": ft.Colors.GREEN_700,
        "warning": ft.Colors.ORANGE_800,
        "error": ft.Colors.RED_700,
    }
    DEFAULT_DURATION_MS = 4000

    def __init__(self, page: ft.Page):
        super().__init__()
        self.page = page

    def show(self, level: str, message: str, *, description: Optional[str] = None, duration_ms: Optional[int] = None) -> None:
        super().show(level, message, description=description)
        lines = [ft.Text(message, weight=ft.FontWeight.W_600, color=ft.Colors.WHITE)]
        if description:
            lines.append(ft.Text(description, size=12, color=ft.Colors.WHITE70))
        snack = ft.SnackBar(
            ft.Column(lines, tight=True, spacing=2),
            bgcolor=self.COLORS.get(level),
            duration=duration_ms or self.DEFAULT_DURATION_MS,
        )
        try:
            self.page.open(snack)
        except Exception as exc:
            self.logger.debug("Snack bar not shown: %s", exc)
