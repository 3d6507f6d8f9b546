from __future__ import annotations

import asyncio

import flet as ft

from core.settings import CONNECTIVITY, UI


class OfflineBanner:
    """Top banner: persistent while offline, brief after reconnecting."""

    def __init__(self, app):
        self.app = app
        self._hide_task = None
        self.icon = ft.Icon(ft.Icons.WIFI_OFF)
        self.text = ft.Text("", weight=ft.FontWeight.BOLD)
        self.view = ft.Container(
            content=ft.Row([self.icon, self.text], alignment=ft.MainAxisAlignment.CENTER),
            padding=ft.padding.symmetric(vertical=8, horizontal=16),
            visible=False,
        )
        if not app.monitor.is_online:
            self._show_offline()

    def _show_offline(self):
        self.icon.name = ft.Icons.WIFI_OFF
        self.text.value = "You're offline - changes are saved on this device"
        self.view.bgcolor = UI.theme.offline_bg
        self.view.border = ft.border.only(bottom=ft.BorderSide(2, UI.theme.offline_border))
        self.view.visible = True

    def _show_reconnected(self):
        self.icon.name = ft.Icons.WIFI
        self.text.value = "Back online!"
        self.view.bgcolor = UI.theme.online_bg
        self.view.border = ft.border.only(bottom=ft.BorderSide(2, UI.theme.online_border))
        self.view.visible = True

    def on_connectivity(self, online: bool):
        if online:
            self._show_reconnected()
            self._hide_task = self.app.page.run_task(self._hide_later)
        else:
            self._show_offline()
        self.app.page.update()

    async def _hide_later(self):
        await asyncio.sleep(CONNECTIVITY.reconnected_banner_sec)
        if self.app.monitor.is_online:
            self.view.visible = False
            self.app.page.update()
