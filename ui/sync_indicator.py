# ui/sync_indicator.py
from __future__ import annotations

import flet as ft

from core.settings import UI
from services.notifications import plural


class SyncIndicator:
    """Floating card with the queue state and a manual sync button.

    Hidden while online with nothing queued.
    """

    def __init__(self, app):
        self.app = app
        self.icon = ft.Icon(ft.Icons.SYNC, size=20)
        self.title = ft.Text("", size=14, weight=ft.FontWeight.W_600)
        self.subtitle = ft.Text("", size=12, color=UI.theme.text_subtle)
        self.progress = ft.ProgressRing(width=18, height=18, stroke_width=2, visible=False)
        self.sync_btn = ft.OutlinedButton(
            "Sync Now",
            icon=ft.Icons.REFRESH,
            on_click=self.sync_now,
            visible=False,
        )

        card = ft.Container(
            content=ft.Row(
                [
                    ft.Stack([self.icon, self.progress]),
                    ft.Column([self.title, self.subtitle], spacing=2, expand=True),
                    self.sync_btn,
                ],
                spacing=12,
                vertical_alignment=ft.CrossAxisAlignment.CENTER,
            ),
            padding=16,
            width=UI.indicator_min_width + 80,
            bgcolor=ft.Colors.SURFACE,
            border=ft.border.all(1, ft.Colors.OUTLINE_VARIANT),
            border_radius=12,
            shadow=ft.BoxShadow(blur_radius=12, color=ft.Colors.with_opacity(0.15, ft.Colors.BLACK)),
        )
        self.view = ft.Container(card, right=16, bottom=16, visible=False)
        self.refresh()

    def refresh(self):
        queue = self.app.offline_queue
        pending = queue.queue_length
        online = queue.is_online
        syncing = queue.is_syncing

        self.view.visible = bool(pending) or not online
        self.progress.visible = syncing
        self.icon.visible = not syncing
        self.sync_btn.visible = False

        if syncing:
            self.title.value = "Syncing changes..."
            self.subtitle.value = f"{plural(pending, 'action')} pending"
        elif not online:
            self.icon.name = ft.Icons.CLOUD_OFF
            self.icon.color = ft.Colors.ORANGE_500
            self.title.value = "Offline Mode"
            self.subtitle.value = f"{plural(pending, 'action')} queued"
        else:
            self.icon.name = ft.Icons.CHECK_CIRCLE
            self.icon.color = ft.Colors.GREEN_500
            self.title.value = "Ready to sync"
            self.subtitle.value = f"{plural(pending, 'action')} pending"
            self.sync_btn.visible = True

    def on_queue_changed(self):
        self.refresh()
        self.app.page.update()

    async def sync_now(self, _):
        await self.app.offline_queue.sync_queue()
