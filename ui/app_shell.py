# ui/app_shell.py
from __future__ import annotations

import flet as ft

from core.settings import SYNC_LOG_PATH, UI

from .offline_banner import OfflineBanner
from .pages.record_payment import RecordPaymentPage
from .pages.sync_status import SyncStatusPage
from .sync_indicator import SyncIndicator
from .toasts import SnackBarNotifier

from services.backend import BackendClient
from services.connectivity import ConnectivityMonitor
from services.offline_queue import OfflineQueue
from services.queue_processor import ActionProcessor
from storage.kv_store import SqlKeyValueStore
from storage.queue_store import QueueStore


class AppShell:
    def __init__(self, page: ft.Page):
        self.page = page

        self.page.title = UI.app_title
        self.page.horizontal_alignment = ft.CrossAxisAlignment.STRETCH
        self.page.vertical_alignment = ft.MainAxisAlignment.START

        # --- sync services, built once and shared by every page ---
        self.monitor = ConnectivityMonitor.for_backend()
        self.backend = BackendClient()
        self.offline_queue = OfflineQueue(
            QueueStore(SqlKeyValueStore()),
            ActionProcessor(self.backend),
            self.monitor,
            notifier=SnackBarNotifier(page),
        )

        # --- pages ---
        self._payment = RecordPaymentPage(self)
        self._status = SyncStatusPage(self)

        self.banner = OfflineBanner(self)
        self.indicator = SyncIndicator(self)
        self.monitor.subscribe(self.banner.on_connectivity)
        self.offline_queue.subscribe(self._on_queue_changed)
        self.offline_queue.subscribe(self.indicator.on_queue_changed)

        self.content = ft.Container(expand=True)

        self.nav = ft.NavigationRail(
            selected_index=0,
            label_type=ft.NavigationRailLabelType.ALL,
            min_width=90,
            group_alignment=-0.9,
            on_change=self.on_nav_change,
            destinations=[
                ft.NavigationRailDestination(
                    icon=ft.Icons.PAYMENTS_OUTLINED,
                    selected_icon=ft.Icons.PAYMENTS,
                    label="Payments",
                ),
                ft.NavigationRailDestination(
                    icon=ft.Icons.CLOUD_SYNC_OUTLINED,
                    selected_icon=ft.Icons.CLOUD_SYNC,
                    label="Sync",
                ),
            ],
        )

        self.root = ft.Column(
            controls=[
                self.banner.view,
                ft.Row(
                    controls=[
                        ft.Container(self.nav, width=88, bgcolor=UI.theme.surface_bg),
                        ft.VerticalDivider(width=1),
                        self.content,
                    ],
                    expand=True,
                    spacing=0,
                ),
            ],
            expand=True,
            spacing=0,
        )

    # ---------- mount ----------
    def mount(self):
        self.page.controls.clear()
        self.page.add(self.root)
        self.page.overlay.append(self.indicator.view)

        self.content.content = self._payment.view
        self.page.update()

        self.page.run_task(self.offline_queue.start)
        self.page.run_task(self.monitor.run)
        self.page.on_disconnect = self.shutdown

    def shutdown(self, _=None):
        self.monitor.stop()
        self.page.run_task(self._close_services)

    async def _close_services(self):
        await self.offline_queue.aclose()
        await self.backend.close()

    def _on_queue_changed(self):
        # the indicator listener runs next and updates the page
        if self.content.content is self._status.view:
            self._status.refresh_status()

    def on_nav_change(self, e: ft.ControlEvent):
        idx = int(e.control.selected_index)
        if idx == 0:
            self.content.content = self._payment.view
        else:
            self._status.refresh_status()
            self._status.log_view.value = self.read_sync_log()
            self.content.content = self._status.view
        self.page.update()

    def read_sync_log(self, lines: int = UI.log_tail_lines) -> str:
        try:
            with open(SYNC_LOG_PATH, "r", encoding="utf-8") as fh:
                content = fh.readlines()
        except FileNotFoundError:
            return "Sync log is empty."
        content = [line.rstrip("\n") for line in content[-lines:]]
        return "\n".join(content)
