# ui/pages/sync_status.py
from datetime import timezone
import flet as ft

from core.settings import UI


class SyncStatusPage:
    def __init__(self, app):
        self.app = app

        self.status_connection = ft.Text()
        self.status_queue = ft.Text()
        self.last_sync = ft.Text()
        self.last_summary = ft.Text()

        self.sync_btn = ft.ElevatedButton(
            "Sync now",
            icon=ft.Icons.SYNC,
            on_click=self.sync_now,
        )
        self.check_btn = ft.OutlinedButton(
            "Check connection",
            icon=ft.Icons.NETWORK_CHECK,
            on_click=self.check_connection,
        )
        self.refresh_log_btn = ft.TextButton(
            "Refresh log",
            icon=ft.Icons.ARTICLE,
            on_click=self.refresh_log,
        )

        self.queue_list = ft.ListView(height=180, spacing=2)
        self.log_view = ft.Text("", selectable=True, size=12)

        content = ft.Column(
            controls=[
                ft.Text("Offline sync", size=24, weight=ft.FontWeight.BOLD),
                self.status_connection,
                self.status_queue,
                self.last_sync,
                self.last_summary,
                ft.Row([self.sync_btn, self.check_btn], spacing=12),
                ft.Text("Queued actions", size=18, weight=ft.FontWeight.W_600),
                ft.Container(self.queue_list, padding=10, bgcolor=UI.theme.surface_bg),
                ft.Column([
                    ft.Text("Sync log", size=18, weight=ft.FontWeight.W_600),
                    ft.Container(self.log_view, height=200, padding=10, bgcolor=UI.theme.surface_bg),
                    self.refresh_log_btn,
                ], spacing=8),
            ],
            expand=True,
            spacing=16,
            scroll=ft.ScrollMode.AUTO,
        )

        self.view = ft.Container(content=content, expand=True, padding=20)
        self.refresh_status()

    def _format_dt(self, value) -> str:
        if not value:
            return "—"
        if getattr(value, "tzinfo", None) is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone().strftime("%Y-%m-%d %H:%M:%S %Z")

    def refresh_status(self):
        queue = self.app.offline_queue
        self.status_connection.value = "Connection: " + ("online" if queue.is_online else "offline")
        state = "syncing" if queue.is_syncing else "idle"
        self.status_queue.value = f"Queue: {queue.queue_length} pending ({state})"
        self.last_sync.value = "Last sync: " + self._format_dt(queue.last_sync_at)

        summary = queue.last_summary
        if summary:
            self.last_summary.value = (
                f"Last result: {summary.succeeded} synced, "
                f"{summary.retrying} to retry, {summary.abandoned} abandoned"
            )
        else:
            self.last_summary.value = "Last result: —"

        self.queue_list.controls = [
            ft.ListTile(
                dense=True,
                leading=ft.Icon(ft.Icons.PENDING_ACTIONS),
                title=ft.Text(action.type),
                subtitle=ft.Text(
                    f"{self._format_dt(action.enqueued_at)} · retries: {action.retry_count}"
                ),
            )
            for action in queue.queue
        ] or [ft.Text("Nothing queued", color=UI.theme.text_subtle)]
        self.sync_btn.disabled = queue.is_syncing or not queue.is_online

    async def sync_now(self, _):
        try:
            summary = await self.app.offline_queue.sync_queue()
            if summary is None:
                self.app.page.open(ft.SnackBar(ft.Text("Nothing to sync right now")))
        except Exception as e:
            self.status_queue.value = f"Sync error: {e}"
        self.refresh_status()
        self.app.page.update()

    async def check_connection(self, _):
        try:
            await self.app.monitor.check()
        except Exception as e:
            self.status_connection.value = f"Check failed: {e}"
            self.app.page.update()
            return
        self.refresh_status()
        self.app.page.update()

    def refresh_log(self, _):
        self.log_view.value = self.app.read_sync_log()
        self.app.page.update()
