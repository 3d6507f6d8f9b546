from types import SimpleNamespace

import flet as ft

from models.queued_action import ActionType
from services.connectivity import ConnectivityMonitor
from services.offline_queue import OfflineQueue
from services.queue_processor import Outcome
from storage.kv_store import SqlKeyValueStore
from storage.queue_store import QueueStore
from ui.sync_indicator import SyncIndicator
from ui.toasts import SnackBarNotifier


class FakePage:
    def __init__(self):
        self.opened = []
        self.updates = 0

    def open(self, control):
        self.opened.append(control)

    def update(self):
        self.updates += 1


class NullProcessor:
    async def process(self, action):
        return Outcome.SUCCESS


def _app(session_factory, online):
    page = FakePage()
    queue = OfflineQueue(
        QueueStore(SqlKeyValueStore(session_factory)),
        NullProcessor(),
        ConnectivityMonitor(online=online),
        notifier=SnackBarNotifier(page),
    )
    return SimpleNamespace(page=page, offline_queue=queue)


def test_indicator_hidden_when_online_and_empty(session_factory):
    indicator = SyncIndicator(_app(session_factory, online=True))
    assert indicator.view.visible is False


def test_indicator_offline_mode(session_factory):
    app = _app(session_factory, online=False)
    indicator = SyncIndicator(app)
    app.offline_queue.add_to_queue(ActionType.DELETE_TENANT, {"tenant_id": "t1"})

    indicator.on_queue_changed()

    assert indicator.view.visible is True
    assert indicator.title.value == "Offline Mode"
    assert indicator.subtitle.value == "1 action queued"
    assert indicator.sync_btn.visible is False
    assert app.page.updates == 1


def test_indicator_ready_to_sync_offers_button(session_factory):
    app = _app(session_factory, online=False)
    app.offline_queue.add_to_queue(ActionType.DELETE_TENANT, {"tenant_id": "t1"})
    app.offline_queue.add_to_queue(ActionType.DELETE_TENANT, {"tenant_id": "t2"})
    app.offline_queue.monitor.set_online(True)

    indicator = SyncIndicator(app)

    assert indicator.title.value == "Ready to sync"
    assert indicator.subtitle.value == "2 actions pending"
    assert indicator.sync_btn.visible is True


def test_offline_capture_opens_snack_bar(session_factory):
    app = _app(session_factory, online=False)
    app.offline_queue.add_to_queue(ActionType.DELETE_COMMENT, {"comment_id": "c1"})

    (snack,) = app.page.opened
    assert isinstance(snack, ft.SnackBar)
    assert snack.duration == 2000
    assert snack.content.controls[0].value == "Saved offline. Will sync when online."
