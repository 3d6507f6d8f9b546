# ui/pages/record_payment.py
from __future__ import annotations

import flet as ft

from datetime_utils import to_rfc3339_utc, utc_now
from models.queued_action import ActionType


PAYMENT_MODES = ("cash", "mobile_money", "bank")


class RecordPaymentPage:
    """Quick form for marking a daily payment as paid."""

    def __init__(self, app):
        self.app = app

        self.payment_id = ft.TextField(label="Payment ID", autofocus=True)
        self.amount = ft.TextField(label="Amount paid", keyboard_type=ft.KeyboardType.NUMBER)
        self.recorded_by = ft.TextField(label="Recorded by")
        self.service_center = ft.TextField(label="Service center")
        self.mode = ft.Dropdown(
            label="Payment mode",
            value=PAYMENT_MODES[0],
            options=[ft.dropdown.Option(mode, mode.replace("_", " ").title()) for mode in PAYMENT_MODES],
        )
        self.result = ft.Text("")
        self.submit_btn = ft.ElevatedButton("Record payment", icon=ft.Icons.PAYMENTS, on_click=self.submit)

        self.view = ft.Container(
            content=ft.Column(
                [
                    ft.Text("Record payment", size=24, weight=ft.FontWeight.BOLD),
                    self.payment_id,
                    self.amount,
                    self.mode,
                    self.recorded_by,
                    self.service_center,
                    ft.Row([self.submit_btn], spacing=12),
                    self.result,
                ],
                spacing=12,
                width=420,
            ),
            expand=True,
            padding=20,
        )

    def _payload(self) -> dict | None:
        payment_id = (self.payment_id.value or "").strip()
        raw_amount = (self.amount.value or "").replace(",", "").strip()
        if not payment_id:
            self.payment_id.error_text = "Required"
            return None
        try:
            amount = float(raw_amount)
        except ValueError:
            self.amount.error_text = "Enter a number"
            return None
        if amount <= 0:
            self.amount.error_text = "Must be positive"
            return None
        self.payment_id.error_text = None
        self.amount.error_text = None
        return {
            "payment_id": payment_id,
            "paid_amount": amount,
            "recorded_by": (self.recorded_by.value or "").strip() or None,
            "recorded_at": to_rfc3339_utc(utc_now()),
            "payment_mode": self.mode.value,
            "service_center": (self.service_center.value or "").strip() or None,
        }

    async def submit(self, _):
        payload = self._payload()
        if payload is None:
            self.app.page.update()
            return
        self.submit_btn.disabled = True
        self.app.page.update()
        try:
            applied = await self.app.offline_queue.submit(ActionType.RECORD_PAYMENT, payload)
            self.result.value = "Payment recorded." if applied else "Payment saved, it will sync later."
            self.payment_id.value = ""
            self.amount.value = ""
        except Exception as e:
            self.result.value = f"Error: {e}"
        finally:
            self.submit_btn.disabled = False
            self.app.page.update()
