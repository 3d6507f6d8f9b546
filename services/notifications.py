"""User-facing notifications raised by the sync layer."""

from __future__ import annotations

import logging
from typing import Optional


class Notifier:
    """Default notifier: writes toasts to the ``rentdesk.notify`` logger.

    UI layers subclass this and override ``show``.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger("rentdesk.notify")

    def show(self, level: str, message: str, *, description: Optional[str] = None, duration_ms: Optional[int] = None) -> None:
        text = f"{message} ({description})" if description else message
        if level == "error":
            self.logger.error(text)
        elif level == "warning":
            self.logger.warning(text)
        else:
            self.logger.info(text)

    def info(self, message: str, **kwargs) -> None:
        self.show("info", message, **kwargs)

    def success(self, message: str, **kwargs) -> None:
        self.show("success", message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self.show("warning", message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        self.show("error", message, **kwargs)


def plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


__all__ = ["Notifier", "plural"]
