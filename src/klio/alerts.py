"""Transient success/error/info signals for presentation.

A signal is never queued: each ``show`` overwrites whatever is displayed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from klio.state import StateContainer


class AlertKind(str, Enum):
    ERROR = "error"
    SUCCESS = "success"
    INFO = "info"


@dataclass(frozen=True)
class AlertSignal:
    kind: AlertKind
    title: str
    message: str


class AlertChannel(StateContainer[AlertSignal | None]):
    """Single-slot alert holder. Presentation dismisses by calling ``clear``."""

    def __init__(self) -> None:
        super().__init__(None)

    @property
    def current(self) -> AlertSignal | None:
        return self.state

    def show(self, kind: AlertKind, title: str, message: str) -> AlertSignal:
        signal = AlertSignal(kind=kind, title=title, message=message)
        self._replace(signal)
        return signal

    def success(self, title: str, message: str) -> AlertSignal:
        return self.show(AlertKind.SUCCESS, title, message)

    def error(self, title: str, message: str) -> AlertSignal:
        return self.show(AlertKind.ERROR, title, message)

    def info(self, title: str, message: str) -> AlertSignal:
        return self.show(AlertKind.INFO, title, message)

    def clear(self) -> None:
        if self.state is not None:
            self._replace(None)
