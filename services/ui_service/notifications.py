"""
User-facing notifications (toasts) and the page-level catch-notify-log helper.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import streamlit as st

from services.api_service.errors import SessionExpiredError, WorkZenError
from utils.logging_config import get_error_tracker


class Notifier(ABC):
    """Transient message shown to the visitor"""

    @abstractmethod
    def success(self, message: str) -> None:
        ...

    @abstractmethod
    def error(self, message: str) -> None:
        ...

    @abstractmethod
    def info(self, message: str) -> None:
        ...

    def show_pending(self) -> None:
        """Render queued messages; immediate notifiers have nothing queued"""


class StreamlitNotifier(Notifier):
    """
    Toasts queued in session state

    `show_pending()` renders the queue. The app shell calls it on a run that
    is not about to switch pages, so a message raised right before a redirect
    shows up on the destination page.
    """

    def __init__(self, state_key: str = "workzen_toasts"):
        self.state_key = state_key

    def _queue(self) -> List[Tuple[str, str]]:
        if self.state_key not in st.session_state:
            st.session_state[self.state_key] = []
        return st.session_state[self.state_key]

    def success(self, message: str) -> None:
        self._queue().append((message, "✅"))

    def error(self, message: str) -> None:
        self._queue().append((message, "❌"))

    def info(self, message: str) -> None:
        self._queue().append((message, "ℹ️"))

    def show_pending(self) -> None:
        queue = self._queue()
        for message, icon in queue:
            st.toast(message, icon=icon)
        queue.clear()


def error_message(error: Exception, fallback: str) -> str:
    if isinstance(error, WorkZenError):
        return error.message
    return fallback


def notify_failure(notifier: Notifier, error: Exception, fallback: str,
                   context: str = "", tracker=None) -> Optional[str]:
    """
    Record a failed page action and toast it

    A SessionExpiredError already forced a logout and redirect, so it is
    neither toasted nor tracked a second time.

    Returns:
        The message shown, or None when suppressed
    """
    if isinstance(error, SessionExpiredError):
        return None

    tracker = tracker or get_error_tracker()
    tracker.track_error(error, context or "page_action")

    message = error_message(error, fallback)
    notifier.error(message)
    return message
