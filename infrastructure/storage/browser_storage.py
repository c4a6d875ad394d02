"""
Key-value storage backends for client-side state.

`StreamlitStorage` keeps values in `st.session_state` (one browser tab's
session) and mirrors them into first-party cookies so a hard reload of the
page can read them back through `st.context.cookies`.
"""

import json
import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional, Set
from urllib.parse import unquote

import streamlit as st
import streamlit.components.v1 as components
from streamlit.runtime.scriptrunner import get_script_run_ctx

from utils.logging_config import get_logger


class KeyValueStorage(ABC):
    """Minimal string-to-string storage, shaped like the browser's localStorage"""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...

    def is_available(self) -> bool:
        """False when there is no browser context to persist into"""
        return True

    def flush_to_browser(self, reload_after: Optional[float] = None) -> None:
        """
        Push queued writes to the browser; no-op for server-side storage

        Args:
            reload_after: If set, reload the page this many seconds after the
                writes have been applied
        """


class MemoryStorage(KeyValueStorage):
    """Process-local storage used by tests and scripts"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> Iterable[str]:
        with self._lock:
            return list(self._data)


class StreamlitStorage(KeyValueStorage):
    """
    Storage scoped to the current Streamlit browser session

    Values live in a dict under `namespace` in `st.session_state`. Removed
    keys are kept as tombstones so a cookie sent with the original page
    request is not read back after logout.

    Cookie writes are queued and emitted by `flush_to_browser()`, which the
    app shell calls on a run that is not about to switch pages (a component
    rendered right before `st.switch_page` never reaches the browser).
    """

    def __init__(self, namespace: str = "workzen_storage", mirror_to_browser: bool = True,
                 cookie_max_age_days: int = 7):
        self.namespace = namespace
        self.mirror_to_browser = mirror_to_browser
        self.cookie_max_age = cookie_max_age_days * 24 * 3600
        self.logger = get_logger(__name__)

    def is_available(self) -> bool:
        return get_script_run_ctx() is not None

    def _bucket(self) -> Dict[str, Optional[str]]:
        if self.namespace not in st.session_state:
            st.session_state[self.namespace] = {}
        return st.session_state[self.namespace]

    def _dirty(self) -> Set[str]:
        key = f"{self.namespace}_dirty"
        if key not in st.session_state:
            st.session_state[key] = set()
        return st.session_state[key]

    def get_item(self, key: str) -> Optional[str]:
        bucket = self._bucket()
        if key in bucket:
            return bucket[key]

        value = self._read_cookie(key) if self.mirror_to_browser else None
        bucket[key] = value
        if value is not None:
            self.logger.debug(f"Restored '{key}' from browser cookie")
        return value

    def set_item(self, key: str, value: str) -> None:
        self._bucket()[key] = value
        if self.mirror_to_browser:
            self._dirty().add(key)

    def remove_item(self, key: str) -> None:
        self._bucket()[key] = None
        if self.mirror_to_browser:
            self._dirty().add(key)

    @property
    def has_pending_writes(self) -> bool:
        return bool(self._dirty())

    def flush_to_browser(self, reload_after: Optional[float] = None) -> None:
        """
        Write queued changes into first-party cookies

        A requested reload is appended to the same script, so an expired token
        cookie is gone before the reloaded page request is sent.
        """
        dirty = self._dirty()
        if not dirty and reload_after is None:
            return

        bucket = self._bucket()
        statements = []
        for key in sorted(dirty):
            value = bucket.get(key)
            if value is None:
                statements.append(_cookie_statement(key, "", 0))
            else:
                statements.append(_cookie_statement(key, value, self.cookie_max_age))
        dirty.clear()
        written = len(statements)
        if reload_after is not None:
            statements.append(_reload_statement(reload_after))
        body = "".join(statements)

        # The component iframe is same-origin (srcdoc), so it can reach the parent document
        script = f"""
        <script>
            try {{
                {body}
            }} catch (e) {{
                console.error("Failed to persist session cookies:", e);
            }}
        </script>
        """
        components.html(script, height=0)
        self.logger.debug(f"Synced {written} key(s) to browser cookies")
        if reload_after is not None:
            self.logger.debug(f"Page reload scheduled in {reload_after}s")

    def _read_cookie(self, key: str) -> Optional[str]:
        try:
            raw = st.context.cookies.get(key)
        except AttributeError:
            # Streamlit builds without st.context
            return None
        if not raw:
            return None
        return unquote(raw)


def _cookie_statement(key: str, value: str, max_age: int) -> str:
    js_value = json.dumps(value).replace("</", "<\\/")
    return (
        f'window.parent.document.cookie = "{key}=" + encodeURIComponent({js_value})'
        f' + "; path=/; max-age={max_age}; SameSite=Strict"'
        ' + (window.parent.location.protocol === "https:" ? "; Secure" : "");\n'
    )


def _reload_statement(delay_seconds: float) -> str:
    # String handler: evaluated in the parent realm, so it outlives the component iframe
    delay_ms = max(int(delay_seconds * 1000), 0)
    return f'window.parent.setTimeout("window.location.reload()", {delay_ms});\n'
