"""
Page navigation on top of Streamlit's multipage API.
"""

from typing import Dict, List, Optional

import streamlit as st

from auth.navigation import Navigator, Route
from utils.logging_config import get_logger


class StreamlitNavigator(Navigator):
    """
    Navigator backed by `st.switch_page`

    `st.switch_page` stops the running script, so navigation is deferred:
    `navigate()` only records the target and `flush()` performs the switch
    once the page body has returned. A requested reload is handed to the
    storage flush of the first run that does not switch pages.
    """

    def __init__(self):
        super().__init__()
        self.logger = get_logger(__name__)
        self._pages: Dict[Route, "st.Page"] = {}
        self._pending: Optional[Route] = None
        self._reload_delay: Optional[float] = None

    def register(self, route: Route, page) -> None:
        """Map a route to the st.Page built for it in the current run"""
        self._pages[route] = page

    def page_for(self, route: Route):
        return self._pages.get(route)

    @property
    def routes(self) -> List[Route]:
        return list(self._pages)

    @property
    def pending(self) -> Optional[Route]:
        return self._pending

    def _go(self, route: Route) -> None:
        self.logger.debug(f"Navigation requested: {route.value}")
        self._pending = route

    def schedule_reload(self, delay_seconds: float) -> None:
        self._reload_delay = delay_seconds

    def take_reload(self) -> Optional[float]:
        delay, self._reload_delay = self._reload_delay, None
        return delay

    def flush(self) -> None:
        """Switch to the pending page"""
        route, self._pending = self._pending, None
        if route is None:
            return
        page = self._pages.get(route)
        if page is None:
            self.logger.warning(f"No page registered for route '{route.value}'")
            return
        st.switch_page(page)
