"""
UI service - Streamlit adapters (navigation, notifications) and page bodies.
"""

from .navigator import StreamlitNavigator
from .notifications import Notifier, StreamlitNotifier, notify_failure

__all__ = [
    'StreamlitNavigator',
    'Notifier',
    'StreamlitNotifier',
    'notify_failure',
]
