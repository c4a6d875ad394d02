"""
Storage infrastructure - key-value backends for client-side state.
"""

from .browser_storage import KeyValueStorage, MemoryStorage, StreamlitStorage

__all__ = [
    'KeyValueStorage',
    'MemoryStorage',
    'StreamlitStorage'
]
