"""
State containers backing the UI.
"""

from .contact_store import ContactStore
from .tour_store import JsonFileStorage, TourStore, initialize_tours
from .view_state import ViewState

__all__ = [
    'ContactStore',
    'JsonFileStorage',
    'TourStore',
    'ViewState',
    'initialize_tours',
]
