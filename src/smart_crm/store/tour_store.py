"""
Onboarding tour state and persisted progress.

Progress is stored under ``smartcrm_tour_progress`` as
``{"tourProgress": {...}, "completedTours": [...], "lastSaved": iso}``;
a step index of -1 marks a completed tour.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog

from ..config import config
from ..models.tour import Tour, TourStep, find_tour

logger = structlog.get_logger(__name__)

STORAGE_KEY = 'smartcrm_tour_progress'
VISITED_KEY = 'smartcrm_visited'
ONBOARDING_TOUR_ID = 'onboarding'
COMPLETED = -1


class JsonFileStorage:
    """Key/value storage kept in one JSON file."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or config.TOUR_PROGRESS_PATH).expanduser()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        return json.loads(self.path.read_text(encoding='utf-8'))

    def get(self, key: str) -> Any:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding='utf-8')


class TourStore:
    """
    Which tour is running, on which step, and what has been completed.

    Args:
        storage: Object with ``get(key)`` and ``set(key, value)``
    """

    def __init__(self, storage: JsonFileStorage | None = None):
        self.storage = storage or JsonFileStorage()
        self.is_tour_active = False
        self.current_tour_id: str | None = None
        self.current_step_index = 0
        self.tour_progress: dict[str, int] = {}
        self.completed_tours: list[str] = []
        self.tooltip_visible: dict[str, bool] = {}
        self.show_help_button = True

    # =========================================================================
    # Navigation
    # =========================================================================

    def start_tour(self, tour_id: str, start_index: int = 0) -> None:
        if find_tour(tour_id) is None:
            logger.warning('tour.not_found', tour_id=tour_id)
            return
        self.is_tour_active = True
        self.current_tour_id = tour_id
        self.current_step_index = start_index
        logger.info('tour.started', tour_id=tour_id, step=start_index)

    def next_step(self) -> None:
        tour = self.get_current_tour()
        if tour is None:
            return
        next_index = self.current_step_index + 1
        if next_index >= len(tour.steps):
            self.mark_tour_completed(tour.id)
            self.end_tour()
            return
        self.current_step_index = next_index
        self.tour_progress[tour.id] = next_index
        self.save_progress()

    def prev_step(self) -> None:
        if self.current_step_index > 0:
            self.current_step_index -= 1

    def skip_to_step(self, step_index: int) -> None:
        tour = self.get_current_tour()
        if tour is None or not 0 <= step_index < len(tour.steps):
            return
        self.current_step_index = step_index

    def end_tour(self) -> None:
        self.is_tour_active = False
        self.current_tour_id = None
        self.current_step_index = 0

    def pause_tour(self) -> None:
        if self.current_tour_id:
            self.is_tour_active = False
            self.tour_progress[self.current_tour_id] = self.current_step_index
            self.save_progress()

    def resume_tour(self) -> None:
        if self.current_tour_id:
            self.is_tour_active = True

    # =========================================================================
    # Lookup
    # =========================================================================

    def get_current_tour(self) -> Tour | None:
        return find_tour(self.current_tour_id)

    def get_tour_step(
        self, tour_id: str | None = None, step_index: int | None = None
    ) -> TourStep | None:
        tour = find_tour(tour_id or self.current_tour_id)
        index = self.current_step_index if step_index is None else step_index
        if tour is None or not 0 <= index < len(tour.steps):
            return None
        return tour.steps[index]

    # =========================================================================
    # Progress
    # =========================================================================

    def mark_tour_completed(self, tour_id: str) -> None:
        if tour_id in self.completed_tours:
            return
        self.completed_tours.append(tour_id)
        self.tour_progress[tour_id] = COMPLETED
        self.save_progress()
        logger.info('tour.completed', tour_id=tour_id)

    def reset_tour_progress(self, tour_id: str | None = None) -> None:
        if tour_id:
            self.tour_progress.pop(tour_id, None)
            self.completed_tours = [t for t in self.completed_tours if t != tour_id]
        else:
            self.tour_progress = {}
            self.completed_tours = []
        self.save_progress()

    def set_tooltip_visible(self, element_id: str, visible: bool) -> None:
        self.tooltip_visible[element_id] = visible

    def toggle_help_button(self) -> None:
        self.show_help_button = not self.show_help_button

    def load_progress(self) -> None:
        """Restore saved progress; unreadable storage leaves the state as is."""
        try:
            stored = self.storage.get(STORAGE_KEY)
        except (OSError, ValueError) as e:
            logger.warning('tour.load_progress.failed', error=str(e))
            return
        if stored:
            self.tour_progress = dict(stored.get('tourProgress') or {})
            self.completed_tours = list(stored.get('completedTours') or [])

    def save_progress(self) -> None:
        payload = {
            'tourProgress': self.tour_progress,
            'completedTours': self.completed_tours,
            'lastSaved': datetime.now(timezone.utc).isoformat(),
        }
        try:
            self.storage.set(STORAGE_KEY, payload)
        except (OSError, ValueError) as e:
            logger.warning('tour.save_progress.failed', error=str(e))


def initialize_tours(store: TourStore) -> bool:
    """
    Load progress and start onboarding on a first visit.

    Returns:
        True when the onboarding tour was started
    """
    store.load_progress()
    if ONBOARDING_TOUR_ID in store.completed_tours:
        return False
    try:
        visited = store.storage.get(VISITED_KEY)
    except (OSError, ValueError) as e:
        logger.warning('tour.visited_flag.failed', error=str(e))
        return False
    if visited:
        return False
    try:
        store.storage.set(VISITED_KEY, 'true')
    except (OSError, ValueError) as e:
        logger.warning('tour.visited_flag.failed', error=str(e))
    store.start_tour(ONBOARDING_TOUR_ID)
    return True
