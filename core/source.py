from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from core.data import get_chapters, load_observations
from core.filters import FilterCriteria, filter_observations
from core.models import Observation


class ObservationSource:
    """File-backed observation source.

    ``get_filtered_records`` runs the same filter the dashboard runs locally,
    so server-side and client-side filtering always agree.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = path

    def get_all_records(self) -> List[Observation]:
        return load_observations(self.path)

    def get_chapters(self) -> List[str]:
        return get_chapters(self.get_all_records())

    def get_filtered_records(self, criteria: Optional[FilterCriteria] = None) -> List[Observation]:
        return filter_observations(self.get_all_records(), criteria)
