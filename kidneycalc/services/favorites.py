"""In-memory favorites.

A ``FavoritesStore`` belongs to one application instance (it is attached to
``app.state``), not to the process. It only holds formula identifiers and
carries no computational meaning.
"""

import logging
from collections.abc import Callable
from threading import Lock

from kidneycalc.services.evaluator import normalize_formula_id
from kidneycalc.services.models import UnknownFormulaError

logger = logging.getLogger(__name__)


class FavoritesStore:
    """Ordered set of favorite formula identifiers."""

    def __init__(self, is_known: Callable[[str], bool]) -> None:
        """Initialize the store.

        Args:
            is_known: Predicate used to reject identifiers not in the catalog.
        """
        self._is_known = is_known
        self._ids: list[str] = []
        self._lock = Lock()

    def _check(self, formula_id: str) -> str:
        if not self._is_known(formula_id):
            raise UnknownFormulaError(formula_id)
        return normalize_formula_id(formula_id)

    def list(self) -> list[str]:
        with self._lock:
            return list(self._ids)

    def contains(self, formula_id: str) -> bool:
        with self._lock:
            return normalize_formula_id(formula_id) in self._ids

    def add(self, formula_id: str) -> bool:
        """Add a favorite. Returns False if it was already present."""
        formula_id = self._check(formula_id)
        with self._lock:
            if formula_id in self._ids:
                return False
            self._ids.append(formula_id)
        logger.debug(f"Added favorite {formula_id}")
        return True

    def remove(self, formula_id: str) -> bool:
        """Remove a favorite. Returns False if it was not present."""
        formula_id = self._check(formula_id)
        with self._lock:
            if formula_id not in self._ids:
                return False
            self._ids.remove(formula_id)
        logger.debug(f"Removed favorite {formula_id}")
        return True

    def toggle(self, formula_id: str) -> bool:
        """Flip membership and return whether the formula is now a favorite."""
        formula_id = self._check(formula_id)
        with self._lock:
            if formula_id in self._ids:
                self._ids.remove(formula_id)
                return False
            self._ids.append(formula_id)
            return True

    def clear(self) -> None:
        with self._lock:
            self._ids.clear()
