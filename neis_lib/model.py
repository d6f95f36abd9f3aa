"""
Value objects for parsed meal data and the favorites list.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawRow:
    """One <row> of the NEIS meal response. Any field may be missing."""
    meal_type_name: Optional[str] = None
    dish_name: Optional[str] = None
    calorie_info: Optional[str] = None
    nutrition_info: Optional[str] = None


@dataclass(frozen=True)
class NutritionInfo:
    """Display-ready nutrient strings; None means no pattern matched."""
    carbs: Optional[str] = None
    protein: Optional[str] = None
    fat: Optional[str] = None
    vitamins: Optional[str] = None
    minerals: Optional[str] = None

    def has_data(self) -> bool:
        return any((self.carbs, self.protein, self.fat, self.vitamins, self.minerals))


@dataclass(frozen=True)
class MealRecord:
    type: str
    dishes: List[str]
    calorie_text: str = ""
    nutrition: Optional[NutritionInfo] = None


# =============================================================================
# FAVORITES
# =============================================================================

class FavoritesStore(Protocol):
    """Persistence slot for the favorites list."""

    def load(self) -> List[str]:
        ...

    def save(self, names: List[str]) -> None:
        ...


class MemoryFavoritesStore:
    """Keeps the serialized list in memory, the way a browser slot would."""

    def __init__(self, raw: Optional[str] = None):
        self.raw = raw

    def load(self) -> List[str]:
        if not self.raw:
            return []
        return json.loads(self.raw)

    def save(self, names: List[str]) -> None:
        self.raw = json.dumps(list(names), ensure_ascii=False)


@dataclass
class FavoriteSet:
    """
    Ordered set of favorited dish names.

    Membership is set-like, iteration follows insertion order. Every change
    is written through to the store.
    """
    store: FavoritesStore
    _names: List[str] = field(default_factory=list)

    @classmethod
    def load(cls, store: FavoritesStore) -> "FavoriteSet":
        """Load from the store, falling back to an empty set on any failure."""
        try:
            loaded = store.load()
        except Exception as e:
            logger.warning(f"Could not load favorites, starting empty: {e}")
            return cls(store)

        if not isinstance(loaded, list) or not all(isinstance(n, str) for n in loaded):
            logger.warning("Stored favorites have an unexpected shape, starting empty")
            return cls(store)

        names = []
        for name in loaded:
            if name not in names:
                names.append(name)
        return cls(store, names)

    def __contains__(self, name: str) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._names))

    def __len__(self) -> int:
        return len(self._names)

    def contains(self, name: str) -> bool:
        return name in self._names

    def names(self) -> List[str]:
        return list(self._names)

    def toggle(self, name: str) -> bool:
        """Add or remove `name`. Returns True if it is a favorite afterwards."""
        if name in self._names:
            self._names.remove(name)
            added = False
        else:
            self._names.append(name)
            added = True
        self._persist()
        return added

    def remove(self, name: str) -> bool:
        """Remove `name` if present. Returns whether anything changed."""
        if name not in self._names:
            return False
        self._names.remove(name)
        self._persist()
        return True

    def _persist(self) -> None:
        try:
            self.store.save(self.names())
        except Exception as e:
            logger.warning(f"Could not save favorites: {e}")
