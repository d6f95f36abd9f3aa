"""
Favorites persistence backed by UserProfile.favorites_json.
"""
import json
from typing import List

from neis_lib.model import FavoriteSet


class ProfileFavoritesStore:
    """FavoritesStore that keeps the list on a UserProfile row."""

    def __init__(self, profile):
        self.profile = profile

    def load(self) -> List[str]:
        if not self.profile.favorites_json:
            return []
        return json.loads(self.profile.favorites_json)

    def save(self, names: List[str]) -> None:
        self.profile.favorites_json = json.dumps(list(names), ensure_ascii=False)
        self.profile.save(update_fields=['favorites_json', 'updated_at'])


def load_favorites(profile) -> FavoriteSet:
    """Load a profile's favorites; a corrupt slot gives an empty set."""
    return FavoriteSet.load(ProfileFavoritesStore(profile))
