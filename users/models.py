"""
Models for the users app - Telegram users and their favorite dishes.
"""
from django.db import models
from django.contrib.auth.models import User


class UserProfile(models.Model):
    """
    A Telegram user of the bot.

    `favorites_json` is the persistence slot for the user's favorite dishes:
    a JSON list of dish names in the order they were added.
    """
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='profile')
    telegram_chat_id = models.BigIntegerField(unique=True, null=True, blank=True, db_index=True)
    telegram_username = models.CharField(max_length=255, blank=True)

    favorites_json = models.TextField(
        blank=True,
        default='',
        help_text="JSON list of favorite dish names, oldest first"
    )

    # Metadata
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['user__username']

    def __str__(self):
        return f"Profile for {self.user.username}"

    def get_favorites(self):
        """Load this profile's FavoriteSet"""
        from .favorites import load_favorites
        return load_favorites(self)
