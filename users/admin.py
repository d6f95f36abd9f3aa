"""
Admin configuration for users app models.
"""
from django.contrib import admin
from .models import UserProfile


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'telegram_username', 'telegram_chat_id', 'favorite_count', 'created_at']
    search_fields = ['user__username', 'telegram_username', 'telegram_chat_id', 'favorites_json']
    readonly_fields = ['created_at', 'updated_at', 'favorites_display']

    fieldsets = (
        ('User Information', {
            'fields': ('user', 'telegram_chat_id', 'telegram_username')
        }),
        ('Favorites', {
            'fields': ('favorites_display', 'favorites_json')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def favorite_count(self, obj):
        return len(obj.get_favorites())
    favorite_count.short_description = 'Favorites'

    def favorites_display(self, obj):
        return ', '.join(obj.get_favorites()) or '-'
    favorites_display.short_description = 'Favorite dishes'
