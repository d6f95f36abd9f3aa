"""
Management command to run the Telegram bot.
"""
from django.core.management.base import BaseCommand
from django.conf import settings
from telegram import Update
from telegram.ext import Application, CommandHandler, CallbackQueryHandler
import logging

from bot.handlers import (
    start_command,
    help_command,
    today_command,
    menu_command,
    favorites_command,
    menu_date_callback,
    favorite_toggle_callback,
    remove_favorite_callback,
)

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger(__name__)


def build_application(token):
    """Create the bot application with every handler registered"""
    application = Application.builder().token(token).concurrent_updates(True).build()

    # Register command handlers
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("today", today_command))
    application.add_handler(CommandHandler("menu", menu_command))
    application.add_handler(CommandHandler("favorites", favorites_command))

    # Register callback handlers with pattern matching
    application.add_handler(CallbackQueryHandler(menu_date_callback, pattern=r'^menu_date:'))
    application.add_handler(CallbackQueryHandler(favorite_toggle_callback, pattern=r'^fav:'))
    application.add_handler(CallbackQueryHandler(remove_favorite_callback, pattern=r'^unfav:'))

    return application


class Command(BaseCommand):
    help = 'Run the Telegram bot'

    def handle(self, *args, **options):
        token = settings.TELEGRAM_BOT_TOKEN

        if not token:
            self.stdout.write(self.style.ERROR(
                'TELEGRAM_BOT_TOKEN not set in environment variables!'
            ))
            return

        self.stdout.write(self.style.SUCCESS('Starting Telegram bot...'))
        application = build_application(token)

        self.stdout.write(self.style.SUCCESS('Bot is running! Press Ctrl+C to stop.'))
        application.run_polling(allowed_updates=Update.ALL_TYPES)
