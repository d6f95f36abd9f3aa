"""
Telegram bot handlers for user interactions.
"""
from telegram import Update, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.ext import ContextTypes
from django.contrib.auth.models import User
from django.utils import timezone
from asgiref.sync import sync_to_async
from datetime import date, datetime, timedelta
import hashlib
import logging
import re

from users.models import UserProfile
from users.favorites import load_favorites
from menu.services import MenuSearch
from menu.formatting import (
    FETCH_FAILED_MESSAGE,
    WEEKDAYS,
    format_display_date,
    format_favorites,
    format_meal_records,
)
from neis_lib.webpage import meal_date_key

logger = logging.getLogger(__name__)

MENU_DATE_PREFIX = 'menu_date:'
FAVORITE_PATTERN = re.compile(r'^fav:(\d{8}):(\d+):(\d+)$')
UNFAVORITE_PATTERN = re.compile(r'^unfav:([0-9a-f]+)$')

# Menus kept per chat so buttons under older messages still resolve
MENU_CACHE_SIZE = 7

INVALID_DATE_MESSAGE = (
    "❌ 날짜 형식이 올바르지 않습니다. YYYY-MM-DD 형식으로 입력해주세요.\n"
    "예: /menu 2024-03-05"
)


# =============================================================================
# HELPERS
# =============================================================================

@sync_to_async
def get_or_create_profile(chat_id, username, first_name=''):
    """Get or create the Django user and profile for a Telegram chat"""
    try:
        return UserProfile.objects.select_related('user').get(telegram_chat_id=chat_id), False
    except UserProfile.DoesNotExist:
        pass

    user, _ = User.objects.get_or_create(
        username=username or f"user_{chat_id}",
        defaults={'first_name': first_name or ''}
    )
    profile, created = UserProfile.objects.get_or_create(
        user=user,
        defaults={
            'telegram_chat_id': chat_id,
            'telegram_username': username or '',
        }
    )
    if not created and profile.telegram_chat_id != chat_id:
        profile.telegram_chat_id = chat_id
        profile.save(update_fields=['telegram_chat_id', 'updated_at'])
    return profile, created


async def _profile_for(update: Update):
    profile, _ = await get_or_create_profile(
        update.effective_chat.id,
        update.effective_user.username if update.effective_user else None,
        update.effective_user.first_name if update.effective_user else '',
    )
    return profile


@sync_to_async
def favorite_names(profile):
    return load_favorites(profile).names()


@sync_to_async
def toggle_favorite(profile, dish_name):
    """Toggle a dish and return (is_favorite, names)"""
    favorites = load_favorites(profile)
    added = favorites.toggle(dish_name)
    return added, favorites.names()


@sync_to_async
def remove_favorite(profile, dish_name):
    favorites = load_favorites(profile)
    favorites.remove(dish_name)
    return favorites.names()


def get_menu_search(context: ContextTypes.DEFAULT_TYPE) -> MenuSearch:
    """One MenuSearch per chat, kept in chat_data"""
    search = context.chat_data.get('menu_search')
    if search is None:
        search = MenuSearch()
        context.chat_data['menu_search'] = search
    return search


def parse_date_argument(text: str) -> date:
    """Parse "YYYY-MM-DD" or "YYYYMMDD" into a date, raising ValueError otherwise"""
    return datetime.strptime(meal_date_key(text), '%Y%m%d').date()


def remember_menu(context: ContextTypes.DEFAULT_TYPE, meal_date: date, meals):
    """Keep the meals shown for `meal_date`, dropping the oldest dates first"""
    menus = context.chat_data.setdefault('menus', {})
    key = meal_date_key(meal_date)
    menus.pop(key, None)
    menus[key] = meals
    while len(menus) > MENU_CACHE_SIZE:
        menus.pop(next(iter(menus)))


def favorite_key(name: str) -> str:
    """Short stable id for a dish name, small enough for callback data"""
    return hashlib.sha1(name.encode('utf-8')).hexdigest()[:10]


def build_menu_keyboard(meals, favorites, meal_date: date):
    """One heart button per distinct dish, two per row"""
    favorites = set(favorites)
    day = meal_date_key(meal_date)
    buttons = []
    seen = set()
    for meal_index, meal in enumerate(meals):
        for dish_index, dish in enumerate(meal.dishes):
            if dish in seen:
                continue
            seen.add(dish)
            heart = '❤️' if dish in favorites else '🤍'
            buttons.append(InlineKeyboardButton(
                f"{heart} {dish}",
                callback_data=f"fav:{day}:{meal_index}:{dish_index}"
            ))

    if not buttons:
        return None
    rows = [buttons[i:i + 2] for i in range(0, len(buttons), 2)]
    return InlineKeyboardMarkup(rows)


def build_favorites_keyboard(names):
    if not names:
        return None
    return InlineKeyboardMarkup([
        [InlineKeyboardButton(f"✖️ {name}", callback_data=f"unfav:{favorite_key(name)}")]
        for name in names
    ])


def build_date_picker(today: date):
    """Buttons for the next 7 days"""
    keyboard = []
    for i in range(7):
        target_date = today + timedelta(days=i)
        if i == 0:
            label = f"📅 오늘 ({target_date.strftime('%m/%d')})"
        elif i == 1:
            label = f"📅 내일 ({target_date.strftime('%m/%d')})"
        else:
            label = f"📅 {target_date.strftime('%m/%d')} ({WEEKDAYS[target_date.weekday()]})"
        keyboard.append([
            InlineKeyboardButton(label, callback_data=f"{MENU_DATE_PREFIX}{target_date.isoformat()}")
        ])
    return InlineKeyboardMarkup(keyboard)


async def show_menu(message, context: ContextTypes.DEFAULT_TYPE, profile, meal_date: date, status_msg=None):
    """
    Search the meals for `meal_date` and render them into a message.

    If another search for this chat started while this one was waiting on
    NEIS, the result is dropped so the newer search owns the view.
    """
    if status_msg is None:
        status_msg = await message.reply_text(
            f"🔄 {format_display_date(meal_date)} 급식정보를 불러오는 중..."
        )

    search = get_menu_search(context)
    result = await search.search(meal_date)

    if not search.is_current(result.token):
        await status_msg.edit_text("⏭ 새로운 조회로 대체되었습니다.")
        return

    if result.error is not None:
        logger.warning(f"Meal lookup for {meal_date} failed: {result.error.category}")
        await status_msg.edit_text(FETCH_FAILED_MESSAGE)
        return

    favorites = await favorite_names(profile)
    remember_menu(context, meal_date, result.meals)

    await status_msg.edit_text(
        format_meal_records(result.meals, favorites, meal_date),
        reply_markup=build_menu_keyboard(result.meals, favorites, meal_date)
    )


# =============================================================================
# COMMANDS
# =============================================================================

async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /start command - register new user"""
    profile, created = await get_or_create_profile(
        update.effective_chat.id,
        update.effective_user.username,
        update.effective_user.first_name,
    )

    if created:
        message = (
            f"👋 {update.effective_user.first_name or ''}님, 급식 알리미에 오신 것을 환영합니다!\n\n"
            f"📋 사용 가능한 명령어:\n"
            f"/today - 오늘의 급식\n"
            f"/menu - 날짜를 골라 급식 조회\n"
            f"/favorites - 내가 좋아하는 메뉴\n"
            f"/help - 도움말"
        )
    else:
        message = (
            f"👋 다시 오신 것을 환영합니다!\n\n"
            f"/help 로 명령어를 확인하세요."
        )

    await update.message.reply_text(message)


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /help command"""
    message = (
        "🍽️ 급식 알리미\n\n"
        "명령어:\n"
        "/today - 오늘의 급식\n"
        "/menu - 날짜 선택 후 급식 조회\n"
        "/menu YYYY-MM-DD - 특정 날짜 급식 조회\n"
        "/favorites - 즐겨찾기 목록\n"
        "/help - 이 도움말\n\n"
        "메뉴 아래의 🤍 버튼을 누르면 즐겨찾기에 추가되고, "
        "즐겨찾기한 메뉴는 ❤️ 로 표시됩니다."
    )
    await update.message.reply_text(message)


async def today_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /today command - show today's meals"""
    profile = await _profile_for(update)
    await show_menu(update.message, context, profile, timezone.localdate())


async def menu_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /menu command - date argument or interactive date picker"""
    if context.args:
        try:
            meal_date = parse_date_argument(context.args[0])
        except ValueError:
            await update.message.reply_text(INVALID_DATE_MESSAGE)
            return

        profile = await _profile_for(update)
        await show_menu(update.message, context, profile, meal_date)
        return

    await update.message.reply_text(
        "📅 급식을 조회할 날짜를 선택하세요.\n\n"
        "또는 /menu YYYY-MM-DD 로 직접 입력할 수 있습니다.",
        reply_markup=build_date_picker(timezone.localdate())
    )


async def favorites_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /favorites command - list favorites with remove buttons"""
    profile = await _profile_for(update)
    names = await favorite_names(profile)
    await update.message.reply_text(
        format_favorites(names),
        reply_markup=build_favorites_keyboard(names)
    )


# =============================================================================
# CALLBACKS
# =============================================================================

async def menu_date_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle date selection from the /menu date picker"""
    query = update.callback_query
    await query.answer()

    date_str = query.data[len(MENU_DATE_PREFIX):]
    try:
        meal_date = date.fromisoformat(date_str)
    except ValueError:
        await query.edit_message_text("❌ 잘못된 날짜입니다.")
        return

    await query.edit_message_text(
        f"🔄 {format_display_date(meal_date)} 급식정보를 불러오는 중..."
    )

    profile = await _profile_for(update)
    await show_menu(query.message, context, profile, meal_date, status_msg=query.message)


async def favorite_toggle_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle a heart button under a menu"""
    query = update.callback_query

    match = FAVORITE_PATTERN.match(query.data or '')
    meals = context.chat_data.get('menus', {}).get(match.group(1)) if match else None
    if meals is None:
        await query.answer("메뉴를 다시 조회해주세요.")
        return

    meal_date = datetime.strptime(match.group(1), '%Y%m%d').date()
    meal_index, dish_index = int(match.group(2)), int(match.group(3))
    try:
        dish_name = meals[meal_index].dishes[dish_index]
    except IndexError:
        await query.answer("메뉴를 다시 조회해주세요.")
        return

    profile = await _profile_for(update)
    added, names = await toggle_favorite(profile, dish_name)
    await query.answer("❤️ 즐겨찾기에 추가했습니다." if added else "🤍 즐겨찾기에서 해제했습니다.")

    await query.edit_message_text(
        format_meal_records(meals, names, meal_date),
        reply_markup=build_menu_keyboard(meals, names, meal_date)
    )


async def remove_favorite_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle a remove button in the /favorites list"""
    query = update.callback_query

    match = UNFAVORITE_PATTERN.match(query.data or '')
    profile = await _profile_for(update)
    names = await favorite_names(profile)

    matching = [name for name in names if match and favorite_key(name) == match.group(1)]
    if not matching:
        await query.answer("이미 삭제된 메뉴입니다.")
    else:
        dish_name = matching[0]
        names = await remove_favorite(profile, dish_name)
        await query.answer(f"🤍 {dish_name} 즐겨찾기 해제")

    await query.edit_message_text(
        format_favorites(names),
        reply_markup=build_favorites_keyboard(names)
    )
