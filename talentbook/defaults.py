"""Seed data applied when a collection has never been written"""
from .constants import Language, SortBy, SortOrder, ThemeColor, ViewMode

DEFAULT_CATEGORIES = [
    {"name": "Actors", "nameAr": "ممثلين", "order": 1},
    {"name": "Influencers", "nameAr": "مؤثرين", "order": 2},
    {"name": "Models", "nameAr": "عارضين", "order": 3},
    {"name": "Extra", "nameAr": "كومبارس", "order": 4},
]

# Persisted settings are merged over these, so every key a reader needs is here
DEFAULT_SETTINGS = {
    "monthlyReminderEnabled": True,
    "reminderDayOfMonth": 1,
    "defaultProfitMargin": 15,
    "defaultCurrency": "KWD",
    "lastReminderDate": None,
    "viewMode": ViewMode.GRID,
    "sortBy": SortBy.NAME,
    "sortOrder": SortOrder.ASC,
    "darkMode": False,
    "themeColor": ThemeColor.INDIGO,
    "language": Language.ENGLISH,
    "whatsappMessage": "مرحباً {name}، أتواصل معك بخصوص فرصة عمل...",
}

DEFAULT_MESSAGE_TEMPLATES = [
    {
        "name": "Job Offer",
        "nameAr": "عرض عمل",
        "content": "Hello {name}, we have a new project that fits your profile. Are you available?",
        "contentAr": "مرحباً {name}، لدينا مشروع جديد يناسب ملفك. هل أنت متاح؟",
        "type": "offer",
    },
    {
        "name": "Booking Confirmation",
        "nameAr": "تأكيد الحجز",
        "content": "Hello {name}, your booking is confirmed. See you on set!",
        "contentAr": "مرحباً {name}، تم تأكيد حجزك. نراك في موقع التصوير!",
        "type": "confirmation",
    },
    {
        "name": "Photo Update Request",
        "nameAr": "طلب تحديث الصور",
        "content": "Hello {name}, please send us your latest photos for our catalog.",
        "contentAr": "مرحباً {name}، يرجى إرسال أحدث صورك لملفنا.",
        "type": "photos",
    },
]

UNKNOWN_CATEGORY_NAME = "Unknown"
