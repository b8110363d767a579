"""Application-wide constants"""


class _Choices:
    """Closed set of string values

    Subclasses list their values as upper-case class attributes.
    """

    @classmethod
    def all(cls):
        """Return list of all valid values"""
        return [
            value for name, value in vars(cls).items()
            if name.isupper() and isinstance(value, str)
        ]

    @classmethod
    def is_valid(cls, value):
        """Check if a value is one of the allowed values"""
        return value in cls.all()


class ProjectStatus(_Choices):
    """Project status constants"""
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    NEGOTIATING = "negotiating"
    CANCELLED = "cancelled"
    POSTPONED = "postponed"


class PdfTemplate(_Choices):
    """Document layouts a project can be rendered with"""
    CLIENT = "client"
    INTERNAL = "internal"
    INVOICE = "invoice"


class ProjectPhase(_Choices):
    """Production phase of a project"""
    PREPARATION = "preparation"
    SHOOTING = "shooting"
    EDITING = "editing"
    DELIVERY = "delivery"
    COMPLETED = "completed"


class Gender(_Choices):
    MALE = "male"
    FEMALE = "female"


class ViewMode(_Choices):
    GRID = "grid"
    LIST = "list"


class SortBy(_Choices):
    NAME = "name"
    PRICE = "price"
    DATE = "date"
    RATING = "rating"


class SortOrder(_Choices):
    ASC = "asc"
    DESC = "desc"


class ThemeColor(_Choices):
    INDIGO = "indigo"
    BLUE = "blue"
    GREEN = "green"
    PURPLE = "purple"
    PINK = "pink"
    ORANGE = "orange"
    RED = "red"


class Language(_Choices):
    ENGLISH = "en"
    ARABIC = "ar"


class StorageKeys:
    """Key/value slots, one per persisted collection"""
    TALENTS = "@talent_manager_talents"
    PROJECTS = "@talent_manager_projects"
    SETTINGS = "@talent_manager_settings"
    CATEGORIES = "@talent_manager_categories"
    BOOKINGS = "@talent_manager_bookings"

    @classmethod
    def all(cls):
        return [cls.TALENTS, cls.PROJECTS, cls.SETTINGS, cls.CATEGORIES, cls.BOOKINGS]


# Days after which a talent's photos are considered stale
PHOTO_UPDATE_INTERVAL_DAYS = 30

# Remote ids the server replaces with real ones during push
CATEGORY_PLACEHOLDER_ID = 1
TALENT_PLACEHOLDER_ID = 1

# Seconds before a push to the server is abandoned
SYNC_TIMEOUT_SECONDS = 30

PREDEFINED_TAGS = [
    "VIP",
    "Available Now",
    "New",
    "Top Rated",
    "Experienced",
    "Beginner",
    "International",
    "Local",
]

CURRENCIES = {
    "KWD": "Kuwaiti Dinar",
    "USD": "US Dollar",
    "SAR": "Saudi Riyal",
    "AED": "UAE Dirham",
    "EUR": "Euro",
}
