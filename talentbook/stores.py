"""
Record stores over key/value slots

Every collection is read whole, changed in memory and written back whole.
Writers to the same collection are serialized by a per-collection lock, so
two back-to-back updates can no longer overwrite each other.
"""
import json
import logging
import threading
from contextlib import ExitStack
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from pydantic import ValidationError

from .clock import Clock, SystemClock
from .constants import StorageKeys
from .costs import ProjectCosts, calculate_project_costs
from .database import Database
from .defaults import DEFAULT_CATEGORIES, DEFAULT_MESSAGE_TEMPLATES, DEFAULT_SETTINGS, UNKNOWN_CATEGORY_NAME
from .ids import generate_id
from .models import (
    AppSettings, Category, LocalRecord, MessageTemplate, Project, ProjectPayment,
    ProjectTalent, Talent, TalentBooking,
)
from .storage import KeyValueStore, SQLiteKeyValueStore, StorageError

logger = logging.getLogger(__name__)

RecordType = TypeVar("RecordType", bound=LocalRecord)

BACKUP_VERSION = 1


class InvalidBackupError(ValueError):
    """Backup data is malformed; nothing was written"""


def field_names(model: Type[LocalRecord]) -> Dict[str, str]:
    """Map both attribute names and JSON aliases to attribute names"""
    names = {}
    for name, field in model.model_fields.items():
        names[name] = name
        if field.alias:
            names[field.alias] = name
    return names


def _parse_collection(model: Type[RecordType], raw: str, key: str) -> Dict[str, RecordType]:
    try:
        items = json.loads(raw)
        records = {}
        for item in items:
            record = model.model_validate(item)
            records[record.id] = record
        return records
    except (ValueError, TypeError) as e:
        raise StorageError(f"Corrupt data in {key}: {e}") from e


def _dump_collection(records) -> str:
    return json.dumps([record.to_storage() for record in records], ensure_ascii=False)


class RecordStore(Generic[RecordType]):
    """CRUD over one persisted collection"""

    model: Type[RecordType]
    key: str
    # Fields assigned by the store and never overwritten by update()
    immutable_fields = {"id", "created_at"}

    def __init__(
        self,
        storage: KeyValueStore,
        clock: Optional[Clock] = None,
        on_change: Optional[Callable[[str], None]] = None,
    ):
        self.storage = storage
        self.clock = clock or SystemClock()
        self.on_change = on_change
        self.lock = threading.RLock()

    # Persistence

    def _load(self) -> Dict[str, RecordType]:
        """Read the collection indexed by id; raises StorageError"""
        raw = self.storage.get(self.key)
        if raw is None:
            return {}
        return _parse_collection(self.model, raw, self.key)

    def _dump(self, records: Dict[str, RecordType]) -> str:
        return _dump_collection(records.values())

    def _save(self, records: Dict[str, RecordType]) -> None:
        self.storage.set(self.key, self._dump(records))
        self._changed()

    def _changed(self) -> None:
        if self.on_change:
            self.on_change(self.key)

    def _generated_fields(self) -> Dict[str, Any]:
        return {"id": generate_id(), "created_at": self.clock.now()}

    # Public API

    def list(self) -> List[RecordType]:
        """All records, or an empty list when nothing is stored or storage fails"""
        try:
            return list(self._load().values())
        except StorageError as e:
            logger.error("Error getting %s: %s", self.key, e)
            return []

    def get_by_id(self, record_id: str) -> Optional[RecordType]:
        for record in self.list():
            if record.id == record_id:
                return record
        return None

    def create(self, **fields) -> RecordType:
        with self.lock:
            records = self._load()
            record = self.model.model_validate({**fields, **self._generated_fields()})
            records[record.id] = record
            self._save(records)
        logger.debug("Created %s %s", self.model.__name__, record.id)
        return record

    def update(self, record_id: str, updates: Dict[str, Any]) -> Optional[RecordType]:
        """
        Shallow-merge updates into a record.

        Keys may be attribute names or JSON aliases; unknown keys and the
        immutable fields are skipped. Nested objects are replaced, not merged.
        Returns None when the record does not exist.
        """
        names = field_names(self.model)
        with self.lock:
            records = self._load()
            current = records.get(record_id)
            if current is None:
                return None

            merged = current.model_dump()
            for key, value in updates.items():
                name = names.get(key)
                if name is None or name in self.immutable_fields:
                    continue
                merged[name] = value
            if "updated_at" in self.model.model_fields:
                merged["updated_at"] = self.clock.now()

            record = self.model.model_validate(merged)
            records[record_id] = record
            self._save(records)
        return record

    def delete(self, record_id: str) -> bool:
        with self.lock:
            records = self._load()
            if records.pop(record_id, None) is None:
                return False
            self._save(records)
        return True


class CategoryStore(RecordStore[Category]):
    model = Category
    key = StorageKeys.CATEGORIES

    def _load(self) -> Dict[str, Category]:
        with self.lock:
            raw = self.storage.get(self.key)
            if raw is None:
                return self._seed()
            return _parse_collection(self.model, raw, self.key)

    def _generated_fields(self) -> Dict[str, Any]:
        return {"id": generate_id()}

    def _seed(self) -> Dict[str, Category]:
        records = {}
        for fields in DEFAULT_CATEGORIES:
            category = Category.model_validate({**fields, "id": generate_id()})
            records[category.id] = category
        self.storage.set(self.key, self._dump(records))
        self._changed()
        logger.info("Seeded %d default categories", len(records))
        return records

    def ordered(self) -> List[Category]:
        """Categories in display order"""
        return sorted(self.list(), key=lambda c: c.order)

    def display_name(self, category_id: str) -> str:
        category = self.get_by_id(category_id)
        return category.name if category else UNKNOWN_CATEGORY_NAME


class BookingStore(RecordStore[TalentBooking]):
    model = TalentBooking
    key = StorageKeys.BOOKINGS

    def list_for_talent(self, talent_id: str) -> List[TalentBooking]:
        return [b for b in self.list() if b.talent_id == talent_id]

    def list_for_project(self, project_id: str) -> List[TalentBooking]:
        return [b for b in self.list() if b.project_id == project_id]


class TalentStore(RecordStore[Talent]):
    model = Talent
    key = StorageKeys.TALENTS

    def __init__(self, storage: KeyValueStore, bookings: BookingStore, clock: Optional[Clock] = None,
                 on_change: Optional[Callable[[str], None]] = None):
        super().__init__(storage, clock, on_change)
        self.bookings = bookings

    def _generated_fields(self) -> Dict[str, Any]:
        now = self.clock.now()
        return {"id": generate_id(), "created_at": now, "last_photo_update": now}

    def delete(self, talent_id: str) -> bool:
        """
        Delete a talent together with all of its bookings.

        Both collections are written in one storage call. Bookings are listed
        first so a backend without transactions can at worst leave orphaned
        bookings behind, never a talent whose bookings are gone.
        """
        # Lock order is always talents, then bookings
        with self.lock, self.bookings.lock:
            talents = self._load()
            if talent_id not in talents:
                return False
            del talents[talent_id]

            bookings = self.bookings._load()
            remaining = {k: b for k, b in bookings.items() if b.talent_id != talent_id}
            removed = len(bookings) - len(remaining)

            items = {}
            if removed:
                items[self.bookings.key] = self.bookings._dump(remaining)
            items[self.key] = self._dump(talents)
            self.storage.set_many(items)

        if removed:
            self.bookings._changed()
        self._changed()
        logger.info("Deleted talent %s and %d booking(s)", talent_id, removed)
        return True

    def mark_photo_updated(self, talent_id: str) -> Optional[Talent]:
        return self.update(talent_id, {"last_photo_update": self.clock.now()})


class ProjectStore(RecordStore[Project]):
    model = Project
    key = StorageKeys.PROJECTS

    def _generated_fields(self) -> Dict[str, Any]:
        now = self.clock.now()
        return {"id": generate_id(), "created_at": now, "updated_at": now}

    def add_payment(self, project_id: str, amount: float, date: str, note: Optional[str] = None) -> Optional[Project]:
        """Record a client payment and refresh the project's total paid"""
        with self.lock:
            project = self.get_by_id(project_id)
            if project is None:
                return None
            payment = ProjectPayment(id=generate_id(), amount=amount, date=date, note=note)
            payments = list(project.payments or []) + [payment]
            return self.update(project_id, {
                "payments": payments,
                "total_paid": sum(p.amount for p in payments),
            })

    @staticmethod
    def active_talents(project: Project, talents: List[Talent]) -> List[Tuple[ProjectTalent, Talent]]:
        """Pair line items with their talents, skipping talents that no longer exist"""
        by_id = {t.id: t for t in talents}
        return [(pt, by_id[pt.talent_id]) for pt in project.talents if pt.talent_id in by_id]


class SettingsStore:
    """The settings singleton: defaults merged under whatever was persisted"""

    key = StorageKeys.SETTINGS

    def __init__(self, storage: KeyValueStore, on_change: Optional[Callable[[str], None]] = None):
        self.storage = storage
        self.on_change = on_change
        self.lock = threading.RLock()

    def _read(self) -> Dict[str, Any]:
        raw = self.storage.get(self.key)
        if raw is None:
            return {}
        try:
            stored = json.loads(raw)
        except ValueError as e:
            raise StorageError(f"Corrupt data in {self.key}: {e}") from e
        if not isinstance(stored, dict):
            raise StorageError(f"Corrupt data in {self.key}: expected an object")
        return stored

    def split_fields(self, data: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """Declared settings by attribute name, and any other persisted keys as-is"""
        names = field_names(AppSettings)
        fields, extra = {}, {}
        for key, value in data.items():
            name = names.get(key)
            if name is None:
                extra[key] = value
            else:
                fields[name] = value
        return fields, extra

    @staticmethod
    def _failed_fields(error: ValidationError) -> set:
        names = field_names(AppSettings)
        return {names.get(err["loc"][0], err["loc"][0]) for err in error.errors() if err["loc"]}

    def get(self) -> AppSettings:
        try:
            stored = self._read()
        except StorageError as e:
            logger.error("Error getting settings: %s", e)
            stored = {}
        defaults, _ = self.split_fields(DEFAULT_SETTINGS)
        fields, _ = self.split_fields(stored)
        try:
            return AppSettings.model_validate({**defaults, **fields})
        except ValidationError as e:
            invalid = self._failed_fields(e)
            logger.error("Ignoring invalid settings %s: %s", sorted(invalid), e)
        valid = {name: value for name, value in fields.items() if name not in invalid}
        try:
            return AppSettings.model_validate({**defaults, **valid})
        except ValidationError:
            return AppSettings.model_validate(defaults)

    def save(self, updates: Dict[str, Any]) -> AppSettings:
        """
        Merge updates into the current settings and persist the whole record

        Keys that AppSettings does not declare are kept as they are, so other
        parts of the app can share the slot.
        """
        defaults, _ = self.split_fields(DEFAULT_SETTINGS)
        with self.lock:
            stored_fields, stored_extra = self.split_fields(self._read())
            update_fields, update_extra = self.split_fields(updates)
            try:
                settings = AppSettings.model_validate({**defaults, **stored_fields, **update_fields})
            except ValidationError as e:
                if self._failed_fields(e) - set(update_fields):
                    raise StorageError(f"Invalid data in {self.key}: {e}") from e
                raise
            document = {**stored_extra, **update_extra, **settings.to_storage()}
            self.storage.set(self.key, json.dumps(document, ensure_ascii=False))
        if self.on_change:
            self.on_change(self.key)
        return settings

    def snapshot(self) -> Dict[str, Any]:
        """Current settings in the persisted shape, undeclared keys included"""
        try:
            _, extra = self.split_fields(self._read())
        except StorageError:
            extra = {}
        return {**extra, **self.get().to_storage()}

    def message_templates(self) -> List[MessageTemplate]:
        """Saved message templates, seeding the defaults the first time"""
        with self.lock:
            settings = self.get()
            if settings.message_templates:
                return settings.message_templates
            templates = [
                MessageTemplate.model_validate({**fields, "id": generate_id()})
                for fields in DEFAULT_MESSAGE_TEMPLATES
            ]
            return self.save({"message_templates": templates}).message_templates


class LocalStore:
    """All record stores over one key/value backend"""

    def __init__(
        self,
        storage: KeyValueStore,
        clock: Optional[Clock] = None,
        on_change: Optional[Callable[[str], None]] = None,
    ):
        self.storage = storage
        self.clock = clock or SystemClock()
        self.on_change = on_change
        self.categories = CategoryStore(storage, self.clock, on_change)
        self.bookings = BookingStore(storage, self.clock, on_change)
        self.talents = TalentStore(storage, self.bookings, self.clock, on_change)
        self.projects = ProjectStore(storage, self.clock, on_change)
        self.settings = SettingsStore(storage, on_change)

    @classmethod
    def open(cls, db_path: str, **kwargs) -> "LocalStore":
        """Open (and create if needed) a SQLite-backed store"""
        database = Database(db_path)
        database.init_db()
        return cls(SQLiteKeyValueStore(database), **kwargs)

    def _all_locks(self):
        # Same order TalentStore.delete uses: talents before bookings
        stack = ExitStack()
        for store in (self.talents, self.bookings, self.projects, self.categories, self.settings):
            stack.enter_context(store.lock)
        return stack

    def category_name(self, category_id: str) -> str:
        return self.categories.display_name(category_id)

    def project_costs(self, project: Project) -> ProjectCosts:
        return calculate_project_costs(self.talents.list(), project.talents, project.profit_margin_percent)

    def clear_all(self) -> None:
        with self._all_locks():
            self.storage.remove_many(StorageKeys.all())
        logger.info("Cleared all local data")

    def export_data(self) -> Dict[str, Any]:
        """Snapshot of every collection in the persisted JSON shape"""
        return {
            "version": BACKUP_VERSION,
            "exportedAt": self.clock.now().isoformat(),
            "talents": [t.to_storage() for t in self.talents.list()],
            "projects": [p.to_storage() for p in self.projects.list()],
            "categories": [c.to_storage() for c in self.categories.list()],
            "bookings": [b.to_storage() for b in self.bookings.list()],
            "settings": self.settings.snapshot(),
        }

    def import_data(self, data: Dict[str, Any]) -> Dict[str, int]:
        """
        Replace all local data with a backup.

        The whole backup is validated before anything is written.
        Returns the number of records imported per collection.
        """
        if not isinstance(data, dict) or not isinstance(data.get("talents"), list) \
                or not isinstance(data.get("projects"), list):
            raise InvalidBackupError("Backup must contain 'talents' and 'projects' lists")

        collections = (
            (self.talents, data["talents"]),
            (self.projects, data["projects"]),
            (self.categories, data.get("categories")),
            (self.bookings, data.get("bookings")),
        )
        items = {}
        counts = {}
        try:
            for store, rows in collections:
                if rows is None:
                    continue
                if not isinstance(rows, list):
                    raise InvalidBackupError(f"'{store.key}' must be a list")
                records = [store.model.model_validate(row) for row in rows]
                items[store.key] = _dump_collection(records)
                counts[store.key] = len(records)
            if data.get("settings") is not None:
                if not isinstance(data["settings"], dict):
                    raise InvalidBackupError("'settings' must be an object")
                fields, extra = self.settings.split_fields(data["settings"])
                defaults, _ = self.settings.split_fields(DEFAULT_SETTINGS)
                settings = AppSettings.model_validate({**defaults, **fields})
                items[self.settings.key] = json.dumps({**extra, **settings.to_storage()}, ensure_ascii=False)
        except ValidationError as e:
            raise InvalidBackupError(f"Invalid backup record: {e}") from e

        with self._all_locks():
            self.storage.set_many(items)
        if self.on_change:
            for key in items:
                self.on_change(key)
        logger.info("Imported backup: %s", counts)
        return counts
