"""
JSON file storage for the portal's collections.

Every collection is one pretty-printed JSON array on disk that is read and
written whole. Each collection owns an asyncio.Lock so read-modify-write
cycles within this process are serialized.
"""
import asyncio
import json
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Generic, Optional, TypeVar

from pydantic import ValidationError

from portal.config import settings
from portal.models import (
    ActivityLogEntry,
    Application,
    ApplicationDraft,
    ApplicationScore,
    ApplicationType,
    BanEntry,
    BlacklistEntry,
    FieldDefinition,
    FieldType,
    Notification,
)
from portal.models.common import Record

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Record)


class StorageError(Exception):
    """Raised when a collection cannot be read or written"""
    pass


class JsonCollection(Generic[T]):
    """A named JSON array of records of a single model type."""

    def __init__(self, path: Path, model: type[T], fail_open: bool = True):
        self.path = Path(path)
        self.model = model
        self.fail_open = fail_open
        self.lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self.path.name

    def _load(self) -> list[dict]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            if self.fail_open:
                return []
            raise StorageError(f"Collection {self.name} does not exist")
        except OSError as e:
            if self.fail_open:
                logger.warning(f"Could not read {self.name}, treating as empty: {e}")
                return []
            raise StorageError(f"Could not read {self.name}: {e}") from e

        try:
            documents = json.loads(raw) if raw.strip() else []
        except json.JSONDecodeError as e:
            if self.fail_open:
                logger.warning(f"{self.name} is not valid JSON, treating as empty: {e}")
                return []
            raise StorageError(f"{self.name} is not valid JSON: {e}") from e

        if not isinstance(documents, list):
            if self.fail_open:
                logger.warning(f"{self.name} does not hold a JSON array, treating as empty")
                return []
            raise StorageError(f"{self.name} does not hold a JSON array")
        return documents

    def _dump(self, documents: list[dict]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(documents, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Failed to write {self.name}: {e}", exc_info=True)
            raise StorageError(f"Failed to write {self.name}") from e

    async def read(self) -> list[T]:
        """Read the whole collection."""
        documents = await asyncio.to_thread(self._load)
        try:
            return [self.model.model_validate(doc) for doc in documents]
        except ValidationError as e:
            raise StorageError(f"{self.name} holds an invalid record: {e}") from e

    async def write(self, records: list[T]) -> None:
        """Replace the whole collection."""
        documents = [record.to_document() for record in records]
        await asyncio.to_thread(self._dump, documents)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[list[T]]:
        """
        Locked read-modify-write.

        Yields the record list; mutations are written back when the block
        exits normally. Nothing is written if the block raises.
        """
        async with self.lock:
            records = await self.read()
            yield records
            await self.write(records)


class CollectionStore:
    """All collections of one data directory."""

    def __init__(self, data_dir: str | Path, fail_open: Optional[bool] = None):
        self.data_dir = Path(data_dir)
        fail_open = settings.storage_fail_open if fail_open is None else fail_open

        def collection(filename: str, model):
            return JsonCollection(self.data_dir / filename, model, fail_open=fail_open)

        self.applications: JsonCollection[Application] = collection("applications.json", Application)
        self.archived_applications: JsonCollection[Application] = collection(
            "archived_applications.json", Application
        )
        self.application_types: JsonCollection[ApplicationType] = collection(
            "application-types.json", ApplicationType
        )
        self.bans: JsonCollection[BanEntry] = collection("bans.json", BanEntry)
        self.blacklist: JsonCollection[BlacklistEntry] = collection("blacklist.json", BlacklistEntry)
        self.activity_log: JsonCollection[ActivityLogEntry] = collection(
            "activity_log.json", ActivityLogEntry
        )
        self.notifications: JsonCollection[Notification] = collection(
            "notifications.json", Notification
        )
        self.drafts: JsonCollection[ApplicationDraft] = collection("application_drafts.json", ApplicationDraft)
        self.scores: JsonCollection[ApplicationScore] = collection("application_scores.json", ApplicationScore)

    def collections(self) -> list[JsonCollection]:
        return [
            self.applications,
            self.archived_applications,
            self.application_types,
            self.bans,
            self.blacklist,
            self.activity_log,
            self.notifications,
            self.drafts,
            self.scores,
        ]

    @asynccontextmanager
    async def application_move(self) -> AsyncIterator[tuple[list[Application], list[Application]]]:
        """
        Lock both application collections for a move between them.

        Yields (active, archived). On exit active is written first, then
        archived. Locks are always taken archive first, then active.
        """
        async with self.archived_applications.transaction() as archived:
            async with self.applications.transaction() as active:
                yield active, archived


def default_application_types() -> list[ApplicationType]:
    """Types seeded into a fresh data directory."""
    return [
        ApplicationType(
            id="1",
            name="Staff Application",
            description="Apply to become a staff member",
            cooldown_days=14,
            allow_multiple_pending=False,
            unique_approved=True,
            fields=[
                FieldDefinition(id="1", label="Character Name", type=FieldType.TEXT, required=True),
                FieldDefinition(id="2", label="Age", type=FieldType.NUMBER, required=True),
                FieldDefinition(id="3", label="Steam ID", type=FieldType.TEXT, required=True),
                FieldDefinition(
                    id="4", label="Why do you want to be staff?", type=FieldType.TEXTAREA, required=True
                ),
                FieldDefinition(
                    id="5", label="Previous experience", type=FieldType.TEXTAREA, required=True
                ),
            ],
        )
    ]


async def seed_data_files(target: CollectionStore) -> list[str]:
    """
    Create the data directory and any missing collection file.

    Existing files are never touched. Returns the names of created files.
    """
    target.data_dir.mkdir(parents=True, exist_ok=True)
    created = []
    for collection in target.collections():
        if collection.path.exists():
            continue
        records = default_application_types() if collection is target.application_types else []
        await collection.write(records)
        created.append(collection.name)
        logger.info(f"✅ Created {collection.name}")
    return created


# Store used by the running app; tests swap this for a temporary directory
store = CollectionStore(settings.data_dir)


def get_store() -> CollectionStore:
    """Dependency that provides the active collection store."""
    return store
