"""
Application / archive store.

Applications live in exactly one of two collections: active (pending review)
or archived (decided or bulk-archived). All writes are whole-collection
read-modify-write cycles under the collection lock.
"""
import enum
import logging
import time
from typing import Callable, Iterable, List, Optional, Tuple

from portal.models import Application
from portal.models.common import utcnow
from portal.storage import CollectionStore

logger = logging.getLogger(__name__)

Mutator = Callable[[Application], Optional[Application]]


class ApplicationNotFoundError(Exception):
    """Raised when an application id is in neither collection"""
    pass


class Location(str, enum.Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


def _apply(mutator: Mutator, application: Application) -> Application:
    # Mutators may edit in place and return None, or return a replacement
    result = mutator(application)
    return application if result is None else result


def _index_of(records: List[Application], application_id: str) -> int:
    for index, record in enumerate(records):
        if record.id == application_id:
            return index
    return -1


def generate_application_id(taken: Iterable[str]) -> str:
    """Millisecond timestamp id, bumped until it is not in `taken`."""
    taken = set(taken)
    candidate = int(time.time() * 1000)
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


async def list_active(store: CollectionStore) -> List[Application]:
    return await store.applications.read()


async def list_archived(store: CollectionStore) -> List[Application]:
    return await store.archived_applications.read()


async def append_application(store: CollectionStore, application: Application) -> Application:
    """
    Add a new application to the active collection.

    An empty id is replaced with a fresh time-based id that is unique across
    both collections.
    """
    async with store.applications.transaction() as active:
        archived = await store.archived_applications.read()
        taken = {a.id for a in active} | {a.id for a in archived}
        if not application.id or application.id in taken:
            application.id = generate_application_id(taken)
        active.append(application)

    logger.info(
        f"Application {application.id} appended",
        extra={"application_id": application.id, "application_type": application.application_type},
    )
    return application


async def find_application(
    store: CollectionStore,
    application_id: str,
    location: Optional[Location] = None,
) -> Tuple[Application, Location]:
    """Locate an application and report which collection holds it."""
    locations = [location] if location else [Location.ACTIVE, Location.ARCHIVED]
    for loc in locations:
        collection = store.applications if loc == Location.ACTIVE else store.archived_applications
        for record in await collection.read():
            if record.id == application_id:
                return record, loc
    raise ApplicationNotFoundError(f"Application {application_id} not found")


async def update_application(
    store: CollectionStore,
    application_id: str,
    mutator: Mutator,
    location: Optional[Location] = None,
) -> Tuple[Application, Location]:
    """
    Apply `mutator` to one application in its owning collection.

    `location` restricts the search to one collection; by default the active
    collection is searched first.
    """
    locations = [location] if location else [Location.ACTIVE, Location.ARCHIVED]
    for loc in locations:
        collection = store.applications if loc == Location.ACTIVE else store.archived_applications
        try:
            async with collection.transaction() as records:
                index = _index_of(records, application_id)
                if index == -1:
                    # Raising skips the write-back
                    raise ApplicationNotFoundError(application_id)
                records[index] = _apply(mutator, records[index])
                return records[index], loc
        except ApplicationNotFoundError:
            continue
    raise ApplicationNotFoundError(f"Application {application_id} not found")


async def archive_application(
    store: CollectionStore,
    application_id: str,
    mutator: Optional[Mutator] = None,
) -> Application:
    """
    Move a pending application from active to archived.

    The mutator runs on the record before it is appended to the archive.
    """
    async with store.application_move() as (active, archived):
        index = _index_of(active, application_id)
        if index == -1:
            raise ApplicationNotFoundError(f"Application {application_id} not found")
        record = active.pop(index)
        if mutator is not None:
            record = _apply(mutator, record)
        archived.append(record)
    return record


async def bulk_update_applications(
    store: CollectionStore,
    application_ids: Iterable[str],
    mutator: Mutator,
) -> List[Application]:
    """Apply `mutator` to every matching active application in one write."""
    wanted = set(application_ids)
    updated = []
    async with store.applications.transaction() as active:
        for index, record in enumerate(active):
            if record.id in wanted:
                active[index] = _apply(mutator, record)
                updated.append(active[index])
    return updated


async def bulk_archive_applications(
    store: CollectionStore,
    application_ids: Iterable[str],
) -> List[Application]:
    """Move every matching active application to the archive, stamping archivedAt."""
    wanted = set(application_ids)
    archived_now = utcnow()
    async with store.application_move() as (active, archived):
        moving = [record for record in active if record.id in wanted]
        active[:] = [record for record in active if record.id not in wanted]
        for record in moving:
            record.archived_at = archived_now
            archived.append(record)
    return moving
