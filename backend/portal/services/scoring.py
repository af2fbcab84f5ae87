"""
Application quality scoring.

Staff may enter criteria by hand; otherwise they are estimated from the
length and completeness of the whitelist answers. One score is kept per
application and a new score replaces the old one.
"""
import logging
from typing import List, Optional

from portal.models import Application, ApplicationScore, DiscordIdentity, ScoreCriteria
from portal.models.common import utcnow
from portal.models.score import CRITERION_MAX
from portal.services.applications import ApplicationNotFoundError, Location, find_application
from portal.storage import CollectionStore

logger = logging.getLogger(__name__)

# Answers counted by the completeness criterion, 5 points each
COMPLETENESS_FIELDS = ("age", "steamId", "cfxAccount", "experience", "character")


def _answer(application: Application, key: str) -> str:
    value = (application.model_extra or {}).get(key)
    return "" if value is None else str(value)


def calculate_criteria(application: Application) -> ScoreCriteria:
    experience = len(_answer(application, "experience"))
    character = len(_answer(application, "character"))

    completeness = CRITERION_MAX
    for key in COMPLETENESS_FIELDS:
        if not _answer(application, key):
            completeness -= 5

    return ScoreCriteria(
        experience_quality=min(CRITERION_MAX, experience // 2),
        character_depth=min(CRITERION_MAX, character // 4),
        completeness=completeness,
        length=min(CRITERION_MAX, (experience + character) // 10),
    )


async def list_scores(store: CollectionStore) -> List[ApplicationScore]:
    return await store.scores.read()


async def get_score(store: CollectionStore, application_id: str) -> Optional[ApplicationScore]:
    for score in await store.scores.read():
        if score.application_id == application_id:
            return score
    return None


async def score_application(
    store: CollectionStore,
    application_id: str,
    scorer: DiscordIdentity,
    criteria: Optional[ScoreCriteria] = None,
    notes: Optional[str] = None,
) -> ApplicationScore:
    """
    Score an active application, replacing any earlier score.

    Raises:
        ApplicationNotFoundError: If the id is not in the active collection
    """
    application, _ = await find_application(store, application_id, location=Location.ACTIVE)
    criteria = criteria or calculate_criteria(application)
    score = ApplicationScore(
        application_id=application_id,
        overall_score=criteria.total(),
        criteria=criteria,
        reviewed_by=scorer.id,
        reviewed_at=utcnow(),
        notes=notes,
    )

    async with store.scores.transaction() as scores:
        for index, existing in enumerate(scores):
            if existing.application_id == application_id:
                scores[index] = score
                break
        else:
            scores.append(score)

    logger.info(f"Application {application_id} scored {score.overall_score} by {scorer.username}")
    return score
