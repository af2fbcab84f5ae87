"""
Tests for application scoring.

Validates:
- Criteria estimated from answer length and completeness
- Manual criteria override the estimate
- One score per application, replaced on rescore
"""
import pytest

from conftest import ADMIN, REVIEWER, make_application
from portal.models import ApplicationStatus, ScoreCriteria
from portal.services.applications import ApplicationNotFoundError
from portal.services.scoring import calculate_criteria, get_score, list_scores, score_application


def test_full_answers_score_maximum():
    application = make_application(
        "1", age="24", steamId="steam:1", cfxAccount="tony", experience="x" * 60, character="y" * 200,
    )

    criteria = calculate_criteria(application)

    assert criteria == ScoreCriteria(experience_quality=25, character_depth=25, completeness=25, length=25)
    assert criteria.total() == 100


def test_short_answers_score_proportionally():
    application = make_application("1", age="24", experience="x" * 20, character="y" * 40)

    criteria = calculate_criteria(application)

    assert criteria.experience_quality == 10
    assert criteria.character_depth == 10
    # steamId and cfxAccount missing
    assert criteria.completeness == 15
    assert criteria.length == 6


def test_empty_application_scores_zero():
    assert calculate_criteria(make_application("1")).total() == 0


@pytest.mark.asyncio
async def test_rescore_replaces_previous(store):
    await store.applications.write([make_application("1", experience="x" * 50)])

    first = await score_application(store, "1", ADMIN)
    manual = ScoreCriteria(experience_quality=5, character_depth=5, completeness=5, length=5)
    second = await score_application(store, "1", REVIEWER, criteria=manual, notes="Thin backstory")

    # experience 25, completeness 5, length 5
    assert first.overall_score == 35
    assert second.overall_score == 20
    assert [s.reviewed_by for s in await list_scores(store)] == [REVIEWER.id]
    assert (await get_score(store, "1")).notes == "Thin backstory"


@pytest.mark.asyncio
async def test_archived_application_cannot_be_scored(store):
    await store.archived_applications.write([make_application("1", status=ApplicationStatus.DENIED)])

    with pytest.raises(ApplicationNotFoundError):
        await score_application(store, "1", ADMIN)

    assert await list_scores(store) == []


# =============================================================================
# Endpoints
# =============================================================================

@pytest.mark.asyncio
async def test_score_endpoints(client, reviewer_client, store):
    await store.applications.write([make_application("1", age="24", experience="x" * 10)])

    created = await reviewer_client.post("/api/applications/score", json={"applicationId": "1"})
    one = await reviewer_client.get("/api/applications/score", params={"id": "1"})
    none = await reviewer_client.get("/api/applications/score", params={"id": "2"})
    everything = await reviewer_client.get("/api/applications/score")

    assert created.status_code == 200
    assert created.json()["criteria"]["experienceQuality"] == 5
    assert created.json()["reviewedBy"] == REVIEWER.id
    assert one.json()["overallScore"] == created.json()["overallScore"]
    assert none.json() is None
    assert [s["applicationId"] for s in everything.json()] == ["1"]

    assert (await client.get("/api/applications/score")).status_code == 403


@pytest.mark.asyncio
async def test_score_validation(reviewer_client, store):
    await store.applications.write([make_application("1")])

    missing_id = await reviewer_client.post("/api/applications/score", json={})
    unknown = await reviewer_client.post("/api/applications/score", json={"applicationId": "2"})
    too_high = await reviewer_client.post(
        "/api/applications/score", json={"applicationId": "1", "criteria": {"length": 30}}
    )

    assert missing_id.status_code == 400
    assert unknown.status_code == 404
    assert too_high.status_code == 422
