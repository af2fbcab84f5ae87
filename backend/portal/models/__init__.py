"""Persisted record models"""
from portal.models.activity import ActivityLogEntry, ActivityType, Notification, NotificationType
from portal.models.application import (
    Application,
    ApplicationNote,
    ApplicationStatus,
    DiscordIdentity,
    Priority,
)
from portal.models.application_type import ApplicationType, FieldDefinition, FieldType
from portal.models.draft import ApplicationDraft
from portal.models.moderation import BanEntry, BlacklistEntry
from portal.models.score import ApplicationScore, ScoreCriteria

__all__ = [
    "ActivityLogEntry",
    "ActivityType",
    "Notification",
    "NotificationType",
    "Application",
    "ApplicationNote",
    "ApplicationStatus",
    "DiscordIdentity",
    "Priority",
    "ApplicationType",
    "FieldDefinition",
    "FieldType",
    "BanEntry",
    "BlacklistEntry",
    "ApplicationDraft",
    "ApplicationScore",
    "ScoreCriteria",
]
