"""Logical storage layout.

::

    users/{uid}/reminders/{reminderId}
    users/{uid}/executions/{reminderId}_{scheduledForUTC}
    users/{uid}/drafts/{autoId}
    users/{uid}/aiDaily/{YYYY-MM-DD}
    system/aiUsage/daily/{YYYY-MM-DD}
"""

from __future__ import annotations

from remindr.store.errors import InvalidPathError
from remindr.store.protocols import document_parts

USERS = "users"
REMINDERS = "reminders"
EXECUTIONS = "executions"
DRAFTS = "drafts"
USER_AI_DAILY = "aiDaily"
GLOBAL_AI_DAILY = "system/aiUsage/daily"


def _segment(value: str, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidPathError(f"{name} must be a non-empty string")
    if "/" in value:
        raise InvalidPathError(f"{name} must not contain '/': {value!r}")
    return value.strip()


def user_path(uid: str) -> str:
    return f"{USERS}/{_segment(uid, 'uid')}"


def reminders_collection(uid: str) -> str:
    return f"{user_path(uid)}/{REMINDERS}"


def reminder_path(uid: str, reminder_id: str) -> str:
    return f"{reminders_collection(uid)}/{_segment(reminder_id, 'reminder_id')}"


def executions_collection(uid: str) -> str:
    return f"{user_path(uid)}/{EXECUTIONS}"


def execution_path(uid: str, execution_key: str) -> str:
    return f"{executions_collection(uid)}/{_segment(execution_key, 'execution_key')}"


def drafts_collection(uid: str) -> str:
    return f"{user_path(uid)}/{DRAFTS}"


def user_usage_path(uid: str, date_key: str) -> str:
    return f"{user_path(uid)}/{USER_AI_DAILY}/{_segment(date_key, 'date_key')}"


def global_usage_path(date_key: str) -> str:
    return f"{GLOBAL_AI_DAILY}/{_segment(date_key, 'date_key')}"


def owner_of(path: str) -> str:
    """Return the owning user id of a per-user document path."""
    parts = document_parts(path)
    if parts[0] != USERS:
        raise InvalidPathError(f"not a per-user document path: {path!r}")
    return parts[1]


def owner_of_reminder(path: str) -> str:
    """Return the owner of ``users/{uid}/reminders/{id}``; reject anything else."""
    parts = document_parts(path)
    if len(parts) != 4 or parts[0] != USERS or parts[2] != REMINDERS:
        raise InvalidPathError(f"not a reminder path: {path!r}")
    return parts[1]
