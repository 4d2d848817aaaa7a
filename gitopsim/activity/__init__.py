"""Learner-facing activity log (bounded ring buffer)."""

from gitopsim.activity.log import SEED_MESSAGES, ActivityLog

__all__ = ["SEED_MESSAGES", "ActivityLog"]
