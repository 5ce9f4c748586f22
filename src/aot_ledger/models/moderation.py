# src/aot_ledger/models/moderation.py
"""Moderation states shared by votes and comments."""

from enum import StrEnum


class ModerationStatus(StrEnum):
    """Review state of user-submitted content.

    Only ``APPROVED`` rows take part in aggregation and listings.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    DUMPSTER = "dumpster"
