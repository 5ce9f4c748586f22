# src/aot_ledger/services/tiers.py
"""Tier resolution and per-tier content limits.

Everything here is a pure function of the user's account class and plan;
callers re-resolve on every write because a plan may change between calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from aot_ledger.models import SubscriptionTier, User, UserType

LimitKind = Literal["explanation", "comment"]


@dataclass(frozen=True)
class TierPermissions:
    """Permission set granted by one subscription tier.

    ``None`` limits mean unlimited.
    """

    explanation_limit: int | None
    comment_limit: int | None
    reply_limit: int | None
    can_create_groups: bool
    can_add_hyperlinks: bool
    can_upload_documents: bool


TIER_PERMISSIONS: dict[SubscriptionTier, TierPermissions] = {
    SubscriptionTier.T1: TierPermissions(
        explanation_limit=140,
        comment_limit=140,
        reply_limit=1,
        can_create_groups=False,
        can_add_hyperlinks=False,
        can_upload_documents=False,
    ),
    SubscriptionTier.T2: TierPermissions(
        explanation_limit=140,
        comment_limit=140,
        reply_limit=None,
        can_create_groups=True,
        can_add_hyperlinks=False,
        can_upload_documents=False,
    ),
    SubscriptionTier.T3: TierPermissions(
        explanation_limit=500,
        comment_limit=500,
        reply_limit=None,
        can_create_groups=True,
        can_add_hyperlinks=True,
        can_upload_documents=False,
    ),
    SubscriptionTier.T4: TierPermissions(
        explanation_limit=50_000,
        comment_limit=50_000,
        reply_limit=None,
        can_create_groups=True,
        can_add_hyperlinks=True,
        can_upload_documents=False,
    ),
    SubscriptionTier.T5: TierPermissions(
        explanation_limit=None,
        comment_limit=None,
        reply_limit=None,
        can_create_groups=True,
        can_add_hyperlinks=True,
        can_upload_documents=True,
    ),
}


def effective_tier(user_type: UserType, paid_tier: SubscriptionTier) -> SubscriptionTier:
    """Return the tier a user actually acts with.

    Authenticated users on the free plan get T2 at no cost.
    """
    if user_type == UserType.AUTHENTICATED and paid_tier == SubscriptionTier.T1:
        return SubscriptionTier.T2
    return paid_tier


def tier_permissions(tier: SubscriptionTier) -> TierPermissions:
    """Return the permission set for ``tier``."""
    return TIER_PERMISSIONS[tier]


def char_limit(tier: SubscriptionTier, kind: LimitKind = "explanation") -> int | None:
    """Return the character limit for ``kind`` of content at ``tier``."""
    permissions = TIER_PERMISSIONS[tier]
    if kind == "comment":
        return permissions.comment_limit
    return permissions.explanation_limit


def limit_for_user(user: User, kind: LimitKind = "explanation") -> int | None:
    """Resolve the user's current effective tier and return its limit."""
    return char_limit(effective_tier(user.user_type, user.subscription_tier), kind)


def exceeds_limit(text: str | None, limit: int | None) -> bool:
    """Return True when ``text`` is longer than a finite ``limit``."""
    return bool(text) and limit is not None and len(text) > limit
