"""Business logic services for the AOT Ledger."""

from .aggregation import AggregationEngine
from .comments import CommentAnchor, CommentTreeService
from .karma import KarmaLedger, VotableRef
from .voting import VoteLedger

__all__ = [
    "AggregationEngine",
    "CommentAnchor",
    "CommentTreeService",
    "KarmaLedger",
    "VotableRef",
    "VoteLedger",
]
