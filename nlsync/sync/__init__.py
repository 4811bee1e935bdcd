"""Article synchronization from parsed newsletter issues."""

from .coordinator import ItemOutcome, SyncCoordinator, SyncReport
from .mapping import body_to_blocks, build_candidate, count_words, estimate_read_time, make_source_item_id, slugify
from .retry import StoreRetryPolicy
from .upsert import PROTECTED_STATUSES, UpsertAction, UpsertEngine, UpsertResult, is_protected

__all__ = [
    "ItemOutcome",
    "PROTECTED_STATUSES",
    "StoreRetryPolicy",
    "SyncCoordinator",
    "SyncReport",
    "UpsertAction",
    "UpsertEngine",
    "UpsertResult",
    "body_to_blocks",
    "build_candidate",
    "count_words",
    "estimate_read_time",
    "make_source_item_id",
    "slugify",
    "is_protected",
]
