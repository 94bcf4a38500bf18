import logging
from dataclasses import dataclass, field

from app.hub.core.error_catalog import AppError, ErrorCatalog
from app.hub.core.logging import log_json
from app.hub.repos.access_grants import AccessGrantRepository
from app.hub.repos.profiles import ProfileRepository
from app.hub.repos.stores import StoreRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessDiff:
    additions: frozenset = field(default_factory=frozenset)
    removals: frozenset = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not self.additions and not self.removals


def compute_access_diff(before, after) -> AccessDiff:
    before = frozenset(before)
    after = frozenset(after)
    return AccessDiff(additions=after - before, removals=before - after)


class AccessSyncService:
    """Reconciles a user's assigned stores against the persisted grants.

    At most one batched insert and one batched delete per call; nothing is
    written when the target set already matches.
    """

    def __init__(self, db):
        self.db = db
        self.grants = AccessGrantRepository(db)

    def current_store_ids(self, user_id) -> set:
        return self.grants.list_store_ids(user_id)

    def sync(self, user_id, target_store_ids, *, assigned_by, correlation_id: str = "") -> AccessDiff:
        if ProfileRepository(self.db).get_by_id(user_id) is None:
            raise AppError(ErrorCatalog.NOT_FOUND, message="User profile not found")

        target = set(target_store_ids)
        unknown = target - StoreRepository(self.db).existing_ids(target)
        if unknown:
            raise AppError(
                ErrorCatalog.INVALID_REQUEST,
                message="Unknown store ids",
                details={"store_ids": sorted(str(store_id) for store_id in unknown)},
            )

        diff = compute_access_diff(self.grants.list_store_ids(user_id), target)
        if diff.is_empty:
            return diff

        try:
            if diff.additions:
                self.grants.insert_many(user_id, sorted(diff.additions), assigned_by=assigned_by)
            if diff.removals:
                self.grants.delete_many(user_id, diff.removals)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        log_json(
            logger,
            {
                "event": "access_sync",
                "correlation_id": correlation_id,
                "user_id": str(user_id),
                "added": len(diff.additions),
                "removed": len(diff.removals),
            },
        )
        return diff
