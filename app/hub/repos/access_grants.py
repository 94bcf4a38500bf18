from sqlalchemy import delete, insert, select

from app.hub.db.models import AccessGrant


class AccessGrantRepository:
    def __init__(self, db):
        self.db = db

    def list_store_ids(self, user_id) -> set:
        stmt = select(AccessGrant.store_id).where(AccessGrant.user_id == user_id)
        return set(self.db.execute(stmt).scalars().all())

    def insert_many(self, user_id, store_ids, *, assigned_by) -> None:
        rows = [
            {"user_id": user_id, "store_id": store_id, "assigned_by": assigned_by}
            for store_id in store_ids
        ]
        self.db.execute(insert(AccessGrant), rows)

    def delete_many(self, user_id, store_ids) -> None:
        stmt = delete(AccessGrant).where(
            AccessGrant.user_id == user_id,
            AccessGrant.store_id.in_(list(store_ids)),
        )
        self.db.execute(stmt)
