from sqlalchemy import select

from app.hub.db.models import Store


class StoreRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id(self, store_id):
        return self.db.get(Store, store_id)

    def get_by_ace_number(self, ace_store_number: str):
        stmt = select(Store).where(Store.ace_store_number == ace_store_number)
        return self.db.execute(stmt).scalars().first()

    def list_stores(self, *, status: str | None = None):
        stmt = select(Store)
        if status:
            stmt = stmt.where(Store.status == status)
        stmt = stmt.order_by(Store.sort_order.asc(), Store.store_name.asc())
        return self.db.execute(stmt).scalars().all()

    def existing_ids(self, store_ids) -> set:
        if not store_ids:
            return set()
        stmt = select(Store.id).where(Store.id.in_(list(store_ids)))
        return set(self.db.execute(stmt).scalars().all())

    def create(self, store: Store):
        self.db.add(store)
        self.db.commit()
        self.db.refresh(store)
        return store

    def update(self, store: Store):
        self.db.add(store)
        self.db.commit()
        self.db.refresh(store)
        return store
