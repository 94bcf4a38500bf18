from sqlalchemy import select

from app.hub.db.models import IdentityAccount, IdentityOutboxMessage


class IdentityAccountRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id(self, account_id):
        return self.db.get(IdentityAccount, account_id)

    def get_by_email(self, email: str):
        stmt = select(IdentityAccount).where(IdentityAccount.email == email.strip().lower())
        return self.db.execute(stmt).scalars().first()

    def list_page(self, *, page: int, per_page: int):
        stmt = (
            select(IdentityAccount)
            .order_by(IdentityAccount.created_at.asc(), IdentityAccount.email.asc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        return self.db.execute(stmt).scalars().all()

    def create(self, account: IdentityAccount):
        self.db.add(account)
        self.db.commit()
        self.db.refresh(account)
        return account

    def add_outbox_message(self, message: IdentityOutboxMessage):
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)
        return message

    def list_outbox(self, email: str | None = None):
        stmt = select(IdentityOutboxMessage).order_by(IdentityOutboxMessage.created_at.asc())
        if email:
            stmt = stmt.where(IdentityOutboxMessage.email == email.strip().lower())
        return self.db.execute(stmt).scalars().all()
