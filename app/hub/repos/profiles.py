from sqlalchemy import func, or_, select

from app.hub.db.models import UserProfile


class ProfileRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id(self, user_id):
        return self.db.get(UserProfile, user_id)

    def list_profiles(self, *, status: str | None = None, search: str | None = None):
        stmt = select(UserProfile)
        if status:
            stmt = stmt.where(UserProfile.status == status)
        if search:
            pattern = f"%{search.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(UserProfile.full_name).like(pattern),
                    func.lower(UserProfile.email).like(pattern),
                )
            )
        stmt = stmt.order_by(UserProfile.full_name.asc())
        return self.db.execute(stmt).scalars().all()

    def upsert(self, user_id, **fields) -> UserProfile:
        """Insert or update the profile keyed by ``user_id``.

        Only the given fields are written on update; the row is flushed but
        not committed so callers can sequence further writes.
        """
        profile = self.get_by_id(user_id)
        if profile is None:
            profile = UserProfile(id=user_id, **fields)
            self.db.add(profile)
        else:
            for key, value in fields.items():
                setattr(profile, key, value)
        self.db.flush()
        return profile

    def save(self, profile: UserProfile):
        self.db.add(profile)
        self.db.commit()
        self.db.refresh(profile)
        return profile
