from sqlalchemy import select

from app.hub.core.config import settings as default_settings
from app.hub.core.security import get_password_hash
from app.hub.db.models import IdentityAccount, Store, StoreStatus, UserProfile, UserRole, UserStatus


def _get_or_create_store(db, settings):
    store = (
        db.execute(select(Store).where(Store.ace_store_number == settings.BOOTSTRAP_STORE_NUMBER))
        .scalars()
        .first()
    )
    if store:
        return store
    store = Store(
        ace_store_number=settings.BOOTSTRAP_STORE_NUMBER,
        pos_store_number=settings.BOOTSTRAP_STORE_NUMBER,
        store_name=settings.BOOTSTRAP_STORE_NAME,
        status=StoreStatus.ACTIVE.value,
    )
    db.add(store)
    db.flush()
    return store


def _get_or_create_admin_account(db, settings):
    email = settings.BOOTSTRAP_ADMIN_EMAIL.strip().lower()
    account = db.execute(select(IdentityAccount).where(IdentityAccount.email == email)).scalars().first()
    if account:
        return account
    account = IdentityAccount(
        email=email,
        hashed_password=get_password_hash(settings.BOOTSTRAP_ADMIN_PASSWORD),
        email_confirmed=True,
    )
    db.add(account)
    db.flush()
    return account


def _get_or_create_admin_profile(db, settings, account, store):
    profile = db.get(UserProfile, account.id)
    if profile:
        return profile
    profile = UserProfile(
        id=account.id,
        full_name=settings.BOOTSTRAP_ADMIN_NAME,
        email=account.email,
        role=UserRole.ADMIN.value,
        status=UserStatus.ACTIVE.value,
        home_store_id=store.id,
        must_reset_password=False,
    )
    db.add(profile)
    return profile


def run_seed(db, settings=None):
    """Create the default store and, for the local identity backend, a bootstrap Admin.

    Safe to run repeatedly. With a hosted identity backend the first Admin
    profile has to be created against an existing account id instead.
    """
    settings = settings or default_settings
    store = _get_or_create_store(db, settings)
    if settings.IDENTITY_BACKEND.strip().lower() == "local":
        account = _get_or_create_admin_account(db, settings)
        _get_or_create_admin_profile(db, settings, account, store)
    db.commit()
