import pytest

from app.hub.services.identity import (
    AccountExistsError,
    IdentityAccountRef,
    IdentityProvider,
    IdentityServiceError,
    IdentitySubject,
    InviteResult,
)


class InMemoryIdentity(IdentityProvider):
    scan_page_size = 2
    max_scan_pages = 3

    def __init__(self, emails=()):
        self.accounts = [IdentityAccountRef(id=f"id-{i}", email=email) for i, email in enumerate(emails)]
        self.hidden = set()

    def get_subject(self, token):
        return IdentitySubject(id=token)

    def create_account(self, email, password):
        if any((a.email or "").lower() == email.lower() for a in self.accounts) or email in self.hidden:
            raise AccountExistsError("already registered", status_code=422)
        account = IdentityAccountRef(id=f"id-{len(self.accounts)}", email=email)
        self.accounts.append(account)
        return account.id

    def list_accounts(self, *, page, per_page):
        start = (page - 1) * per_page
        return self.accounts[start : start + per_page]

    def send_invite(self, email, redirect_to=None):
        return InviteResult()

    def send_password_reset(self, email, redirect_to=None):
        return None


def test_interface_cannot_be_instantiated():
    with pytest.raises(TypeError):
        IdentityProvider()


def test_partial_implementation_is_rejected():
    class MissingReset(IdentityProvider):
        def get_subject(self, token):
            return IdentitySubject(id=token)

        def create_account(self, email, password):
            return "x"

        def list_accounts(self, *, page, per_page):
            return []

        def send_invite(self, email, redirect_to=None):
            return InviteResult()

    with pytest.raises(TypeError):
        MissingReset()


def test_existing_account_is_found_on_a_later_page():
    identity = InMemoryIdentity(["a@example.com", "b@example.com", "c@example.com", "Target@Example.com"])

    subject_id, created = identity.find_or_create_account("target@example.com", "pw")

    assert (subject_id, created) == ("id-3", False)


def test_new_account_is_created():
    identity = InMemoryIdentity(["a@example.com"])
    subject_id, created = identity.find_or_create_account("new@example.com", "pw")
    assert (subject_id, created) == ("id-1", True)


def test_existing_account_missing_from_scan_is_an_error():
    identity = InMemoryIdentity()
    identity.hidden.add("ghost@example.com")

    with pytest.raises(IdentityServiceError) as excinfo:
        identity.find_or_create_account("ghost@example.com", "pw")

    assert not isinstance(excinfo.value, AccountExistsError)
    assert excinfo.value.status_code == 422
    assert excinfo.value.details == {"scanned_pages": 3}
