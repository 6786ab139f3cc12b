"""Tests for accounts, credentials and tokens."""

import pytest
from conftest import make_account

from tuition_module.errors import Conflict, Unauthenticated, ValidationError
from tuition_module.identity import IdentityStore, Principal, login, register_tutor
from tuition_module.models import Account, UserRole
from tuition_module.security import create_access_token


class TestRegisterTutor:
    def test_registration_creates_tutor(self, db):
        account, token = register_tutor(db, name="Tina", email="Tina@Tutors.com", password="Secret123!")

        assert account.role == UserRole.TUTOR
        assert account.email == "tina@tutors.com"
        assert IdentityStore(db).verify_token(token) == Principal(id=account.id, role="tutor")

    def test_duplicate_email(self, db):
        register_tutor(db, name="Tina", email="tina@tutors.com", password="Secret123!")

        with pytest.raises(Conflict):
            register_tutor(db, name="Tina Again", email="tina@tutors.com", password="Secret123!")
        assert db.query(Account).count() == 1

    def test_invalid_email(self, db):
        with pytest.raises(ValidationError):
            register_tutor(db, name="Tina", email="tina", password="Secret123!")


class TestLogin:
    def test_valid_credentials(self, db):
        parent = make_account(db, name="Mum", email="mum@x.com", role=UserRole.PARENT)

        account, token = login(db, email="mum@x.com", password="Secret123!")

        assert account.id == parent.id
        assert IdentityStore(db).verify_token(token).role == "parent"

    @pytest.mark.parametrize("email,password", [("mum@x.com", "wrong"), ("nobody@x.com", "Secret123!"), ("bad", "x")])
    def test_invalid_credentials(self, db, email, password):
        make_account(db, name="Mum", email="mum@x.com", role=UserRole.PARENT)

        with pytest.raises(Unauthenticated):
            login(db, email=email, password=password)


class TestVerifyToken:
    def test_garbage_token(self, db):
        assert IdentityStore(db).verify_token("not-a-token") is None

    def test_expired_token(self, db, tutor_a):
        token = create_access_token(account_id=tutor_a.id, role="tutor", expires_minutes=-1)

        assert IdentityStore(db).verify_token(token) is None

    def test_unknown_account(self, db):
        token = create_access_token(account_id="ghost", role="tutor")

        assert IdentityStore(db).verify_token(token) is None

    def test_role_claim_must_match_account(self, db, tutor_a):
        token = create_access_token(account_id=tutor_a.id, role="parent")

        assert IdentityStore(db).verify_token(token) is None
