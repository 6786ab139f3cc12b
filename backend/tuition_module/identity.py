import logging
import re
from dataclasses import dataclass

from sqlalchemy.orm import Session

from .errors import Conflict, Unauthenticated, ValidationError
from .models import Account, UserRole
from .security import AuthError, create_access_token, decode_access_token, hash_password, verify_password


logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, passed explicitly into every access decision."""

    id: str
    role: str

    @property
    def is_tutor(self) -> bool:
        return self.role == UserRole.TUTOR.value

    @property
    def is_parent(self) -> bool:
        return self.role == UserRole.PARENT.value


def normalize_email(value: str | None) -> str:
    normalized = (value or "").strip().lower()
    if not EMAIL_PATTERN.match(normalized):
        raise ValidationError("Invalid email format")
    return normalized


class IdentityStore:
    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> Account | None:
        return self.db.query(Account).filter(Account.email == normalize_email(email)).first()

    def get(self, account_id: str) -> Account | None:
        return self.db.get(Account, account_id)

    def create(self, account: Account) -> Account:
        self.db.add(account)
        self.db.flush()
        return account

    def verify_credentials(self, email: str, password: str) -> Account | None:
        try:
            account = self.find_by_email(email)
        except ValidationError:
            return None
        if account is None or not verify_password(password, account.password_hash):
            return None
        return account

    def issue_token(self, account: Account) -> str:
        return create_access_token(account_id=account.id, role=account.role.value)

    def verify_token(self, token: str) -> Principal | None:
        try:
            payload = decode_access_token(token)
        except AuthError as exc:
            logger.warning(f"Rejected access token: {exc}")
            return None
        account = self.get(payload["sub"])
        if account is None or account.role.value != payload["role"]:
            return None
        return Principal(id=account.id, role=account.role.value)


def register_tutor(db: Session, *, name: str, email: str, password: str) -> tuple[Account, str]:
    """Self-registration. Parents never register; they are provisioned on enrollment."""
    if not name or not name.strip() or not password:
        raise ValidationError("Please enter all fields")
    store = IdentityStore(db)
    normalized = normalize_email(email)
    if store.find_by_email(normalized):
        raise Conflict("User already exists")

    account = store.create(
        Account(
            name=name.strip(),
            email=normalized,
            password_hash=hash_password(password),
            role=UserRole.TUTOR,
        )
    )
    db.commit()
    db.refresh(account)
    logger.info(f"Registered tutor account {account.id}")
    return account, store.issue_token(account)


def login(db: Session, *, email: str, password: str) -> tuple[Account, str]:
    store = IdentityStore(db)
    account = store.verify_credentials(email, password)
    if account is None:
        raise Unauthenticated("Invalid credentials")
    return account, store.issue_token(account)
