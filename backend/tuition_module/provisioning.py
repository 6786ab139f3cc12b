import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import Conflict
from .identity import IdentityStore, normalize_email
from .models import Account, UserRole
from .security import generate_temporary_password, hash_password


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvisionResult:
    account_id: str
    email: str
    created: bool
    # Plaintext is only present on the result that created the account.
    temporary_password: str | None = None


def ensure_parent_account(db: Session, email: str, student_name: str) -> ProvisionResult:
    """Return the parent account for ``email``, creating it when unknown.

    The new account is flushed into the caller's transaction and is committed
    together with whatever the caller writes next. The insert runs inside a
    SAVEPOINT: when a concurrent enrollment committed the same email first, the
    unique constraint rejects it, only the SAVEPOINT is rolled back, and the
    winner's account is returned instead.
    """
    store = IdentityStore(db)
    normalized = normalize_email(email)
    existing = store.find_by_email(normalized)
    if existing is not None:
        return ProvisionResult(account_id=existing.id, email=existing.email, created=False)

    temporary_password = generate_temporary_password()
    try:
        with db.begin_nested():
            account = store.create(
                Account(
                    name=f"Parent of {student_name.strip()}",
                    email=normalized,
                    password_hash=hash_password(temporary_password),
                    role=UserRole.PARENT,
                )
            )
    except IntegrityError as exc:
        winner = store.find_by_email(normalized)
        if winner is None:
            raise Conflict(f"Account for {normalized} could not be created, retry the request") from exc
        logger.info(f"Parent account for {normalized} was provisioned concurrently, reusing {winner.id}")
        return ProvisionResult(account_id=winner.id, email=winner.email, created=False)

    logger.info(f"Provisioned parent account {account.id} for {normalized}")
    return ProvisionResult(
        account_id=account.id,
        email=normalized,
        created=True,
        temporary_password=temporary_password,
    )
