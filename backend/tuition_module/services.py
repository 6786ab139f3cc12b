import logging
from typing import Any

from sqlalchemy.orm import Session

from .errors import NotificationFailed
from .guard import STUDENT_SPEC, require_tutor, validate_create_payload
from .identity import Principal
from .models import Student
from .notifications import CredentialDispatchError, notify_parent_credentials
from .provisioning import ProvisionResult, ensure_parent_account


logger = logging.getLogger(__name__)


def enroll_student(db: Session, principal: Principal, payload: dict[str, Any]) -> tuple[Student, ProvisionResult]:
    """Enroll a student under the calling tutor, provisioning the parent when needed.

    The parent account and the student row are written in one transaction.
    A newly provisioned parent's credentials are dispatched before the commit,
    so a failed dispatch leaves neither row behind.
    """
    require_tutor(principal, "add students")
    values = validate_create_payload(STUDENT_SPEC, payload)

    try:
        provisioned = ensure_parent_account(db, values["parent_email"], values["name"])
        student = Student(
            name=values["name"],
            school=values["school"],
            grade=values["grade"],
            tutor_id=principal.id,
            parent_id=provisioned.account_id,
        )
        db.add(student)
        db.flush()

        if provisioned.created:
            notify_parent_credentials(
                recipient_email=provisioned.email,
                student_name=student.name,
                password=provisioned.temporary_password,
            )
        db.commit()
    except CredentialDispatchError as exc:
        db.rollback()
        raise NotificationFailed(str(exc)) from exc
    except Exception:
        db.rollback()
        raise

    db.refresh(student)
    logger.info(f"Student {student.id} enrolled by tutor {principal.id} (parent {provisioned.account_id})")
    return student, provisioned
