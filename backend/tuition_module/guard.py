"""Role and ownership checks in front of every read and write.

Every operation takes the calling ``Principal`` explicitly. Reads are scoped
to the students the principal can see; writes are tutor-only and require the
tutor to own the student the record hangs off. A rejected request raises an
``AccessError`` before anything is committed.
"""

import datetime as dt
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from .errors import Conflict, Forbidden, NotFound, ValidationError
from .identity import Principal
from .models import (
    Attendance,
    AttendanceStatus,
    Exam,
    Fee,
    FeeStatus,
    Homework,
    HomeworkStatus,
    Performance,
    Student,
    UserRole,
)
from .ownership import visible_student_ids


logger = logging.getLogger(__name__)

Validator = Callable[[str, Any], Any]


def _text(name: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Field '{name}' must be a non-empty string")
    return value.strip()


def _optional_text(name: str, value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"Field '{name}' must be a string")
    return value.strip()


def _date(name: str, value: Any) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    try:
        return dt.date.fromisoformat(str(value))
    except ValueError as exc:
        raise ValidationError(f"Field '{name}' must be an ISO date (YYYY-MM-DD)") from exc


def _amount(name: str, value: Any) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Field '{name}' must be a number") from exc
    if not math.isfinite(amount):
        raise ValidationError(f"Field '{name}' must be a finite number")
    if amount <= 0:
        raise ValidationError(f"Field '{name}' must be greater than zero")
    return amount


def _score(name: str, value: Any) -> float | None:
    # An exam is unscored until a tutor sets a score; clearing it is allowed.
    if value is None:
        return None
    try:
        score = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Field '{name}' must be a number") from exc
    if not 0 <= score <= 100:
        raise ValidationError(f"Field '{name}' must be between 0 and 100")
    return score


def _rating(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
        raise ValidationError(f"Field '{name}' must be an integer between 1 and 5")
    return value


def _choice(enum_cls) -> Validator:
    allowed = [member.value for member in enum_cls]

    def validate(name: str, value: Any) -> str:
        if value not in allowed:
            raise ValidationError(f"Field '{name}' must be one of: {', '.join(allowed)}")
        return value

    return validate


@dataclass(frozen=True)
class ResourceSpec:
    kind: str
    label: str
    model: type
    fields: dict[str, Validator]
    required: tuple[str, ...]
    mutable: tuple[str, ...]
    defaults: dict[str, Any] = field(default_factory=dict)


STUDENT_SPEC = ResourceSpec(
    kind="students",
    label="Student",
    model=Student,
    fields={"name": _text, "school": _text, "grade": _text, "parent_email": _text},
    required=("name", "school", "grade", "parent_email"),
    # tutor_id and parent_id are never writable after enrollment.
    mutable=("name", "school", "grade"),
)

RESOURCE_SPECS: dict[str, ResourceSpec] = {
    spec.kind: spec
    for spec in (
        STUDENT_SPEC,
        ResourceSpec(
            kind="homework",
            label="Homework",
            model=Homework,
            fields={
                "student_id": _text,
                "subject": _text,
                "description": _text,
                "due_date": _date,
                "status": _choice(HomeworkStatus),
            },
            required=("student_id", "subject", "description", "due_date"),
            mutable=("status",),
        ),
        ResourceSpec(
            kind="exams",
            label="Exam",
            model=Exam,
            fields={
                "student_id": _text,
                "subject": _text,
                "date": _date,
                "syllabus": _optional_text,
                "score": _score,
            },
            required=("student_id", "subject", "date"),
            mutable=("score",),
            defaults={"syllabus": ""},
        ),
        ResourceSpec(
            kind="attendance",
            label="Attendance",
            model=Attendance,
            fields={
                "student_id": _text,
                "date": _date,
                "status": _choice(AttendanceStatus),
                "note": _optional_text,
            },
            required=("student_id", "date", "status"),
            mutable=("status", "note"),
            defaults={"note": ""},
        ),
        ResourceSpec(
            kind="fees",
            label="Fee",
            model=Fee,
            fields={
                "student_id": _text,
                "amount": _amount,
                "due_date": _date,
                "description": _optional_text,
                "status": _choice(FeeStatus),
            },
            required=("student_id", "amount", "due_date"),
            mutable=("status",),
            defaults={"description": "Monthly tuition fee"},
        ),
        ResourceSpec(
            kind="performance",
            label="Performance",
            model=Performance,
            fields={
                "student_id": _text,
                "date": _date,
                "rating": _rating,
                "feedback": _optional_text,
            },
            required=("student_id", "date", "rating"),
            mutable=("rating", "feedback"),
            defaults={"feedback": ""},
        ),
    )
}

DEPENDENT_MODELS = tuple(spec.model for spec in RESOURCE_SPECS.values() if spec.model is not Student)


def get_spec(kind: str) -> ResourceSpec:
    try:
        return RESOURCE_SPECS[kind]
    except KeyError as exc:
        raise NotFound(f"Unknown resource '{kind}'") from exc


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_create_payload(spec: ResourceSpec, payload: dict[str, Any]) -> dict[str, Any]:
    """Check required fields and coerce the accepted ones; status/score fields are set by updates only."""
    missing = [name for name in spec.required if _is_missing(payload.get(name))]
    if missing:
        raise ValidationError(f"Please provide all required fields: {', '.join(missing)}")

    creatable = set(spec.required) | set(spec.defaults)
    values = dict(spec.defaults)
    for name, value in payload.items():
        if name not in creatable or value is None:
            continue
        values[name] = spec.fields[name](name, value)
    return values


def validate_changes(spec: ResourceSpec, changes: dict[str, Any]) -> dict[str, Any]:
    if not changes:
        raise ValidationError("No updatable fields provided")
    values = {}
    for name, value in changes.items():
        if name not in spec.mutable:
            raise ValidationError(f"Field '{name}' cannot be updated on {spec.label} records")
        values[name] = spec.fields[name](name, value)
    return values


def require_tutor(principal: Principal, action: str) -> None:
    if principal.role != UserRole.TUTOR.value:
        logger.warning(f"Rejected {action} by {principal.role} {principal.id}: tutor role required")
        raise Forbidden(f"Only tutors can {action}")


def owns_student(principal: Principal, student: Student) -> bool:
    if principal.role == UserRole.TUTOR.value:
        return student.tutor_id == principal.id
    if principal.role == UserRole.PARENT.value:
        return student.parent_id == principal.id
    return False


def _student_of(db: Session, spec: ResourceSpec, record) -> Student | None:
    if spec.model is Student:
        return record
    return db.get(Student, record.student_id)


def _reject_foreign(principal: Principal, spec: ResourceSpec, record_id: str) -> None:
    logger.warning(f"Rejected access by {principal.role} {principal.id} to {spec.label} {record_id}: not the owner")
    raise Forbidden("Not authorized")


def _commit(db: Session, spec: ResourceSpec) -> None:
    try:
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        raise Conflict(f"{spec.label} record was modified concurrently, reload and retry") from exc


def list_records(db: Session, principal: Principal, kind: str) -> list:
    spec = get_spec(kind)
    visible = visible_student_ids(db, principal)
    if not visible:
        return []
    owner_column = spec.model.id if spec.model is Student else spec.model.student_id
    return (
        db.query(spec.model)
        .filter(owner_column.in_(visible))
        .order_by(spec.model.created_at)
        .all()
    )


def get_record(db: Session, principal: Principal, kind: str, record_id: str):
    spec = get_spec(kind)
    record = db.get(spec.model, record_id)
    if record is None:
        raise NotFound(f"{spec.label} not found")
    student = _student_of(db, spec, record)
    if student is None or not owns_student(principal, student):
        _reject_foreign(principal, spec, record_id)
    return record


def create_record(db: Session, principal: Principal, kind: str, payload: dict[str, Any]):
    """Create a dependent record (homework, exams, attendance, fees, performance).

    Creation is tutor-exclusive for every kind. Students are enrolled through
    ``services.enroll_student`` because enrollment also provisions the parent.
    """
    spec = get_spec(kind)
    if spec.model is Student:
        raise ValidationError("Students are created through enrollment")
    require_tutor(principal, f"create {spec.label.lower()} records")
    values = validate_create_payload(spec, payload)

    student = db.get(Student, values["student_id"])
    if student is None:
        raise NotFound("Student not found")
    if not owns_student(principal, student):
        _reject_foreign(principal, STUDENT_SPEC, student.id)

    record = spec.model(**values, created_by=principal.id)
    db.add(record)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(record)
    logger.info(f"{spec.label} {record.id} created for student {student.id} by {principal.id}")
    return record


def update_record(
    db: Session,
    principal: Principal,
    kind: str,
    record_id: str,
    changes: dict[str, Any],
    expected_version: int | None = None,
):
    """Apply tutor-only field changes (status, score, ...) to a record the tutor owns.

    ``expected_version`` turns the write into a compare-and-swap against the
    version the caller last read.
    """
    spec = get_spec(kind)
    require_tutor(principal, f"update {spec.label.lower()} records")
    record = db.get(spec.model, record_id)
    if record is None:
        raise NotFound(f"{spec.label} not found")
    student = _student_of(db, spec, record)
    if student is None or not owns_student(principal, student):
        _reject_foreign(principal, spec, record_id)

    values = validate_changes(spec, changes)
    if expected_version is not None and expected_version != record.version:
        raise Conflict(f"{spec.label} record was modified concurrently, reload and retry")

    for name, value in values.items():
        setattr(record, name, value)
    record.updated_at = dt.datetime.utcnow()
    _commit(db, spec)
    db.refresh(record)
    logger.info(f"{spec.label} {record.id} updated by {principal.id}: {sorted(values)}")
    return record


def delete_student(db: Session, principal: Principal, student_id: str) -> None:
    """Remove a student and every record that references it in one transaction."""
    require_tutor(principal, "delete students")
    student = db.get(Student, student_id)
    if student is None:
        raise NotFound("Student not found")
    if not owns_student(principal, student):
        _reject_foreign(principal, STUDENT_SPEC, student_id)

    try:
        for model in DEPENDENT_MODELS:
            db.query(model).filter(model.student_id == student_id).delete(synchronize_session=False)
        db.delete(student)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Student {student_id} and dependent records deleted by {principal.id}")


def dashboard_summary(db: Session, principal: Principal) -> dict[str, int]:
    visible = visible_student_ids(db, principal)
    summary = {"students": len(visible), "attendance": 0, "pending_homework": 0, "upcoming_exams": 0, "pending_fees": 0}
    if not visible:
        return summary

    def count(model, *criteria) -> int:
        return db.query(func.count(model.id)).filter(model.student_id.in_(visible), *criteria).scalar() or 0

    summary["attendance"] = count(Attendance)
    summary["pending_homework"] = count(Homework, Homework.status == HomeworkStatus.PENDING.value)
    summary["upcoming_exams"] = count(Exam, Exam.date > dt.date.today(), Exam.score.is_(None))
    summary["pending_fees"] = count(Fee, Fee.status == FeeStatus.PENDING.value)
    return summary
