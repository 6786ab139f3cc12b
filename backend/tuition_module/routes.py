from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from . import guard
from .database import get_db_session
from .errors import Unauthenticated
from .identity import IdentityStore, Principal, login, register_tutor
from .middleware import get_current_principal
from .schemas import (
    AccountOut,
    AttendanceCreateRequest,
    AttendanceOut,
    AttendanceUpdateRequest,
    AuthResponse,
    DashboardOut,
    ExamCreateRequest,
    ExamOut,
    ExamUpdateRequest,
    FeeCreateRequest,
    FeeOut,
    FeeUpdateRequest,
    HomeworkCreateRequest,
    HomeworkOut,
    HomeworkUpdateRequest,
    LoginRequest,
    PerformanceCreateRequest,
    PerformanceOut,
    PerformanceUpdateRequest,
    RegisterRequest,
    StudentCreateRequest,
    StudentOut,
    StudentUpdateRequest,
)
from .services import enroll_student

router = APIRouter(prefix="/api", tags=["Tuition"])


def _split_changes(payload: BaseModel) -> tuple[dict, int | None]:
    changes = payload.model_dump(exclude_unset=True)
    return changes, changes.pop("version", None)


@router.post("/users/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db_session)):
    account, token = register_tutor(db, name=payload.name, email=payload.email, password=payload.password)
    return AuthResponse(access_token=token, user=AccountOut.model_validate(account))


@router.post("/users/login", response_model=AuthResponse)
def login_user(payload: LoginRequest, db: Session = Depends(get_db_session)):
    account, token = login(db, email=payload.email, password=payload.password)
    return AuthResponse(access_token=token, user=AccountOut.model_validate(account))


@router.get("/me", response_model=AccountOut)
def me(principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db_session)):
    account = IdentityStore(db).get(principal.id)
    if account is None:
        raise Unauthenticated("Invalid user")
    return account


@router.get("/dashboard", response_model=DashboardOut)
def dashboard(principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db_session)):
    return guard.dashboard_summary(db, principal)


@router.get("/students", response_model=list[StudentOut])
def list_students(principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db_session)):
    return guard.list_records(db, principal, "students")


@router.post("/students", response_model=StudentOut, status_code=status.HTTP_201_CREATED)
def create_student(
    payload: StudentCreateRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db_session),
):
    student, _ = enroll_student(db, principal, payload.model_dump(exclude_none=True))
    return student


@router.get("/students/{student_id}", response_model=StudentOut)
def get_student(
    student_id: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db_session),
):
    return guard.get_record(db, principal, "students", student_id)


@router.patch("/students/{student_id}", response_model=StudentOut)
def update_student(
    student_id: str,
    payload: StudentUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db_session),
):
    changes, version = _split_changes(payload)
    return guard.update_record(db, principal, "students", student_id, changes, expected_version=version)


@router.delete("/students/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_student(
    student_id: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db_session),
) -> None:
    guard.delete_student(db, principal, student_id)


def _add_resource_routes(kind: str, create_model: type, update_model: type, out_model: type) -> None:
    """Register list/create/get/update for one student-dependent resource kind."""

    def list_resource(principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db_session)):
        return guard.list_records(db, principal, kind)

    def create_resource(
        payload: create_model,
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db_session),
    ):
        return guard.create_record(db, principal, kind, payload.model_dump(exclude_none=True))

    def get_resource(
        record_id: str,
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db_session),
    ):
        return guard.get_record(db, principal, kind, record_id)

    def update_resource(
        record_id: str,
        payload: update_model,
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db_session),
    ):
        changes, version = _split_changes(payload)
        return guard.update_record(db, principal, kind, record_id, changes, expected_version=version)

    router.add_api_route(f"/{kind}", list_resource, methods=["GET"], response_model=list[out_model], name=f"list_{kind}")
    router.add_api_route(
        f"/{kind}",
        create_resource,
        methods=["POST"],
        response_model=out_model,
        status_code=status.HTTP_201_CREATED,
        name=f"create_{kind}",
    )
    router.add_api_route(f"/{kind}/{{record_id}}", get_resource, methods=["GET"], response_model=out_model, name=f"get_{kind}")
    router.add_api_route(
        f"/{kind}/{{record_id}}", update_resource, methods=["PATCH"], response_model=out_model, name=f"update_{kind}"
    )


_add_resource_routes("homework", HomeworkCreateRequest, HomeworkUpdateRequest, HomeworkOut)
_add_resource_routes("exams", ExamCreateRequest, ExamUpdateRequest, ExamOut)
_add_resource_routes("attendance", AttendanceCreateRequest, AttendanceUpdateRequest, AttendanceOut)
_add_resource_routes("fees", FeeCreateRequest, FeeUpdateRequest, FeeOut)
_add_resource_routes("performance", PerformanceCreateRequest, PerformanceUpdateRequest, PerformanceOut)
