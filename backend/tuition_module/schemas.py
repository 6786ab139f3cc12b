import datetime as dt

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import UserRole


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class RegisterRequest(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=5, max_length=255)
    password: str = Field(min_length=8)


class LoginRequest(CamelModel):
    email: str = Field(min_length=5, max_length=255)
    password: str = Field(min_length=1)


class AccountOut(CamelModel):
    id: str
    name: str
    email: str
    role: UserRole


class AuthResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: AccountOut


# Create bodies leave every field optional: the guard reports missing fields
# only after the role check, so a parent gets 403 rather than a schema error.
class StudentCreateRequest(CamelModel):
    name: str | None = None
    school: str | None = None
    grade: str | None = None
    parent_email: str | None = None


class StudentUpdateRequest(CamelModel):
    name: str | None = None
    school: str | None = None
    grade: str | None = None
    version: int | None = None


class HomeworkCreateRequest(CamelModel):
    student_id: str | None = None
    subject: str | None = None
    description: str | None = None
    due_date: str | None = None


class HomeworkUpdateRequest(CamelModel):
    status: str | None = None
    version: int | None = None


class ExamCreateRequest(CamelModel):
    student_id: str | None = None
    subject: str | None = None
    date: str | None = None
    syllabus: str | None = None


class ExamUpdateRequest(CamelModel):
    score: float | None = None
    version: int | None = None


class AttendanceCreateRequest(CamelModel):
    student_id: str | None = None
    date: str | None = None
    status: str | None = None
    note: str | None = None


class AttendanceUpdateRequest(CamelModel):
    status: str | None = None
    note: str | None = None
    version: int | None = None


class FeeCreateRequest(CamelModel):
    student_id: str | None = None
    amount: float | None = None
    due_date: str | None = None
    description: str | None = None


class FeeUpdateRequest(CamelModel):
    status: str | None = None
    version: int | None = None


class PerformanceCreateRequest(CamelModel):
    student_id: str | None = None
    date: str | None = None
    rating: int | None = None
    feedback: str | None = None


class PerformanceUpdateRequest(CamelModel):
    rating: int | None = None
    feedback: str | None = None
    version: int | None = None


class RecordOut(CamelModel):
    id: str
    version: int
    created_at: dt.datetime
    updated_at: dt.datetime | None = None


class StudentOut(RecordOut):
    name: str
    school: str
    grade: str
    tutor_id: str
    parent_id: str | None = None


class DependentRecordOut(RecordOut):
    student_id: str
    created_by: str


class HomeworkOut(DependentRecordOut):
    subject: str
    description: str
    due_date: dt.date
    status: str


class ExamOut(DependentRecordOut):
    subject: str
    date: dt.date
    syllabus: str
    score: float | None = None


class AttendanceOut(DependentRecordOut):
    date: dt.date
    status: str
    note: str


class FeeOut(DependentRecordOut):
    amount: float
    due_date: dt.date
    description: str
    status: str


class PerformanceOut(DependentRecordOut):
    date: dt.date
    rating: int
    feedback: str


class DashboardOut(CamelModel):
    students: int
    attendance: int
    pending_homework: int
    upcoming_exams: int
    pending_fees: int
