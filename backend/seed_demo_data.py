import logging

from sqlalchemy.orm import Session

from tuition_module.database import SessionLocal, init_database
from tuition_module.guard import create_record
from tuition_module.identity import IdentityStore, Principal, register_tutor
from tuition_module.models import Student
from tuition_module.services import enroll_student

logger = logging.getLogger(__name__)

DEMO_TUTOR = ("Demo Tutor", "tutor.demo@tuition.local", "ChangeMe@123")
DEMO_STUDENTS = [
    {"name": "Alice Demo", "school": "Hill School", "grade": "5", "parent_email": "parent.demo@tuition.local"},
    {"name": "Ann Demo", "school": "Hill School", "grade": "3", "parent_email": "parent.demo@tuition.local"},
]


def seed_demo_data(db: Session) -> dict:
    """Create a demo tutor with two siblings under one parent, plus a first week of records."""
    name, email, password = DEMO_TUTOR
    tutor = IdentityStore(db).find_by_email(email)
    if tutor is None:
        tutor, _ = register_tutor(db, name=name, email=email, password=password)
    else:
        print(f"Tutor {email} already exists.")
    principal = Principal(id=tutor.id, role=tutor.role.value)

    added_students = 0
    for payload in DEMO_STUDENTS:
        existing = db.query(Student).filter(Student.tutor_id == tutor.id, Student.name == payload["name"]).first()
        if existing is not None:
            print(f"  -> Student {existing.name} already exists.")
            continue

        student, provisioned = enroll_student(db, principal, payload)
        added_students += 1
        print(f"  -> Enrolled {student.name} (parent {provisioned.email}, new account: {provisioned.created})")

        create_record(db, principal, "homework", {
            "student_id": student.id,
            "subject": "Math",
            "description": "Workbook page 12",
            "due_date": "2024-01-08",
        })
        create_record(db, principal, "attendance", {"student_id": student.id, "date": "2024-01-05", "status": "present"})
        create_record(db, principal, "fees", {"student_id": student.id, "amount": 120, "due_date": "2024-01-31"})

    return {"tutor_id": tutor.id, "students": added_students}


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    init_database()
    db = SessionLocal()
    try:
        print("--- Seeding demo tuition data ---")
        result = seed_demo_data(db)
        print(f"Done. Tutor {result['tutor_id']}, {result['students']} new students.")
    finally:
        db.close()
