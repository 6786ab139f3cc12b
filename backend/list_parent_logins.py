from sqlalchemy.orm import Session

from tuition_module.database import SessionLocal
from tuition_module.models import Account, Student, UserRole


def list_parents(db: Session) -> list[tuple[str, str, str, str]]:
    """(parent email, parent name, student name, grade) for every linked parent, siblings included."""
    rows = (
        db.query(Account.email, Account.name, Student.name, Student.grade)
        .join(Student, Student.parent_id == Account.id)
        .filter(Account.role == UserRole.PARENT)
        .order_by(Account.email, Student.name)
        .all()
    )
    return [tuple(row) for row in rows]


if __name__ == "__main__":
    db = SessionLocal()
    try:
        rows = list_parents(db)
        print("\n--- Parent Login Details ---")
        print(f"{'Email':<30} | {'Parent Name':<25} | {'Student Name':<25} | {'Grade':<5}")
        print("-" * 95)
        for email, parent_name, student_name, grade in rows:
            print(f"{email:<30} | {parent_name:<25} | {student_name:<25} | {grade:<5}")
        # Temporary passwords are shown once at provisioning and cannot be listed here.
    finally:
        db.close()
