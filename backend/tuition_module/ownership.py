from sqlalchemy.orm import Session

from .identity import Principal
from .models import Student, UserRole


def visible_student_ids(db: Session, principal: Principal) -> set[str]:
    """Ids of the students the principal may see: taught ones for a tutor, own children for a parent."""
    if principal.role == UserRole.TUTOR.value:
        owner_column = Student.tutor_id
    elif principal.role == UserRole.PARENT.value:
        owner_column = Student.parent_id
    else:
        return set()
    rows = db.query(Student.id).filter(owner_column == principal.id).all()
    return {row.id for row in rows}
