"""Tests for the student visibility resolver."""

from conftest import as_principal, make_account

from tuition_module.identity import Principal
from tuition_module.models import Student, UserRole
from tuition_module.ownership import visible_student_ids


def add_student(db, name, tutor, parent=None):
    student = Student(name=name, school="Hill School", grade="5", tutor_id=tutor.id, parent_id=parent.id if parent else None)
    db.add(student)
    db.commit()
    return student


class TestVisibleStudentIds:
    def test_tutor_sees_only_own_students(self, db, tutor_a, tutor_b):
        mine = add_student(db, "Alice", tutor_a)
        other = add_student(db, "Bob", tutor_b)

        visible = visible_student_ids(db, as_principal(tutor_a))

        assert mine.id in visible
        assert other.id not in visible

    def test_parent_sees_children_across_tutors(self, db, tutor_a, tutor_b):
        """Siblings with different tutors are all visible to their parent."""
        parent = make_account(db, name="Parent", email="p@x.com", role=UserRole.PARENT)
        first = add_student(db, "Alice", tutor_a, parent)
        second = add_student(db, "Ann", tutor_b, parent)
        add_student(db, "Bob", tutor_a)

        assert visible_student_ids(db, as_principal(parent)) == {first.id, second.id}

    def test_parent_role_does_not_match_tutor_edge(self, db, tutor_a):
        add_student(db, "Alice", tutor_a)
        impostor = Principal(id=tutor_a.id, role="parent")

        assert visible_student_ids(db, impostor) == set()

    def test_unknown_role_sees_nothing(self, db, tutor_a):
        add_student(db, "Alice", tutor_a)

        assert visible_student_ids(db, Principal(id=tutor_a.id, role="admin")) == set()

    def test_tutor_without_students(self, db, tutor_a):
        assert visible_student_ids(db, as_principal(tutor_a)) == set()
