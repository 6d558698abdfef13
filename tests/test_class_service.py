import pytest

from academy.core.exceptions import ClassNotFound, DuplicateError, ValidationError
from academy.services.class_service import ClassService, plan_assignment
from academy.services.enrollment_service import EnrollmentService
from academy.services.student_service import StudentService


class Stub:
    def __init__(self, id, name):
        self.id = id
        self.name = name


STUDENTS = [Stub(f"s{i}", name) for i, name in enumerate(["다현", "가은", "마루", "나래", "라희"])]


def test_alphabetical_plan_fills_classes_in_name_order():
    plan = plan_assignment("alphabetical", STUDENTS, ["1반", "2반"])
    assert [(p["student_name"], p["class_name"]) for p in plan] == [
        ("가은", "1반"), ("나래", "1반"), ("다현", "1반"), ("라희", "2반"), ("마루", "2반"),
    ]


def test_balance_plan_alternates_between_classes():
    plan = plan_assignment("balance", STUDENTS, ["1반", "2반"])
    assert [p["class_name"] for p in plan] == ["1반", "2반", "1반", "2반", "1반"]


def test_category_plan_matches_class_names_and_falls_back_to_least_filled():
    categories = {"s0": ["수학", "수학", "영어"], "s1": ["국어"], "s2": []}
    plan = plan_assignment("category", STUDENTS[:3], ["수학반", "영어반"], categories)

    assert [(p["primary_category"], p["class_name"]) for p in plan] == [
        ("수학", "수학반"), ("국어", "영어반"), ("기타", "수학반"),
    ]


def test_plan_requires_classes_and_known_method():
    with pytest.raises(ValidationError):
        plan_assignment("balance", STUDENTS, [])
    with pytest.raises(ValidationError):
        plan_assignment("random", STUDENTS, ["1반"])


async def test_create_class_rejects_duplicate_name(db):
    service = ClassService(db)
    await service.create_class({"name": "A반"}, "admin")
    with pytest.raises(DuplicateError):
        await service.create_class({"name": " A반 "}, "admin")


async def test_rename_moves_students_to_new_name(db, make_student):
    service = ClassService(db)
    academy_class = await service.create_class({"name": "A반"}, "admin")
    student = await make_student(class_name="A반")
    outsider = await make_student("다른반", "4321", class_name="B반")

    renamed = await service.update_class(academy_class.id, {"name": "알파반"})

    assert renamed.name == "알파반"
    assert (await StudentService(db).get_or_404(student.id)).class_name == "알파반"
    assert (await StudentService(db).get_or_404(outsider.id)).class_name == "B반"
    assert [s.id for s in await service.get_students_in_class("알파반")] == [student.id]


async def test_assign_and_remove_keep_counts_current(db, make_student):
    service = ClassService(db)
    academy_class = await service.create_class({"name": "A반"}, "admin")
    a = await make_student("가", "0001")
    b = await make_student("나", "0002")

    assert await service.assign_students([a.id, b.id], "A반") == 2
    assert (await service.get_or_404(academy_class.id)).student_count == 2

    await service.remove_students([a.id])
    assert (await service.get_or_404(academy_class.id)).student_count == 1
    assert (await StudentService(db).get_or_404(a.id)).class_name is None


async def test_assign_to_unknown_class(db, make_student):
    student = await make_student()
    with pytest.raises(ClassNotFound):
        await ClassService(db).assign_students([student.id], "없는반")


async def test_category_preview_uses_active_enrollments(db, make_student, make_course):
    service = ClassService(db)
    await service.create_class({"name": "수학반"}, "admin")
    await service.create_class({"name": "영어반"}, "admin")
    student = await make_student()
    math = await make_course("미적분", category="수학")
    await EnrollmentService(db).submit_enrollments(student.id, [math.id])

    [proposal] = await service.preview_auto_assignment("category", [student.id])

    assert proposal["primary_category"] == "수학"
    assert proposal["class_name"] == "수학반"


async def test_execute_assignment_and_recalculate(db, make_student):
    service = ClassService(db)
    await service.create_class({"name": "1반"}, "admin")
    await service.create_class({"name": "2반"}, "admin")
    a = await make_student("가", "0001")
    b = await make_student("나", "0002")
    c = await make_student("다", "0003")

    plan = await service.preview_auto_assignment("balance", [a.id, b.id, c.id], ["1반", "2반"])
    assert await service.execute_assignment(plan) == 3

    assert await service.recalculate_student_counts() == {"1반": 2, "2반": 1}
    counts = {c.name: c.student_count for c in await service.list_classes()}
    assert counts == {"1반": 2, "2반": 1}
