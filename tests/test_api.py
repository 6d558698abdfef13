
from sqlalchemy import update

from academy.models.course import Course
from academy.services.student_service import StudentService

ADMIN_EMAIL = "root@academy.co.kr"
ADMIN_PASSWORD = "correct-horse-battery"


async def student_headers(client, name="김철수", phone="1234"):
    response = await client.post("/api/v1/auth/student/login", json={"name": name, "phone": phone})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_student_login_with_wrong_phone(client, make_student):
    await make_student()
    response = await client.post("/api/v1/auth/student/login", json={"name": "김철수", "phone": "9999"})

    assert response.status_code == 401
    assert response.json()["error"] == "AuthenticationError"


async def test_closed_student_cannot_log_in(client, db, make_student):
    student = await make_student()
    await StudentService(db).set_enrollment_status(student.id, False)

    response = await client.post("/api/v1/auth/student/login", json={"name": "김철수", "phone": "1234"})

    assert response.status_code == 403
    assert response.json()["error"] == "EnrollmentClosed"


async def test_submit_and_approve_over_http(client, admin_headers, make_student, make_course):
    course = await make_course(capacity=1)
    await make_student()
    headers = await student_headers(client)

    catalog = await client.get("/api/v1/student/courses", headers=headers)
    assert [c["id"] for c in catalog.json()] == [str(course.id)]

    submitted = await client.post("/api/v1/enrollments", json={"course_ids": [str(course.id)]}, headers=headers)
    body = submitted.json()
    assert submitted.status_code == 200
    assert (body["succeeded"], body["failed"]) == (1, 0)
    enrollment_id = body["results"][0]["enrollment_id"]

    approved = await client.post(f"/api/v1/admin/enrollments/{enrollment_id}/approve", headers=admin_headers)
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"

    unread = await client.get("/api/v1/notifications/unread-count", headers=headers)
    assert unread.json()["unread_count"] == 1

    mine = await client.get("/api/v1/enrollments/mine", headers=headers)
    assert [e["id"] for e in mine.json()] == [enrollment_id]


async def test_admin_routes_require_an_admin(client, make_student):
    await make_student()

    anonymous = await client.get("/api/v1/admin/students")
    assert anonymous.status_code == 401

    as_student = await client.get("/api/v1/admin/students", headers=await student_headers(client))
    assert as_student.status_code == 403


async def test_only_superadmin_invites_admins(client, admin_headers):
    invite = {"email": "staff@academy.co.kr", "password": "staff-password", "name": "Staff"}
    created = await client.post("/api/v1/auth/admins", json=invite, headers=admin_headers)
    assert created.status_code == 201
    assert created.json()["role"] == "admin"

    login = await client.post(
        "/api/v1/auth/admin/login", json={"email": invite["email"], "password": invite["password"]}
    )
    staff_headers = {"Authorization": f"Bearer {login.json()['access_token']}"}
    refused = await client.post(
        "/api/v1/auth/admins",
        json={"email": "other@academy.co.kr", "password": "other-password"},
        headers=staff_headers,
    )
    assert refused.status_code == 403


async def test_admin_login_with_wrong_password(client, superadmin):
    response = await client.post("/api/v1/auth/admin/login", json={"email": ADMIN_EMAIL, "password": "nope"})
    assert response.status_code == 401
    assert ADMIN_PASSWORD not in response.text


async def test_course_with_invalid_slot_is_rejected(client, admin_headers):
    response = await client.post("/api/v1/admin/courses", json={
        "title": "물리",
        "instructor": "정선생",
        "schedules": [{"day": "월", "start_period": 5, "end_period": 2}],
    }, headers=admin_headers)
    assert response.status_code == 422


async def test_logout_invalidates_token(client, make_student):
    await make_student()
    headers = await student_headers(client)

    assert (await client.post("/api/v1/auth/logout", headers=headers)).status_code == 200
    assert (await client.get("/api/v1/student/me", headers=headers)).status_code == 401


async def test_recalculate_reports_corrected_courses(client, db, admin_headers, make_course):
    drifted = await make_course("국어", capacity=5)
    await make_course("영어", capacity=5)
    await db.execute(update(Course).where(Course.id == drifted.id).values(enrolled=3))
    await db.commit()

    response = await client.post("/api/v1/admin/enrollments/recalculate", headers=admin_headers)

    body = response.json()
    assert response.status_code == 200
    assert body["corrected"] == 1
    assert body["courses"] == {str(drifted.id): {"before": 3, "after": 0}}
