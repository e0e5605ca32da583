"""통계 API 테스트 — 학생/교사/관리자 대시보드, 강좌 및 플랫폼 분석.

Statistics API tests — Student, teacher and admin dashboards, course and
platform analytics.
"""

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from httpx import AsyncClient

from tests.conftest import TEST_PASSWORD, auth_header, create_user, make_token
from yggdrasil.services.statistics_service import build_achievements, build_learning_stats
from yggdrasil.utils.rounding import average, percentage, round_half_up

STATS = "/api/statistics"
COURSES = "/api/courses"


async def _course(client: AsyncClient, token: str, code: str, title: str, publish: bool = True) -> dict:
    res = await client.post(f"{COURSES}/", json={"code": code, "title": title, "capacity": 10},
                            headers=auth_header(token))
    assert res.status_code == 201, res.text
    course = res.json()["data"]
    if publish:
        await client.post(f"{COURSES}/{course['id']}/publish", headers=auth_header(token))
    return course


async def _study(client: AsyncClient, token: str, course_id: str, progress: int, minutes: int) -> None:
    res = await client.post(f"{COURSES}/{course_id}/enroll", headers=auth_header(token))
    assert res.status_code == 201, res.text
    res = await client.put(f"{COURSES}/{course_id}/progress", json={"progress": progress, "timeSpent": minutes},
                           headers=auth_header(token))
    assert res.status_code == 200, res.text


async def _classroom(client: AsyncClient, teacher_token: str, student_token: str, other_student_token: str) -> dict:
    """강좌 2개 — 게시 강좌에 학생 2명 (One published course with two students, one draft)."""
    course = await _course(client, teacher_token, "cs101", "Intro to Programming")
    await _course(client, teacher_token, "cs102", "Data Structures", publish=False)
    await _study(client, student_token, course["id"], 100, 200)
    await _study(client, other_student_token, course["id"], 40, 30)
    return course


class TestLearningStats:
    """학습 통계 계산 테스트."""

    def test_empty(self):
        stats = build_learning_stats([])
        assert stats.total_courses == 0
        assert stats.average_progress == 0
        assert stats.weekly_goal == 300
        assert build_achievements(stats) == []

    def test_caps(self):
        enrollments = [
            SimpleNamespace(status="active", progress=50, time_spent=1200),
            SimpleNamespace(status="completed", progress=100, time_spent=300),
        ]
        stats = build_learning_stats(enrollments)
        assert stats.total_time_spent == 1500
        assert stats.average_progress == 75
        assert stats.weekly_progress == 300
        assert stats.current_streak == 3
        assert [a.id for a in build_achievements(stats)] == ["first-course", "streak-3"]

    def test_halves_round_up(self):
        enrollments = [
            SimpleNamespace(status="active", progress=50, time_spent=15),
            SimpleNamespace(status="active", progress=51, time_spent=0),
        ]
        stats = build_learning_stats(enrollments)
        assert stats.weekly_progress == 5
        assert stats.average_progress == 51


class TestRounding:
    """반올림 유틸리티 테스트."""

    def test_round_half_up(self):
        assert [round_half_up(v) for v in (0.5, 1.5, 2.5, 2.49, 12.5)] == [1, 2, 3, 2, 13]

    def test_percentage(self):
        assert percentage(1, 8) == 13
        assert percentage(1, 3) == 33
        assert percentage(3, 0) == 0

    def test_average(self):
        assert average([50, 51]) == 51
        assert average([]) == 0


class TestStudentDashboard:
    """학생 대시보드 테스트."""

    async def test_own_dashboard(self, client: AsyncClient, student_user, teacher_token, student_token,
                                 other_student_token):
        await _classroom(client, teacher_token, student_token, other_student_token)
        res = await client.get(f"{STATS}/dashboard/student/{student_user.id}", headers=auth_header(student_token))
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["learningStats"] == {
            "totalCourses": 1,
            "activeCourses": 0,
            "completedCourses": 1,
            "totalTimeSpent": 200,
            "averageProgress": 100,
            "weeklyGoal": 300,
            "weeklyProgress": 60,
            "currentStreak": 3,
        }
        assert data["courseProgress"][0]["courseTitle"] == "Intro to Programming"
        assert data["courseProgress"][0]["instructorName"] == "Tess Teacher"
        assert {a["id"] for a in data["achievements"]} == {"first-course", "streak-3", "high-progress"}

    async def test_other_student_forbidden(self, client: AsyncClient, other_student, student_token):
        res = await client.get(f"{STATS}/dashboard/student/{other_student.id}", headers=auth_header(student_token))
        assert res.status_code == 403

    async def test_teacher_reads_student(self, client: AsyncClient, student_user, teacher_token):
        res = await client.get(f"{STATS}/dashboard/student/{student_user.id}", headers=auth_header(teacher_token))
        assert res.status_code == 200
        assert res.json()["data"]["learningStats"]["totalCourses"] == 0

    async def test_unknown_student(self, client: AsyncClient, admin_token):
        res = await client.get(f"{STATS}/dashboard/student/{uuid.uuid4()}", headers=auth_header(admin_token))
        assert res.status_code == 404


class TestTeacherDashboard:
    """교사 대시보드 테스트."""

    async def test_own_dashboard(self, client: AsyncClient, teacher_user, teacher_token, student_token,
                                 other_student_token):
        await _classroom(client, teacher_token, student_token, other_student_token)
        res = await client.get(f"{STATS}/dashboard/teacher/{teacher_user.id}", headers=auth_header(teacher_token))
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["courseStats"] == {
            "totalCourses": 2,
            "publishedCourses": 1,
            "totalStudents": 2,
            "averageProgress": 70,
        }
        by_title = {c["title"]: c for c in data["courseAnalytics"]}
        assert by_title["Intro to Programming"]["completionRate"] == 50
        assert by_title["Data Structures"]["enrolledStudents"] == 0
        assert by_title["Data Structures"]["completionRate"] == 0

    async def test_student_forbidden(self, client: AsyncClient, teacher_user, student_token):
        res = await client.get(f"{STATS}/dashboard/teacher/{teacher_user.id}", headers=auth_header(student_token))
        assert res.status_code == 403

    async def test_student_id_is_not_a_teacher(self, client: AsyncClient, student_user, admin_token):
        res = await client.get(f"{STATS}/dashboard/teacher/{student_user.id}", headers=auth_header(admin_token))
        assert res.status_code == 404
        assert res.json()["error"] == "Teacher not found"


class TestAdminDashboard:
    """관리자 대시보드 테스트."""

    async def test_dashboard(self, client: AsyncClient, admin_token, teacher_token, student_token,
                             other_student_token):
        await _classroom(client, teacher_token, student_token, other_student_token)
        login = await client.post("/api/auth/login", json={"email": "student@test.com", "password": TEST_PASSWORD})
        assert login.status_code == 200

        res = await client.get(f"{STATS}/dashboard/admin", headers=auth_header(admin_token))
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["platformStats"] == {
            "totalUsers": 4,
            "activeUsers": 1,
            "totalCourses": 2,
            "totalEnrollments": 2,
            "platformEngagement": 25,
        }
        assert data["userBreakdown"] == {"students": 2, "teachers": 1, "staff": 0, "admins": 1}
        popular = data["mostPopularCourses"]
        assert [(c["code"], c["enrollments"]) for c in popular] == [("CS101", 2), ("CS102", 0)]

    async def test_teacher_forbidden(self, client: AsyncClient, teacher_token):
        res = await client.get(f"{STATS}/dashboard/admin", headers=auth_header(teacher_token))
        assert res.status_code == 403


class TestAnalytics:
    """강좌 및 플랫폼 분석 테스트."""

    async def test_course_analytics(self, client: AsyncClient, teacher_token, student_token, other_student_token):
        course = await _classroom(client, teacher_token, student_token, other_student_token)
        res = await client.get(f"{STATS}/analytics/course/{course['id']}", headers=auth_header(teacher_token))
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["enrolledStudents"] == 2
        assert data["activeStudents"] == 1
        assert data["completedStudents"] == 1
        assert data["completionRate"] == 50
        assert data["averageProgress"] == 70
        assert data["averageTimeSpent"] == 115
        assert data["progressDistribution"] == {"0-25": 0, "26-50": 1, "51-75": 0, "76-100": 1}

    async def test_course_analytics_other_teacher(self, client: AsyncClient, db, teacher_token):
        course = await _course(client, teacher_token, "cs101", "Intro to Programming")
        colleague = await create_user(db, "teacher", "colleague@test.com", first_name="Cole")
        res = await client.get(f"{STATS}/analytics/course/{course['id']}",
                               headers=auth_header(make_token(colleague)))
        assert res.status_code == 403

    async def test_course_analytics_unknown(self, client: AsyncClient, admin_token):
        res = await client.get(f"{STATS}/analytics/course/{uuid.uuid4()}", headers=auth_header(admin_token))
        assert res.status_code == 404

    async def test_platform_analytics(self, client: AsyncClient, staff_token, teacher_token, student_token,
                                      other_student_token):
        await _classroom(client, teacher_token, student_token, other_student_token)
        await client.post("/api/news/articles/", json={
            "title": "Welcome", "content": "Term starts soon.", "isPublished": True,
        }, headers=auth_header(staff_token))
        start = datetime.now(timezone.utc) + timedelta(days=1)
        await client.post("/api/planning/events/", json={
            "title": "Orientation",
            "startDate": start.isoformat(),
            "endDate": (start + timedelta(hours=1)).isoformat(),
        }, headers=auth_header(staff_token))

        res = await client.get(f"{STATS}/analytics/platform", headers=auth_header(staff_token))
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["coursesByStatus"] == {"published": 1, "draft": 1}
        assert data["articlesPublished"] == 1
        assert data["upcomingEvents"] == 1
        assert data["userBreakdown"]["staff"] == 1
