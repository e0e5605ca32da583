"""프로모션 API 테스트 — CRUD, 학생 배정, 학기 진급, 이벤트 연결.

Promotion API tests — CRUD, student assignment, semester progression
and event links.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from tests.conftest import auth_header
from yggdrasil.services.promotion_service import next_slot
from yggdrasil.utils.exceptions import BadRequestError

PROMOTIONS = "/api/planning/promotions"
EVENTS = "/api/planning/events"

START = datetime(2030, 9, 1, tzinfo=timezone.utc)


async def _create(client: AsyncClient, token: str, **overrides) -> dict:
    payload = {
        "name": "S1 September 2030",
        "semester": 1,
        "intake": "september",
        "academicYear": "2030-2031",
        "startDate": START.isoformat(),
        "endDate": (START + timedelta(days=120)).isoformat(),
        "status": "active",
        "maxStudents": 30,
    }
    payload.update(overrides)
    res = await client.post(f"{PROMOTIONS}/", json=payload, headers=auth_header(token))
    assert res.status_code == 201, res.text
    return res.json()["data"]


async def _add(client: AsyncClient, token: str, promotion_id: str, *student_ids):
    return await client.post(f"{PROMOTIONS}/{promotion_id}/students",
                             json={"studentIds": [str(s) for s in student_ids]},
                             headers=auth_header(token))


class TestNextSlot:
    """학기 진급 슬롯 계산 테스트."""

    def test_september_to_march_same_year(self):
        assert next_slot(1, "september", "2024-2025") == (2, "march", "2024-2025")

    def test_march_to_september_advances_year(self):
        assert next_slot(2, "march", "2024-2025") == (3, "september", "2025-2026")

    def test_final_semester(self):
        with pytest.raises(BadRequestError):
            next_slot(10, "march", "2028-2029")


class TestPromotionCrud:
    """프로모션 CRUD 테스트."""

    async def test_create(self, client: AsyncClient, staff_user, staff_token):
        promotion = await _create(client, staff_token)
        assert promotion["semester"] == 1
        assert promotion["studentIds"] == []
        assert promotion["studentCount"] == 0
        assert promotion["createdBy"] == str(staff_user.id)

    async def test_create_invalid_year(self, client: AsyncClient, staff_token):
        res = await client.post(f"{PROMOTIONS}/", json={
            "name": "Bad", "semester": 1, "intake": "september", "academicYear": "2030",
            "startDate": START.isoformat(), "endDate": (START + timedelta(days=1)).isoformat(),
        }, headers=auth_header(staff_token))
        assert res.status_code == 400

    async def test_create_semester_out_of_range(self, client: AsyncClient, staff_token):
        res = await client.post(f"{PROMOTIONS}/", json={
            "name": "Bad", "semester": 11, "intake": "september", "academicYear": "2030-2031",
            "startDate": START.isoformat(), "endDate": (START + timedelta(days=1)).isoformat(),
        }, headers=auth_header(staff_token))
        assert res.status_code == 400

    async def test_create_end_before_start(self, client: AsyncClient, staff_token):
        res = await client.post(f"{PROMOTIONS}/", json={
            "name": "Bad", "semester": 1, "intake": "september", "academicYear": "2030-2031",
            "startDate": START.isoformat(), "endDate": (START - timedelta(days=1)).isoformat(),
        }, headers=auth_header(staff_token))
        assert res.status_code == 400

    async def test_teacher_cannot_create(self, client: AsyncClient, teacher_token):
        res = await client.post(f"{PROMOTIONS}/", json={
            "name": "S1", "semester": 1, "intake": "september", "academicYear": "2030-2031",
            "startDate": START.isoformat(), "endDate": (START + timedelta(days=1)).isoformat(),
        }, headers=auth_header(teacher_token))
        assert res.status_code == 403

    async def test_list_filters(self, client: AsyncClient, staff_token, teacher_token):
        await _create(client, staff_token)
        await _create(client, staff_token, name="S2 March", semester=2, intake="march")

        res = await client.get(f"{PROMOTIONS}/", params={"semester": 2}, headers=auth_header(teacher_token))
        assert res.status_code == 200
        assert [p["name"] for p in res.json()["data"]] == ["S2 March"]

        res = await client.get(f"{PROMOTIONS}/", params={"academicYear": "2030-2031"},
                               headers=auth_header(teacher_token))
        assert len(res.json()["data"]) == 2

    async def test_detail_includes_students(self, client: AsyncClient, staff_token, student_user):
        promotion = await _create(client, staff_token)
        await _add(client, staff_token, promotion["id"], student_user.id)
        res = await client.get(f"{PROMOTIONS}/{promotion['id']}", headers=auth_header(staff_token))
        assert res.status_code == 200
        students = res.json()["data"]["students"]
        assert [s["fullName"] for s in students] == ["Stu Student"]

    async def test_update_capacity_below_members(self, client: AsyncClient, staff_token, student_user, other_student):
        promotion = await _create(client, staff_token)
        await _add(client, staff_token, promotion["id"], student_user.id, other_student.id)
        res = await client.put(f"{PROMOTIONS}/{promotion['id']}", json={"maxStudents": 1},
                               headers=auth_header(staff_token))
        assert res.status_code == 400

        res = await client.put(f"{PROMOTIONS}/{promotion['id']}", json={"name": "Renamed"},
                               headers=auth_header(staff_token))
        assert res.status_code == 200
        assert res.json()["data"]["name"] == "Renamed"

    async def test_delete_with_students_rejected(self, client: AsyncClient, staff_token, student_user):
        promotion = await _create(client, staff_token)
        await _add(client, staff_token, promotion["id"], student_user.id)
        res = await client.delete(f"{PROMOTIONS}/{promotion['id']}", headers=auth_header(staff_token))
        assert res.status_code == 400

    async def test_delete_empty(self, client: AsyncClient, staff_token):
        promotion = await _create(client, staff_token)
        res = await client.delete(f"{PROMOTIONS}/{promotion['id']}", headers=auth_header(staff_token))
        assert res.status_code == 200
        res = await client.get(f"{PROMOTIONS}/{promotion['id']}", headers=auth_header(staff_token))
        assert res.status_code == 404


class TestStudentAssignment:
    """학생 배정 테스트."""

    async def test_add_students(self, client: AsyncClient, staff_token, student_user, other_student):
        promotion = await _create(client, staff_token)
        res = await _add(client, staff_token, promotion["id"], student_user.id, other_student.id, student_user.id)
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["studentCount"] == 2
        assert set(data["studentIds"]) == {str(student_user.id), str(other_student.id)}

    async def test_non_student_rejected(self, client: AsyncClient, staff_token, teacher_user):
        promotion = await _create(client, staff_token)
        missing = uuid.uuid4()
        res = await _add(client, staff_token, promotion["id"], teacher_user.id, missing)
        assert res.status_code == 400
        body = res.json()
        assert body["error"] == "Some users do not exist or are not students"
        assert set(body["details"]["invalidIds"]) == {str(teacher_user.id), str(missing)}

    async def test_student_in_other_promotion(self, client: AsyncClient, staff_token, student_user):
        first = await _create(client, staff_token)
        second = await _create(client, staff_token, name="Other S1")
        await _add(client, staff_token, first["id"], student_user.id)
        res = await _add(client, staff_token, second["id"], student_user.id)
        assert res.status_code == 409
        assert "Stu Student" in res.json()["error"]

    async def test_capacity_exceeded(self, client: AsyncClient, staff_token, student_user, other_student):
        promotion = await _create(client, staff_token, maxStudents=1)
        res = await _add(client, staff_token, promotion["id"], student_user.id, other_student.id)
        assert res.status_code == 400
        assert "capacity" in res.json()["error"]

    async def test_already_member(self, client: AsyncClient, staff_token, student_user):
        promotion = await _create(client, staff_token)
        await _add(client, staff_token, promotion["id"], student_user.id)
        res = await _add(client, staff_token, promotion["id"], student_user.id)
        assert res.status_code == 409
        assert res.json()["error"] == "Student already in this promotion"

    async def test_remove_student(self, client: AsyncClient, staff_token, student_user):
        promotion = await _create(client, staff_token)
        await _add(client, staff_token, promotion["id"], student_user.id)
        res = await client.delete(f"{PROMOTIONS}/{promotion['id']}/students/{student_user.id}",
                                  headers=auth_header(staff_token))
        assert res.status_code == 200
        assert res.json()["data"]["studentCount"] == 0

        res = await client.delete(f"{PROMOTIONS}/{promotion['id']}/students/{student_user.id}",
                                  headers=auth_header(staff_token))
        assert res.status_code == 404


class TestProgression:
    """학기 진급 테스트."""

    async def test_progress_to_next_semester(self, client: AsyncClient, staff_token, student_user):
        s1 = await _create(client, staff_token)
        s2 = await _create(client, staff_token, name="S2 March 2031", semester=2, intake="march")
        await _add(client, staff_token, s1["id"], student_user.id)

        res = await client.post(f"{PROMOTIONS}/{s1['id']}/students/{student_user.id}/progress",
                                headers=auth_header(staff_token))
        assert res.status_code == 200
        assert res.json()["data"]["id"] == s2["id"]
        assert res.json()["data"]["studentIds"] == [str(student_user.id)]

        res = await client.get(f"{PROMOTIONS}/{s1['id']}", headers=auth_header(staff_token))
        assert res.json()["data"]["studentCount"] == 0

    async def test_progress_without_target(self, client: AsyncClient, staff_token, student_user):
        s1 = await _create(client, staff_token)
        await _add(client, staff_token, s1["id"], student_user.id)
        res = await client.post(f"{PROMOTIONS}/{s1['id']}/students/{student_user.id}/progress",
                                headers=auth_header(staff_token))
        assert res.status_code == 404
        assert res.json()["error"] == "No promotion found for semester 2 (march 2030-2031)"

    async def test_progress_final_semester(self, client: AsyncClient, staff_token, student_user):
        s10 = await _create(client, staff_token, name="S10", semester=10, intake="march")
        await _add(client, staff_token, s10["id"], student_user.id)
        res = await client.post(f"{PROMOTIONS}/{s10['id']}/students/{student_user.id}/progress",
                                headers=auth_header(staff_token))
        assert res.status_code == 400

    async def test_progress_into_full_target_changes_nothing(
        self, client: AsyncClient, staff_token, student_user, other_student,
    ):
        s1 = await _create(client, staff_token)
        s2 = await _create(client, staff_token, name="S2 March 2031", semester=2, intake="march", maxStudents=1)
        await _add(client, staff_token, s1["id"], student_user.id)
        await _add(client, staff_token, s2["id"], other_student.id)

        res = await client.post(f"{PROMOTIONS}/{s1['id']}/students/{student_user.id}/progress",
                                headers=auth_header(staff_token))
        assert res.status_code == 400
        assert res.json()["error"] == "Promotion capacity exceeded (max 1 students)"
        res = await client.get(f"{PROMOTIONS}/{s1['id']}", headers=auth_header(staff_token))
        assert res.json()["data"]["studentIds"] == [str(student_user.id)]

    async def test_progress_non_member(self, client: AsyncClient, staff_token, student_user):
        s1 = await _create(client, staff_token)
        res = await client.post(f"{PROMOTIONS}/{s1['id']}/students/{student_user.id}/progress",
                                headers=auth_header(staff_token))
        assert res.status_code == 404


class TestEventLinks:
    """이벤트 연결 및 학생 본인 프로모션 테스트."""

    async def _event(self, client: AsyncClient, token: str, days: int = 3) -> dict:
        start = datetime.now(timezone.utc) + timedelta(days=days)
        res = await client.post(f"{EVENTS}/", json={
            "title": f"Lecture in {days} days",
            "type": "class",
            "startDate": start.isoformat(),
            "endDate": (start + timedelta(hours=2)).isoformat(),
        }, headers=auth_header(token))
        assert res.status_code == 201, res.text
        return res.json()["data"]

    async def test_link_and_unlink(self, client: AsyncClient, staff_token):
        promotion = await _create(client, staff_token)
        event = await self._event(client, staff_token)

        res = await client.post(f"{PROMOTIONS}/{promotion['id']}/events", json={"eventIds": [event["id"]]},
                                headers=auth_header(staff_token))
        assert res.status_code == 200
        assert res.json()["data"]["eventIds"] == [event["id"]]

        res = await client.post(f"{PROMOTIONS}/{promotion['id']}/events", json={"eventIds": [event["id"]]},
                                headers=auth_header(staff_token))
        assert res.status_code == 409

        res = await client.delete(f"{PROMOTIONS}/{promotion['id']}/events/{event['id']}",
                                  headers=auth_header(staff_token))
        assert res.status_code == 200
        assert res.json()["data"]["eventIds"] == []

    async def test_link_unknown_event(self, client: AsyncClient, staff_token):
        promotion = await _create(client, staff_token)
        res = await client.post(f"{PROMOTIONS}/{promotion['id']}/events", json={"eventIds": [str(uuid.uuid4())]},
                                headers=auth_header(staff_token))
        assert res.status_code == 400
        assert "invalidIds" in res.json()["details"]

    async def test_my_promotion(self, client: AsyncClient, staff_token, student_user, student_token):
        promotion = await _create(client, staff_token)
        await _add(client, staff_token, promotion["id"], student_user.id)
        later = await self._event(client, staff_token, days=5)
        sooner = await self._event(client, staff_token, days=2)
        await client.post(f"{PROMOTIONS}/{promotion['id']}/events",
                          json={"eventIds": [later["id"], sooner["id"]]}, headers=auth_header(staff_token))

        res = await client.get(f"{PROMOTIONS}/my", headers=auth_header(student_token))
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["promotion"]["id"] == promotion["id"]
        assert [e["id"] for e in data["upcomingEvents"]] == [sooner["id"], later["id"]]

    async def test_my_promotion_none(self, client: AsyncClient, student_token):
        res = await client.get(f"{PROMOTIONS}/my", headers=auth_header(student_token))
        assert res.status_code == 200
        assert res.json()["data"]["promotion"] is None

    async def test_my_promotion_students_only(self, client: AsyncClient, teacher_token):
        res = await client.get(f"{PROMOTIONS}/my", headers=auth_header(teacher_token))
        assert res.status_code == 403
