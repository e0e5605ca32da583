"""학기 검증 서비스 — 학생 평가, 검증 결정, 검증된 학생 일괄 진급.

Validation Service — Evaluates students against semester criteria,
records validation decisions and moves validated students on.

Scoring (0..100):
    - 진도 40점: 평균 진도 / 최소 진도 비율, 최대 40 (Progress: up to 40 points)
    - 출석 30점: 출석률 / 최소 출석률 비율, 최대 30 (Attendance: up to 30 points)
    - 이수 30점: 필요 강좌 수 이상 이수 시 (Completion: 30 points when enough courses are completed)

Recommendation:
    - 모든 기준 통과 → approve (All checks pass, which always scores 100)
    - 기준 미달, 60점 이상 → conditional (Close to the criteria)
    - 그 외 → retake
"""

import logging
from datetime import datetime, timezone
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.models.planning import Promotion, StudentValidation
from yggdrasil.models.user import ROLE_STUDENT, User
from yggdrasil.repositories.course_repository import course_repository
from yggdrasil.repositories.promotion_repository import OPEN_STATUSES, promotion_repository
from yggdrasil.repositories.user_repository import user_repository
from yggdrasil.repositories.validation_repository import validation_repository
from yggdrasil.schemas.planning import (
    BulkValidateRequest,
    BulkValidationResult,
    BulkValidationSummary,
    CriterionCheck,
    PendingValidation,
    Progression,
    ProgressionRun,
    ValidationCriteria,
    ValidationFailure,
    ValidationResult,
)
from yggdrasil.services.promotion_service import promotion_service
from yggdrasil.utils.exceptions import BadRequestError, DuplicateError, NotFoundError
from yggdrasil.utils.rounding import average, percentage, round_half_up

logger = logging.getLogger(__name__)

PROGRESS_POINTS = 40
ATTENDANCE_POINTS = 30
COMPLETION_POINTS = 30
NEAR_MISS_SCORE = 60

# 결정 → 저장 상태 — Decision to stored status
DECISION_STATUS: dict[str, str] = {"approve": "validated", "reject": "failed", "conditional": "conditional"}

# 개별 학생 실패로 기록하고 다음 학생으로 진행 — Recorded per student; the batch carries on
StudentError = (NotFoundError, BadRequestError, DuplicateError)


def check(actual: int, required: int) -> CriterionCheck:
    return CriterionCheck(passed=actual >= required, required=required, actual=actual, difference=actual - required)


def _points(actual: int, required: int, weight: int) -> float:
    # 기준이 0이면 만점 — A zero threshold always earns the full weight
    if required <= 0:
        return weight
    return min(actual / required * weight, weight)


def score(progress: CriterionCheck, attendance: CriterionCheck, completion: CriterionCheck) -> int:
    """평가 점수 0..100 (Overall score out of 100)."""
    return round_half_up(
        _points(progress.actual, progress.required, PROGRESS_POINTS)
        + _points(attendance.actual, attendance.required, ATTENDANCE_POINTS)
        + (COMPLETION_POINTS if completion.passed else 0)
    )


def recommend(
    progress: CriterionCheck,
    attendance: CriterionCheck,
    completion: CriterionCheck,
    overall: int,
) -> tuple[str, str]:
    """추천과 사유 (Recommendation and the reason shown to staff)."""
    failed: list[str] = [
        label
        for label, result in (
            ("progress requirements", progress),
            ("attendance requirements", attendance),
            ("course completion requirements", completion),
        )
        if not result.passed
    ]
    if not failed:
        return "approve", "Student meets all criteria"
    if overall >= NEAR_MISS_SCORE:
        return "conditional", f"Close to meeting criteria. Failed: {', '.join(failed)}"
    return "retake", f"Does not meet criteria. Failed: {', '.join(failed)}"


class ValidationService:
    """학기 검증 서비스 (Semester validation service)."""

    async def _student_and_promotion(self, db: AsyncSession, student_id: UUID) -> tuple[User, Promotion]:
        student: User | None = await user_repository.get_by_id(db, student_id)
        if student is None or student.role != ROLE_STUDENT:
            raise NotFoundError("Student not found")
        promotion: Promotion | None = await promotion_repository.get_for_student(db, student.id)
        if promotion is None or promotion.status not in OPEN_STATUSES:
            raise BadRequestError(f"{student.full_name} is not in an open promotion")
        return student, promotion

    async def evaluate(self, db: AsyncSession, student_id: UUID, criteria: ValidationCriteria) -> ValidationResult:
        """학생 한 명 평가 — 저장하지 않음.

        Evaluate one student against ``criteria`` without recording a
        decision. Progress is the mean progress of the student's current
        enrollments; attendance is measured over the promotion's events
        that have already ended and counts as 100% while there are none.

        Raises:
            NotFoundError: 학생 없음 (Unknown id or not a student)
            BadRequestError: 진행 중 프로모션 없음 (No open promotion)
        """
        student, promotion = await self._student_and_promotion(db, student_id)

        enrollments = await course_repository.get_student_enrollments(db, student.id)
        mean_progress: int = average([enrollment.progress for enrollment, _ in enrollments])
        completed: int = sum(1 for enrollment, _ in enrollments if enrollment.status == "completed")

        past, attended = await validation_repository.attendance(
            db, promotion.id, student.id, datetime.now(timezone.utc)
        )
        attendance_rate: int = percentage(attended, past) if past else 100

        progress_check = check(mean_progress, criteria.min_progress)
        attendance_check = check(attendance_rate, criteria.min_attendance)
        completion_check = check(completed, criteria.courses_required)
        overall: int = score(progress_check, attendance_check, completion_check)
        recommendation, reason = recommend(progress_check, attendance_check, completion_check, overall)

        return ValidationResult(
            student_id=student.id,
            student_name=student.full_name,
            promotion_id=promotion.id,
            semester=promotion.semester,
            can_progress=progress_check.passed and attendance_check.passed and completion_check.passed,
            overall_score=overall,
            progress_check=progress_check,
            attendance_check=attendance_check,
            completion_check=completion_check,
            recommendation=recommendation,
            reason=reason,
        )

    async def evaluate_many(
        self,
        db: AsyncSession,
        student_ids: Sequence[UUID],
        criteria: ValidationCriteria,
    ) -> BulkValidationResult:
        """여러 학생 평가 — 요약은 추천 기준 (Summary counts recommendations)."""
        outcome = BulkValidationResult(summary=BulkValidationSummary(total=0))
        for student_id in dict.fromkeys(student_ids):
            outcome.summary.total += 1
            try:
                result: ValidationResult = await self.evaluate(db, student_id, criteria)
            except StudentError as exc:
                outcome.failed.append(ValidationFailure(student_id=student_id, error=exc.detail))
                outcome.summary.errors += 1
                continue
            outcome.successful.append(result)
            if result.recommendation == "approve":
                outcome.summary.approved += 1
            elif result.recommendation == "retake":
                outcome.summary.rejected += 1
            else:
                outcome.summary.conditional += 1
        return outcome

    async def pending(self, db: AsyncSession, promotion_id: UUID | None = None) -> list[PendingValidation]:
        rows = await validation_repository.pending(db, promotion_id)
        return [
            PendingValidation(
                student_id=student.id,
                student_name=student.full_name,
                email=student.email,
                promotion_id=promotion.id,
                promotion_name=promotion.name,
                semester=promotion.semester,
            )
            for student, promotion in rows
        ]

    async def bulk_validate(self, db: AsyncSession, validator: User, data: BulkValidateRequest) -> BulkValidationResult:
        """여러 학생에 같은 결정 적용.

        Evaluate each student and record ``data.decision`` for their
        current promotion. The stored reason is the caller's reason, or
        the evaluation's when none is given. Students that cannot be
        evaluated are listed in ``failed``; the others are still recorded.
        """
        status: str = DECISION_STATUS[data.decision]
        outcome = BulkValidationResult(summary=BulkValidationSummary(total=0))
        for student_id in dict.fromkeys(data.student_ids):
            outcome.summary.total += 1
            try:
                result: ValidationResult = await self.evaluate(db, student_id, data.criteria)
            except StudentError as exc:
                outcome.failed.append(ValidationFailure(student_id=student_id, error=exc.detail))
                outcome.summary.errors += 1
                continue

            decision: StudentValidation = await validation_repository.record(db, result.promotion_id, student_id, {
                "semester": result.semester,
                "status": status,
                "overall_score": result.overall_score,
                "reason": data.reason or result.reason,
                "notes": data.notes,
                "validated_by": validator.id,
                "validated_at": datetime.now(timezone.utc),
            })
            outcome.successful.append(result.model_copy(update={"reason": decision.reason}))
            if status == "validated":
                outcome.summary.approved += 1
            elif status == "failed":
                outcome.summary.rejected += 1
            else:
                outcome.summary.conditional += 1

        logger.info(
            "%s recorded %s for %d students (%d errors)",
            validator.email, status, len(outcome.successful), outcome.summary.errors,
        )
        return outcome

    async def progress_validated(self, db: AsyncSession) -> ProgressionRun:
        """검증된 학생 일괄 진급.

        Move every validated student who is still in the promotion the
        decision was made for to the next semester's promotion. Failed and
        conditional students stay where they are. A student whose move is
        refused (final semester, no target, target full) is reported and
        left in place.
        """
        run = ProgressionRun(students_progressed=0)
        for promotion_id, student_id in await validation_repository.validated_members(db):
            try:
                target = await promotion_service.progress_student(db, promotion_id, student_id)
            except StudentError as exc:
                run.failed.append(ValidationFailure(student_id=student_id, error=exc.detail))
                continue
            run.progressions.append(Progression(
                student_id=student_id,
                from_promotion_id=promotion_id,
                to_promotion_id=target.id,
                to_semester=target.semester,
            ))
        run.students_progressed = len(run.progressions)
        logger.info("Progressed %d validated students (%d refused)", run.students_progressed, len(run.failed))
        return run


# 싱글턴 인스턴스 — Singleton instance
validation_service: ValidationService = ValidationService()
