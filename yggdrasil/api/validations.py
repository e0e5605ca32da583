"""학기 검증 라우터 — 학생 평가, 대기 목록, 일괄 결정, 검증된 학생 진급.

Validation Router — Student evaluation, pending list, bulk decisions and
progression of validated students. Mounted at /api/planning/validations.

Permissions:
    - 전체: admin, staff (All routes: admin and staff)
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.api.deps import require_admin_or_staff
from yggdrasil.database import get_db
from yggdrasil.models.user import User
from yggdrasil.schemas.common import ApiResponse
from yggdrasil.schemas.planning import (
    BatchEvaluateRequest,
    BulkValidateRequest,
    BulkValidationResult,
    EvaluateRequest,
    PendingValidation,
    ProgressionRun,
    ValidationResult,
)
from yggdrasil.services.validation_service import validation_service
from yggdrasil.utils.responses import success_response

router: APIRouter = APIRouter(prefix="/validations")


@router.get("/pending", response_model=ApiResponse[list[PendingValidation]])
async def pending_validations(
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin_or_staff)],
    promotion_id: Annotated[UUID | None, Query(alias="promotionId")] = None,
) -> ApiResponse[Any]:
    """결정이 없는 학생 — 학기, 프로모션, 이름 순 (Undecided students by semester, promotion, name)."""
    return success_response(await validation_service.pending(db, promotion_id))


@router.post("/evaluate", response_model=ApiResponse[BulkValidationResult])
async def evaluate_students(
    data: BatchEvaluateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin_or_staff)],
) -> ApiResponse[Any]:
    result: BulkValidationResult = await validation_service.evaluate_many(db, data.student_ids, data.criteria)
    return success_response(result, f"Evaluated {len(result.successful)} students")


@router.post("/evaluate/{student_id}", response_model=ApiResponse[ValidationResult])
async def evaluate_student(
    student_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin_or_staff)],
    data: Annotated[EvaluateRequest | None, Body()] = None,
) -> ApiResponse[Any]:
    """학생 한 명 평가 — 본문 생략 시 기본 기준 (Default criteria when the body is omitted)."""
    criteria = (data or EvaluateRequest()).criteria
    return success_response(await validation_service.evaluate(db, student_id, criteria))


@router.post("/bulk", response_model=ApiResponse[BulkValidationResult])
async def bulk_validate(
    data: BulkValidateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> ApiResponse[Any]:
    result: BulkValidationResult = await validation_service.bulk_validate(db, current_user, data)
    await db.commit()
    return success_response(result, f"Recorded {len(result.successful)} validation decisions")


@router.post("/process", response_model=ApiResponse[ProgressionRun])
async def process_progressions(
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin_or_staff)],
) -> ApiResponse[Any]:
    """검증된 학생만 다음 학기로 진급 (Only validated students move on)."""
    result: ProgressionRun = await validation_service.progress_validated(db)
    await db.commit()
    return success_response(result, f"Progressed {result.students_progressed} students")
