"""통계 라우터 — 대시보드 및 분석 엔드포인트.

Statistics Router — Dashboard and analytics endpoints. Mounted at
/api/statistics.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from yggdrasil.api.deps import get_current_user, require_admin_or_staff
from yggdrasil.database import get_db
from yggdrasil.models.user import User
from yggdrasil.schemas.common import ApiResponse
from yggdrasil.schemas.statistics import AdminDashboard, CourseAnalytics, PlatformAnalytics, StudentDashboard, TeacherDashboard
from yggdrasil.services.statistics_service import statistics_service
from yggdrasil.utils.responses import success_response

router: APIRouter = APIRouter()


@router.get("/dashboard/student/{user_id}", response_model=ApiResponse[StudentDashboard])
async def student_dashboard(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    """학생 대시보드 — 본인, 교사, admin, staff (Self, teachers, admin and staff)."""
    return success_response(await statistics_service.student_dashboard(db, current_user, user_id))


@router.get("/dashboard/teacher/{user_id}", response_model=ApiResponse[TeacherDashboard])
async def teacher_dashboard(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    return success_response(await statistics_service.teacher_dashboard(db, current_user, user_id))


@router.get("/dashboard/admin", response_model=ApiResponse[AdminDashboard])
async def admin_dashboard(
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin_or_staff)],
) -> ApiResponse[Any]:
    return success_response(await statistics_service.admin_dashboard(db))


@router.get("/analytics/course/{course_id}", response_model=ApiResponse[CourseAnalytics])
async def course_analytics(
    course_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse[Any]:
    return success_response(await statistics_service.course_analytics(db, current_user, course_id))


@router.get("/analytics/platform", response_model=ApiResponse[PlatformAnalytics])
async def platform_analytics(
    db: Annotated[AsyncSession, Depends(get_db)],
    _: Annotated[User, Depends(require_admin_or_staff)],
) -> ApiResponse[Any]:
    return success_response(await statistics_service.platform_analytics(db))
