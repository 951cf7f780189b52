"""Admin problem editor endpoints - /api/v1/admin/problems/*.

Every route requires an admin session; anyone else gets 401.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from tilt.admin.schemas import DeleteResponse, ProblemEnvelope, ProblemListResponse, ProblemWriteRequest
from tilt.admin.service import (
    create_problem,
    delete_problem,
    get_problem,
    list_problems,
    patch_problem,
    replace_problem,
    to_response,
    toggle_published,
)
from tilt.auth.dependencies import require_admin
from tilt.config import get_settings
from tilt.database import get_session
from tilt.db.models import Problem, Profile

router = APIRouter(prefix="/api/v1/admin/problems", tags=["Admin"])


def _found(problem: Problem | None) -> ProblemEnvelope:
    if problem is None:
        raise HTTPException(status_code=404, detail="Problem not found")
    return ProblemEnvelope(problem=to_response(problem))


@router.get("", response_model=ProblemListResponse)
async def list_endpoint(
    _admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> ProblemListResponse:
    """Most recently created problems, published or not."""
    problems = await list_problems(db, limit=get_settings().admin_list_limit)
    return ProblemListResponse(problems=[to_response(p) for p in problems])


@router.post("", response_model=ProblemEnvelope, status_code=201)
async def create_endpoint(
    body: ProblemWriteRequest,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> ProblemEnvelope:
    """Create a problem."""
    try:
        problem = await create_problem(db, body, admin.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return _found(problem)


@router.get("/{problem_id}", response_model=ProblemEnvelope)
async def get_endpoint(
    problem_id: str,
    _admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> ProblemEnvelope:
    """Get one problem for editing."""
    return _found(await get_problem(db, problem_id))


@router.put("/{problem_id}", response_model=ProblemEnvelope)
async def replace_endpoint(
    problem_id: str,
    body: ProblemWriteRequest,
    _admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> ProblemEnvelope:
    """Replace all editable fields."""
    try:
        problem = await replace_problem(db, problem_id, body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    envelope = _found(problem)
    await db.commit()
    return envelope


@router.patch("/{problem_id}", response_model=ProblemEnvelope)
async def patch_endpoint(
    problem_id: str,
    body: ProblemWriteRequest,
    _admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> ProblemEnvelope:
    """Update only the editable fields present in the body."""
    try:
        problem = await patch_problem(db, problem_id, body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    envelope = _found(problem)
    await db.commit()
    return envelope


@router.post("/{problem_id}/publish", response_model=ProblemEnvelope)
async def toggle_publish_endpoint(
    problem_id: str,
    _admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> ProblemEnvelope:
    """Flip the publish flag."""
    envelope = _found(await toggle_published(db, problem_id))
    await db.commit()
    return envelope


@router.delete("/{problem_id}", response_model=DeleteResponse)
async def delete_endpoint(
    problem_id: str,
    _admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> DeleteResponse:
    """Delete a problem and, by cascade, its interactions."""
    if not await delete_problem(db, problem_id):
        raise HTTPException(status_code=404, detail="Problem not found")
    await db.commit()
    return DeleteResponse(success=True)
