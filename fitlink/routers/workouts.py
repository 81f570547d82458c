import logging
import uuid
from datetime import datetime, timezone
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from fitlink.auth import dependencies
from fitlink.core.responses import StandardResponse
from fitlink.database import get_db
from fitlink.models.fitness import WorkoutExercise
from fitlink.models.user import User
from fitlink.routers.exercises import get_visible_exercise_or_404
from fitlink.routers.workout_plans import (
    WorkoutExerciseCreate,
    WorkoutExerciseResponse,
    WorkoutResponse,
    build_workout_responses,
)
from fitlink.services.audit_service import AuditService
from fitlink.services.plan_service import PlanService

logger = logging.getLogger(__name__)

router = APIRouter()

COACH_FIELDS = {"name", "description", "week_number", "day_number", "estimated_duration"}


class WorkoutUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    week_number: int | None = Field(default=None, ge=1)
    day_number: int | None = Field(default=None, ge=1, le=7)
    estimated_duration: int | None = Field(default=None, ge=1, le=600)
    is_completed: bool | None = None


@router.get("/plan/{plan_id}", response_model=StandardResponse[List[WorkoutResponse]])
async def list_plan_workouts(
    plan_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Workouts of a plan ordered by week, then day."""
    plan = await PlanService.get_plan_or_404(db, plan_id)
    await PlanService.resolve_plan_role(db, plan, current_user)
    workouts = await PlanService.list_workouts(db, plan.id)
    return StandardResponse(data=await build_workout_responses(db, workouts))


@router.get("/{workout_id}", response_model=StandardResponse[WorkoutResponse])
async def get_workout(
    workout_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    workout = await PlanService.get_workout_or_404(db, workout_id)
    plan = await PlanService.get_plan_or_404(db, workout.plan_id)
    await PlanService.resolve_plan_role(db, plan, current_user)
    responses = await build_workout_responses(db, [workout])
    return StandardResponse(data=responses[0])


@router.patch("/{workout_id}", response_model=StandardResponse[WorkoutResponse])
async def update_workout(
    workout_id: uuid.UUID,
    data: WorkoutUpdate,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Clients may only mark completion; the plan's coach may edit everything."""
    workout = await PlanService.get_workout_or_404(db, workout_id)
    plan = await PlanService.get_plan_or_404(db, workout.plan_id)
    role = await PlanService.resolve_plan_role(db, plan, current_user)

    update_data = data.model_dump(exclude_unset=True)
    if role == "client" and set(update_data) & COACH_FIELDS:
        raise HTTPException(status_code=403, detail="Clients can only update workout completion")

    if "week_number" in update_data or "day_number" in update_data:
        PlanService.ensure_week_day(
            plan,
            update_data.get("week_number") or workout.week_number,
            update_data.get("day_number") or workout.day_number,
        )

    completed = update_data.pop("is_completed", None)
    for key, value in update_data.items():
        if value is not None:
            setattr(workout, key, value)

    if completed is not None and completed != workout.is_completed:
        workout.is_completed = completed
        workout.completed_at = datetime.now(timezone.utc) if completed else None
        logger.info("Workout %s marked %s by user %s", workout.id, "completed" if completed else "incomplete", current_user.id)

    await AuditService.log_action(
        db,
        user_id=current_user.id,
        action="COMPLETE_WORKOUT" if completed else "UPDATE_WORKOUT",
        target_id=str(workout.id),
        details=f"Updated workout fields: {', '.join(sorted(data.model_dump(exclude_unset=True))) or 'none'}",
    )
    await db.commit()
    await db.refresh(workout)
    responses = await build_workout_responses(db, [workout])
    return StandardResponse(data=responses[0], message="Workout updated")


@router.get("/{workout_id}/exercises", response_model=StandardResponse[List[WorkoutExerciseResponse]])
async def list_workout_exercises(
    workout_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    workout = await PlanService.get_workout_or_404(db, workout_id)
    plan = await PlanService.get_plan_or_404(db, workout.plan_id)
    await PlanService.resolve_plan_role(db, plan, current_user)
    grouped = await PlanService.exercises_by_workout(db, [workout.id])
    return StandardResponse(data=[WorkoutExerciseResponse.model_validate(i) for i in grouped.get(workout.id, [])])


@router.post("/{workout_id}/exercises", response_model=StandardResponse[WorkoutExerciseResponse])
async def add_workout_exercise(
    workout_id: uuid.UUID,
    data: WorkoutExerciseCreate,
    current_user: Annotated[User, Depends(dependencies.get_current_coach)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    workout = await PlanService.get_workout_or_404(db, workout_id)
    plan = await PlanService.get_plan_or_404(db, workout.plan_id)
    await PlanService.resolve_plan_role(db, plan, current_user)
    await get_visible_exercise_or_404(db, data.exercise_id, current_user)

    item = WorkoutExercise(workout_id=workout.id, **data.model_dump())
    db.add(item)
    await db.flush()
    await AuditService.log_action(
        db,
        user_id=current_user.id,
        action="ADD_WORKOUT_EXERCISE",
        target_id=str(item.id),
        details=f"Exercise {data.exercise_id} added to workout {workout.id}",
    )
    await db.commit()
    grouped = await PlanService.exercises_by_workout(db, [workout.id])
    created = next(i for i in grouped[workout.id] if i.id == item.id)
    return StandardResponse(data=WorkoutExerciseResponse.model_validate(created), message="Exercise added to workout")
