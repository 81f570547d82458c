import logging
import uuid
from datetime import datetime
from typing import Annotated, Any, List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, model_validator
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitlink.auth import dependencies
from fitlink.core.responses import StandardResponse
from fitlink.database import get_db
from fitlink.models.enums import Difficulty
from fitlink.models.fitness import Workout, WorkoutExercise, WorkoutPlan
from fitlink.models.profiles import Coach
from fitlink.models.user import User
from fitlink.schemas import reject_nulls
from fitlink.services.audit_service import AuditService
from fitlink.services.plan_service import PlanService
from fitlink.services.profile_service import ProfileService

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Pydantic Models ---
class WorkoutExerciseCreate(BaseModel):
    exercise_id: uuid.UUID
    order_index: int = Field(default=0, ge=0)
    sets: int | None = Field(default=None, ge=1, le=100)
    reps: int | None = Field(default=None, ge=1, le=1000)
    weight: int | None = Field(default=None, ge=0)
    duration: int | None = Field(default=None, ge=1)
    rest_time: int | None = Field(default=None, ge=0)
    notes: str | None = Field(default=None, max_length=1000)


class WorkoutCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    week_number: int = Field(ge=1)
    day_number: int = Field(ge=1, le=7)
    estimated_duration: int | None = Field(default=None, ge=1, le=600)
    exercises: List[WorkoutExerciseCreate] = Field(default_factory=list)


class WorkoutPlanCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    client_id: uuid.UUID
    duration: int = Field(ge=1, le=52)
    is_active: bool = True
    workouts: List[WorkoutCreate] = Field(default_factory=list)


class WorkoutPlanUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    duration: int | None = Field(default=None, ge=1, le=52)
    is_active: bool | None = None

    @model_validator(mode="before")
    @classmethod
    def reject_required_nulls(cls, data: Any) -> Any:
        return reject_nulls(data, ("name", "duration", "is_active"))


class ExerciseSummary(BaseModel):
    id: uuid.UUID
    name: str
    category: str
    difficulty: Difficulty
    equipment: str | None = None

    class Config:
        from_attributes = True


class WorkoutExerciseResponse(BaseModel):
    id: uuid.UUID
    workout_id: uuid.UUID
    exercise_id: uuid.UUID
    order_index: int
    sets: int | None = None
    reps: int | None = None
    weight: int | None = None
    duration: int | None = None
    rest_time: int | None = None
    notes: str | None = None
    exercise: ExerciseSummary | None = None

    class Config:
        from_attributes = True


class WorkoutSummary(BaseModel):
    id: uuid.UUID
    plan_id: uuid.UUID
    name: str
    description: str | None = None
    week_number: int
    day_number: int
    estimated_duration: int | None = None
    is_completed: bool
    completed_at: datetime | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class WorkoutResponse(WorkoutSummary):
    exercises: List[WorkoutExerciseResponse] = Field(default_factory=list)


class WorkoutPlanResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    coach_id: uuid.UUID
    client_id: uuid.UUID
    duration: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
    total_workouts: int = 0
    completed_workouts: int = 0

    class Config:
        from_attributes = True


class WorkoutPlanDetailResponse(WorkoutPlanResponse):
    workouts: List[WorkoutResponse] = Field(default_factory=list)


# --- Helpers ---
async def build_workout_responses(db: AsyncSession, workouts: list[Workout]) -> list[WorkoutResponse]:
    """Attach ordered exercises to each workout without touching lazy relationships."""
    grouped = await PlanService.exercises_by_workout(db, [w.id for w in workouts])
    return [
        WorkoutResponse(
            **WorkoutSummary.model_validate(w).model_dump(),
            exercises=[WorkoutExerciseResponse.model_validate(item) for item in grouped.get(w.id, [])],
        )
        for w in workouts
    ]


async def build_plan_responses(db: AsyncSession, plans: list[WorkoutPlan]) -> list[WorkoutPlanResponse]:
    progress = await PlanService.progress_by_plan(db, [p.id for p in plans])
    responses = []
    for plan in plans:
        total, completed = progress.get(plan.id, (0, 0))
        responses.append(
            WorkoutPlanResponse.model_validate(plan).model_copy(
                update={"total_workouts": total, "completed_workouts": completed}
            )
        )
    return responses


async def build_plan_detail(db: AsyncSession, plan: WorkoutPlan) -> WorkoutPlanDetailResponse:
    workouts = await PlanService.list_workouts(db, plan.id)
    workout_items = await build_workout_responses(db, workouts)
    return WorkoutPlanDetailResponse(
        **WorkoutPlanResponse.model_validate(plan).model_dump(
            exclude={"total_workouts", "completed_workouts"}
        ),
        total_workouts=len(workouts),
        completed_workouts=sum(1 for w in workouts if w.is_completed),
        workouts=workout_items,
    )


def add_workout(db: AsyncSession, plan: WorkoutPlan, data: WorkoutCreate) -> Workout:
    workout = Workout(
        plan_id=plan.id,
        **data.model_dump(exclude={"exercises"}),
    )
    db.add(workout)
    return workout


def add_workout_exercises(db: AsyncSession, workout: Workout, items: List[WorkoutExerciseCreate]) -> None:
    for item in items:
        db.add(WorkoutExercise(workout_id=workout.id, **item.model_dump()))


# --- Endpoints ---

@router.post("", response_model=StandardResponse[WorkoutPlanDetailResponse])
async def create_workout_plan(
    data: WorkoutPlanCreate,
    current_user: Annotated[User, Depends(dependencies.get_current_coach)],
    coach: Annotated[Coach, Depends(dependencies.get_current_coach_record)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Create a plan for one of the coach's clients, optionally with its workouts."""
    client = await ProfileService.get_client_or_404(db, data.client_id)
    if client.coach_id != coach.id:
        raise HTTPException(status_code=403, detail="Client is not coached by you")

    for workout_in in data.workouts:
        if workout_in.week_number > data.duration:
            raise HTTPException(
                status_code=400,
                detail=f"week_number must be between 1 and {data.duration}",
            )
    exercise_ids = {item.exercise_id for w in data.workouts for item in w.exercises}
    await PlanService.ensure_exercises_usable(db, exercise_ids, current_user)

    plan = WorkoutPlan(
        coach_id=coach.id,
        client_id=client.id,
        **data.model_dump(exclude={"workouts", "client_id"}),
    )
    db.add(plan)
    await db.flush()

    for workout_in in data.workouts:
        workout = add_workout(db, plan, workout_in)
        await db.flush()
        add_workout_exercises(db, workout, workout_in.exercises)

    await AuditService.log_action(
        db,
        user_id=current_user.id,
        action="CREATE_WORKOUT_PLAN",
        target_id=str(plan.id),
        details=f"{plan.name} for client {client.id} ({len(data.workouts)} workouts)",
    )
    await db.commit()
    logger.info("Coach %s created workout plan %s for client %s", coach.id, plan.id, client.id)
    return StandardResponse(data=await build_plan_detail(db, plan), message="Workout plan created")


@router.get("/coach/{coach_id}", response_model=StandardResponse[List[WorkoutPlanResponse]])
async def list_plans_for_coach(
    coach_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    active_only: bool = Query(False),
):
    coach = await ProfileService.get_coach_or_404(db, coach_id)
    if coach.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Cannot view plans of another coach")
    stmt = select(WorkoutPlan).where(WorkoutPlan.coach_id == coach.id)
    if active_only:
        stmt = stmt.where(WorkoutPlan.is_active.is_(True))
    plans = (await db.execute(stmt.order_by(WorkoutPlan.created_at.desc()))).scalars().all()
    return StandardResponse(data=await build_plan_responses(db, list(plans)))


@router.get("/client/{client_id}", response_model=StandardResponse[List[WorkoutPlanResponse]])
async def list_plans_for_client(
    client_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    active_only: bool = Query(False),
):
    """Plans of a client, visible to the client and their current coach."""
    client = await ProfileService.get_client_or_404(db, client_id)
    if client.user_id != current_user.id:
        coach = await ProfileService.get_coach_by_user_id(db, current_user.id)
        if coach is None or client.coach_id != coach.id:
            raise HTTPException(status_code=403, detail="Cannot view plans of this client")
    stmt = select(WorkoutPlan).where(WorkoutPlan.client_id == client.id)
    if active_only:
        stmt = stmt.where(WorkoutPlan.is_active.is_(True))
    plans = (await db.execute(stmt.order_by(WorkoutPlan.created_at.desc()))).scalars().all()
    return StandardResponse(data=await build_plan_responses(db, list(plans)))


@router.get("/{plan_id}", response_model=StandardResponse[WorkoutPlanDetailResponse])
async def get_workout_plan(
    plan_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    plan = await PlanService.get_plan_or_404(db, plan_id)
    await PlanService.resolve_plan_role(db, plan, current_user)
    return StandardResponse(data=await build_plan_detail(db, plan))


@router.patch("/{plan_id}", response_model=StandardResponse[WorkoutPlanDetailResponse])
async def update_workout_plan(
    plan_id: uuid.UUID,
    data: WorkoutPlanUpdate,
    current_user: Annotated[User, Depends(dependencies.get_current_coach)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    plan = await PlanService.get_plan_or_404(db, plan_id)
    await PlanService.resolve_plan_role(db, plan, current_user)

    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("duration") is not None:
        max_week = (
            await db.execute(select(func.max(Workout.week_number)).where(Workout.plan_id == plan.id))
        ).scalar_one_or_none()
        if max_week is not None and max_week > update_data["duration"]:
            raise HTTPException(
                status_code=400,
                detail=f"Plan has workouts scheduled in week {max_week}; duration cannot be shorter",
            )

    for key, value in update_data.items():
        setattr(plan, key, value)

    await AuditService.log_action(
        db,
        user_id=current_user.id,
        action="UPDATE_WORKOUT_PLAN",
        target_id=str(plan.id),
        details=f"Updated plan fields: {', '.join(sorted(update_data)) or 'none'}",
    )
    await db.commit()
    await db.refresh(plan)
    return StandardResponse(data=await build_plan_detail(db, plan), message="Workout plan updated")


@router.post("/{plan_id}/workouts", response_model=StandardResponse[WorkoutResponse])
async def add_workout_to_plan(
    plan_id: uuid.UUID,
    data: WorkoutCreate,
    current_user: Annotated[User, Depends(dependencies.get_current_coach)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    plan = await PlanService.get_plan_or_404(db, plan_id)
    await PlanService.resolve_plan_role(db, plan, current_user)
    PlanService.ensure_week_day(plan, data.week_number, data.day_number)
    await PlanService.ensure_exercises_usable(db, {item.exercise_id for item in data.exercises}, current_user)

    workout = add_workout(db, plan, data)
    await db.flush()
    add_workout_exercises(db, workout, data.exercises)
    await AuditService.log_action(
        db,
        user_id=current_user.id,
        action="CREATE_WORKOUT",
        target_id=str(workout.id),
        details=f"{workout.name} (week {workout.week_number}, day {workout.day_number})",
    )
    await db.commit()
    responses = await build_workout_responses(db, [workout])
    return StandardResponse(data=responses[0], message="Workout added")
