import uuid
from datetime import datetime
from typing import Annotated, Any, List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import AnyHttpUrl, BaseModel, Field, field_validator, model_validator
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitlink.auth import dependencies
from fitlink.core.responses import StandardResponse
from fitlink.database import get_db
from fitlink.models.enums import Difficulty, ExerciseCategory
from fitlink.models.fitness import Exercise, WorkoutExercise
from fitlink.models.user import User
from fitlink.schemas import reject_nulls

router = APIRouter()


def _normalize_muscle_groups(value: List[str] | None) -> List[str] | None:
    if value is None:
        return None
    seen: list[str] = []
    for item in value:
        normalized = item.strip().lower()
        if normalized and normalized not in seen:
            seen.append(normalized)
    return seen


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip().lower() for part in value.split(",") if part.strip()]


def _visible_to(user: User):
    return or_(Exercise.is_public.is_(True), Exercise.created_by == user.id)


def _apply_filters(
    stmt,
    *,
    category: ExerciseCategory | None,
    difficulty: Difficulty | None,
    equipment: str | None,
    q: str | None,
):
    if category:
        stmt = stmt.where(Exercise.category == category.value)
    if difficulty:
        stmt = stmt.where(Exercise.difficulty == difficulty)
    if equipment:
        stmt = stmt.where(func.lower(Exercise.equipment) == equipment.strip().lower())
    if q:
        stmt = stmt.where(Exercise.name.ilike(f"%{q.strip()}%"))
    return stmt


def _matches_muscle_groups(exercise: Exercise, wanted: list[str]) -> bool:
    if not wanted:
        return True
    groups = {g.lower() for g in (exercise.muscle_groups or [])}
    return any(group in groups for group in wanted)


async def get_visible_exercise_or_404(db: AsyncSession, exercise_id: uuid.UUID, user: User) -> Exercise:
    exercise = (await db.execute(select(Exercise).where(Exercise.id == exercise_id))).scalar_one_or_none()
    if not exercise or not (exercise.is_public or exercise.created_by == user.id):
        raise HTTPException(status_code=404, detail="Exercise not found")
    return exercise


def _ensure_creator(exercise: Exercise, user: User, *, action: str) -> None:
    if exercise.created_by != user.id:
        raise HTTPException(status_code=403, detail=f"Cannot {action} exercise created by another user")


# --- Pydantic Models ---
class ExerciseCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    category: ExerciseCategory
    muscle_groups: List[str] = Field(default_factory=list)
    equipment: str | None = None
    difficulty: Difficulty
    instructions: str | None = None
    video_url: AnyHttpUrl | None = None
    image_url: AnyHttpUrl | None = None
    duration: int | None = Field(default=None, ge=1, le=600)
    is_public: bool = True

    @field_validator("muscle_groups")
    @classmethod
    def normalize_muscle_groups(cls, value: List[str]) -> List[str]:
        return _normalize_muscle_groups(value) or []


class ExerciseUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    category: ExerciseCategory | None = None
    muscle_groups: List[str] | None = None
    equipment: str | None = None
    difficulty: Difficulty | None = None
    instructions: str | None = None
    video_url: AnyHttpUrl | None = None
    image_url: AnyHttpUrl | None = None
    duration: int | None = Field(default=None, ge=1, le=600)
    is_public: bool | None = None

    @model_validator(mode="before")
    @classmethod
    def reject_required_nulls(cls, data: Any) -> Any:
        return reject_nulls(data, ("name", "category", "difficulty", "is_public"))

    @field_validator("muscle_groups")
    @classmethod
    def normalize_muscle_groups(cls, value: List[str] | None) -> List[str] | None:
        return _normalize_muscle_groups(value)


class ExerciseResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    category: str
    muscle_groups: List[str] = Field(default_factory=list)
    equipment: str | None = None
    difficulty: Difficulty
    instructions: str | None = None
    video_url: str | None = None
    image_url: str | None = None
    duration: int | None = None
    created_by: uuid.UUID | None = None
    is_public: bool
    created_at: datetime

    @field_validator("muscle_groups", mode="before")
    @classmethod
    def default_muscle_groups(cls, value):
        return value or []

    class Config:
        from_attributes = True

# --- Endpoints ---

@router.get("", response_model=StandardResponse[List[ExerciseResponse]])
async def list_exercises(
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    category: ExerciseCategory | None = Query(None),
    difficulty: Difficulty | None = Query(None),
    equipment: str | None = Query(None),
    muscle_groups: str | None = Query(None, description="Comma-separated; matches any"),
    q: str | None = Query(None),
):
    """List catalog exercises visible to the caller, newest first."""
    stmt = select(Exercise).where(_visible_to(current_user))
    stmt = _apply_filters(stmt, category=category, difficulty=difficulty, equipment=equipment, q=q)
    stmt = stmt.order_by(Exercise.created_at.desc(), Exercise.name)
    exercises = (await db.execute(stmt)).scalars().all()
    wanted = _split_csv(muscle_groups)
    return StandardResponse(
        data=[ExerciseResponse.model_validate(e) for e in exercises if _matches_muscle_groups(e, wanted)]
    )


@router.get("/public", response_model=StandardResponse[List[ExerciseResponse]])
async def list_public_exercises(
    db: Annotated[AsyncSession, Depends(get_db)],
):
    stmt = select(Exercise).where(Exercise.is_public.is_(True)).order_by(Exercise.created_at.desc(), Exercise.name)
    exercises = (await db.execute(stmt)).scalars().all()
    return StandardResponse(data=[ExerciseResponse.model_validate(e) for e in exercises])


@router.post("", response_model=StandardResponse[ExerciseResponse])
async def create_exercise(
    data: ExerciseCreate,
    current_user: Annotated[User, Depends(dependencies.get_current_coach_or_gym)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Add an exercise to the catalog."""
    exercise = Exercise(**data.model_dump(mode="json"), created_by=current_user.id)
    db.add(exercise)
    await db.commit()
    return StandardResponse(data=ExerciseResponse.model_validate(exercise), message="Exercise created")


@router.get("/{exercise_id}", response_model=StandardResponse[ExerciseResponse])
async def get_exercise(
    exercise_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    exercise = await get_visible_exercise_or_404(db, exercise_id, current_user)
    return StandardResponse(data=ExerciseResponse.model_validate(exercise))


@router.patch("/{exercise_id}", response_model=StandardResponse[ExerciseResponse])
async def update_exercise(
    exercise_id: uuid.UUID,
    data: ExerciseUpdate,
    current_user: Annotated[User, Depends(dependencies.get_current_coach_or_gym)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    exercise = await get_visible_exercise_or_404(db, exercise_id, current_user)
    _ensure_creator(exercise, current_user, action="edit")

    for key, value in data.model_dump(mode="json", exclude_unset=True).items():
        setattr(exercise, key, value)
    await db.commit()
    await db.refresh(exercise)
    return StandardResponse(data=ExerciseResponse.model_validate(exercise), message="Exercise updated")


@router.delete("/{exercise_id}", response_model=StandardResponse)
async def delete_exercise(
    exercise_id: uuid.UUID,
    current_user: Annotated[User, Depends(dependencies.get_current_coach_or_gym)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    exercise = await get_visible_exercise_or_404(db, exercise_id, current_user)
    _ensure_creator(exercise, current_user, action="delete")

    in_use = (
        await db.execute(select(func.count(WorkoutExercise.id)).where(WorkoutExercise.exercise_id == exercise.id))
    ).scalar_one()
    if in_use:
        raise HTTPException(status_code=409, detail="Exercise is used by workouts and cannot be deleted")

    await db.delete(exercise)
    await db.commit()
    return StandardResponse(message="Exercise deleted")
