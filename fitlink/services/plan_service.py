from __future__ import annotations

import uuid
from collections import defaultdict
from typing import Literal

from fastapi import HTTPException
from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fitlink.models.enums import UserType
from fitlink.models.fitness import Exercise, Workout, WorkoutExercise, WorkoutPlan
from fitlink.models.profiles import Client, Coach
from fitlink.models.user import User

PlanRole = Literal["coach", "client"]

DAYS_PER_WEEK = 7


def workout_order():
    """Stable display order for workouts of a plan."""
    return (Workout.week_number, Workout.day_number, Workout.created_at, Workout.id)


class PlanService:
    @staticmethod
    async def get_plan_or_404(db: AsyncSession, plan_id: uuid.UUID) -> WorkoutPlan:
        plan = (await db.execute(select(WorkoutPlan).where(WorkoutPlan.id == plan_id))).scalar_one_or_none()
        if not plan:
            raise HTTPException(status_code=404, detail="Workout plan not found")
        return plan

    @staticmethod
    async def get_workout_or_404(db: AsyncSession, workout_id: uuid.UUID) -> Workout:
        workout = (await db.execute(select(Workout).where(Workout.id == workout_id))).scalar_one_or_none()
        if not workout:
            raise HTTPException(status_code=404, detail="Workout not found")
        return workout

    @staticmethod
    async def resolve_plan_role(db: AsyncSession, plan: WorkoutPlan, user: User) -> PlanRole:
        """Return how ``user`` relates to ``plan``; anyone else gets a 403."""
        if user.user_type == UserType.COACH:
            coach_id = (await db.execute(select(Coach.id).where(Coach.user_id == user.id))).scalar_one_or_none()
            if coach_id is not None and coach_id == plan.coach_id:
                return "coach"
        elif user.user_type == UserType.CLIENT:
            client_id = (await db.execute(select(Client.id).where(Client.user_id == user.id))).scalar_one_or_none()
            if client_id is not None and client_id == plan.client_id:
                return "client"
        raise HTTPException(status_code=403, detail="Not allowed to access this workout plan")

    @staticmethod
    def ensure_week_day(plan: WorkoutPlan, week_number: int, day_number: int, *, duration: int | None = None) -> None:
        weeks = duration if duration is not None else plan.duration
        if week_number < 1 or week_number > weeks:
            raise HTTPException(status_code=400, detail=f"week_number must be between 1 and {weeks}")
        if day_number < 1 or day_number > DAYS_PER_WEEK:
            raise HTTPException(status_code=400, detail=f"day_number must be between 1 and {DAYS_PER_WEEK}")

    @staticmethod
    async def ensure_exercises_usable(db: AsyncSession, exercise_ids: set[uuid.UUID], user: User) -> None:
        if not exercise_ids:
            return
        stmt = select(Exercise.id).where(
            Exercise.id.in_(exercise_ids),
            or_(Exercise.is_public.is_(True), Exercise.created_by == user.id),
        )
        found = set((await db.execute(stmt)).scalars().all())
        missing = exercise_ids - found
        if missing:
            raise HTTPException(
                status_code=400,
                detail=f"Unknown exercise(s): {', '.join(sorted(str(m) for m in missing))}",
            )

    @staticmethod
    async def list_workouts(db: AsyncSession, plan_id: uuid.UUID) -> list[Workout]:
        stmt = select(Workout).where(Workout.plan_id == plan_id).order_by(*workout_order())
        return list((await db.execute(stmt)).scalars().all())

    @staticmethod
    async def exercises_by_workout(
        db: AsyncSession, workout_ids: list[uuid.UUID]
    ) -> dict[uuid.UUID, list[WorkoutExercise]]:
        grouped: dict[uuid.UUID, list[WorkoutExercise]] = defaultdict(list)
        if not workout_ids:
            return grouped
        stmt = (
            select(WorkoutExercise)
            .where(WorkoutExercise.workout_id.in_(workout_ids))
            .options(selectinload(WorkoutExercise.exercise))
            .order_by(WorkoutExercise.order_index, WorkoutExercise.id)
            .execution_options(populate_existing=True)
        )
        for item in (await db.execute(stmt)).scalars().all():
            grouped[item.workout_id].append(item)
        return grouped

    @staticmethod
    async def progress_by_plan(db: AsyncSession, plan_ids: list[uuid.UUID]) -> dict[uuid.UUID, tuple[int, int]]:
        """Map plan id to (total workouts, completed workouts)."""
        if not plan_ids:
            return {}
        stmt = (
            select(
                Workout.plan_id,
                func.count(Workout.id),
                func.sum(case((Workout.is_completed.is_(True), 1), else_=0)),
            )
            .where(Workout.plan_id.in_(plan_ids))
            .group_by(Workout.plan_id)
        )
        return {
            plan_id: (int(total or 0), int(completed or 0))
            for plan_id, total, completed in (await db.execute(stmt)).all()
        }

    @staticmethod
    async def next_workout(db: AsyncSession, plan_ids: list[uuid.UUID]) -> Workout | None:
        """First incomplete workout across the given plans, in week/day order."""
        if not plan_ids:
            return None
        stmt = (
            select(Workout)
            .where(Workout.plan_id.in_(plan_ids), Workout.is_completed.is_(False))
            .order_by(*workout_order())
            .limit(1)
        )
        return (await db.execute(stmt)).scalar_one_or_none()
