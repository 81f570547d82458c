from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fitlink.models.enums import InvitationStatus, UserType
from fitlink.models.fitness import Workout, WorkoutPlan
from fitlink.models.invitation import Invitation
from fitlink.models.profiles import Client, Coach
from fitlink.models.user import User
from fitlink.schemas import ClientResponse, CoachResponse, GymResponse
from fitlink.services.plan_service import PlanService
from fitlink.services.profile_service import ProfileService

RECENT_PLAN_LIMIT = 5


def _plan_summary(plan: WorkoutPlan) -> dict:
    return {
        "id": str(plan.id),
        "name": plan.name,
        "coach_id": str(plan.coach_id),
        "client_id": str(plan.client_id),
        "duration": plan.duration,
        "is_active": plan.is_active,
        "created_at": plan.created_at.isoformat(),
    }


def _workout_summary(workout: Workout) -> dict:
    return {
        "id": str(workout.id),
        "plan_id": str(workout.plan_id),
        "name": workout.name,
        "week_number": workout.week_number,
        "day_number": workout.day_number,
        "estimated_duration": workout.estimated_duration,
    }


def _invitation_summary(invitation: Invitation) -> dict:
    return {
        "id": str(invitation.id),
        "inviter_id": str(invitation.inviter_id),
        "invitee_email": invitation.invitee_email,
        "type": invitation.type.value,
        "gym_id": str(invitation.gym_id) if invitation.gym_id else None,
        "expires_at": invitation.expires_at.isoformat() if invitation.expires_at else None,
    }


class DashboardService:
    @staticmethod
    async def _pending_sent(db: AsyncSession, user: User) -> list[dict]:
        stmt = (
            select(Invitation)
            .where(Invitation.inviter_id == user.id, Invitation.status == InvitationStatus.PENDING)
            .order_by(Invitation.created_at.desc())
        )
        return [_invitation_summary(i) for i in (await db.execute(stmt)).scalars().all()]

    @staticmethod
    async def _pending_received(db: AsyncSession, user: User) -> list[dict]:
        stmt = (
            select(Invitation)
            .where(
                func.lower(Invitation.invitee_email) == user.email.lower(),
                Invitation.status == InvitationStatus.PENDING,
            )
            .order_by(Invitation.created_at.desc())
        )
        return [_invitation_summary(i) for i in (await db.execute(stmt)).scalars().all()]

    @staticmethod
    async def get_dashboard(db: AsyncSession, user: User) -> dict:
        if user.user_type == UserType.COACH:
            return await DashboardService.coach_dashboard(db, user)
        if user.user_type == UserType.CLIENT:
            return await DashboardService.client_dashboard(db, user)
        return await DashboardService.gym_dashboard(db, user)

    @staticmethod
    async def coach_dashboard(db: AsyncSession, user: User) -> dict:
        coach = await ProfileService.get_coach_by_user_id(db, user.id)
        if coach is None:
            return {"role": UserType.COACH.value, "coach": None}

        client_count = (
            await db.execute(select(func.count(Client.id)).where(Client.coach_id == coach.id))
        ).scalar() or 0
        active_plan_count = (
            await db.execute(
                select(func.count(WorkoutPlan.id)).where(
                    WorkoutPlan.coach_id == coach.id, WorkoutPlan.is_active.is_(True)
                )
            )
        ).scalar() or 0
        recent_plans = (
            await db.execute(
                select(WorkoutPlan)
                .where(WorkoutPlan.coach_id == coach.id)
                .order_by(WorkoutPlan.created_at.desc())
                .limit(RECENT_PLAN_LIMIT)
            )
        ).scalars().all()

        return {
            "role": UserType.COACH.value,
            "coach": CoachResponse.model_validate(coach).model_dump(mode="json"),
            "client_count": client_count,
            "active_plan_count": active_plan_count,
            "pending_invitations_sent": await DashboardService._pending_sent(db, user),
            "recent_plans": [_plan_summary(p) for p in recent_plans],
        }

    @staticmethod
    async def client_dashboard(db: AsyncSession, user: User) -> dict:
        client = await ProfileService.get_client_by_user_id(db, user.id)
        if client is None:
            return {"role": UserType.CLIENT.value, "client": None}

        coach_data = None
        if client.coach_id:
            coach = await ProfileService.get_coach_or_404(db, client.coach_id)
            coach_data = CoachResponse.model_validate(coach).model_dump(mode="json")

        active_plans = (
            await db.execute(
                select(WorkoutPlan)
                .where(WorkoutPlan.client_id == client.id, WorkoutPlan.is_active.is_(True))
                .order_by(WorkoutPlan.created_at.desc())
            )
        ).scalars().all()
        plan_ids = [p.id for p in active_plans]
        progress = await PlanService.progress_by_plan(db, plan_ids)
        total = sum(t for t, _ in progress.values())
        completed = sum(c for _, c in progress.values())
        next_workout = await PlanService.next_workout(db, plan_ids)

        return {
            "role": UserType.CLIENT.value,
            "client": ClientResponse.model_validate(client).model_dump(mode="json"),
            "coach": coach_data,
            "active_plans": [_plan_summary(p) for p in active_plans],
            "workouts_completed": completed,
            "workouts_total": total,
            "next_workout": _workout_summary(next_workout) if next_workout else None,
            "pending_invitations_received": await DashboardService._pending_received(db, user),
        }

    @staticmethod
    async def gym_dashboard(db: AsyncSession, user: User) -> dict:
        gyms = await ProfileService.get_gyms_by_owner(db, user.id)
        gym_ids = [g.id for g in gyms]

        coach_count = 0
        client_count = 0
        if gym_ids:
            coach_count = (
                await db.execute(select(func.count(Coach.id)).where(Coach.gym_id.in_(gym_ids)))
            ).scalar() or 0
            # Clients count once even when both their gym and their coach's gym match.
            client_count = (
                await db.execute(
                    select(func.count(func.distinct(Client.id)))
                    .select_from(Client)
                    .outerjoin(Coach, Client.coach_id == Coach.id)
                    .where(or_(Client.gym_id.in_(gym_ids), Coach.gym_id.in_(gym_ids)))
                )
            ).scalar() or 0

        return {
            "role": UserType.GYM.value,
            "gyms": [GymResponse.model_validate(g).model_dump(mode="json") for g in gyms],
            "coach_count": coach_count,
            "client_count": client_count,
            "pending_invitations_sent": await DashboardService._pending_sent(db, user),
            "pending_invitations_received": await DashboardService._pending_received(db, user),
        }
