from fitlink.models.user import User
from fitlink.models.profiles import Client, Coach, Gym
from fitlink.models.fitness import Exercise, Workout, WorkoutExercise, WorkoutPlan
from fitlink.models.invitation import Invitation
from fitlink.models.auth import RefreshToken
from fitlink.models.audit import AuditLog


__all__ = [
    "User",
    "Gym",
    "Coach",
    "Client",
    "Exercise",
    "WorkoutPlan",
    "Workout",
    "WorkoutExercise",
    "Invitation",
    "RefreshToken",
    "AuditLog",
]
