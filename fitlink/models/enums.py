from enum import Enum

class UserType(str, Enum):
    COACH = "coach"
    CLIENT = "client"
    GYM = "gym"

class InvitationType(str, Enum):
    COACH_TO_CLIENT = "coach_to_client"
    GYM_TO_COACH = "gym_to_coach"
    COACH_TO_GYM = "coach_to_gym"

class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

class ExerciseCategory(str, Enum):
    STRENGTH = "strength"
    CARDIO = "cardio"
    FLEXIBILITY = "flexibility"
    BALANCE = "balance"
    SPORTS = "sports"
    OTHER = "other"

class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


def enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]
