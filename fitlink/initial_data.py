import asyncio
import logging
from sqlalchemy import select
from fitlink.database import AsyncSessionLocal
from fitlink.models.user import User
from fitlink.models.profiles import Client, Coach, Gym
from fitlink.models.fitness import Exercise
from fitlink.models.enums import Difficulty, ExerciseCategory, UserType
from fitlink.auth.security import get_password_hash

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_PASSWORD = "FitLink123!"

USERS = [
    {
        "email": "gym.owner@fitlink.dev",
        "first_name": "Grace",
        "last_name": "Owner",
        "user_type": UserType.GYM,
        "location": "Downtown",
        "gym": {
            "name": "Downtown Strength Club",
            "address": "12 Main Street",
            "description": "Free weights, rigs and a conditioning floor.",
        },
    },
    {
        "email": "coach.mike@fitlink.dev",
        "first_name": "Mike",
        "last_name": "Coach",
        "user_type": UserType.COACH,
        "specialization": "Strength and conditioning",
        "experience": "8 years",
        "location": "Downtown",
        "hourly_rate": 60,
    },
    {
        "email": "alice@fitlink.dev",
        "first_name": "Alice",
        "last_name": "Client",
        "user_type": UserType.CLIENT,
        "fitness_goals": "Run a half marathon and get a bodyweight pull-up.",
    },
]

EXERCISES = [
    {
        "name": "Push-Up",
        "description": "A classic bodyweight exercise that targets the chest, triceps, and core muscles.",
        "category": ExerciseCategory.STRENGTH,
        "muscle_groups": ["chest", "triceps", "core"],
        "difficulty": Difficulty.BEGINNER,
        "duration": 2,
    },
    {
        "name": "Bodyweight Squat",
        "description": "Fundamental lower body exercise for the legs and glutes that also improves mobility.",
        "category": ExerciseCategory.STRENGTH,
        "muscle_groups": ["quads", "glutes", "hamstrings"],
        "difficulty": Difficulty.BEGINNER,
        "duration": 3,
    },
    {
        "name": "Deadlift",
        "description": "Compound hinge movement for overall strength and power.",
        "category": ExerciseCategory.STRENGTH,
        "muscle_groups": ["full body", "posterior chain"],
        "equipment": "barbell",
        "difficulty": Difficulty.ADVANCED,
        "duration": 4,
    },
    {
        "name": "Plank Hold",
        "description": "Isometric hold that builds stability and endurance through the core.",
        "category": ExerciseCategory.STRENGTH,
        "muscle_groups": ["core", "shoulders", "glutes"],
        "difficulty": Difficulty.INTERMEDIATE,
        "duration": 1,
    },
    {
        "name": "Burpee",
        "description": "High-intensity full-body movement that mixes strength work with conditioning.",
        "category": ExerciseCategory.CARDIO,
        "muscle_groups": ["full body", "cardiovascular"],
        "difficulty": Difficulty.INTERMEDIATE,
        "duration": 3,
    },
    {
        "name": "Pull-Up",
        "description": "Upper body pull for back, biceps and grip strength.",
        "category": ExerciseCategory.STRENGTH,
        "muscle_groups": ["back", "biceps", "core"],
        "equipment": "pull-up bar",
        "difficulty": Difficulty.ADVANCED,
        "duration": 2,
    },
]


async def _seed_users(session) -> None:
    for user_data in USERS:
        stmt = select(User).where(User.email == user_data["email"])
        existing_user = (await session.execute(stmt)).scalar_one_or_none()
        if existing_user:
            logger.info(f"User already exists: {user_data['email']}")
            continue

        user = User(
            email=user_data["email"],
            first_name=user_data["first_name"],
            last_name=user_data["last_name"],
            user_type=user_data["user_type"],
            hashed_password=get_password_hash(DEMO_PASSWORD),
            location=user_data.get("location"),
            specialization=user_data.get("specialization"),
            experience=user_data.get("experience"),
            is_active=True,
        )
        session.add(user)
        await session.flush()  # Get ID

        if user.user_type == UserType.GYM:
            session.add(Gym(owner_id=user.id, **user_data["gym"]))
        elif user.user_type == UserType.COACH:
            session.add(Coach(user_id=user.id, hourly_rate=user_data.get("hourly_rate")))
        else:
            session.add(Client(user_id=user.id, fitness_goals=user_data.get("fitness_goals")))
        logger.info(f"Created {user.user_type.value} user: {user.email}")


async def _seed_exercises(session) -> None:
    for exercise_data in EXERCISES:
        stmt = select(Exercise).where(Exercise.name == exercise_data["name"], Exercise.created_by.is_(None))
        if (await session.execute(stmt)).scalar_one_or_none():
            continue
        session.add(
            Exercise(
                **{**exercise_data, "category": exercise_data["category"].value},
                is_public=True,
            )
        )
        logger.info(f"Created exercise: {exercise_data['name']}")


async def seed_data():
    async with AsyncSessionLocal() as session:
        await _seed_users(session)
        await _seed_exercises(session)
        await session.commit()
    logger.info("Seeding complete.")

if __name__ == "__main__":
    asyncio.run(seed_data())
