import asyncio
import sys
import os
import time
from datetime import datetime, timedelta, timezone

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from core.config import settings
from core.logger import setup_logging, logger
from db.session import Database
from models.enums import Difficulty, FeedbackType
from models.quiz import Quiz
from services.auth_service import Identity, Principal, TokenVerifier
from services.feedback_service import FeedbackService
from services.quiz_service import QuizService
from services.submission_service import SubmissionService
from services.user_service import UserService

ADMIN = {"uid": "admin-dev-uid", "email": "admin@example.com", "display_name": "Admin User"}
LEARNER = {"uid": "user-dev-uid", "email": "user@example.com", "display_name": "John Doe"}

QUIZZES = [
    {
        "title": "JavaScript Fundamentals",
        "description": "Test your knowledge of JavaScript basics including variables, functions, and control structures.",
        "time_limit": 15,
        "difficulty": Difficulty.MEDIUM,
        "category": "Programming",
        "questions": [
            {
                "question": "What is the correct way to declare a variable in JavaScript?",
                "options": ["var myVar;", "variable myVar;", "v myVar;", "declare myVar;"],
                "correct_answer": 0,
                "explanation": "In JavaScript, variables are declared using var, let, or const keywords.",
            },
            {
                "question": "Which of the following is NOT a JavaScript data type?",
                "options": ["String", "Boolean", "Integer", "Object"],
                "correct_answer": 2,
                "explanation": "JavaScript has a Number type, not Integer.",
            },
            {
                "question": "What does the === operator do?",
                "options": ["Assignment", "Equality without type conversion", "Equality with type conversion", "Not equal"],
                "correct_answer": 1,
                "explanation": "=== checks strict equality, comparing value and type without conversion.",
            },
            {
                "question": "How do you create a function in JavaScript?",
                "options": ["function myFunction() {}", "create myFunction() {}", "def myFunction() {}", "func myFunction() {}"],
                "correct_answer": 0,
                "explanation": "Functions are declared using the function keyword.",
            },
            {
                "question": "What is the result of typeof null?",
                "options": ["null", "undefined", "object", "boolean"],
                "correct_answer": 2,
                "explanation": "typeof null returns \"object\" due to a legacy bug.",
            },
        ],
    },
    {
        "title": "React Basics",
        "description": "Learn the fundamentals of React including components, props, and state management.",
        "time_limit": 20,
        "difficulty": Difficulty.MEDIUM,
        "category": "Frontend",
        "questions": [
            {
                "question": "What is JSX?",
                "options": ["A JavaScript library", "A syntax extension for JavaScript", "A CSS framework", "A database"],
                "correct_answer": 1,
                "explanation": "JSX lets you write HTML-like markup inside JavaScript.",
            },
            {
                "question": "How do you pass data to a React component?",
                "options": ["Through state", "Through props", "Through context", "Through refs"],
                "correct_answer": 1,
                "explanation": "Props pass data from parent components to child components.",
            },
            {
                "question": "What hook is used to manage state in functional components?",
                "options": ["useEffect", "useState", "useContext", "useReducer"],
                "correct_answer": 1,
                "explanation": "useState is the primary hook for local component state.",
            },
            {
                "question": "What is the virtual DOM?",
                "options": ["A real DOM element", "A JavaScript representation of the DOM", "A CSS framework", "A database"],
                "correct_answer": 1,
                "explanation": "React diffs a JavaScript representation of the DOM to apply minimal updates.",
            },
        ],
    },
    {
        "title": "CSS Styling",
        "description": "Master CSS selectors, properties, and layout techniques for modern web design.",
        "time_limit": 10,
        "difficulty": Difficulty.EASY,
        "category": "Frontend",
        "questions": [
            {
                "question": "Which CSS property is used to change the text color?",
                "options": ["text-color", "color", "font-color", "text-style"],
                "correct_answer": 1,
                "explanation": "The color property sets the color of text.",
            },
            {
                "question": "What does CSS stand for?",
                "options": ["Computer Style Sheets", "Cascading Style Sheets", "Creative Style Sheets", "Colorful Style Sheets"],
                "correct_answer": 1,
                "explanation": "CSS stands for Cascading Style Sheets.",
            },
            {
                "question": "Which property is used to change the background color?",
                "options": ["bg-color", "background-color", "bgcolor", "background"],
                "correct_answer": 1,
                "explanation": "background-color sets the background color of an element.",
            },
        ],
    },
]


async def seed(database: Database):
    now = int(time.time())

    async with database.session() as session:
        users = UserService(session, admin_emails=settings.ADMIN_EMAILS)
        admin_user, _ = await users.sync_user(Identity(ADMIN["uid"], now), ADMIN["email"], ADMIN["display_name"])
        learner_user, _ = await users.sync_user(Identity(LEARNER["uid"], now), LEARNER["email"], LEARNER["display_name"])
        admin = Principal.from_user(admin_user)
        learner = Principal.from_user(learner_user)

        existing = await session.execute(select(Quiz.id).limit(1))
        if existing.scalar_one_or_none() is not None:
            print("Quizzes already present, skipping quiz seeding.")
            return admin_user, learner_user

        quizzes = QuizService(session)
        created = []
        for data in QUIZZES:
            detail = await quizzes.create_quiz(admin, is_published=True, **data)
            created.append(detail.quiz)

        # One graded attempt so the dashboards have something to show
        started_at = datetime.now(timezone.utc) - timedelta(minutes=10)
        await SubmissionService(session).submit(
            learner, created[0].id, answers=[0, 2, 1, 0, 1], started_at=started_at, time_spent=600
        )

        feedback = FeedbackService(session)
        await feedback.create(
            learner,
            "Great quiz! Could you add more advanced JavaScript questions?",
            FeedbackType.SUGGESTION,
            quiz_id=created[0].id,
        )
        await feedback.create(learner, "The timer seems to be running too fast on mobile devices.", FeedbackType.BUG_REPORT)

        print(f"📝 Created {len(created)} quizzes")
        return admin_user, learner_user


async def main():
    setup_logging(settings.LOG_LEVEL, json_logs=False)
    database = Database.from_settings(settings)
    try:
        await database.create_all()
        admin_user, learner_user = await seed(database)
    except Exception as e:
        logger.error("Error seeding database", error=str(e))
        print(f"❌ Error seeding database: {e}")
        raise SystemExit(1)
    finally:
        await database.dispose()

    verifier = TokenVerifier(settings.AUTH_SECRET, settings.TOKEN_TTL_SECONDS)
    print("✅ Database seeded successfully!")
    print(f"👤 Admin user: {admin_user.email} ({admin_user.role.value})")
    print(f"   Bearer token: {verifier.issue(ADMIN['uid'])}")
    print(f"👤 Regular user: {learner_user.email} ({learner_user.role.value})")
    print(f"   Bearer token: {verifier.issue(LEARNER['uid'])}")


if __name__ == "__main__":
    if os.name == 'nt':
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    asyncio.run(main())
