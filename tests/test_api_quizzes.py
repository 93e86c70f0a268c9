import pytest
from sqlalchemy.exc import OperationalError

from models.enums import Difficulty
from services.quiz_service import QuizService

QUIZ_BODY = {
    "title": "JavaScript Fundamentals",
    "description": "Variables, functions and control structures.",
    "timeLimit": 15,
    "difficulty": "medium",
    "category": "Programming",
    "isPublished": True,
    "questions": [
        {"question": "What is 2+2?", "options": ["4", "3"], "correctAnswer": 0},
        {"question": "typeof null?", "options": ["null", "object"], "correctAnswer": 1, "points": 2},
    ],
}


async def test_create_quiz(client, admin_headers):
    response = await client.post("/api/quizzes", json=QUIZ_BODY, headers=admin_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["difficulty"] == "MEDIUM"
    assert data["timeLimit"] == 15
    assert [q["correctAnswer"] for q in data["questions"]] == [0, 1]
    assert [q["order"] for q in data["questions"]] == [0, 1]
    assert [q["points"] for q in data["questions"]] == [1, 2]
    assert data["creator"]["displayName"] == "Admin User"


async def test_create_quiz_requires_admin(client, user_headers):
    response = await client.post("/api/quizzes", json=QUIZ_BODY, headers=user_headers)
    assert response.status_code == 403
    assert response.json() == {"error": "Admin access required"}


async def test_create_quiz_invalid_question(client, admin_headers):
    body = dict(QUIZ_BODY, questions=[{"question": "Q", "options": ["a", "b"], "correctAnswer": 5}])
    response = await client.post("/api/quizzes", json=body, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid question at index 0")


async def test_create_quiz_missing_fields(client, admin_headers):
    response = await client.post("/api/quizzes", json={"title": "Only a title"}, headers=admin_headers)
    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Invalid request body"
    assert data["details"]


async def test_create_quiz_without_questions(client, admin_headers):
    response = await client.post("/api/quizzes", json=dict(QUIZ_BODY, questions=[]), headers=admin_headers)
    assert response.status_code == 400


async def test_user_detail_hides_correct_answer(client, user_headers, make_quiz):
    quiz_id = await make_quiz()
    response = await client.get(f"/api/quizzes/{quiz_id}", headers=user_headers)
    assert response.status_code == 200
    for question in response.json()["questions"]:
        assert "correctAnswer" not in question
        assert "correct_answer" not in question


async def test_admin_detail_includes_correct_answer(client, admin_headers, make_quiz):
    quiz_id = await make_quiz()
    response = await client.get(f"/api/quizzes/{quiz_id}", headers=admin_headers)
    assert response.status_code == 200
    assert [q["correctAnswer"] for q in response.json()["questions"]] == [0, 1]


async def test_draft_detail(client, user_headers, admin_headers, make_quiz):
    quiz_id = await make_quiz(is_published=False)

    response = await client.get(f"/api/quizzes/{quiz_id}", headers=user_headers)
    assert response.status_code == 403
    assert response.json() == {"error": "Quiz not available"}

    response = await client.get(f"/api/quizzes/{quiz_id}", headers=admin_headers)
    assert response.status_code == 200


async def test_detail_not_found(client, user_headers):
    response = await client.get("/api/quizzes/4242", headers=user_headers)
    assert response.status_code == 404


async def test_list_filters(client, user_headers, make_quiz):
    await make_quiz(title="Easy Math", category="Math", difficulty=Difficulty.EASY)
    await make_quiz(title="Hard Math", category="Math", difficulty=Difficulty.HARD)
    await make_quiz(title="CSS", category="Frontend", difficulty=Difficulty.EASY)

    response = await client.get("/api/quizzes", params={"category": "Math"}, headers=user_headers)
    assert [q["title"] for q in response.json()] == ["Hard Math", "Easy Math"]

    response = await client.get("/api/quizzes", params={"difficulty": "easy"}, headers=user_headers)
    assert [q["title"] for q in response.json()] == ["CSS", "Easy Math"]

    response = await client.get(
        "/api/quizzes", params={"category": "Math", "difficulty": "EASY"}, headers=user_headers
    )
    assert [q["title"] for q in response.json()] == ["Easy Math"]


async def test_list_unknown_difficulty(client, user_headers):
    response = await client.get("/api/quizzes", params={"difficulty": "IMPOSSIBLE"}, headers=user_headers)
    assert response.status_code == 400


async def test_list_items_have_counts_but_no_questions(client, user_headers, make_quiz):
    await make_quiz()
    await make_quiz(title="Draft", is_published=False)

    response = await client.get("/api/quizzes", headers=user_headers)
    assert response.status_code == 200
    [item] = response.json()
    assert item["title"] == "Math Basics"
    assert item["questionCount"] == 2
    assert item["submissionCount"] == 0
    assert "questions" not in item


async def test_update_partial(client, admin_headers, make_quiz):
    quiz_id = await make_quiz(is_published=False)
    response = await client.put(
        f"/api/quizzes/{quiz_id}", json={"isPublished": True, "timeLimit": 30}, headers=admin_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["isPublished"] is True
    assert data["timeLimit"] == 30
    assert data["title"] == "Math Basics"
    assert len(data["questions"]) == 2


async def test_update_invalid_question_leaves_quiz_unchanged(client, admin_headers, make_quiz):
    quiz_id = await make_quiz()
    body = {
        "title": "Renamed",
        "questions": [
            {"question": "Fine", "options": ["a", "b"], "correctAnswer": 1},
            {"question": "Broken", "options": ["a", "b"], "correctAnswer": 9},
        ],
    }
    response = await client.put(f"/api/quizzes/{quiz_id}", json=body, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid question at index 1")

    response = await client.get(f"/api/quizzes/{quiz_id}", headers=admin_headers)
    data = response.json()
    assert data["title"] == "Math Basics"
    assert [q["question"] for q in data["questions"]] == ["What is 2+2?", "Which keyword declares a constant in JavaScript?"]


async def test_update_not_found(client, admin_headers):
    response = await client.put("/api/quizzes/999", json={"title": "X"}, headers=admin_headers)
    assert response.status_code == 404


async def test_delete_keeps_submissions(client, admin_headers, user_headers, make_quiz):
    quiz_id = await make_quiz()
    response = await client.post(
        "/api/submissions",
        json={"quizId": quiz_id, "answers": [0, 1], "startedAt": "2026-01-01T10:00:00Z"},
        headers=user_headers,
    )
    assert response.status_code == 201

    response = await client.delete(f"/api/quizzes/{quiz_id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Quiz deleted successfully"}

    response = await client.get(f"/api/quizzes/{quiz_id}", headers=admin_headers)
    assert response.status_code == 404

    response = await client.get("/api/submissions", headers=user_headers)
    [submission] = response.json()
    assert submission["quizId"] is None
    assert submission["quiz"] is None
    assert submission["quizTitle"] == "Math Basics"
    assert submission["score"] == 2


async def test_delete_requires_admin(client, user_headers, make_quiz):
    quiz_id = await make_quiz()
    response = await client.delete(f"/api/quizzes/{quiz_id}", headers=user_headers)
    assert response.status_code == 403


async def test_database_failure_is_500(client, user_headers, monkeypatch):
    async def broken(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("db down"))

    monkeypatch.setattr(QuizService, "list_quizzes", broken)
    response = await client.get("/api/quizzes", headers=user_headers)
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
