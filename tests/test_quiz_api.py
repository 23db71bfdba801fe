import pytest

from praxis.services.llm import openai_client
from praxis.services.llm.openai_client import LLMError


def _questions(n):
    return [
        {
            "prompt": f"Question {i}?",
            "options": ["alpha", "beta", "gamma", "delta"],
            "correctIndex": i % 4,
            "explanation": f"Because {i}.",
        }
        for i in range(n)
    ]


@pytest.fixture
def fake_quiz_llm(monkeypatch):
    calls = []

    def fake_generate_object(*, model, schema, prompt, system=None, temperature=0.3):
        calls.append({"model": model, "system": system, "prompt": prompt})
        n = int(system.split(" ", 2)[1])
        return schema.model_validate({"questions": _questions(n)})

    monkeypatch.setattr(openai_client, "generate_object", fake_generate_object)
    return calls


def _generate(client, num_questions=5, **overrides):
    body = {
        "youtubeId": "dQw4w9WgXcQ",
        "transcriptContext": "Ohm's law relates voltage, current and resistance.",
        "contextSpec": {"type": "minutes", "value": 10},
        "numQuestions": num_questions,
        "difficulty": "easy",
        "meta": {"title": "Circuits 101", "channel": "EE"},
    }
    body.update(overrides)
    r = client.post("/api/quiz/generate", json=body)
    assert r.status_code == 200, r.text
    return r.json()


def test_full_quiz_flow(client, fake_quiz_llm):
    created = _generate(client, num_questions=5)
    assert created["total"] == 5
    quiz_id, session_id = created["quizId"], created["sessionId"]

    chosen = []
    for i in range(5):
        r = client.post("/api/quiz/next", json={"sessionId": session_id, "quizId": quiz_id})
        assert r.status_code == 200
        q = r.json()
        assert q["index"] == i
        assert q["total"] == 5
        assert q["prompt"] == f"Question {i}?"
        assert "correctIndex" not in q

        a = client.post(
            "/api/quiz/answer",
            json={"sessionId": session_id, "questionId": q["questionId"], "selectedIndex": 0},
        )
        assert a.status_code == 200
        assert a.json() == {"acknowledged": True, "progress": {"answered": i + 1, "total": 5}}
        chosen.append(0)

    r = client.post("/api/quiz/next", json={"sessionId": session_id, "quizId": quiz_id})
    assert r.status_code == 200
    assert r.json() is None

    r = client.post("/api/quiz/finish", json={"sessionId": session_id})
    assert r.status_code == 200
    results = r.json()
    assert results["total"] == 5
    # correctIndex is i % 4, so index 0 is right for questions 0 and 4
    expected_correct = sum(1 for d in results["details"] if d["selectedIndex"] == d["correctIndex"])
    assert results["correct"] == expected_correct == 2
    assert [d["selectedIndex"] for d in results["details"]] == chosen
    assert results["details"][1]["explanation"] == "Because 1."


def test_generation_prompt_and_model(client, fake_quiz_llm):
    _generate(client, num_questions=3, model="openai/gpt-4.1-mini")
    call = fake_quiz_llm[-1]
    assert call["model"] == "openai/gpt-4.1-mini"
    assert call["system"].startswith("Write 3 MCQs, 4 options each.")
    assert '"transcriptExcerpt": "Ohm' in call["prompt"]
    assert '"title": "Circuits 101"' in call["prompt"]


def test_answer_is_idempotent(client, fake_quiz_llm):
    created = _generate(client, num_questions=3)
    q = client.post("/api/quiz/next", json={"sessionId": created["sessionId"], "quizId": created["quizId"]}).json()

    payload = {"sessionId": created["sessionId"], "questionId": q["questionId"], "selectedIndex": 2}
    first = client.post("/api/quiz/answer", json=payload).json()
    second = client.post("/api/quiz/answer", json={**payload, "selectedIndex": 1}).json()
    assert first["progress"] == {"answered": 1, "total": 3}
    assert second == {"acknowledged": True, "progress": {"answered": 1, "total": 3}}

    # the first submission stands
    results = client.post("/api/quiz/finish", json={"sessionId": created["sessionId"]}).json()
    assert results["details"][0]["selectedIndex"] == 2


def test_finish_early_marks_unanswered(client, fake_quiz_llm):
    created = _generate(client, num_questions=3)
    q = client.post("/api/quiz/next", json={"sessionId": created["sessionId"], "quizId": created["quizId"]}).json()
    client.post(
        "/api/quiz/answer",
        json={"sessionId": created["sessionId"], "questionId": q["questionId"], "selectedIndex": 0},
    )

    r = client.post("/api/quiz/finish", json={"sessionId": created["sessionId"]})
    assert r.status_code == 200
    results = r.json()
    assert results["total"] == 3
    assert results["correct"] == 1
    for d in results["details"][1:]:
        assert d["selectedIndex"] == -1
        assert d["isCorrect"] is False


def test_session_view_hides_answer_key(client, fake_quiz_llm):
    created = _generate(client, num_questions=4)
    q = client.post("/api/quiz/next", json={"sessionId": created["sessionId"], "quizId": created["quizId"]}).json()
    client.post(
        "/api/quiz/answer",
        json={"sessionId": created["sessionId"], "questionId": q["questionId"], "selectedIndex": 3},
    )

    r = client.get("/api/quiz/session", params={"sessionId": created["sessionId"]})
    assert r.status_code == 200
    view = r.json()
    assert view["answered"] == 1
    assert view["total"] == 4
    assert len(view["questions"]) == 4
    assert view["questions"][0]["selectedIndex"] == 3
    for item in view["questions"]:
        assert "correctIndex" not in item
        assert "isCorrect" not in item


def test_answer_for_question_of_other_quiz_fails(client, fake_quiz_llm):
    a = _generate(client, num_questions=3)
    b = _generate(client, num_questions=3)
    foreign = client.post("/api/quiz/next", json={"sessionId": b["sessionId"], "quizId": b["quizId"]}).json()

    r = client.post(
        "/api/quiz/answer",
        json={"sessionId": a["sessionId"], "questionId": foreign["questionId"], "selectedIndex": 0},
    )
    assert r.status_code == 500
    assert r.json() == {"detail": "Internal error"}


def test_next_with_mismatched_quiz_fails(client, fake_quiz_llm):
    a = _generate(client, num_questions=3)
    b = _generate(client, num_questions=3)
    r = client.post("/api/quiz/next", json={"sessionId": a["sessionId"], "quizId": b["quizId"]})
    assert r.status_code == 500


def test_session_of_another_user_is_rejected(client, login, fake_quiz_llm):
    created = _generate(client, num_questions=3)

    login("someone_else")
    r = client.post("/api/quiz/next", json={"sessionId": created["sessionId"], "quizId": created["quizId"]})
    assert r.status_code == 500
    r = client.post("/api/quiz/finish", json={"sessionId": created["sessionId"]})
    assert r.status_code == 500


def test_generation_failure_is_internal_error(client, monkeypatch):
    def failing(**kwargs):
        raise LLMError("Model output did not match GeneratedQuiz")

    monkeypatch.setattr(openai_client, "generate_object", failing)
    r = client.post(
        "/api/quiz/generate",
        json={
            "youtubeId": "dQw4w9WgXcQ",
            "transcriptContext": "text",
            "contextSpec": {"type": "chapter", "value": 7},
        },
    )
    assert r.status_code == 500
    assert r.json() == {"detail": "Internal error"}


@pytest.mark.parametrize(
    "body",
    [
        {"youtubeId": "x", "transcriptContext": "t", "contextSpec": {"type": "minutes", "value": 5}, "numQuestions": 2},
        {"youtubeId": "x", "transcriptContext": "t", "contextSpec": {"type": "minutes", "value": 5}, "numQuestions": 11},
        {"youtubeId": "x", "transcriptContext": "   ", "contextSpec": {"type": "minutes", "value": 5}},
        {"youtubeId": "x", "transcriptContext": "t", "contextSpec": {"type": "hours", "value": 5}},
        {"youtubeId": "x", "transcriptContext": "t", "contextSpec": {"type": "minutes", "value": 5}, "choicesCount": 5},
        {"transcriptContext": "t", "contextSpec": {"type": "minutes", "value": 5}},
    ],
)
def test_generate_invalid_body_is_400(client, body):
    r = client.post("/api/quiz/generate", json=body)
    assert r.status_code == 400
    assert r.json() == {"detail": "Invalid body"}


def test_answer_out_of_range_is_400(client):
    r = client.post("/api/quiz/answer", json={"sessionId": 1, "questionId": 1, "selectedIndex": 4})
    assert r.status_code == 400
    assert r.json() == {"detail": "Invalid body"}


def test_session_requires_session_id(client):
    r = client.get("/api/quiz/session")
    assert r.status_code == 400


def test_missing_identity_is_401(anon_client):
    r = anon_client.post("/api/quiz/next", json={"sessionId": 1, "quizId": 1})
    assert r.status_code == 401
    assert r.json() == {"detail": "Unauthorized"}

    r = anon_client.post("/api/quiz/finish", json={"sessionId": 1})
    assert r.status_code == 401


def test_quiz_rows_persisted(client, db, fake_quiz_llm):
    from praxis.models import Quiz, QuizSession, Video

    created = _generate(client, num_questions=3, contextSpec={"type": "chapter", "value": 6})
    quiz = db.query(Quiz).filter(Quiz.id == created["quizId"]).one()
    assert quiz.spec_type == "last_chapter"
    assert quiz.spec_value == 6
    assert quiz.status == "active"
    assert [q.position for q in quiz.questions] == [0, 1, 2]

    video = db.query(Video).filter(Video.id == quiz.video_id).one()
    assert video.youtube_id == "dQw4w9WgXcQ"
    assert video.url == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"

    session = db.query(QuizSession).filter(QuizSession.id == created["sessionId"]).one()
    assert session.status == "in_progress"
    assert session.started_at_ms > 0

    client.post("/api/quiz/finish", json={"sessionId": created["sessionId"]})
    db.refresh(session)
    assert session.status == "completed"
    assert session.finished_at_ms >= session.started_at_ms


def test_generate_quiz_requires_context(db):
    from praxis.services.quizzes import generate_quiz

    with pytest.raises(ValueError):
        generate_quiz(db, user_id=1, youtube_id="x", transcript_context="  ", context_spec={"type": "minutes", "value": 5})


def test_concurrent_duplicate_answer_is_stored_once(client, db, monkeypatch, fake_quiz_llm):
    from praxis.models import QuizAnswer
    from praxis.services import quizzes

    created = _generate(client, num_questions=3)
    q = client.post("/api/quiz/next", json={"sessionId": created["sessionId"], "quizId": created["quizId"]}).json()
    payload = {"sessionId": created["sessionId"], "questionId": q["questionId"], "selectedIndex": 2}
    assert client.post("/api/quiz/answer", json=payload).json()["progress"] == {"answered": 1, "total": 3}

    # second request read the answers before the first one committed
    monkeypatch.setattr(quizzes, "_answers_by_question", lambda db, session_id: {})
    r = client.post("/api/quiz/answer", json={**payload, "selectedIndex": 0})
    assert r.status_code == 200
    assert r.json() == {"acknowledged": True, "progress": {"answered": 1, "total": 3}}

    rows = db.query(QuizAnswer).filter(QuizAnswer.session_id == created["sessionId"]).all()
    assert [(a.question_id, a.selected_index) for a in rows] == [(q["questionId"], 2)]
