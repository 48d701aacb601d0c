from __future__ import annotations

from fixtures import SAMPLE_TEXT, make_quiz, quiz_json
from quizify.services.explanation import EXPLANATION_FAILED_MESSAGE
from quizify.services.generation import (
    EMPTY_QUIZ_MESSAGE,
    UNEXPECTED_MESSAGE,
)

SHORT = "Please provide at least 50 characters of content to generate a quiz."
RANGE = "Number of questions must be between 5 and 50."


def _upload(http, name, content_type, data):
    signed = http.post(
        "/api/uploads/sign",
        json={"fileName": name, "contentType": content_type},
    ).json()
    response = http.put(
        signed["url"], content=data, headers={"Content-Type": content_type}
    )
    return signed, response


def test_generate_returns_quiz_and_text(http, chat_client):
    chat_client.queue(quiz_json(make_quiz(5)))

    response = http.post(
        "/api/quiz/generate",
        json={"text": SAMPLE_TEXT, "numQuestions": 5},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["error"] is None
    assert body["text"] == SAMPLE_TEXT
    assert len(body["quiz"]) == 5
    assert body["quiz"][0] == {
        "question": "Question 1?",
        "answers": ["q1-a", "q1-b", "q1-c", "q1-d"],
        "correctAnswerIndex": 1,
        "solution": "Because 1.",
    }


def test_generate_validation_is_checked_before_the_model(http, chat_client):
    response = http.post(
        "/api/quiz/generate", json={"text": "too short", "numQuestions": 3}
    )

    assert response.status_code == 400
    assert response.json() == {
        "quiz": None,
        "text": None,
        "error": f"{SHORT}, {RANGE}",
    }
    assert chat_client.calls == []


def test_generate_with_missing_fields(http, chat_client):
    response = http.post("/api/quiz/generate", json={})

    assert response.status_code == 400
    assert response.json()["error"] == f"{SHORT}, {RANGE}"


def test_generate_provider_failure(http, chat_client):
    chat_client.queue(RuntimeError("upstream exploded"))

    response = http.post(
        "/api/quiz/generate",
        json={"text": SAMPLE_TEXT, "numQuestions": 5},
    )

    assert response.status_code == 502
    assert response.json()["error"] == UNEXPECTED_MESSAGE


def test_generate_empty_result(http, chat_client):
    chat_client.queue('{"quiz": []}')

    response = http.post(
        "/api/quiz/generate",
        json={"text": SAMPLE_TEXT, "numQuestions": 5},
    )

    assert response.status_code == 502
    assert response.json()["error"] == EMPTY_QUIZ_MESSAGE


def test_continue_omits_text(http, chat_client):
    chat_client.queue(quiz_json(make_quiz(6)))

    response = http.post(
        "/api/quiz/continue",
        json={"text": SAMPLE_TEXT, "numQuestions": 6},
    )

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"quiz", "error"}
    assert len(body["quiz"]) == 6
    assert chat_client.calls[0]["json_mode"] is True


def test_explain(http, chat_client):
    chat_client.queue("Oxygen is released during photosynthesis.")

    response = http.post(
        "/api/quiz/explain",
        json={
            "question": "Which gas is released?",
            "userAnswer": "Nitrogen",
            "correctAnswer": "Oxygen",
            "contextText": SAMPLE_TEXT,
        },
    )

    assert response.status_code == 200
    assert response.json() == {
        "explanation": "Oxygen is released during photosynthesis.",
        "error": None,
    }
    assert "User's Answer: Nitrogen" in chat_client.last_prompt


def test_explain_requires_question_and_answer(http, chat_client):
    response = http.post("/api/quiz/explain", json={"userAnswer": "x"})

    assert response.status_code == 400
    assert response.json()["explanation"] is None
    assert chat_client.calls == []


def test_explain_failure(http, chat_client):
    chat_client.queue(RuntimeError("down"))

    response = http.post(
        "/api/quiz/explain",
        json={"question": "Q?", "correctAnswer": "A"},
    )

    assert response.status_code == 502
    assert response.json()["error"] == EXPLANATION_FAILED_MESSAGE


def test_sign_returns_url_and_path(http):
    response = http.post(
        "/api/uploads/sign",
        json={"fileName": "notes.txt", "contentType": "text/plain"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["filePath"].endswith("/notes.txt")
    assert body["url"].startswith("http://testserver/api/uploads/")
    assert body["expiresIn"] == 60


def test_sign_requires_a_file_name(http):
    response = http.post(
        "/api/uploads/sign", json={"fileName": "", "contentType": "x/y"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "A file name is required."


def test_upload_then_extract_plain_text(http):
    signed, put = _upload(
        http, "notes.txt", "text/plain", SAMPLE_TEXT.encode("utf-8")
    )
    assert put.status_code == 200
    assert put.json() == {"filePath": signed["filePath"]}

    response = http.post("/api/extract", json={"filePath": signed["filePath"]})

    assert response.status_code == 200
    assert response.json() == {"text": SAMPLE_TEXT}


def test_extract_other_types_through_the_model(http, chat_client):
    chat_client.queue("Handwritten notes about leaves.")
    signed, _ = _upload(http, "scan.png", "image/png", b"\x89PNG data")

    response = http.post("/api/extract", json={"filePath": signed["filePath"]})

    assert response.status_code == 200
    assert response.json()["text"] == "Handwritten notes about leaves."


def test_put_with_wrong_content_type_is_forbidden(http):
    signed = http.post(
        "/api/uploads/sign",
        json={"fileName": "notes.txt", "contentType": "text/plain"},
    ).json()

    response = http.put(
        signed["url"],
        content=b"%PDF",
        headers={"Content-Type": "application/pdf"},
    )

    assert response.status_code == 403


def test_put_with_unknown_token_is_forbidden(http):
    response = http.put(
        "/api/uploads/not-a-token",
        content=b"data",
        headers={"Content-Type": "text/plain"},
    )

    assert response.status_code == 403
    assert response.json()["error"] == "The upload URL is not valid."


def test_put_over_the_limit(http):
    _, response = _upload(http, "big.txt", "text/plain", b"x" * 2048)

    assert response.status_code == 413


def test_extract_requires_a_path(http):
    response = http.post("/api/extract", json={})

    assert response.status_code == 400
    assert response.json()["error"].startswith(
        "Failed to extract text from the file:"
    )


def test_extract_unknown_path(http):
    response = http.post(
        "/api/extract", json={"filePath": "0123abcd/missing.pdf"}
    )

    assert response.status_code == 404
    assert response.json()["error"].startswith(
        "Failed to extract text from the file:"
    )


def test_extract_empty_document(http):
    signed, _ = _upload(http, "blank.txt", "text/plain", b"   \n")

    response = http.post("/api/extract", json={"filePath": signed["filePath"]})

    assert response.status_code == 502
    assert response.json()["error"] == (
        "Failed to extract text from the file: "
        "no text found in the document."
    )


def _chunks(total, size=256):
    def body():
        sent = 0
        while sent < total:
            yield b"x" * size
            sent += size

    return body()


def test_oversized_json_body_is_refused(http, chat_client):
    response = http.post(
        "/api/quiz/generate",
        json={"text": "a" * 10_000, "numQuestions": 5},
    )

    assert response.status_code == 413
    assert response.json()["error"].startswith("Request body exceeds")
    assert chat_client.calls == []


def test_oversized_form_is_refused(http, chat_client):
    response = http.post(
        "/quiz/generate",
        data={"text": "a" * 10_000, "num_questions": "5"},
    )

    assert response.status_code == 413
    assert chat_client.calls == []


def test_streamed_body_is_counted(http, chat_client):
    response = http.post(
        "/api/quiz/explain",
        content=_chunks(4096),
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 413
    assert "content-length" not in response.request.headers
    assert chat_client.calls == []


def test_streamed_upload_over_the_limit(http, store):
    signed = http.post(
        "/api/uploads/sign",
        json={"fileName": "big.txt", "contentType": "text/plain"},
    ).json()

    response = http.put(
        signed["url"],
        content=_chunks(4096),
        headers={"Content-Type": "text/plain"},
    )

    assert response.status_code == 413
    assert not (store.root / signed["filePath"]).exists()


def test_streamed_upload_under_the_limit(http):
    signed = http.post(
        "/api/uploads/sign",
        json={"fileName": "small.txt", "contentType": "text/plain"},
    ).json()

    response = http.put(
        signed["url"],
        content=_chunks(512),
        headers={"Content-Type": "text/plain"},
    )

    assert response.status_code == 200
