"""JSON endpoints: generation, explanations, uploads and extraction.

Bodies use camelCase keys. Every error response carries a single
``error`` message; the status code separates validation problems (400),
rejected upload tokens (403), unknown objects (404), oversized bodies (413)
and provider failures (502).
"""

from __future__ import annotations

from typing import Any, Mapping

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from starlette.concurrency import run_in_threadpool

from quizify.services.explanation import (
    ExplanationError,
    ExplanationRequest,
    explain_solution,
)
from quizify.services.extraction import (
    ExtractionError,
    extract_text,
    failure_message,
)
from quizify.services.generation import (
    GenerationError,
    QuizValidationError,
    generate_quiz,
    validate_request,
)
from quizify.services.storage import (
    ObjectNotFoundError,
    StorageError,
    UploadTooLargeError,
    UploadUrlError,
)

from ..deps import services

router = APIRouter(prefix="/api", tags=["api"])


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateBody(_CamelModel):
    # Checked by validate_request rather than pydantic
    text: Any = None
    num_questions: Any = None


class ExplainBody(_CamelModel):
    question: str = ""
    user_answer: str = ""
    correct_answer: str = ""
    context_text: str = ""


class SignBody(_CamelModel):
    file_name: str = ""
    content_type: str = ""


class ExtractBody(_CamelModel):
    file_path: str = ""


@router.post("/quiz/generate")
async def api_generate(request: Request, body: GenerateBody):
    return await _generate(request, body, continuation=False)


@router.post("/quiz/continue")
async def api_continue(request: Request, body: GenerateBody):
    return await _generate(request, body, continuation=True)


@router.post("/quiz/explain")
async def api_explain(request: Request, body: ExplainBody):
    svc = services(request)
    if not body.question or not body.correct_answer:
        return _error(
            {"explanation": None},
            "question and correctAnswer are required.",
            400,
        )
    try:
        explanation = await run_in_threadpool(
            explain_solution,
            ExplanationRequest(
                question=body.question,
                user_answer=body.user_answer,
                correct_answer=body.correct_answer,
                context_text=body.context_text,
            ),
            client=svc.client,
            logger=svc.logger,
            max_context_chars=svc.config.quiz.explanation_context_chars,
        )
    except ExplanationError as exc:
        return _error({"explanation": None}, str(exc), 502)
    return JSONResponse({"explanation": explanation, "error": None})


@router.post("/uploads/sign")
async def api_sign_upload(request: Request, body: SignBody):
    svc = services(request)
    try:
        pending = svc.store.create_upload(body.file_name, body.content_type)
    except StorageError as exc:
        return _error({}, str(exc), 400)
    url = request.url_for("api_put_upload", token=pending.token)
    svc.logger.info(
        "Signed upload URL",
        extra={
            "file_path": pending.file_path,
            "content_type": pending.content_type,
        },
    )
    return JSONResponse(
        {
            "url": str(url),
            "filePath": pending.file_path,
            "expiresIn": pending.expires_in,
        }
    )


@router.put("/uploads/{token}", name="api_put_upload")
async def api_put_upload(request: Request, token: str):
    svc = services(request)
    data = await request.body()
    try:
        stored = await run_in_threadpool(
            svc.store.accept_upload,
            token,
            data,
            content_type=request.headers.get("content-type"),
        )
    except StorageError as exc:
        svc.logger.warning(
            "Upload rejected",
            extra={"error_type": type(exc).__name__, "bytes": len(data)},
        )
        return _error({}, str(exc), _storage_status(exc))
    svc.logger.info(
        "Stored upload",
        extra={"file_path": stored.file_path, "bytes": stored.size},
    )
    return JSONResponse({"filePath": stored.file_path})


@router.post("/extract")
async def api_extract(request: Request, body: ExtractBody):
    svc = services(request)
    if not body.file_path:
        return _error({}, failure_message("no file path given."), 400)
    try:
        stored = await run_in_threadpool(svc.store.read, body.file_path)
        text = await run_in_threadpool(
            extract_text,
            stored,
            dependencies=svc.extractors,
            logger=svc.logger,
        )
    except ObjectNotFoundError as exc:
        return _error({}, failure_message(str(exc)), 404)
    except ExtractionError as exc:
        return _error({}, str(exc), 502)
    return JSONResponse({"text": text})


async def _generate(
    request: Request, body: GenerateBody, *, continuation: bool
) -> JSONResponse:
    svc = services(request)
    base: dict[str, Any] = {"quiz": None}
    if not continuation:
        base["text"] = None
    try:
        generation = validate_request(body.text, body.num_questions)
    except QuizValidationError as exc:
        return _error(base, str(exc), 400)
    try:
        quiz = await run_in_threadpool(
            generate_quiz,
            generation,
            client=svc.client,
            logger=svc.logger,
            continuation=continuation,
        )
    except GenerationError as exc:
        return _error(base, str(exc), 502)
    payload: dict[str, Any] = {"quiz": quiz.to_list(), "error": None}
    if not continuation:
        payload["text"] = generation.text
    return JSONResponse(payload)


def _storage_status(exc: StorageError) -> int:
    if isinstance(exc, UploadUrlError):
        return 403
    if isinstance(exc, UploadTooLargeError):
        return 413
    if isinstance(exc, ObjectNotFoundError):
        return 404
    return 400


def _error(
    base: Mapping[str, Any], message: str, status_code: int
) -> JSONResponse:
    return JSONResponse({**base, "error": message}, status_code=status_code)
