"""Server-rendered pages driving the per-session :class:`QuizFlow`.

Every form post mutates the session state and redirects back to ``/``
(post/redirect/get); errors travel to the next render as a flash message.
Model calls run in the thread pool and their results are applied only when
their ticket is still the latest for its key.
"""

from __future__ import annotations

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from starlette.concurrency import run_in_threadpool

from quizify.quiz.flow import AppState, QuizFlowError
from quizify.quiz.tracking import OperationState
from quizify.services.explanation import (
    ExplanationError,
    ExplanationRequest,
    explain_solution,
)
from quizify.services.generation import (
    GenerationError,
    GenerationRequest,
    QuizValidationError,
    continuation_count,
    generate_quiz,
    validate_request,
)

from ..deps import services, web_session

router = APIRouter()

CHOICE_KEYS = "ABCD"
GENERATE_KEY = "generate"


def _home(anchor: str = "") -> RedirectResponse:
    return RedirectResponse("/" + anchor, status_code=303)


@router.get("/", response_class=HTMLResponse)
def index(request: Request):
    svc = services(request)
    session = web_session(request)
    flow = session.flow
    context = {
        "error": session.take_error(),
        "flow": flow,
        "generating": flow.operations.state(GENERATE_KEY)
        is OperationState.IN_FLIGHT,
    }
    if flow.state is AppState.QUIZ:
        template = "quiz.html"
        context.update(
            question=flow.current,
            choices=list(zip(CHOICE_KEYS, flow.current.answers)),
            selected=flow.current_answer,
        )
    elif flow.state is AppState.RESULTS:
        template = "results.html"
        context.update(
            report=flow.report(),
            explanations={
                index: flow.explanations.get(index)
                for index in range(flow.total_questions)
            },
        )
    else:
        template = "config.html"
        context.update(
            text=session.text,
            num_questions=session.num_questions,
        )
    return svc.templates.TemplateResponse(request, template, context)


@router.post("/quiz/generate")
async def generate(
    request: Request,
    text: str = Form(""),
    num_questions: str = Form(""),
):
    svc = services(request)
    session = web_session(request)
    flow = session.flow
    session.text = text
    if flow.state is not AppState.CONFIG:
        return _home()
    try:
        generation = validate_request(text, num_questions)
    except QuizValidationError as exc:
        session.flash(str(exc))
        return _home()
    session.num_questions = generation.num_questions

    ticket = flow.operations.begin(GENERATE_KEY)
    try:
        quiz = await run_in_threadpool(
            generate_quiz,
            generation,
            client=svc.client,
            logger=svc.logger,
        )
    except GenerationError as exc:
        if flow.operations.fail(ticket, str(exc)):
            session.flash(str(exc))
        return _home()
    if flow.operations.complete(ticket, quiz):
        if flow.state is AppState.CONFIG:
            flow.start(quiz, generation.text)
    return _home()


@router.post("/quiz/answer")
def answer(
    request: Request,
    index: int = Form(...),
    answer: str = Form(...),
):
    session = web_session(request)
    try:
        session.flow.set_answer(index, answer)
    except (IndexError, QuizFlowError) as exc:
        session.flash(str(exc))
    return _home()


@router.post("/quiz/next")
def next_question(request: Request):
    session = web_session(request)
    try:
        session.flow.advance()
    except QuizFlowError as exc:
        session.flash(str(exc))
    return _home()


@router.post("/quiz/back")
def previous_question(request: Request):
    session = web_session(request)
    try:
        session.flow.retreat()
    except QuizFlowError as exc:
        session.flash(str(exc))
    return _home()


@router.post("/quiz/submit")
def submit(request: Request):
    session = web_session(request)
    try:
        session.flow.submit()
    except QuizFlowError as exc:
        session.flash(str(exc))
    return _home()


@router.post("/results/restart")
def restart(request: Request):
    svc = services(request)
    session = web_session(request)
    session.flow.restart()
    session.text = ""
    session.num_questions = svc.config.quiz.default_questions
    return _home()


@router.post("/results/continue")
async def continue_quiz(request: Request):
    svc = services(request)
    session = web_session(request)
    flow = session.flow
    if flow.state is not AppState.RESULTS:
        return _home()
    if flow.operations.state(GENERATE_KEY) is OperationState.IN_FLIGHT:
        return _home()
    generation = GenerationRequest(
        text=flow.source_text,
        num_questions=continuation_count(flow.total_questions),
    )
    ticket = flow.operations.begin(GENERATE_KEY)
    try:
        quiz = await run_in_threadpool(
            generate_quiz,
            generation,
            client=svc.client,
            logger=svc.logger,
            continuation=True,
        )
    except GenerationError as exc:
        if flow.operations.fail(ticket, str(exc)):
            session.flash(str(exc))
        return _home()
    if flow.operations.complete(ticket, quiz):
        if flow.state is AppState.RESULTS:
            flow.continue_with(quiz)
    return _home()


@router.post("/results/explain/{index}")
async def explain(request: Request, index: int):
    svc = services(request)
    session = web_session(request)
    flow = session.flow
    if flow.state is not AppState.RESULTS:
        return _home()
    report = flow.report()
    if not 0 <= index < len(report.reviews):
        session.flash("No question with that number.")
        return _home()
    review = report.reviews[index]
    anchor = f"#question-{index + 1}"
    if review.is_correct:
        return _home(anchor)
    if flow.explanations.state(index) in (
        OperationState.IN_FLIGHT,
        OperationState.DONE,
    ):
        return _home(anchor)

    ticket = flow.explanations.begin(index)
    try:
        explanation = await run_in_threadpool(
            explain_solution,
            ExplanationRequest(
                question=review.question,
                user_answer=review.user_answer,
                correct_answer=review.correct_answer,
                context_text=flow.source_text,
            ),
            client=svc.client,
            logger=svc.logger,
            max_context_chars=svc.config.quiz.explanation_context_chars,
        )
    except ExplanationError as exc:
        flow.explanations.fail(ticket, str(exc))
    else:
        flow.explanations.complete(ticket, explanation)
    return _home(anchor)
