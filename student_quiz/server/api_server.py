"""FastAPI server exposing shared-quiz links, quiz sessions and owner endpoints."""

from __future__ import annotations

from threading import Thread

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from pydantic import BaseModel, Field
import uvicorn

from student_quiz.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from student_quiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from student_quiz.constants.quiz_constants import DEFAULT_EXPIRATION_DAYS
from student_quiz.core.markdown_math_renderer import renderer
from student_quiz.core.models import Question, QuestionType, QuizAnswer, SharedQuiz, SharedQuizSettings
from student_quiz.core.quiz_exporter import default_export_filename
from student_quiz.core.quiz_importer import QuizImportError
from student_quiz.core.quiz_manager import (
    ParticipantNameRequiredError,
    QuizManager,
    SessionNotFoundError,
)
from student_quiz.core.services.attempt_history import feedback_for_score
from student_quiz.core.services.quiz_session import QuizSession, SessionState
from student_quiz.core.services.shared_quiz_registry import AccessStatus, SharedQuizAccess, SharedQuizValidationError
from student_quiz.core.share_links import build_share_link

_UNAVAILABLE_MESSAGES = {
    AccessStatus.NOT_FOUND: "This quiz does not exist or has been deleted.",
    AccessStatus.INACTIVE: "This quiz has been closed by its creator.",
    AccessStatus.EXPIRED: "This quiz has expired.",
}


class StartSessionPayload(BaseModel):
    """Payload schema for opening a shared quiz."""

    participant_name: str | None = None


class PracticeSessionPayload(BaseModel):
    """Payload schema for a practice run over the question bank."""

    time_limit_minutes: int | None = Field(default=None, ge=0)
    random_order: bool = True


class AnswerPayload(BaseModel):
    """Payload schema for submitted answers."""

    question_id: str
    answer: str


class ShareQuizPayload(BaseModel):
    """Payload schema for sharing the current question bank."""

    title: str
    creator_name: str
    description: str | None = None
    time_limit_minutes: int | None = Field(default=None, ge=0)
    random_order: bool = True
    allow_retakes: bool = True
    show_results: bool = True
    collect_names: bool = True
    expiration_days: int = Field(default=DEFAULT_EXPIRATION_DAYS, ge=0)


class ActivePayload(BaseModel):
    active: bool


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def _raise_unavailable(access: SharedQuizAccess) -> None:
    status_code = 404 if access.status is AccessStatus.NOT_FOUND else 410
    raise HTTPException(
        status_code=status_code,
        detail={"status": access.status.value, "message": _UNAVAILABLE_MESSAGES[access.status]},
    )


def _question_view(question: Question) -> dict[str, object]:
    """Participant-facing question; never includes the correct answer."""
    options = question.options
    if question.type is QuestionType.TRUE_FALSE:
        options = ["true", "false"]
    return {
        "id": question.id,
        "type": question.type.value,
        "prompt_html": renderer.render_fragment(question.prompt),
        "options": options,
    }


def _answer_review(answer: QuizAnswer) -> dict[str, object]:
    question = answer.question
    return {
        "question_id": answer.question_id,
        "prompt_html": renderer.render_fragment(question.prompt),
        "user_answer": answer.user_answer,
        "correct_answer": question.correct_answer,
        "is_correct": answer.is_correct,
        "partial_score": answer.partial_score,
        "matched_words": list(answer.matched_words) if answer.matched_words is not None else None,
        "total_words": answer.total_words,
        "explanation_html": renderer.render_fragment(question.explanation),
    }


def _quiz_overview(quiz: SharedQuiz) -> dict[str, object]:
    settings = quiz.settings
    return {
        "id": quiz.id,
        "status": AccessStatus.AVAILABLE.value,
        "title": quiz.title,
        "description": quiz.description,
        "created_by": quiz.created_by,
        "question_count": len(quiz.questions),
        "time_limit_minutes": settings.time_limit_minutes,
        "random_order": settings.random_order,
        "allow_retakes": settings.allow_retakes,
        "collect_names": settings.collect_names,
    }


def _session_view(session: QuizSession) -> dict[str, object]:
    position, total = session.progress
    payload: dict[str, object] = {
        "session_id": session.id,
        "state": session.state.name.lower(),
        "position": position,
        "total_questions": total,
        "time_remaining_seconds": session.time_remaining,
        "timer_state": session.timer_state.name.lower() if session.timer_state else None,
        "participant_name": session.participant_name,
        "shared_quiz_id": session.shared_quiz_id,
    }

    question = session.current_question
    if question is not None:
        existing = session.answer_for(question.id)
        payload["question"] = _question_view(question)
        payload["current_answer"] = existing.user_answer if existing else None
        payload["is_last_question"] = session.is_last_question

    attempt = session.attempt
    if session.state is SessionState.COMPLETED and attempt is not None:
        settings = session.shared_settings
        show_results = settings is None or settings.show_results
        result: dict[str, object] = {
            "attempt_id": attempt.id,
            "show_results": show_results,
            "can_retake": settings is None or settings.allow_retakes,
        }
        if show_results:
            result.update(
                {
                    "score": attempt.score,
                    "correct_count": attempt.correct_count,
                    "time_spent_seconds": attempt.time_spent_seconds,
                    "feedback": feedback_for_score(attempt.score),
                    "answers": [_answer_review(answer) for answer in attempt.answers],
                }
            )
        else:
            result["message"] = f'Thank you for taking "{session.shared_title or ""}". Your responses have been recorded.'
        payload["result"] = result
    return payload


def create_api_app(quiz_manager: QuizManager, public_base_url: str | None = None) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)
    base_url = public_base_url or f"http://localhost:{DEFAULT_PORT}"

    def open_available(manager: QuizManager, quiz_id: str) -> SharedQuiz:
        access = manager.open_shared_quiz(quiz_id)
        if not access.is_available:
            _raise_unavailable(access)
        return access.quiz

    def session_or_404(manager: QuizManager, session_id: str) -> QuizSession:
        try:
            return manager.get_session(session_id)
        except SessionNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Quiz session not found.") from exc

    @app.get("/")
    def resolve_link(quiz: str | None = None, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        if quiz is None:
            return {"service": APP_NAME, "version": APP_VERSION, "license": APP_LICENSE, "about": APP_ABOUT_TEXT}
        return _quiz_overview(open_available(manager, quiz))

    @app.get("/healthz", include_in_schema=False)
    def health() -> dict[str, bool]:
        return {"ok": True}

    # --- Link holders ---

    @app.get("/shared/{quiz_id}")
    def get_shared_quiz(quiz_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        return _quiz_overview(open_available(manager, quiz_id))

    @app.post("/shared/{quiz_id}/sessions", status_code=201)
    def start_shared_session(
        quiz_id: str,
        payload: StartSessionPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        quiz = open_available(manager, quiz_id)
        try:
            session = manager.start_shared_session(quiz, payload.participant_name)
        except ParticipantNameRequiredError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return _session_view(session)

    # --- Practice and progress ---

    @app.post("/practice/sessions", status_code=201)
    def start_practice_session(
        payload: PracticeSessionPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            session = manager.start_practice_session(payload.time_limit_minutes or None, payload.random_order)
        except ValueError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return _session_view(session)

    @app.get("/progress")
    def get_progress(manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        summary = manager.get_progress_summary()
        return {
            "best_score": summary.best_score,
            "average_score": summary.average_score,
            "total_attempts": summary.total_attempts,
            "recent": [
                {
                    "id": attempt.id,
                    "date": attempt.date,
                    "score": attempt.score,
                    "correct_count": attempt.correct_count,
                    "total_questions": attempt.total_questions,
                    "time_spent_seconds": attempt.time_spent_seconds,
                    "feedback": feedback_for_score(attempt.score),
                }
                for attempt in manager.get_recent_attempts()
            ],
        }

    # --- Sessions ---

    @app.get("/sessions/{session_id}")
    def get_session(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        session = session_or_404(manager, session_id)
        return _session_view(session)

    @app.post("/sessions/{session_id}/answer")
    def submit_answer(
        session_id: str,
        payload: AnswerPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        session = session_or_404(manager, session_id)
        answer = manager.submit_answer(session.id, payload.question_id, payload.answer)
        if answer is None:
            raise HTTPException(status_code=409, detail="That question is not the current question.")
        return _session_view(session)

    @app.post("/sessions/{session_id}/advance")
    def advance_session(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        session = session_or_404(manager, session_id)
        if not manager.advance_session(session.id):
            raise HTTPException(status_code=409, detail="Answer the current question before moving on.")
        return _session_view(session)

    @app.post("/sessions/{session_id}/pause")
    def pause_session(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        session = session_or_404(manager, session_id)
        manager.pause_session(session.id)
        return _session_view(session)

    @app.post("/sessions/{session_id}/resume")
    def resume_session(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        session = session_or_404(manager, session_id)
        manager.resume_session(session.id)
        return _session_view(session)

    @app.delete("/sessions/{session_id}", status_code=204)
    def end_session(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> None:
        manager.end_session(session_id)

    # --- Owner ---

    @app.get("/manage/shared")
    def list_shared_quizzes(manager: QuizManager = Depends(quiz_manager_dep)) -> list[dict[str, object]]:
        rows = []
        for quiz in manager.get_shared_quizzes():
            stats = manager.get_shared_quiz_stats(quiz)
            rows.append(
                {
                    "id": quiz.id,
                    "title": quiz.title,
                    "link": build_share_link(base_url, quiz.id),
                    "is_active": quiz.is_active,
                    "is_expired": manager.is_shared_quiz_expired(quiz),
                    "created_at": quiz.created_at,
                    "expires_at": quiz.expires_at,
                    "attempts": stats.attempts,
                    "average_score": stats.average_score,
                    "best_score": stats.best_score,
                }
            )
        return rows

    @app.post("/manage/shared", status_code=201)
    def share_quiz(payload: ShareQuizPayload, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        settings = SharedQuizSettings(
            time_limit_minutes=payload.time_limit_minutes or None,
            random_order=payload.random_order,
            allow_retakes=payload.allow_retakes,
            show_results=payload.show_results,
            collect_names=payload.collect_names,
        )
        try:
            quiz = manager.share_quiz(
                payload.title,
                payload.creator_name,
                settings,
                description=payload.description,
                expiration_days=payload.expiration_days,
            )
        except SharedQuizValidationError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return {"id": quiz.id, "link": build_share_link(base_url, quiz.id), "expires_at": quiz.expires_at}

    @app.get("/manage/shared/{quiz_id}/attempts")
    def list_attempts(quiz_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> list[dict[str, object]]:
        quiz = manager.get_shared_quiz(quiz_id)
        if quiz is None:
            raise HTTPException(status_code=404, detail="Shared quiz not found.")
        ordered = sorted(quiz.attempts, key=lambda a: a.date, reverse=True)
        return [attempt.to_dict() for attempt in ordered]

    @app.post("/manage/shared/{quiz_id}/active")
    def set_active(
        quiz_id: str,
        payload: ActivePayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        quiz = manager.set_shared_quiz_active(quiz_id, payload.active)
        if quiz is None:
            raise HTTPException(status_code=404, detail="Shared quiz not found.")
        return {"id": quiz.id, "is_active": quiz.is_active}

    @app.delete("/manage/shared/{quiz_id}", status_code=204)
    def delete_shared_quiz(quiz_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> None:
        manager.delete_shared_quiz(quiz_id)

    @app.get("/manage/questions/export")
    def export_questions(manager: QuizManager = Depends(quiz_manager_dep)) -> Response:
        return Response(
            content=manager.export_questions(),
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{default_export_filename()}"'},
        )

    @app.post("/manage/questions/import")
    async def import_questions(request: Request, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, int]:
        body = (await request.body()).decode("utf-8", errors="replace")
        try:
            imported = manager.import_questions(body)
        except QuizImportError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"imported": imported}

    return app


def start_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    public_base_url: str | None = None,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(quiz_manager, public_base_url=public_base_url)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="QuizApiServer", daemon=True)
    thread.start()
    return thread
