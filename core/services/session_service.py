# =============================================================================
# core/services/session_service.py - Practice Session Business Logic
# =============================================================================
# Handles the practice/test session lifecycle:
# - Create: select questions and open the session
# - Progress: pause, resume and save position
# - Answers: record answers with server-side correctness
# - Complete: score, grade, user stats, topic progress, goals,
#   achievements and notifications
# Separates HTTP concerns from database/business logic.
# =============================================================================

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from app.exceptions import (
    BadRequestError,
    QuestionNotFoundError,
    SessionNotFoundError,
    SubjectNotFoundError,
)
from core.models.session import (
    AnswerSubmit,
    SessionCreate,
    SessionMode,
    SessionProgressUpdate,
    SessionStatus,
)
from core.services.achievement_service import AchievementService
from core.services.goal_service import GoalService
from core.services.notification_service import NotificationService
from core.services.progress_service import ProgressService, grade_label, score_percentage
from core.services.question_selector import QuestionSelector
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

# Fields hidden from test and timed sessions until completion
ANSWER_FIELDS = (
    "correct_answer",
    "explanation",
    "solution",
    "hint",
    "hint1",
    "hint2",
    "hint3",
)

INCOMPLETE_STATUSES = (SessionStatus.IN_PROGRESS.value, SessionStatus.PAUSED.value)

DEFAULT_LIST_LIMIT = 10


def hides_answers(session: dict[str, Any]) -> bool:
    """Test and timed sessions keep answers hidden until completed."""
    return (
        session.get("mode") in (SessionMode.TEST.value, SessionMode.TIMED.value)
        and session.get("status") != SessionStatus.COMPLETED.value
    )


def strip_answers(question: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in question.items() if k not in ANSWER_FIELDS}


def session_topic_ids(session: dict[str, Any]) -> list[str]:
    """topic_ids of a session, falling back to its single topic_id."""
    topic_ids = session.get("topic_ids") or []
    if not topic_ids and session.get("topic_id"):
        topic_ids = [session["topic_id"]]
    return [str(t) for t in topic_ids]


def is_correct_answer(question: dict[str, Any], user_answer: str | None) -> bool:
    if not user_answer:
        return False
    expected = (question.get("correct_answer") or "").strip().upper()
    return bool(expected) and user_answer.strip().upper() == expected


class SessionService:
    """
    Service for practice session operations.

    Every operation is scoped to the owning user.
    """

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @staticmethod
    def _fetch(session_id: str | UUID, user_id: str | UUID) -> dict[str, Any]:
        client = SupabaseClient.get_client()
        response = (
            client.table("sessions")
            .select("*")
            .eq("id", str(session_id))
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            raise SessionNotFoundError(str(session_id))
        session = response.data[0]
        session["topic_ids"] = session_topic_ids(session)
        return session

    @staticmethod
    def _questions(question_ids: list[str]) -> list[dict[str, Any]]:
        """Questions by id, in the given order."""
        if not question_ids:
            return []
        client = SupabaseClient.get_client()
        rows = client.table("questions").select("*").in_("id", question_ids).execute().data or []
        by_id = {str(row["id"]): row for row in rows}
        return [by_id[qid] for qid in question_ids if qid in by_id]

    @staticmethod
    def _answers(session_id: str | UUID) -> list[dict[str, Any]]:
        client = SupabaseClient.get_client()
        response = (
            client.table("session_answers")
            .select("*")
            .eq("session_id", str(session_id))
            .order("created_at")
            .execute()
        )
        return response.data or []

    @staticmethod
    def _scored_answers(session: dict[str, Any]) -> list[dict[str, Any]]:
        """Answers limited to the questions the session was built with."""
        answers = SessionService._answers(session["id"])
        question_ids = {str(q) for q in session.get("question_ids") or []}
        if not question_ids:
            return answers
        return [a for a in answers if str(a.get("question_id")) in question_ids]

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @staticmethod
    def create_session(
        user_id: str | UUID,
        payload: SessionCreate,
        selector: QuestionSelector | None = None,
    ) -> dict[str, Any]:
        """
        Select questions and open a session.

        Returns:
            {"session", "questions", "selection"}

        Raises:
            SubjectNotFoundError: Unknown subject
            BadRequestError: No questions could be selected
        """
        subject_id = str(payload.subject_id)
        if not SupabaseClient.fetch_by_id("subjects", subject_id, columns="id"):
            raise SubjectNotFoundError(subject_id)

        distribution = (
            {str(k): v for k, v in payload.distribution.items()} if payload.distribution else None
        )
        if distribution:
            topic_ids = list(distribution)
        elif payload.topic_ids:
            topic_ids = [str(t) for t in payload.topic_ids]
        elif payload.topic_id:
            topic_ids = [str(payload.topic_id)]
        else:
            topic_ids = _active_topic_ids(subject_id)

        if not topic_ids:
            raise BadRequestError(
                "No topics available for this subject",
                code="NO_TOPICS",
                suggestion="Choose a subject with at least one active topic",
            )

        selector = selector or QuestionSelector()
        selection = selector.select_for_session(
            user_id, subject_id, topic_ids, payload.total_questions, distribution
        )
        if not selection.questions:
            raise BadRequestError(
                "No questions available for the selected topics",
                code="NO_QUESTIONS",
                suggestion="Try different topics or check back later",
            )

        question_ids = [str(q["id"]) for q in selection.questions]
        row = {
            "user_id": str(user_id),
            "subject_id": subject_id,
            "topic_id": topic_ids[0],
            "topic_ids": topic_ids,
            "question_ids": question_ids,
            "mode": payload.mode.value,
            "total_questions": len(question_ids),
            "time_limit_seconds": payload.time_limit_seconds,
            "status": SessionStatus.IN_PROGRESS.value,
            "last_question_index": 0,
            "started_at": datetime.now(timezone.utc).isoformat(),
        }
        client = SupabaseClient.get_client()
        session = client.table("sessions").insert(row).execute().data[0]
        logger.info(
            f"Created {payload.mode.value} session {session['id']} for user {user_id} "
            f"with {len(question_ids)} questions"
        )

        questions = selection.questions
        if hides_answers(session):
            questions = [strip_answers(q) for q in questions]

        return {"session": session, "questions": questions, "selection": selection.metadata()}

    @staticmethod
    def get_session(session_id: str | UUID, user_id: str | UUID) -> dict[str, Any]:
        """Session with its questions and recorded answers."""
        session = SessionService._fetch(session_id, user_id)
        questions = SessionService._questions([str(q) for q in session.get("question_ids") or []])
        if hides_answers(session):
            questions = [strip_answers(q) for q in questions]
        return {
            "session": session,
            "questions": questions,
            "answers": SessionService._scored_answers(session),
        }

    @staticmethod
    def list_sessions(
        user_id: str | UUID,
        limit: int = DEFAULT_LIST_LIMIT,
        status: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        The user's sessions, unfinished ones first, newest first within each group.
        """
        client = SupabaseClient.get_client()
        query = client.table("sessions").select("*").eq("user_id", str(user_id))
        if status:
            query = query.eq("status", status)
        sessions = query.order("started_at", desc=True).limit(limit).execute().data or []

        incomplete = [s for s in sessions if s.get("status") in INCOMPLETE_STATUSES]
        others = [s for s in sessions if s.get("status") not in INCOMPLETE_STATUSES]
        for session in sessions:
            session["topic_ids"] = session_topic_ids(session)
        return incomplete + others

    @staticmethod
    def update_progress(
        session_id: str | UUID,
        user_id: str | UUID,
        payload: SessionProgressUpdate,
    ) -> dict[str, Any]:
        """
        Save position, time spent, or pause/resume.

        Raises:
            BadRequestError: Session already finished, or an invalid status change
        """
        session = SessionService._fetch(session_id, user_id)
        if session.get("status") not in INCOMPLETE_STATUSES:
            raise BadRequestError(
                f"Session is already {session.get('status')}",
                code="SESSION_CLOSED",
            )

        update: dict[str, Any] = {}
        if payload.status is not None:
            if payload.status.value not in INCOMPLETE_STATUSES:
                raise BadRequestError(
                    "Status can only be set to in_progress or paused",
                    code="INVALID_STATUS",
                    suggestion="Use the complete endpoint to finish a session",
                )
            update["status"] = payload.status.value
        if payload.last_question_index is not None:
            update["last_question_index"] = payload.last_question_index
        if payload.time_spent_seconds is not None:
            update["time_spent_seconds"] = payload.time_spent_seconds

        if not update:
            raise BadRequestError("No valid update fields provided", code="NO_CHANGES")

        client = SupabaseClient.get_client()
        response = (
            client.table("sessions")
            .update(update)
            .eq("id", str(session_id))
            .eq("user_id", str(user_id))
            .execute()
        )
        return response.data[0] if response.data else {**session, **update}

    @staticmethod
    def can_resume(session_id: str | UUID, user_id: str | UUID) -> dict[str, Any]:
        """Whether an unfinished session still has questions to continue with."""
        try:
            session = SessionService._fetch(session_id, user_id)
        except SessionNotFoundError:
            return {"canResume": False, "hasAnswers": False, "questionCount": 0, "reason": "Session not found"}

        if session.get("status") not in INCOMPLETE_STATUSES:
            return {
                "canResume": False,
                "hasAnswers": False,
                "questionCount": 0,
                "reason": f"Session is {session.get('status')}",
            }

        answers = SessionService._answers(session_id)
        if answers:
            return {"canResume": True, "hasAnswers": True, "questionCount": len(answers)}

        question_ids = session.get("question_ids") or []
        if question_ids:
            return {"canResume": True, "hasAnswers": False, "questionCount": len(question_ids)}

        for topic_id in session["topic_ids"]:
            if SupabaseClient.count_rows("questions", topic_id=topic_id, status="published"):
                return {"canResume": True, "hasAnswers": False, "questionCount": 0}

        return {"canResume": False, "hasAnswers": False, "questionCount": 0, "reason": "No questions available"}

    @staticmethod
    def record_answer(
        session_id: str | UUID,
        user_id: str | UUID,
        payload: AnswerSubmit,
    ) -> dict[str, Any]:
        """
        Save an answer, replacing any earlier answer to the same question.

        Returns:
            The stored answer; practice sessions also get the correct answer
        """
        session = SessionService._fetch(session_id, user_id)
        if session.get("status") not in INCOMPLETE_STATUSES:
            raise BadRequestError("Session is already completed", code="SESSION_CLOSED")

        question_id = str(payload.question_id)
        session_questions = [str(q) for q in session.get("question_ids") or []]
        if session_questions and question_id not in session_questions:
            raise BadRequestError(
                f"Question {question_id} is not part of this session",
                code="QUESTION_NOT_IN_SESSION",
            )

        question = SupabaseClient.fetch_by_id(
            "questions", question_id, columns="id, topic_id, correct_answer, explanation"
        )
        if not question:
            raise QuestionNotFoundError(question_id)

        user_answer = payload.user_answer.strip().upper() if payload.user_answer else None
        is_correct = is_correct_answer(question, user_answer)

        client = SupabaseClient.get_client()
        response = client.table("session_answers").upsert(
            {
                "session_id": str(session_id),
                "question_id": question_id,
                "topic_id": question.get("topic_id"),
                "user_answer": user_answer,
                "is_correct": is_correct,
                "time_spent_seconds": payload.time_spent_seconds,
                "hint_used": payload.hint_used,
                "hint_level": payload.hint_level,
                "solution_viewed": payload.solution_viewed,
                "attempt_count": payload.attempt_count,
            },
            on_conflict="session_id,question_id",
        ).execute()
        answer = response.data[0] if response.data else {}

        result: dict[str, Any] = {"answer": answer, "isCorrect": is_correct}
        if not hides_answers(session):
            result["correctAnswer"] = question.get("correct_answer")
            result["explanation"] = question.get("explanation")
        return result

    @staticmethod
    def complete_session(
        session_id: str | UUID,
        user_id: str | UUID,
        time_spent_seconds: int | None = None,
    ) -> dict[str, Any]:
        """
        Finish a session and apply its results.

        Score is correct / total questions. User totals, streak, topic
        progress and notifications are updated afterwards; failures there
        are logged and don't undo the completion.
        """
        session = SessionService._fetch(session_id, user_id)
        if session.get("status") == SessionStatus.COMPLETED.value:
            raise BadRequestError("Session is already completed", code="SESSION_CLOSED")

        answers = SessionService._scored_answers(session)
        answered = [a for a in answers if a.get("user_answer")]
        correct = sum(1 for a in answers if a.get("is_correct"))
        total = session.get("total_questions") or len(answers)
        score = score_percentage(correct, total)

        if time_spent_seconds is None:
            time_spent_seconds = session.get("time_spent_seconds") or sum(
                a.get("time_spent_seconds") or 0 for a in answers
            )

        update = {
            "status": SessionStatus.COMPLETED.value,
            "completed_at": datetime.now(timezone.utc).isoformat(),
            "score_percentage": round(score, 2),
            "time_spent_seconds": time_spent_seconds,
            "correct_answers": correct,
            "questions_answered": len(answered),
        }
        client = SupabaseClient.get_client()
        response = (
            client.table("sessions")
            .update(update)
            .eq("id", str(session_id))
            .eq("user_id", str(user_id))
            .execute()
        )
        completed = response.data[0] if response.data else {**session, **update}
        logger.info(f"Completed session {session_id} for user {user_id}: {correct}/{total} ({score:.1f}%)")

        stats = SessionService._apply_results(user_id, completed, answers, time_spent_seconds)

        return {
            "session": completed,
            "score": {
                "correct": correct,
                "total": total,
                "percentage": round(score, 2),
                "grade": grade_label(score),
            },
            **stats,
        }

    @staticmethod
    def _apply_results(
        user_id: str | UUID,
        session: dict[str, Any],
        answers: list[dict[str, Any]],
        time_spent_seconds: int,
    ) -> dict[str, Any]:
        """Totals, streak, topic progress, goals and achievements for a finished session."""
        result: dict[str, Any] = {
            "xpEarned": 0,
            "streak": None,
            "goalsAchieved": [],
            "achievementsUnlocked": [],
        }
        answered = session.get("questions_answered") or 0
        correct = session.get("correct_answers") or 0

        try:
            totals = ProgressService.record_session_totals(
                user_id, answered, correct, time_spent_seconds // 60
            )
            result["xpEarned"] = totals["xpEarned"]
        except Exception as e:
            logger.error(f"Failed to update stats for user {user_id}: {e}")

        try:
            result["streak"] = ProgressService.update_streak(user_id)
        except Exception as e:
            logger.error(f"Failed to update streak for user {user_id}: {e}")

        per_topic: dict[str, list[int]] = defaultdict(lambda: [0, 0])
        for answer in answers:
            topic_id = answer.get("topic_id") or session.get("topic_id")
            if not topic_id or not answer.get("user_answer"):
                continue
            per_topic[str(topic_id)][0] += 1
            per_topic[str(topic_id)][1] += 1 if answer.get("is_correct") else 0

        for topic_id, (attempted, topic_correct) in per_topic.items():
            try:
                ProgressService.update_topic_progress(
                    user_id, session["subject_id"], topic_id, attempted, topic_correct
                )
            except Exception as e:
                logger.error(f"Failed to update progress for topic {topic_id}: {e}")

        try:
            stats = ProgressService.get_stats(user_id)
            result["goalsAchieved"] = GoalService.record_session(
                user_id, answered, time_spent_seconds // 60, stats
            )
            result["achievementsUnlocked"] = AchievementService.check_and_award(user_id, stats)
        except Exception as e:
            logger.error(f"Failed to update goals and achievements for user {user_id}: {e}")

        NotificationService.notify_session_completed(user_id, session)
        return result

    @staticmethod
    def get_results(session_id: str | UUID, user_id: str | UUID) -> dict[str, Any]:
        """
        Answers of a session joined with their questions, in question order.
        """
        session = SessionService._fetch(session_id, user_id)
        answers = {str(a["question_id"]): a for a in SessionService._scored_answers(session)}

        question_ids = [str(q) for q in session.get("question_ids") or []] or list(answers)
        questions = SessionService._questions(question_ids)
        if hides_answers(session):
            questions = [strip_answers(q) for q in questions]

        items = [
            {"question": question, "answer": answers.get(str(question["id"]))}
            for question in questions
        ]
        correct = sum(1 for a in answers.values() if a.get("is_correct"))
        total = session.get("total_questions") or len(items)
        score = score_percentage(correct, total)
        return {
            "session": session,
            "results": items,
            "summary": {
                "correct": correct,
                "total": total,
                "answered": sum(1 for a in answers.values() if a.get("user_answer")),
                "percentage": round(score, 2),
                "grade": grade_label(score),
            },
        }


def _active_topic_ids(subject_id: str) -> list[str]:
    client = SupabaseClient.get_client()
    response = (
        client.table("topics")
        .select("id")
        .eq("subject_id", subject_id)
        .eq("status", "active")
        .order("display_order")
        .execute()
    )
    return [str(row["id"]) for row in response.data or []]
