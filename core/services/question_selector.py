# =============================================================================
# core/services/question_selector.py - Practice Question Selection
# =============================================================================
# Picks questions for a practice session:
#
# Single topic:
#   Published questions of the topic minus exclusions. If the pool is no
#   larger than the request it is returned shuffled. Otherwise roughly 30%
#   Easy / 50% Medium / rest Hard, topped up from anything left, then
#   rebalanced across exam types when there is more than one.
#
# Several topics:
#   Over-fetch per topic, keep exam types diverse, shuffle, trim.
#
# Explicit distribution {topic_id: count}:
#   Each topic gets its count; shortfalls are made up from the topics
#   that asked for the most.
#
# Non-repetition:
#   Selected ids are recorded in user_attempted_questions per user and
#   subject. When the unattempted pool is empty, or smaller than the
#   request and under 10% of the subject, the record is reset.
# =============================================================================

from __future__ import annotations

import logging
import math
import random
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Iterable
from uuid import UUID

from core.models.question import QuestionStatus
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

EASY_SHARE = 0.3
MEDIUM_SHARE = 0.5

# Multi-topic over-fetch
OVERFETCH_FACTOR = 3
MIN_PER_TOPIC_SMALL = 3
MIN_PER_TOPIC_LARGE = 5
SMALL_REQUEST = 10

# Exam-type rebalancing only kicks in above this many picks
DIVERSITY_MIN_SELECTED = 5

# Reset the attempted pool when what's left is below this share of it
POOL_RESET_SHARE = 0.1

Question = dict[str, Any]


@dataclass
class SelectionResult:
    """Questions picked for a session plus pool bookkeeping."""
    questions: list[Question] = field(default_factory=list)
    pool_reset: bool = False
    remaining_in_pool: int = 0
    total_in_pool: int = 0
    attempted_before: int = 0

    def metadata(self) -> dict[str, Any]:
        return {
            "poolReset": self.pool_reset,
            "remainingInPool": self.remaining_in_pool,
            "totalInPool": self.total_in_pool,
            "attemptedBefore": self.attempted_before,
        }


# =============================================================================
# Pure Selection
# =============================================================================

def difficulty_targets(count: int) -> tuple[int, int, int]:
    """
    Easy/Medium/Hard split for a request.

    Example:
        difficulty_targets(10)  # (3, 5, 2)
    """
    easy = max(1, round(count * EASY_SHARE))
    medium = max(1, round(count * MEDIUM_SHARE))
    hard = max(0, count - easy - medium)
    return easy, medium, hard


def _shuffled(items: Iterable[Question], rng: random.Random) -> list[Question]:
    items = list(items)
    rng.shuffle(items)
    return items


def _group(questions: Iterable[Question], key: str, default: str) -> dict[str, list[Question]]:
    groups: dict[str, list[Question]] = defaultdict(list)
    for q in questions:
        groups[q.get(key) or default].append(q)
    return groups


def pick_balanced(
    pool: list[Question],
    count: int,
    exclude: set[str] | None = None,
    rng: random.Random | None = None,
) -> list[Question]:
    """
    Pick up to `count` questions from one topic's pool.

    Args:
        pool: Published questions of the topic
        exclude: Question ids that must not be picked
    """
    rng = rng or random.Random()
    exclude = exclude or set()
    available = [q for q in pool if str(q["id"]) not in exclude]

    if not available or count <= 0:
        return []
    if len(available) <= count:
        return _shuffled(available, rng)

    by_difficulty = _group(available, "difficulty", "Unknown")
    by_exam_type = _group(available, "exam_type", "General")

    easy = _shuffled(by_difficulty.get("Easy", []), rng)
    medium = _shuffled(by_difficulty.get("Medium", []), rng)
    hard = _shuffled(by_difficulty.get("Hard", []), rng)
    unknown = _shuffled(by_difficulty.get("Unknown", []), rng)

    selected: list[Question] = []
    used: set[str] = set()

    def take(bucket: list[Question], wanted: int) -> None:
        for q in bucket:
            if wanted <= 0 or len(selected) >= count:
                return
            if str(q["id"]) not in used:
                selected.append(q)
                used.add(str(q["id"]))
                wanted -= 1

    easy_n, medium_n, hard_n = difficulty_targets(count)
    take(easy, easy_n)
    take(medium, medium_n)
    take(hard, hard_n)
    take(unknown + easy + medium + hard, count - len(selected))

    if len(by_exam_type) > 1 and len(selected) > DIVERSITY_MIN_SELECTED:
        per_type = math.ceil(len(selected) / len(by_exam_type))
        redistributed: list[Question] = []
        redistributed_ids: set[str] = set()

        for questions in by_exam_type.values():
            picked = [q for q in questions if str(q["id"]) in used and str(q["id"]) not in redistributed_ids]
            for q in picked[:per_type]:
                redistributed.append(q)
                redistributed_ids.add(str(q["id"]))

        for q in selected:
            if str(q["id"]) not in redistributed_ids and len(redistributed) < count:
                redistributed.append(q)
                redistributed_ids.add(str(q["id"]))

        return _shuffled(redistributed, rng)[:count]

    return _shuffled(selected, rng)[:count]


def per_topic_request(total: int, topic_count: int) -> int:
    """How many questions to ask each topic for when mixing topics."""
    base = math.ceil(total / topic_count)
    minimum = MIN_PER_TOPIC_SMALL if total < SMALL_REQUEST else MIN_PER_TOPIC_LARGE
    return max(base * OVERFETCH_FACTOR, minimum)


def pick_diverse(
    questions: list[Question],
    total: int,
    rng: random.Random | None = None,
) -> list[Question]:
    """Trim a multi-topic candidate list to `total`, spreading exam types."""
    rng = rng or random.Random()
    if len(questions) <= total:
        return _shuffled(questions, rng)

    by_exam_type = _group(questions, "exam_type", "General")
    if len(by_exam_type) > 1:
        per_type = math.ceil(total / len(by_exam_type))
        selected: list[Question] = []
        used: set[str] = set()
        for bucket in by_exam_type.values():
            for q in _shuffled(bucket, rng)[:per_type]:
                if str(q["id"]) not in used:
                    selected.append(q)
                    used.add(str(q["id"]))
        for q in questions:
            if str(q["id"]) not in used and len(selected) < total:
                selected.append(q)
                used.add(str(q["id"]))
        questions = selected

    return _shuffled(questions, rng)[:total]


def needs_pool_reset(total_in_pool: int, attempted: int, requested: int) -> bool:
    """True when the unattempted pool is exhausted or nearly so."""
    remaining = total_in_pool - attempted
    return remaining <= 0 or (remaining < requested and remaining < total_in_pool * POOL_RESET_SHARE)


# =============================================================================
# Database-backed Selector
# =============================================================================

class QuestionSelector:
    """
    Selects questions from Supabase.

    Topic pools are fetched once per selector instance.
    """

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()
        self._pools: dict[str, list[Question]] = {}

    def topic_pool(self, topic_id: str | UUID) -> list[Question]:
        key = str(topic_id)
        if key not in self._pools:
            client = SupabaseClient.get_client()
            response = (
                client.table("questions")
                .select("*")
                .eq("status", QuestionStatus.PUBLISHED.value)
                .eq("topic_id", key)
                .execute()
            )
            self._pools[key] = response.data or []
        return self._pools[key]

    def from_topic(self, topic_id: str | UUID, count: int, exclude: set[str] | None = None) -> list[Question]:
        return pick_balanced(self.topic_pool(topic_id), count, exclude, self.rng)

    def from_topics(self, topic_ids: list[str], total: int, exclude: set[str] | None = None) -> list[Question]:
        if not topic_ids:
            return []
        if len(topic_ids) == 1:
            return self.from_topic(topic_ids[0], total, exclude)

        per_topic = per_topic_request(total, len(topic_ids))
        candidates: list[Question] = []
        for topic_id in topic_ids:
            picked = self.from_topic(topic_id, per_topic, exclude)
            if len(picked) < per_topic:
                logger.debug(f"Topic {topic_id} returned {len(picked)} questions (requested {per_topic})")
            candidates.extend(picked)

        if len(candidates) < total:
            logger.warning(f"Insufficient questions: requested {total}, got {len(candidates)}")
        return pick_diverse(candidates, total, self.rng)

    def with_distribution(
        self,
        distribution: dict[str, int],
        exclude: set[str] | None = None,
    ) -> list[Question]:
        exclude = set(exclude or ())
        requested = sum(distribution.values())

        selected: list[Question] = []
        selected_ids: set[str] = set()

        def add(questions: list[Question], limit: int | None = None) -> int:
            added = 0
            for q in questions:
                if limit is not None and len(selected) >= limit:
                    break
                if str(q["id"]) not in selected_ids:
                    selected.append(q)
                    selected_ids.add(str(q["id"]))
                    added += 1
            return added

        for topic_id, count in distribution.items():
            if count > 0:
                picked = self.from_topic(topic_id, count, exclude)
                if len(picked) < count:
                    logger.debug(f"Topic {topic_id}: requested {count}, got {len(picked)}")
                add(picked)

        if len(selected) < requested and len(distribution) > 1:
            for topic_id, _ in sorted(distribution.items(), key=lambda item: item[1], reverse=True):
                needed = requested - len(selected)
                if needed <= 0:
                    break
                extra = self.from_topic(topic_id, needed + 2, exclude | selected_ids)
                added = add(extra, limit=requested)
                if added:
                    logger.debug(f"Added {added} extra questions from topic {topic_id}")

        if len(selected) < requested:
            logger.warning(f"Question distribution: requested {requested}, received {len(selected)}")
        return _shuffled(selected, self.rng)[:requested]

    # -------------------------------------------------------------------------
    # Attempted-question tracking
    # -------------------------------------------------------------------------

    @staticmethod
    def subject_question_count(subject_id: str | UUID) -> int:
        return SupabaseClient.count_rows(
            "questions", subject_id=subject_id, status=QuestionStatus.PUBLISHED.value
        )

    @staticmethod
    def attempted_ids(user_id: str | UUID, subject_id: str | UUID) -> set[str]:
        client = SupabaseClient.get_client()
        response = (
            client.table("user_attempted_questions")
            .select("question_id")
            .eq("user_id", str(user_id))
            .eq("subject_id", str(subject_id))
            .execute()
        )
        return {str(row["question_id"]) for row in response.data or []}

    @staticmethod
    def reset_attempted(user_id: str | UUID, subject_id: str | UUID) -> None:
        client = SupabaseClient.get_client()
        (
            client.table("user_attempted_questions")
            .delete()
            .eq("user_id", str(user_id))
            .eq("subject_id", str(subject_id))
            .execute()
        )
        logger.info(f"Reset attempted questions for user {user_id} in subject {subject_id}")

    @staticmethod
    def record_attempted(user_id: str | UUID, subject_id: str | UUID, question_ids: list[str]) -> None:
        """Best-effort; a failed write never blocks session creation."""
        if not question_ids:
            return
        records = [
            {"user_id": str(user_id), "subject_id": str(subject_id), "question_id": str(qid)}
            for qid in question_ids
        ]
        client = SupabaseClient.get_client()
        try:
            (
                client.table("user_attempted_questions")
                .upsert(records, on_conflict="user_id,subject_id,question_id")
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to record attempted questions for user {user_id}: {e}")

    def select_for_session(
        self,
        user_id: str | UUID,
        subject_id: str | UUID,
        topic_ids: list[str],
        count: int,
        distribution: dict[str, int] | None = None,
    ) -> SelectionResult:
        """
        Pick questions the user hasn't seen in this subject yet.

        Returns:
            SelectionResult with the questions and pool bookkeeping
        """
        total_in_pool = self.subject_question_count(subject_id)
        if total_in_pool == 0:
            logger.warning(f"No published questions for subject {subject_id}")
            return SelectionResult()

        attempted = self.attempted_ids(user_id, subject_id)
        attempted_before = len(attempted)
        pool_reset = False

        if needs_pool_reset(total_in_pool, attempted_before, count):
            self.reset_attempted(user_id, subject_id)
            attempted = set()
            pool_reset = True

        if distribution:
            questions = self.with_distribution(distribution, attempted)
            count = sum(distribution.values())
        else:
            questions = self.from_topics(topic_ids, count, attempted)
        questions = questions[:count]

        self.record_attempted(user_id, subject_id, [str(q["id"]) for q in questions])

        remaining_before = total_in_pool if pool_reset else total_in_pool - attempted_before
        remaining = max(0, remaining_before - len(questions))
        logger.info(
            f"Selected {len(questions)} questions for user {user_id} "
            f"(requested {count}, remaining in pool {remaining})"
        )
        return SelectionResult(
            questions=questions,
            pool_reset=pool_reset,
            remaining_in_pool=remaining,
            total_in_pool=total_in_pool,
            attempted_before=attempted_before,
        )
