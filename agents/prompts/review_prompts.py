# =============================================================================
# agents/prompts/review_prompts.py - Question Review Prompts
# =============================================================================
# Prompt builders for the three generation calls made by QuestionReviewer:
# - Hints: three progressive hints, returned as JSON
# - Solution: step-by-step worked solution
# - Explanation: concept-level explanation of the answer
#
# Mathematics subjects get a mathematics tutor persona and a solution
# prompt that asks for every calculation to be shown.
#
# Usage:
#   prompt = build_hints_prompt(question, subject_name="Mathematics")
# =============================================================================

from __future__ import annotations

from typing import Any

SYSTEM_PROMPT = (
    "You write study material for students preparing for WAEC, JAMB, NECO "
    "and GCE examinations. Be accurate, clear and encouraging."
)


def is_mathematics(question: dict[str, Any], subject_name: str | None = None) -> bool:
    """True when the subject name (or id) mentions maths."""
    if subject_name and "math" in subject_name.lower():
        return True
    return "math" in str(question.get("subject_id") or "").lower()


def format_question_block(question: dict[str, Any]) -> str:
    """
    Render the question, passage, options and answer for a prompt.

    Options C and D are always listed; E only when present.
    """
    lines = [f"Question: {question.get('question_text', '')}"]
    if question.get("passage"):
        lines.append(f"\nPassage: {question['passage']}")
    if question.get("question_image_url"):
        lines.append("\nNote: This question includes an image.")

    lines.append("\nOptions:")
    for letter in ("a", "b", "c", "d"):
        lines.append(f"{letter.upper()}) {question.get(f'option_{letter}') or ''}")
    if question.get("option_e"):
        lines.append(f"E) {question['option_e']}")

    lines.append(f"\nCorrect Answer: {question.get('correct_answer', '')}")
    return "\n".join(lines)


def _persona(question: dict[str, Any], subject_name: str | None) -> str:
    if is_mathematics(question, subject_name):
        return "You are an expert mathematics tutor."
    return "You are an expert tutor."


# =============================================================================
# Hints
# =============================================================================

def build_hints_prompt(question: dict[str, Any], subject_name: str | None = None) -> str:
    return f"""{_persona(question, subject_name)} Generate three progressive hints for this multiple-choice question.

{format_question_block(question)}

Generate three hints that progressively guide the student:
- Hint 1: Broad guidance - helps student understand what concept or approach to use
- Hint 2: More specific - provides more direction toward the solution
- Hint 3: Near-complete guidance - almost reveals the answer but still requires some thinking

Format your response as JSON:
{{
  "hint1": "...",
  "hint2": "...",
  "hint3": "..."
}}

Each hint should be concise (2-3 sentences max) and educational."""


# =============================================================================
# Solution
# =============================================================================

def build_solution_prompt(question: dict[str, Any], subject_name: str | None = None) -> str:
    if is_mathematics(question, subject_name):
        points = (
            "1. Explains the approach or method to use\n"
            "2. Shows all calculations and work clearly\n"
            "3. Explains why the correct answer is correct\n"
            "4. Mentions why other options might be tempting but are incorrect"
        )
    else:
        points = (
            "1. Explains the approach or reasoning\n"
            "2. Shows how to arrive at the correct answer\n"
            "3. Explains why the correct answer is correct\n"
            "4. Mentions why other options might be tempting but are incorrect"
        )

    return f"""{_persona(question, subject_name)} Provide a detailed, step-by-step solution for this multiple-choice question.

{format_question_block(question)}

Provide a clear, step-by-step solution that:
{points}

Format your solution with clear steps and explanations."""


# =============================================================================
# Explanation
# =============================================================================

def build_explanation_prompt(question: dict[str, Any], subject_name: str | None = None) -> str:
    return f"""You are an expert tutor. Provide a detailed explanation for this multiple-choice question.

{format_question_block(question)}

Provide a comprehensive explanation that:
1. Explains the key concepts and context
2. Shows why the correct answer is the best choice
3. Explains why other options are incorrect
4. Provides additional context or related information that helps students understand the topic better

Make the explanation educational and detailed, helping students learn from the question."""
