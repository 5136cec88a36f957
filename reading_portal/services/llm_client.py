"""
LLM Client Service
Talks to the OpenAI-compatible chat completion endpoint used for auto-grading,
question generation and feedback suggestions.
"""

import logging
import re
from typing import Dict, List, Mapping, Optional, Tuple

from openai import OpenAI, OpenAIError

from reading_portal.core.config import settings
from reading_portal.schemas.form import (
    LongAnswerQuestion,
    MultipleChoiceQuestion,
    Question,
    ShortAnswerQuestion,
)
from reading_portal.services.question_parser import parse_questions

logger = logging.getLogger(__name__)

# Global client cache
_client_instance: Optional[OpenAI] = None

QUESTION_COUNT_BY_DIFFICULTY = {"easy": 3, "medium": 4, "hard": 5}

FALLBACK_FEEDBACK = "Well done! Keep reading and learning."

_GRADE_RE = re.compile(r"GRADE:\s*(-?\d+)", re.IGNORECASE)
_FEEDBACK_RE = re.compile(r"FEEDBACK:\s*(.+)", re.IGNORECASE | re.DOTALL)
_REPEATED_CHAR_RE = re.compile(r"^(\S)\1{3,}$")
_LATIN_ONLY_RE = re.compile(r"^[a-zA-Z\s]+$")
_ARABIC_RE = re.compile(r"[\u0600-\u06FF]")


class AutoGradeError(Exception):
    pass


class QuestionGenerationError(Exception):
    pass


def _get_client() -> OpenAI:
    """
    Get or create the OpenAI client.
    A single attempt per call: retries are turned off, a failed auto-grade is
    final for that submission.
    """
    global _client_instance

    if _client_instance is None:
        _client_instance = OpenAI(
            api_key=settings.LLM_API_KEY or "missing-api-key",
            base_url=settings.LLM_BASE_URL,
            max_retries=0,
        )

    return _client_instance


def _complete(
    prompt: str,
    *,
    model: str,
    temperature: float,
    max_tokens: int,
) -> str:
    response = _get_client().chat.completions.create(
        model=model,
        messages=[{"role": "user", "content": prompt}],
        temperature=temperature,
        max_tokens=max_tokens,
        top_p=1,
    )
    if not response.choices:
        return ""
    return response.choices[0].message.content or ""


def is_nonsense_answer(answer: str | None) -> bool:
    """Repeated characters, empty answers or very short Latin-only strings."""
    if not answer or len(answer.strip()) < 2:
        return True

    trimmed = answer.strip()
    if _REPEATED_CHAR_RE.match(trimmed):
        return True
    if _LATIN_ONLY_RE.match(trimmed) and len(trimmed) <= 5:
        return True
    if len(trimmed) < 3 and not _ARABIC_RE.search(trimmed):
        return True
    return False


def _describe_question(question: Question) -> str:
    if isinstance(question, MultipleChoiceQuestion):
        return f"multiple choice ({', '.join(question.options)})"
    if isinstance(question, LongAnswerQuestion):
        return "long answer"
    if isinstance(question, ShortAnswerQuestion):
        return "short answer"
    raise TypeError(f"unsupported question type: {type(question).__name__}")


def build_grading_prompt(
    questions: List[Question],
    answers: Mapping[str, str],
    *,
    story_title: str,
    story_content: str,
    difficulty: str,
    grade_level: int,
) -> str:
    lines = [
        f"You are a primary school teacher grading the answers of a grade {grade_level} student.",
        f'The student read the story "{story_title}" (difficulty: {difficulty}).',
        "",
        "Story:",
        story_content,
        "",
        "Questions and the student's answers:",
        "",
    ]

    has_nonsense = False
    for question in questions:
        answer = answers.get(question.id) or ""
        nonsense = is_nonsense_answer(answer)
        has_nonsense = has_nonsense or nonsense
        lines.append(f"Question: {question.text}")
        lines.append(f"Question type: {_describe_question(question)}")
        lines.append(f"Answer: {answer or '(no answer)'}")
        if nonsense:
            lines.append("Note: this answer looks random or incomplete.")
        lines.append("")

    if has_nonsense:
        lines.append(
            "Warning: some answers are random or incomplete (repeated letters, random words). "
            "If more than half of the answers are like this the grade must be 0-20, and never "
            "more than 30 when such answers are present."
        )

    lines.extend([
        f"These are the answers of a young child (grade {grade_level}); be fair and encouraging.",
        "Guide: complete correct answer 90-100, short correct answer 80-95, good attempt with "
        "mistakes 70-85, very short but genuine attempt 60-80, weak answer showing some "
        "understanding 50-70, random or meaningless answer 0-10.",
        "",
        "Reply in exactly this format:",
        "GRADE: <number from 0 to 100>",
        f"FEEDBACK: <short feedback in {settings.FEEDBACK_LANGUAGE} with strengths and what to improve>",
    ])
    return "\n".join(lines)


def parse_grading_response(response: str) -> Tuple[Optional[int], Optional[str]]:
    """
    Extract ``GRADE:`` and ``FEEDBACK:`` from the model output.

    Returns:
        Tuple of (grade, feedback)
        - grade: int clamped to 0-100, or None when the reply has no grade
        - feedback: str, or None when the reply has no feedback
    """
    grade_match = _GRADE_RE.search(response or "")
    feedback_match = _FEEDBACK_RE.search(response or "")

    grade = None
    if grade_match:
        grade = min(100, max(0, int(grade_match.group(1))))

    feedback = feedback_match.group(1).strip() if feedback_match else None
    return grade, feedback or None


def auto_grade_submission(
    questions: List[Question],
    answers: Mapping[str, str],
    *,
    story_title: str,
    story_content: str,
    difficulty: str,
    grade_level: int,
) -> Tuple[Optional[int], Optional[str]]:
    """
    Grade a student's answers with the LLM.

    Raises:
        AutoGradeError: if the collaborator call fails
    """
    prompt = build_grading_prompt(
        questions,
        answers,
        story_title=story_title,
        story_content=story_content,
        difficulty=difficulty,
        grade_level=grade_level,
    )
    try:
        logger.info(f"Sending auto-grade request for story {story_title!r}")
        # low temperature for consistent grading
        response = _complete(
            prompt,
            model=settings.LLM_GRADING_MODEL,
            temperature=0.3,
            max_tokens=4096,
        )
    except OpenAIError as e:
        raise AutoGradeError(f"auto-grade request failed: {e}") from e

    grade, feedback = parse_grading_response(response)
    logger.info(f"Auto-grade completed for story {story_title!r}: grade={grade}")
    return grade, feedback


def build_question_prompt(
    *,
    story_title: str,
    story_content: str,
    difficulty: str,
    grade_level: int,
) -> str:
    count = QUESTION_COUNT_BY_DIFFICULTY.get(difficulty, 3)
    kinds = [
        "1. A direct comprehension question (who is the hero? what happened?)",
        "2. A simple reasoning question (why did the hero do this? what is the lesson?)",
        "3. A simple open question (how did you feel reading the story?)",
    ]
    if difficulty != "easy":
        kinds.append("4. A simple analysis question (what is the main idea?)")
    if difficulty == "hard":
        kinds.append("5. A critical thinking question (how can you apply the lesson in life?)")

    return "\n".join([
        f"You are an expert grade {grade_level} primary school teacher.",
        f"Write {count} questions in {settings.FEEDBACK_LANGUAGE} for this story, "
        f"suited to grade {grade_level} and difficulty {difficulty}.",
        "",
        f"Title: {story_title}",
        f"Story: {story_content}",
        "",
        "Question kinds:",
        *kinds,
        "",
        "Return every question in this format:",
        "ID: <unique id>",
        "TEXT: <question text>",
        "TYPE: <multiple_choice / short_answer / long_answer>",
        "REQUIRED: true",
        "For multiple_choice questions also add:",
        "OPTIONS: <option1>، <option2>، <option3>، <option4>",
        "",
        "Return only the questions, without any extra comments.",
    ])


def generate_questions(
    *,
    story_title: str,
    story_content: str,
    difficulty: str,
    grade_level: int,
) -> List[Question]:
    prompt = build_question_prompt(
        story_title=story_title,
        story_content=story_content,
        difficulty=difficulty,
        grade_level=grade_level,
    )
    try:
        logger.info(f"Generating questions for story {story_title!r}")
        response = _complete(
            prompt,
            model=settings.LLM_QUESTION_MODEL,
            temperature=0.7,
            max_tokens=4096,
        )
    except OpenAIError as e:
        logger.error(f"Question generation failed: {e}", exc_info=True)
        raise QuestionGenerationError(f"question generation failed: {e}") from e

    questions = parse_questions(response)
    if not questions:
        raise QuestionGenerationError("the model returned no questions")
    return questions


def generate_feedback(
    questions: List[Question],
    answers: Dict[str, str],
    *,
    story_title: str,
    student_name: str,
    grade: Optional[int],
) -> str:
    """
    Short encouraging comment a teacher can paste into the feedback field.
    Never raises: falls back to a fixed message.
    """
    grade_text = f"{grade}/100" if grade is not None else "not graded yet"
    lines = [
        "You are a language teacher writing an encouraging comment for a student.",
        f"Student: {student_name}",
        f"Story: {story_title}",
        f"Grade: {grade_text}",
        "",
        "Questions and the student's answers:",
    ]
    for i, question in enumerate(questions, start=1):
        lines.append(f"Question {i}: {question.text}")
        lines.append(f"Answer: {answers.get(question.id) or '(no answer)'}")
    lines.extend([
        "",
        f"Write a short comment (2-3 sentences) in {settings.FEEDBACK_LANGUAGE} that is positive, "
        "mentions strengths, gives one simple tip and suits a young child. "
        "Write the comment directly without an introduction.",
    ])

    try:
        response = _complete(
            "\n".join(lines),
            model=settings.LLM_FEEDBACK_MODEL,
            temperature=0.7,
            max_tokens=200,
        )
    except OpenAIError as e:
        logger.warning(f"Feedback generation failed, using fallback: {e}")
        return FALLBACK_FEEDBACK

    return response.strip() or FALLBACK_FEEDBACK
