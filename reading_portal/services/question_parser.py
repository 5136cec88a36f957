# reading_portal/services/question_parser.py
"""
Parser for the line-based question format returned by the question generator:

    ID: q1
    TEXT: What is the hero's name?
    TYPE: short_answer
    REQUIRED: true
    OPTIONS: a، b، c

Each ``ID:`` line starts a new question. Lines that match no known prefix are
ignored.
"""
import logging
import re
from typing import List

from pydantic import TypeAdapter

from reading_portal.schemas.form import MULTIPLE_CHOICE, QUESTION_TYPES, SHORT_ANSWER, Question

logger = logging.getLogger(__name__)

# Arabic comma or plain comma
_OPTION_SPLIT = re.compile(r"[،,]")

_question_adapter = TypeAdapter(Question)


def _new_question(question_id: str) -> dict:
    return {
        "id": question_id,
        "text": "",
        "type": SHORT_ANSWER,
        "required": True,
        "options": [],
    }


def _finish(question: dict) -> dict:
    if question["type"] == MULTIPLE_CHOICE and not question["options"]:
        logger.warning(f"Multiple choice question {question['id']} has no options, using short_answer")
        question["type"] = SHORT_ANSWER
    return question


def parse_options(value: str) -> List[str]:
    return [opt.strip() for opt in _OPTION_SPLIT.split(value) if opt.strip()]


def parse_questions(text: str) -> List[Question]:
    questions: List[dict] = []
    current: dict | None = None

    for raw_line in (text or "").splitlines():
        line = raw_line.strip()
        if not line:
            continue

        if line.startswith("ID:"):
            if current is not None:
                questions.append(_finish(current))
            current = _new_question(line[len("ID:"):].strip())
        elif current is None:
            continue
        elif line.startswith("TEXT:"):
            current["text"] = line[len("TEXT:"):].strip()
        elif line.startswith("TYPE:"):
            qtype = line[len("TYPE:"):].strip()
            if qtype in QUESTION_TYPES:
                current["type"] = qtype
            else:
                logger.warning(f"Unknown question type {qtype!r} for {current['id']}, using short_answer")
        elif line.startswith("REQUIRED:"):
            current["required"] = line[len("REQUIRED:"):].strip().lower() == "true"
        elif line.startswith("OPTIONS:"):
            current["options"] = parse_options(line[len("OPTIONS:"):])

    if current is not None:
        questions.append(_finish(current))

    return [_question_adapter.validate_python(q) for q in questions]
