from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
import json
from typing import Mapping

from app.domain.ai.providers.base import Message
from app.domain.forecast import ForecastInputs, ForecastMetrics
from app.services.compat.schemas import (
    ChapterRequest,
    ChatRequest,
    ExplainRequest,
    FlashcardsRequest,
    ForecastRequest,
    HistoryMessage,
    QuizRequest,
    RoadmapRequest,
    TutorRequest,
    WeaknessRequest,
)


TUTOR_HISTORY_WINDOW = 6
CHAT_HISTORY_WINDOW = 8


@dataclass(frozen=True)
class PromptRequest:
    messages: list[Message]
    max_tokens: int
    json_mode: bool = False


class TutorMode(str, Enum):
    EXPLAIN = "explain"
    QUIZ = "quiz"
    DEBATE = "debate"
    SIMPLE = "simple"

    @classmethod
    def resolve(cls, value: object) -> "TutorMode":
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.EXPLAIN


class ExplainStyle(str, Enum):
    FEYNMAN = "feynman"
    ELI5 = "eli5"
    VISUAL = "visual"
    STORY = "story"
    TECHNICAL = "technical"
    COMPARE = "compare"

    @classmethod
    def resolve(cls, value: object) -> "ExplainStyle":
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.FEYNMAN


TUTOR_MODE_INSTRUCTIONS: Mapping[TutorMode, str] = MappingProxyType(
    {
        TutorMode.EXPLAIN: (
            "Explain clearly and step by step. Use a short example, then check understanding "
            "with one follow-up question."
        ),
        TutorMode.QUIZ: (
            "Act as a quizmaster. Ask the learner one question at a time about the current topic, "
            "wait for the answer, then give brief feedback before the next question."
        ),
        TutorMode.DEBATE: (
            "Take a reasoned opposing position so the learner has to defend their understanding. "
            "Stay respectful and concede good arguments."
        ),
        TutorMode.SIMPLE: (
            "Use the simplest possible language, short sentences and everyday analogies. "
            "Avoid jargon unless you define it."
        ),
    }
)

EXPLAIN_STYLE_INSTRUCTIONS: Mapping[ExplainStyle, str] = MappingProxyType(
    {
        ExplainStyle.FEYNMAN: (
            "Use the Feynman technique: explain the concept in plain words, identify gaps, "
            "and rebuild the explanation from first principles."
        ),
        ExplainStyle.ELI5: "Explain it like I'm five: tiny words, one vivid analogy, no jargon.",
        ExplainStyle.VISUAL: (
            "Explain with text diagrams, ASCII sketches or structured layouts that make the idea visible."
        ),
        ExplainStyle.STORY: "Explain the concept through a short, memorable story with characters.",
        ExplainStyle.TECHNICAL: (
            "Give a precise technical explanation with correct terminology, edge cases and a code "
            "or formula example where it helps."
        ),
        ExplainStyle.COMPARE: (
            "Explain by comparing and contrasting with related concepts the learner probably knows, "
            "ideally in a table."
        ),
    }
)

SKILL_LEVEL_LABELS: Mapping[int, str] = MappingProxyType(
    {
        1: "complete beginner",
        2: "beginner with some exposure",
        3: "intermediate",
        4: "advanced",
        5: "expert",
    }
)


def skill_label(level: int) -> str:
    return SKILL_LEVEL_LABELS.get(max(1, min(int(level), 5)), "intermediate")


def _conversation(system: str, user: str, history: list[Message] | None = None) -> list[Message]:
    messages: list[Message] = [{"role": "system", "content": system}]
    messages.extend(history or [])
    messages.append({"role": "user", "content": user})
    return messages


def history_window(history: list[HistoryMessage], limit: int) -> list[Message]:
    """Keep the newest ``limit`` entries; system-role entries from the caller are dropped."""
    window: list[Message] = []
    recent = history[-limit:] if limit > 0 else []
    for item in recent:
        role = str(item.role or "").strip().lower()
        if role not in {"user", "assistant"}:
            continue
        content = str(item.content or "").strip()
        if content:
            window.append({"role": role, "content": content})  # type: ignore[typeddict-item]
    return window


ROADMAP_SHAPE = """{
  "title": "Roadmap title",
  "description": "One paragraph overview",
  "totalWeeks": 12,
  "phases": [
    {
      "title": "Phase 1: Foundations",
      "description": "What this phase achieves",
      "weeks": 4,
      "modules": [
        {
          "title": "Module title",
          "description": "What the learner will be able to do",
          "estimatedHours": 10,
          "difficulty": "beginner",
          "topics": ["Topic A", "Topic B"],
          "tasks": [
            {"title": "Task title", "type": "reading", "estimatedMinutes": 45}
          ]
        }
      ]
    }
  ]
}"""


def build_roadmap_prompt(payload: RoadmapRequest) -> PromptRequest:
    system = (
        "You are an expert curriculum designer who builds realistic, time-boxed learning roadmaps.\n"
        "Respond with a single JSON object and nothing else, exactly in this shape:\n"
        f"{ROADMAP_SHAPE}\n"
        "Rules:\n"
        "- task type is one of reading|video|practice|project|quiz\n"
        "- difficulty is one of beginner|intermediate|advanced\n"
        "- total estimated hours must fit the learner's daily budget over the full duration"
    )
    total_hours = round(payload.durationMonths * 30 * payload.dailyHours)
    user = (
        f"Goal: {payload.goalTitle or 'General learning goal'}\n"
        f"Duration: {payload.durationMonths} months\n"
        f"Current level: {skill_label(payload.skillLevel)} ({payload.skillLevel}/5)\n"
        f"Daily study budget: {payload.dailyHours} hours (about {total_hours} hours in total)\n"
        f"Target depth: {payload.targetDepth}\n"
        "Create the roadmap."
    )
    return PromptRequest(messages=_conversation(system, user), max_tokens=4000, json_mode=True)


def build_chapter_prompt(payload: ChapterRequest) -> PromptRequest:
    system = (
        "You are an expert teacher writing one lesson chapter in Markdown.\n"
        "Structure: a short introduction, core explanation with headings, worked examples "
        "(code blocks when the topic is technical), common mistakes, and a 3-bullet summary.\n"
        f"Write for a {skill_label(payload.skillLevel)} learner at {payload.difficulty} difficulty."
    )
    user = (
        f"Goal: {payload.goalTitle or 'General learning'}\n"
        f"Module: {payload.moduleTitle or 'General'}\n"
        f"Chapter topic: {payload.topic}\n"
        f"Learning objective: {payload.objective or 'Understand the topic and apply it'}\n"
        "Write the chapter."
    )
    return PromptRequest(messages=_conversation(system, user), max_tokens=2000)


QUIZ_SHAPE = """[
  {
    "question": "Question text",
    "options": ["Option A", "Option B", "Option C", "Option D"],
    "correct": 0,
    "explanation": "Why the correct option is right"
  }
]"""


def build_quiz_prompt(payload: QuizRequest) -> PromptRequest:
    system = (
        "You are an assessment designer writing multiple-choice questions.\n"
        "Respond with a single JSON array and nothing else, exactly in this shape:\n"
        f"{QUIZ_SHAPE}\n"
        "Rules:\n"
        "- exactly 4 options per question\n"
        "- correct is the zero-based index of the right option\n"
        "- no trick questions, no 'all of the above'"
    )
    user = (
        f"Goal: {payload.goalTitle or 'General learning'}\n"
        f"Module: {payload.moduleTitle or 'General'}\n"
        f"Topic: {payload.topic}\n"
        f"Difficulty: {payload.difficulty}\n"
        f"Write {payload.count} questions."
    )
    return PromptRequest(messages=_conversation(system, user), max_tokens=2500)


def build_tutor_prompt(payload: TutorRequest) -> PromptRequest:
    mode = TutorMode.resolve(payload.mode)
    system = (
        "You are a patient personal tutor helping a learner through their course.\n"
        f"Goal: {payload.goalTitle or 'General learning'}\n"
        f"Module: {payload.moduleTitle or 'General'}\n"
        f"Current topic: {payload.topic or 'General'}\n"
        f"Chapter summary: {payload.chapterSummary or 'Not provided'}\n"
        f"Mode ({mode.value}): {TUTOR_MODE_INSTRUCTIONS[mode]}\n"
        "Keep answers focused and under 250 words unless asked for more."
    )
    history = history_window(payload.history, TUTOR_HISTORY_WINDOW)
    return PromptRequest(messages=_conversation(system, payload.message, history), max_tokens=800)


def build_explain_prompt(payload: ExplainRequest) -> PromptRequest:
    style = ExplainStyle.resolve(payload.style)
    system = (
        "You are a world-class explainer.\n"
        f"Style ({style.value}): {EXPLAIN_STYLE_INSTRUCTIONS[style]}"
    )
    user = f"Explain: {payload.concept}"
    if payload.context.strip():
        user += f"\nContext: {payload.context.strip()}"
    return PromptRequest(messages=_conversation(system, user), max_tokens=1000)


FLASHCARD_SHAPE = """[
  {"front": "Term or question", "back": "Definition or answer", "hint": "Optional memory hook"}
]"""


def build_flashcards_prompt(payload: FlashcardsRequest) -> PromptRequest:
    system = (
        "You create spaced-repetition flashcards.\n"
        "Respond with a single JSON array and nothing else, exactly in this shape:\n"
        f"{FLASHCARD_SHAPE}\n"
        "Keep each front under 15 words and each back under 40 words."
    )
    user = (
        f"Goal: {payload.goalTitle or 'General learning'}\n"
        f"Module: {payload.moduleTitle or 'General'}\n"
        f"Topic: {payload.topic}\n"
        f"Create {payload.count} flashcards."
    )
    return PromptRequest(messages=_conversation(system, user), max_tokens=2000)


WEAKNESS_SHAPE = """{
  "weakAreas": [{"module": "Module title", "reason": "Why it is weak", "action": "What to do next"}],
  "strengths": ["Module or skill"],
  "overallAssessment": "Two or three sentences",
  "priorityOrder": ["Module title"],
  "studyTip": "One concrete tip"
}"""


def build_weakness_prompt(payload: WeaknessRequest) -> PromptRequest:
    system = (
        "You are a learning analytics coach. Analyse module progress and self-ratings.\n"
        "Respond with a single JSON object and nothing else, exactly in this shape:\n"
        f"{WEAKNESS_SHAPE}"
    )
    modules = [module.model_dump() for module in payload.modules]
    user = (
        f"Goal: {payload.goalTitle or 'General learning'}\n"
        f"Modules: {json.dumps(modules, ensure_ascii=False)}\n"
        "Identify weak areas and what to do about them."
    )
    return PromptRequest(messages=_conversation(system, user), max_tokens=1500, json_mode=True)


def build_chat_prompt(payload: ChatRequest) -> PromptRequest:
    system = (
        "You are a friendly AI learning assistant. Answer questions about studying, "
        "careers and any subject the learner brings up. Be concise and practical."
    )
    if payload.goalContext.strip():
        system += f"\nThe learner is currently working on: {payload.goalContext.strip()}"
    history = history_window(payload.history, CHAT_HISTORY_WINDOW)
    return PromptRequest(messages=_conversation(system, payload.message, history), max_tokens=600)


FORECAST_SHAPE = """{
  "recommendation": "One or two sentences",
  "pattern": "What the numbers say about the study pattern",
  "hoursNeeded": "e.g. 1.5 hours/day",
  "todayAction": "One concrete action for today",
  "motivation": "One short motivating line"
}"""


def build_forecast_prompt(payload: ForecastRequest, metrics: ForecastMetrics) -> PromptRequest:
    inputs = forecast_inputs(payload)
    system = (
        "You are a supportive study coach commenting on a progress forecast.\n"
        "The numbers are already computed; do not recompute them.\n"
        "Respond with a single JSON object and nothing else, exactly in this shape:\n"
        f"{FORECAST_SHAPE}"
    )
    user = (
        f"Goal: {payload.goalTitle or 'General learning'}\n"
        f"Completed tasks: {inputs.completed_tasks:g} of {inputs.total_tasks:g}\n"
        f"Days elapsed: {inputs.days_elapsed:g} of {inputs.total_days:g}\n"
        f"Current streak: {inputs.streak:g} days\n"
        f"Consistency: {inputs.consistency_percent:g}%\n"
        f"Risk level: {metrics.risk_level.value} (confidence {metrics.confidence_percent}%)\n"
        f"Projected completion: {metrics.projected_date.isoformat()}"
    )
    return PromptRequest(messages=_conversation(system, user), max_tokens=500, json_mode=True)


def forecast_inputs(payload: ForecastRequest) -> ForecastInputs:
    return ForecastInputs(
        completed_tasks=payload.completedTasks,
        total_tasks=payload.totalTasks,
        days_elapsed=payload.daysElapsed,
        total_days=payload.totalDays,
        streak=payload.streak,
        consistency_percent=payload.consistency,
    )


def build_validate_key_prompt() -> PromptRequest:
    return PromptRequest(
        messages=_conversation("Reply with a single word.", "Reply with OK."),
        max_tokens=5,
    )
