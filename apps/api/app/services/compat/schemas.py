from pydantic import BaseModel, Field


# Every field defaults so that a missing key is reported as 401, not as a body error.


class HistoryMessage(BaseModel):
    role: str = "user"
    content: str = ""


class ValidateKeyRequest(BaseModel):
    apiKey: str = ""


class RoadmapRequest(BaseModel):
    apiKey: str = ""
    goalTitle: str = ""
    durationMonths: int = Field(default=3, ge=1, le=36)
    skillLevel: int = Field(default=1, ge=1, le=5)
    dailyHours: float = Field(default=2, gt=0, le=24)
    targetDepth: str = "job-ready"


class ChapterRequest(BaseModel):
    apiKey: str = ""
    topic: str = ""
    objective: str = ""
    goalTitle: str = ""
    moduleTitle: str = ""
    difficulty: str = "intermediate"
    skillLevel: int = Field(default=3, ge=1, le=5)


class QuizRequest(BaseModel):
    apiKey: str = ""
    topic: str = ""
    moduleTitle: str = ""
    goalTitle: str = ""
    difficulty: str = "intermediate"
    count: int = Field(default=5, ge=1, le=20)


class TutorRequest(BaseModel):
    apiKey: str = ""
    message: str = ""
    topic: str = ""
    goalTitle: str = ""
    moduleTitle: str = ""
    chapterSummary: str = ""
    history: list[HistoryMessage] = Field(default_factory=list)
    mode: str = "explain"


class ForecastRequest(BaseModel):
    apiKey: str = ""
    goalTitle: str = ""
    completedTasks: float = Field(default=0, ge=0, allow_inf_nan=False)
    totalTasks: float = Field(default=0, ge=0, allow_inf_nan=False)
    daysElapsed: float = Field(default=0, ge=0, allow_inf_nan=False)
    totalDays: float = Field(default=0, ge=0, allow_inf_nan=False)
    streak: float = Field(default=0, ge=0, allow_inf_nan=False)
    consistency: float = Field(default=0, ge=0, allow_inf_nan=False)


class ExplainRequest(BaseModel):
    apiKey: str = ""
    concept: str = ""
    style: str = "feynman"
    context: str = ""


class FlashcardsRequest(BaseModel):
    apiKey: str = ""
    topic: str = ""
    moduleTitle: str = ""
    goalTitle: str = ""
    count: int = Field(default=10, ge=1, le=30)


class ModuleProgress(BaseModel):
    title: str = ""
    completedHours: float = 0
    estimatedHours: float = 0
    selfRating: float | None = None
    status: str = ""
    difficulty: str = ""


class WeaknessRequest(BaseModel):
    apiKey: str = ""
    goalTitle: str = ""
    modules: list[ModuleProgress] = Field(default_factory=list)


class ChatRequest(BaseModel):
    apiKey: str = ""
    message: str = ""
    goalContext: str = ""
    history: list[HistoryMessage] = Field(default_factory=list)
