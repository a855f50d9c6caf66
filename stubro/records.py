"""
Typed records for everything Gemini returns and everything we store.

Field names follow the JSON the model is asked to produce, so a record
parses straight from ``json.loads(response.text)`` and dumps back to the
same shape with ``to_dict()``.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Subject(str, Enum):
    MATH = "Math"
    PHYSICS = "Physics"
    CHEMISTRY = "Chemistry"
    BIOLOGY = "Biology"
    SCIENCE = "Science (General)"
    HISTORY = "History"
    GEOGRAPHY = "Geography"
    SST = "Social Studies (SST)"
    ENGLISH = "English"
    COMPUTER_SCIENCE = "Computer Science"


CLASS_LEVELS = [
    "Class 6", "Class 7", "Class 8", "Class 9", "Class 10",
    "Class 11", "Class 12", "Any",
]
DEFAULT_CLASS_LEVEL = "Class 10"

QUIZ_DIFFICULTIES = ["Easy", "Medium", "Hard"]

ActivityType = Literal[
    "chat", "quiz", "summary", "flashcards", "mindmap",
    "exam_prediction", "debate", "visual_explanation", "other",
]


class Record(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """Dump using wire names, leaving out unset optional fields."""
        return self.model_dump(mode="json", exclude_none=True, by_alias=True)


# --- Quiz ---

class WrittenFeedback(Record):
    whatIsCorrect: str
    whatIsMissing: str
    whatIsIncorrect: str
    marksAwarded: float
    totalMarks: float


class QuizQuestion(Record):
    question: str
    type: Literal["mcq", "written"]
    options: Optional[List[str]] = None
    correctAnswer: Optional[str] = None
    explanation: str
    # Filled in while the student works through the quiz
    userAnswer: Optional[str] = None
    isCorrect: Optional[bool] = None
    feedback: Optional[WrittenFeedback] = None


class Flashcard(Record):
    term: str
    definition: str
    tip: Optional[str] = None


# --- Summary and mind map ---

class ConceptDefinition(Record):
    term: str
    definition: str


class Analogy(Record):
    analogy: str
    explanation: str


class SmartSummary(Record):
    title: str
    coreConcepts: List[ConceptDefinition]
    visualAnalogy: Analogy
    examSpotlight: List[str]
    stuBroTip: str


class MindMapNode(Record):
    term: str
    explanation: str = ""
    children: Optional[List["MindMapNode"]] = None


# --- Papers ---

class PaperQuestion(Record):
    question: str
    questionType: Literal["mcq", "short_answer", "long_answer"]
    options: Optional[List[str]] = None
    answer: str
    marks: float


class QuestionPaper(Record):
    title: str
    totalMarks: float
    instructions: str
    questions: List[PaperQuestion]

    def as_text(self) -> str:
        """Plain-text rendering used as the marking key for answer-sheet grading."""
        lines = [self.title, f"Total marks: {self.totalMarks:g}", self.instructions, ""]
        for i, q in enumerate(self.questions, start=1):
            lines.append(f"Q{i} [{q.marks:g} marks] ({q.questionType}): {q.question}")
            for j, opt in enumerate(q.options or []):
                lines.append(f"  {chr(65 + j)}. {opt}")
            lines.append(f"  Model answer: {q.answer}")
        return "\n".join(lines)


class GradedQuestionFeedback(Record):
    whatWasCorrect: str
    whatWasIncorrect: str
    suggestionForImprovement: str


class GradedQuestion(Record):
    questionNumber: int
    marksAwarded: float
    feedback: GradedQuestionFeedback
    studentAnswerTranscription: Optional[str] = None


class GradedPaper(Record):
    totalMarksAwarded: float
    overallFeedback: str
    gradedQuestions: List[GradedQuestion]


# --- Guidance and planning ---

class CareerStep(Record):
    stage: str
    focus: str
    examsToPrepare: Optional[List[str]] = None


class CareerPath(Record):
    careerName: str
    description: str
    subjectsToFocus: List[str]
    roadmap: List[CareerStep]
    topColleges: Optional[List[str]] = None
    potentialGrowth: str


class CareerInfo(Record):
    introduction: str
    careerPaths: List[CareerPath]


class StudyDay(Record):
    day: int
    topic: str
    goal: str
    timeSlot: Optional[str] = None


class StudyPlan(Record):
    title: str
    plan: List[StudyDay]


class LearningStep(Record):
    step: int
    topic: str
    goal: str
    resources: List[str]


class LearningPath(Record):
    mainTopic: str
    weakAreas: List[str]
    learningSteps: List[LearningStep]


class PerformanceAnalysis(Record):
    score: Optional[str] = None
    strengthsIdentified: List[str] = Field(default_factory=list)
    weaknessesIdentified: List[str] = Field(default_factory=list)
    aiFeedback: Optional[str] = None


# --- Viva, doubts and debate ---

class VivaEvaluation(Record):
    transcription: str
    feedback: str
    marksAwarded: float


class DoubtResponse(Record):
    transcription: str
    response: str


class DebateRebuttal(Record):
    transcription: str
    rebuttal: str


class DebateTurn(Record):
    speaker: Literal["user", "critico"]
    text: str


class DebateScorecard(Record):
    overallScore: float
    argumentStrength: float
    rebuttalEffectiveness: float
    clarity: float
    strongestArgument: str
    improvementSuggestion: str
    concludingRemarks: str


# --- Chapter Odyssey ---

class Position(Record):
    x: int
    y: int


class Tile(Record):
    type: Literal["floor", "wall", "interaction", "exit"]


class Interaction(Record):
    id: int
    position: Position
    prompt: str
    correct_answer: str
    success_message: str
    failure_message: str

    def check(self, answer: str) -> bool:
        return answer.strip().lower() == self.correct_answer.strip().lower()


class GameLevel(Record):
    title: str
    theme: str
    goal: str
    player_start: Position
    grid: List[List[Tile]]
    interactions: List[Interaction]

    @model_validator(mode="after")
    def check_start_on_map(self):
        x, y = self.player_start.x, self.player_start.y
        if not (0 <= y < len(self.grid) and 0 <= x < len(self.grid[y])):
            raise ValueError(f"player_start ({x}, {y}) is outside the grid")
        return self

    def interaction_at(self, x: int, y: int) -> Optional[Interaction]:
        for interaction in self.interactions:
            if interaction.position.x == x and interaction.position.y == y:
                return interaction
        return None


# --- Labs, literature, concepts ---

class LabExperiment(Record):
    experimentTitle: str
    objective: str
    hypothesis: str
    materials: List[str]
    procedure: List[str]
    safetyPrecautions: List[str]


class SimulationStep(Record):
    instruction: str
    actionLabel: str
    resultDescription: str


class SimulationExperiment(Record):
    title: str
    objective: str
    visualTheme: Literal["chemistry", "physics", "biology"]
    liquidColor: str
    secondaryColor: Optional[str] = None
    steps: List[SimulationStep]


class LiteraryDevice(Record):
    device: str
    example: str


class CharacterNote(Record):
    character: str
    analysis: str


class LiteraryAnalysis(Record):
    title: str
    author: Optional[str] = None
    themes: List[str]
    literaryDevices: List[LiteraryDevice]
    characterAnalysis: List[CharacterNote]
    overallSummary: str


class RealWorldApplication(Record):
    industry: str
    description: str


# --- Visual narrator ---

class TopicSection(Record):
    title: str
    content: str


class SceneBlueprint(Record):
    narration: str
    image_prompt: str


class VisualScene(Record):
    narration: str
    imageBytes: Optional[str] = None


# --- Chat and activity history ---

class ChatMessage(Record):
    role: Literal["user", "model", "system"]
    text: str


class ActivityAnalysis(Record):
    score: Optional[str] = None
    strengthsIdentified: Optional[List[str]] = None
    weaknessesIdentified: Optional[List[str]] = None
    aiFeedback: Optional[str] = None


class UserActivity(Record):
    id: Optional[str] = None
    userId: str
    type: ActivityType
    topic: str
    subject: str
    timestamp: Optional[datetime] = None
    data: Any = None
    analysis: Optional[ActivityAnalysis] = None
    sessionId: Optional[str] = None


class KnowledgeProfile(Record):
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    recentTopics: List[str] = Field(default_factory=list)
    lastSessionSummary: str = ""

    def is_empty(self) -> bool:
        return not (self.strengths or self.weaknesses or self.recentTopics or self.lastSessionSummary)


MindMapNode.model_rebuild()
