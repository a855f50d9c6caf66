"""
Gemini facade for every StuBro tool.

Structured calls send a response schema from ``stubro.schemas`` and come back
as records from ``stubro.records``. Free-text calls (chapter search, what-if
history) are grounded with Google Search through the google-genai client and
return the model's text. Tutor-style conversations go through
langchain's ``ChatGoogleGenerativeAI`` so replies can be streamed.
"""
import base64
import json
import logging
import re
from typing import Callable, Iterator, List, Optional

import google.generativeai as genai
import httpx
from google import genai as google_genai
from google.api_core import exceptions as google_exceptions
from google.genai import errors as genai_errors
from google.genai import types as gx
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_google_genai.chat_models import ChatGoogleGenerativeAIError
from pydantic import TypeAdapter, ValidationError

from . import config, prompts, schemas
from .errors import AIServiceError
from .intake import fit_to_budget
from .records import (
    Analogy, CareerInfo, ChatMessage, DebateRebuttal, DebateScorecard, DebateTurn,
    DoubtResponse, Flashcard, GameLevel, GradedPaper, LabExperiment, LearningPath,
    LiteraryAnalysis, MindMapNode, PerformanceAnalysis, QuestionPaper, QuizQuestion,
    RealWorldApplication, SceneBlueprint, SimulationExperiment, SmartSummary, StudyPlan,
    TopicSection, VisualScene, VivaEvaluation, WrittenFeedback,
)

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")


def media_part(mime_type, data):
    """Inline blob part (image or audio) for a multimodal request."""
    return {"mime_type": mime_type, "data": data}


def clean_json_text(text):
    """Strip Markdown code fences some responses wrap around JSON."""
    return _FENCE.sub("", (text or "").strip()).strip()


def _chunk_text(chunk) -> str:
    content = getattr(chunk, "content", chunk)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type", "text") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return ""


class TutorChat:
    """A running conversation with a fixed system instruction.

    ``charge`` is called before every student message; it raises
    ``TokensExhausted`` when the wallet is empty.
    """

    def __init__(self, llm, system_instruction: str, charge: Optional[Callable[[], None]] = None):
        self.llm = llm
        self.system_instruction = system_instruction
        self.charge = charge
        self.history: List[ChatMessage] = []

    def _messages(self):
        messages = [SystemMessage(content=self.system_instruction)]
        for message in self.history:
            if message.role == "user":
                messages.append(HumanMessage(content=message.text))
            elif message.role == "model":
                messages.append(AIMessage(content=message.text))
        return messages

    def stream(self, message: str) -> Iterator[str]:
        if self.charge is not None:
            self.charge()
        self.history.append(ChatMessage(role="user", text=message))
        reply = ""
        try:
            for chunk in self.llm.stream(self._messages()):
                text = _chunk_text(chunk)
                reply += text
                yield text
        except (google_exceptions.GoogleAPIError, genai_errors.APIError, ChatGoogleGenerativeAIError) as e:
            logger.error("Chat failed: %s", e)
            raise AIServiceError(f"Chat failed: {e}") from e
        finally:
            self.history.append(ChatMessage(role="model", text=reply))

    def send(self, message: str) -> str:
        return "".join(self.stream(message))


class StudyAI:
    """All model calls used by the app, one method per tool."""

    def __init__(self, api_key=None, model_factory=None, chat_factory=None,
                 flash_model=None, pro_model=None, image_model=None,
                 source_char_budget=None, search_client=None):
        self.api_key = api_key or config.get_api_key()
        if model_factory is None:
            genai.configure(api_key=self.api_key)
            model_factory = genai.GenerativeModel
        self._model_factory = model_factory
        self._chat_factory = chat_factory or self._default_chat_model
        self.flash_model = flash_model or config.GEMINI_FLASH_MODEL
        self.pro_model = pro_model or config.GEMINI_PRO_MODEL
        self.image_model = image_model or config.GEMINI_IMAGE_MODEL
        self.source_char_budget = source_char_budget or config.SOURCE_CHAR_BUDGET
        self._search_client = search_client

    # --- plumbing ---

    def _default_chat_model(self, model_name):
        return ChatGoogleGenerativeAI(
            model=model_name,
            google_api_key=self.api_key,
            temperature=0.4,
        )

    @property
    def search_client(self):
        # google-generativeai cannot send the google_search tool that 2.x models require
        if self._search_client is None:
            self._search_client = google_genai.Client(api_key=self.api_key)
        return self._search_client

    def _source(self, text):
        return fit_to_budget(text or "", self.source_char_budget)

    def _generate(self, contents, context, timeout, schema=None, model=None):
        generation_config = None
        if schema is not None:
            generation_config = {"response_mime_type": "application/json", "response_schema": schema}
        kwargs = {"request_options": {"timeout": timeout}}
        if generation_config is not None:
            kwargs["generation_config"] = generation_config
        model_name = model or self.flash_model
        logger.info("Gemini call: %s (%s)", context, model_name)
        try:
            response = self._model_factory(model_name).generate_content(contents, **kwargs)
        except (google_exceptions.DeadlineExceeded, TimeoutError) as e:
            logger.warning("%s timed out after %ss", context, timeout)
            raise AIServiceError(f"{context} timeout.") from e
        except google_exceptions.GoogleAPIError as e:
            logger.error("%s failed: %s", context, e)
            raise AIServiceError(f"{context} failed: {e}") from e
        return response

    def _text(self, response, context):
        try:
            text = response.text
        except ValueError as e:
            # Raised by the SDK when the candidate was blocked or empty
            raise AIServiceError(f"{context} returned no content.") from e
        if not text or not text.strip():
            raise AIServiceError(f"{context} returned no content.")
        return text

    def _search(self, prompt, context, timeout):
        """Free-text answer grounded with Google Search."""
        search_config = gx.GenerateContentConfig(
            tools=[gx.Tool(google_search=gx.GoogleSearch())],
            http_options=gx.HttpOptions(timeout=timeout * 1000),
        )
        logger.info("Gemini search call: %s (%s)", context, self.flash_model)
        try:
            response = self.search_client.models.generate_content(
                model=self.flash_model, contents=prompt, config=search_config,
            )
        except httpx.TimeoutException as e:
            logger.warning("%s timed out after %ss", context, timeout)
            raise AIServiceError(f"{context} timeout.") from e
        except genai_errors.APIError as e:
            logger.error("%s failed: %s", context, e)
            raise AIServiceError(f"{context} failed: {e}") from e
        return self._text(response, context)

    def _structured(self, record_type, prompt, schema, context, timeout, model=None, media=None):
        contents = [prompt, *media] if media else prompt
        response = self._generate(contents, context, timeout, schema=schema, model=model)
        raw = clean_json_text(self._text(response, context))
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("%s returned invalid JSON: %s", context, raw[:200])
            raise AIServiceError(f"{context} returned malformed JSON.") from e
        return self._validate(record_type, data, context)

    @staticmethod
    def _validate(record_type, data, context):
        try:
            return TypeAdapter(record_type).validate_python(data)
        except ValidationError as e:
            logger.error("%s response did not match schema: %s", context, e)
            raise AIServiceError(f"{context} response did not match the expected format.") from e

    def _chat(self, system_instruction, charge=None):
        return TutorChat(self._chat_factory(self.flash_model), system_instruction, charge=charge)

    # --- core study tools ---

    def generate_quiz(self, subject, class_level, source_text, num_questions, difficulty="Medium",
                      question_type="mcq") -> List[QuizQuestion]:
        prompt = prompts.render(
            prompts.QUIZ, subject=subject, class_level=class_level, difficulty=difficulty,
            num_questions=num_questions, question_type=question_type,
            source_text=self._source(source_text),
        )
        response = self._structured(dict, prompt, schemas.QUIZ, "Quiz", 120)
        return self._validate(List[QuizQuestion], response.get("questions") or [], "Quiz")

    def generate_flashcards(self, source_text) -> List[Flashcard]:
        prompt = prompts.render(prompts.FLASHCARDS, source_text=self._source(source_text))
        return self._structured(List[Flashcard], prompt, schemas.FLASHCARDS, "Flashcards", 60)

    def generate_smart_summary(self, subject, class_level, source_text) -> SmartSummary:
        prompt = prompts.render(prompts.SMART_SUMMARY, subject=subject, class_level=class_level,
                                source_text=self._source(source_text))
        return self._structured(SmartSummary, prompt, schemas.SMART_SUMMARY, "Summary", 60)

    def generate_mind_map(self, source_text, class_level) -> MindMapNode:
        prompt = prompts.render(prompts.MIND_MAP, class_level=class_level,
                                source_text=self._source(source_text))
        return self._structured(MindMapNode, prompt, schemas.MIND_MAP, "MindMap", 120)

    def evaluate_written_answer(self, source_text, question, answer) -> WrittenFeedback:
        prompt = prompts.render(prompts.EVALUATE_WRITTEN, source_text=self._source(source_text),
                                question=question, answer=answer)
        return self._structured(WrittenFeedback, prompt, schemas.WRITTEN_FEEDBACK, "Evaluation", 60)

    def analyze_student_performance(self, activity_type, data) -> PerformanceAnalysis:
        serialized = json.dumps(data, default=str)[:5000]
        prompt = prompts.render(prompts.PERFORMANCE_ANALYSIS, activity_type=activity_type, data=serialized)
        return self._structured(PerformanceAnalysis, prompt, schemas.PERFORMANCE_ANALYSIS,
                                "Performance Analysis", 60)

    # --- content sources ---

    def fetch_chapter_content(self, class_level, subject, chapter_info, chapter_details="") -> str:
        prompt = prompts.render(prompts.CHAPTER_CONTENT, class_level=class_level, subject=subject,
                                chapter_info=chapter_info, chapter_details=chapter_details)
        return self._search(prompt, "Deep Search", 120)

    def fetch_youtube_transcript(self, url) -> str:
        prompt = prompts.render(prompts.YOUTUBE_TRANSCRIPT, url=url)
        return self._search(prompt, "YT Extraction", 60)

    # --- conversations ---

    def create_chat_session(self, subject, class_level, extracted_text, student_context="",
                            charge=None) -> TutorChat:
        system_instruction = prompts.render(
            prompts.TUTOR_SYSTEM, student_context=student_context, subject=subject,
            class_level=class_level, context=(extracted_text or "")[:config.CHAT_CONTEXT_CHARS],
        )
        return self._chat(system_instruction, charge=charge)

    def create_live_doubts_session(self, topic, class_level, charge=None) -> TutorChat:
        return self._chat(prompts.render(prompts.LIVE_DOUBTS_SYSTEM, topic=topic, class_level=class_level),
                          charge=charge)

    def create_historical_chat(self, figure, charge=None) -> TutorChat:
        return self._chat(prompts.render(prompts.HISTORICAL_SYSTEM, figure=figure), charge=charge)

    def create_dilemma_chat(self, topic, charge=None) -> TutorChat:
        return self._chat(prompts.render(prompts.DILEMMA_SYSTEM, topic=topic), charge=charge)

    def answer_spoken_doubt(self, topic, class_level, audio) -> DoubtResponse:
        prompt = prompts.render(prompts.DOUBT_AUDIO, topic=topic, class_level=class_level)
        return self._structured(DoubtResponse, prompt, schemas.DOUBT_RESPONSE, "Audio Processing", 120,
                                media=[audio])

    # --- debate ---

    def generate_debate_topics(self, source_text) -> List[str]:
        prompt = prompts.render(prompts.DEBATE_TOPICS, source_text=self._source(source_text))
        return self._structured(List[str], prompt, schemas.DEBATE_TOPICS, "Debate Topics", 60)

    def start_debate(self, topic, charge=None) -> TutorChat:
        return self._chat(prompts.render(prompts.DEBATE_SYSTEM, topic=topic), charge=charge)

    def send_debate_argument(self, chat: TutorChat, argument) -> str:
        return chat.send(argument)

    def rebut_spoken_argument(self, topic, audio) -> DebateRebuttal:
        prompt = prompts.render(prompts.DEBATE_AUDIO, topic=topic)
        return self._structured(DebateRebuttal, prompt, schemas.DEBATE_REBUTTAL, "Audio Debate", 120,
                                media=[audio])

    def evaluate_debate(self, history: List[DebateTurn]) -> DebateScorecard:
        transcript = "\n".join(f"{turn.speaker}: {turn.text}" for turn in history)
        prompt = prompts.render(prompts.DEBATE_EVALUATION, transcript=transcript)
        return self._structured(DebateScorecard, prompt, schemas.DEBATE_SCORECARD,
                                "Debate Evaluation", 120)

    # --- exams ---

    def generate_question_paper(self, source_text, num_questions, question_types, difficulty,
                                total_marks, subject=None) -> QuestionPaper:
        prompt = prompts.render(
            prompts.QUESTION_PAPER, subject=subject or "General Studies",
            num_questions=num_questions, question_types=question_types, difficulty=difficulty,
            total_marks=total_marks, source_text=self._source(source_text),
        )
        return self._structured(QuestionPaper, prompt, schemas.QUESTION_PAPER, "Question Paper", 180,
                                model=self.pro_model)

    def predict_exam_paper(self, source_text, difficulty, total_marks, subject=None) -> QuestionPaper:
        prompt = prompts.render(
            prompts.EXAM_PREDICTION, subject=subject or "General studies", difficulty=difficulty,
            total_marks=total_marks, source_text=self._source(source_text),
        )
        return self._structured(QuestionPaper, prompt, schemas.QUESTION_PAPER, "Exam Prediction", 180,
                                model=self.pro_model)

    def grade_answer_sheet(self, paper_text, images) -> GradedPaper:
        prompt = prompts.render(prompts.GRADE_ANSWER_SHEET, paper_text=paper_text)
        return self._structured(GradedPaper, prompt, schemas.GRADED_PAPER, "Grading", 300,
                                model=self.pro_model, media=list(images))

    def generate_viva_questions(self, topic, class_level, num_questions) -> List[str]:
        prompt = prompts.render(prompts.VIVA_QUESTIONS, topic=topic, class_level=class_level,
                                num_questions=num_questions)
        return self._structured(List[str], prompt, schemas.VIVA_QUESTIONS, "Viva Questions", 60)

    def evaluate_viva_answer(self, question, answer_text=None, audio=None) -> VivaEvaluation:
        if audio is not None:
            prompt = prompts.render(prompts.VIVA_AUDIO, question=question)
            return self._structured(VivaEvaluation, prompt, schemas.VIVA_EVALUATION,
                                    "Audio Viva Evaluation", 120, media=[audio])
        if not answer_text or not answer_text.strip():
            raise AIServiceError("Provide a spoken or written answer.")
        prompt = prompts.render(prompts.VIVA_TEXT, question=question, answer=answer_text)
        return self._structured(VivaEvaluation, prompt, schemas.VIVA_EVALUATION,
                                "Text Viva Evaluation", 60)

    def generate_learning_path(self, topic, subject, class_level, quiz_results) -> LearningPath:
        results = json.dumps([q.to_dict() if hasattr(q, "to_dict") else q for q in quiz_results])
        prompt = prompts.render(prompts.LEARNING_PATH, topic=topic, subject=subject,
                                class_level=class_level, quiz_results=results)
        return self._structured(LearningPath, prompt, schemas.LEARNING_PATH, "Learning Path", 180)

    # --- guidance ---

    def generate_career_guidance(self, interests, strengths, ambitions, financial, other="") -> CareerInfo:
        prompt = prompts.render(prompts.CAREER_GUIDANCE, interests=interests, strengths=strengths,
                                ambitions=ambitions, financial=financial, other=other)
        return self._structured(CareerInfo, prompt, schemas.CAREER_INFO, "Career Guidance", 120)

    def generate_study_plan(self, goal) -> StudyPlan:
        prompt = prompts.render(prompts.STUDY_PLAN, goal=goal)
        return self._structured(StudyPlan, prompt, schemas.STUDY_PLAN, "Study Plan", 60)

    # --- labs, concepts, literature, history ---

    def generate_simulation_experiment(self, source_text) -> SimulationExperiment:
        prompt = prompts.render(prompts.SIMULATION, source_text=self._source(source_text))
        return self._structured(SimulationExperiment, prompt, schemas.SIMULATION, "Simulation", 60)

    def generate_lab_experiment(self, subject, topic, safety_level) -> LabExperiment:
        prompt = prompts.render(prompts.LAB_EXPERIMENT, subject=subject, topic=topic,
                                safety_level=safety_level)
        return self._structured(LabExperiment, prompt, schemas.LAB_EXPERIMENT, "Lab Assistant", 120)

    def find_real_world_applications(self, concept) -> List[RealWorldApplication]:
        prompt = prompts.render(prompts.REAL_WORLD, concept=concept)
        return self._structured(List[RealWorldApplication], prompt, schemas.REAL_WORLD_APPLICATIONS,
                                "Real World Apps", 60)

    def generate_analogies(self, concept) -> List[Analogy]:
        prompt = prompts.render(prompts.ANALOGIES, concept=concept)
        return self._structured(List[Analogy], prompt, schemas.ANALOGIES, "Analogies", 60)

    def analyze_literary_text(self, text) -> LiteraryAnalysis:
        prompt = prompts.render(prompts.LITERARY_ANALYSIS, text=self._source(text))
        return self._structured(LiteraryAnalysis, prompt, schemas.LITERARY_ANALYSIS,
                                "Literary Analysis", 120)

    def explore_what_if_history(self, scenario) -> str:
        prompt = prompts.render(prompts.WHAT_IF_HISTORY, scenario=scenario)
        return self._search(prompt, "What If History", 120)

    # --- games and visuals ---

    def generate_game_level(self, source_text) -> GameLevel:
        prompt = prompts.render(prompts.GAME_LEVEL, source_text=self._source(source_text))
        return self._structured(GameLevel, prompt, schemas.GAME_LEVEL, "Game Level", 180)

    def breakdown_text_into_topics(self, source_text) -> List[TopicSection]:
        prompt = prompts.render(prompts.TOPIC_BREAKDOWN, source_text=self._source(source_text))
        return self._structured(List[TopicSection], prompt, schemas.TOPIC_BREAKDOWN,
                                "Topic Breakdown", 120)

    def generate_scenes(self, topic_content, class_level, full_chapter=False) -> List[VisualScene]:
        """Narrated illustration scenes for one topic, or for a whole chapter.

        Scenes whose image call yields no inline image are dropped.
        """
        context = "Summary Video Blueprints" if full_chapter else "Scene Blueprints"
        prompt = prompts.render(prompts.SCENES, scene_range="5-7" if full_chapter else "2-4",
                                class_level=class_level, source_text=self._source(topic_content))
        blueprints = self._structured(List[SceneBlueprint], prompt, schemas.SCENE_BLUEPRINTS,
                                      context, 180 if full_chapter else 120)
        scenes = []
        for blueprint in blueprints:
            image = self._render_image(blueprint.image_prompt)
            if image is None:
                logger.warning("No image returned for scene: %s", blueprint.narration[:60])
                continue
            scenes.append(VisualScene(narration=blueprint.narration, imageBytes=image))
        return scenes

    def _render_image(self, image_prompt) -> Optional[str]:
        response = self._generate(image_prompt, "Scene Image", 120, model=self.image_model)
        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            return None
        for part in candidates[0].content.parts:
            inline = getattr(part, "inline_data", None)
            data = getattr(inline, "data", None) if inline is not None else None
            if data:
                return base64.b64encode(data).decode("ascii")
        return None


def decode_scene_image(scene: VisualScene) -> Optional[bytes]:
    if not scene.imageBytes:
        return None
    return base64.b64decode(scene.imageBytes)
