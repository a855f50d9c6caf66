import base64

import httpx
import pytest
from google.api_core import exceptions as google_exceptions
from google.genai import errors as genai_errors
from langchain_core.messages import AIMessageChunk
from langchain_google_genai.chat_models import ChatGoogleGenerativeAIError

from stubro.ai_service import TutorChat, clean_json_text, media_part
from stubro.errors import AIServiceError, TokensExhausted
from stubro.records import DebateTurn, QuizQuestion

from conftest import FakeChatModel, FakeResponse
from test_records import GAME_PAYLOAD

QUIZ_PAYLOAD = {
    "questions": [
        {"question": "What is $H_2O$?", "type": "mcq", "options": ["Water", "Salt", "Air", "Fire"],
         "correctAnswer": "Water", "explanation": "Two hydrogens, one oxygen."},
        {"question": "Explain osmosis.", "type": "written", "explanation": "Movement of water."},
    ]
}


def test_generate_quiz_sends_schema_and_parses(ai, gemini):
    gemini.reply(QUIZ_PAYLOAD)
    questions = ai.generate_quiz("Chemistry", "Class 9", "Water is a compound.", 2, "Easy", "mcq")

    assert [q.type for q in questions] == ["mcq", "written"]
    assert questions[0].correctAnswer == "Water"
    call = gemini.last
    assert call.model == "flash"
    assert call.request_options == {"timeout": 120}
    assert call.generation_config["response_mime_type"] == "application/json"
    assert "questions" in call.generation_config["response_schema"]["properties"]
    assert "Class 9 Chemistry" in call.contents
    assert "Water is a compound." in call.contents


def test_generate_quiz_empty_questions(ai, gemini):
    gemini.reply({"questions": []})
    assert ai.generate_quiz("Math", "Class 10", "text", 5) == []


def test_fenced_json_is_accepted(ai, gemini):
    gemini.reply('```json\n[{"term": "Atom", "definition": "Smallest unit"}]\n```')
    cards = ai.generate_flashcards("Atoms are small.")
    assert cards[0].term == "Atom"
    assert cards[0].tip is None


def test_clean_json_text():
    assert clean_json_text("```json\n{}\n```") == "{}"
    assert clean_json_text("  []  ") == "[]"
    assert clean_json_text(None) == ""


def test_timeout_names_the_operation(ai, gemini):
    gemini.reply(google_exceptions.DeadlineExceeded("too slow"))
    with pytest.raises(AIServiceError, match="^Quiz timeout.$"):
        ai.generate_quiz("Math", "Class 10", "text", 5)


def test_api_error_is_wrapped(ai, gemini):
    gemini.reply(google_exceptions.ResourceExhausted("quota"))
    with pytest.raises(AIServiceError, match="Flashcards failed"):
        ai.generate_flashcards("text")


def test_malformed_json(ai, gemini):
    gemini.reply("{not json")
    with pytest.raises(AIServiceError, match="malformed JSON"):
        ai.generate_smart_summary("Physics", "Class 10", "text")


def test_schema_mismatch(ai, gemini):
    gemini.reply({"title": "Only a title"})
    with pytest.raises(AIServiceError, match="expected format"):
        ai.generate_smart_summary("Physics", "Class 10", "text")


def test_blocked_response(ai, gemini):
    gemini.reply(FakeResponse(blocked=True))
    with pytest.raises(AIServiceError, match="no content"):
        ai.generate_mind_map("text", "Class 10")


def test_question_paper_uses_pro_model(ai, gemini):
    gemini.reply({
        "title": "Unit Test", "totalMarks": 10, "instructions": "Answer all.",
        "questions": [{"question": "Define force.", "questionType": "short_answer", "answer": "F = ma", "marks": 10}],
    })
    paper = ai.generate_question_paper("Force and motion.", 1, "short_answer", "Medium", 10, subject="Physics")
    assert paper.questions[0].marks == 10
    assert gemini.last.model == "pro"
    assert gemini.last.request_options == {"timeout": 180}


def test_grade_answer_sheet_attaches_images(ai, gemini):
    gemini.reply({"totalMarksAwarded": 4, "overallFeedback": "Good.", "gradedQuestions": []})
    image = media_part("image/png", b"\x89PNG")
    ai.grade_answer_sheet("Q1 ...", [image])
    assert gemini.last.contents[1] == image
    assert gemini.last.request_options == {"timeout": 300}


def test_performance_data_is_truncated(ai, gemini):
    gemini.reply({"strengthsIdentified": [], "weaknessesIdentified": ["Units"], "aiFeedback": "Keep going."})
    analysis = ai.analyze_student_performance("quiz", {"blob": "x" * 20000})
    assert analysis.weaknessesIdentified == ["Units"]
    assert "x" * 5000 not in gemini.last.contents
    assert "x" * 4000 in gemini.last.contents


def test_chapter_search_is_grounded(ai, gemini):
    gemini.reply("Chapter text about metals.")
    text = ai.fetch_chapter_content("Class 10", "Chemistry", "Metals and Non-metals")
    assert text == "Chapter text about metals."
    assert gemini.last.model == "flash"
    tool = gemini.last.config.tools[0]
    assert tool.google_search is not None
    assert tool.google_search_retrieval is None
    assert gemini.last.config.http_options.timeout == 120000


def test_what_if_history_is_grounded(ai, gemini):
    gemini.reply("Rome never fell.")
    assert ai.explore_what_if_history("What if Rome never fell?") == "Rome never fell."
    assert gemini.last.config.tools[0].google_search is not None


def test_search_timeout(ai, gemini):
    gemini.reply(httpx.ReadTimeout("timed out"))
    with pytest.raises(AIServiceError, match="^Deep Search timeout.$"):
        ai.fetch_chapter_content("Class 10", "Chemistry", "Metals")


def test_search_api_error_is_wrapped(ai, gemini):
    gemini.reply(genai_errors.ClientError(
        400, {"error": {"code": 400, "message": "Bad request", "status": "INVALID_ARGUMENT"}}))
    with pytest.raises(AIServiceError, match="YT Extraction failed"):
        ai.fetch_youtube_transcript("https://youtu.be/dQw4w9WgXcQ")


def test_viva_needs_an_answer(ai):
    with pytest.raises(AIServiceError):
        ai.evaluate_viva_answer("What is inertia?", answer_text="  ")


def test_viva_audio_answer(ai, gemini):
    gemini.reply({"transcription": "Resistance to change", "feedback": "Good", "marksAwarded": 8})
    audio = media_part("audio/wav", b"RIFF")
    result = ai.evaluate_viva_answer("What is inertia?", audio=audio)
    assert result.marksAwarded == 8
    assert gemini.last.contents[1] == audio


def test_generate_scenes_drops_missing_images(ai, gemini):
    gemini.reply([
        {"narration": "A cell divides.", "image_prompt": "mitosis diagram"},
        {"narration": "Chromosomes align.", "image_prompt": "metaphase"},
    ])
    gemini.reply(FakeResponse(image=b"png-bytes"))
    gemini.reply(FakeResponse())

    scenes = ai.generate_scenes("Mitosis", "Class 9")

    assert len(scenes) == 1
    assert scenes[0].narration == "A cell divides."
    assert base64.b64decode(scenes[0].imageBytes) == b"png-bytes"
    assert gemini.calls[1].model == "image"


def test_evaluate_debate_builds_transcript(ai, gemini):
    gemini.reply({
        "overallScore": 7, "argumentStrength": 8, "rebuttalEffectiveness": 6, "clarity": 7,
        "strongestArgument": "Costs", "improvementSuggestion": "Cite data", "concludingRemarks": "Well done",
    })
    ai.evaluate_debate([DebateTurn(speaker="user", text="Uniforms save money."),
                        DebateTurn(speaker="critico", text="They limit expression.")])
    assert "user: Uniforms save money." in gemini.last.contents
    assert "critico: They limit expression." in gemini.last.contents


def test_learning_path_serializes_results(ai, gemini):
    gemini.reply({"mainTopic": "Acids", "weakAreas": ["pH"], "learningSteps": []})
    result = QuizQuestion(question="pH of water?", type="mcq", options=["7", "1"], correctAnswer="7",
                          explanation="Neutral", userAnswer="1", isCorrect=False)
    ai.generate_learning_path("Acids", "Chemistry", "Class 10", [result])
    assert '"userAnswer": "1"' in gemini.last.contents


def test_tutor_chat_streams_and_records(ai, chat_model):
    chat = ai.create_chat_session("Physics", "Class 10", "y" * 20000, student_context="Strengths: optics")
    chunks = list(chat.stream("What is light?"))

    assert chunks == ["Hello", " there"]
    assert [m.role for m in chat.history] == ["user", "model"]
    assert chat.history[1].text == "Hello there"
    system = chat_model.seen[0][0].content
    assert "Strengths: optics" in system
    assert "y" * 10000 in system
    assert "y" * 10001 not in system


def test_tutor_chat_passes_history(chat_model):
    chat = TutorChat(chat_model, "Be brief.")
    chat.send("first")
    chat.send("second")
    roles = [type(m).__name__ for m in chat_model.seen[1]]
    assert roles == ["SystemMessage", "HumanMessage", "AIMessage", "HumanMessage"]


def test_tutor_chat_charge_blocks_message():
    def charge():
        raise TokensExhausted("Tokens Exhausted.")

    chat = TutorChat(FakeChatModel(), "system", charge=charge)
    with pytest.raises(TokensExhausted):
        chat.send("hello")
    assert chat.history == []


def test_debate_argument_goes_through_chat(ai):
    chat = ai.start_debate("School uniforms")
    assert ai.send_debate_argument(chat, "They are cheap.") == "Hello there"


class FailingChatModel:
    def stream(self, messages):
        yield AIMessageChunk(content="Partial")
        raise ChatGoogleGenerativeAIError("Invalid argument provided to Gemini: 400 API key not valid")


def test_tutor_chat_wraps_model_errors():
    chat = TutorChat(FailingChatModel(), "system")
    with pytest.raises(AIServiceError, match="Chat failed"):
        chat.send("hi")
    assert [m.role for m in chat.history] == ["user", "model"]
    assert chat.history[1].text == "Partial"


def test_game_level_with_start_off_the_map(ai, gemini):
    gemini.reply({**GAME_PAYLOAD, "player_start": {"x": 9, "y": 9}})
    with pytest.raises(AIServiceError, match="Game Level response did not match the expected format."):
        ai.generate_game_level("Cell organelles.")
