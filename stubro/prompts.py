"""
Prompt templates for every StuBro tool.

Templates are langchain ``PromptTemplate`` objects; ``render(template, **kw)``
fills one in. Structured prompts are paired with a response schema in
``stubro.schemas``, so they describe content, not output format.
"""
from langchain_core.prompts import PromptTemplate

PERSONALITY_PROMPT = r"""You are StuBro AI, an elite educational neural engine for students.
**STRICT LANGUAGE RULE:** YOUR OUTPUT MUST BE 100% IN ENGLISH. NEVER USE CHINESE OR HINDI CHARACTERS.
**SCIENTIFIC RENDERING RULE:**
1. Use LaTeX for ALL Algebra/Math. Example: $x^2 + y_2 = z$. Use $...$ for inline and $$...$$ for blocks.
2. Use mhchem syntax for ALL Chemistry. Example: $\ce{H2O}$, $\ce{CO2}$, $\ce{2H2 + O2 -> 2H2O}$.
3. Always ensure superscripts (^) and subscripts (_) are wrapped in LaTeX delimiters.
Explain complex things simply. Ground answers in provided context."""

ENGLISH_ONLY = "STRICTLY ENGLISH."
MATH_RULE = r"Use LaTeX for math ($x^2$) and mhchem for chemistry ($\ce{H2O}$)."


def _template(text):
    # LaTeX samples with braces go in as values, never in template text
    return PromptTemplate.from_template(text, template_format="f-string")


QUIZ = _template(
    "{english} {math_rule} You are an expert educator designing exam-applicable questions "
    "for {class_level} {subject}.\n"
    "Generate a {difficulty} quiz ({num_questions} {question_type}) based on this text.\n"
    "Focus on understanding and application of the material. For mcq items give exactly four "
    "options and set correctAnswer to the exact text of the correct option. For written items "
    "leave options empty.\n\nTEXT:\n{source_text}"
)

FLASHCARDS = _template(
    "{english} Use LaTeX for all symbols/formulas. Generate flippable flashcards focusing on the "
    "CORE CONCEPTS, KEY TERMS and MAIN IDEAS of the text below. Add a short memory tip where one "
    "helps.\n\nTEXT:\n{source_text}"
)

SMART_SUMMARY = _template(
    "{english} Summarize this {subject} material for {class_level}. Use LaTeX/mhchem for all "
    "formulas. Pick the core concepts, one visual analogy, the points most likely to appear in "
    "an exam, and a single StuBro tip.\n\nTEXT:\n{source_text}"
)

MIND_MAP = _template(
    "{english} Build a hierarchical mind map of the text for a {class_level} student. The root "
    "is the chapter's main idea; children are major concepts; grandchildren are supporting "
    "details. Use LaTeX for math.\n\nTEXT:\n{source_text}"
)

EVALUATE_WRITTEN = _template(
    "{english} You are a fair examiner. Evaluate the student's answer out of 5 marks using the "
    "context. Say what is correct, what is missing and what is incorrect.\n\n"
    "CONTEXT:\n{source_text}\n\nQUESTION:\n{question}\n\nANSWER:\n{answer}"
)

CHAPTER_CONTENT = _template(
    "{english} Write detailed academic content for {class_level}, {subject}: {chapter_info}. "
    "{chapter_details}\nCover every sub-topic of the chapter as a textbook would, with "
    "definitions, worked examples and key formulas. Use LaTeX for all symbols."
)

YOUTUBE_TRANSCRIPT = _template(
    "{english} Fetch the transcript, or a faithful detailed account of the spoken content, "
    "for this video: {url}"
)

SIMULATION = _template(
    "{english} Design an interactive step-by-step virtual lab simulation for the concept in the "
    "text. Pick a visual theme and liquid colours that suit it. Use LaTeX for math.\n\n"
    "TEXT:\n{source_text}"
)

DEBATE_TOPICS = _template(
    "{english} Propose 3-4 debate motions a student could argue about, drawn from this text.\n\n"
    "TEXT:\n{source_text}"
)

DEBATE_SYSTEM = _template(
    "You are Critico AI. Debate strictly in ENGLISH about: {topic}. Take the opposing side to "
    "the student, use logic and evidence, and keep each rebuttal under 150 words."
)

DEBATE_AUDIO = _template(
    "{english} Transcribe the student's spoken argument about \"{topic}\" and write Critico's "
    "rebuttal to it."
)

DEBATE_EVALUATION = _template(
    "{english} Evaluate the student's debate performance. Score each category from 0 to 10.\n\n"
    "TRANSCRIPT:\n{transcript}"
)

GAME_LEVEL = _template(
    "{english} Design a 15x20 top-down adventure level (15 rows, 20 columns) themed on the text. "
    "Walls enclose the map, one exit tile exists, and every interaction tile holds a question "
    "about the material with a short exact answer. Use LaTeX for clues.\n\nTEXT:\n{source_text}"
)

PERFORMANCE_ANALYSIS = _template(
    "{english} Analyze student performance for activity \"{activity_type}\". Identify strengths, "
    "weaknesses and give encouraging feedback.\n\nDATA:\n{data}"
)

QUESTION_PAPER = _template(
    "{english} Create a question paper for {subject}.\n"
    "Questions: {num_questions}, Types: {question_types}, Difficulty: {difficulty}, "
    "Total Marks: {total_marks}.\nProvide model answers for each.\n\nTEXT:\n{source_text}"
)

GRADE_ANSWER_SHEET = _template(
    "{english} You are an examiner. Grade the attached answer sheet images based on this "
    "question paper and model answers. Transcribe each answer before marking it.\n\n{paper_text}"
)

CAREER_GUIDANCE = _template(
    "{english} Expert career counseling for Indian students.\n"
    "Interests: {interests}, Strengths: {strengths}, Ambitions: {ambitions}, "
    "Financial: {financial}, Other: {other}.\n"
    "Provide diverse career paths with descriptions, subjects, top colleges, and roadmaps."
)

STUDY_PLAN = _template(
    "{english} Create a day-by-day study plan for goal: \"{goal}\". Include a realistic time slot "
    "for each day."
)

VIVA_QUESTIONS = _template(
    "{english} Generate {num_questions} insightful viva questions for {class_level} on topic: "
    "{topic}."
)

VIVA_AUDIO = _template(
    "{english} Transcribe and evaluate the spoken answer for: \"{question}\". Award marks out of 10."
)

VIVA_TEXT = _template(
    "{english} Evaluate the answer for: \"{question}\". Answer provided: \"{answer}\". Echo the "
    "answer as the transcription and award marks out of 10."
)

LIVE_DOUBTS_SYSTEM = _template(
    "{personality}\n\nYou are a live tutor for {class_level}. Discuss: \"{topic}\". Be "
    "conversational and clear. Strictly ENGLISH."
)

DOUBT_AUDIO = _template(
    "{english} A {class_level} student asks a spoken doubt about \"{topic}\". Transcribe the doubt "
    "and provide a helpful response."
)

TOPIC_BREAKDOWN = _template(
    "{english} Break the following text into logical topics with titles and content.\n\n"
    "TEXT:\n{source_text}"
)

SCENES = _template(
    "{english} Generate {scene_range} scenes for a visual explanation aimed at a {class_level} "
    "student. Each scene needs narration and a detailed image prompt for an educational "
    "illustration.\n\nCONTENT:\n{source_text}"
)

LEARNING_PATH = _template(
    "{english} Generate a personalized learning path for topic \"{topic}\" ({subject}, "
    "{class_level}) based on these diagnostic quiz results:\n{quiz_results}"
)

EXAM_PREDICTION = _template(
    "{english} Predict potential exam questions for {subject} based on this text. "
    "Marks: {total_marks}, Difficulty: {difficulty}. Produce a full paper with model answers.\n\n"
    "TEXT:\n{source_text}"
)

REAL_WORLD = _template(
    "{english} Provide 3-5 real-world applications for: {concept}. Name the industry and describe "
    "how the concept is used there."
)

ANALOGIES = _template(
    "{english} Provide 2-3 simple analogies for: {concept}."
)

LAB_EXPERIMENT = _template(
    "{english} Design a lab experiment for {subject} on: {topic}. Safety level: {safety_level}."
)

HISTORICAL_SYSTEM = _template(
    "You are {figure}. Respond strictly in character and in ENGLISH. Use LaTeX for any "
    "scientific concepts."
)

LITERARY_ANALYSIS = _template(
    "{english} Analyze the literary text provided: themes, literary devices with examples, "
    "characters, and an overall summary.\n\nTEXT:\n{text}"
)

DILEMMA_SYSTEM = _template(
    "You are an ethics moderator. Present challenging dilemmas on {topic} and facilitate "
    "critical thinking. Strictly ENGLISH."
)

WHAT_IF_HISTORY = _template(
    "{english} Explore the historical \"What If\": {scenario}. Use historical principles and cite "
    "the real events the scenario departs from."
)

TUTOR_SYSTEM = _template(
    "{personality}\n{student_context}\nRespond strictly in English. Subject: {subject}. "
    "Level: {class_level}. Context:\n{context}"
)

_DEFAULTS = {"english": ENGLISH_ONLY, "math_rule": MATH_RULE, "personality": PERSONALITY_PROMPT}


def render(template, **kwargs):
    """Fill a template, supplying the shared language and notation rules."""
    values = {name: value for name, value in _DEFAULTS.items() if name in template.input_variables}
    values.update(kwargs)
    return template.format(**values)
