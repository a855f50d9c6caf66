import logging

import streamlit as st

from stubro import config, views
from stubro.ai_service import StudyAI, media_part
from stubro.auth import sign_in, sign_up
from stubro.errors import StuBroError
from stubro.intake import from_upload, require_chapter, resolve_source
from stubro.persistence import ActivityStore, init_firestore
from stubro.records import CLASS_LEVELS, DEFAULT_CLASS_LEVEL, QUIZ_DIFFICULTIES, ChatMessage, DebateTurn, Subject
from stubro.scoring import QuizAttempt
from stubro.session import ContentSession
from stubro.wallet import TokenWallet

config.configure_logging()
logger = logging.getLogger("stubro.app")

st.set_page_config(page_title="StuBro", layout="wide")

# --- Initialize Session State ---
if 'user_google_api_key' not in st.session_state:
    st.session_state.user_google_api_key = config.get_api_key()
if 'api_key_configured' not in st.session_state:
    st.session_state.api_key_configured = False
if 'ai' not in st.session_state:
    st.session_state.ai = None
if 'user' not in st.session_state:
    st.session_state.user = None
if 'content_session' not in st.session_state:
    st.session_state.content_session = ContentSession()
if 'page' not in st.session_state:
    st.session_state.page = "new_session"
if 'active_tool' not in st.session_state:
    st.session_state.active_tool = None
if 'pending_tool' not in st.session_state:
    st.session_state.pending_tool = None
if 'artifacts' not in st.session_state:
    st.session_state.artifacts = {}
if 'wallet_balances' not in st.session_state:
    st.session_state.wallet_balances = {}


@st.cache_resource
def get_store():
    return ActivityStore(init_firestore())


store = get_store()
wallet = TokenWallet(st.session_state.wallet_balances)
session = st.session_state.content_session
artifacts = st.session_state.artifacts

SUBJECTS = [s.value for s in Subject]

# (label, needs session content)
TOOLS = {
    "chat": ("💬 AI Tutor Chat", True),
    "quiz": ("📝 Mastery Test", True),
    "summary": ("📄 Smart Summary", True),
    "flashcards": ("🃏 Flashcards", True),
    "mindmap": ("🧠 Mind Map", True),
    "paper": ("🧾 Question Paper & Grading", True),
    "exam_prediction": ("🔮 Exam Predictor", True),
    "learning_path": ("🧭 Learning Path", True),
    "debate": ("⚖️ Debate Arena", True),
    "game": ("🎮 Chapter Odyssey", True),
    "simulation": ("🧪 Virtual Simulation", True),
    "visual": ("🎬 Visual Narrator", True),
    "literary": ("📚 Literary Analysis", False),
    "career": ("🎓 Career Guidance", False),
    "study_plan": ("🗓️ Study Planner", False),
    "viva": ("🎤 Viva Practice", False),
    "doubts": ("🙋 Live Doubts", False),
    "lab": ("🔬 Lab Assistant", False),
    "real_world": ("🌍 Real-World Links", False),
    "analogies": ("🔗 Analogy Maker", False),
    "historical": ("🏛️ Talk to History", False),
    "dilemma": ("🤔 Ethical Dilemmas", False),
    "what_if": ("⏳ What-If History", False),
    "history": ("📈 My Progress", False),
}

# --- API Key Handling ---
st.sidebar.title("🎓 StuBro")
st.sidebar.subheader("Google API Key")
with st.sidebar.form(key='api_key_form'):
    user_api_key_input = st.text_input(
        "Enter your Google API Key",
        type="password",
        help="Get your key from Google AI Studio. Your key is used only for this session.",
        value=st.session_state.user_google_api_key or "",
    )
    submitted = st.form_submit_button("Submit Key")

    if submitted and user_api_key_input:
        if not config.validate_api_key(user_api_key_input):
            st.warning("That does not look like a Google AI key.")
        st.session_state.user_google_api_key = user_api_key_input
        st.session_state.api_key_configured = False
    elif submitted:
        st.warning("Please enter an API Key.")
        st.session_state.api_key_configured = False

GOOGLE_API_KEY = st.session_state.user_google_api_key

if GOOGLE_API_KEY and not st.session_state.api_key_configured:
    try:
        st.session_state.ai = StudyAI(api_key=GOOGLE_API_KEY)
        st.session_state.api_key_configured = True
        st.sidebar.success("✅ Google AI Client Configured Successfully!")
    except (ValueError, StuBroError) as e:
        logger.error("Failed to configure Google AI client: %s", e)
        st.sidebar.error(f"Failed to configure Google AI Client: {e}")
        st.session_state.ai = None

ai = st.session_state.ai

# --- Account ---
st.sidebar.subheader("Account")
user = st.session_state.user
if not store.enabled:
    st.sidebar.caption("Accounts and history are off (Firebase is not configured).")
elif user is None:
    sign_in_tab, sign_up_tab = st.sidebar.tabs(["Sign in", "Sign up"])
    with sign_in_tab:
        with st.form("sign_in_form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Sign in"):
                try:
                    st.session_state.user = sign_in(email, password)
                    st.rerun()
                except StuBroError as e:
                    st.error(str(e))
    with sign_up_tab:
        with st.form("sign_up_form"):
            invite = st.text_input("Invite code")
            name = st.text_input("Name")
            new_email = st.text_input("Email")
            new_password = st.text_input("Password", type="password")
            confirm = st.text_input("Confirm password", type="password")
            if st.form_submit_button("Create account"):
                try:
                    st.session_state.user = sign_up(name, new_email, new_password, confirm, invite)
                    st.rerun()
                except StuBroError as e:
                    st.error(str(e))
else:
    st.sidebar.success(f"Signed in as {user.display_name or user.email}")
    if st.sidebar.button("Sign out"):
        st.session_state.user = None
        st.rerun()

uid = user.uid if user is not None else None
balance_owner = uid or "guest"
st.sidebar.metric("AI tokens", "∞" if wallet.dev_mode else wallet.balance(balance_owner))


# --- Helpers ---

def run_ai(label, fn):
    """Call the model under a spinner; show failures as a message."""
    with st.spinner(label):
        try:
            return fn()
        except StuBroError as e:
            logger.error("%s failed: %s", label, e)
            st.error(str(e))
            return None


def save(activity_type, topic, data, analysis=None):
    return store.save_activity(uid, activity_type, topic, session.subject or "General", data,
                               analysis=analysis, session_id=session.session_id)


def open_tool(tool):
    if TOOLS[tool][1] and not session.has_content:
        st.session_state.pending_tool = tool
        st.session_state.page = "new_session"
    else:
        st.session_state.active_tool = tool
        st.session_state.page = "dashboard"
    st.rerun()


def new_session():
    session.reset()
    artifacts.clear()
    for key in [k for k in st.session_state if k.startswith("tool_")]:
        del st.session_state[key]
    st.session_state.active_tool = None
    st.session_state.page = "new_session"


def enter_dashboard():
    st.session_state.page = "dashboard"
    st.session_state.active_tool = st.session_state.pending_tool
    st.session_state.pending_tool = None


def chat_panel(key, factory, intro, activity_type=None, topic=""):
    """Shared chat UI for the tutor, live doubts, history and dilemma tools."""
    chat_key, messages_key, activity_key = f"tool_{key}_chat", f"tool_{key}_messages", f"tool_{key}_activity"
    if chat_key not in st.session_state:
        st.session_state[chat_key] = factory()
        st.session_state[messages_key] = [ChatMessage(role="model", text=intro)]
        if activity_type:
            st.session_state[activity_key] = save(activity_type, topic, st.session_state[messages_key])
    chat = st.session_state[chat_key]
    messages = st.session_state[messages_key]
    views.render_chat_history(messages)

    prompt = st.chat_input("Ask anything...", key=f"{key}_input")
    if prompt:
        with st.chat_message("user"):
            st.markdown(prompt)
        with st.chat_message("assistant"):
            try:
                reply = st.write_stream(chat.stream(prompt))
            except StuBroError as e:
                st.error(str(e))
                return
        messages.extend([ChatMessage(role="user", text=prompt), ChatMessage(role="model", text=reply)])
        if activity_type:
            store.update_activity(st.session_state.get(activity_key), messages)


# --- Background search status ---

@st.fragment(run_every=1)
def search_status_banner():
    before = session.search_status
    action = session.poll()
    if action:
        st.session_state.pending_tool = action
    if session.search_status == "searching":
        st.info(f"🔎 {session.search_message}")
    elif session.search_status == "success":
        st.success(session.search_message)
    elif session.search_status == "error":
        st.error(session.search_message)
    if session.search_status != before:
        if session.search_status == "success":
            enter_dashboard()
        st.rerun(scope="app")


if session.search_status != "idle":
    search_status_banner()


# --- New Session ---

def render_new_session():
    st.title("🚀 Start a Study Session")
    if st.session_state.pending_tool:
        st.info(f"Add some material first to open {TOOLS[st.session_state.pending_tool][0]}.")
    col1, col2 = st.columns(2)
    subject = col1.selectbox("Subject", SUBJECTS)
    class_level = col2.selectbox("Class", CLASS_LEVELS, index=CLASS_LEVELS.index(DEFAULT_CLASS_LEVEL))

    paste_tab, file_tab, youtube_tab, search_tab = st.tabs(["📋 Paste", "📁 Files", "▶️ YouTube", "🌐 Chapter Search"])

    def start(source, **kwargs):
        if ai is None and source == "youtube":
            st.warning("Configure your API key to use YouTube fallback transcripts.")
        progress = st.empty()
        try:
            with st.spinner("Processing source..."):
                text = resolve_source(source, ai=ai, progress=progress.caption, **kwargs)
        except StuBroError as e:
            st.error(str(e) or "Link unstable. Please retry.")
            return
        finally:
            progress.empty()
        session.start_session_with_content(text, subject=subject, class_level=class_level)
        enter_dashboard()
        st.rerun()

    with paste_tab:
        with st.form("paste_form"):
            pasted = st.text_area("Paste your notes or chapter text", height=300)
            if st.form_submit_button("Start Session"):
                start("paste", text=pasted)
    with file_tab:
        with st.form("file_form"):
            uploads = st.file_uploader("PDF, DOCX or TXT", type=["pdf", "docx", "txt", "md"],
                                       accept_multiple_files=True)
            if st.form_submit_button("Process Files"):
                start("file", files=[from_upload(f) for f in uploads or []])
    with youtube_tab:
        with st.form("youtube_form"):
            url = st.text_input("YouTube URL", placeholder="https://www.youtube.com/watch?v=...")
            if st.form_submit_button("Fetch Transcript"):
                start("youtube", url=url)
    with search_tab:
        if ai is None:
            st.warning("💡 Please enter your Google API Key in the sidebar to search for chapters.")
            return
        with st.form("search_form"):
            chapter = st.text_input("Chapter name", placeholder="e.g. Chapter 3: Metals and Non-metals")
            details = st.text_input("Extra details (optional)", placeholder="Board, book, focus areas...")
            if st.form_submit_button("Search", disabled=not session.can_search):
                try:
                    chapter_info = require_chapter(chapter)
                    session.start_background_search(
                        lambda: ai.fetch_chapter_content(class_level, subject, chapter_info, details),
                        post_search_action=st.session_state.pending_tool,
                    )
                except StuBroError as e:
                    st.error(str(e))
                    return
                session.subject, session.class_level = subject, class_level
                st.session_state.pending_tool = None
                st.rerun()


# --- Tools ---

def tool_chat():
    context = store.get_student_context(uid) if uid else ""
    intro = f"Neural Link Active. Ready for analysis. Session: {(session.session_id or '')[:8]}"
    chat_panel(
        "chat",
        lambda: ai.create_chat_session(session.subject, session.class_level, session.extracted_text,
                                       student_context=context, charge=wallet.charger(balance_owner)),
        intro, activity_type="chat", topic=f"Chat: {session.subject}",
    )


def tool_quiz():
    attempt = st.session_state.get("tool_quiz_attempt")
    if attempt is None:
        with st.form("quiz_settings"):
            num = st.slider("Number of questions", 1, 15, 5)
            difficulty = st.select_slider("Difficulty", QUIZ_DIFFICULTIES, value="Medium")
            qtype = st.radio("Question type", ["mcq", "written"], horizontal=True)
            if st.form_submit_button("Generate Quiz"):
                questions = run_ai("Designing your test...", lambda: ai.generate_quiz(
                    session.subject, session.class_level, session.extracted_text, num, difficulty, qtype))
                if questions == []:
                    st.warning("No questions came back. Try again with more material.")
                elif questions:
                    st.session_state.tool_quiz_attempt = QuizAttempt(questions)
                    st.rerun()
        return

    def evaluate(question, answer):
        return ai.evaluate_written_answer(session.extracted_text, question, answer)

    if views.render_quiz(attempt, evaluate):
        results = [r.to_dict() for r in attempt.results]
        analysis = run_ai("Analyzing performance...", lambda: ai.analyze_student_performance("quiz", results))
        record = {"score": attempt.score_label()}
        if analysis is not None:
            record.update(analysis.to_dict())
        save("quiz", f"Mastery Test: {session.subject}", results, analysis=record)
        st.session_state.tool_quiz_analysis = record
        st.rerun()
    if attempt.finished:
        record = st.session_state.get("tool_quiz_analysis")
        if record and record.get("aiFeedback"):
            st.info(record["aiFeedback"])
        views.render_quiz_downloads(attempt.questions, name=f"stubro_quiz_{session.session_id}")
        if st.button("New Quiz"):
            del st.session_state["tool_quiz_attempt"]
            st.rerun()


def _cached_artifact(name, label, generate, activity, topic_of):
    if name not in artifacts:
        result = run_ai(label, generate)
        if result is None:
            return None
        artifacts[name] = result
        if activity:
            save(activity, topic_of(result), result)
    return artifacts[name]


def tool_summary():
    summary = _cached_artifact("summary", "Synthesizing Summary...", lambda: ai.generate_smart_summary(
        session.subject, session.class_level, session.extracted_text), "summary", lambda s: s.title)
    if summary:
        views.render_summary(summary)


def tool_flashcards():
    cards = _cached_artifact("flashcards", "Generating Flashcards...",
                             lambda: ai.generate_flashcards(session.extracted_text),
                             "flashcards", lambda _: f"Flashcards: {session.subject}")
    if cards:
        views.render_flashcards(cards)


def tool_mindmap():
    root = _cached_artifact("mindmap", "Mapping Connections...",
                            lambda: ai.generate_mind_map(session.extracted_text, session.class_level),
                            "mindmap", lambda m: f"Mindmap: {m.term}")
    if root:
        views.render_mind_map(root)


def tool_paper():
    with st.form("paper_settings"):
        col1, col2 = st.columns(2)
        num = col1.number_input("Questions", min_value=1, max_value=30, value=10)
        marks = col2.number_input("Total marks", min_value=5, max_value=200, value=50)
        types = st.multiselect("Question types", ["mcq", "short_answer", "long_answer"],
                               default=["mcq", "short_answer", "long_answer"])
        difficulty = st.select_slider("Difficulty", QUIZ_DIFFICULTIES, value="Medium")
        if st.form_submit_button("Generate Paper"):
            paper = run_ai("Setting the paper...", lambda: ai.generate_question_paper(
                session.extracted_text, num, ", ".join(types), difficulty, marks, subject=session.subject))
            if paper:
                artifacts["paper"] = paper
                artifacts.pop("graded", None)
    paper = artifacts.get("paper")
    if not paper:
        return
    views.render_paper(paper, key="question_paper")

    st.subheader("Grade my answer sheet")
    sheets = st.file_uploader("Photos of your answer sheet", type=["png", "jpg", "jpeg"],
                              accept_multiple_files=True)
    if sheets and st.button("Grade"):
        images = [media_part(f.type, f.getvalue()) for f in sheets]
        graded = run_ai("Grading...", lambda: ai.grade_answer_sheet(paper.as_text(), images))
        if graded:
            artifacts["graded"] = graded
    if artifacts.get("graded"):
        views.render_graded_paper(artifacts["graded"], paper)


def tool_exam_prediction():
    with st.form("prediction_settings"):
        difficulty = st.select_slider("Difficulty", QUIZ_DIFFICULTIES, value="Hard")
        marks = st.number_input("Total marks", min_value=10, max_value=200, value=80)
        if st.form_submit_button("Predict Paper"):
            paper = run_ai("Predicting your exam...", lambda: ai.predict_exam_paper(
                session.extracted_text, difficulty, marks, subject=session.subject))
            if paper:
                artifacts["prediction"] = paper
                save("exam_prediction", paper.title, paper)
    if artifacts.get("prediction"):
        views.render_paper(artifacts["prediction"], key="predicted_paper")


def tool_learning_path():
    attempt = st.session_state.get("tool_quiz_attempt")
    if attempt is None or not attempt.finished:
        st.info("Finish a Mastery Test first; the path is built from your answers.")
        if st.button("Take the test"):
            open_tool("quiz")
        return
    if "learning_path" not in artifacts:
        path = run_ai("Plotting your path...", lambda: ai.generate_learning_path(
            session.subject, session.subject, session.class_level, attempt.results))
        if path is None:
            return
        artifacts["learning_path"] = path
    views.render_learning_path(artifacts["learning_path"])


def tool_debate():
    topics = _cached_artifact("debate_topics", "Finding motions...",
                              lambda: ai.generate_debate_topics(session.extracted_text),
                              None, None)
    if not topics:
        return
    if "tool_debate_chat" not in st.session_state:
        topic = st.radio("Pick a motion", topics)
        custom = st.text_input("...or write your own")
        if st.button("Start Debate"):
            chosen = custom.strip() or topic
            st.session_state.tool_debate_topic = chosen
            st.session_state.tool_debate_chat = ai.start_debate(chosen, charge=wallet.charger(balance_owner))
            st.session_state.tool_debate_turns = []
            st.rerun()
        return

    topic = st.session_state.tool_debate_topic
    chat = st.session_state.tool_debate_chat
    turns = st.session_state.tool_debate_turns
    st.subheader(f"Motion: {topic}")
    for turn in turns:
        with st.chat_message("user" if turn.speaker == "user" else "assistant"):
            st.markdown(turn.text)

    if "debate_score" in artifacts:
        views.render_debate_scorecard(artifacts["debate_score"])
        return

    argument = st.chat_input("Your argument")
    spoken = st.audio_input("...or say it")
    if argument:
        reply = run_ai("Critico is thinking...", lambda: ai.send_debate_argument(chat, argument))
        if reply is not None:
            turns.extend([DebateTurn(speaker="user", text=argument), DebateTurn(speaker="critico", text=reply)])
            st.rerun()
    elif spoken is not None and st.button("Send spoken argument"):
        rebuttal = run_ai("Listening...", lambda: ai.rebut_spoken_argument(
            topic, media_part(spoken.type or "audio/wav", spoken.getvalue())))
        if rebuttal is not None:
            turns.extend([DebateTurn(speaker="user", text=rebuttal.transcription),
                          DebateTurn(speaker="critico", text=rebuttal.rebuttal)])
            st.rerun()
    if turns and st.button("End debate and score me"):
        card = run_ai("Judging...", lambda: ai.evaluate_debate(turns))
        if card is not None:
            artifacts["debate_score"] = card
            save("debate", topic, {"turns": turns, "scorecard": card})
            st.rerun()


def tool_game():
    level = _cached_artifact("game", "Building your level...",
                             lambda: ai.generate_game_level(session.extracted_text),
                             "other", lambda g: f"Chapter Odyssey: {g.title}")
    if level and views.render_game(level, key="tool_game"):
        st.balloons()


def tool_simulation():
    sim = _cached_artifact("simulation", "Preparing the lab...",
                           lambda: ai.generate_simulation_experiment(session.extracted_text),
                           "other", lambda s: f"Simulation: {s.title}")
    if sim:
        views.render_simulation(sim, key="tool_simulation")


def tool_visual():
    if "topics" not in artifacts:
        topics = run_ai("Splitting into topics...", lambda: ai.breakdown_text_into_topics(session.extracted_text))
        if topics is None:
            return
        artifacts["topics"] = topics
    topics = artifacts["topics"]
    titles = ["Whole chapter"] + [t.title for t in topics]
    choice = st.selectbox("What should I illustrate?", titles)
    if st.button("Create visual explanation"):
        if choice == "Whole chapter":
            scenes = run_ai("Drawing the chapter...", lambda: ai.generate_scenes(
                session.extracted_text, session.class_level, full_chapter=True))
        else:
            section = topics[titles.index(choice) - 1]
            scenes = run_ai("Drawing scenes...", lambda: ai.generate_scenes(
                f"{section.title}\n{section.content}", session.class_level))
        if scenes is not None:
            artifacts["scenes"] = scenes
            save("visual_explanation", choice, [{"narration": s.narration} for s in scenes])
    if artifacts.get("scenes"):
        views.render_scenes(artifacts["scenes"])
    elif "scenes" in artifacts:
        st.warning("No illustrations came back this time.")


def tool_literary():
    with st.form("literary_form"):
        text = st.text_area("Text to analyze", value=session.extracted_text[:5000], height=250)
        if st.form_submit_button("Analyze"):
            analysis = run_ai("Reading closely...", lambda: ai.analyze_literary_text(text))
            if analysis:
                artifacts["literary"] = analysis
    if artifacts.get("literary"):
        views.render_literary_analysis(artifacts["literary"])


def tool_career():
    with st.form("career_form"):
        interests = st.text_input("Interests")
        strengths = st.text_input("Strengths")
        ambitions = st.text_input("Ambitions")
        financial = st.selectbox("Financial situation", ["Flexible", "Moderate", "Limited"])
        other = st.text_area("Anything else?")
        if st.form_submit_button("Get Guidance"):
            info = run_ai("Mapping careers...", lambda: ai.generate_career_guidance(
                interests, strengths, ambitions, financial, other))
            if info:
                artifacts["career"] = info
    if artifacts.get("career"):
        views.render_career_info(artifacts["career"])


def tool_study_plan():
    with st.form("plan_form"):
        goal = st.text_input("Your goal", placeholder="Finish Class 10 Physics revision in 2 weeks")
        if st.form_submit_button("Plan it"):
            plan = run_ai("Planning...", lambda: ai.generate_study_plan(goal))
            if plan:
                artifacts["study_plan"] = plan
    if artifacts.get("study_plan"):
        views.render_study_plan(artifacts["study_plan"])


def tool_viva():
    with st.form("viva_form"):
        topic = st.text_input("Viva topic", value=session.subject)
        num = st.slider("Questions", 1, 10, 5)
        if st.form_submit_button("Start Viva"):
            questions = run_ai("Preparing questions...", lambda: ai.generate_viva_questions(
                topic, session.class_level, num))
            if questions:
                artifacts["viva"] = questions
                artifacts["viva_results"] = {}
    for i, question in enumerate(artifacts.get("viva", [])):
        with st.expander(f"Q{i + 1}: {question}", expanded=i not in artifacts["viva_results"]):
            result = artifacts["viva_results"].get(i)
            if result:
                st.markdown(f"**You said:** {result.transcription}")
                st.info(f"{result.marksAwarded:g}/10 · {result.feedback}")
                continue
            written = st.text_area("Type your answer", key=f"tool_viva_text{i}")
            spoken = st.audio_input("...or answer aloud", key=f"tool_viva_audio{i}")
            if st.button("Submit answer", key=f"tool_viva_submit{i}"):
                audio = media_part(spoken.type or "audio/wav", spoken.getvalue()) if spoken else None
                evaluation = run_ai("Evaluating...", lambda: ai.evaluate_viva_answer(
                    question, answer_text=written, audio=audio))
                if evaluation:
                    artifacts["viva_results"][i] = evaluation
                    st.rerun()


def tool_doubts():
    topic = st.text_input("What are you stuck on?", value=session.subject, key="tool_doubts_topic")
    if not topic:
        return
    spoken = st.audio_input("Ask out loud")
    if spoken is not None and st.button("Send voice doubt"):
        answer = run_ai("Listening...", lambda: ai.answer_spoken_doubt(
            topic, session.class_level, media_part(spoken.type or "audio/wav", spoken.getvalue())))
        if answer:
            st.markdown(f"**You asked:** {answer.transcription}")
            st.markdown(answer.response)
    chat_panel(f"doubts_{topic}", lambda: ai.create_live_doubts_session(topic, session.class_level,
                                                              charge=wallet.charger(balance_owner)),
               f"Ask me anything about {topic}.")


def tool_lab():
    with st.form("lab_form"):
        subject = st.selectbox("Subject", ["Physics", "Chemistry", "Biology"])
        topic = st.text_input("Experiment topic")
        safety = st.selectbox("Safety level", ["Home-safe", "School lab", "Supervised"])
        if st.form_submit_button("Design Experiment"):
            lab = run_ai("Designing...", lambda: ai.generate_lab_experiment(subject, topic, safety))
            if lab:
                artifacts["lab"] = lab
    if artifacts.get("lab"):
        views.render_lab_experiment(artifacts["lab"])


def tool_real_world():
    with st.form("real_world_form"):
        concept = st.text_input("Concept")
        if st.form_submit_button("Find applications"):
            apps = run_ai("Searching industries...", lambda: ai.find_real_world_applications(concept))
            if apps is not None:
                artifacts["real_world"] = apps
    if artifacts.get("real_world"):
        views.render_real_world(artifacts["real_world"])


def tool_analogies():
    with st.form("analogy_form"):
        concept = st.text_input("Concept")
        if st.form_submit_button("Explain with analogies"):
            analogies = run_ai("Thinking of analogies...", lambda: ai.generate_analogies(concept))
            if analogies is not None:
                artifacts["analogies"] = analogies
    if artifacts.get("analogies"):
        views.render_analogies(artifacts["analogies"])


def tool_historical():
    figure = st.text_input("Who do you want to talk to?", placeholder="Marie Curie", key="tool_historical_figure")
    if figure:
        chat_panel(f"historical_{figure}", lambda: ai.create_historical_chat(figure, charge=wallet.charger(balance_owner)),
                   f"You are now speaking with {figure}.")


def tool_dilemma():
    topic = st.text_input("Dilemma theme", placeholder="Gene editing", key="tool_dilemma_topic")
    if topic:
        chat_panel(f"dilemma_{topic}", lambda: ai.create_dilemma_chat(topic, charge=wallet.charger(balance_owner)),
                   f"Let's think through an ethical dilemma about {topic}.")


def tool_what_if():
    with st.form("what_if_form"):
        scenario = st.text_input("What if...", placeholder="the printing press was never invented?")
        if st.form_submit_button("Explore"):
            story = run_ai("Rewriting history...", lambda: ai.explore_what_if_history(scenario))
            if story:
                artifacts["what_if"] = story
    if artifacts.get("what_if"):
        st.markdown(artifacts["what_if"])


def tool_history():
    if uid is None:
        st.info("Sign in to keep a history of your sessions.")
        return
    views.render_activity_history(store.list_activities(uid))


TOOL_HANDLERS = {
    "chat": tool_chat,
    "quiz": tool_quiz,
    "summary": tool_summary,
    "flashcards": tool_flashcards,
    "mindmap": tool_mindmap,
    "paper": tool_paper,
    "exam_prediction": tool_exam_prediction,
    "learning_path": tool_learning_path,
    "debate": tool_debate,
    "game": tool_game,
    "simulation": tool_simulation,
    "visual": tool_visual,
    "literary": tool_literary,
    "career": tool_career,
    "study_plan": tool_study_plan,
    "viva": tool_viva,
    "doubts": tool_doubts,
    "lab": tool_lab,
    "real_world": tool_real_world,
    "analogies": tool_analogies,
    "historical": tool_historical,
    "dilemma": tool_dilemma,
    "what_if": tool_what_if,
    "history": tool_history,
}


# --- Dashboard ---

def render_dashboard():
    header, reset = st.columns([4, 1])
    with header:
        st.title(f"📖 {session.subject or 'Study'} · {session.class_level}")
        if session.session_id:
            st.caption(f"Session {session.session_id}")
    if reset.button("New Session"):
        new_session()
        st.rerun()

    tool = st.session_state.active_tool
    if tool is None:
        cols = st.columns(4)
        for i, (name, (label, _)) in enumerate(TOOLS.items()):
            if cols[i % 4].button(label, key=f"open_{name}", use_container_width=True):
                open_tool(name)
        return

    if st.button("← All tools"):
        st.session_state.active_tool = None
        st.rerun()
    st.header(TOOLS[tool][0])
    if ai is None and tool != "history":
        st.warning("💡 Please enter your Google API Key in the sidebar and click 'Submit Key' to enable AI features.")
        return
    TOOL_HANDLERS[tool]()


if st.session_state.page == "dashboard":
    render_dashboard()
else:
    render_new_session()
    if st.button("Back to dashboard" if session.has_content else "Browse tools that need no material"):
        st.session_state.pending_tool = None
        enter_dashboard()
        st.rerun()
