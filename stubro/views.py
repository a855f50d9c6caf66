"""
Streamlit components for each artifact type.

Renderers only draw; anything stateful (the quiz runner, the game, the
simulation stepper) keeps its state in ``st.session_state`` under the key it
is given.
"""
import logging

import streamlit as st

from .ai_service import decode_scene_image
from .errors import StuBroError
from .exporters import (
    DOCX_MIME, MARKDOWN_MIME, create_markdown, paper_to_docx, paper_to_markdown,
    quiz_to_docx, quiz_to_markdown,
)

logger = logging.getLogger(__name__)

TILE_ICONS = {"floor": "⬜", "wall": "🧱", "interaction": "❓", "exit": "🚪"}
PLAYER_ICON = "🧑‍🎓"
MOVES = {"up": (0, -1), "down": (0, 1), "left": (-1, 0), "right": (1, 0)}


# --- Quiz ---

def render_quiz(attempt, evaluate_written, key="quiz"):
    """Step through a ``QuizAttempt``. Returns True on the rerun the quiz finishes."""
    if attempt.finished:
        render_quiz_results(attempt)
        return False

    question = attempt.current
    st.progress((attempt.index + 1) / len(attempt.questions),
                text=f"Question {attempt.index + 1} of {len(attempt.questions)}")
    st.markdown(f"### {question.question}")

    if not attempt.answered:
        with st.form(f"{key}_q{attempt.index}"):
            if question.type == "mcq":
                choice = st.radio("Choose one", question.options or [], index=None)
            else:
                choice = st.text_area("Your answer", height=150)
            submitted = st.form_submit_button("Submit")
        if submitted:
            if not choice:
                st.warning("Pick or write an answer first.")
            elif question.type == "mcq":
                attempt.answer_mcq(choice)
                st.rerun()
            else:
                with st.spinner("Checking your answer..."):
                    try:
                        feedback = evaluate_written(question.question, choice)
                    except StuBroError as e:
                        logger.error("Written answer check failed: %s", e)
                        st.error("Analysis failed. Retrying...")
                        return False
                attempt.answer_written(choice, feedback)
                st.rerun()
        return False

    result = attempt.results[attempt.index]
    _render_question_result(result)
    last = attempt.index + 1 == len(attempt.questions)
    if st.button("Finish" if last else "Next", key=f"{key}_next{attempt.index}"):
        attempt.advance()
        if attempt.finished:
            return True
        st.rerun()
    return False


def _render_question_result(result):
    if result.type == "mcq":
        if result.isCorrect:
            st.success(f"Correct! {result.correctAnswer}")
        else:
            st.error(f"Not quite. Correct answer: {result.correctAnswer}")
    elif result.feedback is not None:
        fb = result.feedback
        st.info(f"Marks: {fb.marksAwarded:g}/{fb.totalMarks:g}")
        st.markdown(f"**What is correct:** {fb.whatIsCorrect}")
        st.markdown(f"**What is missing:** {fb.whatIsMissing}")
        st.markdown(f"**What is incorrect:** {fb.whatIsIncorrect}")
    st.markdown(f"**Explanation:** {result.explanation}")


def render_quiz_results(attempt):
    st.subheader(f"Score: {attempt.score_label()}")
    for i, result in enumerate(attempt.results, start=1):
        with st.expander(f"**Q{i}:** {result.question}"):
            if result.userAnswer:
                st.markdown(f"**Your answer:** {result.userAnswer}")
            _render_question_result(result)


def render_quiz_downloads(questions, name="quiz"):
    col1, col2 = st.columns(2)
    with col1:
        st.download_button("Download as DOCX", data=quiz_to_docx(questions),
                           file_name=f"{name}.docx", mime=DOCX_MIME, key=f"{name}_docx")
    with col2:
        st.download_button("Download as Markdown", data=create_markdown(quiz_to_markdown(questions)),
                           file_name=f"{name}.md", mime=MARKDOWN_MIME, key=f"{name}_md")


# --- Flashcards, summary, mind map ---

def render_flashcards(cards):
    for i, card in enumerate(cards):
        with st.expander(f"**Card {i+1}:** {card.term}", expanded=False):
            st.markdown(card.definition)
            if card.tip:
                st.caption(f"💡 {card.tip}")


def render_summary(summary):
    st.header(summary.title)
    st.subheader("Core concepts")
    for concept in summary.coreConcepts:
        st.markdown(f"- **{concept.term}:** {concept.definition}")
    st.subheader("Visual analogy")
    st.info(f"**{summary.visualAnalogy.analogy}**\n\n{summary.visualAnalogy.explanation}")
    st.subheader("Exam spotlight")
    for point in summary.examSpotlight:
        st.markdown(f"- {point}")
    st.success(f"**StuBro tip:** {summary.stuBroTip}")


def _dot_label(text):
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", " ")


def mind_map_to_dot(root):
    """Graphviz DOT source for a mind map, nodes numbered depth-first."""
    lines = ["digraph MindMap {", "  rankdir=LR;", '  node [shape=box, style="rounded,filled", fillcolor="#eef3ff"];']
    counter = [0]

    def visit(node, parent_id):
        node_id = f"n{counter[0]}"
        counter[0] += 1
        lines.append(f'  {node_id} [label="{_dot_label(node.term)}"];')
        if parent_id is not None:
            lines.append(f"  {parent_id} -> {node_id};")
        for child in node.children or []:
            visit(child, node_id)

    visit(root, None)
    lines.append("}")
    return "\n".join(lines)


def mind_map_outline(node, depth=0):
    line = f"{'  ' * depth}- **{node.term}**"
    if node.explanation:
        line += f": {node.explanation}"
    lines = [line]
    for child in node.children or []:
        lines.append(mind_map_outline(child, depth + 1))
    return "\n".join(lines)


def render_mind_map(root):
    st.graphviz_chart(mind_map_to_dot(root), use_container_width=True)
    with st.expander("Outline"):
        st.markdown(mind_map_outline(root))


# --- Papers ---

def render_paper(paper, key="paper"):
    st.header(paper.title)
    st.caption(f"Total marks: {paper.totalMarks:g}")
    st.markdown(paper.instructions)
    for i, q in enumerate(paper.questions, start=1):
        st.markdown(f"**Q{i}.** {q.question} *({q.marks:g} marks)*")
        for j, option in enumerate(q.options or []):
            st.markdown(f"&nbsp;&nbsp;{chr(65 + j)}. {option}")
    with st.expander("Model answers"):
        for i, q in enumerate(paper.questions, start=1):
            st.markdown(f"**Q{i}.** {q.answer}")
    col1, col2 = st.columns(2)
    with col1:
        st.download_button("Download as DOCX", data=paper_to_docx(paper), file_name=f"{key}.docx",
                           mime=DOCX_MIME, key=f"{key}_docx")
    with col2:
        st.download_button("Download as Markdown", data=create_markdown(paper_to_markdown(paper)),
                           file_name=f"{key}.md", mime=MARKDOWN_MIME, key=f"{key}_md")


def render_graded_paper(graded, paper=None):
    total = f"/{paper.totalMarks:g}" if paper is not None else ""
    st.metric("Total marks awarded", f"{graded.totalMarksAwarded:g}{total}")
    st.markdown(graded.overallFeedback)
    for gq in graded.gradedQuestions:
        with st.expander(f"Question {gq.questionNumber}: {gq.marksAwarded:g} marks"):
            if gq.studentAnswerTranscription:
                st.markdown(f"**Your answer (transcribed):** {gq.studentAnswerTranscription}")
            st.markdown(f"**Correct:** {gq.feedback.whatWasCorrect}")
            st.markdown(f"**Incorrect:** {gq.feedback.whatWasIncorrect}")
            st.markdown(f"**Improve:** {gq.feedback.suggestionForImprovement}")


# --- Guidance ---

def render_career_info(info):
    st.markdown(info.introduction)
    for path in info.careerPaths:
        with st.expander(f"**{path.careerName}**"):
            st.markdown(path.description)
            st.markdown(f"**Subjects to focus on:** {', '.join(path.subjectsToFocus)}")
            st.markdown("**Roadmap**")
            for step in path.roadmap:
                exams = f" (exams: {', '.join(step.examsToPrepare)})" if step.examsToPrepare else ""
                st.markdown(f"- **{step.stage}:** {step.focus}{exams}")
            if path.topColleges:
                st.markdown(f"**Top colleges:** {', '.join(path.topColleges)}")
            st.markdown(f"**Growth:** {path.potentialGrowth}")


def render_study_plan(plan):
    st.header(plan.title)
    for day in plan.plan:
        slot = f" · {day.timeSlot}" if day.timeSlot else ""
        st.markdown(f"**Day {day.day}{slot}: {day.topic}**  \n{day.goal}")


def render_learning_path(path):
    st.header(path.mainTopic)
    if path.weakAreas:
        st.warning(f"Weak areas: {', '.join(path.weakAreas)}")
    for step in path.learningSteps:
        with st.expander(f"Step {step.step}: {step.topic}"):
            st.markdown(step.goal)
            for resource in step.resources:
                st.markdown(f"- {resource}")


# --- Labs, literature, concepts ---

def render_lab_experiment(lab):
    st.header(lab.experimentTitle)
    st.markdown(f"**Objective:** {lab.objective}")
    st.markdown(f"**Hypothesis:** {lab.hypothesis}")
    st.subheader("Materials")
    st.markdown("\n".join(f"- {m}" for m in lab.materials))
    st.subheader("Procedure")
    st.markdown("\n".join(f"{i}. {p}" for i, p in enumerate(lab.procedure, start=1)))
    st.subheader("Safety")
    for precaution in lab.safetyPrecautions:
        st.warning(precaution)


def render_simulation(sim, key="simulation"):
    step_key = f"{key}_step"
    if step_key not in st.session_state:
        st.session_state[step_key] = 0
    st.header(sim.title)
    st.caption(f"{sim.visualTheme.title()} lab · {sim.objective}")
    colors = [sim.liquidColor] + ([sim.secondaryColor] if sim.secondaryColor else [])
    swatches = "".join(
        f'<span style="display:inline-block;width:2em;height:2em;border-radius:50%;'
        f'background:{c};margin-right:.5em"></span>' for c in colors
    )
    st.markdown(swatches, unsafe_allow_html=True)

    done = st.session_state[step_key]
    for i, step in enumerate(sim.steps[:done]):
        st.markdown(f"**Step {i + 1}:** {step.instruction}")
        st.success(step.resultDescription)
    if done < len(sim.steps):
        step = sim.steps[done]
        st.markdown(f"**Step {done + 1}:** {step.instruction}")
        if st.button(step.actionLabel, key=f"{key}_action{done}"):
            st.session_state[step_key] = done + 1
            st.rerun()
    else:
        st.balloons()
        if st.button("Restart experiment", key=f"{key}_restart"):
            st.session_state[step_key] = 0
            st.rerun()


def render_literary_analysis(analysis):
    byline = f" by {analysis.author}" if analysis.author else ""
    st.header(f"{analysis.title}{byline}")
    st.markdown(analysis.overallSummary)
    st.subheader("Themes")
    st.markdown(", ".join(analysis.themes))
    st.subheader("Literary devices")
    for device in analysis.literaryDevices:
        st.markdown(f"- **{device.device}:** {device.example}")
    st.subheader("Characters")
    for note in analysis.characterAnalysis:
        st.markdown(f"- **{note.character}:** {note.analysis}")


def render_analogies(analogies):
    for analogy in analogies:
        st.info(f"**{analogy.analogy}**\n\n{analogy.explanation}")


def render_real_world(applications):
    for app in applications:
        st.markdown(f"**{app.industry}**  \n{app.description}")


# --- Chapter Odyssey ---

def next_position(level, position, direction):
    """Where the player ends up after one move; walls and the map edge block it."""
    dx, dy = MOVES[direction]
    x, y = position[0] + dx, position[1] + dy
    if y < 0 or y >= len(level.grid) or x < 0 or x >= len(level.grid[y]):
        return position
    tile = level.grid[y][x].type
    if tile == "wall":
        return position
    return (x, y)


def render_game_map(level, position, solved=()):
    rows = []
    for y, row in enumerate(level.grid):
        cells = []
        for x, tile in enumerate(row):
            interaction = level.interaction_at(x, y) if tile.type == "interaction" else None
            if (x, y) == tuple(position):
                cells.append(PLAYER_ICON)
            elif interaction is not None and interaction.id in solved:
                cells.append("✅")
            else:
                cells.append(TILE_ICONS.get(tile.type, "⬜"))
        rows.append("".join(cells))
    st.markdown("<div style='line-height:1.1;font-size:1.2em'>" + "<br>".join(rows) + "</div>",
                unsafe_allow_html=True)


def render_game(level, key="game"):
    """Play a generated level. Returns True once the player reaches the exit."""
    pos_key, solved_key = f"{key}_pos", f"{key}_solved"
    if pos_key not in st.session_state:
        st.session_state[pos_key] = (level.player_start.x, level.player_start.y)
        st.session_state[solved_key] = set()
    position = st.session_state[pos_key]
    solved = st.session_state[solved_key]

    st.header(level.title)
    st.caption(f"{level.theme} · Goal: {level.goal}")
    render_game_map(level, position, solved)

    cols = st.columns(4)
    for col, direction in zip(cols, ["left", "up", "down", "right"]):
        if col.button(direction.title(), key=f"{key}_{direction}"):
            st.session_state[pos_key] = next_position(level, position, direction)
            st.rerun()

    x, y = position
    tile = level.grid[y][x].type
    interaction = level.interaction_at(x, y)
    if interaction is not None and interaction.id not in solved:
        with st.form(f"{key}_interaction{interaction.id}"):
            st.markdown(interaction.prompt)
            answer = st.text_input("Answer")
            if st.form_submit_button("Answer"):
                if interaction.check(answer):
                    solved.add(interaction.id)
                    st.success(interaction.success_message)
                else:
                    st.error(interaction.failure_message)
    if tile == "exit":
        if len(solved) == len(level.interactions):
            st.success("Level complete!")
            return True
        st.info(f"Solve every challenge first ({len(solved)}/{len(level.interactions)}).")
    return False


# --- Debate, scenes, history ---

def render_debate_scorecard(card):
    st.metric("Overall", f"{card.overallScore:g}/10")
    col1, col2, col3 = st.columns(3)
    col1.metric("Argument strength", f"{card.argumentStrength:g}")
    col2.metric("Rebuttals", f"{card.rebuttalEffectiveness:g}")
    col3.metric("Clarity", f"{card.clarity:g}")
    st.markdown(f"**Strongest argument:** {card.strongestArgument}")
    st.markdown(f"**Work on:** {card.improvementSuggestion}")
    st.markdown(card.concludingRemarks)


def render_scenes(scenes):
    for i, scene in enumerate(scenes, start=1):
        image = decode_scene_image(scene)
        if image:
            st.image(image, caption=f"Scene {i}")
        st.markdown(scene.narration)


def render_chat_history(messages):
    for message in messages:
        role = "assistant" if message.role == "model" else message.role
        with st.chat_message(role):
            st.markdown(message.text)


def render_activity_history(activities):
    if not activities:
        st.info("No activity yet. Start a session to build your history.")
        return
    for activity in activities:
        when = activity.timestamp.strftime("%d %b %Y, %H:%M") if activity.timestamp else ""
        with st.expander(f"{activity.type.upper()} · {activity.topic} · {when}"):
            st.caption(activity.subject)
            if activity.analysis is not None:
                if activity.analysis.score:
                    st.markdown(f"**Score:** {activity.analysis.score}")
                if activity.analysis.strengthsIdentified:
                    st.markdown(f"**Strengths:** {', '.join(activity.analysis.strengthsIdentified)}")
                if activity.analysis.weaknessesIdentified:
                    st.markdown(f"**Weaknesses:** {', '.join(activity.analysis.weaknessesIdentified)}")
                if activity.analysis.aiFeedback:
                    st.markdown(activity.analysis.aiFeedback)
