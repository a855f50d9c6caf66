"""Downloadable DOCX and Markdown copies of quizzes and question papers."""
from io import BytesIO

from docx import Document

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
MARKDOWN_MIME = "text/markdown"


def _letter(i):
    return chr(65 + i)


def quiz_to_markdown(questions, title="StuBro Quiz"):
    lines = [f"# {title}", ""]
    for i, q in enumerate(questions, start=1):
        lines.append(f"**{i}. {q.question}**")
        lines.append("")
        for j, option in enumerate(q.options or []):
            lines.append(f"- {_letter(j)}. {option}")
        if q.options:
            lines.append("")
        if q.correctAnswer:
            lines.append(f"*Answer:* {q.correctAnswer}")
        lines.append(f"*Explanation:* {q.explanation}")
        lines.append("")
    return "\n".join(lines)


def paper_to_markdown(paper, include_answers=True):
    lines = [f"# {paper.title}", "", f"**Total marks:** {paper.totalMarks:g}", "", paper.instructions, ""]
    for i, q in enumerate(paper.questions, start=1):
        lines.append(f"**Q{i}.** {q.question} *({q.marks:g} marks)*")
        lines.append("")
        for j, option in enumerate(q.options or []):
            lines.append(f"- {_letter(j)}. {option}")
        if q.options:
            lines.append("")
    if include_answers:
        lines.extend(["---", "", "## Model answers", ""])
        for i, q in enumerate(paper.questions, start=1):
            lines.append(f"**Q{i}.** {q.answer}")
            lines.append("")
    return "\n".join(lines)


def create_markdown(content):
    """Markdown text as download bytes."""
    return content.encode("utf-8")


def _save(document):
    bio = BytesIO()
    document.save(bio)
    bio.seek(0)
    return bio


def quiz_to_docx(questions, title="StuBro Quiz"):
    """Creates a DOCX file from a list of quiz questions."""
    document = Document()
    document.add_heading(title, 0)
    for i, q in enumerate(questions, start=1):
        document.add_paragraph(f"{i}. {q.question}")
        for j, option in enumerate(q.options or []):
            document.add_paragraph(f"{_letter(j)}. {option}", style="List Bullet")
        if q.correctAnswer:
            document.add_paragraph(f"Answer: {q.correctAnswer}")
        document.add_paragraph(f"Explanation: {q.explanation}")
    return _save(document)


def paper_to_docx(paper, include_answers=True):
    """Creates a DOCX question paper, with the model answers on a new page."""
    document = Document()
    document.add_heading(paper.title, 0)
    document.add_paragraph(f"Total marks: {paper.totalMarks:g}")
    document.add_paragraph(paper.instructions)
    for i, q in enumerate(paper.questions, start=1):
        document.add_paragraph(f"Q{i}. {q.question} ({q.marks:g} marks)")
        for j, option in enumerate(q.options or []):
            document.add_paragraph(f"{_letter(j)}. {option}", style="List Bullet")
    if include_answers:
        document.add_page_break()
        document.add_heading("Model answers", 1)
        for i, q in enumerate(paper.questions, start=1):
            document.add_paragraph(f"Q{i}. {q.answer}")
    return _save(document)
