"""Quiz attempt state and the scoring rule."""
from typing import List, Optional

from .records import QuizQuestion, WrittenFeedback

MCQ_POINTS = 1
WRITTEN_POINTS = 5


class QuizAttempt:
    """One pass through a quiz.

    Multiple-choice answers score 1 when correct. Written answers score the
    examiner's ``marksAwarded`` out of 5.
    """

    def __init__(self, questions: List[QuizQuestion]):
        self.questions = [q.model_copy(deep=True) for q in questions]
        self.index = 0
        self.results: List[QuizQuestion] = []
        self.finished = not self.questions

    @property
    def current(self) -> Optional[QuizQuestion]:
        if self.finished:
            return None
        return self.questions[self.index]

    @property
    def answered(self) -> bool:
        return len(self.results) > self.index

    def answer_mcq(self, option: str) -> QuizQuestion:
        question = self._require_unanswered("mcq")
        result = question.model_copy(update={
            "userAnswer": option,
            "isCorrect": option == question.correctAnswer,
        })
        self.results.append(result)
        return result

    def answer_written(self, answer: str, feedback: WrittenFeedback) -> QuizQuestion:
        question = self._require_unanswered("written")
        result = question.model_copy(update={"userAnswer": answer, "feedback": feedback})
        self.results.append(result)
        return result

    def _require_unanswered(self, question_type):
        question = self.current
        if question is None:
            raise ValueError("Quiz is already finished.")
        if self.answered:
            raise ValueError("Current question has already been answered.")
        if question.type != question_type:
            raise ValueError(f"Current question is {question.type}, not {question_type}.")
        return question

    def advance(self):
        if not self.answered:
            raise ValueError("Answer the current question first.")
        if self.index + 1 < len(self.questions):
            self.index += 1
        else:
            self.finished = True

    def score(self) -> float:
        return score_results(self.results)

    def total(self) -> int:
        return total_points(self.questions)

    def score_label(self) -> str:
        return f"{self.score():g}/{self.total()}"


def score_results(results: List[QuizQuestion]) -> float:
    score = 0.0
    for result in results:
        if result.isCorrect:
            score += MCQ_POINTS
        elif result.feedback is not None:
            score += result.feedback.marksAwarded or 0
    return score


def total_points(questions: List[QuizQuestion]) -> int:
    return sum(MCQ_POINTS if q.type == "mcq" else WRITTEN_POINTS for q in questions)
