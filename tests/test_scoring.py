import pytest

from stubro.records import QuizQuestion, WrittenFeedback
from stubro.scoring import QuizAttempt, score_results, total_points


def mcq(answer="A"):
    return QuizQuestion(question="Pick", type="mcq", options=["A", "B", "C", "D"],
                        correctAnswer=answer, explanation="Because.")


def written():
    return QuizQuestion(question="Explain", type="written", explanation="Model answer.")


def feedback(marks):
    return WrittenFeedback(whatIsCorrect="Some", whatIsMissing="Detail", whatIsIncorrect="None",
                           marksAwarded=marks, totalMarks=5)


def test_mixed_quiz_score():
    attempt = QuizAttempt([mcq(), mcq(), written()])
    assert attempt.answer_mcq("A").isCorrect
    attempt.advance()
    assert not attempt.answer_mcq("C").isCorrect
    attempt.advance()
    attempt.answer_written("It moves", feedback(3.5))
    attempt.advance()

    assert attempt.finished
    assert attempt.score() == 4.5
    assert attempt.total() == 7
    assert attempt.score_label() == "4.5/7"


def test_questions_are_not_mutated():
    questions = [mcq()]
    attempt = QuizAttempt(questions)
    attempt.answer_mcq("B")
    assert questions[0].userAnswer is None
    assert attempt.results[0].userAnswer == "B"


def test_answer_twice_is_rejected():
    attempt = QuizAttempt([mcq(), mcq()])
    attempt.answer_mcq("A")
    with pytest.raises(ValueError):
        attempt.answer_mcq("B")


def test_advance_requires_answer():
    attempt = QuizAttempt([mcq()])
    with pytest.raises(ValueError):
        attempt.advance()


def test_wrong_answer_kind_is_rejected():
    attempt = QuizAttempt([written()])
    with pytest.raises(ValueError):
        attempt.answer_mcq("A")


def test_empty_quiz_is_finished():
    attempt = QuizAttempt([])
    assert attempt.finished
    assert attempt.current is None
    assert attempt.score_label() == "0/0"


def test_written_without_feedback_scores_zero():
    result = written().model_copy(update={"userAnswer": "..."})
    assert score_results([result]) == 0
    assert total_points([mcq(), written(), written()]) == 11
