import random
import re

import pytest

from stubro.errors import InvalidTransition
from stubro.session import ContentSession, generate_session_id


@pytest.fixture
def session(clock, executor):
    return ContentSession(clock=clock, executor=executor)


def finish(executor, result=None, error=None):
    _, future = executor.submitted[-1]
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


def test_session_id_format():
    session_id = generate_session_id(now=1700000000.5, rng=random.Random(4))
    assert re.fullmatch(r"session_1700000000500_[0-9a-z]{9}", session_id)


def test_defaults(session):
    assert session.class_level == "Class 10"
    assert session.session_id is None
    assert session.search_status == "idle"
    assert not session.has_session_started


def test_start_with_content(session):
    session.start_session_with_content("Some chapter text", subject="Physics", class_level="Class 9")
    assert session.has_session_started
    assert session.has_content
    assert session.subject == "Physics"
    assert session.class_level == "Class 9"
    assert session.session_id.startswith("session_")


def test_search_messages_follow_elapsed_time(session, clock, executor):
    session.start_background_search(lambda: "text")
    assert session.search_message == "Initiating search..."
    assert session.has_session_started

    clock.advance(1)
    session.poll()
    assert session.search_message == "Analyzing search parameters..."
    clock.advance(4)
    session.poll()
    assert session.search_message == "Searching across web sources... (Est. 90s)"
    clock.advance(40)
    session.poll()
    assert session.search_message == "Compiling and structuring content..."
    assert session.search_status == "searching"


def test_search_success_returns_pending_tool_once(session, clock, executor):
    session.start_background_search(lambda: "text", post_search_action="quiz")
    finish(executor, "Chapter on metals")

    assert session.poll() == "quiz"
    assert session.search_status == "success"
    assert session.search_message == "Chapter content loaded successfully!"
    assert session.extracted_text == "Chapter on metals"
    assert session.post_search_action is None
    assert session.poll() is None

    clock.advance(4)
    session.poll()
    assert session.search_status == "success"
    clock.advance(1)
    session.poll()
    assert session.search_status == "idle"
    assert session.search_message == ""
    assert session.status_history == ["idle", "searching", "success", "idle"]


def test_search_failure_holds_error(session, clock, executor):
    session.start_background_search(lambda: "text", post_search_action="summary")
    finish(executor, error=RuntimeError("Deep Search timeout."))

    assert session.poll() is None
    assert session.search_status == "error"
    assert session.search_message == "Deep Search timeout."
    assert session.post_search_action is None

    clock.advance(7)
    session.poll()
    assert session.search_status == "error"
    clock.advance(1)
    session.poll()
    assert session.status_history == ["idle", "searching", "error", "idle"]


def test_search_failure_without_message(session, executor):
    session.start_background_search(lambda: "text")
    finish(executor, error=RuntimeError())
    session.poll()
    assert session.search_message == "An unknown error occurred during search."


def test_cannot_start_second_search(session, executor):
    session.start_background_search(lambda: "text")
    with pytest.raises(InvalidTransition):
        session.start_background_search(lambda: "again")
    assert len(executor.submitted) == 1


def test_cannot_search_while_result_is_shown(session, executor):
    session.start_background_search(lambda: "text")
    finish(executor, "done")
    session.poll()
    with pytest.raises(InvalidTransition):
        session.start_background_search(lambda: "again")


def test_search_runs_submitted_function(session, executor):
    session.start_background_search(lambda: "from the web")
    fn, _ = executor.submitted[0]
    assert fn() == "from the web"


def test_reset(session, executor):
    session.start_background_search(lambda: "text")
    session.subject = "Math"
    session.reset()
    assert session.session_id is None
    assert session.subject == ""
    assert session.search_status == "idle"
    assert session.status_history == ["idle"]


def test_retry_waits_for_error_hold(session, clock, executor):
    session.start_background_search(lambda: "text")
    finish(executor, error=RuntimeError("Deep Search failed."))
    session.poll()
    assert not session.can_search

    clock.advance(2)
    session.poll()
    assert not session.can_search
    with pytest.raises(InvalidTransition):
        session.start_background_search(lambda: "retry")

    clock.advance(6)
    session.poll()
    assert session.can_search
    session.start_background_search(lambda: "retry")
    assert session.is_searching
