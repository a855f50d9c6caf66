"""
Per-browser study session: the current source text plus the background
chapter-search state machine.
"""
import logging
import random
import string
import time
from concurrent.futures import ThreadPoolExecutor

from .errors import InvalidTransition
from .records import DEFAULT_CLASS_LEVEL

logger = logging.getLogger(__name__)

IDLE, SEARCHING, SUCCESS, ERROR = "idle", "searching", "success", "error"

ALLOWED_TRANSITIONS = {
    IDLE: {SEARCHING},
    SEARCHING: {SUCCESS, ERROR},
    SUCCESS: {IDLE},
    ERROR: {IDLE},
}

# (seconds since the search started, message shown from then on)
SEARCH_STAGES = [
    (1, "Analyzing search parameters..."),
    (5, "Searching across web sources... (Est. 90s)"),
    (45, "Compiling and structuring content..."),
]
SUCCESS_HOLD_SECONDS = 5
ERROR_HOLD_SECONDS = 8

SEARCH_STARTED_MESSAGE = "Initiating search..."
SEARCH_DONE_MESSAGE = "Chapter content loaded successfully!"
SEARCH_UNKNOWN_ERROR = "An unknown error occurred during search."

_BASE36 = string.digits + string.ascii_lowercase


def generate_session_id(now=None, rng=None):
    """``session_<epoch ms>_<9 base36 chars>``"""
    millis = int((time.time() if now is None else now) * 1000)
    suffix = "".join((rng or random).choice(_BASE36) for _ in range(9))
    return f"session_{millis}_{suffix}"


class ContentSession:
    def __init__(self, clock=time.monotonic, executor=None):
        self._clock = clock
        self._executor = executor
        self.reset()

    def reset(self):
        self.extracted_text = ""
        self.subject = ""
        self.class_level = DEFAULT_CLASS_LEVEL
        self.session_id = None
        self.has_session_started = False
        self.search_status = IDLE
        self.search_message = ""
        self.post_search_action = None
        self.status_history = [IDLE]
        self._future = None
        self._started_at = None
        self._settled_at = None

    @property
    def has_content(self):
        return bool(self.extracted_text and self.extracted_text.strip())

    @property
    def is_searching(self):
        return self.search_status == SEARCHING

    @property
    def can_search(self):
        """A new search may start only once the last result has cleared."""
        return self.search_status == IDLE

    def _transition(self, status):
        if status not in ALLOWED_TRANSITIONS[self.search_status]:
            raise InvalidTransition(f"Cannot move search from {self.search_status} to {status}.")
        logger.debug("Search status %s -> %s", self.search_status, status)
        self.search_status = status
        self.status_history.append(status)

    def start_session_with_content(self, text, subject=None, class_level=None):
        self.session_id = generate_session_id()
        self.extracted_text = text
        if subject is not None:
            self.subject = subject
        if class_level is not None:
            self.class_level = class_level
        self.has_session_started = True
        logger.info("Session %s started with %d characters", self.session_id, len(text))

    def start_background_search(self, search_fn, post_search_action=None):
        """Run ``search_fn()`` off the UI thread; ``poll()`` collects the result."""
        self._transition(SEARCHING)
        self.session_id = generate_session_id()
        self.has_session_started = True
        self.extracted_text = ""
        self.post_search_action = post_search_action
        self.search_message = SEARCH_STARTED_MESSAGE
        self._started_at = self._clock()
        self._settled_at = None
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="chapter-search")
        self._future = self._executor.submit(search_fn)
        logger.info("Background search started for session %s", self.session_id)

    def poll(self):
        """Advance the search machine.

        Returns the pending post-search action exactly once, when a search has
        just succeeded; otherwise ``None``.
        """
        now = self._clock()
        if self.search_status == SEARCHING:
            if self._future is not None and self._future.done():
                return self._settle(now)
            elapsed = now - self._started_at
            for threshold, message in SEARCH_STAGES:
                if elapsed >= threshold:
                    self.search_message = message
        elif self.search_status in (SUCCESS, ERROR):
            hold = SUCCESS_HOLD_SECONDS if self.search_status == SUCCESS else ERROR_HOLD_SECONDS
            if now - self._settled_at >= hold:
                self._transition(IDLE)
                self.search_message = ""
        return None

    def _settle(self, now):
        future, self._future = self._future, None
        self._settled_at = now
        error = future.exception()
        if error is not None:
            logger.error("Background search failed: %s", error)
            self._transition(ERROR)
            self.search_message = str(error) or SEARCH_UNKNOWN_ERROR
            self.post_search_action = None
            return None

        self.extracted_text = future.result()
        self._transition(SUCCESS)
        self.search_message = SEARCH_DONE_MESSAGE
        action, self.post_search_action = self.post_search_action, None
        return action
