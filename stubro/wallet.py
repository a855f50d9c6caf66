"""Per-user allowance of AI tokens spent by chat messages."""
import logging

from . import config
from .errors import TokensExhausted

logger = logging.getLogger(__name__)

CHAT_MESSAGE_COST = 1
# Balances above this are treated as unlimited
UNLIMITED_THRESHOLD = 9999


def wallet_key(uid):
    return f"userTokens_{uid}"


class TokenWallet:
    """Balances live in ``storage`` (any mapping, e.g. ``st.session_state``)."""

    def __init__(self, storage, dev_mode=None, starting_tokens=None):
        self.storage = storage
        self.dev_mode = config.DEV_MODE if dev_mode is None else dev_mode
        self.starting_tokens = config.STARTING_TOKENS if starting_tokens is None else starting_tokens

    def balance(self, uid):
        key = wallet_key(uid)
        if key not in self.storage:
            self.storage[key] = self.starting_tokens
        return self.storage[key]

    def charge(self, uid, cost=CHAT_MESSAGE_COST):
        if self.dev_mode:
            return
        balance = self.balance(uid)
        if balance > UNLIMITED_THRESHOLD:
            return
        if balance < cost:
            logger.info("User %s is out of tokens", uid)
            raise TokensExhausted("Tokens Exhausted.")
        self.storage[wallet_key(uid)] = balance - cost

    def charger(self, uid, cost=CHAT_MESSAGE_COST):
        """Zero-argument callable for ``TutorChat(charge=...)``."""
        return lambda: self.charge(uid, cost)
