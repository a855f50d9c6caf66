import pytest

from stubro.errors import TokensExhausted
from stubro.wallet import TokenWallet, wallet_key


def test_new_user_gets_starting_balance():
    storage = {}
    wallet = TokenWallet(storage, dev_mode=False, starting_tokens=3)
    assert wallet.balance("u1") == 3
    assert storage == {"userTokens_u1": 3}


def test_charge_deducts_until_exhausted():
    wallet = TokenWallet({}, dev_mode=False, starting_tokens=2)
    wallet.charge("u1")
    wallet.charge("u1")
    assert wallet.balance("u1") == 0
    with pytest.raises(TokensExhausted, match="Tokens Exhausted."):
        wallet.charge("u1")
    assert wallet.balance("u1") == 0


def test_dev_mode_is_free():
    storage = {wallet_key("u1"): 0}
    TokenWallet(storage, dev_mode=True).charge("u1")
    assert storage[wallet_key("u1")] == 0


def test_unlimited_balance_is_not_charged():
    storage = {wallet_key("vip"): 10000}
    TokenWallet(storage, dev_mode=False).charge("vip", cost=5)
    assert storage[wallet_key("vip")] == 10000


def test_charger_binds_user():
    wallet = TokenWallet({}, dev_mode=False, starting_tokens=5)
    charge = wallet.charger("u2", cost=2)
    charge()
    assert wallet.balance("u2") == 3
