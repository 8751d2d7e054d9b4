import time

from auth import generate_session_token, validate_session_token


def test_token_is_bound_to_username():
    token = generate_session_token("ana", "123456")
    assert validate_session_token(token, "ana", "123456")
    assert not validate_session_token(token, "bob", "123456")


def test_token_is_bound_to_passcode():
    token = generate_session_token("ana", "123456")
    assert not validate_session_token(token, "ana", "654321")


def test_tampered_token_is_rejected():
    token = generate_session_token("ana", "123456")
    assert not validate_session_token(token[:-2] + "xx", "ana", "123456")
    assert not validate_session_token("", "ana", "123456")


def test_token_expires(monkeypatch):
    token = generate_session_token("ana", "123456")
    issued = time.time()
    monkeypatch.setattr(time, "time", lambda: issued + 2 * 3600 + 5)
    assert not validate_session_token(token, "ana", "123456", max_age_hours=2)
    assert validate_session_token(token, "ana", "123456", max_age_hours=3)


def test_zero_max_age_is_not_replaced_by_default(monkeypatch):
    issued = 1_700_000_000.0
    monkeypatch.setattr(time, "time", lambda: issued)
    token = generate_session_token("ana", "123456")
    monkeypatch.setattr(time, "time", lambda: issued + 1)
    assert not validate_session_token(token, "ana", "123456", max_age_hours=0)
    assert validate_session_token(token, "ana", "123456")
