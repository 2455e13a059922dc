from electro_stock import security


def test_password_round_trip() -> None:
    stored = security.hash_password("correct horse")

    assert security.verify_password("correct horse", stored)
    assert not security.verify_password("wrong horse", stored)


def test_hashes_are_salted() -> None:
    assert security.hash_password("same") != security.hash_password("same")


def test_malformed_hash_does_not_verify() -> None:
    assert not security.verify_password("anything", "not-a-hash")
    assert not security.verify_password("anything", "abc$def$ghi")


def test_session_token_carries_user_id() -> None:
    token = security.sign_session("3f7c1a9e-0000-4000-8000-000000000001", "secret")

    assert security.verify_session(token, "secret") == "3f7c1a9e-0000-4000-8000-000000000001"


def test_tampered_or_foreign_tokens_are_rejected() -> None:
    token = security.sign_session("user-1", "secret")
    user_id, issued, signature = token.rsplit(".", 2)

    assert security.verify_session(token, "other-secret") is None
    assert security.verify_session(f"user-2.{issued}.{signature}", "secret") is None
    assert security.verify_session("garbage", "secret") is None


def test_expired_session_is_rejected() -> None:
    token = security.sign_session("user-1", "secret", issued_at=1_000)

    assert security.verify_session(token, "secret", max_age=60) is None
    assert security.verify_session(token, "secret") == "user-1"
