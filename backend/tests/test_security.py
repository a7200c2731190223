from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from app.models.user import new_id


class TestPasswords:
    def test_round_trip(self):
        hashed = hash_password("pw-123")

        assert verify_password("pw-123", hashed)
        assert not verify_password("pw-124", hashed)

    def test_empty_or_malformed_hash_never_verifies(self):
        assert not verify_password("pw-123", "")
        assert not verify_password("pw-123", "not-a-bcrypt-hash")


class TestTokens:
    def test_subject_is_the_string_user_id(self):
        user_id = new_id()

        access = decode_token(create_access_token(user_id, "MANAGER"))
        refresh = decode_token(create_refresh_token(user_id))

        assert access["sub"] == user_id
        assert access["role"] == "MANAGER"
        assert access["type"] == "access"
        assert refresh["sub"] == user_id
        assert refresh["type"] == "refresh"
