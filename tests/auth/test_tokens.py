"""Tests for auth/tokens.py - stateless signed session tokens."""

from datetime import timedelta

import jwt
import pytest
from pydantic import SecretStr

from auth.exceptions import Unauthorized
from auth.tokens import SessionTokenCodec
from utils.timezone import now_utc, to_epoch_seconds

# TEST_SECRET must match conftest.py
TEST_SECRET = "test-signing-secret-that-is-long-enough-for-hs256"
OTHER_SECRET = "a-completely-different-signing-secret-for-tests!"


class TestIssue:
    """Tests for issue() and claims_for()."""

    def test_round_trip(self, codec, make_user):
        claims = codec.validate(codec.issue(make_user(user_id=5, email="a@b.com")))
        assert claims.user_id == 5
        assert claims.sub == "5"
        assert claims.email == "a@b.com"
        assert claims.iss == "tallii"

    def test_lifetime_from_config(self, codec, make_user):
        issued_at = now_utc()
        claims = codec.claims_for(make_user(), issued_at)
        assert claims.iat == to_epoch_seconds(issued_at)
        assert claims.exp - claims.iat == 7 * 24 * 3600

    def test_sub_is_string_on_the_wire(self, codec, make_user):
        payload = jwt.decode(codec.issue(make_user(user_id=9)), TEST_SECRET, algorithms=["HS256"])
        assert payload["sub"] == "9"

    def test_compact_jws(self, codec, make_user):
        """Three base64url segments separated by dots."""
        assert codec.issue(make_user()).count(".") == 2


class TestValidate:
    """Tests for validate() rejection paths."""

    def test_expired(self, codec, make_user):
        token = codec.issue(make_user(), issued_at=now_utc() - timedelta(days=8))
        with pytest.raises(Unauthorized):
            codec.validate(token)

    def test_still_valid_before_expiry(self, codec, make_user):
        token = codec.issue(make_user(), issued_at=now_utc() - timedelta(days=6))
        assert codec.validate(token).user_id == 1

    def test_wrong_secret(self, auth_config, codec, make_user):
        other = SessionTokenCodec(
            auth_config.model_copy(update={"token_secret": SecretStr(OTHER_SECRET)})
        )
        with pytest.raises(Unauthorized):
            codec.validate(other.issue(make_user()))

    def test_issuer_presence_only(self, auth_config, codec, make_user):
        """Any issuer value is accepted as long as the claim is present."""
        other = SessionTokenCodec(auth_config.model_copy(update={"token_issuer": "someone-else"}))
        assert codec.validate(other.issue(make_user())).iss == "someone-else"

    def test_missing_claim(self, codec):
        now = to_epoch_seconds(now_utc())
        token = jwt.encode(
            {"sub": "1", "iss": "tallii", "iat": now, "exp": now + 60},
            TEST_SECRET,
            algorithm="HS256",
        )
        with pytest.raises(Unauthorized):
            codec.validate(token)

    def test_unsigned_token(self, codec):
        """alg=none is never accepted."""
        now = to_epoch_seconds(now_utc())
        token = jwt.encode(
            {"sub": "1", "email": "a@b.com", "iss": "tallii", "iat": now, "exp": now + 60},
            None,
            algorithm="none",
        )
        with pytest.raises(Unauthorized):
            codec.validate(token)

    @pytest.mark.parametrize("garbage", ["", "abc", "a.b.c", "Bearer x.y.z"])
    def test_garbage(self, codec, garbage):
        with pytest.raises(Unauthorized):
            codec.validate(garbage)

    def test_tampered_payload(self, codec, make_user):
        header, _, signature = codec.issue(make_user(user_id=1)).split(".")
        forged_payload = codec.issue(make_user(user_id=2)).split(".")[1]
        with pytest.raises(Unauthorized):
            codec.validate(f"{header}.{forged_payload}.{signature}")
