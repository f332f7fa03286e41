"""Unit tests for auth/tokens.py and auth/verifier.py.

Covers:
- create_access_token() / decode_access_token() claim handling
- ExpiredToken vs InvalidToken on expired, tampered, and claim-less tokens
- TokenVerifier: missing header, non-Bearer scheme, revocation hook
- NoopVerifier: anonymous principal, non-enforcing
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt
from starlette.requests import Request

from auth.models import ANONYMOUS, Principal
from auth.tokens import create_access_token, decode_access_token
from auth.verifier import NoopVerifier, TokenVerifier, bearer_token, build_verifier
from core.config import Settings, get_settings
from core.errors import ExpiredToken, InvalidToken, Unauthenticated


def _request(headers: dict[str, str] | None = None) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


def _signed(payload: dict, key: str | None = None) -> str:
    return jwt.encode(payload, key or get_settings().secret_key, algorithm="HS256")


class TestTokenCodec:
    def test_claims_round_trip(self):
        token = create_access_token(7, "a@x.com", "logistics")
        principal = decode_access_token(token)
        assert principal.identity_id == 7
        assert principal.email == "a@x.com"
        assert principal.role == "logistics"
        assert principal.issued_at is not None

    def test_expired_token(self):
        past = datetime.now(timezone.utc) - timedelta(minutes=5)
        token = _signed({"sub": "a@x.com", "identity_id": 1, "role": "logistics", "exp": past})
        with pytest.raises(ExpiredToken):
            decode_access_token(token)

    def test_wrong_key(self):
        token = _signed({"sub": "a@x.com", "identity_id": 1, "role": "logistics"}, key="x" * 40)
        with pytest.raises(InvalidToken) as exc:
            decode_access_token(token)
        assert not isinstance(exc.value, ExpiredToken)

    def test_tampered_payload(self):
        token = create_access_token(1, "a@x.com", "logistics")
        header, _payload, sig = token.split(".")
        forged = _signed({"sub": "a@x.com", "identity_id": 1, "role": "admin"}).split(".")[1]
        with pytest.raises(InvalidToken):
            decode_access_token(f"{header}.{forged}.{sig}")

    def test_missing_claims(self):
        token = _signed({"sub": "a@x.com"})
        with pytest.raises(InvalidToken):
            decode_access_token(token)

    def test_garbage(self):
        with pytest.raises(InvalidToken):
            decode_access_token("garbage")


class TestVerifier:
    def test_missing_header(self):
        with pytest.raises(Unauthenticated):
            TokenVerifier().verify(_request())

    def test_non_bearer_scheme(self):
        with pytest.raises(Unauthenticated):
            TokenVerifier().verify(_request({"Authorization": "Basic dXNlcjpwdw=="}))

    def test_valid_token(self):
        token = create_access_token(3, "b@x.com", "commander")
        principal = TokenVerifier().verify(_request({"Authorization": f"Bearer {token}"}))
        assert principal.role == "commander"

    def test_revocation_hook(self):
        class RevokeEveryone:
            def is_revoked(self, principal: Principal) -> bool:
                return True

        token = create_access_token(3, "b@x.com", "logistics")
        with pytest.raises(InvalidToken):
            TokenVerifier(RevokeEveryone()).verify(_request({"Authorization": f"Bearer {token}"}))

    def test_noop_verifier(self):
        verifier = NoopVerifier()
        assert verifier.verify(_request()) is ANONYMOUS
        assert verifier.enforcing is False

    @pytest.mark.parametrize("scheme", ["bearer", "BEARER", "Bearer"])
    def test_bearer_scheme_any_case(self, scheme):
        assert bearer_token(_request({"Authorization": f"{scheme} abc.def.ghi"})) == "abc.def.ghi"

    def test_bearer_token_blank(self):
        assert bearer_token(_request({"Authorization": "Bearer   "})) is None

    def test_build_verifier_follows_flag(self):
        on = Settings(_env_file=None, debug=True, auth_enabled=True)
        off = Settings(_env_file=None, debug=True, auth_enabled=False)
        assert isinstance(build_verifier(on), TokenVerifier)
        assert isinstance(build_verifier(off), NoopVerifier)
