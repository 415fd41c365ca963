# storefront/core/tokens.py
from __future__ import annotations

import base64
import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from jose import jwt, JWTError
from pydantic import ValidationError

from storefront.core.config import JwtConfig, check_signing_key
from storefront.core.errors import InvalidToken
from storefront.schemas.token import TokenClaims

log = logging.getLogger(__name__)

REFRESH_TOKEN_BYTES = 32
TOKEN_TYPE_ACCESS = "access"

_REQUIRED = {
    "require_iat": True,
    "require_iss": True,
    "require_aud": True,
    "require_jti": True,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """
    Emissão e validação de tokens.

    - access token: JWT HS256 curto (minutos) com os claims do usuário
    - refresh token: string opaca aleatória; a semântica fica no banco
    """

    def __init__(self, config: JwtConfig, clock: Optional[Callable[[], datetime]] = None):
        # falha aqui (startup) e não a cada chamada
        check_signing_key(config.secret_key)
        self.config = config
        self._clock = clock or utcnow

    # ------------------------------------------------------------------ emissão
    def issue_access_token(self, user_id: int, email: str, role: str, username: str) -> str:
        now = self._clock()
        expire = now + timedelta(minutes=self.config.access_token_expire_minutes)
        payload: Dict[str, Any] = {
            "type": TOKEN_TYPE_ACCESS,
            "sub": str(user_id),
            "user_id": int(user_id),
            "email": email,
            "role": str(getattr(role, "value", role)),
            "username": username,
            "jti": str(uuid.uuid4()),
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
            "iss": self.config.issuer,
            "aud": self.config.audience,
        }
        return jwt.encode(payload, self.config.secret_key, algorithm=self.config.algorithm)

    @staticmethod
    def issue_refresh_token() -> str:
        return base64.b64encode(secrets.token_bytes(REFRESH_TOKEN_BYTES)).decode("ascii")

    def now(self) -> datetime:
        return self._clock()

    def access_token_expires_at(self) -> datetime:
        return self._clock() + timedelta(minutes=self.config.access_token_expire_minutes)

    def refresh_token_expires_at(self) -> datetime:
        return self._clock() + timedelta(days=self.config.refresh_token_expire_days)

    # ---------------------------------------------------------------- validação
    def validate_access_token(self, token: str) -> TokenClaims:
        """Validação completa: assinatura, iss, aud, alg e expiração."""
        return self._decode(token, verify_exp=True)

    def extract_claims_ignoring_expiry(self, token: str) -> TokenClaims:
        """
        Recupera a identidade de um access token já expirado.

        Uso exclusivo do fluxo de refresh: nunca autorize uma requisição com isso.
        Assinatura, iss, aud e alg continuam sendo exigidos.
        """
        return self._decode(token, verify_exp=False)

    def _decode(self, token: str, *, verify_exp: bool) -> TokenClaims:
        if not token or not isinstance(token, str):
            raise InvalidToken("Invalid token")
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise InvalidToken("Invalid token") from exc

        # bloqueia algorithm confusion (none, RS256 com chave pública etc.)
        alg = str(header.get("alg") or "")
        if alg.upper() != self.config.algorithm.upper():
            log.warning("token rejected: unexpected alg %r", alg)
            raise InvalidToken("Invalid token")

        try:
            payload = jwt.decode(
                token,
                self.config.secret_key,
                algorithms=[self.config.algorithm],
                audience=self.config.audience,
                issuer=self.config.issuer,
                # require_exp força verify_exp no jose; a presença de exp fica a cargo de TokenClaims
                options={**_REQUIRED, "require_exp": verify_exp, "verify_exp": verify_exp},
            )
        except JWTError as exc:
            raise InvalidToken("Invalid token") from exc

        if payload.get("type") != TOKEN_TYPE_ACCESS:
            raise InvalidToken("Invalid token")
        try:
            return TokenClaims.model_validate(payload)
        except ValidationError as exc:
            raise InvalidToken("Invalid token") from exc
