# storefront/core/errors.py


class AuthError(Exception):
    """Base dos erros do subsistema de autenticação."""

    code = "AUTH_ERROR"


class Misconfiguration(AuthError):
    """Material de assinatura ausente ou inválido. Fatal no startup, nunca repetido."""

    code = "MISCONFIGURATION"


class InvalidToken(AuthError):
    """Access token com assinatura, issuer, audience, alg ou validade inválidos."""

    code = "INVALID_TOKEN"


class InvalidRefreshToken(AuthError):
    """Refresh token inexistente, de outro usuário ou fora do estado Active."""

    code = "INVALID_REFRESH_TOKEN"
