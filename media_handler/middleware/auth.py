from fastapi import Request, Response
import jwt
from typing import Any, Dict, Optional
import structlog

logger = structlog.get_logger()


def get_bearer_token(request: Request) -> Optional[str]:
    authorization = request.headers.get("Authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def verify_token(token: str, secret_key: str) -> Optional[Dict[str, Any]]:
    """
    Verify an HS256 JWT and return its payload.

    Args:
        token: Encoded JWT from the Authorization header
        secret_key: Shared signing secret

    Returns:
        The decoded payload, or None when the token is expired, invalid
        or has no subject
    """
    try:
        payload = jwt.decode(
            token,
            secret_key,
            algorithms=["HS256"],
            options={"verify_exp": True, "verify_aud": False}
        )
    except jwt.ExpiredSignatureError:
        logger.warning("Token expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token", error=str(e))
        return None

    if not payload.get("sub"):
        logger.warning("Invalid token: missing user ID")
        return None
    return payload


def bearer_token_authorizer(secret_key: str):
    """Build an authorization predicate that accepts requests carrying a valid bearer token."""

    async def authorized(request: Request, response: Response) -> bool:
        token = get_bearer_token(request)
        if token is None:
            logger.info("Request missing bearer token", path=request.url.path)
            return False

        payload = verify_token(token, secret_key)
        if payload is None:
            return False

        logger.info("Token verified successfully", user_id=payload["sub"])
        return True

    return authorized
