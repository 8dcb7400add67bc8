import secrets

import redis
from fastapi import Depends, Header, HTTPException, Query, Request

from storefront.domain.identity import Owner
from storefront.services.rate_limiter import rate_limit_key
from storefront.utils.settings import ADMIN_TOKEN, RATE_LIMIT_WINDOW_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def get_owner(
    user_id: int | None = Query(None, gt=0),
    x_session_id: str | None = Header(None),
) -> Owner:
    """
    Identity handed over by the auth layer: ``user_id`` for signed-in
    customers, the ``X-Session-Id`` header for guests.
    """
    if user_id is not None:
        return Owner.user(user_id)
    if x_session_id is not None:
        return Owner.guest(x_session_id)
    raise HTTPException(status_code=401, detail="Not authenticated")


def get_user_id(user_id: int = Query(..., gt=0)) -> int:
    return user_id


def require_admin(x_admin_token: str | None = Header(None)) -> None:
    if x_admin_token is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    # bez skonfigurowanego tokenu nikt nie jest adminem
    if not ADMIN_TOKEN or not secrets.compare_digest(x_admin_token, ADMIN_TOKEN):
        raise HTTPException(status_code=403, detail="Admin access required")


def rate_limited(prefix: str, max_requests: int, window_seconds: int = RATE_LIMIT_WINDOW_SECONDS):
    def dependency(request: Request, user_id: int | None = Query(None, gt=0)):
        limiter = request.app.state.rate_limiter
        client_ip = request.client.host if request.client else None
        key = rate_limit_key(prefix, user_id=user_id, client_ip=client_ip)

        try:
            decision = limiter.check_and_increment(key, max_requests, window_seconds)
        except redis.RedisError as e:
            # awaria limitera nie blokuje zamowien
            logger.warning(f"Rate limiter unavailable for {key}, letting request through: {e}")
            return

        if not decision.allowed:
            raise HTTPException(
                status_code=429,
                detail="Too many requests, please try again later.",
                headers={"Retry-After": str(decision.retry_after)},
            )

    return Depends(dependency)
