import time

import orjson
from jose import JWTError
from jose import jwt as jose_jwt
from orso.logging import get_logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = get_logger()


def token_identity(authorization: str) -> dict:
    """Unverified `sub`/`org` claims of a bearer token, for the audit record only."""
    identity = {"jwt_present": True}
    try:
        claims = jose_jwt.get_unverified_claims(authorization.split(" ", 1)[1])
    except (JWTError, IndexError):
        return identity
    if isinstance(claims, dict):
        if claims.get("sub"):
            identity["jwt_sub"] = claims["sub"]
        if claims.get("org"):
            identity["jwt_org"] = claims["org"]
    return identity


class AuditMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.time()
        try:
            response: Response = await call_next(request)
            status = response.status_code
            message = "okay"
        except Exception as exc:
            # Use exception detail if available (e.g. HTTPException.detail)
            message = getattr(exc, "detail", str(exc))
            status = getattr(exc, "status_code", 500)
            response = Response(status_code=status)
        finally:
            duration_ms = int((time.time() - start) * 1000)
            # Avoid logging sensitive headers
            xff = request.headers.get("x-forwarded-for", "-")
            payload = {
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": duration_ms,
                "from": xff,
                "timestamp": int(time.time()),
                "message": message,
            }
            auth = request.headers.get("authorization")
            if auth and auth.lower().startswith("bearer "):
                payload.update(token_identity(auth))

            # Responses carrying an `audit` object (sign-in, password reset)
            # hand it to the audit record.
            try:
                content_type = response.headers.get("content-type", "")
                body_bytes = None
                if "application/json" in content_type:
                    if getattr(response, "body", None) is not None:
                        body_bytes = response.body
                    # streaming responses: consume and rebuild
                    elif hasattr(response, "body_iterator"):
                        chunks = [c async for c in response.body_iterator]
                        body_bytes = b"".join(chunks)
                        response = Response(
                            content=body_bytes,
                            status_code=response.status_code,
                            headers=dict(response.headers),
                            media_type=response.media_type,
                        )

                if body_bytes:
                    try:
                        parsed = orjson.loads(body_bytes)
                        if isinstance(parsed, dict):
                            if "audit" in parsed:
                                payload["response_audit"] = parsed["audit"]
                            if status >= 400 and "detail" in parsed:
                                payload["message"] = parsed["detail"]
                    except (TypeError, ValueError):
                        pass
            except (AttributeError, RuntimeError, TypeError):
                pass
            try:
                logger.audit(payload)
            except AttributeError as exc_attr:
                # audit level missing on this logger
                logger.error(f"audit payload fallback: {payload} - error={exc_attr}")
        return response
