from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from planelog.core.security import verify_access_token

# auto_error=False so a missing header reaches verify_access_token and
# becomes Unauthenticated (401) rather than FastAPI's generic 403
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_email(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)
) -> str:
    """
    Identity of the caller, taken from the bearer access token.

    Tokens are stateless: the email claim is the identity, no lookup happens here.
    """
    token = credentials.credentials if credentials else None
    return verify_access_token(token)
