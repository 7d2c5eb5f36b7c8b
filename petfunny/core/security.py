from fastapi import HTTPException, Header
from petfunny.core.config import settings

async def verify_admin_token(x_admin_token: str = Header(None)):
    """
    Gate the admin API behind the shared X-Admin-Token header.
    When ADMIN_TOKEN is empty (local development) every request passes.
    """
    if not settings.ADMIN_TOKEN:
        return True

    if x_admin_token != settings.ADMIN_TOKEN:
        raise HTTPException(status_code=401, detail="Invalid admin token")
    return True
