"""Auth API — inspect the resolved auth context.

Learn: GET /auth/context runs the full resolver (credential, optional
?account_id override, optional ?organization_id) and echoes the result.
Clients use it to check what a key or token can act as. The auth token
is never echoed back.
"""

from fastapi import APIRouter, Depends

from backstage.auth.context import AuthContext
from backstage.auth.dependencies import get_query_auth_context
from backstage.schemas.auth import AuthContextRead

router = APIRouter(prefix="/auth")


@router.get("/context", response_model=AuthContextRead)
async def get_context(ctx: AuthContext = Depends(get_query_auth_context)):
    return AuthContextRead(account_id=ctx.account_id, org_id=ctx.org_id)
