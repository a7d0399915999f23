from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from fastapi.openapi.models import APIKeyIn

from route_auth.decorators import auth
from route_auth.routing import AuthRoute
from route_auth.schemas import AccountIn, AccountOut
from route_auth.schemes import AuthorizationCodeFlow, api_key, oauth2

session_cookie = api_key(
    id="sessionCookie",
    name="session",
    location=APIKeyIn.cookie,
    description="Browser session cookie issued after interactive sign-in.",
)
accounts_oauth = oauth2(
    AuthorizationCodeFlow(
        authorization_url="https://auth.example.com/oauth/authorize",
        token_url="https://auth.example.com/oauth/token",
    ),
    scopes={"accounts:read": "Read accounts", "accounts:write": "Create and modify accounts"},
)

router = APIRouter(prefix="/accounts", tags=["accounts"], route_class=AuthRoute)

_ACCOUNTS: dict[int, AccountOut] = {
    1: AccountOut(id=1, name="Ada", email="ada@example.com"),
    2: AccountOut(id=2, name="Grace", email="grace@example.com"),
}


@router.get("", response_model=list[AccountOut])
@auth(accounts_oauth, scopes=["accounts:read"])
def list_accounts() -> list[AccountOut]:
    return list(_ACCOUNTS.values())


@router.get("/{account_id}", response_model=AccountOut)
@auth(accounts_oauth)
def get_account(account_id: int) -> AccountOut:
    account = _ACCOUNTS.get(account_id)
    if account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    return account


@router.post("", response_model=AccountOut, status_code=status.HTTP_201_CREATED)
# The cookie binding comes last so the write scope stays on the OAuth2 scheme.
@auth(session_cookie)
@auth(accounts_oauth, scopes=["accounts:write"])
def create_account(payload: AccountIn) -> AccountOut:
    # Demo only: nothing is persisted beyond the process.
    account = AccountOut(id=max(_ACCOUNTS, default=0) + 1, name=payload.name, email=payload.email)
    _ACCOUNTS[account.id] = account
    return account
