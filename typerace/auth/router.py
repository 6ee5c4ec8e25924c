import logging

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from typerace.auth.utils import hash_password, verify_password
from typerace.config import settings
from typerace.db import create_user, get_user
from typerace.errors import SessionConflict, Unauthorized, UsernameTaken

logger = logging.getLogger(__name__)
router = APIRouter(tags=["auth"])


class Credentials(BaseModel):
    username: str
    password: str


class TokenBody(BaseModel):
    auth_token: str = ""


@router.post("/register", status_code=201)
async def register(payload: Credentials):
    username = payload.username.strip()
    if not username:
        raise HTTPException(400, "Username is required")
    if len(payload.password) < settings.min_password_length:
        raise HTTPException(
            400, f"Password must be at least {settings.min_password_length} characters"
        )

    try:
        create_user(username, hash_password(payload.password))
    except UsernameTaken:
        raise HTTPException(409, "Username already exists")

    logger.info(f"Registered user {username}")
    return {"message": "User registered successfully"}


@router.post("/login")
async def login(payload: Credentials, request: Request):
    user = get_user(payload.username)
    if not user or not verify_password(payload.password, user["password_hash"]):
        raise HTTPException(401, "Invalid username or password")

    store = request.app.state.token_store
    try:
        record = store.issue(user["username"])
    except SessionConflict:
        raise HTTPException(409, "User already has an active session")

    return {
        "message": "Login successful",
        "token": record.token,
        "expires_at": record.expires_at,
    }


@router.post("/verify")
async def verify(payload: TokenBody, request: Request):
    try:
        username = request.app.state.guard.authorize(payload.auth_token)
    except Unauthorized as e:
        raise HTTPException(401, e.reason)

    user = get_user(username)
    return {"username": username, "victories": user["victories"] if user else 0}


@router.post("/logout")
async def logout(payload: TokenBody, request: Request):
    try:
        username = request.app.state.guard.authorize(payload.auth_token)
    except Unauthorized as e:
        raise HTTPException(401, e.reason)

    request.app.state.token_store.revoke(payload.auth_token)
    logger.info(f"{username} logged out")
    return {"message": "Logout successful"}


@router.get("/get/connected-users")
async def connected_users(request: Request):
    names = request.app.state.token_store.active_usernames()
    return {"users": [{"name": name} for name in names]}


def get_current_user(request: Request) -> dict | None:
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None

    try:
        username = request.app.state.guard.authorize(token)
    except Unauthorized:
        return None

    return get_user(username)
