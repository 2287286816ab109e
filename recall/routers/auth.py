"""
Recall — Authentication Router
Username/password login for admins and students. JWT bearer tokens.
The user row is re-read on every request so role and capability changes
apply immediately.
"""

import logging
from datetime import datetime, timezone, timedelta
from typing import List, Optional

import jwt
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.orm import Session as DBSession
from werkzeug.security import check_password_hash, generate_password_hash

from recall.config import JWT_SECRET, JWT_ALGORITHM, JWT_EXPIRY_HOURS, MAX_BULK_USERS, MIN_PASSWORD_LENGTH
from recall.database import get_db
from recall.errors import InvalidCredentials
from recall.models import Assignment, User
from recall.state.session import SIGNED_OUT, Role, SessionContext, UserSession

logger = logging.getLogger("recall.auth")
router = APIRouter(prefix="/api/auth", tags=["auth"])


# ─── Request/Response Models ─────────────────────────────────────────────────

class LoginRequest(BaseModel):
    username: str
    password: str

class UserProfile(BaseModel):
    id: str
    username: str
    role: str
    display_name: Optional[str] = None
    can_access_proofreading: bool
    can_access_spelling: bool
    can_access_learning_hub: bool
    force_password_change: bool

class LoginResponse(BaseModel):
    user: UserProfile
    token: str

class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH)

class CreateUserRequest(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    display_name: Optional[str] = None
    role: Role = Role.USER
    can_access_proofreading: bool = False
    can_access_spelling: bool = False
    can_access_learning_hub: bool = False


# ─── JWT Helpers ─────────────────────────────────────────────────────────────

def create_token(user_id: str, role: str) -> str:
    payload = {
        "sub": user_id,
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(hours=JWT_EXPIRY_HOURS),
        "iat": datetime.now(timezone.utc),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> dict:
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


def _bearer(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth[7:]


def _profile(user: User) -> UserProfile:
    return UserProfile(**UserSession.from_claims(user).to_dict())


def hash_password(password: str) -> str:
    return generate_password_hash(password)


# ─── Dependencies ────────────────────────────────────────────────────────────

def get_current_user(request: Request, db: DBSession = Depends(get_db)) -> UserSession:
    """FastAPI dependency: the signed-in user, 401 otherwise."""
    token = _bearer(request)
    if token is None:
        raise HTTPException(status_code=401, detail="Missing token")
    claims = verify_token(token)
    user = db.get(User, claims.get("sub"))
    if user is None:
        raise HTTPException(status_code=401, detail="User no longer exists")
    return UserSession.from_claims(user)


def get_session_context(request: Request, db: DBSession = Depends(get_db)) -> SessionContext:
    """FastAPI dependency: session context for the view controller. Signed out is fine."""
    if _bearer(request) is None:
        return SIGNED_OUT
    return SessionContext(user=get_current_user(request, db))


def require_admin(user: UserSession = Depends(get_current_user)) -> UserSession:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Unauthorized")
    return user


# ─── Endpoints ───────────────────────────────────────────────────────────────

@router.post("/login", response_model=LoginResponse)
def login(req: LoginRequest, db: DBSession = Depends(get_db)):
    user = db.scalar(select(User).where(User.username == req.username.strip()))
    if user is None or not check_password_hash(user.password_hash, req.password):
        logger.info(f"Failed login for {req.username!r}")
        raise InvalidCredentials("Invalid username or password")

    return LoginResponse(user=_profile(user), token=create_token(user.id, user.role))


@router.get("/me", response_model=UserProfile)
def me(current: UserSession = Depends(get_current_user)):
    return UserProfile(**current.to_dict())


@router.post("/change-password", response_model=UserProfile)
def change_password(
    req: ChangePasswordRequest,
    current: UserSession = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    user = db.get(User, current.id)
    if not check_password_hash(user.password_hash, req.current_password):
        raise HTTPException(status_code=403, detail="Current password is incorrect")

    user.password_hash = hash_password(req.new_password)
    user.force_password_change = False
    db.commit()
    logger.info(f"User {user.id} changed password")
    return _profile(user)


def _insert_user(db: DBSession, req: CreateUserRequest) -> User:
    username = req.username.strip()
    if db.scalar(select(User).where(User.username == username)) is not None:
        raise HTTPException(status_code=400, detail="Username already exists")

    user = User(
        username=username,
        password_hash=hash_password(req.password),
        display_name=req.display_name,
        role=req.role.value,
        can_access_proofreading=req.can_access_proofreading,
        can_access_spelling=req.can_access_spelling,
        can_access_learning_hub=req.can_access_learning_hub,
        force_password_change=True,
    )
    db.add(user)
    db.commit()
    return user


# ═══════════════════════════════════════════════════════════════════════════
# User administration (admin only)
# ═══════════════════════════════════════════════════════════════════════════

class UpdateUserRequest(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    display_name: Optional[str] = None
    role: Optional[Role] = None

class UpdatePermissionsRequest(BaseModel):
    can_access_proofreading: Optional[bool] = None
    can_access_spelling: Optional[bool] = None
    can_access_learning_hub: Optional[bool] = None

class ResetPasswordRequest(BaseModel):
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH)

class BulkCreateRequest(BaseModel):
    users: List[CreateUserRequest] = Field(min_length=1, max_length=MAX_BULK_USERS)


def _target_user(db: DBSession, user_id: str) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("/users", response_model=UserProfile, status_code=201)
def create_user(
    req: CreateUserRequest,
    admin: UserSession = Depends(require_admin),
    db: DBSession = Depends(get_db),
):
    user = _insert_user(db, req)
    logger.info(f"Admin {admin.id} created user {user.id} ({user.username})")
    return _profile(user)


@router.post("/users/bulk")
def bulk_create_users(
    req: BulkCreateRequest,
    response: Response,
    admin: UserSession = Depends(require_admin),
    db: DBSession = Depends(get_db),
):
    """Create up to MAX_BULK_USERS accounts. Partial failure answers 207."""
    results, errors = [], []
    for line, entry in enumerate(req.users, start=1):
        try:
            user = _insert_user(db, entry)
        except HTTPException as e:
            db.rollback()
            errors.append({"line": line, "username": entry.username, "error": e.detail})
            continue
        results.append({"line": line, "username": user.username, "id": user.id})

    logger.info(f"Admin {admin.id} bulk-created {len(results)} user(s), {len(errors)} failed")
    if errors:
        response.status_code = 207
    return {"created": len(results), "results": results, "errors": errors}


@router.get("/users", response_model=List[UserProfile])
def list_users(admin: UserSession = Depends(require_admin), db: DBSession = Depends(get_db)):
    return [_profile(u) for u in db.scalars(select(User).order_by(User.created_at))]


@router.patch("/users/{user_id}", response_model=UserProfile)
def update_user(
    user_id: str,
    req: UpdateUserRequest,
    admin: UserSession = Depends(require_admin),
    db: DBSession = Depends(get_db),
):
    user = _target_user(db, user_id)
    if req.username is not None:
        username = req.username.strip()
        clash = db.scalar(select(User).where(User.username == username, User.id != user_id))
        if clash is not None:
            raise HTTPException(status_code=400, detail="Username already exists")
        user.username = username
    if req.display_name is not None:
        user.display_name = req.display_name
    if req.role is not None:
        if user_id == admin.id and req.role != Role.ADMIN:
            raise HTTPException(status_code=400, detail="Admins cannot demote themselves")
        user.role = req.role.value
    db.commit()
    return _profile(user)


@router.put("/users/{user_id}/permissions", response_model=UserProfile)
def update_permissions(
    user_id: str,
    req: UpdatePermissionsRequest,
    admin: UserSession = Depends(require_admin),
    db: DBSession = Depends(get_db),
):
    """Only the flags present in the body change."""
    user = _target_user(db, user_id)
    for name, value in req.model_dump(exclude_none=True).items():
        setattr(user, name, value)
    db.commit()
    logger.info(f"Admin {admin.id} updated permissions of {user_id}")
    return _profile(user)


@router.post("/users/{user_id}/reset-password", response_model=UserProfile)
def admin_reset_password(
    user_id: str,
    req: ResetPasswordRequest,
    admin: UserSession = Depends(require_admin),
    db: DBSession = Depends(get_db),
):
    """The user has to pick a new password at next sign-in."""
    user = _target_user(db, user_id)
    user.password_hash = hash_password(req.new_password)
    user.force_password_change = True
    db.commit()
    logger.info(f"Admin {admin.id} reset password of {user_id}")
    return _profile(user)


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    user_id: str,
    admin: UserSession = Depends(require_admin),
    db: DBSession = Depends(get_db),
):
    """Students only. Their saved texts and assignments go with them."""
    user = _target_user(db, user_id)
    if user.role == Role.ADMIN.value:
        raise HTTPException(status_code=403, detail="Admin accounts cannot be deleted")

    for assignment in db.scalars(select(Assignment).where(Assignment.user_id == user_id)):
        db.delete(assignment)
    db.delete(user)
    db.commit()
    logger.info(f"Admin {admin.id} deleted user {user_id}")
