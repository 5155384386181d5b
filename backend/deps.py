"""Shared FastAPI dependencies used across route modules."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ai_gateway import AIGateway
from auth import Identity, resolve_identity
from database import SessionLocal
from mutation_service import MutationService
from post_store import PostStore


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# credentials are optional on every route
security = HTTPBearer(auto_error=False)


def get_identity(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> Optional[Identity]:
    if credentials is None:
        return None
    return resolve_identity(credentials.credentials)


def get_post_store(db: Session = Depends(get_db)) -> PostStore:
    return PostStore(db)


def get_mutation_service(request: Request, store: PostStore = Depends(get_post_store)) -> MutationService:
    return MutationService(store, request.app.state.hub.publish)


def get_ai_gateway(request: Request, store: PostStore = Depends(get_post_store)) -> AIGateway:
    return AIGateway(store, request.app.state.ai_cache, request.app.state.llm)
