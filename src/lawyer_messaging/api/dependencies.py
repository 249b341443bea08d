"""Shared service instances and FastAPI dependencies."""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import get_settings
from ..domain.models import User
from ..errors import AuthError
from ..repositories.base import Repository
from ..repositories.memory import InMemoryRepository
from ..services.auth import AuthService
from ..services.conversations import ConversationService

# Core service instances
repository = InMemoryRepository()
auth_service = AuthService(get_settings())

security = HTTPBearer(auto_error=False)


def get_repository() -> Repository:
    """Returns the document store"""
    return repository


def get_auth_service() -> AuthService:
    """Returns the token verifier"""
    return auth_service


def get_conversation_service(
    repository: Repository = Depends(get_repository),
) -> ConversationService:
    """Returns a conversation service bound to the current store"""
    return ConversationService(repository)


async def require_auth(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    auth: AuthService = Depends(get_auth_service),
    repository: Repository = Depends(get_repository),
) -> User:
    """Require a valid bearer token belonging to an existing user."""
    if not credentials:
        raise AuthError("No token, authorization denied")

    identity = auth.authenticate(credentials.credentials)
    user = await repository.get_user(identity.user_id)
    if user is None:
        raise AuthError("Token is not valid")
    return user
