from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from studyplanner.config import settings
from studyplanner.errors import AuthenticationError
from studyplanner.llm import LLMFactory, get_llm
from studyplanner.scheduler import PlanGenerator
from studyplanner.storage import LocalObjectStorage

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user_id(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> str:
    """Verify the bearer token issued by the auth provider and return its subject"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options={"verify_aud": bool(settings.jwt_audience)},
        )
    except JWTError as e:
        raise AuthenticationError(f"Invalid token: {e}") from e

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Token has no subject")
    return str(user_id)


def get_storage() -> LocalObjectStorage:
    return LocalObjectStorage()


def get_llm_factory() -> LLMFactory:
    return get_llm


def get_plan_generator(llm_factory: LLMFactory = Depends(get_llm_factory)) -> PlanGenerator:
    return PlanGenerator(llm_factory(json_mode=True, temperature=0.7, max_tokens=3000))
