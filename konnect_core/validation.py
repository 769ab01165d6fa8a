"""
Input validation schemas using Pydantic v2
Validates vote, submission, leaderboard and referral payloads
"""

import logging
import re
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import InvalidArgument
from .types import CRITERIA, VOTE_ACTIONS

logger = logging.getLogger(__name__)

# Control characters, angle brackets
_IDENTIFIER_FORBIDDEN = re.compile(r"[<>\x00-\x1f\x7f]")

ModelT = TypeVar("ModelT", bound=BaseModel)

# ==================== SANITIZATION ====================


class InputSanitizer:
    """Utility class for input sanitization"""

    @staticmethod
    def sanitize_string(value: Any, max_length: int = 255) -> str:
        """Strip whitespace, drop NUL bytes and angle brackets, cap length"""
        if not isinstance(value, str):
            value = str(value)

        value = value.replace("\0", "")
        value = value.replace("<", "").replace(">", "")
        value = value.strip()

        return value[:max_length]


def _check_identifier(value: Optional[str], field: str) -> str:
    """Reject malformed identifiers; valid ones pass through unchanged"""
    if value is None:
        raise ValueError(f"{field} is required")
    if not value.strip():
        raise ValueError(f"{field} cannot be empty")
    if value != value.strip():
        raise ValueError(f"{field} must not have surrounding whitespace")
    if _IDENTIFIER_FORBIDDEN.search(value):
        raise ValueError(f"{field} contains forbidden characters")
    return value


def _non_empty(value: Optional[str], field: str, max_length: int) -> str:
    if value is None:
        raise ValueError(f"{field} is required")
    cleaned = InputSanitizer.sanitize_string(value, max_length)
    if len(cleaned) == 0:
        raise ValueError(f"{field} cannot be empty")
    return cleaned


# ==================== REQUEST MODELS ====================


class VoteRequest(BaseModel):
    """Body of a like/unlike request"""

    entry_id: str = Field(..., alias="entryId", max_length=128)
    user_id: str = Field(..., alias="userId", max_length=128)
    action: str = Field(..., description="'like' or 'unlike'")

    @field_validator("entry_id", "user_id")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        return _check_identifier(v, "identifier")

    @field_validator("action")
    @classmethod
    def validate_action(cls, v: str) -> str:
        if v not in VOTE_ACTIONS:
            raise ValueError(f"action must be one of {list(VOTE_ACTIONS)}, got {v}")
        return v

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class EntrySubmission(BaseModel):
    """Metadata of a contest submission (the video is already stored)"""

    user_id: str = Field(..., alias="userId", max_length=128)
    language: str = Field(..., max_length=64)
    region: str = Field(..., max_length=64)
    caption: str = Field(..., max_length=500)
    video_url: str = Field(..., alias="videoUrl", max_length=2048)

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        return _check_identifier(v, "userId")

    @field_validator("language", "region")
    @classmethod
    def validate_tag(cls, v: str) -> str:
        return _non_empty(v, "tag", 64)

    @field_validator("caption")
    @classmethod
    def validate_caption(cls, v: str) -> str:
        return _non_empty(v, "caption", 500)

    @field_validator("video_url")
    @classmethod
    def validate_video_url(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("videoUrl cannot be empty")
        return v

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class LeaderboardQuery(BaseModel):
    """Leaderboard query string"""

    sort_by: str = Field("votes", alias="sortBy")
    language: Optional[str] = Field(None, max_length=64)
    region: Optional[str] = Field(None, max_length=64)
    limit: Optional[int] = Field(None, ge=1, le=500)

    @field_validator("sort_by")
    @classmethod
    def validate_sort_by(cls, v: str) -> str:
        if v not in CRITERIA:
            raise ValueError(f"sortBy must be one of {list(CRITERIA)}, got {v}")
        return v

    @field_validator("language", "region")
    @classmethod
    def validate_filter(cls, v: Optional[str]) -> Optional[str]:
        # Exact match downstream; only trim surrounding whitespace
        if v is None:
            return v
        v = v.strip()
        return v or None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ReferralRequest(BaseModel):
    """Referral sign-up that earns the referrer a raffle ticket"""

    referral_id: str = Field(..., alias="referralId", max_length=64)
    user_id: str = Field(..., alias="userId", max_length=128)

    @field_validator("referral_id")
    @classmethod
    def validate_referral_id(cls, v: str) -> str:
        return _check_identifier(v, "referralId")

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        return _check_identifier(v, "userId")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


def parse_request(model: Type[ModelT], payload: Dict[str, Any] | BaseModel) -> ModelT:
    """
    Validate a request payload against ``model``

    Raises:
        InvalidArgument: If validation fails
    """
    if isinstance(payload, model):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(by_alias=True)
    if not isinstance(payload, dict):
        raise InvalidArgument(f"Invalid request: expected an object, got {type(payload).__name__}")
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        message = _describe(e)
        logger.warning(f"{model.__name__} validation failed: {message}")
        raise InvalidArgument(f"Invalid request: {message}")


# ==================== EXPORT ====================

__all__ = [
    "EntrySubmission",
    "InputSanitizer",
    "LeaderboardQuery",
    "ReferralRequest",
    "VoteRequest",
    "parse_request",
]
