from datetime import datetime
from uuid import UUID

from pydantic import ConfigDict, model_validator
from pydantic.alias_generators import to_camel

from app.schemas.auth import AvatarUrl, CamelModel, Username


# 🔹 프로필 수정 요청 (username / avatarUrl 중 하나 이상)
class UpdateProfileRequest(CamelModel):
    username: Username | None = None
    avatar_url: AvatarUrl | None = None

    @model_validator(mode="after")
    def _has_changes(self):
        if self.username is None and self.avatar_url is None:
            raise ValueError("No changes provided")
        return self


# 🔹 유저 응답용 (토큰 제외)
class UserResponse(CamelModel):
    id: UUID
    username: str
    avatar_url: str | None
    is_admin: bool
    has_password: bool
    oauth_providers: list[str]
    consent_at: datetime
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)  # SQLAlchemy → Pydantic 변환
