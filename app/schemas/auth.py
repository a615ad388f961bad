import re
import uuid
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints, model_validator
from pydantic.alias_generators import to_camel


_PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]+$")


def _check_password_strength(value: str) -> str:
    if not _PASSWORD_RE.match(value):
        raise ValueError("Password must include uppercase, lowercase, number and special character")
    return value


def _check_https(value: str) -> str:
    if not value.startswith("https://"):
        raise ValueError("URL must start with https://")
    return value


# 3~16자, 영문 / 숫자 / . _ -
Username = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=3, max_length=16, pattern=r"^[a-zA-Z0-9._-]+$"),
]

# 8~20자, 대문자 / 소문자 / 숫자 / 특수문자(@$!%*?&) 각 1개 이상, 공백 불가
Password = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=8, max_length=20),
    AfterValidator(_check_password_strength),
]

# 비밀번호 일치 여부는 _PasswordConfirmation 에서 검증
ConfirmPassword = Annotated[str, StringConstraints(strip_whitespace=True, max_length=64)]

# 기존 비밀번호 입력 (로그인, 현재 비밀번호 확인), 가입 때와 같이 앞뒤 공백 제거
ExistingPassword = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=64)]

DeviceId = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=16, max_length=128, pattern=r"^[a-fA-F0-9]+$"),
]

AvatarUrl = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=15, max_length=200),
    AfterValidator(_check_https),
]


# JSON 은 camelCase (confirmPassword, deviceId ...), 파이썬 쪽은 snake_case
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _PasswordConfirmation(CamelModel):
    @model_validator(mode="after")
    def _passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class RegisterRequest(_PasswordConfirmation):
    username: Username
    password: Password
    confirm_password: ConfirmPassword
    consent_at: datetime
    device_id: DeviceId
    avatar_url: AvatarUrl | None = None


class LoginRequest(CamelModel):
    username: str = Field(min_length=1, max_length=64)
    password: ExistingPassword
    device_id: DeviceId


class RefreshRequest(CamelModel):
    refresh_token: str = Field(min_length=20, max_length=512)
    device_id: DeviceId


# deviceId 가 빈 문자열이면 서비스에서 400 처리
class LogoutRequest(CamelModel):
    device_id: str | None = Field(default=None, max_length=128)


class ChangePasswordRequest(_PasswordConfirmation):
    current_password: ExistingPassword
    password: Password
    confirm_password: ConfirmPassword
    device_id: DeviceId


class SetPasswordRequest(_PasswordConfirmation):
    password: Password
    confirm_password: ConfirmPassword
    device_id: DeviceId


class JoinAdminRequest(CamelModel):
    reference_code: str = Field(min_length=1, max_length=128)
    device_id: DeviceId


class TokenResponse(CamelModel):
    access_token: str
    refresh_token: str


class AuthResponse(CamelModel):
    id: uuid.UUID
    username: str
    avatar_url: str | None
    is_admin: bool
    has_password: bool
    oauth_providers: list[str]
    consent_at: datetime
    created_at: datetime
    updated_at: datetime
    access_token: str
    refresh_token: str


class UsernameExistsResponse(CamelModel):
    exists: bool
