"""Account contract: Kakao OAuth login and email/password auth."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from escape_contracts.rpc.service import HttpRule, MethodDescriptor, ServiceDescriptor
from escape_contracts.wire import Kind, Message, proto_field

PACKAGE = "go.escape.ship.proto.accountapi"


@dataclass(frozen=True)
class KakaoLoginRequest(Message, package=PACKAGE):
    pass


@dataclass(frozen=True)
class KakaoLoginResponse(Message, package=PACKAGE):
    login_url: str = proto_field(1, Kind.STRING)


@dataclass(frozen=True)
class KakaoCallBackRequest(Message, package=PACKAGE):
    code: str = proto_field(1, Kind.STRING, required=True)


@dataclass(frozen=True)
class KakaoCallBackResponse(Message, package=PACKAGE):
    # tokens are opaque here; user_info_json is the provider's raw JSON document
    access_token: str = proto_field(1, Kind.STRING)
    refresh_token: str = proto_field(2, Kind.STRING)
    user_info_json: str = proto_field(3, Kind.STRING)


@dataclass(frozen=True)
class LoginRequest(Message, package=PACKAGE):
    email: str = proto_field(1, Kind.STRING, required=True)
    password: str = proto_field(2, Kind.STRING, required=True)


@dataclass(frozen=True)
class LoginResponse(Message, package=PACKAGE):
    access_token: str = proto_field(1, Kind.STRING)
    refresh_token: str = proto_field(2, Kind.STRING)


@dataclass(frozen=True)
class RegisterRequest(Message, package=PACKAGE):
    email: str = proto_field(1, Kind.STRING, required=True)
    password: str = proto_field(2, Kind.STRING, required=True)


@dataclass(frozen=True)
class RegisterResponse(Message, package=PACKAGE):
    message: str = proto_field(1, Kind.STRING)


ACCOUNT_SERVICE = ServiceDescriptor(
    name="Account",
    package=PACKAGE,
    methods=(
        MethodDescriptor(
            "GetKakaoLoginURL",
            KakaoLoginRequest,
            KakaoLoginResponse,
            HttpRule("GET", "/oauth/kakao/login"),
        ),
        MethodDescriptor(
            "GetKakaoCallBack",
            KakaoCallBackRequest,
            KakaoCallBackResponse,
            HttpRule("POST", "/oauth/kakao/callback", body="*"),
        ),
        MethodDescriptor("Login", LoginRequest, LoginResponse, HttpRule("POST", "/login", body="*")),
        MethodDescriptor("Register", RegisterRequest, RegisterResponse, HttpRule("POST", "/register", body="*")),
    ),
)


class AccountServicer(Protocol):
    """Server side of Account. Missing methods answer UNIMPLEMENTED."""

    async def get_kakao_login_url(self, request: KakaoLoginRequest, context: Any) -> KakaoLoginResponse:
        ...

    async def get_kakao_call_back(self, request: KakaoCallBackRequest, context: Any) -> KakaoCallBackResponse:
        ...

    async def login(self, request: LoginRequest, context: Any) -> LoginResponse:
        ...

    async def register(self, request: RegisterRequest, context: Any) -> RegisterResponse:
        ...
