"""Payment contract: Kakao Pay ready / approve / cancel.

The tid is issued by the payment provider on KakaoReady and echoed back on
approve. Partner order/user ids are passed through uninterpreted.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from escape_contracts.rpc.service import HttpRule, MethodDescriptor, ServiceDescriptor
from escape_contracts.wire import Kind, Message, proto_field

PACKAGE = "go.escape.ship.proto.v1"
TAGS = ("Kakao Payments",)


@dataclass(frozen=True)
class KakaoReadyRequest(Message, package=PACKAGE):
    partner_order_id: str = proto_field(1, Kind.STRING, required=True)
    partner_user_id: str = proto_field(2, Kind.STRING, required=True)
    item_name: str = proto_field(3, Kind.STRING)
    quantity: int = proto_field(4, Kind.INT32)
    total_amount: int = proto_field(5, Kind.INT64)
    tax_free_amount: int = proto_field(6, Kind.INT64)


@dataclass(frozen=True)
class KakaoReadyResponse(Message, package=PACKAGE):
    tid: str = proto_field(1, Kind.STRING)
    next_redirect_app_url: str = proto_field(2, Kind.STRING)
    next_redirect_mobile_url: str = proto_field(3, Kind.STRING)
    next_redirect_pc_url: str = proto_field(4, Kind.STRING)
    android_app_scheme: str = proto_field(5, Kind.STRING)
    ios_app_scheme: str = proto_field(6, Kind.STRING)


@dataclass(frozen=True)
class KakaoApproveRequest(Message, package=PACKAGE):
    tid: str = proto_field(1, Kind.STRING, required=True)
    partner_order_id: str = proto_field(2, Kind.STRING, required=True)
    partner_user_id: str = proto_field(3, Kind.STRING)
    pg_token: str = proto_field(4, Kind.STRING, required=True)


@dataclass(frozen=True)
class KakaoApproveResponse(Message, package=PACKAGE):
    partner_order_id: str = proto_field(1, Kind.STRING)


@dataclass(frozen=True)
class KakaoCancelRequest(Message, package=PACKAGE):
    partner_order_id: str = proto_field(1, Kind.STRING, required=True)
    # int64, unlike older schemas that sent field 2 as a string; string-typed peers decode as 0
    cancel_amount: int = proto_field(2, Kind.INT64)
    cancel_tax_free_amount: int = proto_field(3, Kind.INT64)
    cancel_vat_amount: int = proto_field(4, Kind.INT64)
    cancel_available_amount: int = proto_field(5, Kind.INT64)


@dataclass(frozen=True)
class KakaoCancelResponse(Message, package=PACKAGE):
    partner_order_id: str = proto_field(1, Kind.STRING)


PAYMENT_SERVICE = ServiceDescriptor(
    name="PaymentService",
    package=PACKAGE,
    methods=(
        MethodDescriptor(
            "KakaoReady",
            KakaoReadyRequest,
            KakaoReadyResponse,
            HttpRule("POST", "/payment/kakao/ready", body="*"),
            summary="Ready payment with Kakao",
            description="Initiate payment process with Kakao.",
            tags=TAGS,
        ),
        MethodDescriptor(
            "KakaoApprove",
            KakaoApproveRequest,
            KakaoApproveResponse,
            HttpRule("POST", "/payment/kakao/approve", body="*"),
            summary="Approve payment with Kakao",
            description="Approve the payment process with Kakao.",
            tags=TAGS,
        ),
        MethodDescriptor(
            "KakaoCancel",
            KakaoCancelRequest,
            KakaoCancelResponse,
            HttpRule("POST", "/payment/kakao/cancel", body="*"),
            summary="Cancel payment with Kakao",
            description="Cancel an ongoing or completed payment with Kakao.",
            tags=TAGS,
        ),
    ),
)


class PaymentServicer(Protocol):
    async def kakao_ready(self, request: KakaoReadyRequest, context: Any) -> KakaoReadyResponse:
        ...

    async def kakao_approve(self, request: KakaoApproveRequest, context: Any) -> KakaoApproveResponse:
        ...

    async def kakao_cancel(self, request: KakaoCancelRequest, context: Any) -> KakaoCancelResponse:
        ...
