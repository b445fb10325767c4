"""Unit tests for the service descriptors of the four contracts."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from escape_contracts.errors import RpcError, SchemaError
from escape_contracts.rpc.service import HttpRule, MethodDescriptor, ServiceDescriptor, python_name
from escape_contracts.schemas import (
    ACCOUNT_SERVICE,
    ORDER_SERVICE,
    PAYMENT_SERVICE,
    PRODUCT_SERVICE,
    SERVICES,
    get_service,
)
from escape_contracts.schemas.product import GetProductByIDRequest, GetProductByIDResponse
from escape_contracts.status import StatusCode
from escape_contracts.wire import Kind, Message, proto_field


class TestContracts:
    """The method tables, names and HTTP rules of each service."""

    def test_full_names(self) -> None:
        assert ACCOUNT_SERVICE.full_name == "go.escape.ship.proto.accountapi.Account"
        assert ORDER_SERVICE.full_name == "go.escape.ship.proto.v1.OrderService"
        assert PAYMENT_SERVICE.full_name == "go.escape.ship.proto.v1.PaymentService"
        assert PRODUCT_SERVICE.full_name == "go.escape.ship.proto.v1.ProductService"

    @pytest.mark.parametrize(
        ("service", "method", "verb", "path", "body"),
        [
            (ACCOUNT_SERVICE, "GetKakaoLoginURL", "GET", "/oauth/kakao/login", None),
            (ACCOUNT_SERVICE, "GetKakaoCallBack", "POST", "/oauth/kakao/callback", "*"),
            (ACCOUNT_SERVICE, "Login", "POST", "/login", "*"),
            (ACCOUNT_SERVICE, "Register", "POST", "/register", "*"),
            (ORDER_SERVICE, "InsertOrder", "POST", "/v1/order/insert", "*"),
            (ORDER_SERVICE, "GetAllOrders", "GET", "/v1/order", None),
            (PAYMENT_SERVICE, "KakaoReady", "POST", "/payment/kakao/ready", "*"),
            (PAYMENT_SERVICE, "KakaoApprove", "POST", "/payment/kakao/approve", "*"),
            (PAYMENT_SERVICE, "KakaoCancel", "POST", "/payment/kakao/cancel", "*"),
            (PRODUCT_SERVICE, "GetProducts", "GET", "/products", None),
            (PRODUCT_SERVICE, "GetProductByID", "GET", "/products/{id}", None),
            (PRODUCT_SERVICE, "PostProducts", "POST", "/products", "*"),
            (PRODUCT_SERVICE, "GetProductOptions", "POST", "/product/{id}/options", "*"),
        ],
    )
    def test_http_rules(self, service: ServiceDescriptor, method: str, verb: str, path: str, body: str | None) -> None:
        rule = service.method(method).http

        assert (rule.verb, rule.path, rule.body) == (verb, path, body)

    def test_rpc_paths(self) -> None:
        assert ORDER_SERVICE.rpc_path("InsertOrder") == "/go.escape.ship.proto.v1.OrderService/InsertOrder"
        assert (
            ACCOUNT_SERVICE.rpc_path(ACCOUNT_SERVICE.method("Login"))
            == "/go.escape.ship.proto.accountapi.Account/Login"
        )

    def test_method_count(self) -> None:
        assert [len(s.methods) for s in SERVICES] == [4, 2, 3, 4]

    def test_payment_annotations(self) -> None:
        ready = PAYMENT_SERVICE.method("KakaoReady")

        assert ready.summary == "Ready payment with Kakao"
        assert ready.tags == ("Kakao Payments",)

    def test_message_names_unique_per_package(self) -> None:
        """Messages of services sharing a package never collide."""
        seen: dict[str, type] = {}
        for service in SERVICES:
            for method in service.methods:
                for cls in (method.input_type, method.output_type):
                    assert seen.setdefault(cls.full_name(), cls) is cls


class TestLookup:
    """Tests for method and service lookup."""

    def test_by_rpc_or_python_name(self) -> None:
        assert PRODUCT_SERVICE.method("GetProductByID") is PRODUCT_SERVICE.method("get_product_by_id")

    def test_unknown_method_is_unimplemented(self) -> None:
        with pytest.raises(RpcError) as exc_info:
            ORDER_SERVICE.method("CancelOrder")

        assert exc_info.value.code is StatusCode.UNIMPLEMENTED

    @pytest.mark.parametrize("name", ["order", "ORDER", "OrderService", "go.escape.ship.proto.v1.OrderService"])
    def test_get_service(self, name: str) -> None:
        assert get_service(name) is ORDER_SERVICE

    def test_get_service_unknown(self) -> None:
        with pytest.raises(KeyError, match="unknown service"):
            get_service("inventory")

    @pytest.mark.parametrize(
        ("rpc", "expected"),
        [
            ("GetKakaoLoginURL", "get_kakao_login_url"),
            ("GetProductByID", "get_product_by_id"),
            ("GetKakaoCallBack", "get_kakao_call_back"),
            ("Login", "login"),
        ],
    )
    def test_python_name(self, rpc: str, expected: str) -> None:
        assert python_name(rpc) == expected


@dataclass(frozen=True)
class Lookup(Message, package="tests.schemas"):
    id: str = proto_field(1, Kind.STRING)
    tags: tuple[str, ...] = proto_field(2, Kind.STRING, repeated=True)


class TestDescriptorChecks:
    """Declaration errors are reported when the service is defined."""

    def _service(self, *methods: MethodDescriptor) -> ServiceDescriptor:
        return ServiceDescriptor(name="Broken", package="tests.schemas", methods=methods)

    def test_path_param_must_be_a_field(self) -> None:
        with pytest.raises(SchemaError, match="path parameter"):
            self._service(MethodDescriptor("Get", Lookup, Lookup, HttpRule("GET", "/x/{missing}")))

    def test_path_param_must_be_scalar(self) -> None:
        with pytest.raises(SchemaError, match="path parameter"):
            self._service(MethodDescriptor("Get", Lookup, Lookup, HttpRule("GET", "/x/{tags}")))

    def test_get_cannot_have_body(self) -> None:
        with pytest.raises(SchemaError, match="GET cannot bind"):
            self._service(MethodDescriptor("Get", Lookup, Lookup, HttpRule("GET", "/x", body="*")))

    def test_unsupported_verb(self) -> None:
        with pytest.raises(SchemaError, match="unsupported HTTP verb"):
            self._service(MethodDescriptor("Get", Lookup, Lookup, HttpRule("FETCH", "/x")))

    def test_response_body_must_be_output_field(self) -> None:
        with pytest.raises(SchemaError, match="response_body"):
            self._service(
                MethodDescriptor(
                    "Get",
                    GetProductByIDRequest,
                    GetProductByIDResponse,
                    HttpRule("GET", "/x/{id}", response_body="item"),
                )
            )

    def test_duplicate_method(self) -> None:
        method = MethodDescriptor("Get", Lookup, Lookup, HttpRule("GET", "/x/{id}"))

        with pytest.raises(SchemaError, match="duplicate method"):
            self._service(method, method)

    def test_unimplemented_fallback(self) -> None:
        fallback = PRODUCT_SERVICE.unimplemented()

        with pytest.raises(AttributeError):
            fallback.no_such_method  # noqa: B018
        assert callable(fallback.get_product_by_id)
