"""Unit tests for path templates and route ordering."""

from __future__ import annotations

from escape_contracts.core.routing import join_path, specificity, split_path


class TestSpecificity:
    """Literal segments win over parameters."""

    def test_literal_before_param(self) -> None:
        paths = ["/products/{id}", "/products/featured", "/products"]

        assert sorted(paths, key=specificity) == ["/products/featured", "/products/{id}", "/products"]

    def test_deeper_param_route_first(self) -> None:
        paths = ["/products/{id}", "/products/{id}/options"]

        assert sorted(paths, key=specificity)[0] == "/products/{id}/options"


class TestJoinPath:
    def test_prefix(self) -> None:
        assert join_path("/rpc", "/go.escape.ship.proto.v1.OrderService/InsertOrder") == (
            "/rpc/go.escape.ship.proto.v1.OrderService/InsertOrder"
        )

    def test_empty_prefix(self) -> None:
        assert join_path("", "/products/{id}") == "/products/{id}"

    def test_slashes_collapse(self) -> None:
        assert join_path("/api/", "//v1/order") == "/api/v1/order"

    def test_split(self) -> None:
        assert split_path("/a//b/") == ["a", "b"]
