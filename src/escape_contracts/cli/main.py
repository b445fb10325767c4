"""
CLI: inspect the contracts and run a gateway.
routes / openapi / proto print what the descriptors define; serve proxies JSON
to the backends named in *_SERVICE_URL environment variables.
"""
import json
from pathlib import Path
from typing import Optional

import typer

from escape_contracts.core.config import ClientConfig, GatewayConfig, ServiceAddresses
from escape_contracts.core.observability import configure_logging
from escape_contracts.core.openapi import build_for_services
from escape_contracts.core.protogen import render_proto
from escape_contracts.schemas import SERVICES, get_service

app = typer.Typer(help="escape-contracts CLI: inspect service contracts and run the JSON gateway.")


def _write(text: str, output: Optional[Path]) -> None:
    if output is None:
        typer.echo(text)
    else:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Written: {output}")


def _services(name: Optional[str]):
    if name is None:
        return list(SERVICES)
    try:
        return [get_service(name)]
    except KeyError as exc:
        typer.echo(str(exc.args[0]), err=True)
        raise typer.Exit(1) from None


@app.callback()
def main_options(
    log_level: str = typer.Option("WARNING", "--log-level", help="DEBUG, INFO, WARNING, ERROR"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Render logs as JSON lines"),
) -> None:
    configure_logging(log_level=log_level, json_format=json_logs)


@app.command()
def routes(
    service: Optional[str] = typer.Option(None, "--service", "-s", help="Only this service (e.g. order)"),
) -> None:
    """List each method with its binary path and its HTTP route."""
    for descriptor in _services(service):
        typer.echo(descriptor.full_name)
        for method in descriptor.methods:
            typer.echo(
                f"  {method.name:<22} POST {descriptor.rpc_path(method):<60} "
                f"{method.http.verb} {method.http.path}"
            )


@app.command()
def openapi(
    service: Optional[str] = typer.Option(None, "--service", "-s", help="Only this service"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to file instead of stdout"),
    title: str = typer.Option("escape-ship API", "--title"),
) -> None:
    """OpenAPI 3 document for the gateway routes."""
    spec = build_for_services(_services(service), title=title, version="1.0.0")
    _write(json.dumps(spec, indent=2, ensure_ascii=False), output)


@app.command()
def proto(
    service: str = typer.Argument(..., help="Service key or name (account, OrderService ...)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to file instead of stdout"),
) -> None:
    """.proto source for one service, with HTTP annotations."""
    (descriptor,) = _services(service)
    _write(render_proto(descriptor), output)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind host (default GATEWAY_HOST or 127.0.0.1)"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port (default GATEWAY_PORT or 8080)"),
    production: bool = typer.Option(False, "--production", help="TLS client settings for backends"),
) -> None:
    """Run the JSON gateway in front of the backends in *_SERVICE_URL."""
    from escape_contracts.factory import create_gateway_app

    addresses = ServiceAddresses.from_env()
    if not addresses.configured():
        typer.echo(
            "No backends configured. Set ACCOUNT_SERVICE_URL, ORDER_SERVICE_URL, "
            "PAYMENT_SERVICE_URL or PRODUCT_SERVICE_URL.",
            err=True,
        )
        raise typer.Exit(1)
    config = GatewayConfig.from_env()
    factory = ClientConfig.production if production else ClientConfig.default
    gateway = create_gateway_app(addresses, config, client_config_factory=factory)
    gateway.run(host=host or config.host, port=port or config.port)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
