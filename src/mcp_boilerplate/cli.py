import click
import uvicorn

from mcp_boilerplate.config import Settings
from mcp_boilerplate.server import BoilerplateServer
from mcp_boilerplate.utilities.logging import configure_logging, get_logger

logger = get_logger(__name__)


@click.command()
@click.option("--host", default=None, help="Host to bind to (default: MCP_SERVER__HOST or localhost)")
@click.option("--port", default=None, type=int, help="Port to listen on (default: MCP_SERVER__PORT or 4005)")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Server log level",
)
def main(host: str | None, port: int | None, log_level: str | None) -> int:
    settings = Settings()
    if host is not None:
        settings.server.host = host
    if port is not None:
        settings.server.port = port
    if log_level is not None:
        settings.logging.level = log_level.upper()  # type: ignore[assignment]

    configure_logging(settings.logging.level)
    server = BoilerplateServer(settings)

    base_url = f"http://{settings.server.host}:{settings.server.port}"
    logger.info("Starting MCP SSE server at %s", base_url)
    logger.info("Health check: %s/health", base_url)
    logger.info("SSE endpoint: %s/sse?API_KEY=<api key>", base_url)

    # uvicorn turns SIGINT/SIGTERM into a lifespan shutdown, which stops all timers.
    uvicorn.run(
        server.sse_app(),
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.logging.level.lower(),
    )
    return 0
