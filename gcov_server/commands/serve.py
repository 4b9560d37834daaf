import asyncio
import socket

import structlog
import typer
import uvicorn

from gcov_server.core.config import AppConfig
from gcov_server.core.config import ServerConfig
from gcov_server.core.container import Container
from gcov_server.core.database import connect_and_setup
from gcov_server.core.decorators import handle_errors
from gcov_server.core.errors import BindError
from gcov_server.web.app import create_app
from gcov_server.web.rendering import TemplateRenderer

logger = structlog.get_logger('serve')
app = typer.Typer()


def bind_socket(config: ServerConfig) -> socket.socket:
    """
    Bind the listening socket before the server starts.

    Raises:
        BindError: the address is unavailable or cannot be resolved.
    """
    host, port = config.host, config.port
    try:
        infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM, flags=socket.AI_PASSIVE)
        family, _, _, _, address = infos[0]
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind(address)
        except OSError:
            sock.close()
            raise
    except OSError as e:
        raise BindError(f"Failed to bind {config.bind_address}: {e}") from e
    sock.set_inheritable(True)
    return sock


async def serve(config: AppConfig) -> None:
    renderer = TemplateRenderer()
    renderer.load()

    engine = await connect_and_setup(config.database)
    try:
        sock = bind_socket(config.server)
    except BindError:
        await engine.dispose()
        raise

    container = Container(config, engine, renderer)
    server = uvicorn.Server(
        uvicorn.Config(create_app(container), log_config=None, access_log=False),
    )
    logger.info('Listening', address=config.server.bind_address)
    await server.serve(sockets=[sock])


@app.callback(invoke_without_command=True)
@handle_errors
def main():
    """Run the coverage ingestion and dashboard server."""
    config = AppConfig.load()
    asyncio.run(serve(config))
