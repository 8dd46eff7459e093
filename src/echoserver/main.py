import click
from .config import Config, INACTIVITY_TIMEOUT
from .logging_config import configure_logging
from .server import Server

LOG_LEVELS = ["critical", "error", "warning", "info", "debug"]


@click.command(context_settings={"auto_envvar_prefix": "ECHOSERVER"})
@click.option("--port", type=str, default="4000", show_default=True, help="TCP port to listen on.")
@click.option("--host", type=str, default=None, help="Address to bind. Defaults to all interfaces.")
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False),
    default=".",
    show_default=True,
    help="Directory for the per-client client_<address>.log files.",
)
@click.option(
    "--timeout",
    "inactivity_timeout",
    type=float,
    default=INACTIVITY_TIMEOUT,
    show_default=True,
    help="Seconds of silence before a client is disconnected.",
)
@click.option(
    "--timeout-graceful-shutdown",
    type=float,
    default=None,
    help="Maximum seconds to wait for open connections on shutdown.",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS),
    default="info",
    show_default=True,
    help="Server log level.",
)
def main(port, host, log_dir, inactivity_timeout, timeout_graceful_shutdown, log_level):
    """Line-oriented TCP echo server with a small command set."""
    configure_logging(log_level)
    config = Config(
        host=host,
        port=port,
        timeout_graceful_shutdown=timeout_graceful_shutdown,
        inactivity_timeout=inactivity_timeout,
        log_dir=log_dir,
    )
    Server(config).run()
