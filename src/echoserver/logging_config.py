import datetime
import logging
import sys
import click
from .util import rfc3339

LOG_FORMAT = "[%(asctime)s] %(message)s"


class ColourizedFormatter(logging.Formatter):
    """
    Renders `[<RFC3339>] message` lines. Records may carry a `color_message` extra with the same
    %-placeholders as the plain message; it is used instead when writing to a terminal.
    """

    def __init__(self, fmt: str = LOG_FORMAT, use_colors: bool | None = None):
        if use_colors is None:
            use_colors = sys.stdout.isatty()
        self.use_colors = use_colors
        super().__init__(fmt=fmt)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        moment = datetime.datetime.fromtimestamp(record.created).astimezone()
        return rfc3339(moment)

    def formatMessage(self, record: logging.LogRecord) -> str:
        if self.use_colors and "color_message" in record.__dict__:
            record.__dict__["message"] = record.color_message % record.args
        if self.use_colors and record.levelno >= logging.WARNING:
            record.__dict__["message"] = click.style(record.__dict__["message"], fg="red")
        return super().formatMessage(record)


def configure_logging(level: str | int = logging.INFO, use_colors: bool | None = None) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColourizedFormatter(use_colors=use_colors))

    root = logging.getLogger("echoserver")
    root.handlers = [handler]
    root.setLevel(level)
    root.propagate = False

    # connect/disconnect events are always printed, whatever the level
    logging.getLogger("echoserver.access").setLevel(logging.INFO)
