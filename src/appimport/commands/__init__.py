"""
appimport converts application manifests, such as Heroku's app.json, into Kubernetes objects or reusable templates
and imports them into a cluster.
"""

from enum import Enum
import sys
from loguru import logger
from typer import Option
from appimport.tools.typer import new_typer


app = new_typer(help=__doc__)


from . import appjson  # noqa: F401,E402


class LogLevel(str, Enum):
    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@app.callback()
def _callback(
    log_level: LogLevel = Option(LogLevel.INFO, "--log-level", "-l", help="The log level to use."),
) -> None:
    logger.remove()
    logger.add(sys.stderr, level=log_level.name)


def main() -> None:
    app()
