"""
Resolve Kubernetes manifests to live cluster state and derive the hub cluster configuration, the way the certificate
policy controller does.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
import platform
import sys
from typing import Optional

from kubernetes.config.config_exception import ConfigException
from loguru import logger
from typer import Context, Option

from certpolicy import __version__
from certpolicy.config import ControllerConfig
from certpolicy.context import ControllerContext
from certpolicy.tools.typer import new_typer


app = new_typer(help=__doc__)


class LogLevel(str, Enum):
    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass
class GlobalOptions:
    """
    Options shared by all commands, set in the application callback.
    """

    config_file: Path | None
    in_cluster: bool
    kubeconfig: Path | None
    context: str | None

    def load_config(self) -> ControllerConfig:
        return ControllerConfig.load(self.config_file)

    def create_context(self) -> ControllerContext:
        try:
            return ControllerContext.create(
                in_cluster=self.in_cluster, kubeconfig=self.kubeconfig, context=self.context
            )
        except ConfigException as exc:
            logger.error("Unable to load the Kubernetes client configuration: {}", exc)
            sys.exit(1)


from . import get  # noqa: F401,E402
from . import hub  # noqa: F401,E402


@app.callback()
def _callback(
    ctx: Context,
    log_level: LogLevel = Option(LogLevel.INFO, "--log-level", "-l", help="The log level to use."),
    config_file: Optional[Path] = Option(
        None, "--config", help=f"The configuration file. Defaults to the nearest '{ControllerConfig.FILENAME}'."
    ),
    in_cluster: bool = Option(False, help="Use the in-cluster Kubernetes configuration."),
    kubeconfig: Optional[Path] = Option(
        None, help="The kubeconfig file to use. Defaults to KUBECONFIG or ~/.kube/config."
    ),
    context: Optional[str] = Option(None, help="The kubeconfig context to use."),
) -> None:
    logger.remove()
    logger.add(sys.stderr, level=log_level.name)

    logger.debug("Controller version: {}", __version__)
    logger.debug("Python version: {}", platform.python_version())
    logger.debug("OS/Arch: {}/{}", sys.platform, platform.machine())

    ctx.obj = GlobalOptions(config_file=config_file, in_cluster=in_cluster, kubeconfig=kubeconfig, context=context)
