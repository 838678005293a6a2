from pathlib import Path
import sys
from typing import Optional

from loguru import logger
from typer import Argument, Context, Option
import yaml

from certpolicy.config import WatchNamespaceError, get_watch_namespaces
from certpolicy.resolver import DiscoveryError, ResolverError

from . import GlobalOptions, app


@app.command()
def get(
    ctx: Context,
    manifest: Path = Argument(..., help="The JSON or YAML manifest of the object, or '-' to read from stdin."),
    namespace: Optional[str] = Option(
        None,
        "--namespace",
        "-n",
        help="The namespace to look up namespaced objects in. Defaults to the watch namespace, if there is exactly "
        "one, or 'default' otherwise.",
    ),
) -> None:
    """
    Retrieve the live object for a manifest from the cluster and print it as YAML.
    """

    options: GlobalOptions = ctx.obj
    config = options.load_config()

    try:
        data = sys.stdin.buffer.read() if str(manifest) == "-" else manifest.read_bytes()
    except OSError as exc:
        logger.error("Unable to read manifest '{}': {}", manifest, exc)
        sys.exit(1)
    if namespace is None:
        namespace = _default_namespace()

    controller = options.create_context()
    resolver = controller.resolver(strict_scope=config.strict_scope, timeout=config.request_timeout)
    try:
        instance = resolver.get(data, namespace)
    except DiscoveryError as exc:
        logger.critical("Unable to discover the resources served by the API server: {}", exc)
        sys.exit(1)
    except ResolverError as exc:
        logger.error("{}", exc)
        sys.exit(1)

    if instance is None:
        logger.info("Object does not exist in the cluster.")
        return

    print(yaml.safe_dump(instance))


def _default_namespace() -> str:
    try:
        namespaces = get_watch_namespaces()
    except WatchNamespaceError:
        namespaces = []

    if len(namespaces) == 1:
        return namespaces[0]

    logger.warning("No single watch namespace configured, using namespace 'default'.")
    return "default"
