import sys
from typing import Optional

from loguru import logger
from typer import Context, Option

from certpolicy.config import NoNamespaceError, get_operator_namespace
from certpolicy.hub import HubConfigError

from . import GlobalOptions, app


@app.command("hub-config")
def hub_config(
    ctx: Context,
    secret_namespace: Optional[str] = Option(None, help="Namespace of the hub kubeconfig secret."),
    secret_name: Optional[str] = Option(None, help="Name of the hub kubeconfig secret."),
    lease_check: bool = Option(
        False,
        help="Skip loading the hub configuration when not running in a cluster, as the lease controller would.",
    ),
) -> None:
    """
    Derive the hub cluster configuration from the hub kubeconfig secret and print the server it points to.
    """

    options: GlobalOptions = ctx.obj
    config = options.load_config()

    if lease_check:
        try:
            operator_namespace = get_operator_namespace()
        except NoNamespaceError:
            logger.info("Skipping lease; not running in a cluster.")
            return
        logger.info("Reporting status from namespace '{}'.", operator_namespace)

    controller = options.create_context()
    try:
        hub = controller.hub.load(
            secret_namespace or config.hub.namespace,
            secret_name or config.hub.name,
            timeout=config.request_timeout,
        )
    except HubConfigError as exc:
        logger.error("{}", exc)
        sys.exit(1)

    print(f"cluster: {config.cluster_name}")
    print(f"server: {hub.host}")
