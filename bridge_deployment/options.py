from pathlib import Path

import click

from bridge_deployment.constants import ARTIFACTS_DIR, DEFAULT_CONFIG_FILEPATH

config_file_option = click.option(
    "--config-file",
    "-c",
    help="YAML file with the per-network bridge configuration",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    default=DEFAULT_CONFIG_FILEPATH,
    show_default=True,
)

network_name_option = click.option(
    "--network-name",
    "-n",
    help="Name of the network entry in the config file; defaults to '<ecosystem>:<network>'",
    type=str,
    required=False,
)

artifacts_dir_option = click.option(
    "--artifacts-dir",
    "-a",
    help="Directory holding the per-network deployment artifacts",
    type=click.Path(file_okay=False, path_type=Path),
    default=ARTIFACTS_DIR,
    show_default=True,
)

autosign_option = click.option(
    "--autosign",
    help="Sign transactions without asking for confirmation",
    is_flag=True,
    default=False,
)
