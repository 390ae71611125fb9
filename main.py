import sys

import click

from vaultcheck import log
from vaultcheck.chain import ChainClient
from vaultcheck.config import Config
from vaultcheck.errors import VaultCheckError
from vaultcheck.scenario import Scenario


@click.command()
@click.option("--env-file", type=click.Path(exists=True, dir_okay=False), default=None,
              help="dotenv file to load instead of ./.env")
@click.option("--apy", type=float, default=None,
              help="Yield figure to report. Defaults to VAULT_APY or the DeFi Llama pool lookup.")
def main(env_file, apy):
    """Deposit into and withdraw from a vault on a forked chain, checking share mint/burn."""
    try:
        config = Config.from_env(env_file)
        chain = ChainClient(config)
        state = Scenario(config, chain, apy=apy).run()
    except VaultCheckError as e:
        log.error(f"Error: {e}")
        sys.exit(1)

    if not state.ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
