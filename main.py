# main.py
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from solders.pubkey import Pubkey

import config
from deploy import deploy
from errors import ConfigError, ProvisionError
from fork import fork
from swap_program import fetch_swap_state
from wallet import Provider, coerce_pubkey

logger = logging.getLogger("swap_provision")


def _setup_logging() -> None:
    level = getattr(logging, config.LOG_LEVEL, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Deploy the swap program state and provision a local fork")
    sub = parser.add_subparsers(dest="command", required=True)

    d = sub.add_parser("deploy", help="create and initialize a new swap account")
    d.add_argument("--admin", type=coerce_pubkey, default=None, help="admin authority (default: wallet)")
    d.add_argument("--referral", type=coerce_pubkey, default=None, help="referral authority (default: wallet)")
    d.add_argument("--program-id", default=None, help="swap program (default: SWAP_PROGRAM_ID)")
    d.add_argument("--lenient", action="store_true", help="only warn if the program account is not observable")

    f = sub.add_parser("fork", help="attach the router, mint a substitute USDC, update the network config")
    f.add_argument("--network", default=config.FORK_NETWORK)
    f.add_argument("--config", default=config.NETWORK_CONFIG_PATH)

    i = sub.add_parser("inspect", help="print the admin/referral stored in a swap account")
    i.add_argument("swap_account", type=coerce_pubkey)
    return parser


async def _run(args: argparse.Namespace, provider: Provider) -> None:
    if args.command == "deploy":
        wallet = provider.require_wallet()
        raw_program_id = args.program_id or config.SWAP_PROGRAM_ID
        try:
            program_id = coerce_pubkey(raw_program_id)
        except ValueError as e:
            raise ConfigError(f"Invalid swap program id {raw_program_id!r}: {e}") from e
        admin: Pubkey = args.admin or wallet.pubkey
        referral: Pubkey = args.referral or wallet.pubkey  # same wallet for testing
        result = await deploy(
            provider,
            admin,
            referral,
            program_id=program_id,
            strict=config.STRICT_VERIFY and not args.lenient,
        )
        print(f"signature={result.signature}")
        print(f"swap_account={result.swap_account}")
    elif args.command == "fork":
        result = await fork(provider, args.config, args.network)
        print(f"jupiter={result.router.program_id}")
        print(f"usdc={result.mint}")
        print(f"usdc_token_account={result.token_account}")
    elif args.command == "inspect":
        state = await fetch_swap_state(provider, args.swap_account)
        print(f"admin={state.admin}")
        print(f"referral={state.referral}")


async def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        async with Provider.from_env() as provider:
            await _run(args, provider)
    except ProvisionError as e:
        logger.error("%s failed: %s: %s", args.command, type(e).__name__, e)
        return 1
    except Exception:
        logger.exception("%s failed with an unexpected error", args.command)
        return 1
    return 0


def cli() -> None:
    _setup_logging()
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
