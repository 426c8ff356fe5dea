import argparse
import logging
import sys
from typing import List, Optional
from uuid import UUID

from .config import StoreSettings
from .exceptions import WalletStoreError
from .factory import load_store
from .records import RecordProbe
from .store import S3Store

logger = logging.getLogger("wallet_store.cli")

# Keep boto noise out of operator output
logging.getLogger("botocore").setLevel(logging.WARNING)
logging.getLogger("urllib3").setLevel(logging.WARNING)


def _describe(data: bytes) -> str:
    probe = RecordProbe.parse(data)
    if probe is None:
        return f"<{len(data)} bytes, not JSON>"
    return f"{probe.uuid}  {probe.name}"


def _parse_uuid(value: str) -> Optional[UUID]:
    try:
        return UUID(value)
    except ValueError:
        return None


def _wallet_id(store: S3Store, wallet: str) -> UUID:
    wallet_id = _parse_uuid(wallet)
    data = store.retrieve_wallet_by_id(wallet_id) if wallet_id else store.retrieve_wallet(wallet)
    probe = RecordProbe.parse(data)
    if probe is None or probe.id is None:
        raise WalletStoreError(f"Wallet {wallet} has no valid uuid")
    return probe.id


def cmd_wallets(store: S3Store, args: argparse.Namespace) -> int:
    lines = sorted(_describe(data) for data in store.retrieve_wallets())
    for line in lines:
        print(line)
    if not lines:
        print("No wallets found.")
    return 0


def cmd_accounts(store: S3Store, args: argparse.Namespace) -> int:
    wallet_id = _wallet_id(store, args.wallet)
    lines = sorted(_describe(data) for data in store.retrieve_accounts(wallet_id))
    for line in lines:
        print(line)
    if not lines:
        print("No accounts found.")
    return 0


def cmd_location(store: S3Store, args: argparse.Namespace) -> int:
    print(store.location)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wallet-store", description="Inspect an S3 wallet store")
    parser.add_argument("--bucket", help="Bucket name (default: derived from credentials)")
    parser.add_argument("--path", help="Path inside the bucket")
    parser.add_argument("--region", help="S3 region")
    parser.add_argument("--endpoint", help="URL of an S3-compatible service")
    parser.add_argument("--passphrase", help="Passphrase the store was written with")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("wallets", help="List all wallets").set_defaults(func=cmd_wallets)
    accounts = subparsers.add_parser("accounts", help="List the accounts of a wallet")
    accounts.add_argument("wallet", help="Wallet name or id")
    accounts.set_defaults(func=cmd_accounts)
    subparsers.add_parser("location", help="Show bucket and path").set_defaults(func=cmd_location)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        settings = StoreSettings.from_env(
            bucket=args.bucket,
            path=args.path,
            region=args.region,
            endpoint=args.endpoint,
            passphrase=args.passphrase,
        )
        store = load_store(settings)
        return args.func(store, args)
    except WalletStoreError as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
