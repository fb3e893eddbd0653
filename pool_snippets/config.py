"""
Network profiles for the liquidity pool contract.

Each profile mirrors one of the interaction environments (devnet, local
testnet). Values can be overridden through environment variables or a
.env file.
"""

import os
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import find_dotenv, load_dotenv
from web3 import Web3

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

PROJECT_PATH = "../../liquidity_pool"

NFT_TICKER = "0x57555344"  # WUSD
NFT_TICKER_FULL = "0x575553442d666239313333"  # WUSD-fb9133
LEND_PREFIX = "0x4c"  # L
BORROW_PREFIX = "0x42"  # B

ISSUE_COST = 5000000000000000000

GAS_LIMIT = 250000000

ADDRESS_KEY = "address-testnet"
DEPLOY_TRANSACTION_KEY = "deployTransaction-testnet"

DEPLOY_OUTFILE = "deploy.json"
UPGRADE_OUTFILE = "upgrade.json"


@dataclass(frozen=True)
class NetworkProfile:
    name: str
    pem: str
    owner_address: str
    proxy: str
    chain_id: str


PROFILES: Dict[str, NetworkProfile] = {
    "devnet": NetworkProfile(
        name="devnet",
        pem="$HOME/pems/dev.pem",
        owner_address="0x9bc31161f8c0cad0af2beafe08168fc57108fc054338e8016ca5a173e0a0e3df",
        proxy="https://devnet-api.numbat.com",
        chain_id="D",
    ),
    "local": NetworkProfile(
        name="local",
        pem="$HOME/pems/local.pem",
        owner_address="0x0139472eff6886771a982f3083da5d421f24c29181e63888228dc81ca60d69e1",
        proxy="http://localhost:7950",
        chain_id="local-testnet",
    ),
}


@dataclass(frozen=True)
class SnippetConfig:
    """Everything a single interaction needs to build its moapy command line"""
    network: str
    pem: str
    owner_address: str
    proxy: str
    chain_id: str
    project: str = PROJECT_PATH
    moapy_bin: str = "moapy"
    nft_ticker: str = NFT_TICKER
    nft_ticker_full: str = NFT_TICKER_FULL
    lend_prefix: str = LEND_PREFIX
    borrow_prefix: str = BORROW_PREFIX
    issue_cost: int = ISSUE_COST
    gas_limit: int = GAS_LIMIT
    address_key: str = ADDRESS_KEY
    deploy_transaction_key: str = DEPLOY_TRANSACTION_KEY
    deploy_outfile: str = DEPLOY_OUTFILE
    upgrade_outfile: str = UPGRADE_OUTFILE


def get_profile(name: str) -> NetworkProfile:
    """Return the built-in profile called ``name``"""
    try:
        return PROFILES[name]
    except KeyError:
        known = ", ".join(sorted(PROFILES))
        raise ConfigurationError(f"Unknown network '{name}'. Known networks: {known}") from None


def expand_path(path: str) -> str:
    return os.path.expanduser(os.path.expandvars(path))


def to_hex_argument(value: str) -> str:
    """
    Normalise a byte-string argument to the 0x-prefixed hex form moapy expects.
    Plain text such as ``WUSD`` is encoded; hex input is passed through.
    """
    value = value.strip()
    if not value:
        raise ConfigurationError("Empty byte-string argument")
    if value.lower().startswith("0x"):
        digits = value[2:]
        if not digits or len(digits) % 2 or any(c not in "0123456789abcdefABCDEF" for c in digits):
            raise ConfigurationError(f"Invalid hex argument: {value}")
        return "0x" + digits.lower()
    return Web3.to_hex(text=value)


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'") from None


def load_config(network: str = "devnet", env_file: Optional[str] = None) -> SnippetConfig:
    """Build the configuration for ``network`` and apply environment overrides"""
    # .env is looked up from the working directory the command runs in
    load_dotenv(env_file or find_dotenv(usecwd=True))
    profile = get_profile(network)

    config = SnippetConfig(
        network=profile.name,
        pem=expand_path(os.getenv("MOAPY_PEM", profile.pem)),
        owner_address=os.getenv("MOAPY_OWNER_ADDRESS", profile.owner_address),
        proxy=os.getenv("MOAPY_PROXY", profile.proxy).rstrip("/"),
        chain_id=os.getenv("MOAPY_CHAIN_ID", profile.chain_id),
        project=os.getenv("PROJECT_PATH", PROJECT_PATH),
        moapy_bin=os.getenv("MOAPY_BIN", "moapy"),
        nft_ticker=to_hex_argument(os.getenv("NFT_TICKER", NFT_TICKER)),
        nft_ticker_full=to_hex_argument(os.getenv("NFT_TICKER_FULL", NFT_TICKER_FULL)),
        issue_cost=_int_from_env("ISSUE_COST", ISSUE_COST),
        gas_limit=_int_from_env("GAS_LIMIT", GAS_LIMIT),
    )

    if config.gas_limit <= 0:
        raise ConfigurationError(f"GAS_LIMIT must be positive, got {config.gas_limit}")
    if config.issue_cost < 0:
        raise ConfigurationError(f"ISSUE_COST must not be negative, got {config.issue_cost}")

    logger.debug(f"Loaded {config.network} config: proxy={config.proxy} chain={config.chain_id}")
    return config
