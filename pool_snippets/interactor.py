"""
Liquidity pool contract interactor.

Deploys and upgrades the contract, issues the lend and borrow tokens and
queries the pool's read-only fields. Every operation is one moapy
invocation; the deployed address and deploy transaction are cached in
moapy's local data store.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from web3 import Web3

from .config import SnippetConfig
from .errors import ContractNotDeployedError
from .moapy import CommandResult, MoapyRunner
from .network import ProxyClient

logger = logging.getLogger(__name__)

TX_HASH_EXPRESSION = "data['emitted_tx']['hash']"
TX_ADDRESS_EXPRESSION = "data['emitted_tx']['address']"


@dataclass
class DeployResult:
    address: str
    transaction: str
    command: CommandResult


@dataclass
class QueryResult:
    function: str
    command: CommandResult
    values: List[Any] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.command.ok

    @property
    def returncode(self) -> int:
        return self.command.returncode

    def as_text(self) -> List[str]:
        """Decode each returned value to text, falling back to its raw form"""
        decoded = []
        for value in self.values:
            if isinstance(value, dict):
                hex_value = value.get("hex")
                if hex_value:
                    try:
                        decoded.append(Web3.to_text(hexstr=hex_value))
                        continue
                    except (UnicodeDecodeError, ValueError):
                        pass
                decoded.append(str(value.get("number", hex_value or "")))
            else:
                decoded.append(str(value))
        return decoded


def parse_query_output(stdout: str) -> List[Any]:
    try:
        values = json.loads(stdout)
    except ValueError:
        return []
    if isinstance(values, list):
        return values
    return [values]


class LiquidityPoolInteractor:
    def __init__(self, config: SnippetConfig, runner: Optional[MoapyRunner] = None,
                 proxy: Optional[ProxyClient] = None, address: Optional[str] = None):
        self.config = config
        self.runner = runner or MoapyRunner(config.moapy_bin)
        self.proxy = proxy
        self.address: Optional[str] = address or self.runner.data_load(config.address_key)
        self.deploy_transaction: Optional[str] = self.runner.data_load(config.deploy_transaction_key)

        if address:
            logger.info(f"Using contract {address} on {config.network} (given explicitly)")
        elif self.address:
            logger.info(f"Using contract {self.address} on {config.network}")
        else:
            logger.info(f"No contract address stored under '{config.address_key}'")

    def _require_address(self) -> str:
        if not self.address:
            raise ContractNotDeployedError(
                f"No contract address stored under '{self.config.address_key}'. Run deploy first."
            )
        return self.address

    def _signing_args(self) -> List[str]:
        return [
            "--recall-nonce",
            f"--pem={self.config.pem}",
            f"--gas-limit={self.config.gas_limit}",
        ]

    def _network_args(self) -> List[str]:
        return [
            f"--proxy={self.config.proxy}",
            f"--chain={self.config.chain_id}",
            "--send",
        ]

    # --- Deployment ---

    def deploy(self) -> DeployResult:
        """Deploy the contract and cache its address and deploy transaction"""
        cfg = self.config
        logger.info(f"Deploying {cfg.project} to {cfg.network}...")
        command = self.runner.run(
            ["contract", "deploy", f"--project={cfg.project}", *self._signing_args(),
             f"--outfile={cfg.deploy_outfile}", "--arguments", cfg.nft_ticker_full,
             *self._network_args()],
            check=True,
        )
        if command.stdout:
            print(command.stdout.rstrip("\n"))

        transaction = self.runner.data_parse(cfg.deploy_outfile, TX_HASH_EXPRESSION)
        address = self.runner.data_parse(cfg.deploy_outfile, TX_ADDRESS_EXPRESSION)

        self.runner.data_store(cfg.address_key, address)
        self.runner.data_store(cfg.deploy_transaction_key, transaction)
        self.address = address
        self.deploy_transaction = transaction

        print("")
        print(f"Smart contract address: {address}")
        logger.info(f"Deploy transaction: {transaction}")
        return DeployResult(address=address, transaction=transaction, command=command)

    def upgrade(self) -> CommandResult:
        """Upgrade the deployed contract with the current project build"""
        cfg = self.config
        address = self._require_address()
        logger.info(f"Upgrading contract {address}...")
        return self.runner.run(
            ["contract", "upgrade", address, f"--project={cfg.project}", *self._signing_args(),
             f"--outfile={cfg.upgrade_outfile}", "--arguments", cfg.nft_ticker_full,
             *self._network_args()],
            check=True,
        )

    # --- SC calls ---

    def _issue(self, prefix: str) -> CommandResult:
        cfg = self.config
        address = self._require_address()
        logger.info(f"Issuing token with prefix {prefix} on {address}")
        return self.runner.run(
            ["contract", "call", address, *self._signing_args(), "--function=issue",
             "--arguments", cfg.nft_ticker, cfg.nft_ticker_full, prefix,
             f"--value={cfg.issue_cost}", *self._network_args()]
        )

    def issue_lend(self) -> CommandResult:
        return self._issue(self.config.lend_prefix)

    def issue_borrow(self) -> CommandResult:
        return self._issue(self.config.borrow_prefix)

    # --- Queries ---

    def query(self, function: str) -> QueryResult:
        """Run a read-only contract query"""
        address = self._require_address()
        command = self.runner.run(
            ["contract", "query", address, f"--function={function}", f"--proxy={self.config.proxy}"]
        )
        values = parse_query_output(command.stdout) if command.ok else []
        return QueryResult(function=function, command=command, values=values)

    def get_pool_asset(self) -> QueryResult:
        return self.query("poolAsset")

    def get_lend_token(self) -> QueryResult:
        return self.query("lendToken")

    def get_borrow_token(self) -> QueryResult:
        return self.query("borrowToken")

    # --- Transaction status ---

    def deploy_status(self, wait: bool = False, timeout: float = 120) -> str:
        """Look up the status of the cached deploy transaction"""
        if not self.deploy_transaction:
            raise ContractNotDeployedError(
                f"No deploy transaction stored under '{self.config.deploy_transaction_key}'"
            )
        proxy = self.proxy or ProxyClient(self.config.proxy)
        if wait:
            return proxy.wait_for_transaction(self.deploy_transaction, timeout=timeout)
        return proxy.get_transaction_status(self.deploy_transaction)
