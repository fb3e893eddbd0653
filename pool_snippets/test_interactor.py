#!/usr/bin/env python3
"""
Tests for the liquidity pool interactor
Checks the exact moapy command lines built for each operation
"""

import json
import pytest
from unittest.mock import MagicMock, call

from pool_snippets.config import SnippetConfig
from pool_snippets.errors import ContractNotDeployedError, MoapyCommandError
from pool_snippets.interactor import LiquidityPoolInteractor, QueryResult, parse_query_output
from pool_snippets.moapy import CommandResult, MoapyRunner

ADDRESS = "erd1qqqqqqqqqqqqqpgqpool"
TX_HASH = "5f3c0ad1e0b8"
PEM = "/home/alice/pems/local.pem"


def make_config():
    return SnippetConfig(
        network="local",
        pem=PEM,
        owner_address="0x0139472eff6886771a982f3083da5d421f24c29181e63888228dc81ca60d69e1",
        proxy="http://localhost:7950",
        chain_id="local-testnet",
    )


def make_runner(stored=None, returncode=0, stdout=""):
    stored = stored if stored is not None else {}
    runner = MagicMock(spec=MoapyRunner)
    runner.data_load.side_effect = lambda key: stored.get(key)
    runner.run.side_effect = lambda args, check=False: CommandResult(
        args=["moapy", *args], returncode=returncode, stdout=stdout
    )
    return runner


class TestConstruction:
    """Test class for loading cached state"""

    def test_loads_stored_address_and_transaction(self):
        runner = make_runner({"address-testnet": ADDRESS, "deployTransaction-testnet": TX_HASH})
        interactor = LiquidityPoolInteractor(make_config(), runner=runner)

        assert interactor.address == ADDRESS
        assert interactor.deploy_transaction == TX_HASH
        runner.data_load.assert_has_calls([call("address-testnet"), call("deployTransaction-testnet")])

    def test_nothing_stored(self):
        interactor = LiquidityPoolInteractor(make_config(), runner=make_runner())
        assert interactor.address is None
        assert interactor.deploy_transaction is None

    def test_explicit_address_skips_stored_one(self, caplog):
        runner = make_runner({"address-testnet": "erd1stored", "deployTransaction-testnet": TX_HASH})
        with caplog.at_level("INFO", logger="pool_snippets.interactor"):
            interactor = LiquidityPoolInteractor(make_config(), runner=runner, address=ADDRESS)

        assert interactor.address == ADDRESS
        assert interactor.deploy_transaction == TX_HASH
        runner.data_load.assert_called_once_with("deployTransaction-testnet")
        assert "No contract address stored" not in caplog.text
        assert ADDRESS in caplog.text


class TestDeploy:
    """Test class for deploy and upgrade"""

    def setup_method(self):
        self.runner = make_runner()
        self.runner.data_parse.side_effect = lambda file, expression: {
            "data['emitted_tx']['hash']": TX_HASH,
            "data['emitted_tx']['address']": ADDRESS,
        }[expression]
        self.interactor = LiquidityPoolInteractor(make_config(), runner=self.runner)

    def test_deploy_command_line(self):
        self.interactor.deploy()
        args, kwargs = self.runner.run.call_args
        assert args[0] == [
            "contract", "deploy", "--project=../../liquidity_pool", "--recall-nonce",
            f"--pem={PEM}", "--gas-limit=250000000", "--outfile=deploy.json",
            "--arguments", "0x575553442d666239313333",
            "--proxy=http://localhost:7950", "--chain=local-testnet", "--send",
        ]
        assert kwargs == {"check": True}

    def test_deploy_parses_and_stores(self, capsys):
        result = self.interactor.deploy()

        self.runner.data_parse.assert_has_calls([
            call("deploy.json", "data['emitted_tx']['hash']"),
            call("deploy.json", "data['emitted_tx']['address']"),
        ])
        self.runner.data_store.assert_has_calls([
            call("address-testnet", ADDRESS),
            call("deployTransaction-testnet", TX_HASH),
        ])
        assert result.address == ADDRESS
        assert result.transaction == TX_HASH
        assert self.interactor.address == ADDRESS
        assert self.interactor.deploy_transaction == TX_HASH
        assert capsys.readouterr().out == f"\nSmart contract address: {ADDRESS}\n"

    def test_deploy_shows_tool_output_before_address(self, capsys):
        self.runner.run.side_effect = lambda args, check=False: CommandResult(
            args=["moapy", *args], returncode=0, stdout="Contract address: erd1...\nTransaction sent\n"
        )
        self.interactor.deploy()
        assert capsys.readouterr().out == (
            f"Contract address: erd1...\nTransaction sent\n\nSmart contract address: {ADDRESS}\n"
        )

    def test_failed_deploy_stops_before_storing(self):
        failed = CommandResult(args=["moapy", "contract", "deploy"], returncode=1, stderr="out of gas")
        self.runner.run.side_effect = MoapyCommandError(failed)

        with pytest.raises(MoapyCommandError):
            self.interactor.deploy()

        self.runner.data_parse.assert_not_called()
        self.runner.data_store.assert_not_called()
        assert self.interactor.address is None

    def test_upgrade_command_line(self):
        self.interactor.address = ADDRESS
        self.interactor.upgrade()
        args, kwargs = self.runner.run.call_args
        assert args[0] == [
            "contract", "upgrade", ADDRESS, "--project=../../liquidity_pool", "--recall-nonce",
            f"--pem={PEM}", "--gas-limit=250000000", "--outfile=upgrade.json",
            "--arguments", "0x575553442d666239313333",
            "--proxy=http://localhost:7950", "--chain=local-testnet", "--send",
        ]
        assert kwargs == {"check": True}

    def test_upgrade_without_address(self):
        with pytest.raises(ContractNotDeployedError):
            self.interactor.upgrade()
        self.runner.run.assert_not_called()


class TestIssue:
    """Test class for the issue calls"""

    def setup_method(self):
        self.runner = make_runner({"address-testnet": ADDRESS})
        self.interactor = LiquidityPoolInteractor(make_config(), runner=self.runner)

    def expected(self, prefix):
        return [
            "contract", "call", ADDRESS, "--recall-nonce", f"--pem={PEM}",
            "--gas-limit=250000000", "--function=issue",
            "--arguments", "0x57555344", "0x575553442d666239313333", prefix,
            "--value=5000000000000000000",
            "--proxy=http://localhost:7950", "--chain=local-testnet", "--send",
        ]

    def test_issue_lend(self):
        self.interactor.issue_lend()
        assert self.runner.run.call_args[0][0] == self.expected("0x4c")

    def test_issue_borrow(self):
        self.interactor.issue_borrow()
        assert self.runner.run.call_args[0][0] == self.expected("0x42")

    def test_issue_failure_is_returned_not_raised(self):
        self.runner.run.side_effect = lambda args, check=False: CommandResult(
            args=["moapy", *args], returncode=4, stderr="tx failed"
        )
        result = self.interactor.issue_lend()
        assert result.returncode == 4
        assert self.runner.run.call_args[1] == {}

    def test_issue_without_address(self):
        interactor = LiquidityPoolInteractor(make_config(), runner=make_runner())
        with pytest.raises(ContractNotDeployedError):
            interactor.issue_borrow()


class TestQueries:
    """Test class for the read-only queries"""

    def setup_method(self):
        output = json.dumps([{"base64": "V1VTRA==", "hex": "57555344", "number": 1465209668}])
        self.runner = make_runner({"address-testnet": ADDRESS}, stdout=output)
        self.interactor = LiquidityPoolInteractor(make_config(), runner=self.runner)

    @pytest.mark.parametrize("method,function", [
        ("get_pool_asset", "poolAsset"),
        ("get_lend_token", "lendToken"),
        ("get_borrow_token", "borrowToken"),
    ])
    def test_query_command_line(self, method, function):
        result = getattr(self.interactor, method)()
        assert self.runner.run.call_args[0][0] == [
            "contract", "query", ADDRESS, f"--function={function}", "--proxy=http://localhost:7950",
        ]
        assert result.function == function
        assert result.ok

    def test_query_values_decoded(self):
        result = self.interactor.get_pool_asset()
        assert result.values[0]["hex"] == "57555344"
        assert result.as_text() == ["WUSD"]

    def test_failed_query_has_no_values(self):
        runner = make_runner({"address-testnet": ADDRESS}, returncode=1, stdout="not json")
        result = LiquidityPoolInteractor(make_config(), runner=runner).get_lend_token()
        assert not result.ok
        assert result.values == []


class TestQueryResult:
    """Test class for query output parsing"""

    def test_parse_non_json(self):
        assert parse_query_output("Error: contract not found") == []

    def test_parse_single_object(self):
        assert parse_query_output('{"hex": "4c"}') == [{"hex": "4c"}]

    def test_as_text_falls_back_to_number(self):
        command = CommandResult(args=["moapy"], returncode=0)
        result = QueryResult(function="poolAsset", command=command,
                             values=[{"hex": "ff00", "number": 65280}, "raw"])
        assert result.as_text() == ["65280", "raw"]


class TestDeployStatus:
    """Test class for the deploy transaction status lookup"""

    def test_status_uses_stored_transaction(self):
        proxy = MagicMock()
        proxy.get_transaction_status.return_value = "success"
        runner = make_runner({"address-testnet": ADDRESS, "deployTransaction-testnet": TX_HASH})
        interactor = LiquidityPoolInteractor(make_config(), runner=runner, proxy=proxy)

        assert interactor.deploy_status() == "success"
        proxy.get_transaction_status.assert_called_once_with(TX_HASH)

    def test_status_wait(self):
        proxy = MagicMock()
        proxy.wait_for_transaction.return_value = "fail"
        runner = make_runner({"deployTransaction-testnet": TX_HASH})
        interactor = LiquidityPoolInteractor(make_config(), runner=runner, proxy=proxy)

        assert interactor.deploy_status(wait=True, timeout=30) == "fail"
        proxy.wait_for_transaction.assert_called_once_with(TX_HASH, timeout=30)

    def test_status_without_transaction(self):
        interactor = LiquidityPoolInteractor(make_config(), runner=make_runner(), proxy=MagicMock())
        with pytest.raises(ContractNotDeployedError):
            interactor.deploy_status()
