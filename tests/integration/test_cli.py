"""
CLI integration tests using Click's test runner.

Commands run end-to-end through the real client; only the HTTP layer is
replaced by an httpx.MockTransport, so no network access is needed.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Callable, Optional
from unittest.mock import patch

import httpx
import pytest
from click.testing import CliRunner

from qubic_rpc.cli import VERSION, cli
from qubic_rpc.keys.wallet import Wallet
from qubic_rpc.rpc.client import QubicRpcClient
from qubic_rpc.rpc.network import Network
from qubic_rpc.rpc.retry import RetryConfig
from qubic_rpc.utils import base64_decode, base64_encode

SEED = "c" * 55
STATUS = {"lastProcessedTick": {"tickNumber": 2000, "epoch": 151}, "skippedTicks": [{"startTick": 1, "endTick": 2}]}

Handler = Callable[[httpx.Request], httpx.Response]


async def _no_sleep(delay: float) -> None:
    return None


def fake_factory(handler: Handler, requests: Optional[list] = None):
    """Stand-in for commands.common.make_client bound to a mock handler."""

    def recording(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return handler(request)

    def make_client(network=None, retry_preset=None, settings=None) -> QubicRpcClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(recording))
        config = RetryConfig.preset(retry_preset) if retry_preset else RetryConfig(max_attempts=1)
        return QubicRpcClient(
            Network.parse(network) if network else Network.MAINNET,
            http_client=http,
            retry_config=config,
            sleep=_no_sleep,
        )

    return make_client


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def qubic_home(tmp_path: Path) -> Path:
    """Create a temporary ~/.qubic-rpc directory."""
    home = tmp_path / ".qubic-rpc"
    home.mkdir()
    return home


class TestVersionAndHelp:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert VERSION in result.output

    def test_banner_and_help(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "Q U B I C" in result.output
        for command in ("status", "health", "query", "send", "wallet"):
            assert command in result.output


class TestNetworkCommands:
    def test_status(self, runner: CliRunner) -> None:
        handler = lambda request: httpx.Response(200, json=STATUS)
        with patch("qubic_rpc.commands.common.make_client", fake_factory(handler)):
            result = runner.invoke(cli, ["status", "--network", "testnet"])
        assert result.exit_code == 0, result.output
        assert "testnet" in result.output
        assert "2000" in result.output
        assert "151" in result.output

    def test_status_failure_exits_nonzero(self, runner: CliRunner) -> None:
        handler = lambda request: httpx.Response(400, text="nope")
        with patch("qubic_rpc.commands.common.make_client", fake_factory(handler)):
            result = runner.invoke(cli, ["status"])
        assert result.exit_code == 1
        assert "ERROR" in result.output
        assert "[fatal]" in result.output

    def test_ping(self, runner: CliRunner) -> None:
        handler = lambda request: httpx.Response(200, json=STATUS)
        with patch("qubic_rpc.commands.common.make_client", fake_factory(handler)):
            result = runner.invoke(cli, ["ping"])
        assert result.exit_code == 0, result.output
        assert "ms" in result.output

    def test_health_reports_each_network(self, runner: CliRunner) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "rpc.qubic.org":
                return httpx.Response(503)
            return httpx.Response(200, json=STATUS)

        with patch("qubic_rpc.commands.common.make_client", fake_factory(handler)):
            result = runner.invoke(cli, ["health", "-n", "mainnet", "-n", "testnet"])
        assert result.exit_code == 0, result.output
        assert "unhealthy" in result.output
        assert "testnet" in result.output

    def test_health_all_down(self, runner: CliRunner) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with patch("qubic_rpc.commands.common.make_client", fake_factory(handler)):
            result = runner.invoke(cli, ["health", "-n", "mainnet"])
        assert result.exit_code == 1
        assert "unhealthy" in result.output

    @pytest.mark.parametrize(
        "args",
        [["status"], ["ping"], ["health"], ["query", "--contract", "1", "--input-type", "2"]],
    )
    @pytest.mark.parametrize(
        "variable, value",
        [("QUBIC_NETWORK", "devnet"), ("QUBIC_RETRY_PRESET", "sometimes"), ("QUBIC_TIMEOUT", "soon")],
    )
    def test_bad_environment_setting_is_reported(
        self, runner: CliRunner, qubic_home: Path, args: list, variable: str, value: str
    ) -> None:
        with patch("qubic_rpc.config.QUBIC_ENV", qubic_home / ".env"):
            with patch.dict(os.environ, {variable: value}):
                result = runner.invoke(cli, args)
        assert result.exit_code == 1
        assert "ERROR" in result.output
        assert not isinstance(result.exception, ValueError)


class TestQueryCommand:
    def test_fallback_chain(self, runner: CliRunner) -> None:
        requests: list = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "rpc.qubic.org":
                return httpx.Response(400)
            return httpx.Response(200, json={"responseData": base64_encode(b"\xca\xfe")})

        with patch("qubic_rpc.commands.common.make_client", fake_factory(handler, requests)):
            result = runner.invoke(
                cli,
                ["query", "--contract", "1", "--input-type", "2", "--data", "0x0102", "-n", "mainnet", "-n", "testnet"],
            )
        assert result.exit_code == 0, result.output
        assert "cafe" in result.output
        assert "mainnet (fatal) -> testnet (success)" in result.output
        assert [r.url.host for r in requests] == ["rpc.qubic.org", "testnet-rpc.qubic.org"]
        assert json.loads(requests[0].content)["requestData"] == base64_encode(b"\x01\x02")

    def test_bad_hex(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["query", "--contract", "1", "--input-type", "2", "--data", "xyz"])
        assert result.exit_code == 1
        assert "--data" in result.output

    def test_all_networks_fail(self, runner: CliRunner) -> None:
        handler = lambda request: httpx.Response(400)
        with patch("qubic_rpc.commands.common.make_client", fake_factory(handler)):
            result = runner.invoke(cli, ["query", "--contract", "1", "--input-type", "2", "-n", "testnet"])
        assert result.exit_code == 1
        assert "testnet: fatal" in result.output


class TestWalletCommands:
    def test_wallet_new_prints_seed(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["wallet", "new"])
        assert result.exit_code == 0
        assert "Seed:" in result.output
        assert "Address:" in result.output

    def test_wallet_new_save(self, runner: CliRunner, qubic_home: Path) -> None:
        env_path = qubic_home / ".env"
        with patch("qubic_rpc.config.QUBIC_ENV", env_path):
            result = runner.invoke(cli, ["wallet", "new", "--save"])
        assert result.exit_code == 0, result.output
        content = env_path.read_text(encoding="utf-8")
        seed = content.strip().split("=", 1)[1]
        assert len(seed) == 55
        assert Wallet.from_seed(seed).address in result.output
        assert seed not in result.output

    def test_wallet_address(self, runner: CliRunner, qubic_home: Path) -> None:
        with patch("qubic_rpc.keys.wallet.QUBIC_ENV", qubic_home / ".env"):
            with patch.dict(os.environ, {"QUBIC_SEED": SEED}):
                result = runner.invoke(cli, ["wallet", "address"])
        assert result.exit_code == 0
        assert Wallet.from_seed(SEED).address in result.output

    def test_wallet_address_without_wallet(self, runner: CliRunner, qubic_home: Path) -> None:
        with patch("qubic_rpc.keys.wallet.QUBIC_ENV", qubic_home / ".env"):
            with patch.dict(os.environ, {}):
                os.environ.pop("QUBIC_SEED", None)
                os.environ.pop("QUBIC_PRIVATE_KEY", None)
                result = runner.invoke(cli, ["wallet", "address"])
        assert result.exit_code == 1
        assert "No wallet configured" in result.output


class TestSendCommand:
    def _handler(self, broadcasts: list) -> Handler:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/v1/status":
                return httpx.Response(200, json=STATUS)
            if request.url.path == "/v1/broadcast-transaction":
                broadcasts.append(json.loads(request.content))
                return httpx.Response(200, json={"peersBroadcasted": 2})
            return httpx.Response(404)

        return handler

    def test_send_broadcasts_signed_transfer(self, runner: CliRunner, qubic_home: Path) -> None:
        broadcasts: list = []
        receiver = Wallet.from_seed("d" * 55)
        with patch("qubic_rpc.keys.wallet.QUBIC_ENV", qubic_home / ".env"):
            with patch.dict(os.environ, {"QUBIC_SEED": SEED}):
                with patch("qubic_rpc.commands.common.make_client", fake_factory(self._handler(broadcasts))):
                    result = runner.invoke(cli, ["send", "--to", receiver.address, "--amount", "25"])

        assert result.exit_code == 0, result.output
        assert len(broadcasts) == 1
        raw = base64_decode(broadcasts[0]["encodedTransaction"])
        assert raw[32:64] == receiver.public_key
        assert int.from_bytes(raw[64:72], "little") == 25
        assert int.from_bytes(raw[72:80], "little") == 2010
        assert "Peers:   2" in result.output

    def test_send_dry_run(self, runner: CliRunner, qubic_home: Path) -> None:
        broadcasts: list = []
        receiver = Wallet.from_seed("d" * 55)
        with patch("qubic_rpc.keys.wallet.QUBIC_ENV", qubic_home / ".env"):
            with patch.dict(os.environ, {"QUBIC_SEED": SEED}):
                with patch("qubic_rpc.commands.common.make_client", fake_factory(self._handler(broadcasts))):
                    result = runner.invoke(
                        cli, ["send", "--to", receiver.address, "--amount", "25", "--dry-run"]
                    )
        assert result.exit_code == 0, result.output
        assert broadcasts == []
        assert "Dry run" in result.output

    def test_send_zero_amount(self, runner: CliRunner, qubic_home: Path) -> None:
        receiver = Wallet.from_seed("d" * 55)
        with patch("qubic_rpc.keys.wallet.QUBIC_ENV", qubic_home / ".env"):
            with patch.dict(os.environ, {"QUBIC_SEED": SEED}):
                with patch("qubic_rpc.commands.common.make_client", fake_factory(self._handler([]))):
                    result = runner.invoke(cli, ["send", "--to", receiver.address, "--amount", "0"])
        assert result.exit_code == 1
        assert "Amount" in result.output

    def test_send_bad_address(self, runner: CliRunner, qubic_home: Path) -> None:
        with patch("qubic_rpc.keys.wallet.QUBIC_ENV", qubic_home / ".env"):
            with patch.dict(os.environ, {"QUBIC_SEED": SEED}):
                result = runner.invoke(cli, ["send", "--to", "???", "--amount", "1"])
        assert result.exit_code == 1
        assert "Invalid address" in result.output
