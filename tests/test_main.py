import json
from unittest.mock import patch

import pytest

import main
from wallet import Provider


@pytest.mark.asyncio
async def test_deploy_without_wallet_exits_1(cluster, bare_provider, caplog):
    with patch.object(Provider, "from_env", return_value=bare_provider):
        code = await main.main(["deploy"])

    assert code == 1
    assert "ConfigError" in caplog.text
    assert cluster.sent == []
    cluster.client.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_deploy_success_exits_0(cluster, provider, capsys):
    with patch.object(Provider, "from_env", return_value=provider):
        code = await main.main(["deploy", "--program-id", "Fg6PaFpoGXkYsidMpWTK6W2BeZ7FEfcYkg476zPFsLnS"])

    assert code == 0
    out = capsys.readouterr().out
    assert f"signature={cluster.sent[0].signatures[0]}" in out


@pytest.mark.asyncio
async def test_fork_then_inspect_failure(cluster, provider, tmp_path, capsys):
    path = tmp_path / "networks.json"
    with patch.object(Provider, "from_env", return_value=provider):
        assert await main.main(["fork", "--config", str(path), "--network", "localnet"]) == 0
        # a mint is not a swap account
        mint = json.loads(path.read_text())["localnet"]["usdc"]
        assert await main.main(["inspect", mint]) == 1

    assert "usdc=" + mint in capsys.readouterr().out


@pytest.mark.asyncio
async def test_unexpected_error_exits_1(provider, caplog):
    with patch.object(Provider, "from_env", return_value=provider), \
            patch("main.fork", side_effect=RuntimeError("boom")):
        assert await main.main(["fork"]) == 1
    assert "unexpected error" in caplog.text


@pytest.mark.asyncio
async def test_invalid_program_id_exits_1_with_log(cluster, provider, caplog, monkeypatch):
    monkeypatch.setattr("config.SWAP_PROGRAM_ID", "not-a-pubkey")
    with patch.object(Provider, "from_env", return_value=provider):
        assert await main.main(["deploy"]) == 1

    assert "Invalid swap program id" in caplog.text
    assert cluster.sent == []
