"""
Shared fixtures: an in-memory stand-in for the RPC node that decodes submitted
transactions and applies the few instructions these workflows emit.
"""

import os
import sys
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

# Add project root to path FIRST
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import Transaction
from solders.transaction_status import TransactionConfirmationStatus

from constants import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    JUPITER_PROGRAM_ID,
    MINT_ACCOUNT_SIZE,
    MINT_DECIMALS_OFFSET,
    TOKEN_PROGRAM_ID,
)
from swap_program import SWAP_STATE_DISCRIMINATOR, instruction_discriminator
from wallet import Provider, Wallet

SWAP_PROGRAM_ID = Pubkey.from_string("Fg6PaFpoGXkYsidMpWTK6W2BeZ7FEfcYkg476zPFsLnS")
RENT_LAMPORTS = 1_461_600


def make_account(data: bytes = b"", executable: bool = False, owner: Pubkey = TOKEN_PROGRAM_ID):
    return SimpleNamespace(data=bytes(data), executable=executable, owner=owner, lamports=RENT_LAMPORTS)


class FakeCluster:
    def __init__(self):
        self.accounts = {
            SWAP_PROGRAM_ID: make_account(b"\x02" + bytes(35), executable=True),
            JUPITER_PROGRAM_ID: make_account(b"\x02" + bytes(35), executable=True),
        }
        self.sent = []
        self.statuses = {}

        self.client = MagicMock()
        self.client.get_account_info = AsyncMock(side_effect=self._get_account_info)
        self.client.get_minimum_balance_for_rent_exemption = AsyncMock(
            return_value=SimpleNamespace(value=RENT_LAMPORTS)
        )
        self.client.get_latest_blockhash = AsyncMock(
            return_value=SimpleNamespace(value=SimpleNamespace(blockhash=Hash.default()))
        )
        self.client.send_raw_transaction = AsyncMock(side_effect=self._send_raw_transaction)
        self.client.get_signature_statuses = AsyncMock(side_effect=self._get_signature_statuses)
        self.client.close = AsyncMock()

    async def _get_account_info(self, pubkey, *args, **kwargs):
        return SimpleNamespace(value=self.accounts.get(pubkey))

    async def _send_raw_transaction(self, raw, opts=None):
        tx = Transaction.from_bytes(raw)
        self.sent.append(tx)
        self._apply(tx)
        return SimpleNamespace(value=tx.signatures[0])

    async def _get_signature_statuses(self, sigs, *args, **kwargs):
        default = SimpleNamespace(err=None, confirmation_status=TransactionConfirmationStatus.Confirmed)
        return SimpleNamespace(value=[self.statuses.get(s, default) for s in sigs])

    def _apply(self, tx: Transaction) -> None:
        keys = tx.message.account_keys
        for cix in tx.message.instructions:
            program = keys[cix.program_id_index]
            accts = [keys[i] for i in cix.accounts]
            data = bytes(cix.data)
            if program == TOKEN_PROGRAM_ID and data[0] == 0:
                buf = bytearray(MINT_ACCOUNT_SIZE)
                buf[MINT_DECIMALS_OFFSET] = data[1]
                buf[MINT_DECIMALS_OFFSET + 1] = 1  # is_initialized
                self.accounts[accts[0]] = make_account(buf)
            elif program == ASSOCIATED_TOKEN_PROGRAM_ID:
                self.accounts[accts[1]] = make_account(bytes(165))
            elif program == SWAP_PROGRAM_ID and data[:8] == instruction_discriminator("initialize"):
                self.accounts[accts[0]] = make_account(SWAP_STATE_DISCRIMINATOR + data[8:72], owner=SWAP_PROGRAM_ID)


@pytest.fixture
def cluster():
    return FakeCluster()


@pytest.fixture
def wallet():
    return Wallet(Keypair())


@pytest.fixture
def provider(cluster, wallet):
    return Provider(cluster.client, wallet, confirm_timeout=1.0, poll_interval=0.0)


@pytest.fixture
def bare_provider(cluster):
    """Provider with a live connection but no signing wallet."""
    return Provider(cluster.client, None, confirm_timeout=1.0, poll_interval=0.0)
