import asyncio
import json
import logging
from typing import Iterable, Optional, Sequence, Union

from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.core import RPCException, RPCNoResultException
from solana.rpc.types import TxOpts

from solders.account import Account
from solders.hash import Hash as SHash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction
from solders.transaction_status import TransactionConfirmationStatus

import config
from constants import ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID
from errors import ConfigError, RPCError

logger = logging.getLogger(__name__)

# Transport and node-side failures that surface from solana-py
_RPC_FAILURES = (SolanaRpcException, RPCException, RPCNoResultException, OSError, asyncio.TimeoutError)

# Statuses that satisfy each requested commitment level
_ACCEPTED_STATUSES = {
    "processed": (
        TransactionConfirmationStatus.Processed,
        TransactionConfirmationStatus.Confirmed,
        TransactionConfirmationStatus.Finalized,
    ),
    "confirmed": (
        TransactionConfirmationStatus.Confirmed,
        TransactionConfirmationStatus.Finalized,
    ),
    "finalized": (TransactionConfirmationStatus.Finalized,),
}


def _rpc_error_text(e: Exception) -> str:
    # SolanaRpcException carries its message in error_msg; str() of it is empty
    return str(getattr(e, "error_msg", None) or e)


def coerce_pubkey(x: Union[str, Pubkey]) -> Pubkey:
    """Accept str (base58) or Pubkey; reject Hash/bytes to avoid subtle bugs."""
    if isinstance(x, Pubkey):
        return x
    if isinstance(x, str):
        return Pubkey.from_string(x)
    if isinstance(x, (bytes, bytearray, memoryview)):
        raise TypeError("Expected base58 string or Pubkey; got raw bytes")
    if isinstance(x, SHash):
        raise TypeError("Expected Pubkey; got solders.Hash (likely a blockhash).")
    raise TypeError(f"Unsupported pubkey-like type: {type(x)}")


def find_associated_token_address(owner: Pubkey, mint: Pubkey, token_program_id: Pubkey = TOKEN_PROGRAM_ID) -> Pubkey:
    """Derive the Associated Token Account PDA."""
    seeds = [bytes(owner), bytes(token_program_id), bytes(mint)]
    ata, _ = Pubkey.find_program_address(seeds, ASSOCIATED_TOKEN_PROGRAM_ID)
    return ata


class Wallet:
    """Signing keypair that pays for and co-signs every transaction of a run."""

    def __init__(self, kp: Keypair) -> None:
        self.kp = kp
        self._pubkey_cache = kp.pubkey()

    @classmethod
    def from_json(cls, raw: str) -> "Wallet":
        try:
            arr = json.loads(raw)
            if isinstance(arr, str):
                arr = json.loads(arr)
            kp = Keypair.from_bytes(bytes(arr))
        except (ValueError, TypeError) as e:
            raise ConfigError(f"Wallet key material is not a valid 64-byte keypair array: {e}") from e
        return cls(kp)

    @classmethod
    def from_env(cls) -> Optional["Wallet"]:
        raw = config.wallet_key_material()
        if not raw:
            return None
        return cls.from_json(raw)

    @property
    def pubkey(self) -> Pubkey:
        return self._pubkey_cache

    @property
    def pubkey_str(self) -> str:
        return str(self._pubkey_cache)


class Provider:
    """
    Explicit connection + wallet context handed to every provisioning step.

    All calls are sequential round-trips; nothing here retries. Any transport or
    node-side failure is re-raised as RPCError with the original as its cause.
    """

    def __init__(
        self,
        client: AsyncClient,
        wallet: Optional[Wallet] = None,
        *,
        commitment: str = "confirmed",
        confirm_timeout: float = 60.0,
        poll_interval: float = 0.5,
    ) -> None:
        if commitment not in _ACCEPTED_STATUSES:
            raise ConfigError(f"Unsupported commitment level: {commitment!r}")
        self.client = client
        self.wallet = wallet
        self.commitment = commitment
        self.confirm_timeout = confirm_timeout
        self.poll_interval = poll_interval
        self.tx_count = 0

    @classmethod
    def from_env(cls) -> "Provider":
        wallet = Wallet.from_env()
        return cls(
            AsyncClient(config.SOLANA_RPC_URL),
            wallet,
            commitment=config.COMMITMENT,
            confirm_timeout=config.CONFIRM_TIMEOUT_SECS,
            poll_interval=config.CONFIRM_POLL_SECS,
        )

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def require_wallet(self) -> Wallet:
        if self.wallet is None:
            raise ConfigError(
                "No signing wallet configured. Set WALLET_PRIVATE_KEY_JSON, WALLET_SECRET_KEY or ANCHOR_WALLET."
            )
        return self.wallet

    # ------------ RPC helpers ------------
    async def get_account_info(self, pubkey: Pubkey) -> Optional[Account]:
        try:
            resp = await self.client.get_account_info(pubkey)
        except _RPC_FAILURES as e:
            raise RPCError(f"getAccountInfo failed for {pubkey}: {_rpc_error_text(e)}") from e
        return resp.value

    async def minimum_balance_for_rent_exemption(self, size: int) -> int:
        try:
            resp = await self.client.get_minimum_balance_for_rent_exemption(size)
        except _RPC_FAILURES as e:
            raise RPCError(f"getMinimumBalanceForRentExemption failed for {size} bytes: {_rpc_error_text(e)}") from e
        return resp.value

    async def _get_latest_blockhash(self) -> SHash:
        try:
            resp = await self.client.get_latest_blockhash()
        except _RPC_FAILURES as e:
            raise RPCError(f"getLatestBlockhash failed: {_rpc_error_text(e)}") from e
        return resp.value.blockhash

    # ------------ Transactions ------------
    async def send_and_confirm(
        self,
        instructions: Sequence[Instruction],
        extra_signers: Iterable[Keypair] = (),
    ) -> Signature:
        """
        Build a legacy transaction paid by the wallet, sign it with the wallet plus
        `extra_signers`, submit it once and wait for the configured commitment.
        """
        wallet = self.require_wallet()
        signers = [wallet.kp]
        for kp in extra_signers:
            if kp.pubkey() != wallet.pubkey and all(kp.pubkey() != s.pubkey() for s in signers):
                signers.append(kp)

        bh = await self._get_latest_blockhash()
        msg = Message.new_with_blockhash(list(instructions), wallet.pubkey, bh)
        required = msg.account_keys[: msg.header.num_required_signatures]
        by_key = {kp.pubkey(): kp for kp in signers}
        missing = [str(pk) for pk in required if pk not in by_key]
        if missing:
            raise ConfigError(f"No keypair available to sign for: {', '.join(missing)}")
        signed_tx = Transaction([by_key[pk] for pk in required], msg, bh)

        try:
            resp = await self.client.send_raw_transaction(
                bytes(signed_tx),
                opts=TxOpts(skip_preflight=False, preflight_commitment=self.commitment),
            )
        except _RPC_FAILURES as e:
            raise RPCError(f"Transaction submission failed: {_rpc_error_text(e)}") from e
        self.tx_count += 1
        sig = resp.value
        logger.debug("Submitted transaction %s", sig)

        await self.confirm(sig)
        return sig

    async def confirm(self, sig: Signature) -> None:
        """
        Poll getSignatureStatuses until the tx reaches the configured commitment.
        Raises RPCError if the tx failed on-chain or the deadline passes.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.confirm_timeout
        accepted = _ACCEPTED_STATUSES[self.commitment]
        while True:
            try:
                resp = await self.client.get_signature_statuses([sig])
            except _RPC_FAILURES as e:
                raise RPCError(f"getSignatureStatuses failed for {sig}: {_rpc_error_text(e)}") from e
            st = (resp.value or [None])[0]
            if st is not None:
                if st.err is not None:
                    raise RPCError(f"Transaction {sig} failed on-chain: {st.err}")
                if st.confirmation_status in accepted:
                    logger.debug("Transaction %s reached %s", sig, self.commitment)
                    return
            if loop.time() >= deadline:
                raise RPCError(f"Transaction {sig} not {self.commitment} within {self.confirm_timeout:.0f}s")
            await asyncio.sleep(self.poll_interval)
