"""
Client-side view of the swap program: instruction encoding for `initialize`,
decoding of the program-owned SwapState account, and a read-only program handle.
"""
import hashlib
from dataclasses import dataclass
from typing import Tuple

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from constants import SWAP_STATE_SIZE, SYS_PROGRAM_ID
from errors import VerificationError

SWAP_ENTRYPOINTS: Tuple[str, ...] = ("initialize", "swap_tokens")


def instruction_discriminator(name: str) -> bytes:
    """Anchor sighash: first 8 bytes of sha256("global:<name>")."""
    return hashlib.sha256(f"global:{name}".encode()).digest()[:8]


def account_discriminator(name: str) -> bytes:
    return hashlib.sha256(f"account:{name}".encode()).digest()[:8]


SWAP_STATE_DISCRIMINATOR = account_discriminator("SwapState")


@dataclass(frozen=True)
class ProgramHandle:
    program_id: Pubkey
    entrypoints: Tuple[str, ...] = ()
    executable: bool = True
    data_len: int = 0


@dataclass(frozen=True)
class SwapState:
    admin: Pubkey
    referral: Pubkey

    @classmethod
    def decode(cls, data: bytes) -> "SwapState":
        if len(data) < SWAP_STATE_SIZE:
            raise ValueError(f"SwapState needs {SWAP_STATE_SIZE} bytes, got {len(data)}")
        if bytes(data[:8]) != SWAP_STATE_DISCRIMINATOR:
            raise ValueError("Account data does not start with the SwapState discriminator")
        return cls(
            admin=Pubkey.from_bytes(bytes(data[8:40])),
            referral=Pubkey.from_bytes(bytes(data[40:72])),
        )


def initialize_instruction(program_id: Pubkey, swap_account: Pubkey, admin: Pubkey, referral: Pubkey) -> Instruction:
    data = instruction_discriminator("initialize") + bytes(admin) + bytes(referral)
    metas = [
        AccountMeta(pubkey=swap_account, is_signer=False, is_writable=True),   # created in the same tx
        AccountMeta(pubkey=admin, is_signer=True, is_writable=True),
        AccountMeta(pubkey=referral, is_signer=True, is_writable=True),
        AccountMeta(pubkey=SYS_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    return Instruction(program_id=program_id, accounts=metas, data=data)


async def fetch_swap_state(provider, address: Pubkey) -> SwapState:
    info = await provider.get_account_info(address)
    if info is None:
        raise VerificationError(f"Swap account {address} not found")
    try:
        return SwapState.decode(info.data)
    except ValueError as e:
        raise VerificationError(f"Swap account {address} holds no SwapState: {e}") from e
