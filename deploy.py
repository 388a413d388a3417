# deploy.py — create and initialize a fresh swap state account, then verify the program
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import CreateAccountParams, create_account

from constants import SWAP_STATE_SIZE
from errors import ConfigError, VerificationError
from swap_program import SWAP_ENTRYPOINTS, ProgramHandle, initialize_instruction
from wallet import Provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Deployment:
    signature: Signature
    swap_account: Pubkey
    program_id: Pubkey
    program: Optional[ProgramHandle]

    @property
    def program_data_len(self) -> Optional[int]:
        return self.program.data_len if self.program else None


def _signers_for_authorities(provider: Provider, authorities: Sequence[Pubkey], authority_signers: Sequence[Keypair]) -> list:
    """Every authority must be the wallet itself or have a keypair in `authority_signers`."""
    wallet = provider.require_wallet()
    available = {kp.pubkey(): kp for kp in authority_signers}
    extra = []
    for who in authorities:
        if who == wallet.pubkey:
            continue
        kp = available.get(who)
        if kp is None:
            raise ConfigError(f"Authority {who} must co-sign initialization but no keypair was provided")
        if kp not in extra:
            extra.append(kp)
    return extra


async def deploy(
    provider: Provider,
    admin: Pubkey,
    referral: Pubkey,
    *,
    program_id: Pubkey,
    authority_signers: Sequence[Keypair] = (),
    strict: bool = True,
) -> Deployment:
    """
    One-shot deployment: system create_account + initialize(admin, referral) in a
    single transaction signed by the wallet and a newly generated swap account key.
    Nothing is retried; a failed run leaves its key pair behind unused.
    """
    wallet = provider.require_wallet()
    extra = _signers_for_authorities(provider, [admin, referral], authority_signers)

    logger.info("Deploying to program %s", program_id)
    logger.info("Deployer wallet: %s", wallet.pubkey_str)

    swap_kp = Keypair()
    swap_account = swap_kp.pubkey()

    lamports = await provider.minimum_balance_for_rent_exemption(SWAP_STATE_SIZE)
    create_ix = create_account(
        CreateAccountParams(
            from_pubkey=wallet.pubkey,
            to_pubkey=swap_account,
            lamports=lamports,
            space=SWAP_STATE_SIZE,
            owner=program_id,
        )
    )
    init_ix = initialize_instruction(program_id, swap_account, admin, referral)

    sig = await provider.send_and_confirm([create_ix, init_ix], [swap_kp, *extra])
    logger.info("Deployment successful, transaction signature: %s", sig)
    logger.info("Swap account: %s", swap_account)

    program = await verify_program(provider, program_id, strict=strict)
    return Deployment(signature=sig, swap_account=swap_account, program_id=program_id, program=program)


async def verify_program(provider: Provider, program_id: Pubkey, *, strict: bool = True) -> Optional[ProgramHandle]:
    info = await provider.get_account_info(program_id)
    if info is None:
        msg = f"Program {program_id} was referenced but no account data is observable"
        if strict:
            raise VerificationError(msg)
        logger.warning("%s (continuing, strict verification disabled)", msg)
        return None
    program = ProgramHandle(program_id, SWAP_ENTRYPOINTS, info.executable, len(info.data))
    logger.info("Program verified, data length: %d", program.data_len)
    return program
