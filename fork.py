# fork.py — mirror the router program and mint a substitute USDC for local testing
import logging
from dataclasses import dataclass
from typing import Optional

from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import CreateAccountParams, create_account
from spl.token.instructions import InitializeMintParams, initialize_mint

from constants import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    JUPITER_PROGRAM_ID,
    MINT_ACCOUNT_SIZE,
    MINT_DECIMALS_OFFSET,
    ROUTER_CONFIG_KEY,
    STABLE_CONFIG_KEY,
    SYS_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    USDC_DECIMALS,
)
from errors import VerificationError
from network_config import set_network_section
from swap_program import ProgramHandle
from wallet import Provider, find_associated_token_address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForkResult:
    router: ProgramHandle
    mint: Pubkey
    token_account: Pubkey
    network: str


async def attach_program(provider: Provider, program_id: Pubkey) -> ProgramHandle:
    """Bind to an already deployed program. Read-only: one account lookup, no transaction."""
    info = await provider.get_account_info(program_id)
    if info is None:
        raise VerificationError(f"Program {program_id} does not exist on this cluster")
    if not info.executable:
        logger.warning("Account %s is not marked executable", program_id)
    return ProgramHandle(program_id=program_id, executable=info.executable, data_len=len(info.data))


async def create_mint(
    provider: Provider,
    decimals: int,
    authority: Pubkey,
    freeze_authority: Optional[Pubkey] = None,
) -> Pubkey:
    if not 0 <= decimals <= 255:
        raise ValueError(f"Mint decimals must fit in a u8, got {decimals}")
    wallet = provider.require_wallet()

    mint_kp = Keypair()
    mint = mint_kp.pubkey()
    lamports = await provider.minimum_balance_for_rent_exemption(MINT_ACCOUNT_SIZE)
    ixs = [
        create_account(
            CreateAccountParams(
                from_pubkey=wallet.pubkey,
                to_pubkey=mint,
                lamports=lamports,
                space=MINT_ACCOUNT_SIZE,
                owner=TOKEN_PROGRAM_ID,
            )
        ),
        initialize_mint(
            InitializeMintParams(
                decimals=decimals,
                program_id=TOKEN_PROGRAM_ID,
                mint=mint,
                mint_authority=authority,
                freeze_authority=freeze_authority,
            )
        ),
    ]
    await provider.send_and_confirm(ixs, [mint_kp])
    return mint


async def get_mint_decimals(provider: Provider, mint: Pubkey) -> int:
    info = await provider.get_account_info(mint)
    if info is None:
        raise VerificationError(f"Mint {mint} not found")
    if len(info.data) < MINT_ACCOUNT_SIZE:
        raise VerificationError(f"Account {mint} is not a token mint ({len(info.data)} bytes)")
    return info.data[MINT_DECIMALS_OFFSET]


def _create_ata_instruction(payer: Pubkey, owner: Pubkey, mint: Pubkey, ata: Pubkey) -> Instruction:
    metas = [
        AccountMeta(pubkey=payer, is_signer=True, is_writable=True),              # payer
        AccountMeta(pubkey=ata, is_signer=False, is_writable=True),               # ATA
        AccountMeta(pubkey=owner, is_signer=False, is_writable=False),            # owner
        AccountMeta(pubkey=mint, is_signer=False, is_writable=False),             # mint
        AccountMeta(pubkey=SYS_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    return Instruction(program_id=ASSOCIATED_TOKEN_PROGRAM_ID, accounts=metas, data=b"")


async def get_or_create_associated_account(provider: Provider, mint: Pubkey, owner: Pubkey) -> Pubkey:
    ata = find_associated_token_address(owner, mint)
    if await provider.get_account_info(ata) is not None:
        logger.debug("Associated token account %s already exists", ata)
        return ata

    wallet = provider.require_wallet()
    await provider.send_and_confirm([_create_ata_instruction(wallet.pubkey, owner, mint, ata)])
    return ata


async def fork(provider: Provider, config_path: str, network: str = "localnet") -> ForkResult:
    """
    attach router -> create substitute USDC mint -> ensure wallet ATA -> rewrite config section.
    The first failing step aborts the rest; on-chain objects already created stay as they are.
    """
    wallet = provider.require_wallet()

    logger.info("Forking Jupiter program...")
    router = await attach_program(provider, JUPITER_PROGRAM_ID)
    logger.info("Jupiter program attached: %s", router.program_id)

    logger.info("Forking USDC mint...")
    mint = await create_mint(provider, USDC_DECIMALS, wallet.pubkey)
    logger.info("USDC mint forked, mint address: %s", mint)

    logger.info("Creating USDC token account...")
    token_account = await get_or_create_associated_account(provider, mint, wallet.pubkey)
    logger.info("USDC token account ready: %s", token_account)

    set_network_section(
        config_path,
        network,
        {ROUTER_CONFIG_KEY: str(router.program_id), STABLE_CONFIG_KEY: str(mint)},
    )
    return ForkResult(router=router, mint=mint, token_account=token_account, network=network)
