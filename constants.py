# === Constants used across modules ===
from solders.pubkey import Pubkey

# Well-known mainnet anchors mirrored by the fork workflow
JUPITER_PROGRAM_ID = Pubkey.from_string("JUP6i4ozu5ydDCnLiMogSckDPpbtr7BJ4FtzYWkb5Rk")
USDC_MINT = Pubkey.from_string("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v")
USDC_DECIMALS = 6

# Core program IDs
SYS_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")
ASSOCIATED_TOKEN_PROGRAM_ID = Pubkey.from_string("ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL")
TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")

# Account sizes (bytes)
MINT_ACCOUNT_SIZE = 82
MINT_DECIMALS_OFFSET = 44          # COption<Pubkey> authority (36) + u64 supply (8)
SWAP_STATE_SIZE = 8 + 32 + 32      # discriminator + admin + referral

# Keys written into the network config section by a fork run
ROUTER_CONFIG_KEY = "jupiter"
STABLE_CONFIG_KEY = "usdc"
