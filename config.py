# config.py
import os, json
from typing import Optional

from dotenv import load_dotenv

from errors import ConfigError

load_dotenv()  # loads .env from CWD by default

# ---------- Helpers ----------
def _getenv_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    val = val.strip().lower()
    return val in ("1", "true", "t", "yes", "y", "on")

def _getenv_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)).strip())
    except ValueError:
        return default

def _read_key_file(path: str) -> str:
    path = os.path.expanduser(path)
    if not os.path.isfile(path):
        raise ConfigError(f"Keypair file {path} does not exist")
    with open(path, "r", encoding="utf-8") as f:
        return f.read().strip()

def wallet_key_material() -> Optional[str]:
    """
    Returns the configured keypair text (normally a JSON byte array), or None when no
    wallet is configured. Accepts WALLET_PRIVATE_KEY_JSON (array or file path), legacy
    WALLET_SECRET_KEY as CSV/space ints, or ANCHOR_WALLET pointing at a keypair file.
    Read at use time so a bad path surfaces as ConfigError inside the run.
    """
    kp_json = os.getenv("WALLET_PRIVATE_KEY_JSON", "").strip()
    if kp_json:
        # Allow either a JSON array string or a path to a file
        if kp_json.startswith("["):
            return kp_json
        return _read_key_file(kp_json)

    legacy = os.getenv("WALLET_SECRET_KEY", "").strip()
    if legacy:
        # Accept comma- or space-separated ints; validation happens in Wallet.from_json
        parts = [p for p in legacy.replace(",", " ").split() if p]
        if all(p.isdigit() for p in parts):
            return json.dumps([int(p) for p in parts])
        return legacy

    anchor_wallet = os.getenv("ANCHOR_WALLET", "").strip()
    if anchor_wallet:
        return _read_key_file(anchor_wallet)

    return None

# ---------- RPC ----------
SOLANA_RPC_URL: str = (
    os.getenv("SOLANA_RPC_URL")
    or os.getenv("ANCHOR_PROVIDER_URL")
    or "https://api.devnet.solana.com"
).strip()

COMMITMENT: str = os.getenv("COMMITMENT", "confirmed").strip().lower()
CONFIRM_TIMEOUT_SECS: float = _getenv_float("CONFIRM_TIMEOUT_SECS", 60.0)
CONFIRM_POLL_SECS: float = _getenv_float("CONFIRM_POLL_SECS", 0.5)

# ---------- Programs ----------
SWAP_PROGRAM_ID: str = os.getenv(
    "SWAP_PROGRAM_ID",
    "Fg6PaFpoGXkYsidMpWTK6W2BeZ7FEfcYkg476zPFsLnS",
).strip()

# Deployment verification: a missing program account aborts the run unless disabled
STRICT_VERIFY: bool = _getenv_bool("STRICT_VERIFY", True)

# ---------- Fork / network mapping ----------
NETWORK_CONFIG_PATH: str = os.getenv("NETWORK_CONFIG_PATH", "networks.json").strip()
FORK_NETWORK: str = os.getenv("FORK_NETWORK", "localnet").strip()

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").strip().upper()
