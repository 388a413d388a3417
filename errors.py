class ProvisionError(Exception):
    """Base class for failures that abort a provisioning run."""


class ConfigError(ProvisionError):
    """No usable signing wallet, bad key material, or an authority nobody can sign for."""


class RPCError(ProvisionError):
    """Submission, confirmation or query failure reported by the cluster."""


class VerificationError(ProvisionError):
    """On-chain state is not observable (or not as expected) after confirmation."""
