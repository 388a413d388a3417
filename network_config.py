"""Network configuration mapping: network name -> {dependency name: address}."""
import json
import logging
import os
import stat
import tempfile
from typing import Dict

from errors import ConfigError

logger = logging.getLogger(__name__)

NetworkMapping = Dict[str, Dict[str, str]]


def load_network_config(path: str) -> NetworkMapping:
    if not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        try:
            doc = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"{path} is not valid JSON: {e}") from e
    if not isinstance(doc, dict):
        raise ConfigError(f"{path} must hold a JSON object keyed by network name")
    return doc


def write_network_config(path: str, mapping: NetworkMapping) -> None:
    """Write to a temp file beside `path`, then rename over it."""
    directory = os.path.dirname(os.path.abspath(path))
    with tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=directory, prefix=".networks-", suffix=".tmp", delete=False
    ) as f:
        tmp_path = f.name
        try:
            json.dump(mapping, f, indent=2, sort_keys=True)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
            if os.path.exists(path):
                os.chmod(tmp_path, stat.S_IMODE(os.stat(path).st_mode))
        except BaseException:
            f.close()
            os.unlink(tmp_path)
            raise
    os.replace(tmp_path, path)


def set_network_section(path: str, network: str, addresses: Dict[str, str]) -> NetworkMapping:
    """Replace `network` wholesale; other sections are carried over untouched. Last writer wins."""
    mapping = load_network_config(path)
    mapping[network] = dict(addresses)
    write_network_config(path, mapping)
    logger.info("Updated %s [%s]: %s", path, network, ", ".join(f"{k}={v}" for k, v in sorted(addresses.items())))
    return mapping
