import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_LISTEN_PORT = int(os.getenv("WG_VLAN_LISTEN_PORT", 51820))
DEFAULT_NETWORK = os.getenv("WG_VLAN_NETWORK", "10.20.30.1/24")
DEFAULT_KEEP_ALIVE = int(os.getenv("WG_VLAN_KEEP_ALIVE", 25))

DEFAULT_SERVER_NAME = os.getenv("WG_VLAN_SERVER_NAME", "wg-vlan")
DEFAULT_INTERFACE = os.getenv("WG_VLAN_INTERFACE", "wg0")

DEFAULT_CONFIG_PATH: Path = Path(os.getenv("WG_VLAN_CONFIG", "vlan.yaml"))
CONFIGS_DIR: Path = Path(os.getenv("WG_VLAN_CONFIGS_DIR", "configs"))

# standalone `generate` defaults
DEFAULT_GENERATE_ADDRESS = os.getenv("WG_VLAN_GENERATE_ADDRESS", "10.22.6.1/24")

LOG_LEVEL = os.getenv("WG_VLAN_LOG_LEVEL", "INFO").upper()
