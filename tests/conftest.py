import pytest

from wg_vlan.init_server import init_vlan
from wg_vlan.models import VLAN

from .vectors import ALICE_PRIVATE


@pytest.fixture
def vlan() -> VLAN:
    """
    A fresh VLAN on 10.20.30.1/24 with a known server key and a public endpoint

    :return: VLAN object
    """
    return init_vlan(
        peer_name="hub",
        network="10.20.30.1/24",
        listen_port=51820,
        endpoint="vpn.example.com:51820",
        private_key=ALICE_PRIVATE,
        keep_alive=25,
    )
