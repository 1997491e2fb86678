from pathlib import Path

from wg_vlan import settings
from wg_vlan.init_server import init_vlan
from wg_vlan.keys import private_to_public
from wg_vlan.state import load_vlan

from .vectors import ALICE_PRIVATE, ALICE_PUBLIC


def test_defaults() -> None:
    vlan = init_vlan()
    assert vlan.server.peer_name == settings.DEFAULT_SERVER_NAME
    assert vlan.server.network == settings.DEFAULT_NETWORK
    assert vlan.server.listen_port == settings.DEFAULT_LISTEN_PORT
    assert vlan.server.interface == settings.DEFAULT_INTERFACE
    assert vlan.keep_alive == settings.DEFAULT_KEEP_ALIVE
    assert vlan.public_endpoint is None
    assert vlan.clients == []
    assert private_to_public(vlan.server.private_key) == vlan.server.public_key


def test_fresh_key_every_time() -> None:
    assert init_vlan().server.private_key != init_vlan().server.private_key


def test_given_private_key() -> None:
    vlan = init_vlan(private_key=ALICE_PRIVATE)
    assert vlan.server.private_key == ALICE_PRIVATE
    assert vlan.server.public_key == ALICE_PUBLIC


def test_initial_clients() -> None:
    vlan = init_vlan(network="10.20.30.1/24", clients=["a", "b"])
    assert [(c.peer_name, c.network) for c in vlan.clients] == [("a", "10.20.30.2"), ("b", "10.20.30.3")]


def test_state_path(tmp_path: Path) -> None:
    path = tmp_path / "vlan.yaml"
    vlan = init_vlan(endpoint="vpn.example.com:51820", clients=["a"], state_path=path)
    assert load_vlan(path) == vlan
