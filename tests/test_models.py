import copy

import pytest

from wg_vlan.exceptions import (
    AddressOverlapError,
    AggregateValidationError,
    DuplicateNameError,
    EmptyKeyError,
    EmptyNameError,
    InvalidCIDRError,
    InvalidNameError,
    InvalidKeyEncodingError,
    KeyMismatchError,
    MissingFieldError,
    OutOfRangeError,
)
from wg_vlan.keys import generate_preshared_key
from wg_vlan.models import VLAN, VLANClient, VLANServer
from wg_vlan.wireguard import add_client

from .vectors import ALICE_PRIVATE, ALICE_PUBLIC, BOB_PRIVATE, BOB_PUBLIC


def _errors_at(error: AggregateValidationError, position: str) -> list:
    return [e for p, e in error.issues if p == position]


def test_valid_vlan(vlan: VLAN) -> None:
    add_client(vlan, "a")
    add_client(vlan, "b")
    warnings, error = vlan.validate()
    assert warnings == []
    assert error is None


def test_global_warnings(vlan: VLAN) -> None:
    vlan.keep_alive = 0
    vlan.public_endpoint = None
    warnings, error = vlan.validate()
    assert warnings == ["keep-alive is not set", "public endpoint not set"]
    assert error is None


def test_server_errors_are_aggregated() -> None:
    vlan = VLAN(server=VLANServer(peer_name="", listen_port=0, network="10.20.30.1", private_key=ALICE_PRIVATE))
    _, error = vlan.validate()
    assert isinstance(error, AggregateValidationError)
    kinds = [type(e) for e in _errors_at(error, "server")]
    assert kinds == [EmptyNameError, MissingFieldError, InvalidCIDRError]
    assert all(m.startswith("server: ") for m in error.messages)
    assert str(error).startswith("validation failed: server: name not set")


def test_server_key_mismatch(vlan: VLAN) -> None:
    vlan.server.public_key = BOB_PUBLIC
    _, error = vlan.validate()
    assert [type(e) for e in error.errors] == [KeyMismatchError]


def test_server_missing_private_key(vlan: VLAN) -> None:
    vlan.server.private_key = ""
    _, error = vlan.validate()
    assert [type(e) for e in error.errors] == [EmptyKeyError]


def test_client_errors_are_positioned(vlan: VLAN) -> None:
    add_client(vlan, "a")
    vlan.clients.append(VLANClient(peer_name="", network="nope", preshared_key=generate_preshared_key()))
    _, error = vlan.validate()
    kinds = [type(e) for e in _errors_at(error, "client[1]")]
    assert kinds == [EmptyNameError, InvalidCIDRError, EmptyKeyError]
    assert _errors_at(error, "client[0]") == []
    assert "client[1]: client keys both unset" in error.messages


def test_client_key_mismatch(vlan: VLAN) -> None:
    vlan.clients.append(VLANClient(
        peer_name="a", network="10.20.30.2", private_key=BOB_PRIVATE, public_key=ALICE_PUBLIC,
        preshared_key=generate_preshared_key(),
    ))
    _, error = vlan.validate()
    assert [type(e) for e in error.errors] == [KeyMismatchError]


def test_public_key_only_client_is_valid(vlan: VLAN) -> None:
    """
    A mismatch is only checked when both keys are present
    """
    vlan.clients.append(VLANClient(
        peer_name="phone", network="10.20.30.2", public_key=BOB_PUBLIC,
        preshared_key=generate_preshared_key(),
    ))
    warnings, error = vlan.validate()
    assert error is None
    assert warnings == ["client[0]: client private key unset; will not be able to generate client config"]


def test_public_key_only_client_with_garbage_key(vlan: VLAN) -> None:
    vlan.clients.append(VLANClient(peer_name="phone", network="10.20.30.2", public_key="garbage!"))
    _, error = vlan.validate()
    assert [type(e) for e in error.errors] == [InvalidKeyEncodingError]


def test_missing_preshared_key_is_a_warning(vlan: VLAN) -> None:
    add_client(vlan, "a")
    vlan.clients[0].preshared_key = ""
    warnings, error = vlan.validate()
    assert error is None
    assert warnings == ["client[0]: client preshared key unset; this is unsafe"]


def test_duplicate_names(vlan: VLAN) -> None:
    add_client(vlan, "a")
    add_client(vlan, "b")
    add_client(vlan, "c")
    vlan.clients[2].peer_name = "a"
    _, error = vlan.validate()
    assert [(p, type(e)) for p, e in error.issues] == [("client[2]", DuplicateNameError)]


def test_names_are_case_sensitive(vlan: VLAN) -> None:
    add_client(vlan, "laptop")
    add_client(vlan, "Laptop")
    _, error = vlan.validate()
    assert error is None


def test_overlapping_clients(vlan: VLAN) -> None:
    psk = generate_preshared_key()
    vlan.clients += [
        VLANClient(peer_name="a", network="10.20.30.8/29", public_key=ALICE_PUBLIC, preshared_key=psk),
        VLANClient(peer_name="b", network="10.20.30.10", public_key=BOB_PUBLIC, preshared_key=psk),
    ]
    _, error = vlan.validate()
    assert [(p, type(e)) for p, e in error.issues] == [("client[1]", AddressOverlapError)]


def test_client_claiming_server_address(vlan: VLAN) -> None:
    vlan.clients.append(VLANClient(
        peer_name="a", network="10.20.30.1", public_key=BOB_PUBLIC, preshared_key=generate_preshared_key(),
    ))
    _, error = vlan.validate()
    assert [type(e) for e in error.errors] == [AddressOverlapError]


def test_client_outside_vlan_is_a_warning(vlan: VLAN) -> None:
    vlan.clients.append(VLANClient(
        peer_name="a", network="192.168.1.5", public_key=BOB_PUBLIC, preshared_key=generate_preshared_key(),
    ))
    warnings, error = vlan.validate()
    assert error is None
    assert any("outside of the VLAN network 10.20.30.0/24" in w for w in warnings)


def test_validate_does_not_mutate(vlan: VLAN) -> None:
    vlan.server.public_key = ""
    vlan.clients.append(VLANClient(peer_name="a", network="10.20.30.2", private_key=BOB_PRIVATE))
    before = copy.deepcopy(vlan)
    vlan.validate()
    assert vlan == before


def test_normalize_fills_public_keys() -> None:
    vlan = VLAN(
        server=VLANServer(peer_name="hub", listen_port=51820, network="10.20.30.1/24", private_key=ALICE_PRIVATE),
        clients=[
            VLANClient(peer_name="a", network="10.20.30.2", private_key=BOB_PRIVATE),
            VLANClient(peer_name="b", network="10.20.30.3", private_key="broken"),
        ],
    )
    assert vlan.normalize() is vlan
    assert vlan.server.public_key == ALICE_PUBLIC
    assert vlan.clients[0].public_key == BOB_PUBLIC
    assert vlan.clients[1].public_key == ""


def test_find_client(vlan: VLAN) -> None:
    client = add_client(vlan, "a")
    assert vlan.find_client("a") is client
    assert vlan.find_client("A") is None


@pytest.mark.parametrize("network, address", [
    ("10.20.30.1/24", "10.20.30.1"),
    ("10.20.30.0/24", "10.20.30.0"),
])
def test_server_address_is_the_cidr_address(network: str, address: str) -> None:
    server = VLANServer(network=network)
    assert str(server.address) == address
    assert str(server.subnet) == "10.20.30.0/24"


@pytest.mark.parametrize("port", [-1, 65536])
def test_listen_port_out_of_range(vlan: VLAN, port: int) -> None:
    vlan.server.listen_port = port
    _, error = vlan.validate()
    assert [type(e) for e in _errors_at(error, "server")] == [OutOfRangeError]


@pytest.mark.parametrize("keep_alive", [-5, 65536])
def test_keep_alive_out_of_range(vlan: VLAN, keep_alive: int) -> None:
    vlan.keep_alive = keep_alive
    _, error = vlan.validate()
    assert [type(e) for e in _errors_at(error, "vlan")] == [OutOfRangeError]
    assert error.messages == [f"vlan: keep-alive out of range: {keep_alive}"]


@pytest.mark.parametrize("name", ["../evil", "a/b", "a\\b", ".."])
def test_client_name_with_path_separator(vlan: VLAN, name: str) -> None:
    vlan.clients.append(VLANClient(
        peer_name=name,
        network="10.20.30.2",
        private_key=BOB_PRIVATE,
        preshared_key=generate_preshared_key(),
    ))
    _, error = vlan.validate()
    assert [type(e) for e in _errors_at(error, "client[0]")] == [InvalidNameError]
