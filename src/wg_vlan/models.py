# src/wg_vlan/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from . import settings
from .exceptions import (
    AddressOverlapError,
    AggregateValidationError,
    DuplicateNameError,
    EmptyKeyError,
    EmptyNameError,
    InvalidNameError,
    KeyMaterialError,
    KeyMismatchError,
    MissingFieldError,
    OutOfRangeError,
    VLANError,
)
from .ipam import IPAddress, IPNetwork, parse_cidr
from .keys import decode_preshared_key, decode_public_key, private_to_public

MAX_PORT = 65535


def check_client_name(name: str) -> None:
    if not name:
        raise EmptyNameError("client name unset")
    # sert aussi de nom de fichier : <name>.conf
    if "/" in name or "\\" in name or name in (".", ".."):
        raise InvalidNameError(f"client name may not contain path separators: {name}")


@dataclass
class VLANServer:
    peer_name: str = ""
    listen_port: int = 0
    network: str = ""           # ex "10.20.30.1/24" : adresse du serveur + réseau du VLAN
    private_key: str = ""
    public_key: str = ""
    interface: str = settings.DEFAULT_INTERFACE   # "" : absent du document, wg0 par défaut
    extra: Dict[str, Any] = field(default_factory=dict)  # recopié tel quel dans [Interface]
    nested_extra: bool = field(default=False, repr=False, compare=False)

    @property
    def interface_name(self) -> str:
        return self.interface or settings.DEFAULT_INTERFACE

    def cidr(self) -> Tuple[IPAddress, IPNetwork]:
        return parse_cidr(self.network)

    @property
    def address(self) -> IPAddress:
        return self.cidr()[0]

    @property
    def subnet(self) -> IPNetwork:
        return self.cidr()[1]

    def resolve_public_key(self) -> str:
        return self.public_key or private_to_public(self.private_key)

    def validate(self) -> Tuple[List[str], List[VLANError]]:
        warnings: List[str] = []
        errors: List[VLANError] = []

        if not self.peer_name:
            errors.append(EmptyNameError("name not set"))

        if not self.listen_port:
            errors.append(MissingFieldError("listen port not set"))
        elif not 0 < self.listen_port <= MAX_PORT:
            errors.append(OutOfRangeError(f"listen port out of range: {self.listen_port}"))

        try:
            parse_cidr(self.network, require_prefix=True)
        except VLANError as e:
            errors.append(e)

        try:
            expected = private_to_public(self.private_key)
        except KeyMaterialError as e:
            errors.append(e)
        else:
            if self.public_key and self.public_key != expected:
                errors.append(KeyMismatchError(
                    f"public key mismatch: got '{self.public_key}', expected '{expected}'"
                ))

        return warnings, errors


@dataclass
class VLANClient:
    peer_name: str = ""
    network: str = ""           # ex "10.20.30.2" (route hôte) ou "10.20.30.8/29"
    private_key: str = ""
    public_key: str = ""
    preshared_key: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)
    nested_extra: bool = field(default=False, repr=False, compare=False)

    def cidr(self) -> Tuple[IPAddress, IPNetwork]:
        return parse_cidr(self.network)

    def resolve_public_key(self) -> str:
        return self.public_key or private_to_public(self.private_key)

    def validate(self) -> Tuple[List[str], List[VLANError]]:
        warnings: List[str] = []
        errors: List[VLANError] = []

        try:
            check_client_name(self.peer_name)
        except VLANError as e:
            errors.append(e)

        try:
            self.cidr()
        except VLANError as e:
            errors.append(e)

        if not self.private_key:
            warnings.append("client private key unset; will not be able to generate client config")
            if not self.public_key:
                errors.append(EmptyKeyError("client keys both unset"))
            else:
                try:
                    decode_public_key(self.public_key)
                except KeyMaterialError as e:
                    errors.append(e)
        else:
            try:
                expected = private_to_public(self.private_key)
            except KeyMaterialError as e:
                errors.append(e)
            else:
                if self.public_key and self.public_key != expected:
                    errors.append(KeyMismatchError(
                        f"client public key mismatch: got '{self.public_key}', expected '{expected}'"
                    ))

        if not self.preshared_key:
            warnings.append("client preshared key unset; this is unsafe")
        else:
            try:
                decode_preshared_key(self.preshared_key)
            except KeyMaterialError as e:
                errors.append(e)

        return warnings, errors


@dataclass
class VLAN:
    server: VLANServer
    clients: List[VLANClient] = field(default_factory=list)
    public_endpoint: Optional[str] = None   # IP publique:port pour les clients, ex "1.2.3.4:51820"
    keep_alive: int = 0

    def find_client(self, name: str) -> Optional[VLANClient]:
        for client in self.clients:
            if client.peer_name == name:
                return client
        return None

    def normalize(self) -> "VLAN":
        """
        Complète les clés publiques dérivables des clés privées présentes.

        Les clés privées invalides sont laissées telles quelles : validate() les signale.
        """
        for peer in [self.server, *self.clients]:
            if peer.public_key or not peer.private_key:
                continue
            try:
                peer.public_key = private_to_public(peer.private_key)
            except KeyMaterialError:
                continue
        return self

    def validate(self) -> Tuple[List[str], Optional[AggregateValidationError]]:
        warnings: List[str] = []
        issues: List[Tuple[str, Exception]] = []

        if not self.keep_alive:
            warnings.append("keep-alive is not set")
        elif not 0 < self.keep_alive <= MAX_PORT:
            issues.append(("vlan", OutOfRangeError(f"keep-alive out of range: {self.keep_alive}")))

        if not self.public_endpoint:
            warnings.append("public endpoint not set")

        srv_warnings, srv_errors = self.server.validate()
        warnings += [f"server: {w}" for w in srv_warnings]
        issues += [("server", e) for e in srv_errors]

        try:
            server_address, server_subnet = self.server.cidr()
        except VLANError:
            server_address, server_subnet = None, None

        seen_names = set()
        claimed: List[Tuple[str, IPNetwork]] = []

        for idx, client in enumerate(self.clients):
            position = f"client[{idx}]"
            cl_warnings, cl_errors = client.validate()
            warnings += [f"{position}: {w}" for w in cl_warnings]
            issues += [(position, e) for e in cl_errors]

            if client.peer_name and client.peer_name in seen_names:
                issues.append((position, DuplicateNameError(f"non-unique client name: {client.peer_name}")))
            seen_names.add(client.peer_name)

            try:
                _, client_net = client.cidr()
            except VLANError:
                continue

            if server_subnet is not None and client_net.version == server_subnet.version:
                if not client_net.subnet_of(server_subnet):
                    warnings.append(f"{position}: client network {client_net} is outside of the VLAN network {server_subnet}")
                if server_address in client_net:
                    issues.append((position, AddressOverlapError(
                        f"client network {client_net} contains the server address {server_address}"
                    )))

            for other_name, other_net in claimed:
                if other_net.version == client_net.version and client_net.overlaps(other_net):
                    issues.append((position, AddressOverlapError(
                        f"client network {client_net} overlaps with client '{other_name}' ({other_net})"
                    )))
            claimed.append((client.peer_name, client_net))

        error = AggregateValidationError(issues) if issues else None
        return warnings, error
