"""Custom exceptions for VLAN management."""
from __future__ import annotations

from typing import List, Sequence, Tuple


class VLANError(Exception):
    """Base exception for VLAN-related errors."""
    pass


class EmptyNameError(VLANError, ValueError):
    """Raised when a peer has no name"""
    pass


class DuplicateNameError(VLANError, ValueError):
    """Raised when a client name is already used in the VLAN"""
    pass


class InvalidNameError(VLANError, ValueError):
    """Raised when a client name cannot be used as a file name"""
    pass


class InvalidCIDRError(VLANError, ValueError):
    """Raised when an address or CIDR cannot be parsed"""
    pass


class MissingFieldError(VLANError, ValueError):
    """Raised when a required field is unset"""
    pass


class OutOfRangeError(VLANError, ValueError):
    """Raised when a port or interval is outside of its valid range"""
    pass


class KeyMaterialError(VLANError, ValueError):
    """Base exception for key decoding errors."""
    pass


class EmptyKeyError(KeyMaterialError):
    pass


class InvalidKeyEncodingError(KeyMaterialError):
    pass


class InvalidKeyMaterialError(KeyMaterialError):
    pass


class KeyMismatchError(VLANError, ValueError):
    """Raised when a stated public key does not match its private key"""
    pass


class AddressOverlapError(VLANError, ValueError):
    """Raised when two peers claim the same address space"""
    pass


class NoAddressAvailableError(VLANError):
    """Raised when the VLAN subnet is exhausted"""
    pass


class NoSuchClientError(VLANError, LookupError):
    pass


class MissingPrivateKeyError(VLANError):
    pass


class NoPublicEndpointError(VLANError):
    pass


class ConfigParseError(VLANError, ValueError):
    """Raised when a WireGuard INI file cannot be parsed"""
    pass


class DocumentError(VLANError):
    """Raised when a persisted VLAN document is malformed"""
    pass


class AggregateValidationError(VLANError):
    """
    Every problem found by a validation pass.

    `issues` holds (position, error) pairs, position being "vlan", "server" or "client[i]".
    """

    def __init__(self, issues: Sequence[Tuple[str, Exception]]):
        self.issues: List[Tuple[str, Exception]] = list(issues)
        super().__init__("validation failed: " + "; ".join(self.messages))

    @property
    def messages(self) -> List[str]:
        return [f"{position}: {error}" for position, error in self.issues]

    @property
    def errors(self) -> List[Exception]:
        return [error for _, error in self.issues]
