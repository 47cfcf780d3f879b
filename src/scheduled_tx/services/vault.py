"""Vault collaborators of the scheduled transaction module.

The module never counts signers and never moves funds itself. It talks to a
vault through two capabilities:

- ``check_signatures(data_hash, data, signatures)`` raises
  ``SignatureRejectedError`` unless enough *current* owners approved the hash.
- ``exec_transaction_from_module(module, to, value, data, operation)`` runs
  the action as the vault and reports success as a bool.

``InMemoryVault`` is an in-process implementation with Ed25519 owners and a
threshold, backed by a shared ``Ledger``. It serves local deployments and the
test suite; production vaults plug in through the same protocol.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from enum import IntEnum
from threading import Lock, RLock
from typing import TYPE_CHECKING, Final, Protocol

from eth_abi import decode, encode
from eth_utils import to_checksum_address

from scheduled_tx.core.errors import SignatureRejectedError, VaultError
from scheduled_tx.services.crypto import CryptoService
from scheduled_tx.utils.hash import keccak256

if TYPE_CHECKING:
    from scheduled_tx.core.settings import VaultConfig

logger = logging.getLogger(__name__)

TRANSFER_SELECTOR: Final[bytes] = keccak256(b"transfer(address,uint256)")[:4]


class Operation(IntEnum):
    """Call modes a vault can run a module transaction in."""

    CALL = 0
    DELEGATE_CALL = 1


class Vault(Protocol):
    """Capabilities the module needs from a vault."""

    address: str

    def check_signatures(self, data_hash: bytes, data: bytes, signatures: bytes) -> None: ...

    def exec_transaction_from_module(
        self, module: str, to: str, value: int, data: bytes, operation: Operation
    ) -> bool: ...


class VaultLookup(Protocol):
    """Resolves an account identity to its vault."""

    def get(self, account: str) -> Vault | None: ...


# (sender, value, data) -> success
CallHandler = Callable[[str, int, bytes], bool]


class Ledger:
    """Native-currency balances plus optional per-address call handlers.

    A call moves ``value`` from sender to target and then runs the target's
    handler, if any. A failed handler undoes the value move.
    """

    def __init__(self) -> None:
        self._balances: dict[str, int] = {}
        self._handlers: dict[str, CallHandler] = {}
        self._lock = RLock()

    def balance_of(self, address: str) -> int:
        with self._lock:
            return self._balances.get(to_checksum_address(address), 0)

    def credit(self, address: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        address = to_checksum_address(address)
        with self._lock:
            self._balances[address] = self._balances.get(address, 0) + amount

    def deploy(self, address: str, handler: CallHandler) -> None:
        """Attach a call handler to ``address``."""
        with self._lock:
            self._handlers[to_checksum_address(address)] = handler

    def call(self, sender: str, to: str, value: int, data: bytes) -> bool:
        """Transfer ``value`` and run the target's handler; return success."""
        sender = to_checksum_address(sender)
        to = to_checksum_address(to)
        with self._lock:
            if self._balances.get(sender, 0) < value:
                return False
            self._move(sender, to, value)
            handler = self._handlers.get(to)
            if handler is None or handler(sender, value, data):
                return True
            self._move(to, sender, value)
            return False

    def _move(self, sender: str, to: str, value: int) -> None:
        self._balances[sender] = self._balances.get(sender, 0) - value
        self._balances[to] = self._balances.get(to, 0) + value


class TokenContract:
    """Minimal fungible token answering ``transfer(address,uint256)`` calls."""

    def __init__(self) -> None:
        self._balances: dict[str, int] = {}
        self._lock = Lock()

    @staticmethod
    def encode_transfer(recipient: str, amount: int) -> bytes:
        """Return calldata for ``transfer(recipient, amount)``."""
        return TRANSFER_SELECTOR + encode(["address", "uint256"], [to_checksum_address(recipient), amount])

    def balance_of(self, address: str) -> int:
        with self._lock:
            return self._balances.get(to_checksum_address(address), 0)

    def mint(self, address: str, amount: int) -> None:
        address = to_checksum_address(address)
        with self._lock:
            self._balances[address] = self._balances.get(address, 0) + amount

    def __call__(self, sender: str, value: int, data: bytes) -> bool:
        if value != 0 or data[:4] != TRANSFER_SELECTOR:
            return False
        recipient, amount = decode(["address", "uint256"], data[4:])
        recipient = to_checksum_address(recipient)
        with self._lock:
            available = self._balances.get(sender, 0)
            if available < amount:
                return False
            self._balances[sender] = available - amount
            self._balances[recipient] = self._balances.get(recipient, 0) + amount
        return True


class InMemoryVault:
    """Threshold vault whose owners are Ed25519 public keys."""

    def __init__(
        self,
        address: str,
        owners: Iterable[bytes],
        threshold: int,
        ledger: Ledger,
    ) -> None:
        self.address = to_checksum_address(address)
        self._owners: set[bytes] = set(owners)
        self._modules: set[str] = set()
        self._ledger = ledger
        self._lock = Lock()
        self._threshold = 0
        self.change_threshold(threshold)

    @property
    def owners(self) -> frozenset[bytes]:
        with self._lock:
            return frozenset(self._owners)

    @property
    def threshold(self) -> int:
        return self._threshold

    def add_owner(self, pubkey: bytes) -> None:
        with self._lock:
            self._owners.add(pubkey)

    def remove_owner(self, pubkey: bytes) -> None:
        with self._lock:
            if pubkey not in self._owners:
                return
            if len(self._owners) - 1 < self._threshold:
                raise VaultError("Removing this owner would break the threshold")
            self._owners.discard(pubkey)

    def change_threshold(self, threshold: int) -> None:
        with self._lock:
            if threshold < 1 or threshold > len(self._owners):
                raise VaultError("Threshold must be between 1 and the number of owners")
            self._threshold = threshold

    def enable_module(self, module: str) -> None:
        with self._lock:
            self._modules.add(to_checksum_address(module))

    def disable_module(self, module: str) -> None:
        with self._lock:
            self._modules.discard(to_checksum_address(module))

    def is_module_enabled(self, module: str) -> bool:
        with self._lock:
            return to_checksum_address(module) in self._modules

    def check_signatures(self, data_hash: bytes, data: bytes, signatures: bytes) -> None:
        """Require ``threshold`` valid owner signatures over ``data_hash``."""
        if keccak256(data) != data_hash:
            raise SignatureRejectedError("Signed data does not match hash")
        with self._lock:
            owners = frozenset(self._owners)
            threshold = self._threshold
        try:
            entries = list(CryptoService.split_signatures(signatures))
        except ValueError as err:
            raise SignatureRejectedError(str(err)) from err
        if len(entries) < threshold:
            raise SignatureRejectedError("Not enough signatures")

        last_owner = b""
        for pubkey, signature in entries[:threshold]:
            if pubkey <= last_owner:
                raise SignatureRejectedError("Signers must be unique and ascending")
            if pubkey not in owners:
                raise SignatureRejectedError(f"Signer {pubkey.hex()} is not an owner")
            if not CryptoService.verify_signature_bytes(pubkey, data_hash, signature):
                raise SignatureRejectedError(f"Invalid signature from {pubkey.hex()}")
            last_owner = pubkey

    def exec_transaction_from_module(
        self, module: str, to: str, value: int, data: bytes, operation: Operation
    ) -> bool:
        """Run a call on behalf of an enabled module."""
        if not self.is_module_enabled(module):
            raise VaultError(f"Module {module} is not enabled on {self.address}")
        if operation != Operation.CALL:
            raise VaultError("Only plain calls are allowed from modules")
        success = self._ledger.call(self.address, to, value, data)
        if not success:
            logger.warning("Vault %s call to %s failed (value=%d)", self.address, to, value)
        return success


class VaultDirectory:
    """Registry of vaults reachable from this process, keyed by address."""

    def __init__(self) -> None:
        self._vaults: dict[str, Vault] = {}
        self._lock = Lock()

    def register(self, vault: Vault) -> None:
        with self._lock:
            self._vaults[to_checksum_address(vault.address)] = vault

    def get(self, account: str) -> Vault | None:
        with self._lock:
            return self._vaults.get(to_checksum_address(account))

    def __contains__(self, account: object) -> bool:
        return isinstance(account, str) and self.get(account) is not None


_DIRECTORY = VaultDirectory()
_LEDGER = Ledger()


def get_vault_directory() -> VaultDirectory:
    """Return the process-wide vault directory."""
    return _DIRECTORY


def get_ledger() -> Ledger:
    """Return the process-wide ledger shared by configured vaults."""
    return _LEDGER


def load_vaults(
    configs: Iterable[VaultConfig],
    module_address: str,
    directory: VaultDirectory | None = None,
    ledger: Ledger | None = None,
) -> list[InMemoryVault]:
    """Register configured vaults that are not registered yet.

    Funds are credited only when a vault is first registered, so repeated
    startups in one process do not mint balance.
    """
    directory = directory if directory is not None else get_vault_directory()
    ledger = ledger if ledger is not None else get_ledger()
    loaded: list[InMemoryVault] = []
    for config in configs:
        if config.address in directory:
            logger.debug("Vault %s already registered", config.address)
            continue
        try:
            vault = InMemoryVault(config.address, config.owner_keys, config.threshold, ledger)
        except VaultError as err:
            raise VaultError(f"Invalid vault config for {config.address}: {err}") from err
        if config.enable_module:
            vault.enable_module(module_address)
        if config.funds:
            ledger.credit(vault.address, config.funds)
        directory.register(vault)
        logger.info(
            "Registered vault %s (%d owners, threshold %d)",
            vault.address,
            len(config.owners),
            config.threshold,
        )
        loaded.append(vault)
    return loaded
