"""This module contains test doubles for wallet, registry and name contracts.

Pass them explicitly instead of real implementations; nothing here is used in production code paths.
These helpers are not part of the public API and can be changed without prior notice.
"""

from collections.abc import Sequence
from typing import Any

from arns_migrate.models import Permission
from arns_migrate.models import RegistryRecord
from arns_migrate.models import Tag
from arns_migrate.registry import Contract
from arns_migrate.registry import Registry
from arns_migrate.registry import RegistrySnapshot
from arns_migrate.wallet import WalletProvider
from arns_migrate.wallet import WalletSigner


class FakeWalletProvider(WalletProvider):
    """Wallet that approves everything unless told otherwise"""

    def __init__(
        self,
        address: str | None = 'fake-wallet-address',
        reject: bool = False,
        message_id: str | None = 'fake-message-id',
    ) -> None:
        self.address = address
        self.reject = reject
        self.message_id = message_id
        self.connected = False
        self.permissions: frozenset[Permission] = frozenset()
        self.messages: list[tuple[str, tuple[Tag, ...], str | None]] = []

    async def connect(self, permissions: frozenset[Permission]) -> None:
        if self.reject:
            raise PermissionError('User rejected the request')
        self.connected = True
        self.permissions = permissions

    async def get_active_address(self) -> str | None:
        return self.address

    async def send_message(
        self,
        process_id: str,
        tags: Sequence[Tag],
        data: str | None = None,
    ) -> str | None:
        self.messages.append((process_id, tuple(tags), data))
        return self.message_id


class FakeRegistry(Registry):
    def __init__(self, records: dict[str, RegistryRecord] | None = None, error: Exception | None = None) -> None:
        self.records = records or {}
        self.error = error
        self.calls = 0

    @classmethod
    def from_json(cls, json: dict[str, dict[str, Any]]) -> 'FakeRegistry':
        return cls({name: RegistryRecord.from_json(item) for name, item in json.items()})

    async def get_all_records(self) -> RegistrySnapshot:
        self.calls += 1
        if self.error:
            raise self.error
        return dict(self.records)


class FakeContract(Contract):
    def __init__(
        self,
        contract_id: str,
        owner: str | None = None,
        error: Exception | None = None,
    ) -> None:
        super().__init__(contract_id)
        self.owner = owner
        self.error = error
        self.records: dict[str, tuple[str, int, tuple[Tag, ...]]] = {}

    async def get_owner(self) -> str:
        if self.error:
            raise self.error
        if self.owner is None:
            raise LookupError(f'Contract `{self.contract_id}` has no owner')
        return self.owner

    async def set_record(
        self,
        signer: WalletSigner,
        undername: str,
        content_reference: str,
        ttl_seconds: int,
        tags: Sequence[Tag] = (),
    ) -> str | None:
        if self.error:
            raise self.error
        self.records[undername] = (content_reference, ttl_seconds, tuple(tags))
        return await signer.send_message(self.contract_id, tags)


class FakeContracts:
    """Contract factory returning preconfigured fakes; unknown IDs are unreachable"""

    def __init__(self, *contracts: FakeContract) -> None:
        self.contracts = {contract.contract_id: contract for contract in contracts}

    def __call__(self, contract_id: str) -> Contract:
        if contract_id not in self.contracts:
            self.contracts[contract_id] = FakeContract(contract_id, error=ConnectionError('Contract is unreachable'))
        return self.contracts[contract_id]
