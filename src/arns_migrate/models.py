from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic.dataclasses import dataclass

ROOT_UNDERNAME = '@'
PENDING_TRANSACTION_ID = 'pending'


class Permission(Enum):
    """Wallet permissions requested on connect"""

    ACCESS_ADDRESS = 'ACCESS_ADDRESS'
    SIGN_TRANSACTION = 'SIGN_TRANSACTION'


class MigrationState(Enum):
    """Enum for `arns_migrate.migration.Migration`"""

    idle = 'idle'
    validating = 'validating'
    submitting = 'submitting'
    resolving = 'resolving'
    done = 'done'
    failed = 'failed'

    @property
    def is_terminal(self) -> bool:
        return self in (MigrationState.done, MigrationState.failed)


@dataclass(frozen=True)
class Tag:
    name: str
    value: str

    def to_json(self) -> dict[str, str]:
        return {'name': self.name, 'value': self.value}


@dataclass(frozen=True)
class RegistryRecord:
    """Single entry of the registry snapshot"""

    contract_id: str
    undername: str | None = None

    @classmethod
    def from_json(cls, json: dict[str, Any]) -> RegistryRecord:
        return RegistryRecord(
            contract_id=json['processId'],
            undername=json.get('undername') or None,
        )


@dataclass(frozen=True)
class NameRecord:
    """Registered name owned by the connected wallet"""

    name: str
    contract_id: str
    subname: str = ROOT_UNDERNAME


@dataclass(frozen=True)
class MigrationResult:
    resolved_url: str
    update_transaction_id: str
