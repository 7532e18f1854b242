import asyncio
import logging
from collections.abc import Callable
from collections.abc import Sequence

from arns_migrate.exceptions import DirectoryUnavailableError
from arns_migrate.exceptions import NameNotFoundError
from arns_migrate.models import ROOT_UNDERNAME
from arns_migrate.models import NameRecord
from arns_migrate.models import RegistryRecord
from arns_migrate.registry import Contract
from arns_migrate.registry import Registry
from arns_migrate.registry import RegistrySnapshot

ContractFactory = Callable[[str], Contract]

DEFAULT_CONCURRENCY = 8

_logger = logging.getLogger(__name__)


class NameDirectory:
    """Lookup of registered names by owner and by contract"""

    def __init__(
        self,
        registry: Registry,
        contract_factory: ContractFactory,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        self._registry = registry
        self._contract_factory = contract_factory
        self._concurrency = concurrency

    async def get_records(self) -> RegistrySnapshot:
        """Fetch a fresh registry snapshot"""
        try:
            return await self._registry.get_all_records()
        except Exception as e:
            _logger.error('Error fetching ARNS records: %s', e)
            raise DirectoryUnavailableError(str(e)) from e

    async def list_owned_names(self, owner: str) -> list[NameRecord]:
        """Return names whose contract reports `owner` as the owner.

        Contracts are queried concurrently. Failed queries are logged and skipped. Result follows the registry order;
        an empty list is not an error.
        """
        _logger.info('Fetching ARNS names for address `%s`', owner)
        records = await self.get_records()
        semaphore = asyncio.Semaphore(self._concurrency)

        async def _check(name: str, record: RegistryRecord) -> NameRecord | None:
            async with semaphore:
                try:
                    contract_owner = await self._contract_factory(record.contract_id).get_owner()
                except Exception as e:
                    _logger.warning('Failed to check ownership for `%s`: %s', name, e)
                    return None

            # NOTE: Exact match; addresses are not normalized
            if contract_owner != owner:
                return None
            return NameRecord(
                name=name,
                contract_id=record.contract_id,
                subname=record.undername or ROOT_UNDERNAME,
            )

        results = await asyncio.gather(*(_check(name, record) for name, record in records.items()))
        names = [name for name in results if name is not None]
        _logger.info('Found %s of %s ARNS names', len(names), len(records))
        return names

    async def resolve_name(self, contract_id: str) -> str:
        """Find the name controlled by contract in a fresh snapshot"""
        records = await self.get_records()
        for name, record in records.items():
            if record.contract_id == contract_id:
                return name
        raise NameNotFoundError('Could not find ARNS name for the given process ID')


def select_name(names: Sequence[NameRecord], name: str) -> NameRecord:
    for record in names:
        if record.name == name:
            return record
    raise NameNotFoundError('Selected ARNS name not found')
