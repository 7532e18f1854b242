"""ARNS registry and name contracts (ANTs).

The registry maps names to contract (process) IDs; each contract holds its owner and undername records. Reads are
AO dry-runs, writes are signed messages sent by the wallet.
"""

from abc import ABC
from abc import abstractmethod
from collections.abc import AsyncIterator
from collections.abc import Sequence
from typing import Any

from arns_migrate.datasources.ao import AoDatasource
from arns_migrate.exceptions import DatasourceError
from arns_migrate.models import RegistryRecord
from arns_migrate.models import Tag
from arns_migrate.wallet import WalletSigner

RegistrySnapshot = dict[str, RegistryRecord]


class Registry(ABC):
    @abstractmethod
    async def get_all_records(self) -> RegistrySnapshot:
        """Return mapping of names to records in registry order"""


class Contract(ABC):
    def __init__(self, contract_id: str) -> None:
        self._contract_id = contract_id

    @property
    def contract_id(self) -> str:
        return self._contract_id

    @abstractmethod
    async def get_owner(self) -> str: ...

    @abstractmethod
    async def set_record(
        self,
        signer: WalletSigner,
        undername: str,
        content_reference: str,
        ttl_seconds: int,
        tags: Sequence[Tag] = (),
    ) -> str | None:
        """Point undername to content, return update message ID if known"""


class AoRegistry(Registry):
    def __init__(self, datasource: AoDatasource, process_id: str) -> None:
        self._datasource = datasource
        self._process_id = process_id

    async def get_all_records(self) -> RegistrySnapshot:
        records: RegistrySnapshot = {}
        async for batch in self.iter_records():
            records.update(batch)
        return records

    async def iter_records(self) -> AsyncIterator[RegistrySnapshot]:
        """Iterate over registry pages"""
        limit = self._datasource.batch_size
        cursor: str | None = None
        seen_cursors: set[str] = set()
        while True:
            tags = [Tag(name='Action', value='Paginated-Records'), Tag(name='Limit', value=str(limit))]
            if cursor:
                tags.append(Tag(name='Cursor', value=cursor))

            page = await self._datasource.dry_run(self._process_id, tags)
            yield self._parse_page(page)

            if not isinstance(page, dict) or not page.get('hasMore') or not page.get('nextCursor'):
                return
            cursor = page['nextCursor']
            if cursor in seen_cursors:
                raise DatasourceError(
                    f'Registry pagination does not advance past cursor `{cursor}`',
                    self._datasource.name,
                )
            seen_cursors.add(cursor)

    def _parse_page(self, page: Any) -> RegistrySnapshot:
        if not isinstance(page, dict):
            raise DatasourceError(f'Unexpected registry page: {page!r}', self._datasource.name)

        # NOTE: `Records` action replies with a plain mapping, `Paginated-Records` with a list of items
        if 'items' in page:
            items = {item['name']: item for item in page['items']}
        else:
            items = page

        try:
            return {name: RegistryRecord.from_json(item) for name, item in items.items()}
        except (KeyError, TypeError) as e:
            raise DatasourceError(f'Malformed registry record: {e}', self._datasource.name) from e


class AntContract(Contract):
    def __init__(self, datasource: AoDatasource, contract_id: str) -> None:
        super().__init__(contract_id)
        self._datasource = datasource

    async def get_owner(self) -> str:
        info = await self._datasource.dry_run(
            self._contract_id,
            (Tag(name='Action', value='Info'),),
        )
        if not isinstance(info, dict) or not isinstance(info.get('Owner'), str):
            raise DatasourceError(f'Contract `{self._contract_id}` has no owner', self._datasource.name)
        return info['Owner']

    async def set_record(
        self,
        signer: WalletSigner,
        undername: str,
        content_reference: str,
        ttl_seconds: int,
        tags: Sequence[Tag] = (),
    ) -> str | None:
        message_tags = (
            Tag(name='Action', value='Set-Record'),
            Tag(name='Sub-Domain', value=undername),
            Tag(name='Transaction-Id', value=content_reference),
            Tag(name='TTL-Seconds', value=str(ttl_seconds)),
            *tags,
        )
        return await signer.send_message(self._contract_id, message_tags)
