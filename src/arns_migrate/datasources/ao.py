from collections.abc import Sequence
from contextlib import suppress
from typing import Any

import orjson

from arns_migrate.config import AoDatasourceConfig
from arns_migrate.config import HttpConfig
from arns_migrate.datasources import Datasource
from arns_migrate.exceptions import DatasourceError
from arns_migrate.models import Tag

# NOTE: Dry-runs are not signed; any well-formed value works for these fields
DRY_RUN_ID = '1234'
AO_TAGS = (
    Tag(name='Data-Protocol', value='ao'),
    Tag(name='Type', value='Message'),
    Tag(name='Variant', value='ao.TN.1'),
)


class AoDatasource(Datasource[AoDatasourceConfig]):
    """AO compute unit; evaluates read-only messages against process state"""

    _default_http_config = HttpConfig(
        retry_count=3,
        retry_sleep=1,
        retry_multiplier=1.5,
    )

    async def dry_run(
        self,
        process_id: str,
        tags: Sequence[Tag],
        data: str | None = None,
    ) -> Any:
        """Send a dry-run message to process and return decoded `Data` of the first reply"""
        message = {
            'Id': DRY_RUN_ID,
            'Target': process_id,
            'Owner': DRY_RUN_ID,
            'Anchor': '0',
            'Data': data or DRY_RUN_ID,
            'Tags': [tag.to_json() for tag in (*tags, *AO_TAGS)],
        }
        self._logger.debug('Dry-run `%s` with tags %s', process_id, [tag.to_json() for tag in tags])
        response = await self.request(
            'post',
            url='dry-run',
            params={'process-id': process_id},
            json=message,
        )
        return self._parse_reply(process_id, response)

    def _parse_reply(self, process_id: str, response: Any) -> Any:
        if not isinstance(response, dict):
            raise DatasourceError(f'Unexpected dry-run response for `{process_id}`: {response!r}', self.name)
        if response.get('Error'):
            raise DatasourceError(f'Process `{process_id}` failed: {response["Error"]}', self.name)

        messages = response.get('Messages') or []
        if not messages:
            raise DatasourceError(f'Process `{process_id}` returned no messages', self.name)

        reply = messages[0]
        for tag in reply.get('Tags') or ():
            if tag.get('name') == 'Error':
                raise DatasourceError(f'Process `{process_id}` replied with error: {tag.get("value")}', self.name)

        data = reply.get('Data')
        if isinstance(data, str):
            with suppress(orjson.JSONDecodeError):
                return orjson.loads(data)
        return data
