from typing import Generic
from typing import TypeVar

from arns_migrate.config import DatasourceConfig
from arns_migrate.config import HttpConfig
from arns_migrate.config import ResolvedHttpConfig
from arns_migrate.http import HTTPGateway

DatasourceConfigT = TypeVar('DatasourceConfigT', bound=DatasourceConfig)


class Datasource(HTTPGateway, Generic[DatasourceConfigT]):
    """HTTP gateway configured from a `datasources` config entry"""

    # NOTE: Overridden by subclasses; user values from config take precedence
    _default_http_config = HttpConfig()

    def __init__(self, config: DatasourceConfigT) -> None:
        self._config = config
        super().__init__(
            url=config.url,
            http_config=ResolvedHttpConfig.create(self._default_http_config, config.http),
            name=config.name,
        )

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def batch_size(self) -> int:
        """Number of items to request per page"""
        return self._http_config.batch_size
