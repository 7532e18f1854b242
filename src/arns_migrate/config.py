"""`arns.yaml` config

Files are read and merged by `arns_migrate.yaml`, then validated as pydantic dataclasses. Any validation failure is
reported as a single `ConfigurationError` listing the offending fields.
"""

from __future__ import annotations

import logging
from abc import ABC
from pathlib import Path
from typing import Annotated
from typing import Literal

from pydantic import BeforeValidator
from pydantic import ConfigDict
from pydantic import Field
from pydantic import TypeAdapter
from pydantic import ValidationError
from pydantic.dataclasses import dataclass

from arns_migrate.exceptions import ConfigInitializationException
from arns_migrate.exceptions import ConfigurationError
from arns_migrate.yaml import dump_config_yaml
from arns_migrate.yaml import load_config_yaml

DEFAULT_AO_URL = 'https://cu.ardrive.io'
# NOTE: ARIO mainnet registry process
DEFAULT_REGISTRY_PROCESS_ID = 'qNvAoz0TgcH7DMg8BCVn8jF32QH5L6T29VjHxhHqqGE'
DEFAULT_TTL_SECONDS = 3600
DEFAULT_APP_NAME = 'ARNS-Migration-Tool'


def _http_url(value: str) -> str:
    if not value.startswith(('http://', 'https://')):
        raise ValueError(f'`{value}` is not a valid HTTP URL')
    return value.rstrip('/')


type ToStr = Annotated[str | float, BeforeValidator(lambda v: str(v))]  # type: ignore
type Url = Annotated[str, BeforeValidator(_http_url)]  # type: ignore


@dataclass(config=ConfigDict(extra='forbid'), kw_only=True)
class NameMixin:
    def __post_init__(self) -> None:
        self._name: str | None = None

    @property
    def name(self) -> str:
        if self._name is None:
            raise ConfigInitializationException(f'{self.__class__.__name__} name is not set')
        return self._name


@dataclass(config=ConfigDict(extra='forbid'), kw_only=True)
class HttpConfig:
    """HTTP client tunables; unset fields fall back to datasource defaults

    :param retry_count: Retries after the first failed attempt
    :param retry_sleep: Seconds to wait before the first retry
    :param retry_multiplier: Factor applied to the wait after each retry
    :param ratelimit_rate: Requests allowed per `ratelimit_period`; 0 disables throttling
    :param ratelimit_period: Throttling window in seconds
    :param ratelimit_sleep: Minimum wait after `429 Too Many Requests`
    :param connection_limit: Simultaneous connections
    :param connection_timeout: Connect timeout in seconds
    :param request_timeout: Total request timeout in seconds
    :param batch_size: Registry records per page
    """

    retry_count: int | None = None
    retry_sleep: float | None = None
    retry_multiplier: float | None = None
    ratelimit_rate: int | None = None
    ratelimit_period: int | None = None
    ratelimit_sleep: float | None = None
    connection_limit: int | None = None
    connection_timeout: int | None = None
    request_timeout: int | None = None
    batch_size: int | None = None


@dataclass(config=ConfigDict(extra='forbid'), kw_only=True)
class ResolvedHttpConfig:
    __doc__ = HttpConfig.__doc__

    retry_count: int = 10
    retry_sleep: float = 1.0
    retry_multiplier: float = 2.0
    ratelimit_rate: int = 0
    ratelimit_period: int = 0
    ratelimit_sleep: float = 0.0
    connection_limit: int = 100
    connection_timeout: int = 60
    request_timeout: int = 60
    batch_size: int = 1000

    @classmethod
    def create(cls, default: HttpConfig, user: HttpConfig | None) -> ResolvedHttpConfig:
        """Apply datasource defaults, then user values"""
        resolved = cls()
        for layer in (default, user):
            if layer is None:
                continue
            for key, value in layer.__dict__.items():
                if value is not None:
                    setattr(resolved, key, value)
        return resolved


class DatasourceConfig(ABC, NameMixin):
    kind: str
    url: str
    http: HttpConfig | None = None


@dataclass(config=ConfigDict(extra='forbid'), kw_only=True)
class AoDatasourceConfig(DatasourceConfig):
    """AO compute unit

    :param kind: always 'ao'
    :param url: Compute unit URL
    :param http: HTTP client tunables
    """

    kind: Literal['ao'] = 'ao'
    url: Url = DEFAULT_AO_URL
    http: HttpConfig | None = None


@dataclass(config=ConfigDict(extra='forbid'), kw_only=True)
class RegistryConfig:
    """ARNS registry

    :param datasource: Alias of the AO datasource to query
    :param process_id: Registry process ID
    """

    datasource: str = 'ao'
    process_id: str = DEFAULT_REGISTRY_PROCESS_ID


@dataclass(config=ConfigDict(extra='forbid'), kw_only=True)
class WalletConfig:
    """Wallet provider

    :param provider: `module:attr` path to a wallet provider instance or factory
    """

    provider: str | None = None


@dataclass(config=ConfigDict(extra='forbid'), kw_only=True)
class MigrationConfig:
    """Record update tunables

    :param ttl_seconds: TTL of the updated record
    :param app_name: Value of `App-Name` tag attached to record updates
    :param ownership_concurrency: Simultaneous ownership checks when listing names
    """

    ttl_seconds: int = Field(default=DEFAULT_TTL_SECONDS, gt=0)
    app_name: str = DEFAULT_APP_NAME
    ownership_concurrency: int = Field(default=8, ge=1)


def _default_datasources() -> dict[str, AoDatasourceConfig]:
    return {'ao': AoDatasourceConfig()}


@dataclass(config=ConfigDict(extra='forbid'), kw_only=True)
class ArnsConfig:
    """arns-migrate config file

    :param spec_version: Config format version, always `1.0`
    :param datasources: AO datasources by alias
    :param registry: ARNS registry
    :param wallet: Wallet provider
    :param migration: Record update tunables
    :param logging: Level of `arns_migrate` logger, or mapping of logger names to levels
    """

    spec_version: ToStr = '1.0'
    datasources: dict[str, AoDatasourceConfig] = Field(default_factory=_default_datasources)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    wallet: WalletConfig = Field(default_factory=WalletConfig)
    migration: MigrationConfig = Field(default_factory=MigrationConfig)
    logging: dict[str, str | int] | str | int = 'INFO'

    def __post_init__(self) -> None:
        self._environment: dict[str, str] = {}

    @classmethod
    def load(cls, paths: list[Path], environment: bool = True) -> ArnsConfig:
        config_json, used_environment = load_config_yaml(paths, environment=environment)

        try:
            config = TypeAdapter(cls).validate_python(config_json)
        except ValidationError as e:
            lines = (f'- {".".join(str(loc) for loc in error["loc"])}: {error["msg"]}' for error in e.errors())
            raise ConfigurationError('Config validation failed:\n\n' + '\n'.join(lines)) from e

        config._environment = used_environment
        return config

    @property
    def environment(self) -> dict[str, str]:
        """Environment variables substituted while loading"""
        return self._environment

    @property
    def registry_datasource(self) -> AoDatasourceConfig:
        try:
            return self.datasources[self.registry.datasource]
        except KeyError as e:
            raise ConfigurationError(f'Datasource `{self.registry.datasource}` is not defined') from e

    def initialize(self) -> None:
        for alias, datasource_config in self.datasources.items():
            datasource_config._name = alias
        # NOTE: Fail early on dangling link
        _ = self.registry_datasource

    def set_up_logging(self, debug: bool = False) -> None:
        levels = dict(self.logging) if isinstance(self.logging, dict) else {'arns_migrate': self.logging}
        if debug:
            levels['arns_migrate'] = 'DEBUG'

        for name, level in levels.items():
            if isinstance(level, str):
                level = logging.getLevelNamesMapping().get(level.upper(), level)
            if not isinstance(level, int):
                raise ConfigurationError(f'Invalid logging level `{level}` for logger `{name}`')
            logging.getLogger(name).setLevel(level)

    def dump(self) -> str:
        return dump_config_yaml(TypeAdapter(ArnsConfig).dump_python(self, mode='json'))
