import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from arns_migrate.config import DEFAULT_AO_URL
from arns_migrate.config import DEFAULT_REGISTRY_PROCESS_ID
from arns_migrate.config import ArnsConfig
from arns_migrate.config import HttpConfig
from arns_migrate.config import MigrationConfig
from arns_migrate.config import ResolvedHttpConfig
from arns_migrate.exceptions import ConfigInitializationException
from arns_migrate.exceptions import ConfigurationError

TEST_CONFIGS = Path(__file__).parent / 'configs'


def test_defaults() -> None:
    config = ArnsConfig.load([])
    config.initialize()

    assert config.registry_datasource.url == DEFAULT_AO_URL
    assert config.registry_datasource.name == 'ao'
    assert config.registry.process_id == DEFAULT_REGISTRY_PROCESS_ID
    assert config.wallet.provider is None
    assert config.migration.ttl_seconds == 3600
    assert config.migration.app_name == 'ARNS-Migration-Tool'


def test_load(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv('REGISTRY_PROCESS_ID', 'from-env')

    config = ArnsConfig.load([TEST_CONFIGS / 'arns.yaml'])
    config.initialize()

    assert config.spec_version == '1.0'
    # NOTE: Default value, trailing slash stripped
    assert config.registry_datasource.url == 'https://cu.example.com'
    assert config.registry.process_id == 'from-env'
    assert config.wallet.provider == 'tests.test_wallet:provider'
    assert config.migration == MigrationConfig(ttl_seconds=600, ownership_concurrency=4)
    assert config.environment == {'AO_URL': 'https://cu.example.com/', 'REGISTRY_PROCESS_ID': 'from-env'}


def test_invalid() -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        ArnsConfig.load([TEST_CONFIGS / 'arns.invalid.yaml'])

    assert 'migration.ttl_seconds' in exc_info.value.msg
    assert 'unknown_field' in exc_info.value.msg

    with pytest.raises(ConfigurationError):
        ArnsConfig.load([TEST_CONFIGS / 'missing.yaml'])

    with pytest.raises(ValidationError):
        MigrationConfig(ttl_seconds=0)
    with pytest.raises(ValidationError):
        MigrationConfig(ownership_concurrency=0)


def test_missing_datasource() -> None:
    config = ArnsConfig.load([TEST_CONFIGS / 'arns.missing_datasource.yaml'])
    with pytest.raises(ConfigurationError):
        config.initialize()


def test_name_not_set() -> None:
    config = ArnsConfig.load([])
    with pytest.raises(ConfigInitializationException):
        _ = config.registry_datasource.name


def test_resolved_http_config() -> None:
    default = HttpConfig(retry_count=3, retry_sleep=1)
    user = HttpConfig(retry_count=5)

    config = ResolvedHttpConfig.create(default, user)
    assert config.retry_count == 5
    assert config.retry_sleep == 1
    assert config.retry_multiplier == 2.0

    assert ResolvedHttpConfig.create(default, None).retry_count == 3


def test_dump(tmp_path: Path) -> None:
    config = ArnsConfig.load([TEST_CONFIGS / 'arns.yaml'])
    dumped = config.dump()

    assert 'process_id: registry-process' in dumped
    assert 'ttl_seconds: 600' in dumped
    # NOTE: Private attributes are not config fields
    assert not any(line.lstrip().startswith('_name:') for line in dumped.splitlines())
    assert 'app_name: ARNS-Migration-Tool' in dumped
    # NOTE: Dump is a valid config
    reloaded_path = tmp_path / 'arns.yaml'
    reloaded_path.write_text(dumped)
    assert ArnsConfig.load([reloaded_path]).migration.ttl_seconds == 600


def test_logging() -> None:
    config = ArnsConfig.load([])
    config.logging = 'NOPE'
    with pytest.raises(ConfigurationError):
        config.set_up_logging()


def test_logging_levels() -> None:
    config = ArnsConfig.load([])
    config.logging = {'tests.test_config.a': 'error', 'tests.test_config.b': 10}
    config.set_up_logging()
    assert logging.getLogger('tests.test_config.a').level == logging.ERROR
    assert logging.getLogger('tests.test_config.b').level == logging.DEBUG

    config.logging = 'WARNING'
    config.set_up_logging(debug=True)
    assert logging.getLogger('arns_migrate').level == logging.DEBUG
    config.set_up_logging()
    assert logging.getLogger('arns_migrate').level == logging.WARNING
