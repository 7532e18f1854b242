import importlib
import logging
from collections.abc import MutableMapping
from typing import Any

from arns_migrate.exceptions import ConfigurationError


class PrefixedLogger(logging.LoggerAdapter[logging.Logger]):
    """Logger adapter prepending a fixed prefix, e.g. datasource name"""

    def __init__(self, name: str, prefix: str) -> None:
        super().__init__(logging.getLogger(name), {})
        self.prefix = prefix

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        return f'{self.prefix}: {msg}', kwargs


def import_from(path: str) -> Any:
    """Import object by `module:attr` path, raise ConfigurationError on failure"""
    module, _, obj = path.partition(':')
    if not module or not obj:
        raise ConfigurationError(f'`{path}` is not a valid import path; expected `module:attr`')
    try:
        return getattr(importlib.import_module(module), obj)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f'Failed to import `{obj}` from module `{module}`') from e
