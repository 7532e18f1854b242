"""Reading config files: `${VAR:-default}` substitution, merging, dumping"""

from __future__ import annotations

import logging
import re
from io import StringIO
from os import environ
from typing import TYPE_CHECKING
from typing import Any

from ruamel.yaml import YAML

from arns_migrate.exceptions import ConfigurationError

if TYPE_CHECKING:
    from pathlib import Path

DEFAULT_CONFIG_NAME = 'arns.yaml'
# NOTE: ${VARIABLE:-default} | ${VARIABLE}
ENV_VARIABLE_REGEX = re.compile(r'\$\{(?P<name>\w+)(?::-(?P<default>.*?))?\}')

_logger = logging.getLogger(__name__)

_yaml = YAML()
_yaml.default_flow_style = False
_yaml.indent(mapping=2, sequence=4, offset=2)


def substitute_env_variables(text: str) -> tuple[str, dict[str, str]]:
    """Expand placeholders outside of comment lines; return new text and variables used"""
    environment: dict[str, str] = {}

    def _expand(match: re.Match[str]) -> str:
        name, default = match.group('name'), match.group('default')
        value = environ.get(name, default)
        # NOTE: Empty string is a valid value
        if value is None:
            raise ConfigurationError(f'Environment variable `{name}` is not set')
        environment[name] = value
        return value

    lines = (
        line if line.lstrip().startswith('#') else ENV_VARIABLE_REGEX.sub(_expand, line)
        for line in text.splitlines(keepends=True)
    )
    return ''.join(lines), environment


def read_config_yaml(path: Path) -> str:
    if path.is_dir():
        path /= DEFAULT_CONFIG_NAME
    _logger.debug('Loading config file `%s`', path)
    try:
        return path.read_text()
    except OSError as e:
        raise ConfigurationError(f'Config file `{path}` is not readable: {e}') from e


def load_config_yaml(paths: list[Path], environment: bool = True) -> tuple[dict[str, Any], dict[str, str]]:
    """Merge config files; top-level sections of later files replace earlier ones"""
    config: dict[str, Any] = {}
    used_environment: dict[str, str] = {}

    for path in paths:
        text = read_config_yaml(path)
        if environment:
            text, path_environment = substitute_env_variables(text)
            used_environment.update(path_environment)
        config.update(_yaml.load(text) or {})

    return config, used_environment


def _exclude_none(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _exclude_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_exclude_none(v) for v in value if v is not None]
    return value


def dump_config_yaml(config: dict[str, Any]) -> str:
    buffer = StringIO()
    _yaml.dump(_exclude_none(config), buffer)
    return buffer.getvalue()
