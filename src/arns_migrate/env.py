"""`ARNS_*` environment flags, read once on import"""

from os import getenv

TRUTHY = ('1', 'y', 'yes', 't', 'true', 'on')


def _flag(name: str) -> bool:
    return (getenv(f'ARNS_{name}') or '').lower() in TRUTHY


def set_test() -> None:
    global TEST
    TEST = True


DEBUG = _flag('DEBUG')
JSON_LOG = _flag('JSON_LOG')
TEST = _flag('TEST')
