import asyncio

import pytest

from arns_migrate.directory import NameDirectory
from arns_migrate.directory import select_name
from arns_migrate.exceptions import DirectoryUnavailableError
from arns_migrate.exceptions import NameNotFoundError
from arns_migrate.models import NameRecord
from arns_migrate.models import RegistryRecord
from arns_migrate.test import FakeContract
from arns_migrate.test import FakeContracts
from arns_migrate.test import FakeRegistry


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry.from_json(
        {
            'a': {'processId': 'A'},
            'b': {'processId': 'B'},
            'c': {'processId': 'C'},
            'd': {'processId': 'D', 'undername': 'www'},
        }
    )


@pytest.fixture
def contracts() -> FakeContracts:
    return FakeContracts(
        FakeContract('A', owner='X'),
        FakeContract('B', owner='Y'),
        FakeContract('C', error=ValueError('Malformed state')),
        FakeContract('D', owner='X'),
    )


async def test_list_owned_names(registry: FakeRegistry, contracts: FakeContracts) -> None:
    directory = NameDirectory(registry, contracts)

    names = await directory.list_owned_names('X')
    assert names == [
        NameRecord(name='a', contract_id='A', subname='@'),
        NameRecord(name='d', contract_id='D', subname='www'),
    ]

    assert await directory.list_owned_names('Y') == [NameRecord(name='b', contract_id='B')]
    # NOTE: Exact match, no case folding
    assert await directory.list_owned_names('x') == []


async def test_list_owned_names_skips_failures(contracts: FakeContracts) -> None:
    registry = FakeRegistry.from_json(
        {
            'a': {'processId': 'A'},
            'b': {'processId': 'B'},
            'c': {'processId': 'C'},
            'unknown': {'processId': 'Z'},
        }
    )
    directory = NameDirectory(registry, contracts, concurrency=1)
    assert await directory.list_owned_names('X') == [NameRecord(name='a', contract_id='A')]


async def test_list_owned_names_empty() -> None:
    directory = NameDirectory(FakeRegistry(), FakeContracts())
    assert await directory.list_owned_names('X') == []


async def test_list_owned_names_registry_unavailable() -> None:
    directory = NameDirectory(FakeRegistry(error=ConnectionError('Boom')), FakeContracts())

    with pytest.raises(DirectoryUnavailableError) as exc_info:
        await directory.list_owned_names('X')
    assert exc_info.value.message == 'Failed to fetch ARNS names. Please try again.'


async def test_list_owned_names_concurrency() -> None:
    running = 0
    max_running = 0

    class SlowContract(FakeContract):
        async def get_owner(self) -> str:
            nonlocal running, max_running
            running += 1
            max_running = max(max_running, running)
            await asyncio.sleep(0.01)
            running -= 1
            return 'X'

    registry = FakeRegistry({f'name{i}': RegistryRecord(contract_id=f'C{i}') for i in range(10)})
    directory = NameDirectory(registry, lambda contract_id: SlowContract(contract_id), concurrency=3)

    names = await directory.list_owned_names('X')
    assert [n.name for n in names] == [f'name{i}' for i in range(10)]
    assert max_running == 3


async def test_resolve_name(registry: FakeRegistry, contracts: FakeContracts) -> None:
    directory = NameDirectory(registry, contracts)

    assert await directory.resolve_name('D') == 'd'
    with pytest.raises(NameNotFoundError):
        await directory.resolve_name('Z')
    # NOTE: Fresh snapshot every time
    assert registry.calls == 2


def test_select_name() -> None:
    names = [NameRecord(name='a', contract_id='A'), NameRecord(name='b', contract_id='B')]

    assert select_name(names, 'b').contract_id == 'B'
    with pytest.raises(NameNotFoundError) as exc_info:
        select_name(names, 'c')
    assert exc_info.value.message == 'Selected ARNS name not found'
