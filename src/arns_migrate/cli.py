# NOTE: Heavy imports are deferred to command bodies to keep `--help` fast
import logging
from collections.abc import Callable
from collections.abc import Coroutine
from contextlib import AsyncExitStack
from contextlib import suppress
from functools import wraps
from pathlib import Path
from typing import TYPE_CHECKING
from typing import Any
from typing import TypeVar
from typing import cast

import click
import uvloop

from arns_migrate import __version__
from arns_migrate import env

if TYPE_CHECKING:
    from arns_migrate.config import ArnsConfig
    from arns_migrate.directory import NameDirectory
    from arns_migrate.migration import MigrationExecutor
    from arns_migrate.wallet import WalletAdapter

DEFAULT_CONFIG = 'arns.yaml'
# NOTE: Commands runnable without a config
NO_CONFIG_CMDS = {'check-url'}

_logger = logging.getLogger(__name__)

CommandT = TypeVar('CommandT', bound=Callable[..., Coroutine[Any, Any, None]])


def echo(message: str, err: bool = False, **styles: Any) -> None:
    with suppress(BrokenPipeError):
        click.secho(message, err=err, **styles)


def _fail(message: str) -> None:
    echo(message, err=True, fg='red')
    raise click.exceptions.Exit(1)


def _async_command(fn: CommandT) -> CommandT:
    """Run coroutine command in uvloop; print known errors instead of a traceback"""

    @wraps(fn)
    def wrapper(ctx: click.Context, *args: Any, **kwargs: Any) -> None:
        from arns_migrate.exceptions import Error

        try:
            uvloop.run(fn(ctx, *args, **kwargs))
        except KeyboardInterrupt:
            pass
        except Error as e:
            if env.DEBUG:
                echo(e.help(), err=True)
            _fail(e.message)

    return cast(CommandT, wrapper)


def _existing_paths(args: list[str], kind: str, directory_default: str | None = None) -> list[Path]:
    from arns_migrate.exceptions import ConfigurationError

    paths = []
    for arg in args:
        path = Path(arg)
        if directory_default and path.is_dir():
            path /= directory_default
        if not path.is_file():
            raise ConfigurationError(f'{kind} not found: {path}')
        paths.append(path)
    return paths


async def _create_services(
    config: 'ArnsConfig',
    stack: AsyncExitStack,
) -> tuple['WalletAdapter', 'NameDirectory', 'MigrationExecutor']:
    from arns_migrate.datasources.ao import AoDatasource
    from arns_migrate.directory import NameDirectory
    from arns_migrate.migration import MigrationExecutor
    from arns_migrate.registry import AntContract
    from arns_migrate.registry import AoRegistry
    from arns_migrate.wallet import WalletAdapter

    datasource = AoDatasource(config.registry_datasource)
    await stack.enter_async_context(datasource)

    def contract_factory(contract_id: str) -> AntContract:
        return AntContract(datasource, contract_id)

    wallet = WalletAdapter.from_config(config.wallet)
    directory = NameDirectory(
        registry=AoRegistry(datasource, config.registry.process_id),
        contract_factory=contract_factory,
        concurrency=config.migration.ownership_concurrency,
    )
    executor = MigrationExecutor(
        wallet=wallet,
        directory=directory,
        contract_factory=contract_factory,
        config=config.migration,
    )
    return wallet, directory, executor


async def _get_address(wallet: 'WalletAdapter') -> str:
    """Reuse active session if there's one; prompt otherwise"""
    address = await wallet.current_address()
    if address:
        _logger.info('Using connected wallet `%s`', address)
        return address
    return await wallet.connect()


@click.group(context_settings={'max_content_width': 120})
@click.version_option(__version__)
@click.option(
    '--config',
    '-c',
    type=str,
    multiple=True,
    default=[],
    metavar='PATH',
    envvar='ARNS_CONFIG',
    help=f'Config file or directory with `{DEFAULT_CONFIG}`; repeat to merge. Default: `./{DEFAULT_CONFIG}`.',
)
@click.option(
    '--env-file',
    '-e',
    type=str,
    multiple=True,
    default=[],
    metavar='PATH',
    envvar='ARNS_ENV_FILE',
    help='.env file with `KEY=value` lines, applied before the config is read.',
)
@click.pass_context
@_async_command
async def cli(ctx: click.Context, config: list[str], env_file: list[str]) -> None:
    """Point ARNS names you own to Arweave content."""
    from arns_migrate.sys import set_up_logging
    from arns_migrate.sys import set_up_process

    set_up_process()
    set_up_logging()

    if ctx.invoked_subcommand in NO_CONFIG_CMDS:
        return

    from dotenv import load_dotenv

    from arns_migrate.config import ArnsConfig

    config_paths = _existing_paths(config, 'Config file', DEFAULT_CONFIG)
    if not config and Path(DEFAULT_CONFIG).is_file():
        config_paths.append(Path(DEFAULT_CONFIG))

    for path in _existing_paths(env_file, 'Env file'):
        _logger.info('Applying env file `%s`', path)
        load_dotenv(path, override=True)

    arns_config = ArnsConfig.load(paths=config_paths)
    arns_config.set_up_logging(debug=env.DEBUG)
    arns_config.initialize()
    _logger.debug('Loaded config from %s; substituted variables: %s', config_paths, sorted(arns_config.environment))

    ctx.obj = arns_config


@cli.command(name='check-url')
@click.argument('url', type=str)
@click.pass_context
@_async_command
async def check_url(ctx: click.Context, url: str) -> None:
    """Print Arweave transaction ID found in URL."""
    from arns_migrate.exceptions import InvalidUrlError
    from arns_migrate.urls import extract_content_reference
    from arns_migrate.urls import is_valid_content_url

    content_reference = extract_content_reference(url)
    if content_reference is None:
        raise InvalidUrlError(url)

    echo(content_reference)
    if not is_valid_content_url(url):
        echo('URL is not an arweave.net content URL; `migrate` command will reject it', err=True, fg='yellow')


@cli.command()
@click.pass_context
@_async_command
async def names(ctx: click.Context) -> None:
    """List ARNS names owned by connected wallet.

    Output is tab-separated: name, undername, contract ID.
    """
    config: ArnsConfig = ctx.obj

    async with AsyncExitStack() as stack:
        wallet, directory, _ = await _create_services(config, stack)
        owned = await directory.list_owned_names(await _get_address(wallet))

    if not owned:
        _fail('No ARNS names found for this wallet address')

    for record in owned:
        echo(f'{record.name}\t{record.subname}\t{record.contract_id}')


@cli.command()
@click.argument('name', type=str)
@click.argument('url', type=str)
@click.option('--undername', '-u', type=str, default=None, help='Undername to update; defaults to the one of the name.')
@click.pass_context
@_async_command
async def migrate(ctx: click.Context, name: str, url: str, undername: str | None) -> None:
    """Point NAME to Arweave content at URL.

    URL must look like `https://<subdomain>.arweave.net/<transaction id>`.
    """
    from arns_migrate.directory import select_name
    from arns_migrate.exceptions import InvalidUrlError
    from arns_migrate.urls import is_valid_content_url

    config: ArnsConfig = ctx.obj

    if not name or not url:
        _fail('Please select an ARNS name and enter an Arweave URL')
    if not is_valid_content_url(url):
        raise InvalidUrlError(url)

    async with AsyncExitStack() as stack:
        wallet, directory, executor = await _create_services(config, stack)
        owned = await directory.list_owned_names(await _get_address(wallet))
        migration = await executor.migrate(select_name(owned, name), url, undername)

    if migration.result is None:
        _fail(migration.message or 'Migration failed')
        return

    echo(migration.result.resolved_url, fg='green')
    echo(f'Transaction ID: {migration.result.update_transaction_id}')


@cli.group()
@click.pass_context
@_async_command
async def config(ctx: click.Context) -> None:
    """Manage arns-migrate config."""


@config.command(name='export')
@click.pass_context
@_async_command
async def config_export(ctx: click.Context) -> None:
    """Print config with defaults and environment variables applied."""
    arns_config: ArnsConfig = ctx.obj
    echo(arns_config.dump())
