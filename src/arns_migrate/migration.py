"""Pointing an ARNS name to Arweave content.

Each `MigrationExecutor.migrate` call is a single linear attempt:

    idle -> validating -> submitting -> resolving -> done
    any step -> failed

Nothing is retried and no state is shared between attempts.
"""

import logging
from datetime import UTC
from datetime import datetime

from arns_migrate.config import MigrationConfig
from arns_migrate.directory import ContractFactory
from arns_migrate.directory import NameDirectory
from arns_migrate.exceptions import Error
from arns_migrate.exceptions import FrameworkException
from arns_migrate.exceptions import InvalidUrlError
from arns_migrate.exceptions import NameNotFoundError
from arns_migrate.exceptions import SubmissionFailedError
from arns_migrate.models import PENDING_TRANSACTION_ID
from arns_migrate.models import ROOT_UNDERNAME
from arns_migrate.models import MigrationResult
from arns_migrate.models import MigrationState
from arns_migrate.models import NameRecord
from arns_migrate.models import Tag
from arns_migrate.urls import extract_content_reference
from arns_migrate.urls import format_arns_url
from arns_migrate.urls import is_valid_content_url
from arns_migrate.wallet import WalletAdapter

_logger = logging.getLogger(__name__)


class Migration:
    """State of a single migration attempt"""

    def __init__(self, name_record: NameRecord | None, content_url: str, undername: str) -> None:
        self.name_record = name_record
        self.content_url = content_url
        self.undername = undername
        self.state = MigrationState.idle
        self.content_reference: str | None = None
        self.update_transaction_id: str | None = None
        self.result: MigrationResult | None = None
        self.error: Error | None = None

    @property
    def message(self) -> str | None:
        """User-facing error message of a failed attempt"""
        return self.error.message if self.error else None

    def transition(self, state: MigrationState) -> None:
        if self.state.is_terminal:
            raise FrameworkException(f'Migration is already {self.state.value}')
        _logger.info('Migration %s -> %s', self.state.value, state.value)
        self.state = state

    def fail(self, error: Error) -> None:
        _logger.error('Error during migration: %s', error)
        self.transition(MigrationState.failed)
        self.error = error

    def done(self, result: MigrationResult) -> None:
        _logger.info('Migration successful: %s', result)
        self.transition(MigrationState.done)
        self.result = result


class MigrationExecutor:
    def __init__(
        self,
        wallet: WalletAdapter,
        directory: NameDirectory,
        contract_factory: ContractFactory,
        config: MigrationConfig | None = None,
    ) -> None:
        self._wallet = wallet
        self._directory = directory
        self._contract_factory = contract_factory
        self._config = config or MigrationConfig()

    async def migrate(
        self,
        name_record: NameRecord | None,
        content_url: str,
        undername: str | None = None,
    ) -> Migration:
        """Point name's undername to content from URL; never raises known errors, check `Migration.state`"""
        undername = undername or (name_record.subname if name_record else None) or ROOT_UNDERNAME
        migration = Migration(name_record, content_url, undername)
        try:
            await self._validate(migration)
            await self._submit(migration)
            name = await self._resolve(migration)
        except Error as e:
            migration.fail(e)
            return migration

        migration.done(
            MigrationResult(
                resolved_url=format_arns_url(name, migration.undername),
                update_transaction_id=migration.update_transaction_id or PENDING_TRANSACTION_ID,
            )
        )
        return migration

    async def _validate(self, migration: Migration) -> None:
        migration.transition(MigrationState.validating)
        if migration.name_record is None:
            raise NameNotFoundError('Selected ARNS name not found')
        if not is_valid_content_url(migration.content_url):
            raise InvalidUrlError(migration.content_url)

        content_reference = extract_content_reference(migration.content_url)
        # NOTE: Host-qualified patterns may capture a prefix of a longer segment
        if content_reference is None or content_reference != migration.content_url.rsplit('/', 1)[-1]:
            raise InvalidUrlError(migration.content_url)
        migration.content_reference = content_reference
        _logger.info('Migrating transaction ID `%s`', content_reference)

    async def _submit(self, migration: Migration) -> None:
        migration.transition(MigrationState.submitting)
        if migration.name_record is None or migration.content_reference is None:
            raise FrameworkException('Migration is not validated')

        signer = await self._wallet.signer()
        contract_id = migration.name_record.contract_id
        _logger.info('Updating `%s` record of ANT `%s`', migration.undername, contract_id)
        try:
            migration.update_transaction_id = await self._contract_factory(contract_id).set_record(
                signer=signer,
                undername=migration.undername,
                content_reference=migration.content_reference,
                ttl_seconds=self._config.ttl_seconds,
                tags=self._provenance_tags(migration),
            )
        except Exception as e:
            raise SubmissionFailedError(str(e) or e.__class__.__name__, contract_id) from e

    async def _resolve(self, migration: Migration) -> str:
        migration.transition(MigrationState.resolving)
        if migration.name_record is None:
            raise FrameworkException('Migration is not validated')
        return await self._directory.resolve_name(migration.name_record.contract_id)

    def _provenance_tags(self, migration: Migration) -> tuple[Tag, ...]:
        timestamp = datetime.now(UTC).isoformat(timespec='milliseconds').replace('+00:00', 'Z')
        return (
            Tag(name='App-Name', value=self._config.app_name),
            Tag(name='Migration-Source', value=migration.content_url),
            Tag(name='Timestamp', value=timestamp),
        )
