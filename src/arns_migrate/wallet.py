"""Wallet connection.

Wallets are external: key storage, signing and dispatching of messages are done by a `WalletProvider` implementation
passed to `WalletAdapter` explicitly (or referenced by import path in config).
"""

import logging
from abc import ABC
from abc import abstractmethod
from collections.abc import Sequence
from contextlib import suppress

from arns_migrate.config import WalletConfig
from arns_migrate.exceptions import ConfigurationError
from arns_migrate.exceptions import PermissionDeniedError
from arns_migrate.exceptions import WalletUnavailableError
from arns_migrate.models import Permission
from arns_migrate.models import Tag
from arns_migrate.utils import import_from

REQUIRED_PERMISSIONS = frozenset((Permission.ACCESS_ADDRESS, Permission.SIGN_TRANSACTION))

_logger = logging.getLogger(__name__)


class WalletProvider(ABC):
    """Interface of a wallet able to sign and dispatch AO messages"""

    @abstractmethod
    async def connect(self, permissions: frozenset[Permission]) -> None:
        """Request permissions from the user; raise on rejection"""

    @abstractmethod
    async def get_active_address(self) -> str | None: ...

    @abstractmethod
    async def send_message(
        self,
        process_id: str,
        tags: Sequence[Tag],
        data: str | None = None,
    ) -> str | None:
        """Sign message and send it to process, return message ID if known"""


class WalletSigner:
    """Signer bound to an active wallet session"""

    def __init__(self, provider: WalletProvider, address: str) -> None:
        self._provider = provider
        self._address = address

    @property
    def address(self) -> str:
        return self._address

    async def send_message(
        self,
        process_id: str,
        tags: Sequence[Tag],
        data: str | None = None,
    ) -> str | None:
        _logger.debug('Sending message to `%s` from `%s`', process_id, self._address)
        return await self._provider.send_message(process_id, tags, data)


class WalletAdapter:
    def __init__(self, provider: WalletProvider | None) -> None:
        self._provider = provider

    @classmethod
    def from_config(cls, config: WalletConfig) -> 'WalletAdapter':
        if not config.provider:
            return cls(None)

        provider = import_from(config.provider)
        if not isinstance(provider, WalletProvider) and callable(provider):
            provider = provider()
        if not isinstance(provider, WalletProvider):
            raise ConfigurationError(f'`wallet.provider`: `{config.provider}` is not a WalletProvider')
        return cls(provider)

    @property
    def provider(self) -> WalletProvider:
        if self._provider is None:
            raise WalletUnavailableError()
        return self._provider

    async def connect(self) -> str:
        """Request permissions and return active address"""
        provider = self.provider
        try:
            await provider.connect(REQUIRED_PERMISSIONS)
            address = await provider.get_active_address()
        except Exception as e:
            _logger.error('Error connecting wallet: %s', e)
            raise PermissionDeniedError(str(e)) from e

        if not address:
            raise PermissionDeniedError('Wallet has no active address')

        _logger.info('Connected wallet `%s`', address)
        return address

    async def current_address(self) -> str | None:
        """Return active address without prompting; `None` if there's none"""
        if self._provider is None:
            return None
        with suppress(Exception):
            return await self._provider.get_active_address() or None
        _logger.debug('No wallet connected')
        return None

    async def signer(self) -> WalletSigner:
        address = await self.current_address()
        if self._provider is None or address is None:
            raise WalletUnavailableError('No active wallet session to sign with')
        return WalletSigner(self._provider, address)
