"""Exceptions raised by arns-migrate.

`Error` subclasses are known failures: each carries a one-line `message` for the user and a longer `help()` text
shown in debug mode. Anything else escaping the CLI is a bug.
"""

import textwrap
from abc import ABC
from abc import abstractmethod
from dataclasses import dataclass

HELP_SEPARATOR = '_' * 80


class FrameworkException(AssertionError, RuntimeError):
    pass


class ConfigInitializationException(FrameworkException):
    """Some config preparation stage was skipped. See `ArnsConfig.initialize`."""


class Error(ABC, FrameworkException):
    """Base class for known failures"""

    def __str__(self) -> str:
        return self.message

    @property
    def message(self) -> str:
        """Single line to show to the user"""
        return self.__doc__ or self.__class__.__name__

    def help(self) -> str:
        """Multiline explanation of the error and how to fix it"""
        return f'{HELP_SEPARATOR}\n\n{textwrap.dedent(self._help()).strip()}\n'

    @abstractmethod
    def _help(self) -> str: ...


@dataclass(repr=False)
class DatasourceError(Error):
    """One of datasources returned an error"""

    msg: str
    datasource: str

    @property
    def message(self) -> str:
        return f'{self.__doc__}: {self.msg}'

    def _help(self) -> str:
        return f"""
            `{self.datasource}` datasource returned an error.

            {self.msg}
        """


@dataclass(repr=False)
class InvalidRequestError(Error):
    """API returned an unexpected response"""

    msg: str
    url: str

    def _help(self) -> str:
        return f"""
            Unexpected response: {self.msg}

            URL: `{self.url}`

            Make sure that config is correct and you're calling the correct API.
        """


@dataclass(repr=False)
class ConfigurationError(Error):
    """Config is invalid"""

    msg: str

    @property
    def message(self) -> str:
        return f'{self.__doc__}: {self.msg}'

    def _help(self) -> str:
        return f"""
            {self.msg}

            See `arns-migrate config export` for the list of available options.
        """


@dataclass(repr=False)
class WalletUnavailableError(Error):
    """Wallet not found"""

    msg: str = 'No wallet provider is configured or no account is active'

    @property
    def message(self) -> str:
        return 'Wallet not found. Please configure a wallet provider and try again.'

    def _help(self) -> str:
        return f"""
            {self.msg}.

            Set `wallet.provider` in config to an import path of your wallet provider, e.g. `my_wallet:provider`.
        """


@dataclass(repr=False)
class PermissionDeniedError(Error):
    """Failed to connect wallet"""

    msg: str = 'Wallet rejected the permission request'

    @property
    def message(self) -> str:
        return 'Failed to connect wallet. Please make sure the wallet is unlocked and try again.'

    def _help(self) -> str:
        return f"""
            {self.msg}.

            Both `ACCESS_ADDRESS` and `SIGN_TRANSACTION` permissions are required.
        """


@dataclass(repr=False)
class DirectoryUnavailableError(Error):
    """Failed to fetch ARNS names"""

    msg: str

    @property
    def message(self) -> str:
        return 'Failed to fetch ARNS names. Please try again.'

    def _help(self) -> str:
        return f"""
            Registry records can't be fetched:

              {self.msg}

            Check `datasources.ao.url` and `registry.process_id` in config.
        """


@dataclass(repr=False)
class InvalidUrlError(Error):
    """Invalid Arweave URL format"""

    url: str

    @property
    def message(self) -> str:
        return 'Please enter a valid arweave.net URL (e.g., https://example.arweave.net/txId)'

    def _help(self) -> str:
        return f"""
            `{self.url}` doesn't look like an Arweave content URL.

            Expected format: `https://<subdomain>.arweave.net/<43-character transaction id>`
        """


@dataclass(repr=False)
class SubmissionFailedError(Error):
    """Migration failed"""

    msg: str
    contract_id: str

    @property
    def message(self) -> str:
        return f'Migration failed: {self.msg}'

    def _help(self) -> str:
        return f"""
            Record update was rejected for contract `{self.contract_id}`:

              {self.msg}

            Nothing has been retried. Fix the cause and run the migration again.
        """


@dataclass(repr=False)
class NameNotFoundError(Error):
    """Could not find ARNS name"""

    msg: str

    @property
    def message(self) -> str:
        return self.msg

    def _help(self) -> str:
        return f"""
            {self.msg}.

            The registry snapshot doesn't contain the expected entry. Refresh the list of names and try again.
        """
