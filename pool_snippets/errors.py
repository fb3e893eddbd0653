"""Exceptions raised by the liquidity pool snippets"""

from typing import Optional


class SnippetError(Exception):
    """Base class for all snippet errors"""


class ConfigurationError(SnippetError):
    """Invalid network profile or environment override"""


class ContractNotDeployedError(SnippetError):
    """No contract address is stored for the selected network"""


class MoapyNotFoundError(SnippetError):
    """The moapy executable could not be started"""


class MoapyCommandError(SnippetError):
    """A moapy invocation exited with a non-zero status"""

    def __init__(self, result):
        self.result = result
        message = f"moapy exited with status {result.returncode}: {' '.join(result.args)}"
        output = (result.stderr or "").strip() or (result.stdout or "").strip()
        if output:
            message = f"{message}\n{output}"
        super().__init__(message)

    @property
    def returncode(self) -> int:
        return self.result.returncode


class ProxyError(SnippetError):
    """The network proxy returned an error or an unexpected payload"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransactionTimeoutError(SnippetError):
    """A transaction did not reach a final status in time"""
