import time
import logging
from typing import Any, Dict, Optional

import requests

from .errors import ProxyError, TransactionTimeoutError

logger = logging.getLogger(__name__)

PENDING_STATUSES = ("pending", "received", "partially-executed")


class ProxyClient:
    """Read-only access to the network proxy REST API"""

    def __init__(self, proxy_url: str, timeout: int = 30, session: Optional[requests.Session] = None):
        self.proxy_url = proxy_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, path: str) -> Dict[str, Any]:
        url = f"{self.proxy_url}/{path.lstrip('/')}"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            raise ProxyError(f"Proxy request to {url} failed: {e}", status_code=status_code) from e
        except requests.exceptions.RequestException as e:
            raise ProxyError(f"Could not reach proxy at {url}: {e}") from e
        except ValueError as e:
            raise ProxyError(f"Proxy returned invalid JSON for {url}") from e

        if not isinstance(payload, dict):
            raise ProxyError(f"Unexpected proxy response for {url}: {payload!r}")
        if payload.get("error"):
            raise ProxyError(f"Proxy error for {url}: {payload['error']}")
        data = payload.get("data") or {}
        if not isinstance(data, dict):
            raise ProxyError(f"Unexpected data in proxy response for {url}: {data!r}")
        return data

    def get_transaction_status(self, tx_hash: str) -> str:
        """Fetch the processing status of a transaction"""
        data = self._get(f"transaction/{tx_hash}/status")
        status = data.get("status")
        if not status:
            raise ProxyError(f"No status returned for transaction {tx_hash}")
        return status

    def wait_for_transaction(self, tx_hash: str, timeout: float = 120, poll_interval: float = 6) -> str:
        """Poll until the transaction leaves the pending states and return its final status"""
        deadline = time.monotonic() + timeout
        while True:
            status = self.get_transaction_status(tx_hash)
            if status not in PENDING_STATUSES:
                logger.info(f"Transaction {tx_hash} finished with status '{status}'")
                return status
            if time.monotonic() >= deadline:
                raise TransactionTimeoutError(
                    f"Transaction {tx_hash} still '{status}' after {timeout}s"
                )
            logger.info(f"Transaction {tx_hash} is {status}, checking again in {poll_interval}s")
            time.sleep(poll_interval)
