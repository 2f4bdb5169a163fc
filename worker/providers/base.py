"""Provider adapters - unified interface for third-party audit data sources."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from urllib.parse import urlparse

import httpx
import structlog

from worker.providers.models import AuditTarget, ProviderError, ProviderResult

logger = structlog.get_logger(__name__)


@dataclass
class ProviderConfig:
    """Configuration for a provider adapter."""

    api_key: str | None = None
    base_url: str = ""
    timeout_seconds: float = 15.0
    user_agent: str = "InboundAuditBot/1.0"


class ProviderAdapter(ABC):
    """Abstract base class for provider adapters.

    Subclasses implement ``_fetch``. ``fetch`` is the error boundary: the
    adapter's overall deadline, HTTP status failures, transport errors and
    malformed payloads all leave as ``ProviderError``.
    """

    name: str
    default_base_url: str = ""

    def __init__(
        self,
        config: ProviderConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._base_url = (config.base_url or self.default_base_url).rstrip("/")
        self._transport = transport

    async def fetch(self, target: AuditTarget) -> ProviderResult:
        """Fetch and normalize this provider's data for ``target``."""
        try:
            return await asyncio.wait_for(
                self._fetch(target), timeout=self.config.timeout_seconds
            )
        except ProviderError:
            raise
        except (TimeoutError, httpx.TimeoutException) as e:
            raise ProviderError(
                self.name, f"Timed out after {self.config.timeout_seconds:g}s"
            ) from e
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                self.name,
                f"HTTP {e.response.status_code} from {e.request.url.host}",
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"Request failed: {e}") from e
        except (ValueError, KeyError, TypeError) as e:
            raise ProviderError(self.name, f"Malformed response: {e}") from e

    @abstractmethod
    async def _fetch(self, target: AuditTarget) -> ProviderResult:
        """Provider-specific fetch; may raise httpx errors freely."""
        ...

    def _client(self, **kwargs) -> httpx.AsyncClient:
        kwargs.setdefault("timeout", self.config.timeout_seconds)
        kwargs.setdefault("headers", {"User-Agent": self.config.user_agent})
        return httpx.AsyncClient(transport=self._transport, **kwargs)

    def _require_api_key(self, env_name: str) -> str:
        if not self.config.api_key:
            raise ProviderError(self.name, f"{env_name} not configured")
        return self.config.api_key


def bare_domain(url: str) -> str:
    """Hostname without scheme, path or leading ``www.``."""
    host = urlparse(url if "://" in url else f"https://{url}").hostname or ""
    return host.removeprefix("www.").lower()
