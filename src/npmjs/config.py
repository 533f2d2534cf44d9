"""Client configuration."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

import aiohttp

from npmjs.constants import Constants


@dataclass
class RegistryConfig:
    """Configuration for a ``Registry`` client.

    Backoff delays are in milliseconds; ``timeout`` is in seconds and ``None``
    leaves the transport default in place.
    """

    registry: str = Constants.REGISTRY_URL
    mirrors: List[str] = field(default_factory=lambda: list(Constants.MIRRORS))
    statservice: str = Constants.STATSERVICE_URL
    retries: int = Constants.BACKOFF_RETRIES
    mindelay: float = Constants.BACKOFF_MINDELAY_MS
    maxdelay: float = Constants.BACKOFF_MAXDELAY_MS
    factor: float = Constants.BACKOFF_FACTOR
    user: Optional[str] = None
    password: Optional[str] = None
    authorization: Optional[str] = None
    user_agent: str = Constants.USER_AGENT
    timeout: Optional[float] = None
    githulk: Any = None

    def __post_init__(self) -> None:
        if self.retries < 0:
            raise ValueError("retries must be >= 0")
        if self.mindelay <= 0:
            raise ValueError("mindelay must be positive")
        if self.mindelay > self.maxdelay:
            raise ValueError("mindelay must not exceed maxdelay")
        if self.factor < 1:
            raise ValueError("factor must be >= 1")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RegistryConfig":
        """Create config from ``NPMJS_*`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Returns:
            RegistryConfig instance.
        """
        env = os.environ if environ is None else environ
        config_kwargs: dict = {}

        if env.get(Constants.ENV_REGISTRY):
            config_kwargs["registry"] = env[Constants.ENV_REGISTRY].strip()
        if env.get(Constants.ENV_MIRRORS) is not None:
            config_kwargs["mirrors"] = [
                url.strip() for url in env[Constants.ENV_MIRRORS].split(",") if url.strip()
            ]
        if env.get(Constants.ENV_STATSERVICE):
            config_kwargs["statservice"] = env[Constants.ENV_STATSERVICE].strip()
        if env.get(Constants.ENV_RETRIES):
            config_kwargs["retries"] = int(env[Constants.ENV_RETRIES])
        if env.get(Constants.ENV_MINDELAY):
            config_kwargs["mindelay"] = float(env[Constants.ENV_MINDELAY])
        if env.get(Constants.ENV_MAXDELAY):
            config_kwargs["maxdelay"] = float(env[Constants.ENV_MAXDELAY])
        if env.get(Constants.ENV_FACTOR):
            config_kwargs["factor"] = float(env[Constants.ENV_FACTOR])
        if env.get(Constants.ENV_USER):
            config_kwargs["user"] = env[Constants.ENV_USER]
        if env.get(Constants.ENV_PASSWORD):
            config_kwargs["password"] = env[Constants.ENV_PASSWORD]
        if env.get(Constants.ENV_TOKEN):
            config_kwargs["authorization"] = env[Constants.ENV_TOKEN].strip()

        return cls(**config_kwargs)

    def authorization_header(self) -> Optional[str]:
        """Compute the ``Authorization`` header value, if any.

        An explicit ``authorization`` wins; a bare token is sent as a Bearer
        credential. Otherwise ``user``/``password`` produce Basic auth.
        """
        if self.authorization:
            if " " in self.authorization.strip():
                return self.authorization.strip()
            return f"Bearer {self.authorization.strip()}"
        if self.user and self.password:
            return aiohttp.BasicAuth(self.user, self.password).encode()
        return None
