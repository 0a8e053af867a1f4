"""Environment-based configuration for a Cognito key set.

Reads settings from the process environment after loading a ``.env`` file
with python-dotenv, the same way the demo apps configure themselves.

Variables:
    COGNITO_REGION                   required, e.g. "eu-west-1"
    COGNITO_USER_POOL_ID             required, e.g. "eu-west-1_AbCdEf123"
    COGNITO_CLIENT_IDS               optional, comma separated app client ids
    COGNITO_JWKS_MIN_FETCH_INTERVAL  optional, seconds (default 300)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from dotenv import load_dotenv

from .refresh_gate import DEFAULT_MIN_INTERVAL


@dataclass(frozen=True, slots=True)
class CognitoSettings:
    """Static configuration for one user pool.

    Attributes:
        region: AWS region of the user pool.
        pool_id: User pool id.
        client_ids: App client ids accepted in ``aud`` / ``client_id``.
        min_jwks_fetch_interval: Minimum seconds between refreshes
            triggered by unknown kids.
    """

    region: str
    pool_id: str
    client_ids: tuple[str, ...] = ()
    min_jwks_fetch_interval: float = DEFAULT_MIN_INTERVAL

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        dotenv: bool = True,
    ) -> CognitoSettings:
        """Load settings from ``environ`` (default ``os.environ``).

        Args:
            environ: Mapping to read instead of the process environment.
            dotenv: Load a ``.env`` file into ``os.environ`` first.

        Raises:
            ValueError: If a required variable is missing or a value is invalid.
        """
        if dotenv:
            load_dotenv()
        env = os.environ if environ is None else environ

        region = env.get("COGNITO_REGION", "").strip()
        pool_id = env.get("COGNITO_USER_POOL_ID", "").strip()
        if not region or not pool_id:
            raise ValueError(
                "Missing required environment variables COGNITO_REGION / COGNITO_USER_POOL_ID"
            )

        client_ids = tuple(
            c.strip() for c in env.get("COGNITO_CLIENT_IDS", "").split(",") if c.strip()
        )

        raw_interval = env.get("COGNITO_JWKS_MIN_FETCH_INTERVAL", "").strip()
        if raw_interval:
            try:
                interval = float(raw_interval)
            except ValueError:
                raise ValueError(
                    f"COGNITO_JWKS_MIN_FETCH_INTERVAL must be a number, got {raw_interval!r}"
                ) from None
            if interval <= 0:
                raise ValueError(
                    f"COGNITO_JWKS_MIN_FETCH_INTERVAL must be positive, got {interval}"
                )
        else:
            interval = DEFAULT_MIN_INTERVAL

        return cls(
            region=region,
            pool_id=pool_id,
            client_ids=client_ids,
            min_jwks_fetch_interval=interval,
        )
