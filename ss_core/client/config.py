# ss_core/client/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal

from dotenv import load_dotenv


@dataclass(frozen=True)
class ClientConfig:
    base_url: str
    organization_id: str
    facility_id: str
    token: str | None = None
    timeout: float = 15.0
    total_epsilon: Decimal = Decimal("0.01")

    @classmethod
    def from_env(cls) -> "ClientConfig":
        load_dotenv()
        return cls(
            base_url=os.getenv("SS_API_BASE_URL", "http://127.0.0.1:8000/api/v1"),
            organization_id=os.getenv("SS_ORGANIZATION_ID", ""),
            facility_id=os.getenv("SS_FACILITY_ID", ""),
            token=os.getenv("SS_API_TOKEN") or None,
            timeout=float(os.getenv("SS_API_TIMEOUT", "15")),
            total_epsilon=Decimal(os.getenv("SS_TOTAL_EPSILON", "0.01")),
        )
