# ss_core/client/__init__.py
from ss_core.client.actor import fetch_actor
from ss_core.client.backend import BackendClient
from ss_core.client.billing import BillingLedger
from ss_core.client.config import ClientConfig
from ss_core.client.contracts import ContractCommands
from ss_core.client.conversion import LeadConversionOrchestrator
from ss_core.client.inflight import InFlightGuard

__all__ = [
    "BackendClient",
    "BillingLedger",
    "ClientConfig",
    "ContractCommands",
    "InFlightGuard",
    "LeadConversionOrchestrator",
    "fetch_actor",
]
