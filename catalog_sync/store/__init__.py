"""
Destination store integration.

Modules:
    snapshot       - In-memory SKU -> record lookup loaded once per run
    base           - Backend contract, batch chunking and dispatch
    api_client     - WooCommerce REST client
    rest_backend   - Batched-HTTP backend
    remote_shell   - SSH command runner
    remote_backend - MySQL + WP-CLI backend over SSH
"""

from ..common.config_loader import ConfigurationError, SyncSettings
from .api_client import WooCommerceAPIClient
from .base import BackendError, BatchDispatcher, DispatchResult, StoreBackend, chunked
from .remote_backend import RemoteExecutionBackend
from .remote_shell import RemoteCommandError, RemoteShell
from .rest_backend import RestBackend
from .snapshot import InventorySnapshot

BACKENDS = {
    "ssh": RemoteExecutionBackend,
    "rest": RestBackend,
}


def create_backend(method: str, settings: SyncSettings) -> StoreBackend:
    """
    Build the backend selected for a run.

    Raises:
        ConfigurationError: For unknown methods or missing credentials
    """
    backend_cls = BACKENDS.get(method)
    if backend_cls is None:
        raise ConfigurationError(f"Unknown sync method: {method!r}")
    return backend_cls.from_settings(getattr(settings, backend_cls.settings_section))


__all__ = [
    'BACKENDS',
    'BackendError',
    'BatchDispatcher',
    'DispatchResult',
    'InventorySnapshot',
    'RemoteCommandError',
    'RemoteExecutionBackend',
    'RemoteShell',
    'RestBackend',
    'StoreBackend',
    'WooCommerceAPIClient',
    'chunked',
    'create_backend',
]
