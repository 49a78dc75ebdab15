"""Summary: Application factory wiring the ACARS services.

Importance: Builds one store and one sync loop per session instead of global state.
Alternatives: Instantiate services manually in each entrypoint.
"""

from __future__ import annotations

from dataclasses import dataclass

from acarsdispatch.config import AppConfig
from acarsdispatch.storage.sqlite_store import SqliteStore, default_store_path
from acarsdispatch.store import MessageStore
from acarsdispatch.sync import Notifier, RetryPolicy, SyncLoop
from acarsdispatch.transport import HttpTransport, Transport


@dataclass(frozen=True)
class AppServices:
    """Summary: Bundle of core services for the dispatch client.

    Importance: Simplifies passing dependencies to the API layer.
    Alternatives: Use a dependency injection container.
    """

    store: MessageStore
    sync: SyncLoop
    config: AppConfig


def build_services(
    config: AppConfig,
    transport: Transport | None = None,
    notifier: Notifier | None = None,
    autostart: bool = True,
) -> AppServices:
    """Summary: Build core services from configuration.

    Importance: Provides a single construction path; a configured logon code starts polling.
    Alternatives: Require an explicit login before any polling.
    """

    persistence = SqliteStore(config.db_path or default_store_path())
    persistence.initialize()
    store = MessageStore(persistence, dedup_window_seconds=config.dedup_window_seconds)
    sync = SyncLoop(
        store=store,
        transport=transport or HttpTransport(timeout_seconds=config.request_timeout_seconds),
        station=config.dispatch_callsign,
        base_url=config.hoppie_url,
        interval_seconds=config.poll_interval_seconds,
        retry_policy=RetryPolicy(
            max_attempts=max(1, config.retry_attempts),
            delay_seconds=config.retry_delay_seconds,
        ),
        notifier=notifier,
    )
    if autostart and config.logon_code:
        sync.activate(config.logon_code)
    return AppServices(store=store, sync=sync, config=config)
