"""
Build connections from named configuration mappings.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from ..adapters import ADAPTERS
from ..adapters.base import AdapterConfigurationError, ConnectionConfig, DatabaseAdapter
from ..cache import CacheManager
from ..hooks import HookDispatcher
from ..security.dsns import parse_dsn
from ..utils import get_logger
from .connection import CONNECTIONS, AdapterResolver, Connection


class ConnectionFactory:
    """
    Turns one connection configuration into a :class:`Connection`.

    The ``driver`` key picks the connection class; without it the driver is
    read from the ``url`` scheme. ``read`` holds an optional replica config
    whose keys override the write config.
    """

    def __init__(self) -> None:
        self.logger = get_logger("connections.factory")

    def make(
        self,
        name: str,
        config: Mapping[str, Any],
        *,
        dispatcher: HookDispatcher | None = None,
        cache_manager: CacheManager | None = None,
    ) -> Connection:
        config = dict(config)
        driver = self.resolve_driver(config)
        config.setdefault("driver", driver)
        if not config.get("database") and config.get("url"):
            config["database"] = parse_dsn(config["url"]).database or ""

        try:
            connection_class = CONNECTIONS[driver]
        except KeyError as exc:
            raise AdapterConfigurationError(f"Unsupported driver [{driver}].") from exc

        adapter_resolver = self.create_adapter_resolver(driver, config) if config.get("url") else None
        read_config = config.pop("read", None)
        read_resolver = None
        if read_config:
            read_resolver = self.create_adapter_resolver(driver, {**config, **dict(read_config)})

        self.logger.debug("Creating %s connection %s", driver, name)
        return connection_class(
            name,
            config,
            adapter_resolver=adapter_resolver,
            read_adapter_resolver=read_resolver,
            dispatcher=dispatcher,
            cache_manager=cache_manager,
        )

    @staticmethod
    def resolve_driver(config: Mapping[str, Any]) -> str:
        driver = config.get("driver")
        if driver:
            return "mysql" if driver == "mariadb" else driver
        url = config.get("url")
        if not url:
            raise AdapterConfigurationError("A connection needs either a driver or a url.")
        return parse_dsn(url).driver

    def create_adapter_resolver(self, driver: str, config: Mapping[str, Any]) -> AdapterResolver:
        try:
            adapter_class = ADAPTERS[driver]
        except KeyError as exc:
            raise AdapterConfigurationError(f"No adapter available for driver [{driver}].") from exc
        url = config.get("url")
        if not url:
            raise AdapterConfigurationError(f"Connection config for driver [{driver}] has no url.")
        connection_config = ConnectionConfig.from_dsn(url, options=dict(config.get("options") or {}) or None)

        def resolve() -> DatabaseAdapter:
            adapter = adapter_class(slow_query_ms=config.get("slow_query_ms"))
            adapter.connect(connection_config)
            self.logger.info("Connected %s (%s)", driver, connection_config.descriptive_label())
            return adapter

        return resolve


class DatabaseManager:
    """
    Registry of named connections built lazily from one configuration.

    ``config`` holds ``default``, ``connections`` (name -> connection config)
    and an optional global ``cache`` section.
    """

    def __init__(
        self,
        config: Mapping[str, Any],
        *,
        dispatcher: HookDispatcher | None = None,
        factory: ConnectionFactory | None = None,
    ) -> None:
        self.config = dict(config)
        self.dispatcher = dispatcher
        self.factory = factory or ConnectionFactory()
        self.cache_manager = CacheManager(self.config)
        self._connections: Dict[str, Connection] = {}

    def get_default_connection(self) -> str:
        default = self.config.get("default")
        if default:
            return default
        names = list(self.config.get("connections") or {})
        if not names:
            raise AdapterConfigurationError("No connections configured.")
        return names[0]

    def connection(self, name: Optional[str] = None) -> Connection:
        name = name or self.get_default_connection()
        if name not in self._connections:
            self._connections[name] = self.factory.make(
                name,
                self._configuration(name),
                dispatcher=self.dispatcher,
                cache_manager=self.cache_manager,
            )
        return self._connections[name]

    def _configuration(self, name: str) -> Dict[str, Any]:
        connections = self.config.get("connections") or {}
        if name not in connections:
            raise AdapterConfigurationError(f"Connection [{name}] not configured.")
        return dict(connections[name])

    def get_connections(self) -> Dict[str, Connection]:
        return dict(self._connections)

    def reconnect(self, name: Optional[str] = None) -> Connection:
        return self.connection(name).reconnect()

    def disconnect(self, name: Optional[str] = None) -> None:
        name = name or self.get_default_connection()
        if name in self._connections:
            self._connections[name].disconnect()

    def purge(self, name: Optional[str] = None) -> None:
        name = name or self.get_default_connection()
        self.disconnect(name)
        self._connections.pop(name, None)

    def terminate(self) -> None:
        for name in list(self._connections):
            self.purge(name)
        self.cache_manager.terminate()

    def table(self, table: Any, alias: str | None = None, *, connection: Optional[str] = None):
        return self.connection(connection).table(table, alias)

    def schema(self, connection: Optional[str] = None):
        return self.connection(connection).get_schema_builder()
