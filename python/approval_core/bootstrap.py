"""Service bootstrap.

Wires a complete ApprovalService from configuration:

1. Registry with the configured duplicate policy
2. Handlers from ``config.handlers`` (dotted class paths)
3. Handlers discovered in ``config.discovery_packages``
4. Default resolver chain (plus the lookup strategy when a lookup is given)
5. Orchestrator, dispatcher and service sharing one event bridge

Example:
    >>> from approval_core import build_service, load_config
    >>>
    >>> service = build_service(load_config(), remote_client=MyFeishuClient())
    >>> service.list_supported_types()
    ['leave_approval']
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import ApprovalCoreConfig
from .dispatcher import CallbackDispatcher
from .errors import ConfigurationError, InvalidHandlerError
from .errors.error_classifier import ErrorClassifier
from .event_bridge import EventBridge
from .logging import configure_logging, log_info, set_log_level
from .orchestrator import ApprovalOrchestrator
from .registry import TypeRegistry
from .resolution import TypeResolver
from .service import ApprovalService

if TYPE_CHECKING:
    from .collaborators import CallbackLedger, InstanceTypeLookup, RemoteApprovalClient


def build_registry(
    config: ApprovalCoreConfig,
    *,
    event_bridge: EventBridge | None = None,
) -> TypeRegistry:
    """Build a registry holding the configured and discovered handlers.

    Raises:
        ConfigurationError: If a configured handler class cannot be used.
    """
    registry = TypeRegistry(
        duplicate_policy=config.duplicate_policy,
        event_bridge=event_bridge,
    )

    for type_id, class_path in config.handlers.items():
        try:
            registry.register_class_path(type_id, class_path)
        except InvalidHandlerError as e:
            raise ConfigurationError(
                f"Invalid handler for '{type_id}': {e.message}",
                metadata={"type_id": type_id, "class_path": class_path},
            ) from e

    for package_name in config.discovery_packages:
        registry.discover_handlers(package_name)

    return registry


def build_service(
    config: ApprovalCoreConfig | None = None,
    remote_client: RemoteApprovalClient | None = None,
    *,
    lookup: InstanceTypeLookup | None = None,
    ledger: CallbackLedger | None = None,
    registry: TypeRegistry | None = None,
    event_bridge: EventBridge | None = None,
    classifier: ErrorClassifier | None = None,
    configure_logs: bool = False,
) -> ApprovalService:
    """Build an ApprovalService from configuration.

    Args:
        config: Settings; defaults are used when omitted.
        remote_client: Client for the remote approval API.
        lookup: Optional external instance type lookup.
        ledger: Optional duplicate-event guard.
        registry: Pre-built registry to use instead of building one.
        event_bridge: Bridge to publish to; a new, started one by default.
        classifier: Retry classifier for remote create failures.
        configure_logs: Install the fields log formatter. The configured
            level is applied to the ``approval_core`` logger either way.

    Returns:
        Wired ApprovalService.

    Raises:
        ConfigurationError: If no remote client is given or a configured
            handler cannot be used.
    """
    config = config or ApprovalCoreConfig()
    if remote_client is None:
        raise ConfigurationError("A remote approval client is required")

    if configure_logs:
        configure_logging(config.log_level)
    else:
        set_log_level(config.log_level)

    if event_bridge is None:
        event_bridge = EventBridge()
        event_bridge.start()

    if registry is None:
        registry = build_registry(config, event_bridge=event_bridge)

    resolver = TypeResolver.default(
        registry,
        lookup=lookup,
        separator=config.instance_id_separator,
        payload_keys=config.payload_type_keys,
        event_bridge=event_bridge,
    )
    orchestrator = ApprovalOrchestrator(
        registry,
        remote_client,
        event_bridge=event_bridge,
        classifier=classifier,
    )
    dispatcher = CallbackDispatcher(event_bridge=event_bridge)

    log_info(
        "Approval service built",
        {
            "handlers": registry.handler_count(),
            "strategies": ",".join(resolver.strategy_names),
        },
    )
    return ApprovalService(
        registry,
        resolver,
        orchestrator,
        dispatcher,
        ledger=ledger,
        event_bridge=event_bridge,
    )


__all__ = ["build_registry", "build_service"]
