"""Dispatch table of transactional operations.

The registry maps operation IDs to (definition, invoker) pairs. It is built
once at startup and frozen; after ``freeze()`` it is read-only and safe to
share between concurrent requests.
"""

from types import MappingProxyType

from wildcard_bridge.operations.types import Invoker, OperationDefinition
from wildcard_bridge.telemetry import get_logger
from wildcard_bridge.telemetry.events import OPERATION_REGISTERED

log = get_logger(__name__)


class OperationRegistry:
    """Central registry of operations keyed by namespace and operation ID."""

    def __init__(self) -> None:
        """Initialize empty, mutable registry."""
        self._operations: dict[tuple[str, str], tuple[OperationDefinition, Invoker]] = {}
        self._frozen = False

    def register(self, definition: OperationDefinition, invoker: Invoker) -> None:
        """Register an operation and its aliases.

        Args:
            definition: Operation definition with its argument schema.
            invoker: Callable invoked as ``invoker(client, request)``.

        Raises:
            RuntimeError: If the registry is frozen.
            ValueError: If the operation ID or an alias is already registered.
        """
        if self._frozen:
            raise RuntimeError("Operation registry is frozen")

        keys = [definition.operation_id, *definition.aliases]
        for key in keys:
            if (definition.namespace, key) in self._operations:
                raise ValueError(f"Operation '{key}' is already registered")

        for key in keys:
            self._operations[(definition.namespace, key)] = (definition, invoker)

        log.debug(
            OPERATION_REGISTERED,
            operation_id=definition.operation_id,
            namespace=definition.namespace,
            aliases=definition.aliases,
        )

    def freeze(self) -> "OperationRegistry":
        """Make the registry read-only and return it."""
        self._frozen = True
        self._operations = MappingProxyType(dict(self._operations))  # type: ignore[assignment]
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get_operation(
        self, operation_id: str, namespace: str = "stripe"
    ) -> tuple[OperationDefinition, Invoker] | None:
        """Retrieve an operation definition and invoker.

        Args:
            operation_id: Operation ID or alias.
            namespace: Provider namespace.

        Returns:
            Tuple of (OperationDefinition, invoker) if found, None otherwise.
        """
        return self._operations.get((namespace, operation_id))

    def has_namespace(self, namespace: str) -> bool:
        """Return True if any operation is registered under the namespace."""
        return any(ns == namespace for ns, _ in self._operations)

    def list_operations(self, namespace: str | None = None) -> list[OperationDefinition]:
        """List distinct operation definitions, optionally for one namespace."""
        seen: dict[str, OperationDefinition] = {}
        for (ns, _), (definition, _) in self._operations.items():
            if namespace is None or ns == namespace:
                seen.setdefault(f"{ns}:{definition.operation_id}", definition)
        return list(seen.values())

    def list_operation_names(self, namespace: str | None = None) -> list[str]:
        """List canonical operation IDs (aliases excluded)."""
        return sorted(d.operation_id for d in self.list_operations(namespace))

    def __len__(self) -> int:
        return len(self.list_operations())
