"""
inventory_services -- Package init and public API.

Responsibility:
    The outer API of the inventory engine.  ``InventoryEngine`` runs every
    call in its own database transaction and is what UI and CLI code talk
    to; ``InventoryOrchestrator`` wires the kernel and import services for
    one session.

Architecture position:
    Services.  Dependency direction:
        inventory_services/ -> inventory_kernel/, inventory_ingestion/,
                               inventory_reporting/, inventory_config/
        inventory_kernel/   -> inventory_services/ (FORBIDDEN)
"""

from inventory_services.inventory_engine import InventoryEngine
from inventory_services.orchestrator import InventoryOrchestrator

__all__ = ["InventoryEngine", "InventoryOrchestrator"]
