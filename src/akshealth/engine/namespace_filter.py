"""Namespace filtering applied once before any rule runs."""

from typing import AbstractSet
import structlog

from akshealth.models import ResourceInventory

logger = structlog.get_logger(__name__)

NAMESPACED_COLLECTIONS = (
    "pods",
    "deployments",
    "services",
    "config_maps",
    "secrets",
    "horizontal_pod_autoscalers",
)


def filter_namespaces(inventory: ResourceInventory,
                      ignore_namespaces: AbstractSet[str]) -> ResourceInventory:
    """Return a copy of the inventory without objects in ignored namespaces.

    Relative order is preserved. Namespace objects whose name is ignored are
    dropped as well; cluster details, registries and constraint templates are
    left untouched.
    """
    if not ignore_namespaces:
        return inventory

    update = {
        collection: tuple(
            item for item in getattr(inventory, collection)
            if item.namespace not in ignore_namespaces
        )
        for collection in NAMESPACED_COLLECTIONS
    }
    update["namespaces"] = tuple(
        ns for ns in inventory.namespaces if ns.name not in ignore_namespaces
    )

    removed = {
        collection: len(getattr(inventory, collection)) - len(items)
        for collection, items in update.items()
    }
    logger.debug("Applied namespace filter",
                 ignore_namespaces=sorted(ignore_namespaces), removed=removed)

    return inventory.model_copy(update=update)
