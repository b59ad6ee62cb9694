"""Bounded-depth pedigree reconstruction and its summary statistics."""

from config import MAX_GENERATIONS
from errors import RootNotFoundError, TreeDepthExceededError, ValidationError
from logging_config import get_logger
from models import PedigreeNode, PedigreeStatistics, PedigreeTree
from store import RecordStore

logger = get_logger(__name__)


def check_generations(max_generations: int) -> None:
    if max_generations > MAX_GENERATIONS:
        raise TreeDepthExceededError(max_generations, MAX_GENERATIONS)
    if max_generations < 1:
        raise ValidationError(
            f"At least one generation must be requested, got {max_generations}",
            requested=max_generations,
        )


def build_tree(store: RecordStore, root_id: str, max_generations: int = 5) -> PedigreeTree:
    """
    Reconstruct the ancestry of ``root_id`` down to ``max_generations`` levels.

    Generation 1 is the root alone; each further generation expands the
    father and mother of every node on the previous one. A parent reference
    that points at a missing record leaves that branch empty. Only a missing
    root is an error.

    Args:
        store: Record store to read from
        root_id: The individual whose pedigree is wanted
        max_generations: Depth of the tree, 1 to 10

    Returns:
        The tree with its statistics attached

    Raises:
        TreeDepthExceededError: more than 10 generations requested, raised
            before the store is touched
        RootNotFoundError: ``root_id`` does not exist
    """
    check_generations(max_generations)

    root = store.get(root_id)
    if root is None:
        raise RootNotFoundError(root_id)

    root_node = PedigreeNode(root)
    # (node, remaining generations including the node's own)
    stack = [(root_node, max_generations)]
    while stack:
        node, remaining = stack.pop()
        if remaining <= 1:
            continue
        for role in ("father", "mother"):
            parent_id = getattr(node.individual, f"{role}_id")
            if not parent_id:
                continue
            parent = store.get(parent_id)
            if parent is None:
                continue
            parent_node = PedigreeNode(parent)
            setattr(node, role, parent_node)
            stack.append((parent_node, remaining - 1))

    tree = PedigreeTree(root=root_node, statistics=compute_statistics(root_node))
    logger.debug(
        "pedigree_built",
        root_id=root_id,
        max_generations=max_generations,
        total_ancestors=tree.statistics.total_ancestors,
        generations=tree.statistics.generations,
    )
    return tree


def compute_statistics(root: PedigreeNode) -> PedigreeStatistics:
    """Count the ancestors in a built tree and the deepest generation reached (root = 1)."""
    total = 0
    deepest = 1
    stack = [(root, 1)]
    while stack:
        node, depth = stack.pop()
        deepest = max(deepest, depth)
        for parent in (node.father, node.mother):
            if parent is not None:
                total += 1
                stack.append((parent, depth + 1))
    return PedigreeStatistics(total_ancestors=total, generations=deepest)
