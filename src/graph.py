"""NetworkX graph building over the whole registry."""

import networkx as nx

from models import Individual


def build_graph(individuals: list[Individual]) -> nx.DiGraph:
    """Build a directed parent -> child graph from registry records.

    Edges carry ``relationship_type="PARENT_OF"`` and the parent's ``role``.
    References to individuals missing from ``individuals`` are not added as
    edges; they are listed in ``G.graph["dangling"]`` as (child, role, id).
    """
    G = nx.DiGraph()
    G.graph["dangling"] = []

    # Note: use 'bird_name' instead of 'name' to avoid conflict with pydot
    for individual in individuals:
        G.add_node(
            individual.id,
            bird_name=individual.name,
            band=individual.band,
            sex=individual.sex,
            birth_date=individual.birth_date,
        )

    for individual in individuals:
        for role, parent_id in (("father", individual.father_id), ("mother", individual.mother_id)):
            if not parent_id:
                continue
            if parent_id not in G:
                G.graph["dangling"].append((individual.id, role, parent_id))
                continue
            G.add_edge(parent_id, individual.id, relationship_type="PARENT_OF", role=role)

    return G


def pedigree_subgraph(G: nx.DiGraph, center_id: str, generations: int = 5) -> nx.DiGraph:
    """
    Extract the ancestors of ``center_id`` up to ``generations`` levels, the
    bird itself counting as the first.

    Args:
        G: The registry graph from build_graph
        center_id: The bird whose pedigree is wanted
        generations: Number of generations, including the bird itself

    Returns:
        The subgraph induced by the bird and its ancestors within range
    """
    if center_id not in G:
        raise ValueError(f"Individual {center_id} not found in graph")

    # Ancestors are predecessors, so walk the reversed view
    distances = nx.single_source_shortest_path_length(
        G.reverse(copy=False), center_id, cutoff=generations - 1
    )
    H = G.subgraph(distances).copy()
    H.graph["dangling"] = [entry for entry in G.graph.get("dangling", []) if entry[0] in H]
    return H
