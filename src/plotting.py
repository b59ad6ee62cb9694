"""Visualization of pedigree trees."""

from pathlib import Path

import pydot

from logging_config import get_logger
from models import PedigreeNode, PedigreeTree, Sex

logger = get_logger(__name__)

FILL_COLORS = {
    Sex.MALE: "lightblue",
    Sex.FEMALE: "lightpink",
    Sex.UNDETERMINED: "lightgray",
}


def _node_label(node: PedigreeNode) -> str:
    individual = node.individual
    birth_year = individual.birth_date.year if individual.birth_date else ""
    return f"{individual.name}\n{individual.band}\n{birth_year}"


def build_pedigree_dot(tree: PedigreeTree) -> pydot.Dot:
    """
    Build a Graphviz chart of a pedigree tree.

    Ancestors sit above their descendants and both parents of a bird share a
    rank. An ancestor reached along two lines is drawn once per position, as
    a pedigree chart does.
    """
    P = pydot.Dot(graph_type="digraph")
    P.set("rankdir", "BT")  # Root at the bottom, ancestors above
    P.set("splines", "ortho")
    P.set("nodesep", "0.4")
    P.set("ranksep", "0.6")

    # Positions are named by their path from the root: r, rF, rM, rFF, ...
    stack = [("r", tree.root)]
    while stack:
        position, node = stack.pop()
        P.add_node(
            pydot.Node(
                position,
                label=_node_label(node),
                shape="box",
                style="rounded,filled",
                fillcolor=FILL_COLORS[node.individual.sex],
                fontsize="10",
            )
        )

        parents = [(f"{position}F", node.father), (f"{position}M", node.mother)]
        present = [(name, parent) for name, parent in parents if parent is not None]
        for name, parent in present:
            P.add_edge(pydot.Edge(position, name, dir="back", color="darkgray"))
            stack.append((name, parent))

        if len(present) == 2:
            sg = pydot.Subgraph(f"parents_{position}", rank="same")
            for name, _ in present:
                sg.add_node(pydot.Node(name))
            P.add_subgraph(sg)

    return P


def plot_pedigree(tree: PedigreeTree, output_path: Path | None = None):
    """
    Render a pedigree tree with Graphviz.

    Args:
        tree: Pedigree built by pedigree.build_tree
        output_path: Path to save the output image (png, svg or pdf). If None,
            displays interactively.
    """
    P = build_pedigree_dot(tree)

    if output_path:
        ext = output_path.suffix.lower().lstrip(".")
        if ext not in ("png", "svg", "pdf"):
            ext = "png"

        P.write(str(output_path), format=ext)
        logger.info("pedigree_plotted", path=str(output_path), format=ext)
    else:
        import tempfile

        import matplotlib.image as mpimg
        import matplotlib.pyplot as plt

        with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as f:
            preview = Path(f.name)
        try:
            P.write(str(preview), format="png")
            img = mpimg.imread(preview)
            plt.figure(figsize=(20, 16))
            plt.imshow(img)
            plt.axis("off")
            plt.tight_layout()
            plt.show()
        finally:
            preview.unlink(missing_ok=True)
