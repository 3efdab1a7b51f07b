"""
Visualization utilities for graphalign.
"""
import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
import networkx as nx
from pathlib import Path
from typing import Dict, Hashable
import logging

from graphalign.alignment.objective import is_conserved_edge

logger = logging.getLogger(__name__)


def plot_alignment(
    graph1,
    graph2,
    mapping: Dict[Hashable, Hashable],
    output_file: Path,
    seed: int = 42,
):
    """
    Plot the source graph with conserved edges highlighted and save to file.

    Args:
        graph1: Source graph (AlignmentGraph)
        graph2: Target graph (AlignmentGraph)
        mapping: Source vertex -> target vertex
        output_file: Path to save .png image
        seed: Layout seed
    """
    try:
        g = nx.Graph()
        g.add_nodes_from(graph1.vertices())
        g.add_edges_from(graph1.edges())

        conserved = []
        other = []
        for u, v in g.edges():
            if is_conserved_edge(graph2, mapping, u, v):
                conserved.append((u, v))
            else:
                other.append((u, v))

        pos = nx.spring_layout(g, seed=seed)

        fig, ax = plt.subplots(figsize=(10, 10))

        # All non-conserved edges in gray first
        nx.draw_networkx_edges(g, pos, edgelist=other, ax=ax, edge_color='#333333', width=0.8, alpha=0.6)
        # Conserved edges in red so they stand out clearly.
        nx.draw_networkx_edges(g, pos, edgelist=conserved, ax=ax, edge_color='#e53935', width=1.8, alpha=0.95)

        mapped = [v for v in g.nodes if v in mapping]
        unmapped = [v for v in g.nodes if v not in mapping]
        nx.draw_networkx_nodes(g, pos, nodelist=mapped, ax=ax, node_color='#1e88e5', node_size=160)
        if unmapped:
            nx.draw_networkx_nodes(g, pos, nodelist=unmapped, ax=ax, node_color='#bdbdbd', node_size=120)
        if g.number_of_nodes() <= 60:
            nx.draw_networkx_labels(
                g, pos, labels={v: f"{v}→{mapping[v]}" if v in mapping else str(v) for v in g.nodes},
                ax=ax, font_size=7,
            )

        ax.axis('off')

        meta_lines = [f"Edges: {g.number_of_edges()}", f"Conserved: {len(conserved)}"]
        ax.text(0.02, 0.02, "\n".join(meta_lines), transform=ax.transAxes, fontsize=8)

        fig.savefig(output_file, dpi=150, bbox_inches='tight', pad_inches=0.1)
        plt.close(fig)

        logger.debug(f"Saved alignment plot to {output_file}")

    except Exception as e:
        logger.error(f"Failed to plot alignment: {e}")
