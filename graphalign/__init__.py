"""
graphalign: Align two graphs by maximizing edge overlap with a genetic algorithm.

graphalign searches for a vertex-to-vertex mapping between two undirected graphs
that conserves as many edges as possible. The search is a seeded, anytime
metaheuristic (tournament selection, partially mapped crossover, adaptive swap
mutation, swap local search and catastrophe restarts), so a fixed seed always
reproduces the same alignment.
"""

__version__ = "0.1.0"
__author__ = "graphalign contributors"

VERSION_TEXT = (
    f"graphalign {__version__}\n"
    "Align two graphs by maximizing edge overlap with a genetic algorithm.\n"
)
