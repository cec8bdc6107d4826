"""
docgraph: metadata-driven document storage on a property graph.
"""

__version__ = "0.1.0"
