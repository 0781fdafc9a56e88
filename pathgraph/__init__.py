"""
Learning-Path Graph Engine
Stores prerequisite graphs of learning nodes, keeps them acyclic,
computes topological levels and produces 2-D layouts for visualization.
"""

__version__ = "0.1.0"
