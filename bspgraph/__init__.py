"""bspgraph: vertex-centric BSP graph analytics."""

__version__ = "0.1.0"
