# src/ecatsim_core/analysis/__init__.py
from .exceptions import TopologyError
from .results import Node, Topology
from .topology import NodeAggregator

__all__ = [
    "TopologyError",
    "Node",
    "Topology",
    "NodeAggregator",
]
