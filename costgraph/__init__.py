"""costgraph: workload topology and prorated cost queries over a Dgraph property graph."""

__version__ = "0.1.0"
