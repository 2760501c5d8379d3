"""Prometheus collectors for graph computation."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

relation_predicate_errors_total = Counter(
    "resourcemap_relation_predicate_errors_total",
    "Relation predicates that raised while evaluating a node pair",
    ["relation"],
)

graph_edges_inferred_total = Counter(
    "resourcemap_graph_edges_inferred_total",
    "Edges emitted by the relation inference engine",
    ["relation"],
)

graph_compute_duration_seconds = Histogram(
    "resourcemap_graph_compute_duration_seconds",
    "Wall-clock time spent in one graph computation stage",
    ["stage"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)
