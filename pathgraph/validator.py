"""
Structural validation of learning paths.

Errors (the path is invalid):
- a directed cycle among prerequisite edges,
- dangling node references in prerequisite lists or connections,
- duplicate node ids, duplicate connections, self-loops,
- no starting node / no terminal node in a non-empty path.

Warnings (advisory, ``valid`` is unaffected):
- isolated nodes (no incoming or outgoing edge) in multi-node paths.
"""

import logging
from collections import Counter
from typing import List

from pathgraph.cycles import describe_cycle, find_cycle
from pathgraph.graph import build_graph, prerequisite_view
from pathgraph.models import LearningPath, ValidationResult

logger = logging.getLogger(__name__)


def validate_path(path: LearningPath) -> ValidationResult:
    """Run every structural check on *path* and collect the findings."""
    errors: List[str] = []
    warnings: List[str] = []

    node_ids = path.node_ids()
    id_set = set(node_ids)

    G = build_graph(path)
    P = prerequisite_view(G)

    # --- Cycles ---
    cycle = find_cycle(P)
    if cycle:
        errors.append(f"Circular dependency detected: {describe_cycle(cycle)}")

    # --- Dangling references ---
    for node in path.nodes:
        for prereq in node.prerequisites:
            if prereq not in id_set:
                errors.append(
                    f"Missing prerequisite {prereq} for node {node.id}"
                )
    for conn in path.connections:
        for end in (conn.from_id, conn.to_id):
            if end not in id_set:
                errors.append(
                    f"Connection {conn.from_id} -> {conn.to_id} references "
                    f"missing node {end}"
                )

    # --- Duplicates & self-loops ---
    for node_id, count in Counter(node_ids).items():
        if count > 1:
            errors.append(f"Duplicate node id {node_id} ({count} occurrences)")

    for (src, tgt), count in Counter(c.pair for c in path.connections).items():
        if count > 1:
            errors.append(
                f"Duplicate connection {src} -> {tgt} ({count} occurrences)"
            )
        if src == tgt:
            errors.append(f"Self-loop connection on node {src}")

    for node in path.nodes:
        for prereq, count in Counter(node.prerequisites).items():
            if count > 1:
                errors.append(
                    f"Duplicate prerequisite {prereq} listed for node {node.id}"
                )
        if node.id in node.prerequisites:
            errors.append(f"Node {node.id} lists itself as a prerequisite")

    # --- Path structure ---
    if len(G) > 0:
        if not any(P.in_degree(n) == 0 for n in P.nodes):
            errors.append(
                "Path has no starting nodes - all nodes have prerequisites"
            )
        if not any(P.out_degree(n) == 0 for n in P.nodes):
            errors.append(
                "Path has no terminal nodes - all nodes have dependents"
            )

    # --- Connectivity (advisory) ---
    if len(G) > 1:
        for node_id in G.nodes:
            if G.degree(node_id) == 0:
                warnings.append(f"Isolated node {node_id} has no connections")

    valid = not errors
    logger.debug(
        "Validated path %s: valid=%s, %d error(s), %d warning(s).",
        path.id, valid, len(errors), len(warnings),
    )
    return ValidationResult(
        valid=valid,
        issues=errors + warnings,
        errors=errors,
        warnings=warnings,
    )
