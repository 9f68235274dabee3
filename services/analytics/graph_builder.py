# services/analytics/graph_builder.py
import logging
from typing import Iterable, List, Optional

import networkx as nx

from services.analytics.models import (
    AbstractRecord,
    EntityCategory,
    GraphEdge,
    GraphModel,
    GraphNode,
)
from services.analytics.normalizer import EntityNormalizer, get_normalizer
from utils.id_normalization import center_node_id, entity_node_id

logger = logging.getLogger(__name__)

CENTER_NODE_TYPE = "abstract"
ENTITY_NODE_TYPE = "entity"


def _record_digraph(
    record: AbstractRecord,
    normalizer: EntityNormalizer,
    max_entities: Optional[int] = None,
) -> nx.DiGraph:
    """
    Star graph for one record: center -> each unique entity.
    Uniqueness is case-insensitive and scoped to this record only.
    """
    G = nx.DiGraph()
    center = center_node_id(record.id)
    G.add_node(center, label=record.title or record.id, type=CENTER_NODE_TYPE, record_id=record.id, category=None)

    seen = set()
    index = 0
    for category in EntityCategory:
        for raw in record.entities.by_category(category):
            canonical = normalizer.normalize(raw, apply_false_positive_filter=False)
            if canonical is None:
                continue
            key = canonical.lower()
            if key in seen:
                continue
            if max_entities is not None and index >= max_entities:
                break
            seen.add(key)

            node_id = entity_node_id(record.id, index)
            G.add_node(node_id, label=canonical, type=ENTITY_NODE_TYPE, record_id=record.id, category=category)
            G.add_edge(center, node_id)
            index += 1

    return G


def _to_model(G: nx.DiGraph) -> GraphModel:
    return GraphModel(
        nodes=[
            GraphNode(
                id=node_id,
                label=data["label"],
                type=data["type"],
                record_id=data["record_id"],
                category=data.get("category"),
            )
            for node_id, data in G.nodes(data=True)
        ],
        edges=[GraphEdge(source=u, target=v) for u, v in G.edges()],
    )


def build_record_graph(
    record: AbstractRecord,
    normalizer: Optional[EntityNormalizer] = None,
    max_entities: Optional[int] = None,
) -> GraphModel:
    """Graph model for a single record (no layout information)."""
    normalizer = normalizer or get_normalizer()
    return _to_model(_record_digraph(record, normalizer, max_entities))


def build_batch_graph(
    records: Iterable[AbstractRecord],
    normalizer: Optional[EntityNormalizer] = None,
    max_entities: Optional[int] = None,
) -> GraphModel:
    """
    Disjoint union of per-record graphs. Entity nodes are never merged across
    records, even when their labels are identical.
    """
    normalizer = normalizer or get_normalizer()
    graphs: List[nx.DiGraph] = []
    seen_ids = set()

    for record in records:
        if record.id in seen_ids:
            raise ValueError(f"Duplicate record id in graph batch: {record.id}")
        seen_ids.add(record.id)
        graphs.append(_record_digraph(record, normalizer, max_entities))

    if not graphs:
        return GraphModel()

    # union_all raises if any node id is shared between records
    G = nx.union_all(graphs)
    logger.info("🧠 Entity graph: %d records, %d nodes, %d edges", len(graphs), G.number_of_nodes(), G.number_of_edges())
    return _to_model(G)


def to_networkx(model: GraphModel) -> nx.DiGraph:
    """Rebuild a DiGraph from a graph model (for renderers and analysis)."""
    G = nx.DiGraph()
    for node in model.nodes:
        G.add_node(node.id, label=node.label, type=node.type, record_id=node.record_id, category=node.category)
    for edge in model.edges:
        G.add_edge(edge.source, edge.target)
    return G
