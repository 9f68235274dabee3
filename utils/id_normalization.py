# utils/id_normalization.py
from typing import Any, Optional

ENTITY_SEPARATOR = "::"


def normalize_record_id(raw_id: Any) -> Optional[str]:
    if raw_id is None:
        return None
    rid = str(raw_id).strip()
    return rid or None


def escape_record_id(record_id: str) -> str:
    """
    Reversible escape that removes ':' from a record id, so an escaped id can
    never contain the entity separator.
    """
    return record_id.replace("%", "%25").replace(":", "%3A")


def center_node_id(record_id: str) -> str:
    """
    The center node of a record graph is the (escaped) record id itself.
    Center ids never contain ':'.
    """
    return escape_record_id(record_id)


def entity_node_id(record_id: str, index: int) -> str:
    """
    Entity node ids are scoped to the owning record:
    '<escaped record_id>::entity-<index>'. They always contain '::', so they
    never equal a center id, and two records never share an entity node,
    even when the entity labels are identical.
    """
    if index < 0:
        raise ValueError(f"Entity index must be non-negative, got {index}")
    return f"{escape_record_id(record_id)}{ENTITY_SEPARATOR}entity-{index}"
