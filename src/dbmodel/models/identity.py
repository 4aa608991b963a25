"""
Model identity: a single key value or a map of key columns
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SingleId:
    """Id of a table with one primary key column"""
    value: Any

    def normalize(self, pk_fields: List[str]) -> Dict[str, Any]:
        if not pk_fields:
            logger.warning("Table has no primary key, cannot normalize id")
            return {}
        if len(pk_fields) > 1:
            logger.warning(
                f"Single id {self.value!r} used with composite key {pk_fields}, "
                f"mapping it to '{pk_fields[0]}'"
            )
        return {pk_fields[0]: self.value}

    def public(self) -> Any:
        return self.value


@dataclass(frozen=True)
class CompositeId:
    """Id of a table with several primary key columns"""
    items: Tuple[Tuple[str, Any], ...]

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "CompositeId":
        return cls(tuple(values.items()))

    def normalize(self, pk_fields: List[str]) -> Dict[str, Any]:
        return dict(self.items)

    def public(self) -> Dict[str, Any]:
        return dict(self.items)


Id = Union[SingleId, CompositeId]


def make_id(raw: Any, pk_fields: List[str]) -> Optional[Id]:
    """
    Convert a caller supplied id to an Id

    Args:
        raw: Scalar, mapping of column to value, or positional sequence
        pk_fields: Primary key columns of the storage, in declared order

    Returns:
        SingleId, CompositeId, or None when raw is None
    """
    if raw is None:
        return None
    if isinstance(raw, (SingleId, CompositeId)):
        return raw

    if isinstance(raw, Mapping):
        if len(pk_fields) == 1:
            pk = pk_fields[0]
            if pk in raw:
                return SingleId(raw[pk])
            if len(raw) == 1:
                return SingleId(next(iter(raw.values())))
        ordered = {name: raw[name] for name in pk_fields if name in raw}
        if len(ordered) != len(pk_fields):
            logger.warning(f"Id {dict(raw)} does not match primary key {pk_fields}")
            ordered = {name: value for name, value in raw.items()}
        return CompositeId.from_mapping(ordered)

    if isinstance(raw, (list, tuple)):
        if len(pk_fields) == 1 and len(raw) == 1:
            return SingleId(raw[0])
        if len(raw) != len(pk_fields):
            logger.warning(
                f"Positional id {list(raw)} has {len(raw)} values but primary key "
                f"{pk_fields} has {len(pk_fields)} columns"
            )
            return CompositeId(())
        return CompositeId(tuple(zip(pk_fields, raw)))

    return SingleId(raw)
