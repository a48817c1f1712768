"""Normalization and invariant enforcement for hub-and-spoke topologies."""

from .sanitizer import IdSession, id_safe
from .types import normalize_type, DEFAULT_KIND
from .aggregator import aggregate, TopologyAggregator
from .invariants import InvariantEnforcer, InvariantResult, enforce
from .wiring import rewire, add_edge, entry_point, ON_PREMISES_ID
from .dr import (
    DisasterRecoveryCloner,
    ensure_traffic_manager,
    wire_traffic_manager,
    shift_cidr,
    DR_SUFFIX,
)
from .pipeline import normalize_model, to_raw_model, load_model_file, ModelInputError

__all__ = [
    "IdSession",
    "id_safe",
    "normalize_type",
    "DEFAULT_KIND",
    "aggregate",
    "TopologyAggregator",
    "InvariantEnforcer",
    "InvariantResult",
    "enforce",
    "rewire",
    "add_edge",
    "entry_point",
    "ON_PREMISES_ID",
    "DisasterRecoveryCloner",
    "ensure_traffic_manager",
    "wire_traffic_manager",
    "shift_cidr",
    "DR_SUFFIX",
    "normalize_model",
    "to_raw_model",
    "load_model_file",
    "ModelInputError",
]
