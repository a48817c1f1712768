"""Normalization pipeline.

RawModel -> aggregate -> prerequisites -> DR clone -> Traffic Manager ->
rewire -> Traffic Manager wiring -> edge-adjacent invariants -> notes.
"""

from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from ..core.logging import get_logger
from ..models.flags import RequirementFlags
from ..models.topology import FIX_PREFIX, WARN_PREFIX, RawModel, TopologyModel
from .aggregator import aggregate
from .dr import DR_SUFFIX, DisasterRecoveryCloner, ensure_traffic_manager, wire_traffic_manager
from .invariants import InvariantEnforcer, InvariantResult
from .sanitizer import IdSession
from .wiring import rewire

log = get_logger("pipeline")


class ModelInputError(ValueError):
    """Input that cannot be read as a RawModel at all."""


def to_raw_model(source: Union[RawModel, TopologyModel, dict, Any]) -> RawModel:
    """Accept a RawModel, a previously normalized model, or a plain mapping."""
    if isinstance(source, RawModel):
        return source
    if isinstance(source, TopologyModel):
        return RawModel.model_validate(source.to_dict())
    if not isinstance(source, dict):
        raise ModelInputError(f"Expected a mapping, got {type(source).__name__}")
    try:
        return RawModel.model_validate(source)
    except ValidationError as e:
        raise ModelInputError(f"Invalid model: {e.error_count()} validation errors") from e


def load_model_file(path: Union[str, Path]) -> RawModel:
    """Read a RawModel from a JSON or YAML file."""
    file_path = Path(path)
    try:
        data = yaml.safe_load(file_path.read_text())
    except OSError as e:
        raise ModelInputError(f"Cannot read {file_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ModelInputError(f"Cannot parse {file_path}: {e}") from e
    log.debug("Loaded model from %s", file_path)
    return to_raw_model(data)


def normalize_model(
    source: Union[RawModel, TopologyModel, dict],
    flags: Optional[RequirementFlags] = None,
) -> TopologyModel:
    """Repair ``source`` into a valid topology for the requested features."""
    flags = flags or RequirementFlags()
    raw = to_raw_model(source)
    session = IdSession()
    features = flags.features()

    model = aggregate(raw, session)
    if flags.region:
        model.region = flags.region
    log.debug("Normalizing model for region %s", model.region)

    enforcer = InvariantEnforcer(model, features)
    enforcer.enforce_prerequisites()

    if flags.dr_region:
        DisasterRecoveryCloner(model, flags.dr_region, DR_SUFFIX).clone()

    if flags.traffic_manager:
        added = ensure_traffic_manager(model)
        if added:
            enforcer.result.fixes.append(f"added resource TrafficManager({added})")

    rewire(model)
    if flags.traffic_manager:
        wire_traffic_manager(model, DR_SUFFIX)

    result: InvariantResult = enforcer.enforce_edge_adjacent()

    for fix in result.fixes:
        model.add_note(f"{FIX_PREFIX}{fix}")
    for warning in result.warnings:
        model.add_note(f"{WARN_PREFIX}{warning}")
    if flags.dr_region and flags.traffic_manager:
        note = "Traffic Manager entry configured for failover."
        if note not in model.notes:
            model.add_note(note)

    log.info(
        "Normalized %d vnets, %d resources, %d edges (%d fixes, %d warnings)",
        len(model.vnets),
        len(model.resources),
        len(model.edges),
        len(result.fixes),
        len(result.warnings),
    )
    return model
