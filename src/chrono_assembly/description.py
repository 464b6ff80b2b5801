"""Load mate models, atom models and engine options from a description.

A description is a plain mapping, usually read from a JSON5 file (comments
and trailing commas allowed)::

    {
        "tf_world_frame": "world",
        "publish_active_mates": true,
        "updates_per_second": 10,
        "mate_models": [
            {
                "model": "proximity",
                "type": "peg",
                "joint": {"type": "spring", "stiffness": ["spring_k"], "spring_k": 800.0},
                "symmetry": {"rot": [1, 4, 1]},
                "ramp": {"duration": 0.2, "shape": "linear"},
                "max_trans_err": 0.01
            }
        ],
        "atom_models": [
            {
                "type": "socket",
                "mate_points": [
                    {"type": "peg", "gender": "female", "pose": [0, 0.05, 0, 0, 0, 0]}
                ]
            }
        ]
    }

Poses are `[x, y, z]` or `[x, y, z, roll, pitch, yaw]`. Any invalid entry
raises `ConfigurationError` and nothing is loaded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

import json5 as json

from .config import DipoleParameters, EngineConfig, ProximityThresholds, RampConfig
from .errors import ConfigurationError
from .models import (
    MATE_MODEL_KINDS,
    AtomModel,
    DipoleMateModel,
    Gender,
    JointTemplate,
    MateModel,
    ProximityMateModel,
    build_symmetries,
)
from .transforms import pose_from_xyzrpy

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AssemblyDescription:
    """Everything needed to build an engine, minus the simulated bodies."""

    engine: EngineConfig = field(default_factory=EngineConfig)
    mate_models: dict[str, MateModel] = field(default_factory=dict)
    atom_models: dict[str, AtomModel] = field(default_factory=dict)


def load_description_file(path: str | Path) -> AssemblyDescription:
    """Read a JSON5 description file and load it."""
    path = Path(path)
    logger.info(f"Loading assembly description from: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise ConfigurationError(f"{path}: invalid JSON: {exc}") from exc
    return load_description(data)


def load_description(data: Mapping[str, Any]) -> AssemblyDescription:
    """Load a description mapping.

    Raises:
        ConfigurationError: On any missing or invalid attribute.
    """
    if not isinstance(data, Mapping):
        raise ConfigurationError("Assembly description must be a mapping")

    description = AssemblyDescription(engine=_load_engine_config(data))

    for entry in data.get("mate_models", []):
        mate_model = _load_mate_model(entry)
        if mate_model.type in description.mate_models:
            logger.warning(f"Duplicate mate model {mate_model.type!r} ignored")
            continue
        description.mate_models[mate_model.type] = mate_model
        logger.info(f"Added {mate_model.kind} mate model {mate_model.type!r}")

    for entry in data.get("atom_models", []):
        atom_model = _load_atom_model(entry, description.mate_models)
        description.atom_models[atom_model.type] = atom_model

    if description.engine.publish_active_mates:
        logger.info("Publishing active mates")
    return description


def _load_engine_config(data: Mapping[str, Any]) -> EngineConfig:
    cfg = EngineConfig()
    if "tf_world_frame" in data:
        cfg.tf_world_frame = str(data["tf_world_frame"])
        cfg.broadcast_tf = True
    cfg.broadcast_tf = bool(data.get("broadcast_tf", cfg.broadcast_tf))
    cfg.publish_active_mates = bool(data.get("publish_active_mates", cfg.publish_active_mates))
    cfg.autostart_scanner = bool(data.get("autostart_scanner", cfg.autostart_scanner))

    rate = _number(data, "updates_per_second", cfg.updates_per_second, "engine")
    if rate <= 0.0:
        raise ConfigurationError(f"updates_per_second must be > 0, got {rate}")
    cfg.updates_per_second = rate
    return cfg


def _load_mate_model(entry: Mapping[str, Any]) -> MateModel:
    kind = _required(entry, "model", "mate model")
    type_name = str(_required(entry, "type", "mate model"))
    cls = MATE_MODEL_KINDS.get(str(kind).lower())
    if cls is None:
        raise ConfigurationError(f"Mate model {type_name!r}: {kind!r} is not a valid model type")

    context = f"mate model {type_name!r}"
    template = _load_joint_template(_required(entry, "joint", context), context)

    symmetry = entry.get("symmetry") or {}
    if not isinstance(symmetry, Mapping):
        raise ConfigurationError(f"{context}: symmetry must be a mapping")
    rot = symmetry.get("rot")
    if isinstance(rot, str):
        rot = rot.split()
    try:
        symmetries = build_symmetries(rot)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{context}: invalid symmetry: {exc}") from exc

    ramp = _load_ramp(entry.get("ramp", {}), context)

    if cls is ProximityMateModel:
        thresholds = _fill(ProximityThresholds(), entry, context)
        if thresholds.sep_trans_err < thresholds.max_trans_err or thresholds.sep_rot_err < thresholds.max_rot_err:
            raise ConfigurationError(f"{context}: separation tolerances must not be tighter than mate tolerances")
        return ProximityMateModel(type_name, template, symmetries, ramp, thresholds=thresholds)

    params = _fill(DipoleParameters(), entry, context)
    if params.range <= 0.0:
        raise ConfigurationError(f"{context}: range must be > 0")
    if params.release_threshold > params.engage_threshold:
        raise ConfigurationError(f"{context}: release_threshold must not exceed engage_threshold")
    return DipoleMateModel(type_name, template, symmetries, ramp, field_params=params)


def _load_joint_template(entry: Any, context: str) -> JointTemplate:
    if not isinstance(entry, Mapping):
        raise ConfigurationError(f"{context}: joint must be a mapping")
    kind = str(_required(entry, "type", f"{context} joint"))
    stiffness = entry.get("stiffness", [])
    if isinstance(stiffness, str):
        stiffness = [stiffness]
    parameters = {k: v for k, v in entry.items() if k not in ("type", "stiffness")}
    return JointTemplate(kind=kind, parameters=parameters, stiffness_attributes=tuple(str(s) for s in stiffness))


def _load_ramp(entry: Mapping[str, Any], context: str) -> RampConfig:
    ramp = _fill(RampConfig(), entry, f"{context} ramp")
    if ramp.duration < 0.0:
        raise ConfigurationError(f"{context}: ramp duration must be >= 0")
    if ramp.shape not in ("linear", "exponential"):
        raise ConfigurationError(f"{context}: unknown ramp shape {ramp.shape!r}")
    if ramp.sharpness <= 0.0:
        raise ConfigurationError(f"{context}: ramp sharpness must be > 0")
    return ramp


def _load_atom_model(entry: Mapping[str, Any], mate_models: Mapping[str, MateModel]) -> AtomModel:
    atom_model = AtomModel(type=str(_required(entry, "type", "atom model")))
    context = f"atom model {atom_model.type!r}"

    for point in entry.get("mate_points", []):
        type_name = str(_required(point, "type", f"{context} mate point"))
        mate_model = mate_models.get(type_name)
        if mate_model is None:
            raise ConfigurationError(f"{context}: unknown mate model {type_name!r}")
        gender = Gender.parse(_required(point, "gender", f"{context} mate point"))
        try:
            base_pose = pose_from_xyzrpy(point.get("pose", [0.0, 0.0, 0.0]))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"{context}: invalid mate point pose: {exc}") from exc
        atom_model.add_mate_point(gender, base_pose, mate_model)

    logger.info(
        f"Added atom model {atom_model.type!r} with {len(atom_model.female_mate_points)} female "
        f"and {len(atom_model.male_mate_points)} male mate points"
    )
    return atom_model


def _required(entry: Mapping[str, Any], key: str, context: str) -> Any:
    if not isinstance(entry, Mapping) or key not in entry:
        raise ConfigurationError(f"{context}: missing {key!r}")
    return entry[key]


def _number(entry: Mapping[str, Any], key: str, default: float, context: str) -> float:
    value = entry.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{context}: {key} must be a number, got {value!r}") from None


def _fill(target, entry: Mapping[str, Any], context: str):
    """Overwrite dataclass fields of `target` with the matching keys of `entry`."""
    for f in fields(target):
        if f.name not in entry:
            continue
        default = getattr(target, f.name)
        if isinstance(default, str):
            setattr(target, f.name, str(entry[f.name]))
        else:
            value = _number(entry, f.name, default, context)
            if value < 0.0:
                raise ConfigurationError(f"{context}: {f.name} must be >= 0, got {value}")
            setattr(target, f.name, value)
    return target
