from .atoms import Atom, MatePoint, build_atoms
from .config import DipoleParameters, EngineConfig, ProximityThresholds, RampConfig, SimulationConfig
from .description import AssemblyDescription, load_description, load_description_file
from .engine import ActiveMate, AssemblyEngine
from .errors import AssemblyError, ConfigurationError, MateConstructionError
from .mate import Mate
from .mate_table import MateTable
from .models import (
    AtomModel,
    DipoleMateModel,
    Gender,
    JointTemplate,
    MateModel,
    MatePointModel,
    MateState,
    ProximityMateModel,
    Transition,
)
from .transforms import Pose

__all__ = [
    "ActiveMate",
    "AssemblyDescription",
    "AssemblyEngine",
    "AssemblyError",
    "Atom",
    "AtomModel",
    "ConfigurationError",
    "DipoleMateModel",
    "DipoleParameters",
    "EngineConfig",
    "Gender",
    "JointTemplate",
    "Mate",
    "MateConstructionError",
    "MateModel",
    "MatePoint",
    "MatePointModel",
    "MateState",
    "MateTable",
    "Pose",
    "ProximityMateModel",
    "ProximityThresholds",
    "RampConfig",
    "SimulationConfig",
    "Transition",
    "build_atoms",
    "load_description",
    "load_description_file",
]
