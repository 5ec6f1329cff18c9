"""pwsem: d-separation tests and global fit for piecewise structural equation models.

A piecewise SEM is a set of separately fitted equations, one per
endogenous variable. pwsem derives the DAG they imply, enumerates the
independence claims the DAG makes but does not test, tests each one by
refitting a model, and summarizes the result as Fisher's C plus AIC,
AICc and BIC.

    ModelAdapter (statsmodels families)
    -> ImpliedDAG (networkx)
    -> BasisSetEnumerator
    -> DSepTester
    -> FisherCAggregator (scipy chi2)
    -> FitIndexCalculator
"""

from .adapters import (
    GLMAdapter,
    GLSAdapter,
    MixedLMAdapter,
    ModelAdapter,
    OLSAdapter,
    PhylogeneticGLSAdapter,
    fit_equation,
    register_adapter,
)
from .basis import BasisSetEnumerator
from .config import AnalysisConfig
from .dag import ImpliedDAG
from .dsep import DSepTester
from .engine import PiecewiseSEM, evaluate
from .errors import (
    ConfigError,
    CyclicStructureError,
    FitError,
    InsufficientDataError,
    PwsemError,
    RefitFailure,
    UntestableClaimWarning,
)
from .fisher import P_VALUE_FLOOR, FisherCAggregator, fisher_c
from .indices import FitIndexCalculator
from .types import (
    Coefficient,
    CStatistic,
    DSepResult,
    ExcludedClaim,
    ExclusionReason,
    FitIndices,
    FitReport,
    IndependenceClaim,
)

__all__ = [
    # Engine
    "PiecewiseSEM",
    "evaluate",
    "AnalysisConfig",
    # Components
    "ImpliedDAG",
    "BasisSetEnumerator",
    "DSepTester",
    "FisherCAggregator",
    "FitIndexCalculator",
    "fisher_c",
    "P_VALUE_FLOOR",
    # Adapters
    "ModelAdapter",
    "OLSAdapter",
    "GLMAdapter",
    "MixedLMAdapter",
    "GLSAdapter",
    "PhylogeneticGLSAdapter",
    "fit_equation",
    "register_adapter",
    # Types
    "Coefficient",
    "IndependenceClaim",
    "DSepResult",
    "ExcludedClaim",
    "ExclusionReason",
    "CStatistic",
    "FitIndices",
    "FitReport",
    # Errors
    "PwsemError",
    "CyclicStructureError",
    "FitError",
    "RefitFailure",
    "InsufficientDataError",
    "ConfigError",
    "UntestableClaimWarning",
]
