# --- src/ecatsim_core/constants.py ---
import logging

logger = logging.getLogger(__name__)

#: Index of the reference (ground) node in every topology.
GROUND_NODE_INDEX: int = 0

#: Large finite admittance used for ideal shorts (R=0, L=0 above DC) in the system matrix.
#: Value: 1e12 Siemens (1 micro-ohm).
LARGE_ADMITTANCE_SIEMENS: float = 1.0e12

#: Largest magnitude accepted for any component parameter.
MAXIMUM_PARAMETER_VALUE: float = 1.0e100

#: Default rounding grid for deciding that two terminal positions coincide.
DEFAULT_POSITION_GRID: float = 1.0e-3

#: Default bound on operating-mode re-assumptions for op-amps and transistors.
DEFAULT_MAX_MODE_ITERATIONS: int = 100

logger.debug("Defined core constants.")
