from hmdoptics.api import HMD, EyePose, Subscription
from hmdoptics.config import HMDConfig, load_hmd_config, save_hmd_config
from hmdoptics.core.frustum import FrustumReconstructionError, FrustumWireframe, frustum_corners
from hmdoptics.core.optics import DerivedOpticalState, compute_optical_state
from hmdoptics.core.projection import EyeProjections, build_eye_projections, off_axis_projection
from hmdoptics.params import CARDBOARD, OpticalParameters, ParameterValidationError, ParamName

__all__ = [
    "HMD",
    "EyePose",
    "Subscription",
    "HMDConfig",
    "load_hmd_config",
    "save_hmd_config",
    "OpticalParameters",
    "ParamName",
    "ParameterValidationError",
    "CARDBOARD",
    "DerivedOpticalState",
    "compute_optical_state",
    "EyeProjections",
    "build_eye_projections",
    "off_axis_projection",
    "FrustumWireframe",
    "FrustumReconstructionError",
    "frustum_corners",
]
