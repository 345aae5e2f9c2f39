"""Error taxonomy shared by the analysis stages."""


class AstrovesselError(Exception):
    """Base class for all astrovessel errors."""


class ConfigurationError(AstrovesselError, ValueError):
    """Invalid parameter, calibration or grid combination.

    Raised as soon as the offending value reaches a stage; aborts the
    current image only.
    """


class ThresholdError(AstrovesselError, RuntimeError):
    """A histogram thresholding method failed to converge."""


class BackendUnavailableError(AstrovesselError, RuntimeError):
    """Requested compute backend cannot be loaded."""


class EmptyInputWarning(UserWarning):
    """A stage produced zero objects; downstream volumes will be zero."""


__all__ = [
    "AstrovesselError",
    "ConfigurationError",
    "ThresholdError",
    "BackendUnavailableError",
    "EmptyInputWarning",
]
