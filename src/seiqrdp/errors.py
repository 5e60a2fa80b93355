"""
===========================================================
errors.py
Author: Veronica Scerra
Last Updated: 2026-10-18
===========================================================

Description:
    Exceptions and warning categories raised by the SEIQRDP
    estimator.

Notes:
    - Fatal input problems are ValueError subclasses.
    - Non-fatal conditions go through warnings.warn so callers
      can silence or escalate them with the warnings filters.
-----------------------------------------------------------
License: MIT
===========================================================
"""


class ConfigurationError(ValueError):
    """Invalid inputs or options (time axis shape, lengths, guess size)"""


class ConsistencyError(ValueError):
    """Initial compartments do not add up to the total population"""


class RateFitWarning(UserWarning):
    """A preliminary lambda/kappa fit failed and the default form was kept"""


class HighRecoveryRateWarning(UserWarning):
    """lambda(t) went above 10 somewhere on the simulation grid"""


class MissingRecoveredWarning(UserWarning):
    """No recovered counts supplied; fitting Q+R and D only"""
