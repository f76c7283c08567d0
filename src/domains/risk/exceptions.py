"""Risk engine errors.

Data-quality problems never raise; rules simply do not fire. These errors
mark contract violations by the caller.
"""


class PreconditionError(ValueError):
    """A required input was missing or of the wrong shape."""
