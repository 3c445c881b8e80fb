"""
Boosting Exceptions

Errors raised by the boosting components when the training data cannot
support the requested computation.
"""


class DegenerateSampleError(ValueError):
    """
    数値的に退化したサンプル集合を表すエラー

    Raised when a relative error is requested for a zero target, or when the
    sample weights collapse to a zero (or non-finite) total during
    renormalization.
    """
