"""
Error kinds raised by the fixed-step Runge-Kutta integrator.

Every error derives from IntegrationError, and also from the built-in exception a caller would
naturally expect (ValueError for bad configuration, RuntimeError for a failure inside the RHS).

* Copyright © 2025 RandomKiddo
"""


from typing import *


class IntegrationError(Exception):
    """
    Base class for every error raised during an integration call.
    """


class InvalidOrder(IntegrationError, ValueError):
    """
    The requested Runge-Kutta order is not one of 1, 2, 3 or 4.
    """


class InvalidStep(IntegrationError, ValueError):
    """
    The step size is zero, not finite, or points away from t1.
    """


class InvalidSystem(IntegrationError, ValueError):
    """
    The ODE system is malformed (dimension < 1, wrong y0 length, rhs not callable).
    """


class InvalidBuffer(IntegrationError, ValueError):
    """
    An output buffer does not have the capacity, dtype or layout the integration needs.
    """


class CallbackFailure(IntegrationError, RuntimeError):
    """
    The RHS callback raised, or returned something that is not a length-dimension real vector. <br>
    :param message: Description of the failure. <br>
    :param step: Index of the step being computed (1 is the first advance from t0). <br>
    :param stage: Index of the stage being evaluated within that step, starting from 1.
    """

    def __init__(self, message: str, step: Optional[int] = None, stage: Optional[int] = None) -> None:
        super().__init__(message)
        self.step = step
        self.stage = stage
