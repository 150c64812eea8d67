"""
Butcher tableaus for the classical explicit Runge-Kutta methods of order 1 through 4.

Each tableau holds the stage nodes c, the strictly lower triangular stage matrix a, and the final
weights b. For the tableaus here the number of stages equals the order.

Currently, this subpackage implements:
- Explicit Euler (order 1).
- Explicit midpoint (order 2).
- Kutta's third-order method (order 3).
- Classical RK4 (order 4).

The coefficients are from Hairer, Norsett & Wanner, Solving Ordinary Differential Equations I,
and https://en.wikipedia.org/wiki/List_of_Runge%E2%80%93Kutta_methods.

* Copyright © 2025 RandomKiddo
"""

import enum
import numpy as np


from typing import *
from dataclasses import dataclass

from gnckit.errors import InvalidOrder


class RKOrder(enum.IntEnum):
    EULER = 1
    MIDPOINT = 2
    KUTTA3 = 3
    RK4 = 4


def _frozen(values: Sequence) -> np.ndarray:
    # Read-only float64 copy, so a tableau can never be changed after construction.
    arr = np.array(values, dtype=np.float64)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class ButcherTableau:
    """
    Coefficients of one explicit Runge-Kutta method. <br>
    :param name: Human readable name of the method. <br>
    :param order: The formal order of accuracy. <br>
    :param a: The (s, s) strictly lower triangular stage matrix. <br>
    :param b: The (s,) final weights. <br>
    :param c: The (s,) stage time offsets, as fractions of the step size.
    """

    name: str
    order: int
    a: np.ndarray
    b: np.ndarray
    c: np.ndarray

    @property
    def stages(self) -> int:
        return len(self.b)

    def is_consistent(self, tol: float = 1e-14) -> bool:
        """
        Checks the weights sum to one and every node equals its row sum of a (c_i = sum_j a_ij). <br>
        :param tol: Absolute tolerance for the comparisons, defaults to 1e-14. <br>
        :return: True if both conditions hold.
        """

        # An explicit method may only use earlier stages, so a must be strictly lower triangular.
        if np.any(np.triu(self.a) != 0):
            return False

        return bool(abs(self.b.sum() - 1.0) < tol and np.all(np.abs(self.a.sum(axis=1) - self.c) < tol))


EULER = ButcherTableau(
    name='Explicit Euler',
    order=1,
    a=_frozen([[0.0]]),
    b=_frozen([1.0]),
    c=_frozen([0.0]),
)

MIDPOINT = ButcherTableau(
    name='Explicit midpoint',
    order=2,
    a=_frozen([[0.0, 0.0],
               [0.5, 0.0]]),
    b=_frozen([0.0, 1.0]),
    c=_frozen([0.0, 0.5]),
)

KUTTA3 = ButcherTableau(
    name='Kutta third-order',
    order=3,
    a=_frozen([[0.0, 0.0, 0.0],
               [0.5, 0.0, 0.0],
               [-1.0, 2.0, 0.0]]),
    b=_frozen([1/6, 2/3, 1/6]),
    c=_frozen([0.0, 0.5, 1.0]),
)

RK4 = ButcherTableau(
    name='Classical RK4',
    order=4,
    a=_frozen([[0.0, 0.0, 0.0, 0.0],
               [0.5, 0.0, 0.0, 0.0],
               [0.0, 0.5, 0.0, 0.0],
               [0.0, 0.0, 1.0, 0.0]]),
    b=_frozen([1/6, 1/3, 1/3, 1/6]),
    c=_frozen([0.0, 0.5, 0.5, 1.0]),
)

_TABLEAUS = {
    RKOrder.EULER: EULER,
    RKOrder.MIDPOINT: MIDPOINT,
    RKOrder.KUTTA3: KUTTA3,
    RKOrder.RK4: RK4,
}


def get_tableau(order: Union[int, RKOrder]) -> ButcherTableau:
    """
    Selects the tableau for an integer order. <br>
    :param order: The Runge-Kutta order, 1, 2, 3 or 4 (an RKOrder or a plain int). <br>
    :return: The matching ButcherTableau.
    """

    # bool is an int subclass, but True is not a meaningful order. Floats are refused even when integral.
    if isinstance(order, bool) or not isinstance(order, (int, np.integer)):
        raise InvalidOrder(f'Order must be an integer in {{1, 2, 3, 4}}, got {order!r}.')

    try:
        return _TABLEAUS[RKOrder(int(order))]
    except ValueError:
        raise InvalidOrder(f'Order must be one of 1, 2, 3 or 4, got {order}.') from None
