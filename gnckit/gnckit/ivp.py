"""
This code is for fixed-step explicit Runge-Kutta integration of initial value problems (IVPs).

The system dy/dt = f(t, y) is described by an ODESystem and integrated with one of the classical
tableaus of order 1 to 4 (see tableaus.py). The step size h is fixed for the whole run: the time grid
is t_i = t0 + i*h for i = 0, ..., N-1 with N = floor((t1 - t0) / h) + 1. When (t1 - t0) is not a
multiple of h the last grid point falls short of t1. The grid is never clamped and no partial final
step is taken.

Output buffers are owned by the caller. Use num_steps() or allocate_trajectory() to size them, then
pass them to integrate(), which fills them in place. solve() does both for you.

One step works as follows:
1. Evaluate the stages, k_i = f(t + c_i*h, y + h * sum_{j<i} a_ij*k_j).
2. Advance the state, y_next = y + h * sum_i b_i*k_i.

The engine keeps no module-level state, so independent integrations may run on separate threads.

* Copyright © 2025 RandomKiddo
"""

import math
import warnings
import numpy as np


from typing import *
from dataclasses import dataclass

from gnckit.errors import CallbackFailure, InvalidBuffer, InvalidStep, InvalidSystem
from gnckit.tableaus import ButcherTableau, RKOrder, get_tableau


@dataclass(frozen=True)
class ODESystem:
    """
    A first-order ODE system and its initial value problem. The engine never mutates it. <br>
    :param rhs: The right-hand side. Called as rhs(t, y, params), or rhs(t, y) when params is None. <br>
    :param params: Context handed unchanged to every rhs call. None for closures that capture their own. <br>
    :param dimension: Number of scalar state variables, at least 1. <br>
    :param t0: The start time. <br>
    :param t1: The end time. <br>
    :param y0: The initial state at t0, a sequence of dimension reals.
    """

    rhs: Callable[..., Any]
    params: Any
    dimension: int
    t0: float
    t1: float
    y0: Sequence[float]

    def validate(self) -> None:
        """
        Checks the system invariants, raising InvalidSystem on the first one that fails.
        """

        if not callable(self.rhs):
            raise InvalidSystem(f'rhs must be callable, got {type(self.rhs).__name__}.')

        if isinstance(self.dimension, bool) or not isinstance(self.dimension, (int, np.integer)):
            raise InvalidSystem(f'dimension must be an integer, got {self.dimension!r}.')
        if self.dimension < 1:
            raise InvalidSystem(f'dimension must be at least 1, got {self.dimension}.')

        try:
            y0 = np.asarray(self.y0, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise InvalidSystem(f'y0 must be a sequence of reals: {exc}') from exc
        if y0.ndim != 1 or y0.size != self.dimension:
            raise InvalidSystem(f'y0 must hold exactly {self.dimension} values, got shape {y0.shape}.')

        try:
            finite = math.isfinite(self.t0) and math.isfinite(self.t1)
        except TypeError:
            finite = False
        if not finite:
            raise InvalidSystem(f't0 and t1 must be finite, got t0={self.t0}, t1={self.t1}.')

    def call_rhs(self, t: float, y: np.ndarray) -> Any:
        # Closures carry their own parameters and are called without a context argument.
        if self.params is None:
            return self.rhs(t, y)
        return self.rhs(t, y, self.params)


def num_steps(t0: float, t1: float, h: float) -> int:
    """
    Number of grid points N = floor((t1 - t0) / h) + 1 produced by a fixed-step integration. <br>
    :param t0: The start time. <br>
    :param t1: The end time. <br>
    :param h: The step size. Nonzero, finite, and with the same sign as t1 - t0. <br>
    :return: The int N, at least 1.
    """

    if not math.isfinite(h) or h == 0:
        raise InvalidStep(f'Step size must be finite and nonzero, got h={h}.')

    # h must point from t0 towards t1. A zero span is fine for either sign and gives N = 1.
    span = t1 - t0
    if span != 0 and math.copysign(1.0, span) != math.copysign(1.0, h):
        raise InvalidStep(f'Step size h={h} does not have the sign of t1 - t0 = {span}.')

    return int(math.floor(span / h)) + 1


def allocate_trajectory(system: ODESystem, h: float, dtype: Any = np.float64) -> Tuple[np.ndarray, np.ndarray]:
    """
    Allocates empty output buffers sized for integrating system with step h. <br>
    :param system: The ODESystem to be integrated. <br>
    :param h: The step size. <br>
    :param dtype: The real floating dtype of both buffers, defaults to float64. <br>
    :return: The times buffer of shape (N,) and the states buffer of shape (N, dimension).
    """

    if np.dtype(dtype).kind != 'f':
        raise InvalidBuffer(f'Buffers must have a real floating dtype, got {np.dtype(dtype)}.')

    system.validate()
    n = num_steps(system.t0, system.t1, h)

    return np.empty(n, dtype=dtype), np.empty((n, system.dimension), dtype=dtype)


def evaluate_stages(system: ODESystem, tableau: ButcherTableau, t: float, y: np.ndarray, h: float,
                    step: Optional[int] = None) -> np.ndarray:
    """
    Computes the stage derivatives k_1, ..., k_s for one step starting at (t, y). <br>
    :param system: The ODESystem providing the rhs and its params. <br>
    :param tableau: The ButcherTableau of the method. <br>
    :param t: The time at the start of the step. <br>
    :param y: The state at the start of the step, a (dimension,) array. <br>
    :param h: The step size. <br>
    :param step: The step index, only used to report callback failures. <br>
    :return: An (s, dimension) array with one stage derivative per row.
    """

    a = np.asarray(tableau.a, dtype=y.dtype)
    k = np.empty((tableau.stages, y.size), dtype=y.dtype)

    for i in range(tableau.stages):
        # Only earlier stages contribute in an explicit method. For i = 0 this is just a copy of y.
        stage_input = y + h * (a[i, :i] @ k[:i])
        stage_time = t + tableau.c[i] * h

        try:
            out = system.call_rhs(stage_time, stage_input)
        except Exception as exc:
            raise CallbackFailure(f'rhs raised at t={stage_time} (step {step}, stage {i+1}): {exc!r}',
                                  step=step, stage=i+1) from exc

        try:
            out = np.asarray(out, dtype=y.dtype)
        except (TypeError, ValueError) as exc:
            raise CallbackFailure(f'rhs returned a non-real value at t={stage_time} (step {step}, stage {i+1}).',
                                  step=step, stage=i+1) from exc
        if out.size != y.size:
            raise CallbackFailure(f'rhs returned {out.size} values, expected {y.size} (step {step}, stage {i+1}).',
                                  step=step, stage=i+1)

        k[i] = out.reshape(-1)

    return k


def advance(tableau: ButcherTableau, t: float, y: np.ndarray, h: float, k: np.ndarray) -> Tuple[float, np.ndarray]:
    """
    Combines the stages into the next state, y_next = y + h * sum_i b_i*k_i. <br>
    :param tableau: The ButcherTableau of the method. <br>
    :param t: The time at the start of the step. <br>
    :param y: The state at the start of the step. <br>
    :param h: The step size. <br>
    :param k: The (s, dimension) stages from evaluate_stages. <br>
    :return: A tuple of t + h and the next state.
    """

    b = np.asarray(tableau.b, dtype=y.dtype)
    return t + h, y + h * (b @ k)


def rk_step(system: ODESystem, tableau: ButcherTableau, t: float, y: np.ndarray, h: float) -> Tuple[float, np.ndarray]:
    """
    Takes a single Runge-Kutta step from (t, y). <br>
    :return: A tuple of the next time and the next state.
    """

    k = evaluate_stages(system, tableau, t, y, h)
    return advance(tableau, t, y, h, k)


def _check_buffers(out_times: np.ndarray, out_states: np.ndarray, n: int, dimension: int) -> np.ndarray:
    # Returns the states buffer viewed as (n, dimension). Nothing is written here.
    for name, buf in (('out_times', out_times), ('out_states', out_states)):
        if not isinstance(buf, np.ndarray):
            raise InvalidBuffer(f'{name} must be a numpy array, got {type(buf).__name__}.')
        if buf.dtype.kind != 'f':
            raise InvalidBuffer(f'{name} must have a real floating dtype, got {buf.dtype}.')
        if not buf.flags.writeable:
            raise InvalidBuffer(f'{name} is read-only.')

    if out_times.ndim != 1 or out_times.shape[0] < n:
        raise InvalidBuffer(f'out_times needs room for {n} times, got shape {out_times.shape}.')

    if out_states.ndim == 2:
        if out_states.shape[0] < n or out_states.shape[1] != dimension:
            raise InvalidBuffer(f'out_states needs shape ({n}, {dimension}), got {out_states.shape}.')
        return out_states[:n]

    if out_states.ndim == 1:
        # A flat buffer is row-major by time step. It must be contiguous so the reshape is a view.
        if out_states.size < n * dimension:
            raise InvalidBuffer(f'out_states needs room for {n * dimension} values, got {out_states.size}.')
        if not out_states.flags.c_contiguous:
            raise InvalidBuffer('A flat out_states buffer must be C-contiguous.')
        return out_states[:n * dimension].reshape(n, dimension)

    raise InvalidBuffer(f'out_states must be 1-D or 2-D, got {out_states.ndim}-D.')


def integrate(system: ODESystem, order: Union[int, RKOrder], h: float, out_times: np.ndarray, out_states: np.ndarray,
              verbose: bool = True) -> None:
    """
    Integrates system from t0 with a fixed step, filling the caller's buffers in place. <br>
    :param system: The ODESystem to integrate. <br>
    :param order: The Runge-Kutta order, 1, 2, 3 or 4. <br>
    :param h: The fixed step size. Nonzero, and with the same sign as t1 - t0. <br>
    :param out_times: Float array with room for N times (see num_steps). <br>
    :param out_states: Float array of shape (N, dimension), or flat and C-contiguous with room for N*dimension
        values, row-major by time step. Its dtype sets the precision of the arithmetic. <br>
    :param verbose: If a warning should be given when the last grid time does not land on t1, defaults to True. <br>
    <br>
    All configuration errors (InvalidOrder, InvalidSystem, InvalidStep, InvalidBuffer) are raised before anything
    is written. A CallbackFailure leaves the buffers filled up to the step before the failing one, and they must
    not be used as a result.
    """

    # Validate everything before the first write.
    tableau = get_tableau(order)
    system.validate()
    n = num_steps(system.t0, system.t1, h)
    states = _check_buffers(out_times, out_states, n, system.dimension)

    # The last grid time may fall short of t1. That is the fixed-grid policy, so we only report it.
    t_last = system.t0 + (n-1)*h
    if verbose and abs(t_last - system.t1) > 1e-12 * max(1.0, abs(system.t0), abs(system.t1)):
        warnings.warn(f'Step size h={h} does not divide t1 - t0 = {system.t1 - system.t0}. '
                      f'Last output time is {t_last}, not t1={system.t1}.')

    # Initial condition.
    y = np.array(system.y0, dtype=states.dtype).reshape(-1)
    out_times[0] = system.t0
    states[0] = y

    for i in range(1, n):
        # Times come from the index rather than by summing h, so the grid does not drift.
        t = system.t0 + (i-1)*h
        k = evaluate_stages(system, tableau, t, y, h, step=i)
        _, y = advance(tableau, t, y, h, k)

        out_times[i] = system.t0 + i*h
        states[i] = y


def solve(system: ODESystem, order: Union[int, RKOrder], h: float, dtype: Any = np.float64,
          verbose: bool = True) -> Tuple[np.ndarray, np.ndarray]:
    """
    Allocates the output buffers and integrates system into them. <br>
    :param system: The ODESystem to integrate. <br>
    :param order: The Runge-Kutta order, 1, 2, 3 or 4. <br>
    :param h: The fixed step size. <br>
    :param dtype: The real floating dtype to integrate in, defaults to float64. <br>
    :param verbose: Passed on to integrate(). <br>
    :return: A tuple of the (N,) times and the (N, dimension) states.
    """

    # Check the order first so a bad order is reported the same way integrate() reports it.
    get_tableau(order)
    times, states = allocate_trajectory(system, h, dtype=dtype)
    integrate(system, order, h, times, states, verbose=verbose)

    return times, states
