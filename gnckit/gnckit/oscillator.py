"""
Forced, damped harmonic oscillator integrated with the fixed-step Runge-Kutta engine.

The equation of motion is m*x'' + 2*zeta*om_n*m*x' + om_n^2*m*x = F0*sin(om*t), written as the first-order
system y = (x, v):
    x' = v
    v' = (F0/m)*sin(om*t) - 2*zeta*om_n*v - om_n^2*x

For underdamped motion (0 <= zeta < 1) the closed-form solution is known, which makes this a good end-to-end
check of the integrator. The default parameters reproduce Example 1.18 of Curtis, H.D., 2020. Orbital
mechanics for engineering students (3rd ed.), pg. 45.

The module can also be run from the command line. It integrates the oscillator, writes the columns
t, x, v, x_a to a text file, and optionally plots them:
    python -m gnckit.oscillator -order 4 -step 1 -out ./data/ex_01_18b.txt -plot

* Copyright © 2025 RandomKiddo
"""

import argparse
import time
import numpy as np


from typing import *
from dataclasses import dataclass
from functools import wraps

from gnckit.ivp import ODESystem, solve
from gnckit.output import plot_trajectory, write_trajectory


# * Adapted from pg. 31 of High Performance Python by Gorelick & Ozsvald, 2nd ed.
# Function decorator to time a function.
def timefn(fn):
    @wraps(fn)
    def measure_time(*args, **kwargs):
        t0 = time.time()
        returns = fn(*args, **kwargs)
        tf = time.time()
        print(f'Fcn *{fn.__name__}* completed in {tf-t0}s.')
        return returns
    return measure_time


@dataclass(frozen=True)
class OscillatorParams:
    """
    Parameters of the forced, damped oscillator. <br>
    :param F0: Forcing amplitude. <br>
    :param m: Mass. <br>
    :param om_n: Natural (undamped) angular frequency. <br>
    :param zeta: Damping ratio. <br>
    :param om: Forcing angular frequency.
    """

    F0: float = 1.0
    m: float = 1.0
    om_n: float = 1.0
    zeta: float = 0.03
    om: float = 0.4


def forced_oscillator(t: float, yy: np.ndarray, params: OscillatorParams) -> np.ndarray:
    """
    Right-hand side of the oscillator, dyy/dt for yy = (x, v). <br>
    :param t: The time. <br>
    :param yy: The state (x, v). <br>
    :param params: The OscillatorParams. <br>
    :return: The derivative (v, a) as a numpy array.
    """

    p = params
    x, v = yy[0], yy[1]

    return np.array([v, (p.F0/p.m) * np.sin(p.om*t) - 2*p.zeta*p.om_n*v - p.om_n**2 * x], dtype=np.asarray(yy).dtype)


def analytical_position(t: Union[float, np.ndarray], yy0: Sequence[float], params: OscillatorParams) -> Union[float, np.ndarray]:
    """
    Closed-form position x(t) of the underdamped oscillator started from yy0 = (x0, v0) at t = 0. <br>
    :param t: The time, a float or an array of times. <br>
    :param yy0: The initial state (x0, v0). <br>
    :param params: The OscillatorParams, with 0 <= zeta < 1. <br>
    :return: x(t), with the same shape as t.
    """

    p = params
    if not (0 <= p.zeta < 1):
        raise ValueError(f'The closed-form solution needs 0 <= zeta < 1, got zeta={p.zeta}.')

    x0, v0 = yy0[0], yy0[1]
    t = np.asarray(t, dtype=np.float64)

    # Intermediate variables.
    zeta2 = p.zeta**2
    om2 = p.om**2
    om_n2 = p.om_n**2
    om_d = p.om_n * np.sqrt(1 - zeta2)  # Damped natural frequency.
    two_om_om_n_zeta = 2 * p.om * p.om_n * p.zeta
    F0m = p.F0 / p.m

    # Coefficients of the homogeneous part, fitted to the initial conditions.
    den = (om_n2 - om2)**2 + two_om_om_n_zeta**2
    A = p.zeta*(p.om_n/om_d)*x0 + v0/om_d + ((om2 + (2*zeta2 - 1)*om_n2) / den) * (p.om/om_d) * F0m
    B = x0 + (two_om_om_n_zeta/den) * F0m

    # Transient (homogeneous) plus steady-state (particular) response.
    transient = np.exp(-p.zeta*p.om_n*t) * (A*np.sin(om_d*t) + B*np.cos(om_d*t))
    steady = (F0m/den) * ((om_n2 - om2)*np.sin(p.om*t) - two_om_om_n_zeta*np.cos(p.om*t))
    x = transient + steady

    return x if x.ndim else float(x)


def make_system(params: OscillatorParams, y0: Sequence[float] = (0.0, 0.0), t0: float = 0.0, t1: float = 110.0) -> ODESystem:
    """
    Builds the ODESystem of the oscillator. <br>
    :param params: The OscillatorParams passed to every rhs call. <br>
    :param y0: The initial state (x0, v0), defaults to rest at the origin. <br>
    :param t0: The start time, defaults to 0. <br>
    :param t1: The end time, defaults to 110. <br>
    :return: The ODESystem.
    """

    return ODESystem(rhs=forced_oscillator, params=params, dimension=2, t0=t0, t1=t1, y0=tuple(y0))


@timefn
def simulate(params: OscillatorParams, y0: Sequence[float] = (0.0, 0.0), t0: float = 0.0, t1: float = 110.0,
             h: float = 1.0, order: int = 4) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Integrates the oscillator and evaluates the closed-form position on the same grid. <br>
    :param params: The OscillatorParams. <br>
    :param y0: The initial state (x0, v0) at t0. <br>
    :param t0: The start time. The closed-form solution assumes t0 = 0. <br>
    :param t1: The end time. <br>
    :param h: The fixed step size, defaults to 1. <br>
    :param order: The Runge-Kutta order, defaults to 4. <br>
    :return: A tuple of the times, the (N, 2) states, and the closed-form positions.
    """

    system = make_system(params, y0, t0, t1)
    times, states = solve(system, order, h)

    # The closed-form solution is written relative to the start time.
    x_analytical = analytical_position(times - t0, y0, params)

    return times, states, x_analytical


def main(argv: Optional[Sequence[str]] = None) -> None:
    # Argument parsing for command-line usage.
    parser = argparse.ArgumentParser(description='Forced damped oscillator integrated with a fixed-step Runge-Kutta method.')

    parser.add_argument('-F0', type=float, default=1.0, help='Forcing amplitude. Defaults to 1.0.')
    parser.add_argument('-m', type=float, default=1.0, help='Mass. Defaults to 1.0.')
    parser.add_argument('-om_n', type=float, default=1.0, help='Natural angular frequency. Defaults to 1.0.')
    parser.add_argument('-zeta', type=float, default=0.03, help='Damping ratio. Defaults to 0.03.')
    parser.add_argument('-om', type=float, default=0.4, help='Forcing angular frequency. Defaults to 0.4.')
    parser.add_argument('-x0', type=float, default=0.0, help='Initial position. Defaults to 0.0.')
    parser.add_argument('-v0', type=float, default=0.0, help='Initial velocity. Defaults to 0.0.')
    parser.add_argument('-t0', type=float, default=0.0, help='Initial time. Defaults to 0.0.')
    parser.add_argument('-t1', type=float, default=110.0, help='Final time. Defaults to 110.0.')
    parser.add_argument('-step', type=float, default=1.0, help='Fixed step size. Defaults to 1.0.')
    parser.add_argument('-order', type=int, default=4, help='Runge-Kutta order (1, 2, 3 or 4). Defaults to 4.')
    parser.add_argument('-out', type=str, default='./data/ex_01_18b.txt', help='Output text file. Defaults to ./data/ex_01_18b.txt.')
    parser.add_argument('-plot', action='store_true', help='Show a plot of the results.')
    parser.add_argument('-plot_out', type=str, default=None, help='Save the plot to this image file.')

    args = parser.parse_args(argv)

    params = OscillatorParams(F0=args.F0, m=args.m, om_n=args.om_n, zeta=args.zeta, om=args.om)
    y0 = (args.x0, args.v0)

    times, states, x_analytical = simulate(params, y0, args.t0, args.t1, args.step, args.order)
    write_trajectory(args.out, times, states, x_analytical)

    err = np.max(np.abs(states[:, 0] - x_analytical))
    print(f'Wrote {len(times)} points to {args.out}, with max |x - x_a|: {err}.')

    if args.plot or args.plot_out:
        title = f'Forced damped oscillator using RK{args.order}'
        plot_trajectory(times, states, x_analytical, title=title, path=args.plot_out, show=args.plot)


if __name__ == '__main__':
    main()
