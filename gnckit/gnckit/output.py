"""
Writing, reading and plotting integration results. These sit outside the integrator, which never does I/O.

Trajectories are stored as whitespace-separated text columns, one row per time step:
    t y_0 y_1 ... [extra columns]

* Copyright © 2025 RandomKiddo
"""

import os
import numpy as np


from typing import *


def write_trajectory(path: str, times: np.ndarray, states: np.ndarray, *extra_columns: np.ndarray) -> None:
    """
    Writes a trajectory to a text file, creating the parent directory when needed. <br>
    :param path: String path of the output file. <br>
    :param times: The (N,) times. <br>
    :param states: The (N, dimension) states, or a flat row-major array of N*dimension values. <br>
    :param extra_columns: Additional (N,) columns appended after the states, e.g. an analytical solution.
    """

    times = np.asarray(times)
    n = len(times)
    states = np.asarray(states).reshape(n, -1)

    for col in extra_columns:
        if len(col) != n:
            raise ValueError(f'Extra column has {len(col)} rows, expected {n}.')

    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    np.savetxt(path, np.column_stack([times, states, *extra_columns]), fmt='%f', delimiter=' ')


def read_trajectory(path: str) -> np.ndarray:
    """
    Reads a file written by write_trajectory(). <br>
    :param path: String path of the file. <br>
    :return: An (N, columns) array; column 0 holds the times.
    """

    if not os.path.isfile(path):
        raise FileNotFoundError(f'No such file: {path}.')

    return np.loadtxt(path, ndmin=2)


def plot_trajectory(times: np.ndarray, states: np.ndarray, x_analytical: Optional[np.ndarray] = None,
                    title: str = 'Runge-Kutta integration', path: Optional[str] = None, show: bool = False):
    """
    Plots x(t) and v(t) as points and, when given, the analytical x_a(t) as a line. <br>
    :param times: The (N,) times. <br>
    :param states: The (N, 2) states (x, v). <br>
    :param x_analytical: Optional (N,) closed-form positions. <br>
    :param title: The plot title. <br>
    :param path: Save the figure to this file if given. <br>
    :param show: If the figure should be shown interactively, defaults to False. <br>
    :return: The matplotlib Figure.
    """

    # matplotlib is an optional extra, only needed once something is plotted.
    import matplotlib.pyplot as plt

    states = np.asarray(states).reshape(len(times), -1)

    fig, ax = plt.subplots(figsize=(10, 5))
    ax.plot(times, states[:, 0], 'o', color='red', markersize=3, label='x(t)')
    ax.plot(times, states[:, 1], 'o', color='blue', markersize=3, label='v(t)')
    if x_analytical is not None:
        ax.plot(times, x_analytical, '-', color='black', label='x_a(t)')

    ax.set_title(title)
    ax.set_xlabel('Time t [s]')
    ax.set_ylabel('x(t) [m], v(t) [m/s], x_a(t) [m]')
    ax.legend()
    ax.grid(True)

    if path is not None:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        fig.savefig(path)
    if show:
        plt.show()

    return fig
