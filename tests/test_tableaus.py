import dataclasses

import numpy as np
import pytest

from gnckit.errors import InvalidOrder
from gnckit.tableaus import RK4, ButcherTableau, RKOrder, get_tableau


@pytest.mark.parametrize("order", [1, 2, 3, 4])
def test_stage_count_equals_order(order):
    tab = get_tableau(order)
    assert tab.order == order
    assert tab.stages == order
    assert tab.a.shape == (order, order)
    assert tab.c.shape == (order,)


@pytest.mark.parametrize("order", list(RKOrder))
def test_tableaus_are_consistent(order):
    assert get_tableau(order).is_consistent()


def test_rk4_weights():
    assert np.allclose(RK4.b, [1/6, 1/3, 1/3, 1/6])
    assert np.allclose(RK4.c, [0.0, 0.5, 0.5, 1.0])


def test_inconsistent_tableau_detected():
    bad = ButcherTableau(name="bad", order=2, a=np.array([[0.0, 0.0], [0.5, 0.0]]),
                         b=np.array([0.5, 0.6]), c=np.array([0.0, 0.5]))
    assert not bad.is_consistent()
    implicit = ButcherTableau(name="implicit", order=1, a=np.array([[1.0]]), b=np.array([1.0]), c=np.array([1.0]))
    assert not implicit.is_consistent()


def test_get_tableau_accepts_enum_and_numpy_ints():
    assert get_tableau(RKOrder.RK4) is RK4
    assert get_tableau(np.int64(4)) is RK4


@pytest.mark.parametrize("order", [0, 5, -1, 2.0, True, "4", None])
def test_get_tableau_rejects_invalid_order(order):
    with pytest.raises(InvalidOrder):
        get_tableau(order)


def test_invalid_order_is_a_value_error():
    with pytest.raises(ValueError):
        get_tableau(7)


def test_tableaus_are_immutable():
    with pytest.raises(ValueError):
        RK4.b[0] = 1.0
    with pytest.raises(dataclasses.FrozenInstanceError):
        RK4.order = 5
