"""Unit tests for the forward-mode AD used to linearize local systems.

Tests cover the joint initialization of independent variables, the arithmetic
operators of AdArray, the branch selection of the minimum and the assembly of a system by
concatenation.

"""
from __future__ import annotations

import numpy as np
import pytest

from poreflash.ad import functions as af
from poreflash.ad.forward_mode import AdArray, initAdArrays


def test_quadratic_function():
    x, y = initAdArrays([np.array([1]), np.array([2])])
    z = 1 * x + 2 * y + 3 * x * y + 4 * x * x + 5 * y * y
    val = 35
    assert z.val == val and np.all(z.jac.toarray() == [15, 25])


def test_vector_quadratic():
    x, y = initAdArrays([np.array([1, 1]), np.array([2, 3])])
    z = 1 * x + 2 * y + 3 * x * y + 4 * x * x + 5 * y * y
    val = np.array([35, 65])
    J = np.array([[15, 0, 25, 0], [0, 18, 0, 35]])

    assert np.all(z.val == val) and np.all(z.full_jac() == J)


def test_add_two_ad_variables_init():
    a, b = initAdArrays([np.array([1]), np.array([-10])])
    c = a + b
    assert c.val == -9 and np.all(c.jac.toarray() == [1, 1])
    assert a.val == 1 and np.all(a.jac.toarray() == [1, 0])
    assert b.val == -10 and np.all(b.jac.toarray() == [0, 1])


def test_sub_and_rsub():
    a, b = initAdArrays([np.array([3]), np.array([2])])
    c = b - a
    assert np.allclose(c.val, -1) and np.all(c.jac.toarray() == [-1, 1])
    d = 1.0 - a
    assert np.allclose(d.val, -2) and np.all(d.jac.toarray() == [-1, 0])


def test_mul_scal_ad_var_init():
    a, b = initAdArrays([np.array([3]), np.array([2])])
    c = 3.0 * a
    assert c.val == 9 and np.all(c.jac.toarray() == [3, 0])
    # numpy scalars must defer to the reflected operator
    c = np.float64(3.0) * b
    assert isinstance(c, AdArray)
    assert c.val == 6 and np.all(c.jac.toarray() == [0, 3])


def test_division():
    a, b = initAdArrays([np.array([4.0]), np.array([2.0])])
    c = a / b
    assert np.allclose(c.val, 2.0)
    assert np.allclose(c.full_jac(), [[0.5, -1.0]])

    d = 8.0 / a
    assert np.allclose(d.val, 2.0)
    assert np.allclose(d.full_jac(), [[-0.5, 0.0]])


def test_power():
    a, b = initAdArrays([np.array([2.0]), np.array([3.0])])
    c = a**3
    assert np.allclose(c.val, 8.0)
    assert np.allclose(c.full_jac(), [[12.0, 0.0]])

    d = b**-1
    assert np.allclose(d.val, 1.0 / 3.0)
    assert np.allclose(d.full_jac(), [[0.0, -1.0 / 9.0]])

    with pytest.raises(NotImplementedError):
        a**b


def test_copy_is_independent():
    a = initAdArrays([np.array([1.0, 2.0])])[0]
    b = a.copy()
    b.val[0] = 5.0
    assert a.val[0] == 1.0
    assert np.all(a.full_jac() == np.eye(2))


def test_minimum_chooses_branch_with_derivatives():
    a, b = initAdArrays([np.array([1.0]), np.array([2.0])])
    m = af.minimum(a, b)
    assert np.allclose(m.val, 1.0)
    assert np.allclose(m.full_jac(), [[1.0, 0.0]])

    # ties choose the first argument
    c = 3.0 - b
    m = af.minimum(a, c)
    assert np.allclose(m.val, 1.0)
    assert np.allclose(m.full_jac(), [[1.0, 0.0]])


def test_minimum_of_numbers():
    assert af.minimum(1.0, 2.0) == 1.0
    assert af.minimum(2.0, 1.0) == 1.0


def test_concatenate_builds_system():
    x, y = initAdArrays([np.array([1.0]), np.array([2.0])])
    F = af.concatenate([x * y - 2.0, x + y])
    assert np.allclose(F.val, [0.0, 3.0])
    assert np.allclose(F.full_jac(), [[2.0, 1.0], [1.0, 1.0]])


def test_value():
    x = initAdArrays([np.array([-2.0])])[0]
    assert np.all(af.value(x) == x.val)
    assert af.value(3.0) == 3.0
