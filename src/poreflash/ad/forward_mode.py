"""Forward-mode automatic differentiation for local systems of equations.

An :class:`AdArray` carries values together with their Jacobian with respect to a set
of independent variables. Arithmetic on AD arrays propagates derivatives by the chain
rule, such that closure relations written with plain arithmetic (fluid properties,
capillary pressure laws) can be evaluated both with floats and AD arrays.

The Jacobians are stored as sparse matrices, one row per value.

"""

from __future__ import annotations

import numpy as np
import scipy.sparse as sps

__all__ = ["AdArray", "initAdArrays"]


def initAdArrays(variables):
    """Initializes independent AD variables.

    Parameters:
        variables: A single array or a list of arrays. If a list is given, the
            Jacobian of each returned AD array spans all variables in the list, with an
            identity block at the position of the respective variable.

    Returns:
        An AD array, or a list of AD arrays if ``variables`` is a list.

    """
    if not isinstance(variables, list):
        try:
            num_val = variables.size
        except AttributeError:
            num_val = 1
        return AdArray(variables, sps.diags(np.ones(num_val)).tocsc())

    num_val = [v.size for v in variables]
    ad_arrays = []
    for i, val in enumerate(variables):
        # initiate zero jacobian
        n = num_val[i]
        jac = [sps.csc_matrix((n, m)) for m in num_val]
        # set jacobian of variable i to I
        jac[i] = sps.diags(np.ones(num_val[i])).tocsc()
        # initiate AdArray
        ad_arrays.append(AdArray(val, sps.bmat([jac], format="csc")))

    return ad_arrays


class AdArray:
    """Values and their Jacobian w.r.t. some independent variables.

    Parameters:
        val: ``shape=(n,)``

            Values.
        jac: ``shape=(n, m)``

            Sparse Jacobian, with ``m`` the number of independent variables.

    """

    # Makes numpy scalars and arrays defer binary operations to the reflected
    # operators of this class.
    __array_ufunc__ = None

    def __init__(self, val=1.0, jac=0.0):
        self.val = np.asarray(val, dtype=float)
        self.jac = jac

    def __repr__(self) -> str:
        return f"AdArray(val={self.val}, jac_shape={np.shape(self.jac)})"

    def __add__(self, other):
        if isinstance(other, AdArray):
            return AdArray(self.val + other.val, self.jac + other.jac)
        return AdArray(self.val + other, self.jac)

    def __radd__(self, other):
        return self.__add__(other)

    def __sub__(self, other):
        return self + (-other)

    def __rsub__(self, other):
        return (-self) + other

    def __mul__(self, other):
        if not isinstance(other, AdArray):  # other is scalar or array
            return AdArray(self.val * other, self.diagvec_mul_jac(other))
        val = self.val * other.val
        jac = self.diagvec_mul_jac(other.val) + other.diagvec_mul_jac(self.val)
        return AdArray(val, jac)

    def __rmul__(self, other):
        if isinstance(other, AdArray):
            # other is an AdArray, so should have called __mul__
            raise RuntimeError("Something went horribly wrong")
        return self.__mul__(other)

    def __pow__(self, other):
        if isinstance(other, AdArray):
            raise NotImplementedError("Only constant exponents are supported.")
        val = self.val**other
        jac = self.diagvec_mul_jac(other * self.val ** (other - 1))
        return AdArray(val, jac)

    def __truediv__(self, other):
        if isinstance(other, AdArray):
            return self * other**-1
        return self * (1.0 / other)

    def __rtruediv__(self, other):
        return self**-1 * other

    def __neg__(self):
        b = self.copy()
        b.val = -b.val
        b.jac = -b.jac
        return b

    def copy(self) -> AdArray:
        b = AdArray()
        b.val = self.val.copy()
        try:
            b.jac = self.jac.copy()
        except AttributeError:
            b.jac = self.jac
        return b

    def diagvec_mul_jac(self, a):
        """Left-multiplies the Jacobian with a diagonal matrix with ``a`` on its
        diagonal (or with a scalar ``a``)."""
        a = np.asarray(a, dtype=float)
        if a.ndim == 0:
            return self.jac * float(a)
        return sps.diags(a) @ self.jac

    def full_jac(self) -> np.ndarray:
        """Returns the Jacobian as a dense 2D array."""
        return self.jac.toarray()
