"""
Symbolic Solver Module

Exact equation solving over the polynomial view of an expression:
linear and quadratic equations in one unknown, and square linear systems
solved by Gaussian elimination with Rational arithmetic.

Every entry point returns None for "recognized but cannot solve"
(non-polynomial input, wrong unknown count, singular system) so callers can
tell it apart from malformed input.
"""
from __future__ import annotations
from typing import List, Optional, Tuple
from dataclasses import dataclass

from expr import Expr, Product, Root, Sum, Variable, from_rational, MINUS_ONE
from logging_config import get_logger
from polynomial import Polynomial
from rational import Rational, integer_root

logger = get_logger("solver")

IMAGINARY_UNIT = Variable("i")


@dataclass
class Solution:
    """One solved unknown: variable = value."""
    variable: str
    value: Expr
    multiplicity: int = 1

    def __str__(self) -> str:
        return f"{self.variable} = {self.value}"


class SymbolicSolver:
    """Exact solver for the equation forms a calculator line can hold."""

    def solve_linear(self, coeffs: List[Rational], var: str) -> Optional[List[Solution]]:
        """
        Solve linear equation: ax + b = 0 -> x = -b/a

        Args:
            coeffs: List of coefficients [b, a] where equation is a*x + b = 0
            var: Variable name

        Returns:
            One solution, or None when a is zero
        """
        if len(coeffs) != 2 or coeffs[1].is_zero():
            return None
        b, a = coeffs
        return [Solution(var, from_rational(-b / a))]

    def solve_quadratic(self, coeffs: List[Rational], var: str) -> Optional[List[Solution]]:
        """
        Solve quadratic equation: ax^2 + bx + c = 0

        Uses quadratic formula: x = (-b ± √(b²-4ac))/(2a). A negative
        discriminant gives roots carrying the imaginary unit i.

        Args:
            coeffs: List of coefficients [c, b, a] where equation is a*x^2 + b*x + c = 0
            var: Variable name

        Returns:
            Both roots (one when they coincide), or None when a is zero
        """
        if len(coeffs) != 3 or coeffs[2].is_zero():
            return None
        c, b, a = coeffs
        two_a = a * 2
        discriminant = b * b - a * c * 4
        vertex = from_rational(-b / two_a)

        if discriminant.is_zero():
            return [Solution(var, vertex, multiplicity=2)]

        sqrt_disc = self.sqrt_rational(discriminant)
        if sqrt_disc is not None:
            root1 = (-b + sqrt_disc) / two_a
            root2 = (-b - sqrt_disc) / two_a
            return [Solution(var, from_rational(root1)), Solution(var, from_rational(root2))]

        if discriminant > Rational(0):
            radical: Expr = Root(from_rational(discriminant), 2)
        else:
            radical = Product((IMAGINARY_UNIT, Root(from_rational(-discriminant), 2)))
        spread = Product((from_rational(two_a.reciprocal()), radical)).simplify()
        plus = Sum((vertex, spread)).simplify()
        minus = Sum((vertex, Product((MINUS_ONE, spread)))).simplify()
        return [Solution(var, plus), Solution(var, minus)]

    def solve_system(self, polys: List[Polynomial]) -> Optional[List[Solution]]:
        """
        Solve N linear equations (each poly = 0) in N unknowns.

        Gaussian elimination with partial pivoting over Rational.

        Returns:
            One solution per unknown in sorted name order, or None when the
            counts differ, an equation is not linear, or the matrix is singular
        """
        names = sorted({v for p in polys for v in p.variables()})
        n = len(names)
        if n == 0 or n != len(polys):
            logger.debug("system has %d equations for %d unknowns", len(polys), n)
            return None

        rows: List[List[Rational]] = []
        for p in polys:
            linear = p.linear_coefficients(names)
            if linear is None:
                logger.debug("non-linear equation in system: %s", p)
                return None
            coeffs, constant = linear
            rows.append(coeffs + [-constant])

        for col in range(n):
            pivot = max(range(col, n), key=lambda r: abs(rows[r][col]))
            if rows[pivot][col].is_zero():
                logger.debug("singular system at column %d", col)
                return None
            rows[col], rows[pivot] = rows[pivot], rows[col]
            for r in range(col + 1, n):
                factor = rows[r][col] / rows[col][col]
                if factor.is_zero():
                    continue
                rows[r] = [x - factor * y for x, y in zip(rows[r], rows[col])]

        values = [Rational(0)] * n
        for row in range(n - 1, -1, -1):
            acc = rows[row][n]
            for k in range(row + 1, n):
                acc = acc - rows[row][k] * values[k]
            values[row] = acc / rows[row][row]
        return [Solution(name, from_rational(v)) for name, v in zip(names, values)]

    def solve_equation(self, lhs: Expr, rhs: Expr) -> Optional[List[Solution]]:
        """Solve lhs = rhs for its single unknown (linear or quadratic)."""
        poly = self._to_polynomial(lhs, rhs)
        if poly is None:
            return None
        names = poly.variables()
        if len(names) != 1:
            logger.debug("single equation with unknowns %s", names)
            return None
        var = names[0]
        coeffs = poly.to_univariate_coeffs(var)
        degree = len(coeffs) - 1
        if degree == 1:
            return self.solve_linear(coeffs, var)
        if degree == 2:
            return self.solve_quadratic(coeffs, var)
        logger.debug("degree %d equation in %s is out of reach", degree, var)
        return None

    def solve_lines(self, equations: List[Tuple[Expr, Expr]]) -> Optional[List[Solution]]:
        """Solve one equation or a square linear system given as (lhs, rhs) pairs."""
        if not equations:
            return None
        if len(equations) == 1:
            return self.solve_equation(*equations[0])
        polys: List[Polynomial] = []
        for lhs, rhs in equations:
            poly = self._to_polynomial(lhs, rhs)
            if poly is None:
                return None
            polys.append(poly)
        return self.solve_system(polys)

    def sqrt_rational(self, r: Rational) -> Optional[Rational]:
        """
        Check if √r simplifies to a rational number.
        Returns the rational square root if it exists, None otherwise.
        """
        if r.is_negative():
            return None
        num, den = r.numerator(), r.denominator()
        num_sqrt = integer_root(num, 2)
        den_sqrt = integer_root(den, 2)
        if num_sqrt * num_sqrt == num and den_sqrt * den_sqrt == den:
            return Rational(num_sqrt, den_sqrt)
        return None

    @staticmethod
    def _to_polynomial(lhs: Expr, rhs: Expr) -> Optional[Polynomial]:
        # move everything to one side: lhs - rhs = 0
        diff = Sum((lhs, Product((MINUS_ONE, rhs)))).simplify()
        poly = Polynomial.from_expr(diff)
        if poly is None:
            logger.debug("equation is not polynomial: %s", diff)
        return poly


# Create a default instance
_default_solver = SymbolicSolver()


def solve_equation(lhs: Expr, rhs: Expr) -> Optional[List[Solution]]:
    return _default_solver.solve_equation(lhs, rhs)


def solve_lines(equations: List[Tuple[Expr, Expr]]) -> Optional[List[Solution]]:
    return _default_solver.solve_lines(equations)
