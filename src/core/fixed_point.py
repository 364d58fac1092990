"""Deterministic fixed-point `ln`, `exp` and `pow`.

Values are plain Python ints scaled by ``ONE = 10**18`` (18 fractional digits).
Every function is pure and stateless; nothing here knows about pools.

Internally the kernels run at a 36-digit working scale (18 guard digits) and
round back to 18 digits on return, so `pow` and the identity
``exp(exponent * ln(base))`` agree to the last few wei.

Overflow policy: Python ints cannot overflow, but results are still kept inside
256 bits so they remain portable to fixed-width consumers. `exp` saturates at
``MAX_EXP_INPUT`` and flushes to zero below ``MIN_EXP_INPUT``.
"""

from __future__ import annotations

from .errors import DomainError, LnUndefinedError

ONE: int = 10**18
HALF: int = ONE // 2

# e rounded to 18 decimals.
E: int = 2_718281828459045235

# exp(130.0) * ONE ~ 2.9e74 < 2**256.
MAX_EXP_INPUT: int = 130 * ONE
# exp(-42.0) ~ 5.7e-19, below one wei.
MIN_EXP_INPUT: int = -42 * ONE

_GUARD: int = 10**18
_WORK: int = ONE * _GUARD
_E_WORK: int = 2_718281828459045235360287471352662498
_THIRD_WORK: int = _WORK // 3
_THREE_WORK: int = 3 * _WORK


# -- Basic helpers -----------------------------------------------------------

def mul_down(a: int, b: int) -> int:
    """``a * b / ONE`` rounded toward zero."""
    return _div_trunc(a * b, ONE)


def div_down(a: int, b: int) -> int:
    """``a * ONE / b`` rounded toward zero."""
    if b == 0:
        raise DomainError("division by zero")
    return _div_trunc(a * ONE, b)


def div_up(a: int, b: int) -> int:
    """``a * ONE / b`` rounded up, for non-negative operands."""
    if b <= 0 or a < 0:
        raise DomainError("div_up requires a >= 0 and b > 0")
    return (a * ONE + b - 1) // b


def _div_trunc(num: int, den: int) -> int:
    q = abs(num) // abs(den)
    return q if (num >= 0) == (den > 0) else -q


def _round_to_one(value_work: int) -> int:
    # Working scale -> ONE scale, half away from zero.
    q = (abs(value_work) + _GUARD // 2) // _GUARD
    return q if value_work >= 0 else -q


# -- Working-scale kernels ---------------------------------------------------

def _ln_work(x_work: int) -> int:
    """ln at the working scale. Caller guarantees ``x_work > 0``."""
    # Range reduction: bring x into [1/3, 3] by powers of e.
    count = 0
    while x_work > _THREE_WORK:
        x_work = x_work * _WORK // _E_WORK
        count += 1
    while x_work < _THIRD_WORK:
        x_work = x_work * _E_WORK // _WORK
        count -= 1

    # ln(y) = 2 * atanh(z), z = (y - 1) / (y + 1), |z| <= 1/2 on the reduced range.
    num = x_work - _WORK
    z = abs(num) * _WORK // (x_work + _WORK)
    z_sq = z * z // _WORK
    term = z
    total = 0
    k = 1
    while term:
        total += term // k
        term = term * z_sq // _WORK
        k += 2
    series = 2 * total
    if num < 0:
        series = -series
    return series + count * _WORK


def _exp_work(y_work: int) -> int:
    """exp at the working scale for any signed input."""
    if y_work < 0:
        return _WORK * _WORK // _exp_work(-y_work)

    whole, frac = divmod(y_work, _WORK)

    # Taylor series on the fractional part, frac in [0, 1).
    total = _WORK
    term = _WORK
    k = 1
    while term:
        term = term * frac // (_WORK * k)
        total += term
        k += 1

    # Multiply by e**whole via square-and-multiply.
    result = total
    base = _E_WORK
    while whole:
        if whole & 1:
            result = result * base // _WORK
        whole >>= 1
        if whole:
            base = base * base // _WORK
    return result


# -- Public API --------------------------------------------------------------

def ln(x: int) -> int:
    """Natural logarithm of a fixed-point value.

    Raises:
        LnUndefinedError: if ``x <= 0``.
    """
    if x <= 0:
        raise LnUndefinedError(f"ln undefined for {x}")
    if x == ONE:
        return 0
    return _round_to_one(_ln_work(x * _GUARD))


def exp(x: int) -> int:
    """e**x for a signed fixed-point exponent.

    Saturates at ``exp(MAX_EXP_INPUT)``; returns 0 below ``MIN_EXP_INPUT``.
    """
    if x == 0:
        return ONE
    if x > MAX_EXP_INPUT:
        x = MAX_EXP_INPUT
    if x < MIN_EXP_INPUT:
        return 0
    return _round_to_one(_exp_work(x * _GUARD))


def _pow_special(base: int, exponent: int) -> int | None:
    if base < 0 or exponent < 0:
        raise DomainError(f"pow requires non-negative operands: ({base}, {exponent})")
    if exponent == 0:
        return ONE
    if base == 0:
        return 0
    if base == ONE:
        return ONE
    return None


def _pow_work(base: int, exponent: int) -> int:
    """Working-scale base**exponent; 0 when the true value is below one wei."""
    y_work = _div_trunc(exponent * _ln_work(base * _GUARD), ONE)
    if y_work > MAX_EXP_INPUT * _GUARD:
        y_work = MAX_EXP_INPUT * _GUARD
    if y_work < MIN_EXP_INPUT * _GUARD:
        return 0
    return _exp_work(y_work)


def pow(base: int, exponent: int) -> int:  # noqa: A001 - mirrors the math name
    """base**exponent for non-negative fixed-point operands, rounded to nearest.

    Exact special cases: ``pow(x, 0) == ONE``, ``pow(0, y > 0) == 0``,
    ``pow(ONE, y) == ONE``. Otherwise ``exp(exponent * ln(base))``.

    Raises:
        DomainError: if either operand is negative.
    """
    special = _pow_special(base, exponent)
    if special is not None:
        return special
    return _round_to_one(_pow_work(base, exponent))


def pow_down(base: int, exponent: int) -> int:
    """Like `pow`, rounded toward zero."""
    special = _pow_special(base, exponent)
    if special is not None:
        return special
    return _pow_work(base, exponent) // _GUARD


def pow_up(base: int, exponent: int) -> int:
    """Like `pow`, rounded up. Never returns 0 for a positive base."""
    special = _pow_special(base, exponent)
    if special is not None:
        return special
    return max(1, -(-_pow_work(base, exponent) // _GUARD))
