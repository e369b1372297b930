from decimal import Decimal
import decimal

from taxledger import config

# Wide enough that Uint128 * rate is exact; floor rounding as a safeguard only
CONTEXT = decimal.Context(prec=config.DECIMAL_PRECISION, rounding=decimal.ROUND_FLOOR, Emin=-100, Emax=100)

ZERO = Decimal('0')
ONE = Decimal('1')
MIN_DECIMAL = ONE.scaleb(-config.RATE_PLACES)


def should_round(x: Decimal):
    return x.as_tuple().exponent < -config.RATE_PLACES


def fix_precision(x: Decimal):
    if should_round(x):
        return x.quantize(MIN_DECIMAL, rounding=decimal.ROUND_FLOOR, context=CONTEXT)
    return x


def make_decimal(value):
    """
    Builds a rate from the representations a host may hand in. Floats go
    through their string form so 0.1 stays 0.1.
    """
    if isinstance(value, bool):
        raise TypeError('Cannot build a decimal from a boolean')

    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, (int, float)):
        d = Decimal(str(value))
    elif isinstance(value, str):
        try:
            d = Decimal(value.strip())
        except decimal.InvalidOperation:
            raise ValueError('Invalid decimal string {!r}'.format(value))
    else:
        raise TypeError('Cannot build a decimal from {}'.format(type(value)))

    if not d.is_finite():
        raise ValueError('Decimal must be finite, got {}'.format(d))

    return fix_precision(d)


def percent(x):
    return make_decimal(x) / 100


def net_after_rate(amount: int, rate: Decimal):
    """
    Returns ceil(amount - amount * rate). The net amount is rounded up so that
    rounding never takes more than the rate implies.
    """
    with decimal.localcontext(CONTEXT):
        gross = Decimal(amount)
        tax = gross * rate
        net = gross - tax

        if net < ZERO:
            raise ValueError('Taxed amount cannot be negative')

        return int(net.to_integral_value(rounding=decimal.ROUND_CEILING))
