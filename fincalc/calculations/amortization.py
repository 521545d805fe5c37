"""
Loan Amortization Calculations

Implements loan payment and amortization schedule calculations,
matching Excel's PMT, IPMT, and PPMT functions. Rates are annual
percentages converted to periodic rates by the payment frequency.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from fincalc.calculations import tvm
from fincalc.calculations.conventions import PaymentFrequency, to_periodic_rate
from fincalc.calculations.results import CalculationInputError

logger = logging.getLogger(__name__)

BALANCE_EPSILON = 0.01


@dataclass(frozen=True)
class AmortizationEntry:
    """One payment row of an amortization schedule."""

    period: int
    payment: float
    principal: float
    interest: float
    balance: float  # Remaining balance after this payment
    cumulative_principal: float
    cumulative_interest: float
    payment_date: Optional[str] = None


@dataclass(frozen=True)
class LoanSummary:
    """Headline figures for a loan."""

    loan_amount: float
    base_payment: float
    payment: float  # Base payment plus extra payment
    number_of_payments: int
    total_paid: float
    total_interest: float
    periods_saved: int
    years_saved: float


def _period_offset(frequency: PaymentFrequency, index: int) -> relativedelta:
    if frequency is PaymentFrequency.weekly:
        return relativedelta(weeks=index)
    if frequency is PaymentFrequency.daily:
        return relativedelta(days=index)
    return relativedelta(months=index * 12 // frequency.periods_per_year)


def _validate_loan(principal: float, annual_rate: float, periods: int, extra_payment: float) -> None:
    if principal <= 0:
        raise CalculationInputError("Principal must be positive")
    if annual_rate < 0:
        raise CalculationInputError("Interest rate cannot be negative")
    if int(periods) != periods or periods < 1:
        raise CalculationInputError("Number of payments must be a positive whole number")
    if extra_payment < 0:
        raise CalculationInputError("Extra payment cannot be negative")


def calculate_payment(
    principal: float,
    annual_rate: float,
    periods: int,
    frequency: PaymentFrequency = PaymentFrequency.monthly,
) -> float:
    """
    Calculate the level loan payment.

    Matches Excel's PMT() function, returned as a positive amount.

    Args:
        principal: Loan principal amount
        annual_rate: Annual interest rate in percent (e.g., 6.0 for 6%)
        periods: Total number of payments
        frequency: Payment frequency

    Returns:
        Payment per period (positive number)
    """
    _validate_loan(principal, annual_rate, periods, 0.0)
    rate = to_periodic_rate(annual_rate, frequency.periods_per_year)
    return -tvm.payment(rate, periods, present_value=principal)


def calculate_remaining_balance(
    principal: float,
    annual_rate: float,
    periods: int,
    payments_completed: int,
    frequency: PaymentFrequency = PaymentFrequency.monthly,
) -> float:
    """Calculate remaining loan balance after N scheduled payments."""
    rate = to_periodic_rate(annual_rate, frequency.periods_per_year)
    level_payment = calculate_payment(principal, annual_rate, periods, frequency)
    balance = -tvm.future_value(
        rate, payments_completed, payment=-level_payment, present_value=principal
    )
    return max(0.0, balance)


def amortize(
    principal: float,
    annual_rate: float,
    periods: int,
    extra_payment: float = 0.0,
    frequency: PaymentFrequency = PaymentFrequency.monthly,
    start_date: Optional[date] = None,
) -> List[AmortizationEntry]:
    """
    Generate a full amortization schedule.

    Each period pays interest on the outstanding balance; the rest of the
    level payment (plus any extra payment) reduces principal. The schedule
    ends when the balance falls below one cent or the nominal term is
    reached, so extra payments shorten it.

    Args:
        principal: Loan principal amount
        annual_rate: Annual interest rate in percent
        periods: Nominal number of payments
        extra_payment: Constant extra principal paid every period
        frequency: Payment frequency
        start_date: Date of first payment; rows carry ISO dates when given

    Returns:
        List of amortization rows

    Raises:
        CalculationInputError: On invalid inputs, or if a payment would not
            cover the period's interest (negative amortization). Not reachable
            with a non-negative rate and the level payment.
    """
    _validate_loan(principal, annual_rate, periods, extra_payment)

    rate = to_periodic_rate(annual_rate, frequency.periods_per_year)
    total_payment = calculate_payment(principal, annual_rate, periods, frequency) + extra_payment

    schedule = []
    balance = float(principal)
    cumulative_principal = 0.0
    cumulative_interest = 0.0

    for period in range(1, int(periods) + 1):
        interest = balance * rate
        principal_pmt = total_payment - interest

        if principal_pmt <= 0:
            raise CalculationInputError(
                f"Payment of {total_payment:.2f} does not cover interest of "
                f"{interest:.2f} in period {period}"
            )

        # Final-period correction: never overpay, and sweep sub-cent residue
        if balance - principal_pmt < BALANCE_EPSILON:
            principal_pmt = balance

        payment_amount = principal_pmt + interest
        balance -= principal_pmt
        cumulative_principal += principal_pmt
        cumulative_interest += interest

        payment_date = None
        if start_date is not None:
            payment_date = (start_date + _period_offset(frequency, period - 1)).isoformat()

        schedule.append(
            AmortizationEntry(
                period=period,
                payment=payment_amount,
                principal=principal_pmt,
                interest=interest,
                balance=balance,
                cumulative_principal=cumulative_principal,
                cumulative_interest=cumulative_interest,
                payment_date=payment_date,
            )
        )

        # Stop if balance is paid off
        if balance < BALANCE_EPSILON:
            break

    return schedule


def calculate_total_interest(schedule: List[AmortizationEntry]) -> float:
    """Calculate total interest paid over the schedule."""
    return sum(row.interest for row in schedule)


def calculate_time_saved(
    principal: float,
    annual_rate: float,
    periods: int,
    extra_payment: float,
    frequency: PaymentFrequency = PaymentFrequency.monthly,
) -> int:
    """
    Payments saved by the extra payment.

    Runs the schedule once without and once with the extra payment and
    compares their lengths.
    """
    baseline = amortize(principal, annual_rate, periods, 0.0, frequency)
    accelerated = amortize(principal, annual_rate, periods, extra_payment, frequency)
    return len(baseline) - len(accelerated)


def amortize_loan(
    principal: float,
    annual_rate: float,
    years: float,
    frequency: PaymentFrequency = PaymentFrequency.monthly,
    down_payment: float = 0.0,
    extra_payment: float = 0.0,
    start_date: Optional[date] = None,
) -> Tuple[LoanSummary, List[AmortizationEntry]]:
    """
    Summarize a loan given its term in years, with its schedule.

    The schedule is built once with the extra payment and, when there is
    one, once more without it to measure the time saved.

    Args:
        principal: Purchase price or loan principal before down payment
        annual_rate: Annual interest rate in percent
        years: Loan term in years
        frequency: Payment frequency
        down_payment: Amount paid up front, reducing the financed amount
        extra_payment: Extra principal per period
        start_date: Date of first payment, for dated rows

    Returns:
        (LoanSummary, amortization rows)
    """
    if down_payment < 0:
        raise CalculationInputError("Down payment cannot be negative")
    if down_payment >= principal:
        raise CalculationInputError("Down payment must be less than principal amount")
    if years <= 0:
        raise CalculationInputError("Loan term must be positive")

    loan_amount = principal - down_payment
    periods = int(round(frequency.periods_from_years(years)))

    base_payment = calculate_payment(loan_amount, annual_rate, periods, frequency)
    schedule = amortize(
        loan_amount, annual_rate, periods, extra_payment, frequency, start_date
    )
    periods_saved = 0
    if extra_payment > 0:
        baseline = amortize(loan_amount, annual_rate, periods, 0.0, frequency)
        periods_saved = len(baseline) - len(schedule)
    logger.debug(
        "Loan of %s over %s payments: %s payments made, %s saved",
        loan_amount,
        periods,
        len(schedule),
        periods_saved,
    )

    summary = LoanSummary(
        loan_amount=loan_amount,
        base_payment=base_payment,
        payment=base_payment + extra_payment,
        number_of_payments=len(schedule),
        total_paid=sum(row.payment for row in schedule),
        total_interest=calculate_total_interest(schedule),
        periods_saved=periods_saved,
        years_saved=frequency.years_from_periods(periods_saved),
    )
    return summary, schedule


def summarize_loan(
    principal: float,
    annual_rate: float,
    years: float,
    frequency: PaymentFrequency = PaymentFrequency.monthly,
    down_payment: float = 0.0,
    extra_payment: float = 0.0,
) -> LoanSummary:
    """Headline figures of a loan without the schedule rows."""
    summary, _ = amortize_loan(
        principal, annual_rate, years, frequency, down_payment, extra_payment
    )
    return summary
