"""
Financial calculation API endpoints.

These endpoints accept inputs and return calculated results.
Rates are percentages (6.0 = 6%) in every request and response.
"""

from dataclasses import asdict
from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from fincalc.calculations import amortization, bond, depreciation, irr, tvm
from fincalc.calculations.conventions import AnnuityTiming, PaymentFrequency
from fincalc.calculations.results import CalculationInputError, SolverResult, SolverStatus
from fincalc.config import get_settings, get_solver_options

router = APIRouter()


class SolverResponse(BaseModel):
    """A solved value with solver diagnostics."""

    value: float
    status: str
    iterations: int
    method: Optional[str] = None
    message: str = ""


def _solver_response(result: SolverResult) -> SolverResponse:
    """
    Unwrap a SolverResult, or fail with the typed status.

    Rejected inputs are a 400, as CalculationInputError is elsewhere;
    any other failed solve is a 422.
    """
    if not result.ok:
        raise HTTPException(
            status_code=400 if result.status is SolverStatus.invalid_input else 422,
            detail={
                "status": result.status.value,
                "message": result.message,
                "iterations": result.iterations,
            },
        )
    return SolverResponse(
        value=result.value,
        status=result.status.value,
        iterations=result.iterations,
        method=result.method,
        message=result.message,
    )


class TVMInput(BaseModel):
    """Input for a time value of money solve; leave the unknown empty."""

    present_value: Optional[float] = None
    future_value: Optional[float] = None
    payment: Optional[float] = None
    annual_rate: Optional[float] = None
    years: Optional[float] = None
    frequency: PaymentFrequency = PaymentFrequency.annual
    timing: AnnuityTiming = AnnuityTiming.ordinary
    solve_for: Optional[tvm.TVMVariable] = None


@router.post("/tvm", response_model=SolverResponse)
async def calculate_tvm(inputs: TVMInput):
    """Solve for the missing TVM value."""
    params = tvm.TVMParameters(**inputs.model_dump())
    return _solver_response(tvm.solve_tvm(params, options=get_solver_options()))


class BondInput(BaseModel):
    """Bond terms."""

    face_value: float = 1000.0
    coupon_rate: float
    years_to_maturity: float
    payments_per_year: int = 2

    def to_bond(self) -> bond.Bond:
        return bond.Bond(
            face_value=self.face_value,
            coupon_rate=self.coupon_rate,
            years_to_maturity=self.years_to_maturity,
            payments_per_year=self.payments_per_year,
        )


class BondPriceInput(BondInput):
    """Input for bond pricing."""

    market_rate: float


class BondPriceResponse(BaseModel):
    """Bond price and risk measures."""

    price: float
    premium_discount: float
    annual_coupon: float
    macaulay_duration: float
    modified_duration: float
    convexity: float
    cash_flows: List[dict]


@router.post("/bond/price", response_model=BondPriceResponse)
async def calculate_bond_price(inputs: BondPriceInput):
    """Price a bond from its market yield."""
    terms = inputs.to_bond()
    try:
        price = bond.price_bond(terms, inputs.market_rate)
        return BondPriceResponse(
            price=price,
            premium_discount=bond.premium_discount(terms, price),
            annual_coupon=terms.annual_coupon,
            macaulay_duration=bond.macaulay_duration(terms, inputs.market_rate),
            modified_duration=bond.modified_duration(terms, inputs.market_rate),
            convexity=bond.convexity(terms, inputs.market_rate),
            cash_flows=bond.bond_cash_flows(terms),
        )
    except CalculationInputError as e:
        raise HTTPException(status_code=400, detail=str(e))


class BondYieldInput(BondInput):
    """Input for yield-to-maturity."""

    price: float


class BondYieldResponse(BaseModel):
    """Yield to maturity plus current yield."""

    yield_to_maturity: SolverResponse
    current_yield: float


@router.post("/bond/yield", response_model=BondYieldResponse)
async def calculate_bond_yield(inputs: BondYieldInput):
    """Solve yield to maturity from an observed price."""
    terms = inputs.to_bond()
    ytm = _solver_response(bond.solve_bond_yield(terms, inputs.price, get_solver_options()))
    return BondYieldResponse(
        yield_to_maturity=ytm,
        current_yield=bond.current_yield(terms, inputs.price),
    )


class AmortizationInput(BaseModel):
    """Input for amortization calculation."""

    principal: float
    annual_rate: float
    years: float
    frequency: PaymentFrequency = PaymentFrequency.monthly
    down_payment: float = 0.0
    extra_payment: float = 0.0
    start_date: Optional[date] = None


@router.post("/amortization")
async def calculate_amortization(inputs: AmortizationInput):
    """Generate loan amortization schedule and summary."""
    try:
        summary, schedule = amortization.amortize_loan(
            principal=inputs.principal,
            annual_rate=inputs.annual_rate,
            years=inputs.years,
            frequency=inputs.frequency,
            down_payment=inputs.down_payment,
            extra_payment=inputs.extra_payment,
            start_date=inputs.start_date,
        )
    except CalculationInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "summary": asdict(summary),
        "schedule": [asdict(row) for row in schedule],
        "total_interest": summary.total_interest,
        "total_principal": sum(row.principal for row in schedule),
    }


class DepreciationInput(BaseModel):
    """Input for a depreciation schedule."""

    cost: float
    salvage: float = 0.0
    life: int
    method: Literal[
        "straight_line", "declining_balance", "sum_of_years_digits", "macrs"
    ] = "straight_line"
    multiplier: float = 2.0
    switch_to_straight_line: bool = False
    macrs_class: Optional[depreciation.MacrsClass] = None
    current_year: Optional[int] = None

    def to_method(self) -> depreciation.DepreciationMethod:
        if self.method == "declining_balance":
            return depreciation.DecliningBalance(
                multiplier=self.multiplier,
                switch_to_straight_line=self.switch_to_straight_line,
            )
        if self.method == "sum_of_years_digits":
            return depreciation.SumOfYearsDigits()
        if self.method == "macrs":
            return depreciation.Macrs(property_class=self.macrs_class)
        return depreciation.StraightLine()


@router.post("/depreciation")
async def calculate_depreciation(inputs: DepreciationInput):
    """Generate a depreciation schedule."""
    method = inputs.to_method()
    try:
        schedule = depreciation.depreciation_schedule(
            inputs.cost, inputs.salvage, inputs.life, method
        )
        current = None
        if inputs.current_year is not None:
            current = asdict(
                depreciation.depreciation_for_year(
                    inputs.cost, inputs.salvage, inputs.life, method, inputs.current_year
                )
            )
    except CalculationInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "schedule": [asdict(row) for row in schedule],
        "total_depreciation": schedule[-1].cumulative_depreciation,
        "current_year": current,
    }


class NPVInput(BaseModel):
    """Input for NPV calculation."""

    cash_flows: List[float]
    discount_rate: float


class NPVResponse(BaseModel):
    """NPV with profitability index."""

    npv: float
    profitability_index: Optional[float] = None


@router.post("/npv", response_model=NPVResponse)
async def calculate_npv_endpoint(inputs: NPVInput):
    """Calculate NPV for given cash flows."""
    try:
        npv = irr.calculate_npv(inputs.cash_flows, inputs.discount_rate)
        index = None
        if inputs.cash_flows and inputs.cash_flows[0] != 0:
            index = irr.profitability_index(inputs.cash_flows, inputs.discount_rate)
    except CalculationInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return NPVResponse(npv=npv, profitability_index=index)


class IRRInput(BaseModel):
    """Input for IRR calculation."""

    cash_flows: List[float]
    guess: Optional[float] = None


class IRRResponse(BaseModel):
    """Response with IRR calculation."""

    irr: SolverResponse
    multiple: float
    profit: float
    npv_at_10_percent: float
    payback_period: Optional[float] = None


@router.post("/irr", response_model=IRRResponse)
async def calculate_irr_endpoint(inputs: IRRInput):
    """Calculate IRR for given cash flows."""
    guess = inputs.guess if inputs.guess is not None else get_settings().irr_default_guess
    result = _solver_response(
        irr.calculate_irr(inputs.cash_flows, guess, get_solver_options())
    )

    try:
        multiple = irr.calculate_multiple(inputs.cash_flows)
    except CalculationInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return IRRResponse(
        irr=result,
        multiple=multiple,
        profit=irr.calculate_profit(inputs.cash_flows),
        npv_at_10_percent=irr.calculate_npv(inputs.cash_flows, 10.0),
        payback_period=irr.payback_period(inputs.cash_flows),
    )
