"""
Calculation Workflow

Staged state for a full lease -> credit -> investors calculation, with a pure
reducer. Changing an upstream value clears every value derived from it, so
stale downstream results can never survive an edit.

Stages, in order:
    leasing -> lease-results -> credit -> investors
"""

import enum
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple, Union

from lease_finance.calculations.allocation import Investor, InvestorReturn
from lease_finance.calculations.amortization import LoanTerms, PaymentScheduleEntry
from lease_finance.calculations.leasing import LeasingFinancialResult, LeasingInputs


class Stage(str, enum.Enum):
    """Workflow stage."""

    leasing = "leasing"
    lease_results = "lease-results"
    credit = "credit"
    investors = "investors"


@dataclass(frozen=True)
class CalculationState:
    """Snapshot of the workflow. Never mutated; reduce() returns a new one."""

    lease_input: Optional[LeasingInputs] = None
    lease_results: Optional[LeasingFinancialResult] = None
    credit_input: Optional[LoanTerms] = None
    credit_results: Optional[Tuple[PaymentScheduleEntry, ...]] = None
    investors: Tuple[Investor, ...] = ()
    investor_returns: Tuple[InvestorReturn, ...] = ()
    current_step: Stage = Stage.leasing


# Fields cleared when the key field changes.
DEPENDENTS: Dict[str, Tuple[str, ...]] = {
    "lease_input": (
        "lease_results", "credit_input", "credit_results", "investors", "investor_returns",
    ),
    "lease_results": ("credit_input", "credit_results", "investor_returns"),
    "credit_input": ("credit_results", "investor_returns"),
    "credit_results": ("investor_returns",),
    "investors": ("investor_returns",),
    "investor_returns": (),
}

_EMPTY = CalculationState()


@dataclass(frozen=True)
class SetLeaseInput:
    value: Optional[LeasingInputs]


@dataclass(frozen=True)
class SetLeaseResults:
    value: Optional[LeasingFinancialResult]


@dataclass(frozen=True)
class SetCreditInput:
    value: Optional[LoanTerms]


@dataclass(frozen=True)
class SetCreditResults:
    value: Optional[Tuple[PaymentScheduleEntry, ...]]


@dataclass(frozen=True)
class SetInvestors:
    value: Tuple[Investor, ...]


@dataclass(frozen=True)
class SetInvestorReturns:
    value: Tuple[InvestorReturn, ...]


@dataclass(frozen=True)
class GoToStage:
    stage: Stage


@dataclass(frozen=True)
class ClearAll:
    pass


Action = Union[
    SetLeaseInput,
    SetLeaseResults,
    SetCreditInput,
    SetCreditResults,
    SetInvestors,
    SetInvestorReturns,
    GoToStage,
    ClearAll,
]

_FIELD_FOR_ACTION = {
    SetLeaseInput: "lease_input",
    SetLeaseResults: "lease_results",
    SetCreditInput: "credit_input",
    SetCreditResults: "credit_results",
    SetInvestors: "investors",
    SetInvestorReturns: "investor_returns",
}


def _normalize(field_name: str, value):
    if field_name in ("investors", "investor_returns"):
        return tuple(value or ())
    if field_name == "credit_results" and value is not None:
        return tuple(value)
    return value


def reduce(state: CalculationState, action: Action) -> CalculationState:
    """
    Apply an action to a state and return the new state.

    Setting a field to a new value clears its dependents (see DEPENDENTS).
    Setting a field to the value it already holds changes nothing.
    """
    if isinstance(action, ClearAll):
        return CalculationState()

    if isinstance(action, GoToStage):
        return replace(state, current_step=Stage(action.stage))

    field_name = _FIELD_FOR_ACTION.get(type(action))
    if field_name is None:
        raise TypeError(f"Unknown workflow action: {action!r}")

    value = _normalize(field_name, action.value)
    if getattr(state, field_name) == value:
        return state

    changes = {name: getattr(_EMPTY, name) for name in DEPENDENTS[field_name]}
    changes[field_name] = value
    return replace(state, **changes)


def is_stage_completed(state: CalculationState, stage: Union[Stage, str]) -> bool:
    """Whether the data a stage produces is present."""
    stage = Stage(stage)
    if stage is Stage.leasing:
        return state.lease_input is not None
    if stage is Stage.lease_results:
        return state.lease_results is not None
    if stage is Stage.credit:
        return state.credit_input is not None
    return len(state.investors) > 0 and len(state.investor_returns) > 0
