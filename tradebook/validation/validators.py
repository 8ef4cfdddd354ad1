"""Business-rule validators.

Each validator reads a ValidationContext and appends findings to a
ValidationResult. Rule violations are recorded, never raised; a TypeError
signals a programming error (a required collaborator is missing).

Validators are independent of one another, so the order of
DEFAULT_VALIDATORS fixes only the order of messages, never their set.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timedelta
from typing import Protocol, final, runtime_checkable

from tradebook.core.types import EntityRef
from tradebook.reference.gateway import ReferenceDataGateway, ReferenceKind
from tradebook.validation.context import (
    BOOKING_OPERATIONS,
    ValidationContext,
    ValidationResult,
)

STALE_TRADE_DAYS = 30


@runtime_checkable
class Validator(Protocol):
    def validate(self, context: ValidationContext, result: ValidationResult) -> None: ...


def _require_gateway(context: ValidationContext) -> ReferenceDataGateway:
    if context.gateway is None:
        raise TypeError("ValidationContext.gateway is required")
    return context.gateway


@final
class DateRulesValidator:
    """Trade, start and maturity date ordering plus the stale trade-date window.

    Evaluates only when both trade date and maturity date are present.
    """

    name = "DateRulesValidator"

    def __init__(self, stale_trade_days: int = STALE_TRADE_DAYS) -> None:
        self._stale_trade_days = stale_trade_days

    def validate(self, context: ValidationContext, result: ValidationResult) -> None:
        if context.operation not in BOOKING_OPERATIONS:
            return
        trade = context.trade
        if trade.trade_date is None or trade.maturity_date is None:
            return
        oldest_allowed = context.current_date - timedelta(days=self._stale_trade_days)

        if trade.start_date is not None and trade.start_date < trade.trade_date:
            result.add_error("Trade start date cannot be before the trade date.", self.name)
        if trade.trade_date < oldest_allowed:
            result.add_error(
                f"Trade date cannot be more than {self._stale_trade_days} days in the past.",
                self.name,
            )
        if trade.maturity_date < trade.trade_date:
            result.add_error("Maturity date cannot be before trade date.", self.name)
        if trade.start_date is not None and trade.maturity_date < trade.start_date:
            result.add_error("Maturity date cannot be before start date.", self.name)


@final
class EntityStatusValidator:
    """Reference data on the trade exists and is active; the acting user is valid."""

    name = "EntityStatusValidator"

    def validate(self, context: ValidationContext, result: ValidationResult) -> None:
        gateway = _require_gateway(context)
        if context.operation in BOOKING_OPERATIONS:
            self._check_trade_references(context, gateway, result)
        self._check_acting_user(context, gateway, result)

    def _check_trade_references(
        self,
        context: ValidationContext,
        gateway: ReferenceDataGateway,
        result: ValidationResult,
    ) -> None:
        trade = context.trade
        self._check(gateway, result, ReferenceKind.BOOK, "Book", trade.book, check_active=True)
        self._check(
            gateway, result, ReferenceKind.COUNTERPARTY, "Counterparty",
            trade.counterparty, check_active=True,
        )
        self._check(
            gateway, result, ReferenceKind.USER, "Trader User",
            trade.trader, check_active=True,
        )
        self._check(
            gateway, result, ReferenceKind.USER, "Trade Inputter User",
            trade.inputter, check_active=True,
        )

        if (
            trade.trader is not None and trade.trader.id is not None
            and trade.inputter is not None
            and trade.trader.id == trade.inputter.id
        ):
            result.add_warning(
                "Trader User and Trade Inputter User are the same person"
                " (separation of duties).",
                self.name,
            )

        self._check(gateway, result, ReferenceKind.TRADE_STATUS, "Trade Status", trade.status)
        self._check(gateway, result, ReferenceKind.TRADE_TYPE, "Trade Type", trade.trade_type)
        self._check(
            gateway, result, ReferenceKind.TRADE_SUB_TYPE, "Trade Sub-Type",
            trade.trade_sub_type,
        )

    def _check(
        self,
        gateway: ReferenceDataGateway,
        result: ValidationResult,
        kind: ReferenceKind,
        label: str,
        ref: EntityRef | None,
        *,
        check_active: bool = False,
    ) -> None:
        if ref is None or ref.id is None:
            result.add_error(f"{label} ID is missing from the trade.", self.name)
        elif not gateway.exists(kind, ref.id):
            result.add_error(f"{label} with ID {ref.id} does not exist.", self.name)
        elif check_active and not gateway.is_active(kind, ref.id):
            result.add_error(f"{label} with ID {ref.id} is inactive.", self.name)

    def _check_acting_user(
        self,
        context: ValidationContext,
        gateway: ReferenceDataGateway,
        result: ValidationResult,
    ) -> None:
        user = context.user
        if user is None or not user.login_id:
            result.add_error("No user context provided for validation.", self.name)
        elif not gateway.user_exists_by_login(user.login_id):
            result.add_error(f"User with loginId '{user.login_id}' does not exist.", self.name)
        elif user.user_id is None or not gateway.is_active(ReferenceKind.USER, user.user_id):
            result.add_error(
                f"User with loginId '{user.login_id}' is inactive"
                " and cannot perform this operation.",
                self.name,
            )


@final
class LegConsistencyValidator:
    """At least one leg; fewer than two is only a warning here.

    The hard "exactly 2 legs" rule is structural and lives in the
    lifecycle engine.
    """

    name = "LegConsistencyValidator"

    def validate(self, context: ValidationContext, result: ValidationResult) -> None:
        if context.operation not in BOOKING_OPERATIONS:
            return
        legs = context.trade.legs
        if not legs:
            result.add_error("Trade has no legs defined. At least one leg is required.", self.name)
            return
        if len(legs) < 2:
            result.add_warning("Trade should not have fewer than two legs.", self.name)


DEFAULT_VALIDATORS: tuple[Validator, ...] = (
    DateRulesValidator(),
    EntityStatusValidator(),
    LegConsistencyValidator(),
)


def run_validators(
    context: ValidationContext,
    validators: Iterable[Validator] = DEFAULT_VALIDATORS,
) -> ValidationResult:
    """Run every validator against one context; collect, never fail fast."""
    result = ValidationResult()
    for validator in validators:
        validator.validate(context, result)
    return result
