"""TradeLifecycleEngine — create, amend, terminate and cancel as versioned transitions.

Every transition follows the same pipeline:

    structural checks -> privilege -> status transition -> validator chain
    -> leg and cashflow construction -> one atomic TradeStore.save()

Any Err short-circuits the pipeline before save(), so a failed operation
writes nothing. Amend, terminate and cancel on one trade_id run under a
per-trade lock and the store's compare-and-swap on the superseded
version; the loser of a race gets Err(StateConflictError).

Reference-data outages surface as Err(ReferenceDataError), never as
validation findings.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import date
from typing import final

from tradebook.core.errors import (
    NotFoundError,
    ParseError,
    PersistenceError,
    PrivilegeError,
    ReferenceDataError,
    Severity,
    StateConflictError,
    TradeError,
    ValidationError,
    ValidationMessage,
)
from tradebook.core.result import Err, Ok
from tradebook.core.types import EntityRef, UtcDatetime
from tradebook.infra.config import LifecycleConfig
from tradebook.infra.locks import LockTimeout, TradeLockRegistry
from tradebook.infra.protocols import TradeStore
from tradebook.reference.gateway import (
    ReferenceDataGateway,
    ReferenceDataUnavailable,
    ReferenceKind,
)
from tradebook.search.filters import (
    SearchCriteria,
    TradeFilter,
    build_search_criteria,
    build_trade_filter,
)
from tradebook.search.paging import DEFAULT_SORT, Page, Sort
from tradebook.search.predicate import Comparison, ComparisonOp, Predicate
from tradebook.search.query import compile_query
from tradebook.trade.cashflows import generate_leg_cashflows
from tradebook.trade.lifecycle import LifecycleStatus, check_transition
from tradebook.trade.types import (
    ActingUser,
    Trade,
    TradeLeg,
    TradeRequest,
    request_from_trade,
)
from tradebook.validation.context import OperationType, ValidationContext
from tradebook.validation.validators import (
    DateRulesValidator,
    EntityStatusValidator,
    LegConsistencyValidator,
    Validator,
    run_validators,
)

logger = logging.getLogger(__name__)

BOOK_TRADE = "BOOK_TRADE"
AMEND_TRADE = "AMEND_TRADE"
TERMINATE_TRADE = "TERMINATE_TRADE"
CANCEL_TRADE = "CANCEL_TRADE"

_PRIVILEGES: dict[OperationType, str] = {
    OperationType.CREATE: BOOK_TRADE,
    OperationType.AMEND: AMEND_TRADE,
    OperationType.TERMINATE: TERMINATE_TRADE,
    OperationType.CANCEL: CANCEL_TRADE,
}

type SearchError = ValidationError | PersistenceError
type QueryError = ValidationError | PersistenceError | ParseError


# ---------------------------------------------------------------------------
# Error constructors
# ---------------------------------------------------------------------------


def _single_error(code: str, message: str, rule: str, source: str) -> ValidationError:
    return ValidationError(
        message=message,
        code=code,
        timestamp=UtcDatetime.now(),
        source=source,
        messages=(ValidationMessage(Severity.ERROR, message, rule),),
    )


def _not_found(trade_id: int, source: str) -> NotFoundError:
    return NotFoundError(
        message=f"Trade not found: {trade_id}",
        code="TRADE_NOT_FOUND",
        timestamp=UtcDatetime.now(),
        source=source,
        trade_id=trade_id,
    )


def _reference_error(e: ReferenceDataUnavailable, source: str) -> ReferenceDataError:
    kind = e.kind.value if e.kind is not None else "unknown"
    return ReferenceDataError(
        message=f"Reference data unavailable ({kind}): {e.detail}",
        code="REFERENCE_DATA_UNAVAILABLE",
        timestamp=UtcDatetime.now(),
        source=source,
        kind=kind,
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


@final
class TradeLifecycleEngine:
    """Versioned trade lifecycle over a TradeStore and a ReferenceDataGateway."""

    def __init__(
        self,
        store: TradeStore,
        gateway: ReferenceDataGateway,
        config: LifecycleConfig | None = None,
        *,
        validators: Iterable[Validator] | None = None,
        locks: TradeLockRegistry | None = None,
        today: Callable[[], date] = date.today,
        now: Callable[[], UtcDatetime] = UtcDatetime.now,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._config = config if config is not None else LifecycleConfig()
        self._validators: tuple[Validator, ...] = (
            tuple(validators) if validators is not None else (
                DateRulesValidator(self._config.stale_trade_days),
                EntityStatusValidator(),
                LegConsistencyValidator(),
            )
        )
        self._locks = locks if locks is not None else TradeLockRegistry(self._config.lock_timeout_s)
        self._today = today
        self._now = now

    @property
    def config(self) -> LifecycleConfig:
        return self._config

    # -- lifecycle transitions ---------------------------------------------

    def create(self, request: TradeRequest, user: ActingUser | None) -> Ok[Trade] | Err[TradeError]:
        """Book version 1 of a new trade with status NEW."""
        source = "engine.create"
        if (err := self._check_leg_count(request, source)) is not None:
            return err
        try:
            if (err := self._check_privilege(OperationType.CREATE, user, source)) is not None:
                return err
            status = self._resolve_status(self._config.status_new, source)
            if isinstance(status, Err):
                return status
            request = replace(request, status=status.value)
            if (err := self._validate(request, user, OperationType.CREATE, source)) is not None:
                return err
        except ReferenceDataUnavailable as e:
            return self._outage(e, source)

        trade_id = request.trade_id
        if trade_id is None:
            match self._store.next_trade_id():
                case Ok(allocated):
                    trade_id = allocated
                case Err() as failure:
                    return failure

        match self._build_legs(request, source):
            case Err() as failure:
                return failure
            case Ok(legs):
                pass

        stamp = self._now()
        trade = Trade(
            trade_id=trade_id,
            version=1,
            active=True,
            status=status.value,
            trade_date=request.trade_date,
            start_date=request.start_date,
            maturity_date=request.maturity_date,
            execution_date=request.execution_date,
            trade_type=request.trade_type,
            trade_sub_type=request.trade_sub_type,
            book=request.book,
            counterparty=request.counterparty,
            trader=request.trader,
            inputter=request.inputter,
            created_at=stamp,
            last_touch_at=stamp,
            legs=legs,
        )
        return self._commit(trade, None, source)

    def amend(
        self, trade_id: int, request: TradeRequest, user: ActingUser | None,
    ) -> Ok[Trade] | Err[TradeError]:
        """Supersede the active version with version N+1 built from ``request``."""
        source = "engine.amend"
        try:
            with self._locks.hold(trade_id):
                return self._amend_locked(trade_id, replace(request, trade_id=trade_id), user)
        except LockTimeout as e:
            return self._lock_conflict(e, source)

    def terminate(self, trade_id: int, user: ActingUser | None) -> Ok[Trade] | Err[TradeError]:
        """Close the trade: version N+1 with status TERMINATED and active=False."""
        return self._close(
            trade_id, user, OperationType.TERMINATE,
            LifecycleStatus.TERMINATED, self._config.status_terminated, "engine.terminate",
        )

    def cancel(self, trade_id: int, user: ActingUser | None) -> Ok[Trade] | Err[TradeError]:
        """Soft-delete the trade: version N+1 with status CANCELLED and active=False."""
        return self._close(
            trade_id, user, OperationType.CANCEL,
            LifecycleStatus.CANCELLED, self._config.status_cancelled, "engine.cancel",
        )

    def _amend_locked(
        self, trade_id: int, request: TradeRequest, user: ActingUser | None,
    ) -> Ok[Trade] | Err[TradeError]:
        source = "engine.amend"
        match self._load_active(trade_id, source):
            case Err() as failure:
                return failure
            case Ok(current):
                pass
        if (err := self._check_leg_count(request, source)) is not None:
            return err
        try:
            if (err := self._check_privilege(OperationType.AMEND, user, source)) is not None:
                return err
            status = self._resolve_status(self._config.status_amended, source)
            if isinstance(status, Err):
                return status
            match check_transition(current.status.name, LifecycleStatus.AMENDED):
                case Err() as illegal:
                    logger.warning(
                        "Rejected amend of trade %s: %s", trade_id, illegal.error.message,
                    )
                    return illegal
            request = replace(request, status=status.value)
            if (err := self._validate(request, user, OperationType.AMEND, source)) is not None:
                return err
        except ReferenceDataUnavailable as e:
            return self._outage(e, source)

        match self._build_legs(request, source):
            case Err() as failure:
                return failure
            case Ok(legs):
                pass

        stamp = self._now()
        amended = Trade(
            trade_id=trade_id,
            version=current.version + 1,
            active=True,
            status=status.value,
            trade_date=request.trade_date,
            start_date=request.start_date,
            maturity_date=request.maturity_date,
            execution_date=request.execution_date,
            trade_type=request.trade_type,
            trade_sub_type=request.trade_sub_type,
            book=request.book,
            counterparty=request.counterparty,
            trader=request.trader,
            inputter=request.inputter,
            created_at=stamp,
            last_touch_at=stamp,
            legs=legs,
        )
        return self._commit(amended, current, source)

    def _close(
        self,
        trade_id: int,
        user: ActingUser | None,
        operation: OperationType,
        target: LifecycleStatus,
        status_name: str,
        source: str,
    ) -> Ok[Trade] | Err[TradeError]:
        try:
            with self._locks.hold(trade_id):
                match self._load_active(trade_id, source):
                    case Err() as failure:
                        return failure
                    case Ok(current):
                        pass
                try:
                    if (err := self._check_privilege(operation, user, source)) is not None:
                        return err
                    match check_transition(current.status.name, target):
                        case Err() as illegal:
                            logger.warning(
                                "Rejected %s of trade %s: %s",
                                operation.value.lower(), trade_id, illegal.error.message,
                            )
                            return illegal
                    status = self._resolve_status(status_name, source)
                    if isinstance(status, Err):
                        return status
                    err = self._validate(request_from_trade(current), user, operation, source)
                    if err is not None:
                        return err
                except ReferenceDataUnavailable as e:
                    return self._outage(e, source)

                stamp = self._now()
                closed = replace(
                    current,
                    version=current.version + 1,
                    active=False,
                    status=status.value,
                    created_at=stamp,
                    last_touch_at=stamp,
                    row_id=None,
                    # Legs carry over to the closing version; no cashflows are regenerated.
                    legs=tuple(replace(leg, leg_id=None, cashflows=()) for leg in current.legs),
                )
                return self._commit(closed, current, source)
        except LockTimeout as e:
            return self._lock_conflict(e, source)

    # -- pipeline steps -----------------------------------------------------

    def _check_leg_count(self, request: TradeRequest, source: str) -> Err[ValidationError] | None:
        required = self._config.required_leg_count
        count = 0 if request.legs is None else len(request.legs)
        if count == required:
            return None
        logger.warning("Rejected trade with %d legs (%s)", count, source)
        return Err(_single_error(
            "LEG_COUNT", f"Trade must have exactly {required} legs", "LegCount", source,
        ))

    def _check_privilege(
        self, operation: OperationType, user: ActingUser | None, source: str,
    ) -> Err[PrivilegeError] | None:
        """Raises ReferenceDataUnavailable."""
        if not self._config.enforce_privileges:
            return None
        privilege = _PRIVILEGES[operation]
        if user is not None and user.user_id is not None and self._gateway.user_has_privilege(
            user.user_id, privilege,
        ):
            return None
        login = None if user is None else user.login_id
        logger.warning("User %s lacks privilege %s (%s)", login, privilege, source)
        return Err(PrivilegeError(
            message=f"User {login!r} does not have privilege {privilege}",
            code="PRIVILEGE_DENIED",
            timestamp=UtcDatetime.now(),
            source=source,
            privilege=privilege,
            login_id=login,
        ))

    def _resolve_status(self, name: str, source: str) -> Ok[EntityRef] | Err[ReferenceDataError]:
        """Look up a TradeStatus row by name. Raises ReferenceDataUnavailable."""
        ref = self._gateway.find_by_name(ReferenceKind.TRADE_STATUS, name)
        if ref is None or ref.id is None:
            logger.error("Trade status %r is not configured", name)
            return Err(ReferenceDataError(
                message=f"Trade status '{name}' is not configured",
                code="STATUS_NOT_CONFIGURED",
                timestamp=UtcDatetime.now(),
                source=source,
                kind=ReferenceKind.TRADE_STATUS.value,
            ))
        return Ok(ref)

    def _validate(
        self,
        request: TradeRequest,
        user: ActingUser | None,
        operation: OperationType,
        source: str,
    ) -> Err[ValidationError] | None:
        """Run the whole chain; every finding is reported at once.

        Raises ReferenceDataUnavailable.
        """
        context = ValidationContext(
            trade=request,
            user=user,
            gateway=self._gateway,
            current_date=self._today(),
            operation=operation,
        )
        result = run_validators(context, self._validators)
        for warning in result.warnings:
            logger.info("Validation warning (%s): %s", source, warning)
        if result.is_valid:
            return None
        logger.warning("Validation failed (%s): %s", source, "; ".join(result.errors))
        return Err(result.to_error(source))

    def _build_legs(
        self, request: TradeRequest, source: str,
    ) -> Ok[tuple[TradeLeg, ...]] | Err[ValidationError]:
        start = request.start_date or request.trade_date
        legs: list[TradeLeg] = []
        for leg in request.legs or ():
            match generate_leg_cashflows(leg, start, request.maturity_date):
                case Err(reason):
                    return Err(_single_error(
                        "INVALID_SCHEDULE", reason, "CashflowSchedule", source,
                    ))
                case Ok(cashflows):
                    legs.append(TradeLeg(
                        notional=leg.notional,
                        rate=leg.rate,
                        currency=leg.currency,
                        leg_rate_type=leg.leg_rate_type,
                        pay_receive=leg.pay_receive,
                        index=leg.index,
                        schedule=leg.schedule,
                        cashflows=cashflows,
                    ))
        return Ok(tuple(legs))

    def _load_active(
        self, trade_id: int, source: str,
    ) -> Ok[Trade] | Err[NotFoundError | PersistenceError]:
        match self._store.find_active(trade_id):
            case Err() as failure:
                return failure
            case Ok(None):
                return Err(_not_found(trade_id, source))
            case Ok(trade):
                return Ok(trade)

    def _commit(
        self, trade: Trade, supersedes: Trade | None, source: str,
    ) -> Ok[Trade] | Err[TradeError]:
        match self._store.save(trade, supersedes=supersedes):
            case Ok(saved):
                logger.info(
                    "%s: trade %s version %s status %s (%d cashflows)",
                    source, saved.trade_id, saved.version, saved.status.name, saved.cashflow_count,
                )
                return Ok(saved)
            case Err(error):
                logger.warning(
                    "%s: save of trade %s failed: %s", source, trade.trade_id, error.message,
                )
                return Err(error)

    def _outage(self, e: ReferenceDataUnavailable, source: str) -> Err[ReferenceDataError]:
        logger.error("Reference data unavailable during %s: %s", source, e.detail)
        return Err(_reference_error(e, source))

    def _lock_conflict(self, e: LockTimeout, source: str) -> Err[StateConflictError]:
        logger.warning("%s: %s", source, e)
        return Err(StateConflictError(
            message=str(e),
            code="STATE_CONFLICT",
            timestamp=UtcDatetime.now(),
            source=source,
            trade_id=e.trade_id,
            expected_version=None,
        ))

    # -- read side ----------------------------------------------------------

    def get_trade(self, trade_id: int) -> Ok[Trade] | Err[NotFoundError | PersistenceError]:
        """The active version of ``trade_id``."""
        return self._load_active(trade_id, "engine.get_trade")

    def trade_history(
        self, trade_id: int,
    ) -> Ok[tuple[Trade, ...]] | Err[NotFoundError | PersistenceError]:
        """Every stored version of ``trade_id``, oldest first."""
        match self._store.find_versions(trade_id):
            case Err() as failure:
                return failure
            case Ok(()):
                return Err(_not_found(trade_id, "engine.trade_history"))
            case Ok(versions):
                return Ok(versions)

    def list_active_trades(self) -> Ok[tuple[Trade, ...]] | Err[PersistenceError]:
        """All active versions, newest trade id first."""
        active_only = Comparison(selector="active", op=ComparisonOp.EQ, values=(True,))
        order = Sort(field="trade_id", descending=True)
        trades: list[Trade] = []
        page = 0
        while True:
            match self._store.search(
                active_only, page=page, page_size=self._config.max_page_size, sort=order,
            ):
                case Err() as failure:
                    return failure
                case Ok(result):
                    trades.extend(result.items)
                    if not result.has_next:
                        return Ok(tuple(trades))
            page += 1

    def search(
        self,
        filter: TradeFilter,
        *,
        trader_login: str | None = None,
        page: int = 0,
        page_size: int | None = None,
        sort: Sort = DEFAULT_SORT,
    ) -> Ok[Page[Trade]] | Err[SearchError]:
        """Trades matching every supplied filter criterion, optionally restricted to one trader."""
        return self._run_search(
            build_trade_filter(filter, trader_login), page, page_size, sort, "engine.search",
        )

    def search_by_criteria(
        self,
        criteria: SearchCriteria,
        *,
        page: int = 0,
        page_size: int | None = None,
        sort: Sort = DEFAULT_SORT,
    ) -> Ok[Page[Trade]] | Err[SearchError]:
        return self._run_search(
            build_search_criteria(criteria), page, page_size, sort, "engine.search_by_criteria",
        )

    def query(
        self,
        text: str,
        *,
        page: int = 0,
        page_size: int | None = None,
        sort: Sort = DEFAULT_SORT,
    ) -> Ok[Page[Trade]] | Err[QueryError]:
        """Trades matching an RSQL-style query such as ``book==FX;legs.notional=ge=1e6``."""
        match compile_query(text):
            case Err() as failure:
                logger.warning("Rejected query %r: %s", text, failure.error.message)
                return failure
            case Ok(predicate):
                return self._run_search(predicate, page, page_size, sort, "engine.query")

    def _run_search(
        self,
        predicate: Predicate,
        page: int,
        page_size: int | None,
        sort: Sort,
        source: str,
    ) -> Ok[Page[Trade]] | Err[SearchError]:
        size = self._config.default_page_size if page_size is None else page_size
        if page < 0 or size < 1:
            return Err(_single_error(
                "INVALID_PAGE",
                f"Invalid page request: page={page}, page_size={size}",
                "Pagination", source,
            ))
        if not sort.is_valid:
            return Err(_single_error(
                "INVALID_SORT",
                f"Cannot sort by '{sort.field}': not a trade-level field",
                "Sort", source,
            ))
        size = min(size, self._config.max_page_size)
        return self._store.search(predicate, page=page, page_size=size, sort=sort)
