"""
Month Lifecycle Manager

The core state machine of the ledger. Every month is either OPEN or
CLOSED, and exactly one month (Ledger.current_month) is OPEN.

    OPEN --resolve_close_month--> CLOSED (archived, never reopened)
                                  + next calendar month OPEN

DESIGN DECISION: A new calendar month is only DETECTED, never acted on.
Closing silently would throw away the user's choice of what to do with
each category's leftover, so detect_rollover() reports and the user
runs the close explicitly.

CRITICAL: The close is computed from a snapshot of every category's
allocated/spent taken before anything changes, and it is built on a deep
copy of the ledger. Callers only ever see the ledger before or after the
whole transition, never halfway.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Mapping, Optional
from uuid import UUID, uuid4

import structlog
from pydantic import ValidationError as PydanticValidationError

from budgetbook.config import LedgerSettings, get_settings
from budgetbook.errors import InvalidStateError
from budgetbook.ledger import calculations
from budgetbook.models.ledger import (
    CENT,
    ZERO,
    ArchivedMonth,
    Category,
    IncomeRecord,
    Ledger,
    Month,
    RolloverAction,
    utc_now,
)
from budgetbook.models.results import (
    CloseMonthPreview,
    CloseMonthResult,
    LeftoverItem,
    ResolutionOutcome,
    RolloverChoice,
    RolloverStatus,
)


logger = structlog.get_logger(__name__)

ChoiceInput = Any  # RolloverChoice, RolloverAction, "carry", or {"action": ..., "target": ...}


def month_key_for(day: date) -> str:
    """Calendar key for a date, YYYY-MM."""
    return day.strftime("%Y-%m")


def next_month_key(key: str) -> str:
    """Calendar successor of a month key. 2025-12 -> 2026-01."""
    year, month = (int(part) for part in key.split("-"))
    if month == 12:
        return f"{year + 1:04d}-01"
    return f"{year:04d}-{month + 1:02d}"


def first_day(key: str) -> date:
    year, month = (int(part) for part in key.split("-"))
    return date(year, month, 1)


def split_evenly(amount: Decimal, names: list[str]) -> dict[str, Decimal]:
    """
    Split an amount across names in whole cents.

    Remainder cents go one each to the first names, so the parts always
    sum to exactly the amount.
    """
    cents = int((amount / CENT).to_integral_value())
    share, remainder = divmod(cents, len(names))
    return {
        name: Decimal(share + (1 if idx < remainder else 0)) * CENT
        for idx, name in enumerate(names)
    }


class MonthLifecycleManager:
    """
    Opens, detects rollover of, and closes ledger months.

    Like the transaction engine, it is handed the Ledger explicitly.
    """

    def __init__(
        self,
        settings: Optional[LedgerSettings] = None,
        clock: Optional[Callable[[], date]] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self._settings = settings or get_settings().ledger
        self._clock = clock or date.today
        self._now = now or utc_now

    @property
    def default_action(self) -> RolloverAction:
        return RolloverAction(self._settings.default_rollover_action)

    # =========================================================================
    # OPEN / DETECT
    # =========================================================================

    def new_ledger(self, today: Optional[date] = None) -> Ledger:
        """An empty ledger whose open month is today's calendar month."""
        key = month_key_for(today or self._clock())
        return Ledger(
            current_month=key,
            months={key: Month(key=key, opened_at=self._now())},
        )

    def detect_rollover(self, ledger: Ledger, today: Optional[date] = None) -> RolloverStatus:
        """
        Compare the open month to the calendar.

        A ledger closed early sits ahead of the calendar; that is not a
        rollover. Nothing is closed here.
        """
        calendar_key = month_key_for(today or self._clock())
        return RolloverStatus(
            ledger_month=ledger.current_month,
            calendar_month=calendar_key,
            needs_close=calendar_key > ledger.current_month,
        )

    # =========================================================================
    # CLOSE: PREVIEW
    # =========================================================================

    def open_close_month(self, ledger: Ledger) -> CloseMonthPreview:
        """List every category's leftover and what can be done with it."""
        month = ledger.current
        if month.closed:
            raise InvalidStateError(f"Month {month.key} is already closed", month_key=month.key)

        names = list(month.categories)
        items = [
            LeftoverItem(
                category=balance.name,
                allocated=balance.allocated,
                spent=balance.spent,
                leftover=balance.leftover,
                actionable=balance.leftover > 0,
                default_action=self.default_action,
                move_targets=[n for n in names if n != balance.name],
            )
            for balance in calculations.balances(month)
        ]
        return CloseMonthPreview(
            month_key=month.key,
            next_month_key=next_month_key(month.key),
            items=items,
        )

    # =========================================================================
    # CLOSE: RESOLVE
    # =========================================================================

    def _normalize_choice(self, raw: ChoiceInput) -> RolloverChoice:
        if raw is None:
            return RolloverChoice(action=self.default_action)
        if isinstance(raw, RolloverChoice):
            return raw
        if isinstance(raw, (RolloverAction, str)):
            return RolloverChoice(action=raw)
        if isinstance(raw, Mapping):
            return RolloverChoice.model_validate(raw)
        raise ValueError(f"Unsupported rollover choice: {raw!r}")

    def _apply_choice(
        self,
        month: Month,
        name: str,
        leftover: Decimal,
        choice: RolloverChoice,
    ) -> tuple[dict[str, Decimal], Decimal, bool]:
        """
        Work out one category's resolution without touching the month.

        Returns:
            (next-month rollover deltas, amount pooled, applied)

        Raises:
            InvalidStateError: If this resolution cannot be applied
        """
        action = choice.action

        if action == RolloverAction.CARRY:
            return {name: leftover}, ZERO, True

        if action == RolloverAction.POOL:
            return {}, leftover, True

        if action == RolloverAction.DISCARD:
            return {}, ZERO, True

        if action == RolloverAction.REDISTRIBUTE:
            others = [n for n in month.categories if n != name]
            if not others:
                # Nothing to redistribute to
                return {}, ZERO, False
            return split_evenly(leftover, others), ZERO, True

        # MOVE
        target = choice.target
        if not target:
            raise InvalidStateError(f"No target category given to move {name}'s leftover", month.key)
        if target == name:
            raise InvalidStateError(f"Cannot move {name}'s leftover to itself", month.key)
        if month.get_category(target) is None:
            raise InvalidStateError(f"Target category '{target}' does not exist", month.key)
        return {target: leftover}, ZERO, True

    def resolve_close_month(
        self,
        ledger: Ledger,
        choices: Optional[Mapping[str, ChoiceInput]] = None,
        month_key: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Ledger, CloseMonthResult]:
        """
        Close the open month and open the next calendar month.

        Per-category failures (bad choice, missing move target) are
        isolated: they are reported in the result and every other
        resolution still applies.

        Args:
            ledger: Ledger to close. Not modified.
            choices: Category name -> choice. Missing categories use the
                    configured default action.
            month_key: Month expected to be closed. Defaults to the open month.
            correlation_id: Ties the close together in the audit trail.

        Returns:
            (new ledger, result)

        Raises:
            InvalidStateError: If the month is unknown, already closed, or
                    not the open month
        """
        choices = dict(choices or {})
        key = month_key or ledger.current_month

        original = ledger.months.get(key)
        if original is None:
            raise InvalidStateError(f"Unknown month: {key}", month_key=key)
        if original.closed or key in ledger.history:
            raise InvalidStateError(f"Month {key} is already closed", month_key=key)
        if key != ledger.current_month:
            raise InvalidStateError(
                f"Only the open month ({ledger.current_month}) can be closed",
                month_key=key,
            )

        next_key = next_month_key(key)
        if next_key in ledger.months:
            raise InvalidStateError(f"Month {next_key} already exists", month_key=next_key)

        working = ledger.model_copy(deep=True)
        month = working.months[key]
        now = self._now()
        correlation_id = correlation_id or uuid4()

        # Step 1: snapshot before any mutation
        snapshot = calculations.balances(month)

        # Step 2: resolve each positive leftover
        deltas: dict[str, Decimal] = {name: ZERO for name in month.categories}
        pooled = ZERO
        outcomes: list[ResolutionOutcome] = []

        for unknown in [name for name in choices if name not in month.categories]:
            outcomes.append(ResolutionOutcome(
                category=unknown,
                action=self._safe_action(choices[unknown]),
                leftover=ZERO,
                applied=False,
                error=f"Unknown category: {unknown}",
            ))

        for balance in snapshot:
            leftover = balance.leftover

            if leftover <= 0:
                if leftover < 0 and self._settings.carry_deficits:
                    deltas[balance.name] += leftover
                    outcomes.append(ResolutionOutcome(
                        category=balance.name,
                        action=RolloverAction.CARRY,
                        leftover=leftover,
                        applied=True,
                        deltas={balance.name: leftover},
                    ))
                continue

            raw = choices.get(balance.name)
            try:
                choice = self._normalize_choice(raw)
            except (ValueError, PydanticValidationError) as e:
                outcomes.append(ResolutionOutcome(
                    category=balance.name,
                    action=self._safe_action(raw),
                    leftover=leftover,
                    applied=False,
                    error=f"Invalid rollover choice: {e}",
                ))
                continue

            try:
                choice_deltas, choice_pooled, applied = self._apply_choice(
                    month, balance.name, leftover, choice,
                )
            except InvalidStateError as e:
                logger.warning(
                    "rollover_resolution_failed",
                    month=key,
                    category=balance.name,
                    action=choice.action.value,
                    error=e.message,
                )
                outcomes.append(ResolutionOutcome(
                    category=balance.name,
                    action=choice.action,
                    leftover=leftover,
                    applied=False,
                    target=choice.target,
                    error=e.message,
                ))
                continue

            for target, amount in choice_deltas.items():
                deltas[target] += amount
            pooled += choice_pooled

            outcomes.append(ResolutionOutcome(
                category=balance.name,
                action=choice.action,
                leftover=leftover,
                applied=applied,
                target=choice.target,
                deltas=choice_deltas,
            ))

        # Step 3: archive entries
        working.history[key] = ArchivedMonth(
            transactions=month.transactions,
            incomes=month.income,
            archived_at=now,
        )

        # Step 4: open the next month from base goals plus deltas
        income = []
        if pooled > 0:
            income.append(IncomeRecord(
                amount=pooled,
                note=f"Rollover from {key}",
                entry_date=first_day(next_key),
            ))
        working.months[next_key] = Month(
            key=next_key,
            income=income,
            categories={
                name: Category(name=name, base=category.base, rollover=deltas[name])
                for name, category in month.categories.items()
            },
            pool=pooled,
            opened_at=now,
        )

        # Step 5: mark closed and move the pointer
        month.transactions = []
        month.income = []
        month.closed = True
        month.closed_at = now
        working.current_month = next_key

        logger.info(
            "month_closed",
            closed=key,
            opened=next_key,
            pooled=str(pooled),
            failures=sum(1 for o in outcomes if o.error),
        )

        return working, CloseMonthResult(
            closed_month=key,
            opened_month=next_key,
            correlation_id=correlation_id,
            outcomes=outcomes,
            pooled_total=pooled,
        )

    def _safe_action(self, raw: ChoiceInput) -> RolloverAction:
        """Best-effort action for reporting a choice that could not be used."""
        value = raw.get("action") if isinstance(raw, Mapping) else raw
        if isinstance(value, RolloverChoice):
            return value.action
        try:
            return RolloverAction(value)
        except (ValueError, TypeError):
            return self.default_action
