"""tradebook.trade — trade snapshots, lifecycle status table and cashflow schedules.

The lifecycle engine lives in tradebook.trade.engine and is imported from
there; it depends on the validation and search packages, which in turn
depend on the types exported here.
"""

from tradebook.trade.cashflows import DEFAULT_SCHEDULE_MONTHS as DEFAULT_SCHEDULE_MONTHS
from tradebook.trade.cashflows import generate_leg_cashflows as generate_leg_cashflows
from tradebook.trade.cashflows import parse_schedule as parse_schedule
from tradebook.trade.cashflows import payment_dates as payment_dates
from tradebook.trade.cashflows import period_amount as period_amount
from tradebook.trade.lifecycle import TERMINAL_STATUSES as TERMINAL_STATUSES
from tradebook.trade.lifecycle import TRADE_TRANSITIONS as TRADE_TRANSITIONS
from tradebook.trade.lifecycle import LifecycleStatus as LifecycleStatus
from tradebook.trade.lifecycle import check_transition as check_transition
from tradebook.trade.types import ActingUser as ActingUser
from tradebook.trade.types import Cashflow as Cashflow
from tradebook.trade.types import LegRequest as LegRequest
from tradebook.trade.types import Trade as Trade
from tradebook.trade.types import TradeLeg as TradeLeg
from tradebook.trade.types import TradeRequest as TradeRequest
from tradebook.trade.types import request_from_trade as request_from_trade
