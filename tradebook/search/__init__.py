"""tradebook.search — trade predicates, filter builders and the textual query parser."""

from tradebook.search.filters import SearchCriteria as SearchCriteria
from tradebook.search.filters import TradeFilter as TradeFilter
from tradebook.search.filters import build_search_criteria as build_search_criteria
from tradebook.search.filters import build_trade_filter as build_trade_filter
from tradebook.search.paging import DEFAULT_SORT as DEFAULT_SORT
from tradebook.search.paging import Page as Page
from tradebook.search.paging import Sort as Sort
from tradebook.search.paging import paginate as paginate
from tradebook.search.predicate import MATCH_ALL as MATCH_ALL
from tradebook.search.predicate import And as And
from tradebook.search.predicate import AnyLeg as AnyLeg
from tradebook.search.predicate import Comparison as Comparison
from tradebook.search.predicate import ComparisonOp as ComparisonOp
from tradebook.search.predicate import Or as Or
from tradebook.search.predicate import Predicate as Predicate
from tradebook.search.predicate import conjunction as conjunction
from tradebook.search.predicate import evaluate as evaluate
from tradebook.search.query import AndNode as AndNode
from tradebook.search.query import ComparisonNode as ComparisonNode
from tradebook.search.query import OrNode as OrNode
from tradebook.search.query import QueryNode as QueryNode
from tradebook.search.query import compile_query as compile_query
from tradebook.search.query import parse_query as parse_query
from tradebook.search.query import to_predicate as to_predicate
