"""tradebook.core — Result, error values and shared value types."""

from tradebook.core.errors import IllegalTransitionError as IllegalTransitionError
from tradebook.core.errors import NotFoundError as NotFoundError
from tradebook.core.errors import ParseError as ParseError
from tradebook.core.errors import PersistenceError as PersistenceError
from tradebook.core.errors import PrivilegeError as PrivilegeError
from tradebook.core.errors import ReferenceDataError as ReferenceDataError
from tradebook.core.errors import Severity as Severity
from tradebook.core.errors import StateConflictError as StateConflictError
from tradebook.core.errors import TradebookError as TradebookError
from tradebook.core.errors import TradeError as TradeError
from tradebook.core.errors import ValidationError as ValidationError
from tradebook.core.errors import ValidationMessage as ValidationMessage
from tradebook.core.errors import error_response as error_response
from tradebook.core.errors import http_status as http_status
from tradebook.core.result import Err as Err
from tradebook.core.result import Ok as Ok
from tradebook.core.result import Result as Result
from tradebook.core.result import unwrap as unwrap
from tradebook.core.types import TRADEBOOK_DECIMAL_CONTEXT as TRADEBOOK_DECIMAL_CONTEXT
from tradebook.core.types import EntityRef as EntityRef
from tradebook.core.types import UtcDatetime as UtcDatetime
