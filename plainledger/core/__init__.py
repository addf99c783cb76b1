"""plainledger.core — public API for all core types."""

from plainledger.core.amount import (
    LEDGER_DECIMAL_CONTEXT as LEDGER_DECIMAL_CONTEXT,
)
from plainledger.core.amount import (
    Amount as Amount,
)
from plainledger.core.amount import (
    Commodity as Commodity,
)
from plainledger.core.amount import (
    parse_amount_text as parse_amount_text,
)
from plainledger.core.dates import (
    Period as Period,
)
from plainledger.core.dates import (
    format_date as format_date,
)
from plainledger.core.dates import (
    parse_date as parse_date,
)
from plainledger.core.errors import (
    AccountLookupError as AccountLookupError,
)
from plainledger.core.errors import (
    FieldViolation as FieldViolation,
)
from plainledger.core.errors import (
    InvariantViolation as InvariantViolation,
)
from plainledger.core.errors import (
    LedgerError as LedgerError,
)
from plainledger.core.errors import (
    ParseError as ParseError,
)
from plainledger.core.errors import (
    ResolutionWarning as ResolutionWarning,
)
from plainledger.core.errors import (
    ValidationError as ValidationError,
)
from plainledger.core.result import (
    Err as Err,
)
from plainledger.core.result import (
    Ok as Ok,
)
from plainledger.core.result import (
    sequence as sequence,
)
from plainledger.core.result import (
    unwrap as unwrap,
)
from plainledger.core.tags import (
    TagMatcher as TagMatcher,
)
from plainledger.core.tags import (
    Tags as Tags,
)
from plainledger.core.tags import (
    parse_tags as parse_tags,
)
from plainledger.core.types import (
    FrozenMap as FrozenMap,
)
from plainledger.core.types import (
    RenderStyle as RenderStyle,
)
from plainledger.core.types import (
    SourceLocation as SourceLocation,
)
from plainledger.core.types import (
    UtcDatetime as UtcDatetime,
)
