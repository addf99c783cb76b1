"""plainledger.infra — configuration and logging setup.

The file loader lives in plainledger.infra.loader; it depends on the ledger
package, which itself logs through this package, so it is not re-exported here.
"""

from plainledger.infra.config import LedgerConfig as LedgerConfig
from plainledger.infra.logging_setup import configure_logging as configure_logging
from plainledger.infra.logging_setup import get_logger as get_logger
