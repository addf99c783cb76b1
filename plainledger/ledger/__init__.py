"""plainledger.ledger — account tree, transactions, prices, the Ledger context and resolver."""

from plainledger.ledger.accounts import Account as Account
from plainledger.ledger.accounts import AccountRegistry as AccountRegistry
from plainledger.ledger.engine import UNBALANCED_ACCOUNT as UNBALANCED_ACCOUNT
from plainledger.ledger.engine import FileState as FileState
from plainledger.ledger.engine import Ledger as Ledger
from plainledger.ledger.prices import PriceIndex as PriceIndex
from plainledger.ledger.resolver import ResolveSummary as ResolveSummary
from plainledger.ledger.resolver import resolve_items as resolve_items
from plainledger.ledger.transactions import Posting as Posting
from plainledger.ledger.transactions import Price as Price
from plainledger.ledger.transactions import TestItem as TestItem
from plainledger.ledger.transactions import Transaction as Transaction
