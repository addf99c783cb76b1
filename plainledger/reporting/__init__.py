"""plainledger.reporting — registers, rollups, diagnostics and their text rendering."""

from plainledger.reporting.aggregate import ALL_TIME as ALL_TIME
from plainledger.reporting.aggregate import DateWindow as DateWindow
from plainledger.reporting.aggregate import Rollup as Rollup
from plainledger.reporting.aggregate import RowKind as RowKind
from plainledger.reporting.aggregate import bucketed_register as bucketed_register
from plainledger.reporting.aggregate import flat_register as flat_register
from plainledger.reporting.aggregate import recursive_postings as recursive_postings
from plainledger.reporting.aggregate import rollup as rollup
from plainledger.reporting.diagnostics import LedgerStats as LedgerStats
from plainledger.reporting.diagnostics import assertion_mismatches as assertion_mismatches
from plainledger.reporting.diagnostics import find_duplicates as find_duplicates
from plainledger.reporting.diagnostics import stats as stats
from plainledger.reporting.diagnostics import unbalanced_transactions as unbalanced_transactions
from plainledger.reporting.register import render_bucketed as render_bucketed
from plainledger.reporting.register import render_flat as render_flat
from plainledger.reporting.register import render_recursive as render_recursive
from plainledger.reporting.register import render_rollup as render_rollup
from plainledger.reporting.register import shorten_account_name as shorten_account_name
