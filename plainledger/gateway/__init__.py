"""plainledger.gateway — ledger text in and out: parser, raw items, formatter."""

from plainledger.gateway.formatter import render_price as render_price
from plainledger.gateway.formatter import render_transaction as render_transaction
from plainledger.gateway.formatter import render_transactions as render_transactions
from plainledger.gateway.parser import iter_items as iter_items
from plainledger.gateway.parser import parse_items as parse_items
from plainledger.gateway.types import AccountDecl as AccountDecl
from plainledger.gateway.types import CommodityDecl as CommodityDecl
from plainledger.gateway.types import Item as Item
from plainledger.gateway.types import PriceDecl as PriceDecl
from plainledger.gateway.types import RawPosting as RawPosting
from plainledger.gateway.types import RawTransaction as RawTransaction
from plainledger.gateway.types import TestBlock as TestBlock
