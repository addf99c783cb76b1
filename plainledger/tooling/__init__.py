"""plainledger.tooling — commands, embedded self-tests and the transaction generator."""

from plainledger.tooling.commands import Command as Command
from plainledger.tooling.commands import FormatCommand as FormatCommand
from plainledger.tooling.commands import RegisterCommand as RegisterCommand
from plainledger.tooling.commands import StatsCommand as StatsCommand
from plainledger.tooling.commands import execute as execute
from plainledger.tooling.commands import parse_command as parse_command
from plainledger.tooling.commands import run as run
from plainledger.tooling.commands import run_configured as run_configured
from plainledger.tooling.generator import Rule as Rule
from plainledger.tooling.generator import generate as generate
from plainledger.tooling.generator import parse_rules as parse_rules
from plainledger.tooling.selftest import TestOutcome as TestOutcome
from plainledger.tooling.selftest import run_tests as run_tests
