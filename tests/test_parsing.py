import pytest

from breathpacer.errors import InstructionParseError
from breathpacer.utils.models import Instruction, Regime
from breathpacer.utils.parsing import parse_instructions_csv, parse_regimes_csv


def test_parse_regimes_happy_path(regimes_csv_data):
    regimes = parse_regimes_csv(regimes_csv_data)
    assert regimes == [
        Regime(duration_ms=12000, breaths_per_minute=10, randomize=False),
        Regime(duration_ms=12000, breaths_per_minute=10, randomize=True),
        Regime(duration_ms=12000, breaths_per_minute=10, hold_pos="postInhale", randomize=False),
        Regime(duration_ms=12000, breaths_per_minute=10, hold_pos="postExhale", randomize=True),
    ]

def test_parse_regimes_tolerates_spaces_case_and_blank_lines():
    regimes = parse_regimes_csv("\n 30000, 6, postExhale, TRUE \n\n15000,12,,False\n")
    assert regimes == [
        Regime(duration_ms=30000, breaths_per_minute=6, hold_pos="postExhale", randomize=True),
        Regime(duration_ms=15000, breaths_per_minute=12),
    ]

def test_parse_regimes_leaves_range_checks_to_the_compiler():
    """Out-of-range values parse; the compiler is the one to reject them."""
    regimes = parse_regimes_csv("5000,90,,false")
    assert regimes[0].duration_ms == 5000
    assert regimes[0].breaths_per_minute == 90

@pytest.mark.parametrize(
    "text, message",
    [
        ("12000,10,false", "does not contain exactly 3 commas"),
        ("12000,10,,false,extra", "does not contain exactly 3 commas"),
        ("abc,10,,false", 'failed to parse nonnegative numeric duration from "abc"'),
        ("-5,10,,false", 'failed to parse nonnegative numeric duration from "-5"'),
        ("inf,10,,false", 'failed to parse nonnegative numeric duration from "inf"'),
        ("12000,ten,,false", 'failed to parse integer breaths per minute from "ten"'),
        ("12000,inf,,false", 'failed to parse integer breaths per minute from "inf"'),
        ("12000,10,midBreath,false", 'hold position "midBreath"'),
        ("12000,10,,maybe", 'randomize flag "maybe"'),
        ("", "No lines to parse."),
    ],
)
def test_parse_regimes_reports_bad_lines(text, message):
    with pytest.raises(InstructionParseError) as exc_info:
        parse_regimes_csv(text)
    assert message in str(exc_info.value)

def test_parse_instructions_happy_path(instructions_csv_data):
    assert parse_instructions_csv(instructions_csv_data) == [
        Instruction(duration=4000, breathe="in"),
        Instruction(duration=2000, breathe="hold"),
        Instruction(duration=6000, breathe="out"),
    ]

@pytest.mark.parametrize(
    "text, message",
    [
        ("4000,in,extra", 'line "4000,in,extra" does not contain exactly 1 comma'),
        ("4000", "does not contain exactly 1 comma"),
        ("4.5s,in", 'failed to parse nonnegative numeric duration from "4.5s"'),
        ("inf,in", 'failed to parse nonnegative numeric duration from "inf"'),
        ("4000,sigh", 'breathe instruction "sigh" must be "in", "out", or "hold"'),
    ],
)
def test_parse_instructions_reports_bad_lines(text, message):
    with pytest.raises(InstructionParseError) as exc_info:
        parse_instructions_csv(text)
    assert message in str(exc_info.value)
