import pytest

from import_engine.errors import FormatError
from import_engine.tab_delimited import TabDelimitedAdapter
from tests.factories import TAB_TXT


def test_custom_column_scenario():
    result = TabDelimitedAdapter().parse(TAB_TXT)
    assert len(result.instruments) == 1
    inst = result.instruments[0]
    assert inst.channel == "12"
    assert inst.part == 1
    assert inst.address == "1:5"
    assert inst.custom_fields == {"MyCustomCol": "foo"}
    assert result.side_effects.custom_field_names == ["MyCustomCol"]


def test_aliases_and_parenthesised_channel():
    text = "Channel\tLoad\tUse\tUnit#\tTemplate\tCircuit#\n(5)\t750\tSpecial\t3\tBreakup\tA12\n"
    inst = TabDelimitedAdapter().parse(text).instruments[0]
    assert inst.channel == "5"
    assert inst.watt == "750"
    assert inst.purpose == "Special"
    assert inst.unit == "3"
    assert inst.gobo == "Breakup"
    assert inst.text4 == "A12"
    assert inst.custom_fields == {}


def test_header_match_is_case_sensitive():
    text = "Channel\tdimmer\n1\t5\n"
    result = TabDelimitedAdapter().parse(text)
    inst = result.instruments[0]
    assert inst.address is None
    assert inst.custom_fields == {"dimmer": "5"}


def test_allow_list_drops_unselected_fields():
    text = "Channel\tDimmer\tColor\tExtra\n1\t5\tR02\tx\n"
    result = TabDelimitedAdapter().parse(text, selected_fields=["Dimmer"])
    inst = result.instruments[0]
    assert inst.channel == "1"
    assert inst.address == "5"
    assert inst.color is None
    assert inst.custom_fields == {}
    assert result.side_effects.custom_field_names == []


def test_part_counter_and_blank_cells():
    text = "Channel\tDimmer\tPosition\n1\t\tFOH\n1\t2\t\n\n2\t3\tLX1\n"
    insts = TabDelimitedAdapter().parse(text).instruments
    assert [(i.channel, i.part) for i in insts] == [("1", 1), ("1", 2), ("2", 1)]
    assert insts[0].address is None
    assert insts[1].position is None


def test_footprint_column():
    text = "Channel\tFootprint\n1\t16\n2\tabc\n"
    insts = TabDelimitedAdapter().parse(text).instruments
    assert insts[0].dmx_footprint == 16
    assert insts[1].dmx_footprint is None


def test_too_short():
    with pytest.raises(FormatError):
        TabDelimitedAdapter().parse("Channel\tDimmer\n")


def test_missing_channel_header():
    with pytest.raises(FormatError):
        TabDelimitedAdapter().parse("Dimmer\tColor\n1\tR02\n")


def test_wattage_text_is_kept():
    text = "Channel\tWattage\n1\tLED\n2\t1000w\n"
    insts = TabDelimitedAdapter().parse(text).instruments
    assert insts[0].watt == "LED"
    assert insts[1].watt == "1000"
