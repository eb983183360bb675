import zipfile
import io

import pytest

from import_engine.errors import FormatError
from import_engine.gdtf import (
    WHEEL_MEDIA_CANDIDATES, GdtfPackageParser, parse_offsets, resolve_resource,
)
from tests.factories import PNG_BYTES, build_gdtf, gdtf_with


@pytest.fixture
def definition():
    return GdtfPackageParser().parse(build_gdtf())


def test_identity_attributes(definition):
    assert definition.fixture_type_id == "ABCD-1234"
    assert definition.name == "Spot 575"
    assert definition.short_name == "S575"
    assert definition.long_name == "Spot 575 Pro"
    assert definition.manufacturer == "Acme"
    assert definition.description == "Test spot"
    assert definition.thumbnail == "thumb"
    assert "<FixtureType" in definition.raw_xml


def test_physical_properties(definition):
    assert definition.wattage == 575
    assert definition.weight == 22.5


def test_mode_footprint_and_channel_map(definition):
    standard = definition.dmx_modes[0]
    assert standard.name == "Standard"
    assert standard.description == "Basic"
    assert standard.channel_count == 3
    assert standard.footprint == 4
    assert [(c.dmx_address, c.attribute, c.resolution) for c in standard.channels] == [
        (2, "Dimmer", ""),
        (3, "Pan", "Coarse"),
        (4, "Pan", "Fine"),
    ]


def test_sparse_offsets_mode(definition):
    sparse = definition.dmx_modes[1]
    assert sparse.footprint == 8
    assert [(c.dmx_address, c.resolution) for c in sparse.channels] == [
        (4, "Coarse"),
        (8, "Fine"),
    ]


def test_mode_without_offsets_uses_channel_count(definition):
    virtual = definition.dmx_modes[2]
    assert virtual.channel_count == 2
    assert virtual.footprint == 2
    assert virtual.channels == []


def test_wheels(definition):
    assert [w.name for w in definition.wheels] == ["Gobo1"]
    open_slot, dots, missing = definition.wheels[0].slots
    assert open_slot.image_data is None
    assert dots.color == "0.3,0.3,100"
    assert dots.image_data.startswith("data:image/png;base64,")
    assert missing.media_file_name == "nope"
    assert missing.image_data is None


def test_thumbnail(definition):
    assert definition.thumbnail_data == PNG_BYTES


def test_svg_thumbnail_and_missing_media():
    svg = b"<svg xmlns='http://www.w3.org/2000/svg'/>"
    parsed = GdtfPackageParser().parse(build_gdtf(files={"thumb.svg": svg}))
    assert parsed.thumbnail_data == svg
    assert parsed.wheels[0].slots[1].image_data is None


def test_missing_thumbnail_is_not_fatal():
    parsed = GdtfPackageParser().parse(build_gdtf(files={}))
    assert parsed.thumbnail_data is None


def test_operating_temperature_power_fallback():
    pkg = gdtf_with('Name="X"', '<OperatingTemperature PowerConsumption="300"/>')
    assert GdtfPackageParser().parse(pkg).wattage == 300


def test_missing_physical_data_defaults_to_zero():
    parsed = GdtfPackageParser().parse(gdtf_with('Name="X"'))
    assert parsed.wattage == 0
    assert parsed.weight == 0
    assert parsed.fixture_type_id == ""
    assert parsed.dmx_modes == []
    assert parsed.wheels == []


def test_missing_description_is_format_error():
    with pytest.raises(FormatError, match="description.xml"):
        GdtfPackageParser().parse(build_gdtf(description=None))


def test_not_a_zip():
    with pytest.raises(FormatError):
        GdtfPackageParser().parse(b"definitely not a zip")


def test_malformed_description():
    with pytest.raises(FormatError):
        GdtfPackageParser().parse(build_gdtf(description="<GDTF><FixtureType>", files={}))


def test_missing_fixture_type():
    with pytest.raises(FormatError):
        GdtfPackageParser().parse(build_gdtf(description="<GDTF/>", files={}))


def test_candidate_paths_tried_in_order():
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("wheels/g", b"bare")
        zf.writestr("wheels/g.png", b"png")
        zf.writestr("h.svg", b"svg")
    with zipfile.ZipFile(buf) as zf:
        assert resolve_resource(zf, "g", WHEEL_MEDIA_CANDIDATES) == ("wheels/g", b"bare")
        assert resolve_resource(zf, "h", WHEEL_MEDIA_CANDIDATES) == ("h.svg", b"svg")
        assert resolve_resource(zf, "nothing", WHEEL_MEDIA_CANDIDATES) is None


def test_parse_offsets():
    assert parse_offsets("3,7") == [3, 7]
    assert parse_offsets(" 1 ") == [1]
    assert parse_offsets("None") == []
    assert parse_offsets(None) == []
