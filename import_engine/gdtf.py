"""
import_engine.gdtf - GDTF fixture package reader.

A .gdtf file is a ZIP archive:

    description.xml        required; <GDTF><FixtureType …> … </GDTF>
    wheels/<media>.png     optional gobo / colour wheel artwork
    <thumbnail>.png|.svg   optional

The result is one FixtureTypeDefinition for the fixture library.  Only
a missing/unreadable description is fatal; missing artwork is logged
and left empty.
"""

from __future__ import annotations

import base64
import io
import logging
import xml.etree.ElementTree as ET
import zipfile
from typing import Callable, Optional

from import_engine.errors import FormatError
from patch.records import (
    DmxMode,
    FixtureTypeDefinition,
    ModeChannel,
    Wheel,
    WheelSlot,
)

logger = logging.getLogger(__name__)

DESCRIPTION = "description.xml"

# Candidate in-archive paths for a wheel slot's MediaFileName, in order
WHEEL_MEDIA_CANDIDATES: list[Callable[[str], str]] = [
    lambda name: f"wheels/{name}",
    lambda name: f"wheels/{name}.png",
    lambda name: f"wheels/{name}.svg",
    lambda name: name,
    lambda name: f"{name}.png",
    lambda name: f"{name}.svg",
]

THUMBNAIL_CANDIDATES: list[Callable[[str], str]] = [
    lambda name: f"{name}.png",
    lambda name: f"{name}.svg",
]


def resolve_resource(
    archive: zipfile.ZipFile,
    name: str,
    candidates: list[Callable[[str], str]],
) -> Optional[tuple[str, bytes]]:
    """Return (path, bytes) for the first candidate path present in the archive."""
    names = set(archive.namelist())
    for make_path in candidates:
        path = make_path(name)
        if path in names:
            return path, archive.read(path)
    return None


def data_uri(path: str, payload: bytes) -> str:
    kind = "svg+xml" if path.lower().endswith(".svg") else "png"
    return f"data:image/{kind};base64,{base64.b64encode(payload).decode('ascii')}"


def _number(value: Optional[str]) -> float:
    try:
        return float(value) if value else 0.0
    except ValueError:
        return 0.0


def parse_offsets(value: Optional[str]) -> list[int]:
    """'3,7' → [3, 7].  'None' or junk entries are ignored."""
    offsets = []
    for piece in (value or "").split(","):
        piece = piece.strip()
        if piece.lstrip("-").isdigit():
            offsets.append(int(piece))
    return offsets


class GdtfPackageParser:
    format_id = "gdtf"
    label = "GDTF Fixture (.gdtf)"

    def parse(self, raw: bytes | io.IOBase) -> FixtureTypeDefinition:
        source = io.BytesIO(raw) if isinstance(raw, (bytes, bytearray)) else raw
        try:
            archive = zipfile.ZipFile(source)
        except zipfile.BadZipFile as exc:
            raise FormatError(f"Not a GDTF package (bad ZIP): {exc}") from exc

        with archive:
            if DESCRIPTION not in archive.namelist():
                raise FormatError(f"Invalid GDTF file: missing {DESCRIPTION}")

            xml_bytes = archive.read(DESCRIPTION)
            try:
                root = ET.fromstring(xml_bytes)
            except ET.ParseError as exc:
                raise FormatError(f"Failed to parse GDTF XML: {exc}") from exc

            fixture_type = root if root.tag == "FixtureType" else root.find(".//FixtureType")
            if fixture_type is None:
                raise FormatError("Invalid GDTF file: missing FixtureType node")

            definition = self._identity(fixture_type)
            definition.raw_xml = xml_bytes.decode("utf-8", errors="replace")
            definition.wattage, definition.weight = self._physical(root)
            definition.dmx_modes = [self._mode(m) for m in root.iterfind(".//DMXModes/DMXMode")]
            definition.wheels = self._wheels(root, archive)

            if definition.thumbnail:
                hit = resolve_resource(archive, definition.thumbnail, THUMBNAIL_CANDIDATES)
                if hit is None:
                    logger.warning("GDTF %s: thumbnail %r not found",
                                   definition.name, definition.thumbnail)
                else:
                    definition.thumbnail_data = hit[1]

        logger.info("GDTF %s / %s: %d modes, %d wheels",
                    definition.manufacturer, definition.name,
                    len(definition.dmx_modes), len(definition.wheels))
        return definition

    # ── Sections ───────────────────────────────────────────────────────

    @staticmethod
    def _identity(fixture_type: ET.Element) -> FixtureTypeDefinition:
        get = fixture_type.get
        return FixtureTypeDefinition(
            fixture_type_id=get("FixtureTypeID", ""),
            name=get("Name", ""),
            short_name=get("ShortName", ""),
            long_name=get("LongName", ""),
            manufacturer=get("Manufacturer", ""),
            description=get("Description", ""),
            thumbnail=get("Thumbnail", ""),
        )

    @staticmethod
    def _physical(root: ET.Element) -> tuple[float, float]:
        wattage = weight = 0.0
        props = root.find(".//PhysicalDescriptions/Properties")
        if props is not None:
            power = props.find(".//PowerConsumption")
            if power is not None:
                wattage = _number(power.get("Value"))
            mass = props.find(".//Weight")
            if mass is not None:
                weight = _number(mass.get("Value"))

        if not wattage:
            temp = root.find(".//OperatingTemperature")
            if temp is not None:
                wattage = _number(temp.get("PowerConsumption"))
        return wattage, weight

    @staticmethod
    def _mode(mode: ET.Element) -> DmxMode:
        channels = list(mode.iter("DMXChannel"))
        footprint = 0
        rows: list[ModeChannel] = []

        for channel in channels:
            offsets = parse_offsets(channel.get("Offset"))
            if not offsets:
                continue
            geometry = channel.get("Geometry", "")

            attribute = ""
            logical = channel.find(".//LogicalChannel")
            if logical is not None:
                attribute = logical.get("Attribute", "")
            if not attribute:
                func = channel.find(".//ChannelFunction")
                if func is not None:
                    attribute = func.get("Attribute") or func.get("Name") or ""

            footprint = max(footprint, max(offsets) + 1)
            label = attribute or geometry or f"Channel {min(offsets) + 1}"
            for idx, off in enumerate(offsets):
                resolution = ""
                if len(offsets) > 1:
                    resolution = "Coarse" if idx == 0 else "Fine"
                rows.append(ModeChannel(
                    dmx_address=off + 1,
                    attribute=label,
                    resolution=resolution,
                    geometry=geometry,
                ))

        rows.sort(key=lambda r: r.dmx_address)
        return DmxMode(
            name=mode.get("Name") or "Default",
            description=mode.get("Description", ""),
            channel_count=len(channels),
            footprint=footprint or len(channels),
            channels=rows,
        )

    @staticmethod
    def _wheels(root: ET.Element, archive: zipfile.ZipFile) -> list[Wheel]:
        wheels = []
        for wheel_el in root.iterfind(".//Wheels/Wheel"):
            wheel = Wheel(name=wheel_el.get("Name") or "Unknown Wheel")
            for slot_el in wheel_el.iter("Slot"):
                slot = WheelSlot(
                    name=slot_el.get("Name", ""),
                    color=slot_el.get("Color", ""),
                    media_file_name=slot_el.get("MediaFileName", ""),
                )
                if slot.media_file_name:
                    hit = resolve_resource(archive, slot.media_file_name, WHEEL_MEDIA_CANDIDATES)
                    if hit is None:
                        logger.debug("wheel %s: media %r not in package",
                                     wheel.name, slot.media_file_name)
                    else:
                        slot.image_data = data_uri(*hit)
                wheel.slots.append(slot)

            if wheel.slots:
                wheels.append(wheel)
        return wheels
