"""
import_engine.layer_xml - Fixture-layer XML export (grandMA2 style).

    <Layer name="FOH Truss">
      <Fixture name="Spot 1" channel_id="101">
        <FixtureType name="Mac Viper"/>
        <SubFixture><Patch><Address>1.001</Address></Patch></SubFixture>
      </Fixture>
    </Layer>

Elements are matched by local name so namespaced exports work too.
No multi-part logic: every fixture is part 1.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Optional

from import_engine.errors import FormatError
from import_engine.row_processor import build_instrument
from import_engine.text_reader import decode
from patch.records import ParseResult

logger = logging.getLogger(__name__)

DEFAULT_LAYER = "Unknown Layer"


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _descendants(elem: ET.Element, name: str):
    return [e for e in elem.iter() if e is not elem and _local(e.tag) == name]


def _first(elem: ET.Element, name: str) -> Optional[ET.Element]:
    found = _descendants(elem, name)
    return found[0] if found else None


def _attr(elem: ET.Element, name: str) -> str:
    """Attribute lookup that ignores the case of the attribute name."""
    for key, val in elem.attrib.items():
        if _local(key).lower() == name.lower():
            return (val or "").strip()
    return ""


class LayerXmlAdapter:
    format_id = "xml"
    label = "MA2 XML (.xml)"

    def parse(self, raw: str | bytes, **_options) -> ParseResult:
        try:
            root = ET.fromstring(decode(raw).strip())
        except ET.ParseError as exc:
            raise FormatError(f"Malformed XML: {exc}") from exc

        layers = [root] if _local(root.tag) == "Layer" else _descendants(root, "Layer")

        result = ParseResult()
        for layer in layers:
            layer_name = _attr(layer, "name") or DEFAULT_LAYER
            for fixture in _descendants(layer, "Fixture"):
                inst = self._fixture(fixture, layer_name)
                if inst is not None:
                    result.instruments.append(inst)

        if not result.instruments:
            raise FormatError("No fixtures found in XML")

        logger.info("Layer XML: %d fixtures from %d layers",
                    len(result.instruments), len(layers))
        return result

    @staticmethod
    def _fixture(fixture: ET.Element, layer_name: str):
        channel_id = _attr(fixture, "channel_id")
        if not channel_id:
            return None

        type_node = _first(fixture, "FixtureType")
        address = ""
        sub = _first(fixture, "SubFixture")
        if sub is not None:
            patch_node = _first(sub, "Patch")
            if patch_node is not None:
                addr_node = _first(patch_node, "Address")
                if addr_node is not None and addr_node.text:
                    address = addr_node.text

        inst = build_instrument({
            "channel": channel_id,
            "address": address,
            "type": _attr(type_node, "name") if type_node is not None else "",
            "purpose": _attr(fixture, "name"),
            "position": layer_name,
        })
        inst.part = 1
        return inst
