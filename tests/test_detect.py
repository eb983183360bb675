from patch.detect import find_duplicates, find_overlaps, universe_map


def _inst(id, address, footprint=None, **extra):
    d = {"id": id, "channel": str(id), "part": 1, "address": address}
    if footprint is not None:
        d["dmx_footprint"] = footprint
    d.update(extra)
    return d


def test_overlap_within_same_universe():
    a = _inst(1, "1:10", 4)
    b = _inst(2, "1:12", 1)
    assert find_overlaps(a, [a, b]) == [b]
    assert find_overlaps(b, [a, b]) == [a]


def test_no_overlap_across_universes():
    a = _inst(1, "1:10", 4)
    c = _inst(3, "2:12", 1)
    assert find_overlaps(a, [a, c]) == []


def test_adjacent_ranges_do_not_overlap():
    a = _inst(1, "1:10", 4)          # 10..13
    b = _inst(2, "1:14", 2)
    assert find_overlaps(a, [a, b]) == []


def test_absolute_and_universe_forms_compare():
    a = _inst(1, "522")              # universe 2, slot 10
    b = _inst(2, "2/10")
    assert find_overlaps(a, [a, b]) == [b]


def test_unpatched_never_compared():
    a = _inst(1, "0")
    b = _inst(2, "0:0")
    c = _inst(3, "")
    assert find_overlaps(a, [a, b, c]) == []
    d = _inst(4, "1:1")
    assert find_overlaps(d, [a, b, c, d]) == []


def test_footprint_defaults_to_one():
    a = _inst(1, "1:5")
    b = _inst(2, "1:6")
    assert find_overlaps(a, [a, b]) == []


def test_duplicates_ignore_identity_and_key_order():
    first = {"id": 1, "channel": "5", "part": 1, "color": "R02"}
    second = {"color": "R02", "part": 1, "channel": "5", "id": 2}
    other = {"id": 3, "channel": "5", "part": 2, "color": "R02"}
    assert find_duplicates([first, second, other]) == [2]


def test_duplicates_compare_custom_fields():
    a = {"id": 1, "channel": "1", "custom_fields": {"A": "x", "B": "y"}}
    b = {"id": 2, "channel": "1", "custom_fields": {"B": "y", "A": "x"}}
    c = {"id": 3, "channel": "1", "custom_fields": {"A": "z"}}
    assert find_duplicates([a, b, c]) == [2]


def test_universe_map_marks_overlaps():
    a = _inst(1, "1:1", 3)
    b = _inst(2, "1:3", 2)
    c = _inst(3, "2:1", 1)
    slots = universe_map([a, b, c], 1)
    assert sorted(slots) == [1, 2, 3, 4]
    assert slots[1] == {"instruments": [1], "type": "start", "overlap": False}
    assert slots[2]["type"] == "footprint"
    assert slots[3]["overlap"] is True
    assert slots[3]["instruments"] == [1, 2]
    assert slots[4]["overlap"] is False


def test_universe_map_clips_at_512():
    slots = universe_map([_inst(1, "1:511", 4)], 1)
    assert sorted(slots) == [511, 512]
