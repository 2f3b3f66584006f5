import pytest

from binlog_timeline.core.errors import GtidParseError, GtidSubtractError
from binlog_timeline.core.gtid import GtidSet, extract_gtid_suffix, gtid_subtract, subtract_intervals

UUID_A = "3e11fa47-71ca-11e1-9e33-c80aa9429562"
UUID_B = "4c9e3dfc-9d25-11e9-8d2e-0242ac1cfd7e"


def test_parse_empty():
    assert not GtidSet.parse("")
    assert not GtidSet.parse("  \n")
    assert not GtidSet.parse(None)
    assert str(GtidSet.parse("")) == ""


def test_parse_merges_and_sorts():
    gtids = GtidSet.parse(f"{UUID_B}:1-5,{UUID_A}:7:1-3:4-6")
    assert str(gtids) == f"{UUID_A}:1-7,{UUID_B}:1-5"


def test_parse_gtid_executed_with_newlines():
    gtids = GtidSet.parse(f"{UUID_A}:1-10,\n{UUID_B}:1-2")
    assert str(gtids) == f"{UUID_A}:1-10,{UUID_B}:1-2"


def test_parse_exclusive_end():
    assert str(GtidSet.parse(f"{UUID_A}:1-101:200-201", exclusive_end=True)) == f"{UUID_A}:1-100:200"


@pytest.mark.parametrize("text", ["abc", f"{UUID_A}:", f"{UUID_A}:x-3", f"{UUID_A}:5-1", f"{UUID_A}:0", f"{UUID_A}:1,,"])
def test_parse_errors(text):
    with pytest.raises(GtidParseError):
        GtidSet.parse(text)


def test_subtract_intervals():
    assert subtract_intervals([(1, 25)], [(1, 10)]) == [(11, 25)]
    assert subtract_intervals([(1, 100)], [(10, 20), (30, 40)]) == [(1, 9), (21, 29), (41, 100)]
    assert subtract_intervals([(1, 5), (10, 15)], [(3, 12)]) == [(1, 2), (13, 15)]
    assert subtract_intervals([(1, 5)], [(1, 5)]) == []
    assert subtract_intervals([(1, 5)], []) == [(1, 5)]


def test_subtract_single_source():
    assert gtid_subtract("s1:1-80", "s1:1-50") == "s1:51-80"
    assert gtid_subtract("s1:1-10", "") == "s1:1-10"
    assert gtid_subtract("", "s1:1-10") == ""


def test_subtract_multi_source():
    minuend = f"{UUID_A}:1-100,{UUID_B}:1-20"
    subtrahend = f"{UUID_A}:1-90,{UUID_B}:1-5"
    assert gtid_subtract(minuend, subtrahend) == f"{UUID_A}:91-100,{UUID_B}:6-20"


def test_subtract_non_gtid_set():
    with pytest.raises(GtidSubtractError):
        GtidSet.parse("s1:1-3") - "s1:1"


@pytest.mark.parametrize(
    "superset,subset",
    [
        ("s1:1-80", "s1:1-50"),
        (f"{UUID_A}:1-100:200-300,{UUID_B}:1-20", f"{UUID_A}:50-60:250,{UUID_B}:20"),
        (f"{UUID_A}:1-10", ""),
    ],
)
def test_recombination(superset, subset):
    big = GtidSet.parse(superset)
    small = GtidSet.parse(subset)
    delta = GtidSet.parse(str(big - small))
    assert delta + small == big


def test_extract_suffix():
    assert extract_gtid_suffix("uuid:51-80") == "51-80"
    assert extract_gtid_suffix("a:1-5,b:1-2") == "a:1-5,b:1-2"
    assert extract_gtid_suffix("a:1-5:7-9") == "a:1-5:7-9"
    assert extract_gtid_suffix("") == ""
