import pytest

from lsg_trends.errors import NavigationError
from lsg_trends.models import LocalBody
from lsg_trends.navigation import DISTRICT, LOCAL_BODY, OVERVIEW, Navigator

REGISTRY = {"G01001": LocalBody("G01001", "Vellanad", "Grama Panchayat", "Thiruvananthapuram", 3)}


def test_starts_at_overview():
    nav = Navigator()
    assert nav.state == OVERVIEW
    assert nav.district is None


def test_drill_down_and_back():
    nav = Navigator()
    nav.select_district("Thiruvananthapuram", code="G01001")
    assert (nav.state, nav.district, nav.code) == (DISTRICT, "Thiruvananthapuram", "G01001")

    assert nav.select_local_body("G01001", REGISTRY)
    assert nav.state == LOCAL_BODY
    assert nav.local_body.name == "Vellanad"

    nav.back()
    assert nav.state == DISTRICT
    assert nav.local_body is None
    assert nav.district == "Thiruvananthapuram"

    nav.back()
    assert nav.state == OVERVIEW
    assert nav.district is None


def test_unknown_local_body_keeps_district_view():
    nav = Navigator()
    nav.select_district("Kollam")
    assert not nav.select_local_body("X00000", REGISTRY)
    assert nav.state == DISTRICT
    assert nav.local_body is None


def test_home_from_anywhere():
    nav = Navigator()
    nav.select_district("Thiruvananthapuram")
    nav.select_local_body("G01001", REGISTRY)
    nav.home()
    assert nav.state == OVERVIEW
    assert nav.local_body is None
    nav.home()
    assert nav.state == OVERVIEW


def test_illegal_transitions():
    nav = Navigator()
    with pytest.raises(NavigationError):
        nav.back()
    with pytest.raises(NavigationError):
        nav.select_local_body("G01001", REGISTRY)
    nav.select_district("Thiruvananthapuram")
    with pytest.raises(NavigationError):
        nav.select_district("Kollam")
    nav.select_local_body("G01001", REGISTRY)
    with pytest.raises(NavigationError):
        nav.select_local_body("G01001", REGISTRY)
