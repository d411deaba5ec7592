"""Tests for impact reports and deletes with payload cleanup."""

import pytest

from conftest import payload_of
from trackplan.catalog import library
from trackplan.catalog.impact import delete_property, delete_suggested_value, property_impact, suggested_value_impact
from trackplan.catalog.payloads import _prefilter_safe
from trackplan.errors import CatalogNotFoundError
from trackplan.models.tables import CommonProperty, EventHistory, Property, PropertyValue, SuggestedValue


def _prop(session, name):
    return session.query(Property).filter_by(name=name).one()


def _value(session, text):
    return session.query(SuggestedValue).filter_by(value=text).one()


class TestPropertyImpact:

    def test_lists_events_using_key(self, session, page, make_event):
        e1 = make_event("Signup", plan="pro")
        make_event("Logout", other="plan")
        report = property_impact(session, _prop(session, "plan").id)

        assert report.count == 1
        hit = report.events[0]
        assert (hit.id, hit.name, hit.page, hit.page_id, hit.current_value) == (e1.id, "Signup", "Home", page.id, "pro")
        assert report.to_dict()["count"] == 1

    def test_unknown_property(self, session):
        with pytest.raises(CatalogNotFoundError):
            property_impact(session, 404)

    def test_is_read_only(self, session, make_event):
        ev = make_event("Signup", plan="pro")
        property_impact(session, _prop(session, "plan").id)
        assert payload_of(ev) == {"plan": "pro"}
        assert session.query(EventHistory).count() == 0


class TestSuggestedValueImpact:

    def test_exact_and_embedded(self, session, make_event):
        e1 = make_event("View", page="Homepage")
        e2 = make_event("Click", label="Back to Homepage", page="About")
        make_event("Other", page="homepage")

        report = suggested_value_impact(session, _value(session, "Homepage").id)

        assert [e.id for e in report.events] == [e1.id, e2.id]
        assert report.events[0].current_value == {"page": "Homepage"}
        assert report.events[1].current_value == {"label": "Back to Homepage"}


class TestDeleteProperty:

    def test_strips_key_and_deletes_row(self, session, make_event):
        e1 = make_event("Signup", a=1, plan="pro", z=2)
        e2 = make_event("Logout", other="x")
        prop = _prop(session, "plan")
        prop_id = prop.id

        result = delete_property(session, prop_id, author="dave")

        assert result.affected_events == 1
        assert list(payload_of(e1)) == ["a", "z"]
        assert payload_of(e2) == {"other": "x"}
        assert session.get(Property, prop_id) is None
        assert session.query(PropertyValue).filter_by(property_id=prop_id).count() == 0
        assert session.query(EventHistory).filter_by(event_id=e1.id, author="dave").count() == 1

    def test_missing(self, session):
        with pytest.raises(CatalogNotFoundError):
            delete_property(session, 404, author="dave")


class TestDeleteSuggestedValue:

    def test_removes_value_everywhere(self, session, make_event):
        e1 = make_event("View", page="Homepage", ref="x")
        e2 = make_event("Click", label="Back to Homepage")
        e3 = make_event("Other", page="About")
        sv_id = _value(session, "Homepage").id

        result = delete_suggested_value(session, sv_id, author="dave")

        assert result.affected_events == 2
        assert payload_of(e1) == {"ref": "x"}
        assert payload_of(e2) == {"label": "Back to "}
        assert payload_of(e3) == {"page": "About"}
        assert session.get(SuggestedValue, sv_id) is None
        assert session.query(PropertyValue).filter_by(suggested_value_id=sv_id).count() == 0


class TestNumericValues:
    """Large integral floats are stored as 1e+16 but catalogued as 10000000000000000."""

    def test_impact_finds_exponent_spelling(self, session, make_event):
        ev = make_event("Buy", amount=1e16)
        assert '1e+16' in ev.properties
        report = suggested_value_impact(session, _value(session, "10000000000000000").id)
        assert [e.id for e in report.events] == [ev.id]

    def test_delete_removes_exponent_spelling(self, session, make_event):
        ev = make_event("Buy", amount=1e16, sku="a1")
        result = delete_suggested_value(session, _value(session, "10000000000000000").id, author="dave")
        assert result.affected_events == 1
        assert payload_of(ev) == {"sku": "a1"}


def test_numeric_needles_skip_sql_prefilter():
    assert _prefilter_safe("homepage")
    assert _prefilter_safe("true")
    assert not _prefilter_safe("10000000000000000")
    assert not _prefilter_safe("2.5")
    assert not _prefilter_safe("-3")
    assert not _prefilter_safe('say "hi"')
    assert not _prefilter_safe("")


class TestDefaultsFollowDeletes:
    """A CommonProperty row goes away with either side of its pairing."""

    def _default(self, session, product, make_event):
        make_event("View", platform="web")
        return library.create_common_property(
            session, product.id, _prop(session, "platform").id, _value(session, "web").id
        )

    def test_delete_property(self, session, product, make_event):
        self._default(session, product, make_event)
        delete_property(session, _prop(session, "platform").id, author="dave")
        assert session.query(CommonProperty).count() == 0

    def test_delete_suggested_value(self, session, product, make_event):
        self._default(session, product, make_event)
        delete_suggested_value(session, _value(session, "web").id, author="dave")
        assert session.query(CommonProperty).count() == 0
        assert session.query(Property).filter_by(name="platform").count() == 1
