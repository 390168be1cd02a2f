"""Tests for rtm_deck.core.base_widget."""

import json

import pytest
import requests

from rtm_deck.core.base_widget import (
    CAUTION_CLASS,
    CRITICAL_CLASS,
    BaseWidget,
    TimerScheduler,
    WidgetElement,
)
from rtm_deck.core.exceptions import MissingHashError, WidgetServerError


class RecordingWidget(BaseWidget):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.handled = []

    def handle_response(self, response):
        self.handled.append(response)


def make_element(params=None, **attrs):
    all_attrs = {"data-params": json.dumps(params or {"refresh_rate": 5})}
    all_attrs.update(attrs)
    return WidgetElement(id="errors", attrs=all_attrs, template="<b>{{ value }}</b>")


@pytest.fixture
def widget(session, scheduler):
    w = RecordingWidget(make_element(), "stp", url_base="http://host/resources/",
                        session=session, scheduler=scheduler)
    w.init()
    return w


class TestInit:
    def test_extracts_template_and_params(self, widget):
        assert widget.template == "<b>{{ value }}</b>"
        assert widget.widget.template is None
        assert widget.config_name == "/stp"
        assert widget.widget_id == "/errors"
        assert widget.params == {"refresh_rate": 5}
        assert widget.refresh_rate == 5

    def test_default_template(self, session, scheduler):
        class Templated(RecordingWidget):
            DEFAULT_TEMPLATE = "<i>{{ value }}</i>"

        element = WidgetElement(id="x")
        w = Templated(element, "stp", session=session, scheduler=scheduler)
        w.init()
        assert w.template == "<i>{{ value }}</i>"
        assert w.refresh_rate == 60

    def test_resource_url_includes_hash(self, widget):
        assert widget.resource_url() == "http://host/resources/stp/errors"
        widget.old_value_hash = "/abc"
        assert widget.resource_url() == "http://host/resources/stp/errors/abc"

    def test_base_class_requires_handle_response(self):
        with pytest.raises(TypeError):
            BaseWidget(WidgetElement(id="x"), "stp")

    def test_super_handle_response_raises(self, session, scheduler):
        class Lazy(BaseWidget):
            def handle_response(self, response):
                return super().handle_response(response)

        w = Lazy(make_element(), "stp", session=session, scheduler=scheduler)
        with pytest.raises(NotImplementedError, match="handle_response"):
            w.handle_response({})


class TestRenderTemplate:
    def test_with_data(self, widget):
        widget.render_template({"value": 42})
        assert widget.widget.html == "<b>42</b>"

    def test_without_data(self, widget):
        widget.render_template()
        assert widget.widget.html == "<b>{{ value }}</b>"

    def test_values_are_escaped(self, widget):
        widget.render_template({"value": "<script>"})
        assert widget.widget.html == "<b>&lt;script&gt;</b>"


class TestStartListening:
    def test_first_poll(self, session, scheduler, make_response):
        session.queue(make_response(200, {"hash": "abc", "data": {"value": 1}}))
        w = RecordingWidget(make_element(), "stp", url_base="http://host/resources",
                            session=session, scheduler=scheduler)
        w.start_listening()

        assert session.calls[0]["method"] == "GET"
        assert session.calls[0]["url"] == "http://host/resources/stp/errors"
        assert w.handled == [{"hash": "abc", "data": {"value": 1}}]
        assert scheduler.delays == [5]

    def test_next_poll_sends_hash(self, widget, session, scheduler, make_response):
        session.queue(make_response(200, {"hash": "abc"}), make_response(200, {"hash": "abc"}))
        widget.fetch_data()
        _, next_poll = scheduler.scheduled[0]
        next_poll()
        assert session.calls[1]["url"] == "http://host/resources/stp/errors/abc"
        assert len(widget.handled) == 1


class TestFetchDataOnSuccess:
    def test_first_response_is_handled(self, widget):
        widget.fetch_data_on_success({"hash": "abc"})
        assert widget.handled == [{"hash": "abc"}]
        assert widget.old_value_hash == "/abc"

    def test_same_hash_is_not_handled_again(self, widget, scheduler):
        widget.fetch_data_on_success({"hash": "abc"})
        widget.fetch_data_on_success({"hash": "abc"})
        assert len(widget.handled) == 1
        assert scheduler.delays == [5, 5]

    def test_changed_hash_is_handled(self, widget):
        widget.fetch_data_on_success({"hash": "abc"})
        widget.fetch_data_on_success({"hash": "def"})
        assert len(widget.handled) == 2
        assert widget.old_value_hash == "/def"

    def test_missing_hash_raises_after_scheduling(self, widget, scheduler):
        with pytest.raises(MissingHashError, match="/errors"):
            widget.fetch_data_on_success({"value": 1})
        assert scheduler.delays == [5]
        assert widget.handled == []


class TestFetchDataOnError:
    def test_server_error_body(self, widget, session, scheduler, make_response):
        session.queue(make_response(500, {"error": {"message": "Search failed", "type": "RequestFailed"}}))
        with pytest.raises(WidgetServerError) as exc_info:
            widget.fetch_data()

        assert str(exc_info.value) == "Search failed (type: RequestFailed)"
        assert exc_info.value.error_type == "RequestFailed"
        assert scheduler.delays == [50]

    def test_error_without_json_body(self, widget, session, scheduler, make_response):
        session.queue(make_response(502, "Bad Gateway"))
        with pytest.raises(WidgetServerError, match="HTTP 502"):
            widget.fetch_data()
        assert scheduler.delays == [50]

    def test_connection_error(self, widget, session, scheduler):
        session.queue(requests.exceptions.ConnectionError("refused"))
        with pytest.raises(WidgetServerError, match=r"refused \(type: ConnectionError\)"):
            widget.fetch_data()
        assert scheduler.delays == [50]

    def test_invalid_json_on_success_status(self, widget, session, scheduler, make_response):
        session.queue(make_response(200, "<html>"))
        with pytest.raises(WidgetServerError):
            widget.fetch_data()
        assert scheduler.delays == [50]
        assert widget.old_value_hash == ""


class TestSetDifference:
    def test_increase(self, widget):
        assert widget.set_difference(50, 75) == {
            "old_value": 50, "percentage_diff": 50, "arrow_class": "icon-arrow-up",
        }

    def test_decrease(self, widget):
        assert widget.set_difference(200, 150) == {
            "old_value": 200, "percentage_diff": 25, "arrow_class": "icon-arrow-down",
        }

    def test_no_change_has_no_percentage(self, widget):
        assert widget.set_difference(10, 10) == {"old_value": 10, "arrow_class": "icon-arrow-down"}

    def test_rounds_half_up(self, widget):
        assert widget.set_difference(8, 9)["percentage_diff"] == 13  # 12.5%

    def test_numeric_strings(self, widget):
        assert widget.set_difference("50", "75")["percentage_diff"] == 50

    @pytest.mark.parametrize("old, new", [(0, 75), (-5, 10), (None, 5), ("abc", 5), (5, "abc")])
    def test_guarded(self, widget, old, new):
        assert widget.set_difference(old, new) == {}


class TestCheckThresholds:
    def make_widget(self, session, scheduler, comparator, critical="100", caution="50"):
        params = {"refresh_rate": 5}
        if comparator:
            params["threshold_comparator"] = comparator
        attrs = {}
        if critical is not None:
            attrs["data-threshold-critical-value"] = critical
        if caution is not None:
            attrs["data-threshold-caution-value"] = caution
        w = RecordingWidget(make_element(params, **attrs), "stp", session=session, scheduler=scheduler)
        w.init()
        return w

    @pytest.mark.parametrize("value, expected", [
        (150, {CRITICAL_CLASS}), (100, {CRITICAL_CLASS}), (70, {CAUTION_CLASS}), (10, set()),
    ])
    def test_lower_is_better(self, session, scheduler, value, expected):
        w = self.make_widget(session, scheduler, "lowerIsBetter")
        w.check_thresholds(value)
        assert w.widget.classes == expected

    @pytest.mark.parametrize("value, expected", [
        (99, {CAUTION_CLASS}), (10, {CRITICAL_CLASS}), (150, set()),
    ])
    def test_higher_is_better(self, session, scheduler, value, expected):
        w = self.make_widget(session, scheduler, "higherIsBetter", critical="50", caution="100")
        w.check_thresholds(value)
        assert w.widget.classes == expected

    def test_without_comparator_only_clears(self, session, scheduler):
        w = self.make_widget(session, scheduler, None)
        w.widget.add_class(CRITICAL_CLASS)
        w.widget.add_class("other")
        w.check_thresholds(1000)
        assert w.widget.classes == {"other"}

    def test_previous_state_is_replaced(self, session, scheduler):
        w = self.make_widget(session, scheduler, "lowerIsBetter")
        w.check_thresholds(150)
        w.check_thresholds(70)
        assert w.widget.classes == {CAUTION_CLASS}

    def test_missing_threshold_is_skipped(self, session, scheduler):
        w = self.make_widget(session, scheduler, "lowerIsBetter", critical=None)
        w.check_thresholds(150)
        assert w.widget.classes == {CAUTION_CLASS}


class TestWidgetElement:
    def test_data_decodes_json(self):
        element = WidgetElement(id="x", attrs={"data-params": '{"a": 1}', "data-name": "plain"})
        assert element.data("params") == {"a": 1}
        assert element.data("name") == "plain"
        assert element.data("missing") is None


def test_timer_scheduler_runs_callback():
    import threading
    done = threading.Event()
    timer = TimerScheduler().call_later(0, done.set)
    assert timer.daemon
    assert done.wait(2)
