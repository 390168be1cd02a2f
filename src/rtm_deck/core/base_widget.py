"""Base widget: long polls a resource endpoint and re-renders on change."""

import json
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Set

import requests
from jinja2 import Environment

from .exceptions import MissingHashError, WidgetServerError
from .utils import is_numeric, round_half_up

DEFAULT_URL_BASE = "http://localhost:5000/resources"
DEFAULT_REFRESH_RATE = 60  # Seconds
ERROR_BACKOFF_FACTOR = 10

CAUTION_CLASS = "thresholdCautionValue"
CRITICAL_CLASS = "thresholdCriticalValue"

_jinja_env = Environment(autoescape=True)


@dataclass
class WidgetElement:
    """The node a widget is bound to: attributes, inline template and output."""

    id: str
    attrs: Dict[str, str] = field(default_factory=dict)
    template: Optional[str] = None
    html: str = ""
    classes: Set[str] = field(default_factory=set)

    def attr(self, name: str) -> Optional[str]:
        return self.attrs.get(name)

    def data(self, key: str) -> Any:
        """Read ``data-<key>``, decoding JSON values like jQuery does."""
        value = self.attrs.get(f"data-{key}")
        if isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError:
                return value
        return value

    def add_class(self, name: str):
        self.classes.add(name)

    def remove_class(self, name: str):
        self.classes.discard(name)

    def has_class(self, name: str) -> bool:
        return name in self.classes


class TimerScheduler:
    """Runs callbacks later on daemon timer threads."""

    def call_later(self, delay: float, callback: Callable[[], Any]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class BaseWidget(ABC):
    """Common interface for dashboard widgets.

    A widget is bound to a WidgetElement and polls
    ``url_base + /config_name + /widget_id + /old_value_hash``. The backend
    answers with a ``hash`` of the current values; handle_response() only
    runs when that hash changes.

    Subclasses implement handle_response() and usually provide
    DEFAULT_TEMPLATE for elements that carry no inline template.
    """

    DEFAULT_TEMPLATE = ""

    def __init__(
        self,
        element: WidgetElement,
        config_name: str,
        url_base: str = DEFAULT_URL_BASE,
        session: Optional[requests.Session] = None,
        scheduler: Optional[TimerScheduler] = None,
        request_timeout: int = 30,
    ):
        self.widget = element
        self.config_name = config_name
        self.url_base = url_base.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.scheduler = scheduler if scheduler is not None else TimerScheduler()
        self.request_timeout = request_timeout

        # Hash string representing previous values of a response
        self.old_value_hash = ""
        self.template: Optional[str] = None
        self.widget_id = ""
        self.params: Dict[str, Any] = {}

    @property
    def refresh_rate(self) -> float:
        return float(self.params.get("refresh_rate", DEFAULT_REFRESH_RATE))

    def init(self):
        """Prepare required properties from the bound element."""
        template = self.widget.template
        self.template = template if template is not None else self.DEFAULT_TEMPLATE
        self.widget.template = None

        self.config_name = "/" + self.config_name.strip("/")
        self.widget_id = "/" + self.widget.id

        self.params = self.widget.data("params") or {}

    def resource_url(self) -> str:
        return self.url_base + self.config_name + self.widget_id + self.old_value_hash

    def render_template(self, data_to_bind: Optional[Dict[str, Any]] = None):
        """Render the widget template into the element.

        Without data the template is put in place untouched.
        """
        if data_to_bind is not None:
            self.widget.html = _jinja_env.from_string(self.template or "").render(**data_to_bind)
        else:
            self.widget.html = self.template or ""

    def start_listening(self):
        """Start the long polling session."""
        self.init()
        self.fetch_data()

    def fetch_data(self):
        try:
            response = self.session.get(
                self.resource_url(),
                headers={"Accept": "application/json"},
                timeout=self.request_timeout,
            )
        except requests.exceptions.RequestException as e:
            self.fetch_data_on_error(None, e)
            return

        if not response.ok:
            self.fetch_data_on_error(response)
            return

        try:
            payload = response.json()
        except ValueError as e:
            self.fetch_data_on_error(response, e)
            return

        self.fetch_data_on_success(payload)

    def fetch_data_on_success(self, response: Dict[str, Any]):
        self.scheduler.call_later(self.refresh_rate, self.fetch_data)

        if not isinstance(response, dict) or "hash" not in response:
            raise MissingHashError(f"Widget {self.widget_id} did not return value hash")

        new_hash = "/" + str(response["hash"])
        if self.old_value_hash != new_hash or self.old_value_hash == "":
            self.old_value_hash = new_hash
            self.handle_response(response)

    def fetch_data_on_error(self, response: Optional[requests.Response], error: Optional[Exception] = None):
        # Next request goes out at 10x the normal refresh rate
        # to limit the number of failing requests.
        self.scheduler.call_later(self.refresh_rate * ERROR_BACKOFF_FACTOR, self.fetch_data)

        message, error_type = self._parse_error(response, error)
        print(f"❌ Widget {self.widget.id}: {message} (type: {error_type})")
        raise WidgetServerError(message, error_type)

    @staticmethod
    def _parse_error(response: Optional[requests.Response], error: Optional[Exception]):
        if response is not None:
            try:
                body = response.json()["error"]
                return str(body["message"]), str(body["type"])
            except (ValueError, KeyError, TypeError):
                return f"HTTP {response.status_code}: {response.text[:200]}", "HttpError"
        return str(error), type(error).__name__

    def set_difference(self, old_value: Any, new_value: Any) -> Dict[str, Any]:
        """Prepare values to bind for a percentage difference.

        Returns an empty dict unless old_value is a positive number and
        new_value is a number.
        """
        data_to_bind: Dict[str, Any] = {}

        if is_numeric(old_value) and float(old_value) > 0 and is_numeric(new_value):
            diff = float(new_value) - float(old_value)
            percentage_diff = round_half_up(abs(diff) / float(old_value) * 100)

            data_to_bind["old_value"] = old_value
            if percentage_diff > 0:
                data_to_bind["percentage_diff"] = percentage_diff

            data_to_bind["arrow_class"] = "icon-arrow-up" if diff > 0 else "icon-arrow-down"

        return data_to_bind

    def _threshold(self, name: str) -> Optional[float]:
        value = self.widget.attr(f"data-threshold-{name}-value")
        if value in (None, "") or not is_numeric(value):
            return None
        return float(value)

    def check_thresholds(self, current_value: float):
        """Mark the element as critical or caution according to thresholds."""
        self.widget.remove_class(CAUTION_CLASS)
        self.widget.remove_class(CRITICAL_CLASS)

        comparator = self.params.get("threshold_comparator")
        if comparator is None:
            return

        critical = self._threshold("critical")
        caution = self._threshold("caution")

        if comparator == "lowerIsBetter":
            breached = lambda limit: current_value >= limit
        else:
            breached = lambda limit: current_value < limit

        if critical is not None and breached(critical):
            self.widget.add_class(CRITICAL_CLASS)
        elif caution is not None and breached(caution):
            self.widget.add_class(CAUTION_CLASS)

    @abstractmethod
    def handle_response(self, response: Dict[str, Any]):
        """Invoked after each changed response from the long polling server."""
        raise NotImplementedError(
            'Method "handle_response" must be implemented by concrete widgets'
        )
