"""Counter widget: a single value with change indicator and thresholds."""

from typing import Any, Dict

from ..core.base_widget import BaseWidget


class CounterWidget(BaseWidget):
    """Displays one number, e.g. queue length or error count.

    Expects responses shaped like ``{"hash": ..., "data": {"value": 12}}``.

    Optional params:
        - threshold_comparator: "lowerIsBetter" or "higherIsBetter"
    """

    DEFAULT_TEMPLATE = (
        '<span class="value">{{ value }}</span>'
        '{% if arrow_class %} <i class="{{ arrow_class }}"></i>{% endif %}'
        '{% if percentage_diff %} {{ percentage_diff }}%{% endif %}'
    )

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.previous_value = None

    def handle_response(self, response: Dict[str, Any]):
        value = (response.get("data") or {}).get("value")

        data_to_bind = {"value": value}
        data_to_bind.update(self.set_difference(self.previous_value, value))
        self.previous_value = value

        self.render_template(data_to_bind)
        if value is not None:
            self.check_thresholds(value)

        print(f"📊 {self.widget.id}: {value}")
