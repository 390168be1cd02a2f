"""Widget listing URLs that answered with HTTP 500."""

from typing import Any, Dict

from ..core.base_widget import BaseWidget
from ..core.utils import format_timestamp_ago, truncate_text


class FivehundredsWidget(BaseWidget):
    """Displays the most frequently failing URLs.

    Expects ``data`` as returned by SplunkDao.fetch_fivehundreds_for_alert_widget.
    The total count is checked against the thresholds.
    """

    DEFAULT_TEMPLATE = (
        '<h3>{{ total }} errors</h3>'
        '<table>{% for row in rows %}'
        '<tr><td title="{{ row.url }}">{{ row.short_url }}</td>'
        '<td>{{ row.count }}</td><td>{{ row.ago }}</td></tr>'
        '{% endfor %}</table>'
    )

    def handle_response(self, response: Dict[str, Any]):
        data = response.get("data") or {}

        rows = [
            {
                "url": row.get("url"),
                "short_url": truncate_text(row.get("url") or "", max_length=60),
                "count": row.get("count", 0),
                "ago": format_timestamp_ago(row["latest_time"]) if row.get("latest_time") else "",
            }
            for row in data.get("rows", [])
        ]
        total = data.get("total", sum(row["count"] for row in rows))

        self.render_template({"rows": rows, "total": total})
        self.check_thresholds(total)

        print(f"🔥 {self.widget.id}: {total} errors on {len(rows)} URLs")
