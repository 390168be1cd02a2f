"""Splunk DAO using the REST search API."""

from typing import Any, Dict, List

from ..core.dao import AbstractDao
from ..core.exceptions import DaoError
from ..core.parsers import ResponseFormat
from ..core.utils import is_numeric


def columns_to_rows(result: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Turn Splunk ``json_cols`` output into one dict per row.

    Example:
        >>> columns_to_rows({"fields": ["url", "count"], "columns": [["/a", "/b"], ["3", "1"]]})
        [{'url': '/a', 'count': '3'}, {'url': '/b', 'count': '1'}]
    """
    fields = [f["name"] if isinstance(f, dict) else f for f in result.get("fields", [])]
    columns = result.get("columns", [])
    return [dict(zip(fields, values)) for values in zip(*columns)]


class SplunkDao(AbstractDao):
    """Runs oneshot searches against a Splunk search head.

    Required options params:
        - baseUrl: Management URL (e.g., "https://splunk.example.com:8089")

    Fetch params:
        - config: Search job arguments (search, earliest_time, latest_time, ...)
    """

    DEFAULT_URLS = {
        "fetch_fivehundreds_for_alert_widget": ":baseUrl:/services/search/jobs",
        "fetch_search_count": ":baseUrl:/services/search/jobs",
    }

    def _search(self, url_key: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url_params = {k: v for k, v in params.items() if k != "config"}
        self.assemble_url(self.get_endpoint_url(url_key), url_params)

        search_config = dict(params.get("config") or {})
        if not search_config.get("search"):
            raise DaoError(f'Search for "{url_key}" cannot be run - missing config.search')
        search_config.setdefault("exec_mode", "oneshot")
        search_config.setdefault("output_mode", "json_cols")

        return self.request_with_cache(url_key, url_params, ResponseFormat.JSON, search_config)

    def fetch_fivehundreds_for_alert_widget(self, params: Dict[str, Any] = None) -> Dict[str, Any]:
        """Fetch URLs answering with HTTP 500, most frequent first."""
        result = self._search("fetch_fivehundreds_for_alert_widget", params or {})

        rows = []
        for row in columns_to_rows(result):
            rows.append({
                "url": row.get("url"),
                "count": int(float(row.get("count") or 0)),
                "latest_time": float(row["latestTime"]) if is_numeric(row.get("latestTime")) else None,
            })

        print(f"✅ Fetched {len(rows)} URLs with errors from Splunk")
        return {
            "rows": rows,
            "total": sum(row["count"] for row in rows),
        }

    def fetch_search_count(self, params: Dict[str, Any] = None) -> Dict[str, Any]:
        """Fetch a single number, e.g. from ``... | stats count``."""
        result = self._search("fetch_search_count", params or {})

        value = None
        for column in result.get("columns", []):
            if column and is_numeric(column[0]):
                value = float(column[0])
                break

        if value is not None and value.is_integer():
            value = int(value)
        return {"value": value}
