"""Jenkins DAO using the remote access API."""

from typing import Any, Dict

from ..core.dao import AbstractDao
from ..core.parsers import ResponseFormat

FAILING_COLORS = {"red", "red_anime", "yellow", "yellow_anime"}


class JenkinsDao(AbstractDao):
    """Reads job and queue state from a Jenkins server.

    Required options params:
        - baseUrl: Jenkins URL (e.g., "https://ci.example.com")
    """

    DEFAULT_URLS = {
        "fetch_failing_jobs": ":baseUrl:/view/:view:/api/json?tree=jobs[name,color,url]",
        "fetch_queue_length": ":baseUrl:/queue/api/xml",
    }

    def fetch_failing_jobs(self, params: Dict[str, Any] = None) -> Dict[str, Any]:
        """Fetch jobs of a view whose last build failed or is unstable."""
        data = self.request_with_cache("fetch_failing_jobs", params or {})

        jobs = [
            {
                "name": job["name"],
                "url": job.get("url"),
                "unstable": job.get("color", "").startswith("yellow"),
            }
            for job in data.get("jobs", [])
            if job.get("color") in FAILING_COLORS
        ]
        return {"jobs": jobs, "value": len(jobs)}

    def fetch_queue_length(self, params: Dict[str, Any] = None) -> Dict[str, Any]:
        """Fetch the number of builds waiting in the queue."""
        root = self.request("fetch_queue_length", params or {}, ResponseFormat.XML)
        return {"value": len(root.findall("item"))}
