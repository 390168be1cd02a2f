"""Base class for data access objects talking to external monitoring APIs."""

import re
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .cache import CacheStore
from .config import DaoConfig, DaoOptions
from .exceptions import (
    CacheNotConfigured,
    EndpointUrlNotAssembled,
    EndpointUrlNotDefined,
    FetchNotImplemented,
    RequestFailed,
)
from .parsers import ResponseFormat, get_parser
from .utils import hash_payload, md5_hex

PLACEHOLDER_PATTERN = re.compile(r":(\w+):")


class AbstractDao:
    """Fetches data from one external API and normalizes it.

    Concrete DAOs declare their capabilities as ``fetch_*`` methods. Each one
    resolves its URL template by its own name, e.g.::

        def fetch_queue_length(self, params):
            root = self.request("fetch_queue_length", params, ResponseFormat.XML)
            return {"value": len(root.findall("item"))}

    Any other ``fetch*`` attribute raises FetchNotImplemented.
    """

    DEFAULT_URLS: Dict[str, str] = {}

    def __init__(
        self,
        config: Optional[Union[DaoConfig, Mapping[str, Any]]] = None,
        session: Optional[requests.Session] = None,
        cache: Optional[CacheStore] = None,
        *,
        timeout: int = 30,
        verify: bool = False,
        retry_attempts: int = 3,
        retry_wait=None,
    ):
        if isinstance(config, Mapping):
            config = DaoConfig(**{"type": self.dao_type(), **config})
        urls = dict(self.DEFAULT_URLS)
        if config is not None:
            urls.update(config.urls)
            timeout = config.timeout
            verify = config.verify

        self.config = MappingProxyType({"urls": MappingProxyType(urls)})
        self.session = session if session is not None else requests.Session()
        self.cache = cache
        self.timeout = timeout
        self.verify = verify
        self.retry_attempts = retry_attempts
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)
        self.dao_options = DaoOptions()

        if config is not None:
            self.set_options(config.options)

    @classmethod
    def dao_type(cls) -> str:
        """Kebab-case type name, e.g. SplunkDao -> "splunk"."""
        name = re.sub(r"Dao$", "", cls.__name__)
        return re.sub(r"(?<!^)(?=[A-Z])", "-", name).lower()

    @classmethod
    def supported_fetches(cls) -> List[str]:
        """Names of the fetch operations this DAO declares."""
        return sorted(
            name for name in dir(cls)
            if name.startswith("fetch") and callable(getattr(cls, name))
        )

    @classmethod
    def supports(cls, method_name: str) -> bool:
        return method_name in cls.supported_fetches()

    def set_options(self, options: Union[DaoOptions, Mapping[str, Any]]) -> "AbstractDao":
        """Configure params, headers and auth used by every request."""
        if not isinstance(options, DaoOptions):
            options = DaoOptions(**options)
        self.dao_options = options
        return self

    def get_dao_params(self) -> Dict[str, Any]:
        return dict(self.dao_options.params)

    def get_dao_headers(self) -> Dict[str, str]:
        return dict(self.dao_options.headers)

    def get_dao_auth(self) -> Optional[Tuple[str, str]]:
        auth = self.dao_options.auth
        if auth is None:
            return None
        return (auth.username, auth.password)

    def get_endpoint_url(self, method_name: str) -> str:
        """Return the URL template configured for a fetch method.

        Raises:
            EndpointUrlNotDefined if no template is configured
        """
        try:
            return self.config["urls"][method_name]
        except KeyError:
            raise EndpointUrlNotDefined(
                f'Endpoint URL for method "{method_name}" is not defined in {type(self).__name__}'
            ) from None

    def assemble_url(self, url: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """Replace every ``:name:`` placeholder with its value.

        Instance params are merged with call params, call params winning.
        """
        merged = {**self.get_dao_params(), **(params or {})}
        self.validate_url_param_values(url, merged)

        for key, value in merged.items():
            if isinstance(value, (list, dict)) or callable(value):
                continue
            url = url.replace(f":{key}:", str(value))

        return url

    def validate_url_param_values(self, url: str, params: Mapping[str, Any]):
        """Check that every placeholder in url has a value.

        Raises:
            EndpointUrlNotAssembled naming the first missing placeholder
        """
        for name in PLACEHOLDER_PATTERN.findall(url):
            if params.get(name) is None:
                raise EndpointUrlNotAssembled(
                    "Endpoint URL cannot be assembled - not all required params "
                    f"were given (missing :{name}:)"
                )

    def request(
        self,
        url_key: str,
        params: Optional[Mapping[str, Any]] = None,
        response_format: Union[ResponseFormat, str] = ResponseFormat.JSON,
        post_data: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Send the request configured for url_key and parse the response.

        Uses POST with form data when post_data is given, GET otherwise.

        Raises:
            EndpointUrlNotDefined, EndpointUrlNotAssembled, ParserNotFound,
            RequestFailed, ResponseParseError
        """
        url = self.assemble_url(self.get_endpoint_url(url_key), params)
        parser = get_parser(response_format)
        response = self._send(url, post_data)
        return parser(response)

    def request_with_cache(
        self,
        url_key: str,
        params: Optional[Mapping[str, Any]] = None,
        response_format: Union[ResponseFormat, str] = ResponseFormat.JSON,
        post_data: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Same as request(), but parsed payloads are cached by assembled URL.

        POST data is part of the key, so different searches sent to one
        endpoint are cached separately.
        """
        if self.cache is None:
            raise CacheNotConfigured(f"{type(self).__name__} has no cache store")

        url = self.assemble_url(self.get_endpoint_url(url_key), params)
        # POST bodies are keyed too: every Splunk search posts to the same URL
        cache_id = md5_hex(url) if not post_data else md5_hex(url + hash_payload(dict(post_data)))

        if self.cache.has_item(cache_id):
            print(f"✅ Cache hit: {url}")
            return self.cache.get_item(cache_id)

        response = self.request(url_key, params, response_format, post_data)
        self.cache.add_item(cache_id, response)
        return response

    def _send(self, url: str, post_data: Optional[Mapping[str, Any]] = None) -> requests.Response:
        method = "POST" if post_data else "GET"
        kwargs: Dict[str, Any] = {
            "headers": self.get_dao_headers(),
            "timeout": self.timeout,
            "verify": self.verify,
        }
        if post_data:
            kwargs["data"] = dict(post_data)
        auth = self.get_dao_auth()
        if auth is not None:
            kwargs["auth"] = auth

        print(f"📡 Fetching: {method} {url}")
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self.retry_attempts),
                wait=self.retry_wait,
                retry=retry_if_exception_type(
                    (requests.exceptions.ConnectionError, requests.exceptions.Timeout)
                ),
                reraise=True,
            ):
                with attempt:
                    response = self.session.request(method, url, **kwargs)
                    response.raise_for_status()
        except requests.exceptions.RequestException as e:
            status_code = e.response.status_code if e.response is not None else None
            summary = e.response.text[:200] if e.response is not None else ""
            print(f"❌ Request failed: {url}: {e}")
            raise RequestFailed(
                f"Request failed with status: {e} {summary} {status_code or ''}".strip(),
                status_code=status_code,
            ) from e

        return response

    def __getattr__(self, name: str):
        # Only reached for attributes that do not exist
        if name.startswith("fetch"):
            raise FetchNotImplemented(
                f'Method "{name}" not implemented in {type(self).__name__}. '
                f"Supported: {', '.join(self.supported_fetches()) or 'none'}."
            )
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")
