"""OVH API client.

Signs every authenticated request with the application secret and the
consumer key. The consumer key is obtained through a redirect-based login:
the API hands out a pending key and a validation URL where the user
approves it.
"""

import contextlib
import logging
import webbrowser
from typing import Any, Callable, Dict, Iterator, Optional, Sequence
from urllib.parse import quote, urlencode

import httpx

from .clock import ClockSkew
from .config import DEFAULT_BASE_URL, OvhConfig
from .signing import build_headers, serialize_body
from .storage import CredentialStore, Storage
from .types import (
    DEFAULT_ACCESS_RULES,
    AccessRule,
    APIError,
    AuthState,
    CredentialRequest,
    Credentials,
    LifecycleBusyError,
    NotCredentialError,
)

logger = logging.getLogger(__name__)


class OvhClient:
    """Client for the OVH API.

    Every authenticated request is signed with a timestamp corrected by the
    API clock offset, measured once per client.

    Usage:
        # First run: ask the user to approve a consumer key
        client = OvhClient(
            application_key="my_ak",
            application_secret="my_as",
            storage=FileStorage("~/.config/ovh/credentials.json"),
            location="https://my.app/callback",
        )
        if not client.is_authenticated():
            await client.login()

        # Later runs: the consumer key is restored from storage
        me = await client.get("/me")
        await client.logout()
    """

    DEFAULT_BASE_URL = DEFAULT_BASE_URL

    def __init__(
        self,
        application_key: str = "",
        application_secret: str = "",
        base_url: str = DEFAULT_BASE_URL,
        consumer_key: Optional[str] = None,
        access_rules: Optional[Sequence[AccessRule]] = None,
        storage: Optional[Storage] = None,
        location: Optional[str] = None,
        open_url: Optional[Callable[[str], Any]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        """Initialize the client.

        Args:
            application_key: Application key (AK)
            application_secret: Application secret (AS)
            base_url: API base URL (default: https://api.ovh.com/1.0)
            consumer_key: Consumer key (CK) to use instead of logging in
            access_rules: Rules requested at login (default: full access)
            storage: Where the consumer key is persisted (default: nowhere)
            location: Default redirection target after login validation
            open_url: Sends the user to the validation URL (default: webbrowser.open)
            http_client: Transport to use (default: a new httpx.AsyncClient)
            timeout: Timeout of the default transport, in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.access_rules = list(access_rules or DEFAULT_ACCESS_RULES)
        self.location = location
        self._open_url = open_url or webbrowser.open

        self._credentials = CredentialStore(application_key, application_secret, storage)
        if consumer_key:
            self._credentials.set_consumer_key(consumer_key)

        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

        self._clock = ClockSkew(self._fetch_time)
        self._schema_cache: Dict[str, dict] = {}
        self._lifecycle_operation: Optional[str] = None

    @classmethod
    def from_config(cls, config: Optional[OvhConfig] = None, **kwargs) -> "OvhClient":
        """Build a client from an OvhConfig (default: read from the environment)."""
        config = config or OvhConfig()
        return cls(
            application_key=config.application_key,
            application_secret=config.application_secret,
            base_url=config.base_url,
            consumer_key=config.consumer_key,
            access_rules=config.access_rules,
            location=config.location,
            timeout=config.timeout,
            **kwargs,
        )

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def set_base_url(self, base_url: str) -> None:
        self.base_url = base_url.rstrip("/")

    def set_application_key(self, application_key: str) -> None:
        self._credentials.set_application_key(application_key)

    def set_application_secret(self, application_secret: str) -> None:
        self._credentials.set_application_secret(application_secret)

    def set_consumer_key(self, consumer_key: str) -> None:
        """Use an existing consumer key instead of logging in. It is persisted."""
        self._credentials.set_consumer_key(consumer_key)

    def set_access_rules(self, access_rules: Sequence[AccessRule]) -> None:
        self.access_rules = list(access_rules)

    @property
    def credentials(self) -> Credentials:
        return self._credentials.get()

    # -------------------------------------------------------------------------
    # Authentication lifecycle
    # -------------------------------------------------------------------------

    @property
    def state(self) -> AuthState:
        if self._credentials.is_authenticated():
            return AuthState.AUTHENTICATED
        return AuthState.ANONYMOUS

    def is_authenticated(self) -> bool:
        return self._credentials.is_authenticated()

    async def login(self, redirect_url: Optional[str] = None) -> CredentialRequest:
        """Request a new consumer key and send the user to validate it.

        A consumer key already held is dropped locally first; it is not
        revoked on the API.

        Args:
            redirect_url: Where the API sends the user once the key is
                validated (default: the client's ``location``)

        Returns:
            CredentialRequest with the new consumer key and validation URL.

        Raises:
            LifecycleBusyError: If a login or logout is already running.
            APIError: If the API refused the credential request.
        """
        redirection = redirect_url or self.location
        if not redirection:
            raise ValueError("redirect_url is required when the client has no location")

        with self._lifecycle("login"):
            if self._credentials.is_authenticated():
                logger.info("Dropping current consumer key before login")
                self._credentials.clear_consumer_key()

            url = self.base_url + "/auth/credential"
            body = serialize_body(
                {
                    "accessRules": [rule.to_dict() for rule in self.access_rules],
                    "redirection": redirection,
                }
            )
            headers = build_headers()
            headers["X-Ovh-Application"] = self._credentials.get().application_key

            response = await self._send("POST", url, headers, body)
            data = self._parse_response(response)

            try:
                result = CredentialRequest(
                    consumer_key=data["consumerKey"],
                    validation_url=data["validationUrl"],
                    state=data.get("state"),
                )
            except (KeyError, TypeError):
                raise APIError(response.status_code, "Malformed credential response", response.text)

            self._credentials.set_consumer_key(result.consumer_key)
            logger.info("Consumer key issued, redirecting to validation page")

        self._open_url(result.validation_url)
        return result

    async def logout(self) -> None:
        """Expire the current consumer key.

        The local key is forgotten once the API call settles, whether it
        succeeded or not; an API error is raised afterwards.

        Raises:
            NotCredentialError: If the client holds no consumer key.
            LifecycleBusyError: If a login or logout is already running.
        """
        if not self._credentials.is_authenticated():
            raise NotCredentialError()

        with self._lifecycle("logout"):
            url = self.base_url + "/auth/logout"
            try:
                offset = await self._clock.get_offset()
                headers = build_headers(self._credentials.get(), "POST", url, "", offset)
                response = await self._send("POST", url, headers, "")
                if not response.is_success:
                    self._handle_error(response)
            finally:
                self._credentials.clear_consumer_key()
                logger.info("Consumer key cleared")

    @contextlib.contextmanager
    def _lifecycle(self, operation: str) -> Iterator[None]:
        if self._lifecycle_operation is not None:
            raise LifecycleBusyError(operation, self._lifecycle_operation)
        self._lifecycle_operation = operation
        try:
            yield
        finally:
            self._lifecycle_operation = None

    # -------------------------------------------------------------------------
    # Clock
    # -------------------------------------------------------------------------

    async def get_offset(self) -> int:
        """Seconds the local clock is ahead of the API clock (cached)."""
        return await self._clock.get_offset()

    def invalidate_offset(self) -> None:
        """Forget the cached clock offset; the next signed call measures it again."""
        self._clock.invalidate()

    async def _fetch_time(self) -> int:
        response = await self._send("GET", self.base_url + "/auth/time", build_headers(), "")
        data = self._parse_response(response)
        if isinstance(data, bool) or not isinstance(data, int):
            raise APIError(response.status_code, "Malformed time response", response.text)
        return data

    # -------------------------------------------------------------------------
    # Requests
    # -------------------------------------------------------------------------

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        data: Any = None,
        no_authentication: bool = False,
    ) -> Any:
        """Call the API.

        ``{name}`` placeholders in ``path`` are filled from ``params``; the
        other params go to the query string.

        Args:
            method: HTTP method
            path: Path below the base URL, like "/dedicated/server/{serviceName}"
            params: Path and query parameters (optional)
            data: JSON body (optional)
            no_authentication: Send the request unsigned

        Returns:
            Decoded JSON response, or None for an empty body.

        Raises:
            NotCredentialError: If the request must be signed and no consumer
                key is held. Nothing is sent.
            APIError: If the API answered with an error.
        """
        method = method.upper()
        if not no_authentication and not self._credentials.is_authenticated():
            raise NotCredentialError()

        url = self._build_url(path, params)
        body = serialize_body(data)

        if no_authentication:
            headers = build_headers()
        else:
            offset = await self._clock.get_offset()
            headers = build_headers(self._credentials.get(), method, url, body, offset)

        response = await self._send(method, url, headers, body)
        return self._parse_response(response)

    async def get(self, path: str, params: Optional[dict] = None, **kwargs) -> Any:
        return await self.request("GET", path, params=params, **kwargs)

    async def post(self, path: str, data: Any = None, params: Optional[dict] = None, **kwargs) -> Any:
        return await self.request("POST", path, params=params, data=data, **kwargs)

    async def put(self, path: str, data: Any = None, params: Optional[dict] = None, **kwargs) -> Any:
        return await self.request("PUT", path, params=params, data=data, **kwargs)

    async def delete(self, path: str, params: Optional[dict] = None, **kwargs) -> Any:
        return await self.request("DELETE", path, params=params, **kwargs)

    remove = delete
    delete_ = delete

    async def get_schema(self, schema_path: str) -> dict:
        """Get the API schema of a path, like "/me". Cached per path."""
        if schema_path not in self._schema_cache:
            response = await self._send(
                "GET", self.base_url + schema_path + ".json", build_headers(), ""
            )
            schema = self._parse_response(response)
            if not isinstance(schema, dict):
                raise APIError(response.status_code, "Malformed schema response", response.text)
            self._schema_cache[schema_path] = schema
        return self._schema_cache[schema_path]

    async def get_models(self, schema_path: str, name: Optional[str] = None) -> Any:
        """Get all models of a schema, or only the one called ``name``."""
        schema = await self.get_schema(schema_path)
        models = schema.get("models", {})
        if not name:
            return models
        return models.get(name)

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _build_url(self, path: str, params: Optional[dict]) -> str:
        query = dict(params or {})
        if query and "{" in path:
            for key in list(query):
                placeholder = "{" + key + "}"
                if placeholder in path:
                    value = quote(_param_value(query.pop(key)), safe="!*'()")
                    path = path.replace(placeholder, value)

        url = self.base_url + path
        if query:
            pairs = []
            for key, value in query.items():
                values = value if isinstance(value, (list, tuple)) else [value]
                pairs.extend((key, _param_value(v)) for v in values)
            url += "?" + urlencode(pairs)
        return url

    async def _send(self, method: str, url: str, headers: dict, body: str) -> httpx.Response:
        logger.debug("%s %s", method, url)
        content = body.encode("utf-8") if body else None
        return await self._client.request(method, url, content=content, headers=headers)

    def _parse_response(self, response: httpx.Response) -> Any:
        if not response.is_success:
            self._handle_error(response)

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError:
            raise APIError(response.status_code, "Malformed response", response.text)

    def _handle_error(self, response: httpx.Response) -> None:
        """Raise APIError for an error response."""
        error_code = None
        try:
            data = response.json()
            detail = data.get("message", str(data))
            error_code = data.get("errorCode")
        except (ValueError, AttributeError):
            detail = response.text

        messages = {
            400: "Bad request",
            401: "Not authenticated",
            403: "Insufficient permissions",
            404: "Not found",
            409: "Conflict",
            429: "Rate limit exceeded",
        }

        logger.debug("API error %s on %s", response.status_code, response.request.url)
        raise APIError(
            status_code=response.status_code,
            message=messages.get(response.status_code, f"HTTP {response.status_code}"),
            detail=detail,
            error_code=error_code,
        )

    async def close(self) -> None:
        """Close the HTTP client, if this client created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def _param_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
