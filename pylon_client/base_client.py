from __future__ import annotations
import logging
from typing import Any, Dict, Tuple
import requests
from .config import VERSION, ClientConfig
from .exceptions import ApiError, error_for_response
from .response import ApiResponse

logger = logging.getLogger(__name__)


class BaseClient:
    """Base HTTP client: one owned session, auth headers, JSON handling and error mapping.

    A single call is a single HTTP exchange. Nothing is retried, throttled or
    cached here; callers wanting that compose it around the client.
    """

    def __init__(self, config: ClientConfig, session: Any = None):
        self.config = config
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _headers(self, multipart: bool = False) -> Dict[str, str]:
        headers = {
            'Authorization': f"Bearer {self.config.api_key}",
            'Accept': 'application/json',
            'User-Agent': f'pylon-client/{VERSION}',
        }
        # requests sets the multipart boundary itself
        if not multipart:
            headers['Content-Type'] = 'application/json'
        return headers

    def _url(self, path: str) -> str:
        return self.config.base_url + '/' + path.lstrip('/')

    def _request(self, method: str, path: str, *, params: Dict[str, Any] | None = None, json_body: Any | None = None, files: Dict[str, Any] | None = None, data: Dict[str, Any] | None = None) -> ApiResponse:
        method = method.upper()
        url = self._url(path)
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        multipart = files is not None
        try:
            resp = self.session.request(
                method,
                url,
                params=params or None,
                json=None if multipart else json_body,
                files=files,
                data=data,
                headers=self._headers(multipart=multipart),
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise ApiError(f"Network error: {e}") from e

        body, decoded = self._decode_body(resp)
        response = ApiResponse(
            method=method,
            url=resp.url or url,
            status_code=resp.status_code,
            headers=resp.headers,
            body=body,
        )
        self._log(response)
        if not response.ok:
            raise error_for_response(response)
        if not decoded:
            raise ApiError('Failed to decode JSON response', response)
        return response

    @staticmethod
    def _decode_body(resp: requests.Response) -> Tuple[Any, bool]:
        """Return ``(body, decoded)``; ``decoded`` is False for a JSON content type with an unparseable body."""
        if not resp.content:
            return None, True
        ctype = resp.headers.get('Content-Type', '')
        if 'json' in ctype:
            try:
                return resp.json(), True
            except ValueError:
                return resp.text, False
        return resp.text, True

    def _log(self, response: ApiResponse) -> None:
        logger.debug('%s %s -> %s', response.method, response.url, response.status_code)
        if self.config.debug:
            logger.info('Request URL: %s', response.url)
            logger.info('Response status: %s', response.status_code)
            logger.info('Response body: %r', response.body)
