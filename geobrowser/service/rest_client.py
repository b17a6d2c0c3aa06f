"""REST implementation of the shape persistence interface.

Talks JSON to the records backend with requests. Blocking HTTP calls run
in a worker thread (asyncio.to_thread) so the event loop stays free while a
save is in flight. Every transport error and non-2xx response is converted
into PersistenceError.
"""

import asyncio
import logging
from typing import Any

import requests

from geobrowser.constants import ApiConfig
from geobrowser.model.shape import Shape
from geobrowser.service.persistence import PersistenceError

logger = logging.getLogger(__name__)


def _server_message(response: requests.Response) -> str:
    """Best-effort error text from a failed response."""
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason or f"HTTP {response.status_code}"
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return str(data)


class RestShapeService:
    """ShapePersistence over HTTP.

    Example:
        service = RestShapeService(base_url="http://localhost:3000")
        shapes = await service.load_shapes_for_layer("12")
    """

    def __init__(
        self,
        base_url: str = ApiConfig.BASE_URL,
        session: requests.Session | None = None,
        timeout_s: float = ApiConfig.TIMEOUT_S,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._session = session or requests.Session()
        self._session.headers.update(ApiConfig.HEADERS)

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        """Send one request and return the decoded JSON body (None if empty)."""
        url = f"{self.base_url}{path}"
        logger.info(f"[API] {method} {url}")
        try:
            response = self._session.request(method, url, json=payload, timeout=self.timeout_s)
        except requests.RequestException as e:
            logger.error(f"[API] {method} {url} failed: {e}")
            raise PersistenceError(str(e)) from e

        logger.info(f"[API] {response.status_code} {url}")
        if not response.ok:
            raise PersistenceError(_server_message(response), status_code=response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise PersistenceError(f"Invalid JSON from {url}", status_code=response.status_code) from e

    def _shape_from_body(self, body: Any) -> Shape:
        try:
            return Shape.from_dict(body)
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Malformed shape in response: {e}") from e

    async def create_shape(self, shape: Shape) -> Shape:
        body = await asyncio.to_thread(self._request, "POST", ApiConfig.SHAPES, shape.to_dict())
        return self._shape_from_body(body)

    async def update_shape(self, shape: Shape) -> Shape:
        path = ApiConfig.SHAPE_BY_ID.format(shape_id=shape.id)
        body = await asyncio.to_thread(self._request, "PATCH", path, shape.to_dict())
        return self._shape_from_body(body)

    async def delete_shape(self, shape_id: str) -> None:
        path = ApiConfig.SHAPE_BY_ID.format(shape_id=shape_id)
        await asyncio.to_thread(self._request, "DELETE", path)

    async def load_shapes_for_layer(self, layer_id: str) -> list[Shape]:
        path = ApiConfig.LAYER_SHAPES.format(layer_id=layer_id)
        body = await asyncio.to_thread(self._request, "GET", path)
        if not isinstance(body, list):
            raise PersistenceError(f"Expected a list of shapes for layer {layer_id}")
        return [self._shape_from_body(item) for item in body]
