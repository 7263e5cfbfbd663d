from typing import Any, Dict, Iterable, List, Mapping, Optional
import asyncio
import logging
import time

import httpx

from .config import PromptBuilderConfig
from .errors import (
    ConflictError,
    GatewayError,
    GatewayTimeoutError,
    NetworkError,
    NotFoundError,
    ValidationError,
)
from .logging import log_json
from .models import Category, Section, category_changes_to_wire, section_changes_to_wire
from .schema import COMPILE_RESPONSE_SCHEMA, require_valid

logger = logging.getLogger(__name__)

_STATUS_ERRORS = {
    400: ValidationError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
}


def error_for_status(status: int, message: str) -> GatewayError:
    if status in _STATUS_ERRORS:
        return _STATUS_ERRORS[status](message, status=status)
    if status >= 500:
        return NetworkError(message, status=status)
    return ValidationError(message, status=status)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("message"), str) and body["message"]:
        return body["message"]
    return response.reason_phrase or f"HTTP {response.status_code}"


class HttpGateway:
    """
    Gateway backed by the prompt builder REST API.

    Reads are retried with exponential backoff on transport failures and 5xx
    responses; writes are sent exactly once. Every response body is checked
    against its JSON schema before it is turned into a model.
    """

    def __init__(self, config: Optional[PromptBuilderConfig] = None, *, client: Optional[httpx.AsyncClient] = None):
        self.config = config or PromptBuilderConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(self.config.timeout))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        url = f"{self.config.api_url}{path}"
        retries = self.config.max_retries if method == "GET" else 0
        attempt = 0
        start_time = time.time()

        while True:
            try:
                r = await self._client.request(method, url, json=payload, params=params)
            except httpx.TimeoutException as e:
                error: GatewayError = GatewayTimeoutError(f"{method} {path} timed out: {e}")
            except httpx.TransportError as e:
                error = NetworkError(f"{method} {path} failed: {e}")
            else:
                if r.status_code < 400:
                    duration = (time.time() - start_time) * 1000
                    logger.info(f"HTTP {method} {url} -> {r.status_code} in {duration:.2f}ms")
                    if r.status_code == 204 or not r.content:
                        return None
                    try:
                        return r.json()
                    except ValueError as e:
                        raise ValidationError(f"{method} {path} returned invalid JSON: {e}") from e
                error = error_for_status(r.status_code, _error_message(r))
                if not isinstance(error, NetworkError):
                    raise error

            if attempt >= retries:
                log_json(
                    logging.WARNING,
                    "gateway.request_failed",
                    method=method,
                    path=path,
                    attempts=attempt + 1,
                    error=str(error),
                )
                raise error

            sleep_for = min(self.config.retry_max_delay, self.config.retry_base_delay * (2 ** attempt))
            log_json(logging.INFO, "gateway.retry", method=method, path=path, attempt=attempt + 1, sleep=sleep_for)
            await asyncio.sleep(sleep_for)
            attempt += 1

    async def _entity_list(self, path: str, factory, params: Optional[Dict[str, str]] = None) -> list:
        body = await self._request("GET", path, params=params)
        if not isinstance(body, list):
            raise ValidationError(f"expected a JSON array from {path}")
        return [factory(item) for item in body]

    # Categories

    async def list_categories(self) -> List[Category]:
        return await self._entity_list("/categories", Category.from_wire)

    async def get_category(self, category_id: str) -> Category:
        return Category.from_wire(await self._request("GET", f"/categories/{category_id}"))

    async def create_category(self, data: Mapping[str, Any]) -> Category:
        body = await self._request("POST", "/categories", category_changes_to_wire(data))
        return Category.from_wire(body)

    async def update_category(self, category_id: str, changes: Mapping[str, Any]) -> Category:
        body = await self._request("PUT", f"/categories/{category_id}", category_changes_to_wire(changes))
        return Category.from_wire(body)

    async def delete_category(self, category_id: str) -> None:
        await self._request("DELETE", f"/categories/{category_id}")

    # Sections

    async def list_sections(self, category_id: Optional[str] = None) -> List[Section]:
        params = {"categoryId": category_id} if category_id is not None else None
        return await self._entity_list("/sections", Section.from_wire, params=params)

    async def get_section(self, section_id: str) -> Section:
        return Section.from_wire(await self._request("GET", f"/sections/{section_id}"))

    async def create_section(self, data: Mapping[str, Any]) -> Section:
        body = await self._request("POST", "/sections", section_changes_to_wire(data))
        return Section.from_wire(body)

    async def update_section(self, section_id: str, changes: Mapping[str, Any]) -> Section:
        body = await self._request("PUT", f"/sections/{section_id}", section_changes_to_wire(changes))
        return Section.from_wire(body)

    async def delete_section(self, section_id: str) -> None:
        await self._request("DELETE", f"/sections/{section_id}")

    async def compile_remote(self, selected_ids: Iterable[str], custom_prompt: Optional[str] = None) -> str:
        payload: Dict[str, Any] = {"selectedIds": sorted(selected_ids)}
        if custom_prompt is not None:
            payload["customPrompt"] = custom_prompt
        body = await self._request("POST", "/compile", payload)
        require_valid(body, COMPILE_RESPONSE_SCHEMA, what="compile response")
        return body["prompt"]
