"""Authorization model retrieval over the OpenFGA HTTP API.

    GET {api_url}/stores/{store_id}/authorization-models/{model_id}
    GET {api_url}/stores/{store_id}/authorization-models?page_size=1

Without a model id the first page (newest model first) is listed and
that model is then read by id. No retries.
"""

from typing import Any, Dict, Optional

import httpx
import structlog

from fga_typegen.exceptions import ModelRetrievalError


DEFAULT_TIMEOUT = 30.0


class AuthorizationModelClient:
    """Synchronous client for reading authorization models from one store.

    Use as a context manager so the underlying connection pool is closed:

        with AuthorizationModelClient(api_url, store_id) as client:
            payload = client.fetch()
    """

    def __init__(
        self,
        api_url: str,
        store_id: str,
        api_token: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._store_id = store_id
        self._logger = structlog.get_logger(__name__)
        self._client = httpx.Client(
            base_url=api_url.rstrip("/"),
            headers=self._request_headers(api_token),
            transport=transport,
            timeout=timeout,
        )

    @staticmethod
    def _request_headers(api_token: Optional[str]) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"
        return headers

    def __enter__(self) -> "AuthorizationModelClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = self._client.get(path, params=params)
        except httpx.HTTPError as e:
            self._logger.warning("model_fetch_failed", path=path, reason=repr(e))
            raise ModelRetrievalError(f"request to {path} failed: {e}") from e

        if response.status_code != 200:
            self._logger.warning(
                "model_fetch_failed", path=path, status_code=response.status_code
            )
            raise ModelRetrievalError(
                f"HTTP {response.status_code}: failed to read {path}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ModelRetrievalError(f"response from {path} is not JSON") from e
        if not isinstance(body, dict):
            raise ModelRetrievalError(f"response from {path} is not a JSON object")
        return body

    def latest_model_id(self) -> str:
        """Id of the newest authorization model in the store.

        Raises:
            ModelRetrievalError: If the store has no models
        """
        body = self._get(
            f"/stores/{self._store_id}/authorization-models", params={"page_size": 1}
        )
        models = body.get("authorization_models") or []
        if not models or not isinstance(models[0], dict) or not models[0].get("id"):
            raise ModelRetrievalError(
                f"no authorization models found in store {self._store_id!r}"
            )
        return models[0]["id"]

    def fetch(self, model_id: Optional[str] = None) -> Dict[str, Any]:
        """Read an authorization model payload.

        Args:
            model_id: Model to read; the latest model when None

        Returns:
            The model object (unwrapped from "authorization_model")

        Raises:
            ModelRetrievalError: On transport errors, non-200 responses or
                unexpected response bodies
        """
        model_id = model_id or self.latest_model_id()
        body = self._get(f"/stores/{self._store_id}/authorization-models/{model_id}")
        model = body.get("authorization_model")
        if not isinstance(model, dict):
            raise ModelRetrievalError(
                f"response for model {model_id!r} has no authorization_model"
            )

        self._logger.info(
            "model_fetched",
            store_id=self._store_id,
            model_id=model.get("id", model_id),
            type_count=len(model.get("type_definitions") or []),
        )
        return model


__all__ = ["AuthorizationModelClient", "DEFAULT_TIMEOUT"]
