from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging

import requests
from requests import Session
from requests.utils import quote

from .config import (
    FEED_PAGE_SIZE,
    FIRESTORE_BASE_URL,
    HTTP_TIMEOUT,
    POSTS_COLLECTION,
    REPLIES_COLLECTION,
    REPLIES_LIMIT,
)
from .data_models import Post, Reply
from .decoder import DecodeError, Document, decode_documents, decode_post, decode_reply

logger = logging.getLogger("cyberspace.api")

ASCENDING = "ASCENDING"
DESCENDING = "DESCENDING"


class FetchError(Exception):
    """A document store request failed"""
    pass


# === structured query helpers ===

def encode_value(value: Any) -> Dict[str, Any]:
    """Encode a filter operand as a Firestore tagged value."""
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, str):
        return {"stringValue": value}
    raise TypeError(f"unsupported filter value: {value!r}")


def field_filter(field: str, value: Any, op: str = "EQUAL") -> Dict[str, Any]:
    return {
        "fieldFilter": {
            "field": {"fieldPath": field},
            "op": op,
            "value": encode_value(value),
        }
    }


def structured_query(
    collection: str,
    where: Sequence[Tuple[str, Any]] = (),
    order_by: Optional[Tuple[str, str]] = None,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    """Build a runQuery body.

    ``where`` is a list of (field, value) equality filters; a single filter
    is sent as a fieldFilter, several as an AND compositeFilter.
    """
    query: Dict[str, Any] = {"from": [{"collectionId": collection}]}

    filters = [field_filter(f, v) for f, v in where]
    if len(filters) == 1:
        query["where"] = filters[0]
    elif filters:
        query["where"] = {"compositeFilter": {"op": "AND", "filters": filters}}

    if order_by is not None:
        field, direction = order_by
        query["orderBy"] = [{"field": {"fieldPath": field}, "direction": direction}]
    if limit is not None:
        query["limit"] = limit
    return {"structuredQuery": query}


class FirestoreClient:
    """Document store client that talks to the Firestore REST API.

    Every request carries the session's ID token as a bearer credential.
    """
    def __init__(self, project_id: str, id_token: str = "", timeout: float = HTTP_TIMEOUT, session: Session | None = None):
        self.project_id = project_id
        self.timeout = timeout
        self.session: Session = session or requests.Session()
        if id_token:
            self.set_token(id_token)

    # --- helpers ---
    def set_token(self, token: str) -> None:
        self.token = token
        self.session.headers.update({"Authorization": f"Bearer {self.token}"})

    @property
    def base_url(self) -> str:
        return FIRESTORE_BASE_URL.format(project_id=self.project_id)

    def _request(self, method: str, url: str, json_payload: Dict[str, Any] | None = None) -> Any:
        try:
            resp = self.session.request(method, url, json=json_payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.debug("%s %s failed: %s", method, url, e)
            raise FetchError(str(e)) from e
        if not resp.ok:
            logger.debug("%s %s -> HTTP %s", method, url, resp.status_code)
            raise FetchError(f"firestore error: {resp.text}")
        try:
            return resp.json()
        except ValueError as e:
            raise FetchError(f"firestore error: invalid JSON response ({e})") from e

    def _get(self, path: str) -> Any:
        return self._request("GET", f"{self.base_url}/{path.lstrip('/')}")

    def _post(self, path: str, json_payload: Dict[str, Any]) -> Any:
        return self._request("POST", f"{self.base_url}{path}", json_payload)

    # --- collaborator contract ---
    def run_query(self, collection: str, where: Sequence[Tuple[str, Any]] = (),
                  order_by: Optional[Tuple[str, str]] = None, limit: Optional[int] = None) -> List[Any]:
        data = self._post(":runQuery", structured_query(collection, where, order_by, limit))
        if not isinstance(data, list):
            raise FetchError("firestore error: expected a list of query results")
        return data

    def get_document(self, collection: str, doc_id: str) -> Document:
        data = self._get(f"{collection}/{quote(doc_id, safe='')}")
        try:
            return Document.from_json(data)
        except DecodeError as e:
            raise FetchError(f"firestore error: {e}") from e

    # --- domain calls ---
    def fetch_posts(self, limit: int = FEED_PAGE_SIZE) -> List[Post]:
        results = self.run_query(
            POSTS_COLLECTION,
            where=[("deleted", False)],
            order_by=("createdAt", DESCENDING),
            limit=limit,
        )
        return decode_documents(results, decode_post)

    def fetch_post(self, post_id: str) -> Post:
        return decode_post(self.get_document(POSTS_COLLECTION, post_id))

    def fetch_replies(self, post_id: str, limit: int = REPLIES_LIMIT) -> List[Reply]:
        results = self.run_query(
            REPLIES_COLLECTION,
            where=[("postId", post_id), ("deleted", False)],
            order_by=("createdAt", ASCENDING),
            limit=limit,
        )
        return decode_documents(results, decode_reply)
