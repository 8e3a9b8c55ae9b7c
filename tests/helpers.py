"""
Test helpers: Notion-shaped payload builders and fake collaborators.
"""

from typing import Dict, List, Optional

import requests

from portfolio_content.notion_service import ServiceError


# --- property builders ---

def rt(text: str, **annotations) -> Dict:
    item = {"type": "text", "text": {"content": text, "link": None}, "plain_text": text,
            "annotations": annotations, "href": None}
    return item


def title_prop(text: str) -> Dict:
    return {"type": "title", "title": [rt(text)] if text else []}


def text_prop(text: str) -> Dict:
    return {"type": "rich_text", "rich_text": [rt(text)] if text else []}


def select_prop(name: Optional[str]) -> Dict:
    return {"type": "select", "select": {"name": name} if name else None}


def multi_prop(*names: str) -> Dict:
    return {"type": "multi_select", "multi_select": [{"name": n} for n in names]}


def number_prop(value) -> Dict:
    return {"type": "number", "number": value}


def checkbox_prop(value: bool) -> Dict:
    return {"type": "checkbox", "checkbox": value}


def date_prop(start: Optional[str]) -> Dict:
    return {"type": "date", "date": {"start": start} if start else None}


def relation_prop(*ids: str) -> Dict:
    return {"type": "relation", "relation": [{"id": i} for i in ids]}


def formula_prop(value: Optional[str]) -> Dict:
    return {"type": "formula", "formula": {"type": "string", "string": value}}


def files_prop(url: Optional[str]) -> Dict:
    files = [{"name": "hero", "type": "file", "file": {"url": url}}] if url else []
    return {"type": "files", "files": files}


def page(page_id: str, properties: Dict, edited: str = "2024-02-01T10:00:00.000Z") -> Dict:
    return {"object": "page", "id": page_id, "last_edited_time": edited, "properties": properties}


# --- block builders ---

def block(btype: str, text: str = "", children: Optional[List[Dict]] = None, **extra) -> Dict:
    data = {"rich_text": [rt(text)] if text else []}
    data.update(extra)
    result = {"object": "block", "id": f"{btype}-{text[:8]}", "type": btype, btype: data,
              "has_children": bool(children)}
    if children:
        result["children"] = children
    return result


def image_block(url: str, caption: str = "") -> Dict:
    return {"object": "block", "id": "img", "type": "image", "has_children": False,
            "image": {"type": "external", "external": {"url": url},
                      "caption": [rt(caption)] if caption else []}}


# --- fakes ---

class FakeService:
    """In-memory stand-in for NotionService."""

    def __init__(self, collections: Optional[Dict] = None, records: Optional[Dict] = None,
                 blocks: Optional[Dict] = None):
        self.collections = collections or {}
        self.records = records or {}
        self.blocks = blocks or {}
        self.queries = []
        self.retrieved = []

    def query_collection(self, collection_id, filter_condition=None, sorts=None):
        self.queries.append((collection_id, filter_condition, sorts))
        value = self.collections.get(collection_id, [])
        if isinstance(value, Exception):
            raise value
        return value

    def retrieve_record(self, record_id):
        self.retrieved.append(record_id)
        value = self.records.get(record_id)
        if isinstance(value, Exception):
            raise value
        return value

    def fetch_content_blocks(self, record_id):
        value = self.blocks.get(record_id, [])
        if isinstance(value, Exception):
            raise value
        return value


def service_error(status: int = 400, code: str = "validation_error") -> ServiceError:
    return ServiceError(f"Notion API error {status}", status=status, code=code)


class FakeDownload:
    def __init__(self, status_code: int, body: bytes = b"img"):
        self.status_code = status_code
        self.body = body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def iter_content(self, chunk_size=1):
        yield self.body


class FakeImageSession:
    """Serves image downloads: URL -> status code, or an exception to raise."""

    def __init__(self, responses: Optional[Dict] = None, default_status: int = 200):
        self.responses = responses or {}
        self.default_status = default_status
        self.requested = []

    def get(self, url, stream=False, timeout=None):
        self.requested.append(url)
        outcome = self.responses.get(url, self.default_status)
        if isinstance(outcome, Exception):
            raise outcome
        return FakeDownload(outcome, body=url.encode())


class FakeApiResponse:
    def __init__(self, status_code: int = 200, payload: Optional[Dict] = None):
        self.status_code = status_code
        self._payload = payload or {}

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    @property
    def text(self):
        return str(self._payload)

    def json(self):
        return self._payload


class FakeApiSession:
    """Records Notion API requests and replies from a queue of responses."""

    def __init__(self, responses: List):
        self.headers = {}
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, json=None, params=None, timeout=None):
        self.calls.append({"method": method, "url": url, "json": dict(json) if json else None,
                           "params": dict(params) if params else None})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def no_sleep_limiter():
    from portfolio_content.rate_limiter import RateLimiter

    sleeps = []
    limiter = RateLimiter(interval_ms=350, sleep=sleeps.append)
    limiter.sleeps = sleeps
    return limiter


CONNECTION_ERROR = requests.exceptions.ConnectionError("connection refused")
