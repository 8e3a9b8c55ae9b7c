"""
Notion Service
Notion API 읽기 전용 접근: 데이터베이스 조회, 페이지 조회,
블록 자식(페이지 본문) 조회
"""

from typing import Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from portfolio_content.config import NOTION_API_BASE, NOTION_VERSION, REQUEST_TIMEOUT
from portfolio_content.rate_limiter import RateLimiter
from portfolio_content.utils import setup_logger

logger = setup_logger(__name__)

PAGE_SIZE = 100

# 자식이 별도 페이지인 블록 (본문에 포함하지 않음)
NON_DESCENDING_TYPES = {"child_page", "child_database"}


class ServiceError(Exception):
    """Notion API 호출 실패 (네트워크, 인증, 검증, 없음)"""

    def __init__(self, message: str, status: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.code = code

    @property
    def not_found(self) -> bool:
        return self.status == 404 or self.code == "object_not_found"


class NotionService:
    """Notion API 어댑터 (읽기 전용)"""

    def __init__(self, api_key: str, limiter: Optional[RateLimiter] = None,
                 session: Optional[requests.Session] = None):
        if not api_key:
            raise ValueError("NOTION_API_KEY is not set.")

        self.limiter = limiter or RateLimiter()
        self.session = session or self._build_session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Notion-Version": NOTION_VERSION,
            "Content-Type": "application/json"
        })

    @staticmethod
    def _build_session() -> requests.Session:
        # Requests Session with Retry (rate limit and transient server errors)
        session = requests.Session()
        retries = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "POST"]
        )
        session.mount("https://", HTTPAdapter(max_retries=retries))
        return session

    def _request(self, method: str, path: str, data: Optional[Dict] = None,
                 params: Optional[Dict] = None) -> Dict:
        """API 요청 헬퍼 (모든 호출에 속도 제한 적용)"""
        self.limiter.throttle()
        url = f"{NOTION_API_BASE}{path}"
        try:
            response = self.session.request(method, url, json=data, params=params,
                                            timeout=REQUEST_TIMEOUT)
        except requests.exceptions.RequestException as e:
            raise ServiceError(f"Notion API request failed ({method} {path}): {e}") from e

        if not response.ok:
            code = None
            message = response.text
            try:
                body = response.json()
                code = body.get("code")
                message = body.get("message", message)
            except ValueError:
                pass
            raise ServiceError(
                f"Notion API error {response.status_code} ({method} {path}): {message}",
                status=response.status_code,
                code=code,
            )
        return response.json()

    def query_collection(self, collection_id: str, filter_condition: Optional[Dict] = None,
                         sorts: Optional[List[Dict]] = None) -> List[Dict]:
        """데이터베이스 전체 조회 (페이지네이션 커서 추적)"""
        payload: Dict = {"page_size": PAGE_SIZE}
        if filter_condition:
            payload["filter"] = filter_condition
        if sorts:
            payload["sorts"] = sorts

        results: List[Dict] = []
        while True:
            res = self._request("POST", f"/databases/{collection_id}/query", payload)
            results.extend(res.get("results", []))
            if not res.get("has_more") or not res.get("next_cursor"):
                break
            payload["start_cursor"] = res["next_cursor"]
        return results

    def retrieve_record(self, record_id: str) -> Optional[Dict]:
        """페이지 하나 조회. 존재하지 않으면 None."""
        try:
            return self._request("GET", f"/pages/{record_id}")
        except ServiceError as e:
            if e.not_found:
                logger.warning(f"Record not found: {record_id}")
                return None
            raise

    def fetch_content_blocks(self, record_id: str) -> List[Dict]:
        """
        페이지의 블록 트리 조회

        중첩 블록의 자식은 block["children"]에 붙입니다.
        """
        blocks = self._list_children(record_id)
        for block in blocks:
            if block.get("has_children") and block.get("type") not in NON_DESCENDING_TYPES:
                block["children"] = self.fetch_content_blocks(block["id"])
        return blocks

    def _list_children(self, block_id: str) -> List[Dict]:
        params: Dict = {"page_size": PAGE_SIZE}
        results: List[Dict] = []
        while True:
            res = self._request("GET", f"/blocks/{block_id}/children", params=params)
            results.extend(res.get("results", []))
            if not res.get("has_more") or not res.get("next_cursor"):
                break
            params["start_cursor"] = res["next_cursor"]
        return results
