"""
Media Localizer
본문(및 레시피 대표 이미지)이 참조하는 이미지를 사이트 public 디렉토리에 내려받고
참조를 로컬 경로로 바꿉니다.
"""

import posixpath
import re
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import urlparse

import requests

from portfolio_content.config import (
    DEFAULT_IMAGES_URL_PREFIX,
    IMAGE_INTERVAL_MS,
    REQUEST_TIMEOUT,
)
from portfolio_content.models import LocalizedContent
from portfolio_content.rate_limiter import RateLimiter
from portfolio_content.utils import setup_logger

logger = setup_logger(__name__)

# ![alt](https://...)
IMAGE_RE = re.compile(r'!\[.*?\]\((https://.*?)\)')

DEFAULT_EXTENSION = ".png"
CHUNK_SIZE = 64 * 1024


class MediaDownloadError(Exception):
    """이미지를 내려받지 못함"""


def image_extension(url: str) -> str:
    """
    URL 경로의 확장자 (쿼리 문자열 무시). 없으면 '.png'.

    Raises:
        ValueError: urlparse가 해석하지 못하는 URL
    """
    return posixpath.splitext(urlparse(url).path)[1] or DEFAULT_EXTENSION


def _discard(filepath: Path) -> None:
    """실패한 다운로드의 잔여 파일 삭제. 삭제 실패는 로그만 남김."""
    try:
        filepath.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove partial file {filepath.name}: {e}")


class MediaLocalizer:
    """순차 이미지 다운로더 (한 번에 한 파일)"""

    def __init__(self, images_dir: Path, url_prefix: str = DEFAULT_IMAGES_URL_PREFIX,
                 limiter: Optional[RateLimiter] = None, session: Optional[requests.Session] = None,
                 interval_ms: int = IMAGE_INTERVAL_MS):
        self.images_dir = Path(images_dir)
        self.url_prefix = url_prefix.rstrip('/')
        self.limiter = limiter or RateLimiter()
        self.session = session or requests.Session()
        self.interval_ms = interval_ms

    def download_image(self, url: str, filename: str) -> str:
        """
        `url`을 이미지 디렉토리에 저장

        Returns:
            로컬 사본의 공개 경로 (예: /images/notion/slug-0.png)

        Raises:
            MediaDownloadError: 200이 아닌 응답, 네트워크 오류, 잘못된 URL,
                파일 쓰기 오류. 부분 파일은 남기지 않음.
        """
        filepath = self.images_dir / filename
        try:
            with self.session.get(url, stream=True, timeout=REQUEST_TIMEOUT) as response:
                if response.status_code != 200:
                    raise MediaDownloadError(f"Failed to download image: {response.status_code}")
                with open(filepath, 'wb') as f:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
        except requests.exceptions.RequestException as e:
            _discard(filepath)
            raise MediaDownloadError(f"Failed to download image: {e}") from e
        except (ValueError, OSError) as e:
            # 잘못된 URL, 너무 긴 파일명, 디스크 오류 등
            _discard(filepath)
            raise MediaDownloadError(f"Failed to save image {filename}: {e}") from e

        return f"{self.url_prefix}/{filename}"

    def localize(self, text: str, prefix: str) -> LocalizedContent:
        """
        `text`가 참조하는 원격 이미지를 모두 내려받기

        성공한 파일만 처음 등장한 순서대로 {prefix}-0, {prefix}-1, ... 번호를 받고,
        실패한 참조는 원격 URL을 그대로 가리킴.
        """
        image_map: Dict[str, str] = {}
        if not text:
            return LocalizedContent(text=text or "", image_map=image_map)

        failed = set()
        image_index = 0
        for match in IMAGE_RE.finditer(text):
            image_url = match.group(1)
            if image_url in image_map or image_url in failed:
                continue

            try:
                filename = f"{prefix}-{image_index}{image_extension(image_url)}"
                image_map[image_url] = self.download_image(image_url, filename)
                image_index += 1
            except (MediaDownloadError, ValueError) as e:
                logger.error(f"Failed to download image: {image_url} ({e})")
                failed.add(image_url)
            self.limiter.wait(self.interval_ms)

        def _rewrite(match: re.Match) -> str:
            local_path = image_map.get(match.group(1))
            if local_path is None:
                return match.group(0)
            start, end = match.span(1)
            offset = match.start(0)
            whole = match.group(0)
            return whole[:start - offset] + local_path + whole[end - offset:]

        text = IMAGE_RE.sub(_rewrite, text)
        return LocalizedContent(text=text, image_map=image_map)

    def localize_hero(self, url: Optional[str], slug: str) -> Optional[str]:
        """대표 이미지를 {slug}-hero{ext}로 저장. 없거나 실패하면 None."""
        if not url:
            return None

        try:
            filename = f"{slug}-hero{image_extension(url)}"
            local_path = self.download_image(url, filename)
        except (MediaDownloadError, ValueError) as e:
            logger.error(f"Failed to download hero image for {slug}: {e}")
            return None
        finally:
            self.limiter.wait(self.interval_ms)
        return local_path
