"""
Configuration Module
환경 변수 로드, 출력 경로 결정, 상수 정의
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# 1. 경로 설정
CURRENT_DIR = Path(__file__).resolve().parent

# 프로젝트 루트: PORTFOLIO_ROOT 우선, 없으면 현재 작업 디렉토리 (사이트 저장소)
PROJECT_ROOT = Path(os.getenv("PORTFOLIO_ROOT", os.getcwd()))

DEFAULT_DATA_DIR = PROJECT_ROOT / "src" / "data" / "notion"
DEFAULT_IMAGES_DIR = PROJECT_ROOT / "public" / "images" / "notion"
DEFAULT_IMAGES_URL_PREFIX = "/images/notion"

# 2. Notion API
NOTION_API_BASE = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"

# Notion은 초당 약 3회 요청 허용
REQUEST_INTERVAL_MS = 350
IMAGE_INTERVAL_MS = 100
REQUEST_TIMEOUT = 30

# 출력 파일명
BLOG_POSTS_FILE = "blog-posts.json"
RECIPES_FILE = "recipes.json"
INGREDIENTS_FILE = "ingredients.json"
RECIPE_INGREDIENTS_FILE = "recipe-ingredients.json"
MEAL_PREP_FILE = "meal-prep.json"
METADATA_FILE = "metadata.json"


class ConfigurationError(Exception):
    """필수 설정 누락"""

    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__(f"Missing required environment variables: {', '.join(missing)}")


def get_env(key: str, default: str = None) -> Optional[str]:
    """환경 변수 가져오기 (빈 값은 미설정으로 취급)"""
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    return value.strip()


def load_environment(env_file: Optional[str] = None) -> None:
    """
    .env 파일을 프로세스 환경 변수로 로드

    Args:
        env_file: 로드할 파일. 생략하면 프로젝트 루트의 `.env.local`, `.env` 순으로
            시도. 이미 설정된 환경 변수는 덮어쓰지 않음.
    """
    if env_file:
        load_dotenv(env_file, override=False)
        return

    for name in (".env.local", ".env"):
        env_path = PROJECT_ROOT / name
        if env_path.exists():
            load_dotenv(env_path, override=False)


class PipelineConfig(BaseModel):
    """실행 1회에 필요한 모든 설정 (실행 시작 시 한 번 생성)"""

    notion_api_key: Optional[str] = None
    blog_database_id: Optional[str] = None
    recipe_database_id: Optional[str] = None
    ingredient_database_id: Optional[str] = None
    recipe_ingredient_database_id: Optional[str] = None
    meal_prep_page_id: Optional[str] = None

    data_dir: Path = DEFAULT_DATA_DIR
    images_dir: Path = DEFAULT_IMAGES_DIR
    images_url_prefix: str = DEFAULT_IMAGES_URL_PREFIX
    log_dir: Optional[Path] = None

    request_interval_ms: int = REQUEST_INTERVAL_MS
    image_interval_ms: int = IMAGE_INTERVAL_MS

    def missing_required(self) -> List[str]:
        required = {
            "NOTION_API_KEY": self.notion_api_key,
            "BLOG_DATABASE_ID": self.blog_database_id,
            "RECIPE_DATABASE_ID": self.recipe_database_id,
        }
        return [name for name, value in required.items() if not value]

    def validate_required(self) -> None:
        missing = self.missing_required()
        if missing:
            raise ConfigurationError(missing)

    @property
    def has_reference_collections(self) -> bool:
        """재료 DB와 레시피-재료 DB가 모두 설정됨"""
        return bool(self.ingredient_database_id and self.recipe_ingredient_database_id)


def load_config(**overrides) -> PipelineConfig:
    """
    환경 변수로 PipelineConfig 생성

    키워드 인자(CLI 옵션 등)가 환경 변수보다 우선하며, None 값은 무시합니다.
    """
    log_dir = get_env("CONTENT_LOG_DIR")
    values = {
        "notion_api_key": get_env("NOTION_API_KEY"),
        "blog_database_id": get_env("BLOG_DATABASE_ID"),
        "recipe_database_id": get_env("RECIPE_DATABASE_ID"),
        "ingredient_database_id": get_env("INGREDIENT_DATABASE_ID"),
        "recipe_ingredient_database_id": get_env("RECIPE_INGREDIENT_DATABASE_ID"),
        "meal_prep_page_id": get_env("MEAL_PREP_PAGE_ID"),
        "data_dir": Path(get_env("CONTENT_DATA_DIR", str(DEFAULT_DATA_DIR))),
        "images_dir": Path(get_env("CONTENT_IMAGES_DIR", str(DEFAULT_IMAGES_DIR))),
        "images_url_prefix": get_env("CONTENT_IMAGES_URL_PREFIX", DEFAULT_IMAGES_URL_PREFIX),
        "log_dir": Path(log_dir) if log_dir else None,
        "request_interval_ms": int(get_env("NOTION_REQUEST_INTERVAL_MS", str(REQUEST_INTERVAL_MS))),
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return PipelineConfig(**values)
