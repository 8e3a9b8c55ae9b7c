"""
Portfolio Content Module

포트폴리오 사이트 빌드용 Notion 콘텐츠 수집기:
- Notion Service: DB 조회, 페이지/블록 조회 (속도 제한)
- Markup Converter: Notion 블록 -> 마크다운
- Media Localizer: 이미지 다운로드 후 로컬 경로로 교체
- Relation Resolver: RecipeIngredient 연결 DB를 통한 레시피 재료 해석
- Content Pipeline: blog-posts.json, recipes.json, meal-prep.json 등 저장
"""

# 공개 구성 요소
from portfolio_content.content_pipeline import ContentPipeline
from portfolio_content.markup import MarkupConverter
from portfolio_content.media import MediaLocalizer
from portfolio_content.notion_service import NotionService
from portfolio_content.rate_limiter import RateLimiter
from portfolio_content.resolver import RelationResolver

__all__ = [
    "ContentPipeline",
    "MarkupConverter",
    "MediaLocalizer",
    "NotionService",
    "RateLimiter",
    "RelationResolver",
    "__version__",
]

__version__ = "1.0.0"
