#!/usr/bin/env python3
"""
Portfolio Content Pipeline
Notion에서 블로그 글, 레시피(재료 포함), 식단 준비 페이지를 가져와
사이트 빌드에 쓰이는 정적 JSON 파일로 저장합니다.
"""

import argparse
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from portfolio_content.config import (
    BLOG_POSTS_FILE,
    INGREDIENTS_FILE,
    MEAL_PREP_FILE,
    METADATA_FILE,
    RECIPE_INGREDIENTS_FILE,
    RECIPES_FILE,
    ConfigurationError,
    PipelineConfig,
    load_config,
    load_environment,
)
from portfolio_content.markup import MarkupConverter
from portfolio_content.media import MediaLocalizer
from portfolio_content.models import (
    BlogPost,
    Ingredient,
    Metadata,
    Outcome,
    Recipe,
    RecipeIngredient,
    StandalonePage,
)
from portfolio_content.normalizers import (
    BLOG_POST_KEYS,
    RECIPE_KEYS,
    blog_post_slug,
    hero_image_url,
    normalize_blog_post,
    normalize_ingredient,
    normalize_page,
    normalize_recipe,
    normalize_recipe_ingredient,
    now_iso,
    placeholder_page,
    recipe_ingredient_ids,
    recipe_slug,
    title_text,
)
from portfolio_content.notion_service import NotionService, ServiceError
from portfolio_content.rate_limiter import RateLimiter
from portfolio_content.resolver import RelationResolver, build_resolver
from portfolio_content.utils import configure_file_logging, ensure_directories, setup_logger, write_json

logger = setup_logger(__name__)

PUBLISHED = {"property": "Status", "select": {"equals": "Published"}}

BLOG_FILTER = PUBLISHED
BLOG_SORTS = [{"property": "Date", "direction": "descending"}]

RECIPE_FILTER = {
    "and": [
        PUBLISHED,
        {"property": "Name", "title": {"is_not_empty": True}},
    ]
}
RECIPE_SORTS = [{"property": "Name", "direction": "ascending"}]


def unique_slug(slug: str, seen: Set[str]) -> str:
    """이번 배치에서 쓰이지 않은 슬러그가 될 때까지 -2, -3, ... 을 붙임"""
    candidate = slug
    suffix = 2
    while candidate in seen:
        candidate = f"{slug}-{suffix}"
        suffix += 1
    seen.add(candidate)
    return candidate


@dataclass
class PipelineResult:
    blog_posts: List[BlogPost] = field(default_factory=list)
    recipes: List[Recipe] = field(default_factory=list)
    ingredients: Optional[List[Ingredient]] = None
    recipe_ingredients: Optional[List[RecipeIngredient]] = None
    page: Optional[StandalonePage] = None
    metadata: Optional[Metadata] = None
    warnings: List[str] = field(default_factory=list)


class ContentPipeline:
    """Notion -> JSON 순차 실행. 필수 설정 누락만 치명적 오류."""

    def __init__(self, config: PipelineConfig, service: Optional[NotionService] = None,
                 localizer: Optional[MediaLocalizer] = None,
                 converter: Optional[MarkupConverter] = None):
        config.validate_required()
        self.config = config

        limiter = RateLimiter(config.request_interval_ms)
        self.service = service or NotionService(config.notion_api_key, limiter=limiter)
        self.localizer = localizer or MediaLocalizer(
            config.images_dir,
            url_prefix=config.images_url_prefix,
            limiter=limiter,
            interval_ms=config.image_interval_ms,
        )
        self.converter = converter or MarkupConverter()
        self.warnings: List[str] = []

    def _warn(self, reason: str) -> None:
        self.warnings.append(reason)

    # --- 복구 가능한 단계 ---

    def fetch_collection(self, label: str, collection_id: str, filter_condition: Optional[Dict] = None,
                         sorts: Optional[List[Dict]] = None) -> Outcome[List[Dict]]:
        try:
            return Outcome.success(self.service.query_collection(collection_id, filter_condition, sorts))
        except ServiceError as e:
            logger.error(f"Error fetching {label}: {e}")
            reason = f"{label} query failed: {e}"
            self._warn(reason)
            return Outcome.empty([], reason)

    def render_content(self, record_id: str, image_prefix: str) -> Outcome[str]:
        """이미지를 로컬화한 본문 마크다운. 실패 시 빈 문자열."""
        try:
            blocks = self.service.fetch_content_blocks(record_id)
        except ServiceError as e:
            logger.error(f"Error fetching content for page {record_id}: {e}")
            reason = f"content of {record_id} could not be fetched: {e}"
            self._warn(reason)
            return Outcome.empty("", reason)

        try:
            markdown = self.converter.convert(blocks)
        except Exception as e:
            logger.error(f"Error converting content for page {record_id}: {e}", exc_info=True)
            reason = f"content of {record_id} could not be converted: {e}"
            self._warn(reason)
            return Outcome.empty("", reason)

        localized = self.localizer.localize(markdown, image_prefix)
        return Outcome.success(localized.text)

    # --- 컬렉션 ---

    def fetch_reference_tables(self) -> Tuple[Optional[List[Ingredient]], Optional[List[RecipeIngredient]]]:
        if not self.config.has_reference_collections:
            logger.info("Ingredient databases not configured; skipping lookup tables")
            return None, None

        raw_ingredients = self.fetch_collection("ingredients", self.config.ingredient_database_id)
        raw_junctions = self.fetch_collection("recipe ingredients", self.config.recipe_ingredient_database_id)

        ingredients = self._normalize_all(raw_ingredients.value, normalize_ingredient, "ingredient")
        junctions = self._normalize_all(raw_junctions.value, normalize_recipe_ingredient, "recipe ingredient")
        logger.info(f"Loaded {len(ingredients)} ingredients and {len(junctions)} recipe ingredient entries")
        return ingredients, junctions

    def _normalize_all(self, records: List[Dict], normalize, label: str) -> List:
        items = []
        for record in records:
            try:
                items.append(normalize(record))
            except (KeyError, ValueError) as e:
                logger.error(f"Skipping malformed {label} record {record.get('id', '?')}: {e}")
                self._warn(f"{label} {record.get('id', '?')} skipped: {e}")
        return items

    def fetch_blog_posts(self) -> List[BlogPost]:
        logger.info("Fetching blog posts...")
        records = self.fetch_collection("blog posts", self.config.blog_database_id,
                                        BLOG_FILTER, BLOG_SORTS).value

        posts: List[BlogPost] = []
        seen_slugs: Set[str] = set()
        for record in records:
            props = record.get('properties', {})
            title = title_text(props, BLOG_POST_KEYS.title)
            slug = unique_slug(blog_post_slug(record), seen_slugs)

            logger.info(f"Processing blog post: {title}")
            content = self.render_content(record['id'], slug).value
            logger.info(f"  Content length: {len(content)} characters")

            try:
                posts.append(normalize_blog_post(record, content, slug=slug))
            except (KeyError, ValueError) as e:
                logger.error(f"Skipping malformed blog post {record.get('id', '?')}: {e}")
                self._warn(f"blog post {record.get('id', '?')} skipped: {e}")

        logger.info(f"Fetched {len(posts)} blog posts")
        return posts

    def fetch_recipes(self, resolver: RelationResolver) -> List[Recipe]:
        logger.info("Fetching recipes...")
        records = self.fetch_collection("recipes", self.config.recipe_database_id,
                                        RECIPE_FILTER, RECIPE_SORTS).value

        recipes: List[Recipe] = []
        for record in records:
            slug = recipe_slug(record)
            logger.info(f"Processing recipe: {title_text(record.get('properties', {}), RECIPE_KEYS.name)}")

            content = self.render_content(record['id'], slug).value

            ingredients = resolver.resolve(recipe_ingredient_ids(record))
            if not ingredients.ok:
                self._warn(f"recipe {slug}: {ingredients.reason}")

            hero_img = self.localizer.localize_hero(hero_image_url(record), slug)

            try:
                recipes.append(normalize_recipe(record, content, ingredients.value, hero_img))
            except (KeyError, ValueError) as e:
                logger.error(f"Skipping malformed recipe {record.get('id', '?')}: {e}")
                self._warn(f"recipe {record.get('id', '?')} skipped: {e}")

        logger.info(f"Fetched {len(recipes)} recipes")
        return recipes

    def fetch_page(self) -> Optional[StandalonePage]:
        """식단 준비 페이지. 설정되지 않았거나 가져오지 못하면 None."""
        page_id = self.config.meal_prep_page_id
        if not page_id:
            logger.info("MEAL_PREP_PAGE_ID not set; writing placeholder page")
            return None

        try:
            record = self.service.retrieve_record(page_id)
        except ServiceError as e:
            logger.error(f"Error fetching meal prep page: {e}")
            self._warn(f"meal prep page could not be retrieved: {e}")
            return None
        if record is None:
            self._warn(f"meal prep page {page_id} not found")
            return None

        content = self.render_content(page_id, "meal-prep").value
        return normalize_page(record, content)

    # --- 출력 ---

    def build_metadata(self, result: PipelineResult) -> Metadata:
        return Metadata(
            last_fetched=now_iso(),
            blog_post_count=len(result.blog_posts),
            recipe_count=len(result.recipes),
            ingredient_count=len(result.ingredients or []),
            recipe_ingredient_count=len(result.recipe_ingredients or []),
            total_items=len(result.blog_posts) + len(result.recipes),
            has_meal_prep=result.page is not None and bool(result.page.content.strip()),
            has_ingredients=result.ingredients is not None,
        )

    def write_outputs(self, result: PipelineResult) -> None:
        data_dir = self.config.data_dir

        write_json(data_dir / BLOG_POSTS_FILE, [post.to_json_dict() for post in result.blog_posts])
        logger.info(f"✓ Saved {len(result.blog_posts)} blog posts to {BLOG_POSTS_FILE}")

        write_json(data_dir / RECIPES_FILE, [recipe.to_json_dict() for recipe in result.recipes])
        logger.info(f"✓ Saved {len(result.recipes)} recipes to {RECIPES_FILE}")

        if result.ingredients is not None:
            write_json(data_dir / INGREDIENTS_FILE, [item.to_json_dict() for item in result.ingredients])
            logger.info(f"✓ Saved {len(result.ingredients)} ingredients to {INGREDIENTS_FILE}")

        if result.recipe_ingredients is not None:
            write_json(data_dir / RECIPE_INGREDIENTS_FILE,
                       [item.to_json_dict() for item in result.recipe_ingredients])
            logger.info(f"✓ Saved {len(result.recipe_ingredients)} entries to {RECIPE_INGREDIENTS_FILE}")

        write_json(data_dir / MEAL_PREP_FILE, (result.page or placeholder_page()).to_json_dict())
        logger.info(f"✓ Saved meal prep page to {MEAL_PREP_FILE}")

        write_json(data_dir / METADATA_FILE, result.metadata.to_json_dict())
        logger.info(f"✓ Saved metadata to {METADATA_FILE}")

    def run(self) -> PipelineResult:
        logger.info("=== Notion Content Fetch Started ===")
        ensure_directories(self.config.data_dir, self.config.images_dir)
        self.warnings = []
        result = PipelineResult()

        logger.info("[1/6] Loading ingredient lookup tables...")
        result.ingredients, result.recipe_ingredients = self.fetch_reference_tables()

        logger.info("[2/6] Fetching blog posts...")
        result.blog_posts = self.fetch_blog_posts()

        logger.info("[3/6] Fetching recipes...")
        resolver = build_resolver(self.service, result.ingredients, result.recipe_ingredients)
        result.recipes = self.fetch_recipes(resolver)

        logger.info("[4/6] Fetching meal prep page...")
        result.page = self.fetch_page()

        logger.info("[5/6] Building metadata...")
        result.metadata = self.build_metadata(result)

        logger.info("[6/6] Writing output files...")
        self.write_outputs(result)

        result.warnings = list(self.warnings)
        if result.warnings:
            logger.warning(f"Completed with {len(result.warnings)} recovered errors")
        logger.info("=== Content fetch completed ===")
        return result


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description='Fetch blog posts and recipes from Notion into static JSON files'
    )
    parser.add_argument('--env-file', help='.env file to load (default: .env.local, then .env)')
    parser.add_argument('--data-dir', help='Output directory for JSON files')
    parser.add_argument('--images-dir', help='Output directory for downloaded images')
    parser.add_argument('--request-interval-ms', type=int,
                        help='Minimum delay between Notion API calls')
    args = parser.parse_args(argv)

    load_environment(args.env_file)
    config = load_config(
        data_dir=args.data_dir,
        images_dir=args.images_dir,
        request_interval_ms=args.request_interval_ms,
    )
    # .env 로드 이후라야 CONTENT_LOG_DIR이 반영됨
    configure_file_logging(config.log_dir)

    missing = config.missing_required()
    for name in missing:
        logger.error(f"ERROR: {name} environment variable is not set")
    if missing:
        return 1

    logger.info("Environment variables loaded:")
    logger.info("- NOTION_API_KEY: ✓ Set")
    logger.info(f"- BLOG_DATABASE_ID: {config.blog_database_id}")
    logger.info(f"- RECIPE_DATABASE_ID: {config.recipe_database_id}")
    logger.info(f"- INGREDIENT_DATABASE_ID: {config.ingredient_database_id or '✗ Not set'}")
    logger.info(f"- RECIPE_INGREDIENT_DATABASE_ID: {config.recipe_ingredient_database_id or '✗ Not set'}")
    logger.info(f"- MEAL_PREP_PAGE_ID: {config.meal_prep_page_id or '✗ Not set'}")

    try:
        ContentPipeline(config).run()
    except ConfigurationError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
