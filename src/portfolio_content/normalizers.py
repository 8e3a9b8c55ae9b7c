"""
Entity Normalizers
Notion 페이지 속성을 사이트의 고정 JSON 스키마로 변환하고,
없는 필드에는 정해진 기본값을 채웁니다.
"""

import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from portfolio_content.models import (
    BlogPost,
    Ingredient,
    IngredientDisplay,
    Recipe,
    RecipeIngredient,
    StandalonePage,
)

WORDS_PER_MINUTE = 200
EXCERPT_LENGTH = 160

UNKNOWN_INGREDIENT = "Unknown Ingredient"
DEFAULT_PAGE_TITLE = "Meal Prep"
DEFAULT_PAGE_SLUG = "meal-prep"

_NON_ALNUM_RE = re.compile(r'[^a-z0-9]+')
_WORD_RE = re.compile(r'\S+')


@dataclass(frozen=True)
class BlogPostKeys:
    title: str = "Title"
    slug: str = "Slug"
    date: str = "Date"
    excerpt: str = "Excerpt"
    author: str = "Author"
    category: str = "Category"
    tags: str = "Tags"
    featured: str = "Featured"
    read_time: str = "ReadTime"


@dataclass(frozen=True)
class RecipeKeys:
    name: str = "Name"
    description: str = "Description"
    prep_time: str = "PrepTime"
    cook_time: str = "CookTime"
    oven_temp: str = "OvenTemp (F)"
    category: str = "Category"
    difficulty: str = "Difficulty"
    servings: str = "Servings"
    tags: str = "Tags"
    favorite: str = "Favorite"
    ingredients: str = "RecipeIngredient"
    hero_img: str = "HeroImg"


@dataclass(frozen=True)
class IngredientKeys:
    name: str = "Name"
    description: str = "Description"
    brand: str = "Brand"
    in_pantry: str = "In Pantry"


@dataclass(frozen=True)
class RecipeIngredientKeys:
    recipe: str = "Recipe"
    ingredient: str = "Ingredient Database"
    quantity: str = "Quantity"
    unit: str = "Unit"
    purpose: str = "Purpose"
    instructions: str = "Instructions"
    optional: str = "Optional"
    display: str = "Display"


@dataclass(frozen=True)
class PageKeys:
    excerpt: str = "Excerpt"


BLOG_POST_KEYS = BlogPostKeys()
RECIPE_KEYS = RecipeKeys()
INGREDIENT_KEYS = IngredientKeys()
RECIPE_INGREDIENT_KEYS = RecipeIngredientKeys()
PAGE_KEYS = PageKeys()


# --- 텍스트 헬퍼 ---

def slugify(text: str) -> str:
    """소문자화, 영숫자가 아닌 문자열은 '-' 하나로, 앞뒤 '-' 제거"""
    return _NON_ALNUM_RE.sub('-', (text or '').lower()).strip('-')


def estimate_read_time(text: str) -> int:
    """분당 200단어 기준 읽기 시간(분). 최소 1."""
    words = len(_WORD_RE.findall(text or ''))
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def derive_excerpt(markdown: str, length: int = EXCERPT_LENGTH) -> str:
    """마크다운의 첫 본문 문단 (서식 제거 후 길이 제한)"""
    for paragraph in re.split(r'\n\s*\n', markdown or ''):
        paragraph = paragraph.strip()
        if not paragraph or paragraph.startswith(('#', '```', '|', '---', '![')):
            continue
        text = re.sub(r'!\[[^\]]*\]\([^)]*\)', '', paragraph)
        text = re.sub(r'\[([^\]]*)\]\([^)]*\)', r'\1', text)
        text = re.sub(r'^\s*(?:[-*>]|\d+\.)\s+', '', text, flags=re.M)
        text = re.sub(r'[*_`~]', '', text)
        text = re.sub(r'\s+', ' ', text).strip()
        if not text:
            continue
        if len(text) <= length:
            return text
        return text[:length].rsplit(' ', 1)[0].rstrip(' ,.;:') + '...'
    return ""


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


# --- 속성 추출 ---

def plain_text(rich_text: Optional[List[Dict]]) -> str:
    if not rich_text or not isinstance(rich_text, list):
        return ""
    return "".join(rt.get('plain_text', '') or '' for rt in rich_text)


def _prop(props: Dict, key: str) -> Dict:
    value = props.get(key) if props else None
    return value if isinstance(value, dict) else {}


def title_text(props: Dict, key: str) -> str:
    return plain_text(_prop(props, key).get('title'))


def rich_text(props: Dict, key: str) -> str:
    return plain_text(_prop(props, key).get('rich_text'))


def select_name(props: Dict, key: str, default: Optional[str] = None) -> Optional[str]:
    prop = _prop(props, key)
    option = prop.get('select') or prop.get('status') or {}
    return option.get('name') or default


def multi_select_names(props: Dict, key: str) -> List[str]:
    return [opt.get('name', '') for opt in _prop(props, key).get('multi_select') or [] if opt.get('name')]


def checkbox(props: Dict, key: str) -> bool:
    return bool(_prop(props, key).get('checkbox', False))


def number(props: Dict, key: str, default: Any = None) -> Any:
    value = _prop(props, key).get('number')
    return default if value is None else value


def relation_ids(props: Dict, key: str) -> List[str]:
    """연결된 페이지 ID 목록 (관계 순서 유지)"""
    return [item['id'] for item in _prop(props, key).get('relation') or [] if item.get('id')]


def single_relation(props: Dict, key: str) -> Optional[str]:
    ids = relation_ids(props, key)
    return ids[0] if ids else None


def date_start(props: Dict, key: str) -> Optional[str]:
    return (_prop(props, key).get('date') or {}).get('start')


def formula_text(props: Dict, key: str) -> Optional[str]:
    """수식 속성(또는 rich text 속성)의 문자열 값"""
    prop = _prop(props, key)
    if 'formula' in prop:
        formula = prop['formula'] or {}
        value = formula.get(formula.get('type', 'string'))
        if value is None or value == '':
            return None
        return str(value)
    return rich_text(props, key) or None


def first_file_url(props: Dict, key: str) -> Optional[str]:
    """파일 및 미디어 속성의 첫 파일 URL"""
    for item in _prop(props, key).get('files') or []:
        ftype = item.get('type')
        url = (item.get(ftype) or {}).get('url') if ftype else None
        if url:
            return url
    return None


def find_title(props: Dict) -> str:
    """title 타입 속성의 텍스트 (속성 이름 무관)"""
    for prop in (props or {}).values():
        if isinstance(prop, dict) and prop.get('type') == 'title':
            return plain_text(prop.get('title'))
    return ""


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, (int, float)) and value > 0:
        return max(1, math.ceil(value))
    return None


# --- 엔티티 ---

def blog_post_slug(record: Dict, keys: BlogPostKeys = BLOG_POST_KEYS) -> str:
    """
    슬러그 결정: Slug 속성 > 제목 > 페이지 ID

    Slug 속성도 slugify를 거칩니다. 이미 URL-safe한 값(예: my-post)은 그대로 남고,
    "My Post!" 같은 값은 my-post로 정규화되어 URL에 쓸 수 있는 형태가 보장됩니다.
    """
    props = record.get('properties', {})
    return (slugify(rich_text(props, keys.slug)) or slugify(title_text(props, keys.title))
            or slugify(record.get('id', '')))


def normalize_blog_post(record: Dict, content: str, keys: BlogPostKeys = BLOG_POST_KEYS,
                        slug: Optional[str] = None) -> BlogPost:
    """`slug`가 주어지면 그대로 사용 (파이프라인은 배치 내 고유 슬러그를 전달)"""
    props = record.get('properties', {})
    title = title_text(props, keys.title)
    slug = slug or blog_post_slug(record, keys)
    read_time = _positive_int(number(props, keys.read_time)) or estimate_read_time(content)

    return BlogPost(
        id=record['id'],
        title=title,
        slug=slug,
        date=date_start(props, keys.date) or now_iso(),
        excerpt=rich_text(props, keys.excerpt),
        author=rich_text(props, keys.author) or "Anonymous",
        category=select_name(props, keys.category, "Uncategorized"),
        tags=multi_select_names(props, keys.tags),
        featured=checkbox(props, keys.featured),
        read_time=read_time,
        content=content or "",
        last_updated=record.get('last_edited_time'),
    )


def recipe_slug(record: Dict, keys: RecipeKeys = RECIPE_KEYS) -> str:
    return slugify(title_text(record.get('properties', {}), keys.name)) or slugify(record['id'])


def recipe_ingredient_ids(record: Dict, keys: RecipeKeys = RECIPE_KEYS) -> List[str]:
    return relation_ids(record.get('properties', {}), keys.ingredients)


def hero_image_url(record: Dict, keys: RecipeKeys = RECIPE_KEYS) -> Optional[str]:
    return first_file_url(record.get('properties', {}), keys.hero_img)


def normalize_recipe(record: Dict, content: str, ingredients: Optional[List[IngredientDisplay]] = None,
                     hero_img: Optional[str] = None, keys: RecipeKeys = RECIPE_KEYS) -> Recipe:
    props = record.get('properties', {})
    prep_time = number(props, keys.prep_time, 0)
    cook_time = number(props, keys.cook_time, 0)

    return Recipe(
        id=record['id'],
        name=title_text(props, keys.name),
        slug=recipe_slug(record, keys),
        description=rich_text(props, keys.description),
        prep_time=prep_time,
        cook_time=cook_time,
        total_time=prep_time + cook_time,
        oven_temp=number(props, keys.oven_temp),
        category=select_name(props, keys.category, "Other"),
        difficulty=select_name(props, keys.difficulty, "Medium"),
        servings=number(props, keys.servings, 1),
        tags=multi_select_names(props, keys.tags),
        favorite=checkbox(props, keys.favorite),
        content=content or "",
        ingredients=ingredients or [],
        hero_img=hero_img,
        last_updated=record.get('last_edited_time'),
    )


def normalize_ingredient(record: Dict, keys: IngredientKeys = INGREDIENT_KEYS) -> Ingredient:
    props = record.get('properties', {})
    return Ingredient(
        id=record['id'],
        name=title_text(props, keys.name),
        description=rich_text(props, keys.description),
        brand=select_name(props, keys.brand),
        in_pantry=checkbox(props, keys.in_pantry),
    )


def normalize_recipe_ingredient(record: Dict,
                                keys: RecipeIngredientKeys = RECIPE_INGREDIENT_KEYS) -> RecipeIngredient:
    props = record.get('properties', {})
    return RecipeIngredient(
        id=record['id'],
        recipe_id=single_relation(props, keys.recipe),
        ingredient_id=single_relation(props, keys.ingredient),
        quantity=number(props, keys.quantity),
        unit=select_name(props, keys.unit),
        purpose=rich_text(props, keys.purpose),
        instructions=rich_text(props, keys.instructions),
        optional=checkbox(props, keys.optional),
        display=formula_text(props, keys.display),
    )


def normalize_page(record: Dict, content: str, keys: PageKeys = PAGE_KEYS) -> StandalonePage:
    props = record.get('properties', {})
    return StandalonePage(
        id=record['id'],
        title=find_title(props) or DEFAULT_PAGE_TITLE,
        slug=DEFAULT_PAGE_SLUG,
        content=content or "",
        excerpt=rich_text(props, keys.excerpt) or derive_excerpt(content),
        last_updated=record.get('last_edited_time'),
    )


def placeholder_page() -> StandalonePage:
    return StandalonePage(title=DEFAULT_PAGE_TITLE, slug=DEFAULT_PAGE_SLUG)
