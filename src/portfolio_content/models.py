"""
Data Models
사이트가 읽는 JSON 파일용 Pydantic 모델과
복구 가능한 파이프라인 단계가 쓰는 레코드 단위 Outcome 타입
"""

from dataclasses import dataclass
from typing import Dict, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")
Number = Union[int, float]


class ContentModel(BaseModel):
    """camelCase 키로 직렬화되는 기본 모델"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> Dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class BlogPost(ContentModel):
    id: str
    title: str = ""
    slug: str
    date: str
    excerpt: str = ""
    author: str = "Anonymous"
    category: str = "Uncategorized"
    tags: List[str] = Field(default_factory=list)
    featured: bool = False
    read_time: int = Field(1, ge=1)
    content: str = ""
    last_updated: Optional[str] = None


class IngredientDisplay(ContentModel):
    """레시피 기준의 재료 표시 항목 (연결 항목 + 재료 병합)"""

    id: str
    name: str = "Unknown Ingredient"
    quantity: Optional[Number] = None
    unit: Optional[str] = None
    brand: Optional[str] = None
    description: Optional[str] = None
    instructions: Optional[str] = None
    purpose: Optional[str] = None
    optional: bool = False
    in_pantry: bool = False
    display: Optional[str] = None


class Recipe(ContentModel):
    id: str
    name: str = ""
    slug: str
    description: str = ""
    prep_time: Number = 0
    cook_time: Number = 0
    total_time: Number = 0
    oven_temp: Optional[Number] = None
    category: str = "Other"
    difficulty: str = "Medium"
    servings: Number = 1
    tags: List[str] = Field(default_factory=list)
    favorite: bool = False
    content: str = ""
    ingredients: List[IngredientDisplay] = Field(default_factory=list)
    hero_img: Optional[str] = None
    last_updated: Optional[str] = None


class Ingredient(ContentModel):
    id: str
    name: str = ""
    description: str = ""
    brand: Optional[str] = None
    in_pantry: bool = False


class RecipeIngredient(ContentModel):
    """레시피 하나와 재료 하나를 잇는 연결 항목"""

    id: str
    recipe_id: Optional[str] = None
    ingredient_id: Optional[str] = None
    quantity: Optional[Number] = None
    unit: Optional[str] = None
    purpose: str = ""
    instructions: str = ""
    optional: bool = False
    display: Optional[str] = None


class StandalonePage(ContentModel):
    id: Optional[str] = None
    title: str
    slug: str
    content: str = ""
    excerpt: str = ""
    last_updated: Optional[str] = None


class Metadata(ContentModel):
    last_fetched: str
    blog_post_count: int = 0
    recipe_count: int = 0
    ingredient_count: int = 0
    recipe_ingredient_count: int = 0
    total_items: int = 0
    has_meal_prep: bool = False
    has_ingredients: bool = False


@dataclass
class Outcome(Generic[T]):
    """복구 가능한 단계의 결과: 값, 그리고 기본값으로 대체된 경우 그 이유"""

    value: T
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def empty(cls, value: T, reason: str) -> "Outcome[T]":
        return cls(value=value, reason=reason)


@dataclass
class LocalizedContent:
    """원격 이미지 URL을 로컬 경로로 바꾼 마크다운"""

    text: str
    image_map: Dict[str, str]
