"""
Relation Resolver
레시피의 RecipeIngredient 연결 항목을 평탄화된 IngredientDisplay로 해석합니다.
조회는 미리 일괄로 가져온 테이블 또는 ID별 Notion 호출로 하며,
병합 규칙은 공통입니다.
"""

from typing import Dict, Iterable, List, Optional

from portfolio_content.models import (
    Ingredient,
    IngredientDisplay,
    Outcome,
    RecipeIngredient,
)
from portfolio_content.normalizers import (
    UNKNOWN_INGREDIENT,
    normalize_ingredient,
    normalize_recipe_ingredient,
)
from portfolio_content.notion_service import NotionService, ServiceError
from portfolio_content.utils import setup_logger

logger = setup_logger(__name__)


class IngredientLookup:
    """조회 전략 인터페이스"""

    def junction(self, junction_id: str) -> Outcome[Optional[RecipeIngredient]]:
        raise NotImplementedError

    def ingredient(self, ingredient_id: str) -> Outcome[Optional[Ingredient]]:
        raise NotImplementedError


class TableLookup(IngredientLookup):
    """실행마다 한 번 만드는 메모리 테이블 (네트워크 호출 없음)"""

    def __init__(self, ingredients: Dict[str, Ingredient], junctions: Dict[str, RecipeIngredient]):
        self.ingredients = ingredients
        self.junctions = junctions

    @classmethod
    def from_lists(cls, ingredients: Iterable[Ingredient],
                   junctions: Iterable[RecipeIngredient]) -> "TableLookup":
        return cls(
            ingredients={item.id: item for item in ingredients},
            junctions={item.id: item for item in junctions},
        )

    def junction(self, junction_id: str) -> Outcome[Optional[RecipeIngredient]]:
        found = self.junctions.get(junction_id)
        if found is None:
            return Outcome.empty(None, f"junction entry {junction_id} not in lookup table")
        return Outcome.success(found)

    def ingredient(self, ingredient_id: str) -> Outcome[Optional[Ingredient]]:
        found = self.ingredients.get(ingredient_id)
        if found is None:
            return Outcome.empty(None, f"ingredient {ingredient_id} not in lookup table")
        return Outcome.success(found)


class ServiceLookup(IngredientLookup):
    """연결 항목과 재료를 Notion에서 하나씩 조회"""

    def __init__(self, service: NotionService):
        self.service = service

    def _retrieve(self, record_id: str, label: str) -> Outcome[Optional[Dict]]:
        try:
            record = self.service.retrieve_record(record_id)
        except ServiceError as e:
            logger.error(f"Failed to retrieve {label} {record_id}: {e}")
            return Outcome.empty(None, f"{label} {record_id} could not be retrieved: {e}")
        if record is None:
            return Outcome.empty(None, f"{label} {record_id} not found")
        return Outcome.success(record)

    def junction(self, junction_id: str) -> Outcome[Optional[RecipeIngredient]]:
        result = self._retrieve(junction_id, "junction entry")
        if not result.ok:
            return Outcome.empty(None, result.reason)
        return Outcome.success(normalize_recipe_ingredient(result.value))

    def ingredient(self, ingredient_id: str) -> Outcome[Optional[Ingredient]]:
        result = self._retrieve(ingredient_id, "ingredient")
        if not result.ok:
            return Outcome.empty(None, result.reason)
        return Outcome.success(normalize_ingredient(result.value))


def merge_ingredient(junction: RecipeIngredient, ingredient: Optional[Ingredient]) -> IngredientDisplay:
    """
    연결 항목: 수량, 단위, 용도, 손질법, 선택 여부, 표시 문자열
    재료: 이름, 브랜드, 설명, 보유 여부
    """
    return IngredientDisplay(
        id=junction.id,
        name=(ingredient.name if ingredient and ingredient.name else UNKNOWN_INGREDIENT),
        quantity=junction.quantity,
        unit=junction.unit,
        brand=ingredient.brand if ingredient else None,
        description=(ingredient.description or None) if ingredient else None,
        instructions=junction.instructions or None,
        purpose=junction.purpose or None,
        optional=junction.optional,
        in_pantry=ingredient.in_pantry if ingredient else False,
        display=junction.display,
    )


class RelationResolver:
    """교체 가능한 조회 전략으로 연결 항목 ID를 해석"""

    def __init__(self, lookup: IngredientLookup):
        self.lookup = lookup

    def resolve(self, junction_ids: List[str]) -> Outcome[List[IngredientDisplay]]:
        """
        연결 항목을 관계 순서대로 해석

        해석할 수 없는 연결 항목은 건너뛰고, 재료를 찾지 못한 항목은 대체 이름으로
        유지합니다. 건너뛰거나 대체한 것이 있으면 결과에 이유가 담깁니다.
        """
        resolved: List[IngredientDisplay] = []
        problems: List[str] = []

        for junction_id in junction_ids:
            junction = self.lookup.junction(junction_id)
            if not junction.ok:
                logger.warning(f"Skipping ingredient entry: {junction.reason}")
                problems.append(junction.reason)
                continue

            ingredient: Optional[Ingredient] = None
            ingredient_id = junction.value.ingredient_id
            if ingredient_id:
                found = self.lookup.ingredient(ingredient_id)
                if found.ok:
                    ingredient = found.value
                else:
                    logger.warning(f"Unresolved ingredient for entry {junction_id}: {found.reason}")
                    problems.append(found.reason)
            else:
                problems.append(f"junction entry {junction_id} has no ingredient relation")

            resolved.append(merge_ingredient(junction.value, ingredient))

        if problems:
            return Outcome.empty(resolved, "; ".join(problems))
        return Outcome.success(resolved)


def build_resolver(service: NotionService, ingredients: Optional[List[Ingredient]] = None,
                   junctions: Optional[List[RecipeIngredient]] = None) -> RelationResolver:
    """참조 컬렉션을 미리 가져왔으면 테이블 조회, 아니면 ID별 조회"""
    if ingredients is not None and junctions is not None:
        logger.info(f"Resolving ingredients from lookup tables "
                    f"({len(ingredients)} ingredients, {len(junctions)} entries)")
        return RelationResolver(TableLookup.from_lists(ingredients, junctions))
    logger.info("Resolving ingredients with per-record lookups")
    return RelationResolver(ServiceLookup(service))
