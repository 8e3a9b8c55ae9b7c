"""
Relation resolver tests - both lookup strategies share one merge rule.
"""

from helpers import (
    FakeService,
    checkbox_prop,
    formula_prop,
    number_prop,
    page,
    relation_prop,
    select_prop,
    service_error,
    text_prop,
    title_prop,
)
from portfolio_content.models import Ingredient, RecipeIngredient
from portfolio_content.resolver import (
    RelationResolver,
    ServiceLookup,
    TableLookup,
    build_resolver,
    merge_ingredient,
)


FLOUR = Ingredient(id="i1", name="Flour", description="All purpose", brand="Kirkland", in_pantry=True)
SUGAR = Ingredient(id="i2", name="Sugar", in_pantry=False)


def junction(jid, ingredient_id, **kwargs):
    return RecipeIngredient(id=jid, recipe_id="r1", ingredient_id=ingredient_id, **kwargs)


def test_merge_rule_takes_fields_from_both_sides():
    entry = junction("j1", "i1", quantity=2, unit="cup", purpose="Structure",
                     instructions="Sifted", optional=True, display="2 cup Flour")

    display = merge_ingredient(entry, FLOUR)

    assert display.id == "j1"
    assert display.name == "Flour"
    assert display.brand == "Kirkland"
    assert display.description == "All purpose"
    assert display.in_pantry is True
    assert display.quantity == 2
    assert display.unit == "cup"
    assert display.purpose == "Structure"
    assert display.instructions == "Sifted"
    assert display.optional is True
    assert display.display == "2 cup Flour"


def test_table_lookup_resolves_in_relation_order():
    lookup = TableLookup.from_lists(
        [FLOUR, SUGAR],
        [junction("j1", "i1", quantity=2), junction("j2", "i2", quantity=1)],
    )

    outcome = RelationResolver(lookup).resolve(["j2", "j1"])

    assert outcome.ok
    assert [item.name for item in outcome.value] == ["Sugar", "Flour"]


def test_missing_ingredient_uses_placeholder():
    lookup = TableLookup.from_lists([FLOUR], [junction("j1", "missing")])

    outcome = RelationResolver(lookup).resolve(["j1"])

    assert len(outcome.value) == 1
    assert outcome.value[0].name == "Unknown Ingredient"
    assert outcome.value[0].in_pantry is False
    assert not outcome.ok
    assert "missing" in outcome.reason


def test_missing_junction_entry_is_skipped():
    lookup = TableLookup.from_lists([FLOUR], [junction("j1", "i1")])

    outcome = RelationResolver(lookup).resolve(["j1", "gone"])

    assert [item.id for item in outcome.value] == ["j1"]
    assert "gone" in outcome.reason


def test_empty_relation_resolves_to_empty_list():
    outcome = RelationResolver(TableLookup({}, {})).resolve([])
    assert outcome.ok
    assert outcome.value == []


def test_service_lookup_fetches_junction_then_ingredient():
    service = FakeService(records={
        "j1": page("j1", {
            "Ingredient Database": relation_prop("i1"),
            "Quantity": number_prop(3),
            "Unit": select_prop("each"),
            "Optional": checkbox_prop(True),
            "Display": formula_prop("3 each Egg"),
        }),
        "i1": page("i1", {"Name": title_prop("Egg"), "Description": text_prop("Large")}),
    })

    outcome = RelationResolver(ServiceLookup(service)).resolve(["j1"])

    assert service.retrieved == ["j1", "i1"]
    assert outcome.ok
    egg = outcome.value[0]
    assert egg.name == "Egg"
    assert egg.quantity == 3
    assert egg.unit == "each"
    assert egg.optional is True
    assert egg.display == "3 each Egg"


def test_service_lookup_recovers_from_errors():
    service = FakeService(records={
        "j1": page("j1", {"Ingredient Database": relation_prop("i1")}),
        "i1": service_error(500, "internal_server_error"),
        "j2": service_error(400),
    })

    outcome = RelationResolver(ServiceLookup(service)).resolve(["j1", "j2", "j3"])

    assert [item.name for item in outcome.value] == ["Unknown Ingredient"]
    assert "could not be retrieved" in outcome.reason
    assert "j3 not found" in outcome.reason


def test_build_resolver_picks_strategy():
    service = FakeService()
    assert isinstance(build_resolver(service, [FLOUR], []).lookup, TableLookup)
    assert isinstance(build_resolver(service).lookup, ServiceLookup)
