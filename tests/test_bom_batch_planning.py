import pytest

from bomtrack.services.bom_engine import (
    InvalidQuantityError,
    NotBomManagedError,
    compute_batch_requirements,
    compute_optimal_batch_size,
    simulate_production,
)
from bomtrack.services.bom_engine._batch_planning import suggest_batches

from tests.bom_factories import make_material, make_product


def _bakery_product():
    flour = make_material(1, 1000, unit_cost=1.5, name='Flour')
    sugar = make_material(2, 500, unit_cost=2.0, name='Sugar')
    return make_product(7, [(flour, 2), (sugar, 1)], name='Cookies')


def test_batch_requirements_scale_per_unit_needs():
    result = compute_batch_requirements(_bakery_product(), 10)

    flour, sugar = result.material_requirements
    assert flour.total_required == 20
    assert sugar.total_required == 10
    assert flour.is_sufficient and sugar.is_sufficient
    assert result.can_produce is True
    assert result.shortages == []


def test_batch_requirements_report_shortage_against_current_stock():
    product = make_product(1, [(make_material(1, 10), 2)])

    result = compute_batch_requirements(product, 100)

    requirement = result.material_requirements[0]
    assert requirement.total_required == 200
    assert requirement.current_stock == 10
    assert requirement.is_sufficient is False
    assert requirement.shortage == 190
    assert requirement.remaining_after_production == -190
    assert result.can_produce is False
    assert result.to_dict()['shortages'][0]['shortage'] == 190


def test_batch_requirements_include_cost_analysis():
    result = compute_batch_requirements(_bakery_product(), 10)

    assert result.total_material_cost == pytest.approx(50.0)
    assert result.cost_per_unit == pytest.approx(5.0)
    assert result.to_dict()['cost_analysis'] == {'total_material_cost': 50.0, 'cost_per_unit': 5.0}


def test_batch_requirements_keep_waste_unrounded():
    product = make_product(1, [(make_material(1, 100), 1.25, 10)])

    requirement = compute_batch_requirements(product, 3).material_requirements[0]

    assert requirement.effective_quantity_per_unit == pytest.approx(1.375)
    assert requirement.total_required == pytest.approx(4.125)


def test_batch_requirements_without_recipe():
    result = compute_batch_requirements(make_product(1, [], with_recipe=False), 5)

    assert result.can_produce is False
    assert result.material_requirements == []
    assert result.message == 'No active recipe'


def test_batch_requirements_for_recipe_without_components():
    result = compute_batch_requirements(make_product(1, []), 10)

    assert result.can_produce is True
    assert result.material_requirements == []
    assert result.total_material_cost == 0.0
    assert result.message == 'Active recipe has no components'


def test_simulation_without_recipe_cannot_produce():
    simulation = simulate_production(make_product(1, [], with_recipe=False), 5)

    assert simulation.can_produce is False
    assert simulation.materials == []


@pytest.mark.parametrize('quantity', [0, -3])
def test_batch_requirements_reject_non_positive_quantity(quantity):
    with pytest.raises(InvalidQuantityError):
        compute_batch_requirements(_bakery_product(), quantity)


def test_batch_requirements_reject_simple_products():
    product = make_product(1, [(make_material(1, 10), 1)], management='simple')

    with pytest.raises(NotBomManagedError):
        compute_batch_requirements(product, 1)


def test_suggest_batches_combines_fractions_and_standard_sizes():
    assert suggest_batches(40) == [40, 25, 20, 10]
    assert suggest_batches(0) == [0]
    assert suggest_batches(3) == [3, 1]


def test_optimal_batch_size_without_bounds():
    product = make_product(1, [(make_material(1, 100), 2), (make_material(2, 200, name='Butter'), 5)])

    result = compute_optimal_batch_size(product)

    assert result.maximum_producible == 40
    assert result.suggested_batches == [40, 25, 20, 10]
    assert result.bottleneck_material.material_name == 'Butter'
    assert 'Butter' in result.recommendation
    assert [option.quantity for option in result.batch_options] == [40, 25, 20, 10]
    assert result.batch_options[0].utilization_percentage == 100.0


def test_optimal_batch_size_respects_max_quantity():
    product = make_product(1, [(make_material(1, 40), 1)])

    result = compute_optimal_batch_size(product, max_quantity=30)

    assert result.maximum_producible == 30
    assert result.suggested_batches == [30, 25, 15, 10, 7]
    assert all(size <= 30 for size in result.suggested_batches)


def test_optimal_batch_size_respects_min_quantity():
    product = make_product(1, [(make_material(1, 40), 1)])

    result = compute_optimal_batch_size(product, min_quantity=15)

    assert result.suggested_batches == [40, 25, 20]


def test_optimal_batch_size_is_zero_when_range_is_unreachable():
    product = make_product(1, [(make_material(1, 40), 1)])

    result = compute_optimal_batch_size(product, min_quantity=50)

    assert result.maximum_producible == 0
    assert result.suggested_batches == [0]
    assert result.batch_options == []


def test_optimal_batch_size_for_out_of_stock_product():
    product = make_product(1, [(make_material(1, 0), 1)])

    result = compute_optimal_batch_size(product)

    assert result.maximum_producible == 0
    assert result.suggested_batches == [0]


def test_simulation_reports_consumption_without_touching_stock():
    flour = make_material(1, 100, reorder_level=30, unit_cost=0.5)
    product = make_product(1, [(flour, 2)])

    simulation = simulate_production(product, 40)

    consumed = simulation.materials[0]
    assert consumed.before == 100
    assert consumed.consumed == 80
    assert consumed.after == 20
    assert consumed.will_fall_below_reorder_level is True
    assert simulation.can_produce is True
    assert simulation.total_material_cost == pytest.approx(40.0)
    assert simulation.to_dict()['materials_below_reorder_level'] == [1]
    assert flour.stock_quantity == 100


def test_simulation_flags_negative_stock():
    product = make_product(1, [(make_material(1, 10), 2)])

    simulation = simulate_production(product, 10)

    assert simulation.can_produce is False
    assert simulation.materials[0].goes_negative is True
