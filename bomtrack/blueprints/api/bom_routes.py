import logging

from flask import Blueprint, current_app, request

from ...services.bom_engine import (
    ProductionRequest,
    check_production_feasibility,
    compute_available_quantity,
    compute_batch_requirements,
    compute_bulk_availability,
    compute_optimal_batch_size,
    compute_production_capacity,
    plan_multi_product,
    simulate_production,
)
from ...utils.api_responses import APIResponse, api_route
from ...utils.validation_helpers import (
    ValidationError,
    validate_bounded_int,
    validate_id,
    validate_id_list,
    validate_positive_number,
)
from .context import engine_settings, tenant_repository

logger = logging.getLogger(__name__)

production_api_bp = Blueprint('bom_production', __name__)


@production_api_bp.route('/products/<int:product_id>/availability', methods=['GET'])
@api_route
def product_availability(tenant_id, product_id):
    """Maximum producible units and the bottleneck material"""
    product = tenant_repository(tenant_id).get_product(product_id)
    result = compute_available_quantity(product)
    return APIResponse.success(result.to_dict())


@production_api_bp.route('/bulk-availability', methods=['POST'])
@api_route
def bulk_availability(tenant_id):
    data = APIResponse.handle_request_content()
    product_ids = validate_id_list(
        data.get('product_ids'),
        'product_ids',
        max_items=current_app.config.get('BOM_BULK_MAX_PRODUCTS', 200),
    )

    products = tenant_repository(tenant_id).get_products(product_ids)
    entries = compute_bulk_availability(product_ids, products, engine_settings())
    results = {str(product_id): entry.to_dict() for product_id, entry in entries.items()}
    return APIResponse.success({
        'results': results,
        'total': len(results),
        'failed': sum(1 for entry in entries.values() if not entry.success),
    })


@production_api_bp.route('/products/<int:product_id>/production-capacity', methods=['GET'])
@api_route
def production_capacity(tenant_id, product_id):
    product = tenant_repository(tenant_id).get_product(product_id)
    capacity = compute_production_capacity(product, engine_settings())
    return APIResponse.success(capacity.to_dict())


@production_api_bp.route('/products/<int:product_id>/feasibility', methods=['GET'])
@api_route
def production_feasibility(tenant_id, product_id):
    quantity = validate_positive_number(request.args.get('quantity'), 'quantity')
    product = tenant_repository(tenant_id).get_product(product_id)
    return APIResponse.success(check_production_feasibility(product, quantity))


@production_api_bp.route('/batch-requirements', methods=['POST'])
@api_route
def batch_requirements(tenant_id):
    data = APIResponse.handle_request_content()
    product_id = validate_id(data.get('product_id'), 'product_id')
    quantity = validate_positive_number(data.get('quantity'), 'quantity')

    product = tenant_repository(tenant_id).get_product(product_id)
    result = compute_batch_requirements(product, quantity)
    return APIResponse.success(result.to_dict())


@production_api_bp.route('/optimal-batch-size', methods=['POST'])
@api_route
def optimal_batch_size(tenant_id):
    data = APIResponse.handle_request_content()
    product_id = validate_id(data.get('product_id'), 'product_id')
    min_quantity = _optional_bound(data, 'min_quantity')
    max_quantity = _optional_bound(data, 'max_quantity')
    if min_quantity is not None and max_quantity is not None and min_quantity > max_quantity:
        raise ValidationError.single('max_quantity', 'The max_quantity must be at least min_quantity.')

    product = tenant_repository(tenant_id).get_product(product_id)
    result = compute_optimal_batch_size(product, min_quantity, max_quantity)
    return APIResponse.success(result.to_dict())


@production_api_bp.route('/multi-product-plan', methods=['POST'])
@api_route
def multi_product_plan(tenant_id):
    data = APIResponse.handle_request_content()
    lines = data.get('products')
    if not isinstance(lines, list) or not lines:
        raise ValidationError.single('products', 'The products field must be a non-empty list.')

    parsed = []
    errors = {}
    for index, line in enumerate(lines):
        if not isinstance(line, dict):
            errors[f'products.{index}'] = ['Each entry must be an object with product_id and quantity.']
            continue
        try:
            parsed.append((
                validate_id(line.get('product_id'), f'products.{index}.product_id'),
                validate_positive_number(line.get('quantity'), f'products.{index}.quantity'),
            ))
        except ValidationError as exc:
            errors.update(exc.errors)
    if errors:
        raise ValidationError(errors)

    repository = tenant_repository(tenant_id)
    requests = [
        ProductionRequest(product=repository.get_product(product_id), quantity=quantity)
        for product_id, quantity in parsed
    ]
    plan = plan_multi_product(requests)
    logger.info(
        "Multi-product plan for tenant %s: %d products, feasible=%s",
        tenant_id, len(requests), plan.is_feasible,
    )
    return APIResponse.success(plan.to_dict())


@production_api_bp.route('/simulate-production', methods=['POST'])
@api_route
def simulate(tenant_id):
    data = APIResponse.handle_request_content()
    product_id = validate_id(data.get('product_id'), 'product_id')
    quantity = validate_positive_number(data.get('quantity'), 'quantity')

    product = tenant_repository(tenant_id).get_product(product_id)
    return APIResponse.success(simulate_production(product, quantity).to_dict())


def _optional_bound(data, field):
    value = data.get(field)
    if value is None or value == '':
        return None
    return validate_bounded_int(value, field, minimum=1)
