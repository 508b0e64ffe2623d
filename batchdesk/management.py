"""
Management commands for seeding and planning from the command line
"""
import json

import click
from flask.cli import with_appcontext

from .extensions import db
from .seeders import seed_demo_catalog


@click.command('seed-demo-catalog')
@click.option('--date', 'reference_date', type=click.DateTime(formats=['%Y-%m-%d']), default=None,
              help='Last day of the generated sales history (default: today)')
@with_appcontext
def seed_demo_catalog_command(reference_date):
    """Load the SP001 demo semiproduct, its two sizes and their sales"""
    try:
        created = seed_demo_catalog(reference_date.date() if reference_date else None)
    except Exception as e:
        db.session.rollback()
        click.echo(f'❌ Demo catalog seeding failed: {str(e)}', err=True)
        raise
    if created:
        click.echo('✅ Demo catalog seeded (SP001, S100, S200)')
    else:
        click.echo('ℹ️  Demo catalog already present.')


@click.command('plan-batch')
@click.argument('semiproduct_code')
@click.option('--mode', default='mmq', show_default=True,
              help='Control mode: mmq, total-weight or target-days-coverage')
@click.option('--value', type=float, default=1.0, show_default=True,
              help='Parameter of the chosen control mode')
@click.option('--sales-multiplier', type=float, default=1.0, show_default=True)
@with_appcontext
def plan_batch_command(semiproduct_code, mode, value, sales_multiplier):
    """Print a batch plan for SEMIPRODUCT_CODE as JSON"""
    from .services.batch_planning import BatchPlanningService, CalculateBatchPlanRequest, ControlMode

    try:
        control_mode = ControlMode.parse(mode)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='--mode')

    parameter = {
        ControlMode.MMQ_MULTIPLIER: 'mmq_multiplier',
        ControlMode.TOTAL_WEIGHT: 'total_weight_to_use',
        ControlMode.TARGET_DAYS_COVERAGE: 'target_days_coverage',
    }[control_mode]
    request = CalculateBatchPlanRequest(
        semiproduct_code=semiproduct_code,
        control_mode=control_mode,
        sales_multiplier=sales_multiplier,
        **{parameter: value},
    )
    result = BatchPlanningService().calculate_batch_plan(request)
    payload = result.to_dict()
    if result.data is not None:
        payload['data'] = result.data.to_dict()
    click.echo(json.dumps(payload, indent=2, default=str))
    if not result.success:
        raise SystemExit(1)


def register_commands(app):
    """Register CLI commands"""
    app.cli.add_command(seed_demo_catalog_command)
    app.cli.add_command(plan_batch_command)
