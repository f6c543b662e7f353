#!/usr/bin/env python3
import asyncio
import sys
from pathlib import Path
import argparse
from typing import Dict, Optional

# Setup paths
project_root = Path(__file__).parent.absolute()
sys.path.insert(0, str(project_root))

from shelf_planner.data_processing.data_loader import DataLoader
from shelf_planner.data_processing.data_validator import DataValidator
from shelf_planner.models.fixture import FixtureType
from shelf_planner.models.planogram import Block, GenerationResult, StandardPlanogram, StorePlanogram
from shelf_planner.models.product import ProductCatalog
from shelf_planner.reconciliation.rules import ReconciliationRules, load_rules
from shelf_planner.reconciliation.service import PlanogramService
from shelf_planner.utils.error_handler import ShelfPlannerError
from shelf_planner.utils.logger import configure_logging, get_logger
from shelf_planner.visualization.export_handler import ExportHandler
from shelf_planner.visualization.planogram_visualizer import PlanogramVisualizer

FIXTURE_TYPE_CHOICES = [t.value for t in FixtureType]


def print_progress(index: int, total: int, result: GenerationResult):
    print(f"  [{index}/{total}] {result.store_name:30} {result.status.value:9} {result.message}")


def confirm(prompt: str, assume_yes: bool) -> bool:
    if assume_yes:
        return True
    return input(f"{prompt} [y/N] ").strip().lower() == 'y'


def _pyplot():
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt
    return plt


def export_layout(service: PlanogramService, planogram: StorePlanogram, catalog: ProductCatalog,
                  exporter: ExportHandler, render: bool):
    """Write JSON/CSV for one store layout and optionally a PNG"""
    name = f"store_{planogram.store_id}_{planogram.standard_planogram_id[:8]}"
    exporter.export_to_json(planogram, catalog, f"{name}.json")
    exporter.export_to_csv(planogram, catalog, name)

    if render:
        plt = _pyplot()
        capacity = asyncio.run(service.store_capacity(planogram.store_id, planogram.fixture_type))
        visualizer = PlanogramVisualizer()
        fig = visualizer.visualize_store_planogram(
            planogram, catalog, capacity.slots,
            save_path=str(exporter.output_dir / f"{name}.png")
        )
        plt.close(fig)


def render_standard(service: PlanogramService, standard: StandardPlanogram, blocks: Dict[str, Block],
                    output_dir: str) -> str:
    """PNG of a standard layout, split over its base store's fixtures"""
    plt = _pyplot()
    catalog = ProductCatalog(asyncio.run(service.repos.products.get_all()))
    slots = ()
    if standard.base_store_id:
        slots = asyncio.run(service.store_capacity(standard.base_store_id, standard.fixture_type)).slots

    path = Path(output_dir)
    path.mkdir(parents=True, exist_ok=True)
    save_path = str(path / f"standard_{standard.fmt}_{standard.fixture_type.value}.png")
    fig = PlanogramVisualizer().visualize_standard_planogram(standard, catalog, blocks, slots, save_path=save_path)
    plt.close(fig)
    return save_path


def print_warnings(planogram: StorePlanogram, limit: int = 5):
    if not planogram.warnings:
        return
    print(f"\n  Warnings ({len(planogram.warnings)}):")
    for warning in planogram.warnings[:limit]:
        print(f"    - {warning}")
    if len(planogram.warnings) > limit:
        print(f"    ... and {len(planogram.warnings) - limit} more")


def print_standard(standard: StandardPlanogram, blocks: Dict[str, Block]):
    print(f"\nStandard layout {standard.id}: {standard.name} "
          f"({standard.fmt}, {standard.fixture_type.value}, {standard.width:g}cm x {standard.shelf_count} shelves)")
    for ref in sorted(standard.blocks, key=lambda r: r.position_x):
        block = blocks.get(ref.block_id)
        width = f"{block.width:g}cm" if block else "?"
        label = block.name if block else ref.block_id
        print(f"  {ref.id}  {label:24} at {ref.position_x:g}cm, {width}")
    print(f"  {len(standard.placements)} placements")


def run_validate(loader: DataLoader) -> int:
    """Validate every catalog file; returns the exit code"""
    validator = DataValidator()
    products = loader.load_products()
    catalog = ProductCatalog(products)
    fixtures = loader.load_fixtures()

    checks = [
        ('products', lambda: validator.validate_products(products)),
        ('fixtures', lambda: validator.validate_fixtures(fixtures)),
        ('stores', lambda: validator.validate_stores(loader.load_stores())),
        ('blocks', lambda: validator.validate_blocks(loader.load_blocks(), catalog)),
        ('store fixtures', lambda: validator.validate_store_fixtures(
            loader.load_store_fixtures(), loader.load_stores(), fixtures)),
    ]
    for standard in loader.load_standard_planograms():
        checks.append((f"standard {standard.name or standard.id}",
                       lambda s=standard: validator.validate_standard(s, catalog)))

    all_valid = True
    for label, check in checks:
        is_valid, issues = check()
        all_valid = all_valid and is_valid
        print(f"\n[{label}] {'OK' if is_valid else 'INVALID'}")
        if issues:
            print(validator.generate_validation_report())

    return 0 if all_valid else 1


def run_standard(loader: DataLoader, service: PlanogramService, args) -> int:
    command = args.standard_command

    if command == 'create':
        standard = asyncio.run(service.create_standard(
            args.format, FixtureType.parse(args.fixture_type), args.base_store, args.name
        ))
    elif command == 'insert-block':
        standard = asyncio.run(service.insert_block(args.standard, args.block))
    elif command == 'remove-block':
        standard = asyncio.run(service.remove_block(args.standard, args.ref))
    else:
        if not confirm("Clear removes every block and placement from this standard layout. Continue?", args.yes):
            print("Clear cancelled")
            return 1
        standard = asyncio.run(service.clear_standard(args.standard))

    blocks = {b.block_id: b for b in asyncio.run(service.repos.blocks.get_all())}
    print_standard(standard, blocks)
    if args.render:
        print(f"  Rendered {render_standard(service, standard, blocks, args.output)}")

    loader.save_standard_planograms(asyncio.run(service.repos.standards.get_all()))
    return 0


def run_generate(loader: DataLoader, service: PlanogramService, args) -> int:
    exporter = ExportHandler(args.output)
    catalog = ProductCatalog(asyncio.run(service.repos.products.get_all()))

    if args.store:
        planogram = asyncio.run(service.generate_for_store(args.store, FixtureType.parse(args.fixture_type)))
        print(f"\nStore {args.store}: {planogram.status.value}, {len(planogram.placements)} placements")
        print_warnings(planogram)
        export_layout(service, planogram, catalog, exporter, args.render)
    else:
        fixture_type = FixtureType.parse(args.fixture_type) if args.fixture_type else None
        print(f"\nGenerating store layouts for format {args.format}")
        results = asyncio.run(service.batch_generate(args.format, print_progress, fixture_type))
        exporter.export_batch_results(results, f"batch_{args.format}")

        for result in results:
            if result.planogram_id is None:
                continue
            planogram = asyncio.run(service.repos.store_planograms.get_by_id(result.planogram_id))
            export_layout(service, planogram, catalog, exporter, args.render)

        failed = sum(1 for r in results if r.planogram_id is None)
        print(f"\n{len(results) - failed} generated, {failed} failed")

    loader.save_store_planograms(asyncio.run(service.repos.store_planograms.get_all()))
    return 0


def run_sync(loader: DataLoader, service: PlanogramService, args) -> int:
    if not confirm("Sync discards every manual edit on this store layout. Continue?", args.yes):
        print("Sync cancelled")
        return 1

    planogram = asyncio.run(service.sync(args.planogram))
    print(f"\nStore layout {planogram.id}: {planogram.status.value}, {len(planogram.placements)} placements")
    print_warnings(planogram)

    catalog = ProductCatalog(asyncio.run(service.repos.products.get_all()))
    export_layout(service, planogram, catalog, ExportHandler(args.output), args.render)
    loader.save_store_planograms(asyncio.run(service.repos.store_planograms.get_all()))
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description='Shelf layout generation and reconciliation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py validate --data data
  python main.py standard create --format SMART --base-store S001
  python main.py standard insert-block --standard <standard-id> --block blk-drinks --render
  python main.py generate --format SMART
  python main.py generate --store S001 --fixture-type multi-tier --render
  python main.py sync --planogram <store-layout-id> --yes
        """
    )
    parser.add_argument('--data', '-d', default='data', help='Catalog data directory')
    parser.add_argument('--output', '-o', default='output', help='Output directory')
    parser.add_argument('--rules', '-r', help='JSON file overriding reconciliation rules')
    parser.add_argument('--log-dir', help='Write daily log files to this directory')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug output on the console')

    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('validate', help='Validate catalog files and standard layouts')

    standard = subparsers.add_parser('standard', help='Create and edit standard layouts')
    standard_commands = standard.add_subparsers(dest='standard_command', required=True)

    create = standard_commands.add_parser('create', help='Empty standard layout sized from a base store')
    create.add_argument('--format', '-f', required=True, help='Store format')
    create.add_argument('--base-store', '-s', required=True, help='Store whose fixtures size the canvas')
    create.add_argument('--fixture-type', '-t', choices=FIXTURE_TYPE_CHOICES,
                        default=FixtureType.MULTI_TIER.value, help='Fixture type (default multi-tier)')
    create.add_argument('--name', '-n', help='Display name')

    insert = standard_commands.add_parser('insert-block', help='Place a block in the first free gap')
    insert.add_argument('--standard', '-p', required=True, help='Standard layout id')
    insert.add_argument('--block', '-b', required=True, help='Block id')

    remove = standard_commands.add_parser('remove-block', help='Remove an inserted block')
    remove.add_argument('--standard', '-p', required=True, help='Standard layout id')
    remove.add_argument('--ref', required=True, help='Block reference id, as printed after insert')

    clear = standard_commands.add_parser('clear', help='Remove every block and placement')
    clear.add_argument('--standard', '-p', required=True, help='Standard layout id')
    clear.add_argument('--yes', '-y', action='store_true', help='Skip the confirmation')

    for command in (create, insert, remove, clear):
        command.add_argument('--render', action='store_true', help='Also render a PNG image')

    generate = subparsers.add_parser('generate', help='Generate store layouts')
    target = generate.add_mutually_exclusive_group(required=True)
    target.add_argument('--format', '-f', help='Generate every store of a format')
    target.add_argument('--store', '-s', help='Generate a single store')
    generate.add_argument('--fixture-type', '-t', choices=FIXTURE_TYPE_CHOICES,
                          help='Fixture type (default multi-tier)')
    generate.add_argument('--render', action='store_true', help='Also render PNG images')

    sync = subparsers.add_parser('sync', help='Regenerate a store layout from its standard layout')
    sync.add_argument('--planogram', '-p', required=True, help='Store layout id')
    sync.add_argument('--yes', '-y', action='store_true', help='Skip the overwrite confirmation')
    sync.add_argument('--render', action='store_true', help='Also render a PNG image')

    args = parser.parse_args(argv)

    configure_logging(args.log_dir, 'DEBUG' if args.verbose else 'INFO')
    logger = get_logger()

    try:
        rules = load_rules(args.rules) if args.rules else ReconciliationRules()
        loader = DataLoader(args.data)
        if args.command == 'validate':
            return run_validate(loader)

        service = PlanogramService(loader.load_repositories(), rules)

        if args.command == 'standard':
            return run_standard(loader, service, args)
        if args.command == 'generate':
            return run_generate(loader, service, args)
        return run_sync(loader, service, args)

    except ShelfPlannerError as e:
        logger.error(f"{type(e).__name__}: {e}")
        print(f"\nError: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
