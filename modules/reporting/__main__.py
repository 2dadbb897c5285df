"""
Reporting command-line interface.

Usage:
    python -m modules.reporting recompile reports/templates
    python -m modules.reporting recompile reports/templates --extension .source
    python -m modules.reporting render invoice.source --format pdf --output out/invoice.pdf \
        --rows rows.json --param title=Q1
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional

from modules.reporting.core.exceptions import ReportingException
from modules.reporting.core.interfaces import ExportFormat
from modules.reporting.data_sources.variants import DataSourceVariant
from modules.reporting.data_sources.xml_parser import parse_xml
from modules.reporting.engine import ReportEngine
from modules.reporting.tools.recompile import recompile_all
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


def _parse_params(pairs: List[str]) -> Dict[str, str]:
    params = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Invalid parameter '{pair}', expected KEY=VALUE")
        params[key] = value
    return params


def run_recompile(args: argparse.Namespace) -> int:
    batch = recompile_all(args.directory, args.extension)

    for result in batch.results:
        if result.success:
            print(f"  ✓ {result.source.name} -> {result.output.name}")
        else:
            print(f"  ✗ {result.source.name}: {result.error_message}")

    return 0 if batch.success else 1


def run_render(args: argparse.Namespace) -> int:
    params = _parse_params(args.param)

    if args.rows:
        rows = json.loads(Path(args.rows).read_text(encoding="utf-8"))
        variant = DataSourceVariant.row_collection(rows)
    elif args.xml:
        variant = DataSourceVariant.xml_tree(parse_xml(Path(args.xml).read_bytes()))
    else:
        variant = DataSourceVariant.flat_map(params)
        params = {}

    engine = ReportEngine()
    path = engine.generate(args.template, variant, args.format, args.output, params)
    print(f"  ✓ {path}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = argparse.ArgumentParser(prog="python -m modules.reporting", description="Report generation tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    recompile_parser = subparsers.add_parser("recompile", help="Recompile every source template in a directory")
    recompile_parser.add_argument("directory", help="Template directory")
    recompile_parser.add_argument("--extension", default=None, help="Source template extension")
    recompile_parser.set_defaults(handler=run_recompile)

    render_parser = subparsers.add_parser("render", help="Fill a template and export it")
    render_parser.add_argument("template", help="Template identifier (.source or .compiled)")
    render_parser.add_argument(
        "--format", required=True, choices=[f.value for f in ExportFormat], help="Export format"
    )
    render_parser.add_argument("--output", required=True, help="Output file")
    data_group = render_parser.add_mutually_exclusive_group()
    data_group.add_argument("--rows", help="JSON file holding a list of row objects")
    data_group.add_argument("--xml", help="XML data document")
    render_parser.add_argument("--param", action="append", default=[], help="Report parameter KEY=VALUE")
    render_parser.set_defaults(handler=run_render)

    args = parser.parse_args(argv)

    try:
        return args.handler(args)
    except (ReportingException, argparse.ArgumentTypeError, OSError, ValueError) as e:
        logger.error(f"✗ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
