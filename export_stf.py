#!/usr/bin/env python
"""
Export an STF lighting-design file from a building model.

Usage:
    python export_stf.py model.ifc [output.stf] [--storey NAME] [--operator NAME]
    python export_stf.py snapshot.json [output.stf]

The input is either an IFC file or a JSON model snapshot. Without an output
path the STF file is written next to the input.

Example:
    python export_stf.py models/office.ifc exports/office.stf --storey "Level 1"
"""

import sys
from pathlib import Path
from stfexport.core.errors import ModelLoadError
from stfexport.core.models import ErrorKind
from stfexport.pipeline.orchestrator import export_stf
from stfexport.providers.ifc import IfcModelProvider
from stfexport.providers.snapshot import SnapshotModelProvider


def _pop_option(args, name):
    """Remove '--name value' from args and return value (or None)."""
    if name not in args:
        return None
    index = args.index(name)
    if index + 1 >= len(args):
        print(f"Error: {name} requires a value")
        sys.exit(1)
    value = args[index + 1]
    del args[index:index + 2]
    return value


def main():
    args = sys.argv[1:]
    storey = _pop_option(args, "--storey")
    operator = _pop_option(args, "--operator")

    if len(args) < 1:
        print("Usage: python export_stf.py input.(ifc|json) [output.stf] [--storey NAME] [--operator NAME]")
        print()
        print("Examples:")
        print("  python export_stf.py models/office.ifc")
        print("  python export_stf.py models/office.ifc exports/office.stf --storey \"Level 1\"")
        sys.exit(1)

    model_file = args[0]
    if len(args) >= 2:
        output_file = args[1]
    else:
        output_file = str(Path(model_file).with_suffix('.stf'))

    if not Path(model_file).exists():
        print(f"Error: Input file not found: {model_file}")
        sys.exit(1)

    print("=" * 60)
    print("STF Exporter")
    print("=" * 60)
    print(f"Input:  {model_file}")
    print(f"Output: {output_file}")
    print()

    print("[1/2] Loading model...")
    try:
        if Path(model_file).suffix.lower() == ".json":
            provider = SnapshotModelProvider.from_file(model_file)
        else:
            provider = IfcModelProvider.open(model_file, storey_name=storey)
    except ModelLoadError as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(f"      [OK] Length unit: {provider.length_unit_factor} m")
    print()

    print("[2/2] Exporting spaces...")
    result = export_stf(provider, output_file, operator=operator)

    print()
    print("=" * 60)
    if not result.succeeded:
        print("ERROR!")
        print("=" * 60)
        print(f"Export failed ({result.error_kind.value}): {result.message}")
        print()
        print("No STF file was written.")
        sys.exit(1)

    print("SUCCESS!")
    print("=" * 60)
    print(f"Generated: {result.output_path}")
    print()
    print("Summary:")
    print(f"  - {result.room_count} rooms")
    print(f"  - {result.luminaire_type_count} luminaire types")
    # Types omitted for missing flux are expected and not reported
    skipped = [issue for issue in result.issues if issue.kind != ErrorKind.LUMINAIRE_OMITTED]
    if skipped:
        print(f"  - {len(skipped)} skipped element(s):")
        for issue in skipped:
            print(f"      {issue.kind.value}: {issue.message}")
    print()


if __name__ == "__main__":
    main()
