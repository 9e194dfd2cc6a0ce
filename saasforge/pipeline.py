"""saasforge build pipeline and command-line entry point.

Runs the two core stages and the optional delivery steps:

1. EXTRACT -- parse the description into a resolved Specification.
2. RENDER  -- render the file manifest (validated per file).
3. WRITE   -- persist the manifest beneath ``<output>/<slug>/`` (skipped on dry run).
4. INSTALL -- run the install command in the project root (optional).

Usage::

    saasforge spec "invoice management for freelancers"
    saasforge build "invoice management for freelancers" -o ./output
    python -m saasforge.pipeline build "a contract management app" --dry-run
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from rich.markup import escape

from saasforge.config import Config
from saasforge.errors import InstallError, SaasForgeError
from saasforge.parser import default_catalog, load_catalog, parse_description
from saasforge.parser.models import Specification
from saasforge.scaffolder import ManifestEntry, ManifestGenerator, TemplateRenderer, get_default_renderer
from saasforge.utils import (
    console,
    ensure_dir,
    print_error,
    print_stage_header,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
    write_text_file,
)


# ---------------------------------------------------------------------------
# Options & results
# ---------------------------------------------------------------------------


class BuildOptions(BaseModel):
    """Per-invocation build options."""
    model_config = ConfigDict(frozen=True)

    dry_run: bool = False
    output_directory: Optional[Path] = Field(
        default=None, description="Parent of the project directory; defaults to config.output_dir"
    )
    skip_install: bool = False


class BuildResult(BaseModel):
    """Everything a build produced."""
    model_config = ConfigDict(frozen=True)

    specification: Specification
    manifest: list[ManifestEntry]
    project_root: Path
    written: list[Path] = Field(default_factory=list)
    installed: bool = False


# ---------------------------------------------------------------------------
# Delivery collaborators
# ---------------------------------------------------------------------------


async def write_manifest(manifest: list[ManifestEntry], root: Path) -> list[Path]:
    """Write every manifest entry beneath *root* and return the written paths."""
    root = ensure_dir(root)
    written: list[Path] = []
    for entry in manifest:
        target = root / entry.path
        await asyncio.to_thread(write_text_file, target, entry.content)
        written.append(target)
    return written


async def install_dependencies(root: Path, config: Config) -> None:
    """Run ``config.install_command`` in *root*.

    Raises:
        InstallError: If the command cannot be started or exits non-zero.
    """
    command = config.install_command
    try:
        returncode, stdout, stderr = await run_command(
            command, cwd=root, timeout=config.install_timeout
        )
    except OSError as exc:
        raise InstallError(f"could not run {' '.join(command)}: {exc}", command=command) from exc

    if returncode != 0:
        detail = (stderr or stdout).splitlines()[-1:] or ["no output"]
        raise InstallError(
            f"{' '.join(command)} exited with status {returncode}: {detail[0]}",
            command=command,
            returncode=returncode,
        )


# ---------------------------------------------------------------------------
# Build
# ---------------------------------------------------------------------------


async def build_project(
    description: str,
    options: BuildOptions | None = None,
    config: Config | None = None,
) -> BuildResult:
    """Run the full pipeline for *description*.

    Nothing is written until the complete manifest has been rendered, so a
    failing build leaves the output directory untouched.

    Raises:
        ValueError: If *description* is blank.
        SaasForgeError: Any fatal pipeline error.
    """
    if not description or not description.strip():
        raise ValueError("description must contain at least one non-blank character")
    options = options or BuildOptions()
    config = config or Config()

    print_stage_header("extract", "Extracting specification")
    catalog = load_catalog(config.catalog_path) if config.catalog_path else default_catalog()
    specification = parse_description(description, catalog)
    console.print(
        f"  [bold]{specification.name}[/bold]: "
        f"{len(specification.entities)} entities, "
        f"{len(specification.features)} features, "
        f"{len(specification.billing_plans)} plans"
    )

    print_stage_header("render", "Rendering manifest")
    renderer = TemplateRenderer(config.template_dir) if config.template_dir else get_default_renderer()
    generator = ManifestGenerator(renderer, validate_output=config.validate_output)
    manifest = generator.generate(specification)
    console.print(f"  {len(manifest)} files rendered")

    project_root = (options.output_directory or config.output_dir) / specification.slug
    if options.dry_run:
        print_warning("Dry run: nothing written")
        return BuildResult(specification=specification, manifest=manifest, project_root=project_root)

    print_stage_header("write", "Writing files")
    written = await write_manifest(manifest, project_root)
    console.print(f"  {len(written)} files written to {project_root}")

    installed = False
    if not options.skip_install:
        print_stage_header("install", "Installing dependencies")
        await install_dependencies(project_root, config)
        installed = True

    return BuildResult(
        specification=specification,
        manifest=manifest,
        project_root=project_root,
        written=written,
        installed=installed,
    )


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _run_spec(description: str, config: Config) -> None:
    catalog = load_catalog(config.catalog_path) if config.catalog_path else default_catalog()
    specification = parse_description(description, catalog)
    console.print_json(specification.model_dump_json())


def _run_build(args, config: Config) -> None:
    options = BuildOptions(
        dry_run=args.dry_run,
        output_directory=Path(args.output) if args.output else None,
        skip_install=args.skip_install,
    )
    result = asyncio.run(build_project(args.description, options, config))

    print_summary_table(
        {
            "Name": result.specification.name,
            "Entities": ", ".join(e.name for e in result.specification.entities) or "none",
            "Features": ", ".join(f.name for f in result.specification.features) or "none",
            "Plans": ", ".join(p.name for p in result.specification.billing_plans),
            "Files": len(result.manifest),
            "Project root": result.project_root,
            "Written": "no (dry run)" if args.dry_run else len(result.written),
            "Installed": "yes" if result.installed else "no",
        },
        title="Build Summary",
    )
    print_success("Build completed successfully!")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``saasforge`` / ``python -m saasforge.pipeline``."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="saasforge",
        description="saasforge -- generate a multi-tenant web app from a description",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            '  saasforge spec "invoice management for freelancers"\n'
            '  saasforge build "invoice management for freelancers" -o ./output\n'
            '  saasforge build "a contract management app" --dry-run\n'
        ),
    )
    subcommands = parser.add_subparsers(dest="command", required=True)

    spec_parser = subcommands.add_parser("spec", help="Print the extracted specification as JSON")
    spec_parser.add_argument("description", help="Free-text application description")

    build_parser = subcommands.add_parser("build", help="Render and write the project")
    build_parser.add_argument("description", help="Free-text application description")
    build_parser.add_argument(
        "--output", "-o",
        default=None,
        help="Output directory (default: $SAASFORGE_OUTPUT_DIR or ./output)",
    )
    build_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Render the manifest without writing anything",
    )
    build_parser.add_argument(
        "--skip-install",
        action="store_true",
        help="Do not run the install command after writing",
    )
    build_parser.add_argument(
        "--no-validate",
        action="store_true",
        help="Skip syntax validation of rendered files",
    )

    args = parser.parse_args(argv)
    if not args.description.strip():
        parser.error("description must not be blank")

    config = Config.from_env()
    if getattr(args, "no_validate", False):
        config = config.model_copy(update={"validate_output": False})

    try:
        if args.command == "spec":
            _run_spec(args.description, config)
        else:
            _run_build(args, config)
    except SaasForgeError as exc:
        print_error(escape(f"Error [{exc.stage}]: {exc.message}"))
        sys.exit(1)


if __name__ == "__main__":
    main()
