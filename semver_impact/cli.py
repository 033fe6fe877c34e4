"""CLI entrypoint for semver-impact."""

import sys
from pathlib import Path

import click

from . import __version__
from .logging_config import setup_logging

_RELEASE_CHOICES = click.Choice(["major", "minor", "patch", "none"])


@click.group()
@click.version_option(__version__, prog_name="semver-impact")
@click.option("--verbose", is_flag=True, help="Show debug logging")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors")
def cli(verbose: bool, quiet: bool) -> None:
    """semver-impact - Classify API changes into semantic version bumps.

    Compares two module analysis documents (JSON or YAML declaration trees),
    describes every change along target/action/aspect/impact, and applies a
    policy to decide the release type.
    """
    if verbose and quiet:
        raise click.UsageError("--verbose and --quiet are mutually exclusive")
    setup_logging(verbose=verbose, quiet=quiet)


@cli.command()
@click.argument("old", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("new", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--policy",
    "policy_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Policy file (TOML or YAML); takes precedence over --builtin",
)
@click.option(
    "--builtin",
    default="semver-default",
    show_default=True,
    help="Built-in policy to apply (see `semver-impact policies`)",
)
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.option(
    "--fail-on",
    type=_RELEASE_CHOICES,
    default=None,
    help="Exit with status 1 if the overall release is this severe or worse",
)
def diff(old: Path, new: Path, policy_path: Path | None, builtin: str, output_json: bool, fail_on: str | None) -> None:
    """Diff OLD and NEW module analyses and report the release type."""
    from .commands.diff import run_diff

    exit_code = run_diff(
        old,
        new,
        policy_path=policy_path,
        builtin=builtin,
        output_json=output_json,
        fail_on=fail_on,
    )
    sys.exit(exit_code)


@cli.command()
@click.argument("rules", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
def decompile(rules: Path, output_json: bool) -> None:
    """Show the pattern and intent forms of the dimensional rules in RULES."""
    from .commands.decompile import run_decompile

    sys.exit(run_decompile(rules, output_json=output_json))


@cli.command()
@click.argument("name", required=False)
@click.option(
    "--file",
    "policy_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Show the rules of a policy file instead of a built-in policy",
)
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
def policies(name: str | None, policy_path: Path | None, output_json: bool) -> None:
    """List built-in policies, or show the rules of policy NAME."""
    from .commands.policies import run_policies

    sys.exit(run_policies(name, policy_path=policy_path, output_json=output_json))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
