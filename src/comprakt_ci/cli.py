"""CLI entrypoint for the comprakt build driver."""

from typing import Optional

import click
from dotenv import load_dotenv

from comprakt_ci.config import ConfigError, EnvConfig, load_ci_bundle, load_env_config

# Load .env file on CLI startup
load_dotenv()


class PassthroughCommand(click.Command):
    """Hands every token to the callback untouched, `--` and `--help` included.

    Parsing happens in parse_build_args (build) or in the compiler itself (run).
    """

    def parse_args(self, ctx: click.Context, args):
        ctx.args = list(args)
        return ctx.args


def _script_path(ctx: click.Context) -> Optional[str]:
    """Path of a wrapper script that invoked us, if any (see ./build, ./run)."""
    return (ctx.obj or {}).get("script_path")


def _load_env_or_exit(ctx: click.Context) -> EnvConfig:
    try:
        return load_env_config(_script_path(ctx))
    except ConfigError as e:
        click.echo(f"[ERROR] {e}", err=True)
        raise SystemExit(1)


@click.group()
@click.version_option(package_name="comprakt-ci")
def cli():
    """comprakt build driver - phases, launcher and CI matrix."""
    pass


@cli.command("build", cls=PassthroughCommand)
@click.pass_context
def build(ctx: click.Context):
    """Run the build phases.

    \b
    Tokens:
        --release      optimized cargo profile (default)
        --debug        debug cargo profile
        --noclean      skip `cargo clean`
        --ci           emulate the CI build: fmt, clippy, test (debug)
        --speedcenter  accepted, no effect
    """
    from comprakt_ci.config import parse_build_args
    from comprakt_ci.step_runner import StepFailedError, run_build

    env_config = _load_env_or_exit(ctx)

    try:
        bundle = None
        if env_config.ci_bundle_file is not None:
            bundle = load_ci_bundle(env_config.ci_bundle_file)
        config = parse_build_args(ctx.args, ci_bundle=bundle)
    except ConfigError as e:
        click.echo(f"[ERROR] {e}", err=True)
        raise SystemExit(1)

    try:
        run_build(config, env_config)
    except StepFailedError as e:
        click.echo(f"[ERROR] {e}", err=True)
        raise SystemExit(e.exit_code)


@cli.command("run", cls=PassthroughCommand)
@click.pass_context
def run(ctx: click.Context):
    """Run the built compiler, forwarding ARGS and its exit status.

    The binary is looked up at target/$COMPRAKT_PROFILE/comprakt
    (default profile: release).
    """
    from comprakt_ci.launcher import launch, resolve_binary

    env_config = _load_env_or_exit(ctx)
    raise SystemExit(launch(resolve_binary(env_config), ctx.args))


@cli.command("ci")
@click.pass_context
def ci(ctx: click.Context):
    """Run the CI pipeline selected by $TEST_KIND."""
    from comprakt_ci.ci_matrix import dispatch, parse_test_kind
    from comprakt_ci.step_runner import StepFailedError

    env_config = _load_env_or_exit(ctx)

    try:
        test_kind = parse_test_kind(env_config.test_kind)
    except ConfigError as e:
        click.echo(f"[ERROR] {e}", err=True)
        raise SystemExit(1)

    try:
        dispatch(test_kind, env_config)
    except StepFailedError as e:
        click.echo(f"[ERROR] {e}", err=True)
        raise SystemExit(e.exit_code)


@cli.command("check-config")
@click.pass_context
def check_config(ctx: click.Context):
    """Show the configuration read from the environment."""
    from comprakt_ci.launcher import resolve_binary

    env_config = _load_env_or_exit(ctx)
    binary = resolve_binary(env_config)

    click.echo("Configuration loaded successfully!")
    click.echo(f"  COMPRAKT_ROOT: {env_config.root}")
    click.echo(f"  COMPRAKT_PROFILE: {env_config.launch_profile}"
               + ("" if env_config.launch_profile_override else " (default)"))
    click.echo(f"  binary: {binary.resolved_path}"
               + ("" if binary.resolved_path.exists() else " [missing]"))
    click.echo(f"  TEST_KIND: {env_config.test_kind or '[not set]'}")
    click.echo(f"  MJTEST_DIR: {env_config.mjtest_dir}")
    click.echo(f"  MJTEST_TIMEOUT: {env_config.mjtest_timeout}s")
    click.echo(f"  COMPRAKT_CI_BUNDLE: {env_config.ci_bundle_file or '[not set]'}")
    click.echo(f"  COMPRAKT_REPORT_DIR: {env_config.report_dir or '[not set]'}")


@cli.command("observe")
@click.option(
    "--reports-dir",
    type=click.Path(),
    default=None,
    help="Directory for build reports (default: $COMPRAKT_REPORT_DIR)",
)
@click.option("--limit", default=5, help="Number of runs shown in the history")
@click.pass_context
def observe(ctx: click.Context, reports_dir: Optional[str], limit: int):
    """Show a summary of recent build runs.

    Read-only. Needs reports written with COMPRAKT_REPORT_DIR set.
    """
    from pathlib import Path
    from comprakt_ci.observe import print_summary

    if reports_dir is None:
        env_config = _load_env_or_exit(ctx)
        if env_config.report_dir is None:
            click.echo("[ERROR] pass --reports-dir or set COMPRAKT_REPORT_DIR", err=True)
            raise SystemExit(1)
        reports_dir = str(env_config.report_dir)

    print_summary(Path(reports_dir), limit=limit)


def build_main(script_path: Optional[str] = None):
    """Console entry point: `comprakt-build [TOKENS...]`."""
    build.main(prog_name="build", obj={"script_path": script_path})


def run_main(script_path: Optional[str] = None):
    """Console entry point: `comprakt-run [ARGS...]`."""
    run.main(prog_name="run", obj={"script_path": script_path})


def ci_main(script_path: Optional[str] = None):
    """Console entry point: `comprakt-ci`."""
    ci.main(prog_name="ci", obj={"script_path": script_path})


if __name__ == "__main__":
    cli()
