import click
import logging
import traceback
from pathlib import Path

from . import constants
from .config import Config
from .assembler import ImageAssembler
from .resolver import VersionResolver
from .pipeline import ReleasePipeline
from .datacls import TriggerEvent, RegistryCredentials
from .docker import DockerImageBuilder, DockerPublisher, DryRunPublisher
from .utils import setup_logger, parse_module_levels
from .exceptions import (
    ShipwrightError,
    ConfigurationError,
    DefinitionError,
    ResolutionError,
    BuildError,
    PublishError,
    TriggerError,
)
from . import __version__


def complete_config_files(ctx, param, incomplete):
    """Auto-complete .yml and .yaml config files in current directory"""
    cwd = Path.cwd()
    yml_files = list(cwd.glob('*.yml')) + list(cwd.glob('*.yaml'))
    return sorted(f.name for f in yml_files if f.name.startswith(incomplete))


def setup_logging(debug: bool, log_levels: str = None, log_file: str = None):
    """Setup logger with debug and module-level configuration"""
    setup_logger(debug=debug, module_levels=parse_module_levels(log_levels), log_file=log_file)


def _abort(label: str, e: Exception):
    logging.error(f"{label}: {e}")
    ctx = click.get_current_context()
    if ctx.obj.get('debug'):
        traceback.print_exc()
    raise click.Abort()


def handle_errors(func):
    """Decorator to handle common exceptions"""
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ConfigurationError as e:
            _abort("Configuration error", e)
        except DefinitionError as e:
            _abort("Definition error", e)
        except ResolutionError as e:
            _abort("Version resolution error", e)
        except BuildError as e:
            _abort("Build error", e)
        except PublishError as e:
            _abort("Publish error", e)
        except TriggerError as e:
            _abort("Trigger error", e)
        except ShipwrightError as e:
            _abort("An unexpected application error occurred", e)
        except FileNotFoundError as e:
            _abort("A required file was not found", e)
    return wrapper


@handle_errors
def do_version(config_file: str) -> str:
    """Resolve and print the release version"""
    config = Config(config_file)
    resolver = VersionResolver(
        scan_lines=config.model.version.scan_lines,
        strict=config.model.version.strict,
    )
    version = resolver.resolve_file(config.manifest_path)
    click.echo(version)
    return version


@handle_errors
def do_plan(config_file: str):
    """Print the stage chain"""
    config = Config(config_file)
    plan = ImageAssembler(config).plan()
    click.echo(f"{'STAGE':<12} {'FROM':<36} {'USER':<12} {'ENTRYPOINT'}")
    click.echo("-" * 80)
    for stage in plan:
        marker = " *" if stage.name == config.target else ""
        entrypoint = " ".join(plan.entrypoint(stage.name) or [])
        click.echo(f"{stage.name + marker:<12} {plan.source_of(stage):<36} "
                   f"{plan.effective_user(stage.name):<12} {entrypoint}")


@handle_errors
def do_dockerfile(config_file: str, output: str):
    """Render the Dockerfile, to stdout or to a file"""
    config = Config(config_file)
    assembler = ImageAssembler(config)
    if output == "-":
        click.echo(assembler.dockerfile(), nl=False)
    else:
        assembler.write_dockerfile(Path(output) if output else None)


@handle_errors
def do_build(config_file: str, target: str, platforms: tuple):
    """Build a stage locally without publishing"""
    config = Config(config_file)
    assembler = ImageAssembler(config, DockerImageBuilder())
    built = assembler.assemble(target=target, platforms=list(platforms) if platforms else None)
    if built.image_id:
        click.echo(built.image_id)


@handle_errors
def do_release(config_file: str, tag: str, manual: bool, dry_run: bool):
    """Run the release pipeline"""
    config = Config(config_file)

    if tag:
        trigger = TriggerEvent.tag(tag)
    elif manual:
        trigger = TriggerEvent.manual()
    else:
        trigger = TriggerEvent.from_repo(config.context_dir)

    if dry_run:
        publisher = DryRunPublisher()
    else:
        reg = config.model.registry
        credentials = RegistryCredentials.from_env(reg.username_env, reg.token_env, server=reg.server)
        publisher = DockerPublisher(credentials)

    pipeline = ReleasePipeline(config, DockerImageBuilder(), publisher)
    result = pipeline.run(trigger)
    click.echo(f"{result.artifact.digest} {' '.join(result.tags)}")


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('-l', '--log-levels', help="Comma-separated per-module log levels (e.g., 'rsv=DEBUG,dkr=INFO')")
@click.option('-f', '--log-file', help='Path to log file')
@click.version_option(version=__version__, prog_name='shipwright')
@click.pass_context
def cli(ctx, debug, log_levels, log_file):
    """Shipwright - Package a tagged revision as a versioned container image

    \b
    Examples:
      shipw version                 Print the version the release would use
      shipw dockerfile -o -         Print the multi-stage Dockerfile
      shipw build --target rootless Build the rootless variant locally
      shipw release --dry-run       Run the pipeline without pushing
    """
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug
    setup_logging(debug, log_levels, log_file)


config_argument = click.argument(
    'config_file',
    required=False,
    default=constants.DEFAULT_CONFIG_FILENAME,
    shell_complete=complete_config_files,
)


@cli.command()
@config_argument
def version(config_file):
    """Resolve the release version from the manifest"""
    do_version(config_file)


@cli.command()
@config_argument
def plan(config_file):
    """Show the stage chain (* marks the published target)"""
    do_plan(config_file)


@cli.command()
@config_argument
@click.option('-o', '--output', help="Write to this path ('-' for stdout, default: configured dockerfile)")
def dockerfile(config_file, output):
    """Render the multi-stage Dockerfile"""
    do_dockerfile(config_file, output)


@cli.command()
@config_argument
@click.option('-t', '--target', type=click.Choice([constants.BUILDER_STAGE, constants.BASE_STAGE, constants.ROOTLESS_STAGE]),
              help='Stage to build (default: configured target)')
@click.option('-p', '--platform', 'platforms', multiple=True, help='Target platform, repeatable (e.g. linux/arm64)')
def build(config_file, target, platforms):
    """Build a stage locally without tagging or pushing"""
    do_build(config_file, target, platforms)


@cli.command()
@config_argument
@click.option('--tag', help='Tag ref that triggered the release')
@click.option('--manual', is_flag=True, help='Manual dispatch, no tag required')
@click.option('--dry-run', is_flag=True, help='Build but do not log in or push')
def release(config_file, tag, manual, dry_run):
    """Resolve, build and publish the image as :latest and :<version>

    \b
    Without --tag or --manual, the trigger is derived from the git checkout:
    a tag at HEAD means a tag release, otherwise a manual one.
    """
    if tag and manual:
        raise click.UsageError("--tag and --manual are mutually exclusive.")
    do_release(config_file, tag, manual, dry_run)


if __name__ == "__main__":
    cli()
