import json
import logging
import sys

import click
from pydantic import ValidationError

from .lsp.capabilities import apply_client_capabilities, get_client_capabilities
from .lsp.protocol import LSPProtocolError, LSPResponseError, MalformedRangeError
from .lsp.requests import FOLDING_RANGES_REQUEST, decode_response, make_request
from .lsp.types import FoldingProviderClientCapabilities, FoldingRangeRequestParams
from .output.formatters import format_output
from .utils.config import (
    DEFAULT_CONFIG,
    ConfigError,
    get_config_path,
    get_log_level,
    load_config,
    save_config,
)
from .utils.uri import document_identifier


class OrderedGroup(click.Group):
    def __init__(self, *args, commands_order: list[str] | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.commands_order = commands_order or []

    def list_commands(self, ctx):
        commands = super().list_commands(ctx)
        if self.commands_order:
            ordered = [c for c in self.commands_order if c in commands]
            remaining = [c for c in commands if c not in self.commands_order]
            return ordered + remaining
        return commands


CLI_HELP = """\
Work with textDocument/foldingRanges requests and responses.

Use `lspfold request FILE` to build the JSON-RPC request for a document and
`lspfold ranges RESPONSE` to decode a server's answer, applying the client's
folding capabilities from the config file.
"""


def setup_logging(level_name: str) -> None:
    level = get_log_level(level_name)
    if level is None:
        raise click.BadParameter(f"Unknown log level: {level_name}", param_hint="--log-level")

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def get_config(ctx) -> dict:
    if "config" not in ctx.obj:
        try:
            ctx.obj["config"] = load_config()
        except ConfigError as e:
            raise click.ClickException(str(e))
    return ctx.obj["config"]


def output_format(ctx) -> str:
    return "json" if ctx.obj["json"] else "plain"


@click.group(
    cls=OrderedGroup,
    commands_order=["request", "ranges", "capabilities", "config"],
    help=CLI_HELP,
    context_settings={"help_option_names": ["-h", "--help"], "max_content_width": 120},
)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.option("--log-level", default=None, help="Logging level (default: from config)")
@click.pass_context
def cli(ctx, json_output, log_level):
    ctx.ensure_object(dict)
    ctx.obj["json"] = json_output
    if log_level is None:
        log_level = get_config(ctx)["logging"]["level"]
    setup_logging(log_level)


@cli.command("request")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--id", "request_id", default=1, show_default=True, help="JSON-RPC request id")
@click.pass_context
def request(ctx, path, request_id):
    """Print the folding-ranges JSON-RPC request for PATH."""
    params = FoldingRangeRequestParams(text_document=document_identifier(path))
    message = make_request(FOLDING_RANGES_REQUEST, params, request_id)
    click.echo(json.dumps(message, indent=2 if ctx.obj["json"] else None))


def _read_json(source) -> object:
    try:
        return json.load(source)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {source.name}: {e}")


@cli.command("ranges")
@click.argument("response", type=click.File("r"))
@click.option(
    "--complete-lines",
    type=click.BOOL,
    default=None,
    help="Whether the client folds complete lines only (default: from config)",
)
@click.option("--max", "maximum", type=click.IntRange(min=0), default=None, help="Maximum number of ranges hint")
@click.option("--truncate", is_flag=True, help="Cut the result down to the maximum")
@click.option("--reject-offsets", is_flag=True, help="Fail on character offsets instead of stripping them")
@click.pass_context
def ranges(ctx, response, complete_lines, maximum, truncate, reject_offsets):
    """Decode a folding-ranges RESPONSE and print its ranges.

    RESPONSE is a JSON file holding either a full JSON-RPC response message
    or a bare result (`{"ranges": [...]}` or `null`). Use `-` for stdin.
    """
    folding = get_config(ctx)["folding"]
    data = _read_json(response)

    try:
        if isinstance(data, dict) and "jsonrpc" in data:
            result = decode_response(FOLDING_RANGES_REQUEST, data)
        else:
            result = FOLDING_RANGES_REQUEST.decode_result(data)
    except LSPResponseError as e:
        if e.is_method_not_found():
            raise click.ClickException(f"Server does not support {FOLDING_RANGES_REQUEST.method}: {e.message}")
        raise click.ClickException(f"Server returned an error: {e.message} (code {e.code})")
    except (LSPProtocolError, MalformedRangeError) as e:
        raise click.ClickException(str(e))
    except ValidationError as e:
        raise click.ClickException(f"Invalid folding-ranges result: {e}")

    capabilities = FoldingProviderClientCapabilities(
        complete_line_folding_only=(
            folding["complete_line_folding_only"] if complete_lines is None else complete_lines
        ),
        maximum_number_of_ranges=folding["maximum_number_of_ranges"] if maximum is None else maximum,
    )
    policy = "reject" if reject_offsets else folding["on_character_offsets"]

    try:
        result = apply_client_capabilities(
            result,
            capabilities,
            on_character_offsets=policy,
            truncate=truncate or folding["truncate"],
        )
    except MalformedRangeError as e:
        raise click.ClickException(str(e))

    click.echo(format_output(result, output_format(ctx)))


@cli.command("capabilities")
@click.pass_context
def capabilities(ctx):
    """Print the client capabilities advertised for folding ranges."""
    click.echo(json.dumps(get_client_capabilities(get_config(ctx)), indent=2))


@cli.command()
@click.option("--init", "init", is_flag=True, help="Write the default config file")
@click.pass_context
def config(ctx, init):
    """Print config file location and contents."""
    config_path = get_config_path()

    if init:
        if config_path.exists():
            raise click.ClickException(f"Config file already exists: {config_path}")
        save_config(DEFAULT_CONFIG)
        click.echo(f"Wrote default config to {config_path}")
        return

    click.echo(f"Config file: {config_path}")
    click.echo()

    if config_path.exists():
        click.echo(config_path.read_text())
    else:
        click.echo("(file does not exist, using defaults)")
