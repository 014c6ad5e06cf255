import asyncio
import json
import logging
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.tree import Tree

from detrace.constants import WRAPPED_NATIVE
from detrace.core.config import DecodeConfig
from detrace.core.models import DecoderOutput
from detrace.exceptions import ChainAccessError, MalformedTraceError
from detrace.format import format_action

console = Console()


def _parse_block(value: str) -> int | str:
    if value.isdigit():
        return int(value)
    return value


def _render_output(out: DecoderOutput, tree: Tree) -> None:
    """Attach each node's actions and (non-empty) children to `tree`."""
    stack: list[tuple[DecoderOutput, Tree]] = [(out, tree)]
    while stack:
        current, branch = stack.pop()
        for action in current.results:
            branch.add(f"[green]{action.kind}[/] {format_action(action)}")
        added: list[tuple[DecoderOutput, Tree]] = []
        for child in current.children:
            if not any(True for _ in child.iter_actions()):
                continue
            node = child.node
            added.append((child, branch.add(f"[dim]{node.id}[/] {node.call_kind} [cyan]{node.to}[/]")))
        stack.extend(reversed(added))


@click.group()
@click.option("-v", "--verbose", count=True, help="-v for info, -vv for debug logs")
def cli(verbose: int) -> None:
    """detrace: decode EVM execution traces into high-level actions."""
    level = logging.WARNING if verbose == 0 else logging.INFO if verbose == 1 else logging.DEBUG
    logging.getLogger("detrace").setLevel(level)
    if not logging.getLogger("detrace").handlers:
        logging.getLogger("detrace").addHandler(RichHandler(console=console, show_path=False))


@cli.command("decode")
@click.argument("trace_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--rpc-url", default=None, envvar="DETRACE_RPC_URL", help="RPC endpoint for storage reads")
@click.option("--block", default="latest", show_default=True, help="Block number or tag storage reads are pinned to")
@click.option("--chain", default="ethereum", show_default=True, type=click.Choice(sorted(WRAPPED_NATIVE)))
@click.option(
    "--wrapped-native",
    "wrapped_native",
    multiple=True,
    help="Wrapped native contract; repeat for several (defaults to the chain's known one)",
)
@click.option("--json", "as_json", is_flag=True, help="Print the metadata request set as JSON")
def decode_cmd(
    trace_file: Path,
    rpc_url: str | None,
    block: str,
    chain: str,
    wrapped_native: tuple[str, ...],
    as_json: bool,
) -> None:
    """Decode TRACE_FILE (raw JSON trace) and print the action tree."""
    from detrace.orchestration.orchestrator import decode_trace

    config = DecodeConfig(
        rpc_url=rpc_url,
        block=_parse_block(block),
        chain=chain,
        wrapped_native=wrapped_native or None,
    )

    try:
        raw = json.loads(trace_file.read_text())
        output = asyncio.run(decode_trace(config=config, trace=raw))
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{trace_file} is not valid JSON: {e}") from e
    except ValidationError as e:
        raise click.ClickException(f"{trace_file} is not a valid trace: {e}") from e
    except (MalformedTraceError, ChainAccessError) as e:
        raise click.ClickException(str(e)) from e

    result = output.result
    root = output.root
    tree = Tree(f"[bold]{root.id}[/] {root.call_kind} [cyan]{root.to}[/]")
    _render_output(result.output, tree)
    console.print(tree)

    requests = result.requests
    if as_json:
        console.print_json(json.dumps({"tokens": sorted(requests.tokens), "prices": sorted(requests.prices)}))
    elif not requests.is_empty():
        table = Table(title="Metadata requests")
        table.add_column("token")
        table.add_column("price", justify="center")
        for token in sorted(requests.tokens | requests.prices):
            table.add_row(token, "yes" if token in requests.prices else "")
        console.print(table)

    if result.diagnostics:
        diag = Table(title="Diagnostics", style="yellow")
        diag.add_column("decoder")
        diag.add_column("node")
        diag.add_column("log")
        diag.add_column("error")
        for d in result.diagnostics:
            diag.add_row(d.decoder, d.node_id, "" if d.log_index is None else str(d.log_index), f"{d.error_type}: {d.message}")
        console.print(diag)

    console.print(f"[dim]{output.storage_reads} storage reads[/]")


if __name__ == "__main__":
    cli()
