from __future__ import annotations
import asyncio, logging
import typer
from collections import Counter
from rich import print
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from typing import Optional, Tuple
from .config import load_config
from .errors import GazeReadingError
from .eye.geometry import LEFTWARD, RIGHTWARD
from .io.samples import read_samples
from .runtime.events import EventMessage, Saccade, Status, StatusMessage
from .runtime.session import replay as replay_stream

app = typer.Typer(add_completion=False, help="GazeReadingKit CLI (grk)")

@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging (pattern matches, discarded runs).")):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(message)s",
                        handlers=[RichHandler(console=Console(stderr=True), show_path=False)], force=True)

def _screen(value: Optional[str]) -> Optional[Tuple[int, int]]:
    if not value: return None
    try:
        w, h = value.lower().split("x")
        return int(w), int(h)
    except ValueError:
        raise typer.BadParameter(f"expected WIDTHxHEIGHT, got {value!r}")

def _fail(e: Exception):
    print(f"[red]error:[/red] {escape(str(e))}")
    raise typer.Exit(1)

@app.command()
def replay(path: str = typer.Argument(..., help="JSONL or CSV file of x,y,t samples (t in ms)."),
           config: Optional[str] = typer.Option(None, "--config", "-c"),
           screen: Optional[str] = typer.Option(None, help="Scale normalized coords, e.g. 1280x720."),
           summary: bool = typer.Option(False, help="Print totals instead of JSONL.")):
    """
    Replay a recorded gaze stream; decay ticks follow the sample clock.
    """
    try:
        cfg = load_config(config)
        counts: Counter = Counter()
        final: Optional[Status] = None
        peak = 0.0
        for t, out in replay_stream(read_samples(path, _screen(screen)), cfg):
            if isinstance(out, Status):
                final = out; peak = max(peak, out.confidence)
                if not summary: typer.echo(StatusMessage(ts=t, status=out).model_dump_json())
            else:
                counts[out.type] += 1
                if isinstance(out, Saccade):
                    counts["rightward" if out.direction in RIGHTWARD else
                           "leftward" if out.direction in LEFTWARD else "vertical"] += 1
                if not summary: typer.echo(EventMessage(ts=t, event=out).model_dump_json())
    except (GazeReadingError, ValueError, OSError) as e:
        _fail(e)
    if summary:
        tbl = Table(title=path)
        tbl.add_column("metric"); tbl.add_column("value", justify="right")
        tbl.add_row("fixations", str(counts["fixation"]))
        tbl.add_row("saccades", str(counts["saccade"]))
        for k in ("rightward", "leftward", "vertical"):
            tbl.add_row(f"  {k}", str(counts[k]))
        tbl.add_row("peak confidence", f"{peak:.3f}")
        tbl.add_row("final status", final.label if final else "-")
        print(tbl)

@app.command()
def serve(host: str = typer.Option("0.0.0.0"), port: int = typer.Option(8765),
          config: Optional[str] = typer.Option(None, "--config", "-c"),
          screen: Optional[str] = typer.Option(None, help="Scale normalized coords, e.g. 1280x720."),
          echo: bool = typer.Option(False, help="Also print outgoing messages as JSONL.")):
    """
    WebSocket server: one reading session per connection.
    """
    from .runtime.server import serve as ws_serve
    try:
        cfg = load_config(config)
    except GazeReadingError as e:
        _fail(e)
    try:
        asyncio.run(ws_serve(cfg, host, port, _screen(screen), on_line=typer.echo if echo else None))
    except KeyboardInterrupt:
        pass

@app.command("config")
def show_config(config: Optional[str] = typer.Option(None, "--config", "-c")):
    """
    Validate a YAML config and print the effective thresholds.
    """
    try:
        cfg = load_config(config)
    except GazeReadingError as e:
        _fail(e)
    tbl = Table(title=config or "defaults")
    tbl.add_column("key"); tbl.add_column("value", justify="right")
    for k, v in cfg.model_dump().items():
        tbl.add_row(k, "-" if v is None else str(v))
    print(tbl)

if __name__ == "__main__":
    app()
