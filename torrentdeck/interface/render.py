"""Rich renderables projected from a :class:`StateSnapshot`.

Nothing here mutates state: every function takes the snapshot taken after a
drain cycle and returns something Textual can paint.
"""

from __future__ import annotations

from rich.console import Group, RenderableType
from rich.layout import Layout
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from torrentdeck.interface.state import (
    FILTERS,
    Dialog,
    FocusPanel,
    Mode,
    StateSnapshot,
    TorrentRow,
    View,
)
from torrentdeck.models import TorrentStatsState

HELP_LINES: tuple[tuple[str, str], ...] = (
    ("a", "Add torrent (magnet, URL or .torrent path)"),
    ("p", "Pause / resume selected torrent"),
    ("d", "Stop or delete selected torrent"),
    ("r", "Refresh now"),
    ("f / i / v", "Torrents / info / peers view"),
    ("1-6", "Filter: all, downloading, seeding, paused, stopped, error"),
    ("tab", "Switch focus between filters and torrents"),
    ("t / g", "Focus torrents / filters"),
    ("up, k / down, j", "Move in the focused panel"),
    ("?", "Toggle this help"),
    ("q", "Quit"),
    ("", ""),
    ("File picker", ""),
    ("space", "Toggle file"),
    ("a / n", "Select all / none"),
    ("enter", "Start download"),
    ("esc", "Cancel"),
    ("", ""),
    ("Dialogs", ""),
    ("y, left / n, right", "Choose yes / no"),
    ("enter", "Confirm"),
    ("x, esc", "Dismiss error"),
)


def format_bytes(value: int) -> str:
    """Format a byte count with binary units."""
    if value >= 1024**4:
        return f"{value / 1024**4:.2f} TiB"
    if value >= 1024**3:
        return f"{value / 1024**3:.2f} GiB"
    if value >= 1024**2:
        return f"{value / 1024**2:.2f} MiB"
    if value >= 1024:
        return f"{value / 1024:.2f} KiB"
    return f"{value} B"


def format_rate(mbps: float) -> str:
    """Format a MiB/s figure reported by the engine."""
    if mbps >= 1.0:
        return f"{mbps:.1f} MiB/s"
    if mbps * 1024 >= 1.0:
        return f"{mbps * 1024:.1f} KiB/s"
    return "0 B/s"


def format_duration(seconds: int) -> str:
    hours, rem = divmod(max(0, seconds), 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours}:{minutes:02d}:{secs:02d}"


def status_label(row: TorrentRow) -> tuple[str, str]:
    """Return the display label and colour for a torrent row."""
    stats = row.stats
    if stats is None:
        return "Stopped", "dim"
    if stats.state == TorrentStatsState.ERROR:
        return "Error", "red"
    if stats.state == TorrentStatsState.PAUSED:
        return "Paused", "yellow"
    if stats.state == TorrentStatsState.INITIALIZING:
        return "Checking", "cyan"
    if stats.finished:
        return "Seeding", "green"
    return "Downloading", "blue"


def render_top_bar(snap: StateSnapshot) -> Text:
    text = Text()
    text.append(" torrentdeck ", style="bold reverse")
    stats = snap.session_stats
    if stats is None:
        text.append("  engine: waiting for first refresh", style="dim")
        return text
    text.append(f"  ↓ {format_rate(stats.download_speed.mbps)}", style="green")
    text.append(f"  ↑ {format_rate(stats.upload_speed.mbps)}", style="yellow")
    text.append(f"  peers {stats.peers.live}", style="cyan")
    text.append(
        f"  fetched {format_bytes(stats.counters.fetched_bytes)}"
        f"  uploaded {format_bytes(stats.counters.uploaded_bytes)}"
    )
    text.append(f"  up {format_duration(stats.uptime_seconds)}", style="dim")
    return text


def render_filters(snap: StateSnapshot) -> Panel:
    table = Table(expand=True, box=None, show_header=False, pad_edge=False)
    table.add_column("Filter", ratio=3)
    table.add_column("Count", justify="right", ratio=1)
    for idx, kind in enumerate(FILTERS):
        style = "bold reverse" if kind == snap.active_filter else ""
        table.add_row(
            Text(f"{idx + 1} {kind.value}", style=style),
            Text(str(snap.filter_counts.get(kind, 0)), style=style),
        )
    border = "cyan" if snap.focus == FocusPanel.FILTERS else "dim"
    return Panel(table, title="Filters", border_style=border)


def _progress_bar(fraction: float, width: int = 12) -> str:
    filled = int(round(fraction * width))
    return "█" * filled + "░" * (width - filled)


def render_torrents(snap: StateSnapshot) -> Panel:
    table = Table(expand=True, box=None, pad_edge=False)
    table.add_column("Name", ratio=5, no_wrap=True, overflow="ellipsis")
    table.add_column("Status", ratio=2)
    table.add_column("Progress", ratio=3)
    table.add_column("Down", justify="right", ratio=2)
    table.add_column("Up", justify="right", ratio=2)
    table.add_column("Peers", justify="right", ratio=1)

    for position, row in enumerate(snap.rows):
        label, colour = status_label(row)
        stats = row.stats
        if stats is not None:
            progress = f"{_progress_bar(stats.progress)} {stats.progress * 100:5.1f}%"
            down = format_rate(stats.download_mbps)
            up = format_rate(stats.upload_mbps)
            peers = str(stats.peers.live)
        else:
            progress, down, up, peers = "-", "-", "-", "-"
        table.add_row(
            Text(row.name),
            Text(label, style=colour),
            progress,
            down,
            up,
            peers,
            style="reverse" if position == snap.selected_position else None,
        )

    if not snap.rows:
        if snap.total_torrents:
            message = f"No torrents match '{snap.active_filter.value}'."
        else:
            message = "No torrents. Press 'a' to add one."
        body: RenderableType = Group(table, Text(message, style="dim"))
    else:
        body = table
    border = "cyan" if snap.focus == FocusPanel.TORRENTS else "dim"
    title = f"Torrents ({len(snap.rows)}/{snap.total_torrents})"
    return Panel(body, title=title, border_style=border)


def render_info(snap: StateSnapshot) -> Panel:
    row = snap.selected_row
    if row is None:
        return Panel(Text("No torrent selected", style="dim"), title="Info")
    table = Table(expand=True, box=None, show_header=False, pad_edge=False)
    table.add_column("Key", style="bold", ratio=1)
    table.add_column("Value", ratio=3)
    table.add_row("Name", Text(row.name))
    table.add_row("Id", str(row.id))
    table.add_row("Info hash", row.info_hash or "-")
    table.add_row("Folder", Text(row.output_folder or "-"))
    label, colour = status_label(row)
    table.add_row("Status", Text(label, style=colour))
    stats = row.stats
    if stats is not None:
        table.add_row(
            "Progress",
            f"{format_bytes(stats.progress_bytes)} / {format_bytes(stats.total_bytes)}"
            f" ({stats.progress * 100:.1f}%)",
        )
        table.add_row("Uploaded", format_bytes(stats.uploaded_bytes))
        table.add_row(
            "Speed",
            f"↓ {format_rate(stats.download_mbps)}  ↑ {format_rate(stats.upload_mbps)}",
        )
        if stats.error:
            table.add_row("Error", Text(stats.error, style="red"))
    return Panel(table, title="Info")


def render_peers(snap: StateSnapshot) -> Panel:
    row = snap.selected_row
    if row is None or row.stats is None:
        return Panel(Text("No peer data", style="dim"), title="Peers")
    peers = row.stats.peers
    table = Table(expand=True, box=None, pad_edge=False)
    for name in ("Live", "Connecting", "Queued", "Seen", "Dead", "Not needed"):
        table.add_column(name, justify="right")
    table.add_row(
        str(peers.live),
        str(peers.connecting),
        str(peers.queued),
        str(peers.seen),
        str(peers.dead),
        str(peers.not_needed),
    )
    return Panel(table, title=f"Peers: {row.name}")


def render_main(snap: StateSnapshot) -> Panel:
    if snap.view == View.INFO:
        return render_info(snap)
    if snap.view == View.PEERS:
        return render_peers(snap)
    return render_torrents(snap)


def render_status_line(snap: StateSnapshot) -> Text:
    text = Text(f" {snap.status}", style="red" if snap.last_error else "")
    text.append("   ? help  a add  p pause  d delete  q quit", style="dim")
    return text


def render_layout(snap: StateSnapshot) -> Layout:
    """Full-screen layout: top bar, filters beside the main view, status."""
    layout = Layout()
    layout.split_column(
        Layout(render_top_bar(snap), name="top", size=1),
        Layout(name="body"),
        Layout(render_status_line(snap), name="status", size=1),
    )
    layout["body"].split_row(
        Layout(render_filters(snap), name="filters", size=24),
        Layout(render_main(snap), name="main"),
    )
    return layout


def _input_line(text: str, cursor: int) -> Text:
    line = Text(text[:cursor])
    line.append(text[cursor : cursor + 1] or " ", style="reverse")
    line.append(text[cursor + 1 :])
    return line


def _choice(yes: bool) -> Text:
    text = Text()
    text.append(" Yes ", style="bold reverse green" if yes else "dim")
    text.append("   ")
    text.append(" No ", style="dim" if yes else "bold reverse red")
    return text


def render_dialog(snap: StateSnapshot, height: int = 20) -> RenderableType | None:
    """Return the modal overlay for the active dialog, if any."""
    dialog = snap.dialog
    if dialog == Dialog.NONE:
        return None

    if dialog == Dialog.ADD_TORRENT:
        title = "Add torrent" if snap.mode == Mode.ENTER_MAGNET else "Download directory"
        return Panel(
            Group(
                Text(snap.status, style="dim"),
                _input_line(snap.input_text, snap.input_cursor),
            ),
            title=title,
            border_style="cyan",
        )

    if dialog == Dialog.CONFIRM_DELETE:
        name = snap.selected_row.name if snap.selected_row else "torrent"
        return Panel(
            Group(
                Text(f"Delete files of '{name}'?"),
                Text("Yes deletes data; No stops the torrent and keeps files.", style="dim"),
                _choice(snap.delete_choice),
            ),
            title="Delete",
            border_style="yellow",
        )

    if dialog == Dialog.CONFIRM_QUIT:
        return Panel(
            Group(Text("Quit torrentdeck?"), _choice(snap.quit_choice)),
            title="Quit",
            border_style="yellow",
        )

    if dialog == Dialog.ERROR:
        return Panel(
            Group(
                Text(snap.last_error or "Unknown error", style="red"),
                Text("Press x or esc to dismiss", style="dim"),
            ),
            title="Error",
            border_style="red",
        )

    if dialog == Dialog.HELP:
        table = Table(expand=True, box=None, show_header=False, pad_edge=False)
        table.add_column("Key", style="bold cyan", ratio=1)
        table.add_column("Action", ratio=3)
        for key, description in HELP_LINES[snap.help_scroll : snap.help_scroll + height]:
            table.add_row(key, description)
        return Panel(table, title="Help", border_style="cyan")

    if dialog == Dialog.FILE_PICKER and snap.file_picker is not None:
        picker = snap.file_picker
        table = Table(expand=True, box=None, pad_edge=False)
        table.add_column("", width=3)
        table.add_column("File", ratio=4, no_wrap=True, overflow="ellipsis")
        table.add_column("Size", justify="right", ratio=1)
        start = max(0, picker.cursor - height + 1)
        for idx, entry in enumerate(picker.files[start : start + height], start=start):
            table.add_row(
                Text("[x]" if entry.included else "[ ]"),
                Text(entry.name),
                format_bytes(entry.length),
                style="reverse" if idx == picker.cursor else None,
            )
        selected = picker.included_indices()
        total = sum(picker.files[i].length for i in selected)
        footer = Text(
            f"{len(selected)}/{len(picker.files)} files, {format_bytes(total)}"
            f"  into {picker.output_folder}",
            style="dim",
        )
        return Panel(Group(table, footer), title="Select files", border_style="cyan")

    return None
