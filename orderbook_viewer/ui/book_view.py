"""
Order book TUI using Textual.

Displays:
- Top: Status bar (connection, best bid/ask, spread, gate counters)
- Left / right: Bid and ask tables (Price, Size, Total) with the side sum
- Bottom: Depth chart of the current cumulative curve

Notes:
- Redraws only when the store publishes a new state (already throttled)
- Store listener runs on the same loop as the app, so widgets are set directly
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from rich.console import RenderableType
from rich.style import Style
from rich.table import Table
from rich.text import Text

from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.widgets import Footer, Static

from ..types import BookState, ConnectionStatus, Order, order_total

if TYPE_CHECKING:
    from ..pipeline import OrderBookPipeline

# Color scheme (dark theme)
BID_COLOR = "#22c55e"      # Green
ASK_COLOR = "#ef4444"      # Red
HEADER_COLOR = "#94a3b8"
BAR_BG = "#1e293b"

STATUS_STYLES = {
    ConnectionStatus.CONNECTING: ("Connecting...", "yellow"),
    ConnectionStatus.CONNECTED: ("Connected", BID_COLOR),
    ConnectionStatus.ERROR: ("Connection error", ASK_COLOR),
    ConnectionStatus.DISCONNECTED: ("Disconnected", HEADER_COLOR),
}

MAX_ROWS = 25
CHART_WIDTH = 40


def format_decimal(value: Decimal | None, places: int = 8) -> str:
    """Fixed-point text, trailing zeros dropped."""
    if value is None:
        return "-"
    text = f"{value:.{places}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def make_bar(value: Decimal, max_value: Decimal, width: int, color: str) -> Text:
    """Create a horizontal bar using block characters."""
    if max_value <= 0:
        return Text(" " * width)

    fill_ratio = min(1.0, float(value / max_value))
    fill_width = int(fill_ratio * width)

    bar = "█" * fill_width + " " * (width - fill_width)
    return Text(bar, style=Style(color=color, bgcolor=BAR_BG))


class OrderTable(Static):
    """One side of the book."""

    DEFAULT_CSS = """
    OrderTable {
        width: 1fr;
        height: auto;
    }
    """

    def __init__(self, side: str) -> None:
        super().__init__()
        self.side = side
        self._orders: tuple[Order, ...] = ()
        self._side_sum: str = "0"

    def update_side(self, orders: tuple[Order, ...], side_sum: str) -> None:
        self._orders = orders
        self._side_sum = side_sum
        self.refresh(layout=True)

    def render(self) -> RenderableType:
        color = BID_COLOR if self.side == "bid" else ASK_COLOR
        title = "Bids" if self.side == "bid" else "Asks"

        table = Table(
            title=title,
            show_header=True,
            show_footer=True,
            header_style=HEADER_COLOR,
            box=None,
            padding=(0, 1),
        )
        sum_label = "Bid Sum" if self.side == "bid" else "Ask Sum"
        table.add_column("Price", justify="right", footer=sum_label)
        table.add_column("Size", justify="right", footer=self._side_sum)
        table.add_column("Total", justify="right")

        for order in self._orders[:MAX_ROWS]:
            table.add_row(
                Text(format_decimal(order.price), style=color),
                format_decimal(order.size),
                f"{order_total(order):.8f}",
            )
        return table


class DepthChart(Static):
    """Cumulative depth drawn as horizontal bars, highest price on top."""

    DEFAULT_CSS = """
    DepthChart {
        width: 100%;
        height: auto;
        padding: 1 0;
    }
    """

    def __init__(self) -> None:
        super().__init__()
        self._state: BookState | None = None

    def update_state(self, state: BookState) -> None:
        self._state = state
        self.refresh(layout=True)

    def render(self) -> RenderableType:
        if self._state is None or not self._state.depth_curve:
            return Text("No depth", style="dim")

        curve = self._state.depth_curve
        max_volume = max(
            max(p.cumulative_bid_volume, p.cumulative_ask_volume) for p in curve
        )

        table = Table(show_header=True, header_style=HEADER_COLOR, box=None, padding=(0, 1))
        table.add_column("Price", justify="right", width=14)
        table.add_column("Depth", justify="left", width=CHART_WIDTH, no_wrap=True)
        table.add_column("Cumulative", justify="right", width=16)

        for point in reversed(curve):
            if point.cumulative_ask_volume > 0:
                volume, color = point.cumulative_ask_volume, ASK_COLOR
            else:
                volume, color = point.cumulative_bid_volume, BID_COLOR
            table.add_row(
                Text(format_decimal(point.price), style=color),
                make_bar(volume, max_volume, CHART_WIDTH, color),
                format_decimal(volume),
            )
        return table


class StatusBar(Static):
    """Connection status, top of book and update counters."""

    DEFAULT_CSS = """
    StatusBar {
        dock: top;
        height: 3;
        padding: 0 2;
        background: #0f172a;
    }
    """

    def __init__(self, pipeline: OrderBookPipeline | None = None) -> None:
        super().__init__()
        self._pipeline = pipeline
        self._state: BookState | None = None

    def update_state(self, state: BookState) -> None:
        self._state = state
        self.refresh()

    def render(self) -> RenderableType:
        status = self._state.status if self._state else ConnectionStatus.CONNECTING
        label, color = STATUS_STYLES[status]

        result = Text()
        result.append(f" {label} ", style=f"bold {color}")

        snap = self._state.snapshot if self._state else None
        if snap is None:
            result.append("  Loading...", style="dim")
            return result

        result.append("  Bid: ", style="dim")
        result.append(format_decimal(snap.best_bid), style=BID_COLOR)
        result.append("  Ask: ", style="dim")
        result.append(format_decimal(snap.best_ask), style=ASK_COLOR)
        result.append("  Spread: ", style="dim")
        result.append(f"{snap.spread_bps:.1f}bps", style="yellow")

        if self._pipeline is not None:
            stats = self._pipeline.gate.stats
            result.append("  │  ", style="dim")
            result.append("Updates: ", style="dim")
            result.append(f"{stats.emitted}/{stats.submitted}", style="cyan")
        return result


class OrderBookApp(App):
    """Main order book application."""

    CSS = """
    Screen {
        background: #0f172a;
    }

    #book {
        height: auto;
        padding: 1 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(self, pipeline: OrderBookPipeline) -> None:
        super().__init__()
        self.pipeline = pipeline
        self._unsubscribe = None
        self._status_bar = StatusBar(pipeline)
        self._bids = OrderTable("bid")
        self._asks = OrderTable("ask")
        self._chart = DepthChart()

    def compose(self) -> ComposeResult:
        yield self._status_bar
        yield Horizontal(self._bids, self._asks, id="book")
        yield self._chart
        yield Footer()

    def on_mount(self) -> None:
        """Subscribe to the store and show whatever it already holds."""
        store = self.pipeline.store
        self._unsubscribe = store.subscribe(self.show_state)
        self.show_state(store.state)

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def show_state(self, state: BookState) -> None:
        self._status_bar.update_state(state)
        if state.snapshot is not None:
            self._bids.update_side(state.snapshot.bids, state.snapshot.bid_sum)
            self._asks.update_side(state.snapshot.asks, state.snapshot.ask_sum)
        self._chart.update_state(state)


async def run_ui(pipeline: OrderBookPipeline) -> None:
    """Run the TUI application."""
    app = OrderBookApp(pipeline)
    await app.run_async()
