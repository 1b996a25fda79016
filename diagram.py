from typing import Dict, List

import plotly.graph_objects as go

from journal_parser import format_timestamp
from layout import Connector, ConnectorStyle, Layout
from sequencer import EventKind

KIND_COLORS: Dict[EventKind, str] = {
    EventKind.REQUEST: "#6366f1",
    EventKind.RESPONSE: "#3b82f6",
}

CONNECTOR_STYLES: Dict[ConnectorStyle, dict] = {
    ConnectorStyle.REQUEST: dict(color="#6366f1", width=3),
    ConnectorStyle.RESPONSE: dict(color="#3b82f6", width=3),
    ConnectorStyle.MIXED: dict(color="#8b5cf6", width=2),
}

BORDER = "#d1d5db"
HEADER_FILL = "#f3f4f6"
TEXT = "#1f2937"


def _wrap(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 1] + "…"


def build_figure(layout: Layout, connectors: List[Connector]) -> go.Figure:
    """Tables per group, number markers and dashed connectors on one canvas."""
    geo = layout.geometry
    fig = go.Figure()
    label_chars = max(int(geo.label_column / 8), 10)

    # ---- tables ----
    for table in layout.tables:
        fig.add_annotation(
            x=0, y=table.top + geo.title_height / 2, text=f"<b>{table.title}</b>",
            showarrow=False, xanchor="left", font=dict(size=15, color=TEXT),
        )
        fig.add_shape(
            type="rect", x0=0, x1=geo.total_width, y0=table.header_top,
            y1=table.header_top + geo.header_height, fillcolor=HEADER_FILL,
            line=dict(color=BORDER), layer="below",
        )
        header_y = table.header_top + geo.header_height / 2
        for x, text in (
            (12, "Log Entry"),
            (geo.column_centre(EventKind.REQUEST), "Request"),
            (geo.column_centre(EventKind.RESPONSE), "Response"),
        ):
            fig.add_annotation(
                x=x, y=header_y, text=f"<b>{text}</b>", showarrow=False,
                xanchor="left" if text == "Log Entry" else "center", font=dict(color=TEXT),
            )
        for row in table.rows:
            fig.add_shape(
                type="rect", x0=0, x1=geo.total_width, y0=row.top, y1=row.bottom,
                line=dict(color=BORDER), layer="below",
            )
            fig.add_annotation(
                x=12, y=row.centre, text=_wrap(row.entry.first_column, label_chars),
                hovertext=row.entry.raw_text.replace("\n", "<br>"),
                showarrow=False, xanchor="left", font=dict(color=TEXT),
            )
        for x in (geo.label_column, geo.label_column + geo.number_column):
            fig.add_shape(
                type="line", x0=x, x1=x, y0=table.header_top, y1=table.bottom,
                line=dict(color=BORDER), layer="below",
            )

    # ---- connectors ----
    for style, line in CONNECTOR_STYLES.items():
        xs: List = []
        ys: List = []
        for c in connectors:
            if c.style is style:
                xs += [c.start.x, c.end.x, None]
                ys += [c.start.y, c.end.y, None]
        if xs:
            fig.add_trace(go.Scatter(
                x=xs, y=ys, mode="lines", name=f"{style.value} link",
                line=dict(dash="dash", **line), opacity=0.8, hoverinfo="skip",
            ))

    # ---- number markers ----
    entries = {row.entry.id: row.entry for table in layout.tables for row in table.rows}
    for kind, color in KIND_COLORS.items():
        labels = [label for label in layout.labels if label.kind is kind]
        if not labels:
            continue
        hover = [
            f"{kind.value.title()} #{label.number} at "
            f"{format_timestamp(entries[label.entry_id].timestamp_for(kind))}"
            for label in labels
        ]
        fig.add_trace(go.Scatter(
            x=[label.x for label in labels], y=[label.y for label in labels],
            mode="markers+text", name=kind.value.title(),
            marker=dict(size=30, color=color, line=dict(color="white", width=2)),
            text=[str(label.number) for label in labels], textfont=dict(color="white"),
            hovertext=hover, hoverinfo="text",
        ))

    height = max(layout.height, 120)
    fig.update_xaxes(visible=False, range=[-4, geo.total_width + 4])
    fig.update_yaxes(visible=False, range=[height + 4, -4])
    fig.update_layout(
        height=height + 40, width=geo.total_width + 40, margin=dict(l=20, r=20, t=20, b=20),
        plot_bgcolor="white", showlegend=True, legend=dict(orientation="h", y=-0.02),
    )
    return fig
