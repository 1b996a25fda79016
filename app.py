import logging

import requests
import streamlit as st

import plantuml
from diagram import build_figure
from layout import Geometry
from session import JournalSession
from settings import load_settings

settings = load_settings()
logging.basicConfig(level=settings.log_level, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def get_session() -> JournalSession:
    if "journal" not in st.session_state:
        st.session_state["journal"] = JournalSession(
            geometry=Geometry(width=settings.diagram_width),
            policy=settings.connector_policy,
            redraw_delay=settings.redraw_delay,
        )
    return st.session_state["journal"]


def render_chat(session: JournalSession):
    st.subheader("💬 Logs")
    for message in session.messages:
        with st.chat_message("user"):
            st.text(message.text)
            st.caption(message.created_at.strftime("%I:%M:%S %p"))
    if st.button("🗑️ Clear all", disabled=not session.messages):
        session.clear()
        st.rerun()


def render_diagram(session: JournalSession):
    if not session.groups:
        st.info("No Logs Visualized Yet. Paste a log entry in the chat box to visualize it as tables.")
        return

    stats = session.stats
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Entries", len(session.entries))
    c2.metric("Events", stats.total_events)
    c3.metric("Sets", len(session.groups))
    c4.metric("Range", f"{stats.min_number} - {stats.max_number}" if stats.total_events else "-")

    width = st.slider(
        "Diagram width", min_value=400, max_value=1600, step=50,
        value=min(max(session.geometry.width, 400), 1600),
    )
    session.resize(width)

    tab_tables, tab_uml = st.tabs(["📊 Sets", "📈 PlantUML"])
    with tab_tables:
        st.plotly_chart(build_figure(session.layout, session.connectors), use_container_width=False)
    with tab_uml:
        render_plantuml(session)


def render_plantuml(session: JournalSession):
    plantuml_code = plantuml.build_plantuml(session.entries)
    st.code(plantuml_code, language="plantuml")

    # rendered by the PlantUML server
    uml_url = plantuml.diagram_url(plantuml_code, settings.plantuml_server, "svg")
    st.image(uml_url)
    st.markdown(f"[🖼️ Open in new window]({uml_url})")

    if st.button("⬇️ Prepare PNG"):
        with st.spinner("Rendering on the PlantUML server..."):
            try:
                png_url = plantuml.diagram_url(plantuml_code, settings.plantuml_server, "png")
                png = plantuml.fetch_diagram(png_url, timeout=settings.plantuml_timeout)
                st.download_button("Download PNG", png, file_name="journal_sequence.png", mime="image/png")
            except requests.RequestException as e:
                logger.error("PlantUML rendering failed: %s", e)
                st.error(f"PlantUML rendering error: {e}")


# Streamlit UI
st.set_page_config(layout="wide", page_title="Journal sequence", page_icon="🧭")
st.title("🧭 Journal Sequence Visualizer")

session = get_session()

text = st.chat_input("Paste a log entry (first line is the label)")
if text is not None:
    if session.submit(text) is None:
        st.warning("⚠️ Empty log entries are ignored.")

col1, col2 = st.columns([3, 1])
with col1:
    render_diagram(session)
with col2:
    render_chat(session)
