"""
Streamlit UI for Chest X-Ray Analysis
=====================================

Presentation shell over the X-ray pipeline.

UI FLOW:
1. User uploads a chest X-ray
2. ScanSession classifies it on a background worker
3. The report card shows classification, confidence, severity,
   description, recommendations and other possibilities
4. Every completed analysis is recorded in the sidebar history
5. The chat panel answers questions about the current report

Run with: streamlit run app.py
"""

import logging
from concurrent.futures import ThreadPoolExecutor

import streamlit as st
from PIL import Image

from assistant.chat import ChatEngine, Sender
from assistant.formatting import format_percent, severity_badge, color_to_hex
from assistant.pipeline import create_pipeline
from assistant.scan_session import ScanSession
from common.config_loader import load_config_object
from diagnosis.knowledge_base import Report

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# ============================================================================
# SESSION STATE INITIALIZATION
# ============================================================================

@st.cache_resource
def load_pipeline():
    """
    Build the pipeline once per server process.

    The classifier itself loads lazily on the first analysis.
    """
    return create_pipeline()


@st.cache_resource
def load_executor():
    """One inference worker shared by every browser session."""
    return ThreadPoolExecutor(max_workers=1, thread_name_prefix='xray-inference')


def init_session_state():
    """Initialize session state variables."""
    if 'scan_session' not in st.session_state:
        st.session_state.scan_session = ScanSession(load_pipeline(), executor=load_executor())
    if 'chat_engine' not in st.session_state:
        config = load_config_object()
        chat_cfg = config.get('chat')
        if chat_cfg and chat_cfg.get('welcome_message'):
            st.session_state.chat_engine = ChatEngine(welcome_message=chat_cfg.welcome_message)
        else:
            st.session_state.chat_engine = ChatEngine()
    if 'uploaded_image' not in st.session_state:
        st.session_state.uploaded_image = None


# ============================================================================
# IMAGE ANALYSIS
# ============================================================================

def run_analysis(uploaded_file):
    """
    Classify the uploaded image and attach the report to the chat.

    Args:
        uploaded_file: Streamlit UploadedFile object
    """
    session = st.session_state.scan_session

    try:
        image = Image.open(uploaded_file).convert('RGB')
    except OSError as e:
        session.error = f"Failed to load the selected image: {e}"
        return

    st.session_state.uploaded_image = image

    with st.spinner('Analyzing X-ray...'):
        future = session.select_image(image)
        report = session.wait_for_result(future)

    if report is not None:
        st.session_state.chat_engine.set_report(report)


# ============================================================================
# RENDERING
# ============================================================================

def render_report(report: Report):
    """Report card: header, analysis, recommendations, other possibilities."""
    with st.container(border=True):
        st.subheader(report.classification)
        st.caption(f"Confidence: {format_percent(report.confidence)}")
        st.markdown(severity_badge(report.severity), unsafe_allow_html=True)

        st.markdown("#### Analysis")
        st.text(report.description)

        st.markdown("#### Recommendations")
        for recommendation in report.recommendations:
            st.markdown(f"✅ {recommendation}")

        if report.other_possibilities:
            st.markdown("#### Other Possibilities")
            for label, confidence in report.other_possibilities:
                col1, col2 = st.columns([4, 1])
                col1.write(label)
                col2.write(format_percent(confidence))


def render_history_sidebar():
    """Searchable history grouped by date, with per-entry delete."""
    history = st.session_state.scan_session.pipeline.history

    st.sidebar.header("History")
    query = st.sidebar.text_input("Search history...", key='history_query')

    groups = history.grouped_by_date(history.search_history(query))
    if not groups:
        st.sidebar.caption("No history found")
        return

    for date, entries in groups:
        st.sidebar.markdown(f"**{date}**")
        for entry in entries:
            hex_color = color_to_hex(entry.severity_color)
            col1, col2 = st.sidebar.columns([5, 1])
            col1.markdown(
                f"{entry.diagnosis}  \n{format_percent(entry.confidence)} · "
                f"<span style='color:{hex_color}'>{entry.severity}</span>",
                unsafe_allow_html=True,
            )
            if col2.button("🗑", key=f"delete-{entry.id}"):
                history.delete_item(entry.id)
                st.rerun()

    st.sidebar.download_button(
        "Export history (CSV)",
        data=history.to_frame().to_csv(index=False),
        file_name="xray_history.csv",
        mime="text/csv",
    )


def render_chat():
    """Chat transcript and input."""
    engine = st.session_state.chat_engine

    st.header("Chat")
    for message in engine.messages:
        role = 'user' if message.sender is Sender.USER else 'assistant'
        with st.chat_message(role):
            st.text(message.content)

    user_input = st.chat_input("Type a message...")
    if user_input:
        engine.send_message(user_input)
        st.rerun()


# ============================================================================
# MAIN UI
# ============================================================================

def main():
    """
    Main Streamlit application.
    """
    st.set_page_config(
        page_title="X-Ray AI",
        page_icon="🩻",
        layout="wide"
    )

    init_session_state()
    session = st.session_state.scan_session

    # Results from analyses that finished between reruns
    session.process_pending()

    st.title("🩻 X-ray Analysis")

    render_history_sidebar()

    col_scan, col_chat = st.columns([3, 2])

    with col_scan:
        uploaded_file = st.file_uploader(
            "Select X-ray Image",
            type=['jpg', 'jpeg', 'png'],
            help="Upload a chest X-ray for analysis"
        )

        if uploaded_file is not None and st.button("🔬 Analyze Image", type="primary"):
            run_analysis(uploaded_file)

        if st.session_state.uploaded_image is not None:
            st.image(st.session_state.uploaded_image, width=400)

        if session.error:
            st.error(session.error)
        elif session.is_analyzing:
            st.info("Analyzing X-ray...")
        elif session.current_report is not None:
            render_report(session.current_report)

    with col_chat:
        render_chat()

    st.caption(
        "This is an AI-generated analysis. All findings must be validated "
        "by a qualified medical professional."
    )


if __name__ == "__main__":
    main()
