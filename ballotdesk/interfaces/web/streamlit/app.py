"""Streamlitアプリのエントリーポイント.

起動: streamlit run ballotdesk/interfaces/web/streamlit/app.py
"""

import streamlit as st

from ballotdesk.common.logging import setup_logging
from ballotdesk.infrastructure.config.settings import get_settings
from ballotdesk.interfaces.web.streamlit.views.ballot_editor_view import (
    render_ballot_editor_page,
)


def main() -> None:
    settings = get_settings()
    setup_logging(log_level=settings.log_level, json_format=settings.log_json)
    st.set_page_config(page_title="ballotdesk", layout="wide")
    render_ballot_editor_page()


main()
