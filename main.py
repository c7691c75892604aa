from __future__ import annotations

import streamlit as st


def main():
    """Redirect to the tech tree as the default landing page."""
    st.switch_page("pages/Tech_tree.py")


if __name__ == "__main__":
    main()
