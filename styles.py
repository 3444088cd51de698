import streamlit as st

from constants import COLORS


def inject_button_css():
    st.markdown(f"""
    <style>
    .stButton>button, div[data-testid="baseButton-secondary"], .stFormSubmitButton>button {{
      background-color: {COLORS["primary"]} !important;
      color: white !important;
      border: 1px solid #244a20 !important;
      border-radius: 12px !important;
      font-weight: 700 !important;
    }}
    .stButton>button:hover, div[data-testid="baseButton-secondary"]:hover, .stFormSubmitButton>button:hover {{
      background-color: #25501f !important;
      border-color: #1d3f19 !important;
    }}
    .ra-badge {{
      display: inline-block; padding: 2px 10px; border-radius: 6px;
      font-size: 0.75rem; font-weight: 800; color: white; margin-right: 6px;
    }}
    </style>
    """, unsafe_allow_html=True)


def badge(text: str, color: str) -> str:
    return f'<span class="ra-badge" style="background:{color}">{text}</span>'
