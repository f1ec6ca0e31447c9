"""Streamlit front end. Run with ``streamlit run src/hafalan_portal/ui/app.py``."""
