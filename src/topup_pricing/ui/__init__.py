"""UI subpackage - Streamlit admin console."""
