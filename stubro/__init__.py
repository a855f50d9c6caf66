"""StuBro: an AI study assistant built on Gemini, Firebase and Streamlit."""

__version__ = "0.3.0"
