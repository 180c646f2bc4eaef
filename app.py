"""Entry point for Streamlit deployment - runs the viewer in app/app.py"""
import os
import runpy

here = os.path.dirname(os.path.abspath(__file__))
runpy.run_path(os.path.join(here, "app", "app.py"), run_name="__main__")
