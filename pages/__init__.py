# Pages package initialization
# Page scripts are executed by st.navigation in app.py, not imported
