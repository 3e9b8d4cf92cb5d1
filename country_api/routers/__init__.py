"""
FastAPI routers: ``countries`` holds the JSON API, ``pages`` the HTML views.
"""
