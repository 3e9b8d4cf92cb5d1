"""
Use cases for the country records service.

Routers call these services instead of touching the repository or the JSON
file directly.
"""
