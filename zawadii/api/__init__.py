"""
HTTP API blueprints for Zawadii.
"""
