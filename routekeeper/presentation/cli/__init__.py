"""Command Line Interface (CLI) Presentation Layer

Key Components:
    commands.py: CLI command registration and implementation

Usage::

    routekeeper init-db
    routekeeper list --name trail --sort-by distance
    routekeeper delete 3 --coordinates-target 5
    routekeeper import routes.csv --user alice
    routekeeper web --port 8080
"""
