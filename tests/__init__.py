"""
RouteKeeper test package.

- unit/: tests of individual modules (domain, persistence, application, presentation)
- integration/: multi-layer scenarios against a file database
"""
