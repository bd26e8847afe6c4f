"""Infrastructure layer: filesystem, templates, scanning, search.

This layer depends on stdlib, third-party libs (Jinja2 loaders,
RapidFuzz, ruamel.yaml via the domain), and the domain layer.
It must never import from services, commands, output, or mcp.
"""
