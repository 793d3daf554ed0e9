"""
Games module - Built-in content packs.

Each pack has its own subpackage with:
- Card templates
- Stage definitions
- A factory returning a ContentBundle
"""
