"""plugin-host: catalog, introspection and execution of scripted Deno plugins."""

__version__ = "1.0.0"
