"""Conversion engine components.

- registry: (category, method) catalogue, frozen after import
- executor: runs a ConversionRequest, never raises
- config_store / tags: persisted per-method configuration and quick-action tags
- scheduler: debounced auto-run on the Qt event loop
- sniffer: base64 image detection for preview

Keep this module lightweight; import the submodules directly.
"""
