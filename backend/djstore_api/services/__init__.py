"""
Services package.

- crud: persistence core (data context, model assembly, session hooks)
"""
