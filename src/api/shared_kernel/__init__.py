"""Shared kernel: request context, tenant scoping and the error taxonomy.

Both the tenancy and portfolio contexts depend on these packages; nothing
here imports from either context.
"""
