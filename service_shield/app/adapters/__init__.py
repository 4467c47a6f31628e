"""
Adapters binding the shield to host request pipelines.
"""
