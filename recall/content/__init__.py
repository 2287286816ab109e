"""
Recall — Content Package

Text processing for the authoring steps and the data-layer store.
"""
