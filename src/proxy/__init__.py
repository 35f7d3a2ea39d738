"""Module proxy publishing layer.

This module turns module source trees held in blob storage into the
``@v/`` artifact layout that module-aware build tools download from.
"""
